"""Translate validator tags into schema keywords.

The same raw tag is attached to the schema as ``x-validator`` so the request
layer can enforce exactly what the document declares.
"""

from specsmith.errors import ValidatorTagError
from specsmith.generator.schema_ref import SchemaRef
from specsmith.validation.registry import ValidatorRegistry, parse_number, split_regex_param
from specsmith.validation.tags import Rule

VALIDATOR_EXTENSION = "x-validator"

FORMAT_RULES = {
    "email": "email",
    "uuid": "uuid",
    "url": "uri",
    "uri": "uri",
    "ipv4": "ipv4",
    "ipv6": "ipv6",
    "hostname": "hostname",
}

LENGTH_KEYWORDS = {
    "string": ("minLength", "maxLength"),
    "array": ("minItems", "maxItems"),
    "object": ("minProperties", "maxProperties"),
}


def _cast_enum_value(value: str, kind: str):
    if kind == "integer":
        return int(value)
    if kind == "number":
        return parse_number(value)
    if kind == "boolean":
        return value == "true"
    return value


def _bound_sides(rule: Rule) -> list[tuple[str, int | float, bool]]:
    """Return (side, number, exclusive) pairs for a bound rule."""
    number = parse_number(rule.param)
    if rule.name in ("min", "gte"):
        return [("low", number, False)]
    if rule.name in ("max", "lte"):
        return [("high", number, False)]
    if rule.name == "len":
        return [("low", number, False), ("high", number, False)]
    if rule.name == "gt":
        return [("low", number, True)]
    if rule.name == "lt":
        return [("high", number, True)]
    return []


def _tighten(current: tuple | None, bound: tuple, side: str) -> tuple:
    # All rules apply at runtime, so the strictest bound wins
    if current is None:
        return bound
    number, exclusive = bound
    if number == current[0]:
        return number, exclusive or current[1]
    if (side == "low") == (number > current[0]):
        return bound
    return current


def _bound_keywords(rules: list[Rule], kind: str) -> dict:
    bounds: dict[str, tuple] = {}
    numeric = kind in ("integer", "number")

    for rule in rules:
        for side, number, exclusive in _bound_sides(rule):
            if not numeric:
                if kind not in LENGTH_KEYWORDS or not isinstance(number, int):
                    continue
                # Lengths are whole numbers, fold exclusive bounds into inclusive ones
                if exclusive:
                    number = number + 1 if side == "low" else max(number - 1, 0)
                    exclusive = False
            bounds[side] = _tighten(bounds.get(side), (number, exclusive), side)

    keywords = {}
    if numeric:
        if "low" in bounds:
            keywords["minimum"] = bounds["low"][0]
            if bounds["low"][1]:
                keywords["exclusiveMinimum"] = True
        if "high" in bounds:
            keywords["maximum"] = bounds["high"][0]
            if bounds["high"][1]:
                keywords["exclusiveMaximum"] = True
    elif bounds:
        low, high = LENGTH_KEYWORDS[kind]
        if "low" in bounds:
            keywords[low] = bounds["low"][0]
        if "high" in bounds:
            keywords[high] = bounds["high"][0]
    return keywords


def build_schema_validation(
    registry: ValidatorRegistry,
    tag: str | None,
    kind: str,
) -> dict:
    """Return the schema keywords implied by ``tag`` for a schema of ``kind``.

    Raises ValidatorTagError when the tag does not compile.
    """
    rules = registry.compile(tag)
    keywords = _bound_keywords(rules, kind)
    for rule in rules:
        registered = registry.get(rule.name)

        if rule.name == "oneof":
            try:
                keywords["enum"] = [_cast_enum_value(v, kind) for v in rule.param.split()]
            except ValueError:
                raise ValidatorTagError(tag, f"oneof values {rule.param!r} do not fit a {kind} schema")
        elif rule.name == "not_nil_array":
            keywords["nullable"] = False
        elif rule.name == "regex":
            pattern, flags = split_regex_param(rule.param)
            # Flags cannot be expressed in a schema pattern
            if not flags:
                keywords["pattern"] = pattern
        elif rule.name in FORMAT_RULES and kind == "string":
            keywords["format"] = FORMAT_RULES[rule.name]
        elif registered.enum is not None:
            keywords["enum"] = list(registered.enum)
        elif registered.pattern is not None and kind == "string":
            keywords["pattern"] = registered.pattern

    if tag and tag.strip():
        keywords[VALIDATOR_EXTENSION] = tag
    return keywords


def annotate(
    schema: dict | SchemaRef,
    description: str = "",
    deprecated: bool = False,
    keywords: dict | None = None,
) -> dict | SchemaRef:
    """Attach use-site annotations to a resolved schema.

    Inline schemas are updated in place. A model handle is shared, so
    annotations go on an ``allOf`` wrapper; without annotations the bare
    handle is returned.
    """
    annotations = {}
    if description:
        annotations["description"] = description
    if deprecated:
        annotations["deprecated"] = True
    annotations.update(keywords or {})

    if isinstance(schema, SchemaRef):
        if not annotations:
            return schema
        return {"allOf": [schema], **annotations}

    schema.update(annotations)
    return schema
