"""Validator predicate registry.

One registry instance is built per generation run and shared by the schema
generator (to compile tags into schema keywords) and the request layer (to
check incoming values). Both read the same tag strings, so the documented
constraints and the enforced ones cannot drift apart.
"""

import ipaddress
import logging
import math
import re
from functools import lru_cache
from typing import Any, Callable
from urllib.parse import urlparse

from pydantic import BaseModel

from specsmith.errors import ConfigurationError, ValidatorTagError
from specsmith.metadata.base import FieldMetadata, SecuritySchemeIn, SecuritySchemeType
from specsmith.validation.tags import OPTIONAL_RULES, REQUIRED_RULES, Rule, parse_tag

logger = logging.getLogger(__name__)

Predicate = Callable[[Any, str | None], bool]

REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
HOSTNAME_PATTERN = r"^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
ALPHA_PATTERN = r"^[a-zA-Z]+$"
ALPHANUM_PATTERN = r"^[a-zA-Z0-9]+$"
NUMERIC_PATTERN = r"^[-+]?[0-9]+(?:\.[0-9]+)?$"


class ValidationFailure(BaseModel):
    """A rule that a runtime value did not satisfy."""

    rule: str
    param: str | None = None
    message: str


class RegisteredRule(BaseModel):
    name: str
    predicate: Predicate
    param: str = "none"  # none / number / text / regex
    enum: tuple | None = None  # closed value set for membership rules
    pattern: str | None = None


def split_regex_param(param: str) -> tuple[str, str]:
    """Split ``pattern[:flags]`` into its pattern and flag letters."""
    head, sep, tail = param.rpartition(":")
    if sep and tail and set(tail) <= set(REGEX_FLAGS):
        return head, tail
    return param, ""


@lru_cache(maxsize=256)
def compile_regex(param: str) -> re.Pattern:
    pattern, flag_letters = split_regex_param(param)
    flags = 0
    for letter in flag_letters:
        flags |= REGEX_FLAGS[letter]
    return re.compile(pattern, flags)


def parse_number(param: str | None) -> int | float:
    if param is None:
        raise ValueError("missing numeric parameter")
    try:
        return int(param)
    except ValueError:
        number = float(param)
    if not math.isfinite(number):
        raise ValueError(f"non-finite numeric parameter {param!r}")
    return number


def _measure(value: Any) -> int | float:
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value)
    if isinstance(value, (int, float)):
        return value
    raise TypeError(f"cannot measure {type(value).__name__}")


def _bound(compare: Callable[[Any, Any], bool]) -> Predicate:
    return lambda value, param: compare(_measure(value), parse_number(param))


def _matches(pattern: str) -> Predicate:
    compiled = re.compile(pattern)
    return lambda value, param: isinstance(value, str) and compiled.search(value) is not None


def validate_required(value: Any, param: str | None) -> bool:
    return value is not None and value != ""


def validate_not_nil_array(value: Any, param: str | None) -> bool:
    # Emptiness is allowed, only a missing collection fails
    return isinstance(value, (list, tuple))


def validate_starts_with_letter(value: Any, param: str | None) -> bool:
    if not isinstance(value, str) or value == "":
        return False
    return value[0].isalpha()


def validate_regex(value: Any, param: str | None) -> bool:
    if not param:
        return False
    try:
        compiled = compile_regex(param)
    except re.error:
        return False
    return isinstance(value, str) and compiled.search(value) is not None


def validate_oneof(value: Any, param: str | None) -> bool:
    tokens = (param or "").split()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Numbers compare by value, so 2.0 matches the token "2"
        for token in tokens:
            try:
                if parse_number(token) == value:
                    return True
            except ValueError:
                continue
        return False
    return str(value) in tokens


def validate_url(value: Any, param: str | None) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return bool(parsed.scheme and parsed.netloc)


def validate_uri(value: Any, param: str | None) -> bool:
    return isinstance(value, str) and bool(urlparse(value).scheme)


def _ip_version(version: int) -> Predicate:
    def check(value: Any, param: str | None) -> bool:
        try:
            return ipaddress.ip_address(value).version == version
        except ValueError:
            return False

    return check


def enum_predicate(values) -> Predicate:
    """Build a membership predicate over a closed value set, materialized once."""
    allowed = frozenset(values)
    return lambda value, param: value in allowed


class ValidatorRegistry:
    """Name-keyed table of validation rules."""

    def __init__(self):
        self._rules: dict[str, RegisteredRule] = {}

    @classmethod
    def with_builtins(cls) -> "ValidatorRegistry":
        registry = cls()
        registry.register("required", validate_required)
        registry.register("omitempty", lambda value, param: True)
        registry.register("optional", lambda value, param: True)
        registry.register("min", _bound(lambda a, b: a >= b), param="number")
        registry.register("max", _bound(lambda a, b: a <= b), param="number")
        registry.register("len", _bound(lambda a, b: a == b), param="number")
        registry.register("gt", _bound(lambda a, b: a > b), param="number")
        registry.register("gte", _bound(lambda a, b: a >= b), param="number")
        registry.register("lt", _bound(lambda a, b: a < b), param="number")
        registry.register("lte", _bound(lambda a, b: a <= b), param="number")
        registry.register("oneof", validate_oneof, param="text")
        registry.register("email", _matches(EMAIL_PATTERN))
        registry.register("uuid", _matches(UUID_PATTERN))
        registry.register("hostname", _matches(HOSTNAME_PATTERN))
        registry.register("url", validate_url)
        registry.register("uri", validate_uri)
        registry.register("ipv4", _ip_version(4))
        registry.register("ipv6", _ip_version(6))
        registry.register("alpha", _matches(ALPHA_PATTERN), pattern=ALPHA_PATTERN)
        registry.register("alphanum", _matches(ALPHANUM_PATTERN), pattern=ALPHANUM_PATTERN)
        registry.register("numeric", _matches(NUMERIC_PATTERN), pattern=NUMERIC_PATTERN)
        registry.register("not_nil_array", validate_not_nil_array)
        registry.register("starts_with_letter", validate_starts_with_letter)
        registry.register("regex", validate_regex, param="regex")

        registry.register_enum("security_schema_in", [member.value for member in SecuritySchemeIn])
        registry.register_enum("security_schema_type", [member.value for member in SecuritySchemeType])
        return registry

    def register(
        self,
        name: str,
        predicate: Predicate,
        param: str = "none",
        enum: tuple | None = None,
        pattern: str | None = None,
    ) -> None:
        """Register a rule; an existing rule with the same name is replaced."""
        if name in self._rules:
            logger.debug("Replacing validator rule %r", name)
        self._rules[name] = RegisteredRule(name=name, predicate=predicate, param=param, enum=enum, pattern=pattern)

    def register_enum(self, name: str, values) -> None:
        values = tuple(values)
        if not values:
            raise ConfigurationError(f"Enum validator {name!r} needs at least one value")
        self.register(name, enum_predicate(values), enum=values)

    def register_pattern(self, name: str, pattern: str) -> None:
        try:
            re.compile(pattern)
        except re.error as e:
            raise ConfigurationError(f"Pattern validator {name!r} has an invalid pattern: {e}") from e
        self.register(name, _matches(pattern), pattern=pattern)

    def has(self, name: str) -> bool:
        return name in self._rules

    def get(self, name: str) -> RegisteredRule:
        return self._rules[name]

    def names(self) -> list[str]:
        return list(self._rules)

    def compile(self, tag: str | None) -> list[Rule]:
        """Parse ``tag`` and check every rule against the registry.

        Raises ValidatorTagError for unknown rules and bad parameters.
        """
        rules = parse_tag(tag)
        for rule in rules:
            if rule.name not in self._rules:
                raise ValidatorTagError(tag, f"unknown rule {rule.name!r}")
            self._check_param(tag, rule, self._rules[rule.name].param)
        return rules

    def _check_param(self, tag: str, rule: Rule, kind: str) -> None:
        if kind == "none":
            if rule.param is not None:
                raise ValidatorTagError(tag, f"rule {rule.name!r} takes no parameter")
            return
        if not rule.param:
            raise ValidatorTagError(tag, f"rule {rule.name!r} needs a parameter")
        if kind == "number":
            try:
                parse_number(rule.param)
            except ValueError:
                raise ValidatorTagError(tag, f"rule {rule.name!r} needs a number, got {rule.param!r}")
        elif kind == "regex":
            try:
                compile_regex(rule.param)
            except re.error as e:
                raise ValidatorTagError(tag, f"invalid regex {rule.param!r}: {e}")

    def check(self, tag: str | None, value: Any) -> list[ValidationFailure]:
        """Run the rules of ``tag`` against a runtime value.

        Never raises for bad input; failing or crashing rules are reported
        as failures. Missing values only face ``required`` and
        ``not_nil_array``; empty strings skip the remaining rules when the
        tag carries ``omitempty``.
        """
        try:
            rules = parse_tag(tag)
        except ValidatorTagError as e:
            return [ValidationFailure(rule="tag", message=str(e))]

        names = {rule.name for rule in rules}
        skip_empty = value == "" and bool(names & OPTIONAL_RULES)

        failures = []
        for rule in rules:
            if rule.name in OPTIONAL_RULES:
                continue
            if value is None and rule.name not in REQUIRED_RULES and rule.name != "not_nil_array":
                continue
            if skip_empty and rule.name not in REQUIRED_RULES:
                continue

            registered = self._rules.get(rule.name)
            if registered is None:
                failures.append(ValidationFailure(rule=rule.name, param=rule.param, message=f"unknown rule {rule.name!r}"))
                continue

            try:
                ok = registered.predicate(value, rule.param)
            except (TypeError, ValueError) as e:
                logger.debug("Rule %s raised on %r: %s", rule, value, e)
                ok = False

            if not ok:
                failures.append(
                    ValidationFailure(rule=rule.name, param=rule.param, message=f"value failed rule '{rule}'")
                )
        return failures

    def is_valid(self, tag: str | None, value: Any) -> bool:
        return not self.check(tag, value)

    def validate_fields(self, values: dict, fields: list[FieldMetadata]) -> dict[str, list[ValidationFailure]]:
        """Validate a mapping of incoming field values against field metadata.

        Returns {field_name: failures} for fields that failed.
        """
        errors = {}
        for field in fields:
            failures = self.check(field.validator, values.get(field.name))
            if failures:
                errors[field.name] = failures
        return errors
