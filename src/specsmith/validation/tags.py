"""Validator tag grammar.

A tag is a comma separated list of rules, each either ``name`` or
``name=param``, e.g. ``required,min=1,max=64,regex=^[a-z]+$``.
Inside a param ``0x2C`` stands for a literal comma and ``0x7C`` for ``|``.
"""

from pydantic import BaseModel, ConfigDict

from specsmith.errors import ValidatorTagError

RULE_SEPARATOR = ","
PARAM_SEPARATOR = "="

_ESCAPES = {"0x2C": ",", "0x7C": "|"}

REQUIRED_RULES = {"required"}
OPTIONAL_RULES = {"omitempty", "optional"}


class Rule(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    param: str | None = None

    def __str__(self) -> str:
        return self.name if self.param is None else f"{self.name}={self.param}"


def _unescape(param: str) -> str:
    for escaped, literal in _ESCAPES.items():
        param = param.replace(escaped, literal)
    return param


def parse_tag(tag: str | None) -> list[Rule]:
    """Split a raw tag into rules, keeping their order.

    Raises ValidatorTagError for empty rule names (``"required,,min=1"``).
    """
    if not tag or not tag.strip():
        return []

    rules = []
    for token in tag.split(RULE_SEPARATOR):
        token = token.strip()
        name, sep, param = token.partition(PARAM_SEPARATOR)
        name = name.strip()
        if not name:
            raise ValidatorTagError(tag, f"empty rule in {token!r}")
        rules.append(Rule(name=name, param=_unescape(param) if sep else None))
    return rules


def tag_required(rules: list[Rule]) -> bool | None:
    """Return True/False when the tag marks required-ness, None when it is silent."""
    names = {rule.name for rule in rules}
    if names & REQUIRED_RULES:
        return True
    if names & OPTIONAL_RULES:
        return False
    return None


def is_field_required(tag: str | None, default: bool = False) -> bool:
    """Decide whether a field or parameter carrying ``tag`` is required."""
    marked = tag_required(parse_tag(tag))
    return default if marked is None else marked
