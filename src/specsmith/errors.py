"""Exceptions raised while synthesizing a specification.

Every error aborts the whole generation run; no partial document is returned.
"""


class GenerationError(Exception):
    """Base class for all generation-time failures."""


class ConfigurationError(GenerationError):
    """Invalid input: bad config, malformed validator tag, duplicate names."""


class ValidatorTagError(ConfigurationError):
    """A validator tag could not be compiled."""

    def __init__(self, tag: str, reason: str):
        self.tag = tag
        self.reason = reason
        super().__init__(f"Invalid validator tag {tag!r}: {reason}")


class DuplicateModelError(ConfigurationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Model {name!r} is defined more than once")


class DuplicateOperationIdError(ConfigurationError):
    def __init__(self, operation_id: str):
        self.operation_id = operation_id
        super().__init__(f"Operation id {operation_id!r} is used by more than one route")


class ReferentialIntegrityError(GenerationError):
    """A name used somewhere in the metadata points to nothing."""


class UnknownSecuritySchemeError(ReferentialIntegrityError):
    def __init__(self, name: str, operation_id: str = ""):
        self.name = name
        self.operation_id = operation_id
        where = f" (operation {operation_id!r})" if operation_id else ""
        super().__init__(f"Security method {name!r} is not declared in the security schemes{where}")


class UnresolvedTypeError(ReferentialIntegrityError):
    def __init__(self, type_id: str):
        self.type_id = type_id
        super().__init__(f"Type {type_id!r} is neither a primitive nor a defined model")


class DocumentValidationError(GenerationError):
    """The finished document is not a structurally valid OpenAPI document."""
