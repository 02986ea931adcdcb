"""Type identifier to schema resolution.

Model types resolve to a shared ``SchemaRef`` handle. The first lookup of a
model name creates an empty handle and records it as pending; the handle is
filled once every model schema exists. This lets models reference each other
(or themselves) in any order without sorting the input.
"""

import logging

from specsmith.errors import UnresolvedTypeError

logger = logging.getLogger(__name__)

COMPONENTS_PREFIX = "#/components/schemas/"
ARRAY_PREFIX = "[]"
MAP_PREFIX = "map[string]"

PRIMITIVE_SCHEMAS = {
    "string": {"type": "string"},
    "bool": {"type": "boolean"},
    "int": {"type": "integer"},
    "int8": {"type": "integer", "format": "int32"},
    "int16": {"type": "integer", "format": "int32"},
    "int32": {"type": "integer", "format": "int32"},
    "int64": {"type": "integer", "format": "int64"},
    "uint": {"type": "integer", "minimum": 0},
    "uint8": {"type": "integer", "format": "int32", "minimum": 0},
    "uint16": {"type": "integer", "format": "int32", "minimum": 0},
    "uint32": {"type": "integer", "format": "int64", "minimum": 0},
    "uint64": {"type": "integer", "format": "int64", "minimum": 0},
    "byte": {"type": "integer", "format": "int32", "minimum": 0},
    "rune": {"type": "integer", "format": "int32"},
    "float32": {"type": "number", "format": "float"},
    "float64": {"type": "number", "format": "double"},
    "time.Time": {"type": "string", "format": "date-time"},
    "any": {},
    "interface{}": {},
}


class SchemaRef:
    """A shared handle to the schema of a named model."""

    def __init__(self, type_id: str):
        self.type_id = type_id
        self.value: dict | None = None

    @property
    def filled(self) -> bool:
        return self.value is not None

    @property
    def ref(self) -> str:
        return COMPONENTS_PREFIX + self.type_id

    def to_dict(self) -> dict:
        return {"$ref": self.ref}

    def __repr__(self) -> str:
        state = "filled" if self.filled else "empty"
        return f"SchemaRef({self.type_id!r}, {state})"


def schema_kind(type_id: str) -> str:
    """Return the JSON schema type a type identifier maps to ('object' for models)."""
    if type_id.startswith(ARRAY_PREFIX):
        return "array"
    if type_id.startswith(MAP_PREFIX):
        return "object"
    if type_id in PRIMITIVE_SCHEMAS:
        return PRIMITIVE_SCHEMAS[type_id].get("type", "any")
    return "object"


class SchemaResolver:
    """Resolves type identifiers for one generation run."""

    def __init__(self):
        self._handles: dict[str, SchemaRef] = {}
        self._filled = False

    @property
    def pending(self) -> list[SchemaRef]:
        return [handle for handle in self._handles.values() if not handle.filled]

    def resolve(self, type_id: str) -> dict | SchemaRef:
        """Map a type identifier to an inline schema or a shared model handle."""
        type_id = type_id.strip()
        if not type_id:
            raise UnresolvedTypeError(type_id)

        if type_id.startswith(ARRAY_PREFIX):
            return {"type": "array", "items": self.resolve(type_id[len(ARRAY_PREFIX):])}
        if type_id.startswith(MAP_PREFIX):
            return {"type": "object", "additionalProperties": self.resolve(type_id[len(MAP_PREFIX):])}
        if type_id in PRIMITIVE_SCHEMAS:
            return dict(PRIMITIVE_SCHEMAS[type_id])

        handle = self._handles.get(type_id)
        if handle is None:
            handle = SchemaRef(type_id)
            self._handles[type_id] = handle
            logger.debug("Created pending schema reference for %s", type_id)
        return handle

    def fill(self, schemas: dict[str, dict]) -> None:
        """Point every pending handle at its built schema.

        Raises UnresolvedTypeError for identifiers no model defines.
        """
        if self._filled:
            raise RuntimeError("schema references were already filled for this run")
        for type_id, handle in self._handles.items():
            schema = schemas.get(type_id)
            if schema is None:
                logger.error("No model defines type %s", type_id)
                raise UnresolvedTypeError(type_id)
            handle.value = schema
        self._filled = True

    def check_resolved(self, schemas: dict[str, dict]) -> None:
        """Fail on any handle created after the fill pass that no model backs."""
        for type_id, handle in self._handles.items():
            if not handle.filled:
                schema = schemas.get(type_id)
                if schema is None:
                    logger.error("No model defines type %s", type_id)
                    raise UnresolvedTypeError(type_id)
                handle.value = schema
