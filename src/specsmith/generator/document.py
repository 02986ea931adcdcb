"""The OpenAPI document under construction, its serialization and validation."""

import json

import yaml
from openapi_spec_validator import OpenAPIV30SpecValidator

from specsmith.errors import DocumentValidationError
from specsmith.generator.schema_ref import SchemaRef

OPENAPI_VERSION = "3.0.3"


class OpenApiDocument:
    """Holds paths and components for one run.

    Schemas may contain ``SchemaRef`` handles; they become ``$ref`` objects
    only when the document is rendered.
    """

    def __init__(self, info: dict, servers: list[dict] | None = None):
        self.info = info
        self.servers = servers or []
        self.tags: list[dict] = []
        self.paths: dict[str, dict] = {}
        self.schemas: dict[str, dict] = {}
        self.security_schemes: dict[str, dict] = {}

    def find_path(self, path: str) -> dict | None:
        return self.paths.get(path)

    def set_path(self, path: str, path_item: dict) -> None:
        self.paths[path] = path_item

    def add_tag(self, name: str, description: str = "") -> None:
        if any(tag["name"] == name for tag in self.tags):
            return
        tag = {"name": name}
        if description:
            tag["description"] = description
        self.tags.append(tag)

    def operations(self) -> list[dict]:
        return [operation for item in self.paths.values() for operation in item.values()]

    def to_dict(self) -> dict:
        doc = {"openapi": OPENAPI_VERSION, "info": self.info}
        if self.servers:
            doc["servers"] = self.servers
        if self.tags:
            doc["tags"] = self.tags
        doc["paths"] = self.paths
        components = {"schemas": self.schemas}
        if self.security_schemes:
            components["securitySchemes"] = self.security_schemes
        doc["components"] = components
        return _render(doc)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

    def serialize(self, fmt: str = "json") -> str:
        if fmt == "yaml":
            return self.to_yaml()
        return self.to_json()


def _render(node):
    """Copy a document tree, replacing model handles with $ref objects."""
    if isinstance(node, SchemaRef):
        return node.to_dict()
    if isinstance(node, dict):
        return {key: _render(value) for key, value in node.items()}
    if isinstance(node, (list, tuple)):
        return [_render(item) for item in node]
    return node


def document_errors(spec: dict) -> list[str]:
    """Check a rendered document against the OpenAPI 3.0 rules.

    Returns a list of error messages, empty when the document is valid.
    """
    validator = OpenAPIV30SpecValidator(spec)
    return [error.message for error in validator.iter_errors()]


def validate_document(spec: dict) -> None:
    """Raise DocumentValidationError when ``spec`` is not a valid OpenAPI document."""
    errors = document_errors(spec)
    if errors:
        raise DocumentValidationError("; ".join(errors[:5]))
