"""Model schema generation (components.schemas)."""

import logging

from specsmith.errors import ConfigurationError, DuplicateModelError
from specsmith.generator.constraints import annotate, build_schema_validation
from specsmith.generator.document import OpenApiDocument
from specsmith.generator.schema_ref import SchemaResolver, schema_kind
from specsmith.metadata.base import ModelMetadata, is_deprecated
from specsmith.validation.registry import ValidatorRegistry
from specsmith.validation.tags import is_field_required

logger = logging.getLogger(__name__)


class ModelSchemaGenerator:
    """Builds one object schema per model and resolves model references."""

    def __init__(
        self,
        document: OpenApiDocument,
        resolver: SchemaResolver,
        registry: ValidatorRegistry,
        default_required: bool = False,
    ):
        self.document = document
        self.resolver = resolver
        self.registry = registry
        self.default_required = default_required

    def generate(self, models: list[ModelMetadata]) -> None:
        """Add every model to the document, then fill pending references."""
        for model in models:
            if model.name in self.document.schemas:
                raise DuplicateModelError(model.name)
            self.document.schemas[model.name] = self._model_schema(model)
            logger.debug("Generated schema for model %s (%d fields)", model.name, len(model.fields))

        self.resolver.fill(self.document.schemas)

    def _model_schema(self, model: ModelMetadata) -> dict:
        model_deprecated = is_deprecated(model.deprecation)

        schema = {"title": model.name}
        if model.description:
            schema["description"] = model.description
        schema["type"] = "object"
        schema["properties"] = {}
        if model_deprecated:
            schema["deprecated"] = True

        required_fields = []
        for field in model.fields:
            if field.name in schema["properties"]:
                raise ConfigurationError(f"Model {model.name!r} defines field {field.name!r} more than once")

            # An explicit field flag wins, an unset one inherits the model's
            if field.deprecation is not None:
                deprecated = field.deprecation.deprecated
            else:
                deprecated = model_deprecated

            keywords = build_schema_validation(self.registry, field.validator, schema_kind(field.type))
            schema["properties"][field.name] = annotate(
                self.resolver.resolve(field.type),
                description=field.description,
                deprecated=deprecated,
                keywords=keywords,
            )

            if is_field_required(field.validator, self.default_required):
                required_fields.append(field.name)

        if required_fields:
            schema["required"] = required_fields

        return schema
