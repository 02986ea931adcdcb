"""Top-level specification generation."""

import logging

from specsmith.config import GeneratorConfig, build_registry
from specsmith.generator.document import OpenApiDocument
from specsmith.generator.models import ModelSchemaGenerator
from specsmith.generator.paths import PathGenerator
from specsmith.generator.schema_ref import SchemaResolver
from specsmith.generator.security import build_security_schemes
from specsmith.metadata.base import ControllerMetadata, ModelMetadata
from specsmith.validation.registry import ValidatorRegistry

logger = logging.getLogger(__name__)


def generate(
    controllers: list[ControllerMetadata],
    models: list[ModelMetadata],
    config: GeneratorConfig,
    registry: ValidatorRegistry | None = None,
) -> OpenApiDocument:
    """Build a complete OpenAPI document from controller and model metadata.

    Models are generated first so every model reference is filled before
    routes use it. Any GenerationError aborts the run; nothing partial is
    returned.
    """
    if registry is None:
        registry = build_registry(config)

    document = OpenApiDocument(info=config.info.to_openapi(), servers=config.servers())
    document.security_schemes = build_security_schemes(config.security_schemes, registry)

    resolver = SchemaResolver()
    ModelSchemaGenerator(document, resolver, registry, config.default_required).generate(models)
    PathGenerator(document, resolver, registry, config).generate(controllers)
    # Routes may name models no field referenced
    resolver.check_resolved(document.schemas)

    logger.info(
        "Generated %d schemas, %d paths, %d operations",
        len(document.schemas),
        len(document.paths),
        len(document.operations()),
    )
    return document
