"""Generator configuration.

Loaded from JSON or YAML, either flat or nested under an
``openAPIGeneratorConfig`` key.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from specsmith.errors import ConfigurationError
from specsmith.metadata.base import RouteSecurity
from specsmith.validation.registry import ValidatorRegistry

WRAPPER_KEY = "openAPIGeneratorConfig"


class ConfigModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InfoConfig(ConfigModel):
    title: str
    version: str
    description: str = ""
    terms_of_service: str = ""
    contact: dict | None = None
    license: dict | None = None

    def to_openapi(self) -> dict:
        info = {"title": self.title}
        if self.description:
            info["description"] = self.description
        if self.terms_of_service:
            info["termsOfService"] = self.terms_of_service
        if self.contact:
            info["contact"] = self.contact
        if self.license:
            info["license"] = self.license
        info["version"] = self.version
        return info


class SecuritySchemeConfig(ConfigModel):
    """A named authentication mechanism routes can refer to."""

    security_name: str
    type: str  # apiKey / oauth2 / openIdConnect / http
    in_: str = Field("", alias="in")  # query / header / cookie, apiKey only
    field_name: str = ""
    description: str = ""
    scheme: str = ""  # http only: bearer, basic, ...
    bearer_format: str = ""
    open_id_connect_url: str = ""
    flows: dict | None = None


class CustomValidatorConfig(ConfigModel):
    """An extra validator rule: a closed value set or a pattern."""

    name: str
    enum: list | None = None
    pattern: str | None = None


class SpecGeneratorConfig(ConfigModel):
    output_path: str = ""
    format: str = "json"  # json / yaml


class GeneratorConfig(ConfigModel):
    info: InfoConfig
    base_url: str = ""
    security_schemes: list[SecuritySchemeConfig] = []
    default_security: list[RouteSecurity] = []
    default_required: bool = False
    custom_validators: list[CustomValidatorConfig] = []
    spec_generator_config: SpecGeneratorConfig = SpecGeneratorConfig()

    def servers(self) -> list[dict]:
        if not self.base_url:
            return []
        return [{"url": self.base_url}]


def load_config(file_path: Path) -> GeneratorConfig:
    """Read a configuration file into a GeneratorConfig."""
    text = file_path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse config {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {file_path} must be a mapping")
    if WRAPPER_KEY in data:
        data = data[WRAPPER_KEY]

    try:
        return GeneratorConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config {file_path}: {e}") from e


def build_registry(config: GeneratorConfig) -> ValidatorRegistry:
    """Create the validator registry for a run, including configured extensions."""
    registry = ValidatorRegistry.with_builtins()
    for custom in config.custom_validators:
        if custom.enum is not None:
            registry.register_enum(custom.name, custom.enum)
        elif custom.pattern is not None:
            registry.register_pattern(custom.name, custom.pattern)
        else:
            raise ConfigurationError(f"Custom validator {custom.name!r} needs either 'enum' or 'pattern'")
    return registry
