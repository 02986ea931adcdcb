"""Security schemes and per-operation security requirements."""

import logging

from specsmith.config import SecuritySchemeConfig
from specsmith.errors import ConfigurationError, UnknownSecuritySchemeError
from specsmith.metadata.base import RouteSecurity, SecurityMethod, SecuritySchemeType
from specsmith.validation.registry import ValidatorRegistry

logger = logging.getLogger(__name__)


def build_security_schemes(schemes: list[SecuritySchemeConfig], registry: ValidatorRegistry) -> dict[str, dict]:
    """Render configured schemes as components.securitySchemes, in config order."""
    result = {}
    for config in schemes:
        name = config.security_name
        if name in result:
            raise ConfigurationError(f"Security scheme {name!r} is declared more than once")
        if not registry.is_valid("security_schema_type", config.type):
            raise ConfigurationError(f"Security scheme {name!r} has unknown type {config.type!r}")

        scheme = {"type": config.type}
        if config.description:
            scheme["description"] = config.description

        if config.type == SecuritySchemeType.API_KEY.value:
            if not registry.is_valid("security_schema_in", config.in_):
                raise ConfigurationError(f"Security scheme {name!r} has unknown location {config.in_!r}")
            scheme["name"] = config.field_name or name
            scheme["in"] = config.in_
        elif config.type == SecuritySchemeType.HTTP.value:
            if not config.scheme:
                raise ConfigurationError(f"HTTP security scheme {name!r} needs a 'scheme'")
            scheme["scheme"] = config.scheme
            if config.bearer_format:
                scheme["bearerFormat"] = config.bearer_format
        elif config.type == SecuritySchemeType.OAUTH2.value:
            if not config.flows:
                raise ConfigurationError(f"OAuth2 security scheme {name!r} needs 'flows'")
            scheme["flows"] = config.flows
        elif config.type == SecuritySchemeType.OPEN_ID_CONNECT.value:
            if not config.open_id_connect_url:
                raise ConfigurationError(f"OpenID Connect security scheme {name!r} needs 'openIdConnectUrl'")
            scheme["openIdConnectUrl"] = config.open_id_connect_url

        result[name] = scheme
    return result


def build_security_requirement(
    schemes: list[SecuritySchemeConfig],
    methods: list[SecurityMethod],
    operation_id: str = "",
) -> dict[str, list[str]]:
    """Combine security methods into one requirement object.

    Raises UnknownSecuritySchemeError as soon as a method names a scheme
    that is not configured.
    """
    known = {scheme.security_name for scheme in schemes}
    requirement = {}
    for method in methods:
        if method.name not in known:
            logger.error("Security method %s is not declared in the security schemes", method.name)
            raise UnknownSecuritySchemeError(method.name, operation_id)
        requirement[method.name] = list(method.permissions)
    return requirement


def build_operation_security(
    schemes: list[SecuritySchemeConfig],
    route_security: list[RouteSecurity],
    default_security: list[RouteSecurity],
    operation_id: str = "",
) -> list[dict[str, list[str]]]:
    """Security requirements for one operation; routes without their own use the default."""
    security = route_security or default_security
    return [build_security_requirement(schemes, entry.security_methods, operation_id) for entry in security]
