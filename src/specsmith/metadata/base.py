"""Metadata models describing controllers, routes and data models.

The metadata extractor produces these; the generator only reads them.
Keys are accepted in snake_case or camelCase ("operationId", "funcParams").
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MetadataModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ParamType(str, Enum):
    QUERY = "Query"
    PATH = "Path"
    HEADER = "Header"
    BODY = "Body"
    COOKIE = "Cookie"


class HttpVerb(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"


class SecuritySchemeIn(str, Enum):
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class SecuritySchemeType(str, Enum):
    API_KEY = "apiKey"
    OAUTH2 = "oauth2"
    OPEN_ID_CONNECT = "openIdConnect"
    HTTP = "http"


class Deprecation(MetadataModel):
    deprecated: bool = False
    description: str = ""


class RestMetadata(MetadataModel):
    path: str = ""


class FieldMetadata(MetadataModel):
    """A single property of a model."""

    name: str
    type: str  # primitive, []T, map[string]T or a model name
    validator: str = ""
    description: str = ""
    deprecation: Deprecation | None = None  # None inherits the model's flag


class ModelMetadata(MetadataModel):
    """A named data shape exposed under components.schemas."""

    name: str
    description: str = ""
    deprecation: Deprecation | None = None
    fields: list[FieldMetadata] = []


class FuncParam(MetadataModel):
    """A route function parameter (query, path, header, cookie or body)."""

    param_type: ParamType
    name: str
    param_interface: str
    validator: str = ""
    description: str = ""


class SuccessResponse(MetadataModel):
    interface_type: str = ""  # empty means no response body
    description: str = ""
    status_code: int = 200
    validator: str = ""


class ErrorResponse(MetadataModel):
    status_code: int
    description: str = ""


class SecurityMethod(MetadataModel):
    name: str
    permissions: list[str] = []


class RouteSecurity(MetadataModel):
    """One alternative security requirement; all of its methods apply together."""

    security_methods: list[SecurityMethod] = Field(default_factory=list)


class RouteMetadata(MetadataModel):
    """A single HTTP operation of a controller."""

    operation_id: str
    http_verb: HttpVerb
    rest_metadata: RestMetadata = RestMetadata()
    description: str = ""
    func_params: list[FuncParam] = []
    responses: SuccessResponse = SuccessResponse()
    error_responses: list[ErrorResponse] = []
    security: list[RouteSecurity] = []
    hidden: bool = False
    deprecation: Deprecation | None = None


class ControllerMetadata(MetadataModel):
    """A group of routes sharing a tag and a base path."""

    tag: str
    description: str = ""
    rest_metadata: RestMetadata = RestMetadata()
    routes: list[RouteMetadata] = []


def is_deprecated(deprecation: Deprecation | None) -> bool:
    return deprecation is not None and deprecation.deprecated
