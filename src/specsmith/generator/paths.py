"""Path and operation generation from controller metadata."""

import logging

from specsmith.config import GeneratorConfig
from specsmith.errors import ConfigurationError, DuplicateOperationIdError
from specsmith.generator.constraints import annotate, build_schema_validation
from specsmith.generator.document import OpenApiDocument
from specsmith.generator.schema_ref import SchemaResolver, schema_kind
from specsmith.generator.security import build_operation_security
from specsmith.metadata.base import (
    ControllerMetadata,
    ErrorResponse,
    FuncParam,
    ParamType,
    RouteMetadata,
    is_deprecated,
)
from specsmith.validation.registry import ValidatorRegistry
from specsmith.validation.tags import is_field_required

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


class PathGenerator:
    """Turns controllers and their routes into path items and operations."""

    def __init__(
        self,
        document: OpenApiDocument,
        resolver: SchemaResolver,
        registry: ValidatorRegistry,
        config: GeneratorConfig,
    ):
        self.document = document
        self.resolver = resolver
        self.registry = registry
        self.config = config
        self._operation_ids: set[str] = set()

    def generate(self, controllers: list[ControllerMetadata]) -> None:
        for controller in controllers:
            self._generate_controller(controller)

    def _generate_controller(self, controller: ControllerMetadata) -> None:
        self.document.add_tag(controller.tag, controller.description)

        for route in controller.routes:
            if route.hidden:
                logger.debug("Skipping hidden route %s", route.operation_id)
                continue

            if route.operation_id in self._operation_ids:
                raise DuplicateOperationIdError(route.operation_id)
            self._operation_ids.add(route.operation_id)

            operation = self._create_operation(controller, route)
            self._set_route_operation(controller, route, operation)

    def _create_operation(self, controller: ControllerMetadata, route: RouteMetadata) -> dict:
        operation = {
            "tags": [controller.tag],
            "summary": route.description,
            "description": route.description,
            "operationId": route.operation_id,
            "parameters": [],
        }

        for param in route.func_params:
            if param.param_type == ParamType.BODY:
                if "requestBody" in operation:
                    raise ConfigurationError(f"Route {route.operation_id!r} has more than one body parameter")
                operation["requestBody"] = self._request_body(param)
            else:
                operation["parameters"].append(self._route_param(param))

        responses = {}
        for error in route.error_responses:
            if str(error.status_code) in responses:
                raise ConfigurationError(f"Route {route.operation_id!r} declares error status {error.status_code} twice")
            responses[str(error.status_code)] = self._error_response(error)
        success_code = str(route.responses.status_code)
        if success_code in responses:
            raise ConfigurationError(
                f"Route {route.operation_id!r} declares status {success_code} as both success and error response"
            )
        responses[success_code] = self._success_response(route)
        operation["responses"] = responses

        if is_deprecated(route.deprecation):
            operation["deprecated"] = True

        operation["security"] = build_operation_security(
            self.config.security_schemes,
            route.security,
            self.config.default_security,
            route.operation_id,
        )
        return operation

    def _set_route_operation(self, controller: ControllerMetadata, route: RouteMetadata, operation: dict) -> None:
        route_path = controller.rest_metadata.path + route.rest_metadata.path
        verb = route.http_verb.value.lower()

        path_item = self.document.find_path(route_path)
        if path_item is None:
            path_item = {}
        if verb in path_item:
            raise ConfigurationError(f"{route.http_verb.value} {route_path} is defined by more than one route")

        path_item[verb] = operation
        self.document.set_path(route_path, path_item)
        logger.debug("Added %s %s (%s)", route.http_verb.value, route_path, route.operation_id)

    def _schema_for(self, type_id: str, validator: str) -> dict:
        keywords = build_schema_validation(self.registry, validator, schema_kind(type_id))
        return annotate(self.resolver.resolve(type_id), keywords=keywords)

    def _json_content(self, type_id: str, validator: str) -> dict:
        return {JSON_CONTENT_TYPE: {"schema": self._schema_for(type_id, validator)}}

    def _route_param(self, param: FuncParam) -> dict:
        # Path parameters are always required in OpenAPI
        if param.param_type == ParamType.PATH:
            required = True
        else:
            required = is_field_required(param.validator, self.config.default_required)

        result = {"name": param.name, "in": param.param_type.value.lower()}
        if param.description:
            result["description"] = param.description
        result["required"] = required
        result["schema"] = self._schema_for(param.param_interface, param.validator)
        return result

    def _request_body(self, param: FuncParam) -> dict:
        body = {}
        if param.description:
            body["description"] = param.description
        body["content"] = self._json_content(param.param_interface, param.validator)
        body["required"] = is_field_required(param.validator, self.config.default_required)
        return body

    def _error_response(self, error: ErrorResponse) -> dict:
        return {
            "description": error.description,
            "content": {JSON_CONTENT_TYPE: {"schema": {"type": "object"}}},
        }

    def _success_response(self, route: RouteMetadata) -> dict:
        success = route.responses
        response = {"description": success.description}
        if success.interface_type:
            response["content"] = self._json_content(success.interface_type, success.validator)
        return response
