import pytest

from specsmith.config import GeneratorConfig, InfoConfig, SecuritySchemeConfig
from specsmith.errors import ConfigurationError, DuplicateOperationIdError, UnknownSecuritySchemeError
from specsmith.generator.document import OpenApiDocument
from specsmith.generator.paths import PathGenerator
from specsmith.generator.schema_ref import SchemaRef, SchemaResolver
from specsmith.metadata.base import (
    ControllerMetadata,
    Deprecation,
    ErrorResponse,
    FuncParam,
    HttpVerb,
    ParamType,
    RestMetadata,
    RouteMetadata,
    RouteSecurity,
    SecurityMethod,
    SuccessResponse,
)
from specsmith.validation.registry import ValidatorRegistry


def _config(**kwargs) -> GeneratorConfig:
    kwargs.setdefault("security_schemes", [SecuritySchemeConfig(security_name="apiKey", type="apiKey", in_="header")])
    return GeneratorConfig(info=InfoConfig(title="t", version="1"), **kwargs)


def _route(operation_id: str, verb: str = "GET", path: str = "", **kwargs) -> RouteMetadata:
    return RouteMetadata(operation_id=operation_id, http_verb=HttpVerb(verb), rest_metadata=RestMetadata(path=path), **kwargs)


def _controller(*routes: RouteMetadata, base: str = "/widgets") -> ControllerMetadata:
    return ControllerMetadata(tag="Widgets", rest_metadata=RestMetadata(path=base), routes=list(routes))


def _generate(controllers: list[ControllerMetadata], config: GeneratorConfig | None = None) -> OpenApiDocument:
    document = OpenApiDocument(info={"title": "t", "version": "1"})
    PathGenerator(document, SchemaResolver(), ValidatorRegistry.with_builtins(), config or _config()).generate(controllers)
    return document


class TestOperations:
    def test_basic_operation(self):
        route = _route("listWidgets", description="List widgets", responses=SuccessResponse(interface_type="[]string", description="ok"))
        document = _generate([_controller(route)])
        operation = document.paths["/widgets"]["get"]
        assert operation["operationId"] == "listWidgets"
        assert operation["summary"] == "List widgets"
        assert operation["description"] == "List widgets"
        assert operation["tags"] == ["Widgets"]
        assert operation["responses"]["200"]["content"]["application/json"]["schema"] == {
            "type": "array",
            "items": {"type": "string"},
        }
        assert document.tags == [{"name": "Widgets"}]

    def test_error_responses_then_success(self):
        route = _route(
            "getWidget",
            path="/{id}",
            responses=SuccessResponse(description="done", status_code=204),
            error_responses=[ErrorResponse(status_code=404, description="Not found"), ErrorResponse(status_code=500)],
        )
        responses = _generate([_controller(route)]).paths["/widgets/{id}"]["get"]["responses"]
        assert list(responses) == ["404", "500", "204"]
        assert responses["404"]["description"] == "Not found"
        assert responses["404"]["content"]["application/json"]["schema"] == {"type": "object"}
        assert responses["204"] == {"description": "done"}

    def test_success_status_used_by_error_response(self):
        route = _route(
            "getWidget",
            responses=SuccessResponse(description="ok", status_code=200),
            error_responses=[ErrorResponse(status_code=200, description="clash")],
        )
        with pytest.raises(ConfigurationError):
            _generate([_controller(route)])

    def test_error_status_twice(self):
        route = _route(
            "getWidget",
            error_responses=[ErrorResponse(status_code=404), ErrorResponse(status_code=404)],
        )
        with pytest.raises(ConfigurationError):
            _generate([_controller(route)])

    def test_duplicate_operation_id(self):
        with pytest.raises(DuplicateOperationIdError):
            _generate([_controller(_route("op"), _route("op", verb="POST"))])

    def test_hidden_route_left_out(self):
        document = _generate([_controller(_route("shown"), _route("secret", path="/secret", hidden=True))])
        assert "/widgets/secret" not in document.paths
        assert [op["operationId"] for op in document.operations()] == ["shown"]

    def test_deprecated_route(self):
        route = _route("old", deprecation=Deprecation(deprecated=True, description="use new"))
        assert _generate([_controller(route)]).paths["/widgets"]["get"]["deprecated"] is True


class TestPathMerging:
    def test_verbs_accumulate_on_one_path_item(self):
        document = _generate([_controller(_route("getWidget", "GET", "/{id}"), _route("deleteWidget", "DELETE", "/{id}"))])
        item = document.paths["/widgets/{id}"]
        assert list(item) == ["get", "delete"]
        assert item["get"]["operationId"] == "getWidget"
        assert item["delete"]["operationId"] == "deleteWidget"

    def test_same_path_across_controllers(self):
        first = _controller(_route("a", "GET"), base="/x")
        second = ControllerMetadata(tag="Other", rest_metadata=RestMetadata(path="/x"), routes=[_route("b", "POST")])
        assert list(_generate([first, second]).paths["/x"]) == ["get", "post"]

    def test_same_verb_twice_is_error(self):
        with pytest.raises(ConfigurationError):
            _generate([_controller(_route("a", "GET", "/{id}"), _route("b", "GET", "/{id}"))])


class TestParams:
    def test_query_header_and_path(self):
        route = _route(
            "find",
            path="/{id}",
            func_params=[
                FuncParam(param_type=ParamType.PATH, name="id", param_interface="int64"),
                FuncParam(param_type=ParamType.QUERY, name="q", param_interface="string", validator="required,min=3", description="Search"),
                FuncParam(param_type=ParamType.HEADER, name="X-Trace", param_interface="string"),
            ],
        )
        params = _generate([_controller(route)]).paths["/widgets/{id}"]["get"]["parameters"]
        assert [(p["name"], p["in"], p["required"]) for p in params] == [
            ("id", "path", True),
            ("q", "query", True),
            ("X-Trace", "header", False),
        ]
        assert params[1]["description"] == "Search"
        assert params[1]["schema"] == {"type": "string", "minLength": 3, "x-validator": "required,min=3"}

    def test_body_becomes_request_body(self):
        route = _route(
            "create",
            "POST",
            func_params=[FuncParam(param_type=ParamType.BODY, name="w", param_interface="Widget", validator="required")],
        )
        document = _generate([_controller(route)])
        operation = document.paths["/widgets"]["post"]
        assert operation["parameters"] == []
        body = operation["requestBody"]
        assert body["required"] is True
        schema = body["content"]["application/json"]["schema"]
        assert schema["allOf"][0].type_id == "Widget"

    def test_body_without_tag_uses_bare_reference(self):
        route = _route("create", "POST", func_params=[FuncParam(param_type=ParamType.BODY, name="w", param_interface="Widget")])
        body = _generate([_controller(route)]).paths["/widgets"]["post"]["requestBody"]
        assert isinstance(body["content"]["application/json"]["schema"], SchemaRef)
        assert body["required"] is False

    def test_two_bodies_is_error(self):
        body = FuncParam(param_type=ParamType.BODY, name="a", param_interface="string")
        route = _route("create", "POST", func_params=[body, body.model_copy(update={"name": "b"})])
        with pytest.raises(ConfigurationError):
            _generate([_controller(route)])


class TestSecurity:
    def test_route_security(self):
        route = _route(
            "secured",
            security=[RouteSecurity(security_methods=[SecurityMethod(name="apiKey", permissions=["read"])])],
        )
        assert _generate([_controller(route)]).paths["/widgets"]["get"]["security"] == [{"apiKey": ["read"]}]

    def test_unknown_scheme_aborts(self):
        route = _route(
            "secured",
            security=[RouteSecurity(security_methods=[SecurityMethod(name="apiKey", permissions=["read"])])],
        )
        config = _config(security_schemes=[SecuritySchemeConfig(security_name="other", type="apiKey", in_="query")])
        with pytest.raises(UnknownSecuritySchemeError) as exc:
            _generate([_controller(route)], config)
        assert exc.value.name == "apiKey"
        assert exc.value.operation_id == "secured"

    def test_default_security_used_when_route_has_none(self):
        default = [RouteSecurity(security_methods=[SecurityMethod(name="apiKey", permissions=[])])]
        document = _generate([_controller(_route("open"))], _config(default_security=default))
        assert document.paths["/widgets"]["get"]["security"] == [{"apiKey": []}]

    def test_no_security_at_all(self):
        assert _generate([_controller(_route("open"))]).paths["/widgets"]["get"]["security"] == []
