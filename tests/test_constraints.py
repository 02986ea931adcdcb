import pytest

from specsmith.errors import ValidatorTagError
from specsmith.generator.constraints import annotate, build_schema_validation
from specsmith.generator.schema_ref import SchemaRef
from specsmith.validation.registry import ValidatorRegistry


@pytest.fixture
def registry():
    return ValidatorRegistry.with_builtins()


class TestBuildSchemaValidation:
    def test_empty_tag_adds_nothing(self, registry):
        assert build_schema_validation(registry, "", "string") == {}

    def test_string_lengths(self, registry):
        keywords = build_schema_validation(registry, "required,min=1,max=64", "string")
        assert keywords == {"minLength": 1, "maxLength": 64, "x-validator": "required,min=1,max=64"}

    def test_numeric_bounds(self, registry):
        keywords = build_schema_validation(registry, "gt=0,lte=9.5", "number")
        assert keywords["minimum"] == 0
        assert keywords["exclusiveMinimum"] is True
        assert keywords["maximum"] == 9.5

    def test_combined_bounds_keep_the_tighter_one(self, registry):
        keywords = build_schema_validation(registry, "gt=1,gte=3", "integer")
        assert keywords["minimum"] == 3
        assert "exclusiveMinimum" not in keywords
        assert registry.is_valid("gt=1,gte=3", 3) is True

        keywords = build_schema_validation(registry, "gte=3,gt=3", "integer")
        assert keywords["minimum"] == 3
        assert keywords["exclusiveMinimum"] is True
        assert registry.is_valid("gte=3,gt=3", 3) is False

    def test_upper_bounds_after_exclusive(self, registry):
        keywords = build_schema_validation(registry, "lt=10,lte=5", "number")
        assert keywords["maximum"] == 5
        assert "exclusiveMaximum" not in keywords

        keywords = build_schema_validation(registry, "lt=5,max=8", "number")
        assert keywords["maximum"] == 5
        assert keywords["exclusiveMaximum"] is True

    def test_combined_length_bounds(self, registry):
        keywords = build_schema_validation(registry, "min=2,gt=4,max=10,lt=8", "string")
        assert keywords["minLength"] == 5
        assert keywords["maxLength"] == 7

    def test_oneof_numbers_match_runtime(self, registry):
        keywords = build_schema_validation(registry, "oneof=1.5 2", "number")
        assert keywords["enum"] == [1.5, 2]
        assert all(registry.is_valid("oneof=1.5 2", value) for value in keywords["enum"])

    def test_non_finite_values_rejected(self, registry):
        with pytest.raises(ValidatorTagError):
            build_schema_validation(registry, "min=nan", "number")
        with pytest.raises(ValidatorTagError):
            build_schema_validation(registry, "oneof=1 inf", "number")

    def test_array_items(self, registry):
        keywords = build_schema_validation(registry, "len=3", "array")
        assert keywords["minItems"] == 3
        assert keywords["maxItems"] == 3

    def test_oneof_cast_to_integers(self, registry):
        keywords = build_schema_validation(registry, "oneof=1 2 3", "integer")
        assert keywords["enum"] == [1, 2, 3]

    def test_oneof_does_not_fit_type(self, registry):
        with pytest.raises(ValidatorTagError):
            build_schema_validation(registry, "oneof=a b", "integer")

    def test_format_and_pattern(self, registry):
        assert build_schema_validation(registry, "email", "string")["format"] == "email"
        assert build_schema_validation(registry, "regex=^[a-z]+$", "string")["pattern"] == "^[a-z]+$"
        assert "pattern" not in build_schema_validation(registry, "regex=^[a-z]+$:i", "string")

    def test_not_nil_array(self, registry):
        assert build_schema_validation(registry, "not_nil_array", "array")["nullable"] is False

    def test_enum_rule(self, registry):
        keywords = build_schema_validation(registry, "security_schema_in", "string")
        assert keywords["enum"] == ["query", "header", "cookie"]

    def test_custom_pattern_rule(self, registry):
        registry.register_pattern("slug", "^[a-z0-9-]+$")
        assert build_schema_validation(registry, "slug", "string")["pattern"] == "^[a-z0-9-]+$"

    def test_unknown_rule(self, registry):
        with pytest.raises(ValidatorTagError):
            build_schema_validation(registry, "sparkly", "string")


class TestAnnotate:
    def test_inline_schema_updated(self):
        schema = annotate({"type": "string"}, description="Name", keywords={"minLength": 1})
        assert schema == {"type": "string", "description": "Name", "minLength": 1}

    def test_bare_handle_when_nothing_to_add(self):
        handle = SchemaRef("User")
        assert annotate(handle) is handle

    def test_handle_wrapped_in_all_of(self):
        handle = SchemaRef("User")
        schema = annotate(handle, description="Owner", deprecated=True)
        assert schema["allOf"][0] is handle
        assert schema["description"] == "Owner"
        assert schema["deprecated"] is True
