"""Tests for copilot_connector.schema.validator -- schema and item validation."""

import pytest

from copilot_connector.schema.inference import FieldDefinition, infer_schema
from copilot_connector.schema.labels import assign_labels
from copilot_connector.schema.types import DataType, SemanticLabel
from copilot_connector.schema.validator import validate_item, validate_schema
from copilot_connector.schemas.item import AccessControlEntry, NormalizedItem


def _field(name: str, data_type: DataType = DataType.STRING, **kwargs) -> FieldDefinition:
    kwargs.setdefault("is_searchable", data_type in (DataType.STRING, DataType.STRING_COLLECTION))
    return FieldDefinition(field_name=name, display_name=name, data_type=data_type, **kwargs)


def _errors_containing(errors: list[str], fragment: str) -> list[str]:
    return [e for e in errors if fragment in e]


# --- Schema: size ---


class TestSchemaSize:
    def test_empty_schema_is_invalid(self):
        result = validate_schema([])
        assert not result.is_valid
        assert _errors_containing(result.errors, "at least 1 property")

    def test_one_field_is_valid(self):
        assert validate_schema([_field("title")]).is_valid

    def test_128_fields_is_valid(self):
        fields = [_field(f"field{i}") for i in range(128)]
        assert validate_schema(fields).is_valid

    def test_129_fields_is_invalid(self):
        fields = [_field(f"field{i}") for i in range(129)]
        result = validate_schema(fields)
        assert _errors_containing(result.errors, "exceeds maximum of 128 properties")

    def test_custom_limit(self):
        fields = [_field(f"field{i}") for i in range(3)]
        assert not validate_schema(fields, max_fields=2).is_valid


# --- Schema: names ---


class TestSchemaNames:
    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty_name(self, name):
        result = validate_schema([_field(name)])
        assert _errors_containing(result.errors, "cannot be empty")

    def test_name_too_long(self):
        result = validate_schema([_field("a" * 33)])
        assert _errors_containing(result.errors, "exceeds maximum length of 32")

    def test_name_at_limit(self):
        assert validate_schema([_field("a" * 32)]).is_valid

    @pytest.mark.parametrize("name", ["user_name", "user-name", "first name", "café"])
    def test_invalid_characters(self, name):
        result = validate_schema([_field(name)])
        assert _errors_containing(result.errors, "invalid characters")

    def test_duplicate_names_ignore_case(self):
        result = validate_schema([_field("title"), _field("Title")])
        assert _errors_containing(result.errors, "Duplicate property name")


# --- Schema: labels ---


class TestSchemaLabels:
    def test_duplicate_label(self):
        fields = [
            _field("title", semantic_label=SemanticLabel.TITLE),
            _field("name", semantic_label=SemanticLabel.TITLE),
        ]
        result = validate_schema(fields)
        assert _errors_containing(result.errors, "Duplicate semantic label 'title'")

    def test_incompatible_label_type(self):
        fields = [
            _field(
                "created",
                DataType.INT64,
                is_searchable=False,
                semantic_label=SemanticLabel.CREATED_DATE_TIME,
            )
        ]
        result = validate_schema(fields)
        assert _errors_containing(result.errors, "requires DateTime data type")

    def test_string_label_on_other_type_is_allowed(self):
        fields = [_field("code", DataType.INT64, is_searchable=False, semantic_label=SemanticLabel.TITLE)]
        assert validate_schema(fields).is_valid

    def test_labeled_field_must_be_retrievable(self):
        fields = [_field("title", semantic_label=SemanticLabel.TITLE, is_retrievable=False)]
        result = validate_schema(fields)
        assert _errors_containing(result.errors, "not marked as retrievable")


# --- Schema: capability flags ---


class TestSchemaFlags:
    def test_searchable_number_rejected(self):
        result = validate_schema([_field("price", DataType.DOUBLE, is_searchable=True)])
        assert _errors_containing(result.errors, "cannot be searchable")

    def test_refinable_boolean_rejected(self):
        result = validate_schema(
            [_field("inStock", DataType.BOOLEAN, is_searchable=False, is_refinable=True)]
        )
        assert _errors_containing(result.errors, "Boolean property 'inStock' cannot be refinable")

    def test_all_violations_are_collected(self):
        fields = [
            _field("bad name"),
            _field("price", DataType.DOUBLE, is_searchable=True),
            _field("flag", DataType.BOOLEAN, is_searchable=False, is_refinable=True),
        ]
        assert len(validate_schema(fields).errors) == 3


class TestInferredSchemasValidate:
    def test_widget_sample_is_valid(self, widget_sample):
        fields = infer_schema(widget_sample)
        assign_labels(fields)
        assert validate_schema(fields).is_valid

    def test_sample_with_booleans_is_valid(self):
        fields = infer_schema({"title": "x", "active": True, "count": 4})
        assign_labels(fields)
        assert validate_schema(fields).is_valid


# --- Item validation ---


def _item(**kwargs) -> NormalizedItem:
    kwargs.setdefault("id", "p1")
    kwargs.setdefault("properties", {"title": "Widget"})
    kwargs.setdefault("acls", [AccessControlEntry()])
    return NormalizedItem(**kwargs)


class TestValidateItem:
    def test_valid_item(self, product_schema):
        item = _item(
            properties={
                "title": "Widget",
                "url": "https://example.com/items/p1",
                "price": 9.99,
                "quantity": 3,
                "inStock": True,
                "tags": ["a", "b"],
                "tags@odata.type": "Collection(String)",
                "lastUpdated": "2024-01-15T10:00:00+00:00",
            }
        )
        assert validate_item(item, product_schema).is_valid

    @pytest.mark.parametrize(
        "item_id,message",
        [
            ("", "Item ID is required"),
            ("x" * 129, "cannot exceed 128 characters"),
            ("has space", "can only contain letters"),
            ("slash/id", "can only contain letters"),
        ],
    )
    def test_item_id_rules(self, product_schema, item_id, message):
        result = validate_item(_item(id=item_id), product_schema)
        assert _errors_containing(result.errors, message)

    def test_required_field_missing(self, product_schema):
        result = validate_item(_item(properties={"price": 1.0}), product_schema)
        assert "Required field 'title' is missing" in result.errors

    def test_required_field_null(self, product_schema):
        result = validate_item(_item(properties={"title": None}), product_schema)
        assert "Required field 'title' cannot be null" in result.errors

    @pytest.mark.parametrize(
        "name,value,message",
        [
            ("title", 42, "must be a string"),
            ("title", "x" * 2049, "cannot exceed 2048 characters"),
            ("quantity", 1.5, "must be an integer"),
            ("quantity", True, "must be an integer"),
            ("price", "cheap", "must be a number"),
            ("inStock", "yes", "must be a boolean"),
            ("lastUpdated", "soon", "must be a valid datetime"),
            ("tags", "a", "must be an array of strings"),
            ("tags", [1, 2], "must be an array of strings"),
        ],
    )
    def test_value_types(self, product_schema, name, value, message):
        properties = {"title": "Widget", name: value}
        result = validate_item(_item(properties=properties), product_schema)
        assert _errors_containing(result.errors, message)

    def test_unknown_fields_are_not_errors(self, product_schema):
        item = _item(properties={"title": "Widget", "color": "red"})
        assert validate_item(item, product_schema).is_valid

    def test_content_limit(self, product_schema):
        item = _item(content="x" * 4_000_001)
        assert "Content cannot exceed 4MB" in validate_item(item, product_schema).errors

    def test_acl_rules(self, product_schema):
        item = _item(
            acls=[
                AccessControlEntry(type="robot", value="r2", access_type="grant"),
                AccessControlEntry(type="user", value=" ", access_type="grant"),
                AccessControlEntry(type="group", value="g1", access_type="maybe"),
            ]
        )
        errors = validate_item(item, product_schema).errors
        assert _errors_containing(errors, "Invalid ACL type 'robot'")
        assert "ACL value is required" in errors
        assert _errors_containing(errors, "Invalid ACL access type 'maybe'")

    def test_acl_types_case_insensitive(self, product_schema):
        item = _item(acls=[AccessControlEntry(type="EveryoneExceptGuests", value="x", access_type="Deny")])
        assert validate_item(item, product_schema).is_valid
