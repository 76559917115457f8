"""Tests for copilot_connector.schema.inference -- schema inference from a sample document."""

import json

import pytest

from copilot_connector.exceptions import InvalidInputError
from copilot_connector.schema.inference import (
    FieldDefinition,
    default_flags,
    infer_schema,
)
from copilot_connector.schema.types import DataType, SemanticLabel
from copilot_connector.schema.values import MAX_NESTING_DEPTH


def _by_name(fields: list[FieldDefinition]) -> dict[str, FieldDefinition]:
    return {f.field_name: f for f in fields}


# --- Basic shapes ---


class TestInferBasic:
    def test_widget_sample(self, widget_sample):
        fields = infer_schema(json.dumps(widget_sample))

        assert [f.field_name for f in fields] == ["name", "price", "tags", "createdDate"]
        by_name = _by_name(fields)
        assert by_name["name"].data_type == DataType.STRING
        assert by_name["price"].data_type == DataType.DOUBLE
        assert by_name["tags"].data_type == DataType.STRING_COLLECTION
        assert by_name["createdDate"].data_type == DataType.DATETIME

    def test_accepts_decoded_object(self, widget_sample):
        assert len(infer_schema(widget_sample)) == 4

    def test_fields_are_unlabeled(self, widget_sample):
        assert all(f.semantic_label == SemanticLabel.NONE for f in infer_schema(widget_sample))

    def test_reserved_keys_are_skipped(self):
        sample = {"id": "1", "content": "text", "acl": [], "acls": [], "title": "x"}
        assert [f.field_name for f in infer_schema(sample)] == ["title"]

    def test_properties_object_is_flattened_in(self):
        sample = {"id": "1", "properties": {"title": "Hello", "views": 3}}
        fields = infer_schema(sample)
        assert [f.field_name for f in fields] == ["title", "views"]
        assert all(not f.is_nested for f in fields)

    def test_annotations_are_skipped(self):
        sample = {"tags": ["a"], "tags@odata.type": "Collection(String)"}
        assert [f.field_name for f in infer_schema(sample)] == ["tags"]

    def test_array_root_uses_first_element(self):
        sample = [{"title": "a", "count": 1}, {"other": True}]
        assert [f.field_name for f in infer_schema(sample)] == ["title", "count"]

    @pytest.mark.parametrize("sample", ["[]", "42", '"text"', "null", "[1, 2]"])
    def test_non_object_root_yields_no_fields(self, sample):
        assert infer_schema(sample) == []

    def test_empty_object(self):
        assert infer_schema("{}") == []

    def test_invalid_json_raises(self):
        with pytest.raises(InvalidInputError):
            infer_schema("{not json")

    def test_json_too_deep_to_decode_raises(self):
        with pytest.raises(InvalidInputError):
            infer_schema("[" * 100_000 + "]" * 100_000)

    def test_nesting_beyond_limit_raises(self):
        sample: dict = {"leaf": 1}
        for _ in range(MAX_NESTING_DEPTH + 1):
            sample = {"child": sample}
        with pytest.raises(InvalidInputError):
            infer_schema(json.dumps(sample))


# --- Nesting ---


class TestInferNested:
    def test_nested_object_leaves_keep_only_their_key(self):
        sample = {"title": "x", "owner": {"email": "a@b.c", "address": {"city": "Oslo"}}}
        fields = _by_name(infer_schema(sample))

        assert set(fields) == {"title", "email", "city"}
        assert fields["email"].is_nested
        assert fields["email"].json_path == "owner.email"
        assert fields["city"].json_path == "owner.address.city"
        assert not fields["title"].is_nested

    def test_array_of_objects_uses_first_element(self):
        sample = {"reviews": [{"rating": 5, "text": "good"}, {"rating": 1}]}
        fields = _by_name(infer_schema(sample))

        assert set(fields) == {"rating", "text"}
        assert fields["rating"].json_path == "reviews[0].rating"
        assert fields["rating"].is_nested

    def test_duplicate_normalized_names_first_wins(self):
        sample = {"name": "top", "owner": {"name": "nested"}}
        fields = infer_schema(sample)

        assert [f.field_name for f in fields] == ["name"]
        assert fields[0].sample_value == "top"

    def test_names_are_unique(self):
        sample = {"a-b": 1, "a_b": 2, "aB": 3}
        names = [f.field_name for f in infer_schema(sample)]
        assert names == ["aB"]


# --- Field details ---


class TestFieldDefinitions:
    def test_default_flags_for_string(self):
        field = _by_name(infer_schema({"title": "x"}))["title"]
        assert field.is_searchable and field.is_queryable and field.is_retrievable
        assert not field.is_refinable

    def test_default_flags_for_datetime(self):
        field = _by_name(infer_schema({"when": "2024-01-15"}))["when"]
        assert not field.is_searchable
        assert field.is_refinable

    def test_default_flags_for_boolean(self):
        flags = default_flags(DataType.BOOLEAN)
        assert not flags.searchable
        assert not flags.refinable

    def test_default_flags_for_numbers(self):
        for data_type in (DataType.INT32, DataType.INT64, DataType.DOUBLE):
            flags = default_flags(data_type)
            assert not flags.searchable
            assert flags.queryable and flags.retrievable
            assert not flags.refinable

    def test_string_collection_is_refinable(self):
        field = _by_name(infer_schema({"tags": ["a"]}))["tags"]
        assert field.is_searchable and field.is_refinable
        assert field.is_array

    def test_display_name_and_sample_value(self):
        field = _by_name(infer_schema({"created_by": "ada"}))["createdBy"]
        assert field.display_name == "Created By"
        assert field.sample_value == "ada"

    def test_array_sample_values(self):
        fields = _by_name(infer_schema({"tags": ["a"], "empty": []}))
        assert fields["tags"].sample_value == "[Array]"
        assert fields["empty"].sample_value == "[]"

    def test_null_is_string(self):
        field = _by_name(infer_schema({"notes": None}))["notes"]
        assert field.data_type == DataType.STRING

    def test_name_cap(self):
        fields = infer_schema({"a" * 40: 1}, max_name_length=10)
        assert fields[0].field_name == "a" * 10

    def test_inference_is_deterministic(self, widget_sample):
        assert infer_schema(widget_sample) == infer_schema(widget_sample)
