"""Schema inference engine for copilot-connector.

Walks a sample JSON document and derives the flat list of properties to
register for an external connection:

  sample JSON -> flatten -> normalize names -> infer types -> default flags

Nested objects are flattened (leaf names only, no path prefix). Arrays of
objects are inferred from their first element and lose their collection
semantics; the external store has no nested collections to map them to.
"""

import json
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from copilot_connector.exceptions import InvalidInputError
from copilot_connector.schema.naming import SCHEMA_NAME_MAX_LENGTH, display_name, normalize_name
from copilot_connector.schema.types import DataType, SemanticLabel, infer_type
from copilot_connector.schema.values import (
    JsonKind,
    check_depth,
    is_annotation_key,
    kind_of,
    walk_leaves,
)


# --- Result Data Model ---


@dataclass
class FieldDefinition:
    """A single inferred or registered schema property.

    json_path, is_array, is_nested and sample_value are inference diagnostics
    and are never published.
    """

    field_name: str
    display_name: str
    data_type: DataType
    is_searchable: bool = False
    is_queryable: bool = True
    is_retrievable: bool = True
    is_refinable: bool = False
    semantic_label: SemanticLabel = SemanticLabel.NONE
    json_path: str = ""
    is_array: bool = False
    is_nested: bool = False
    sample_value: Any = None

    @property
    def is_labeled(self) -> bool:
        return self.semantic_label != SemanticLabel.NONE


@dataclass(frozen=True)
class CapabilityFlags:
    searchable: bool
    queryable: bool
    retrievable: bool
    refinable: bool


DEFAULT_FLAGS: dict[DataType, CapabilityFlags] = {
    DataType.STRING: CapabilityFlags(True, True, True, False),
    DataType.DATETIME: CapabilityFlags(False, True, True, True),
    DataType.BOOLEAN: CapabilityFlags(False, True, True, False),
    DataType.STRING_COLLECTION: CapabilityFlags(True, True, True, True),
}
FALLBACK_FLAGS = CapabilityFlags(False, True, True, False)


def default_flags(data_type: DataType) -> CapabilityFlags:
    """Default searchable/queryable/retrievable/refinable flags for a type."""
    return DEFAULT_FLAGS.get(data_type, FALLBACK_FLAGS)


# --- Inference Logic ---


def parse_json(text: str) -> Any:
    """Decode JSON text, raising InvalidInputError on malformed input."""
    try:
        return json.loads(text)
    except (TypeError, ValueError, RecursionError) as e:
        raise InvalidInputError(f"Invalid JSON format: {e}") from e


def infer_schema(
    json_sample: str | dict | list,
    max_name_length: int = SCHEMA_NAME_MAX_LENGTH,
) -> list[FieldDefinition]:
    """Infer the flat property list for a sample document.

    Args:
        json_sample: JSON text, or an already decoded object/array.
        max_name_length: Cap applied to normalized property names.

    Returns:
        Field definitions in order of first encounter. Names that normalize
        to an already emitted name are skipped.

    Raises:
        InvalidInputError: json_sample is text that is not valid JSON, or it
            nests deeper than MAX_NESTING_DEPTH.
    """
    document = parse_json(json_sample) if isinstance(json_sample, str) else json_sample
    check_depth(document)

    match kind_of(document):
        case JsonKind.OBJECT:
            root = document
        case JsonKind.ARRAY if document and kind_of(document[0]) == JsonKind.OBJECT:
            # A list of records: the first record stands in for the shape
            root = document[0]
        case _:
            logger.warning("Sample is neither an object nor an array of objects")
            return []

    fields: list[FieldDefinition] = []
    seen: set[str] = set()

    for leaf in walk_leaves(root):
        if is_annotation_key(leaf.key):
            continue

        field_name = normalize_name(leaf.key, max_name_length)
        if field_name in seen:
            logger.debug(f"Skipping '{leaf.json_path}': name '{field_name}' already inferred")
            continue
        seen.add(field_name)

        fields.append(create_field_definition(leaf.key, leaf.value, leaf.json_path, field_name))
        fields[-1].is_nested = leaf.nested

    logger.debug(f"Inferred {len(fields)} fields from sample")
    return fields


def create_field_definition(
    raw_name: str,
    value: Any,
    json_path: str,
    field_name: str | None = None,
) -> FieldDefinition:
    """Build a field with default capability flags for the value's type."""
    data_type = infer_type(value)
    flags = default_flags(data_type)
    return FieldDefinition(
        field_name=field_name or normalize_name(raw_name),
        display_name=display_name(raw_name),
        data_type=data_type,
        is_searchable=flags.searchable,
        is_queryable=flags.queryable,
        is_retrievable=flags.retrievable,
        is_refinable=flags.refinable,
        json_path=json_path,
        is_array=kind_of(value) == JsonKind.ARRAY,
        sample_value=_sample_value(value),
    )


def _sample_value(value: Any) -> Any:
    match kind_of(value):
        case JsonKind.ARRAY:
            return "[Array]" if value else "[]"
        case JsonKind.OBJECT:
            return "[Object]"
        case _:
            return value
