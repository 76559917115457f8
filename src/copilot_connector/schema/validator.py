"""Schema and item validation.

validate_schema() enforces the structural rules of a candidate schema before
it is published. validate_item() checks a normalized item against a
registered schema before it is handed to the item sink. Both accumulate every
violation instead of stopping at the first one.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Sequence

from loguru import logger

from copilot_connector.schema.inference import FieldDefinition
from copilot_connector.schema.labels import LABEL_CATALOGUE, is_label_compatible
from copilot_connector.schema.types import DataType, SemanticLabel, is_datetime_string
from copilot_connector.schemas.connection import SchemaConfiguration
from copilot_connector.schemas.item import NormalizedItem

MIN_SCHEMA_FIELDS = 1
MAX_SCHEMA_FIELDS = 128
MAX_PROPERTY_NAME_LENGTH = 32

MAX_ITEM_ID_LENGTH = 128
MAX_STRING_VALUE_LENGTH = 2048
MAX_CONTENT_LENGTH = 4_000_000

ACL_TYPES = ("user", "group", "everyone", "everyoneExceptGuests")
ACL_ACCESS_TYPES = ("grant", "deny")

PROPERTY_NAME_RE = re.compile(r"^[A-Za-z0-9]+$")
ITEM_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")

SEARCHABLE_TYPES = (DataType.STRING, DataType.STRING_COLLECTION)


@dataclass
class ValidationResult:
    """Outcome of a validation pass. Valid iff no errors were collected."""

    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


# --- Schema Validation ---


def validate_schema(
    fields: Sequence[FieldDefinition],
    max_fields: int = MAX_SCHEMA_FIELDS,
    max_name_length: int = MAX_PROPERTY_NAME_LENGTH,
) -> ValidationResult:
    """Validate a candidate schema.

    Rules:
      1. between 1 and max_fields properties
      2. names non-empty, at most max_name_length, strictly alphanumeric
      3. names unique, ignoring case
      4. each semantic label used at most once
      5. labels compatible with the property type
      6. labeled properties are retrievable
      7. only String and StringCollection properties are searchable
      8. Boolean properties are not refinable
    """
    result = ValidationResult()
    count = len(fields)

    if count < MIN_SCHEMA_FIELDS:
        result.errors.append(
            f"Schema must contain at least {MIN_SCHEMA_FIELDS} property. Current count: {count}"
        )
    elif count > max_fields:
        result.errors.append(
            f"Schema exceeds maximum of {max_fields} properties. Current count: {count}"
        )

    names_seen: set[str] = set()
    labels_seen: set[SemanticLabel] = set()

    for field_def in fields:
        name = field_def.field_name

        # --- Property name ---
        if not name or not name.strip():
            result.errors.append("Property name cannot be empty or whitespace.")
        elif len(name) > max_name_length:
            result.errors.append(
                f"Property name '{name}' exceeds maximum length of {max_name_length} characters. "
                f"Current length: {len(name)}"
            )
        elif not PROPERTY_NAME_RE.match(name):
            result.errors.append(
                f"Property name '{name}' contains invalid characters. "
                "Only alphanumeric characters (a-z, A-Z, 0-9) are allowed."
            )

        if name:
            if name.lower() in names_seen:
                result.errors.append(
                    f"Duplicate property name '{name}' found. "
                    "Property names must be unique within a schema."
                )
            names_seen.add(name.lower())

        # --- Semantic label ---
        label = field_def.semantic_label
        if label != SemanticLabel.NONE:
            if label in labels_seen:
                result.errors.append(
                    f"Duplicate semantic label '{label.value}' found on property '{name}'. "
                    "Each semantic label can only be assigned to one property per schema."
                )
            labels_seen.add(label)

            if not is_label_compatible(label, field_def.data_type):
                preferred = LABEL_CATALOGUE[label].preferred_type.value
                result.errors.append(
                    f"Semantic label '{label.value}' requires {preferred} data type, "
                    f"but property '{name}' has type '{field_def.data_type.value}'."
                )

            if not field_def.is_retrievable:
                result.errors.append(
                    f"Property '{name}' has semantic label '{label.value}' but is not marked "
                    "as retrievable. Properties assigned to semantic labels must be retrievable."
                )

        # --- Capability flags ---
        if field_def.is_searchable and field_def.data_type not in SEARCHABLE_TYPES:
            result.errors.append(
                f"Property '{name}' of type '{field_def.data_type.value}' cannot be searchable. "
                "Only String and StringCollection properties are searchable."
            )
        if field_def.is_refinable and field_def.data_type == DataType.BOOLEAN:
            result.errors.append(f"Boolean property '{name}' cannot be refinable.")

    return result


# --- Item Validation ---


def validate_item(item: NormalizedItem, schema: SchemaConfiguration) -> ValidationResult:
    """Check an aligned item against the registered schema and store limits."""
    result = ValidationResult()

    # --- Id ---
    if not item.id or not item.id.strip():
        result.errors.append("Item ID is required")
    elif len(item.id) > MAX_ITEM_ID_LENGTH:
        result.errors.append(f"Item ID cannot exceed {MAX_ITEM_ID_LENGTH} characters")
    elif not ITEM_ID_RE.match(item.id):
        result.errors.append(
            "Item ID can only contain letters, numbers, hyphens, and underscores"
        )

    # --- Required fields ---
    for required in schema.required_fields:
        if required not in item.properties:
            result.errors.append(f"Required field '{required}' is missing")
        elif item.properties[required] is None:
            result.errors.append(f"Required field '{required}' cannot be null")

    # --- Field types ---
    for name, value in item.properties.items():
        field_info = schema.fields.get(name)
        if field_info is None:
            if not name.endswith("@odata.type"):
                logger.warning(f"Unknown field '{name}' in external item '{item.id}'")
            continue
        if value is None:
            continue
        error = _check_value(name, value, field_info.type)
        if error:
            result.errors.append(error)

    # --- Content ---
    if item.content and len(item.content) > MAX_CONTENT_LENGTH:
        result.errors.append("Content cannot exceed 4MB")

    # --- ACLs ---
    for acl in item.acls:
        if not acl.value or not acl.value.strip():
            result.errors.append("ACL value is required")
        if acl.type.lower() not in [t.lower() for t in ACL_TYPES]:
            result.errors.append(
                f"Invalid ACL type '{acl.type}'. Must be one of: {', '.join(ACL_TYPES)}"
            )
        if acl.access_type.lower() not in ACL_ACCESS_TYPES:
            result.errors.append(
                f"Invalid ACL access type '{acl.access_type}'. Must be either 'grant' or 'deny'"
            )

    return result


def _check_value(name: str, value: Any, declared_type: str) -> str | None:
    """Return an error message when value does not fit the declared type."""
    data_type = DataType.parse(declared_type)

    match data_type:
        case DataType.STRING:
            if not isinstance(value, str):
                return f"Field '{name}' must be a string"
            if len(value) > MAX_STRING_VALUE_LENGTH:
                return f"Field '{name}' cannot exceed {MAX_STRING_VALUE_LENGTH} characters"
        case DataType.INT32 | DataType.INT64:
            if isinstance(value, bool) or not isinstance(value, int):
                return f"Field '{name}' must be an integer"
        case DataType.DOUBLE:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return f"Field '{name}' must be a number"
        case DataType.BOOLEAN:
            if not isinstance(value, bool):
                return f"Field '{name}' must be a boolean"
        case DataType.DATETIME:
            if not isinstance(value, str) or not is_datetime_string(value):
                return f"Field '{name}' must be a valid datetime"
        case DataType.STRING_COLLECTION:
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                return f"Field '{name}' must be an array of strings"
        case _:
            logger.warning(f"Unknown field type '{declared_type}' for field '{name}'")

    return None
