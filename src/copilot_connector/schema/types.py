"""Property type vocabulary and type inference for single JSON values."""

import re
from enum import Enum
from typing import Any

import dateparser

from copilot_connector.schema.values import JsonKind, kind_of

INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1


class DataType(str, Enum):
    """Property types understood by the external store (plus Object for inference)."""

    STRING = "String"
    INT32 = "Int32"
    INT64 = "Int64"
    DOUBLE = "Double"
    BOOLEAN = "Boolean"
    DATETIME = "DateTime"
    STRING_COLLECTION = "StringCollection"
    OBJECT = "Object"

    @classmethod
    def parse(cls, value: str) -> "DataType | None":
        """Case-insensitive lookup; None for types outside the vocabulary."""
        for member in cls:
            if member.value.lower() == (value or "").lower():
                return member
        return None


class SemanticLabel(str, Enum):
    """Reserved roles a schema property may carry, at most one property per label."""

    NONE = "none"
    TITLE = "title"
    URL = "url"
    CREATED_BY = "createdBy"
    LAST_MODIFIED_BY = "lastModifiedBy"
    AUTHORS = "authors"
    CREATED_DATE_TIME = "createdDateTime"
    LAST_MODIFIED_DATE_TIME = "lastModifiedDateTime"
    FILE_NAME = "fileName"
    FILE_EXTENSION = "fileExtension"
    ICON_URL = "iconUrl"
    CONTAINER_NAME = "containerName"
    CONTAINER_URL = "containerUrl"

    @classmethod
    def parse(cls, value: str | None) -> "SemanticLabel":
        if not value:
            return cls.NONE
        for member in cls:
            if member.value.lower() == value.lower():
                return member
        raise ValueError(f"Unknown semantic label: {value}")


# Shapes accepted as date-like before handing the string to dateparser.
# dateparser alone accepts words like "May" or "yesterday".
DATETIME_PATTERNS = [
    re.compile(r"^\d{4}-\d{2}-\d{2}$"),  # YYYY-MM-DD
    re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?$"),
    re.compile(r"^\d{4}/\d{2}/\d{2}( \d{2}:\d{2}(:\d{2})?)?$"),  # YYYY/MM/DD [HH:MM[:SS]]
    re.compile(r"^\d{1,2}/\d{1,2}/\d{4}( \d{2}:\d{2}(:\d{2})?)?$"),  # MM/DD/YYYY [HH:MM[:SS]]
]


def is_datetime_string(value: str | None) -> bool:
    """True when the string is a date-only or full date-time value."""
    if not value:
        return False
    candidate = value.strip()
    if not any(pattern.match(candidate) for pattern in DATETIME_PATTERNS):
        return False
    return dateparser.parse(candidate, settings={"STRICT_PARSING": True}) is not None


def infer_type(value: Any) -> DataType:
    """Derive the property type of a single JSON value.

    Total over the JSON value space: null is reported as String, arrays of
    objects as Object (the caller flattens them), every other array as
    StringCollection.
    """
    match kind_of(value):
        case JsonKind.STRING:
            return DataType.DATETIME if is_datetime_string(value) else DataType.STRING
        case JsonKind.NUMBER:
            return _number_type(value)
        case JsonKind.BOOLEAN:
            return DataType.BOOLEAN
        case JsonKind.ARRAY:
            return _array_type(value)
        case JsonKind.OBJECT:
            return DataType.OBJECT
        case JsonKind.NULL:
            return DataType.STRING


def _number_type(value: int | float) -> DataType:
    if isinstance(value, float):
        return DataType.DOUBLE
    if INT32_MIN <= value <= INT32_MAX:
        return DataType.INT32
    if INT64_MIN <= value <= INT64_MAX:
        return DataType.INT64
    return DataType.DOUBLE


def _array_type(values: list) -> DataType:
    if not values:
        return DataType.STRING_COLLECTION
    if kind_of(values[0]) == JsonKind.OBJECT:
        return DataType.OBJECT
    # strings, numbers, booleans: all published as a string collection
    return DataType.STRING_COLLECTION


def published_type(data_type: DataType) -> DataType:
    """Type used in a registered schema. Int32 is stored as Int64."""
    return DataType.INT64 if data_type == DataType.INT32 else data_type
