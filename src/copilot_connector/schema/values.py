"""Tagged view over decoded JSON values and the shared flattening walk.

Inference and ingestion alignment must flatten documents identically, so both
consume the leaves produced by walk_leaves().
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator

from copilot_connector.exceptions import InvalidInputError

# Top-level keys that describe the item itself rather than its properties
RESERVED_KEYS = frozenset({"id", "content", "acl", "acls", "properties"})

# Container of item properties; its children are flattened in as top-level keys
PROPERTIES_KEY = "properties"

ODATA_TYPE_SUFFIX = "@odata.type"

# Deeper documents are rejected before any recursive walk
MAX_NESTING_DEPTH = 64


class JsonKind(str, Enum):
    """Kinds of decoded JSON values."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    NULL = "null"


def kind_of(value: Any) -> JsonKind:
    """Classify a value produced by json.loads.

    bool is checked before int because bool subclasses int.
    """
    if value is None:
        return JsonKind.NULL
    if isinstance(value, bool):
        return JsonKind.BOOLEAN
    if isinstance(value, (int, float)):
        return JsonKind.NUMBER
    if isinstance(value, str):
        return JsonKind.STRING
    if isinstance(value, (list, tuple)):
        return JsonKind.ARRAY
    if isinstance(value, dict):
        return JsonKind.OBJECT
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def check_depth(value: Any, max_depth: int = MAX_NESTING_DEPTH) -> None:
    """Raise InvalidInputError when objects and arrays nest deeper than max_depth."""
    stack = [(value, 0)]
    while stack:
        current, depth = stack.pop()
        if depth > max_depth:
            raise InvalidInputError(f"Document nesting exceeds {max_depth} levels")
        if isinstance(current, dict):
            stack.extend((child, depth + 1) for child in current.values())
        elif isinstance(current, (list, tuple)):
            stack.extend((child, depth + 1) for child in current)


def is_annotation_key(key: str) -> bool:
    """True for OData type annotations such as 'tags@odata.type'."""
    return key.endswith(ODATA_TYPE_SUFFIX)


@dataclass
class Leaf:
    """A leaf reached while flattening a document."""

    key: str  # original property name, before normalization
    json_path: str
    value: Any
    nested: bool  # reached through a nested object or an object array


def _child_path(base: str, key: str) -> str:
    return key if not base else f"{base}.{key}"


def walk_leaves(document: dict, base_path: str = "", top_level: bool = True) -> Iterator[Leaf]:
    """Depth-first walk yielding the flattened leaves of a JSON object.

    - nested objects are recursed into, their leaves keep only their own key
    - arrays of objects are represented by their first element
    - arrays of scalars and empty arrays are leaves
    - at the top level the reserved keys are skipped, except that a
      'properties' object is flattened as if its children were top-level
    """
    for key, value in document.items():
        path = _child_path(base_path, key)
        kind = kind_of(value)

        if top_level and key in RESERVED_KEYS:
            if key == PROPERTIES_KEY and kind == JsonKind.OBJECT:
                yield from walk_leaves(value, path, top_level=True)
            continue

        match kind:
            case JsonKind.OBJECT:
                for leaf in walk_leaves(value, path, top_level=False):
                    leaf.nested = True
                    yield leaf
            case JsonKind.ARRAY if value and kind_of(value[0]) == JsonKind.OBJECT:
                for leaf in walk_leaves(value[0], f"{path}[0]", top_level=False):
                    leaf.nested = True
                    yield leaf
            case _:
                yield Leaf(key=key, json_path=path, value=value, nested=not top_level)
