"""Ingestion-time alignment of raw documents to a registered schema.

Raw JSON from producers rarely matches the registered schema exactly. Alignment
reconciles the two on a best-effort basis:

  1. require an id
  2. flatten with the same naming rule used for inference, collecting content
  3. remap producer aliases onto canonical schema names
  4. inject a url and content when missing
  5. drop unknown fields and coerce values to the declared types
  6. inject an icon placeholder when the schema has an iconUrl field
  7. resolve access control entries

Only a missing id, or input that is not a decodable JSON object, is fatal.
Everything else is logged and reported as a warning on the result.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

import dateparser
from loguru import logger

from copilot_connector.exceptions import InvalidInputError, MissingIdError
from copilot_connector.schema.naming import (
    INGESTION_NAME_MAX_LENGTH,
    SCHEMA_NAME_MAX_LENGTH,
    normalize_name,
)
from copilot_connector.schema.types import DataType
from copilot_connector.schema.values import (
    ODATA_TYPE_SUFFIX,
    JsonKind,
    check_depth,
    is_annotation_key,
    kind_of,
    walk_leaves,
)
from copilot_connector.schemas.connection import SchemaConfiguration
from copilot_connector.schemas.item import EVERYONE_ACL, AccessControlEntry, NormalizedItem

DEFAULT_ALIAS_REMAPS: tuple[tuple[str, str], ...] = (
    ("publishedDate", "lastUpdated"),
    ("score", "price"),
    ("isActive", "inStock"),
)
DEFAULT_ITEM_URL_TEMPLATE = "https://example.com/items/{id}"
DEFAULT_ICON_URL = "https://res.cdn.office.net/assets/mail/file-icon/png/generic_16x16.png"

COLLECTION_OF_STRING = "Collection(String)"

TRUE_STRINGS = frozenset({"true", "1", "yes", "y", "on"})
FALSE_STRINGS = frozenset({"false", "0", "no", "n", "off"})

DATEPARSER_SETTINGS = {
    "TIMEZONE": "UTC",
    "RETURN_AS_TIMEZONE_AWARE": True,
    "STRICT_PARSING": True,
}


@dataclass(frozen=True)
class AlignmentPolicy:
    """Producer/consumer reconciliation rules, supplied as data."""

    alias_remaps: tuple[tuple[str, str], ...] = DEFAULT_ALIAS_REMAPS
    item_url_template: str = DEFAULT_ITEM_URL_TEMPLATE
    icon_placeholder_url: str = DEFAULT_ICON_URL
    max_name_length: int = INGESTION_NAME_MAX_LENGTH


DEFAULT_POLICY = AlignmentPolicy()


@dataclass
class AlignmentResult:
    """An aligned item plus every soft condition met on the way."""

    item: NormalizedItem
    warnings: list[str] = field(default_factory=list)


@dataclass
class FlattenedDocument:
    values: dict[str, Any]
    content_parts: list[str]


def align_document(
    raw_document: str | dict,
    schema: SchemaConfiguration,
    policy: AlignmentPolicy = DEFAULT_POLICY,
) -> AlignmentResult:
    """Align a raw document to a registered schema.

    Args:
        raw_document: JSON text or a decoded JSON object.
        schema: The registered schema snapshot.
        policy: Alias remaps and default values to apply.

    Raises:
        InvalidInputError: raw_document is not valid JSON, not an object, or
            nested too deeply.
        MissingIdError: the document has no usable top-level id.
    """
    document = decode_document(raw_document)
    warnings: list[str] = []

    def warn(message: str) -> None:
        logger.debug(message)
        warnings.append(message)

    # --- 1. Id ---
    item_id = _require_id(document)

    # --- 2. Flatten ---
    flattened = flatten_document(document, policy.max_name_length, warn)
    values = flattened.values

    # --- 3. Alias remaps ---
    _apply_remaps(values, schema, _remaps_for(schema, policy), warn)

    # --- 4. Defaults ---
    if "url" not in values and "url" in schema.fields:
        values["url"] = policy.item_url_template.format(id=item_id)
        warn(f"Injected default url for item '{item_id}'")

    content = _resolve_content(document, flattened, values, item_id, warn)

    # --- 5. Schema alignment ---
    properties = _align_to_schema(values, schema, warn)

    # --- 6. Icon placeholder ---
    if "iconUrl" in schema.fields and properties.get("iconUrl") is None:
        properties["iconUrl"] = policy.icon_placeholder_url
        warn("Injected placeholder iconUrl")

    # --- 7. Access control ---
    acls = _resolve_acls(document, schema, warn)

    item = NormalizedItem(id=item_id, properties=properties, content=content, acls=acls)
    if warnings:
        logger.info(f"Aligned item '{item_id}' with {len(warnings)} warnings")
    return AlignmentResult(item=item, warnings=warnings)


def decode_document(raw_document: str | dict) -> dict:
    if isinstance(raw_document, str):
        try:
            raw_document = json.loads(raw_document)
        except (ValueError, RecursionError) as e:
            raise InvalidInputError(f"Invalid JSON format: {e}") from e
    if kind_of(raw_document) != JsonKind.OBJECT:
        raise InvalidInputError("Document must be a JSON object")
    check_depth(raw_document)
    return raw_document


def _require_id(document: dict) -> str:
    raw_id = document.get("id")
    match kind_of(raw_id):
        case JsonKind.STRING if raw_id.strip():
            return raw_id
        case JsonKind.NUMBER:
            # numeric ids are accepted in their string form
            return str(raw_id)
        case _:
            raise MissingIdError()


# --- Flattening ---


def flatten_document(
    document: dict,
    max_name_length: int = INGESTION_NAME_MAX_LENGTH,
    warn: Callable[[str], None] | None = None,
) -> FlattenedDocument:
    """Flatten a document into normalized name -> value pairs.

    Also collects every string and number encountered, in traversal order,
    for the content blob. Annotation keys are kept verbatim.
    """
    values: dict[str, Any] = {}
    content_parts: list[str] = []

    for leaf in walk_leaves(document):
        if is_annotation_key(leaf.key):
            values.setdefault(leaf.key, leaf.value)
            continue

        content_parts.extend(_content_strings(leaf.value))

        name = normalize_name(leaf.key, max_name_length)
        if leaf.value is None:
            if warn:
                warn(f"Dropped null value for '{leaf.json_path}'")
            continue
        if name in values:
            if warn:
                warn(f"Ignored '{leaf.json_path}': '{name}' already set by an earlier field")
            continue
        values[name] = leaf.value

    return FlattenedDocument(values=values, content_parts=content_parts)


def _content_strings(value: Any) -> list[str]:
    match kind_of(value):
        case JsonKind.STRING:
            return [value] if value else []
        case JsonKind.NUMBER:
            return [str(value)]
        case JsonKind.ARRAY:
            return [part for element in value for part in _content_strings(element)]
        case _:
            return []


# --- Remaps and defaults ---


def _remaps_for(schema: SchemaConfiguration, policy: AlignmentPolicy) -> Iterable[tuple[str, str]]:
    return schema.alias_remaps or policy.alias_remaps


def _apply_remaps(values: dict[str, Any], schema: SchemaConfiguration, remaps, warn) -> None:
    """Move an alias onto its canonical name when the schema expects the canonical
    name and the document does not already provide it."""
    for source, target in remaps:
        if target in values or target not in schema.fields or source not in values:
            continue
        values[target] = values.pop(source)
        warn(f"Remapped '{source}' to '{target}'")


def _resolve_content(
    document: dict,
    flattened: FlattenedDocument,
    values: dict[str, Any],
    item_id: str,
    warn,
) -> str:
    explicit = document.get("content")
    if isinstance(explicit, str) and explicit.strip():
        return explicit

    content = " ".join(flattened.content_parts)
    if content.strip():
        return content

    title = values.get("title")
    if isinstance(title, str) and title.strip():
        warn("Content was empty, used title")
        return title

    warn("Content was empty, used item id")
    return item_id


# --- Schema alignment ---


def _align_to_schema(values: dict[str, Any], schema: SchemaConfiguration, warn) -> dict[str, Any]:
    properties: dict[str, Any] = {}

    for name, value in values.items():
        if is_annotation_key(name):
            properties[name] = value
            continue

        field_info = schema.fields.get(name)
        if field_info is None and len(name) > SCHEMA_NAME_MAX_LENGTH:
            # registered under the shorter inference cap
            short_name = name[:SCHEMA_NAME_MAX_LENGTH]
            if short_name not in values and short_name not in properties:
                field_info = schema.fields.get(short_name)
                if field_info is not None:
                    warn(f"Matched '{name}' to registered field '{short_name}'")
                    name = short_name
        if field_info is None:
            warn(f"Dropped field '{name}': not in schema")
            continue

        properties[name] = coerce_value(name, value, field_info.type, warn)

        if DataType.parse(field_info.type) == DataType.STRING_COLLECTION:
            annotation = f"{name}{ODATA_TYPE_SUFFIX}"
            if annotation not in values:
                properties[annotation] = COLLECTION_OF_STRING

    return properties


def coerce_value(name: str, value: Any, declared_type: str, warn=None) -> Any:
    """Coerce a raw value toward a declared property type.

    Values that cannot be coerced are returned unchanged; the item validator
    reports them before submission.
    """

    def note(message: str) -> None:
        if warn:
            warn(message)

    match DataType.parse(declared_type):
        case DataType.STRING_COLLECTION:
            match kind_of(value):
                case JsonKind.ARRAY:
                    if all(isinstance(v, str) for v in value):
                        return list(value)
                    note(f"Converted elements of '{name}' to strings")
                    return [_to_text(v) for v in value]
                case JsonKind.STRING:
                    note(f"Wrapped '{name}' in a single element collection")
                    return [value]
                case _:
                    note(f"Wrapped '{name}' in a single element collection")
                    return [_to_text(value)]

        case DataType.STRING:
            if kind_of(value) == JsonKind.ARRAY and all(isinstance(v, str) for v in value):
                note(f"Joined collection '{name}' into a single string")
                return " ".join(value)
            return value

        case DataType.DATETIME:
            if isinstance(value, str):
                parsed = dateparser.parse(value, settings=DATEPARSER_SETTINGS)
                if parsed is None:
                    note(f"Could not parse '{name}' as a datetime")
                    return value
                return parsed.isoformat()
            return value

        case DataType.DOUBLE:
            if isinstance(value, str):
                try:
                    return float(value)
                except ValueError:
                    note(f"Could not parse '{name}' as a number")
            return value

        case DataType.INT64 | DataType.INT32:
            if isinstance(value, str):
                try:
                    return int(value.strip())
                except ValueError:
                    note(f"Could not parse '{name}' as an integer")
            return value

        case DataType.BOOLEAN:
            if isinstance(value, str):
                lowered = value.strip().lower()
                if lowered in TRUE_STRINGS:
                    return True
                if lowered in FALSE_STRINGS:
                    return False
                note(f"Could not parse '{name}' as a boolean")
            return value

        case _:
            return value


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


# --- Access control ---


def _resolve_acls(document: dict, schema: SchemaConfiguration, warn) -> list[AccessControlEntry]:
    raw_acls = document.get("acls")
    if kind_of(raw_acls) == JsonKind.ARRAY:
        acls = []
        for entry in raw_acls:
            if kind_of(entry) != JsonKind.OBJECT:
                warn("Ignored ACL entry that is not an object")
                continue
            acl_type = _acl_text(entry.get("type"), "everyone")
            value = _acl_text(entry.get("value"), "everyone")
            access_type = _acl_text(entry.get("accessType", entry.get("access_type")), "grant")
            if acl_type is None or value is None or access_type is None:
                warn("Ignored ACL entry with a non-scalar member")
                continue
            acls.append(AccessControlEntry(type=acl_type, value=value, access_type=access_type))
        return acls

    if schema.default_acls:
        return [acl.model_copy() for acl in schema.default_acls]

    return [EVERYONE_ACL.model_copy()]


def _acl_text(value: Any, default: str) -> str | None:
    """String form of a scalar ACL member; None when it is an object or array."""
    match kind_of(value):
        case JsonKind.NULL:
            return default
        case JsonKind.OBJECT | JsonKind.ARRAY:
            return None
        case _:
            return _to_text(value) or default
