"""Pydantic model exports.

Import everything wire-facing from copilot_connector.schemas rather than the
individual modules.
"""

from copilot_connector.schemas.item import (
    EVERYONE_ACL,
    AccessControlEntry,
    NormalizedItem,
)

from copilot_connector.schemas.connection import (
    SchemaConfiguration,
    SchemaFieldInfo,
    default_schema_configuration,
)

from copilot_connector.schemas.reports import (
    AlignmentReport,
    BatchReport,
    BatchRequest,
    FieldDefinitionModel,
    InferenceReport,
    ItemResult,
    PublishRequest,
    ValidationReport,
)

__all__ = [
    "EVERYONE_ACL",
    "AccessControlEntry",
    "NormalizedItem",
    "SchemaConfiguration",
    "SchemaFieldInfo",
    "default_schema_configuration",
    "AlignmentReport",
    "BatchReport",
    "BatchRequest",
    "FieldDefinitionModel",
    "InferenceReport",
    "ItemResult",
    "PublishRequest",
    "ValidationReport",
]
