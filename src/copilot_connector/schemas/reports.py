"""Pydantic request and response models for schema and ingestion operations.

These mirror the dataclass results in copilot_connector.schema but are
suitable for API serialization (camelCase on the wire).
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from copilot_connector.schema.types import DataType, SemanticLabel
from copilot_connector.schemas.connection import CamelModel
from copilot_connector.schemas.item import NormalizedItem


# --- Inference Models ---


class FieldDefinitionModel(CamelModel):
    """An inferred property, as shown to and edited by a user."""

    field_name: str
    display_name: str = ""
    data_type: DataType
    is_searchable: bool = False
    is_queryable: bool = True
    is_retrievable: bool = True
    is_refinable: bool = False
    semantic_label: SemanticLabel = SemanticLabel.NONE
    json_path: str = Field(default="", description="Source path in the sample, diagnostics only")
    is_array: bool = False
    is_nested: bool = False
    sample_value: Any = None


class InferenceReport(CamelModel):
    """Inferred fields plus every schema rule the inferred set violates."""

    fields: list[FieldDefinitionModel] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


class PublishRequest(CamelModel):
    connection_id: Optional[str] = None  # defaults to the configured connection
    fields: list[FieldDefinitionModel]


# --- Ingestion Models ---


class AlignmentReport(CamelModel):
    """An aligned item and the coercions applied to produce it."""

    item: NormalizedItem
    warnings: list[str] = Field(default_factory=list)


class ItemResult(CamelModel):
    """Outcome of submitting one item."""

    success: bool
    item_id: Optional[str] = None
    error_message: Optional[str] = None
    validation_errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BatchRequest(CamelModel):
    items: list[dict[str, Any]] = Field(default_factory=list)


class BatchReport(CamelModel):
    """Aggregated outcome of a batch; one failure never aborts the rest."""

    success: bool = True
    success_count: int = 0
    error_count: int = 0
    results: list[ItemResult] = Field(default_factory=list)


class ValidationReport(CamelModel):
    """Dry-run result: the aligned item and every rule it breaks."""

    is_valid: bool
    item_id: Optional[str] = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    item: Optional[NormalizedItem] = None
