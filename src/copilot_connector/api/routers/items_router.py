"""Router for external item ingestion.

Request bodies are read as raw JSON text so malformed input surfaces as an
InvalidInputError (400) rather than a request validation error.
"""

from fastapi import APIRouter, Path

from copilot_connector.api.deps import BodyTextDep, IngestionServiceDep
from copilot_connector.schemas.connection import SchemaConfiguration
from copilot_connector.schemas.reports import (
    AlignmentReport,
    BatchReport,
    BatchRequest,
    ItemResult,
    ValidationReport,
)

router = APIRouter(prefix="/api/external-items", tags=["external-items"])


@router.post("", response_model=ItemResult, response_model_by_alias=True)
async def create_item(body: BodyTextDep, ingestion_service: IngestionServiceDep):
    """Align, validate and submit a single raw document."""
    return await ingestion_service.create_item(body)


@router.put("/{item_id}", response_model=ItemResult, response_model_by_alias=True)
async def update_item(
    body: BodyTextDep,
    ingestion_service: IngestionServiceDep,
    item_id: str = Path(..., description="External item id"),
):
    """Replace an existing item. Returns 404 when the item does not exist."""
    return await ingestion_service.update_item(item_id, body)


@router.delete("/{item_id}", response_model=ItemResult, response_model_by_alias=True)
async def delete_item(
    ingestion_service: IngestionServiceDep,
    item_id: str = Path(..., description="External item id"),
):
    """Delete an existing item. Returns 404 when the item does not exist."""
    return await ingestion_service.delete_item(item_id)


@router.post("/batch", response_model=BatchReport, response_model_by_alias=True)
async def batch_items(batch: BatchRequest, ingestion_service: IngestionServiceDep):
    """Submit up to max_batch_size documents; each gets its own result."""
    return await ingestion_service.batch(batch.items)


@router.post("/align", response_model=AlignmentReport, response_model_by_alias=True)
async def align_item(body: BodyTextDep, ingestion_service: IngestionServiceDep):
    """Show the aligned item and its coercion warnings."""
    result = ingestion_service.align(body)
    return AlignmentReport(item=result.item, warnings=result.warnings)


@router.post("/validate", response_model=ValidationReport, response_model_by_alias=True)
async def validate_item(body: BodyTextDep, ingestion_service: IngestionServiceDep):
    """Align and validate a document without submitting it."""
    return ingestion_service.validate(body)


@router.get("/schema", response_model=SchemaConfiguration, response_model_by_alias=True)
async def get_schema(ingestion_service: IngestionServiceDep):
    """The schema snapshot items are aligned to."""
    return ingestion_service.get_schema()
