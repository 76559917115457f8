"""Router for schema inference and publication.

Flow: sample JSON -> infer + label + validate -> (user edits) -> publish.
"""

from fastapi import APIRouter, Path

from copilot_connector.api.deps import BodyTextDep, ConfigDep, ProvisioningServiceDep
from copilot_connector.schemas.connection import SchemaConfiguration
from copilot_connector.schemas.reports import InferenceReport, PublishRequest
from copilot_connector.services.provisioning_service import from_field_model

router = APIRouter(prefix="/schema", tags=["schema"])


@router.post("/infer", response_model=InferenceReport, response_model_by_alias=True)
async def infer_schema(body: BodyTextDep, provisioning_service: ProvisioningServiceDep):
    """Infer a labeled field list from a sample document.

    Validation problems are reported alongside the fields, not raised, so the
    caller can fix them before publishing.
    """
    return provisioning_service.infer_report(body)


@router.post("/publish", response_model=SchemaConfiguration, response_model_by_alias=True)
async def publish_schema(
    publish: PublishRequest,
    provisioning_service: ProvisioningServiceDep,
    config: ConfigDep,
):
    """Validate and register a field list as a connection's schema."""
    fields = [from_field_model(model) for model in publish.fields]
    connection_id = publish.connection_id or config.connection_id
    return await provisioning_service.publish(connection_id, fields)


@router.get("/{connection_id}", response_model=SchemaConfiguration, response_model_by_alias=True)
async def get_published_schema(
    provisioning_service: ProvisioningServiceDep,
    connection_id: str = Path(..., description="Connection id"),
):
    """A published schema as stored. Returns 404 when none is registered."""
    return await provisioning_service.get_schema(connection_id)
