"""Dependency injection for the ingestion API.

Services are built once in the application lifespan (or passed to
create_app directly) and read from app.state per request.
"""

from typing import Annotated

from fastapi import Depends, Request

from copilot_connector.config import ConnectorConfig
from copilot_connector.exceptions import InvalidInputError
from copilot_connector.services.ingestion_service import IngestionService
from copilot_connector.services.provisioning_service import ProvisioningService


# --- Config ---


def get_config(request: Request) -> ConnectorConfig:
    return request.app.state.config


ConfigDep = Annotated[ConnectorConfig, Depends(get_config)]


# --- Request body ---


async def get_body_text(request: Request) -> str:
    """Raw request body as text. Bodies are decoded by the services, not FastAPI."""
    try:
        return (await request.body()).decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidInputError(f"Request body is not valid UTF-8: {e}") from e


BodyTextDep = Annotated[str, Depends(get_body_text)]


# --- Services ---


def get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


IngestionServiceDep = Annotated[IngestionService, Depends(get_ingestion_service)]


def get_provisioning_service(request: Request) -> ProvisioningService:
    return request.app.state.provisioning_service


ProvisioningServiceDep = Annotated[ProvisioningService, Depends(get_provisioning_service)]
