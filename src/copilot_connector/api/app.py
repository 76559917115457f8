"""FastAPI application for the ingestion and provisioning API."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from httpx import AsyncClient
from loguru import logger

from copilot_connector import __version__
from copilot_connector.api.routers import items_router, schema_router
from copilot_connector.config import ConfigManager, ConnectorConfig
from copilot_connector.exceptions import (
    InvalidInputError,
    ItemNotFoundError,
    MissingIdError,
    SchemaNotFoundError,
    SchemaViolationError,
    UpstreamError,
)
from copilot_connector.schemas.reports import ItemResult
from copilot_connector.services.ingestion_service import IngestionService
from copilot_connector.services.item_sink import HttpItemSink, InMemoryItemSink
from copilot_connector.services.provisioning_service import ProvisioningService
from copilot_connector.services.schema_store import FileSchemaStore

SERVICE_NAME = "Copilot Connector Ingestion Service"


def _error_response(status_code: int, message: str, errors: list[str] | None = None) -> JSONResponse:
    body = ItemResult(success=False, error_message=message, validation_errors=errors or [])
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True))


def create_app(
    config: ConnectorConfig | None = None,
    ingestion_service: IngestionService | None = None,
    provisioning_service: ProvisioningService | None = None,
) -> FastAPI:
    """Build the API application.

    Services passed in are used as-is. Missing services are built in the
    lifespan from configuration: a file schema store under schema_dir and an
    HTTP item sink when sink_url is set, otherwise an in-memory sink.
    """
    config = config or ConfigManager().config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        http_client: AsyncClient | None = None
        schema_store = FileSchemaStore(config.schema_dir_path)

        if app.state.provisioning_service is None:
            app.state.provisioning_service = ProvisioningService(schema_store, config)

        if app.state.ingestion_service is None:
            if config.sink_url:
                http_client = AsyncClient(base_url=config.sink_url, timeout=config.sink_timeout)
                sink = HttpItemSink(http_client, config.connection_id)
                logger.info(f"Submitting items to {config.sink_url}")
            else:
                sink = InMemoryItemSink()
                logger.warning("No sink_url configured, items are kept in memory")
            app.state.ingestion_service = await IngestionService.create(schema_store, sink, config)

        logger.info(f"{SERVICE_NAME} started for connection '{config.connection_id}'")
        try:
            yield
        finally:
            if http_client is not None:
                await http_client.aclose()
            logger.info(f"{SERVICE_NAME} stopped")

    app = FastAPI(
        title=SERVICE_NAME,
        description="Schema inference, publication and item ingestion for external connections.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.ingestion_service = ingestion_service
    app.state.provisioning_service = provisioning_service

    # --- Exception handlers ---

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError):
        logger.warning(f"{request.method} {request.url.path}: {exc}")
        return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(MissingIdError)
    async def missing_id_handler(request: Request, exc: MissingIdError):
        logger.warning(f"{request.method} {request.url.path}: {exc.message}")
        return _error_response(status.HTTP_400_BAD_REQUEST, exc.message)

    @app.exception_handler(SchemaViolationError)
    async def schema_violation_handler(request: Request, exc: SchemaViolationError):
        logger.warning(f"{request.method} {request.url.path}: {len(exc.errors)} validation errors")
        return _error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", exc.errors)

    @app.exception_handler(ItemNotFoundError)
    async def item_not_found_handler(request: Request, exc: ItemNotFoundError):
        return _error_response(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(SchemaNotFoundError)
    async def schema_not_found_handler(request: Request, exc: SchemaNotFoundError):
        return _error_response(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError):
        logger.error(f"{request.method} {request.url.path}: upstream failure: {exc.message}")
        return _error_response(status.HTTP_502_BAD_GATEWAY, exc.message)

    # --- Routes ---

    app.include_router(items_router)
    app.include_router(schema_router)

    @app.get("/health")
    async def health(request: Request):
        """Service health check."""
        service: IngestionService | None = request.app.state.ingestion_service
        if service is None:
            return {"status": "starting", "timestamp": datetime.now(timezone.utc).isoformat()}
        return {**service.health(), "version": __version__}

    @app.get("/info")
    async def info(request: Request):
        """Service name, connection and endpoint map."""
        return {
            "serviceName": SERVICE_NAME,
            "version": __version__,
            "connectionId": request.app.state.config.connection_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoints": {
                "createItem": "/api/external-items",
                "updateItem": "/api/external-items/{id}",
                "deleteItem": "/api/external-items/{id}",
                "batchItems": "/api/external-items/batch",
                "alignItem": "/api/external-items/align",
                "validateItem": "/api/external-items/validate",
                "getSchema": "/api/external-items/schema",
                "inferSchema": "/schema/infer",
                "publishSchema": "/schema/publish",
                "getPublishedSchema": "/schema/{connectionId}",
                "health": "/health",
                "documentation": "/docs",
            },
        }

    return app
