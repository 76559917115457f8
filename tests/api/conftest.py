"""API test fixtures: the app wired to in-memory services."""

from typing import AsyncGenerator

import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from copilot_connector.api.app import create_app


@pytest_asyncio.fixture
async def app(app_config, ingestion_service, provisioning_service) -> FastAPI:
    return create_app(
        app_config,
        ingestion_service=ingestion_service,
        provisioning_service=provisioning_service,
    )


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
