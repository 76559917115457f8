"""Common test fixtures."""

from pathlib import Path

import pytest
import pytest_asyncio

from copilot_connector.config import ConnectorConfig, reset_config_cache
from copilot_connector.schemas.connection import SchemaConfiguration, SchemaFieldInfo
from copilot_connector.services.ingestion_service import IngestionService
from copilot_connector.services.item_sink import InMemoryItemSink
from copilot_connector.services.provisioning_service import ProvisioningService
from copilot_connector.services.schema_store import FileSchemaStore, InMemorySchemaStore


@pytest.fixture(autouse=True)
def config_home(tmp_path, monkeypatch) -> Path:
    """Point HOME and the config dir at a temp directory and drop cached config."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("COPILOT_CONNECTOR_CONFIG_DIR", str(tmp_path / ".copilot-connector"))
    for name in list(ConnectorConfig.model_fields):
        monkeypatch.delenv(f"COPILOT_CONNECTOR_{name.upper()}", raising=False)
    reset_config_cache()
    yield tmp_path
    reset_config_cache()


@pytest.fixture
def app_config(tmp_path) -> ConnectorConfig:
    return ConnectorConfig(
        env="test",
        connection_id="products",
        schema_dir=str(tmp_path / "schemas"),
    )


# --- Sample data ---


@pytest.fixture
def widget_sample() -> dict:
    return {
        "id": "p1",
        "name": "Widget",
        "price": 9.99,
        "tags": ["a", "b"],
        "createdDate": "2024-01-15T10:00:00Z",
    }


def _field(name: str, type_: str, label: str | None = None, **flags) -> SchemaFieldInfo:
    return SchemaFieldInfo(
        name=name,
        type=type_,
        is_searchable=flags.get("searchable", type_ in ("String", "StringCollection")),
        is_queryable=flags.get("queryable", True),
        is_retrievable=flags.get("retrievable", True),
        is_refinable=flags.get("refinable", False),
        semantic_label=label,
    )


@pytest.fixture
def product_schema() -> SchemaConfiguration:
    """A registered schema for product documents."""
    fields = [
        _field("title", "String", "title"),
        _field("url", "String", "url"),
        _field("price", "Double"),
        _field("quantity", "Int64"),
        _field("inStock", "Boolean"),
        _field("tags", "StringCollection", refinable=True),
        _field("lastUpdated", "DateTime", "lastModifiedDateTime", refinable=True),
    ]
    return SchemaConfiguration(
        connection_id="products",
        fields={f.name: f for f in fields},
        required_fields=["title"],
    )


# --- Services ---


@pytest.fixture
def schema_store(product_schema) -> InMemorySchemaStore:
    return InMemorySchemaStore({product_schema.connection_id: product_schema})


@pytest.fixture
def file_schema_store(tmp_path) -> FileSchemaStore:
    return FileSchemaStore(tmp_path / "schemas")


@pytest.fixture
def item_sink() -> InMemoryItemSink:
    return InMemoryItemSink()


@pytest_asyncio.fixture
async def ingestion_service(schema_store, item_sink, app_config) -> IngestionService:
    return await IngestionService.create(schema_store, item_sink, app_config)


@pytest.fixture
def provisioning_service(schema_store, app_config) -> ProvisioningService:
    return ProvisioningService(schema_store, app_config)
