"""Schema stores: where published schemas live between provisioning and ingestion.

A schema is registered once per connection and read back as a snapshot by the
ingestion service. Two implementations are provided:
- InMemorySchemaStore for tests and single-process use
- FileSchemaStore persisting one camelCase JSON file per connection
"""

import json
import re
from pathlib import Path
from typing import Protocol

import aiofiles
import aiofiles.os
from loguru import logger
from pydantic import ValidationError

from copilot_connector.exceptions import UpstreamError
from copilot_connector.schemas.connection import SchemaConfiguration

_SAFE_FILE_RE = re.compile(r"[^A-Za-z0-9_.-]")


class SchemaStore(Protocol):
    async def get_schema(self, connection_id: str) -> SchemaConfiguration | None: ...

    async def save_schema(self, schema: SchemaConfiguration) -> None: ...


class InMemorySchemaStore:
    """Schema store backed by a dict."""

    def __init__(self, schemas: dict[str, SchemaConfiguration] | None = None):
        self._schemas: dict[str, SchemaConfiguration] = dict(schemas or {})

    async def get_schema(self, connection_id: str) -> SchemaConfiguration | None:
        schema = self._schemas.get(connection_id)
        return schema.model_copy(deep=True) if schema else None

    async def save_schema(self, schema: SchemaConfiguration) -> None:
        self._schemas[schema.connection_id] = schema.model_copy(deep=True)
        logger.debug(f"Stored schema for connection '{schema.connection_id}' in memory")


class FileSchemaStore:
    """Schema store persisting <directory>/<connection_id>.json."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path_for(self, connection_id: str) -> Path:
        return self.directory / f"{_SAFE_FILE_RE.sub('_', connection_id)}.json"

    async def get_schema(self, connection_id: str) -> SchemaConfiguration | None:
        path = self.path_for(connection_id)
        if not await aiofiles.os.path.exists(path):
            logger.debug(f"No schema file for connection '{connection_id}' at {path}")
            return None

        try:
            async with aiofiles.open(path, mode="r", encoding="utf-8") as f:
                raw = await f.read()
            return SchemaConfiguration.model_validate(json.loads(raw))
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Failed to read schema for connection '{connection_id}': {e}")
            raise UpstreamError(f"Failed to read schema for connection '{connection_id}': {e}") from e

    async def save_schema(self, schema: SchemaConfiguration) -> None:
        path = self.path_for(schema.connection_id)
        payload = json.dumps(schema.model_dump(mode="json", by_alias=True), indent=2)
        try:
            await aiofiles.os.makedirs(self.directory, exist_ok=True)
            async with aiofiles.open(path, mode="w", encoding="utf-8") as f:
                await f.write(payload)
        except OSError as e:
            logger.error(f"Failed to write schema for connection '{schema.connection_id}': {e}")
            raise UpstreamError(f"Failed to write schema: {e}") from e
        logger.info(f"Saved schema for connection '{schema.connection_id}' to {path}")
