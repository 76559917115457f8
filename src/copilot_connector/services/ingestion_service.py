"""Ingestion: align raw documents to the registered schema and submit them.

The schema is fetched once when the service is created and treated as a
read-only snapshot for its lifetime. Alignment itself is pure; the only I/O
is the item sink.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from copilot_connector.config import ConnectorConfig
from copilot_connector.exceptions import (
    ConnectorError,
    InvalidInputError,
    ItemNotFoundError,
    SchemaViolationError,
)
from copilot_connector.schema.alignment import AlignmentResult, align_document, decode_document
from copilot_connector.schema.validator import validate_item
from copilot_connector.schemas.connection import SchemaConfiguration, default_schema_configuration
from copilot_connector.schemas.reports import BatchReport, ItemResult, ValidationReport
from copilot_connector.services.item_sink import ItemSink
from copilot_connector.services.schema_store import SchemaStore


class IngestionService:
    """Aligns, validates and submits external items for one connection."""

    def __init__(self, schema: SchemaConfiguration, sink: ItemSink, config: ConnectorConfig):
        self.schema = schema
        self.sink = sink
        self.config = config
        self.policy = config.alignment_policy()

    @classmethod
    async def create(
        cls, schema_store: SchemaStore, sink: ItemSink, config: ConnectorConfig
    ) -> "IngestionService":
        """Fetch the connection's schema snapshot and build the service.

        Falls back to the default title/url schema when none is registered.
        """
        schema = await schema_store.get_schema(config.connection_id)
        if schema is None:
            logger.warning(
                f"No schema registered for connection '{config.connection_id}', using default schema"
            )
            schema = default_schema_configuration(config.connection_id)
        else:
            logger.info(
                f"Loaded schema for connection '{config.connection_id}' "
                f"with {len(schema.fields)} fields"
            )
        return cls(schema, sink, config)

    # --- Alignment ---

    def align(self, raw_document: str | dict) -> AlignmentResult:
        """Align a raw document to the schema snapshot.

        Raises:
            InvalidInputError: raw_document is not a JSON object.
            MissingIdError: the document has no usable id.
        """
        return align_document(raw_document, self.schema, self.policy)

    def validate(self, raw_document: str | dict) -> ValidationReport:
        """Align and validate without submitting anything."""
        result = self.align(raw_document)
        validation = validate_item(result.item, self.schema)
        return ValidationReport(
            is_valid=validation.is_valid,
            item_id=result.item.id,
            errors=validation.errors,
            warnings=result.warnings,
            item=result.item,
        )

    def _prepare(self, raw_document: str | dict) -> AlignmentResult:
        result = self.align(raw_document)
        validation = validate_item(result.item, self.schema)
        if not validation.is_valid:
            logger.warning(
                f"Item '{result.item.id}' failed validation: {'; '.join(validation.errors)}"
            )
            raise SchemaViolationError(validation.errors)
        return result

    # --- Item operations ---

    async def create_item(self, raw_document: str | dict) -> ItemResult:
        """Align, validate and upsert a single item.

        Raises:
            InvalidInputError, MissingIdError: the document cannot be aligned.
            SchemaViolationError: the aligned item breaks item rules.
            UpstreamError: the item sink rejected the item.
        """
        result = self._prepare(raw_document)
        await self.sink.upsert(result.item)
        logger.info(f"Created external item '{result.item.id}'")
        return ItemResult(
            success=True,
            item_id=result.item.id,
            warnings=result.warnings,
            created_at=datetime.now(timezone.utc),
        )

    async def update_item(self, item_id: str, raw_document: str | dict) -> ItemResult:
        """Replace an existing item; the path id wins over any id in the document.

        Raises:
            ItemNotFoundError: the sink has no item with this id.
        """
        document = dict(decode_document(raw_document))
        document["id"] = item_id

        if not await self.sink.exists(item_id):
            raise ItemNotFoundError(item_id)

        result = self._prepare(document)
        await self.sink.upsert(result.item)
        logger.info(f"Updated external item '{item_id}'")
        return ItemResult(
            success=True,
            item_id=item_id,
            warnings=result.warnings,
            updated_at=datetime.now(timezone.utc),
        )

    async def delete_item(self, item_id: str) -> ItemResult:
        """Delete an existing item.

        Raises:
            ItemNotFoundError: the sink has no item with this id.
        """
        if not await self.sink.exists(item_id):
            raise ItemNotFoundError(item_id)

        await self.sink.delete(item_id)
        logger.info(f"Deleted external item '{item_id}'")
        return ItemResult(success=True, item_id=item_id)

    async def batch(self, documents: list[Any]) -> BatchReport:
        """Create many items with bounded concurrency.

        Each document gets its own result; a failure never aborts the rest.

        Raises:
            InvalidInputError: the batch is empty or larger than max_batch_size.
        """
        max_size = self.config.max_batch_size
        if not documents:
            raise InvalidInputError("No items provided in batch request")
        if len(documents) > max_size:
            raise InvalidInputError(f"Batch size cannot exceed {max_size} items")

        semaphore = asyncio.Semaphore(self.config.batch_concurrency)

        async def submit(document: Any) -> ItemResult:
            async with semaphore:
                try:
                    return await self.create_item(document)
                except ConnectorError as e:
                    return _failure(document, e)

        outcomes = await asyncio.gather(
            *(submit(document) for document in documents), return_exceptions=True
        )

        results: list[ItemResult] = []
        for document, outcome in zip(documents, outcomes):
            if isinstance(outcome, BaseException):
                logger.opt(exception=outcome).error(f"Unexpected error ingesting item: {outcome}")
                outcome = _failure(document, outcome)
            results.append(outcome)

        success_count = sum(1 for r in results if r.success)
        error_count = len(results) - success_count
        logger.info(f"Batch finished: {success_count} succeeded, {error_count} failed")
        return BatchReport(
            success=error_count == 0,
            success_count=success_count,
            error_count=error_count,
            results=results,
        )

    # --- Introspection ---

    def get_schema(self) -> SchemaConfiguration:
        return self.schema

    def health(self) -> dict[str, Any]:
        return {
            "status": "healthy",
            "connectionId": self.schema.connection_id,
            "fieldCount": len(self.schema.fields),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


def _failure(document: Any, error: BaseException) -> ItemResult:
    item_id = None
    if isinstance(document, dict) and document.get("id") is not None:
        item_id = str(document["id"])
    return ItemResult(
        success=False,
        item_id=item_id,
        error_message=str(error),
        validation_errors=error.errors if isinstance(error, SchemaViolationError) else [],
    )
