"""Provisioning: infer a schema from a sample and publish it to a schema store."""

from typing import Sequence

from loguru import logger

from copilot_connector.config import ConnectorConfig
from copilot_connector.exceptions import SchemaNotFoundError, SchemaViolationError
from copilot_connector.schema.inference import FieldDefinition, infer_schema
from copilot_connector.schema.labels import assign_labels
from copilot_connector.schema.types import DataType, SemanticLabel, published_type
from copilot_connector.schema.validator import validate_schema
from copilot_connector.schemas.connection import SchemaConfiguration, SchemaFieldInfo
from copilot_connector.schemas.reports import FieldDefinitionModel, InferenceReport
from copilot_connector.services.schema_store import SchemaStore


# --- Conversion helpers ---


def to_field_model(field_def: FieldDefinition) -> FieldDefinitionModel:
    return FieldDefinitionModel(
        field_name=field_def.field_name,
        display_name=field_def.display_name,
        data_type=field_def.data_type,
        is_searchable=field_def.is_searchable,
        is_queryable=field_def.is_queryable,
        is_retrievable=field_def.is_retrievable,
        is_refinable=field_def.is_refinable,
        semantic_label=field_def.semantic_label,
        json_path=field_def.json_path,
        is_array=field_def.is_array,
        is_nested=field_def.is_nested,
        sample_value=field_def.sample_value,
    )


def from_field_model(model: FieldDefinitionModel) -> FieldDefinition:
    return FieldDefinition(
        field_name=model.field_name,
        display_name=model.display_name or model.field_name,
        data_type=model.data_type,
        is_searchable=model.is_searchable,
        is_queryable=model.is_queryable,
        is_retrievable=model.is_retrievable,
        is_refinable=model.is_refinable,
        semantic_label=model.semantic_label,
        json_path=model.json_path,
        is_array=model.is_array,
        is_nested=model.is_nested,
        sample_value=model.sample_value,
    )


def publishable_fields(fields: Sequence[FieldDefinition]) -> list[FieldDefinition]:
    """Fields that survive publication; Object fields have no store type."""
    return [f for f in fields if f.data_type != DataType.OBJECT]


def build_configuration(connection_id: str, fields: Sequence[FieldDefinition]) -> SchemaConfiguration:
    """Convert field definitions into the registered schema shape.

    Int32 is published as Int64, Object fields are skipped, and the field
    carrying the title label becomes required. Inference diagnostics
    (json path, array and nesting flags) are not persisted.
    """
    schema_fields: dict[str, SchemaFieldInfo] = {}
    required: list[str] = []

    for field_def in publishable_fields(fields):
        label = field_def.semantic_label
        schema_fields[field_def.field_name] = SchemaFieldInfo(
            name=field_def.field_name,
            type=published_type(field_def.data_type).value,
            is_searchable=field_def.is_searchable,
            is_queryable=field_def.is_queryable,
            is_retrievable=field_def.is_retrievable,
            is_refinable=field_def.is_refinable,
            semantic_label=label.value if label != SemanticLabel.NONE else None,
        )
        if label == SemanticLabel.TITLE:
            required.append(field_def.field_name)

    return SchemaConfiguration(
        connection_id=connection_id,
        fields=schema_fields,
        required_fields=required,
    )


class ProvisioningService:
    """Infers, validates and publishes schemas for external connections."""

    def __init__(self, schema_store: SchemaStore, config: ConnectorConfig):
        self.schema_store = schema_store
        self.config = config

    def infer(self, sample: str | dict | list) -> tuple[list[FieldDefinition], list[str]]:
        """Infer and label fields from a sample, returning them with any rule violations.

        Raises:
            InvalidInputError: sample is text that is not valid JSON.
        """
        fields = infer_schema(sample, max_name_length=self.config.max_field_name_length)
        assign_labels(fields)
        result = validate_schema(
            fields,
            max_fields=self.config.max_schema_fields,
            max_name_length=self.config.max_field_name_length,
        )
        if not result.is_valid:
            logger.info(f"Inferred schema has {len(result.errors)} validation errors")
        return fields, result.errors

    def infer_report(self, sample: str | dict | list) -> InferenceReport:
        fields, errors = self.infer(sample)
        return InferenceReport(fields=[to_field_model(f) for f in fields], errors=errors)

    def validate(self, fields: Sequence[FieldDefinition]) -> list[str]:
        result = validate_schema(
            publishable_fields(fields),
            max_fields=self.config.max_schema_fields,
            max_name_length=self.config.max_field_name_length,
        )
        return result.errors

    async def publish(
        self, connection_id: str, fields: Sequence[FieldDefinition]
    ) -> SchemaConfiguration:
        """Validate fields and register them as the connection's schema.

        Raises:
            SchemaViolationError: the field set breaks one or more schema rules.
            UpstreamError: the schema store rejected the write.
        """
        errors = self.validate(fields)
        if errors:
            logger.warning(f"Refusing to publish schema for '{connection_id}': {errors}")
            raise SchemaViolationError(errors)

        schema = build_configuration(connection_id, fields)
        await self.schema_store.save_schema(schema)
        logger.info(
            f"Published schema for connection '{connection_id}' with {len(schema.fields)} fields"
        )
        return schema

    async def get_schema(self, connection_id: str) -> SchemaConfiguration:
        """Fetch a published schema.

        Raises:
            SchemaNotFoundError: nothing is registered for connection_id.
        """
        schema = await self.schema_store.get_schema(connection_id)
        if schema is None:
            raise SchemaNotFoundError(connection_id)
        return schema
