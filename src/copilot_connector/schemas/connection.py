"""Pydantic models for a registered external connection schema.

JSON shape exchanged with the schema store and the HTTP API:

    {
      "connectionId": "...",
      "fields": {"title": {"name": "title", "type": "String", "isSearchable": true, ...}},
      "requiredFields": ["title"],
      "aliasRemaps": [["publishedDate", "lastUpdated"]],
      "defaultAcls": [{"type": "everyone", "value": "everyone", "accessType": "grant"}]
    }
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from copilot_connector.schema.types import SemanticLabel
from copilot_connector.schemas.item import AccessControlEntry


class CamelModel(BaseModel):
    """Base model serializing to camelCase while accepting snake_case input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SchemaFieldInfo(CamelModel):
    """A published schema property.

    type is kept as a plain string so schemas carrying types outside the
    known vocabulary still load; alignment passes such values through.
    """

    name: str
    type: str = Field(description="String, Int32, Int64, Double, Boolean, DateTime or StringCollection")
    is_searchable: bool = False
    is_queryable: bool = False
    is_retrievable: bool = False
    is_refinable: bool = False
    semantic_label: Optional[str] = None

    @property
    def label(self) -> SemanticLabel:
        return SemanticLabel.parse(self.semantic_label)


class SchemaConfiguration(CamelModel):
    """The registered, read-only view of a schema used by ingestion."""

    connection_id: str
    fields: dict[str, SchemaFieldInfo] = Field(default_factory=dict)
    required_fields: list[str] = Field(default_factory=list)
    alias_remaps: list[tuple[str, str]] = Field(
        default_factory=list,
        description="Ordered (source alias, canonical name) pairs; overrides the service default when set",
    )
    default_acls: Optional[list[AccessControlEntry]] = None


def default_schema_configuration(connection_id: str = "default") -> SchemaConfiguration:
    """Schema used when the store has none registered: a title and a url."""
    return SchemaConfiguration(
        connection_id=connection_id,
        fields={
            "title": SchemaFieldInfo(
                name="title",
                type="String",
                is_searchable=True,
                is_queryable=True,
                is_retrievable=True,
                is_refinable=False,
                semantic_label=SemanticLabel.TITLE.value,
            ),
            "url": SchemaFieldInfo(
                name="url",
                type="String",
                is_searchable=False,
                is_queryable=True,
                is_retrievable=True,
                is_refinable=False,
                semantic_label=SemanticLabel.URL.value,
            ),
        },
        required_fields=["title"],
    )
