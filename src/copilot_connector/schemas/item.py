"""Pydantic models for items submitted to an external connection."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AccessControlEntry(BaseModel):
    """Who may see an item: principal type, principal value, grant or deny."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: str = "everyone"
    value: str = "everyone"
    access_type: str = "grant"


EVERYONE_ACL = AccessControlEntry(type="everyone", value="everyone", access_type="grant")


class NormalizedItem(BaseModel):
    """An aligned item ready for the item sink.

    Every key in properties is a field of the target schema or an
    '@odata.type' annotation for one.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    properties: dict[str, Any] = Field(default_factory=dict)
    content: str = ""
    acls: list[AccessControlEntry] = Field(default_factory=list)
