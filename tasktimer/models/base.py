"""Shared pydantic configuration for tasktimer records."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys (records and HTTP payloads)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict:
        """Serialize to the stored document shape (camelCase, absent fields dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class CamelPatch(BaseModel):
    """Base model for typed payloads; unknown fields are rejected."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")
