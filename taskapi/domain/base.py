"""Shared base for document-backed domain models."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Document(BaseModel):
    """A stored document: id plus store-managed timestamps.

    Attributes are snake_case in Python and camelCase on the wire.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str = Field(..., description="Store-generated document ID")
    created_at: str | None = Field(default=None, description="Creation timestamp (ISO format)")
    updated_at: str | None = Field(default=None, description="Last update timestamp (ISO format)")

    def to_public(self) -> dict:
        """Serialize for API responses (camelCase, computed fields included)."""
        return self.model_dump(mode="json", by_alias=True)
