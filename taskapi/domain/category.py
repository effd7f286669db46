"""Category domain model."""

from pydantic import Field

from taskapi.core.config import constants
from taskapi.domain.base import Document


class Category(Document):
    """Category data transfer object."""

    name: str = Field(..., description="Unique category name")
    description: str | None = Field(default=None, description="Category description")
    color: str = Field(default=constants.DEFAULT_CATEGORY_COLOR, description="Hex colour code")
