"""Project domain models and enums."""

from enum import StrEnum

from pydantic import Field

from taskapi.domain.base import Document


class ProjectStatus(StrEnum):
    """Project lifecycle status."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"


class Project(Document):
    """Project data transfer object."""

    name: str = Field(..., description="Project name")
    description: str | None = Field(default=None, description="Project description")
    status: ProjectStatus = Field(default=ProjectStatus.ACTIVE, description="Project status")
    start_date: str | None = Field(default=None, description="Start date (ISO format)")
    end_date: str | None = Field(default=None, description="End date (ISO format)")
    user_id: str = Field(..., description="Owning user ID")
    tasks: list[str] = Field(default_factory=list, description="Ordered task IDs")
