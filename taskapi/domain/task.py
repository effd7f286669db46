"""Task domain models and enums."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from taskapi.core.timestamps import now_iso, parse_iso, utc_now
from taskapi.domain.base import Document


class TaskStatus(StrEnum):
    """Task lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(StrEnum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskCategory(StrEnum):
    """Fixed task categories."""

    WORK = "work"
    PERSONAL = "personal"
    SHOPPING = "shopping"
    HEALTH = "health"
    EDUCATION = "education"
    OTHER = "other"


def is_overdue(*, due_date: str | None, status: str) -> bool:
    """A task is overdue when its due date has passed and it is not completed."""
    if not due_date or status == TaskStatus.COMPLETED:
        return False
    return parse_iso(due_date) < utc_now()


def resolve_completed_at(
    *, status: str, previous_status: str | None = None, previous_completed_at: str | None = None
) -> str | None:
    """Completion timestamp for a task moving to ``status``.

    Set on the transition to completed, kept while the task stays completed,
    cleared for every other status.
    """
    if status != TaskStatus.COMPLETED:
        return None
    if previous_status == TaskStatus.COMPLETED and previous_completed_at:
        return previous_completed_at
    return now_iso()


class Task(Document):
    """Task data transfer object."""

    title: str = Field(..., description="Task title")
    description: str | None = Field(default=None, description="Detailed task description")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Current lifecycle status")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    category: TaskCategory = Field(default=TaskCategory.OTHER, description="Task category")
    due_date: str | None = Field(default=None, description="Due date (ISO format)")
    assigned_to: str | None = Field(default=None, description="Assigned user ID")
    user_id: str | None = Field(default=None, description="Owning user ID")
    tags: list[str] = Field(default_factory=list, description="Short free-form labels")
    completed_at: str | None = Field(default=None, description="Set while status is completed")
    estimated_hours: float | None = Field(default=None, description="Estimated effort in hours")
    actual_hours: float | None = Field(default=None, description="Actual effort in hours")

    @computed_field(alias="isOverdue")
    @property
    def is_overdue(self) -> bool:
        return is_overdue(due_date=self.due_date, status=self.status)

    @computed_field(alias="ageInDays")
    @property
    def age_in_days(self) -> int:
        if not self.created_at:
            return 0
        return (utc_now() - parse_iso(self.created_at)).days


class TaskStats(BaseModel):
    """Aggregate task counts. Every enum value has a bucket, zero when empty."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = 0
    overdue: int = 0
    by_status: dict[str, int] = Field(default_factory=lambda: {member.value: 0 for member in TaskStatus})
    by_priority: dict[str, int] = Field(default_factory=lambda: {member.value: 0 for member in TaskPriority})
    by_category: dict[str, int] = Field(default_factory=lambda: {member.value: 0 for member in TaskCategory})
