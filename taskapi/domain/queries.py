"""List query specifications, one per entity."""

from taskapi.core.db_client import Filter
from taskapi.core.query_builder import ListQuerySpec
from taskapi.core.timestamps import now_iso
from taskapi.core.validation import (
    Check,
    FieldRule,
    is_bool_string,
    is_reference_id,
    length_between,
    one_of,
    to_bool,
    trim,
)
from taskapi.domain.project import ProjectStatus
from taskapi.domain.rules import CATEGORY_MESSAGE, PRIORITY_MESSAGE, STATUS_MESSAGE
from taskapi.domain.task import TaskCategory, TaskPriority, TaskStatus
from taskapi.domain.user import UserRole


def overdue_filter() -> Filter:
    """Tasks whose due date has passed and that are not completed.

    Evaluated per request so "now" is the time of the query.
    """
    return {
        "dueDate": {"$lt": now_iso()},
        "status": {"$ne": TaskStatus.COMPLETED.value},
    }


def _reference_filter(field: str, label: str) -> FieldRule:
    return FieldRule(field=field, checks=(Check(is_reference_id, f"{label} must be a valid identifier"),))


TASK_QUERY = ListQuerySpec(
    filter_rules=(
        FieldRule(field="status", checks=(Check(one_of(TaskStatus), STATUS_MESSAGE),)),
        FieldRule(field="priority", checks=(Check(one_of(TaskPriority), PRIORITY_MESSAGE),)),
        FieldRule(field="category", checks=(Check(one_of(TaskCategory), CATEGORY_MESSAGE),)),
        _reference_filter("assignedTo", "Assigned user ID"),
        _reference_filter("userId", "User ID"),
    ),
    search_fields=("title", "description"),
    sort_fields=("createdAt", "updatedAt", "dueDate", "priority", "title"),
    # overdue replaces any explicit status filter
    flag_filters={"overdue": overdue_filter},
)

USER_QUERY = ListQuerySpec(
    filter_rules=(
        FieldRule(field="role", checks=(Check(one_of(UserRole), "Role must be admin, manager, or user"),)),
        FieldRule(
            field="department",
            prepare=trim,
            checks=(Check(length_between(1, 50), "Department filter cannot be empty"),),
        ),
        FieldRule(
            field="isActive",
            checks=(Check(is_bool_string, "isActive must be a boolean value"),),
            normalize=to_bool,
        ),
    ),
    search_fields=("name", "email", "department", "position"),
    sort_fields=("createdAt", "updatedAt", "name", "email"),
)

CATEGORY_QUERY = ListQuerySpec(
    search_fields=("name", "description"),
    sort_fields=("name", "createdAt", "updatedAt"),
    default_sort="name",
    default_order="asc",
)

PROJECT_QUERY = ListQuerySpec(
    filter_rules=(
        FieldRule(
            field="status",
            checks=(Check(one_of(ProjectStatus), "Status must be active, completed, or on-hold"),),
        ),
        _reference_filter("userId", "User ID"),
    ),
    search_fields=("name", "description"),
    sort_fields=("createdAt", "updatedAt", "name", "startDate", "endDate"),
)
