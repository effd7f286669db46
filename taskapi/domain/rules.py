"""Validation rule tables for request bodies, one per entity.

Each table is validated with ``Operation.CREATE`` for POST bodies and
``Operation.UPDATE`` for PUT bodies; see ``taskapi.core.validation``.
"""

import re
from collections.abc import Mapping
from typing import Any

from taskapi.core.config import constants
from taskapi.core.timestamps import now_iso
from taskapi.core.validation import (
    HEX_COLOR_PATTERN,
    PHONE_PATTERN,
    Check,
    CrossFieldRule,
    FieldRule,
    Operation,
    RuleSet,
    is_boolean,
    is_email,
    is_future_date,
    is_iso_date,
    is_list,
    is_number,
    is_object,
    is_reference_id,
    is_string,
    length_between,
    matches,
    max_utf8_bytes,
    one_of,
    to_iso_date,
    trim,
    trim_lower,
    unique_items,
)
from taskapi.domain.project import ProjectStatus
from taskapi.domain.task import TaskCategory, TaskPriority, TaskStatus
from taskapi.domain.user import NotificationPreferences, Preferences, Theme, UserRole


PASSWORD_STRENGTH_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")
URL_PATTERN = re.compile(r"^https?://\S+$")

ON_CREATE = frozenset({Operation.CREATE})

STATUS_MESSAGE = "Status must be pending, in-progress, completed, or cancelled"
PRIORITY_MESSAGE = "Priority must be low, medium, high, or urgent"
CATEGORY_MESSAGE = "Category must be work, personal, shopping, health, education, or other"


def _reference(field: str, label: str, *, required: bool = False, nullable: bool = True) -> FieldRule:
    return FieldRule(
        field=field,
        required=required,
        required_message=f"{label} is required",
        nullable=nullable,
        checks=(Check(is_reference_id, f"{label} must be a valid identifier"),),
    )


def _optional_text(field: str, label: str, max_length: int) -> FieldRule:
    return FieldRule(
        field=field,
        nullable=True,
        prepare=trim,
        checks=(
            Check(is_string, f"{label} must be a string"),
            Check(length_between(0, max_length), f"{label} cannot exceed {max_length} characters"),
        ),
    )


# Tasks

TASK_RULES = RuleSet(
    rules=(
        FieldRule(
            field="title",
            required=True,
            required_message="Title is required",
            prepare=trim,
            checks=(
                Check(is_string, "Title must be a string"),
                Check(
                    length_between(1, constants.TASK_TITLE_MAX_LENGTH),
                    f"Title must be between 1 and {constants.TASK_TITLE_MAX_LENGTH} characters",
                ),
            ),
        ),
        _optional_text("description", "Description", constants.TASK_DESCRIPTION_MAX_LENGTH),
        FieldRule(
            field="status",
            checks=(Check(one_of(TaskStatus), STATUS_MESSAGE),),
            default=TaskStatus.PENDING.value,
        ),
        FieldRule(
            field="priority",
            checks=(Check(one_of(TaskPriority), PRIORITY_MESSAGE),),
            default=TaskPriority.MEDIUM.value,
        ),
        FieldRule(
            field="category",
            checks=(Check(one_of(TaskCategory), CATEGORY_MESSAGE),),
            default=TaskCategory.OTHER.value,
        ),
        FieldRule(
            field="dueDate",
            nullable=True,
            checks=(
                Check(is_iso_date, "Due date must be a valid date"),
                Check(is_future_date, "Due date must be in the future", operations=ON_CREATE),
            ),
            normalize=to_iso_date,
        ),
        _reference("assignedTo", "Assigned user ID"),
        _reference("userId", "User ID"),
        FieldRule(
            field="tags",
            checks=(Check(is_list, "Tags must be an array"),),
            items=FieldRule(
                field="tags",
                prepare=trim,
                checks=(
                    Check(
                        length_between(1, constants.TAG_MAX_LENGTH),
                        f"Each tag must be between 1 and {constants.TAG_MAX_LENGTH} characters",
                    ),
                ),
            ),
            normalize=unique_items,
            default_factory=list,
        ),
        FieldRule(
            field="estimatedHours",
            nullable=True,
            checks=(
                Check(
                    is_number(0, constants.ESTIMATED_HOURS_MAX),
                    f"Estimated hours must be between 0 and {constants.ESTIMATED_HOURS_MAX:g}",
                ),
            ),
        ),
        FieldRule(
            field="actualHours",
            nullable=True,
            checks=(Check(is_number(0), "Actual hours must be non-negative"),),
        ),
    ),
)

# The status transition carries a complete one-field record, so it is
# validated as CREATE to make ``status`` mandatory.
TASK_STATUS_RULES = RuleSet(
    rules=(
        FieldRule(
            field="status",
            required=True,
            required_message="Status is required",
            checks=(Check(one_of(TaskStatus), STATUS_MESSAGE),),
        ),
    ),
)


# Users

NOTIFICATION_RULES = RuleSet(
    rules=tuple(
        FieldRule(
            field=name,
            checks=(Check(is_boolean, f"preferences.notifications.{name} must be a boolean value"),),
            default=True,
        )
        for name in ("email", "push", "taskAssigned", "taskDue")
    ),
)

PREFERENCE_RULES = RuleSet(
    rules=(
        FieldRule(
            field="theme",
            checks=(Check(one_of(Theme), "Theme must be light, dark, or auto"),),
            default=Theme.LIGHT.value,
        ),
        FieldRule(
            field="notifications",
            checks=(Check(is_object, "Notifications must be an object"),),
            nested=NOTIFICATION_RULES,
            default_factory=lambda: NotificationPreferences().model_dump(mode="json", by_alias=True),
        ),
        FieldRule(
            field="timezone",
            prepare=trim,
            checks=(Check(length_between(1, 50), "Timezone must be between 1 and 50 characters"),),
            default="UTC",
        ),
    ),
)

USER_RULES = RuleSet(
    rules=(
        FieldRule(
            field="name",
            required=True,
            required_message="Name is required",
            prepare=trim,
            checks=(
                Check(is_string, "Name must be a string"),
                Check(
                    length_between(constants.USER_NAME_MIN_LENGTH, constants.USER_NAME_MAX_LENGTH),
                    f"Name must be between {constants.USER_NAME_MIN_LENGTH} and "
                    f"{constants.USER_NAME_MAX_LENGTH} characters",
                ),
            ),
        ),
        FieldRule(
            field="email",
            required=True,
            required_message="Email is required",
            prepare=trim_lower,
            checks=(Check(is_email, "Please provide a valid email address"),),
        ),
        FieldRule(
            field="password",
            required=True,
            required_message="Password is required",
            checks=(
                Check(is_string, "Password must be a string"),
                Check(
                    length_between(constants.PASSWORD_MIN_LENGTH),
                    f"Password must be at least {constants.PASSWORD_MIN_LENGTH} characters long",
                ),
                Check(
                    max_utf8_bytes(constants.PASSWORD_MAX_BYTES),
                    f"Password cannot exceed {constants.PASSWORD_MAX_BYTES} bytes",
                ),
                Check(
                    matches(PASSWORD_STRENGTH_PATTERN),
                    "Password must contain at least one lowercase letter, one uppercase letter, and one number",
                ),
            ),
        ),
        FieldRule(
            field="role",
            checks=(Check(one_of(UserRole), "Role must be admin, manager, or user"),),
            default=UserRole.USER.value,
        ),
        _optional_text("department", "Department", constants.USER_PROFILE_FIELD_MAX_LENGTH),
        _optional_text("position", "Position", constants.USER_PROFILE_FIELD_MAX_LENGTH),
        FieldRule(
            field="phone",
            nullable=True,
            prepare=trim,
            checks=(Check(matches(PHONE_PATTERN), "Please provide a valid phone number"),),
        ),
        FieldRule(
            field="avatar",
            nullable=True,
            prepare=trim,
            checks=(
                Check(matches(URL_PATTERN), "Avatar must be an http(s) URL"),
                Check(length_between(1, 500), "Avatar URL cannot exceed 500 characters"),
            ),
        ),
        FieldRule(
            field="isActive",
            checks=(Check(is_boolean, "isActive must be a boolean value"),),
            default=True,
        ),
        FieldRule(
            field="preferences",
            checks=(Check(is_object, "Preferences must be an object"),),
            nested=PREFERENCE_RULES,
            default_factory=lambda: Preferences().model_dump(mode="json", by_alias=True),
        ),
    ),
)


# Categories

CATEGORY_RULES = RuleSet(
    rules=(
        FieldRule(
            field="name",
            required=True,
            required_message="Category name is required",
            prepare=trim,
            checks=(
                Check(is_string, "Category name must be a string"),
                Check(
                    length_between(1, constants.CATEGORY_NAME_MAX_LENGTH),
                    f"Category name must be between 1 and {constants.CATEGORY_NAME_MAX_LENGTH} characters",
                ),
            ),
        ),
        _optional_text("description", "Description", constants.CATEGORY_DESCRIPTION_MAX_LENGTH),
        FieldRule(
            field="color",
            prepare=trim,
            checks=(Check(matches(HEX_COLOR_PATTERN), "Color must be a hex code such as #007bff"),),
            default=constants.DEFAULT_CATEGORY_COLOR,
        ),
    ),
)


# Projects


def end_not_before_start(record: Mapping[str, Any]) -> bool:
    """True unless both dates are set and the end precedes the start."""
    start, end = record.get("startDate"), record.get("endDate")
    return not (start and end) or end >= start


PROJECT_RULES = RuleSet(
    rules=(
        FieldRule(
            field="name",
            required=True,
            required_message="Project name is required",
            prepare=trim,
            checks=(
                Check(is_string, "Project name must be a string"),
                Check(
                    length_between(1, constants.PROJECT_NAME_MAX_LENGTH),
                    f"Project name must be between 1 and {constants.PROJECT_NAME_MAX_LENGTH} characters",
                ),
            ),
        ),
        _optional_text("description", "Description", constants.PROJECT_DESCRIPTION_MAX_LENGTH),
        FieldRule(
            field="status",
            checks=(Check(one_of(ProjectStatus), "Status must be active, completed, or on-hold"),),
            default=ProjectStatus.ACTIVE.value,
        ),
        FieldRule(
            field="startDate",
            checks=(Check(is_iso_date, "Start date must be a valid date"),),
            normalize=to_iso_date,
            default_factory=now_iso,
        ),
        FieldRule(
            field="endDate",
            nullable=True,
            checks=(Check(is_iso_date, "End date must be a valid date"),),
            normalize=to_iso_date,
        ),
        _reference("userId", "User ID", required=True, nullable=False),
        FieldRule(
            field="tasks",
            checks=(Check(is_list, "Tasks must be an array"),),
            items=FieldRule(
                field="tasks",
                checks=(Check(is_reference_id, "Task ID must be a valid identifier"),),
            ),
            normalize=unique_items,
            default_factory=list,
        ),
    ),
    cross_field=(
        CrossFieldRule(
            field="endDate",
            predicate=end_not_before_start,
            message="End date must not be before the start date",
        ),
    ),
)
