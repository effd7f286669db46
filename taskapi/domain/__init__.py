"""Domain models and DTOs."""

from taskapi.domain.category import Category
from taskapi.domain.project import Project, ProjectStatus
from taskapi.domain.task import Task, TaskCategory, TaskPriority, TaskStats, TaskStatus
from taskapi.domain.user import Preferences, Theme, User, UserRole, UserStats


__all__ = [
    "Category",
    "Preferences",
    "Project",
    "ProjectStatus",
    "Task",
    "TaskCategory",
    "TaskPriority",
    "TaskStats",
    "TaskStatus",
    "Theme",
    "User",
    "UserRole",
    "UserStats",
]
