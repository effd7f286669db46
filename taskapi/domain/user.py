"""User domain models and enums."""

from enum import StrEnum
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from taskapi.core.config import constants
from taskapi.domain.base import Document


class UserRole(StrEnum):
    """User role."""

    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


class Theme(StrEnum):
    """UI theme preference."""

    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


class NotificationPreferences(BaseModel):
    """Per-channel notification toggles."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    email: bool = True
    push: bool = True
    task_assigned: bool = True
    task_due: bool = True


class Preferences(BaseModel):
    """User preferences."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    theme: Theme = Theme.LIGHT
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)
    timezone: str = "UTC"


def initials_for(name: str) -> str:
    """Upper-case initials of each word in a name."""
    return "".join(part[0] for part in name.split() if part).upper()


def default_avatar_url(name: str) -> str:
    """Generated avatar URL built from the user's initials."""
    return constants.AVATAR_URL_TEMPLATE.format(initials=quote(initials_for(name)))


class User(Document):
    """User data transfer object. The password hash is never part of it."""

    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Unique, lower-cased email address")
    role: UserRole = Field(default=UserRole.USER, description="User role")
    department: str | None = Field(default=None, description="Department")
    position: str | None = Field(default=None, description="Job position")
    phone: str | None = Field(default=None, description="Phone number")
    avatar: str | None = Field(default=None, description="Avatar URL")
    is_active: bool = Field(default=True, description="Whether the account is active")
    last_login: str | None = Field(default=None, description="Last login timestamp (ISO format)")
    preferences: Preferences = Field(default_factory=Preferences, description="User preferences")

    @computed_field(alias="initials")
    @property
    def initials(self) -> str:
        return initials_for(self.name)

    @computed_field(alias="avatarUrl")
    @property
    def avatar_url(self) -> str:
        return self.avatar or default_avatar_url(self.name)


class UserStats(BaseModel):
    """Aggregate user counts."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = 0
    active: int = 0
    inactive: int = 0
    by_role: dict[str, int] = Field(default_factory=lambda: {member.value: 0 for member in UserRole})
    by_department: dict[str, int] = Field(default_factory=dict)
