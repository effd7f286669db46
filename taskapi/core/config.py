"""Configuration management for the task management API."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Document store
    sqlite_db_path: str = Field(default="data/taskapi.db", description="Path to the SQLite document store file")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Pagination
    default_page_size: int = Field(default=10, description="Page size used when the limit parameter is omitted")
    max_page_size: int = Field(default=100, description="Largest accepted value for the limit parameter")

    # Password hashing
    password_hash_rounds: int = Field(default=12, description="bcrypt cost factor for user passwords")

    @property
    def is_production(self) -> bool:
        """Return True when running in production."""
        return self.environment.lower() == "production"


# Application Constants
class Constants:
    """Application-wide constants."""

    API_TITLE: str = "Task Management API"
    API_VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"

    # Store-native identifiers: 32 lowercase hex characters
    ID_PATTERN: str = r"^[0-9a-f]{32}$"

    # Field limits
    TASK_TITLE_MAX_LENGTH: int = 100
    TASK_DESCRIPTION_MAX_LENGTH: int = 500
    TAG_MAX_LENGTH: int = 20
    ESTIMATED_HOURS_MAX: float = 1000
    USER_NAME_MIN_LENGTH: int = 2
    USER_NAME_MAX_LENGTH: int = 50
    USER_PROFILE_FIELD_MAX_LENGTH: int = 50
    PASSWORD_MIN_LENGTH: int = 6
    PASSWORD_MAX_BYTES: int = 72
    CATEGORY_NAME_MAX_LENGTH: int = 50
    CATEGORY_DESCRIPTION_MAX_LENGTH: int = 200
    PROJECT_NAME_MAX_LENGTH: int = 100
    PROJECT_DESCRIPTION_MAX_LENGTH: int = 500
    SEARCH_MAX_LENGTH: int = 100

    # Defaults
    DEFAULT_CATEGORY_COLOR: str = "#007bff"
    AVATAR_URL_TEMPLATE: str = "https://ui-avatars.com/api/?name={initials}&background=random"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
