"""Password hashing with bcrypt."""

import bcrypt

from taskapi.core.config import settings


def hash_password(password: str) -> str:
    """Hash a plain text password using bcrypt."""
    salt = bcrypt.gensalt(rounds=settings.password_hash_rounds)
    return bcrypt.hashpw(password=password.encode("utf-8"), salt=salt).decode("utf-8")
