"""Pytest configuration and shared fixtures."""

import pytest

from taskapi.core import db_client
from taskapi.core.config import settings


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Use the cheapest bcrypt cost so tests that create users stay fast."""
    monkeypatch.setattr(settings, "password_hash_rounds", 4)


@pytest.fixture
def sample_user_data():
    """Returns a valid user creation body."""
    return {
        "name": "Ada Lovelace",
        "email": "Ada@Example.com",
        "password": "Secret123",
        "department": "Engineering",
    }


@pytest.fixture
def sample_task_data():
    """Returns a valid task creation body."""
    return {
        "title": "Write report",
        "description": "Quarterly numbers",
        "priority": "high",
        "tags": ["report", "q3", "report"],
    }


@pytest.fixture
async def sqlite_db(monkeypatch, tmp_path):
    """Point the store at a fresh SQLite file and create the schema."""
    monkeypatch.setattr(settings, "sqlite_db_path", str(tmp_path / "test.db"))
    await db_client.init_db()
    yield db_client
    await db_client.close_connection()
