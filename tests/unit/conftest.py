"""Pytest configuration and fixtures for unit tests."""

import pytest
from fastapi.testclient import TestClient

from taskapi.main import app
from tests.unit.mocks import InMemoryDBClient


DB_FUNCTIONS = (
    "create_record",
    "get_record",
    "update_record",
    "delete_record",
    "delete_records",
    "list_records",
    "count_records",
    "count_by",
)


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches taskapi.core.db_client functions to use InMemoryDBClient."""
    for name in DB_FUNCTIONS:
        monkeypatch.setattr(f"taskapi.core.db_client.{name}", getattr(in_memory_db, name))
    return in_memory_db


@pytest.fixture
def client(patched_db):
    """TestClient backed by the in-memory store. The lifespan is not run."""
    return TestClient(app, raise_server_exceptions=False)
