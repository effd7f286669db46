"""Unit tests for domain models and derived fields."""

from datetime import timedelta

import pytest

from taskapi.core.timestamps import parse_iso, to_iso, utc_now
from taskapi.domain.task import Task, is_overdue, resolve_completed_at
from taskapi.domain.user import User, initials_for
from taskapi.interface.responses import build_pagination


@pytest.mark.unit
class TestTaskDerivedFields:
    """isOverdue, ageInDays and completedAt."""

    def test_is_overdue(self):
        past = to_iso(utc_now() - timedelta(hours=1))
        future = to_iso(utc_now() + timedelta(hours=1))

        assert is_overdue(due_date=past, status="pending") is True
        assert is_overdue(due_date=past, status="completed") is False
        assert is_overdue(due_date=future, status="pending") is False
        assert is_overdue(due_date=None, status="pending") is False

    def test_age_in_days(self):
        task = Task(id="a" * 32, title="t", created_at=to_iso(utc_now() - timedelta(days=3, hours=1)))

        assert task.to_public()["ageInDays"] == 3

    def test_resolve_completed_at(self):
        assert resolve_completed_at(status="pending") is None
        assert parse_iso(resolve_completed_at(status="completed")) <= utc_now()
        assert (
            resolve_completed_at(
                status="completed",
                previous_status="completed",
                previous_completed_at="2020-01-01T00:00:00.000Z",
            )
            == "2020-01-01T00:00:00.000Z"
        )
        assert resolve_completed_at(status="cancelled", previous_status="completed") is None


@pytest.mark.unit
class TestUserDerivedFields:
    """initials and avatar fallback."""

    @pytest.mark.parametrize(("name", "initials"), [("Ada Lovelace", "AL"), ("  grace  m  hopper ", "GMH"), ("X", "X")])
    def test_initials(self, name, initials):
        assert initials_for(name) == initials

    def test_stored_avatar_wins(self):
        user = User(id="a" * 32, name="Ada", email="a@b.co", avatar="https://example.com/a.png")

        assert user.to_public()["avatarUrl"] == "https://example.com/a.png"


@pytest.mark.unit
class TestPagination:
    """build_pagination."""

    @pytest.mark.parametrize(
        ("page", "limit", "total", "pages", "has_next", "has_prev"),
        [
            (1, 10, 0, 0, False, False),
            (1, 10, 10, 1, False, False),
            (1, 10, 11, 2, True, False),
            (2, 10, 11, 2, False, True),
            (5, 10, 11, 2, False, True),
        ],
    )
    def test_pagination(self, page, limit, total, pages, has_next, has_prev):
        pagination = build_pagination(page=page, limit=limit, total=total)

        assert pagination["totalPages"] == pages
        assert pagination["hasNextPage"] is has_next
        assert pagination["hasPrevPage"] is has_prev
