"""Unit tests for task_service."""

from datetime import timedelta

import pytest

from taskapi.core.errors import InvalidReferenceError, NotFoundError
from taskapi.core.query_builder import build_list_query
from taskapi.core.timestamps import to_iso, utc_now
from taskapi.core.validation import Operation
from taskapi.domain.queries import TASK_QUERY
from taskapi.domain.rules import TASK_RULES
from taskapi.services import task_service


def _task(**overrides):
    return TASK_RULES.validate({"title": "Task", **overrides}, Operation.CREATE)


@pytest.fixture
async def user(patched_db):
    return await patched_db.create_record(collection="users", data={"name": "Owner", "email": "owner@example.com"})


@pytest.mark.unit
class TestCreateTask:
    """Tests for create_task."""

    async def test_defaults_round_trip(self, patched_db):
        created = await task_service.create_task(data=_task(priority="high"))

        fetched = await task_service.get_task(task_id=created.id)
        public = fetched.to_public()
        assert public["status"] == "pending"
        assert public["priority"] == "high"
        assert public["category"] == "other"
        assert public["isOverdue"] is False
        assert public["completedAt"] is None
        assert public["createdAt"].endswith("Z")

    async def test_created_completed_sets_completed_at(self, patched_db):
        created = await task_service.create_task(data=_task(status="completed"))

        assert created.completed_at is not None

    async def test_dangling_assignee_rejected_and_nothing_written(self, patched_db):
        with pytest.raises(InvalidReferenceError) as exc_info:
            await task_service.create_task(data=_task(assignedTo="f" * 32))

        assert exc_info.value.message == "Assigned user not found"
        assert exc_info.value.errors[0].field == "assignedTo"
        assert await patched_db.count_records(collection="tasks") == 0

    async def test_dangling_owner_rejected(self, patched_db):
        with pytest.raises(InvalidReferenceError) as exc_info:
            await task_service.create_task(data=_task(userId="e" * 32))

        assert exc_info.value.message == "User not found"

    async def test_existing_assignee_accepted(self, patched_db, user):
        created = await task_service.create_task(data=_task(assignedTo=user["id"], userId=user["id"]))

        assert created.assigned_to == user["id"]
        assert created.user_id == user["id"]


@pytest.mark.unit
class TestCompletedAt:
    """completedAt is present exactly when status is completed."""

    async def test_status_patch_to_completed_and_back(self, patched_db):
        task = await task_service.create_task(data=_task())

        completed = await task_service.update_task_status(task_id=task.id, status="completed")
        assert completed.completed_at is not None

        reopened = await task_service.update_task_status(task_id=task.id, status="in-progress")
        assert reopened.completed_at is None

    async def test_completed_at_kept_while_completed(self, patched_db):
        task = await task_service.create_task(data=_task())
        first = await task_service.update_task_status(task_id=task.id, status="completed")

        again = await task_service.update_task(task_id=task.id, data={"status": "completed", "title": "Renamed"})

        assert again.completed_at == first.completed_at

    async def test_update_without_status_leaves_completed_at(self, patched_db):
        task = await task_service.create_task(data=_task(status="completed"))

        updated = await task_service.update_task(task_id=task.id, data={"title": "New title"})

        assert updated.completed_at == task.completed_at

    async def test_update_to_cancelled_clears(self, patched_db):
        task = await task_service.create_task(data=_task(status="completed"))

        updated = await task_service.update_task(task_id=task.id, data={"status": "cancelled"})

        assert updated.completed_at is None


@pytest.mark.unit
class TestUpdateAndDelete:
    """Tests for update_task and delete_task."""

    async def test_update_missing_task(self, patched_db):
        with pytest.raises(NotFoundError):
            await task_service.update_task(task_id="a" * 32, data={"title": "x"})

    async def test_update_dangling_assignee_leaves_task_unchanged(self, patched_db):
        task = await task_service.create_task(data=_task())

        with pytest.raises(InvalidReferenceError):
            await task_service.update_task(task_id=task.id, data={"assignedTo": "b" * 32, "title": "Changed"})

        assert (await task_service.get_task(task_id=task.id)).title == "Task"

    async def test_delete_detaches_from_projects(self, patched_db, user):
        task = await task_service.create_task(data=_task())
        other = await task_service.create_task(data=_task(title="Other"))
        project = await patched_db.create_record(
            collection="projects",
            data={"name": "P", "userId": user["id"], "tasks": [task.id, other.id]},
        )

        deleted = await task_service.delete_task(task_id=task.id)

        assert deleted.id == task.id
        stored = await patched_db.get_record(collection="projects", record_id=project["id"])
        assert stored["tasks"] == [other.id]

    async def test_delete_missing_task(self, patched_db):
        with pytest.raises(NotFoundError):
            await task_service.delete_task(task_id="c" * 32)


@pytest.mark.unit
class TestListAndStats:
    """Tests for list_tasks and get_task_stats."""

    async def _seed_overdue_example(self, patched_db):
        past = to_iso(utc_now() - timedelta(days=1))
        future = to_iso(utc_now() + timedelta(days=1))
        tasks = {}
        for name, due, status in (
            ("A", past, "pending"),
            ("B", past, "completed"),
            ("C", future, "pending"),
            ("D", None, "pending"),
        ):
            tasks[name] = await patched_db.create_record(
                collection="tasks",
                data={"title": name, "dueDate": due, "status": status, "priority": "medium", "category": "work"},
            )
        return tasks

    async def test_overdue_filter(self, patched_db):
        await self._seed_overdue_example(patched_db)

        items, total = await task_service.list_tasks(query=build_list_query({"overdue": "true"}, TASK_QUERY))

        assert [item.title for item in items] == ["A"]
        assert total == 1
        assert items[0].is_overdue is True

    async def test_overdue_overrides_status_filter(self, patched_db):
        await self._seed_overdue_example(patched_db)

        items, _ = await task_service.list_tasks(
            query=build_list_query({"overdue": "true", "status": "completed"}, TASK_QUERY),
        )

        assert [item.title for item in items] == ["A"]

    async def test_pagination_total_counts_all_matches(self, patched_db):
        for i in range(12):
            await task_service.create_task(data=_task(title=f"Task {i:02d}"))

        items, total = await task_service.list_tasks(
            query=build_list_query({"page": "2", "limit": "5", "sortBy": "title", "sortOrder": "asc"}, TASK_QUERY),
        )

        assert total == 12
        assert [item.title for item in items] == [f"Task {i:02d}" for i in range(5, 10)]

    async def test_search_is_case_insensitive(self, patched_db):
        await task_service.create_task(data=_task(title="Quarterly REPORT"))
        await task_service.create_task(data=_task(title="Groceries", description="weekly report check"))
        await task_service.create_task(data=_task(title="Gym"))

        items, total = await task_service.list_tasks(query=build_list_query({"search": "report"}, TASK_QUERY))

        assert total == 2
        assert {item.title for item in items} == {"Quarterly REPORT", "Groceries"}

    async def test_search_folds_non_ascii_case(self, patched_db):
        await task_service.create_task(data=_task(title="Réunion ÉQUIPE"))
        await task_service.create_task(data=_task(title="Reunion"))

        items, _ = await task_service.list_tasks(query=build_list_query({"search": "équipe"}, TASK_QUERY))

        assert [item.title for item in items] == ["Réunion ÉQUIPE"]

    async def test_descending_sort_breaks_ties_by_id_ascending(self, patched_db):
        ids = []
        for i in range(5):
            task = await task_service.create_task(data=_task(title=f"Task {i}", priority="high"))
            ids.append(task.id)

        items, _ = await task_service.list_tasks(
            query=build_list_query({"sortBy": "priority", "sortOrder": "desc", "page": "2", "limit": "2"}, TASK_QUERY),
        )

        assert [item.id for item in items] == sorted(ids)[2:4]

    async def test_stats_zero_filled(self, patched_db):
        await self._seed_overdue_example(patched_db)

        stats = (await task_service.get_task_stats()).model_dump(by_alias=True)

        assert stats["total"] == 4
        assert stats["overdue"] == 1
        assert stats["byStatus"] == {"pending": 3, "in-progress": 0, "completed": 1, "cancelled": 0}
        assert stats["byPriority"]["medium"] == 4
        assert stats["byPriority"]["urgent"] == 0
        assert stats["byCategory"]["work"] == 4
        assert stats["byCategory"]["health"] == 0
