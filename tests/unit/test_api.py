"""HTTP-level tests using FastAPI TestClient against the in-memory store."""

import asyncio
from datetime import timedelta

import pytest

from taskapi.core.errors import DatabaseError
from taskapi.core.timestamps import to_iso, utc_now


def _create_user(client, **overrides):
    body = {"name": "Ada Lovelace", "email": "ada@example.com", "password": "Secret123", **overrides}
    response = client.post("/api/users", json=body)
    assert response.status_code == 201, response.json()
    return response.json()["data"]


def _create_task(client, **overrides):
    response = client.post("/api/tasks", json={"title": "Task", **overrides})
    assert response.status_code == 201, response.json()
    return response.json()["data"]


@pytest.mark.unit
class TestEnvelope:
    """Success and error envelopes."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["timestamp"].endswith("Z")
        assert body["uptime"] >= 0

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Route not found"}

    def test_docs_catalog(self, client):
        response = client.get("/api/docs")

        assert response.status_code == 200
        assert "PATCH /tasks/:id/status" in response.json()["endpoints"]["tasks"]

    def test_validation_error_envelope(self, client):
        response = client.post("/api/tasks", json={"status": "done"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        fields = {e["field"]: e for e in body["errors"]}
        assert fields["title"]["message"] == "Title is required"
        assert fields["status"]["value"] == "done"

    def test_non_object_body(self, client):
        response = client.post("/api/tasks", json=["title"])

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_malformed_path_id_is_400(self, client):
        response = client.get("/api/tasks/not-an-id")

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "id"

    def test_missing_record_is_404(self, client):
        response = client.get(f"/api/tasks/{'a' * 32}")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Task not found"}

    def test_unexpected_error_is_500(self, client, monkeypatch):
        async def boom(**_kwargs):
            raise RuntimeError("secret detail")

        monkeypatch.setattr("taskapi.core.db_client.list_records", boom)

        response = client.get("/api/tasks")

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal Server Error"}

    def test_store_error_detail_hidden(self, client, monkeypatch):
        async def broken(**_kwargs):
            raise DatabaseError("Failed to list records from tasks: disk I/O error")

        monkeypatch.setattr("taskapi.core.db_client.list_records", broken)

        response = client.get("/api/tasks")

        assert response.status_code == 500
        assert "disk" not in response.text


@pytest.mark.unit
class TestTaskEndpoints:
    """Task routes."""

    def test_create_round_trip_defaults(self, client):
        created = _create_task(client, priority="high")

        fetched = client.get(f"/api/tasks/{created['id']}").json()["data"]
        assert fetched["status"] == "pending"
        assert fetched["priority"] == "high"
        assert fetched["category"] == "other"
        assert fetched["isOverdue"] is False
        assert fetched["ageInDays"] == 0

    def test_list_pagination_block(self, client):
        for i in range(3):
            _create_task(client, title=f"Task {i}")

        body = client.get("/api/tasks", params={"page": 2, "limit": 2}).json()

        assert body["count"] == 1
        assert body["pagination"] == {
            "currentPage": 2,
            "totalPages": 2,
            "totalItems": 3,
            "hasNextPage": False,
            "hasPrevPage": True,
        }

    def test_empty_list(self, client):
        body = client.get("/api/tasks").json()

        assert body["data"] == []
        assert body["pagination"]["totalPages"] == 0
        assert body["pagination"]["hasNextPage"] is False

    def test_invalid_query_parameter(self, client):
        response = client.get("/api/tasks", params={"limit": 500})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "limit"

    def test_dangling_assignee(self, client):
        response = client.post("/api/tasks", json={"title": "Task", "assignedTo": "f" * 32})

        assert response.status_code == 400
        assert response.json()["message"] == "Assigned user not found"
        assert client.get("/api/tasks").json()["pagination"]["totalItems"] == 0

    @pytest.mark.parametrize("literal", ["Infinity", "-Infinity", "NaN"])
    def test_non_finite_hours_rejected_before_write(self, client, literal):
        response = client.post(
            "/api/tasks",
            content=f'{{"title": "x", "actualHours": {literal}}}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        error = response.json()["errors"][0]
        assert error["field"] == "actualHours"
        assert error["value"] is None
        assert client.get("/api/tasks").json()["pagination"]["totalItems"] == 0

    @pytest.mark.parametrize("due", ["9999-12-31T23:00:00-05:00", "0001-01-01T00:00:00+05:00"])
    def test_due_date_outside_utc_range_is_400(self, client, due):
        response = client.post("/api/tasks", json={"title": "x", "dueDate": due})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "dueDate"

    def test_huge_page_is_400(self, client):
        response = client.get("/api/tasks", params={"page": "99999999999999999999"})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "page"

    def test_status_patch(self, client):
        task = _create_task(client)

        response = client.patch(f"/api/tasks/{task['id']}/status", json={"status": "completed"})
        assert response.status_code == 200
        assert response.json()["data"]["completedAt"] is not None

        response = client.patch(f"/api/tasks/{task['id']}/status", json={"status": "pending"})
        assert response.json()["data"]["completedAt"] is None

    def test_status_patch_requires_valid_status(self, client):
        task = _create_task(client)

        response = client.patch(f"/api/tasks/{task['id']}/status", json={})

        assert response.status_code == 400
        assert response.json()["errors"][0]["message"] == "Status is required"

    def test_update_and_delete(self, client):
        task = _create_task(client)

        response = client.put(f"/api/tasks/{task['id']}", json={"title": "  Renamed  "})
        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Renamed"

        response = client.delete(f"/api/tasks/{task['id']}")
        assert response.status_code == 200
        assert client.get(f"/api/tasks/{task['id']}").status_code == 404

    def test_overdue_query(self, client, patched_db):
        past = to_iso(utc_now() - timedelta(days=2))
        asyncio.run(
            patched_db.create_record(collection="tasks", data={"title": "Late", "dueDate": past, "status": "pending"}),
        )
        _create_task(client, title="Fine", dueDate=to_iso(utc_now() + timedelta(days=2)))

        body = client.get("/api/tasks", params={"overdue": "true", "status": "completed"}).json()

        assert [t["title"] for t in body["data"]] == ["Late"]
        assert body["data"][0]["isOverdue"] is True

    def test_stats_route_not_shadowed_by_id(self, client):
        response = client.get("/api/tasks/stats/summary")

        assert response.status_code == 200
        assert response.json()["data"]["byStatus"]["pending"] == 0


@pytest.mark.unit
class TestUserEndpoints:
    """User routes."""

    def test_create_hides_password(self, client):
        user = _create_user(client)

        assert "password" not in user
        assert user["email"] == "ada@example.com"
        assert user["initials"] == "AL"

    def test_password_over_bcrypt_limit_is_400(self, client):
        response = client.post(
            "/api/users",
            json={"name": "Ada Lovelace", "email": "ada@example.com", "password": "Aa1" + "x" * 80},
        )

        assert response.status_code == 400
        error = response.json()["errors"][0]
        assert (error["field"], error["message"]) == ("password", "Password cannot exceed 72 bytes")
        assert client.get("/api/users").json()["pagination"]["totalItems"] == 0

    def test_duplicate_email_is_409(self, client):
        first = _create_user(client)

        response = client.post("/api/users", json={"name": "Other", "email": "ADA@example.com", "password": "Secret123"})

        assert response.status_code == 409
        body = response.json()
        assert body["message"] == "email already exists"
        assert body["errors"][0]["field"] == "email"
        assert client.get(f"/api/users/{first['id']}").json()["data"]["name"] == "Ada Lovelace"

    def test_delete_cascades(self, client):
        user = _create_user(client)
        for i in range(2):
            _create_task(client, title=f"Mine {i}", userId=user["id"])
        client.post("/api/projects", json={"name": "Mine", "userId": user["id"]})

        response = client.delete(f"/api/users/{user['id']}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["tasksDeleted"] == 2
        assert data["projectsDeleted"] == 1
        assert client.get("/api/tasks").json()["pagination"]["totalItems"] == 0
        assert client.get("/api/projects").json()["pagination"]["totalItems"] == 0

    def test_stats(self, client):
        _create_user(client, role="manager")

        data = client.get("/api/users/stats/summary").json()["data"]

        assert data["total"] == 1
        assert data["byRole"]["manager"] == 1


@pytest.mark.unit
class TestCategoryAndProjectEndpoints:
    """Category and project routes."""

    def test_category_crud(self, client):
        response = client.post("/api/categories", json={"name": "Home"})
        assert response.status_code == 201
        category = response.json()["data"]
        assert category["color"] == "#007bff"

        assert client.post("/api/categories", json={"name": "Home"}).status_code == 409

        response = client.put(f"/api/categories/{category['id']}", json={"color": "#ff0000"})
        assert response.json()["data"]["color"] == "#ff0000"

        assert client.delete(f"/api/categories/{category['id']}").status_code == 200
        assert client.get(f"/api/categories/{category['id']}").status_code == 404

    def test_project_with_unknown_task(self, client):
        user = _create_user(client)

        response = client.post("/api/projects", json={"name": "P", "userId": user["id"], "tasks": ["b" * 32]})

        assert response.status_code == 400
        assert response.json()["message"] == "Task not found"

    def test_project_filter_by_owner(self, client):
        first = _create_user(client)
        second = _create_user(client, name="Grace Hopper", email="grace@example.com")
        client.post("/api/projects", json={"name": "A", "userId": first["id"]})
        client.post("/api/projects", json={"name": "B", "userId": second["id"]})

        body = client.get("/api/projects", params={"userId": second["id"]}).json()

        assert [p["name"] for p in body["data"]] == ["B"]
