"""End-to-end tests for /api/tasks, including the Bearer token requirement."""

from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from tests.api_case import BASE_URL, ApiTestCase

TASK = {"title": "Write report", "dueDate": "2026-12-01T09:00:00Z", "priority": "high"}


class TasksApiTestCase(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        token = self.register().json()["accessToken"]
        self.client.headers["Authorization"] = f"Bearer {token}"

    def create(self, **overrides: object) -> dict:
        resp = self.client.post("/api/tasks/", json={**TASK, **overrides})
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()


class TestTaskCrud(TasksApiTestCase):
    def test_create_and_get(self) -> None:
        created = self.create(description="Q3")
        self.assertEqual(created["taskId"], 1)
        self.assertEqual(created["status"], "pending")
        self.assertTrue(created["dueDate"].startswith("2026-12-01"))

        resp = self.client.get("/api/tasks/1")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["description"], "Q3")

    def test_create_requires_title_due_date_priority(self) -> None:
        resp = self.client.post("/api/tasks/", json={"title": "x"})
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post("/api/tasks/", json={**TASK, "dueDate": "soon"})
        self.assertEqual(resp.status_code, 400)

    def test_update(self) -> None:
        self.create()
        resp = self.client.put("/api/tasks/1", json={**TASK, "title": "Renamed", "status": "doing"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["title"], "Renamed")
        self.assertEqual(resp.json()["status"], "doing")

    def test_delete(self) -> None:
        self.create()
        resp = self.client.delete("/api/tasks/1")
        self.assertEqual(resp.json(), {"message": "Task deleted successfully"})
        self.assertEqual(self.client.get("/api/tasks/1").status_code, 404)

    def test_complete(self) -> None:
        self.create()
        resp = self.client.patch("/api/tasks/1/complete")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["task"]["status"], "Completed")

    def test_not_found_and_bad_id(self) -> None:
        self.assertEqual(self.client.get("/api/tasks/99").json(), {"message": "Task not found"})
        resp = self.client.get("/api/tasks/abc")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"message": "Invalid task ID format"})
        for raw in ("1_000", "%207%20"):
            with self.subTest(raw=raw):
                self.assertEqual(self.client.get(f"/api/tasks/{raw}").status_code, 400)


class TestTaskListing(TasksApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        for title in ("alpha", "beta", "gamma"):
            self.create(title=title)

    def test_default_page(self) -> None:
        body = self.client.get("/api/tasks/").json()
        self.assertEqual(body["totalTasks"], 3)
        self.assertEqual(body["totalPages"], 1)
        self.assertEqual(body["currentPage"], 1)
        self.assertEqual([t["title"] for t in body["tasks"]], ["alpha", "beta", "gamma"])

    def test_sort_search_and_limit(self) -> None:
        body = self.client.get(
            "/api/tasks/", params={"sortBy": "title", "sortOrder": "desc", "limit": 2}
        ).json()
        self.assertEqual([t["title"] for t in body["tasks"]], ["gamma", "beta"])
        self.assertEqual(body["totalPages"], 2)

        body = self.client.get("/api/tasks/", params={"search": "ETA"}).json()
        self.assertEqual([t["title"] for t in body["tasks"]], ["beta"])

    def test_limit_cap(self) -> None:
        resp = self.client.get("/api/tasks/", params={"limit": 1000})
        self.assertEqual(resp.status_code, 400)


class TestBulkImportEndpoint(TasksApiTestCase):
    def test_success(self) -> None:
        resp = self.client.post(
            "/api/tasks/bulk-import",
            json=[
                {"title": "a", "dueDate": "2026-12-01", "priority": "Low"},
                {"title": "b", "dueDate": "2026-12-02", "priority": "High"},
            ],
        )
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["importedCount"], 2)
        self.assertEqual(body["message"], "Successfully imported 2 tasks")
        self.assertEqual([t["taskId"] for t in body["tasks"]], [1, 2])

    def test_not_an_array(self) -> None:
        resp = self.client.post("/api/tasks/bulk-import", json={"title": "a"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Invalid format: Expected an array of tasks")

    def test_existing_titles(self) -> None:
        self.create(title="a")
        resp = self.client.post(
            "/api/tasks/bulk-import",
            json=[{"title": "a", "dueDate": "2026-12-01", "priority": "Low"}],
        )
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["existingTitles"], ["a"])
        self.assertEqual(body["message"], "These tasks already exist: a")


class TestTaskAuth(ApiTestCase):
    def test_requires_bearer_token(self) -> None:
        resp = self.client.get("/api/tasks/")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"message": "Not authenticated"})

    def test_rejects_refresh_token_as_bearer(self) -> None:
        refresh_token = self.register().cookies["jwt"]
        resp = self.client.get(
            "/api/tasks/", headers={"Authorization": f"Bearer {refresh_token}"}
        )
        self.assertEqual(resp.status_code, 401)


class TestTaskAuthDisabled(ApiTestCase):
    settings_overrides = {"AUTH_ENABLED": False}

    def test_open_access(self) -> None:
        resp = self.client.get("/api/tasks/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["totalTasks"], 0)


class TestTaskStoreFailures(ApiTestCase):
    settings_overrides = {"AUTH_ENABLED": False}

    def setUp(self) -> None:
        super().setUp()
        self.client = TestClient(self.app, base_url=BASE_URL, raise_server_exceptions=False)

    def assert_json_500(self, resp, message: str) -> None:
        self.assertEqual(resp.status_code, 500)
        self.assertTrue(resp.headers["content-type"].startswith("application/json"))
        self.assertEqual(resp.json(), {"message": message})

    def test_list_failure(self) -> None:
        with patch(
            "tasktrack.services.task_store.TaskStore.list_tasks",
            side_effect=OperationalError("SELECT", {}, Exception("db down")),
        ):
            resp = self.client.get("/api/tasks/")
        self.assert_json_500(resp, "Server error while listing tasks.")

    def test_create_failure(self) -> None:
        with patch(
            "tasktrack.services.task_store.TaskStore.create",
            side_effect=OperationalError("INSERT", {}, Exception("db down")),
        ):
            resp = self.client.post("/api/tasks/", json=TASK)
        self.assert_json_500(resp, "Server error while creating task.")

    def test_failed_commit_leaves_store_usable(self) -> None:
        with patch(
            "sqlalchemy.orm.Session.commit",
            side_effect=OperationalError("INSERT", {}, Exception("db down")),
        ):
            resp = self.client.post("/api/tasks/", json=TASK)
        self.assert_json_500(resp, "Server error while creating task.")
        self.assertEqual(self.client.get("/api/tasks/").json()["totalTasks"], 0)
