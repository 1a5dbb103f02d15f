"""Tests for the root and health routes."""

from tests.api_case import ApiTestCase


class TestHealth(ApiTestCase):
    def test_health_reports_database(self) -> None:
        resp = self.client.get("/api/health/")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["database"], "connected")
        self.assertEqual(body["environment"], "dev")

    def test_root(self) -> None:
        self.assertEqual(self.client.get("/").json(), {"message": "Tasktrack API"})


class TestHealthUsesAppSettings(ApiTestCase):
    settings_overrides = {"APP_ENV": "prod"}

    def test_environment_comes_from_app_settings(self) -> None:
        body = self.client.get("/api/health/").json()
        self.assertEqual(body["environment"], "prod")
