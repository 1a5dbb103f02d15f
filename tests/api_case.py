"""Shared TestCase that builds a fresh app and schema per test."""

import unittest
from typing import Any

from fastapi.testclient import TestClient

from tasktrack.core.config import Settings
from tasktrack.core.database import engine
from tasktrack.main import create_app
from tasktrack.models import Base

# Secure cookies are only sent back over https.
BASE_URL = "https://testserver"


class ApiTestCase(unittest.TestCase):
    settings_overrides: dict[str, Any] = {}

    def setUp(self) -> None:
        Base.metadata.create_all(engine)
        self.settings = Settings(**self.settings_overrides)
        self.app = create_app(self.settings)
        self.client = TestClient(self.app, base_url=BASE_URL)

    def tearDown(self) -> None:
        self.client.close()
        Base.metadata.drop_all(engine)

    def register(
        self,
        username: str = "alice",
        pwd: str = "secret1",
        email: str = "a@x.com",
    ):
        return self.client.post(
            "/api/auth/register",
            json={"username": username, "pwd": pwd, "email": email},
        )

    def login(self, email: str = "a@x.com", pwd: str = "secret1"):
        return self.client.post("/api/auth/login", json={"email": email, "pwd": pwd})

    def use_refresh_cookie(self, token: str) -> None:
        """Replace the client's cookie jar with a single jwt cookie."""
        self.client.cookies.clear()
        self.client.cookies.set("jwt", token)
