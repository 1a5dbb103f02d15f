"""Test environment: token secrets and a shared in-memory SQLite database.

Set before any tasktrack module is imported, since settings and the engine
are built at import time.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret-with-at-least-32-bytes")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret-with-at-least-32-bytes")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("APP_ENV", "dev")
