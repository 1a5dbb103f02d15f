"""Core app configuration and database."""

from tasktrack.core.config import get_settings, settings
from tasktrack.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
