"""Tasktrack: task records behind cookie-refreshed JWT sessions."""

__version__ = "0.1.0"
