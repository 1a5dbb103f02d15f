"""Domain services: sessions, credentials and tasks."""
