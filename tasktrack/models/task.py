"""ORM model for task records."""

from sqlalchemy import Column, DateTime, Integer, String, Text

from tasktrack.models.base import Base


class Task(Base):
    """
    A task with a sequential public task_id.

    task_id is assigned as max(task_id) + 1 by TaskStore; the unique index
    rejects a racing duplicate.
    """

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Integer, nullable=False, unique=True, index=True)
    title = Column(String(512), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    due_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(64), nullable=False, default="pending")
    priority = Column(String(64), nullable=False, default="medium")
