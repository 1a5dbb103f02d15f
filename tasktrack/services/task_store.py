"""Task persistence: CRUD, paginated search and bulk import."""

import logging
import math
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from tasktrack.core.errors import BadRequestError, NotFoundError
from tasktrack.models import Task
from tasktrack.schemas.task import TaskWrite

logger = logging.getLogger(__name__)

DEFAULT_STATUS = "pending"
COMPLETED_STATUS = "Completed"
BULK_DEFAULT_STATUS = "Pending"

# Public (camelCase) sort keys -> columns.
SORTABLE_COLUMNS = {
    "taskId": Task.task_id,
    "title": Task.title,
    "dueDate": Task.due_date,
    "status": Task.status,
    "priority": Task.priority,
}

_datetime_adapter = TypeAdapter(datetime)


class BulkImportError(Exception):
    """
    Raised when a bulk import batch is rejected before any insert.

    details holds the extra response keys (details, duplicates, existingTitles).
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


def parse_task_id(raw: str) -> int:
    """Path ids must be plain ASCII digits; anything else is a 400."""
    if not raw or not raw.isascii() or not raw.isdigit():
        raise BadRequestError("Invalid task ID format")
    return int(raw)


class TaskStore:
    """Task table access over a SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _next_task_id(self) -> int:
        current = self.db.query(func.max(Task.task_id)).scalar()
        return (current or 0) + 1

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def get(self, task_id: int) -> Task:
        task = self.db.query(Task).filter(Task.task_id == task_id).first()
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def create(self, data: TaskWrite) -> Task:
        task = Task(
            task_id=self._next_task_id(),
            title=data.title,
            description=data.description or "",
            due_date=data.due_date,
            status=data.status or DEFAULT_STATUS,
            priority=data.priority,
        )
        self.db.add(task)
        self._commit()
        self.db.refresh(task)
        return task

    def update(self, task_id: int, data: TaskWrite) -> Task:
        task = self.get(task_id)
        task.title = data.title
        task.description = data.description or ""
        task.due_date = data.due_date
        if data.status:
            task.status = data.status
        task.priority = data.priority
        self._commit()
        self.db.refresh(task)
        return task

    def delete(self, task_id: int) -> None:
        task = self.get(task_id)
        self.db.delete(task)
        self._commit()

    def mark_complete(self, task_id: int) -> Task:
        task = self.get(task_id)
        task.status = COMPLETED_STATUS
        self._commit()
        self.db.refresh(task)
        return task

    def list_tasks(
        self,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "taskId",
        sort_order: str = "asc",
        search: str | None = None,
    ) -> tuple[list[Task], int, int]:
        """
        Return (tasks, total_tasks, total_pages) for one page.

        search matches title or description, case-insensitive.
        """
        column = SORTABLE_COLUMNS.get(sort_by)
        if column is None:
            raise BadRequestError(
                f"Invalid sortBy; expected one of {', '.join(SORTABLE_COLUMNS)}"
            )
        query = self.db.query(Task)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(Task.title.ilike(pattern), Task.description.ilike(pattern))
            )
        total = query.count()
        order = column.asc() if sort_order == "asc" else column.desc()
        tasks = query.order_by(order).offset((page - 1) * limit).limit(limit).all()
        return tasks, total, math.ceil(total / limit)

    def bulk_import(self, items: list[Any]) -> list[Task]:
        """
        Validate and insert a batch of raw task dicts.

        Nothing is written unless every item is valid, titles are unique in the
        batch and no title already exists.
        """
        to_import: list[dict[str, Any]] = []
        errors: list[str] = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                errors.append(f"Task at index {index}: Expected an object")
                continue
            title = item.get("title")
            if not title or not isinstance(title, str) or not title.strip():
                errors.append(f"Task at index {index}: Title is required")
                continue
            if not item.get("dueDate"):
                errors.append(f"Task at index {index}: Due date is required")
                continue
            if not item.get("priority"):
                errors.append(f"Task at index {index}: Priority must be Low, Medium, or High")
                continue
            try:
                due_date = _datetime_adapter.validate_python(item["dueDate"])
            except ValidationError:
                errors.append(f"Task at index {index}: Invalid due date")
                continue
            description = item.get("description")
            to_import.append(
                {
                    "title": title.strip(),
                    "description": description.strip() if isinstance(description, str) else "",
                    "due_date": due_date,
                    "status": item.get("status") or BULK_DEFAULT_STATUS,
                    "priority": str(item["priority"]),
                }
            )

        if errors:
            raise BulkImportError("Validation errors", {"details": errors})

        seen: set[str] = set()
        batch_duplicates: list[str] = []
        for entry in to_import:
            if entry["title"] in seen and entry["title"] not in batch_duplicates:
                batch_duplicates.append(entry["title"])
            seen.add(entry["title"])
        if batch_duplicates:
            raise BulkImportError(
                "Duplicate titles in import batch", {"duplicates": batch_duplicates}
            )

        existing = [
            row.title
            for row in self.db.query(Task.title).filter(Task.title.in_(sorted(seen))).all()
        ]
        if existing:
            raise BulkImportError(
                "Some tasks already exist",
                {
                    "existingTitles": existing,
                    "message": f"These tasks already exist: {', '.join(existing)}",
                },
            )

        next_id = self._next_task_id()
        tasks = []
        for offset, entry in enumerate(to_import):
            tasks.append(Task(task_id=next_id + offset, **entry))
        self.db.add_all(tasks)
        self._commit()
        for task in tasks:
            self.db.refresh(task)
        logger.info("Bulk import completed", extra={"imported_count": len(tasks)})
        return tasks
