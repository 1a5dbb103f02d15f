"""Request/response schemas for task endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class TaskWrite(_CamelModel):
    """Body for create and full update."""

    title: str = Field(..., min_length=1, max_length=512, description="Task title")
    description: str | None = Field(default=None, description="Optional description")
    due_date: datetime = Field(..., description="ISO 8601 due date")
    status: str | None = Field(default=None, max_length=64, description="Task status")
    priority: str = Field(..., min_length=1, max_length=64, description="Task priority")


class TaskOut(_CamelModel):
    """Stored task."""

    task_id: int
    title: str
    description: str = ""
    due_date: datetime
    status: str
    priority: str


class TaskListResponse(_CamelModel):
    """Paginated task listing."""

    tasks: list[TaskOut]
    total_tasks: int
    total_pages: int
    current_page: int


class TaskDeletedResponse(BaseModel):
    message: str = "Task deleted successfully"


class TaskCompletedResponse(BaseModel):
    success: bool = True
    message: str = "Task marked as completed"
    task: TaskOut


class BulkImportResponse(_CamelModel):
    """Successful bulk import."""

    success: bool = True
    imported_count: int
    tasks: list[TaskOut]
    message: str
