"""Task CRUD, listing, completion and bulk import."""

import logging
from typing import Annotated, Any, Literal

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from tasktrack.api.v1.auth import SettingsDep, require_user
from tasktrack.core.database import get_db
from tasktrack.core.errors import BadRequestError, server_error
from tasktrack.schemas.auth import CurrentUser
from tasktrack.schemas.task import (
    BulkImportResponse,
    TaskCompletedResponse,
    TaskDeletedResponse,
    TaskListResponse,
    TaskOut,
    TaskWrite,
)
from tasktrack.services.task_store import BulkImportError, TaskStore, parse_task_id

logger = logging.getLogger(__name__)
router = APIRouter()

UserDep = Annotated[CurrentUser | None, Depends(require_user)]


def get_task_store(db: Annotated[Session, Depends(get_db)]) -> TaskStore:
    return TaskStore(db)


StoreDep = Annotated[TaskStore, Depends(get_task_store)]


@router.post("/", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(body: TaskWrite, store: StoreDep, _user: UserDep) -> TaskOut:
    with server_error("Server error while creating task."):
        task = store.create(body)
    return TaskOut.model_validate(task)


@router.get("/", response_model=TaskListResponse)
def list_tasks(
    store: StoreDep,
    _user: UserDep,
    settings: SettingsDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1)] = 10,
    sort_by: Annotated[str, Query(alias="sortBy")] = "taskId",
    sort_order: Annotated[Literal["asc", "desc"], Query(alias="sortOrder")] = "asc",
    search: Annotated[str | None, Query(max_length=255)] = None,
) -> TaskListResponse:
    """
    Page through tasks, optionally filtered by a case-insensitive search
    over title and description.
    """
    max_limit = settings.TASK_PAGE_SIZE_MAX
    if limit > max_limit:
        raise BadRequestError(f"limit must be at most {max_limit}")
    with server_error("Server error while listing tasks."):
        tasks, total, pages = store.list_tasks(
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
            search=search,
        )
    return TaskListResponse(
        tasks=[TaskOut.model_validate(t) for t in tasks],
        total_tasks=total,
        total_pages=pages,
        current_page=page,
    )


@router.post(
    "/bulk-import",
    response_model=BulkImportResponse,
    status_code=status.HTTP_201_CREATED,
)
def bulk_import(
    store: StoreDep,
    _user: UserDep,
    body: Annotated[Any, Body()] = None,
) -> BulkImportResponse | JSONResponse:
    """Import a JSON array of tasks; all-or-nothing."""
    if not isinstance(body, list):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "error": "Invalid format: Expected an array of tasks",
            },
        )
    try:
        with server_error("Server error during bulk import."):
            tasks = store.bulk_import(body)
    except BulkImportError as e:
        logger.info("Bulk import rejected", extra={"reason": e.message})
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": e.message, **e.details},
        )
    return BulkImportResponse(
        imported_count=len(tasks),
        tasks=[TaskOut.model_validate(t) for t in tasks],
        message=f"Successfully imported {len(tasks)} tasks",
    )


@router.get("/{task_id}", response_model=TaskOut)
def get_task(task_id: str, store: StoreDep, _user: UserDep) -> TaskOut:
    task_number = parse_task_id(task_id)
    with server_error("Server error while fetching task."):
        task = store.get(task_number)
    return TaskOut.model_validate(task)


@router.put("/{task_id}", response_model=TaskOut)
def update_task(task_id: str, body: TaskWrite, store: StoreDep, _user: UserDep) -> TaskOut:
    task_number = parse_task_id(task_id)
    with server_error("Server error while updating task."):
        task = store.update(task_number, body)
    return TaskOut.model_validate(task)


@router.delete("/{task_id}", response_model=TaskDeletedResponse)
def delete_task(task_id: str, store: StoreDep, _user: UserDep) -> TaskDeletedResponse:
    task_number = parse_task_id(task_id)
    with server_error("Server error while deleting task."):
        store.delete(task_number)
    return TaskDeletedResponse()


@router.patch("/{task_id}/complete", response_model=TaskCompletedResponse)
def complete_task(task_id: str, store: StoreDep, _user: UserDep) -> TaskCompletedResponse:
    task_number = parse_task_id(task_id)
    with server_error("Server error while completing task."):
        task = store.mark_complete(task_number)
    return TaskCompletedResponse(task=TaskOut.model_validate(task))
