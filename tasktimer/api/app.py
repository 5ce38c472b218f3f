"""FastAPI web application for tasktimer."""

import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Dict, Iterator, List, Optional

from fastapi import Body, Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import Field
from sqlalchemy.orm import Session

from tasktimer.database.category_repository import CategoryRepository
from tasktimer.database.database import Database, iter_session
from tasktimer.database.kv_store import SqlKeyValueStore
from tasktimer.database.task_repository import TaskRepository
from tasktimer.database.timer_repository import TimerRepository, project_timer
from tasktimer.engine.timekeeping import due_by_today, is_over_target, live_elapsed, now_ms, sort_tasks
from tasktimer.engine.validation import parse_payload
from tasktimer.errors import (
    ConflictError,
    NotFoundError,
    NotRunningError,
    StoreUnavailableError,
    ValidationError,
)
from tasktimer.models.base import CamelModel, CamelPatch
from tasktimer.models.category import Category
from tasktimer.models.task import Task
from tasktimer.models.timer import Timer

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the store connection for the life of the process."""
    database = Database()
    database.connect()
    database.init_schema()
    app.state.database = database
    try:
        yield
    finally:
        database.disconnect()


# Initialize FastAPI app
app = FastAPI(
    title="tasktimer API",
    description="Tasks, categories and accumulating work timers",
    version=API_VERSION,
    lifespan=lifespan,
)


# Response models
class TaskView(Task):
    """Task plus read-time projections (never persisted)."""
    live_elapsed_time: float
    over_target: bool

    @classmethod
    def from_task(cls, task: Task, now: int) -> "TaskView":
        return cls(
            **task.model_dump(),
            live_elapsed_time=live_elapsed(task, now),
            over_target=is_over_target(task, now),
        )


class ReorderRequest(CamelPatch):
    """Ordered task ids for one grouping."""
    task_ids: List[str] = Field(default_factory=list)


class ReorderResponse(CamelModel):
    updated: List[str]
    skipped: List[str]


# Dependencies
def get_db(request: Request) -> Iterator[Session]:
    """Get database session (dependency for FastAPI)."""
    database: Database = request.app.state.database
    yield from iter_session(database)


def get_store(db: Session = Depends(get_db)) -> SqlKeyValueStore:
    return SqlKeyValueStore(db)


def get_task_repository(store: SqlKeyValueStore = Depends(get_store)) -> TaskRepository:
    return TaskRepository(store)


def get_category_repository(store: SqlKeyValueStore = Depends(get_store)) -> CategoryRepository:
    return CategoryRepository(store)


def get_timer_repository(
    store: SqlKeyValueStore = Depends(get_store),
    tasks: TaskRepository = Depends(get_task_repository),
) -> TimerRepository:
    return TimerRepository(store, tasks)


# Error mapping
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"errors": exc.errors})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(NotRunningError)
async def not_running_handler(request: Request, exc: NotRunningError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "expected": exc.expected, "actual": exc.actual},
    )


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Store unavailable; retry later"})


def _view(task: Task) -> TaskView:
    return TaskView.from_task(task, now_ms())


def _parse_if_match(if_match: Optional[str]) -> Optional[int]:
    if if_match is None:
        return None
    try:
        return int(if_match.strip().strip('"'))
    except ValueError:
        raise HTTPException(status_code=400, detail="If-Match must be an integer version")


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": API_VERSION}


# Tasks
@app.get("/tasks", response_model=List[TaskView], response_model_exclude_none=True)
def list_tasks(status: str = "all", tasks: TaskRepository = Depends(get_task_repository)):
    """List tasks sorted by deadline then manual order."""
    if status == "active":
        found = tasks.get_active()
    elif status == "completed":
        found = tasks.get_completed()
    elif status == "all":
        found = tasks.get_all()
    else:
        raise HTTPException(status_code=400, detail="status must be one of: active, completed, all")
    return [_view(task) for task in sort_tasks(found)]


@app.get("/tasks/today", response_model=List[TaskView], response_model_exclude_none=True)
def list_tasks_due_today(tasks: TaskRepository = Depends(get_task_repository)):
    """Active tasks due today or overdue."""
    return [_view(task) for task in due_by_today(tasks.get_all(), date.today())]


@app.post("/tasks", response_model=TaskView, status_code=201, response_model_exclude_none=True)
def create_task(
    payload: Dict[str, Any] = Body(...),
    tasks: TaskRepository = Depends(get_task_repository),
):
    return _view(tasks.create(payload))


@app.put("/tasks/reorder", response_model=ReorderResponse)
def reorder_tasks(
    payload: Dict[str, Any] = Body(...),
    tasks: TaskRepository = Depends(get_task_repository),
):
    body = parse_payload(ReorderRequest, payload)
    result = tasks.reorder(body.task_ids)
    return ReorderResponse(updated=result.updated, skipped=result.skipped)


@app.get("/tasks/{task_id}", response_model=TaskView, response_model_exclude_none=True)
def get_task(task_id: str, tasks: TaskRepository = Depends(get_task_repository)):
    task = tasks.get(task_id)
    if task is None:
        raise NotFoundError("Task", task_id)
    return _view(task)


@app.put("/tasks/{task_id}", response_model=TaskView, response_model_exclude_none=True)
def update_task(
    task_id: str,
    payload: Dict[str, Any] = Body(...),
    if_match: Optional[str] = Header(None),
    tasks: TaskRepository = Depends(get_task_repository),
):
    expected_version = _parse_if_match(if_match)
    return _view(tasks.update(task_id, payload, expected_version=expected_version))


@app.delete("/tasks/{task_id}", status_code=204)
def delete_task(task_id: str, tasks: TaskRepository = Depends(get_task_repository)):
    tasks.delete(task_id)
    return Response(status_code=204)


@app.post("/tasks/{task_id}/complete", response_model=TaskView, response_model_exclude_none=True)
def complete_task(task_id: str, tasks: TaskRepository = Depends(get_task_repository)):
    return _view(tasks.complete(task_id))


@app.post("/tasks/{task_id}/reopen", response_model=TaskView, response_model_exclude_none=True)
def reopen_task(task_id: str, tasks: TaskRepository = Depends(get_task_repository)):
    return _view(tasks.reopen(task_id))


# Timers
@app.get("/tasks/{task_id}/timer", response_model=Timer, response_model_exclude_none=True)
def get_timer(
    task_id: str,
    tasks: TaskRepository = Depends(get_task_repository),
    timers: TimerRepository = Depends(get_timer_repository),
):
    timer = timers.get_timer(task_id)
    if timer is not None:
        return timer
    task = tasks.get(task_id)
    if task is None:
        raise NotFoundError("Task", task_id)
    return project_timer(task)


@app.post("/tasks/{task_id}/timer/start", response_model=Timer, response_model_exclude_none=True)
def start_timer(task_id: str, timers: TimerRepository = Depends(get_timer_repository)):
    return timers.start(task_id)


@app.post("/tasks/{task_id}/timer/stop", response_model=Timer, response_model_exclude_none=True)
def stop_timer(task_id: str, timers: TimerRepository = Depends(get_timer_repository)):
    return timers.stop(task_id)


@app.post("/tasks/{task_id}/timer/reset", response_model=Timer, response_model_exclude_none=True)
def reset_timer(task_id: str, timers: TimerRepository = Depends(get_timer_repository)):
    return timers.reset(task_id)


# Categories
@app.get("/categories", response_model=List[Category])
def list_categories(categories: CategoryRepository = Depends(get_category_repository)):
    return sorted(categories.get_all(), key=lambda c: (c.order, c.created_at))


@app.post("/categories", response_model=Category, status_code=201)
def create_category(
    payload: Dict[str, Any] = Body(...),
    categories: CategoryRepository = Depends(get_category_repository),
):
    return categories.create(payload)


@app.get("/categories/{category_id}", response_model=Category)
def get_category(category_id: str, categories: CategoryRepository = Depends(get_category_repository)):
    category = categories.get(category_id)
    if category is None:
        raise NotFoundError("Category", category_id)
    return category


@app.put("/categories/{category_id}", response_model=Category)
def update_category(
    category_id: str,
    payload: Dict[str, Any] = Body(...),
    categories: CategoryRepository = Depends(get_category_repository),
):
    return categories.update(category_id, payload)


@app.delete("/categories/{category_id}", status_code=204)
def delete_category(
    category_id: str,
    categories: CategoryRepository = Depends(get_category_repository),
    tasks: TaskRepository = Depends(get_task_repository),
):
    """Delete a category and move its tasks to uncategorized."""
    categories.delete(category_id)
    tasks.clear_category(category_id)
    return Response(status_code=204)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
