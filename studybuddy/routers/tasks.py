from datetime import date
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import NotFoundFailure, ValidationFailure
from ..models import Task as TaskModel, User
from ..responses import envelope, is_json_request, parse_payload, read_payload, redirect, render
from ..schemas.task import TaskCreate, TaskRead, TaskStatusUpdate, TaskUpdate
from ..schemas.user import User as UserSchema
from ..services.calendar import date_key, day_status_map, day_window, group_by_day
from ..services.retention import sweep_expired_tasks
from ..services.task_store import TaskStore
from .auth import get_current_user

router = APIRouter()


def get_task_store(db: Session = Depends(get_db)) -> TaskStore:
    """Dependency for getting TaskStore instance."""
    return TaskStore(db)


def get_swept_user(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    """Authenticated user, after their expired tasks have been removed."""
    sweep_expired_tasks(db, current_user.id)
    return current_user


def _valid_task_id(task_id: str) -> str:
    try:
        UUID(task_id)
    except ValueError:
        raise ValidationFailure("Invalid Task ID")
    return task_id


def _serialize(tasks: List[TaskModel]) -> List[TaskRead]:
    return [TaskRead.model_validate(task) for task in tasks]


@router.get("", response_class=HTMLResponse)
def dashboard(
    request: Request,
    current_user: User = Depends(get_swept_user),
    store: TaskStore = Depends(get_task_store),
):
    """Dashboard: every task of the user, earliest first, overdue ones marked missed."""
    tasks = _serialize(store.mark_missed(store.list_by_owner(current_user.id)))
    user = UserSchema.model_validate(current_user)
    if is_json_request(request):
        return envelope(tasks=tasks, user=user)
    return render(request, "dashboard.html", {"user": user, "tasks": tasks})


@router.get("/calendar", response_class=HTMLResponse)
def calendar(
    request: Request,
    current_user: User = Depends(get_swept_user),
    store: TaskStore = Depends(get_task_store),
):
    """Monthly calendar: one severity colour per day that has tasks."""
    tasks = store.mark_missed(store.list_by_owner(current_user.id, ordered=False))
    days = day_status_map(tasks)
    if is_json_request(request):
        return envelope(days=days)
    task_map = {
        day: [{"status": s.value} for s in statuses]
        for day, statuses in group_by_day(tasks).items()
    }
    return render(request, "calendar.html", {"days": days, "taskMap": task_map})


@router.get("/day/{day}", response_class=HTMLResponse)
def day_view(
    request: Request,
    day: str,
    current_user: User = Depends(get_swept_user),
    store: TaskStore = Depends(get_task_store),
):
    """Tasks scheduled on one UTC calendar date (``YYYY-MM-DD``)."""
    try:
        parsed = date.fromisoformat(day)
    except ValueError:
        raise ValidationFailure("Invalid date, expected YYYY-MM-DD")

    start, end = day_window(parsed)
    tasks = _serialize(store.mark_missed(store.list_in_range(current_user.id, start, end)))
    if is_json_request(request):
        return envelope(date=parsed.isoformat(), tasks=tasks)
    return render(request, "day.html", {"date": parsed.isoformat(), "tasks": tasks})


@router.post("/create")
async def create_task(
    request: Request,
    current_user: User = Depends(get_swept_user),
    store: TaskStore = Depends(get_task_store),
):
    """Create a new pending task."""
    data = parse_payload(TaskCreate, await read_payload(request))
    task = store.create(
        user_id=current_user.id,
        title=data.title,
        description=data.description,
        scheduled_for=data.scheduled_for,
    )
    if is_json_request(request):
        return envelope(
            status_code=status.HTTP_201_CREATED,
            task=TaskRead.model_validate(task),
            message="Task created successfully",
        )
    return redirect("/tasks")


@router.get("/{task_id}")
def get_task(
    task_id: str,
    current_user: User = Depends(get_swept_user),
    store: TaskStore = Depends(get_task_store),
):
    """Get a specific task by ID (used by the edit form)."""
    task = store.get(_valid_task_id(task_id), current_user.id)
    if task is None:
        raise NotFoundFailure("Task not found")
    return envelope(task=TaskRead.model_validate(task))


@router.put("/{task_id}")
async def update_task(
    request: Request,
    task_id: str,
    current_user: User = Depends(get_swept_user),
    store: TaskStore = Depends(get_task_store),
):
    """Full edit. The status is re-derived from the scheduled time."""
    task_id = _valid_task_id(task_id)
    data = parse_payload(TaskUpdate, await read_payload(request))
    task = store.update(
        task_id,
        current_user.id,
        title=data.title,
        description=data.description,
        status=data.status,
        scheduled_for=data.scheduled_for,
    )
    if is_json_request(request):
        return envelope(task=TaskRead.model_validate(task), message="Task updated successfully")
    return redirect(f"/tasks/day/{date_key(task.scheduled_for)}")


@router.post("/{task_id}/status")
async def update_task_status(
    request: Request,
    task_id: str,
    current_user: User = Depends(get_swept_user),
    store: TaskStore = Depends(get_task_store),
):
    """Set the status directly, without re-deriving it."""
    task_id = _valid_task_id(task_id)
    data = parse_payload(TaskStatusUpdate, await read_payload(request))
    task = store.update_status(task_id, current_user.id, data.status)
    if is_json_request(request):
        return envelope(task=TaskRead.model_validate(task), message="Task status updated successfully")
    return redirect("/tasks")


@router.delete("/{task_id}")
def delete_task(
    request: Request,
    task_id: str,
    current_user: User = Depends(get_swept_user),
    store: TaskStore = Depends(get_task_store),
):
    """Delete a specific task."""
    store.delete(_valid_task_id(task_id), current_user.id)
    if is_json_request(request):
        return envelope(message="Task deleted successfully")
    return redirect("/tasks")
