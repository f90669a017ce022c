"""Task 기능 API 라우터입니다. 요청을 검증하고 서비스 레이어로 비즈니스 로직을 위임합니다."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
from app.config import settings
from app.database import get_db
from app.schemas.task import (
    KanbanMove,
    PriorityUpdate,
    StatusUpdate,
    TaskBatchCreate,
    TaskCreate,
    TaskGenerateRequest,
    TaskUpdate,
    TimeWindowUpdate,
)
from app.services import task_ai_service, task_query_service, task_service
from app.services.task_query_service import ALL, SCHEDULED, PageWindow, TaskFilters
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.utils.helpers import parse_datetime_param
from app.utils.permissions import actions_allowed
from app.utils.task_state import COMPLETED, IN_PROGRESS, TODO, UNSCHEDULED

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

SCHEDULED_FILTERS = (ALL, SCHEDULED, UNSCHEDULED)


def _window(page: Optional[int], limit: Optional[int]) -> PageWindow:
    return PageWindow(
        page=page or settings.TASK_DEFAULT_PAGE,
        limit=limit or settings.TASK_DEFAULT_PAGE_LIMIT,
    )


def _ok(message: str, data=None) -> dict:
    body = {"message": message, "success": True}
    if data is not None:
        body["data"] = data
    return body


@router.post("/manual")
def create_manual_task(
    data: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = task_service.create_task(db, data, current_user)
    return _ok("Task created successfully", task_service.serialize_task(task))


@router.post("/batch")
def save_task_list(
    data: TaskBatchCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not data.tasks:
        raise HTTPException(status_code=400, detail="No tasks provided")
    tasks = task_service.create_tasks(db, data.tasks, current_user)
    return _ok("Tasks saved successfully", [task_service.serialize_task(t) for t in tasks])


@router.post("/generate")
def generate_tasks(
    req: TaskGenerateRequest,
    current_user: User = Depends(get_current_user),
):
    try:
        tasks = task_ai_service.generate_tasks(req.prompt, req.date, current_user.id)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"AI service error: {str(e)}")
    return _ok("Tasks generated successfully", tasks)


@router.get("")
async def list_tasks(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    scheduled: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    todo_page: Optional[int] = Query(None, alias="todoPage", ge=1, le=settings.TASK_MAX_PAGE),
    todo_limit: Optional[int] = Query(None, alias="todoLimit", ge=1, le=settings.TASK_MAX_PAGE_LIMIT),
    inprogress_page: Optional[int] = Query(None, alias="inprogressPage", ge=1, le=settings.TASK_MAX_PAGE),
    inprogress_limit: Optional[int] = Query(None, alias="inprogressLimit", ge=1, le=settings.TASK_MAX_PAGE_LIMIT),
    completed_page: Optional[int] = Query(None, alias="completedPage", ge=1, le=settings.TASK_MAX_PAGE),
    completed_limit: Optional[int] = Query(None, alias="completedLimit", ge=1, le=settings.TASK_MAX_PAGE_LIMIT),
    unscheduled_page: Optional[int] = Query(None, alias="unscheduledPage", ge=1, le=settings.TASK_MAX_PAGE),
    unscheduled_limit: Optional[int] = Query(None, alias="unscheduledLimit", ge=1, le=settings.TASK_MAX_PAGE_LIMIT),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scheduled = scheduled or ALL
    if scheduled not in SCHEDULED_FILTERS:
        raise HTTPException(status_code=400, detail=f"Invalid scheduled filter: {scheduled}")
    filters = TaskFilters(
        search=search,
        category=category,
        priority=priority,
        scheduled=scheduled,
        date_from=parse_datetime_param(date_from, "dateFrom"),
        date_to=parse_datetime_param(date_to, "dateTo"),
        windows={
            TODO: _window(todo_page, todo_limit),
            IN_PROGRESS: _window(inprogress_page, inprogress_limit),
            COMPLETED: _window(completed_page, completed_limit),
            UNSCHEDULED: _window(unscheduled_page, unscheduled_limit),
        },
    )
    return await task_query_service.list_task_buckets(db.get_bind(), current_user.id, filters)


@router.get("/by-date")
def list_tasks_by_date(
    date: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    day = parse_datetime_param(date, "date")
    if day is None:
        raise HTTPException(status_code=400, detail="Date is required")
    tasks = task_query_service.list_tasks_for_day(db, current_user.id, day)
    if not tasks:
        return _ok("No tasks found", [])
    return _ok("Tasks retrieved successfully", [task_service.serialize_task(t) for t in tasks])


@router.get("/calendar")
def list_calendar_tasks(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    start = parse_datetime_param(start_date, "startDate")
    end = parse_datetime_param(end_date, "endDate")
    if start is None or end is None:
        raise HTTPException(status_code=400, detail="startDate and endDate are required")
    if end < start:
        raise HTTPException(status_code=400, detail="endDate must not be before startDate")
    tasks = task_query_service.list_calendar_tasks(db, current_user.id, start, end)
    return _ok("Tasks retrieved successfully", [task_service.serialize_task(t) for t in tasks])


@router.get("/{task_id}")
def get_task(task_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    task = task_service.get_task(db, task_id, current_user)
    data = task_service.serialize_task(task)
    data["allowedActions"] = actions_allowed(task, current_user)
    return _ok("Task retrieved successfully", data)


@router.put("/{task_id}")
def update_task(
    task_id: str,
    data: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = task_service.update_task(db, task_id, data, current_user)
    return _ok("Task updated successfully", task_service.serialize_task(task))


@router.delete("/{task_id}")
def delete_task(task_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    task_service.delete_task(db, task_id, current_user)
    return _ok("Task deleted successfully")


@router.patch("/{task_id}/priority")
def update_priority(
    task_id: str,
    data: PriorityUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = task_service.set_priority(db, task_id, data.priority, current_user)
    return _ok("Task priority updated successfully", task_service.serialize_task(task))


@router.patch("/{task_id}/complete")
def toggle_complete(task_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    task = task_service.toggle_completion(db, task_id, current_user)
    return _ok("Task completion updated successfully", task_service.serialize_task(task))


@router.patch("/{task_id}/status")
def update_status(
    task_id: str,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = task_service.set_status(db, task_id, data.status, current_user)
    return _ok("Task status updated successfully", task_service.serialize_task(task))


@router.patch("/{task_id}/kanban")
def move_kanban(
    task_id: str,
    data: KanbanMove,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = task_service.move_kanban(db, task_id, data, current_user)
    return _ok("Task moved successfully", task_service.serialize_task(task))


@router.patch("/{task_id}/times")
def update_times(
    task_id: str,
    data: TimeWindowUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = task_service.set_time_window(db, task_id, data, current_user)
    return _ok("Task times updated successfully", task_service.serialize_task(task))
