"""Task Service 도메인 서비스 레이어입니다. 비즈니스 규칙과 데이터 접근 흐름을 캡슐화합니다."""

import logging
from typing import Iterable, List, Optional, Union
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from fastapi import HTTPException
from app.config import settings
from app.models.task import Task, TaskAssignment, TaskResource
from app.models.user import User
from app.schemas.task import (
    AssignedUserRef,
    KanbanMove,
    TaskCreate,
    TaskOut,
    TaskResourceIn,
    TaskUpdate,
    TimeWindowUpdate,
)
from app.utils import permissions, task_state
from app.utils.helpers import minutes_between, to_naive_utc

logger = logging.getLogger(__name__)

PRIORITIES = ("high", "medium", "low")
SCALAR_FIELDS = (
    "title", "description", "priority", "category", "tags", "order",
    "date", "start_time", "end_time", "duration",
)
STATE_FIELDS = ("completed", "scheduled", "status")
DATETIME_FIELDS = ("date", "start_time", "end_time")
NOT_NULL_FIELDS = ("title", "priority", "completed", "scheduled")


def serialize_task(task: Task) -> dict:
    return TaskOut.model_validate(task).model_dump(by_alias=True, mode="json")


def task_query(db: Session):
    return db.query(Task).options(
        selectinload(Task.resources),
        selectinload(Task.assignments).selectinload(TaskAssignment.user),
    )


def get_task(db: Session, task_id: str, current_user: User, action: str = permissions.READ) -> Task:
    task = task_query(db).filter(Task.id == task_id).first()
    if task and permissions.can_perform(task, current_user, action):
        return task
    if task:
        logger.info("[tasks] user %s is not allowed to %s task %s", current_user.id, action, task_id)
    # 존재 여부를 노출하지 않도록 권한 없음과 미존재를 같은 응답으로 처리한다.
    raise HTTPException(status_code=404, detail="Task not found")


def _assignee_ids(items: Iterable[Union[str, AssignedUserRef]]) -> List[str]:
    ids: List[str] = []
    for item in items or []:
        user_id = item.id if isinstance(item, AssignedUserRef) else str(item)
        if user_id and user_id not in ids:
            ids.append(user_id)
    return ids


def _resolve_assignees(db: Session, items) -> List[User]:
    ids = _assignee_ids(items)
    if not ids:
        return []
    users = db.query(User).filter(User.id.in_(ids)).all()
    found = {u.id for u in users}
    missing = [user_id for user_id in ids if user_id not in found]
    if missing:
        raise HTTPException(status_code=400, detail=f"Assigned user not found: {', '.join(missing)}")
    return sorted(users, key=lambda u: ids.index(u.id))


def _build_resources(items: List[TaskResourceIn]) -> List[TaskResource]:
    return [
        TaskResource(position=idx, name=r.name, type=r.type, category=r.category, url=r.url)
        for idx, r in enumerate(items or [])
    ]


def _validate_parent(db: Session, task_id: Optional[str], parent_id: str, current_user: User) -> Task:
    """부모 후보를 검증한다. 조상 사슬에 자기 자신이 있거나 깊이 제한을 넘으면 거부한다."""
    parent = db.query(Task).filter(Task.id == parent_id).first()
    if not parent or not permissions.can_perform(parent, current_user, permissions.READ):
        raise HTTPException(status_code=400, detail="Parent task not found")

    node, depth = parent, 0
    while node is not None:
        if task_id is not None and node.id == task_id:
            raise HTTPException(status_code=400, detail="A task cannot be its own ancestor")
        depth += 1
        if depth > settings.TASK_PARENT_MAX_DEPTH:
            raise HTTPException(status_code=400, detail="Task hierarchy is too deep")
        node = node.parent
    return parent


def _validate_order(order: Optional[int]):
    if order is not None and order <= 0:
        raise HTTPException(status_code=400, detail="Order must be greater than 0")


def _replace_assignments(db: Session, task: Task, users: List[User]):
    # 전체 삭제 후 재생성: 기존 배정은 diff 없이 모두 제거된다.
    task.assignments.clear()
    db.flush()
    task.assignments.extend(TaskAssignment(user_id=u.id) for u in users)


def _replace_resources(db: Session, task: Task, items: List[TaskResourceIn]):
    task.resources.clear()
    db.flush()
    task.resources.extend(_build_resources(items))


def _commit(db: Session, task: Task, action: str, status_code: int = 500) -> Task:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[tasks] store failure while %s task %s", action, task.id)
        raise HTTPException(status_code=status_code, detail=f"Error {action} task: {exc}")
    db.refresh(task)
    return task


def _build_task(db: Session, owner: User, data: TaskCreate) -> Task:
    payload = data.model_dump(include=set(SCALAR_FIELDS) | set(STATE_FIELDS))
    for field in DATETIME_FIELDS:
        payload[field] = to_naive_utc(payload[field])
    _validate_order(payload.get("order"))
    if payload.get("order") is None:
        payload["order"] = settings.TASK_DEFAULT_KANBAN_ORDER

    task = Task(user_id=owner.id, **payload)
    if data.parent_id:
        task.parent_id = _validate_parent(db, None, data.parent_id, owner).id
    task.assignments = [TaskAssignment(user_id=u.id) for u in _resolve_assignees(db, data.assigned_to)]
    task.resources = _build_resources(data.resources)
    db.add(task)
    return task


def create_task(db: Session, data: TaskCreate, current_user: User) -> Task:
    try:
        task = _build_task(db, current_user, data)
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[tasks] failed to create task for user %s", current_user.id)
        raise HTTPException(status_code=400, detail=f"Error creating task: {exc}")
    logger.info("[tasks] created task %s for user %s", task.id, current_user.id)
    return get_task(db, task.id, current_user)


def create_tasks(db: Session, items: List[TaskCreate], current_user: User) -> List[Task]:
    """여러 태스크를 한 트랜잭션으로 저장한다. 하나라도 실패하면 전체를 되돌린다."""
    try:
        tasks = [_build_task(db, current_user, item) for item in items]
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[tasks] failed to save %d tasks for user %s", len(items), current_user.id)
        raise HTTPException(status_code=400, detail=f"Error saving tasks: {exc}")
    ids = [t.id for t in tasks]
    rows = {t.id: t for t in task_query(db).filter(Task.id.in_(ids)).all()}
    return [rows[task_id] for task_id in ids]


def update_task(db: Session, task_id: str, data: TaskUpdate, current_user: User) -> Task:
    task = get_task(db, task_id, current_user, permissions.UPDATE)
    fields = data.model_fields_set
    previous = task_state.state_of(task)
    try:
        for field in SCALAR_FIELDS + STATE_FIELDS:
            if field not in fields:
                continue
            value = getattr(data, field)
            if value is None and field in NOT_NULL_FIELDS:
                continue
            if value is None and field == "order":
                value = settings.TASK_DEFAULT_KANBAN_ORDER
            if field in DATETIME_FIELDS:
                value = to_naive_utc(value)
            setattr(task, field, value)
        if "order" in fields:
            _validate_order(task.order)

        if "parent_id" in fields:
            if data.parent_id:
                task.parent_id = _validate_parent(db, task.id, data.parent_id, current_user).id
            else:
                task.parent_id = None
        if "assigned_to" in fields:
            _replace_assignments(db, task, _resolve_assignees(db, data.assigned_to or []))
        if "resources" in fields:
            _replace_resources(db, task, data.resources or [])

        current = task_state.state_of(task)
        if current != previous and task_state.clears_schedule(current):
            task_state.clear_schedule(task)
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[tasks] failed to update task %s", task_id)
        raise HTTPException(status_code=500, detail=f"Error updating task: {exc}")
    return _commit(db, task, "updating")


def delete_task(db: Session, task_id: str, current_user: User):
    task = get_task(db, task_id, current_user, permissions.DELETE)
    try:
        db.delete(task)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[tasks] failed to delete task %s", task_id)
        raise HTTPException(status_code=500, detail=f"Error deleting task: {exc}")
    logger.info("[tasks] deleted task %s", task_id)


def _transition(task: Task, target: str) -> task_state.TaskState:
    state = task_state.transition(task_state.state_of(task), target)
    task_state.apply_state(task, state)
    if task_state.clears_schedule(state):
        task_state.clear_schedule(task)
    return state


def _require_status(status: Optional[str]) -> str:
    if not status:
        raise HTTPException(status_code=400, detail="Status is required")
    if status not in task_state.STATUS_TARGETS:
        raise HTTPException(status_code=400, detail=f"Invalid status: {status}")
    return status


def set_priority(db: Session, task_id: str, priority: Optional[str], current_user: User) -> Task:
    if not priority:
        raise HTTPException(status_code=400, detail="Priority is required")
    if priority not in PRIORITIES:
        raise HTTPException(status_code=400, detail=f"Invalid priority: {priority}")
    task = get_task(db, task_id, current_user, permissions.SET_PRIORITY)
    task.priority = priority
    return _commit(db, task, "updating")


def toggle_completion(db: Session, task_id: str, current_user: User) -> Task:
    task = get_task(db, task_id, current_user, permissions.TOGGLE_COMPLETE)
    task_state.apply_state(task, task_state.toggle_completion(task_state.state_of(task)))
    return _commit(db, task, "updating")


def set_status(db: Session, task_id: str, status: Optional[str], current_user: User) -> Task:
    target = _require_status(status)
    task = get_task(db, task_id, current_user, permissions.SET_STATUS)
    _transition(task, target)
    return _commit(db, task, "updating")


def move_kanban(db: Session, task_id: str, data: KanbanMove, current_user: User) -> Task:
    target = _require_status(data.status)
    order = max(1, int(data.order or settings.TASK_DEFAULT_KANBAN_ORDER))
    task = get_task(db, task_id, current_user, permissions.KANBAN_MOVE)
    state = _transition(task, target)
    task.order = order
    if state.scheduled:
        for field in ("date", "start_time", "end_time", "duration"):
            value = getattr(data, field)
            if value is None:
                continue
            setattr(task, field, to_naive_utc(value) if field in DATETIME_FIELDS else value)
    return _commit(db, task, "moving")


def set_time_window(db: Session, task_id: str, data: TimeWindowUpdate, current_user: User) -> Task:
    if data.start_time is None or data.end_time is None or data.date is None:
        raise HTTPException(status_code=400, detail="Start time, end time and date are required")
    start_time = to_naive_utc(data.start_time)
    end_time = to_naive_utc(data.end_time)
    if end_time < start_time:
        raise HTTPException(status_code=400, detail="End time must be after start time")
    task = get_task(db, task_id, current_user, permissions.SET_TIMES)
    task.start_time = start_time
    task.end_time = end_time
    task.date = to_naive_utc(data.date)
    task.duration = data.duration if data.duration is not None else minutes_between(start_time, end_time)
    task.scheduled = True
    return _commit(db, task, "updating")
