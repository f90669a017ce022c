"""태스크 목록 조회 엔진입니다.

사용자에게 보이는 태스크(소유 또는 배정)를 todo / inprogress / completed / unscheduled 네 개 버킷으로 나누어,
버킷마다 필터, 정렬, 페이지 창을 따로 적용하고 전체 건수와 함께 반환합니다.
버킷별 조회/카운트는 서로 의존하지 않으므로 스레드 풀에서 동시에 실행하며, 각 작업은 자신의 세션을 사용합니다.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import and_, or_
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.models.task import Task, TaskAssignment
from app.services.task_service import serialize_task, task_query
from app.utils.helpers import end_of_day, start_of_day
from app.utils.task_state import BUCKETS, COMPLETED, IN_PROGRESS, TODO, UNSCHEDULED

logger = logging.getLogger(__name__)

ALL = "all"
SCHEDULED = "scheduled"

# date가 NULL인 태스크는 오름차순에서 맨 뒤, 내림차순에서 맨 앞에 둔다.
BUCKET_ORDERING = {
    TODO: (Task.date.asc().nulls_last(), Task.created_at.asc(), Task.id.asc()),
    IN_PROGRESS: (Task.date.asc().nulls_last(), Task.created_at.asc(), Task.id.asc()),
    COMPLETED: (Task.date.desc().nulls_first(), Task.created_at.desc(), Task.id.asc()),
    UNSCHEDULED: (Task.created_at.desc(), Task.id.asc()),
}


@dataclass
class PageWindow:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def default(cls) -> "PageWindow":
        return cls(page=settings.TASK_DEFAULT_PAGE, limit=settings.TASK_DEFAULT_PAGE_LIMIT)


@dataclass
class TaskFilters:
    search: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    scheduled: str = ALL
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    windows: Dict[str, PageWindow] = field(default_factory=dict)

    def window(self, bucket: str) -> PageWindow:
        return self.windows.get(bucket) or PageWindow.default()


def visibility_clause(user_id: str):
    return or_(
        Task.user_id == user_id,
        Task.assignments.any(TaskAssignment.user_id == user_id),
    )


def shared_clauses(filters: TaskFilters) -> list:
    clauses = []
    if filters.search:
        clauses.append(or_(
            Task.title.icontains(filters.search, autoescape=True),
            Task.description.icontains(filters.search, autoescape=True),
        ))
    if filters.category and filters.category != ALL:
        clauses.append(Task.category == filters.category)
    if filters.priority and filters.priority != ALL:
        clauses.append(Task.priority == filters.priority)
    return clauses


def bucket_clause(bucket: str):
    if bucket == TODO:
        return and_(
            Task.completed == False,
            Task.scheduled == True,
            or_(Task.status.is_(None), Task.status != IN_PROGRESS),
        )
    if bucket == IN_PROGRESS:
        return and_(Task.completed == False, Task.scheduled == True, Task.status == IN_PROGRESS)
    if bucket == COMPLETED:
        return Task.completed == True
    if bucket == UNSCHEDULED:
        return and_(Task.completed == False, Task.scheduled == False)
    raise ValueError(f"Unknown bucket: {bucket}")


def date_range_clauses(filters: TaskFilters, bucket: str) -> list:
    date_from = filters.date_from
    date_to = end_of_day(filters.date_to) if filters.date_to else None
    if date_from is None and date_to is None:
        return []

    in_range = []
    if date_from is not None:
        in_range.append(Task.date >= date_from)
    if date_to is not None:
        in_range.append(Task.date <= date_to)

    if bucket == UNSCHEDULED:
        # 미배정 버킷은 날짜가 없는 태스크를 항상 포함한다.
        if filters.scheduled not in (ALL, UNSCHEDULED):
            return []
        return [or_(Task.date.is_(None), and_(*in_range))]
    return in_range


def bucket_predicate(user_id: str, filters: TaskFilters, bucket: str):
    return and_(
        visibility_clause(user_id),
        *shared_clauses(filters),
        bucket_clause(bucket),
        *date_range_clauses(filters, bucket),
    )


def buckets_to_fetch(scheduled: Optional[str]) -> List[str]:
    if scheduled == UNSCHEDULED:
        return [COMPLETED, UNSCHEDULED]
    if scheduled == SCHEDULED:
        return [TODO, IN_PROGRESS, COMPLETED]
    return list(BUCKETS)


def fetch_bucket(db: Session, user_id: str, filters: TaskFilters, bucket: str) -> List[dict]:
    window = filters.window(bucket)
    rows = (
        task_query(db)
        .filter(bucket_predicate(user_id, filters, bucket))
        .order_by(*BUCKET_ORDERING[bucket])
        .offset(window.offset)
        .limit(window.limit)
        .all()
    )
    return [serialize_task(row) for row in rows]


def count_bucket(db: Session, user_id: str, filters: TaskFilters, bucket: str) -> int:
    return db.query(Task).filter(bucket_predicate(user_id, filters, bucket)).count()


def _run_isolated(bind, fn, *args):
    with Session(bind=bind) as db:
        return fn(db, *args)


async def list_task_buckets(bind: Engine | Connection, user_id: str, filters: TaskFilters) -> dict:
    """버킷별 목록과 전체 건수를 동시에 조회한다. 건너뛴 버킷은 DB를 조회하지 않고 빈 값으로 채운다."""
    requested = buckets_to_fetch(filters.scheduled)
    jobs = []
    for bucket in requested:
        jobs.append(run_in_threadpool(_run_isolated, bind, fetch_bucket, user_id, filters, bucket))
        jobs.append(run_in_threadpool(_run_isolated, bind, count_bucket, user_id, filters, bucket))
    try:
        results = await asyncio.gather(*jobs)
    except SQLAlchemyError as exc:
        logger.exception("[tasks.query] failed to list tasks for user %s", user_id)
        raise HTTPException(status_code=500, detail=f"Error fetching tasks: {exc}")

    payload: dict = {}
    for bucket in BUCKETS:
        payload[bucket] = []
        payload[f"{bucket}Total"] = 0
    for idx, bucket in enumerate(requested):
        payload[bucket] = results[idx * 2]
        payload[f"{bucket}Total"] = results[idx * 2 + 1]
    logger.debug(
        "[tasks.query] user=%s buckets=%s totals=%s",
        user_id, requested, {b: payload[f"{b}Total"] for b in requested},
    )
    return payload


def _scheduled_in_range(db: Session, user_id: str, start: datetime, end: datetime) -> List[Task]:
    try:
        return (
            task_query(db)
            .filter(
                visibility_clause(user_id),
                Task.scheduled == True,
                Task.date >= start,
                Task.date <= end,
            )
            .order_by(Task.date.asc(), Task.start_time.asc(), Task.created_at.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception("[tasks.query] failed to list scheduled tasks for user %s", user_id)
        raise HTTPException(status_code=500, detail=f"Error fetching tasks: {exc}")


def list_tasks_for_day(db: Session, user_id: str, day: datetime) -> List[Task]:
    return _scheduled_in_range(db, user_id, start_of_day(day), end_of_day(day))


def list_calendar_tasks(db: Session, user_id: str, start: datetime, end: datetime) -> List[Task]:
    return _scheduled_in_range(db, user_id, start_of_day(start), end_of_day(end))
