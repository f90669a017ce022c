"""SQLAlchemy 모델 패키지 초기화 모듈입니다."""

from app.models.user import User
from app.models.task import Task, TaskAssignment, TaskResource
from app.models.subscription import Subscription

__all__ = [
    "User",
    "Task", "TaskAssignment", "TaskResource",
    "Subscription",
]
