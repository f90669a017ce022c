"""Permissions 관련 공용 유틸리티 헬퍼입니다."""

from typing import Iterable

from app.models.user import User
from app.models.task import Task


OWNER = "owner"
OWNER_OR_ASSIGNEE = "owner_or_assignee"

READ = "read"
UPDATE = "update"
DELETE = "delete"
SET_PRIORITY = "set_priority"
TOGGLE_COMPLETE = "toggle_complete"
SET_STATUS = "set_status"
KANBAN_MOVE = "kanban_move"
SET_TIMES = "set_times"

# 삭제만 소유자 전용, 나머지 변경은 담당자에게도 허용한다.
TASK_ACTION_POLICIES = {
    READ: OWNER_OR_ASSIGNEE,
    UPDATE: OWNER_OR_ASSIGNEE,
    DELETE: OWNER,
    SET_PRIORITY: OWNER_OR_ASSIGNEE,
    TOGGLE_COMPLETE: OWNER_OR_ASSIGNEE,
    SET_STATUS: OWNER_OR_ASSIGNEE,
    KANBAN_MOVE: OWNER_OR_ASSIGNEE,
    SET_TIMES: OWNER_OR_ASSIGNEE,
}


def is_task_owner(task: Task, user_id: str) -> bool:
    return task.user_id == user_id


def is_task_assignee(task: Task, user_id: str) -> bool:
    return any(a.user_id == user_id for a in task.assignments)


def policy_for(action: str) -> str:
    if action not in TASK_ACTION_POLICIES:
        raise KeyError(f"Unknown task action: {action}")
    return TASK_ACTION_POLICIES[action]


def can_perform(task: Task, user: User, action: str) -> bool:
    policy = policy_for(action)
    if is_task_owner(task, user.id):
        return True
    if policy == OWNER_OR_ASSIGNEE:
        return is_task_assignee(task, user.id)
    return False


def actions_allowed(task: Task, user: User, actions: Iterable[str] = TASK_ACTION_POLICIES) -> list[str]:
    return [action for action in actions if can_perform(task, user, action)]
