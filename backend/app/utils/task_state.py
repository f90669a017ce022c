"""태스크 진행 상태(버킷) 상태 머신입니다.

저장소에는 ``completed`` / ``scheduled`` / ``status`` 세 컬럼이 남아 있지만, 서비스 코드는
항상 ``TaskState`` 하나로 상태를 다루고 세 컬럼은 ``project()`` 결과로만 기록합니다.

완료 상태는 완료되기 직전의 열린 상태(``resume``)를 품고 있어서, 완료를 다시 토글하면
이전 버킷과 이전 status 값이 그대로 복원됩니다.
"""

from dataclasses import dataclass
from typing import Optional


UNSCHEDULED = "unscheduled"
TODO = "todo"
IN_PROGRESS = "inprogress"
COMPLETED = "completed"

BUCKETS = (TODO, IN_PROGRESS, COMPLETED, UNSCHEDULED)
STATUS_TARGETS = (UNSCHEDULED, TODO, IN_PROGRESS, COMPLETED)

SCHEDULE_FIELDS = ("date", "start_time", "end_time", "duration")


@dataclass(frozen=True)
class TaskState:
    bucket: str
    status: Optional[str] = None
    resume: Optional["TaskState"] = None

    @property
    def completed(self) -> bool:
        return self.bucket == COMPLETED

    @property
    def scheduled(self) -> bool:
        if self.bucket == COMPLETED:
            return self.resume.scheduled
        return self.bucket != UNSCHEDULED

    @property
    def stored_status(self) -> Optional[str]:
        if self.bucket == COMPLETED:
            return self.resume.stored_status
        return self.status

    def project(self) -> dict:
        return {
            "completed": self.completed,
            "scheduled": self.scheduled,
            "status": self.stored_status,
        }


def unscheduled(status: Optional[str] = UNSCHEDULED) -> TaskState:
    return TaskState(UNSCHEDULED, status)


def todo(status: Optional[str] = TODO) -> TaskState:
    return TaskState(TODO, status)


def in_progress() -> TaskState:
    return TaskState(IN_PROGRESS, IN_PROGRESS)


def completed(resume: TaskState) -> TaskState:
    if resume.completed:
        return resume
    return TaskState(COMPLETED, resume=resume)


def classify(is_completed: bool, is_scheduled: bool, status: Optional[str]) -> TaskState:
    if not is_scheduled:
        open_state = unscheduled(status)
    elif status == IN_PROGRESS:
        open_state = in_progress()
    else:
        open_state = todo(status)
    if is_completed:
        return completed(open_state)
    return open_state


def state_of(task) -> TaskState:
    return classify(bool(task.completed), bool(task.scheduled), task.status)


def toggle_completion(state: TaskState) -> TaskState:
    if state.completed:
        return state.resume
    return completed(state)


def transition(state: TaskState, target: str) -> TaskState:
    """status 변경/칸반 이동 공통 전이 규칙.

    ``completed := target == completed``, ``scheduled := target != unscheduled``.
    완료로 이동할 때는 기존 status 값을 유지하고, 나머지는 target 값을 그대로 기록한다.
    """
    if target == UNSCHEDULED:
        return unscheduled()
    if target == TODO:
        return todo()
    if target == IN_PROGRESS:
        return in_progress()
    if target == COMPLETED:
        open_state = state.resume if state.completed else state
        if not open_state.scheduled:
            open_state = todo(open_state.status)
        return completed(open_state)
    raise ValueError(f"Unknown task status: {target}")


def clears_schedule(state: TaskState) -> bool:
    return state.bucket == UNSCHEDULED


def apply_state(task, state: TaskState) -> None:
    for key, value in state.project().items():
        setattr(task, key, value)


def clear_schedule(task) -> None:
    for field in SCHEDULE_FIELDS:
        setattr(task, field, None)
