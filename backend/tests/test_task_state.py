"""태스크 상태 머신(버킷 분류/전이) 단위 테스트입니다."""

import pytest

from app.utils import task_state
from app.utils.task_state import COMPLETED, IN_PROGRESS, TODO, UNSCHEDULED


@pytest.mark.parametrize(
    "completed,scheduled,status,bucket",
    [
        (True, True, "inprogress", COMPLETED),
        (True, False, None, COMPLETED),
        (False, True, "inprogress", IN_PROGRESS),
        (False, True, None, TODO),
        (False, True, "todo", TODO),
        (False, True, "unscheduled", TODO),
        (False, False, "inprogress", UNSCHEDULED),
        (False, False, None, UNSCHEDULED),
    ],
)
def test_classify_follows_bucket_table(completed, scheduled, status, bucket):
    assert task_state.classify(completed, scheduled, status).bucket == bucket


@pytest.mark.parametrize(
    "completed,scheduled,status",
    [(True, False, None), (True, True, "inprogress"), (False, True, None), (False, False, "unscheduled")],
)
def test_projection_round_trips_stored_columns(completed, scheduled, status):
    state = task_state.classify(completed, scheduled, status)
    assert state.project() == {"completed": completed, "scheduled": scheduled, "status": status}


def test_toggle_completion_twice_restores_original_state():
    original = task_state.classify(False, False, None)
    done = task_state.toggle_completion(original)
    assert done.bucket == COMPLETED
    assert done.project() == {"completed": True, "scheduled": False, "status": None}
    assert task_state.toggle_completion(done) == original


def test_transition_to_completed_keeps_prior_status():
    state = task_state.transition(task_state.classify(False, True, "inprogress"), COMPLETED)
    assert state.project() == {"completed": True, "scheduled": True, "status": "inprogress"}


def test_transition_from_unscheduled_to_completed_marks_scheduled():
    state = task_state.transition(task_state.classify(False, False, "unscheduled"), COMPLETED)
    assert state.project() == {"completed": True, "scheduled": True, "status": "unscheduled"}


def test_transition_to_completed_is_stable_when_already_completed():
    done = task_state.classify(True, True, "inprogress")
    assert task_state.transition(done, COMPLETED) == done


@pytest.mark.parametrize(
    "target,expected",
    [
        (UNSCHEDULED, {"completed": False, "scheduled": False, "status": "unscheduled"}),
        (TODO, {"completed": False, "scheduled": True, "status": "todo"}),
        (IN_PROGRESS, {"completed": False, "scheduled": True, "status": "inprogress"}),
    ],
)
def test_transition_to_open_targets_stores_target(target, expected):
    start = task_state.classify(True, True, "todo")
    assert task_state.transition(start, target).project() == expected


def test_unknown_target_raises():
    with pytest.raises(ValueError):
        task_state.transition(task_state.todo(), "archived")


def test_clears_schedule_only_for_open_unscheduled():
    assert task_state.clears_schedule(task_state.unscheduled())
    assert not task_state.clears_schedule(task_state.completed(task_state.unscheduled()))
    assert not task_state.clears_schedule(task_state.todo())
