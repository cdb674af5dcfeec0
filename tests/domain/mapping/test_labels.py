from __future__ import annotations

import pytest

from worklens.domain.mapping import (
    normalize_meeting_status,
    normalize_meeting_type,
    normalize_priority,
    normalize_recurrence_pattern,
    normalize_status,
    normalize_task_type,
)
from worklens.domain.model import (
    MeetingStatus,
    MeetingType,
    RecurrencePattern,
    TaskPriority,
    TaskStatus,
    TaskType,
)


@pytest.mark.parametrize("label", ["done", "DONE", "Done!", "undone", "all done here", "Completed"])
def test_labels_containing_done_or_complete_are_completed(label: str) -> None:
    assert normalize_status(label) is TaskStatus.COMPLETED


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("stuck but done", TaskStatus.COMPLETED),
        ("done - was stuck", TaskStatus.COMPLETED),
        ("In Progress", TaskStatus.IN_PROGRESS),
        ("ongoing, stuck", TaskStatus.IN_PROGRESS),
        ("Stuck", TaskStatus.STUCK),
        ("stuck waiting", TaskStatus.STUCK),
        ("Waiting For Client", TaskStatus.WAITING_FOR),
        ("waiting for help", TaskStatus.WAITING_FOR),
        ("On Hold", TaskStatus.ON_HOLD),
        ("hold, need help", TaskStatus.ON_HOLD),
        ("Need Help", TaskStatus.NEED_HELP),
        ("To-Do", TaskStatus.NOT_STARTED),
        ("TODO", TaskStatus.NOT_STARTED),
        ("", TaskStatus.NOT_STARTED),
        (None, TaskStatus.NOT_STARTED),
    ],
)
def test_status_rules_apply_first_match(label: str | None, expected: TaskStatus) -> None:
    assert normalize_status(label) is expected


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("High", TaskPriority.HIGH),
        ("p1", TaskPriority.HIGH),
        ("URGENT!!", TaskPriority.HIGH),
        ("low", TaskPriority.LOW),
        ("P3", TaskPriority.LOW),
        ("Medium", TaskPriority.MEDIUM),
        ("normal", TaskPriority.MEDIUM),
        ("whenever", TaskPriority.MEDIUM),
        (None, TaskPriority.MEDIUM),
    ],
)
def test_priority_normalization(label: str | None, expected: TaskPriority) -> None:
    assert normalize_priority(label) is expected


def test_task_type_uses_default_for_unknown_labels() -> None:
    assert normalize_task_type("Self", default=TaskType.ADMIN) is TaskType.SELF
    client_assigned = normalize_task_type("client-assigned", default=TaskType.ADMIN)
    assert client_assigned is TaskType.CLIENT_ASSIGNED
    assert normalize_task_type("weird", default=TaskType.SELF) is TaskType.SELF
    assert normalize_task_type(None, default=TaskType.ADMIN) is TaskType.ADMIN


def test_recurrence_patterns() -> None:
    assert normalize_recurrence_pattern("Bi-Weekly") is RecurrencePattern.BIWEEKLY
    assert normalize_recurrence_pattern(" daily ") is RecurrencePattern.DAILY
    assert normalize_recurrence_pattern("yearly") is None


def test_meeting_labels() -> None:
    assert normalize_meeting_type("Team Sync") is MeetingType.TEAM_SYNC
    assert normalize_meeting_type("1:1") is MeetingType.ONE_ON_ONE
    assert normalize_meeting_type("offsite") is MeetingType.GENERAL
    assert normalize_meeting_status("Canceled") is MeetingStatus.CANCELLED
    assert normalize_meeting_status("postponed") is None
