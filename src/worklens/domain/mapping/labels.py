"""Label normalizer: free-text labels -> closed enums.

Rule tables are evaluated top to bottom and the first matching rule wins; the
order is part of the contract (a label containing both "stuck" and "done" is
completed).
"""

from __future__ import annotations

from logging import getLogger
from typing import Final

from worklens.domain.model import (
    MeetingStatus,
    MeetingType,
    RecurrencePattern,
    TaskPriority,
    TaskStatus,
    TaskType,
)

log = getLogger(__name__)

DEFAULT_STATUS_LABEL: Final[str] = "To-Do"
DEFAULT_PRIORITY_LABEL: Final[str] = "P2"

STATUS_RULES: Final[tuple[tuple[tuple[str, ...], TaskStatus], ...]] = (
    (("done", "complete"), TaskStatus.COMPLETED),
    (("progress", "ongoing"), TaskStatus.IN_PROGRESS),
    (("stuck",), TaskStatus.STUCK),
    (("wait",), TaskStatus.WAITING_FOR),
    (("hold",), TaskStatus.ON_HOLD),
    (("help",), TaskStatus.NEED_HELP),
)

PRIORITY_RULES: Final[tuple[tuple[tuple[str, ...], TaskPriority], ...]] = (
    (("HIGH", "P1", "URGENT"), TaskPriority.HIGH),
    (("LOW", "P3"), TaskPriority.LOW),
    (("MEDIUM", "P2", "NORMAL"), TaskPriority.MEDIUM),
)

_TASK_TYPES: Final[dict[str, TaskType]] = {
    "self": TaskType.SELF,
    "selftask": TaskType.SELF,
    "admin": TaskType.ADMIN,
    "admintask": TaskType.ADMIN,
    "client": TaskType.CLIENT_ASSIGNED,
    "clientassigned": TaskType.CLIENT_ASSIGNED,
    "client-assigned": TaskType.CLIENT_ASSIGNED,
}

_RECURRENCE_PATTERNS: Final[dict[str, RecurrencePattern]] = {
    "daily": RecurrencePattern.DAILY,
    "weekly": RecurrencePattern.WEEKLY,
    "bi-weekly": RecurrencePattern.BIWEEKLY,
    "biweekly": RecurrencePattern.BIWEEKLY,
    "bi weekly": RecurrencePattern.BIWEEKLY,
    "monthly": RecurrencePattern.MONTHLY,
    "custom": RecurrencePattern.CUSTOM,
}

_MEETING_TYPES: Final[dict[str, MeetingType]] = {
    "client": MeetingType.CLIENT_REVIEW,
    "clientreview": MeetingType.CLIENT_REVIEW,
    "client review": MeetingType.CLIENT_REVIEW,
    "team": MeetingType.TEAM_SYNC,
    "teamsync": MeetingType.TEAM_SYNC,
    "team sync": MeetingType.TEAM_SYNC,
    "standup": MeetingType.TEAM_SYNC,
    "daily standup": MeetingType.TEAM_SYNC,
    "daily": MeetingType.TEAM_SYNC,
    "projectupdate": MeetingType.PROJECT_UPDATE,
    "project update": MeetingType.PROJECT_UPDATE,
    "sprintplanning": MeetingType.SPRINT_PLANNING,
    "sprint planning": MeetingType.SPRINT_PLANNING,
    "planning": MeetingType.SPRINT_PLANNING,
    "1:1": MeetingType.ONE_ON_ONE,
    "1-1": MeetingType.ONE_ON_ONE,
    "oneonone": MeetingType.ONE_ON_ONE,
    "one on one": MeetingType.ONE_ON_ONE,
    "one-on-one": MeetingType.ONE_ON_ONE,
}

_MEETING_STATUSES: Final[dict[str, MeetingStatus]] = {
    "completed": MeetingStatus.COMPLETED,
    "done": MeetingStatus.COMPLETED,
    "in progress": MeetingStatus.IN_PROGRESS,
    "inprogress": MeetingStatus.IN_PROGRESS,
    "ongoing": MeetingStatus.IN_PROGRESS,
    "cancelled": MeetingStatus.CANCELLED,
    "canceled": MeetingStatus.CANCELLED,
    "scheduled": MeetingStatus.SCHEDULED,
}


def normalize_status(label: str | None) -> TaskStatus:
    """Classify a raw status label; unknown labels are not started."""

    text = (label or DEFAULT_STATUS_LABEL).strip().lower()
    for needles, status in STATUS_RULES:
        if any(needle in text for needle in needles):
            return status
    return TaskStatus.NOT_STARTED


def normalize_priority(label: str | None) -> TaskPriority:
    """Classify a raw priority label; unknown labels default to medium."""

    text = (label or DEFAULT_PRIORITY_LABEL).upper()
    for needles, priority in PRIORITY_RULES:
        if any(needle in text for needle in needles):
            return priority
    log.debug("Unrecognised priority label %r, defaulting to medium", label)
    return TaskPriority.MEDIUM


def normalize_task_type(label: str | None, *, default: TaskType) -> TaskType:
    if label is None:
        return default
    return _TASK_TYPES.get(label.strip().lower(), default)


def normalize_recurrence_pattern(label: str | None) -> RecurrencePattern | None:
    if label is None:
        return None
    return _RECURRENCE_PATTERNS.get(label.strip().lower())


def normalize_meeting_type(label: str | None) -> MeetingType:
    if label is None:
        return MeetingType.GENERAL
    return _MEETING_TYPES.get(label.strip().lower(), MeetingType.GENERAL)


def normalize_meeting_status(label: str | None) -> MeetingStatus | None:
    """Return the status for a known label; ``None`` lets the caller derive one."""

    if label is None:
        return None
    return _MEETING_STATUSES.get(label.strip().lower())


def is_truthy_flag(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    return False
