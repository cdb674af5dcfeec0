"""Canonical typed projections of stored records.

Entities are immutable snapshots: the mapper builds a fresh instance for every
notification, so nothing here tracks identity or change history.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from worklens.domain.model.enums import (
    EntityKind,
    MeetingStatus,
    MeetingType,
    RecurrencePattern,
    TaskPriority,
    TaskStatus,
    TaskType,
)

if TYPE_CHECKING:
    from datetime import date, datetime, timedelta


@dataclass(frozen=True, slots=True)
class ProjectRef:
    store_id: str | None
    name: str


@dataclass(frozen=True, slots=True)
class Recurrence:
    pattern: RecurrencePattern | None = None
    interval_days: int | None = None
    end_date: datetime | None = None


@dataclass(frozen=True, slots=True)
class SubtaskSummary:
    text: str | None = None
    weightage: str | None = None
    status: TaskStatus | None = None


@dataclass(frozen=True, slots=True)
class Comment:
    user: str
    message: str
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class Objective:
    title: str
    key_results: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class Task:
    KIND: ClassVar[EntityKind] = EntityKind.TASK

    store_id: str | None
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.NOT_STARTED
    status_label: str = "To-Do"
    priority: TaskPriority = TaskPriority.MEDIUM
    start_date: datetime
    due_date: datetime
    assignee_display_name: str = ""
    task_type: TaskType = TaskType.ADMIN
    project_ref: ProjectRef | None = None
    recurrence: Recurrence | None = None
    subtask_summary: SubtaskSummary | None = None
    logged_duration: timedelta | None = None
    comments: tuple[Comment, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.title.strip():
            raise ValueError("Task requires a non-empty title")

    @property
    def content_key(self) -> tuple[str, date]:
        return (_fold(self.title), self.due_date.date())


@dataclass(frozen=True, slots=True, kw_only=True)
class Project:
    KIND: ClassVar[EntityKind] = EntityKind.PROJECT

    store_id: str | None
    name: str
    description: str = "No description available"
    progress: float = 0.0
    start_date: datetime
    end_date: datetime
    assigned_employees: tuple[str, ...] = ()
    project_manager: str | None = None
    client_name: str | None = None
    objectives: tuple[Objective, ...] = ()

    @property
    def content_key(self) -> tuple[str]:
        return (_fold(self.name),)


@dataclass(frozen=True, slots=True, kw_only=True)
class Meeting:
    KIND: ClassVar[EntityKind] = EntityKind.MEETING

    store_id: str | None
    title: str
    start: datetime
    end: datetime | None = None
    duration_minutes: int = 60
    participants: tuple[str, ...] = ()
    agenda: str = ""
    meeting_type: MeetingType = MeetingType.GENERAL
    project_name: str | None = None
    status: MeetingStatus = MeetingStatus.SCHEDULED
    minutes: str | None = None
    location: str | None = None
    created_by_id: str | None = None
    created_by_email: str | None = None

    @property
    def content_key(self) -> tuple[str, date]:
        return (_fold(self.title), self.start.date())


type DomainEntity = Task | Project | Meeting


def _fold(value: str) -> str:
    return " ".join(value.split()).casefold()
