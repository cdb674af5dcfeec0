"""Public domain model surface."""

from __future__ import annotations

from worklens.domain.model.entities import (
    Comment,
    DomainEntity,
    Meeting,
    Objective,
    Project,
    ProjectRef,
    Recurrence,
    SubtaskSummary,
    Task,
)
from worklens.domain.model.enums import (
    EntityKind,
    IdentityComponent,
    MatcherKind,
    MeetingStatus,
    MeetingType,
    RecurrencePattern,
    RelationshipRole,
    TaskPriority,
    TaskStatus,
    TaskType,
)
from worklens.domain.model.primitives import ActorIdentity, RawRecord, RawValue, Scalar, StoreId

__all__ = [  # noqa: RUF022
    # identity + raw records
    "ActorIdentity",
    "RawRecord",
    "RawValue",
    "Scalar",
    "StoreId",
    # enums
    "EntityKind",
    "IdentityComponent",
    "MatcherKind",
    "MeetingStatus",
    "MeetingType",
    "RecurrencePattern",
    "RelationshipRole",
    "TaskPriority",
    "TaskStatus",
    "TaskType",
    # entities
    "Comment",
    "DomainEntity",
    "Meeting",
    "Objective",
    "Project",
    "ProjectRef",
    "Recurrence",
    "SubtaskSummary",
    "Task",
]
