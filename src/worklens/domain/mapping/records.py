"""Record mapper: raw store records -> canonical typed entities.

Malformed records are dropped (``None``), unknown labels and unparseable dates
fall back to documented defaults. Nothing in here raises for bad data.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Final

from worklens.domain.mapping import extractors as ex
from worklens.domain.mapping.dates import combine_date_and_time, parse_datetime
from worklens.domain.mapping.labels import (
    DEFAULT_STATUS_LABEL,
    is_truthy_flag,
    normalize_meeting_status,
    normalize_meeting_type,
    normalize_priority,
    normalize_recurrence_pattern,
    normalize_status,
    normalize_task_type,
)
from worklens.domain.model import (
    Comment,
    EntityKind,
    Meeting,
    MeetingStatus,
    Objective,
    Project,
    ProjectRef,
    Recurrence,
    SubtaskSummary,
    Task,
    TaskType,
)

if TYPE_CHECKING:
    from worklens.domain.model import DomainEntity, RawRecord, RawValue, TaskStatus

log = getLogger(__name__)

type Clock = Callable[[], datetime]

# --- task chains -----------------------------------------------------------------

STORE_ID_KEYS: Final = ex.strings("id", "documentId", "docId")

TASK_ASSIGNEE_NAME: Final = ex.strings(
    "assignedToName",
    "assigneeName",
    "assignedTo",
    "assigneeId",
    "assignedId",
    "assignedUID",
    "employeeId",
)
TASK_START_DATE: Final = ex.dates("startDate", "assignedDate", "start", "createdAt", "assigned_on")
TASK_DUE_DATE: Final = ex.dates(
    "dueDate", "deadline", "endDate", "due", "due_date", "dueDateTime", "due_date_string"
)
TASK_TYPE_LABEL: Final = ex.strings("taskType", "type")
PROJECT_ID: Final = ex.strings("projectId", "project_id")
PROJECT_NAME: Final = ex.strings("projectName", "project", "project_title")
RECURRENCE_FLAG_KEYS: Final = ("isRecurring", "recurring")
RECURRENCE_PATTERN: Final = ex.strings("recurringPattern", "recurrencePattern", "recurrence")
RECURRENCE_INTERVAL: Final = (
    ex.int_field("recurringDays", allow_numeric_string=True),
    ex.int_field("repeatIntervalDays", allow_numeric_string=True),
)
RECURRENCE_END_DATE: Final = ex.dates(
    "recurringEndDate", "recurrenceEndDate", "recurring_until", "recursUntil"
)

# --- project chains --------------------------------------------------------------

PROJECT_TITLE: Final = ex.strings("name", "projectName", "title", "clientName")
PROJECT_DESCRIPTION: Final = ex.strings("description", "goals", "objective")
PROJECT_START_DATE: Final = ex.dates("startDate", "createdAt")
PROJECT_END_DATE: Final = ex.dates("endDate", "deadline")
PROJECT_MANAGER: Final = ex.strings("projectManagerName", "projectManager")
PROJECT_CLIENT: Final = ex.strings("clientName", "ClientName", "cLientName", "customerName")
PROJECT_OBJECTIVES: Final = (ex.object_list_field("okrs"), ex.object_list_field("objectives"))

# --- meeting chains --------------------------------------------------------------

MEETING_TITLE: Final = ex.strings("title", "name", "eventTitle")
MEETING_TIME: Final = ex.strings("time", "start_time")
MEETING_DURATION: Final = (ex.int_field("duration"), ex.int_field("durationMinutes"))
MEETING_PARTICIPANTS: Final = (
    ex.string_list_field("participants"),
    ex.string_list_field("attendees"),
    ex.string_list_field("members"),
)
MEETING_PARTICIPANT_OBJECTS: Final = (
    ex.object_list_field("participants"),
    ex.object_list_field("attendees"),
)
MEETING_AGENDA: Final = ex.strings("agenda", "description", "desc")
MEETING_TYPE_LABEL: Final = ex.strings("type", "meetingType")
MEETING_PROJECT: Final = ex.strings("project", "projectName", "project_title", "clientName")
MEETING_STATUS_LABEL: Final = ex.strings("status", "meetingStatus")
MEETING_MINUTES: Final = ex.strings("mom", "minutes", "MOM", "notes")
MEETING_LOCATION: Final = ex.strings("location", "venue", "place", "address")
MEETING_CREATED_BY_ID: Final = ex.strings(
    "createdByUid", "ownerUid", "employeeUid", "employeeId", "organizerUid"
)
MEETING_CREATED_BY_EMAIL: Final = ex.strings(
    "createdByEmail", "ownerEmail", "employeeEmail", "organizerEmail"
)

DEFAULT_MEETING_MINUTES: Final[int] = 60

_DEFAULT_TASK_TYPES: Final[dict[EntityKind, TaskType]] = {
    EntityKind.TASK: TaskType.ADMIN,
    EntityKind.SELF_TASK: TaskType.SELF,
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, kw_only=True)
class RecordMapper:
    """Maps raw records of any entity kind to domain entities."""

    clock: Clock = field(default=_utcnow)
    due_offset: timedelta = field(default_factory=lambda: timedelta(days=7))
    project_end_offset: timedelta = field(default_factory=lambda: timedelta(days=30))

    def map(
        self,
        record: RawRecord,
        kind: EntityKind,
        *,
        store_id: str | None = None,
    ) -> DomainEntity | None:
        resolved_id = store_id or ex.first_of(STORE_ID_KEYS, record) or None
        match kind:
            case EntityKind.TASK | EntityKind.SELF_TASK:
                return self.map_task(
                    record, default_type=_DEFAULT_TASK_TYPES[kind], store_id=resolved_id
                )
            case EntityKind.PROJECT:
                return self.map_project(record, store_id=resolved_id)
            case EntityKind.MEETING:
                return self.map_meeting(record, store_id=resolved_id)

    # -- tasks ------------------------------------------------------------------

    def map_task(
        self,
        record: RawRecord,
        *,
        default_type: TaskType = TaskType.ADMIN,
        store_id: str | None = None,
    ) -> Task | None:
        title = record.get("title")
        if not isinstance(title, str) or not title.strip():
            log.debug("Dropping task record without title (store_id=%s)", store_id)
            return None

        now = self.clock()
        status_label = _string(record, "status")
        status_label = (status_label or "").strip() or DEFAULT_STATUS_LABEL
        start_date = ex.first_of(TASK_START_DATE, record) or now
        due_date = ex.first_of(TASK_DUE_DATE, record) or now + self.due_offset

        return Task(
            store_id=store_id,
            title=title,
            description=_string(record, "description") or "",
            status=normalize_status(status_label),
            status_label=status_label,
            priority=normalize_priority(_string(record, "priority")),
            start_date=start_date,
            due_date=due_date,
            assignee_display_name=ex.first_of(TASK_ASSIGNEE_NAME, record) or "",
            task_type=normalize_task_type(
                ex.first_of(TASK_TYPE_LABEL, record), default=default_type
            ),
            project_ref=_project_ref(record),
            recurrence=_recurrence(record),
            subtask_summary=_subtask_summary(record),
            logged_duration=_logged_duration(record.get("totalTimeLogged")),
            comments=self._comments(record),
        )

    def _comments(self, record: RawRecord) -> tuple[Comment, ...]:
        comments: list[Comment] = []
        for raw in ex.sequence_of(record.get("comments")):
            if not isinstance(raw, Mapping):
                continue
            user = raw.get("user")
            message = raw.get("message")
            if not isinstance(user, str) or not isinstance(message, str):
                continue
            timestamp = parse_datetime(raw.get("timestamp")) or self.clock()
            comments.append(Comment(user=user, message=message, timestamp=timestamp))
        return tuple(comments)

    # -- projects ---------------------------------------------------------------

    def map_project(self, record: RawRecord, *, store_id: str | None = None) -> Project | None:
        name = ex.first_of(PROJECT_TITLE, record)
        if not name:
            if not store_id:
                log.debug("Dropping project record without name or id")
                return None
            name = f"Project {store_id[:8]}"

        now = self.clock()
        progress = record.get("progress")
        return Project(
            store_id=store_id,
            name=name,
            description=ex.first_of(PROJECT_DESCRIPTION, record) or "No description available",
            progress=(
                float(progress)
                if isinstance(progress, int | float) and not isinstance(progress, bool)
                else 0.0
            ),
            start_date=ex.first_of(PROJECT_START_DATE, record) or now,
            end_date=ex.first_of(PROJECT_END_DATE, record) or now + self.project_end_offset,
            assigned_employees=tuple(
                element
                for element in ex.sequence_of(record.get("assignedEmployees"))
                if isinstance(element, str)
            ),
            project_manager=ex.first_of(PROJECT_MANAGER, record),
            client_name=ex.first_of(PROJECT_CLIENT, record),
            objectives=_objectives(record),
        )

    # -- meetings ---------------------------------------------------------------

    def map_meeting(self, record: RawRecord, *, store_id: str | None = None) -> Meeting:
        now = self.clock()
        start = _meeting_start(record) or now
        end = _meeting_end(record)

        duration = ex.first_of(MEETING_DURATION, record)
        if duration is None:
            if end is not None:
                duration = max(1, int((end - start).total_seconds() // 60))
            else:
                duration = DEFAULT_MEETING_MINUTES

        status = normalize_meeting_status(ex.first_of(MEETING_STATUS_LABEL, record))
        if status is None:
            status = MeetingStatus.SCHEDULED if start > now else MeetingStatus.COMPLETED

        return Meeting(
            store_id=store_id,
            title=ex.first_of(MEETING_TITLE, record) or "Meeting",
            start=start,
            end=end,
            duration_minutes=duration,
            participants=_participants(record),
            agenda=ex.first_of(MEETING_AGENDA, record) or "",
            meeting_type=normalize_meeting_type(ex.first_of(MEETING_TYPE_LABEL, record)),
            project_name=ex.first_of(MEETING_PROJECT, record),
            status=status,
            minutes=ex.first_of(MEETING_MINUTES, record),
            location=ex.first_of(MEETING_LOCATION, record),
            created_by_id=ex.first_of(MEETING_CREATED_BY_ID, record),
            created_by_email=ex.first_of(MEETING_CREATED_BY_EMAIL, record),
        )


def map_record(
    record: RawRecord,
    default_kind: EntityKind,
    *,
    store_id: str | None = None,
    mapper: RecordMapper | None = None,
) -> DomainEntity | None:
    """Map ``record`` with a default-configured mapper unless one is given."""

    return (mapper or RecordMapper()).map(record, default_kind, store_id=store_id)


def _string(record: RawRecord, key: str) -> str | None:
    value = record.get(key)
    return value if isinstance(value, str) else None


def _logged_duration(value: RawValue) -> timedelta | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    try:
        return timedelta(seconds=value)
    except (OverflowError, ValueError):
        return None


def _project_ref(record: RawRecord) -> ProjectRef | None:
    project_id = ex.first_of(PROJECT_ID, record)
    project_name = ex.first_of(PROJECT_NAME, record)
    name = project_name or project_id
    if name is None:
        return None
    return ProjectRef(store_id=project_id, name=name)


def _recurrence(record: RawRecord) -> Recurrence | None:
    flagged = any(is_truthy_flag(record.get(key)) for key in RECURRENCE_FLAG_KEYS)
    pattern = normalize_recurrence_pattern(ex.first_of(RECURRENCE_PATTERN, record))
    if not flagged and pattern is None:
        return None
    return Recurrence(
        pattern=pattern,
        interval_days=ex.first_of(RECURRENCE_INTERVAL, record),
        end_date=ex.first_of(RECURRENCE_END_DATE, record),
    )


def _subtask_summary(record: RawRecord) -> SubtaskSummary | None:
    text = _string(record, "subtask")
    weightage = _string(record, "weightage")
    status: TaskStatus | None = None
    raw_status = _string(record, "subtaskStatus")
    if raw_status is not None and raw_status.strip():
        status = normalize_status(raw_status)
    if text is None and weightage is None and status is None:
        return None
    return SubtaskSummary(text=text, weightage=weightage, status=status)


def _objectives(record: RawRecord) -> tuple[Objective, ...]:
    objectives: list[Objective] = []
    for raw in ex.first_of(PROJECT_OBJECTIVES, record) or ():
        title = raw.get("title")
        if not isinstance(title, str):
            title = raw.get("objective")
        if not isinstance(title, str):
            continue
        objectives.append(Objective(title=title, key_results=_key_results(raw.get("keyResults"))))
    return tuple(objectives)


def _key_results(value: RawValue) -> tuple[str, ...]:
    results: list[str] = []
    for element in ex.sequence_of(value):
        if isinstance(element, str):
            results.append(element)
        elif isinstance(element, Mapping):
            description = element.get("description")
            if isinstance(description, str):
                results.append(description)
    return tuple(results)


def _meeting_start(record: RawRecord) -> datetime | None:
    for key in ("start", "startTime", "startDate"):
        parsed = parse_datetime(record.get(key))
        if parsed is not None:
            return parsed
    date_text = _string(record, "date")
    if date_text is not None:
        combined = combine_date_and_time(date_text, ex.first_of(MEETING_TIME, record))
        if combined is not None:
            return combined
        parsed = parse_datetime(date_text)
        if parsed is not None:
            return parsed
    return parse_datetime(record.get("scheduledAt"))


def _meeting_end(record: RawRecord) -> datetime | None:
    for key in ("end", "endTime", "endDate"):
        parsed = parse_datetime(record.get(key))
        if parsed is not None:
            return parsed
    date_text = _string(record, "date")
    end_time = _string(record, "end_time")
    if date_text is not None and end_time is not None:
        return combine_date_and_time(date_text, end_time)
    return parse_datetime(record.get("to"))


def _participants(record: RawRecord) -> tuple[str, ...]:
    names = ex.first_of(MEETING_PARTICIPANTS, record)
    if names:
        return names
    objects = ex.first_of(MEETING_PARTICIPANT_OBJECTS, record) or ()
    participants: list[str] = []
    for element in objects:
        label = element.get("name")
        if not isinstance(label, str):
            label = element.get("email")
        if isinstance(label, str):
            participants.append(label)
    return tuple(participants)

