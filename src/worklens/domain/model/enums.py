"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    """Business object kinds served by the access layer."""

    TASK = "task"
    SELF_TASK = "self_task"
    PROJECT = "project"
    MEETING = "meeting"


class TaskStatus(StrEnum):
    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    STUCK = "stuck"
    WAITING_FOR = "waiting_for"
    ON_HOLD = "on_hold"
    NEED_HELP = "need_help"
    NOT_STARTED = "not_started"


class TaskPriority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskType(StrEnum):
    SELF = "self"
    ADMIN = "admin"
    CLIENT_ASSIGNED = "client_assigned"


class RecurrencePattern(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class MeetingType(StrEnum):
    CLIENT_REVIEW = "client_review"
    TEAM_SYNC = "team_sync"
    PROJECT_UPDATE = "project_update"
    SPRINT_PLANNING = "sprint_planning"
    ONE_ON_ONE = "one_on_one"
    GENERAL = "general"


class MeetingStatus(StrEnum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class IdentityComponent(StrEnum):
    """Parts of an actor identity, listed in resolution priority order."""

    ID = "id"
    EMAIL = "email"
    DISPLAY_NAME = "display_name"


class MatcherKind(StrEnum):
    EXACT = "exact"
    CASE_INSENSITIVE_EXACT = "case_insensitive_exact"
    ARRAY_CONTAINS = "array_contains"
    ARRAY_OF_OBJECTS_CONTAINS = "array_of_objects_contains"


class RelationshipRole(StrEnum):
    """Named ownership relationships between an actor and a stored record."""

    # tasks
    ASSIGNEE_BY_ID = "assignee_by_id"
    ASSIGNEE_ARRAY_BY_ID = "assignee_array_by_id"
    CLIENT_BY_ID = "client_by_id"
    CREATOR_BY_ID = "creator_by_id"
    ASSIGNEE_BY_EMAIL = "assignee_by_email"
    CLIENT_BY_EMAIL = "client_by_email"
    CREATOR_BY_EMAIL = "creator_by_email"
    ASSIGNEE_BY_NAME = "assignee_by_name"
    ASSIGNEE_ARRAY_BY_NAME = "assignee_array_by_name"
    CREATOR_BY_NAME = "creator_by_name"
    CLIENT_BY_NAME = "client_by_name"

    # self tasks
    SELF_OWNER_BY_ID = "self_owner_by_id"
    SELF_OWNER_BY_EMAIL = "self_owner_by_email"

    # projects
    MEMBER_BY_ID = "member_by_id"
    MEMBER_ARRAY_BY_ID = "member_array_by_id"
    MEMBER_OBJECTS_BY_ID = "member_objects_by_id"
    MEMBER_BY_EMAIL = "member_by_email"
    MEMBER_ARRAY_BY_EMAIL = "member_array_by_email"
    MEMBER_OBJECTS_BY_EMAIL = "member_objects_by_email"
    LEAD_BY_NAME = "lead_by_name"
    MEMBER_ARRAY_BY_NAME = "member_array_by_name"
    CUSTOMER_BY_ID = "customer_by_id"
    CUSTOMER_BY_EMAIL = "customer_by_email"

    # meetings
    ORGANIZER_BY_ID = "organizer_by_id"
    ATTENDEE_ARRAY_BY_ID = "attendee_array_by_id"
    ORGANIZER_BY_EMAIL = "organizer_by_email"
    ATTENDEE_ARRAY_BY_EMAIL = "attendee_array_by_email"
    ATTENDEE_OBJECTS_BY_EMAIL = "attendee_objects_by_email"
