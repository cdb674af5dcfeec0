"""Record mapping: label normalization, date parsing and entity projection."""

from __future__ import annotations

from .dates import DEFAULT_MEETING_TIME, combine_date_and_time, parse_datetime
from .labels import (
    DEFAULT_PRIORITY_LABEL,
    DEFAULT_STATUS_LABEL,
    normalize_meeting_status,
    normalize_meeting_type,
    normalize_priority,
    normalize_recurrence_pattern,
    normalize_status,
    normalize_task_type,
)
from .records import RecordMapper, map_record

__all__ = [
    "DEFAULT_MEETING_TIME",
    "DEFAULT_PRIORITY_LABEL",
    "DEFAULT_STATUS_LABEL",
    "RecordMapper",
    "combine_date_and_time",
    "map_record",
    "normalize_meeting_status",
    "normalize_meeting_type",
    "normalize_priority",
    "normalize_recurrence_pattern",
    "normalize_status",
    "normalize_task_type",
    "parse_datetime",
]
