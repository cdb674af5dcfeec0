"""Date parsing for loosely typed record fields.

Representations are tried in a fixed order; the first successful parse wins.
Timezone-naive results are interpreted as UTC.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, date, datetime, time, timedelta
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from worklens.domain.model import RawValue

STRING_PATTERNS: Final[tuple[str, ...]] = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d/%m/%Y %H:%M",
    "%d-%m-%Y %H:%M",
    "%d/%m/%Y %I:%M %p",
    "%d-%m-%Y %I:%M %p",
)

# date + separate time field, e.g. "2024-05-01" + "3:30 PM"
DATE_TIME_PATTERNS: Final[tuple[str, ...]] = (
    "%Y-%m-%d %I:%M %p",
    "%d/%m/%Y %I:%M %p",
    "%d-%m-%Y %I:%M %p",
)

DATE_PATTERNS: Final[tuple[str, ...]] = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y")

DEFAULT_MEETING_TIME: Final[time] = time(9, 0)

_EPOCH_MILLIS_THRESHOLD: Final[float] = 100_000_000_000


def parse_datetime(value: RawValue) -> datetime | None:
    """Parse ``value`` into an aware UTC datetime, or ``None`` when unparseable."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, Mapping):
        return _parse_store_timestamp(value)
    if isinstance(value, str):
        return _parse_string(value)
    if isinstance(value, int | float):
        return _parse_epoch(value)
    return None


def combine_date_and_time(date_text: str, time_text: str | None) -> datetime | None:
    """Join a date string and an optional time string into one datetime.

    Without a time part (or when no pattern accepts the pair) the date is placed
    at 09:00.
    """

    time_part = time_text.strip() if time_text else ""
    date_part = date_text.strip()
    if time_part:
        composed = f"{date_part} {time_part}"
        for pattern in DATE_TIME_PATTERNS:
            try:
                return datetime.strptime(composed, pattern).replace(tzinfo=UTC)  # noqa: DTZ007
            except ValueError:
                continue
    for pattern in DATE_PATTERNS:
        try:
            base = datetime.strptime(date_part, pattern)  # noqa: DTZ007
        except ValueError:
            continue
        return datetime.combine(base.date(), DEFAULT_MEETING_TIME, tzinfo=UTC)
    return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _parse_store_timestamp(value: Mapping[str, RawValue]) -> datetime | None:
    seconds = value.get("seconds", value.get("_seconds"))
    nanos = value.get("nanoseconds", value.get("_nanoseconds", 0))
    if isinstance(seconds, bool) or not isinstance(seconds, int | float):
        return None
    if isinstance(nanos, bool) or not isinstance(nanos, int | float):
        nanos = 0
    try:
        return datetime.fromtimestamp(seconds, tz=UTC) + timedelta(microseconds=nanos / 1000)
    except (OverflowError, OSError, ValueError):
        return None


def _parse_string(value: str) -> datetime | None:
    text = value.strip()
    if not text:
        return None
    iso_text = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return _as_utc(datetime.fromisoformat(iso_text))
    except ValueError:
        pass
    for pattern in STRING_PATTERNS:
        try:
            return _as_utc(datetime.strptime(text, pattern))  # noqa: DTZ007
        except ValueError:
            continue
    return None


def _parse_epoch(value: float) -> datetime | None:
    seconds = value / 1000.0 if value > _EPOCH_MILLIS_THRESHOLD else float(value)
    try:
        return datetime.fromtimestamp(seconds, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None
