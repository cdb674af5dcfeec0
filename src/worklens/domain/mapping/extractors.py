"""Ordered extractor chains for "first usable value of N fallbacks" lookups.

Each chain is an explicit tuple of extractor functions evaluated in order until
one returns a value. The tuples double as the documented priority contract
(e.g. ``startDate`` beats ``createdAt`` for a task start).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING

from worklens.domain.mapping.dates import parse_datetime

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from worklens.domain.model import RawRecord, RawValue

type Extractor[T] = Callable[[RawRecord], T | None]


def first_of[T](extractors: Iterable[Extractor[T]], record: RawRecord) -> T | None:
    for extractor in extractors:
        value = extractor(record)
        if value is not None:
            return value
    return None


def string_field(key: str) -> Extractor[str]:
    """Extract ``record[key]`` when it is a string (empty strings included)."""

    def extract(record: RawRecord) -> str | None:
        value = record.get(key)
        return value if isinstance(value, str) else None

    extract.__name__ = f"string_field[{key}]"
    return extract


def date_field(key: str) -> Extractor[datetime]:
    def extract(record: RawRecord) -> datetime | None:
        return parse_datetime(record.get(key))

    extract.__name__ = f"date_field[{key}]"
    return extract


def int_field(key: str, *, allow_numeric_string: bool = False) -> Extractor[int]:
    def extract(record: RawRecord) -> int | None:
        value = record.get(key)
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if allow_numeric_string and isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                return None
        return None

    extract.__name__ = f"int_field[{key}]"
    return extract


def float_field(key: str) -> Extractor[float]:
    def extract(record: RawRecord) -> float | None:
        value = record.get(key)
        if isinstance(value, bool) or not isinstance(value, int | float):
            return None
        return float(value)

    extract.__name__ = f"float_field[{key}]"
    return extract


def string_list_field(key: str) -> Extractor[tuple[str, ...]]:
    """Extract a list made only of strings; mixed or empty lists do not qualify."""

    def extract(record: RawRecord) -> tuple[str, ...] | None:
        elements = sequence_of(record.get(key))
        if not elements or not all(isinstance(element, str) for element in elements):
            return None
        return tuple(str(element) for element in elements)

    extract.__name__ = f"string_list_field[{key}]"
    return extract


def object_list_field(key: str) -> Extractor[tuple[Mapping[str, RawValue], ...]]:
    def extract(record: RawRecord) -> tuple[Mapping[str, RawValue], ...] | None:
        elements = sequence_of(record.get(key))
        objects = tuple(element for element in elements if isinstance(element, Mapping))
        return objects or None

    extract.__name__ = f"object_list_field[{key}]"
    return extract


def strings(*keys: str) -> tuple[Extractor[str], ...]:
    return tuple(string_field(key) for key in keys)


def dates(*keys: str) -> tuple[Extractor[datetime], ...]:
    return tuple(date_field(key) for key in keys)


def sequence_of(value: RawValue) -> Sequence[RawValue]:
    if isinstance(value, Sequence) and not isinstance(value, str | bytes):
        return value
    return ()
