"""Field matcher: test a single raw field against an actor value.

Absence and type mismatches are never errors here, they are simply "no match".
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from worklens.domain.access.registry import NESTED_IDENTITY_KEYS, ROLE_BINDINGS
from worklens.domain.model import MatcherKind, RelationshipRole

if TYPE_CHECKING:
    from worklens.domain.access.registry import RoleBinding
    from worklens.domain.model import RawRecord, RawValue


def normalize_token(value: str) -> str:
    """Trim and case-fold a value for case-insensitive comparison."""

    return value.strip().casefold()


def matches(
    role: RelationshipRole | RoleBinding,
    record: RawRecord,
    actor_value: str,
) -> bool:
    """Return True when any alias of ``role`` on ``record`` matches ``actor_value``."""

    binding = ROLE_BINDINGS[role] if isinstance(role, RelationshipRole) else role
    return matching_alias(binding, record, actor_value) is not None


def matching_alias(binding: RoleBinding, record: RawRecord, actor_value: str) -> str | None:
    """Return the first alias of ``binding`` whose value matches, or ``None``."""

    target = normalize_token(actor_value) if binding.ignore_case else actor_value
    for alias in binding.aliases:
        if alias not in record:
            continue
        if match_value(binding.matcher, record[alias], target, ignore_case=binding.ignore_case):
            return alias
    return None


def match_value(
    matcher: MatcherKind,
    value: RawValue,
    target: str,
    *,
    ignore_case: bool = False,
) -> bool:
    """Apply one matcher kind to a raw value.

    ``target`` must already be normalized when ``ignore_case`` is set.
    """

    match matcher:
        case MatcherKind.EXACT:
            return _equals(value, target, ignore_case=ignore_case)
        case MatcherKind.CASE_INSENSITIVE_EXACT:
            return _equals(value, target, ignore_case=True)
        case MatcherKind.ARRAY_CONTAINS:
            return any(
                _equals(element, target, ignore_case=ignore_case) for element in _elements(value)
            )
        case MatcherKind.ARRAY_OF_OBJECTS_CONTAINS:
            return any(
                _object_contains(element, target, ignore_case=ignore_case)
                for element in _elements(value)
            )


def _equals(value: RawValue, target: str, *, ignore_case: bool) -> bool:
    if not isinstance(value, str):
        return False
    if ignore_case:
        return normalize_token(value) == target
    return value == target


def _elements(value: RawValue) -> Sequence[RawValue]:
    if isinstance(value, Sequence) and not isinstance(value, str | bytes):
        return value
    return ()


def _object_contains(element: RawValue, target: str, *, ignore_case: bool) -> bool:
    if not isinstance(element, Mapping):
        return False
    for key in NESTED_IDENTITY_KEYS:
        if key in element and _equals(element[key], target, ignore_case=ignore_case):
            return True
    return False
