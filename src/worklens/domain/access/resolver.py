"""Identity resolution: decide whether a raw record belongs to an actor.

Resolution order:

1. No identity component known -> owned (callers without identity are not filtered).
2. For id, then email, then display name: check every role bound to that
   component through the field matcher. Any match -> owned. Components are
   combined with OR; records routinely miss one of several identifying fields.
3. If nothing matched and an email is known, deep-scan the whole record for the
   email (and id) as an exact normalized value.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from worklens.domain.access.matching import matching_alias, normalize_token
from worklens.domain.access.registry import bindings_for_component, roles_for
from worklens.domain.model import EntityKind, IdentityComponent

if TYPE_CHECKING:
    from collections.abc import Iterable

    from worklens.domain.model import ActorIdentity, RawRecord, RawValue, RelationshipRole

log = getLogger(__name__)


class MatchVia(StrEnum):
    PERMISSIVE = "permissive"
    STRUCTURED = "structured"
    DEEP_SCAN = "deep_scan"
    NO_MATCH = "no_match"


@dataclass(frozen=True, slots=True)
class OwnershipMatch:
    """Explains an ownership decision."""

    via: MatchVia
    role: RelationshipRole | None = None
    field: str | None = None
    component: IdentityComponent | None = None

    @property
    def owned(self) -> bool:
        return self.via is not MatchVia.NO_MATCH


_PERMISSIVE = OwnershipMatch(via=MatchVia.PERMISSIVE)
_NO_MATCH = OwnershipMatch(via=MatchVia.NO_MATCH)

# Display names are free text; only identifying components are deep-scanned.
_DEEP_SCAN_COMPONENTS = (IdentityComponent.EMAIL, IdentityComponent.ID)


@dataclass(frozen=True, slots=True)
class IdentityResolver:
    """Applies the candidate key registry and the field matcher to raw records."""

    deep_scan: bool = True

    def resolve(
        self,
        actor: ActorIdentity,
        record: RawRecord,
        roles: Iterable[RelationshipRole],
    ) -> OwnershipMatch:
        present = actor.present_components()
        if not present:
            return _PERMISSIVE

        role_list = tuple(roles)
        for component, value in present:
            for binding in bindings_for_component(role_list, component):
                alias = matching_alias(binding, record, value)
                if alias is not None:
                    return OwnershipMatch(
                        via=MatchVia.STRUCTURED,
                        role=binding.role,
                        field=alias,
                        component=component,
                    )

        if not self.deep_scan or actor.component(IdentityComponent.EMAIL) is None:
            return _NO_MATCH

        for component in _DEEP_SCAN_COMPONENTS:
            value = actor.component(component)
            if value is not None and deep_scan_contains(record, value):
                log.debug("Deep scan matched %s for record keys=%s", component, sorted(record))
                return OwnershipMatch(via=MatchVia.DEEP_SCAN, component=component)
        return _NO_MATCH

    def is_owned_by(
        self,
        actor: ActorIdentity,
        record: RawRecord,
        roles: Iterable[RelationshipRole],
    ) -> bool:
        return self.resolve(actor, record, roles).owned


def is_owned_by(
    actor: ActorIdentity,
    record: RawRecord,
    roles: Iterable[RelationshipRole] | None = None,
    *,
    kind: EntityKind = EntityKind.TASK,
    deep_scan: bool = True,
) -> bool:
    """Module-level convenience; ``roles`` defaults to the roles of ``kind``."""

    active_roles = roles_for(kind) if roles is None else roles
    return IdentityResolver(deep_scan=deep_scan).is_owned_by(actor, record, active_roles)


def deep_scan_contains(record: RawRecord, needle: str) -> bool:
    """Walk every value of ``record`` (nested mappings and sequences included).

    Returns True when any string equals ``needle`` after trimming and case-folding.
    """

    target = normalize_token(needle)
    if not target:
        return False
    pending: list[RawValue] = list(record.values())
    while pending:
        value = pending.pop()
        if isinstance(value, str):
            if normalize_token(value) == target:
                return True
        elif isinstance(value, Mapping):
            pending.extend(value.values())
        elif isinstance(value, Sequence):
            pending.extend(value)
    return False
