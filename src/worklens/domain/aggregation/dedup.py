"""Deduplicator: collapse entities that represent the same logical record."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterable, Sequence

    from worklens.domain.model import DomainEntity

log = getLogger(__name__)

type DedupKey = tuple[Hashable, ...]


@dataclass(frozen=True, slots=True)
class SourceContribution:
    """Current mapped entities of one subscription bucket."""

    source_key: str
    entities: tuple[DomainEntity, ...]
    native_ids: bool = True


def store_key(entity: DomainEntity) -> DedupKey:
    return ("store", entity.store_id)


def content_key(entity: DomainEntity) -> DedupKey:
    return ("content", entity.KIND, *entity.content_key)


class Deduplicator:
    """Merge contributions in the given order, keeping the first entity per key.

    Store ids are used as keys only when every contributing entity carries one
    and every contributing source issues native ids; otherwise content keys apply
    to the whole union so that keys stay comparable.
    """

    def merge(self, contributions: Iterable[SourceContribution]) -> tuple[DomainEntity, ...]:
        ordered = tuple(contributions)
        key_of = store_key if self.uses_store_ids(ordered) else content_key

        seen: set[DedupKey] = set()
        merged: list[DomainEntity] = []
        for contribution in ordered:
            for entity in contribution.entities:
                key = key_of(entity)
                if key in seen:
                    log.debug("Dropping duplicate %s from %s", key, contribution.source_key)
                    continue
                seen.add(key)
                merged.append(entity)
        return tuple(merged)

    @staticmethod
    def uses_store_ids(contributions: Sequence[SourceContribution]) -> bool:
        return all(
            contribution.native_ids and all(entity.store_id for entity in contribution.entities)
            for contribution in contributions
            if contribution.entities
        )
