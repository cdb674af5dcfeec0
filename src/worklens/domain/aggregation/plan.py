"""Subscription planning: which live queries cover an actor's records of one kind."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from worklens.domain.access import bindings_for_component, roles_for
from worklens.domain.model import EntityKind, IdentityComponent, MatcherKind
from worklens.domain.ports import QueryOperator, StoreQuery

if TYPE_CHECKING:
    from worklens.domain.model import ActorIdentity, RelationshipRole

log = getLogger(__name__)

DEFAULT_COLLECTIONS: Final[Mapping[EntityKind, str]] = MappingProxyType(
    {
        EntityKind.TASK: "tasks",
        EntityKind.SELF_TASK: "selfTasks",
        EntityKind.PROJECT: "projects",
        EntityKind.MEETING: "events",
    }
)

# Per-actor nested locations under the self-task collection.
SELF_TASK_NESTED_LOCATIONS: Final[tuple[str, ...]] = ("tasks", "selfTasks")


class PlanStrategy(StrEnum):
    FAN_OUT = "fan_out"
    SCAN = "scan"


STRATEGY_BY_KIND: Final[Mapping[EntityKind, PlanStrategy]] = MappingProxyType(
    {
        EntityKind.TASK: PlanStrategy.FAN_OUT,
        EntityKind.SELF_TASK: PlanStrategy.FAN_OUT,
        EntityKind.PROJECT: PlanStrategy.SCAN,
        EntityKind.MEETING: PlanStrategy.SCAN,
    }
)


@dataclass(frozen=True, slots=True)
class SubscriptionDescriptor:
    """One live query contributing a bucket to the aggregate.

    Records from a filtered query were matched by the store and are trusted;
    records from an unfiltered query go through the identity resolver unless
    the location itself is scoped to the actor.
    """

    query: StoreQuery
    filter_role: RelationshipRole | None = None
    owned_by_location: bool = False
    native_ids: bool = True

    @property
    def source_key(self) -> str:
        return self.query.source_key

    @property
    def needs_resolution(self) -> bool:
        return self.filter_role is None and not self.owned_by_location

    @classmethod
    def unfiltered(cls, collection: str) -> SubscriptionDescriptor:
        return cls(query=StoreQuery(collection))


@dataclass(frozen=True, slots=True)
class SubscriptionPlanner:
    collections: Mapping[EntityKind, str] = field(default=DEFAULT_COLLECTIONS)

    def collection_for(self, kind: EntityKind) -> str:
        return self.collections.get(kind, DEFAULT_COLLECTIONS[kind])

    def plan(self, actor: ActorIdentity, kind: EntityKind) -> tuple[SubscriptionDescriptor, ...]:
        collection = self.collection_for(kind)
        actor_id = actor.component(IdentityComponent.ID)
        actor_email = actor.component(IdentityComponent.EMAIL)

        anonymous = actor_id is None and actor_email is None
        if STRATEGY_BY_KIND[kind] is PlanStrategy.SCAN or anonymous:
            descriptors = [SubscriptionDescriptor.unfiltered(collection)]
        else:
            descriptors = _fan_out(collection, roles_for(kind), actor_id, actor_email)
            if kind is EntityKind.SELF_TASK and actor_id is not None:
                descriptors.extend(
                    SubscriptionDescriptor(
                        query=StoreQuery(f"{collection}/{actor_id}/{location}"),
                        owned_by_location=True,
                        native_ids=False,
                    )
                    for location in SELF_TASK_NESTED_LOCATIONS
                )

        planned = _unique(descriptors)
        log.debug(
            "Planned %d subscription(s) for kind=%s: %s",
            len(planned),
            kind,
            [descriptor.source_key for descriptor in planned],
        )
        return planned


def plan_subscriptions(
    actor: ActorIdentity,
    kind: EntityKind,
    *,
    collections: Mapping[EntityKind, str] | None = None,
) -> tuple[SubscriptionDescriptor, ...]:
    planner = SubscriptionPlanner() if collections is None else SubscriptionPlanner(collections)
    return planner.plan(actor, kind)


def _fan_out(
    collection: str,
    roles: tuple[RelationshipRole, ...],
    actor_id: str | None,
    actor_email: str | None,
) -> list[SubscriptionDescriptor]:
    descriptors: list[SubscriptionDescriptor] = []
    if actor_id is not None:
        for binding in bindings_for_component(roles, IdentityComponent.ID):
            match binding.matcher:
                case MatcherKind.EXACT | MatcherKind.CASE_INSENSITIVE_EXACT:
                    operator = QueryOperator.EQUALS
                case MatcherKind.ARRAY_CONTAINS:
                    operator = QueryOperator.ARRAY_CONTAINS
                case MatcherKind.ARRAY_OF_OBJECTS_CONTAINS:
                    continue
            descriptors.extend(
                SubscriptionDescriptor(
                    query=StoreQuery(collection, alias, operator, actor_id),
                    filter_role=binding.role,
                )
                for alias in binding.aliases
            )
    if actor_email is not None:
        for binding in bindings_for_component(roles, IdentityComponent.EMAIL):
            if binding.is_array:
                continue
            descriptors.extend(
                SubscriptionDescriptor(
                    query=StoreQuery(collection, alias, QueryOperator.EQUALS, actor_email),
                    filter_role=binding.role,
                )
                for alias in binding.aliases
            )
    return descriptors


def _unique(descriptors: list[SubscriptionDescriptor]) -> tuple[SubscriptionDescriptor, ...]:
    seen: set[str] = set()
    unique: list[SubscriptionDescriptor] = []
    for descriptor in descriptors:
        if descriptor.source_key in seen:
            continue
        seen.add(descriptor.source_key)
        unique.append(descriptor)
    return tuple(unique)
