"""Application entry points wiring configuration into the domain services."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from worklens.adapters.memory import InMemoryDocumentStore
from worklens.adapters.seed import load_seed_file, seed_store
from worklens.adapters.sqlalchemy import SqlAlchemyDocumentStore, is_started, startup
from worklens.config import get_aggregation_config, get_collection_config
from worklens.domain.access import IdentityResolver, roles_for
from worklens.domain.aggregation import (
    LiveQueryAggregator,
    SubscriptionPlanner,
)
from worklens.domain.aggregation import fetch_owned_once as fetch_owned_records
from worklens.domain.mapping import RecordMapper
from worklens.domain.model import EntityKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

    from worklens.config import AggregationConfig, CollectionConfig
    from worklens.domain.access import OwnershipMatch
    from worklens.domain.aggregation import AggregationHandle, SubscriptionDescriptor
    from worklens.domain.model import ActorIdentity, DomainEntity, RawRecord, RelationshipRole
    from worklens.domain.ports import DocumentStore

log = getLogger(__name__)

type StoreBackend = Literal["memory", "sqlalchemy"]


def build_mapper(config: AggregationConfig | None = None) -> RecordMapper:
    effective = config or get_aggregation_config()
    return RecordMapper(
        due_offset=effective.due_offset,
        project_end_offset=effective.project_end_offset,
    )


def build_resolver(config: AggregationConfig | None = None) -> IdentityResolver:
    effective = config or get_aggregation_config()
    return IdentityResolver(deep_scan=effective.deep_scan)


def build_planner(collections: CollectionConfig | None = None) -> SubscriptionPlanner:
    effective = collections or get_collection_config()
    return SubscriptionPlanner(collections=effective.as_mapping())


def start_aggregation(
    store: DocumentStore,
    actor: ActorIdentity,
    kind: EntityKind,
    *,
    descriptors: Sequence[SubscriptionDescriptor] | None = None,
    config: AggregationConfig | None = None,
    collections: CollectionConfig | None = None,
) -> AggregationHandle:
    """Start a live aggregation; must be called from a running event loop."""

    effective = config or get_aggregation_config()
    aggregator = LiveQueryAggregator(
        store,
        actor,
        kind,
        descriptors=descriptors,
        planner=build_planner(collections),
        resolver=build_resolver(effective),
        mapper=build_mapper(effective),
        resubscribe_delay=effective.resubscribe_delay_seconds,
        max_pending=effective.max_pending,
    )
    log.info(
        "Aggregating kind=%s over %s",
        kind,
        ", ".join(descriptor.source_key for descriptor in aggregator.descriptors),
    )
    return aggregator.start()


def explain_ownership(
    actor: ActorIdentity,
    record: RawRecord,
    roles: Iterable[RelationshipRole] | None = None,
    *,
    kind: EntityKind = EntityKind.TASK,
    config: AggregationConfig | None = None,
) -> OwnershipMatch:
    active_roles = roles_for(kind) if roles is None else tuple(roles)
    return build_resolver(config).resolve(actor, record, active_roles)


def resolve_ownership(
    actor: ActorIdentity,
    record: RawRecord,
    roles: Iterable[RelationshipRole] | None = None,
    *,
    kind: EntityKind = EntityKind.TASK,
    config: AggregationConfig | None = None,
) -> bool:
    """Decide ownership of a single record without a live subscription."""

    return explain_ownership(actor, record, roles, kind=kind, config=config).owned


def map_record(
    record: RawRecord,
    default_kind: EntityKind,
    *,
    store_id: str | None = None,
    config: AggregationConfig | None = None,
) -> DomainEntity | None:
    return build_mapper(config).map(record, default_kind, store_id=store_id)


async def fetch_owned_once(
    store: DocumentStore,
    actor: ActorIdentity,
    kind: EntityKind,
    *,
    config: AggregationConfig | None = None,
    collections: CollectionConfig | None = None,
) -> list[DomainEntity]:
    effective = config or get_aggregation_config()
    return await fetch_owned_records(
        store,
        actor,
        kind,
        planner=build_planner(collections),
        resolver=build_resolver(effective),
        mapper=build_mapper(effective),
    )


def open_seeded_store(
    seed_path: Path,
    *,
    backend: StoreBackend = "memory",
) -> InMemoryDocumentStore | SqlAlchemyDocumentStore:
    """Create a document store and load ``seed_path`` into it."""

    seed = load_seed_file(seed_path)
    store: InMemoryDocumentStore | SqlAlchemyDocumentStore
    if backend == "sqlalchemy":
        if not is_started():
            startup()
        store = SqlAlchemyDocumentStore()
    else:
        store = InMemoryDocumentStore()
    seed_store(store, seed)
    return store
