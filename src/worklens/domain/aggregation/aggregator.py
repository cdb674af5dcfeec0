"""Live query aggregator.

Every subscription runs as an independent producer task that forwards feed
events into one inbox. A single fan-in task owns the per-source buckets,
applies each event, recomputes the merged result and publishes it. Nothing else
touches the buckets, so consumers never observe a partially applied update.

State machine: ``idle -> subscribing -> active -> cancelled``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final, Self

from worklens.domain.access import IdentityResolver, roles_for
from worklens.domain.aggregation.dedup import Deduplicator, SourceContribution
from worklens.domain.aggregation.plan import SubscriptionPlanner
from worklens.domain.mapping import RecordMapper
from worklens.domain.ports import ChangeType, DocumentChanged, FeedFailure, Snapshot

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType

    from worklens.domain.aggregation.plan import SubscriptionDescriptor
    from worklens.domain.model import (
        ActorIdentity,
        DomainEntity,
        EntityKind,
        RelationshipRole,
    )
    from worklens.domain.ports import DocumentStore, FeedEvent, StoredDocument

log = getLogger(__name__)

DEFAULT_RESUBSCRIBE_DELAY: Final[float] = 5.0


class AggregationError(RuntimeError):
    """Raised when an aggregation is driven through an invalid transition."""


class AggregatorState(StrEnum):
    IDLE = "idle"
    SUBSCRIBING = "subscribing"
    ACTIVE = "active"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class AggregateResultSet:
    entities: tuple[DomainEntity, ...]
    revision: int
    reported_sources: frozenset[str] = frozenset()
    degraded_sources: frozenset[str] = frozenset()

    def __len__(self) -> int:
        return len(self.entities)

    @property
    def store_ids(self) -> tuple[str | None, ...]:
        return tuple(entity.store_id for entity in self.entities)

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded_sources)


@dataclass(slots=True)
class _Bucket:
    descriptor: SubscriptionDescriptor
    entries: dict[str, DomainEntity | None] = field(default_factory=dict)
    reported: bool = False
    degraded: bool = False

    def contribution(self) -> SourceContribution:
        return SourceContribution(
            source_key=self.descriptor.source_key,
            entities=tuple(entity for entity in self.entries.values() if entity is not None),
            native_ids=self.descriptor.native_ids,
        )


@dataclass(frozen=True, slots=True)
class _Inbound:
    source_key: str
    event: FeedEvent


class _Closed:
    pass


_CLOSED: Final = _Closed()


class LiveQueryAggregator:
    """Merges the live subscriptions of one (actor, entity kind) request.

    Every emission is queued for the consumer. With ``max_pending`` set, the
    oldest unread result sets are dropped once that many are waiting; each
    result set is a complete snapshot, so a slow consumer only skips revisions.
    """

    def __init__(
        self,
        store: DocumentStore,
        actor: ActorIdentity,
        kind: EntityKind,
        *,
        descriptors: Sequence[SubscriptionDescriptor] | None = None,
        planner: SubscriptionPlanner | None = None,
        resolver: IdentityResolver | None = None,
        mapper: RecordMapper | None = None,
        deduplicator: Deduplicator | None = None,
        roles: Sequence[RelationshipRole] | None = None,
        resubscribe_delay: float | None = DEFAULT_RESUBSCRIBE_DELAY,
        max_pending: int | None = None,
    ) -> None:
        if max_pending is not None and max_pending < 1:
            raise ValueError("max_pending must be at least 1")
        self._store = store
        self._actor = actor
        self._kind = kind
        planned = descriptors if descriptors is not None else (
            (planner or SubscriptionPlanner()).plan(actor, kind)
        )
        self._descriptors: tuple[SubscriptionDescriptor, ...] = tuple(planned)
        if len({descriptor.source_key for descriptor in self._descriptors}) != len(
            self._descriptors
        ):
            raise ValueError("Subscription descriptors must have unique source keys")
        self._resolver = resolver or IdentityResolver()
        self._mapper = mapper or RecordMapper()
        self._deduplicator = deduplicator or Deduplicator()
        self._roles: tuple[RelationshipRole, ...] = tuple(roles or roles_for(kind))
        self._resubscribe_delay = resubscribe_delay
        self._max_pending = max_pending

        self._buckets: dict[str, _Bucket] = {
            descriptor.source_key: _Bucket(descriptor) for descriptor in self._descriptors
        }
        self._state = AggregatorState.IDLE
        self._revision = 0
        self._latest: AggregateResultSet | None = None
        self._inbox: asyncio.Queue[_Inbound] = asyncio.Queue()
        self._outbox: asyncio.Queue[AggregateResultSet | _Closed] = asyncio.Queue()
        self._producers: list[asyncio.Task[None]] = []
        self._fan_in: asyncio.Task[None] | None = None

    @property
    def state(self) -> AggregatorState:
        return self._state

    @property
    def latest(self) -> AggregateResultSet | None:
        return self._latest

    @property
    def descriptors(self) -> tuple[SubscriptionDescriptor, ...]:
        return self._descriptors

    def start(self) -> AggregationHandle:
        """Open every planned subscription; must run inside an event loop."""

        if self._state is not AggregatorState.IDLE:
            raise AggregationError(f"Cannot start aggregation in state {self._state}")
        self._set_state(AggregatorState.SUBSCRIBING)
        self._fan_in = asyncio.create_task(self._run_fan_in(), name="worklens-fan-in")
        self._producers = [
            asyncio.create_task(self._run_producer(descriptor), name=descriptor.source_key)
            for descriptor in self._descriptors
        ]
        log.info(
            "Started aggregation kind=%s with %d subscription(s)",
            self._kind,
            len(self._descriptors),
        )
        return AggregationHandle(self)

    async def cancel(self) -> None:
        """Release every subscription. Safe to call repeatedly."""

        if self._state is AggregatorState.CANCELLED:
            return
        self._set_state(AggregatorState.CANCELLED)
        tasks = [*self._producers, *([self._fan_in] if self._fan_in is not None else [])]
        for task in tasks:
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for task, result in zip(tasks, results, strict=True):
            if isinstance(result, Exception):
                log.error("Task %s ended with an error", task.get_name(), exc_info=result)
        self._outbox.put_nowait(_CLOSED)
        log.info("Cancelled aggregation kind=%s", self._kind)

    async def next_result(self) -> AggregateResultSet | None:
        """Wait for the next emission; ``None`` once cancelled."""

        if self._state is AggregatorState.CANCELLED and self._outbox.empty():
            return None
        item = await self._outbox.get()
        if isinstance(item, _Closed):
            self._outbox.put_nowait(_CLOSED)
            return None
        return item

    # -- producers -----------------------------------------------------------------

    async def _run_producer(self, descriptor: SubscriptionDescriptor) -> None:
        source_key = descriptor.source_key
        while True:
            try:
                await self._consume_feed(descriptor)
            except Exception as exc:  # noqa: BLE001
                log.warning("Subscription %s failed", source_key, exc_info=exc)
                await self._inbox.put(_Inbound(source_key, FeedFailure(error=exc)))
            else:
                log.debug("Subscription %s ended", source_key)
                return
            if self._resubscribe_delay is None:
                return
            await asyncio.sleep(self._resubscribe_delay)
            log.info("Re-opening subscription %s", source_key)

    async def _consume_feed(self, descriptor: SubscriptionDescriptor) -> None:
        feed = await self._store.subscribe(descriptor.query)
        log.debug("Opened subscription %s", descriptor.source_key)
        try:
            async for event in feed:
                await self._inbox.put(_Inbound(descriptor.source_key, event))
        finally:
            await feed.aclose()
            log.debug("Released subscription %s", descriptor.source_key)

    # -- single writer -------------------------------------------------------------

    async def _run_fan_in(self) -> None:
        while True:
            inbound = await self._inbox.get()
            self._apply(self._buckets[inbound.source_key], inbound.event)
            self._publish()

    def _apply(self, bucket: _Bucket, event: FeedEvent) -> None:
        match event:
            case Snapshot(documents=documents):
                bucket.entries = {
                    document.doc_id: self._admit(bucket.descriptor, document)
                    for document in documents
                }
                bucket.reported = True
                bucket.degraded = False
            case DocumentChanged(change=ChangeType.REMOVED, document=document):
                bucket.entries.pop(document.doc_id, None)
                bucket.degraded = False
            case DocumentChanged(document=document):
                bucket.entries[document.doc_id] = self._admit(bucket.descriptor, document)
                bucket.reported = True
                bucket.degraded = False
            case FeedFailure():
                log.warning(
                    "Source %s degraded: %s",
                    bucket.descriptor.source_key,
                    event.message or event.error,
                )
                bucket.entries = {}
                bucket.degraded = True

    def _admit(
        self, descriptor: SubscriptionDescriptor, document: StoredDocument
    ) -> DomainEntity | None:
        try:
            if descriptor.needs_resolution and not self._resolver.is_owned_by(
                self._actor, document.data, self._roles
            ):
                return None
            return self._mapper.map(document.data, self._kind, store_id=document.doc_id)
        except Exception:  # noqa: BLE001
            log.warning(
                "Skipping document %s from %s",
                document.doc_id,
                descriptor.source_key,
                exc_info=True,
            )
            return None

    def _publish(self) -> None:
        entities = self._deduplicator.merge(
            bucket.contribution() for bucket in self._buckets.values()
        )
        self._revision += 1
        result = AggregateResultSet(
            entities=entities,
            revision=self._revision,
            reported_sources=frozenset(
                key for key, bucket in self._buckets.items() if bucket.reported
            ),
            degraded_sources=frozenset(
                key for key, bucket in self._buckets.items() if bucket.degraded
            ),
        )
        self._latest = result
        if self._state is AggregatorState.SUBSCRIBING:
            self._set_state(AggregatorState.ACTIVE)
        if self._max_pending is not None:
            while self._outbox.qsize() >= self._max_pending:
                self._outbox.get_nowait()
                log.debug("Dropping an unread result set for revision %d", result.revision)
        self._outbox.put_nowait(result)

    def _set_state(self, state: AggregatorState) -> None:
        log.debug("Aggregation kind=%s: %s -> %s", self._kind, self._state, state)
        self._state = state


class AggregationHandle:
    """Consumer side of a running aggregation.

    Iterate it to receive successive result sets; iteration ends after
    ``cancel()``. Used as an async context manager it cancels on exit.
    """

    def __init__(self, aggregator: LiveQueryAggregator) -> None:
        self._aggregator = aggregator

    @property
    def state(self) -> AggregatorState:
        return self._aggregator.state

    @property
    def latest(self) -> AggregateResultSet | None:
        return self._aggregator.latest

    async def cancel(self) -> None:
        await self._aggregator.cancel()

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> AggregateResultSet:
        result = await self._aggregator.next_result()
        if result is None:
            raise StopAsyncIteration
        return result

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.cancel()
