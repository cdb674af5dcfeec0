from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import pytest

from tests.support.aggregation import ids_of, wait_for_result, wait_until
from tests.support.stores import ScriptedDocumentStore, doc, snapshot
from worklens.adapters.memory import InMemoryDocumentStore
from worklens.domain.aggregation import (
    AggregationError,
    AggregatorState,
    LiveQueryAggregator,
    SubscriptionDescriptor,
)
from worklens.domain.mapping import RecordMapper
from worklens.domain.model import ActorIdentity, EntityKind, RelationshipRole, Task, TaskStatus
from worklens.domain.ports import (
    ChangeType,
    DocumentChanged,
    FeedFailure,
    QueryOperator,
    StoreQuery,
)

if TYPE_CHECKING:
    from worklens.domain.model import DomainEntity, RawRecord

SOURCE_A = SubscriptionDescriptor(
    query=StoreQuery("tasks", "assigneeId", QueryOperator.EQUALS, "U1"),
    filter_role=RelationshipRole.ASSIGNEE_BY_ID,
)
SOURCE_B = SubscriptionDescriptor(
    query=StoreQuery("tasks", "assignedEmail", QueryOperator.EQUALS, "u1@x.com"),
    filter_role=RelationshipRole.ASSIGNEE_BY_EMAIL,
)
SOURCE_C = SubscriptionDescriptor.unfiltered("tasks")


def test_end_to_end_scenario(actor: ActorIdentity) -> None:
    store = ScriptedDocumentStore(
        {
            SOURCE_A.source_key: [snapshot(doc("R1", title="Fix bug", status="In Progress"))],
            SOURCE_B.source_key: [snapshot(doc("R1", title="Fix bug", status="In Progress"))],
            SOURCE_C.source_key: [snapshot(doc("R2", title="Other", status="TODO"))],
        }
    )

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(
            store,
            actor,
            EntityKind.TASK,
            descriptors=[SOURCE_A, SOURCE_B, SOURCE_C],
        )
        async with aggregator.start() as handle:
            result = await wait_for_result(handle, lambda r: len(r.reported_sources) == 3)

            assert ids_of(result) == ["R1"]
            task = result.entities[0]
            assert isinstance(task, Task)
            assert task.status is TaskStatus.IN_PROGRESS
            assert not result.is_degraded
            assert handle.state is AggregatorState.ACTIVE

    asyncio.run(scenario())


@pytest.mark.parametrize("first_source", [SOURCE_A, SOURCE_B])
def test_duplicate_ids_collapse_regardless_of_arrival_order(
    actor: ActorIdentity,
    first_source: SubscriptionDescriptor,
) -> None:
    store = ScriptedDocumentStore()
    second_source = SOURCE_B if first_source is SOURCE_A else SOURCE_A

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(
            store, actor, EntityKind.TASK, descriptors=[SOURCE_A, SOURCE_B]
        )
        async with aggregator.start() as handle:
            await wait_until(lambda: store.opened == 2)
            store.emit(first_source.source_key, snapshot(doc("R1", title="Fix bug")))
            store.emit(second_source.source_key, snapshot(doc("R1", title="Fix bug")))

            result = await wait_for_result(handle, lambda r: len(r.reported_sources) == 2)

            assert ids_of(result) == ["R1"]

    asyncio.run(scenario())


def test_every_notification_triggers_one_emission(actor: ActorIdentity) -> None:
    store = ScriptedDocumentStore(
        {
            SOURCE_A.source_key: [snapshot(doc("R1", title="One"))],
            SOURCE_B.source_key: [snapshot(doc("R2", title="Two"))],
        }
    )

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(
            store, actor, EntityKind.TASK, descriptors=[SOURCE_A, SOURCE_B]
        )
        async with aggregator.start() as handle:
            first = await wait_for_result(handle, lambda _: True)
            second = await wait_for_result(handle, lambda _: True)

            assert (first.revision, second.revision) == (1, 2)
            assert ids_of(second) == ["R1", "R2"]

    asyncio.run(scenario())


def test_cancel_twice_releases_once(actor: ActorIdentity) -> None:
    store = ScriptedDocumentStore({SOURCE_A.source_key: [snapshot(doc("R1", title="Fix bug"))]})

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(
            store, actor, EntityKind.TASK, descriptors=[SOURCE_A, SOURCE_B, SOURCE_C]
        )
        handle = aggregator.start()
        await wait_for_result(handle, lambda r: bool(r.entities))
        await wait_until(lambda: store.opened == 3)

        await handle.cancel()
        await handle.cancel()

        assert handle.state is AggregatorState.CANCELLED
        assert store.opened == 3
        assert store.released == 3
        assert [result async for result in handle] == []

    asyncio.run(scenario())


def test_cancel_before_any_subscription_opened(actor: ActorIdentity) -> None:
    gate = asyncio.Event()
    store = InMemoryDocumentStore(gate=gate)
    store.put("tasks", "R1", {"title": "Fix bug", "assigneeId": "U1"})

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(store, actor, EntityKind.TASK)
        handle = aggregator.start()
        await asyncio.sleep(0)

        await handle.cancel()
        await handle.cancel()

        assert handle.latest is None
        assert store.opened == 0
        assert store.released == 0
        assert store.active_subscriptions == 0

    asyncio.run(scenario())


def test_cancel_while_partially_subscribed(actor: ActorIdentity) -> None:
    store = ScriptedDocumentStore(blocked=[SOURCE_C.source_key])

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(
            store, actor, EntityKind.TASK, descriptors=[SOURCE_A, SOURCE_B, SOURCE_C]
        )
        handle = aggregator.start()
        await wait_until(lambda: store.opened == 2)
        assert handle.state is AggregatorState.SUBSCRIBING

        await handle.cancel()

        assert store.released == 2
        assert all(feed.closed for feed in store.feeds.values())

    asyncio.run(scenario())


def test_start_twice_is_rejected(actor: ActorIdentity) -> None:
    store = ScriptedDocumentStore()

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(store, actor, EntityKind.TASK, descriptors=[SOURCE_A])
        handle = aggregator.start()
        with pytest.raises(AggregationError):
            aggregator.start()
        await handle.cancel()
        with pytest.raises(AggregationError):
            aggregator.start()

    asyncio.run(scenario())


def test_duplicate_source_keys_are_rejected(actor: ActorIdentity) -> None:
    with pytest.raises(ValueError, match="unique source keys"):
        LiveQueryAggregator(
            ScriptedDocumentStore(), actor, EntityKind.TASK, descriptors=[SOURCE_A, SOURCE_A]
        )


def test_failed_source_is_emptied_and_recovers(actor: ActorIdentity) -> None:
    store = ScriptedDocumentStore(
        {
            SOURCE_A.source_key: [snapshot(doc("R1", title="One"))],
            SOURCE_B.source_key: [snapshot(doc("R2", title="Two"))],
        }
    )

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(
            store, actor, EntityKind.TASK, descriptors=[SOURCE_A, SOURCE_B]
        )
        async with aggregator.start() as handle:
            await wait_for_result(handle, lambda r: len(r.entities) == 2)

            store.emit(SOURCE_A.source_key, FeedFailure(error=RuntimeError("boom")))
            degraded = await wait_for_result(handle, lambda r: r.is_degraded)

            assert degraded.degraded_sources == {SOURCE_A.source_key}
            assert ids_of(degraded) == ["R2"]

            store.emit(SOURCE_A.source_key, snapshot(doc("R1", title="One")))
            recovered = await wait_for_result(handle, lambda r: not r.is_degraded)

            assert ids_of(recovered) == ["R1", "R2"]

    asyncio.run(scenario())


def test_raising_feed_is_reopened(actor: ActorIdentity) -> None:
    store = InMemoryDocumentStore()
    store.put("tasks", "R1", {"title": "Fix bug", "assigneeId": "U1"})

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(
            store,
            actor,
            EntityKind.TASK,
            descriptors=[SOURCE_C],
            resubscribe_delay=0.0,
        )
        async with aggregator.start() as handle:
            await wait_for_result(handle, lambda r: ids_of(r) == ["R1"])

            store.fail("tasks", RuntimeError("connection reset"), fatal=True)

            degraded = await wait_for_result(handle, lambda r: r.is_degraded)
            assert degraded.entities == ()
            recovered = await wait_for_result(handle, lambda r: not r.is_degraded)
            assert ids_of(recovered) == ["R1"]
            assert store.opened == 2
            assert store.released == 1

        assert store.released == 2

    asyncio.run(scenario())


def test_failed_feed_stays_down_without_resubscribe(actor: ActorIdentity) -> None:
    store = InMemoryDocumentStore()
    store.put("tasks", "R1", {"title": "Fix bug", "assigneeId": "U1"})

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(
            store,
            actor,
            EntityKind.TASK,
            descriptors=[SOURCE_C],
            resubscribe_delay=None,
        )
        async with aggregator.start() as handle:
            await wait_for_result(handle, lambda r: bool(r.entities))
            store.fail("tasks", RuntimeError("gone"), fatal=True)
            await wait_for_result(handle, lambda r: r.is_degraded)
            await wait_until(lambda: store.released == 1)

            assert store.opened == 1

    asyncio.run(scenario())


def test_live_changes_from_planned_subscriptions(actor: ActorIdentity) -> None:
    store = InMemoryDocumentStore()
    store.put("tasks", "R1", {"title": "Fix bug", "assigneeId": "U1", "status": "In Progress"})
    store.put("tasks", "R2", {"title": "Other", "assigneeId": "U2"})
    store.put("tasks", "R4", {"title": "Review", "assignedEmail": "u1@x.com"})

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(store, actor, EntityKind.TASK)
        async with aggregator.start() as handle:
            expected_sources = len(aggregator.descriptors)
            initial = await wait_for_result(
                handle, lambda r: len(r.reported_sources) == expected_sources
            )
            assert ids_of(initial) == ["R1", "R4"]

            store.put("tasks", "R3", {"title": "New", "assignedIds": ["U9", "U1"]})
            added = await wait_for_result(handle, lambda r: "R3" in ids_of(r))
            assert ids_of(added) == ["R1", "R3", "R4"]

            store.delete("tasks", "R1")
            removed = await wait_for_result(handle, lambda r: "R1" not in ids_of(r))
            assert ids_of(removed) == ["R3", "R4"]

            store.put("tasks", "R3", {"title": "New", "assignedIds": ["U9"]})
            reassigned = await wait_for_result(handle, lambda r: "R3" not in ids_of(r))
            assert ids_of(reassigned) == ["R4"]

    asyncio.run(scenario())


def test_unfiltered_scan_applies_resolver(actor: ActorIdentity) -> None:
    store = InMemoryDocumentStore()
    store.put("projects", "P1", {"name": "Apollo", "members": [{"uid": "U1"}]})
    store.put("projects", "P2", {"name": "Gemini", "members": [{"uid": "U2"}]})
    store.put("projects", "P3", {"name": "Mercury", "stakeholders": [{"mail": "U1@X.com"}]})

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(store, actor, EntityKind.PROJECT)
        async with aggregator.start() as handle:
            result = await wait_for_result(handle, lambda r: bool(r.reported_sources))

            assert ids_of(result) == ["P1", "P3"]

    asyncio.run(scenario())


def test_location_scoped_self_tasks_skip_resolution() -> None:
    actor = ActorIdentity(id="U1")
    store = InMemoryDocumentStore()
    store.put("selfTasks", "S1", {"title": "Plan week", "userUid": "U1", "dueDate": "2025-01-20"})
    store.put("selfTasks/U1/tasks", "N1", {"title": "Plan Week", "dueDate": "2025-01-20"})
    store.put("selfTasks/U1/selfTasks", "N2", {"title": "Read book"})

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(store, actor, EntityKind.SELF_TASK)
        async with aggregator.start() as handle:
            expected_sources = len(aggregator.descriptors)
            result = await wait_for_result(
                handle, lambda r: len(r.reported_sources) == expected_sources
            )

            assert ids_of(result) == ["S1", "N2"]

    asyncio.run(scenario())


def test_untitled_task_changes_are_dropped(actor: ActorIdentity) -> None:
    store = ScriptedDocumentStore({SOURCE_A.source_key: [snapshot(doc("R1", title="One"))]})

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(store, actor, EntityKind.TASK, descriptors=[SOURCE_A])
        async with aggregator.start() as handle:
            await wait_for_result(handle, lambda r: bool(r.entities))
            store.emit(
                SOURCE_A.source_key,
                DocumentChanged(change=ChangeType.ADDED, document=doc("R9", status="Done")),
            )
            result = await wait_for_result(handle, lambda r: r.revision == 2)

            assert ids_of(result) == ["R1"]

    asyncio.run(scenario())


class _FailingMapper(RecordMapper):
    def map(
        self,
        record: RawRecord,
        kind: EntityKind,
        *,
        store_id: str | None = None,
    ) -> DomainEntity | None:
        if store_id == "R9":
            raise OverflowError("date value out of range")
        return super().map(record, kind, store_id=store_id)


def test_mapping_failure_skips_only_that_document(
    actor: ActorIdentity, caplog: pytest.LogCaptureFixture
) -> None:
    bad = doc("R9", title="Bad", totalTimeLogged=1e15)
    store = ScriptedDocumentStore(
        {SOURCE_A.source_key: [DocumentChanged(change=ChangeType.ADDED, document=bad)]}
    )

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(
            store,
            actor,
            EntityKind.TASK,
            descriptors=[SOURCE_A, SOURCE_B],
            mapper=_FailingMapper(),
        )
        async with aggregator.start() as handle:
            await wait_until(lambda: store.opened == 2)
            store.emit(SOURCE_B.source_key, snapshot(doc("R2", title="Two")))

            result = await wait_for_result(handle, lambda r: "R2" in ids_of(r))

            assert ids_of(result) == ["R2"]
            assert handle.state is AggregatorState.ACTIVE

    with caplog.at_level(logging.WARNING, logger="worklens.domain.aggregation.aggregator"):
        asyncio.run(scenario())

    assert any("R9" in record.getMessage() for record in caplog.records)


def test_max_pending_keeps_only_the_newest_unread_results(actor: ActorIdentity) -> None:
    store = ScriptedDocumentStore()

    async def scenario() -> None:
        aggregator = LiveQueryAggregator(
            store, actor, EntityKind.TASK, descriptors=[SOURCE_A], max_pending=1
        )
        async with aggregator.start() as handle:
            await wait_until(lambda: store.opened == 1)
            store.emit(SOURCE_A.source_key, snapshot(doc("R1", title="One")))
            store.emit(SOURCE_A.source_key, snapshot(doc("R2", title="Two")))
            await wait_until(lambda: handle.latest is not None and handle.latest.revision == 2)

            result = await wait_for_result(handle, lambda _: True)

            assert result.revision == 2
            assert ids_of(result) == ["R2"]

    asyncio.run(scenario())


def test_max_pending_must_be_positive(actor: ActorIdentity) -> None:
    with pytest.raises(ValueError, match="max_pending"):
        LiveQueryAggregator(ScriptedDocumentStore(), actor, EntityKind.TASK, max_pending=0)
