"""In-memory document store with live change feeds.

Used by tests and by the CLI when running against a seed file. Notifications
are delivered per subscription in write order; each feed only sees documents
its query accepts.
"""

from __future__ import annotations

import asyncio
import copy
from logging import getLogger
from typing import TYPE_CHECKING, Self

from worklens.domain.ports import (
    ChangeType,
    DocumentChanged,
    FeedFailure,
    Snapshot,
    StoreClosedError,
    StoredDocument,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from worklens.domain.model import RawValue
    from worklens.domain.ports import FeedEvent, StoreQuery

log = getLogger(__name__)

type _QueueItem = FeedEvent | BaseException | None


class MemoryChangeFeed:
    """Queue-backed change feed for one subscription."""

    def __init__(self, store: InMemoryDocumentStore, query: StoreQuery) -> None:
        self.query = query
        self._store = store
        self._queue: asyncio.Queue[_QueueItem] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, item: _QueueItem) -> None:
        if not self._closed:
            self._queue.put_nowait(item)

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> FeedEvent:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is None:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._store._release(self)  # noqa: SLF001


class InMemoryDocumentStore:
    """Collections of documents keyed by id.

    ``opened``/``released`` count subscriptions for verification. When ``gate``
    is given, ``subscribe`` waits for it before opening anything.
    """

    def __init__(self, *, gate: asyncio.Event | None = None) -> None:
        self.gate = gate
        self.opened = 0
        self.released = 0
        self._collections: dict[str, dict[str, dict[str, RawValue]]] = {}
        self._feeds: list[MemoryChangeFeed] = []
        self._closed = False

    # -- writes --------------------------------------------------------------------

    def put(self, collection: str, doc_id: str, data: Mapping[str, RawValue]) -> None:
        self._ensure_open()
        documents = self._collections.setdefault(collection, {})
        previous = documents.get(doc_id)
        current = copy.deepcopy(dict(data))
        documents[doc_id] = current
        for feed in self._feeds_for(collection):
            was_visible = previous is not None and feed.query.accepts(previous)
            is_visible = feed.query.accepts(current)
            document = StoredDocument(doc_id=doc_id, data=copy.deepcopy(current))
            if is_visible:
                change = ChangeType.MODIFIED if was_visible else ChangeType.ADDED
                feed.push(DocumentChanged(change=change, document=document))
            elif was_visible:
                feed.push(DocumentChanged(change=ChangeType.REMOVED, document=document))

    def delete(self, collection: str, doc_id: str) -> None:
        self._ensure_open()
        previous = self._collections.get(collection, {}).pop(doc_id, None)
        if previous is None:
            return
        for feed in self._feeds_for(collection):
            if feed.query.accepts(previous):
                document = StoredDocument(doc_id=doc_id, data=copy.deepcopy(previous))
                feed.push(DocumentChanged(change=ChangeType.REMOVED, document=document))

    def fail(self, collection: str, error: BaseException, *, fatal: bool = False) -> None:
        """Report ``error`` on every feed of ``collection``.

        A non-fatal failure is delivered as a ``FeedFailure`` event; a fatal one is
        raised from the feed, ending that subscription.
        """

        for feed in self._feeds_for(collection):
            feed.push(error if fatal else FeedFailure(error=error, message=str(error)))

    def load(self, collections: Mapping[str, Mapping[str, Mapping[str, RawValue]]]) -> int:
        count = 0
        for collection, documents in collections.items():
            for doc_id, data in documents.items():
                self.put(collection, doc_id, data)
                count += 1
        return count

    # -- reads ---------------------------------------------------------------------

    async def subscribe(self, query: StoreQuery) -> MemoryChangeFeed:
        self._ensure_open()
        if self.gate is not None:
            await self.gate.wait()
        self._ensure_open()
        feed = MemoryChangeFeed(self, query)
        feed.push(Snapshot(documents=tuple(self._matching(query))))
        self._feeds.append(feed)
        self.opened += 1
        log.debug("Opened memory subscription %s", query.source_key)
        return feed

    async def get_once(self, query: StoreQuery) -> list[StoredDocument]:
        self._ensure_open()
        return list(self._matching(query))

    @property
    def active_subscriptions(self) -> int:
        return len(self._feeds)

    async def close(self) -> None:
        for feed in list(self._feeds):
            feed.push(None)
        self._closed = True

    # -- internals -----------------------------------------------------------------

    def _matching(self, query: StoreQuery) -> list[StoredDocument]:
        return [
            StoredDocument(doc_id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._collections.get(query.collection, {}).items()
            if query.accepts(data)
        ]

    def _feeds_for(self, collection: str) -> list[MemoryChangeFeed]:
        return [feed for feed in self._feeds if feed.query.collection == collection]

    def _release(self, feed: MemoryChangeFeed) -> None:
        if feed in self._feeds:
            self._feeds.remove(feed)
        self.released += 1
        log.debug("Released memory subscription %s", feed.query.source_key)

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError("In-memory document store is closed")
