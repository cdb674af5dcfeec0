"""Local document store persisted in one SQLAlchemy table.

Subscriptions poll the table: the first event is a snapshot, later events are
derived by comparing document revisions between polls. Predicates are evaluated
in Python so the JSON column works the same on every dialect.
"""

from __future__ import annotations

import asyncio
import threading
from collections import deque
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Self

from sqlalchemy import create_engine, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from worklens.config import get_database_config, get_storage_config
from worklens.domain.ports import (
    ChangeType,
    DocumentChanged,
    DocumentStoreError,
    Snapshot,
    StoreClosedError,
    StoredDocument,
)

from .tables import create_all_tables, documents_table

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.engine import Engine

    from worklens.domain.model import RawValue
    from worklens.domain.ports import FeedEvent, StoreQuery

log = getLogger(__name__)


class StartupError(DocumentStoreError):
    """Raised when the SQLAlchemy store is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy store not initialised. Call worklens.adapters.sqlalchemy."
                "startup() before opening a store."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Create (or adopt) the engine and make sure the document table exists."""

    if _STATE.engine is not None and not force:
        raise StartupError("SQLAlchemy store already initialised. Pass force=True to reconfigure.")

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri,
        future=True,
    )
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine
    log.info("SQLAlchemy document store started on %s", resolved_engine.url)


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemyDocumentStore:
    """Document store backed by the configured SQLAlchemy engine."""

    def __init__(self, *, poll_interval: float | None = None) -> None:
        self._session_factory = _STATE.session_factory
        if poll_interval is None:
            poll_interval = get_storage_config().poll_interval_seconds
        self.poll_interval = poll_interval
        self._lock = threading.Lock()
        self._feeds: list[PollingChangeFeed] = []
        self._closed = False

    # -- writes --------------------------------------------------------------------

    def put(self, collection: str, doc_id: str, data: Mapping[str, RawValue]) -> None:
        self._ensure_open()
        now = datetime.now(UTC)
        payload = dict(data)
        with self._lock, self._session_factory() as session, session.begin():
            current = session.execute(
                select(documents_table.c.revision).where(
                    documents_table.c.collection == collection,
                    documents_table.c.doc_id == doc_id,
                )
            ).scalar_one_or_none()
            if current is None:
                session.execute(
                    insert(documents_table).values(
                        collection=collection,
                        doc_id=doc_id,
                        data=payload,
                        revision=1,
                        updated_at=now,
                    )
                )
            else:
                session.execute(
                    update(documents_table)
                    .where(
                        documents_table.c.collection == collection,
                        documents_table.c.doc_id == doc_id,
                    )
                    .values(data=payload, revision=current + 1, updated_at=now)
                )

    def delete(self, collection: str, doc_id: str) -> None:
        self._ensure_open()
        with self._lock, self._session_factory() as session, session.begin():
            session.execute(
                delete(documents_table).where(
                    documents_table.c.collection == collection,
                    documents_table.c.doc_id == doc_id,
                )
            )

    def load(self, collections: Mapping[str, Mapping[str, Mapping[str, RawValue]]]) -> int:
        count = 0
        for collection, documents in collections.items():
            for doc_id, data in documents.items():
                self.put(collection, doc_id, data)
                count += 1
        return count

    # -- reads ---------------------------------------------------------------------

    async def subscribe(self, query: StoreQuery) -> PollingChangeFeed:
        self._ensure_open()
        feed = PollingChangeFeed(self, query)
        self._feeds.append(feed)
        log.debug("Opened polling subscription %s", query.source_key)
        return feed

    async def get_once(self, query: StoreQuery) -> list[StoredDocument]:
        self._ensure_open()
        rows = await asyncio.to_thread(self.read_revisions, query)
        return [document for document, _ in rows]

    def read_revisions(self, query: StoreQuery) -> list[tuple[StoredDocument, int]]:
        """Matching documents with their revision, in document id order."""

        statement = (
            select(
                documents_table.c.doc_id,
                documents_table.c.data,
                documents_table.c.revision,
            )
            .where(documents_table.c.collection == query.collection)
            .order_by(documents_table.c.doc_id)
        )
        try:
            with self._lock, self._session_factory() as session:
                rows = session.execute(statement).all()
        except SQLAlchemyError as exc:
            raise DocumentStoreError(f"Failed to read {query.source_key}") from exc
        return [
            (StoredDocument(doc_id=row.doc_id, data=row.data), row.revision)
            for row in rows
            if query.accepts(row.data)
        ]

    @property
    def active_subscriptions(self) -> int:
        return len(self._feeds)

    async def close(self) -> None:
        for feed in list(self._feeds):
            await feed.aclose()
        self._closed = True

    def _release(self, feed: PollingChangeFeed) -> None:
        if feed in self._feeds:
            self._feeds.remove(feed)
        log.debug("Released polling subscription %s", feed.query.source_key)

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError("SQLAlchemy document store is closed")


class PollingChangeFeed:
    """Change feed computed by diffing document revisions between polls."""

    def __init__(self, store: SqlAlchemyDocumentStore, query: StoreQuery) -> None:
        self.query = query
        self._store = store
        self._revisions: dict[str, int] | None = None
        self._documents: dict[str, StoredDocument] = {}
        self._pending: deque[FeedEvent] = deque()
        self._closed = False

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> FeedEvent:
        while not self._pending:
            if self._closed:
                raise StopAsyncIteration
            if self._revisions is not None:
                await asyncio.sleep(self._store.poll_interval)
            await self._poll()
        return self._pending.popleft()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._store._release(self)  # noqa: SLF001

    async def _poll(self) -> None:
        rows = await asyncio.to_thread(self._store.read_revisions, self.query)
        current = {document.doc_id: revision for document, revision in rows}
        documents = {document.doc_id: document for document, _ in rows}

        if self._revisions is None:
            self._pending.append(Snapshot(documents=tuple(documents.values())))
        else:
            for doc_id, revision in current.items():
                previous = self._revisions.get(doc_id)
                if previous is None:
                    change = ChangeType.ADDED
                elif previous != revision:
                    change = ChangeType.MODIFIED
                else:
                    continue
                self._pending.append(DocumentChanged(change=change, document=documents[doc_id]))
            for doc_id in self._revisions.keys() - current.keys():
                self._pending.append(
                    DocumentChanged(change=ChangeType.REMOVED, document=self._documents[doc_id])
                )
        self._revisions = current
        self._documents = documents
