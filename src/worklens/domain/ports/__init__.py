"""Domain ports."""

from __future__ import annotations

from .store import (
    ChangeFeed,
    ChangeType,
    DocumentChanged,
    DocumentStore,
    DocumentStoreError,
    FeedEvent,
    FeedFailure,
    QueryOperator,
    Snapshot,
    StoreClosedError,
    StoredDocument,
    StoreQuery,
)

__all__ = [
    "ChangeFeed",
    "ChangeType",
    "DocumentChanged",
    "DocumentStore",
    "DocumentStoreError",
    "FeedEvent",
    "FeedFailure",
    "QueryOperator",
    "Snapshot",
    "StoreClosedError",
    "StoreQuery",
    "StoredDocument",
]
