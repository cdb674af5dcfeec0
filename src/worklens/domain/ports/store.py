"""Port for the remote schema-less document store.

The store is a black box delivering, per subscription, an initial snapshot
followed by incremental changes. Nothing is assumed about relative ordering
between subscriptions.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from worklens.domain.model import RawRecord, RawValue


class DocumentStoreError(RuntimeError):
    """Raised by store adapters when a read or subscription cannot be served."""


class StoreClosedError(DocumentStoreError):
    """Raised when a closed store is used."""


class QueryOperator(StrEnum):
    EQUALS = "=="
    ARRAY_CONTAINS = "array-contains"


@dataclass(frozen=True, slots=True)
class StoreQuery:
    """A collection read, optionally narrowed by one field predicate.

    Store-side comparison is exact: no trimming and no case folding.
    """

    collection: str
    field: str | None = None
    operator: QueryOperator = QueryOperator.EQUALS
    value: str | None = None

    def __post_init__(self) -> None:
        if not self.collection.strip():
            raise ValueError("StoreQuery requires a collection")
        if (self.field is None) != (self.value is None):
            raise ValueError("StoreQuery field and value must be given together")

    @property
    def is_filtered(self) -> bool:
        return self.field is not None

    @property
    def source_key(self) -> str:
        if self.field is None:
            return self.collection
        separator = "==" if self.operator is QueryOperator.EQUALS else f" {self.operator} "
        return f"{self.collection}?{self.field}{separator}{self.value}"

    def accepts(self, data: RawRecord) -> bool:
        """Evaluate the predicate the way the store would."""

        if self.field is None:
            return True
        candidate: RawValue = data.get(self.field)
        match self.operator:
            case QueryOperator.EQUALS:
                return candidate == self.value
            case QueryOperator.ARRAY_CONTAINS:
                return (
                    isinstance(candidate, Sequence)
                    and not isinstance(candidate, str)
                    and self.value in candidate
                )


@dataclass(frozen=True, slots=True)
class StoredDocument:
    doc_id: str
    data: Mapping[str, RawValue] = field(default_factory=dict)


class ChangeType(StrEnum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Full current contents of a subscription; supersedes anything earlier."""

    documents: tuple[StoredDocument, ...] = ()


@dataclass(frozen=True, slots=True)
class DocumentChanged:
    change: ChangeType
    document: StoredDocument


@dataclass(frozen=True, slots=True)
class FeedFailure:
    """The store reported an error for this subscription without closing it."""

    error: BaseException
    message: str = ""


type FeedEvent = Snapshot | DocumentChanged | FeedFailure


@runtime_checkable
class ChangeFeed(Protocol):
    """Async stream of feed events for one subscription, released via ``aclose``."""

    def __aiter__(self) -> ChangeFeed: ...

    async def __anext__(self) -> FeedEvent: ...

    async def aclose(self) -> None: ...


@runtime_checkable
class DocumentStore(Protocol):
    async def subscribe(self, query: StoreQuery) -> ChangeFeed:
        """Open a live subscription; the first event is a snapshot."""
        ...

    async def get_once(self, query: StoreQuery) -> list[StoredDocument]:
        """Read the current matching documents once."""
        ...


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
