"""In-memory document store adapter."""

from __future__ import annotations

from .store import InMemoryDocumentStore, MemoryChangeFeed

__all__ = ["InMemoryDocumentStore", "MemoryChangeFeed"]
