"""SQLAlchemy-backed local document store."""

from __future__ import annotations

from .store import (
    PollingChangeFeed,
    SqlAlchemyDocumentStore,
    StartupError,
    is_started,
    shutdown,
    startup,
)
from .tables import create_all_tables, documents_table, metadata

__all__ = [
    "PollingChangeFeed",
    "SqlAlchemyDocumentStore",
    "StartupError",
    "create_all_tables",
    "documents_table",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
]
