"""SQLAlchemy table metadata for the local document store."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
)

if TYPE_CHECKING:
    from sqlalchemy import Dialect
    from sqlalchemy.engine import Engine

metadata = MetaData()


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


documents_table = Table(
    "document",
    metadata,
    Column("collection", String(255), primary_key=True),
    Column("doc_id", String(255), primary_key=True),
    Column("data", JSON, nullable=False),
    Column("revision", Integer, nullable=False, default=1),
    Column("updated_at", UTCDateTime(), nullable=False),
    Index("ix_document_collection", "collection"),
)


def create_all_tables(engine: Engine) -> None:
    metadata.create_all(engine)
