from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from tests.support.clock import fixed_now
from worklens.adapters.sqlalchemy import SqlAlchemyDocumentStore, shutdown, startup
from worklens.domain.mapping import RecordMapper
from worklens.domain.model import ActorIdentity

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from datetime import datetime


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return fixed_now


@pytest.fixture
def mapper(fixed_clock: Callable[[], datetime]) -> RecordMapper:
    return RecordMapper(clock=fixed_clock)


@pytest.fixture
def actor() -> ActorIdentity:
    return ActorIdentity(id="U1", email="u1@x.com")


@pytest.fixture(autouse=True)
def _isolate_worklens_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("WORKLENS_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_store(sqlite_engine: Engine) -> Iterator[SqlAlchemyDocumentStore]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield SqlAlchemyDocumentStore(poll_interval=0.01)
    finally:
        shutdown()
