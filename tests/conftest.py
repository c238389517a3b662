# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Shared fixtures: driver handle doubles and SQLite-backed adapters.

Mock fixtures build an Adapter over a MagicMock ConnectionProvider whose
primary and replica handles are distinct MagicMock DriverHandles, so tests
can assert which endpoint a statement was routed to.

SQLite fixtures use a temporary database file shared by primary and
replica (no replicas configured).
"""

from __future__ import annotations

from collections.abc import Generator
from unittest.mock import MagicMock

import pytest

from genro_dbal import Adapter, ConnectionProvider, EventDispatcher
from genro_dbal.drivers import DriverHandle, Statement


def make_statement(sql: str = "SELECT 1", row_count: int = 1) -> MagicMock:
    """MagicMock Statement carrying sql and a fixed row count."""
    statement = MagicMock(spec=Statement)
    statement.sql = sql
    statement.row_count.return_value = row_count
    return statement


def make_handle(statement: MagicMock | None = None) -> MagicMock:
    """MagicMock DriverHandle whose prepare() returns statement."""
    handle = MagicMock(spec=DriverHandle)
    handle.prepare.return_value = statement if statement is not None else make_statement()
    return handle


class EventRecorder:
    """Listener collecting (event_name, event) pairs."""

    def __init__(self, adapter: Adapter):
        self.events: list[tuple[str, object]] = []
        adapter.bind_event(Adapter.EVENT_QUERY_PRE_EXECUTE, self._on(Adapter.EVENT_QUERY_PRE_EXECUTE))
        adapter.bind_event(Adapter.EVENT_QUERY_POST_EXECUTE, self._on(Adapter.EVENT_QUERY_POST_EXECUTE))

    def _on(self, name: str):
        def listener(event):
            self.events.append((name, event))
        return listener

    def named(self, name: str) -> list:
        return [event for event_name, event in self.events if event_name == name]

    @property
    def pre(self) -> list:
        return self.named(Adapter.EVENT_QUERY_PRE_EXECUTE)

    @property
    def post(self) -> list:
        return self.named(Adapter.EVENT_QUERY_POST_EXECUTE)


@pytest.fixture
def primary_handle() -> MagicMock:
    return make_handle(make_statement("primary"))


@pytest.fixture
def replica_handle() -> MagicMock:
    return make_handle(make_statement("replica"))


@pytest.fixture
def provider(primary_handle: MagicMock, replica_handle: MagicMock) -> MagicMock:
    """MagicMock ConnectionProvider returning the two handle doubles."""
    provider = MagicMock(spec=ConnectionProvider)
    provider.get_primary.return_value = primary_handle
    provider.get_replica.return_value = replica_handle
    return provider


@pytest.fixture
def adapter(provider: MagicMock) -> Adapter:
    return Adapter(provider, EventDispatcher())


@pytest.fixture
def recorder(adapter: Adapter) -> EventRecorder:
    return EventRecorder(adapter)


@pytest.fixture
def sqlite_adapter(tmp_path) -> Generator[Adapter, None, None]:
    """Adapter over a temporary SQLite file with an `items` table."""
    provider = ConnectionProvider(str(tmp_path / "test.db"))
    adapter = Adapter(provider)
    adapter.query_primary(
        "CREATE TABLE items ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "name TEXT NOT NULL, "
        "qty INTEGER DEFAULT 0, "
        "created_on TEXT)"
    )
    yield adapter
    adapter.close_connection()


@pytest.fixture
def statement_factory():
    """Factory building MagicMock Statements: statement_factory(sql, row_count)."""
    return make_statement


@pytest.fixture
def handle_factory():
    """Factory building MagicMock DriverHandles: handle_factory(statement)."""
    return make_handle
