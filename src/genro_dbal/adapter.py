# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Adapter: query execution, primary/replica routing and transactions.

The Adapter is the public surface of genro-dbal. Write helpers compose SQL
through SqlComposer and always run on the primary; reads run on a replica
unless the caller pins them to the primary. While a transaction is open,
every statement runs on the primary.

Execution model:
    - query_pre_execute is dispatched once per call
    - query_post_execute is dispatched after every attempt
    - driver failures are wrapped in QueryException ("Query Exception: ..."),
      and so are errors raised while acquiring a handle (never retried)
    - a "server has gone away" failure outside a transaction triggers a
      single reconnect and retry; inside a transaction it surfaces at once

Usage:
    adapter = Adapter.from_config(config_from_env())

    result = adapter.insert("users", {"name": "ada", "created_on": RawSql("NOW()")})
    adapter.update("users", {"name": "Ada"}, {"id": 1})
    rows = adapter.fetch_all("SELECT * FROM users WHERE active = ?", [1])

    with adapter.transaction():
        adapter.delete("sessions", {"user_id": 1})
        adapter.insert("audit", {"event": "logout", "user_id": 1})
    # COMMIT on success, ROLLBACK on exception

Note:
    An Adapter is not thread-safe: the transaction flag and the borrowed
    handles are per-instance state. Use one adapter per worker thread.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from .connection import ConnectionProvider
from .drivers import DriverHandle, ParamType, Statement, is_server_gone_away
from .events import (
    EVENT_QUERY_POST_EXECUTE,
    EVENT_QUERY_PRE_EXECUTE,
    EventDispatcher,
    Listener,
    QueryEvent,
    QueryLogger,
)
from .exceptions import (
    DriverError,
    InvalidQueryException,
    QueryException,
    QueryRequirementException,
)
from .results import AffectedRows, InsertResult, LastInsertId, is_meaningful_insert_id
from .sql import SqlComposer

if TYPE_CHECKING:
    from .config import DbalConfig

logger = logging.getLogger(__name__)


class Adapter:
    """Database access facade over a primary and a replica endpoint.

    Attributes:
        connection: ConnectionProvider supplying driver handles.
        dispatcher: EventDispatcher receiving query events.
        composer: SqlComposer used by the write helpers.

    Class Attributes:
        EVENT_QUERY_PRE_EXECUTE: Name of the pre-execute event.
        EVENT_QUERY_POST_EXECUTE: Name of the post-execute event.
        MAX_RETRIES: Reconnect-and-retry attempts on a stale connection.
    """

    EVENT_QUERY_PRE_EXECUTE = EVENT_QUERY_PRE_EXECUTE
    EVENT_QUERY_POST_EXECUTE = EVENT_QUERY_POST_EXECUTE
    MAX_RETRIES = 1

    def __init__(
        self,
        connection: ConnectionProvider,
        dispatcher: EventDispatcher | None = None,
        composer: SqlComposer | None = None,
    ):
        self.connection = connection
        self.dispatcher = dispatcher or EventDispatcher()
        self.composer = composer or SqlComposer()
        self._in_transaction = False

    @classmethod
    def from_config(cls, config: DbalConfig) -> Adapter:
        """Build provider, dispatcher and adapter from a DbalConfig."""
        provider = ConnectionProvider(
            config.primary,
            replicas=config.replicas,
            connect_timeout=config.connect_timeout,
        )
        adapter = cls(provider)
        if config.log_queries:
            adapter.bind_event(EVENT_QUERY_POST_EXECUTE, QueryLogger())
        return adapter

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def bind_event(self, name: str, listener: Listener) -> None:
        """Register listener for query_pre_execute / query_post_execute."""
        self.dispatcher.add_listener(name, listener)

    def unbind_event(self, name: str, listener: Listener) -> None:
        self.dispatcher.remove_listener(name, listener)

    # -------------------------------------------------------------------------
    # Write helpers (always on primary)
    # -------------------------------------------------------------------------

    def insert(
        self,
        table: str,
        data: Mapping[str, Any],
        ignore: bool = False,
        on_duplicate: Mapping[str, Any] | None = None,
    ) -> InsertResult:
        """Insert one row.

        Args:
            table: Table name, optionally schema-qualified.
            data: Column → value mapping; RawSql values are spliced as-is.
            ignore: Use INSERT IGNORE.
            on_duplicate: Column → literal expression for
                ON DUPLICATE KEY UPDATE.

        Returns:
            LastInsertId with the driver's value when it is meaningful,
            AffectedRows with the statement row count otherwise.

        Raises:
            InvalidQueryException: Malformed data or on_duplicate.
            QueryException: Execution failed.
        """
        sql, params = self.composer.insert(table, data, ignore=ignore, on_duplicate=on_duplicate)
        statement = self._execute_primary(sql, params)
        last_id = self._get_primary_handle().last_insert_id()

        if is_meaningful_insert_id(last_id):
            return LastInsertId(last_id)
        return AffectedRows(statement.row_count())

    def insert_ignore(self, table: str, data: Mapping[str, Any]) -> InsertResult:
        """INSERT IGNORE one row. A skipped duplicate yields AffectedRows(0)."""
        return self.insert(table, data, ignore=True)

    def insert_on_duplicate_update(
        self, table: str, data: Mapping[str, Any], update_data: Mapping[str, Any]
    ) -> InsertResult:
        """INSERT ... ON DUPLICATE KEY UPDATE with literal update expressions.

        Raises:
            QueryRequirementException: update_data is empty.
        """
        if not update_data:
            raise QueryRequirementException("On duplicate update data is required")
        return self.insert(table, data, on_duplicate=update_data)

    def update(self, table: str, data: Mapping[str, Any], where: Any) -> int:
        """UPDATE matching rows and return the affected-row count.

        Raises:
            QueryRequirementException: where is empty.
            InvalidQueryException: data is empty or where is malformed.
        """
        sql, params = self.composer.update(table, data, where)
        return self._execute_primary(sql, params).row_count()

    def delete(self, table: str, where: Any) -> int:
        """DELETE matching rows and return the affected-row count."""
        sql, params = self.composer.delete(table, where)
        return self._execute_primary(sql, params).row_count()

    # -------------------------------------------------------------------------
    # Raw queries
    # -------------------------------------------------------------------------

    def query(
        self, sql: str, parameters: list[Any] | None = None, use_primary: bool = False
    ) -> Statement:
        """Execute sql and return the executed Statement."""
        return self._execute(sql, parameters, use_primary)

    def query_primary(self, sql: str, parameters: list[Any] | None = None) -> Statement:
        """Execute sql on the primary."""
        return self.query(sql, parameters, use_primary=True)

    def fetch_one(
        self, sql: str, parameters: list[Any] | None = None, use_primary: bool = False
    ) -> Any:
        """First column of the first row, None if no rows."""
        row = self.query(sql, parameters, use_primary).fetch_one()
        if row is None:
            return None
        return next(iter(row.values()))

    def fetch_row(
        self, sql: str, parameters: list[Any] | None = None, use_primary: bool = False
    ) -> dict[str, Any] | None:
        """First row as dict, None if no rows."""
        return self.query(sql, parameters, use_primary).fetch_one()

    def fetch_column(
        self, sql: str, parameters: list[Any] | None = None, use_primary: bool = False
    ) -> list[Any]:
        """First column of every row."""
        rows = self.query(sql, parameters, use_primary).fetch_all()
        return [next(iter(row.values())) for row in rows]

    def fetch_all(
        self, sql: str, parameters: list[Any] | None = None, use_primary: bool = False
    ) -> list[dict[str, Any]]:
        """All rows as dicts."""
        return self.query(sql, parameters, use_primary).fetch_all()

    def fetch_assoc(
        self, sql: str, parameters: list[Any] | None = None, use_primary: bool = False
    ) -> dict[Any, dict[str, Any]]:
        """Rows keyed by their first column value (later rows win)."""
        rows = self.query(sql, parameters, use_primary).fetch_all()
        return {next(iter(row.values())): row for row in rows}

    def fetch_pairs(
        self, sql: str, parameters: list[Any] | None = None, use_primary: bool = False
    ) -> dict[Any, Any]:
        """First column → second column of every row.

        Raises:
            InvalidQueryException: The result set has fewer than two columns.
        """
        statement = self.query(sql, parameters, use_primary)
        if len(statement.column_names) < 2:
            raise InvalidQueryException("fetch_pairs requires at least two columns")
        key, value = statement.column_names[:2]
        return {row[key]: row[value] for row in statement.fetch_all()}

    def quote(self, value: Any, param_type: ParamType = ParamType.STR) -> str:
        """Quote value with the replica driver (diagnostics only)."""
        return self._get_replica_handle().quote(value, param_type)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    def is_in_transaction(self) -> bool:
        return self._in_transaction

    def begin_transaction(self) -> None:
        """Start a transaction on the primary; queries pin to it until the end."""
        self._in_transaction = True
        logger.debug("Transaction started")
        self._get_primary_handle().begin_transaction()

    def commit(self) -> None:
        self._in_transaction = False
        logger.debug("Transaction committed")
        self._get_primary_handle().commit()

    def rollback(self) -> None:
        self._in_transaction = False
        logger.debug("Transaction rolled back")
        self._get_primary_handle().rollback()

    @contextmanager
    def transaction(self) -> Iterator[Adapter]:
        """Context manager: commit on success, rollback on exception.

        Usage:
            with adapter.transaction():
                adapter.update("accounts", {"balance": RawSql("balance - 10")}, {"id": 1})
                adapter.update("accounts", {"balance": RawSql("balance + 10")}, {"id": 2})
        """
        self.begin_transaction()
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        self.commit()

    def close_connection(self) -> None:
        """Close every opened handle and reset the transaction flag."""
        # IMPORTANT: an open transaction dies with its connection
        self._in_transaction = False
        self.connection.close_opened_connections()

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def _get_primary_handle(self) -> DriverHandle:
        return self.connection.get_primary()

    def _get_replica_handle(self) -> DriverHandle:
        return self.connection.get_replica()

    def _reconnect(self) -> None:
        self.connection.reconnect()

    def _execute_primary(self, sql: str, parameters: list[Any]) -> Statement:
        return self._execute(sql, parameters, use_primary=True)

    def _execute(
        self, sql: str, parameters: list[Any] | None = None, use_primary: bool = False
    ) -> Statement:
        """Prepare and execute sql, retrying once on a stale connection.

        Args:
            sql: SQL with ``?`` placeholders.
            parameters: Positional values, one per placeholder.
            use_primary: Route to the primary (always true in a transaction).

        Returns:
            The executed Statement; rows can be fetched from it.

        Raises:
            QueryException: The statement failed and could not be retried.
        """
        parameters = list(parameters or [])
        use_primary = use_primary or self._in_transaction

        self.dispatcher.dispatch(
            EVENT_QUERY_PRE_EXECUTE, QueryEvent(sql, parameters, use_primary)
        )

        retries = 0
        while True:
            statement: Statement | None = None
            try:
                handle = self._get_primary_handle() if use_primary else self._get_replica_handle()
                statement = handle.prepare(sql)
                statement.execute(parameters)
            except DriverError as e:
                exception = QueryException(f"Query Exception: {e}", cause=e)
                self.dispatcher.dispatch(
                    EVENT_QUERY_POST_EXECUTE,
                    QueryEvent(statement or sql, parameters, use_primary, exception),
                )

                # IMPORTANT: a retry would run outside the open transaction
                if self.is_in_transaction():
                    raise exception from e

                if retries >= self.MAX_RETRIES or not is_server_gone_away(e):
                    raise exception from e

                logger.warning("Database server has gone away, reconnecting: %s", e)
                self._reconnect()
                retries += 1
                continue
            except Exception as e:
                # Not a driver failure (bad connection string, missing driver): no retry
                exception = QueryException(f"Query Exception: {e}", cause=e)
                self.dispatcher.dispatch(
                    EVENT_QUERY_POST_EXECUTE,
                    QueryEvent(statement or sql, parameters, use_primary, exception),
                )
                raise exception from e

            self.dispatcher.dispatch(
                EVENT_QUERY_POST_EXECUTE, QueryEvent(statement, parameters, use_primary)
            )
            return statement


__all__ = ["Adapter"]
