# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Query events emitted around statement execution.

Two named events are dispatched by the Adapter:

- ``query_pre_execute``: once per query call, before the first attempt.
  Carries the SQL string.
- ``query_post_execute``: after every attempt, successful or not. Carries
  the prepared Statement when one exists, the SQL string otherwise, and the
  QueryException of a failed attempt.

A query that recovers from a stale connection therefore produces one pre
event and two post events (the first with an exception, the second without).

Usage:
    def on_post(event: QueryEvent) -> None:
        if event.has_exception:
            alert(event.query, event.exception)

    adapter.bind_event(EVENT_QUERY_POST_EXECUTE, on_post)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any, Callable

from .drivers.base import Statement

if TYPE_CHECKING:
    from .exceptions import DbalException

logger = logging.getLogger(__name__)

EVENT_QUERY_PRE_EXECUTE = "query_pre_execute"
EVENT_QUERY_POST_EXECUTE = "query_post_execute"

Listener = Callable[["QueryEvent"], Any]


class QueryEvent:
    """Payload of query_pre_execute / query_post_execute.

    Attributes:
        query_or_statement: SQL string or prepared Statement.
        parameters: Positional parameters bound to the statement.
        used_primary: True if the statement was routed to the primary.
        exception: QueryException of a failed attempt, None otherwise.
    """

    def __init__(
        self,
        query_or_statement: str | Statement,
        parameters: list[Any] | None = None,
        used_primary: bool = False,
        exception: DbalException | None = None,
    ):
        self.query_or_statement = query_or_statement
        self.parameters = list(parameters or [])
        self.used_primary = used_primary
        self.exception = exception

    @property
    def has_statement(self) -> bool:
        return isinstance(self.query_or_statement, Statement)

    @property
    def statement(self) -> Statement | None:
        return self.query_or_statement if self.has_statement else None  # type: ignore[return-value]

    @property
    def query(self) -> str:
        """SQL text, whichever form the event carries."""
        if isinstance(self.query_or_statement, Statement):
            return self.query_or_statement.sql
        return self.query_or_statement

    @property
    def has_parameters(self) -> bool:
        return bool(self.parameters)

    @property
    def has_exception(self) -> bool:
        return self.exception is not None

    def __repr__(self) -> str:
        return (
            f"QueryEvent(query={self.query!r}, parameters={self.parameters!r}, "
            f"used_primary={self.used_primary}, exception={self.exception!r})"
        )


class EventDispatcher:
    """Minimal named-event dispatcher.

    Listeners run synchronously in registration order. Exceptions raised by
    a listener propagate to the caller of dispatch().
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def add_listener(self, name: str, listener: Listener) -> None:
        self._listeners[name].append(listener)

    def remove_listener(self, name: str, listener: Listener) -> None:
        """Remove a listener; unknown listeners are ignored."""
        listeners = self._listeners.get(name, [])
        if listener in listeners:
            listeners.remove(listener)

    def listeners(self, name: str) -> list[Listener]:
        return list(self._listeners.get(name, []))

    def has_listeners(self, name: str) -> bool:
        return bool(self._listeners.get(name))

    def dispatch(self, name: str, event: QueryEvent) -> QueryEvent:
        for listener in self.listeners(name):
            listener(event)
        return event


class QueryLogger:
    """Listener that logs query_post_execute events.

    Successful attempts are logged at DEBUG with the affected row count,
    failed attempts at WARNING.

    Usage:
        adapter.bind_event(EVENT_QUERY_POST_EXECUTE, QueryLogger())
    """

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    def __call__(self, event: QueryEvent) -> None:
        target = "primary" if event.used_primary else "replica"
        if event.has_exception:
            self.log.warning(
                "Query failed on %s: %s (params=%r): %s",
                target, event.query, event.parameters, event.exception,
            )
            return
        rows = event.statement.row_count() if event.statement is not None else -1
        self.log.debug(
            "Query on %s: %s (params=%r, rows=%d)",
            target, event.query, event.parameters, rows,
        )


__all__ = [
    "EVENT_QUERY_POST_EXECUTE",
    "EVENT_QUERY_PRE_EXECUTE",
    "EventDispatcher",
    "Listener",
    "QueryEvent",
    "QueryLogger",
]
