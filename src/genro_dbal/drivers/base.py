# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base driver handle and statement wrapping a blocking DB-API connection."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from ..exceptions import DriverError

# Unfortunately the only way to detect a stale connection is a string match
MESSAGE_SERVER_GONE_AWAY = "server has gone away"


def is_server_gone_away(error: BaseException) -> bool:
    """True if error (or its native cause) reports a dropped server connection."""
    while error is not None:
        if MESSAGE_SERVER_GONE_AWAY in str(error).lower():
            return True
        error = error.__cause__  # type: ignore[assignment]
    return False


class ParamType(enum.Enum):
    """Type hint for DriverHandle.quote()."""

    STR = "str"
    INT = "int"
    BOOL = "bool"
    NULL = "null"


class Statement:
    """Prepared statement: SQL bound to a cursor of one driver handle.

    Rows are returned as dicts keyed by column name. Errors raised by the
    native driver are translated to DriverError.

    Attributes:
        sql: SQL as written by the caller (``?`` placeholders).
        driver_sql: SQL in the driver's native paramstyle.
    """

    def __init__(self, handle: DriverHandle, sql: str, driver_sql: str, cursor: Any):
        self.handle = handle
        self.sql = sql
        self.driver_sql = driver_sql
        self._cursor = cursor

    def execute(self, parameters: list[Any] | None = None) -> None:
        """Execute with positional parameters (one per ``?``)."""
        with self.handle.translate_errors():
            self._cursor.execute(self.driver_sql, tuple(parameters or ()))

    def row_count(self) -> int:
        """Affected rows for DML, -1 when the driver cannot tell."""
        return self._cursor.rowcount

    @property
    def column_names(self) -> list[str]:
        if not self._cursor.description:
            return []
        return [desc[0] for desc in self._cursor.description]

    def fetch_one(self) -> dict[str, Any] | None:
        """Next row as dict, None when exhausted or no result set."""
        if not self._cursor.description:
            return None
        with self.handle.translate_errors():
            row = self._cursor.fetchone()
        if row is None:
            return None
        return dict(zip(self.column_names, row))

    def fetch_all(self) -> list[dict[str, Any]]:
        """Remaining rows as list of dicts."""
        if not self._cursor.description:
            return []
        cols = self.column_names
        with self.handle.translate_errors():
            rows = self._cursor.fetchall()
        return [dict(zip(cols, row)) for row in rows]

    def __iter__(self) -> Iterator[dict[str, Any]]:
        row = self.fetch_one()
        while row is not None:
            yield row
            row = self.fetch_one()

    def close(self) -> None:
        with self.handle.translate_errors():
            self._cursor.close()


class DriverHandle(ABC):
    """Abstract handle on one database connection.

    A handle is opened by connect() and closed by close(). The
    ConnectionProvider owns handles; the Adapter borrows them per operation.

    Subclasses set ``driver_errors`` to the native exception classes and
    implement _connect(), last_insert_id(), begin_transaction() and
    quote(). Native errors are translated to DriverError by
    translate_errors().

    Attributes:
        connection_string: Connection string the handle was built from.
        connection: Native DB-API connection, None until connect().
    """

    name: str = "base"
    driver_errors: tuple[type[BaseException], ...] = ()

    def __init__(self, connection_string: str):
        self.connection_string = connection_string
        self.connection: Any = None

    @property
    def is_open(self) -> bool:
        return self.connection is not None

    @contextmanager
    def translate_errors(self) -> Iterator[None]:
        """Re-raise native driver errors as DriverError, keeping the cause."""
        try:
            yield
        except self.driver_errors as e:
            raise DriverError(str(e), cause=e) from e

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def connect(self) -> DriverHandle:
        """Open the native connection (no-op if already open)."""
        if self.connection is None:
            with self.translate_errors():
                self.connection = self._connect()
        return self

    def close(self) -> None:
        """Close the native connection; safe to call twice."""
        conn, self.connection = self.connection, None
        if conn is not None:
            with self.translate_errors():
                conn.close()

    @abstractmethod
    def _connect(self) -> Any:
        """Return a new native DB-API connection."""
        ...

    def _require_connection(self) -> Any:
        if self.connection is None:
            raise DriverError(f"{self.name} handle is not connected")
        return self.connection

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def convert_placeholders(self, sql: str) -> str:
        """Convert ``?`` placeholders to the native paramstyle. Default: unchanged."""
        return sql

    def prepare(self, sql: str) -> Statement:
        """Return a Statement ready to execute sql on this connection."""
        conn = self._require_connection()
        with self.translate_errors():
            cursor = conn.cursor()
        return Statement(self, sql, self.convert_placeholders(sql), cursor)

    @abstractmethod
    def last_insert_id(self) -> Any:
        """Auto-increment value of the last insert on this connection."""
        ...

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @abstractmethod
    def begin_transaction(self) -> None:
        """Start an explicit transaction."""
        ...

    def commit(self) -> None:
        """Commit the current transaction."""
        with self.translate_errors():
            self._require_connection().commit()

    def rollback(self) -> None:
        """Roll back the current transaction."""
        with self.translate_errors():
            self._require_connection().rollback()

    # -------------------------------------------------------------------------
    # Quoting
    # -------------------------------------------------------------------------

    @abstractmethod
    def quote(self, value: Any, param_type: ParamType = ParamType.STR) -> str:
        """Return value as a quoted SQL literal (diagnostics only)."""
        ...

    def _coerce(self, value: Any, param_type: ParamType) -> Any:
        """Apply param_type before quoting."""
        if param_type is ParamType.NULL or value is None:
            return None
        if param_type is ParamType.INT:
            return int(value)
        if param_type is ParamType.BOOL:
            return int(bool(value))
        return str(value)

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"<{type(self).__name__} {state}>"


def convert_qmark(sql: str, placeholder: str = "%s", escape_percent: bool = True) -> str:
    """Replace ``?`` placeholders outside quoted literals and identifiers.

    With escape_percent, every literal ``%`` becomes ``%%`` so that
    pyformat-style drivers can interpolate the result safely.
    """
    out = []
    quote: str | None = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote is not None:
            if ch == "\\" and quote != "`" and i + 1 < len(sql):
                escaped = sql[i + 1]
                out.append(ch + ("%%" if escaped == "%" and escape_percent else escaped))
                i += 2
                continue
            if ch == quote:
                quote = None
            out.append("%%" if ch == "%" and escape_percent else ch)
        elif ch in ("'", '"', "`"):
            quote = ch
            out.append(ch)
        elif ch == "?":
            out.append(placeholder)
        elif ch == "%" and escape_percent:
            out.append("%%")
        else:
            out.append(ch)
        i += 1
    return "".join(out)


__all__ = [
    "MESSAGE_SERVER_GONE_AWAY",
    "DriverHandle",
    "ParamType",
    "Statement",
    "convert_qmark",
    "is_server_gone_away",
]
