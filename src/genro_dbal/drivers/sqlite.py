# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQLite driver handle using the standard sqlite3 module."""

from __future__ import annotations

import sqlite3
from typing import Any

from .base import DriverHandle, ParamType


class SqliteDriver(DriverHandle):
    """SQLite handle in autocommit mode with explicit transactions.

    Uses ``?`` placeholders natively. SQLite accepts backtick-quoted
    identifiers, so the composed INSERT / UPDATE / DELETE statements run
    unchanged; INSERT IGNORE and ON DUPLICATE KEY UPDATE are MySQL-only.
    """

    name = "sqlite"
    driver_errors = (sqlite3.Error,)

    def __init__(self, db_path: str, timeout: float = 10.0):
        super().__init__(db_path)
        self.db_path = db_path or ":memory:"
        self.timeout = timeout

    def _connect(self) -> sqlite3.Connection:
        # isolation_level=None: no implicit BEGIN, transactions are explicit
        return sqlite3.connect(self.db_path, timeout=self.timeout, isolation_level=None)

    def last_insert_id(self) -> int:
        conn = self._require_connection()
        with self.translate_errors():
            return conn.execute("SELECT last_insert_rowid()").fetchone()[0]

    def begin_transaction(self) -> None:
        with self.translate_errors():
            self._require_connection().execute("BEGIN")

    def commit(self) -> None:
        with self.translate_errors():
            self._require_connection().execute("COMMIT")

    def rollback(self) -> None:
        with self.translate_errors():
            self._require_connection().execute("ROLLBACK")

    def quote(self, value: Any, param_type: ParamType = ParamType.STR) -> str:
        value = self._coerce(value, param_type)
        if value is None:
            return "NULL"
        if isinstance(value, int):
            return str(value)
        return "'" + str(value).replace("'", "''") + "'"
