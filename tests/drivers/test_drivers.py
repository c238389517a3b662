# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the driver factory, placeholder conversion and SqliteDriver."""

from __future__ import annotations

import sqlite3

import pytest

from genro_dbal.drivers import DRIVERS, ParamType, SqliteDriver, get_driver, is_server_gone_away
from genro_dbal.drivers.base import convert_qmark
from genro_dbal.exceptions import DriverError, QueryException


class TestGetDriver:
    """Tests for get_driver() connection string parsing."""

    @pytest.mark.parametrize(
        "connection_string,expected_path",
        [
            ("/data/app.db", "/data/app.db"),
            ("./app.db", "./app.db"),
            (":memory:", ":memory:"),
            ("sqlite::memory:", ":memory:"),
            ("sqlite:/data/app.db", "/data/app.db"),
        ],
    )
    def test_sqlite_forms(self, connection_string, expected_path):
        driver = get_driver(connection_string)
        assert isinstance(driver, SqliteDriver)
        assert driver.db_path == expected_path
        assert not driver.is_open

    def test_timeout_forwarded(self):
        assert get_driver(":memory:", connect_timeout=3).timeout == 3

    def test_invalid_string(self):
        with pytest.raises(ValueError, match="Invalid connection string"):
            get_driver("nocolon")

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown database type"):
            get_driver("oracle://host/db")

    def test_registry(self):
        assert DRIVERS["sqlite"] is SqliteDriver


class TestConvertQmark:
    """Tests for ? → %s conversion."""

    def test_simple(self):
        assert convert_qmark("SELECT * FROM t WHERE a = ? AND b = ?") == (
            "SELECT * FROM t WHERE a = %s AND b = %s"
        )

    def test_literal_question_mark_kept(self):
        assert convert_qmark("SELECT '?' , ?") == "SELECT '?' , %s"

    def test_identifier_question_mark_kept(self):
        assert convert_qmark("SELECT `a?` FROM t WHERE x = ?") == "SELECT `a?` FROM t WHERE x = %s"

    def test_percent_escaped(self):
        assert convert_qmark("SELECT * FROM t WHERE a LIKE 'x%' AND b = ?") == (
            "SELECT * FROM t WHERE a LIKE 'x%%' AND b = %s"
        )

    def test_backslash_escape_in_literal(self):
        assert convert_qmark(r"SELECT 'it\'s ?', ?") == r"SELECT 'it\'s ?', %s"

    def test_no_percent_escape(self):
        assert convert_qmark("a % ?", placeholder=":p", escape_percent=False) == "a % :p"


class TestServerGoneAway:
    """Tests for stale-connection detection."""

    def test_message_match(self):
        assert is_server_gone_away(DriverError("(2006, 'MySQL server has gone away')"))

    def test_case_insensitive(self):
        assert is_server_gone_away(RuntimeError("SERVER HAS GONE AWAY"))

    def test_cause_chain(self):
        native = RuntimeError("MySQL server has gone away")
        error = QueryException("Query Exception: Lost", cause=DriverError("Lost", cause=native))
        assert is_server_gone_away(error)

    def test_other_error(self):
        assert not is_server_gone_away(DriverError("Lost connection to MySQL server"))


class TestSqliteDriver:
    """Tests for SqliteDriver on an in-memory database."""

    @pytest.fixture
    def handle(self):
        handle = SqliteDriver(":memory:").connect()
        yield handle
        handle.close()

    def test_prepare_requires_connection(self):
        with pytest.raises(DriverError, match="not connected"):
            SqliteDriver(":memory:").prepare("SELECT 1")

    def test_statement_rows(self, handle):
        statement = handle.prepare("SELECT ? AS a, ? AS b")
        statement.execute([1, "x"])
        assert statement.column_names == ["a", "b"]
        assert statement.fetch_all() == [{"a": 1, "b": "x"}]

    def test_statement_without_result_set(self, handle):
        statement = handle.prepare("CREATE TABLE t (id INTEGER PRIMARY KEY)")
        statement.execute()
        assert statement.column_names == []
        assert statement.fetch_one() is None
        assert statement.fetch_all() == []

    def test_native_error_translated(self, handle):
        statement = handle.prepare("SELECT * FROM missing")
        with pytest.raises(DriverError, match="no such table") as exc_info:
            statement.execute()
        assert isinstance(exc_info.value.cause, sqlite3.OperationalError)

    def test_last_insert_id(self, handle):
        handle.prepare("CREATE TABLE t (id INTEGER PRIMARY KEY, v TEXT)").execute()
        insert = handle.prepare("INSERT INTO t (v) VALUES (?)")
        insert.execute(["a"])
        assert insert.row_count() == 1
        assert handle.last_insert_id() == 1

    def test_explicit_transaction(self, handle):
        handle.prepare("CREATE TABLE t (v TEXT)").execute()
        handle.begin_transaction()
        handle.prepare("INSERT INTO t VALUES ('a')").execute()
        handle.rollback()
        statement = handle.prepare("SELECT COUNT(*) AS n FROM t")
        statement.execute()
        assert statement.fetch_one() == {"n": 0}

    def test_commit_without_transaction_fails(self, handle):
        with pytest.raises(DriverError):
            handle.commit()

    @pytest.mark.parametrize(
        "value,param_type,expected",
        [
            ("abc", ParamType.STR, "'abc'"),
            ("o'neil", ParamType.STR, "'o''neil'"),
            (42, ParamType.STR, "'42'"),
            ("42", ParamType.INT, "42"),
            (True, ParamType.BOOL, "1"),
            ("x", ParamType.NULL, "NULL"),
            (None, ParamType.STR, "NULL"),
        ],
    )
    def test_quote(self, handle, value, param_type, expected):
        assert handle.quote(value, param_type) == expected

    def test_close_twice(self, handle):
        handle.close()
        handle.close()
        assert not handle.is_open
