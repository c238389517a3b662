# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""INSERT / UPDATE / DELETE composition with positional parameters.

Every composed statement is returned as ``(sql, parameters)`` where the
number of ``?`` placeholders in sql equals ``len(parameters)``. Values are
always bound, except RawSql fragments which are spliced as-is and the
ON DUPLICATE KEY UPDATE expressions which are emitted literally.

Example:
    composer = SqlComposer()
    sql, params = composer.insert("my_table", {"abc": 123, "def": 456})
    # INSERT INTO `my_table` (`abc`, `def`) VALUES (?, ?)   [123, 456]

    sql, params = composer.update("posts", {"title": "x"}, {"id": 5})
    # UPDATE `posts` SET `title` = ? WHERE `id` = ?         ["x", 5]
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from ..exceptions import InvalidQueryException
from .quoting import check_bindable, is_raw, quote_identifier, quote_table
from .where import WhereBuilder

# Types allowed as literal ON DUPLICATE KEY UPDATE expressions
_LITERAL_TYPES = (str, int, float, Decimal)


class SqlComposer:
    """Builds quoted, parameterized SQL for the write operations."""

    def __init__(self, where_builder: WhereBuilder | None = None):
        self.where_builder = where_builder or WhereBuilder()

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def insert(
        self,
        table: str,
        data: Mapping[str, Any],
        ignore: bool = False,
        on_duplicate: Mapping[str, Any] | None = None,
    ) -> tuple[str, list[Any]]:
        """Compose INSERT [IGNORE] INTO ... [ON DUPLICATE KEY UPDATE ...].

        Args:
            table: Table name, optionally schema-qualified ("db.table").
            data: Non-empty mapping column → value (RawSql spliced literally).
            ignore: Emit INSERT IGNORE.
            on_duplicate: Mapping column → expression for ON DUPLICATE KEY
                UPDATE. Expressions are emitted literally, not bound, so
                "VALUES(`col`)" or RawSql("NOW()") can be used.

        Raises:
            InvalidQueryException: Empty or non-mapping data, non-mapping
                on_duplicate, or an on_duplicate value that is an object
                other than RawSql.
        """
        self._check_data(data, "insert")
        quoted_table = quote_table(table)
        action = "INSERT IGNORE INTO" if ignore else "INSERT INTO"

        columns = []
        positions = []
        params: list[Any] = []
        for column, value in data.items():
            columns.append(quote_identifier(column))
            if is_raw(value):
                positions.append(str(value))
            else:
                positions.append("?")
                params.append(check_bindable(column, value))

        sql = f"{action} {quoted_table} ({', '.join(columns)}) VALUES ({', '.join(positions)})"

        if on_duplicate:
            if not isinstance(on_duplicate, Mapping):
                raise InvalidQueryException("Duplicate key clause must be a mapping")
            sql += f" ON DUPLICATE KEY UPDATE {self._duplicate_clause(on_duplicate)}"

        return sql, params

    def update(
        self, table: str, data: Mapping[str, Any], where: Any
    ) -> tuple[str, list[Any]]:
        """Compose UPDATE ... SET ... WHERE ...

        Parameters are the SET values followed by the WHERE values.

        Raises:
            QueryRequirementException: Empty where.
            InvalidQueryException: Empty data or malformed where.
        """
        where_sql, where_params = self.where_builder.build(where)
        self._check_data(data, "update")

        assignments = []
        params: list[Any] = []
        for column, value in data.items():
            quoted = quote_identifier(column)
            if is_raw(value):
                assignments.append(f"{quoted} = {value}")
            else:
                assignments.append(f"{quoted} = ?")
                params.append(check_bindable(column, value))

        sql = f"UPDATE {quote_table(table)} SET {', '.join(assignments)} {where_sql}"
        return sql, params + where_params

    def delete(self, table: str, where: Any) -> tuple[str, list[Any]]:
        """Compose DELETE FROM ... WHERE ...

        Raises:
            QueryRequirementException: Empty where.
            InvalidQueryException: Malformed where.
        """
        where_sql, where_params = self.where_builder.build(where)
        return f"DELETE FROM {quote_table(table)} {where_sql}", where_params

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _check_data(self, data: Any, operation: str) -> None:
        """Data must be a non-empty mapping keyed by column names."""
        if not isinstance(data, Mapping):
            raise InvalidQueryException(f"Data for {operation} must be a column mapping")
        if not data:
            raise InvalidQueryException(f"No data for {operation}")

    def _duplicate_clause(self, on_duplicate: Mapping[str, Any]) -> str:
        """Render `col` = <literal expression>, ... for ON DUPLICATE KEY UPDATE."""
        parts = []
        for column, value in on_duplicate.items():
            parts.append(f"{quote_identifier(column)} = {self._literal(column, value)}")
        return ", ".join(parts)

    def _literal(self, column: str, value: Any) -> str:
        if is_raw(value):
            return str(value)
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, _LITERAL_TYPES):
            return str(value)
        raise InvalidQueryException(
            f"Duplicate key value for '{column}' cannot be converted to SQL: "
            f"{type(value).__name__}"
        )


__all__ = ["SqlComposer"]
