# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Identifier quoting and bind-value checks (MySQL backtick dialect)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..exceptions import InvalidQueryException
from .fragment import RawSql

# Values a DB-API driver cannot bind to a single placeholder
_UNBINDABLE = (Mapping, list, tuple, set, frozenset)


def quote_identifier(name: Any) -> str:
    """Return name wrapped in backticks, doubling embedded backticks.

    Raises:
        InvalidQueryException: If name is not a non-empty string.
    """
    if not isinstance(name, str) or not name:
        raise InvalidQueryException(f"Invalid identifier: {name!r}")
    return "`" + name.replace("`", "``") + "`"


def quote_table(table: Any) -> str:
    """Quote a table name; a dot splits schema and table (`schema`.`table`)."""
    if not isinstance(table, str) or not table:
        raise InvalidQueryException(f"Invalid table name: {table!r}")
    return ".".join(quote_identifier(part) for part in table.split("."))


def check_bindable(column: str, value: Any) -> Any:
    """Return value if it can be bound to a placeholder, raise otherwise."""
    if isinstance(value, _UNBINDABLE):
        raise InvalidQueryException(
            f"Value for column '{column}' cannot be bound: {type(value).__name__}"
        )
    return value


def is_raw(value: Any) -> bool:
    """True if value must be spliced literally."""
    return isinstance(value, RawSql)


__all__ = ["check_bindable", "is_raw", "quote_identifier", "quote_table"]
