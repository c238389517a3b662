# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""WHERE clause rendering with positional parameters."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..exceptions import InvalidQueryException, QueryRequirementException
from .quoting import check_bindable, is_raw, quote_identifier


class WhereBuilder:
    """Builds the WHERE clause of UPDATE and DELETE statements.

    Three shapes are accepted:
    1. Raw string: ``"id = 1"`` → ``WHERE id = 1``
    2. Sequence of raw strings: ``["id = 1", "active = 1"]`` → joined with AND
    3. Mapping column → value: ``{"id": 1, "kind": "a"}`` →
       ``WHERE `id` = ? AND `kind` = ?`` with values [1, "a"]

    Anything else (numbers, unknown objects, empty values) is rejected.
    """

    def build(self, where: Any) -> tuple[str, list[Any]]:
        """Return (where_sql, parameters), where_sql starting with 'WHERE '.

        Raises:
            QueryRequirementException: If where is None or empty.
            InvalidQueryException: If where has an unsupported shape.
        """
        if isinstance(where, str):
            where = where.strip()
        if where is None or (isinstance(where, (str, list, tuple, Mapping)) and not where):
            raise QueryRequirementException("WHERE clause is required")

        if isinstance(where, str):
            return f"WHERE {where}", []

        if isinstance(where, Mapping):
            return self._build_mapping(where)

        if isinstance(where, (list, tuple)):
            return self._build_sequence(where)

        raise InvalidQueryException(f"Unsupported WHERE clause: {type(where).__name__}")

    def _build_sequence(self, where: list[Any] | tuple[Any, ...]) -> tuple[str, list[Any]]:
        """Sequence of raw conditions joined with AND."""
        for condition in where:
            if not isinstance(condition, str) or not condition.strip():
                raise InvalidQueryException(f"Invalid WHERE condition: {condition!r}")
        return "WHERE " + " AND ".join(where), []

    def _build_mapping(self, where: Mapping[Any, Any]) -> tuple[str, list[Any]]:
        """Mapping: equality per column joined with AND."""
        parts = []
        params: list[Any] = []
        for column, value in where.items():
            quoted = quote_identifier(column)
            if is_raw(value):
                parts.append(f"{quoted} = {value}")
                continue
            parts.append(f"{quoted} = ?")
            params.append(check_bindable(column, value))
        return "WHERE " + " AND ".join(parts), params


__all__ = ["WhereBuilder"]
