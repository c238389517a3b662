# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Marker type for SQL spliced literally into composed statements."""

from __future__ import annotations


class RawSql:
    """SQL fragment emitted as-is instead of being bound to a placeholder.

    Usage:
        adapter.update("posts", {"modified_on": RawSql("NOW()")}, {"id": 5})
        # UPDATE `posts` SET `modified_on` = NOW() WHERE `id` = ?
    """

    __slots__ = ("sql",)

    def __init__(self, sql: str):
        if not isinstance(sql, str) or not sql.strip():
            raise ValueError("RawSql requires a non-empty SQL string")
        self.sql = sql

    def __str__(self) -> str:
        return self.sql

    def __repr__(self) -> str:
        return f"RawSql({self.sql!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RawSql):
            return self.sql == other.sql
        return NotImplemented

    def __hash__(self) -> int:
        return hash((RawSql, self.sql))


__all__ = ["RawSql"]
