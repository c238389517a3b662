# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Result of the insert operations.

The driver's last insert id is meaningless ("0", 0, empty) for composite
or non-integer keys, for INSERT IGNORE of a duplicate and for most
ON DUPLICATE KEY UPDATE outcomes. In those cases the affected-row count is
the useful signal, so inserts return one of two explicit variants:

    result = adapter.insert("users", {"name": "ada"})
    if isinstance(result, LastInsertId):
        user_id = result.value
    else:  # AffectedRows
        inserted = result.value > 0
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class LastInsertId:
    """Auto-increment value reported by the driver, in its native type."""

    value: Any


@dataclass(frozen=True)
class AffectedRows:
    """Affected-row count of the insert statement."""

    value: int


InsertResult = Union[LastInsertId, AffectedRows]


def is_meaningful_insert_id(value: Any) -> bool:
    """False for None, False, empty, 0 and "0"."""
    return bool(value) and value != "0"


__all__ = ["AffectedRows", "InsertResult", "LastInsertId", "is_meaningful_insert_id"]
