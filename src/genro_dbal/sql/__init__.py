# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQL composition for the MySQL dialect.

Components:
    SqlComposer: INSERT / UPDATE / DELETE with backtick quoting and
                 positional ``?`` parameters.
    WhereBuilder: WHERE clause from a string, a list of strings or a
                  column mapping.
    RawSql: Marker for fragments spliced literally (e.g. ``NOW()``).

Example:
    from genro_dbal.sql import RawSql, SqlComposer

    sql, params = SqlComposer().insert(
        "events", {"name": "boot", "created_on": RawSql("NOW()")}
    )
    # INSERT INTO `events` (`name`, `created_on`) VALUES (?, NOW())   ["boot"]
"""

from .composer import SqlComposer
from .fragment import RawSql
from .quoting import quote_identifier, quote_table
from .where import WhereBuilder

__all__ = [
    "RawSql",
    "SqlComposer",
    "WhereBuilder",
    "quote_identifier",
    "quote_table",
]
