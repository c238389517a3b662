# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy for the database access layer.

DbalException
    ├── DriverError: native driver failure (sqlite3.Error, pymysql.MySQLError)
    ├── QueryException: statement execution failed (wraps a DriverError)
    ├── InvalidQueryException: caller-supplied inputs are ill-formed
    └── QueryRequirementException: a required argument is missing
"""

from __future__ import annotations


class DbalException(Exception):
    """Base class for all genro-dbal errors.

    Attributes:
        cause: Underlying exception, if any. Also chained as __cause__.
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class DriverError(DbalException):
    """Raised by driver handles when the native DB-API driver fails."""


class QueryException(DbalException):
    """Raised when a statement could not be prepared or executed."""


class InvalidQueryException(DbalException):
    """Raised when query inputs are malformed (bad data, bad WHERE shape)."""


class QueryRequirementException(DbalException):
    """Raised when a required query argument is empty or missing."""


__all__ = [
    "DbalException",
    "DriverError",
    "InvalidQueryException",
    "QueryException",
    "QueryRequirementException",
]
