# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""genro-dbal: primary/replica database access layer for MySQL-style databases."""

from .adapter import Adapter
from .config import DbalConfig, config_from_env, config_from_ini
from .connection import ConnectionProvider
from .events import EVENT_QUERY_POST_EXECUTE, EVENT_QUERY_PRE_EXECUTE, EventDispatcher, QueryEvent
from .exceptions import (
    DbalException,
    DriverError,
    InvalidQueryException,
    QueryException,
    QueryRequirementException,
)
from .results import AffectedRows, LastInsertId
from .sql import RawSql

__version__ = "0.1.0"

__all__ = [
    "EVENT_QUERY_POST_EXECUTE",
    "EVENT_QUERY_PRE_EXECUTE",
    "Adapter",
    "AffectedRows",
    "ConnectionProvider",
    "DbalConfig",
    "DbalException",
    "DriverError",
    "EventDispatcher",
    "InvalidQueryException",
    "LastInsertId",
    "QueryEvent",
    "QueryException",
    "QueryRequirementException",
    "RawSql",
    "config_from_env",
    "config_from_ini",
]
