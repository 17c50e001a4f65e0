"""
SQLite database adapter implementation.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from ..dialects.sqlite import SQLiteDialect
from .base import ConnectionConfig, DBAPIAdapter


class SQLiteAdapter(DBAPIAdapter):
    """
    Adapter wrapping the Python stdlib sqlite3 module.
    """

    name = "sqlite"

    def __init__(self, slow_query_ms: int | None = None) -> None:
        super().__init__(SQLiteDialect(), slow_query_ms)

    def _open(self, config: ConnectionConfig) -> tuple[sqlite3.Connection, Any]:
        path = self._normalize_path(config.url)
        timeout = config.timeout if config.timeout is not None else 5.0

        connection = sqlite3.connect(
            path,
            isolation_level=None if config.autocommit else "",
            timeout=timeout,
            detect_types=sqlite3.PARSE_DECLTYPES,
            check_same_thread=False,
        )
        options = config.options or {}
        if str(options.get("foreign_keys", "true")).lower() not in ("0", "false", "off", "no"):
            connection.execute("PRAGMA foreign_keys = ON")
        if config.isolation_level:
            connection.isolation_level = config.isolation_level
        return connection, sqlite3

    def last_insert_id(self, cursor: sqlite3.Cursor, sequence: str | None = None) -> Any:
        return cursor.lastrowid

    @staticmethod
    def _normalize_path(url: str) -> str:
        if url in ("sqlite:///:memory:", "sqlite://", ":memory:"):
            return ":memory:"
        prefix = "sqlite:///"
        if url.startswith(prefix):
            return url[len(prefix) :].split("?", 1)[0]
        return url
