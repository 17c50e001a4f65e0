"""
PostgreSQL database adapter implementation.
"""

from __future__ import annotations

from typing import Any

from ..dialects.postgres import PostgresDialect
from .base import AdapterConfigurationError, AdapterConnectionError, ConnectionConfig, DBAPIAdapter


def _load_driver():
    try:
        import psycopg

        return psycopg
    except ImportError:
        return None


class PostgresAdapter(DBAPIAdapter):
    """
    Adapter wrapping the psycopg PostgreSQL driver.
    """

    name = "postgres"
    placeholder_style = "format"

    def __init__(self, slow_query_ms: int | None = None) -> None:
        super().__init__(PostgresDialect(), slow_query_ms)

    def _open(self, config: ConnectionConfig) -> tuple[Any, Any]:
        driver = _load_driver()
        if driver is None:
            raise AdapterConfigurationError("psycopg is required to use PostgresAdapter.")

        options = dict(config.options or {})
        if config.ssl:
            for key, value in config.ssl.postgres_options().items():
                options.setdefault(key, value)
        if config.timeout and "connect_timeout" not in options:
            options["connect_timeout"] = int(config.timeout)

        self.logger.info(
            "Connecting to PostgreSQL %s (autocommit=%s)",
            config.descriptive_label(),
            config.autocommit,
        )

        try:
            connection = driver.connect(self._conninfo(config), **options)
        except Exception as exc:
            raise AdapterConnectionError("Failed to connect to PostgreSQL.") from exc
        connection.autocommit = bool(config.autocommit)
        if config.isolation_level:
            setattr(connection, "isolation_level", config.isolation_level)
        return connection, driver

    @staticmethod
    def _conninfo(config: ConnectionConfig) -> str:
        if config.dsn is None:
            return config.url
        # libpq rejects unknown query options, the parsed ones travel as kwargs
        return config.url.split("?", 1)[0]

    def last_insert_id(self, cursor: Any, sequence: str | None = None) -> Any:
        row = cursor.fetchone()
        if not row:
            raise AdapterConnectionError("No RETURNING data available for last insert id.")
        return row[0]
