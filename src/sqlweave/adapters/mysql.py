"""
MySQL database adapter implementation.
"""

from __future__ import annotations

from typing import Any

from ..dialects.mysql import MySQLDialect
from .base import AdapterConfigurationError, AdapterConnectionError, ConnectionConfig, DBAPIAdapter


def _load_driver():
    try:
        import pymysql  # type: ignore[import-untyped]

        return pymysql
    except ImportError:
        return None


class MySQLAdapter(DBAPIAdapter):
    """
    Adapter wrapping the PyMySQL driver.
    """

    name = "mysql"
    placeholder_style = "format"
    begin_statement = "START TRANSACTION"

    def __init__(self, slow_query_ms: int | None = None) -> None:
        super().__init__(MySQLDialect(), slow_query_ms)

    def _open(self, config: ConnectionConfig) -> tuple[Any, Any]:
        driver = _load_driver()
        if driver is None:
            raise AdapterConfigurationError("PyMySQL is required to use MySQLAdapter.")
        if not config.dsn:
            raise AdapterConfigurationError("ConnectionConfig must be built from a DSN for MySQL connections.")

        options = dict(config.options or {})
        if config.ssl:
            for key, value in config.ssl.mysql_options().items():
                options.setdefault(key, value)
        if config.timeout and "connect_timeout" not in options:
            options["connect_timeout"] = int(config.timeout)

        self.logger.info(
            "Connecting to MySQL %s (autocommit=%s)",
            config.descriptive_label(),
            config.autocommit,
        )

        dsn = config.dsn
        connect_kwargs = {
            "host": dsn.host or "localhost",
            "user": dsn.username,
            "password": dsn.password,
            "database": dsn.database,
            "autocommit": bool(config.autocommit),
            **options,
        }
        if dsn.port:
            connect_kwargs["port"] = dsn.port

        try:
            connection = driver.connect(**connect_kwargs)
        except Exception as exc:
            raise AdapterConnectionError("Failed to connect to MySQL.") from exc
        if config.isolation_level:
            with connection.cursor() as cursor:
                cursor.execute(f"SET SESSION TRANSACTION ISOLATION LEVEL {config.isolation_level}")
        return connection, driver
