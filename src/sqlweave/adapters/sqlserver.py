"""
SQL Server database adapter implementation.
"""

from __future__ import annotations

from typing import Any

from ..dialects.sqlserver import SqlServerDialect
from .base import AdapterConfigurationError, AdapterConnectionError, ConnectionConfig, DBAPIAdapter

DEFAULT_ODBC_DRIVER = "ODBC Driver 17 for SQL Server"


def _load_driver():
    try:
        import pyodbc  # type: ignore[import-untyped]

        return pyodbc
    except ImportError:
        return None


class SqlServerAdapter(DBAPIAdapter):
    """
    Adapter wrapping the pyodbc driver for SQL Server.
    """

    name = "sqlserver"
    begin_statement = "BEGIN TRANSACTION"
    commit_statement = "COMMIT TRANSACTION"
    rollback_statement = "ROLLBACK TRANSACTION"

    def __init__(self, slow_query_ms: int | None = None) -> None:
        super().__init__(SqlServerDialect(), slow_query_ms)

    def _open(self, config: ConnectionConfig) -> tuple[Any, Any]:
        driver = _load_driver()
        if driver is None:
            raise AdapterConfigurationError("pyodbc is required to use SqlServerAdapter.")

        self.logger.info(
            "Connecting to SQL Server %s (autocommit=%s)",
            config.descriptive_label(),
            config.autocommit,
        )

        try:
            connection = driver.connect(
                self.connection_string(config),
                autocommit=bool(config.autocommit),
                timeout=int(config.timeout or 0),
            )
        except Exception as exc:
            raise AdapterConnectionError("Failed to connect to SQL Server.") from exc
        return connection, driver

    @staticmethod
    def connection_string(config: ConnectionConfig) -> str:
        dsn = config.dsn
        if dsn is None:
            return config.url
        options = dict(config.options or {})
        odbc_driver = options.pop("driver", DEFAULT_ODBC_DRIVER)
        server = dsn.host or "localhost"
        if dsn.port and dsn.port != 1433:
            server = f"{server},{dsn.port}"
        parts = {
            "DRIVER": f"{{{odbc_driver}}}",
            "SERVER": server,
            "DATABASE": dsn.database or "",
            "UID": dsn.username or "",
            "PWD": dsn.password or "",
        }
        if config.ssl:
            parts.update(config.ssl.odbc_options())
        parts.update({key: str(value) for key, value in options.items()})
        return ";".join(f"{key}={value}" for key, value in parts.items())

    def last_insert_id(self, cursor: Any, sequence: str | None = None) -> Any:
        cursor.execute("SELECT @@IDENTITY AS id")
        row = cursor.fetchone()
        return row[0] if row else None
