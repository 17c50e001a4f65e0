"""
Adapter protocol definitions and the shared DB-API adapter core.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Protocol, Sequence

from ..dialects.base import Dialect
from ..security.dsns import DSNConfig, parse_dsn
from ..security.redaction import redact_params
from ..utils import get_logger, time_call
from ..utils.performance import resolve_slow_query_ms


class AdapterError(RuntimeError):
    """Base error for adapter-related failures."""


class AdapterConfigurationError(AdapterError):
    """Raised when configuration or required dependencies are invalid."""


class AdapterConnectionError(AdapterError):
    """Raised when establishing or using a connection fails."""


class AdapterExecutionError(AdapterError):
    """Raised when SQL execution or parameter validation fails."""


class AdapterTransactionError(AdapterError):
    """Raised when transaction operations fail."""


@dataclass
class SSLConfig:
    mode: str | None = None
    rootcert: str | None = None
    cert: str | None = None
    key: str | None = None
    ca: str | None = None
    check_hostname: bool | None = None

    def postgres_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {}
        if self.mode:
            options["sslmode"] = self.mode
        if self.rootcert:
            options["sslrootcert"] = self.rootcert
        if self.cert:
            options["sslcert"] = self.cert
        if self.key:
            options["sslkey"] = self.key
        return options

    def mysql_options(self) -> dict[str, Any]:
        ssl: dict[str, Any] = {}
        if self.ca:
            ssl["ca"] = self.ca
        if self.cert:
            ssl["cert"] = self.cert
        if self.key:
            ssl["key"] = self.key
        if self.check_hostname is not None:
            ssl["check_hostname"] = self.check_hostname
        if not ssl:
            return {}
        return {"ssl": ssl}

    def odbc_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {}
        if self.mode:
            options["Encrypt"] = "no" if self.mode in ("disable", "allow") else "yes"
        if self.check_hostname is False:
            options["TrustServerCertificate"] = "yes"
        return options


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: str, *, key: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise AdapterConfigurationError(f"Invalid boolean value for '{key}': {value!r}")


def _parse_float(value: str, *, key: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise AdapterConfigurationError(f"Invalid float value for '{key}': {value!r}") from exc


def _parse_int(value: str, *, key: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise AdapterConfigurationError(f"Invalid integer value for '{key}': {value!r}") from exc


def _pop_bool(query: dict[str, str], key: str) -> bool | None:
    if key not in query:
        return None
    return _parse_bool(query.pop(key), key=key)


def _pop_float(query: dict[str, str], key: str) -> float | None:
    if key not in query:
        return None
    return _parse_float(query.pop(key), key=key)


def _parse_ssl(query: dict[str, str]) -> SSLConfig | None:
    ssl = SSLConfig()
    if "sslmode" in query:
        ssl.mode = query.pop("sslmode")
    if "sslrootcert" in query:
        ssl.rootcert = query.pop("sslrootcert")
    if "sslcert" in query:
        ssl.cert = query.pop("sslcert")
    if "sslkey" in query:
        ssl.key = query.pop("sslkey")
    if "ssl_ca" in query:
        ssl.ca = query.pop("ssl_ca")
    if "ssl_cert" in query:
        ssl.cert = query.pop("ssl_cert")
    if "ssl_key" in query:
        ssl.key = query.pop("ssl_key")
    if "ssl_check_hostname" in query:
        ssl.check_hostname = _parse_bool(query.pop("ssl_check_hostname"), key="ssl_check_hostname")
    if any([ssl.mode, ssl.rootcert, ssl.cert, ssl.key, ssl.ca, ssl.check_hostname is not None]):
        return ssl
    return None


def _parse_option_values(query: dict[str, str]) -> dict[str, Any]:
    options: dict[str, Any] = {}
    for key, value in query.items():
        if key == "connect_timeout":
            options[key] = _parse_int(value, key=key)
        else:
            options[key] = value
    return options


@dataclass
class ConnectionConfig:
    """
    Normalized connection configuration for adapters.

    With ``autocommit`` enabled (the default) statements outside a transaction
    commit immediately and transactions are opened with explicit statements.
    """

    url: str
    autocommit: bool = True
    isolation_level: str | None = None
    timeout: float | None = None
    options: dict[str, Any] | None = None
    ssl: SSLConfig | None = None
    dsn: DSNConfig | None = None
    source: str | None = None

    @classmethod
    def from_dsn(cls, dsn: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a connection config by parsing the DSN string.
        """

        parsed = parse_dsn(dsn)
        query = dict(parsed.query)

        parsed_autocommit = _pop_bool(query, "autocommit")
        parsed_timeout = _pop_float(query, "timeout")
        parsed_isolation_level = query.pop("isolation_level", None)
        parsed_ssl = _parse_ssl(query)
        options_from_dsn = _parse_option_values(query)

        options = dict(options_from_dsn)
        passed_options = kwargs.pop("options", None) or {}
        options.update(passed_options)

        autocommit = kwargs.pop("autocommit", parsed_autocommit)
        if autocommit is None:
            autocommit = True
        isolation_level = kwargs.pop("isolation_level", parsed_isolation_level)
        timeout = kwargs.pop("timeout", parsed_timeout)
        ssl = kwargs.pop("ssl", parsed_ssl)

        return cls(
            url=dsn,
            dsn=parsed,
            autocommit=autocommit,
            isolation_level=isolation_level,
            timeout=timeout,
            options=options or None,
            ssl=ssl,
            **kwargs,
        )

    @classmethod
    def from_env(cls, env_var: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a config from an environment variable containing a DSN.
        """

        value = os.getenv(env_var)
        if not value:
            raise AdapterConfigurationError(f"Environment variable {env_var} is not set")
        return cls.from_dsn(value, source=env_var, **kwargs)

    def redacted_dsn(self) -> str:
        """
        Return a DSN safe for logging (credentials removed).
        """

        if self.dsn:
            return self.dsn.redacted()
        return self.url

    def descriptive_label(self) -> str:
        redacted = self.redacted_dsn()
        if self.source:
            return f"{self.source} ({redacted})"
        return redacted


class DatabaseAdapter(Protocol):
    """
    Adapter interface exposing database operations used by connection sessions.
    """

    dialect: Dialect
    slow_query_ms: int

    def connect(self, config: ConnectionConfig) -> Any:
        """
        Establish a connection handle using the supplied configuration.
        """

    def close(self) -> None:
        """
        Close underlying resources. Implementations should be idempotent.
        """

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        """
        Execute a single SQL statement returning a cursor-like object.
        """

    def execute_unprepared(self, sql: str) -> Any:
        """
        Execute raw SQL without placeholder processing or parameters.
        """

    def begin(self) -> None:
        """
        Start a transaction on the underlying connection.
        """

    def commit(self) -> None:
        """
        Commit the current transaction.
        """

    def rollback(self) -> None:
        """
        Roll back the current transaction.
        """

    def last_insert_id(self, cursor: Any, sequence: str | None = None) -> Any:
        """
        Retrieve the key generated by the previous insert.
        """


# ---------------------------------------------------------------------- #
# Placeholders and rows
# ---------------------------------------------------------------------- #
def convert_placeholders(sql: str, style: str = "qmark") -> str:
    """
    Rewrite grammar placeholders for the driver's paramstyle.

    ``?`` becomes the driver placeholder and ``??`` a literal question mark
    (PostgreSQL json operators). For ``format`` drivers every ``%`` is doubled.
    Text inside single-quoted literals is left alone apart from ``%``.
    """

    placeholder = "%s" if style == "format" else "?"
    output: List[str] = []
    in_literal = False
    index = 0
    length = len(sql)
    while index < length:
        char = sql[index]
        if char == "%" and style == "format":
            output.append("%%")
        elif char == "'":
            in_literal = not in_literal
            output.append(char)
        elif char == "?" and not in_literal:
            if index + 1 < length and sql[index + 1] == "?":
                output.append("?")
                index += 1
            else:
                output.append(placeholder)
        else:
            output.append(char)
        index += 1
    return "".join(output)


def count_format_placeholders(sql: str) -> int:
    count = 0
    index = 0
    while index < len(sql) - 1:
        if sql[index] == "%" and sql[index + 1] == "s":
            count += 1
            index += 2
            continue
        if sql[index] == "%" and sql[index + 1] == "%":
            index += 2
            continue
        index += 1
    return count


def column_names(cursor: Any) -> List[str]:
    return [column[0] for column in cursor.description or ()]


def rows_from_cursor(cursor: Any) -> List[Dict[str, Any]]:
    if cursor.description is None:
        return []
    columns = column_names(cursor)
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


def iter_rows(cursor: Any) -> Iterator[Dict[str, Any]]:
    if cursor.description is None:
        return
    columns = column_names(cursor)
    while True:
        row = cursor.fetchone()
        if row is None:
            return
        yield dict(zip(columns, row))


# ---------------------------------------------------------------------- #
# Shared DB-API adapter
# ---------------------------------------------------------------------- #
@dataclass
class AdapterState:
    connection: Any
    config: ConnectionConfig
    driver: Any = None


class DBAPIAdapter:
    """
    Shared behaviour for PEP 249 drivers.

    Subclasses open the driver connection in :meth:`_open` and declare the
    driver paramstyle plus the statements that open and close transactions.
    """

    name: str = "generic"
    placeholder_style: str = "qmark"
    begin_statement: str = "BEGIN"
    commit_statement: str = "COMMIT"
    rollback_statement: str = "ROLLBACK"

    def __init__(self, dialect: Dialect, slow_query_ms: int | None = None) -> None:
        self.dialect = dialect
        self._state: AdapterState | None = None
        self.logger = get_logger(f"adapters.{self.name}")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    def connect(self, config: ConnectionConfig) -> Any:
        connection, driver = self._open(config)
        self._state = AdapterState(connection, config, driver)
        return connection

    def _open(self, config: ConnectionConfig) -> tuple[Any, Any]:
        raise NotImplementedError

    def close(self) -> None:
        if self._state:
            try:
                self._state.connection.close()
            finally:
                self._state = None

    @property
    def connected(self) -> bool:
        return self._state is not None

    def _ensure_connection(self) -> Any:
        if not self._state:
            raise AdapterConnectionError(f"{type(self).__name__} is not connected.")
        return self._state.connection

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    def prepare(self, sql: str) -> str:
        return convert_placeholders(sql, self.placeholder_style)

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        connection = self._ensure_connection()
        statement = self.prepare(sql)
        params = tuple(params or ())
        self._validate_params(statement, params)
        cursor = connection.cursor()
        with time_call(
            f"{self.name}.execute",
            self.logger,
            sql=statement,
            params=redact_params(params),
            threshold_ms=self.slow_query_ms,
        ):
            cursor.execute(statement, params)
        return cursor

    def execute_unprepared(self, sql: str) -> Any:
        connection = self._ensure_connection()
        cursor = connection.cursor()
        with time_call(f"{self.name}.execute_unprepared", self.logger, sql=sql, threshold_ms=self.slow_query_ms):
            cursor.execute(sql)
        return cursor

    def _validate_params(self, sql: str, params: Sequence[Any]) -> None:
        if self.placeholder_style != "format":
            return
        placeholder_count = count_format_placeholders(sql)
        if placeholder_count == 0:
            if params:
                raise AdapterExecutionError("Parameters provided but SQL statement has no placeholders.")
            return
        if placeholder_count != len(params):
            raise AdapterExecutionError(
                f"Parameter count mismatch: expected {placeholder_count}, received {len(params)}."
            )

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def _autocommit(self) -> bool:
        return bool(self._state and self._state.config.autocommit)

    def begin(self) -> None:
        if self._autocommit():
            self.execute_unprepared(self.begin_statement)

    def commit(self) -> None:
        if self._autocommit():
            self.execute_unprepared(self.commit_statement)
        else:
            self._ensure_connection().commit()

    def rollback(self) -> None:
        if self._autocommit():
            self.execute_unprepared(self.rollback_statement)
        else:
            self._ensure_connection().rollback()

    def last_insert_id(self, cursor: Any, sequence: str | None = None) -> Any:
        return cursor.lastrowid
