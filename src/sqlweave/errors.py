"""
Error taxonomy shared by grammars, sessions and the cache layer.
"""

from __future__ import annotations

from typing import Any, Sequence


class SqlweaveError(RuntimeError):
    """Base error for sqlweave failures."""


class CompilationError(SqlweaveError):
    """Raised when a dialect cannot express the requested operation."""


class TransactionError(SqlweaveError):
    """Raised when transaction helpers are misused."""


class MultipleColumnsError(SqlweaveError):
    """Raised when a scalar selection returns more than one column."""

    def __init__(self, message: str = "Multiple columns found.") -> None:
        super().__init__(message)


class CacheConfigurationError(SqlweaveError):
    """Raised when the cache layer is asked for an unknown connection."""


class QueryError(SqlweaveError):
    """
    Driver failure decorated with connection name and the rendered SQL.

    ``sql`` and ``bindings`` keep the statement exactly as executed; only the
    message carries the bindings substituted back into the text.
    """

    def __init__(
        self,
        connection_name: str,
        sql: str,
        bindings: Sequence[Any],
        previous: BaseException,
        *,
        raw_sql: str | None = None,
    ) -> None:
        self.connection_name = connection_name
        self.sql = sql
        self.bindings = list(bindings)
        self.previous = previous
        rendered = raw_sql if raw_sql is not None else sql
        super().__init__(f"{previous} (Connection: {connection_name}, SQL: {rendered})")

    def get_connection_name(self) -> str:
        return self.connection_name

    def get_sql(self) -> str:
        return self.sql

    def get_bindings(self) -> list[Any]:
        return self.bindings


class DeadlockError(SqlweaveError):
    """
    Raised when a nested transaction fails on a concurrency error.

    The outer transaction owns the retry budget, so callers usually retry it
    as a whole.
    """

    def __init__(self, previous: BaseException) -> None:
        self.previous = previous
        super().__init__(str(previous))
