"""
Notifications emitted by connection sessions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, List, Optional

from .utils.naming import camel_to_snake


@dataclass(frozen=True)
class ConnectionEvent:
    connection_name: str

    name: ClassVar[str] = "connection_event"

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.name = camel_to_snake(cls.__name__)


@dataclass(frozen=True)
class QueryExecuted(ConnectionEvent):
    sql: str = ""
    bindings: List[Any] = field(default_factory=list)
    time: Optional[float] = None
    in_transaction: bool = False


@dataclass(frozen=True)
class StatementPrepared(ConnectionEvent):
    statement: Any = None


@dataclass(frozen=True)
class TransactionBeginning(ConnectionEvent):
    pass


@dataclass(frozen=True)
class TransactionCommitting(ConnectionEvent):
    pass


@dataclass(frozen=True)
class TransactionCommitted(ConnectionEvent):
    pass


@dataclass(frozen=True)
class TransactionRolledBack(ConnectionEvent):
    pass


__all__ = [
    "ConnectionEvent",
    "QueryExecuted",
    "StatementPrepared",
    "TransactionBeginning",
    "TransactionCommitting",
    "TransactionCommitted",
    "TransactionRolledBack",
]
