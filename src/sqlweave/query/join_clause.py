"""
Join clause builder. Its wheres compile with the ``on`` keyword.
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar

from ..grammar import Stringable
from .builder import MISSING, QueryBuilder


class JoinClause(QueryBuilder):
    clause_keyword: ClassVar[str] = "on"

    def __init__(self, parent: QueryBuilder, type: str, table: Stringable) -> None:
        super().__init__(parent.connection, parent.grammar)
        self.parent = parent
        self.type = type
        self.table = table

    def on(
        self,
        first: Stringable | Callable[["JoinClause"], Any],
        operator: Any = MISSING,
        second: Any = MISSING,
        boolean: str = "and",
    ) -> "JoinClause":
        if callable(first):
            return self.where_nested(first, boolean)
        return self.where_column(first, operator, second, boolean)

    def or_on(self, first: Any, operator: Any = MISSING, second: Any = MISSING) -> "JoinClause":
        return self.on(first, operator, second, "or")

    def new_query(self) -> "JoinClause":
        return JoinClause(self.parent.new_query(), self.type, self.table)

    def for_sub_query(self) -> QueryBuilder:
        return self.parent.new_query()

    def clone(self) -> "JoinClause":
        cloned = JoinClause(self.parent, self.type, self.table)
        cloned.registry = self.registry.clone()
        return cloned
