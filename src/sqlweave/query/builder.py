"""
Fluent query builder accumulating clauses into a :class:`Registry`.

The builder only records intent; SQL text comes from the bound grammar and
execution goes through the bound connection (or session).
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, Iterator, List, Mapping, Optional, Sequence

from ..errors import SqlweaveError
from ..expression import Expression
from ..grammar import Stringable
from ..pagination import Cursor, CursorPaginator, LengthAwarePaginator, Paginator
from .grammars.base import QueryGrammar
from .registry import (
    Aggregate,
    CommonTableExpression,
    CycleDetection,
    HavingBasic,
    HavingBetween,
    HavingBitwise,
    HavingNested,
    HavingNull,
    HavingRaw,
    IndexHint,
    Order,
    OrderRaw,
    Registry,
    Union_,
    WhereBasic,
    WhereBetween,
    WhereBetweenColumns,
    WhereBitwise,
    WhereColumn,
    WhereDateTime,
    WhereExists,
    WhereFulltext,
    WhereIn,
    WhereInRaw,
    WhereInSub,
    WhereJsonBoolean,
    WhereJsonContains,
    WhereJsonContainsKey,
    WhereJsonLength,
    WhereNested,
    WhereNull,
    WhereRaw,
    WhereRowValues,
    WhereSub,
)

if TYPE_CHECKING:
    from .join_clause import JoinClause


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

OPERATORS = (
    "=", "<", ">", "<=", ">=", "<>", "!=", "<=>",
    "like", "like binary", "not like", "ilike",
    "&", "|", "^", "<<", ">>", "&~", "is", "is not",
    "rlike", "not rlike", "regexp", "not regexp",
    "~", "~*", "!~", "!~*", "similar to", "not similar to", "not ilike", "~~*", "!~~*",
)
BITWISE_OPERATORS = ("&", "|", "^", "<<", ">>", "&~")

_DATE_FORMATS = {
    "date": "%Y-%m-%d",
    "time": "%H:%M:%S",
    "day": "%d",
    "month": "%m",
    "year": "%Y",
}

SubQuery = "QueryBuilder | Callable[[QueryBuilder], Any] | Stringable"


class QueryBuilder:
    """
    Accumulates clauses, compiles through its grammar and runs through its connection.
    """

    clause_keyword: ClassVar[str] = "where"

    def __init__(self, connection: Any = None, grammar: QueryGrammar | None = None) -> None:
        self.connection = connection
        if grammar is None:
            grammar = connection.get_query_grammar() if connection is not None else QueryGrammar()
        self.grammar = grammar
        self.registry = Registry()
        self._cache_options: Optional[Dict[str, Any]] = None

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #
    def new_query(self) -> "QueryBuilder":
        return QueryBuilder(self.connection, self.grammar)

    def for_sub_query(self) -> "QueryBuilder":
        return self.new_query()

    def for_nested_where(self) -> "QueryBuilder":
        return self.new_query().from_(self.registry.from_)

    def clone(self) -> "QueryBuilder":
        cloned = self.__class__.__new__(self.__class__)
        cloned.__dict__.update(self.__dict__)
        cloned.registry = self.registry.clone()
        return cloned

    def clone_without(self, properties: Sequence[str]) -> "QueryBuilder":
        cloned = self.clone()
        cloned.registry = self.registry.clone(without=tuple(properties))
        return cloned

    def clone_without_bindings(self, keys: Sequence[str]) -> "QueryBuilder":
        cloned = self.clone()
        cloned.registry = self.registry.clone(without_bindings=tuple(keys))
        return cloned

    @staticmethod
    def raw(value: Any) -> Expression:
        return Expression(value)

    # ------------------------------------------------------------------ #
    # Select / from
    # ------------------------------------------------------------------ #
    def select(self, *columns: Any) -> "QueryBuilder":
        self.registry.columns = []
        self.registry.bindings["select"] = []
        return self.add_select(*columns) if columns else self.add_select("*")

    def add_select(self, *columns: Any) -> "QueryBuilder":
        for column in _flatten_columns(columns):
            if isinstance(column, Mapping):
                for alias, query in column.items():
                    self.select_sub(query, alias)
                continue
            if self.registry.columns is None:
                self.registry.columns = []
            if column not in self.registry.columns:
                self.registry.columns.append(column)
        return self

    def select_sub(self, query: Any, alias: str) -> "QueryBuilder":
        sql, bindings = self.create_sub(query)
        return self.select_raw(f"({sql}) as {self.grammar.wrap(alias)}", bindings)

    def select_raw(self, expression: str, bindings: Sequence[Any] = ()) -> "QueryBuilder":
        if self.registry.columns is None:
            self.registry.columns = []
        self.registry.columns.append(Expression(expression))
        self.add_binding(list(bindings), "select")
        return self

    def distinct(self, *columns: Stringable) -> "QueryBuilder":
        self.registry.distinct = list(_flatten_columns(columns)) if columns else True
        return self

    def from_(self, table: Any, alias: str | None = None) -> "QueryBuilder":
        if isinstance(table, QueryBuilder) or callable(table):
            return self.from_sub(table, alias or "")
        self.registry.from_ = f"{table} as {alias}" if alias else table
        return self

    def from_sub(self, query: Any, alias: str) -> "QueryBuilder":
        sql, bindings = self.create_sub(query)
        return self.from_raw(f"({sql}) as {self.grammar.wrap_table(alias)}", bindings)

    def from_raw(self, expression: str, bindings: Sequence[Any] = ()) -> "QueryBuilder":
        self.registry.from_ = Expression(expression)
        self.add_binding(list(bindings), "from")
        return self

    def use_index(self, index: str) -> "QueryBuilder":
        self.registry.index_hint = IndexHint("use", index)
        return self

    def force_index(self, index: str) -> "QueryBuilder":
        self.registry.index_hint = IndexHint("force", index)
        return self

    def ignore_index(self, index: str) -> "QueryBuilder":
        self.registry.index_hint = IndexHint("ignore", index)
        return self

    # ------------------------------------------------------------------ #
    # Common table expressions
    # ------------------------------------------------------------------ #
    def with_expression(
        self,
        name: str,
        query: Any,
        columns: Sequence[str] | None = None,
        *,
        recursive: bool = False,
        materialized: bool | None = None,
        cycle: CycleDetection | None = None,
    ) -> "QueryBuilder":
        if callable(query) and not isinstance(query, QueryBuilder):
            sub = self.for_sub_query()
            result = query(sub)
            query = result if isinstance(result, QueryBuilder) else sub
        self.registry.expressions.append(
            CommonTableExpression(
                name=name,
                query=query,
                columns=list(columns or []),
                recursive=recursive,
                materialized=materialized,
                cycle=cycle,
            )
        )
        if isinstance(query, QueryBuilder):
            self.add_binding(query.get_bindings(), "expressions")
        return self

    def with_recursive_expression(self, name: str, query: Any, columns: Sequence[str] | None = None) -> "QueryBuilder":
        return self.with_expression(name, query, columns, recursive=True)

    def with_materialized_expression(self, name: str, query: Any, columns: Sequence[str] | None = None) -> "QueryBuilder":
        return self.with_expression(name, query, columns, materialized=True)

    def with_non_materialized_expression(
        self, name: str, query: Any, columns: Sequence[str] | None = None
    ) -> "QueryBuilder":
        return self.with_expression(name, query, columns, materialized=False)

    def with_recursive_expression_and_cycle_detection(
        self,
        name: str,
        query: Any,
        cycle_columns: Sequence[str],
        marker_column: str = "is_cycle",
        path_column: str = "path",
        columns: Sequence[str] | None = None,
    ) -> "QueryBuilder":
        cycle = CycleDetection(list(cycle_columns), marker_column, path_column)
        return self.with_expression(name, query, columns, recursive=True, cycle=cycle)

    def recursion_limit(self, value: int | None = None) -> "QueryBuilder":
        self.registry.recursion_limit = value
        return self

    # ------------------------------------------------------------------ #
    # Joins
    # ------------------------------------------------------------------ #
    def join(
        self,
        table: Stringable,
        first: Any,
        operator: Any = MISSING,
        second: Any = MISSING,
        type: str = "inner",
        where: bool = False,
    ) -> "QueryBuilder":
        join = self.new_join_clause(self, type, table)
        if callable(first):
            first(join)
        elif where:
            join.where(first, operator, second)
        else:
            join.on(first, operator, second)
        self.registry.joins.append(join)
        self.add_binding(join.get_bindings(), "join")
        return self

    def join_where(self, table: Stringable, first: Any, operator: Any, second: Any, type: str = "inner") -> "QueryBuilder":
        return self.join(table, first, operator, second, type, True)

    def join_sub(
        self,
        query: Any,
        alias: str,
        first: Any,
        operator: Any = MISSING,
        second: Any = MISSING,
        type: str = "inner",
        where: bool = False,
    ) -> "QueryBuilder":
        sql, bindings = self.create_sub(query)
        expression = Expression(f"({sql}) as {self.grammar.wrap_table(alias)}")
        self.add_binding(bindings, "join")
        return self.join(expression, first, operator, second, type, where)

    def left_join(self, table: Stringable, first: Any, operator: Any = MISSING, second: Any = MISSING) -> "QueryBuilder":
        return self.join(table, first, operator, second, "left")

    def left_join_sub(
        self, query: Any, alias: str, first: Any, operator: Any = MISSING, second: Any = MISSING
    ) -> "QueryBuilder":
        return self.join_sub(query, alias, first, operator, second, "left")

    def right_join(self, table: Stringable, first: Any, operator: Any = MISSING, second: Any = MISSING) -> "QueryBuilder":
        return self.join(table, first, operator, second, "right")

    def cross_join(self, table: Stringable, first: Any = None, operator: Any = MISSING, second: Any = MISSING) -> "QueryBuilder":
        if first is not None:
            return self.join(table, first, operator, second, "cross")
        self.registry.joins.append(self.new_join_clause(self, "cross", table))
        return self

    def new_join_clause(self, parent: "QueryBuilder", type: str, table: Stringable) -> "JoinClause":
        from .join_clause import JoinClause

        return JoinClause(parent, type, table)

    # ------------------------------------------------------------------ #
    # Wheres
    # ------------------------------------------------------------------ #
    def where(
        self,
        column: Any,
        operator: Any = MISSING,
        value: Any = MISSING,
        boolean: str = "and",
        not_: bool = False,
    ) -> "QueryBuilder":
        if isinstance(column, Mapping) or (isinstance(column, (list, tuple)) and not isinstance(column, str)):
            return self._add_array_of_wheres(column, boolean, not_)

        if callable(column) and operator is MISSING:
            return self.where_nested(column, boolean, not_)

        value, operator = self.prepare_value_and_operator(value, operator, value is MISSING)

        if isinstance(value, QueryBuilder) or (callable(value) and not isinstance(value, Expression)):
            return self._where_sub(column, operator, value, boolean, not_)

        if value is None:
            return self.where_null(column, boolean, not_=(operator != "=") != not_)

        kind = WhereBasic
        if isinstance(column, str) and self.grammar.is_json_selector(column) and isinstance(value, bool):
            value = Expression("true" if value else "false")
            kind = WhereJsonBoolean
        if self.is_bitwise_operator(operator):
            kind = WhereBitwise
        self.registry.wheres.append(
            kind(column=column, operator=operator, value=value, boolean=boolean, not_=not_)
        )
        self.add_binding(value, "where")
        return self

    def or_where(self, column: Any, operator: Any = MISSING, value: Any = MISSING) -> "QueryBuilder":
        return self.where(column, operator, value, "or")

    def where_not(self, column: Any, operator: Any = MISSING, value: Any = MISSING, boolean: str = "and") -> "QueryBuilder":
        return self.where(column, operator, value, boolean, True)

    def or_where_not(self, column: Any, operator: Any = MISSING, value: Any = MISSING) -> "QueryBuilder":
        return self.where_not(column, operator, value, "or")

    def where_column(
        self,
        first: Any,
        operator: Any = MISSING,
        second: Any = MISSING,
        boolean: str = "and",
        not_: bool = False,
    ) -> "QueryBuilder":
        if isinstance(first, (list, tuple)):
            return self.where_nested(lambda query: [query.where_column(*item) for item in first], boolean, not_)
        if second is MISSING:
            second, operator = operator, "="
        elif self.invalid_operator(operator):
            second, operator = operator, "="
        self.registry.wheres.append(
            WhereColumn(first=first, operator=operator, second=second, boolean=boolean, not_=not_)
        )
        return self

    def or_where_column(self, first: Any, operator: Any = MISSING, second: Any = MISSING) -> "QueryBuilder":
        return self.where_column(first, operator, second, "or")

    def where_raw(self, sql: str, bindings: Sequence[Any] = (), boolean: str = "and") -> "QueryBuilder":
        self.registry.wheres.append(WhereRaw(sql=sql, boolean=boolean))
        self.add_binding(list(bindings), "where")
        return self

    def or_where_raw(self, sql: str, bindings: Sequence[Any] = ()) -> "QueryBuilder":
        return self.where_raw(sql, bindings, "or")

    def where_in(self, column: Stringable, values: Any, boolean: str = "and", not_: bool = False) -> "QueryBuilder":
        if isinstance(values, QueryBuilder) or callable(values):
            query = self._resolve_sub(values)
            self.registry.wheres.append(WhereInSub(column=column, query=query, boolean=boolean, not_=not_))
            self.add_binding(query.get_bindings(), "where")
            return self
        values = list(values)
        self.registry.wheres.append(WhereIn(column=column, values=values, boolean=boolean, not_=not_))
        self.add_binding(values, "where")
        return self

    def or_where_in(self, column: Stringable, values: Any) -> "QueryBuilder":
        return self.where_in(column, values, "or")

    def where_not_in(self, column: Stringable, values: Any, boolean: str = "and") -> "QueryBuilder":
        return self.where_in(column, values, boolean, True)

    def or_where_not_in(self, column: Stringable, values: Any) -> "QueryBuilder":
        return self.where_not_in(column, values, "or")

    def where_integer_in_raw(
        self, column: Stringable, values: Sequence[Any], boolean: str = "and", not_: bool = False
    ) -> "QueryBuilder":
        integers = [int(value) for value in values]
        self.registry.wheres.append(WhereInRaw(column=column, values=integers, boolean=boolean, not_=not_))
        return self

    def or_where_integer_in_raw(self, column: Stringable, values: Sequence[Any]) -> "QueryBuilder":
        return self.where_integer_in_raw(column, values, "or")

    def where_integer_not_in_raw(self, column: Stringable, values: Sequence[Any], boolean: str = "and") -> "QueryBuilder":
        return self.where_integer_in_raw(column, values, boolean, True)

    def or_where_integer_not_in_raw(self, column: Stringable, values: Sequence[Any]) -> "QueryBuilder":
        return self.where_integer_not_in_raw(column, values, "or")

    def where_null(self, columns: Any, boolean: str = "and", not_: bool = False) -> "QueryBuilder":
        for column in _as_list(columns):
            self.registry.wheres.append(WhereNull(column=column, boolean=boolean, not_=not_))
        return self

    def or_where_null(self, columns: Any) -> "QueryBuilder":
        return self.where_null(columns, "or")

    def where_not_null(self, columns: Any, boolean: str = "and") -> "QueryBuilder":
        return self.where_null(columns, boolean, True)

    def or_where_not_null(self, columns: Any) -> "QueryBuilder":
        return self.where_not_null(columns, "or")

    def where_between(
        self, column: Stringable, values: Sequence[Any], boolean: str = "and", not_: bool = False
    ) -> "QueryBuilder":
        values = list(values)[:2]
        self.registry.wheres.append(WhereBetween(column=column, values=values, boolean=boolean, not_=not_))
        self.add_binding(values, "where")
        return self

    def or_where_between(self, column: Stringable, values: Sequence[Any]) -> "QueryBuilder":
        return self.where_between(column, values, "or")

    def where_not_between(self, column: Stringable, values: Sequence[Any], boolean: str = "and") -> "QueryBuilder":
        return self.where_between(column, values, boolean, True)

    def or_where_not_between(self, column: Stringable, values: Sequence[Any]) -> "QueryBuilder":
        return self.where_not_between(column, values, "or")

    def where_between_columns(
        self, column: Stringable, values: Sequence[Stringable], boolean: str = "and", not_: bool = False
    ) -> "QueryBuilder":
        self.registry.wheres.append(
            WhereBetweenColumns(column=column, values=list(values)[:2], boolean=boolean, not_=not_)
        )
        return self

    def or_where_between_columns(self, column: Stringable, values: Sequence[Stringable]) -> "QueryBuilder":
        return self.where_between_columns(column, values, "or")

    def where_not_between_columns(
        self, column: Stringable, values: Sequence[Stringable], boolean: str = "and"
    ) -> "QueryBuilder":
        return self.where_between_columns(column, values, boolean, True)

    def where_date(self, column: Stringable, operator: Any, value: Any = MISSING, boolean: str = "and") -> "QueryBuilder":
        return self._add_date_based_where("date", column, operator, value, boolean)

    def or_where_date(self, column: Stringable, operator: Any, value: Any = MISSING) -> "QueryBuilder":
        return self.where_date(column, operator, value, "or")

    def where_time(self, column: Stringable, operator: Any, value: Any = MISSING, boolean: str = "and") -> "QueryBuilder":
        return self._add_date_based_where("time", column, operator, value, boolean)

    def or_where_time(self, column: Stringable, operator: Any, value: Any = MISSING) -> "QueryBuilder":
        return self.where_time(column, operator, value, "or")

    def where_day(self, column: Stringable, operator: Any, value: Any = MISSING, boolean: str = "and") -> "QueryBuilder":
        return self._add_date_based_where("day", column, operator, value, boolean)

    def or_where_day(self, column: Stringable, operator: Any, value: Any = MISSING) -> "QueryBuilder":
        return self.where_day(column, operator, value, "or")

    def where_month(self, column: Stringable, operator: Any, value: Any = MISSING, boolean: str = "and") -> "QueryBuilder":
        return self._add_date_based_where("month", column, operator, value, boolean)

    def or_where_month(self, column: Stringable, operator: Any, value: Any = MISSING) -> "QueryBuilder":
        return self.where_month(column, operator, value, "or")

    def where_year(self, column: Stringable, operator: Any, value: Any = MISSING, boolean: str = "and") -> "QueryBuilder":
        return self._add_date_based_where("year", column, operator, value, boolean)

    def or_where_year(self, column: Stringable, operator: Any, value: Any = MISSING) -> "QueryBuilder":
        return self.where_year(column, operator, value, "or")

    def where_nested(self, callback: Callable[["QueryBuilder"], Any], boolean: str = "and", not_: bool = False) -> "QueryBuilder":
        query = self.for_nested_where()
        callback(query)
        return self.add_nested_where_query(query, boolean, not_)

    def add_nested_where_query(self, query: "QueryBuilder", boolean: str = "and", not_: bool = False) -> "QueryBuilder":
        if query.registry.wheres:
            self.registry.wheres.append(WhereNested(query=query, boolean=boolean, not_=not_))
            self.add_binding(query.registry.bindings["where"], "where")
        return self

    def where_exists(self, query: Any, boolean: str = "and", not_: bool = False) -> "QueryBuilder":
        query = self._resolve_sub(query)
        self.registry.wheres.append(WhereExists(query=query, boolean=boolean, not_=not_))
        self.add_binding(query.get_bindings(), "where")
        return self

    def or_where_exists(self, query: Any) -> "QueryBuilder":
        return self.where_exists(query, "or")

    def where_not_exists(self, query: Any, boolean: str = "and") -> "QueryBuilder":
        return self.where_exists(query, boolean, True)

    def or_where_not_exists(self, query: Any) -> "QueryBuilder":
        return self.where_not_exists(query, "or")

    def where_row_values(
        self,
        columns: Sequence[Stringable],
        operator: str,
        values: Sequence[Any],
        boolean: str = "and",
        not_: bool = False,
    ) -> "QueryBuilder":
        if len(columns) != len(values):
            raise ValueError("The number of columns must match the number of values")
        self.registry.wheres.append(
            WhereRowValues(columns=list(columns), operator=operator, values=list(values), boolean=boolean, not_=not_)
        )
        self.add_binding(list(values), "where")
        return self

    def or_where_row_values(self, columns: Sequence[Stringable], operator: str, values: Sequence[Any]) -> "QueryBuilder":
        return self.where_row_values(columns, operator, values, "or")

    def where_fulltext(
        self,
        columns: Any,
        value: str,
        options: Mapping[str, Any] | None = None,
        boolean: str = "and",
        not_: bool = False,
    ) -> "QueryBuilder":
        self.registry.wheres.append(
            WhereFulltext(
                columns=_as_list(columns), value=value, options=dict(options or {}), boolean=boolean, not_=not_
            )
        )
        self.add_binding(value, "where")
        return self

    def or_where_fulltext(self, columns: Any, value: str, options: Mapping[str, Any] | None = None) -> "QueryBuilder":
        return self.where_fulltext(columns, value, options, "or")

    def where_json_contains(self, column: Stringable, value: Any, boolean: str = "and", not_: bool = False) -> "QueryBuilder":
        self.registry.wheres.append(WhereJsonContains(column=column, value=value, boolean=boolean, not_=not_))
        if not isinstance(value, Expression):
            self.add_binding(self.grammar.prepare_binding_for_json_contains(value), "where")
        return self

    def or_where_json_contains(self, column: Stringable, value: Any) -> "QueryBuilder":
        return self.where_json_contains(column, value, "or")

    def where_json_doesnt_contain(self, column: Stringable, value: Any, boolean: str = "and") -> "QueryBuilder":
        return self.where_json_contains(column, value, boolean, True)

    def or_where_json_doesnt_contain(self, column: Stringable, value: Any) -> "QueryBuilder":
        return self.where_json_doesnt_contain(column, value, "or")

    def where_json_contains_key(self, column: Stringable, boolean: str = "and", not_: bool = False) -> "QueryBuilder":
        self.registry.wheres.append(WhereJsonContainsKey(column=column, boolean=boolean, not_=not_))
        return self

    def or_where_json_contains_key(self, column: Stringable) -> "QueryBuilder":
        return self.where_json_contains_key(column, "or")

    def where_json_doesnt_contain_key(self, column: Stringable, boolean: str = "and") -> "QueryBuilder":
        return self.where_json_contains_key(column, boolean, True)

    def or_where_json_doesnt_contain_key(self, column: Stringable) -> "QueryBuilder":
        return self.where_json_doesnt_contain_key(column, "or")

    def where_json_length(
        self, column: Stringable, operator: Any, value: Any = MISSING, boolean: str = "and", not_: bool = False
    ) -> "QueryBuilder":
        value, operator = self.prepare_value_and_operator(value, operator, value is MISSING)
        if not isinstance(value, Expression):
            value = int(value)
        self.registry.wheres.append(
            WhereJsonLength(column=column, operator=operator, value=value, boolean=boolean, not_=not_)
        )
        self.add_binding(value, "where")
        return self

    def or_where_json_length(self, column: Stringable, operator: Any, value: Any = MISSING) -> "QueryBuilder":
        return self.where_json_length(column, operator, value, "or")

    def where_json_doesnt_have_length(
        self, column: Stringable, operator: Any, value: Any = MISSING, boolean: str = "and"
    ) -> "QueryBuilder":
        return self.where_json_length(column, operator, value, boolean, True)

    # ------------------------------------------------------------------ #
    # Groups / havings
    # ------------------------------------------------------------------ #
    def group_by(self, *groups: Stringable) -> "QueryBuilder":
        self.registry.groups.extend(_flatten_columns(groups))
        return self

    def group_by_raw(self, sql: str, bindings: Sequence[Any] = ()) -> "QueryBuilder":
        self.registry.groups.append(Expression(sql))
        self.add_binding(list(bindings), "group_by")
        return self

    def having(
        self,
        column: Any,
        operator: Any = MISSING,
        value: Any = MISSING,
        boolean: str = "and",
        not_: bool = False,
    ) -> "QueryBuilder":
        if callable(column) and not isinstance(column, Expression):
            return self.having_nested(column, boolean, not_)
        value, operator = self.prepare_value_and_operator(value, operator, value is MISSING)
        kind = HavingBitwise if self.is_bitwise_operator(operator) else HavingBasic
        self.registry.havings.append(kind(column=column, operator=operator, value=value, boolean=boolean, not_=not_))
        self.add_binding(value, "having")
        return self

    def or_having(self, column: Any, operator: Any = MISSING, value: Any = MISSING) -> "QueryBuilder":
        return self.having(column, operator, value, "or")

    def having_nested(self, callback: Callable[["QueryBuilder"], Any], boolean: str = "and", not_: bool = False) -> "QueryBuilder":
        query = self.for_nested_where()
        callback(query)
        if query.registry.havings:
            self.registry.havings.append(HavingNested(query=query, boolean=boolean, not_=not_))
            self.add_binding(query.registry.bindings["having"], "having")
        return self

    def having_null(self, columns: Any, boolean: str = "and", not_: bool = False) -> "QueryBuilder":
        for column in _as_list(columns):
            self.registry.havings.append(HavingNull(column=column, boolean=boolean, not_=not_))
        return self

    def or_having_null(self, columns: Any) -> "QueryBuilder":
        return self.having_null(columns, "or")

    def having_not_null(self, columns: Any, boolean: str = "and") -> "QueryBuilder":
        return self.having_null(columns, boolean, True)

    def or_having_not_null(self, columns: Any) -> "QueryBuilder":
        return self.having_not_null(columns, "or")

    def having_between(
        self, column: Stringable, values: Sequence[Any], boolean: str = "and", not_: bool = False
    ) -> "QueryBuilder":
        values = list(values)[:2]
        self.registry.havings.append(HavingBetween(column=column, values=values, boolean=boolean, not_=not_))
        self.add_binding(values, "having")
        return self

    def having_raw(self, sql: str, bindings: Sequence[Any] = (), boolean: str = "and") -> "QueryBuilder":
        self.registry.havings.append(HavingRaw(sql=sql, boolean=boolean))
        self.add_binding(list(bindings), "having")
        return self

    def or_having_raw(self, sql: str, bindings: Sequence[Any] = ()) -> "QueryBuilder":
        return self.having_raw(sql, bindings, "or")

    # ------------------------------------------------------------------ #
    # Orders / limits / unions / locks
    # ------------------------------------------------------------------ #
    def order_by(self, column: Any, direction: str = "asc") -> "QueryBuilder":
        direction = direction.lower()
        if direction not in ("asc", "desc"):
            raise ValueError('Order direction must be "asc" or "desc".')
        if isinstance(column, QueryBuilder) or (callable(column) and not isinstance(column, Expression)):
            sql, bindings = self.create_sub(column)
            return self.order_by_raw(f"({sql}) {direction}", bindings)
        target = "union_orders" if self.registry.unions else "orders"
        getattr(self.registry, target).append(Order(column=column, direction=direction))
        return self

    def order_by_desc(self, column: Any) -> "QueryBuilder":
        return self.order_by(column, "desc")

    def latest(self, column: Stringable = "created_at") -> "QueryBuilder":
        return self.order_by(column, "desc")

    def oldest(self, column: Stringable = "created_at") -> "QueryBuilder":
        return self.order_by(column, "asc")

    def in_random_order(self, seed: str | int = "") -> "QueryBuilder":
        return self.order_by_raw(self.grammar.compile_random(seed))

    def order_by_raw(self, sql: str, bindings: Sequence[Any] = ()) -> "QueryBuilder":
        if self.registry.unions:
            self.registry.union_orders.append(OrderRaw(sql))
            self.add_binding(list(bindings), "union_order")
        else:
            self.registry.orders.append(OrderRaw(sql))
            self.add_binding(list(bindings), "order")
        return self

    def reorder(self, column: Any = None, direction: str = "asc") -> "QueryBuilder":
        self.registry.orders = []
        self.registry.union_orders = []
        self.registry.bindings["order"] = []
        self.registry.bindings["union_order"] = []
        if column is not None:
            return self.order_by(column, direction)
        return self

    def offset(self, value: int) -> "QueryBuilder":
        value = max(0, int(value))
        if self.registry.unions:
            self.registry.union_offset = value
        else:
            self.registry.offset = value
        return self

    skip = offset

    def limit(self, value: int) -> "QueryBuilder":
        if int(value) >= 0:
            if self.registry.unions:
                self.registry.union_limit = int(value)
            else:
                self.registry.limit = int(value)
        return self

    take = limit

    def for_page(self, page: int, per_page: int = 15) -> "QueryBuilder":
        return self.offset((page - 1) * per_page).limit(per_page)

    def union(self, query: Any, all: bool = False) -> "QueryBuilder":
        query = self._resolve_sub(query)
        self.registry.unions.append(Union_(query=query, all=all))
        self.add_binding(query.get_bindings(), "union")
        return self

    def union_all(self, query: Any) -> "QueryBuilder":
        return self.union(query, True)

    def lock(self, value: bool | str = True) -> "QueryBuilder":
        self.registry.lock = value
        self.use_write_connection()
        return self

    def lock_for_update(self) -> "QueryBuilder":
        return self.lock(True)

    def shared_lock(self) -> "QueryBuilder":
        return self.lock(False)

    # ------------------------------------------------------------------ #
    # Misc fluent helpers
    # ------------------------------------------------------------------ #
    def when(self, value: Any, callback: Callable[..., Any], default: Callable[..., Any] | None = None) -> "QueryBuilder":
        if value:
            return callback(self, value) or self
        if default is not None:
            return default(self, value) or self
        return self

    def unless(self, value: Any, callback: Callable[..., Any], default: Callable[..., Any] | None = None) -> "QueryBuilder":
        return self.when(not value, callback, default)

    def tap(self, callback: Callable[["QueryBuilder"], Any]) -> "QueryBuilder":
        callback(self)
        return self

    def before_query(self, callback: Callable[["QueryBuilder"], Any]) -> "QueryBuilder":
        self.registry.before_query_callbacks.append(callback)
        return self

    def apply_before_query_callbacks(self) -> None:
        callbacks, self.registry.before_query_callbacks = self.registry.before_query_callbacks, []
        for callback in callbacks:
            callback(self)

    def use_write_connection(self) -> "QueryBuilder":
        self.registry.use_write_connection = True
        return self

    def cache(
        self,
        cache: bool | int | Callable[[], int] = True,
        *,
        key: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> "QueryBuilder":
        self._cache_options = {"cache": cache, "key": key, "options": dict(options or {})}
        return self

    # ------------------------------------------------------------------ #
    # Bindings & compilation
    # ------------------------------------------------------------------ #
    def add_binding(self, value: Any, type: str = "where") -> "QueryBuilder":
        if type not in self.registry.bindings:
            raise ValueError(f"Invalid binding type: {type}.")
        values = value if isinstance(value, list) else [value]
        self.registry.bindings[type].extend(item for item in values if not isinstance(item, Expression))
        return self

    def set_bindings(self, bindings: Sequence[Any], type: str = "where") -> "QueryBuilder":
        if type not in self.registry.bindings:
            raise ValueError(f"Invalid binding type: {type}.")
        self.registry.bindings[type] = list(bindings)
        return self

    def get_bindings(self) -> List[Any]:
        return self.registry.flat_bindings()

    def get_raw_bindings(self) -> Dict[str, List[Any]]:
        return self.registry.bindings

    @staticmethod
    def clean_bindings(bindings: Sequence[Any]) -> List[Any]:
        return [binding for binding in bindings if not isinstance(binding, Expression)]

    def to_sql(self) -> str:
        self.apply_before_query_callbacks()
        return self.grammar.compile_select(self)

    def to_raw_sql(self) -> str:
        return self.grammar.substitute_bindings_into_raw_sql(self.to_sql(), self.get_bindings())

    def create_sub(self, query: Any) -> tuple[str, List[Any]]:
        if isinstance(query, QueryBuilder):
            return query.to_sql(), query.get_bindings()
        if callable(query) and not isinstance(query, Expression):
            return self.create_sub(self._resolve_sub(query))
        if isinstance(query, (str, Expression)):
            return self.grammar.get_value(query), []
        raise TypeError("A subquery must be a query builder instance, a callable, or a string.")

    def prepare_value_and_operator(self, value: Any, operator: Any, use_default: bool = False) -> tuple[Any, Any]:
        if use_default:
            return operator, "="
        if self.invalid_operator_and_value(operator, value):
            raise ValueError("Illegal operator and value combination.")
        if self.invalid_operator(operator):
            return operator, "="
        return value, operator

    def invalid_operator_and_value(self, operator: Any, value: Any) -> bool:
        return value is None and operator in self._operators() and operator not in ("=", "<>", "!=")

    def invalid_operator(self, operator: Any) -> bool:
        return not isinstance(operator, str) or operator.lower() not in self._operators()

    def is_bitwise_operator(self, operator: Any) -> bool:
        return isinstance(operator, str) and (
            operator.lower() in BITWISE_OPERATORS or operator.lower() in self.grammar.get_bitwise_operators()
        )

    def _operators(self) -> tuple[str, ...]:
        return OPERATORS + tuple(self.grammar.get_operators())

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    def get(self, columns: Sequence[Stringable] = ("*",)) -> List[Dict[str, Any]]:
        original = self.registry.columns
        if original is None:
            self.registry.columns = list(columns)
        try:
            return self._run_select()
        finally:
            self.registry.columns = original

    def first(self, columns: Sequence[Stringable] = ("*",)) -> Optional[Dict[str, Any]]:
        rows = self.clone().limit(1).get(columns)
        return rows[0] if rows else None

    def find(self, id: Any, columns: Sequence[Stringable] = ("*",)) -> Optional[Dict[str, Any]]:
        return self.clone().where("id", "=", id).first(columns)

    def value(self, column: Stringable) -> Any:
        row = self.first([column])
        return next(iter(row.values())) if row else None

    def pluck(self, column: str, key: str | None = None) -> List[Any] | Dict[Any, Any]:
        rows = self.get([column] if key is None else [column, key])
        column_name = _strip_for_pluck(column)
        if key is None:
            return [row[column_name] for row in rows]
        key_name = _strip_for_pluck(key)
        return {row[key_name]: row[column_name] for row in rows}

    def cursor(self) -> Iterator[Dict[str, Any]]:
        connection = self._require_connection()
        if self.registry.columns is None:
            self.registry.columns = ["*"]
        yield from connection.cursor(
            self.to_sql(), self.get_bindings(), not self.registry.use_write_connection
        )

    def chunk(self, count: int, callback: Callable[[List[Dict[str, Any]], int], Any]) -> bool:
        if not self.registry.orders and not self.registry.union_orders:
            raise ValueError("You must specify an orderBy clause when using this function.")
        page = 1
        while True:
            results = self.clone().for_page(page, count).get()
            if not results:
                break
            if callback(results, page) is False:
                return False
            if len(results) < count:
                break
            page += 1
        return True

    # ------------------------------------------------------------------ #
    # Pagination
    # ------------------------------------------------------------------ #
    def paginate(
        self,
        per_page: int | Callable[[int], int] = 15,
        columns: Sequence[Stringable] = ("*",),
        page_name: str = "page",
        page: Optional[int] = None,
    ) -> LengthAwarePaginator:
        page = self._resolve_page(page, page_name)
        total = self.get_count_for_pagination()
        per_page = per_page(total) if callable(per_page) else per_page
        results = self.clone().for_page(page, per_page).get(columns) if total else []
        return LengthAwarePaginator(
            results, total, per_page, page, path=Paginator.resolve_current_path(), page_name=page_name
        )

    def simple_paginate(
        self,
        per_page: int = 15,
        columns: Sequence[Stringable] = ("*",),
        page_name: str = "page",
        page: Optional[int] = None,
    ) -> Paginator:
        page = self._resolve_page(page, page_name)
        results = self.clone().offset((page - 1) * per_page).limit(per_page + 1).get(columns)
        return Paginator(results, per_page, page, path=Paginator.resolve_current_path(), page_name=page_name)

    def cursor_paginate(
        self,
        per_page: int = 15,
        columns: Sequence[Stringable] = ("*",),
        cursor_name: str = "cursor",
        cursor: Cursor | str | None = None,
    ) -> CursorPaginator:
        """
        Keyset pagination over the query's ``order by`` columns.

        Each order column becomes a cursor parameter; the next page starts
        strictly after the last row's values (or before the first row's when
        the cursor points backwards, with every direction flipped).
        """
        if isinstance(cursor, str):
            cursor = Cursor.from_encoded(cursor)
        elif cursor is None:
            cursor = CursorPaginator.resolve_current_cursor(cursor_name)

        query = self.clone()
        orders = query._ensure_order_for_cursor_pagination(cursor is not None and cursor.points_to_previous_items())
        if cursor is not None:
            query._add_cursor_conditions(query, orders, cursor, None, 0)
            if query.registry.unions:
                for union in query.registry.unions:
                    query._add_cursor_conditions(union.query, orders, cursor, None, 0)
                query.registry.bindings["union"] = [
                    binding for union in query.registry.unions for binding in union.query.get_bindings()
                ]
        query.limit(per_page + 1)

        return CursorPaginator(
            query.get(columns),
            per_page,
            cursor,
            parameters=[self.grammar.get_value(order.column) for order in orders],
            path=CursorPaginator.resolve_current_path(),
            page_name=cursor_name,
        )

    def get_count_for_pagination(self, columns: Sequence[Stringable] = ("*",)) -> int:
        rows = self._run_pagination_count_query(self._without_select_aliases(columns))
        if not rows:
            return 0
        row = rows[0]
        return int(row.get("aggregate", next(iter(row.values()), 0)) or 0)

    def _run_pagination_count_query(self, columns: List[Stringable]) -> List[Dict[str, Any]]:
        registry = self.registry
        if registry.groups or registry.havings:
            # grouped rows are counted from a derived table
            clone = self.clone_without(["orders", "limit", "offset"]).clone_without_bindings(["order"])
            if clone.registry.columns is None and registry.joins:
                clone.select(f"{self.grammar.get_value(registry.from_)}.*")
            sql = f"({clone.to_sql()}) as {self.grammar.wrap_table('aggregate_table')}"
            query = self.new_query().from_raw(sql, clone.get_bindings())
            query._cache_options = self._cache_options
            return query.set_aggregate("count", columns).get(columns)

        if registry.unions:
            query = self.clone_without(["union_orders", "union_limit", "union_offset"])
            query = query.clone_without_bindings(["union_order"])
        else:
            query = self.clone_without(["columns", "orders", "limit", "offset"])
            query = query.clone_without_bindings(["select", "order"])
        return query.set_aggregate("count", columns).get(columns)

    def _without_select_aliases(self, columns: Sequence[Stringable]) -> List[Stringable]:
        stripped: List[Stringable] = []
        for column in _as_list(columns):
            if isinstance(column, Expression):
                stripped.append(column)
                continue
            position = column.lower().find(" as ")
            stripped.append(column[:position] if position > -1 else column)
        return stripped

    def _resolve_page(self, page: Any, page_name: str) -> int:
        if page is None:
            page = Paginator.resolve_current_page(page_name)
        return int(page) if Paginator.is_valid_page_number(page) else 1

    def _ensure_order_for_cursor_pagination(self, should_reverse: bool) -> List[Order]:
        target = "orders" if self.registry.orders else "union_orders"
        orders = [order for order in getattr(self.registry, target) if isinstance(order, Order)]
        if not orders:
            raise ValueError("You must specify an orderBy clause when using this function.")
        if should_reverse:
            flipped = {"asc": "desc", "desc": "asc"}
            setattr(
                self.registry,
                target,
                [
                    Order(column=order.column, direction=flipped[order.direction]) if isinstance(order, Order) else order
                    for order in getattr(self.registry, target)
                ],
            )
            orders = [Order(column=order.column, direction=flipped[order.direction]) for order in orders]
        return orders

    def _add_cursor_conditions(
        self, query: "QueryBuilder", orders: Sequence[Order], cursor: Cursor, previous: Optional[str], index: int
    ) -> None:
        if previous is not None:
            query.where(self._original_column_for_cursor(previous), "=", cursor.parameter(previous))

        def compare(nested: "QueryBuilder") -> None:
            order = orders[index]
            column = self.grammar.get_value(order.column)
            operator = ">" if order.direction == "asc" else "<"
            nested.where(self._original_column_for_cursor(column), operator, cursor.parameter(column))
            if index < len(orders) - 1:
                nested.or_where(lambda inner: self._add_cursor_conditions(inner, orders, cursor, column, index + 1))

        query.where(compare)

    def _original_column_for_cursor(self, parameter: str) -> Stringable:
        """Map a select alias back to the expression it names."""
        for column in self.registry.columns or []:
            if isinstance(column, Expression):
                continue
            position = column.lower().rfind(" as ")
            if position > -1:
                original, alias = column[:position], column[position + 4 :]
                if parameter in (alias, self.grammar.wrap(parameter)):
                    return Expression(original) if "(" in original or ")" in original else original
        return parameter

    # ------------------------------------------------------------------ #
    # Aggregates
    # ------------------------------------------------------------------ #
    def exists(self) -> bool:
        connection = self._require_connection()
        self.apply_before_query_callbacks()
        rows = connection.select(
            self.grammar.compile_exists(self),
            self.get_bindings(),
            not self.registry.use_write_connection,
            cache=self._cache_options,
        )
        if not rows:
            return False
        return bool(rows[0].get("exists"))

    def doesnt_exist(self) -> bool:
        return not self.exists()

    def count(self, columns: Stringable | Sequence[Stringable] = "*") -> int:
        return int(self.aggregate("count", _as_list(columns)) or 0)

    def min(self, column: Stringable) -> Any:
        return self.aggregate("min", [column])

    def max(self, column: Stringable) -> Any:
        return self.aggregate("max", [column])

    def sum(self, column: Stringable) -> Any:
        return self.aggregate("sum", [column]) or 0

    def avg(self, column: Stringable) -> Any:
        return self.aggregate("avg", [column])

    average = avg

    def aggregate(self, function: str, columns: Sequence[Stringable] = ("*",)) -> Any:
        keep_columns = bool(self.registry.unions or self.registry.havings)
        query = self.clone_without([] if keep_columns else ["columns"])
        query = query.clone_without_bindings([] if keep_columns else ["select"])
        query.set_aggregate(function, list(columns))
        rows = query.get(columns)
        if not rows:
            return None
        row = rows[0]
        return row.get("aggregate", next(iter(row.values()), None))

    def set_aggregate(self, function: str, columns: Sequence[Stringable]) -> "QueryBuilder":
        self.registry.aggregate = Aggregate(function=function, columns=list(columns))
        if not self.registry.groups:
            self.registry.orders = []
            self.registry.bindings["order"] = []
        return self

    def insert(self, values: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> bool:
        if not values:
            return True
        rows = _sorted_rows(values)
        self.apply_before_query_callbacks()
        return self._require_connection().insert(
            self.grammar.compile_insert(self, rows),
            self.clean_bindings([value for row in rows for value in row.values()]),
        )

    def insert_or_ignore(self, values: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> int:
        if not values:
            return 0
        rows = _sorted_rows(values)
        self.apply_before_query_callbacks()
        return self._require_connection().affecting_statement(
            self.grammar.compile_insert_or_ignore(self, rows),
            self.clean_bindings([value for row in rows for value in row.values()]),
        )

    def insert_get_id(self, values: Mapping[str, Any], sequence: str | None = None) -> Any:
        self.apply_before_query_callbacks()
        return self._require_connection().insert_get_id(
            self.grammar.compile_insert_get_id(self, values, sequence),
            self.clean_bindings(list(values.values())),
            sequence,
        )

    def insert_using(self, columns: Sequence[Stringable], query: Any) -> int:
        self.apply_before_query_callbacks()
        sql, bindings = self.create_sub(query)
        return self._require_connection().affecting_statement(
            self.grammar.compile_insert_using(self, columns, sql),
            self.clean_bindings([*self.registry.bindings["expressions"], *bindings]),
        )

    def update(self, values: Mapping[str, Any]) -> int:
        self.apply_before_query_callbacks()
        sql = self.grammar.compile_update(self, values)
        return self._require_connection().update(
            sql, self.clean_bindings(self.grammar.prepare_bindings_for_update(self, values))
        )

    def update_from(self, values: Mapping[str, Any]) -> int:
        self.apply_before_query_callbacks()
        sql = self.grammar.compile_update_from(self, values)
        return self._require_connection().update(
            sql, self.clean_bindings(self.grammar.prepare_bindings_for_update_from(self, values))
        )

    def update_or_insert(self, attributes: Mapping[str, Any], values: Mapping[str, Any] | None = None) -> bool:
        values = dict(values or {})
        if not self.clone().where(dict(attributes)).exists():
            return self.insert({**attributes, **values})
        if not values:
            return True
        return bool(self.clone().where(dict(attributes)).limit(1).update(values))

    def upsert(
        self,
        values: Mapping[str, Any] | Sequence[Mapping[str, Any]],
        unique_by: str | Sequence[str],
        update: Sequence[str | Mapping[str, Any]] | None = None,
    ) -> int:
        if not values:
            return 0
        if update is not None and len(update) == 0:
            self.insert(values)
            return 1 if isinstance(values, Mapping) else len(values)

        rows = _sorted_rows(values)
        if update is None:
            update = list(rows[0].keys())
        self.apply_before_query_callbacks()

        bindings = [value for row in rows for value in row.values()]
        for item in update:
            if not isinstance(item, str):
                bindings.extend(item.values())
        return self._require_connection().affecting_statement(
            self.grammar.compile_upsert(self, rows, _as_list(unique_by), list(update)),
            self.clean_bindings(bindings),
        )

    def increment(self, column: str, amount: Any = 1, extra: Mapping[str, Any] | None = None) -> int:
        return self.increment_each({column: amount}, extra)

    def increment_each(self, columns: Mapping[str, Any], extra: Mapping[str, Any] | None = None) -> int:
        return self._adjust_each(columns, "+", "increment", extra)

    def decrement(self, column: str, amount: Any = 1, extra: Mapping[str, Any] | None = None) -> int:
        return self.decrement_each({column: amount}, extra)

    def decrement_each(self, columns: Mapping[str, Any], extra: Mapping[str, Any] | None = None) -> int:
        return self._adjust_each(columns, "-", "decrement", extra)

    def delete(self, id: Any = None) -> int:
        if id is not None:
            self.where(f"{self.grammar.get_value(self.registry.from_)}.id", "=", id)
        self.apply_before_query_callbacks()
        return self._require_connection().delete(
            self.grammar.compile_delete(self),
            self.clean_bindings(self.grammar.prepare_bindings_for_delete(self)),
        )

    def truncate(self) -> None:
        self.apply_before_query_callbacks()
        connection = self._require_connection()
        for sql, bindings in self.grammar.compile_truncate(self).items():
            connection.statement(sql, bindings)

    def explain(self) -> List[Dict[str, Any]]:
        return self._require_connection().select(f"EXPLAIN {self.to_sql()}", self.get_bindings())

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _run_select(self) -> List[Dict[str, Any]]:
        connection = self._require_connection()
        return connection.select(
            self.to_sql(),
            self.get_bindings(),
            not self.registry.use_write_connection,
            cache=self._cache_options,
        )

    def _require_connection(self) -> Any:
        if self.connection is None:
            raise SqlweaveError("Query builder is not bound to a connection.")
        return self.connection

    def _resolve_sub(self, query: Any) -> "QueryBuilder":
        if isinstance(query, QueryBuilder):
            return query
        sub = self.for_sub_query()
        result = query(sub)
        return result if isinstance(result, QueryBuilder) else sub

    def _where_sub(self, column: Any, operator: str, value: Any, boolean: str, not_: bool) -> "QueryBuilder":
        query = self._resolve_sub(value)
        self.registry.wheres.append(WhereSub(column=column, operator=operator, query=query, boolean=boolean, not_=not_))
        self.add_binding(query.get_bindings(), "where")
        return self

    def _add_array_of_wheres(self, column: Any, boolean: str, not_: bool) -> "QueryBuilder":
        def apply(query: QueryBuilder) -> None:
            if isinstance(column, Mapping):
                for key, value in column.items():
                    query.where(key, "=", value)
            else:
                for item in column:
                    query.where(*item)

        return self.where_nested(apply, boolean, not_)

    def _add_date_based_where(
        self, part: str, column: Stringable, operator: Any, value: Any, boolean: str
    ) -> "QueryBuilder":
        value, operator = self.prepare_value_and_operator(value, operator, value is MISSING)
        if hasattr(value, "strftime"):
            value = value.strftime(_DATE_FORMATS[part])
        self.registry.wheres.append(
            WhereDateTime(part=part, column=column, operator=operator, value=value, boolean=boolean)
        )
        self.add_binding(value, "where")
        return self

    def _adjust_each(
        self, columns: Mapping[str, Any], sign: str, verb: str, extra: Mapping[str, Any] | None
    ) -> int:
        processed: Dict[str, Any] = {}
        for column, amount in columns.items():
            if not _is_numeric(amount):
                raise TypeError(f"Non-numeric value passed as {verb} amount for column: '{column}'.")
            processed[column] = Expression(f"{self.grammar.wrap(column)} {sign} {amount}")
        return self.update({**processed, **dict(extra or {})})


def _flatten_columns(columns: Sequence[Any]) -> List[Any]:
    flattened: List[Any] = []
    for column in columns:
        if isinstance(column, (list, tuple)):
            flattened.extend(column)
        else:
            flattened.append(column)
    return flattened


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _sorted_rows(values: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    rows = [values] if isinstance(values, Mapping) else list(values)
    sorted_rows: List[Dict[str, Any]] = []
    expected: Optional[List[str]] = None
    for row in rows:
        ordered = {key: row[key] for key in sorted(row)}
        keys = list(ordered)
        if expected is None:
            expected = keys
        elif keys != expected:
            difference = sorted(set(keys) ^ set(expected))
            raise ValueError(f"Missing columns [{', '.join(difference)}], please add to each rows.")
        sorted_rows.append(ordered)
    return sorted_rows


def _strip_for_pluck(column: str) -> str:
    column = column.split(" as ")[-1] if " as " in column.lower() else column
    return column.split(".")[-1]


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, Decimal)):
        return True
    try:
        float(value)
    except (TypeError, ValueError):
        return False
    return True
