"""
Query grammar: compiles a query registry into SQL text.

Compilation is pure. Nothing on the builder is mutated; components that need
a modified registry (union aggregates, row identity emulation) work on clones.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Sequence

from ...errors import CompilationError
from ...expression import Expression, TypedBinding
from ...grammar import BaseGrammar, Stringable
from ..registry import (
    Aggregate,
    CommonTableExpression,
    Having,
    HavingBasic,
    HavingBetween,
    HavingNested,
    HavingNull,
    HavingRaw,
    IndexHint,
    Order,
    OrderRaw,
    Registry,
    Union_,
    Where,
    WhereBasic,
    WhereBetween,
    WhereBetweenColumns,
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
    from ..builder import QueryBuilder

RowValues = Mapping[str, Any]

_ALIAS_SPLIT_RE = re.compile(r"\s+as\s+", re.IGNORECASE)
_LEADING_BOOLEAN_RE = re.compile(r"and |or ", re.IGNORECASE)


class JsonPaths(dict):
    """
    ``{path: value}`` assignments grouped under one JSON column for an update.
    """


class QueryGrammar(BaseGrammar):
    """
    Generic (ANSI) query grammar. Dialect grammars override targeted hooks.
    """

    operators: Sequence[str] = ()
    bitwise_operators: Sequence[str] = ()

    select_components: Sequence[str] = (
        "aggregate",
        "columns",
        "from",
        "index_hint",
        "joins",
        "wheres",
        "groups",
        "havings",
        "orders",
        "limit",
        "offset",
        "lock",
    )

    # ------------------------------------------------------------------ #
    # Select
    # ------------------------------------------------------------------ #
    def compile_select(self, query: "QueryBuilder") -> str:
        sql = self.compile_select_body(query)
        return self.compile_with_expressions(query, sql)

    def compile_select_body(self, query: "QueryBuilder") -> str:
        registry = query.registry
        if (registry.unions or registry.havings) and registry.aggregate is not None:
            return self.compile_union_aggregate(query)

        sql = self.concatenate(self.compile_components(query)).strip()
        if registry.unions:
            sql = f"{self.wrap_union(sql)} {self.compile_unions(query)}"
        return sql

    def compile_components(self, query: "QueryBuilder") -> List[str]:
        sqls: List[str] = []
        registry = query.registry
        for component in self.select_components:
            value = self.component_value(registry, component)
            if value is None or (isinstance(value, (str, list)) and not value):
                continue
            compiler: Callable[[Any, Any], str] = getattr(self, f"compile_{component}")
            sqls.append(compiler(query, value))
        return [sql for sql in sqls if sql]

    def component_value(self, registry: Registry, component: str) -> Any:
        if component == "columns":
            return registry.columns if registry.columns is not None else ["*"]
        if component == "from":
            return registry.from_
        return getattr(registry, component)

    def compile_aggregate(self, query: "QueryBuilder", aggregate: Aggregate) -> str:
        column = self.columnize(aggregate.columns)
        distinct = query.registry.distinct
        if isinstance(distinct, list):
            column = f"distinct {self.columnize(distinct)}"
        elif distinct and column != "*":
            column = f"distinct {column}"
        return f"select {aggregate.function}({column}) as aggregate"

    def compile_columns(self, query: "QueryBuilder", columns: Sequence[Stringable]) -> str:
        if query.registry.aggregate is not None:
            return ""
        select = "select distinct" if query.registry.distinct is not False else "select"
        return f"{select} {self.columnize(columns)}"

    def compile_from(self, query: "QueryBuilder", table: Stringable) -> str:
        return f"from {self.wrap_table(table)}"

    def compile_index_hint(self, query: "QueryBuilder", index_hint: IndexHint) -> str:
        raise CompilationError("This database engine does not support index hints.")

    def compile_joins(self, query: "QueryBuilder", joins: Sequence[Any]) -> str:
        compiled = []
        for join in joins:
            table = self.wrap_table(join.table)
            nested = join.registry.joins
            if nested:
                table = f"({table} {self.compile_joins(query, nested)})"
            compiled.append(f"{join.type} join {table} {self.compile_wheres(join)}".strip())
        return " ".join(compiled)

    # ------------------------------------------------------------------ #
    # Wheres
    # ------------------------------------------------------------------ #
    def compile_wheres(self, query: "QueryBuilder", wheres: Any = None) -> str:
        if not query.registry.wheres:
            return ""
        sqls = [f"{where.boolean} {self.compile_where(query, where)}" for where in query.registry.wheres]
        return self.concatenate_where_clauses(query, sqls)

    def concatenate_where_clauses(self, query: "QueryBuilder", sqls: Sequence[str]) -> str:
        return f"{query.clause_keyword} {self.remove_leading_boolean(' '.join(sqls))}"

    def compile_where(self, query: "QueryBuilder", where: Where) -> str:
        compiler = getattr(self, f"compile_where_{where.type}")
        return compiler(query, where)

    def compile_where_basic(self, query: "QueryBuilder", where: WhereBasic) -> str:
        value = self.parameter(where.value)
        not_ = "not " if where.not_ else ""
        operator = where.operator.replace("?", "??")
        return f"{not_}{self.wrap(where.column)} {operator} {value}"

    def compile_where_raw(self, query: "QueryBuilder", where: WhereRaw) -> str:
        return where.sql

    def compile_where_bitwise(self, query: "QueryBuilder", where: WhereBasic) -> str:
        return self.compile_where_basic(query, where)

    def compile_where_in(self, query: "QueryBuilder", where: WhereIn) -> str:
        if where.values:
            not_ = "not " if where.not_ else ""
            return f"{self.wrap(where.column)} {not_}in ({self.parameterize(where.values)})"
        return "1 = 1" if where.not_ else "0 = 1"

    def compile_where_in_raw(self, query: "QueryBuilder", where: WhereInRaw) -> str:
        if where.values:
            not_ = "not " if where.not_ else ""
            values = ", ".join(str(value) for value in where.values)
            return f"{self.wrap(where.column)} {not_}in ({values})"
        return "1 = 1" if where.not_ else "0 = 1"

    def compile_where_in_sub(self, query: "QueryBuilder", where: WhereInSub) -> str:
        not_ = "not " if where.not_ else ""
        return f"{self.wrap(where.column)} {not_}in ({self.compile_select(where.query)})"

    def compile_where_null(self, query: "QueryBuilder", where: WhereNull) -> str:
        is_null = "is not null" if where.not_ else "is null"
        return f"{self.wrap(where.column)} {is_null}"

    def compile_where_between(self, query: "QueryBuilder", where: WhereBetween) -> str:
        between = "not between" if where.not_ else "between"
        minimum = self.parameter(where.values[0])
        maximum = self.parameter(where.values[1])
        return f"{self.wrap(where.column)} {between} {minimum} and {maximum}"

    def compile_where_between_columns(self, query: "QueryBuilder", where: WhereBetweenColumns) -> str:
        between = "not between" if where.not_ else "between"
        minimum = self.wrap(where.values[0])
        maximum = self.wrap(where.values[1])
        return f"{self.wrap(where.column)} {between} {minimum} and {maximum}"

    def compile_where_date_time(self, query: "QueryBuilder", where: WhereDateTime) -> str:
        compiler = getattr(self, f"compile_where_{where.part}")
        return compiler(query, where)

    def compile_where_date(self, query: "QueryBuilder", where: WhereDateTime) -> str:
        return self.date_based_where("date", query, where)

    def compile_where_time(self, query: "QueryBuilder", where: WhereDateTime) -> str:
        return self.date_based_where("time", query, where)

    def compile_where_day(self, query: "QueryBuilder", where: WhereDateTime) -> str:
        return self.date_based_where("day", query, where)

    def compile_where_month(self, query: "QueryBuilder", where: WhereDateTime) -> str:
        return self.date_based_where("month", query, where)

    def compile_where_year(self, query: "QueryBuilder", where: WhereDateTime) -> str:
        return self.date_based_where("year", query, where)

    def date_based_where(self, kind: str, query: "QueryBuilder", where: WhereDateTime) -> str:
        value = self.parameter(where.value)
        not_ = "not " if where.not_ else ""
        return f"{not_}{kind}({self.wrap(where.column)}) {where.operator} {value}"

    def compile_where_column(self, query: "QueryBuilder", where: WhereColumn) -> str:
        not_ = "not " if where.not_ else ""
        return f"{not_}{self.wrap(where.first)} {where.operator} {self.wrap(where.second)}"

    def compile_where_nested(self, query: "QueryBuilder", where: WhereNested) -> str:
        offset = len(where.query.clause_keyword) + 1
        wheres = self.compile_wheres(where.query)
        not_ = "not " if where.not_ else ""
        return f"{not_}({wheres[offset:]})"

    def compile_where_sub(self, query: "QueryBuilder", where: WhereSub) -> str:
        select = self.compile_select(where.query)
        not_ = "not " if where.not_ else ""
        return f"{not_}{self.wrap(where.column)} {where.operator} ({select})"

    def compile_where_exists(self, query: "QueryBuilder", where: WhereExists) -> str:
        not_ = "not " if where.not_ else ""
        return f"{not_}exists ({self.compile_select(where.query)})"

    def compile_where_row_values(self, query: "QueryBuilder", where: WhereRowValues) -> str:
        columns = self.columnize(where.columns)
        values = self.parameterize(where.values)
        not_ = "not " if where.not_ else ""
        return f"{not_}({columns}) {where.operator} ({values})"

    def compile_where_fulltext(self, query: "QueryBuilder", where: WhereFulltext) -> str:
        not_ = "not " if where.not_ else ""
        return f"{not_}{self.compile_fulltext(query, where)}"

    def compile_fulltext(self, query: "QueryBuilder", where: WhereFulltext) -> str:
        raise CompilationError("This database engine does not support fulltext search operations.")

    # ------------------------------------------------------------------ #
    # JSON wheres
    # ------------------------------------------------------------------ #
    def compile_where_json_boolean(self, query: "QueryBuilder", where: WhereJsonBoolean) -> str:
        column = self.wrap_json_boolean_selector(where.column)
        value = self.wrap_json_boolean_value(self.parameter(where.value))
        not_ = "not " if where.not_ else ""
        return f"{not_}{column} {where.operator} {value}"

    def compile_where_json_contains(self, query: "QueryBuilder", where: WhereJsonContains) -> str:
        not_ = "not " if where.not_ else ""
        return f"{not_}{self.compile_json_contains(where.column, self.parameter(where.value))}"

    def compile_json_contains(self, column: Stringable, value: str) -> str:
        raise CompilationError("This database engine does not support JSON contains operations.")

    def prepare_binding_for_json_contains(self, binding: Any) -> Any:
        return json.dumps(binding)

    def compile_where_json_contains_key(self, query: "QueryBuilder", where: WhereJsonContainsKey) -> str:
        not_ = "not " if where.not_ else ""
        return f"{not_}{self.compile_json_contains_key(where.column)}"

    def compile_json_contains_key(self, column: Stringable) -> str:
        raise CompilationError("This database engine does not support JSON contains key operations.")

    def compile_where_json_length(self, query: "QueryBuilder", where: WhereJsonLength) -> str:
        not_ = "not " if where.not_ else ""
        return f"{not_}{self.compile_json_length(where.column, where.operator, self.parameter(where.value))}"

    def compile_json_length(self, column: Stringable, operator: str, value: str) -> str:
        raise CompilationError("This database engine does not support JSON length operations.")

    def compile_json_value_cast(self, value: str) -> str:
        return value

    def wrap_json_boolean_selector(self, value: Stringable) -> str:
        return self.wrap_json_selector(value)

    def wrap_json_boolean_value(self, value: Stringable) -> str:
        return self.get_value(value)

    # ------------------------------------------------------------------ #
    # Groups, havings, orders, limits
    # ------------------------------------------------------------------ #
    def compile_groups(self, query: "QueryBuilder", groups: Sequence[Stringable]) -> str:
        return f"group by {self.columnize(groups)}"

    def compile_havings(self, query: "QueryBuilder", havings: Any = None) -> str:
        sqls = [f"{having.boolean} {self.compile_having(query, having)}" for having in query.registry.havings]
        return f"having {self.remove_leading_boolean(' '.join(sqls))}"

    def compile_having(self, query: "QueryBuilder", having: Having) -> str:
        compiler = getattr(self, f"compile_having_{having.type}")
        return compiler(query, having)

    def compile_having_basic(self, query: "QueryBuilder", having: HavingBasic) -> str:
        not_ = "not " if having.not_ else ""
        return f"{not_}{self.wrap(having.column)} {having.operator} {self.parameter(having.value)}"

    def compile_having_raw(self, query: "QueryBuilder", having: HavingRaw) -> str:
        return having.sql

    def compile_having_between(self, query: "QueryBuilder", having: HavingBetween) -> str:
        between = "not between" if having.not_ else "between"
        minimum = self.parameter(having.values[0])
        maximum = self.parameter(having.values[1])
        return f"{self.wrap(having.column)} {between} {minimum} and {maximum}"

    def compile_having_null(self, query: "QueryBuilder", having: HavingNull) -> str:
        is_null = "is not null" if having.not_ else "is null"
        return f"{self.wrap(having.column)} {is_null}"

    def compile_having_nested(self, query: "QueryBuilder", having: HavingNested) -> str:
        havings = self.compile_havings(having.query)
        not_ = "not " if having.not_ else ""
        return f"{not_}({havings[7:]})"

    def compile_having_bitwise(self, query: "QueryBuilder", having: HavingBasic) -> str:
        return self.compile_having_basic(query, having)

    def compile_orders(self, query: "QueryBuilder", orders: Sequence[Order | OrderRaw]) -> str:
        return f"order by {', '.join(self.compile_orders_to_array(query, orders))}"

    def compile_orders_to_array(self, query: "QueryBuilder", orders: Sequence[Order | OrderRaw]) -> List[str]:
        return [
            order.sql if isinstance(order, OrderRaw) else f"{self.wrap(order.column)} {order.direction}"
            for order in orders
        ]

    def compile_limit(self, query: "QueryBuilder", limit: int) -> str:
        return f"limit {limit}"

    def compile_offset(self, query: "QueryBuilder", offset: int) -> str:
        return f"offset {offset}"

    def compile_lock(self, query: "QueryBuilder", value: bool | str) -> str:
        return value if isinstance(value, str) else ""

    def compile_random(self, seed: str | int = "") -> str:
        return "RANDOM()"

    # ------------------------------------------------------------------ #
    # Unions
    # ------------------------------------------------------------------ #
    def compile_unions(self, query: "QueryBuilder") -> str:
        registry = query.registry
        sql = "".join(self.compile_union(union) for union in registry.unions)
        if registry.union_orders:
            sql += f" {self.compile_orders(query, registry.union_orders)}"
        if registry.union_limit is not None:
            sql += f" {self.compile_limit(query, registry.union_limit)}"
        if registry.union_offset is not None:
            sql += f" {self.compile_offset(query, registry.union_offset)}"
        return sql.lstrip()

    def compile_union(self, union: Union_) -> str:
        conjunction = " union all " if union.all else " union "
        return f"{conjunction}{self.wrap_union(union.query.to_sql())}"

    def wrap_union(self, sql: str) -> str:
        return f"({sql})"

    def compile_union_aggregate(self, query: "QueryBuilder") -> str:
        sql = self.compile_aggregate(query, query.registry.aggregate)
        inner = query.clone_without(["aggregate", "expressions", "recursion_limit"])
        return f"{sql} from ({self.compile_select_body(inner)}) as {self.wrap_table('temp_table')}"

    # ------------------------------------------------------------------ #
    # Common table expressions
    # ------------------------------------------------------------------ #
    def compile_with_expressions(self, query: "QueryBuilder", sql: str) -> str:
        prefix = self.compile_expressions(query)
        if prefix:
            sql = f"{prefix} {sql}"
        limit = query.registry.recursion_limit
        if limit is not None:
            sql = f"{sql} {self.compile_recursion_limit(limit)}"
        return sql

    def compile_expressions(self, query: "QueryBuilder") -> str:
        expressions = query.registry.expressions
        if not expressions:
            return ""
        recursive = ""
        if self.dialect.capabilities.supports_recursive_keyword and any(item.recursive for item in expressions):
            recursive = "recursive "
        statements = ", ".join(self.compile_expression(expression) for expression in expressions)
        cycles = "".join(self.compile_cycle_detection(expression) for expression in expressions if expression.cycle)
        return f"with {recursive}{statements}{cycles}"

    def compile_expression(self, expression: CommonTableExpression) -> str:
        columns = f" ({self.columnize(expression.columns)})" if expression.columns else ""
        materialized = ""
        if expression.materialized is True:
            materialized = "materialized "
        elif expression.materialized is False:
            materialized = "not materialized "
        body = expression.query
        sql = body.to_sql() if hasattr(body, "to_sql") else self.get_value(body)
        return f"{self.wrap_table(expression.name)}{columns} as {materialized}({sql})"

    def compile_cycle_detection(self, expression: CommonTableExpression) -> str:
        if not self.dialect.capabilities.supports_cycle_detection:
            raise CompilationError("This database engine does not support cycle detection.")
        cycle = expression.cycle
        return (
            f" cycle {self.columnize(cycle.columns)}"
            f" set {self.wrap(cycle.marker_column)} using {self.wrap(cycle.path_column)}"
        )

    def compile_recursion_limit(self, limit: int) -> str:
        return f"option (maxrecursion {limit})"

    # ------------------------------------------------------------------ #
    # Exists / insert
    # ------------------------------------------------------------------ #
    def compile_exists(self, query: "QueryBuilder") -> str:
        return f"select exists({self.compile_select(query)}) as {self.wrap('exists')}"

    def compile_insert(self, query: "QueryBuilder", values: Sequence[RowValues] | RowValues) -> str:
        table = self.wrap_table(query.registry.from_)
        if not values:
            return f"insert into {table} default values"
        rows = [values] if isinstance(values, Mapping) else list(values)
        columns = self.columnize(rows[0].keys())
        parameters = ", ".join(f"({self.parameterize(row.values())})" for row in rows)
        return f"insert into {table} ({columns}) values {parameters}"

    def compile_insert_or_ignore(self, query: "QueryBuilder", values: Sequence[RowValues] | RowValues) -> str:
        raise CompilationError("This database engine does not support inserting while ignoring errors.")

    def compile_insert_get_id(self, query: "QueryBuilder", values: RowValues, sequence: str | None = None) -> str:
        return self.compile_insert(query, values)

    def compile_insert_using(self, query: "QueryBuilder", columns: Sequence[Stringable], sql: str) -> str:
        table = self.wrap_table(query.registry.from_)
        statement = f"insert into {table} {sql}"
        if columns and any(self.get_value(column) != "*" for column in columns):
            statement = f"insert into {table} ({self.columnize(columns)}) {sql}"
        prefix = self.compile_expressions(query)
        return f"{prefix} {statement}" if prefix else statement

    # ------------------------------------------------------------------ #
    # Update
    # ------------------------------------------------------------------ #
    def compile_update(self, query: "QueryBuilder", values: RowValues) -> str:
        if self.uses_row_identity(query):
            return self.compile_update_with_joins_or_limit(query, values)
        table = self.wrap_table(query.registry.from_)
        columns = self.compile_update_columns(query, values)
        where = self.compile_wheres(query)
        if query.registry.joins:
            sql = self.compile_update_with_joins(query, table, columns, where)
        else:
            sql = self.compile_update_without_joins(query, table, columns, where)
        return self.prefix_expressions(query, sql.strip())

    def compile_update_columns(self, query: "QueryBuilder", values: RowValues) -> str:
        return ", ".join(f"{self.wrap(key)} = {self.parameter(value)}" for key, value in values.items())

    def compile_update_without_joins(self, query: "QueryBuilder", table: str, columns: str, where: str) -> str:
        return f"update {table} set {columns} {where}".rstrip()

    def compile_update_with_joins(self, query: "QueryBuilder", table: str, columns: str, where: str) -> str:
        joins = self.compile_joins(query, query.registry.joins)
        return f"update {table} {joins} set {columns} {where}"

    def compile_update_with_joins_or_limit(self, query: "QueryBuilder", values: RowValues) -> str:
        table = self.wrap_table(query.registry.from_)
        columns = self.compile_update_columns(query, values)
        return f"update {table} set {columns} where {self.row_identity_subquery(query)}"

    def compile_update_from(self, query: "QueryBuilder", values: RowValues) -> str:
        raise CompilationError("This database engine does not support the update_from method.")

    def compile_upsert(
        self,
        query: "QueryBuilder",
        values: Sequence[RowValues],
        unique_by: Sequence[str],
        update: Sequence[str | RowValues],
    ) -> str:
        raise CompilationError("This database engine does not support upserts.")

    def prepare_bindings_for_update(self, query: "QueryBuilder", values: RowValues) -> List[Any]:
        bindings = query.registry.bindings
        rest = query.registry.flat_bindings(exclude=("expressions", "select", "join"))
        return [*bindings["expressions"], *bindings["join"], *self.prepare_values_for_update(values), *rest]

    def prepare_values_for_update(self, values: RowValues) -> List[Any]:
        return list(values.values())

    def group_json_columns_for_update(self, values: RowValues) -> Dict[str, Any]:
        """
        Fold ``column->path`` keys into one :class:`JsonPaths` entry per column.

        Plain keys pass through untouched; JSON columns lose their table
        qualifier. A column may not be assigned both as a whole and through
        JSON paths in one statement.
        """
        grouped: Dict[str, Any] = {}
        plain = set()
        json_columns = set()
        for key, value in values.items():
            if not self.is_json_selector(key):
                plain.add(self.get_column_key(key))
                grouped[key] = value
                continue
            column, path = self.get_column_key(key).split("->", 1)
            json_columns.add(column)
            paths = grouped.get(column)
            if not isinstance(paths, JsonPaths):
                paths = grouped[column] = JsonPaths()
            paths[path] = value
        conflicts = sorted(plain & json_columns)
        if conflicts:
            raise CompilationError(f"Column [{conflicts[0]}] cannot be updated both whole and by JSON path.")
        return grouped

    @staticmethod
    def get_column_key(key: str) -> str:
        field, arrow, path = key.partition("->")
        return f"{field.split('.')[-1]}{arrow}{path}"

    @staticmethod
    def json_update_value(value: Any) -> Any:
        if isinstance(value, (dict, list, tuple)):
            return json.dumps(value)
        return value

    def prepare_bindings_for_update_from(self, query: "QueryBuilder", values: RowValues) -> List[Any]:
        raise CompilationError("This database engine does not support the update_from method.")

    # ------------------------------------------------------------------ #
    # Delete / truncate
    # ------------------------------------------------------------------ #
    def compile_delete(self, query: "QueryBuilder") -> str:
        if self.uses_row_identity(query):
            return self.compile_delete_with_joins_or_limit(query)
        table = self.wrap_table(query.registry.from_)
        where = self.compile_wheres(query)
        if query.registry.joins:
            sql = self.compile_delete_with_joins(query, table, where)
        else:
            sql = self.compile_delete_without_joins(query, table, where)
        return self.prefix_expressions(query, sql.strip())

    def compile_delete_with_joins(self, query: "QueryBuilder", table: str, where: str) -> str:
        alias = table.split(" as ")[-1]
        joins = self.compile_joins(query, query.registry.joins)
        return f"delete {alias} from {table} {joins} {where}"

    def compile_delete_without_joins(self, query: "QueryBuilder", table: str, where: str) -> str:
        return f"delete from {table} {where}".rstrip()

    def compile_delete_with_joins_or_limit(self, query: "QueryBuilder") -> str:
        table = self.wrap_table(query.registry.from_)
        return f"delete from {table} where {self.row_identity_subquery(query)}"

    def prepare_bindings_for_delete(self, query: "QueryBuilder") -> List[Any]:
        return query.registry.flat_bindings(exclude=("select",))

    def compile_truncate(self, query: "QueryBuilder") -> Dict[str, List[Any]]:
        return {f"truncate table {self.wrap_table(query.registry.from_)}": []}

    def uses_row_identity(self, query: "QueryBuilder") -> bool:
        capabilities = self.dialect.capabilities
        if capabilities.native_multi_table_delete or capabilities.row_identity_column is None:
            return False
        return bool(query.registry.joins) or bool(query.registry.limit)

    def row_identity_subquery(self, query: "QueryBuilder") -> str:
        column = self.dialect.capabilities.row_identity_column
        alias = _ALIAS_SPLIT_RE.split(self.get_value(query.registry.from_))[-1]
        inner = query.clone_without(["columns"]).select(f"{alias}.{column}")
        return f"{self.wrap(column)} in ({self.compile_select(inner)})"

    def prefix_expressions(self, query: "QueryBuilder", sql: str) -> str:
        prefix = self.compile_expressions(query)
        return f"{prefix} {sql}" if prefix else sql

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def supports_savepoints(self) -> bool:
        return self.dialect.capabilities.supports_savepoints

    def compile_savepoint(self, name: str) -> str:
        return f"SAVEPOINT {name}"

    def compile_savepoint_roll_back(self, name: str) -> str:
        return f"ROLLBACK TO SAVEPOINT {name}"

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def get_operators(self) -> Sequence[str]:
        return self.operators

    def get_bitwise_operators(self) -> Sequence[str]:
        return self.bitwise_operators

    def remove_leading_boolean(self, value: str) -> str:
        return _LEADING_BOOLEAN_RE.sub("", value, count=1)

    @staticmethod
    def concatenate(segments: Sequence[str]) -> str:
        return " ".join(segment for segment in segments if segment != "")

    def substitute_bindings_into_raw_sql(self, sql: str, bindings: Sequence[Any]) -> str:
        """
        Inline ``bindings`` into ``sql`` for diagnostics only.

        Placeholders inside quoted literals are left alone, ``''`` and ``\\'``
        are treated as escaped quotes and ``??`` collapses to a literal ``?``.
        """
        remaining = list(bindings)
        in_literal = False
        query: List[str] = []
        index = 0
        while index < len(sql):
            char = sql[index]
            pair = sql[index : index + 2]
            if pair in ("\\'", "''", "??"):
                query.append("?" if pair == "??" and not in_literal else pair)
                index += 2
                continue
            if char == "'":
                in_literal = not in_literal
                query.append(char)
            elif char == "?" and not in_literal:
                query.append(self.escape(remaining.pop(0)) if remaining else "?")
            else:
                query.append(char)
            index += 1
        return "".join(query)

    def escape(self, value: Any) -> str:
        if isinstance(value, TypedBinding):
            value = value.value
        if value is None:
            return "null"
        if isinstance(value, (bytes, bytearray, memoryview)):
            return self.escape_binary(bytes(value))
        if isinstance(value, bool):
            return self.escape_bool(value)
        if isinstance(value, Expression):
            value = value.get_value(self)
        text = self.escape_string(value)
        if "\x00" in text:
            return "<NullByte>"
        return text

    def escape_string(self, value: Any) -> str:
        escaped = str(value).replace("'", "''")
        return f"'{escaped}'"

    def escape_bool(self, value: bool) -> str:
        return "1" if value else "0"

    def escape_binary(self, value: bytes) -> str:
        return f"<binary[{len(value)}]>"


def values_first_update_bindings(grammar: QueryGrammar, query: "QueryBuilder", values: RowValues) -> List[Any]:
    """
    Update bindings for dialects whose ``set`` list precedes every clause.

    On the row identity path the CTE lives inside the sub-select, after the
    ``set`` values; otherwise it prefixes the whole statement.
    """
    registry = query.registry
    if grammar.uses_row_identity(query):
        return [*grammar.prepare_values_for_update(values), *registry.flat_bindings(exclude=("select",))]
    rest = registry.flat_bindings(exclude=("expressions", "select"))
    return [*registry.bindings["expressions"], *grammar.prepare_values_for_update(values), *rest]
