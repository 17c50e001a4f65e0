"""
SQL Server query grammar.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any, List, Sequence

from ...dialects.sqlserver import SqlServerDialect
from ...errors import CompilationError
from ...grammar import Stringable
from ..registry import CommonTableExpression, HavingBasic, IndexHint, OrderRaw, Registry, WhereBasic, WhereDateTime
from .base import JsonPaths, QueryGrammar, RowValues, values_first_update_bindings

if TYPE_CHECKING:
    from ..builder import QueryBuilder

_TABLE_VALUED_FUNCTION_RE = re.compile(r"^(.+?)(\(.*?\))]$")
_TRAILING_INDEX_RE = re.compile(r"\[([0-9]+)\]$")


class SqlServerQueryGrammar(QueryGrammar):
    dialect_class = SqlServerDialect
    operators = (
        "=", "<", ">", "<=", ">=", "!<", "!>", "<>", "!=",
        "like", "not like", "ilike", "&", "&=", "|", "|=", "^", "^=",
    )
    select_components = (
        "aggregate",
        "columns",
        "from",
        "index_hint",
        "joins",
        "wheres",
        "groups",
        "havings",
        "orders",
        "offset",
        "limit",
        "lock",
    )

    def component_value(self, registry: Registry, component: str) -> Any:
        # offset requires an order by clause
        if component == "orders" and registry.offset and not registry.orders:
            return [OrderRaw("(SELECT 0)")]
        return super().component_value(registry, component)

    def compile_columns(self, query: "QueryBuilder", columns: Sequence[Stringable]) -> str:
        registry = query.registry
        if registry.aggregate is not None:
            return ""
        select = "select distinct" if registry.distinct is not False else "select"
        if registry.limit is not None and registry.limit > 0 and (registry.offset or 0) <= 0:
            select += f" top {registry.limit}"
        return f"{select} {self.columnize(columns)}"

    def compile_from(self, query: "QueryBuilder", table: Stringable) -> str:
        sql = super().compile_from(query, table)
        lock = query.registry.lock
        if isinstance(lock, str):
            return f"{sql} {lock}"
        if lock is not None:
            return f"{sql} with(rowlock,{'updlock,' if lock else ''}holdlock)"
        return sql

    def compile_index_hint(self, query: "QueryBuilder", index_hint: IndexHint) -> str:
        return f"with (index({index_hint.index}))" if index_hint.type == "force" else ""

    def compile_where_bitwise(self, query: "QueryBuilder", where: WhereBasic) -> str:
        operator = where.operator.replace("?", "??")
        return f"({self.wrap(where.column)} {operator} {self.parameter(where.value)}) != 0"

    def compile_where_date(self, query: "QueryBuilder", where: WhereDateTime) -> str:
        return f"cast({self.wrap(where.column)} as date) {where.operator} {self.parameter(where.value)}"

    def compile_where_time(self, query: "QueryBuilder", where: WhereDateTime) -> str:
        return f"cast({self.wrap(where.column)} as time) {where.operator} {self.parameter(where.value)}"

    def compile_having_bitwise(self, query: "QueryBuilder", having: HavingBasic) -> str:
        return f"({self.wrap(having.column)} {having.operator} {self.parameter(having.value)}) != 0"

    def compile_limit(self, query: "QueryBuilder", limit: int) -> str:
        if limit and (query.registry.offset or 0) > 0:
            return f"fetch next {limit} rows only"
        return ""

    def compile_offset(self, query: "QueryBuilder", offset: int) -> str:
        return f"offset {offset} rows" if offset > 0 else ""

    def compile_lock(self, query: "QueryBuilder", value: bool | str) -> str:
        return ""

    def compile_random(self, seed: str | int = "") -> str:
        return "NEWID()"

    def wrap_union(self, sql: str) -> str:
        return f"select * from ({sql}) as {self.wrap_table('temp_table')}"

    def compile_cycle_detection(self, expression: CommonTableExpression) -> str:
        raise CompilationError("This database engine does not support cycle detection.")

    def compile_exists(self, query: "QueryBuilder") -> str:
        exists_query = query.clone_without(["columns"]).select_raw("1 [exists]").limit(1)
        return self.compile_select(exists_query)

    def compile_update_with_joins(self, query: "QueryBuilder", table: str, columns: str, where: str) -> str:
        alias = table.split(" as ")[-1]
        joins = self.compile_joins(query, query.registry.joins)
        return f"update {alias} set {columns} from {table} {joins} {where}"

    def prepare_bindings_for_update(self, query: "QueryBuilder", values: RowValues) -> List[Any]:
        return values_first_update_bindings(self, query, values)

    # JSON
    def wrap_json_selector(self, value: Stringable) -> str:
        field, path = self.wrap_json_field_and_path(value)
        return f"json_value({field}{path})"

    def wrap_json_boolean_value(self, value: Stringable) -> str:
        return f"'{self.get_value(value)}'"

    def compile_json_contains(self, column: Stringable, value: str) -> str:
        field, path = self.wrap_json_field_and_path(column)
        return f"{value} in (select [value] from openjson({field}{path}))"

    def prepare_binding_for_json_contains(self, binding: Any) -> Any:
        return json.dumps(binding) if isinstance(binding, bool) else binding

    def compile_json_contains_key(self, column: Stringable) -> str:
        segments = self.get_value(column).split("->")
        last = segments.pop()
        match = _TRAILING_INDEX_RE.search(last)
        if match is not None:
            if match.start():
                segments.append(last[: match.start()])
            key = match.group(1)
        else:
            escaped = last.replace("'", "''")
            key = f"'{escaped}'"
        field, path = self.wrap_json_field_and_path("->".join(segments))
        return f"{key} in (select [key] from openjson({field}{path}))"

    def compile_json_length(self, column: Stringable, operator: str, value: str) -> str:
        field, path = self.wrap_json_field_and_path(column)
        return f"(select count(*) from openjson({field}{path})) {operator} {value}"

    def compile_json_value_cast(self, value: str) -> str:
        return f"json_query({value})"

    def compile_update_columns(self, query: "QueryBuilder", values: RowValues) -> str:
        columns = []
        for column, value in self.group_json_columns_for_update(values).items():
            if isinstance(value, JsonPaths):
                columns.append(self.compile_json_update_column(column, value))
            else:
                columns.append(f"{self.wrap(column)} = {self.parameter(value)}")
        return ", ".join(columns)

    def compile_json_update_column(self, column: str, paths: JsonPaths) -> str:
        # a column may appear only once in a set list, so paths nest
        field = self.wrap(column)
        sql = field
        for path, value in paths.items():
            parameter = self.parameter(value)
            if isinstance(value, (dict, list, tuple)):
                parameter = self.compile_json_value_cast(parameter)
            sql = f"json_modify({sql}, {self.wrap_json_path(path)}, {parameter})"
        return f"{field} = {sql}"

    def prepare_values_for_update(self, values: RowValues) -> List[Any]:
        bindings: List[Any] = []
        for value in self.group_json_columns_for_update(values).values():
            if isinstance(value, JsonPaths):
                bindings.extend(self.json_update_value(item) for item in value.values())
            else:
                bindings.append(value)
        return bindings

    def compile_upsert(
        self,
        query: "QueryBuilder",
        values: Sequence[RowValues],
        unique_by: Sequence[str],
        update: Sequence[str | RowValues],
    ) -> str:
        source = self.get_value(query.registry.from_)
        columns = self.columnize(values[0].keys())
        parameters = ", ".join(f"({self.parameterize(row.values())})" for row in values)
        sql = f"merge {self.wrap_table(source)} "
        sql += f"using (values {parameters}) {self.wrap_table('sqlweave_source')} ({columns}) "
        on = " and ".join(
            f"{self.wrap('sqlweave_source.' + column)} = {self.wrap(source + '.' + column)}" for column in unique_by
        )
        sql += f"on {on} "

        assignments = [f"{self.wrap(item)} = {self.wrap('sqlweave_source.' + item)}" for item in update if isinstance(item, str)]
        for item in update:
            if not isinstance(item, str):
                assignments.extend(f"{self.wrap(key)} = {self.parameter(value)}" for key, value in item.items())
        if assignments:
            sql += f"when matched then update set {', '.join(assignments)} "
        sql += f"when not matched then insert ({columns}) values ({columns})"
        return sql

    def compile_update_without_joins(self, query: "QueryBuilder", table: str, columns: str, where: str) -> str:
        sql = super().compile_update_without_joins(query, table, columns, where)
        return self._limit_with_top(query, "update", sql)

    def compile_delete_without_joins(self, query: "QueryBuilder", table: str, where: str) -> str:
        sql = super().compile_delete_without_joins(query, table, where)
        return self._limit_with_top(query, "delete", sql)

    def _limit_with_top(self, query: "QueryBuilder", verb: str, sql: str) -> str:
        registry = query.registry
        if registry.limit is not None and registry.limit > 0 and (registry.offset or 0) <= 0:
            return sql.replace(verb, f"{verb} top ({registry.limit})", 1)
        return sql

    def compile_savepoint(self, name: str) -> str:
        return f"SAVE TRANSACTION {name}"

    def compile_savepoint_roll_back(self, name: str) -> str:
        return f"ROLLBACK TRANSACTION {name}"

    def wrap_table(self, table: Stringable) -> str:
        if self.is_expression(table):
            return self.get_value(table)
        return self.wrap_table_valued_function(super().wrap_table(table))

    @staticmethod
    def wrap_table_valued_function(table: str) -> str:
        match = _TABLE_VALUED_FUNCTION_RE.match(table)
        if match is not None:
            table = f"{match.group(1)}]{match.group(2)}"
        return table
