"""
MySQL query grammar.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Sequence

from ...dialects.mysql import MySQLDialect
from ...grammar import Stringable
from ..registry import CommonTableExpression, IndexHint, WhereFulltext, WhereNull
from .base import QueryGrammar, RowValues

if TYPE_CHECKING:
    from ..builder import QueryBuilder


class MySQLQueryGrammar(QueryGrammar):
    dialect_class = MySQLDialect
    operators = ("sounds like",)

    def __init__(self, dialect=None, *, table_prefix: str = "", use_upsert_alias: bool = False) -> None:
        super().__init__(dialect, table_prefix=table_prefix)
        self.use_upsert_alias = use_upsert_alias

    def compile_index_hint(self, query: "QueryBuilder", index_hint: IndexHint) -> str:
        return f"{index_hint.type} index ({index_hint.index})"

    def compile_fulltext(self, query: "QueryBuilder", where: WhereFulltext) -> str:
        columns = self.columnize(where.columns)
        value = self.parameter(where.value)
        boolean_mode = where.options.get("mode") == "boolean"
        mode = " in boolean mode" if boolean_mode else " in natural language mode"
        expanded = " with query expansion" if where.options.get("expanded") and not boolean_mode else ""
        return f"match ({columns}) against ({value}{mode}{expanded})"

    def compile_random(self, seed: str | int = "") -> str:
        return f"RAND({seed})"

    def compile_lock(self, query: "QueryBuilder", value: bool | str) -> str:
        if isinstance(value, str):
            return value
        return "for update" if value else "lock in share mode"

    def compile_cycle_detection(self, expression: CommonTableExpression) -> str:
        return f" cycle {self.columnize(expression.cycle.columns)} restrict"

    def compile_insert(self, query: "QueryBuilder", values) -> str:
        if not values:
            values = [{}]
        return super().compile_insert(query, values)

    def compile_insert_or_ignore(self, query: "QueryBuilder", values) -> str:
        return self.compile_insert(query, values).replace("insert", "insert ignore", 1)

    def compile_upsert(
        self,
        query: "QueryBuilder",
        values: Sequence[RowValues],
        unique_by: Sequence[str],
        update: Sequence[str | RowValues],
    ) -> str:
        sql = self.compile_insert(query, values)
        if self.use_upsert_alias:
            sql += " as sqlweave_upsert_alias"
        sql += " on duplicate key update "

        columns = []
        for item in update:
            if isinstance(item, str):
                if self.use_upsert_alias:
                    columns.append(f"{self.wrap(item)} = {self.wrap('sqlweave_upsert_alias')}.{self.wrap(item)}")
                else:
                    columns.append(f"{self.wrap(item)} = values({self.wrap(item)})")
            else:
                columns.extend(f"{self.wrap(key)} = {self.parameter(value)}" for key, value in item.items())
        return sql + ", ".join(columns)

    def compile_update_without_joins(self, query: "QueryBuilder", table: str, columns: str, where: str) -> str:
        sql = super().compile_update_without_joins(query, table, columns, where)
        return self._append_order_and_limit(query, sql)

    def compile_delete_without_joins(self, query: "QueryBuilder", table: str, where: str) -> str:
        sql = super().compile_delete_without_joins(query, table, where)
        return self._append_order_and_limit(query, sql)

    def _append_order_and_limit(self, query: "QueryBuilder", sql: str) -> str:
        registry = query.registry
        if registry.orders:
            sql += f" {self.compile_orders(query, registry.orders)}"
        if registry.limit is not None and registry.limit > 0:
            sql += f" {self.compile_limit(query, registry.limit)}"
        return sql

    # JSON --------------------------------------------------------------
    def wrap_json_selector(self, value: Stringable) -> str:
        field, path = self.wrap_json_field_and_path(value)
        return f"json_unquote(json_extract({field}{path}))"

    def wrap_json_boolean_selector(self, value: Stringable) -> str:
        field, path = self.wrap_json_field_and_path(value)
        return f"json_extract({field}{path})"

    def compile_where_null(self, query: "QueryBuilder", where: WhereNull) -> str:
        column = where.column
        if self.is_expression(column) or not self.is_json_selector(column):
            return super().compile_where_null(query, where)
        # a JSON null is a value, not a missing key
        field, path = self.wrap_json_field_and_path(column)
        extracted = f"json_extract({field}{path})"
        if where.not_:
            return f"({extracted} is not null AND json_type({extracted}) != 'NULL')"
        return f"({extracted} is null OR json_type({extracted}) = 'NULL')"

    def compile_json_contains(self, column: Stringable, value: str) -> str:
        field, path = self.wrap_json_field_and_path(column)
        return f"json_contains({field}, {value}{path})"

    def compile_json_contains_key(self, column: Stringable) -> str:
        field, path = self.wrap_json_field_and_path(column)
        return f"ifnull(json_contains_path({field}, 'one'{path}), 0)"

    def compile_json_length(self, column: Stringable, operator: str, value: str) -> str:
        field, path = self.wrap_json_field_and_path(column)
        return f"json_length({field}{path}) {operator} {value}"

    def compile_json_value_cast(self, value: str) -> str:
        return f"cast({value} as json)"

    # Update ------------------------------------------------------------
    def compile_update_columns(self, query: "QueryBuilder", values: RowValues) -> str:
        columns = []
        for key, value in values.items():
            if self.is_json_selector(key):
                columns.append(self.compile_json_update_column(key, value))
            else:
                columns.append(f"{self.wrap(key)} = {self.parameter(value)}")
        return ", ".join(columns)

    def compile_json_update_column(self, key: str, value: Any) -> str:
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif isinstance(value, (dict, list, tuple)):
            value = self.compile_json_value_cast("?")
        else:
            value = self.parameter(value)
        field, path = self.wrap_json_field_and_path(key)
        return f"{field} = json_set({field}{path}, {value})"

    def prepare_values_for_update(self, values: RowValues) -> List[Any]:
        bindings = []
        for key, value in values.items():
            if self.is_json_selector(key):
                # booleans are inlined as JSON literals
                if isinstance(value, bool):
                    continue
                value = self.json_update_value(value)
            bindings.append(value)
        return bindings
