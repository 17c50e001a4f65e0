"""
SQLite query grammar.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict, List, Sequence

from ...dialects.sqlite import SQLiteDialect
from ...errors import CompilationError
from ...grammar import Stringable
from ..registry import IndexHint, WhereDateTime
from .base import JsonPaths, QueryGrammar, RowValues, values_first_update_bindings

if TYPE_CHECKING:
    from ..builder import QueryBuilder


class SQLiteQueryGrammar(QueryGrammar):
    dialect_class = SQLiteDialect
    operators = ("=", "<", ">", "<=", ">=", "<>", "!=", "like", "not like", "ilike", "&", "|", "<<", ">>")

    def compile_lock(self, query: "QueryBuilder", value: bool | str) -> str:
        return ""

    def wrap_union(self, sql: str) -> str:
        return f"select * from ({sql})"

    def compile_index_hint(self, query: "QueryBuilder", index_hint: IndexHint) -> str:
        return f"indexed by {index_hint.index}" if index_hint.type == "force" else ""

    # strftime formats per date part
    def compile_where_date(self, query: "QueryBuilder", where: WhereDateTime) -> str:
        return self.date_based_where("%Y-%m-%d", query, where)

    def compile_where_day(self, query: "QueryBuilder", where: WhereDateTime) -> str:
        return self.date_based_where("%d", query, where)

    def compile_where_month(self, query: "QueryBuilder", where: WhereDateTime) -> str:
        return self.date_based_where("%m", query, where)

    def compile_where_year(self, query: "QueryBuilder", where: WhereDateTime) -> str:
        return self.date_based_where("%Y", query, where)

    def compile_where_time(self, query: "QueryBuilder", where: WhereDateTime) -> str:
        return self.date_based_where("%H:%M:%S", query, where)

    def date_based_where(self, kind: str, query: "QueryBuilder", where: WhereDateTime) -> str:
        value = self.parameter(where.value)
        return f"strftime('{kind}', {self.wrap(where.column)}) {where.operator} cast({value} as text)"

    def compile_insert_or_ignore(self, query: "QueryBuilder", values) -> str:
        return self.compile_insert(query, values).replace("insert", "insert or ignore", 1)

    def compile_upsert(
        self,
        query: "QueryBuilder",
        values: Sequence[RowValues],
        unique_by: Sequence[str],
        update: Sequence[str | RowValues],
    ) -> str:
        sql = self.compile_insert(query, values)
        sql += f" on conflict ({self.columnize(unique_by)}) do update set "
        excluded = self.wrap_value("excluded")
        columns = [f"{self.wrap(item)} = {excluded}.{self.wrap(item)}" for item in update if isinstance(item, str)]
        for item in update:
            if not isinstance(item, str):
                columns.extend(f"{self.wrap(key)} = {self.parameter(value)}" for key, value in item.items())
        return sql + ", ".join(columns)

    # JSON --------------------------------------------------------------
    def wrap_json_selector(self, value: Stringable) -> str:
        field, path = self.wrap_json_field_and_path(value)
        return f"json_extract({field}{path})"

    def compile_json_contains_key(self, column: Stringable) -> str:
        field, path = self.wrap_json_field_and_path(column)
        return f"json_type({field}{path}) is not null"

    def compile_json_length(self, column: Stringable, operator: str, value: str) -> str:
        field, path = self.wrap_json_field_and_path(column)
        return f"json_array_length({field}{path}) {operator} {value}"

    # Update ------------------------------------------------------------
    def compile_update_columns(self, query: "QueryBuilder", values: RowValues) -> str:
        columns = []
        for column, value in self.group_json_columns_for_update(values).items():
            if isinstance(value, JsonPaths):
                columns.append(f"{self.wrap(column)} = {self.compile_json_patch(column)}")
            else:
                columns.append(f"{self.wrap(column.split('.')[-1])} = {self.parameter(value)}")
        return ", ".join(columns)

    def compile_json_patch(self, column: str) -> str:
        return f"json_patch(ifnull({self.wrap(column)}, json('{{}}')), json(?))"

    def prepare_values_for_update(self, values: RowValues) -> List[Any]:
        bindings: List[Any] = []
        for column, value in self.group_json_columns_for_update(values).items():
            if isinstance(value, JsonPaths):
                value = json.dumps(self.nest_json_paths(column, value))
            bindings.append(value)
        return bindings

    def nest_json_paths(self, column: str, paths: JsonPaths) -> Dict[str, Any]:
        """
        Expand ``{"a->b": 1}`` into ``{"a": {"b": 1}}`` for a JSON merge patch.
        """
        document: Dict[str, Any] = {}
        for path, value in paths.items():
            if self.is_expression(value):
                raise CompilationError(f"Raw expressions cannot be assigned to JSON path [{column}->{path}].")
            *parents, leaf = path.split("->")
            node = document
            for key in parents:
                node = node.setdefault(key, {})
            node[leaf] = value
        return document

    def prepare_bindings_for_update(self, query: "QueryBuilder", values: RowValues) -> List[Any]:
        return values_first_update_bindings(self, query, values)

    def compile_truncate(self, query: "QueryBuilder") -> Dict[str, List[Any]]:
        table = query.registry.from_
        return {
            "delete from sqlite_sequence where name = ?": [self.get_value(table)],
            f"delete from {self.wrap_table(table)}": [],
        }
