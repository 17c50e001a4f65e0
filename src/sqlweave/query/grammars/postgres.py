"""
PostgreSQL query grammar.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any, Dict, List, Sequence

from ...dialects.postgres import PostgresDialect
from ...grammar import Stringable
from ..registry import HavingBasic, WhereBasic, WhereDateTime, WhereFulltext
from .base import JsonPaths, QueryGrammar, RowValues, values_first_update_bindings

if TYPE_CHECKING:
    from ..builder import QueryBuilder

_INTEGER_RE = re.compile(r"^-?\d+$")
_JSON_ARRAY_KEYS_RE = re.compile(r"(\[[^\]]+\])+$")
_JSON_ARRAY_INDEX_RE = re.compile(r"\[([^\]]+)\]")
_TRAILING_INDEX_RE = re.compile(r"\[(-?[0-9]+)\]$")

FULLTEXT_LANGUAGES = (
    "simple",
    "arabic",
    "danish",
    "dutch",
    "english",
    "finnish",
    "french",
    "german",
    "hungarian",
    "indonesian",
    "irish",
    "italian",
    "lithuanian",
    "nepali",
    "norwegian",
    "portuguese",
    "romanian",
    "russian",
    "spanish",
    "swedish",
    "tamil",
    "turkish",
)


class PostgresQueryGrammar(QueryGrammar):
    dialect_class = PostgresDialect
    operators = (
        "=", "<", ">", "<=", ">=", "<>", "!=",
        "like", "not like", "between", "ilike", "not ilike",
        "~", "&", "|", "#", "<<", ">>", "<<=", ">>=",
        "&&", "@>", "<@", "?", "?|", "?&", "||", "-", "@?", "@@", "#-",
        "is distinct from", "is not distinct from",
    )
    bitwise_operators = ("~", "&", "|", "#", "<<", ">>", "<<=", ">>=")

    # Wheres ------------------------------------------------------------
    def compile_where_basic(self, query: "QueryBuilder", where: WhereBasic) -> str:
        if "like" in where.operator.lower():
            not_ = "not " if where.not_ else ""
            return f"{not_}{self.wrap(where.column)}::text {where.operator} {self.parameter(where.value)}"
        return super().compile_where_basic(query, where)

    def compile_where_bitwise(self, query: "QueryBuilder", where: WhereBasic) -> str:
        operator = where.operator.replace("?", "??")
        return f"({self.wrap(where.column)} {operator} {self.parameter(where.value)})::bool"

    def compile_where_date(self, query: "QueryBuilder", where: WhereDateTime) -> str:
        return f"{self.wrap(where.column)}::date {where.operator} {self.parameter(where.value)}"

    def compile_where_time(self, query: "QueryBuilder", where: WhereDateTime) -> str:
        return f"{self.wrap(where.column)}::time {where.operator} {self.parameter(where.value)}"

    def date_based_where(self, kind: str, query: "QueryBuilder", where: WhereDateTime) -> str:
        return f"extract({kind} from {self.wrap(where.column)}) {where.operator} {self.parameter(where.value)}"

    def compile_fulltext(self, query: "QueryBuilder", where: WhereFulltext) -> str:
        language = where.options.get("language") or "english"
        if language not in FULLTEXT_LANGUAGES:
            language = "english"
        columns = " || ".join(f"to_tsvector('{language}', {self.wrap(column)})" for column in where.columns)
        mode = {
            "phrase": "phraseto_tsquery",
            "websearch": "websearch_to_tsquery",
        }.get(where.options.get("mode"), "plainto_tsquery")
        return f"({columns}) @@ {mode}('{language}', {self.parameter(where.value)})"

    def compile_having_bitwise(self, query: "QueryBuilder", having: HavingBasic) -> str:
        return f"({self.wrap(having.column)} {having.operator} {self.parameter(having.value)})::bool"

    # Select ------------------------------------------------------------
    def compile_columns(self, query: "QueryBuilder", columns) -> str:
        if query.registry.aggregate is not None:
            return ""
        distinct = query.registry.distinct
        if isinstance(distinct, list):
            select = f"select distinct on ({self.columnize(distinct)})"
        elif distinct:
            select = "select distinct"
        else:
            select = "select"
        return f"{select} {self.columnize(columns)}"

    def compile_lock(self, query: "QueryBuilder", value: bool | str) -> str:
        if isinstance(value, str):
            return value
        return "for update" if value else "for share"

    # Insert ------------------------------------------------------------
    def compile_insert_or_ignore(self, query: "QueryBuilder", values) -> str:
        return f"{self.compile_insert(query, values)} on conflict do nothing"

    def compile_insert_get_id(self, query: "QueryBuilder", values: RowValues, sequence: str | None = None) -> str:
        return f"{self.compile_insert(query, values)} returning {self.wrap(sequence or 'id')}"

    def compile_upsert(
        self,
        query: "QueryBuilder",
        values: Sequence[RowValues],
        unique_by: Sequence[str],
        update: Sequence[str | RowValues],
    ) -> str:
        sql = self.compile_insert(query, values)
        sql += f" on conflict ({self.columnize(unique_by)}) do update set "
        return sql + self.compile_upsert_assignments(update)

    def compile_upsert_assignments(self, update: Sequence[str | RowValues]) -> str:
        excluded = self.wrap_value("excluded")
        columns = [f"{self.wrap(item)} = {excluded}.{self.wrap(item)}" for item in update if isinstance(item, str)]
        for item in update:
            if isinstance(item, str):
                continue
            columns.extend(f"{self.wrap(key)} = {self.parameter(value)}" for key, value in item.items())
        return ", ".join(columns)

    # JSON --------------------------------------------------------------
    def wrap_json_selector(self, value: Stringable) -> str:
        path = self.get_value(value).split("->")
        field = self.wrap_segments(path.pop(0).split("."))
        attributes = self.wrap_json_path_attributes(path)
        last = attributes.pop()
        if attributes:
            return f"{field}->{'->'.join(attributes)}->>{last}"
        return f"{field}->>{last}"

    def wrap_json_boolean_selector(self, value: Stringable) -> str:
        return f"({self.wrap_json_selector(value).replace('->>', '->')})::jsonb"

    def wrap_json_boolean_value(self, value: Stringable) -> str:
        return f"'{self.get_value(value)}'::jsonb"

    def wrap_json_path_attributes(self, path: Sequence[str], quote: str = "'") -> List[str]:
        attributes = [key for attribute in path for key in self.parse_json_path_array_keys(attribute)]
        wrapped = []
        for attribute in attributes:
            if _INTEGER_RE.match(attribute):
                wrapped.append(attribute)
            else:
                escaped = attribute.replace("'", "''")
                wrapped.append(f"{quote}{escaped}{quote}")
        return wrapped

    @staticmethod
    def parse_json_path_array_keys(attribute: str) -> List[str]:
        match = _JSON_ARRAY_KEYS_RE.search(attribute)
        if match is None:
            return [attribute]
        keys = [attribute[: match.start()], *_JSON_ARRAY_INDEX_RE.findall(match.group(0))]
        return [key for key in keys if key != ""]

    def json_column(self, column: Stringable) -> str:
        return self.wrap(column).replace("->>", "->")

    def compile_json_contains(self, column: Stringable, value: str) -> str:
        return f"({self.json_column(column)})::jsonb @> {value}"

    def compile_json_contains_key(self, column: Stringable) -> str:
        segments = self.get_value(column).split("->")
        last = segments.pop()
        index = None
        if _INTEGER_RE.match(last):
            index = int(last)
        else:
            match = _TRAILING_INDEX_RE.search(last)
            if match is not None:
                if match.start():
                    segments.append(last[: match.start()])
                index = int(match.group(1))
        wrapped = self.json_column("->".join(segments))
        if index is not None:
            length = abs(index) if index < 0 else index + 1
            return (
                f"case when jsonb_typeof(({wrapped})::jsonb) = 'array' "
                f"then jsonb_array_length(({wrapped})::jsonb) >= {length} else false end"
            )
        key = last.replace("'", "''")
        return f"coalesce(({wrapped})::jsonb ?? '{key}', false)"

    def compile_json_length(self, column: Stringable, operator: str, value: str) -> str:
        return f"jsonb_array_length(({self.json_column(column)})::jsonb) {operator} {value}"

    # Update ------------------------------------------------------------
    def compile_update_columns(self, query: "QueryBuilder", values: RowValues) -> str:
        columns = []
        for column, value in self.group_json_columns_for_update(values).items():
            if isinstance(value, JsonPaths):
                columns.append(self.compile_json_update_column(column, value))
            else:
                columns.append(f"{self.wrap(column.split('.')[-1])} = {self.parameter(value)}")
        return ", ".join(columns)

    def compile_json_update_column(self, column: str, paths: JsonPaths) -> str:
        field = self.wrap(column)
        sql = f"{field}::jsonb"
        for path, value in paths.items():
            attributes = ",".join(self.wrap_json_path_attributes(path.split("->"), '"'))
            sql = f"jsonb_set({sql}, '{{{attributes}}}', {self.parameter(value)}::jsonb)"
        return f"{field} = {sql}"

    def prepare_values_for_update(self, values: RowValues) -> List[Any]:
        bindings: List[Any] = []
        for value in self.group_json_columns_for_update(values).values():
            if isinstance(value, JsonPaths):
                bindings.extend(item if self.is_expression(item) else json.dumps(item) for item in value.values())
            else:
                bindings.append(value)
        return bindings

    def compile_update_from(self, query: "QueryBuilder", values: RowValues) -> str:
        table = self.wrap_table(query.registry.from_)
        columns = self.compile_update_columns(query, values)
        source = ""
        if query.registry.joins:
            source = " from " + ", ".join(self.wrap_table(join.table) for join in query.registry.joins)
        where = self.compile_update_wheres(query)
        return self.prefix_expressions(query, f"update {table} set {columns}{source} {where}".strip())

    def compile_update_wheres(self, query: "QueryBuilder") -> str:
        base_wheres = self.compile_wheres(query)
        if not query.registry.joins:
            return base_wheres
        join_wheres = " ".join(
            f"{where.boolean} {self.compile_where(query, where)}"
            for join in query.registry.joins
            for where in join.registry.wheres
        )
        if base_wheres.strip() == "":
            return f"where {self.remove_leading_boolean(join_wheres)}"
        return f"{base_wheres} {join_wheres}"

    def prepare_bindings_for_update(self, query: "QueryBuilder", values: RowValues) -> List[Any]:
        return values_first_update_bindings(self, query, values)

    def prepare_bindings_for_update_from(self, query: "QueryBuilder", values: RowValues) -> List[Any]:
        bindings = query.registry.bindings
        rest = query.registry.flat_bindings(exclude=("expressions", "select", "where"))
        return [*bindings["expressions"], *self.prepare_values_for_update(values), *bindings["where"], *rest]

    # Delete ------------------------------------------------------------
    def compile_truncate(self, query: "QueryBuilder") -> Dict[str, List[Any]]:
        return {f"truncate {self.wrap_table(query.registry.from_)} restart identity cascade": []}

