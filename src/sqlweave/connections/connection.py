"""
Connection facade owning adapters, grammars, configuration and listeners.

Statements run through :class:`ConnectionSession` objects; the delegating
methods here open a fresh session per call.
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar, Dict, Iterator, List, Mapping, Optional, Sequence

from ..adapters.base import DatabaseAdapter
from ..cache import CacheManager
from ..errors import SqlweaveError
from ..events import QueryExecuted
from ..expression import Expression, raw
from ..hooks import HookDispatcher, HookHandler, hooks
from ..query import QueryBuilder
from ..query.grammars import (
    MySQLQueryGrammar,
    PostgresQueryGrammar,
    QueryGrammar,
    SQLiteQueryGrammar,
    SqlServerQueryGrammar,
)
from ..schema.builders import (
    MySQLSchemaBuilder,
    PostgresSchemaBuilder,
    SchemaBuilder,
    SQLiteSchemaBuilder,
    SqlServerSchemaBuilder,
)
from ..schema.grammars import (
    MySQLSchemaGrammar,
    PostgresSchemaGrammar,
    SchemaGrammar,
    SQLiteSchemaGrammar,
    SqlServerSchemaGrammar,
)
from ..utils import get_logger, resolve_slow_query_ms
from .session import ConnectionSession, LoggedQuery

AdapterResolver = Callable[[], DatabaseAdapter]
BeforeExecutingCallback = Callable[[str, List[Any], ConnectionSession], Any]


class Connection:
    """
    Generic connection.

    Adapters may be given directly or through resolvers; a resolver is
    called lazily on first use and again after :meth:`reconnect`.
    """

    driver_name: ClassVar[str] = "generic"
    query_grammar_class: ClassVar[type] = QueryGrammar
    schema_grammar_class: ClassVar[type] = SchemaGrammar
    schema_builder_class: ClassVar[type] = SchemaBuilder

    def __init__(
        self,
        name: str = "default",
        config: Mapping[str, Any] | None = None,
        *,
        adapter: DatabaseAdapter | None = None,
        read_adapter: DatabaseAdapter | None = None,
        schema_adapter: DatabaseAdapter | None = None,
        adapter_resolver: AdapterResolver | None = None,
        read_adapter_resolver: AdapterResolver | None = None,
        dispatcher: HookDispatcher | None = None,
        cache_manager: CacheManager | None = None,
    ) -> None:
        self.name = name
        self.config: Dict[str, Any] = dict(config or {})
        self._adapter = adapter
        self._read_adapter = read_adapter
        self._schema_adapter = schema_adapter
        self._adapter_resolver = adapter_resolver
        self._read_adapter_resolver = read_adapter_resolver
        self._dispatcher = dispatcher if dispatcher is not None else hooks
        self._cache_manager = cache_manager
        self._before_executing: List[BeforeExecutingCallback] = []
        self._table_prefix: str = self.config.get("prefix", "") or ""
        self._database: str = self.config.get("database", "") or ""
        self._query_grammar: Optional[QueryGrammar] = None
        self._schema_grammar: Optional[SchemaGrammar] = None
        self._slow_query_ms = resolve_slow_query_ms(default=100, override=self.config.get("slow_query_ms"))
        self.logger = get_logger("connections.connection")

    # ------------------------------------------------------------------ #
    # Sessions and builders
    # ------------------------------------------------------------------ #
    def session(self) -> ConnectionSession:
        return ConnectionSession(self)

    def session_schema(self) -> ConnectionSession:
        return ConnectionSession(self, schema=True)

    def table(self, table: Any, alias: str | None = None) -> QueryBuilder:
        return self.session().table(table, alias)

    def query(self) -> QueryBuilder:
        return self.session().query()

    def get_schema_builder(self) -> SchemaBuilder:
        return self.schema_builder_class(self.session_schema())

    # ------------------------------------------------------------------ #
    # Grammars
    # ------------------------------------------------------------------ #
    def get_default_query_grammar(self) -> QueryGrammar:
        return self.query_grammar_class(table_prefix=self._table_prefix)

    def get_default_schema_grammar(self) -> SchemaGrammar:
        return self.schema_grammar_class(table_prefix=self._table_prefix)

    def get_query_grammar(self) -> QueryGrammar:
        if self._query_grammar is None:
            self._query_grammar = self.get_default_query_grammar()
        return self._query_grammar

    def set_query_grammar(self, grammar: QueryGrammar) -> "Connection":
        self._query_grammar = grammar
        return self

    def get_schema_grammar(self) -> SchemaGrammar:
        if self._schema_grammar is None:
            self._schema_grammar = self.get_default_schema_grammar()
        return self._schema_grammar

    def set_schema_grammar(self, grammar: SchemaGrammar) -> "Connection":
        self._schema_grammar = grammar
        return self

    # ------------------------------------------------------------------ #
    # Adapters
    # ------------------------------------------------------------------ #
    def get_adapter(self) -> DatabaseAdapter:
        if self._adapter is None:
            if self._adapter_resolver is None:
                raise SqlweaveError(f"Connection [{self.name}] has no adapter.")
            self._adapter = self._adapter_resolver()
        return self._adapter

    def get_read_adapter(self) -> DatabaseAdapter:
        if self._read_adapter is None and self._read_adapter_resolver is not None:
            self._read_adapter = self._read_adapter_resolver()
        if self._read_adapter is None:
            return self.get_adapter()
        return self._read_adapter

    def get_schema_adapter(self) -> DatabaseAdapter:
        if self._schema_adapter is None:
            return self.get_adapter()
        return self._schema_adapter

    def set_adapter(self, adapter: DatabaseAdapter | None) -> "Connection":
        self._adapter = adapter
        return self

    def set_read_adapter(self, adapter: DatabaseAdapter | None) -> "Connection":
        self._read_adapter = adapter
        return self

    def set_schema_adapter(self, adapter: DatabaseAdapter | None) -> "Connection":
        self._schema_adapter = adapter
        return self

    def reconnect(self) -> "Connection":
        if self._adapter_resolver is None:
            raise SqlweaveError("Lost connection and no reconnector available.")
        self.logger.info("Reconnecting %s", self.name)
        self.disconnect()
        self.get_adapter()
        return self

    def disconnect(self) -> None:
        closed: set[int] = set()
        for adapter in (self._adapter, self._read_adapter, self._schema_adapter):
            if adapter is not None and id(adapter) not in closed:
                closed.add(id(adapter))
                adapter.close()
        if self._adapter_resolver is not None:
            self._adapter = None
        if self._read_adapter_resolver is not None:
            self._read_adapter = None

    # ------------------------------------------------------------------ #
    # Listeners
    # ------------------------------------------------------------------ #
    def before_executing(self, callback: BeforeExecutingCallback) -> "Connection":
        self._before_executing.append(callback)
        return self

    def get_before_executing(self) -> List[BeforeExecutingCallback]:
        return list(self._before_executing)

    def listen(self, callback: HookHandler) -> None:
        self._dispatcher.register(QueryExecuted, callback)

    def unlisten(self, callback: HookHandler) -> None:
        self._dispatcher.unregister(QueryExecuted, callback)

    def get_event_dispatcher(self) -> Optional[HookDispatcher]:
        return self._dispatcher

    def set_event_dispatcher(self, dispatcher: HookDispatcher | None) -> "Connection":
        self._dispatcher = dispatcher
        return self

    def get_cache_manager(self) -> Optional[CacheManager]:
        return self._cache_manager

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #
    def get_name(self) -> str:
        return self.name

    def get_config(self, option: str | None = None, default: Any = None) -> Any:
        if option is None:
            return dict(self.config)
        value: Any = self.config
        for segment in option.split("."):
            if not isinstance(value, Mapping) or segment not in value:
                return default
            value = value[segment]
        return value

    def get_driver_name(self) -> str:
        return self.config.get("driver", self.driver_name)

    def get_database_name(self) -> str:
        return self._database

    def set_database_name(self, database: str) -> "Connection":
        self._database = database
        return self

    def get_table_prefix(self) -> str:
        return self._table_prefix

    def set_table_prefix(self, prefix: str) -> "Connection":
        self._table_prefix = prefix
        self.get_query_grammar().set_table_prefix(prefix)
        self.get_schema_grammar().set_table_prefix(prefix)
        return self

    def get_slow_query_ms(self) -> int:
        return self._slow_query_ms

    def raw(self, value: Any) -> Expression:
        return raw(value)

    # ------------------------------------------------------------------ #
    # Session delegation
    # ------------------------------------------------------------------ #
    def select_one(self, sql: str, bindings: Sequence[Any] = (), use_read_connection: bool = True) -> Any:
        return self.session().select_one(sql, bindings, use_read_connection)

    def scalar(self, sql: str, bindings: Sequence[Any] = (), use_read_connection: bool = True) -> Any:
        return self.session().scalar(sql, bindings, use_read_connection)

    def select(
        self,
        sql: str,
        bindings: Sequence[Any] = (),
        use_read_connection: bool = True,
        *,
        cache: Mapping[str, Any] | None = None,
    ) -> List[Dict[str, Any]]:
        return self.session().select(sql, bindings, use_read_connection, cache=cache)

    def select_column(
        self, column: int, sql: str, bindings: Sequence[Any] = (), use_read_connection: bool = True
    ) -> List[Any]:
        return self.session().select_column(column, sql, bindings, use_read_connection)

    def select_from_write_connection(self, sql: str, bindings: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        return self.session().select_from_write_connection(sql, bindings)

    def select_result_sets(
        self, sql: str, bindings: Sequence[Any] = (), use_read_connection: bool = True
    ) -> List[List[Dict[str, Any]]]:
        return self.session().select_result_sets(sql, bindings, use_read_connection)

    def cursor(
        self, sql: str, bindings: Sequence[Any] = (), use_read_connection: bool = True
    ) -> Iterator[Dict[str, Any]]:
        return self.session().cursor(sql, bindings, use_read_connection)

    def insert(self, sql: str, bindings: Sequence[Any] = ()) -> bool:
        return self.session().insert(sql, bindings)

    def insert_get_id(self, sql: str, bindings: Sequence[Any] = (), sequence: str | None = None) -> Any:
        return self.session().insert_get_id(sql, bindings, sequence)

    def update(self, sql: str, bindings: Sequence[Any] = ()) -> int:
        return self.session().update(sql, bindings)

    def delete(self, sql: str, bindings: Sequence[Any] = ()) -> int:
        return self.session().delete(sql, bindings)

    def statement(self, sql: str, bindings: Sequence[Any] = ()) -> bool:
        return self.session().statement(sql, bindings)

    def affecting_statement(self, sql: str, bindings: Sequence[Any] = ()) -> int:
        return self.session().affecting_statement(sql, bindings)

    def unprepared(self, sql: str) -> bool:
        return self.session().unprepared(sql)

    def pretend(self, callback: Callable[[ConnectionSession], Any]) -> List[LoggedQuery]:
        return self.session().pretend(callback)

    def transaction(self, callback: Callable[[ConnectionSession], Any], attempts: int = 1) -> Any:
        return self.session().transaction(callback, attempts)

    def begin_transaction(self) -> ConnectionSession:
        return self.session().begin_transaction()

    def use_write_connection_when_reading(self, value: bool = True) -> ConnectionSession:
        return self.session().use_write_connection_when_reading(value)


class MySQLConnection(Connection):
    driver_name = "mysql"
    query_grammar_class = MySQLQueryGrammar
    schema_grammar_class = MySQLSchemaGrammar
    schema_builder_class = MySQLSchemaBuilder

    def is_maria(self) -> bool:
        return self.config.get("driver") == "mariadb"

    def get_default_query_grammar(self) -> QueryGrammar:
        return MySQLQueryGrammar(
            table_prefix=self._table_prefix,
            use_upsert_alias=bool(self.config.get("use_upsert_alias", False)),
        )


class PostgresConnection(Connection):
    driver_name = "postgres"
    query_grammar_class = PostgresQueryGrammar
    schema_grammar_class = PostgresSchemaGrammar
    schema_builder_class = PostgresSchemaBuilder


class SQLiteConnection(Connection):
    driver_name = "sqlite"
    query_grammar_class = SQLiteQueryGrammar
    schema_grammar_class = SQLiteSchemaGrammar
    schema_builder_class = SQLiteSchemaBuilder


class SqlServerConnection(Connection):
    driver_name = "sqlserver"
    query_grammar_class = SqlServerQueryGrammar
    schema_grammar_class = SqlServerSchemaGrammar
    schema_builder_class = SqlServerSchemaBuilder


CONNECTIONS: Dict[str, type] = {
    "generic": Connection,
    "mysql": MySQLConnection,
    "mariadb": MySQLConnection,
    "postgres": PostgresConnection,
    "sqlite": SQLiteConnection,
    "sqlserver": SqlServerConnection,
}
