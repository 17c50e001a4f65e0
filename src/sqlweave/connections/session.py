"""
Connection session: statement execution, dry runs and the transaction state machine.

A session belongs to one logical call chain. It owns the transaction level,
the adapter holding the open transaction and the query log, while the
:class:`~sqlweave.connections.connection.Connection` it wraps owns adapters,
grammars, configuration and listeners.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time as dt_time
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Generator,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

from ..adapters.base import iter_rows, rows_from_cursor
from ..errors import DeadlockError, MultipleColumnsError, QueryError, SqlweaveError, TransactionError
from ..events import (
    ConnectionEvent,
    QueryExecuted,
    StatementPrepared,
    TransactionBeginning,
    TransactionCommitted,
    TransactionCommitting,
    TransactionRolledBack,
)
from ..expression import Expression, TypedBinding, raw
from ..utils import get_logger, time_call
from .detectors import caused_by_concurrency_error, caused_by_lost_connection

if TYPE_CHECKING:
    from ..adapters.base import DatabaseAdapter
    from ..cache import CacheManager
    from ..hooks import HookDispatcher
    from ..query import QueryBuilder, QueryGrammar
    from .connection import Connection

T = TypeVar("T")
RunCallback = Callable[[str, List[Any]], T]


@dataclass
class LoggedQuery:
    sql: str
    bindings: List[Any] = field(default_factory=list)
    time: Optional[float] = None


class ConnectionSession:
    """
    Runs statements against a connection's adapters.

    ``transaction_level()`` is 0 outside a transaction. The driver transaction
    is opened at level 0 -> 1 and committed at 1 -> 0; deeper levels map to
    savepoints named ``trans<level>``.
    """

    def __init__(self, connection: "Connection", *, schema: bool = False) -> None:
        self.connection = connection
        self.schema = schema
        self._transactions = 0
        self._transaction_adapter: Optional["DatabaseAdapter"] = None
        self._pretending = False
        self._logging_queries = False
        self._read_on_write = False
        self._query_log: List[LoggedQuery] = []
        # (level, event) pairs replayed once the outermost transaction commits
        self._after_commit: List[Tuple[int, QueryExecuted]] = []
        self._total_query_duration = 0.0
        self._cache_options: Dict[str, Any] = {}
        self.logger = get_logger("connections.session")

    # ------------------------------------------------------------------ #
    # Builders
    # ------------------------------------------------------------------ #
    def table(self, table: Any, alias: str | None = None) -> "QueryBuilder":
        return self.query().from_(table, alias)

    def query(self) -> "QueryBuilder":
        from ..query import QueryBuilder

        return QueryBuilder(self, self.get_query_grammar())

    def cache(
        self,
        cache: bool | int | Callable[[], int] = True,
        *,
        key: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> "ConnectionSession":
        """
        Set cache options for every select run through this session.

        Options given on a query builder take precedence.
        """

        self._cache_options = {"cache": cache, "key": key, "options": dict(options or {})}
        return self

    # ------------------------------------------------------------------ #
    # Selects
    # ------------------------------------------------------------------ #
    def select_one(
        self, sql: str, bindings: Sequence[Any] = (), use_read_connection: bool = True
    ) -> Optional[Dict[str, Any]]:
        records = self.select(sql, bindings, use_read_connection)
        return records[0] if records else None

    def scalar(self, sql: str, bindings: Sequence[Any] = (), use_read_connection: bool = True) -> Any:
        record = self.select_one(sql, bindings, use_read_connection)
        if record is None:
            return None
        if len(record) > 1:
            raise MultipleColumnsError()
        return next(iter(record.values()), None)

    def select_from_write_connection(self, sql: str, bindings: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        return self.select(sql, bindings, False)

    def select(
        self,
        sql: str,
        bindings: Sequence[Any] = (),
        use_read_connection: bool = True,
        *,
        cache: Mapping[str, Any] | None = None,
    ) -> List[Dict[str, Any]]:
        def callback(sql: str, bindings: List[Any]) -> List[Dict[str, Any]]:
            if self._pretending:
                return []

            manager = self.get_cache_manager()
            entry = None
            if manager is not None:
                options = {**self._cache_options, **(cache or {})}
                entry = manager.get(self.get_name(), sql, bindings, **options)
                if (
                    entry is not None
                    and entry.has_result
                    and not manager.is_expired(self.get_name(), entry.time, entry.duration, entry.options)
                ):
                    return entry.result

            cursor = self._execute(self.get_adapter_for_select(use_read_connection), sql, bindings)
            try:
                rows = rows_from_cursor(cursor)
            finally:
                _close(cursor)

            if manager is not None and entry is not None:
                manager.store(self.get_name(), replace(entry, result=rows))
            return rows

        return self.run(sql, bindings, callback)

    def select_result_sets(
        self, sql: str, bindings: Sequence[Any] = (), use_read_connection: bool = True
    ) -> List[List[Dict[str, Any]]]:
        def callback(sql: str, bindings: List[Any]) -> List[List[Dict[str, Any]]]:
            if self._pretending:
                return []
            cursor = self._execute(self.get_adapter_for_select(use_read_connection), sql, bindings)
            try:
                sets = [rows_from_cursor(cursor)]
                next_set = getattr(cursor, "nextset", None)
                while next_set is not None and next_set():
                    sets.append(rows_from_cursor(cursor))
            finally:
                _close(cursor)
            return sets

        return self.run(sql, bindings, callback)

    def select_column(
        self, column: int, sql: str, bindings: Sequence[Any] = (), use_read_connection: bool = True
    ) -> List[Any]:
        def callback(sql: str, bindings: List[Any]) -> List[Any]:
            if self._pretending:
                return []
            cursor = self._execute(self.get_adapter_for_select(use_read_connection), sql, bindings)
            try:
                return [row[column] for row in cursor.fetchall()] if cursor.description else []
            finally:
                _close(cursor)

        return self.run(sql, bindings, callback)

    def cursor(
        self, sql: str, bindings: Sequence[Any] = (), use_read_connection: bool = True
    ) -> Iterator[Dict[str, Any]]:
        """
        Execute ``sql`` and return a lazy, single-pass iterator over its rows.
        """

        def callback(sql: str, bindings: List[Any]) -> Any:
            if self._pretending:
                return None
            return self._execute(self.get_adapter_for_select(use_read_connection), sql, bindings)

        cursor = self.run(sql, bindings, callback)
        if cursor is None:
            return iter(())
        return _consume(cursor)

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def insert(self, sql: str, bindings: Sequence[Any] = ()) -> bool:
        return self.statement(sql, bindings)

    def insert_get_id(self, sql: str, bindings: Sequence[Any] = (), sequence: str | None = None) -> Any:
        def callback(sql: str, bindings: List[Any]) -> Any:
            if self._pretending:
                return None
            adapter = self.get_adapter()
            cursor = self._execute(adapter, sql, bindings)
            try:
                return adapter.last_insert_id(cursor, sequence)
            finally:
                _close(cursor)

        return self.run(sql, bindings, callback)

    def update(self, sql: str, bindings: Sequence[Any] = ()) -> int:
        return self.affecting_statement(sql, bindings)

    def delete(self, sql: str, bindings: Sequence[Any] = ()) -> int:
        return self.affecting_statement(sql, bindings)

    def statement(self, sql: str, bindings: Sequence[Any] = ()) -> bool:
        def callback(sql: str, bindings: List[Any]) -> bool:
            if self._pretending:
                return True
            _close(self._execute(self.get_adapter(), sql, bindings))
            return True

        return self.run(sql, bindings, callback)

    def affecting_statement(self, sql: str, bindings: Sequence[Any] = ()) -> int:
        def callback(sql: str, bindings: List[Any]) -> int:
            if self._pretending:
                return 0
            cursor = self._execute(self.get_adapter(), sql, bindings)
            try:
                return max(cursor.rowcount, 0)
            finally:
                _close(cursor)

        return self.run(sql, bindings, callback)

    def unprepared(self, sql: str) -> bool:
        def callback(sql: str, bindings: List[Any]) -> bool:
            if self._pretending:
                return True
            _close(self.get_adapter().execute_unprepared(sql))
            return True

        return self.run(sql, [], callback)

    def _execute(self, adapter: "DatabaseAdapter", sql: str, bindings: List[Any]) -> Any:
        cursor = adapter.execute(sql, bindings)
        self._fire(StatementPrepared(self.get_name(), statement=cursor))
        return cursor

    # ------------------------------------------------------------------ #
    # Dry runs and the query log
    # ------------------------------------------------------------------ #
    def pretend(self, callback: Callable[["ConnectionSession"], Any]) -> List[LoggedQuery]:
        """
        Run ``callback`` without touching the database and return the queries it issued.
        """

        def run_pretending() -> List[LoggedQuery]:
            self._pretending = True
            try:
                callback(self)
            finally:
                self._pretending = False
            return list(self._query_log)

        return self._with_fresh_query_log(run_pretending)

    def without_pretending(self, callback: Callable[[], T]) -> T:
        if not self._pretending:
            return callback()
        self._pretending = False
        self.disable_query_log()
        try:
            return callback()
        finally:
            self._pretending = True
            self.enable_query_log()

    def pretending(self) -> bool:
        return self._pretending

    def _with_fresh_query_log(self, callback: Callable[[], T]) -> T:
        logging_queries = self._logging_queries
        self.enable_query_log()
        self._query_log = []
        try:
            return callback()
        finally:
            self._logging_queries = logging_queries

    def enable_query_log(self) -> None:
        self._logging_queries = True

    def disable_query_log(self) -> None:
        self._logging_queries = False

    def logging(self) -> bool:
        return self._logging_queries

    def get_query_log(self) -> List[LoggedQuery]:
        return list(self._query_log)

    def flush_query_log(self) -> None:
        self._query_log = []

    def total_query_duration(self) -> float:
        return self._total_query_duration

    # ------------------------------------------------------------------ #
    # Execution core
    # ------------------------------------------------------------------ #
    def run(self, sql: str, bindings: Sequence[Any], callback: RunCallback[T]) -> T:
        """
        Execute ``callback`` for ``sql``, wrapping driver failures in :class:`QueryError`.

        A lost connection is retried once, and only outside a transaction.
        """

        for before in self.connection.get_before_executing():
            before(sql, list(bindings), self)

        with time_call(
            f"{self.get_name()}.run",
            self.logger,
            sql=sql,
            threshold_ms=self.connection.get_slow_query_ms(),
        ) as timer:
            try:
                result = self._run_query_callback(sql, bindings, callback)
            except QueryError as error:
                result = self._handle_query_error(error, sql, bindings, callback)

        self.log_query(sql, bindings, round(timer.elapsed_ms, 2))
        return result

    def _run_query_callback(self, sql: str, bindings: Sequence[Any], callback: RunCallback[T]) -> T:
        prepared = self.prepare_bindings(bindings)
        try:
            return callback(sql, prepared)
        except SqlweaveError:
            raise
        except Exception as exc:
            raise QueryError(
                self.get_name(),
                sql,
                prepared,
                exc,
                raw_sql=self.get_query_grammar().substitute_bindings_into_raw_sql(sql, prepared),
            ) from exc

    def _handle_query_error(
        self, error: QueryError, sql: str, bindings: Sequence[Any], callback: RunCallback[T]
    ) -> T:
        if self._transactions >= 1 or not caused_by_lost_connection(error.previous):
            raise error
        self.logger.warning("Lost connection on %s, reconnecting and retrying once", self.get_name())
        self.connection.reconnect()
        return self._run_query_callback(sql, bindings, callback)

    def log_query(self, sql: str, bindings: Sequence[Any], time: float) -> None:
        self._total_query_duration += time
        if self._transactions > 0:
            self._after_commit.append(
                (
                    self._transactions,
                    QueryExecuted(self.get_name(), sql=sql, bindings=list(bindings), time=time, in_transaction=False),
                )
            )
        self._fire(
            QueryExecuted(
                self.get_name(),
                sql=sql,
                bindings=list(bindings),
                time=time,
                in_transaction=self._transactions > 0,
            )
        )
        if self._logging_queries:
            prepared = self.prepare_bindings(bindings)
            self._query_log.append(
                LoggedQuery(
                    self.get_query_grammar().substitute_bindings_into_raw_sql(sql, prepared),
                    list(bindings),
                    time,
                )
            )

    def prepare_bindings(self, bindings: Sequence[Any]) -> List[Any]:
        """
        Normalise bindings for the driver: dates use the grammar date format,
        typed bindings unwrap to their value and raw expressions are dropped.
        """

        grammar = self.get_query_grammar()
        prepared: List[Any] = []
        for value in bindings:
            if isinstance(value, Expression):
                continue
            if isinstance(value, TypedBinding):
                value = value.value
            if isinstance(value, datetime):
                value = value.strftime(grammar.get_date_format())
            elif isinstance(value, (date, dt_time)):
                value = value.isoformat()
            prepared.append(value)
        return prepared

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def transaction(self, callback: Callable[["ConnectionSession"], T], attempts: int = 1) -> Optional[T]:
        """
        Run ``callback`` inside a transaction, retrying up to ``attempts`` times
        on concurrency errors.

        A concurrency error inside a nested transaction raises
        :class:`DeadlockError` so the outermost transaction can retry.
        """

        for attempt in range(1, attempts + 1):
            self.begin_transaction()

            try:
                result = callback(self)
            except Exception as error:
                self._handle_transaction_error(error, attempt, attempts)
                continue

            try:
                self._perform_commit()
            except Exception as error:
                self._handle_commit_transaction_error(error, attempt, attempts)
                continue

            return result
        return None

    @contextmanager
    def atomic(self) -> Generator["ConnectionSession", None, None]:
        self.begin_transaction()
        try:
            yield self
        except Exception:
            self.roll_back()
            raise
        else:
            self.commit()

    def _handle_transaction_error(self, error: Exception, attempt: int, max_attempts: int) -> None:
        # the driver already rolled back the whole transaction on a deadlock
        if caused_by_concurrency_error(error) and self._transactions > 1:
            self._transactions -= 1
            raise DeadlockError(error) from error

        self.roll_back()

        if caused_by_concurrency_error(error) and attempt < max_attempts:
            self.logger.warning(
                "Concurrency error on %s, retrying transaction (attempt %d of %d)",
                self.get_name(),
                attempt + 1,
                max_attempts,
            )
            return
        raise error

    def _handle_commit_transaction_error(self, error: Exception, attempt: int, max_attempts: int) -> None:
        self._transactions = max(0, self._transactions - 1)

        if caused_by_concurrency_error(error) and attempt < max_attempts:
            return

        if caused_by_lost_connection(error):
            self._reset_transaction()
        raise error

    def begin_transaction(self) -> "ConnectionSession":
        self._create_transaction()
        self._transactions += 1
        self._fire(TransactionBeginning(self.get_name()))
        return self

    def _create_transaction(self) -> None:
        if self._transactions == 0:
            try:
                self._begin_on(self._get_ensured_adapter())
            except Exception as error:
                self._handle_begin_transaction_error(error)
        elif self.get_query_grammar().supports_savepoints():
            self._create_savepoint()

    def _begin_on(self, adapter: "DatabaseAdapter") -> None:
        adapter.begin()
        self._transaction_adapter = adapter

    def _create_savepoint(self) -> None:
        name = f"trans{self._transactions + 1}"
        self.get_ensured_transaction().execute_unprepared(self.get_query_grammar().compile_savepoint(name))

    def _handle_begin_transaction_error(self, error: Exception) -> None:
        if not caused_by_lost_connection(error):
            raise error
        self.logger.warning("Lost connection on %s while beginning a transaction, reconnecting", self.get_name())
        self.connection.reconnect()
        self._begin_on(self._get_ensured_adapter())

    def commit(self) -> None:
        self._perform_commit()

    def _perform_commit(self) -> None:
        if self._transactions == 1:
            self._fire(TransactionCommitting(self.get_name()))
            try:
                self.get_ensured_transaction().commit()
            except Exception:
                self._reset_transaction()
                raise
            self._transactions = 0
            self._transaction_adapter = None
            self._fire_after_commit_events()
            self._fire(TransactionCommitted(self.get_name()))
            return

        self._transactions = max(0, self._transactions - 1)
        # a released savepoint belongs to its parent from now on
        self._after_commit = [(min(level, self._transactions), event) for level, event in self._after_commit]

    def _fire_after_commit_events(self) -> None:
        pending, self._after_commit = self._after_commit, []
        for _, event in pending:
            self._fire(event)

    def _filter_after_commit(self) -> None:
        self._after_commit = [(level, event) for level, event in self._after_commit if level <= self._transactions]

    def roll_back(self, to_level: int | None = None) -> None:
        """
        Roll back to ``to_level`` (default: one level up).

        Level 0 rolls back the driver transaction; any other level rolls back
        to its savepoint. Invalid levels are ignored.
        """

        if to_level is None:
            to_level = self._transactions - 1
        if to_level < 0 or to_level >= self._transactions:
            return

        try:
            self._perform_roll_back(to_level)
        except Exception as error:
            self._handle_roll_back_error(error)

        self._transactions = to_level
        if to_level == 0:
            self._transaction_adapter = None
        self._filter_after_commit()
        self._fire(TransactionRolledBack(self.get_name()))

    def _perform_roll_back(self, to_level: int) -> None:
        if to_level == 0:
            self.get_ensured_transaction().rollback()
        elif self.get_query_grammar().supports_savepoints():
            self.get_ensured_transaction().execute_unprepared(
                self.get_query_grammar().compile_savepoint_roll_back(f"trans{to_level + 1}")
            )

    def _handle_roll_back_error(self, error: Exception) -> None:
        if caused_by_lost_connection(error):
            if self._transactions > 1:
                try:
                    self.get_ensured_transaction().rollback()
                except Exception as exc:
                    self.logger.warning("Rollback after lost connection failed on %s: %s", self.get_name(), exc)
            self._reset_transaction()
        raise error

    def _reset_transaction(self) -> None:
        self._transactions = 0
        self._transaction_adapter = None
        self._filter_after_commit()

    def transaction_level(self) -> int:
        return self._transactions

    # ------------------------------------------------------------------ #
    # Adapter routing
    # ------------------------------------------------------------------ #
    def use_write_connection_when_reading(self, value: bool = True) -> "ConnectionSession":
        self._read_on_write = value
        return self

    def get_ensured_transaction(self) -> "DatabaseAdapter":
        if self._transaction_adapter is None:
            raise TransactionError("You should be inside a Transaction.")
        return self._transaction_adapter

    def _get_ensured_adapter(self) -> "DatabaseAdapter":
        return self.get_schema_adapter() if self.schema else self.connection.get_adapter()

    def get_schema_adapter(self) -> "DatabaseAdapter":
        return self.connection.get_schema_adapter()

    def get_adapter(self) -> "DatabaseAdapter":
        return self.get_ensured_transaction() if self._transactions > 0 else self._get_ensured_adapter()

    def get_read_adapter(self) -> "DatabaseAdapter":
        if self._transactions > 0 or self._read_on_write:
            return self.get_adapter()
        return self.get_schema_adapter() if self.schema else self.connection.get_read_adapter()

    def get_adapter_for_select(self, use_read_connection: bool = True) -> "DatabaseAdapter":
        return self.get_read_adapter() if use_read_connection else self.get_adapter()

    # ------------------------------------------------------------------ #
    # Connection accessors
    # ------------------------------------------------------------------ #
    def get_name(self) -> str:
        return self.connection.get_name()

    def get_config(self, option: str | None = None, default: Any = None) -> Any:
        return self.connection.get_config(option, default)

    def is_schema(self) -> bool:
        return self.schema

    def get_query_grammar(self) -> "QueryGrammar":
        return self.connection.get_query_grammar()

    def get_schema_grammar(self) -> Any:
        return self.connection.get_schema_grammar()

    def get_event_dispatcher(self) -> Optional["HookDispatcher"]:
        return self.connection.get_event_dispatcher()

    def get_cache_manager(self) -> Optional["CacheManager"]:
        return self.connection.get_cache_manager()

    def get_database_name(self) -> str:
        return self.connection.get_database_name()

    def get_table_prefix(self) -> str:
        return self.connection.get_table_prefix()

    def raw(self, value: Any) -> Expression:
        return raw(value)

    def _fire(self, event: ConnectionEvent) -> None:
        dispatcher = self.get_event_dispatcher()
        if dispatcher is not None:
            dispatcher.fire(event)


def _close(cursor: Any) -> None:
    close = getattr(cursor, "close", None)
    if close is not None:
        close()


def _consume(cursor: Any) -> Iterator[Dict[str, Any]]:
    try:
        yield from iter_rows(cursor)
    finally:
        _close(cursor)
