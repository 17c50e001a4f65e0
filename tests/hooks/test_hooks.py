import pytest

from sqlweave.adapters import ConnectionConfig, SQLiteAdapter
from sqlweave.connections import SQLiteConnection
from sqlweave.events import (
    QueryExecuted,
    StatementPrepared,
    TransactionBeginning,
    TransactionCommitted,
    TransactionCommitting,
    TransactionRolledBack,
)
from sqlweave.hooks import HookDispatcher, hooks


@pytest.fixture(autouse=True)
def clear_hooks():
    hooks.clear()
    yield
    hooks.clear()


def make_connection(tmp_path, dispatcher=None):
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig(url=f"sqlite:///{tmp_path / 'hooks.db'}"))
    connection = SQLiteConnection("default", {}, adapter=adapter, dispatcher=dispatcher)
    connection.statement('CREATE TABLE "sample" (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL)')
    return connection


def test_event_names_are_snake_case():
    assert QueryExecuted.name == "query_executed"
    assert TransactionRolledBack.name == "transaction_rolled_back"
    assert StatementPrepared("default").name == "statement_prepared"


def test_register_by_class_or_name():
    dispatcher = HookDispatcher()
    seen = []
    dispatcher.register(QueryExecuted, lambda event: seen.append(("class", event.sql)))
    dispatcher.register("query_executed", lambda event: seen.append(("name", event.sql)))

    dispatcher.fire(QueryExecuted("default", sql="select 1"))
    assert seen == [("class", "select 1"), ("name", "select 1")]


def test_unregister_removes_handler():
    dispatcher = HookDispatcher()
    seen = []

    def handler(event):
        seen.append(event)

    dispatcher.register(TransactionBeginning, handler)
    assert dispatcher.has_listeners(TransactionBeginning) is True
    dispatcher.unregister(TransactionBeginning, handler)
    assert dispatcher.has_listeners("transaction_beginning") is False
    dispatcher.fire(TransactionBeginning("default"))
    assert seen == []


def test_fire_without_listeners_is_a_no_op():
    HookDispatcher().fire(TransactionCommitted("default"))


def test_handler_errors_propagate():
    dispatcher = HookDispatcher()

    def broken(event):
        raise RuntimeError("listener failed")

    dispatcher.register(QueryExecuted, broken)
    with pytest.raises(RuntimeError, match="listener failed"):
        dispatcher.fire(QueryExecuted("default"))


def test_connections_default_to_global_dispatcher(tmp_path):
    names = []
    hooks.register(QueryExecuted, lambda event: names.append(event.connection_name))
    connection = make_connection(tmp_path)
    connection.select('select * from "sample"')
    assert names == ["default", "default"]
    connection.disconnect()


def test_transaction_lifecycle_fires_in_order(tmp_path):
    dispatcher = HookDispatcher()
    events = []
    for event in (TransactionBeginning, TransactionCommitting, TransactionCommitted, StatementPrepared):
        dispatcher.register(event, lambda e: events.append(e.name))

    connection = make_connection(tmp_path, dispatcher)
    events.clear()
    connection.transaction(lambda session: session.insert('insert into "sample" ("name") values (?)', ["Alice"]))

    assert events == [
        "transaction_beginning",
        "statement_prepared",
        "transaction_committing",
        "transaction_committed",
    ]
    connection.disconnect()


def test_statement_prepared_carries_cursor(tmp_path):
    dispatcher = HookDispatcher()
    statements = []
    dispatcher.register(StatementPrepared, lambda event: statements.append(event.statement))
    connection = make_connection(tmp_path, dispatcher)
    connection.select('select * from "sample"')
    assert statements[-1].description is not None
    connection.disconnect()
