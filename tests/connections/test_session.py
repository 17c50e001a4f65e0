import sqlite3

import pytest

from sqlweave.adapters import ConnectionConfig, SQLiteAdapter
from sqlweave.connections import Connection, SQLiteConnection
from sqlweave.errors import MultipleColumnsError, QueryError, SqlweaveError
from sqlweave.events import QueryExecuted
from sqlweave.hooks import HookDispatcher


def make_adapter(path):
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig(url=f"sqlite:///{path}"))
    return adapter


@pytest.fixture
def connection(tmp_path):
    conn = SQLiteConnection("default", {}, adapter=make_adapter(tmp_path / "session.db"), dispatcher=HookDispatcher())
    conn.statement('CREATE TABLE "users" (id INTEGER PRIMARY KEY, email TEXT, name TEXT)')
    conn.insert('insert into "users" ("email", "name") values (?, ?), (?, ?)', ["a@x.io", "Ada", "b@x.io", "Bob"])
    yield conn
    conn.disconnect()


def test_select_returns_dict_rows(connection):
    rows = connection.select('select "name" from "users" order by "id"')
    assert rows == [{"name": "Ada"}, {"name": "Bob"}]


def test_select_one_and_scalar(connection):
    assert connection.select_one('select * from "users" where "id" = ?', [2])["email"] == "b@x.io"
    assert connection.select_one('select * from "users" where "id" = ?', [99]) is None
    assert connection.scalar('select count(*) from "users"') == 2


def test_scalar_rejects_multiple_columns(connection):
    with pytest.raises(MultipleColumnsError):
        connection.scalar('select "id", "name" from "users"')


def test_select_column_by_index(connection):
    assert connection.select_column(1, 'select "id", "name" from "users" order by "id"') == ["Ada", "Bob"]


def test_affecting_statement_returns_rowcount(connection):
    assert connection.update('update "users" set "name" = ?', ["X"]) == 2
    assert connection.delete('delete from "users" where "id" = ?', [1]) == 1


def test_unprepared_runs_raw_sql(connection):
    assert connection.unprepared('delete from "users"') is True
    assert connection.scalar('select count(*) from "users"') == 0


def test_driver_error_wrapped_with_connection_and_sql(connection):
    with pytest.raises(QueryError) as excinfo:
        connection.select('select * from "missing" where "id" = ?', [5])
    error = excinfo.value
    assert error.get_sql() == 'select * from "missing" where "id" = ?'
    assert error.get_bindings() == [5]
    assert isinstance(error.previous, sqlite3.OperationalError)
    assert "(Connection: default, SQL: select * from \"missing\" where \"id\" = '5')" in str(error)


def test_pretend_collects_queries_without_executing(connection):
    def run(session):
        session.table("users").where("email", "a@x.io").delete()
        session.table("users").insert({"email": "c@x.io", "name": "Cy"})

    queries = connection.pretend(run)
    assert [query.sql for query in queries] == [
        "delete from \"users\" where \"email\" = 'a@x.io'",
        "insert into \"users\" (\"email\", \"name\") values ('c@x.io', 'Cy')",
    ]
    assert queries[0].bindings == ["a@x.io"]
    assert connection.scalar('select count(*) from "users"') == 2


def test_query_log_records_when_enabled(connection):
    session = connection.session()
    session.select('select * from "users"')
    assert session.get_query_log() == []

    session.enable_query_log()
    session.select('select * from "users" where "id" = ?', [1])
    log = session.get_query_log()
    assert len(log) == 1
    assert log[0].sql == "select * from \"users\" where \"id\" = '1'"
    assert log[0].time is not None

    session.flush_query_log()
    assert session.get_query_log() == []


def test_listen_receives_query_executed(connection):
    events = []
    connection.listen(events.append)
    session = connection.session()
    session.select('select * from "users" where "id" = ?', [1])
    session.transaction(lambda s: s.statement('update "users" set "name" = ? where "id" = ?', ["Z", 1]))

    executed = [event for event in events if isinstance(event, QueryExecuted)]
    assert executed[0].sql == 'select * from "users" where "id" = ?'
    assert executed[0].bindings == [1]
    assert executed[0].connection_name == "default"
    assert executed[0].in_transaction is False
    assert executed[1].in_transaction is True


def test_before_executing_callbacks_see_statement(connection):
    seen = []
    connection.before_executing(lambda sql, bindings, session: seen.append((sql, bindings)))
    connection.select('select * from "users" where "id" = ?', [2])
    assert seen == [('select * from "users" where "id" = ?', [2])]


def test_lost_connection_is_retried_once(tmp_path):
    path = tmp_path / "retry.db"
    made = []

    def resolver():
        adapter = make_adapter(path)
        made.append(adapter)
        return adapter

    connection = SQLiteConnection("default", {}, adapter_resolver=resolver, dispatcher=HookDispatcher())
    connection.statement("create table t (v integer)")

    session = connection.session()
    attempts = []

    def lost_once(sql, bindings):
        attempts.append(1)
        if len(attempts) == 1:
            raise sqlite3.OperationalError("server has gone away")
        return "recovered"

    assert session.run("select * from t", [], lost_once) == "recovered"
    assert len(made) == 2
    connection.disconnect()


def test_lost_connection_inside_transaction_is_not_retried(tmp_path):
    connection = SQLiteConnection(
        "default", {}, adapter_resolver=lambda: make_adapter(tmp_path / "tx.db"), dispatcher=HookDispatcher()
    )
    session = connection.session()
    session.begin_transaction()

    def lost(sql, bindings):
        raise sqlite3.OperationalError("server has gone away")

    with pytest.raises(QueryError):
        session.run("select 1", [], lost)
    session.roll_back()
    connection.disconnect()


def test_reconnect_requires_resolver():
    connection = Connection("default", {}, adapter=None, dispatcher=HookDispatcher())
    with pytest.raises(SqlweaveError):
        connection.reconnect()


def test_missing_adapter_raises():
    connection = Connection("default", {}, dispatcher=HookDispatcher())
    with pytest.raises(SqlweaveError):
        connection.select("select 1")


def test_get_config_reads_dotted_paths():
    connection = Connection("default", {"options": {"timeout": 5}, "prefix": "app_"}, dispatcher=HookDispatcher())
    assert connection.get_config("options.timeout") == 5
    assert connection.get_config("options.missing", "fallback") == "fallback"
    assert connection.get_table_prefix() == "app_"
    assert connection.query().from_("users").to_sql() == 'select * from "app_users"'


def test_pretend_returns_placeholder_results(connection):
    results = {}

    def run(session):
        results["select"] = session.select('select * from "users"')
        results["statement"] = session.statement('delete from "users"')
        results["affecting"] = session.affecting_statement('delete from "users"')
        results["id"] = session.insert_get_id('insert into "users" ("name") values (?)', ["Cy"])

    connection.pretend(run)
    assert results == {"select": [], "statement": True, "affecting": 0, "id": None}
    assert connection.scalar('select count(*) from "users"') == 2
