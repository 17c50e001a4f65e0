import pytest

from sqlweave.connections import Connection, SqlServerConnection
from sqlweave.errors import DeadlockError, TransactionError
from sqlweave.events import TransactionBeginning, TransactionCommitted, TransactionRolledBack
from sqlweave.hooks import HookDispatcher


class FakeCursor:
    description = None
    rowcount = 1
    lastrowid = None

    def fetchall(self):
        return []

    def close(self):
        pass


class RecordingAdapter:
    def __init__(self, fail_commit=None):
        self.begins = 0
        self.commits = 0
        self.rollbacks = 0
        self.statements = []
        self.unprepared = []
        self.fail_commit = fail_commit

    def execute(self, sql, params=None):
        self.statements.append((sql, list(params or ())))
        return FakeCursor()

    def execute_unprepared(self, sql):
        self.unprepared.append(sql)
        return FakeCursor()

    def begin(self):
        self.begins += 1

    def commit(self):
        if self.fail_commit is not None:
            error, self.fail_commit = self.fail_commit, None
            raise error
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def last_insert_id(self, cursor, sequence=None):
        return 1

    def close(self):
        pass


@pytest.fixture
def adapter():
    return RecordingAdapter()


@pytest.fixture
def connection(adapter):
    return Connection("default", {}, adapter=adapter, dispatcher=HookDispatcher())


def test_transaction_commits_and_returns_result(connection, adapter):
    result = connection.transaction(lambda session: session.insert("insert into t values (?)", [1]) and "done")
    assert result == "done"
    assert adapter.begins == 1
    assert adapter.commits == 1
    assert adapter.rollbacks == 0
    assert adapter.statements == [("insert into t values (?)", [1])]


def test_transaction_rolls_back_and_reraises(connection, adapter):
    def failing(session):
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        connection.transaction(failing)
    assert adapter.begins == 1
    assert adapter.rollbacks == 1
    assert adapter.commits == 0


def test_nested_transaction_uses_savepoints(connection, adapter):
    levels = []

    def inner(session):
        levels.append(session.transaction_level())

    def outer(session):
        levels.append(session.transaction_level())
        session.transaction(inner)
        levels.append(session.transaction_level())

    connection.transaction(outer)
    assert levels == [1, 2, 1]
    assert adapter.begins == 1
    assert adapter.commits == 1
    assert adapter.unprepared == ["SAVEPOINT trans2"]


def test_nested_failure_rolls_back_to_savepoint(connection, adapter):
    def inner(session):
        raise ValueError("inner")

    def outer(session):
        with pytest.raises(ValueError):
            session.transaction(inner)
        assert session.transaction_level() == 1

    connection.transaction(outer)
    assert adapter.unprepared == ["SAVEPOINT trans2", "ROLLBACK TO SAVEPOINT trans2"]
    assert adapter.commits == 1
    assert adapter.rollbacks == 0


def test_sqlserver_savepoint_statements(adapter):
    connection = SqlServerConnection("default", {}, adapter=adapter, dispatcher=HookDispatcher())
    session = connection.session()
    session.begin_transaction()
    session.begin_transaction()
    session.roll_back()
    assert adapter.unprepared == ["SAVE TRANSACTION trans2", "ROLLBACK TRANSACTION trans2"]


def test_concurrency_error_in_nested_transaction_raises_deadlock(connection, adapter):
    def inner(session):
        raise Exception("deadlock detected")

    with pytest.raises(DeadlockError) as excinfo:
        connection.transaction(lambda session: session.transaction(inner), attempts=1)
    assert str(excinfo.value) == "deadlock detected"
    assert adapter.begins == 1
    assert adapter.rollbacks == 1


def test_concurrency_error_retries_outer_transaction(connection, adapter):
    calls = []

    def flaky(session):
        calls.append(session.transaction_level())
        raise Exception("deadlock detected")

    with pytest.raises(Exception, match="deadlock detected"):
        connection.transaction(flaky, attempts=3)
    assert calls == [1, 1, 1]
    assert adapter.begins == 3
    assert adapter.rollbacks == 3


def test_retry_succeeds_after_deadlock(connection, adapter):
    calls = []

    def flaky(session):
        calls.append(1)
        if len(calls) < 2:
            raise Exception("Deadlock found when trying to get lock")
        return "ok"

    assert connection.transaction(flaky, attempts=3) == "ok"
    assert adapter.begins == 2
    assert adapter.rollbacks == 1
    assert adapter.commits == 1


def test_non_concurrency_error_is_not_retried(connection, adapter):
    calls = []

    def failing(session):
        calls.append(1)
        raise RuntimeError("constraint failed")

    with pytest.raises(RuntimeError):
        connection.transaction(failing, attempts=5)
    assert len(calls) == 1


def test_commit_concurrency_error_retries():
    adapter = RecordingAdapter(fail_commit=Exception("database is locked"))
    connection = Connection("default", {}, adapter=adapter, dispatcher=HookDispatcher())
    assert connection.transaction(lambda session: 42, attempts=2) == 42
    assert adapter.begins == 2
    assert adapter.commits == 1


def test_atomic_context_manager(connection, adapter):
    session = connection.session()
    with session.atomic():
        session.statement("update t set a = 1")
    assert adapter.commits == 1

    with pytest.raises(KeyError):
        with session.atomic():
            raise KeyError("x")
    assert adapter.rollbacks == 1
    assert session.transaction_level() == 0


def test_commit_without_open_driver_transaction_raises(connection):
    session = connection.session()
    session._transactions = 1
    with pytest.raises(TransactionError):
        session.commit()


def test_roll_back_ignores_invalid_levels(connection, adapter):
    session = connection.session()
    session.roll_back()
    session.begin_transaction()
    session.roll_back(5)
    assert session.transaction_level() == 1
    session.roll_back(0)
    assert session.transaction_level() == 0
    assert adapter.rollbacks == 1


def test_transaction_events_fire_in_order(adapter):
    dispatcher = HookDispatcher()
    seen = []
    for event in (TransactionBeginning, TransactionCommitted, TransactionRolledBack):
        dispatcher.register(event, lambda e: seen.append(e.name))
    connection = Connection("default", {}, adapter=adapter, dispatcher=dispatcher)

    def failing(session):
        raise ValueError("x")

    connection.transaction(lambda session: None)
    with pytest.raises(ValueError):
        connection.transaction(failing)

    assert seen == [
        "transaction_beginning",
        "transaction_committed",
        "transaction_beginning",
        "transaction_rolled_back",
    ]


def test_writes_inside_transaction_use_transaction_adapter(adapter):
    read_adapter = RecordingAdapter()
    connection = Connection("default", {}, adapter=adapter, read_adapter=read_adapter, dispatcher=HookDispatcher())

    connection.select("select 1")
    assert read_adapter.statements == [("select 1", [])]

    connection.transaction(lambda session: session.select("select 2"))
    assert adapter.statements == [("select 2", [])]


class BrokenRollbackAdapter(RecordingAdapter):
    def __init__(self, error):
        super().__init__()
        self.error = error

    def execute_unprepared(self, sql):
        if sql.startswith("ROLLBACK"):
            raise self.error
        return super().execute_unprepared(sql)

    def rollback(self):
        self.rollbacks += 1
        raise self.error


def test_lost_connection_during_roll_back_resets_level():
    adapter = BrokenRollbackAdapter(Exception("server has gone away"))
    session = Connection("default", {}, adapter=adapter, dispatcher=HookDispatcher()).session()
    session.begin_transaction()
    session.begin_transaction()

    with pytest.raises(Exception, match="server has gone away"):
        session.roll_back()
    assert session.transaction_level() == 0
    assert adapter.rollbacks == 1
    with pytest.raises(TransactionError):
        session.get_ensured_transaction()


def test_other_roll_back_error_keeps_level():
    adapter = BrokenRollbackAdapter(Exception("permission denied"))
    session = Connection("default", {}, adapter=adapter, dispatcher=HookDispatcher()).session()
    session.begin_transaction()

    with pytest.raises(Exception, match="permission denied"):
        session.roll_back()
    assert session.transaction_level() == 1
    assert session.get_ensured_transaction() is adapter


def test_roll_back_to_explicit_levels(connection, adapter):
    session = connection.session()
    for _ in range(6):
        session.begin_transaction()
    assert session.transaction_level() == 6

    session.roll_back(3)
    assert session.transaction_level() == 3
    assert adapter.unprepared[-1] == "ROLLBACK TO SAVEPOINT trans4"

    session.roll_back(0)
    assert session.transaction_level() == 0
    assert adapter.rollbacks == 1


def executed(events):
    return [(event.sql, event.in_transaction) for event in events]


def test_query_events_replay_after_commit(connection):
    events = []
    connection.listen(events.append)
    session = connection.session()

    session.begin_transaction()
    session.statement("update t set a = 1")
    assert executed(events) == [("update t set a = 1", True)]

    session.commit()
    assert executed(events) == [("update t set a = 1", True), ("update t set a = 1", False)]


def test_rolled_back_savepoint_drops_its_query_events(connection):
    events = []
    connection.listen(events.append)
    session = connection.session()

    session.begin_transaction()
    session.statement("update t set a = 1")
    session.begin_transaction()
    session.statement("update t set a = 2")
    session.roll_back()
    session.commit()

    assert [sql for sql, in_transaction in executed(events) if not in_transaction] == ["update t set a = 1"]


def test_rolled_back_transaction_never_replays_events(connection):
    events = []
    connection.listen(events.append)

    with pytest.raises(ValueError):
        connection.transaction(lambda session: session.statement("update t set a = 1") and int("x"))
    connection.transaction(lambda session: None)

    assert executed(events) == [("update t set a = 1", True)]


def test_released_savepoint_events_follow_parent(connection):
    events = []
    connection.listen(events.append)
    session = connection.session()

    session.begin_transaction()
    session.begin_transaction()
    session.statement("update t set a = 2")
    session.commit()
    session.begin_transaction()
    session.roll_back()
    session.commit()

    assert executed(events)[-1] == ("update t set a = 2", False)
