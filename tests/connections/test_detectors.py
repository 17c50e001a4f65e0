from sqlweave.connections import caused_by_concurrency_error, caused_by_lost_connection
from sqlweave.errors import DeadlockError, QueryError


def test_lost_connection_messages_detected():
    assert caused_by_lost_connection(Exception("MySQL server has gone away"))
    assert caused_by_lost_connection(Exception("server closed the connection unexpectedly"))
    assert not caused_by_lost_connection(Exception("syntax error near select"))


def test_matching_is_case_sensitive():
    assert caused_by_concurrency_error(Exception("deadlock detected"))
    assert not caused_by_concurrency_error(Exception("DEADLOCK DETECTED"))


def test_concurrency_messages_detected():
    assert caused_by_concurrency_error(Exception("database is locked"))
    assert caused_by_concurrency_error(Exception("Lock wait timeout exceeded; try restarting transaction"))
    assert not caused_by_concurrency_error(Exception("server has gone away"))


def test_wrapped_errors_are_inspected():
    driver_error = Exception("deadlock detected")
    wrapped = QueryError("default", "select 1", [], driver_error)
    assert caused_by_concurrency_error(wrapped)
    assert caused_by_concurrency_error(DeadlockError(driver_error))


def test_chained_cause_is_inspected():
    try:
        try:
            raise OSError("Communication link failure")
        except OSError as exc:
            raise RuntimeError("query failed") from exc
    except RuntimeError as error:
        assert caused_by_lost_connection(error)


class BatchError(Exception):
    def __init__(self, message, exceptions):
        super().__init__(message)
        self.exceptions = exceptions


def test_grouped_errors_are_inspected():
    batch = BatchError("batch failed", [ValueError("fine"), RuntimeError("database is locked")])
    assert caused_by_concurrency_error(batch)
