import logging

from sqlweave.utils.logging import (
    CorrelationIdFilter,
    configure_logging,
    get_correlation_id,
    get_logger,
    set_correlation_id,
    time_call,
)


def test_correlation_id_round_trip():
    token = set_correlation_id("test-token")
    assert token == "test-token"
    assert get_correlation_id() == "test-token"


def test_correlation_filter_stamps_records():
    set_correlation_id("stamped")
    record = logging.LogRecord("sqlweave.tests", logging.INFO, __file__, 1, "msg", None, None)
    assert CorrelationIdFilter().filter(record) is True
    assert record.correlation_id == "stamped"


def test_get_logger_namespaces_under_package():
    assert get_logger("tests.logging").name == "sqlweave.tests.logging"


def test_configure_logging_is_idempotent():
    configure_logging()
    handlers = list(logging.getLogger("sqlweave").handlers)
    configure_logging(logging.DEBUG)
    assert logging.getLogger("sqlweave").handlers == handlers


def test_time_call_logs_duration(caplog):
    logger = get_logger("tests.logging")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    with time_call("unit-test", logger, threshold_ms=0):
        pass
    messages = [record.message for record in caplog.records if record.name == logger.name]
    assert any("unit-test took" in message for message in messages)


def test_time_call_below_threshold_logs_debug(caplog):
    logger = get_logger("tests.logging")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    with time_call("fast", logger, sql="select 1", params=[1], threshold_ms=60000) as timer:
        pass
    record = [r for r in caplog.records if r.name == logger.name][-1]
    assert record.levelno == logging.DEBUG
    assert record.sql == "select 1"
    assert record.params == [1]
    assert timer.elapsed_ms >= 0
