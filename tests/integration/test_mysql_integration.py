import importlib.util
import os
import uuid

import pytest

from sqlweave.connections import ConnectionFactory
from sqlweave.hooks import HookDispatcher

pytestmark = pytest.mark.integration


def _require_mysql_connection():
    if importlib.util.find_spec("pymysql") is None and importlib.util.find_spec("MySQLdb") is None:
        pytest.skip("No MySQL driver installed")
    dsn = os.getenv("SQLWEAVE_MYSQL_DSN")
    if not dsn:
        pytest.skip("SQLWEAVE_MYSQL_DSN not set; skipping MySQL integration test")
    connection = ConnectionFactory().make("mysql", {"url": dsn}, dispatcher=HookDispatcher())
    try:
        connection.get_adapter()
    except Exception as exc:  # pragma: no cover - environment dependent
        pytest.skip(f"Cannot connect to MySQL for integration test: {exc}")
    return connection


def test_mysql_roundtrip():
    connection = _require_mysql_connection()
    table = f"sqlweave_mysql_integration_{uuid.uuid4().hex[:8]}"
    schema = connection.get_schema_builder()
    try:
        schema.create(table, lambda blueprint: (blueprint.id(), blueprint.string("name", 100)))
        assert schema.has_table(table)

        new_id = connection.table(table).insert_get_id({"name": "mysql-ok"})
        assert connection.table(table).where("id", new_id).value("name") == "mysql-ok"

        connection.transaction(lambda session: session.table(table).insert({"name": "in-tx"}))
        assert connection.table(table).count() == 2
    finally:
        schema.drop_if_exists(table)
        connection.disconnect()
