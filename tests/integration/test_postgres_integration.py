import os
import uuid

import pytest

from sqlweave.connections import ConnectionFactory
from sqlweave.hooks import HookDispatcher

pytestmark = pytest.mark.integration


def _require_postgres_connection():
    try:
        import psycopg  # noqa: F401
    except ImportError:
        pytest.skip("psycopg driver not installed")
    dsn = os.getenv("SQLWEAVE_POSTGRES_DSN")
    if not dsn:
        pytest.skip("SQLWEAVE_POSTGRES_DSN not set; skipping Postgres integration test")
    connection = ConnectionFactory().make("pgsql", {"url": dsn}, dispatcher=HookDispatcher())
    try:
        connection.get_adapter()
    except Exception as exc:  # pragma: no cover - environment dependent
        pytest.skip(f"Cannot connect to Postgres for integration test: {exc}")
    return connection


def test_postgres_roundtrip():
    connection = _require_postgres_connection()
    table = f"sqlweave_pg_integration_{uuid.uuid4().hex[:8]}"
    schema = connection.get_schema_builder()
    try:
        schema.create(table, lambda blueprint: (blueprint.id(), blueprint.text("name")))
        assert schema.has_table(table)

        new_id = connection.table(table).insert_get_id({"name": "pg-ok"})
        assert connection.table(table).where("id", new_id).value("name") == "pg-ok"

        def failing(session):
            session.table(table).insert({"name": "rolled-back"})
            raise RuntimeError("abort")

        with pytest.raises(RuntimeError):
            connection.transaction(failing)
        assert connection.table(table).count() == 1
    finally:
        schema.drop_if_exists(table)
        connection.disconnect()
