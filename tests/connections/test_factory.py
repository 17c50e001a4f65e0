import pytest

from sqlweave.adapters import AdapterConfigurationError
from sqlweave.connections import (
    ConnectionFactory,
    DatabaseManager,
    MySQLConnection,
    PostgresConnection,
    SQLiteConnection,
    SqlServerConnection,
)
from sqlweave.hooks import HookDispatcher


def test_driver_picks_connection_class():
    factory = ConnectionFactory()
    assert isinstance(factory.make("a", {"driver": "mysql"}), MySQLConnection)
    assert isinstance(factory.make("b", {"driver": "mariadb"}), MySQLConnection)
    assert isinstance(factory.make("c", {"driver": "postgres"}), PostgresConnection)
    assert isinstance(factory.make("d", {"driver": "sqlserver"}), SqlServerConnection)


def test_driver_inferred_from_url(tmp_path):
    connection = ConnectionFactory().make("main", {"url": f"sqlite:///{tmp_path / 'main.db'}"})
    assert isinstance(connection, SQLiteConnection)
    assert connection.get_driver_name() == "sqlite"


def test_missing_driver_and_url_rejected():
    with pytest.raises(AdapterConfigurationError):
        ConnectionFactory().make("broken", {})


def test_unknown_driver_rejected():
    with pytest.raises(AdapterConfigurationError):
        ConnectionFactory().make("broken", {"driver": "oracle"})


def test_adapter_is_resolved_lazily(tmp_path):
    path = tmp_path / "lazy.db"
    connection = ConnectionFactory().make("lazy", {"url": f"sqlite:///{path}"})
    assert not path.exists()
    assert connection.scalar("select 1 + 1") == 2
    assert path.exists()
    connection.disconnect()


def test_read_config_overrides_write_config(tmp_path):
    write = tmp_path / "write.db"
    read = tmp_path / "read.db"
    connection = ConnectionFactory().make(
        "split",
        {"url": f"sqlite:///{write}", "read": {"url": f"sqlite:///{read}"}},
        dispatcher=HookDispatcher(),
    )
    connection.statement("create table t (v integer)")
    assert write.exists()
    assert connection.select("select name from sqlite_master where name = 't'") == []
    assert read.exists()
    assert connection.select_from_write_connection("select name from sqlite_master where name = 't'") == [
        {"name": "t"}
    ]
    connection.disconnect()


def make_manager(tmp_path):
    return DatabaseManager(
        {
            "connections": {
                "primary": {"url": f"sqlite:///{tmp_path / 'primary.db'}"},
                "reports": {"url": f"sqlite:///{tmp_path / 'reports.db'}", "prefix": "rpt_"},
            },
        },
        dispatcher=HookDispatcher(),
    )


def test_manager_defaults_to_first_connection(tmp_path):
    manager = make_manager(tmp_path)
    assert manager.get_default_connection() == "primary"
    assert manager.connection().get_name() == "primary"


def test_manager_caches_connections(tmp_path):
    manager = make_manager(tmp_path)
    assert manager.connection("reports") is manager.connection("reports")
    assert manager.table("users", connection="reports").to_sql() == 'select * from "rpt_users"'
    manager.terminate()


def test_manager_purge_rebuilds_connection(tmp_path):
    manager = make_manager(tmp_path)
    first = manager.connection()
    manager.purge()
    assert manager.connection() is not first
    manager.terminate()


def test_manager_unknown_connection(tmp_path):
    with pytest.raises(AdapterConfigurationError):
        make_manager(tmp_path).connection("missing")


def test_manager_schema_builder(tmp_path):
    manager = make_manager(tmp_path)
    schema = manager.schema()
    schema.create("widgets", lambda table: (table.id(), table.string("name")))
    assert schema.has_table("widgets")
    assert manager.table("widgets").insert({"name": "bolt"})
    assert manager.table("widgets").count() == 1
    manager.terminate()
