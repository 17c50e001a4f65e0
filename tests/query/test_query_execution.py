import pytest

from sqlweave.adapters import ConnectionConfig, SQLiteAdapter
from sqlweave.connections import SQLiteConnection
from sqlweave.hooks import HookDispatcher


@pytest.fixture
def connection(tmp_path):
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig(url=f"sqlite:///{tmp_path / 'query.db'}"))
    conn = SQLiteConnection("default", {}, adapter=adapter, dispatcher=HookDispatcher())
    conn.statement(
        'CREATE TABLE "users" (id INTEGER PRIMARY KEY AUTOINCREMENT, email TEXT UNIQUE, name TEXT, votes INTEGER DEFAULT 0)'
    )
    yield conn
    conn.disconnect()


def seed(connection):
    connection.table("users").insert(
        [
            {"email": "ada@example.com", "name": "Ada", "votes": 3},
            {"email": "bob@example.com", "name": "Bob", "votes": 1},
            {"email": "cy@example.com", "name": "Cy", "votes": 5},
        ]
    )


def test_insert_and_get_rows(connection):
    seed(connection)
    rows = connection.table("users").order_by("id").get(["email", "votes"])
    assert rows == [
        {"email": "ada@example.com", "votes": 3},
        {"email": "bob@example.com", "votes": 1},
        {"email": "cy@example.com", "votes": 5},
    ]


def test_insert_get_id_returns_new_key(connection):
    new_id = connection.table("users").insert_get_id({"email": "dee@example.com", "name": "Dee"})
    assert new_id == 1
    assert connection.table("users").find(new_id)["name"] == "Dee"


def test_first_value_and_pluck(connection):
    seed(connection)
    users = connection.table("users")
    assert users.clone().where("name", "Bob").first()["email"] == "bob@example.com"
    assert users.clone().where("name", "Cy").value("votes") == 5
    assert users.clone().order_by("name").pluck("name") == ["Ada", "Bob", "Cy"]
    assert users.clone().pluck("votes", "name") == {"Ada": 3, "Bob": 1, "Cy": 5}


def test_aggregates(connection):
    seed(connection)
    users = connection.table("users")
    assert users.clone().count() == 3
    assert users.clone().sum("votes") == 9
    assert users.clone().max("votes") == 5
    assert users.clone().min("votes") == 1
    assert users.clone().where("votes", ">", 10).count() == 0


def test_exists(connection):
    seed(connection)
    assert connection.table("users").where("name", "Ada").exists() is True
    assert connection.table("users").where("name", "Zed").doesnt_exist() is True


def test_update_and_increment(connection):
    seed(connection)
    assert connection.table("users").where("name", "Bob").update({"name": "Robert"}) == 1
    assert connection.table("users").where("name", "Robert").increment("votes", 2) == 1
    assert connection.table("users").where("name", "Robert").value("votes") == 3


def test_delete_by_id_and_where(connection):
    seed(connection)
    assert connection.table("users").delete(1) == 1
    assert connection.table("users").where("votes", "<", 3).delete() == 1
    assert connection.table("users").pluck("name") == ["Cy"]


def test_delete_with_limit_uses_rowid(connection):
    seed(connection)
    assert connection.table("users").order_by("id").limit(2).delete() == 2
    assert connection.table("users").count() == 1


def test_upsert_updates_existing_rows(connection):
    seed(connection)
    connection.table("users").upsert(
        [{"email": "ada@example.com", "name": "Ada L."}, {"email": "eve@example.com", "name": "Eve"}],
        "email",
        ["name"],
    )
    assert connection.table("users").where("email", "ada@example.com").value("name") == "Ada L."
    assert connection.table("users").count() == 4


def test_truncate_clears_table(connection):
    seed(connection)
    connection.table("users").truncate()
    assert connection.table("users").count() == 0


def test_chunk_walks_pages(connection):
    seed(connection)
    pages = []
    connection.table("users").order_by("id").chunk(2, lambda rows, page: pages.append([r["name"] for r in rows]))
    assert pages == [["Ada", "Bob"], ["Cy"]]


def test_cursor_streams_rows(connection):
    seed(connection)
    names = [row["name"] for row in connection.table("users").order_by("id").cursor()]
    assert names == ["Ada", "Bob", "Cy"]


def test_common_table_expression_executes(connection):
    seed(connection)
    popular = connection.table("users").where("votes", ">=", 3)
    rows = connection.query().with_expression("popular", popular).from_("popular").order_by("name").pluck("name")
    assert rows == ["Ada", "Cy"]


def test_union_executes(connection):
    seed(connection)
    query = connection.table("users").select("name").where("votes", 1).union(
        connection.table("users").select("name").where("votes", 5)
    )
    assert sorted(row["name"] for row in query.get()) == ["Bob", "Cy"]
