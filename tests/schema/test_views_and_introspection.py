import logging

import pytest

from sqlweave.adapters import ConnectionConfig, SQLiteAdapter
from sqlweave.connections import SQLiteConnection
from sqlweave.errors import CompilationError
from sqlweave.hooks import HookDispatcher
from sqlweave.query import QueryBuilder, get_query_grammar
from sqlweave.schema import (
    MySQLSchemaGrammar,
    PostgresSchemaGrammar,
    SchemaGrammar,
    SQLiteSchemaGrammar,
    SqlServerSchemaGrammar,
    ViewDefinition,
)


def active_users(dialect):
    return QueryBuilder(grammar=get_query_grammar(dialect)).from_("users").where("status", "active")


def test_sqlite_create_view():
    view = ViewDefinition().as_(active_users("sqlite")).column_names(["id", "name"]).temporary()
    assert SQLiteSchemaGrammar().compile_create_view("active_users", view) == (
        'create temporary view "active_users" ("id", "name") as '
        "select * from \"users\" where \"status\" = 'active'"
    )


def test_mysql_create_view_with_algorithm_definer_and_check():
    view = (
        ViewDefinition()
        .as_(active_users("mysql"))
        .algorithm("merge")
        .definer("CURRENT_USER")
        .with_check_cascade()
    )
    assert MySQLSchemaGrammar().compile_create_view("active_users", view) == (
        "create algorithm = merge definer = CURRENT_USER view `active_users` as "
        "select * from `users` where `status` = 'active' with cascaded check option"
    )


def test_postgres_create_view_with_attribute_and_check():
    view = ViewDefinition().as_(active_users("postgres")).with_security_barrier().with_check_local()
    assert PostgresSchemaGrammar().compile_create_view("active_users", view) == (
        'create view "active_users" with (security_barrier) as '
        "select * from \"users\" where \"status\" = 'active' with local check option"
    )


def test_postgres_create_recursive_view():
    view = ViewDefinition().as_("select 1").column_names(["n"]).with_recursive().temporary()
    assert PostgresSchemaGrammar().compile_create_view("numbers", view) == (
        'create temporary recursive view "numbers" ("n") as select 1'
    )


def test_sqlserver_create_view_with_attribute_and_check():
    view = ViewDefinition().as_(active_users("sqlserver")).with_schemabinding().with_check("local")
    assert SqlServerSchemaGrammar().compile_create_view("active_users", view) == (
        "create view [active_users] with schemabinding as "
        "select * from [users] where [status] = 'active' with check option"
    )


def test_view_without_query_is_rejected():
    with pytest.raises(CompilationError, match="defining query"):
        SQLiteSchemaGrammar().compile_create_view("empty", ViewDefinition())


def test_generic_grammar_refuses_views_and_introspection():
    grammar = SchemaGrammar()
    with pytest.raises(CompilationError, match="does not support create view"):
        grammar.compile_create_view("v", ViewDefinition().as_("select 1"))
    for compile_ in (grammar.compile_get_all_views, grammar.compile_drop_all_views):
        with pytest.raises(CompilationError, match="does not support"):
            compile_()
    with pytest.raises(CompilationError, match="does not support index listing"):
        grammar.compile_indexes("users")
    with pytest.raises(CompilationError, match="does not support foreign key listing"):
        grammar.compile_foreign_keys("users")


@pytest.mark.parametrize(
    "grammar, expected",
    [
        (SQLiteSchemaGrammar(), 'drop view if exists "active_users"'),
        (MySQLSchemaGrammar(), "drop view if exists `active_users`"),
        (PostgresSchemaGrammar(), 'drop view if exists "active_users"'),
        (SqlServerSchemaGrammar(), "drop view if exists [active_users]"),
    ],
)
def test_drop_view_if_exists(grammar, expected):
    assert grammar.compile_drop_view_if_exists("active_users") == expected
    assert grammar.compile_drop_view("active_users") == expected.replace(" if exists", "")


def test_mysql_view_listing_and_drop_all():
    grammar = MySQLSchemaGrammar()
    assert grammar.compile_get_all_views() == "SHOW FULL TABLES WHERE table_type = 'VIEW'"
    assert grammar.compile_drop_all_views(["a", "b"]) == "drop view `a`,`b`"


def test_postgres_view_listing_and_drop_all():
    grammar = PostgresSchemaGrammar()
    assert grammar.compile_get_all_views(["public", "audit"]) == (
        "select viewname, concat('\"', schemaname, '\".\"', viewname, '\"') as qualifiedname "
        "from pg_catalog.pg_views where schemaname in ('public','audit')"
    )
    assert grammar.compile_drop_all_views(['"public"."a"', "audit.b"]) == 'drop view "public"."a","audit"."b" cascade'


def test_sqlserver_view_listing_and_introspection():
    grammar = SqlServerSchemaGrammar()
    assert grammar.compile_get_all_views().startswith("select name, SCHEMA_NAME(v.schema_id) as [schema], definition")
    assert "DROP VIEW" in grammar.compile_drop_all_views()
    assert "from sys.indexes as idx" in grammar.compile_indexes("users")
    assert "where tbl.name = N'users'" in grammar.compile_indexes("users")
    assert "where lt.name = N'users'" in grammar.compile_foreign_keys("users")


def test_sqlite_introspection_queries_quote_the_table():
    grammar = SQLiteSchemaGrammar()
    assert grammar.compile_get_all_views() == (
        "select name, sql as definition from sqlite_master where type = 'view' order by name"
    )
    assert "pragma_index_list('main__users')" in grammar.compile_indexes("main.users")
    assert "pragma_foreign_key_list('posts')" in grammar.compile_foreign_keys("posts")


@pytest.fixture
def schema(tmp_path):
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig(url=f"sqlite:///{tmp_path / 'views.db'}"))
    conn = SQLiteConnection("default", {}, adapter=adapter, dispatcher=HookDispatcher())
    builder = conn.get_schema_builder()
    builder.create(
        "users",
        lambda table: (table.id(), table.string("email").unique(), table.string("status"), table.index("status")),
    )
    builder.create(
        "posts",
        lambda table: (
            table.id(),
            table.integer("user_id"),
            table.foreign("user_id").references("id").on("users").cascade_on_delete(),
        ),
    )
    conn.table("users").insert(
        [
            {"email": "ada@example.com", "status": "active"},
            {"email": "bob@example.com", "status": "banned"},
        ]
    )
    yield builder
    conn.disconnect()


def test_create_view_from_callback(schema):
    schema.create_view(
        "active_users",
        lambda view: view.as_(lambda query: query.from_("users").select("email").where("status", "active")),
    )

    assert schema.get_all_views() == ["active_users"]
    rows = schema.get_connection().table("active_users").get()
    assert [row["email"] for row in rows] == ["ada@example.com"]


def test_drop_view_if_exists_logs_and_drops(schema, caplog):
    schema.create_view("everyone", lambda view: view.as_(schema.get_connection().table("users")))

    caplog.set_level(logging.WARNING, logger="sqlweave.schema.builder")
    schema.drop_view_if_exists("everyone")
    schema.drop_view_if_exists("everyone")

    assert schema.get_all_views() == []
    assert any("DROP VIEW issued for everyone" in record.message for record in caplog.records)


def test_drop_all_views(schema):
    schema.create_view("a", lambda view: view.as_("select 1 as n"))
    schema.create_view("b", lambda view: view.as_("select 2 as n"))

    schema.drop_all_views()

    assert schema.get_all_views() == []
    assert schema.has_table("users") is True


def test_get_indexes(schema):
    indexes = sorted(schema.get_indexes("users"), key=lambda index: index["name"])

    assert indexes == [
        {"name": "primary", "columns": ["id"], "type": None, "unique": True, "primary": True},
        {"name": "users_email_unique", "columns": ["email"], "type": None, "unique": True, "primary": False},
        {"name": "users_status_index", "columns": ["status"], "type": None, "unique": False, "primary": False},
    ]


def test_get_foreign_keys(schema):
    assert schema.get_foreign_keys("posts") == [
        {
            "name": None,
            "columns": ["user_id"],
            "foreign_schema": None,
            "foreign_table": "users",
            "foreign_columns": ["id"],
            "on_update": "no action",
            "on_delete": "cascade",
        }
    ]
    assert schema.get_foreign_keys("users") == []
