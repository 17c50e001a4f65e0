import pytest

from sqlweave.errors import CompilationError
from sqlweave.schema import Blueprint, SQLiteSchemaGrammar


class FakeConnection:
    def get_config(self, key, default=None):
        return default


def to_sql(table, callback):
    return Blueprint(table, SQLiteSchemaGrammar(), callback).to_sql(FakeConnection())


def test_temporary_table():
    def define(table):
        table.create()
        table.temporary()
        table.string("token")

    assert to_sql("sessions", define) == ['create temporary table "sessions" ("token" varchar not null)']


@pytest.mark.parametrize(
    "define",
    [
        lambda table: table.drop_primary(),
        lambda table: table.rename_index("users_email_index", "users_mail_index"),
        lambda table: table.fulltext("bio"),
        lambda table: table.drop_fulltext("users_bio_fulltext"),
        lambda table: table.spatial_index("location"),
        lambda table: table.drop_spatial_index("users_location_spatial_index"),
    ],
)
def test_unsupported_commands_raise(define):
    with pytest.raises(CompilationError, match="does not support"):
        to_sql("users", define)


@pytest.mark.parametrize("index", ["posts_user_id_foreign", ["user_id"]])
def test_drop_foreign_is_rejected_before_compiling(index):
    def define(table):
        table.string("title")
        table.drop_foreign(index)

    with pytest.raises(CompilationError, match="SQLite doesn't support dropping foreign keys"):
        to_sql("posts", define)


def test_keys_outside_create_compile_to_nothing():
    def define(table):
        table.primary("id")
        table.foreign("user_id").references("id").on("users")

    assert to_sql("posts", define) == []


def test_indexes_are_standalone_statements():
    def define(table):
        table.index(["last_name", "first_name"])
        table.unique("email", "users_email")
        table.drop_index("users_age_index")
        table.drop_unique("users_login_unique")

    assert to_sql("users", define) == [
        'create index "users_last_name_first_name_index" on "users" ("last_name", "first_name")',
        'create unique index "users_email" on "users" ("email")',
        'drop index "users_age_index"',
        'drop index "users_login_unique"',
    ]


def test_stored_columns_cannot_be_added_later():
    def define(table):
        table.integer("total").stored_as("price * quantity")
        table.integer("double_total").virtual_as("total * 2")

    assert to_sql("orders", define) == ['alter table "orders" add column "double_total" integer as (total * 2)']


def test_generated_column_from_json_path():
    def define(table):
        table.string("name").virtual_as("meta->name")

    assert to_sql("users", define) == [
        'alter table "users" add column "name" varchar as (json_extract("meta", \'$."name"\'))'
    ]


def test_catalog_queries():
    grammar = SQLiteSchemaGrammar()
    assert grammar.compile_table_exists() == "select * from sqlite_master where type = 'table' and name = ?"
    assert grammar.compile_column_listing("main.users") == 'pragma table_info("main__users")'
    assert grammar.compile_enable_foreign_key_constraints() == "PRAGMA foreign_keys = ON;"
    assert grammar.compile_disable_foreign_key_constraints() == "PRAGMA foreign_keys = OFF;"
