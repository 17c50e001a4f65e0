import pytest

from sqlweave.errors import CompilationError
from sqlweave.schema import Blueprint, PostgresSchemaGrammar


class FakeConnection:
    def get_config(self, key, default=None):
        return {"charset": "utf8"}.get(key, default)


def to_sql(table, callback):
    return Blueprint(table, PostgresSchemaGrammar(), callback).to_sql(FakeConnection())


def test_create_table_uses_serial_primary_key():
    def define(table):
        table.create()
        table.id()
        table.string("email").unique()

    assert to_sql("users", define) == [
        'create table "users" ("id" bigserial not null primary key, "email" varchar(255) not null)',
        'alter table "users" add constraint "users_email_unique" unique ("email")',
    ]


def test_column_comment_is_a_separate_statement():
    def define(table):
        table.create()
        table.string("email").comment("Login address")

    assert to_sql("users", define) == [
        'create table "users" ("email" varchar(255) not null)',
        "comment on column \"users\".\"email\" is 'Login address'",
    ]


def test_change_column_emits_alter_column_clauses():
    assert to_sql("users", lambda table: table.string("name", 100).nullable().change()) == [
        'alter table "users" alter column "name" type varchar(100), alter column "name" drop not null, '
        'alter column "name" drop default, alter column "name" drop identity if exists',
        'comment on column "users"."name" is NULL',
    ]


def test_changing_generated_expression_is_rejected():
    with pytest.raises(CompilationError):
        to_sql("orders", lambda table: table.integer("total").stored_as("price * qty").change())


def test_identity_column():
    assert to_sql("events", lambda table: table.integer("seq").generated_as().always()) == [
        'alter table "events" add column "seq" integer not null generated always as identity'
    ]


def test_stored_generated_column():
    assert to_sql("orders", lambda table: table.integer("total").stored_as("price * qty")) == [
        'alter table "orders" add column "total" integer not null generated always as (price * qty) stored'
    ]


def test_index_statements():
    assert to_sql("users", lambda table: table.index("email")) == [
        'create index "users_email_index" on "users" ("email")'
    ]
    assert to_sql("posts", lambda table: table.fulltext("body")) == [
        'create index "posts_body_fulltext" on "posts" using gin ((to_tsvector(\'english\', "body")))'
    ]
    assert to_sql("users", lambda table: table.drop_index("users_email_index")) == ['drop index "users_email_index"']
    assert to_sql("users", lambda table: table.drop_primary()) == ['alter table "users" drop constraint "users_pkey"']


def test_deferrable_foreign_key():
    def define(table):
        table.foreign("user_id").references("id").on("users").deferrable()

    assert to_sql("posts", define) == [
        'alter table "posts" add constraint "posts_user_id_foreign" foreign key ("user_id") '
        'references "users" ("id") deferrable'
    ]


def test_table_statements():
    assert to_sql("users", lambda table: table.rename("people")) == ['alter table "users" rename to "people"']
    assert to_sql("users", lambda table: table.rename_column("a", "b")) == [
        'alter table "users" rename column "a" to "b"'
    ]
    assert to_sql("users", lambda table: table.drop_column("a", "b")) == [
        'alter table "users" drop column "a", drop column "b"'
    ]


def test_auto_increment_starting_value_restarts_sequence():
    def define(table):
        table.create()
        table.id().starting_value(100)

    assert to_sql("users", define)[-1] == "alter sequence users_id_seq restart with 100"


def test_database_statements():
    grammar = PostgresSchemaGrammar()
    assert grammar.compile_create_database("app", FakeConnection()) == 'create database "app" encoding "utf8"'
    assert grammar.compile_drop_database_if_exists("app") == 'drop database if exists "app"'
    assert grammar.supports_schema_transactions() is True
