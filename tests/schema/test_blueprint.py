import pytest

from sqlweave.errors import CompilationError
from sqlweave.expression import raw
from sqlweave.schema import Blueprint, get_schema_grammar


class FakeConnection:
    def __init__(self, **config):
        self.config = config

    def get_config(self, key, default=None):
        return self.config.get(key, default)


def compile_blueprint(dialect, table, callback, **options):
    blueprint = Blueprint(table, get_schema_grammar(dialect), callback, **options)
    return blueprint.to_sql(FakeConnection())


def test_sqlite_create_inlines_foreign_keys():
    def define(table):
        table.create()
        table.id()
        table.string("title")
        table.foreign_id("user_id").constrained().cascade_on_delete()

    assert compile_blueprint("sqlite", "posts", define) == [
        'create table "posts" ("id" integer primary key autoincrement not null, "title" varchar not null, '
        '"user_id" integer not null, foreign key("user_id") references "users"("id") on delete cascade)'
    ]


def test_sqlite_composite_primary_key_is_inlined():
    def define(table):
        table.create()
        table.integer("post_id")
        table.integer("tag_id")
        table.primary(["post_id", "tag_id"])

    assert compile_blueprint("sqlite", "post_tag", define) == [
        'create table "post_tag" ("post_id" integer not null, "tag_id" integer not null, '
        'primary key ("post_id", "tag_id"))'
    ]


def test_fluent_unique_becomes_index_command():
    def define(table):
        table.create()
        table.string("email").unique()

    assert compile_blueprint("sqlite", "users", define) == [
        'create table "users" ("email" varchar not null)',
        'create unique index "users_email_unique" on "users" ("email")',
    ]


def test_adding_columns_to_existing_table():
    def define(table):
        table.string("nickname").nullable()
        table.integer("age").default(0)

    assert compile_blueprint("sqlite", "users", define) == [
        'alter table "users" add column "nickname" varchar',
        "alter table \"users\" add column \"age\" integer not null default '0'",
    ]


def test_sqlite_drops_columns_one_statement_each():
    statements = compile_blueprint("sqlite", "users", lambda table: table.drop_column("a", "b"))
    assert statements == ['alter table "users" drop column "a"', 'alter table "users" drop column "b"']


def test_sqlite_renames():
    assert compile_blueprint("sqlite", "users", lambda table: table.rename("people")) == [
        'alter table "users" rename to "people"'
    ]
    assert compile_blueprint("sqlite", "users", lambda table: table.rename_column("name", "full_name")) == [
        'alter table "users" rename column "name" to "full_name"'
    ]


def test_sqlite_rejects_dropping_foreign_keys():
    with pytest.raises(CompilationError):
        compile_blueprint("sqlite", "posts", lambda table: table.drop_foreign(["user_id"]))


def test_generic_grammar_compiles_foreign_key_constraint():
    def define(table):
        table.foreign("user_id").references("id").on("users").on_delete("cascade")

    assert compile_blueprint("generic", "posts", define) == [
        'alter table "posts" add constraint "posts_user_id_foreign" foreign key ("user_id") '
        'references "users" ("id") on delete cascade'
    ]


def test_generic_grammar_refuses_table_creation():
    with pytest.raises(CompilationError):
        compile_blueprint("generic", "users", lambda table: (table.create(), table.string("name")))


def test_index_names_include_prefix_and_are_normalised():
    blueprint = Blueprint("Users", get_schema_grammar("sqlite"), prefix="app_")
    assert blueprint.create_index_name("index", ["first_name", "Last-Name"]) == "app_users_first_name_last_name_index"


def test_constrained_guesses_plural_table():
    blueprint = Blueprint("posts", get_schema_grammar("sqlite"))
    foreign = blueprint.foreign_id("category_id").constrained()
    assert foreign.get("on") == "categories"
    assert foreign.get("references") == ["id"]
    assert foreign.index_name == "posts_category_id_foreign"


def test_default_string_length_is_configurable():
    def define(table):
        table.string("email")

    statements = compile_blueprint("mysql", "users", define, default_string_length=191)
    assert statements == ["alter table `users` add `email` varchar(191) not null"]


def test_invalid_morph_key_type_rejected():
    with pytest.raises(ValueError):
        Blueprint("comments", get_schema_grammar("sqlite"), morph_key_type="guid")


def test_morphs_add_type_id_and_index():
    blueprint = Blueprint("comments", get_schema_grammar("sqlite"), lambda table: table.morphs("commentable"))
    assert [column.name for column in blueprint.get_columns()] == ["commentable_type", "commentable_id"]
    assert blueprint.get_commands()[0].index_name == "comments_commentable_type_commentable_id_index"


@pytest.mark.parametrize(
    "value, expected",
    [(raw("CURRENT_TIMESTAMP"), "CURRENT_TIMESTAMP"), (None, "null"), (True, "'1'"), ("O'Neil", "'O''Neil'")],
)
def test_default_values_render_as_literals(value, expected):
    assert get_schema_grammar("sqlite").get_default_value(value) == expected
