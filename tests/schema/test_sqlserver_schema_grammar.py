from sqlweave.schema import Blueprint, SqlServerSchemaGrammar


class FakeConnection:
    def get_config(self, key, default=None):
        return default


def to_sql(table, callback):
    return Blueprint(table, SqlServerSchemaGrammar(), callback).to_sql(FakeConnection())


def test_create_table_uses_identity():
    def define(table):
        table.create()
        table.id()
        table.string("email").unique()

    assert to_sql("users", define) == [
        "create table [users] ([id] bigint not null identity primary key, [email] nvarchar(255) not null)",
        "create unique index [users_email_unique] on [users] ([email])",
    ]


def test_temporary_tables_use_hash_prefix():
    def define(table):
        table.create()
        table.temporary()
        table.boolean("flag")

    assert to_sql("scratch", define) == ["create table [#scratch] ([flag] bit not null)"]


def test_computed_column_is_persisted():
    assert to_sql("orders", lambda table: table.computed("total", "price * qty").persisted()) == [
        "alter table [orders] add [total] as (price * qty) persisted"
    ]


def test_drop_column_clears_default_constraints_first():
    statements = to_sql("users", lambda table: table.drop_column("email"))
    assert len(statements) == 1
    assert statements[0].startswith("DECLARE @sql NVARCHAR(MAX) = '';")
    assert "AND [name] in ('email')" in statements[0]
    assert statements[0].endswith("EXEC(@sql);alter table [users] drop column [email]")


def test_change_with_default_adds_constraint():
    statements = to_sql("users", lambda table: table.string("name").default("n/a").change())
    assert statements[0].startswith("DECLARE @sql")
    assert statements[1:] == [
        "alter table [users] alter column [name] nvarchar(255) not null",
        "alter table [users] add default 'n/a' for [name]",
    ]


def test_renames_use_sp_rename():
    assert to_sql("users", lambda table: table.rename("people")) == ["sp_rename [users], [people]"]
    assert to_sql("users", lambda table: table.rename_column("a", "b")) == ["sp_rename '[users].[a]', [b], 'COLUMN'"]


def test_drop_if_exists_checks_sysobjects():
    assert to_sql("users", lambda table: table.drop_if_exists()) == [
        "if exists (select * from sys.sysobjects where id = object_id('users', 'U')) drop table [users]"
    ]


def test_drop_index_names_table():
    assert to_sql("users", lambda table: table.drop_index(["email"])) == ["drop index [users_email_index] on [users]"]


def test_type_mapping():
    grammar = SqlServerSchemaGrammar()
    blueprint = Blueprint("docs", grammar)
    assert grammar.get_type(blueprint.json("payload")) == "nvarchar(max)"
    assert grammar.get_type(blueprint.uuid("token")) == "uniqueidentifier"
    assert grammar.get_type(blueprint.timestamp("seen_at", 3)) == "datetime2(3)"
