import pytest

from sqlweave.errors import SqlweaveError
from sqlweave.expression import raw
from sqlweave.query import QueryBuilder


def builder(table="users"):
    return QueryBuilder().from_(table)


def test_select_defaults_to_star():
    assert builder().to_sql() == 'select * from "users"'


def test_select_columns_and_alias():
    query = QueryBuilder().from_("users", "u").select("id", "email as mail")
    assert query.to_sql() == 'select "id", "email" as "mail" from "users" as "u"'


def test_where_without_operator_uses_equals():
    query = builder().where("email", "foo@example.com")
    assert query.to_sql() == 'select * from "users" where "email" = ?'
    assert query.get_bindings() == ["foo@example.com"]


def test_where_with_null_value_becomes_is_null():
    query = builder().where("deleted_at", "=", None)
    assert query.to_sql() == 'select * from "users" where "deleted_at" is null'
    assert query.get_bindings() == []


def test_where_null_and_not_null():
    query = builder().where_null("deleted_at").where_not_null("email")
    assert query.to_sql() == 'select * from "users" where "deleted_at" is null and "email" is not null'


def test_or_where_joins_with_or():
    query = builder().where("id", ">", 5).or_where("admin", True)
    assert query.to_sql() == 'select * from "users" where "id" > ? or "admin" = ?'
    assert query.get_bindings() == [5, True]


def test_where_in_values():
    query = builder().where_in("id", [1, 2, 3])
    assert query.to_sql() == 'select * from "users" where "id" in (?, ?, ?)'
    assert query.get_bindings() == [1, 2, 3]


def test_where_in_empty_list_is_always_false():
    assert builder().where_in("id", []).to_sql() == 'select * from "users" where 0 = 1'
    assert builder().where_not_in("id", []).to_sql() == 'select * from "users" where 1 = 1'


def test_where_in_subquery():
    query = builder().where_in("id", lambda q: q.select("user_id").from_("orders").where("total", ">", 10))
    assert query.to_sql() == (
        'select * from "users" where "id" in (select "user_id" from "orders" where "total" > ?)'
    )
    assert query.get_bindings() == [10]


def test_where_between():
    query = builder().where_between("age", [18, 30])
    assert query.to_sql() == 'select * from "users" where "age" between ? and ?'
    assert query.get_bindings() == [18, 30]


def test_where_column_compares_identifiers():
    query = builder().where_column("updated_at", ">", "created_at")
    assert query.to_sql() == 'select * from "users" where "updated_at" > "created_at"'


def test_nested_where_groups_in_parentheses():
    query = builder().where("active", 1).where_nested(lambda q: q.where("role", "admin").or_where("role", "owner"))
    assert query.to_sql() == 'select * from "users" where "active" = ? and ("role" = ? or "role" = ?)'
    assert query.get_bindings() == [1, "admin", "owner"]


def test_order_limit_offset():
    query = builder().order_by("name").order_by_desc("id").for_page(3, 10)
    assert query.to_sql() == 'select * from "users" order by "name" asc, "id" desc limit 10 offset 20'


def test_invalid_order_direction_rejected():
    with pytest.raises(ValueError):
        builder().order_by("name", "sideways")


def test_join_clause():
    query = builder().join("orders", "users.id", "=", "orders.user_id").select("users.*")
    assert query.to_sql() == (
        'select "users".* from "users" inner join "orders" on "users"."id" = "orders"."user_id"'
    )


def test_union_wraps_each_branch():
    query = builder().where("id", 1).union(builder("admins").where("id", 2))
    assert query.to_sql() == (
        '(select * from "users" where "id" = ?) union (select * from "admins" where "id" = ?)'
    )
    assert query.get_bindings() == [1, 2]


def test_union_all():
    query = builder().union_all(builder("admins"))
    assert query.to_sql() == '(select * from "users") union all (select * from "admins")'


def test_common_table_expression_prefixes_select_and_binds_first():
    recent = QueryBuilder().from_("posts").where("published", 1)
    query = QueryBuilder().with_expression("recent", recent).from_("recent").where("views", ">", 100)
    assert query.to_sql() == (
        'with "recent" as (select * from "posts" where "published" = ?) '
        'select * from "recent" where "views" > ?'
    )
    assert query.get_bindings() == [1, 100]


def test_recursive_expression_with_columns():
    query = QueryBuilder().with_recursive_expression("tree", raw("select 1"), ["id"]).from_("tree")
    assert query.to_sql() == 'with recursive "tree" ("id") as (select 1) select * from "tree"'


def test_common_table_expression_prefixes_delete():
    stale = QueryBuilder().from_("sessions").select("user_id").where("expired", 1)
    query = QueryBuilder().with_expression("stale", stale).from_("users").where_in(
        "id", QueryBuilder().from_("stale").select("user_id")
    )
    sql = query.grammar.compile_delete(query)
    assert sql == (
        'with "stale" as (select "user_id" from "sessions" where "expired" = ?) '
        'delete from "users" where "id" in (select "user_id" from "stale")'
    )
    assert query.grammar.prepare_bindings_for_delete(query) == [1]


def test_delete_compiles_wheres():
    query = builder().where("email", "foo")
    assert query.grammar.compile_delete(query) == 'delete from "users" where "email" = ?'
    assert query.grammar.prepare_bindings_for_delete(query) == ["foo"]


def test_update_binds_values_before_wheres():
    query = builder().where("id", 7)
    sql = query.grammar.compile_update(query, {"name": "Ada", "admin": False})
    assert sql == 'update "users" set "name" = ?, "admin" = ? where "id" = ?'
    assert query.grammar.prepare_bindings_for_update(query, {"name": "Ada", "admin": False}) == ["Ada", False, 7]


def test_insert_multiple_rows():
    query = builder()
    sql = query.grammar.compile_insert(query, [{"email": "a", "name": "A"}, {"email": "b", "name": "B"}])
    assert sql == 'insert into "users" ("email", "name") values (?, ?), (?, ?)'


def test_insert_without_values_uses_defaults():
    query = builder()
    assert query.grammar.compile_insert(query, []) == 'insert into "users" default values'


def test_exists_wraps_select():
    query = builder().where("id", 1)
    assert query.grammar.compile_exists(query) == 'select exists(select * from "users" where "id" = ?) as "exists"'


def test_aggregate_select():
    query = builder()
    query.set_aggregate("count", ["*"])
    assert query.to_sql() == 'select count(*) as aggregate from "users"'


def test_to_raw_sql_substitutes_bindings():
    query = builder().where("name", "O'Brien").where("deleted_at", "=", None).where("admin", True)
    assert query.to_raw_sql() == (
        "select * from \"users\" where \"name\" = 'O''Brien' and \"deleted_at\" is null and \"admin\" = 1"
    )


def test_clone_is_independent():
    query = builder().where("id", 1)
    copy = query.clone().where("name", "x")
    assert query.get_bindings() == [1]
    assert copy.get_bindings() == [1, "x"]


def test_when_applies_callback_conditionally():
    query = builder().when(True, lambda q, value: q.where("active", value)).when(False, lambda q, v: q.where("x", 1))
    assert query.to_sql() == 'select * from "users" where "active" = ?'


def test_increment_rejects_non_numeric_amount():
    with pytest.raises(TypeError):
        builder().increment("votes", "many")


def test_execution_requires_connection():
    with pytest.raises(SqlweaveError):
        builder().get()


def test_chunk_requires_order():
    with pytest.raises(ValueError):
        builder().chunk(10, lambda rows, page: None)
