import re

import pytest

from sqlweave.query import QueryBuilder, get_query_grammar

DIALECTS = ["generic", "mysql", "postgres", "sqlite", "sqlserver"]

# every bound comparison in these queries is `<column> = ?` with the column
# named after the value it binds
COMPARISON = re.compile(r"(\w+)[`\"\]]? = \?")


def builder(dialect, table="users"):
    return QueryBuilder(grammar=get_query_grammar(dialect)).from_(table)


def placeholders(sql):
    return sql.count("?")


@pytest.mark.parametrize("dialect", DIALECTS)
def test_select_bindings_follow_placeholder_order(dialect):
    query = builder(dialect)
    query.with_expression("recent", lambda sub: sub.from_("posts").where("c1", "c1"))
    query.select("users.id").select_raw("s1 = ?", ["s1"])
    query.join("posts", lambda join: join.on("posts.user_id", "=", "users.id").where("posts.j1", "j1"))
    query.left_join_sub(builder(dialect, "comments").where("j2", "j2"), "c", "c.user_id", "=", "users.id")
    query.where("users.w1", "w1")
    query.where(lambda nested: nested.where("w2", "w2").or_where(lambda inner: inner.where("w3", "w3")))
    query.where_exists(builder(dialect, "bans").where_column("bans.user_id", "users.id").where("bans.w4", "w4"))
    query.group_by("users.id").having("h1", "=", "h1")
    query.order_by_raw("o1 = ?", ["o1"])
    query.union(builder(dialect, "admins").where("u1", "u1"))

    sql = query.to_sql()
    bindings = query.get_bindings()

    assert bindings == ["c1", "s1", "j1", "j2", "w1", "w2", "w3", "w4", "h1", "o1", "u1"]
    assert placeholders(sql) == len(bindings)
    assert COMPARISON.findall(sql) == bindings


@pytest.mark.parametrize("dialect", DIALECTS)
def test_update_bindings_follow_placeholder_order(dialect):
    query = builder(dialect)
    query.with_expression("recent", lambda sub: sub.from_("posts").where("c1", "c1"))
    query.join("posts", lambda join: join.on("posts.user_id", "=", "users.id").where("posts.j1", "j1"))
    query.where("users.w1", "w1").where(lambda nested: nested.where("w2", "w2").or_where("w3", "w3"))
    values = {"v1": "v1", "v2": "v2"}

    sql = query.grammar.compile_update(query, values)
    bindings = query.clean_bindings(query.grammar.prepare_bindings_for_update(query, values))

    assert placeholders(sql) == len(bindings) == 7
    assert COMPARISON.findall(sql) == bindings


@pytest.mark.parametrize("dialect", DIALECTS)
def test_delete_bindings_follow_placeholder_order(dialect):
    query = builder(dialect)
    query.join("posts", lambda join: join.on("posts.user_id", "=", "users.id").where("posts.j1", "j1"))
    query.where("users.w1", "w1").where(lambda nested: nested.where("w2", "w2"))

    sql = query.grammar.compile_delete(query)
    bindings = query.clean_bindings(query.grammar.prepare_bindings_for_delete(query))

    assert placeholders(sql) == len(bindings) == 3
    assert COMPARISON.findall(sql) == bindings


@pytest.mark.parametrize("dialect", DIALECTS)
def test_placeholder_count_matches_list_and_range_clauses(dialect):
    query = builder(dialect)
    query.where_in("id", [1, 2, 3])
    query.where_not_between("age", [18, 65])
    query.where(lambda nested: nested.where_null("deleted_at").or_where_in("role", ["a", "b"]))
    query.where_row_values(["a", "b"], "=", [1, 2])
    query.where_in("team_id", builder(dialect, "teams").select("id").where("active", True))
    query.where_raw("score > ?", [10])
    query.union_all(builder(dialect, "archived").where_in("id", [7, 8]))

    sql = query.to_sql()
    bindings = query.get_bindings()

    assert bindings == [1, 2, 3, 18, 65, "a", "b", 1, 2, True, 10, 7, 8]
    assert placeholders(sql) == len(bindings)


@pytest.mark.parametrize("dialect", DIALECTS)
def test_raw_expressions_never_take_a_placeholder(dialect):
    query = builder(dialect).where("a", QueryBuilder.raw("now()")).where("b", 1)
    assert query.get_bindings() == [1]
    assert placeholders(query.to_sql()) == 1
