import pytest

from sqlweave.utils.naming import camel_to_snake, pluralize


@pytest.mark.parametrize(
    "name, expected",
    [
        ("QueryExecuted", "query_executed"),
        ("TransactionRolledBack", "transaction_rolled_back"),
        ("HTTPRequest", "http_request"),
    ],
)
def test_camel_to_snake(name, expected):
    assert camel_to_snake(name) == expected


@pytest.mark.parametrize(
    "word, expected",
    [
        ("user", "users"),
        ("category", "categories"),
        ("address", "addresses"),
        ("blog_post", "blog_posts"),
        ("team_person", "team_people"),
        ("metadata", "metadata"),
        ("day", "days"),
    ],
)
def test_pluralize(word, expected):
    assert pluralize(word) == expected
