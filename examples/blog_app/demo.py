"""
Utility helpers for running the sqlweave blog example end-to-end.
"""

from __future__ import annotations

from typing import Any, Dict, List

from sqlweave import Connection, DatabaseManager, InMemoryCache, raw
from sqlweave.schema import Blueprint


def bootstrap_database(dsn: str = "sqlite:///:memory:") -> DatabaseManager:
    """
    Configure a SQLite-backed manager and ensure the blog schema exists.
    """

    manager = DatabaseManager(
        {
            "default": "blog",
            "cache": {"resolver": InMemoryCache, "prefix": "blog"},
            "connections": {"blog": {"url": dsn}},
        }
    )
    _ensure_schema(manager.connection())
    return manager


def seed_sample_data(connection: Connection) -> Dict[str, List[int]]:
    """
    Populate authors, categories, and posts inside one transaction.
    """

    def seed(session) -> Dict[str, List[int]]:
        authors = [
            session.table("authors").insert_get_id({"name": "Alice Carter", "email": "alice@example.com"}),
            session.table("authors").insert_get_id({"name": "Brian Kim", "email": "brian@example.com"}),
        ]
        categories = [
            session.table("categories").insert_get_id({"name": "Announcements"}),
            session.table("categories").insert_get_id({"name": "Guides"}),
        ]
        session.table("posts").insert(
            [
                {
                    "title": "Introducing sqlweave",
                    "published": True,
                    "author_id": authors[0],
                    "category_id": categories[0],
                },
                {
                    "title": "Writing portable migrations",
                    "published": True,
                    "author_id": authors[1],
                    "category_id": categories[1],
                },
                {
                    "title": "Draft: window functions",
                    "published": False,
                    "author_id": authors[1],
                    "category_id": categories[1],
                },
            ]
        )
        posts = session.table("posts").order_by("id").pluck("id")
        return {"authors": authors, "categories": categories, "posts": posts}

    return connection.transaction(seed)


def fetch_recent_posts(connection: Connection, limit: int = 5) -> List[Dict[str, Any]]:
    """
    Retrieve a feed of published posts with author and category names.
    """

    return (
        connection.table("posts as p")
        .select("p.id", "p.title", "p.published", "a.name as author_name", "c.name as category_name")
        .join("authors as a", "p.author_id", "=", "a.id")
        .join("categories as c", "p.category_id", "=", "c.id")
        .where("p.published", True)
        .order_by("p.id", "desc")
        .limit(limit)
        .cache(key="feed")
        .get()
    )


def posts_per_author(connection: Connection) -> List[Dict[str, Any]]:
    return (
        connection.table("authors")
        .select("authors.name", raw("count(posts.id) as total"))
        .left_join("posts", "posts.author_id", "=", "authors.id")
        .group_by("authors.name")
        .order_by("authors.name")
        .get()
    )


def run_demo(dsn: str = "sqlite:///:memory:") -> List[Dict[str, Any]]:
    """
    Bootstrap the database, seed data, and return a rendered feed.
    """

    manager = bootstrap_database(dsn=dsn)
    try:
        connection = manager.connection()
        seed_sample_data(connection)
        return fetch_recent_posts(connection)
    finally:
        manager.terminate()


def _ensure_schema(connection: Connection) -> None:
    schema = connection.get_schema_builder()
    if schema.has_table("posts"):
        return

    def authors(table: Blueprint) -> None:
        table.id()
        table.string("name")
        table.string("email").unique()

    def categories(table: Blueprint) -> None:
        table.id()
        table.string("name")

    def posts(table: Blueprint) -> None:
        table.id()
        table.string("title")
        table.boolean("published").default(False)
        table.foreign_id("author_id").constrained().cascade_on_delete()
        table.foreign_id("category_id").constrained()

    schema.create("authors", authors)
    schema.create("categories", categories)
    schema.create("posts", posts)


if __name__ == "__main__":
    feed = run_demo("sqlite:///blog_demo.db")
    for entry in feed:
        print(f"[{entry['category_name']}] {entry['title']} by {entry['author_name']}")
