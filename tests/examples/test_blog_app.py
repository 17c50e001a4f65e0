from examples.blog_app import bootstrap_database, fetch_recent_posts, posts_per_author, run_demo, seed_sample_data


def test_blog_example_bootstrap_and_seed(tmp_path):
    db_path = tmp_path / "blog_example.db"
    manager = bootstrap_database(dsn=f"sqlite:///{db_path}")
    try:
        connection = manager.connection()
        seeded = seed_sample_data(connection)
        assert len(seeded["authors"]) == 2
        assert len(seeded["categories"]) == 2
        assert len(seeded["posts"]) == 3

        feed = fetch_recent_posts(connection, limit=5)
        assert [entry["title"] for entry in feed] == ["Writing portable migrations", "Introducing sqlweave"]
        assert {"title", "author_name", "category_name"} <= feed[0].keys()

        assert posts_per_author(connection) == [
            {"name": "Alice Carter", "total": 1},
            {"name": "Brian Kim", "total": 2},
        ]
    finally:
        manager.terminate()


def test_bootstrap_is_idempotent(tmp_path):
    dsn = f"sqlite:///{tmp_path / 'blog_again.db'}"
    bootstrap_database(dsn=dsn).terminate()
    manager = bootstrap_database(dsn=dsn)
    try:
        assert manager.connection().get_schema_builder().has_table("authors")
    finally:
        manager.terminate()


def test_run_demo_returns_feed():
    feed = run_demo()
    assert feed
    assert all(entry["published"] for entry in feed)
