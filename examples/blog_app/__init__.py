"""
Blog-style sample application showcasing sqlweave's schema and query builders.
"""

from .demo import bootstrap_database, fetch_recent_posts, posts_per_author, run_demo, seed_sample_data

__all__ = [
    "bootstrap_database",
    "seed_sample_data",
    "fetch_recent_posts",
    "posts_per_author",
    "run_demo",
]
