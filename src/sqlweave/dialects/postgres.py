"""
PostgreSQL dialect implementation.
"""

from __future__ import annotations

from .base import DialectCapabilities, DoubleQuoteDialect


class PostgresDialect(DoubleQuoteDialect):
    """
    PostgreSQL dialect; deletes with joins or limits go through ``ctid``.
    """

    name = "postgres"
    param_style = "format"
    capabilities = DialectCapabilities(
        supports_returning=True,
        supports_cycle_detection=True,
        native_multi_table_delete=False,
        row_identity_column="ctid",
    )
