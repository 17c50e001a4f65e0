"""
SQLite dialect implementation.
"""

from __future__ import annotations

from .base import DialectCapabilities, DoubleQuoteDialect


class SQLiteDialect(DoubleQuoteDialect):
    """
    SQLite dialect using qmark param style; emulates multi-table deletes with ``rowid``.
    """

    name = "sqlite"
    param_style = "qmark"
    capabilities = DialectCapabilities(
        supports_returning=False,
        native_multi_table_delete=False,
        row_identity_column="rowid",
    )
