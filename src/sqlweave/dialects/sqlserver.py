"""
SQL Server dialect implementation.
"""

from __future__ import annotations

from .base import DialectCapabilities


class SqlServerDialect:
    """
    SQL Server dialect quoting identifiers with brackets and strings as N'...'.
    """

    name: str = "sqlserver"
    param_style: str = "qmark"
    capabilities: DialectCapabilities = DialectCapabilities(
        supports_returning=False,
        supports_recursive_keyword=False,
        native_multi_table_delete=True,
    )

    def quote_identifier(self, identifier: str) -> str:
        if identifier == "*":
            return identifier
        escaped = identifier.replace("]", "]]")
        return f"[{escaped}]"

    def quote_string(self, value: str) -> str:
        return f"N'{value}'"
