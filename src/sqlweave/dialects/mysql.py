"""
MySQL dialect implementation.
"""

from __future__ import annotations

from .base import DialectCapabilities


class MySQLDialect:
    """
    MySQL dialect quoting identifiers with backticks.
    """

    name: str = "mysql"
    param_style: str = "format"
    capabilities: DialectCapabilities = DialectCapabilities(
        supports_returning=False,
        supports_cycle_detection=True,
        native_multi_table_delete=True,
    )

    def quote_identifier(self, identifier: str) -> str:
        if identifier == "*":
            return identifier
        escaped = identifier.replace("`", "``")
        return f"`{escaped}`"

    def quote_string(self, value: str) -> str:
        return f"'{value}'"
