"""
Dialect strategy interfaces shared by the query and schema grammars.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class DialectCapabilities:
    """
    Feature flags describing backend capabilities.
    """

    supports_returning: bool = False
    supports_savepoints: bool = True
    supports_cycle_detection: bool = False
    supports_recursive_keyword: bool = True
    native_multi_table_delete: bool = True
    row_identity_column: Optional[str] = None


class Dialect(Protocol):
    """
    Quoting strategy injected into grammars.
    """

    @property
    def name(self) -> str: ...

    @property
    def param_style(self) -> str: ...

    @property
    def capabilities(self) -> DialectCapabilities: ...

    def quote_identifier(self, identifier: str) -> str: ...

    def quote_string(self, value: str) -> str: ...


class DoubleQuoteDialect:
    """
    ANSI quoting: identifiers in double quotes, strings in single quotes.
    """

    name: str = "generic"
    param_style: str = "qmark"
    capabilities: DialectCapabilities = DialectCapabilities()

    def quote_identifier(self, identifier: str) -> str:
        if identifier == "*":
            return identifier
        escaped = identifier.replace('"', '""')
        return f'"{escaped}"'

    def quote_string(self, value: str) -> str:
        return f"'{value}'"


class GenericDialect(DoubleQuoteDialect):
    """
    Baseline dialect used when no backend is specified.
    """

    name = "generic"
    capabilities = DialectCapabilities(supports_cycle_detection=True)
