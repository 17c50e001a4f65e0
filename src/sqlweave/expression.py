"""
Raw SQL marker used to bypass quoting and parameter binding.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from .grammar import BaseGrammar


@dataclass(frozen=True, slots=True)
class Expression:
    """
    Literal SQL fragment inlined verbatim by every grammar.
    """

    value: Union[str, int, float]

    def get_value(self, grammar: "BaseGrammar | None" = None) -> Union[str, int, float]:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class TypedBinding:
    """
    Binding carrying an explicit driver type hint (``bigint``, ``decimal``...).
    """

    value: Any
    type_hint: str = "string"


def raw(value: Any) -> Expression:
    return Expression(value)


def unwrap_binding(value: Any) -> Any:
    return value.value if isinstance(value, TypedBinding) else value
