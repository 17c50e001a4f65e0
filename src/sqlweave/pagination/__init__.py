"""
Offset and keyset pagination results.
"""

from .cursor import Cursor
from .paginator import AbstractPaginator, CursorPaginator, LengthAwarePaginator, Paginator

__all__ = [
    "AbstractPaginator",
    "Cursor",
    "CursorPaginator",
    "LengthAwarePaginator",
    "Paginator",
]
