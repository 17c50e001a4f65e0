"""
Page containers returned by ``QueryBuilder.paginate`` and friends.

Paginators hold one page of rows plus enough state to build links to
neighbouring pages. Request-scoped values (current path, page number,
cursor) come from resolver callbacks an application registers once.
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar, Dict, Generic, List, Mapping, Optional, Sequence, TypeVar
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from ..errors import SqlweaveError
from .cursor import Cursor

T = TypeVar("T")


class AbstractPaginator(Generic[T]):
    _current_path_resolver: ClassVar[Optional[Callable[[], str]]] = None

    def __init__(self, items: Sequence[T], per_page: int, *, path: str = "/", page_name: str = "page") -> None:
        self._items: List[T] = list(items)
        self._per_page = per_page
        self._path = path
        self.page_name = page_name
        self._query: Dict[str, str] = {}
        self._fragment: Optional[str] = None

    def items(self) -> List[T]:
        return self._items

    def per_page(self) -> int:
        return self._per_page

    def is_empty(self) -> bool:
        return not self._items

    def is_not_empty(self) -> bool:
        return not self.is_empty()

    def path(self) -> str:
        return self._path

    def appends(self, key: str | Mapping[str, Any], value: Any = None) -> "AbstractPaginator[T]":
        values = key if isinstance(key, Mapping) else {key: value}
        for name, item in values.items():
            # the page parameter is owned by the paginator
            if name != self.page_name:
                self._query[name] = str(item)
        return self

    def fragment(self, fragment: Optional[str] = None) -> Any:
        if fragment is None:
            return self._fragment
        self._fragment = fragment
        return self

    def generate_url(self, parameters: Mapping[str, str]) -> str:
        scheme, netloc, path, query, _ = urlsplit(self.path())
        merged = dict(parse_qsl(query))
        merged.update(parameters)
        merged.update(self._query)
        return urlunsplit((scheme, netloc, path, urlencode(merged), self._fragment or ""))

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @staticmethod
    def resolve_current_path(default: str = "/") -> str:
        resolver = AbstractPaginator._current_path_resolver
        return resolver() if resolver is not None else default

    @staticmethod
    def current_path_resolver(resolver: Optional[Callable[[], str]]) -> None:
        AbstractPaginator._current_path_resolver = resolver


class Paginator(AbstractPaginator[T]):
    """
    Simple paginator: knows whether another page exists, never the total.

    Callers fetch ``per_page + 1`` rows; the surplus row only signals that
    more pages follow and is dropped from :meth:`items`.
    """

    _current_page_resolver: ClassVar[Optional[Callable[[str], int]]] = None

    def __init__(
        self,
        items: Sequence[T],
        per_page: int,
        current_page: Any = 1,
        *,
        path: str = "/",
        page_name: str = "page",
    ) -> None:
        super().__init__(items, per_page, path=path, page_name=page_name)
        self._current_page = int(current_page) if self.is_valid_page_number(current_page) else 1
        self._has_more = len(self._items) > per_page
        self._items = self._items[:per_page]

    @staticmethod
    def is_valid_page_number(page: Any) -> bool:
        try:
            number = float(page)
        except (TypeError, ValueError):
            return False
        return number.is_integer() and number >= 1

    def current_page(self) -> int:
        return self._current_page

    def first_item(self) -> Optional[int]:
        return (self.current_page() - 1) * self.per_page() + 1 if self._items else None

    def last_item(self) -> Optional[int]:
        first = self.first_item()
        return first + len(self._items) - 1 if first is not None else None

    def has_more_pages(self) -> bool:
        return self._has_more

    def has_pages(self) -> bool:
        return self.current_page() != 1 or self.has_more_pages()

    def on_first_page(self) -> bool:
        return self.current_page() <= 1

    def url(self, page: int) -> str:
        return self.generate_url({self.page_name: str(max(page, 1))})

    def next_page_url(self) -> Optional[str]:
        return self.url(self.current_page() + 1) if self.has_more_pages() else None

    def previous_page_url(self) -> Optional[str]:
        return self.url(self.current_page() - 1) if self.current_page() > 1 else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_page": self.current_page(),
            "data": self.items(),
            "first_page_url": self.url(1),
            "from": self.first_item(),
            "next_page_url": self.next_page_url(),
            "path": self.path(),
            "per_page": self.per_page(),
            "prev_page_url": self.previous_page_url(),
            "to": self.last_item(),
        }

    @staticmethod
    def resolve_current_page(page_name: str = "page", default: int = 1) -> int:
        resolver = Paginator._current_page_resolver
        return resolver(page_name) if resolver is not None else default

    @staticmethod
    def current_page_resolver(resolver: Optional[Callable[[str], int]]) -> None:
        Paginator._current_page_resolver = resolver


class LengthAwarePaginator(Paginator[T]):
    """Paginator that also carries the total row count."""

    def __init__(
        self,
        items: Sequence[T],
        total: int,
        per_page: int,
        current_page: Any = 1,
        *,
        path: str = "/",
        page_name: str = "page",
    ) -> None:
        super().__init__(items, per_page, current_page, path=path, page_name=page_name)
        self._total = total
        self._has_more = self.current_page() < self.last_page()

    def total(self) -> int:
        return self._total

    def last_page(self) -> int:
        return max(-(-self._total // self.per_page()), 1)

    def on_last_page(self) -> bool:
        return self.current_page() >= self.last_page()

    def to_dict(self) -> Dict[str, Any]:
        return {
            **super().to_dict(),
            "last_page": self.last_page(),
            "last_page_url": self.url(self.last_page()),
            "total": self.total(),
        }


class CursorPaginator(AbstractPaginator[T]):
    """
    Keyset paginator. Rows fetched for a previous-page cursor arrive in
    reverse order and are flipped back here.
    """

    _current_cursor_resolver: ClassVar[Optional[Callable[[str], Optional[Cursor]]]] = None

    def __init__(
        self,
        items: Sequence[T],
        per_page: int,
        cursor: Optional[Cursor],
        *,
        parameters: Sequence[str],
        path: str = "/",
        page_name: str = "cursor",
    ) -> None:
        super().__init__(items, per_page, path=path, page_name=page_name)
        self.cursor = cursor
        self.parameters = list(parameters)
        self._has_more = len(self._items) > per_page
        self._items = self._items[:per_page]
        if cursor is not None and cursor.points_to_previous_items():
            self._items.reverse()

    def has_more_pages(self) -> bool:
        if self.cursor is None or self.cursor.points_to_next_items():
            return self._has_more
        return True

    def has_pages(self) -> bool:
        return not self.on_first_page() or self.has_more_pages()

    def on_first_page(self) -> bool:
        return self.cursor is None or (self.cursor.points_to_previous_items() and not self._has_more)

    def on_last_page(self) -> bool:
        return not self.has_more_pages()

    def url(self, cursor: Optional[Cursor] = None) -> str:
        return self.generate_url({} if cursor is None else {self.page_name: cursor.encode()})

    def previous_cursor(self) -> Optional[Cursor]:
        if self.on_first_page() or not self._items:
            return None
        return self.get_cursor_for_item(self._items[0], False)

    def next_cursor(self) -> Optional[Cursor]:
        if not self.has_more_pages() or not self._items:
            return None
        return self.get_cursor_for_item(self._items[-1], True)

    def previous_page_url(self) -> Optional[str]:
        cursor = self.previous_cursor()
        return self.url(cursor) if cursor is not None else None

    def next_page_url(self) -> Optional[str]:
        cursor = self.next_cursor()
        return self.url(cursor) if cursor is not None else None

    def get_cursor_for_item(self, item: T, is_next: bool = True) -> Cursor:
        return Cursor(self.get_parameters_for_item(item), is_next)

    def get_parameters_for_item(self, item: Any) -> Dict[str, Any]:
        if hasattr(item, "to_dict"):
            item = item.to_dict()
        if not isinstance(item, Mapping):
            raise SqlweaveError("Only mappings are supported when cursor paginating items.")
        parameters = {}
        for parameter in self.parameters:
            value = item[parameter] if parameter in item else item.get(parameter.split(".")[-1])
            parameters[parameter] = self.ensure_parameter_is_primitive(value)
        return parameters

    @staticmethod
    def ensure_parameter_is_primitive(value: Any) -> Any:
        if value is None or isinstance(value, (str, int, float, bool)):
            return value
        return str(value)

    def to_dict(self) -> Dict[str, Any]:
        next_cursor = self.next_cursor()
        previous_cursor = self.previous_cursor()
        return {
            "data": self.items(),
            "path": self.path(),
            "per_page": self.per_page(),
            "next_cursor": next_cursor.encode() if next_cursor is not None else None,
            "next_page_url": self.next_page_url(),
            "prev_cursor": previous_cursor.encode() if previous_cursor is not None else None,
            "prev_page_url": self.previous_page_url(),
        }

    @staticmethod
    def resolve_current_cursor(page_name: str = "cursor", default: Optional[Cursor] = None) -> Optional[Cursor]:
        resolver = CursorPaginator._current_cursor_resolver
        return resolver(page_name) if resolver is not None else default

    @staticmethod
    def current_cursor_resolver(resolver: Optional[Callable[[str], Optional[Cursor]]]) -> None:
        CursorPaginator._current_cursor_resolver = resolver
