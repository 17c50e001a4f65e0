"""
Clause registry consumed by the query grammars.

Every clause is an explicit variant carrying a ``type`` tag; the grammar
dispatches on the tag (``compile_where_<type>``), so a new clause kind is a
new dataclass plus one compiler method.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Optional, Union

from ..expression import Expression

if TYPE_CHECKING:
    from .builder import QueryBuilder

Stringable = Union[str, Expression]

BINDING_TYPES = (
    "expressions",
    "select",
    "from",
    "join",
    "where",
    "group_by",
    "having",
    "order",
    "union",
    "union_order",
)


# ---------------------------------------------------------------------- #
# Where clauses
# ---------------------------------------------------------------------- #
@dataclass(kw_only=True)
class Where:
    type: ClassVar[str] = "basic"

    boolean: str = "and"
    not_: bool = False


@dataclass(kw_only=True)
class WhereBasic(Where):
    type: ClassVar[str] = "basic"

    column: Stringable
    operator: str
    value: Any


@dataclass(kw_only=True)
class WhereBitwise(WhereBasic):
    type: ClassVar[str] = "bitwise"


@dataclass(kw_only=True)
class WhereRaw(Where):
    type: ClassVar[str] = "raw"

    sql: str


@dataclass(kw_only=True)
class WhereIn(Where):
    type: ClassVar[str] = "in"

    column: Stringable
    values: List[Any] = field(default_factory=list)


@dataclass(kw_only=True)
class WhereInRaw(Where):
    type: ClassVar[str] = "in_raw"

    column: Stringable
    values: List[Union[int, str]] = field(default_factory=list)


@dataclass(kw_only=True)
class WhereInSub(Where):
    type: ClassVar[str] = "in_sub"

    column: Stringable
    query: "QueryBuilder"


@dataclass(kw_only=True)
class WhereNull(Where):
    type: ClassVar[str] = "null"

    column: Stringable


@dataclass(kw_only=True)
class WhereBetween(Where):
    type: ClassVar[str] = "between"

    column: Stringable
    values: List[Any] = field(default_factory=list)


@dataclass(kw_only=True)
class WhereBetweenColumns(Where):
    type: ClassVar[str] = "between_columns"

    column: Stringable
    values: List[Stringable] = field(default_factory=list)


@dataclass(kw_only=True)
class WhereDateTime(Where):
    type: ClassVar[str] = "date_time"

    part: str
    column: Stringable
    operator: str
    value: Any


@dataclass(kw_only=True)
class WhereColumn(Where):
    type: ClassVar[str] = "column"

    first: Stringable
    operator: str
    second: Stringable


@dataclass(kw_only=True)
class WhereNested(Where):
    type: ClassVar[str] = "nested"

    query: "QueryBuilder"


@dataclass(kw_only=True)
class WhereSub(Where):
    type: ClassVar[str] = "sub"

    column: Stringable
    operator: str
    query: "QueryBuilder"


@dataclass(kw_only=True)
class WhereExists(Where):
    type: ClassVar[str] = "exists"

    query: "QueryBuilder"


@dataclass(kw_only=True)
class WhereRowValues(Where):
    type: ClassVar[str] = "row_values"

    columns: List[Stringable]
    operator: str
    values: List[Any]


@dataclass(kw_only=True)
class WhereFulltext(Where):
    type: ClassVar[str] = "fulltext"

    columns: List[Stringable]
    value: Any
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass(kw_only=True)
class WhereJsonBoolean(WhereBasic):
    type: ClassVar[str] = "json_boolean"


@dataclass(kw_only=True)
class WhereJsonContains(Where):
    type: ClassVar[str] = "json_contains"

    column: Stringable
    value: Any


@dataclass(kw_only=True)
class WhereJsonContainsKey(Where):
    type: ClassVar[str] = "json_contains_key"

    column: Stringable


@dataclass(kw_only=True)
class WhereJsonLength(Where):
    type: ClassVar[str] = "json_length"

    column: Stringable
    operator: str
    value: Any


# ---------------------------------------------------------------------- #
# Having clauses
# ---------------------------------------------------------------------- #
@dataclass(kw_only=True)
class Having:
    type: ClassVar[str] = "basic"

    boolean: str = "and"
    not_: bool = False


@dataclass(kw_only=True)
class HavingBasic(Having):
    type: ClassVar[str] = "basic"

    column: Stringable
    operator: str
    value: Any


@dataclass(kw_only=True)
class HavingBitwise(HavingBasic):
    type: ClassVar[str] = "bitwise"


@dataclass(kw_only=True)
class HavingRaw(Having):
    type: ClassVar[str] = "raw"

    sql: str


@dataclass(kw_only=True)
class HavingBetween(Having):
    type: ClassVar[str] = "between"

    column: Stringable
    values: List[Any] = field(default_factory=list)


@dataclass(kw_only=True)
class HavingNull(Having):
    type: ClassVar[str] = "null"

    column: Stringable


@dataclass(kw_only=True)
class HavingNested(Having):
    type: ClassVar[str] = "nested"

    query: "QueryBuilder"


# ---------------------------------------------------------------------- #
# Other clauses
# ---------------------------------------------------------------------- #
@dataclass
class Order:
    column: Stringable
    direction: str = "asc"


@dataclass
class OrderRaw:
    sql: str


@dataclass
class Aggregate:
    function: str
    columns: List[Stringable]


@dataclass
class Union_:
    query: "QueryBuilder"
    all: bool = False


@dataclass(frozen=True)
class IndexHint:
    type: str
    index: str


@dataclass(frozen=True)
class CycleDetection:
    columns: List[str]
    marker_column: str = "is_cycle"
    path_column: str = "path"


@dataclass
class CommonTableExpression:
    name: str
    query: "QueryBuilder | Expression | str"
    columns: List[str] = field(default_factory=list)
    recursive: bool = False
    materialized: Optional[bool] = None
    cycle: Optional[CycleDetection] = None


# ---------------------------------------------------------------------- #
# Registry
# ---------------------------------------------------------------------- #
def _empty_bindings() -> Dict[str, List[Any]]:
    return {key: [] for key in BINDING_TYPES}


@dataclass
class Registry:
    """
    Append-only clause state for one query builder.
    """

    use_write_connection: bool = False
    bindings: Dict[str, List[Any]] = field(default_factory=_empty_bindings)
    aggregate: Optional[Aggregate] = None
    columns: Optional[List[Stringable]] = None
    distinct: Union[bool, List[Stringable]] = False
    from_: Stringable = ""
    index_hint: Optional[IndexHint] = None
    joins: List[Any] = field(default_factory=list)
    wheres: List[Where] = field(default_factory=list)
    groups: List[Stringable] = field(default_factory=list)
    havings: List[Having] = field(default_factory=list)
    orders: List[Union[Order, OrderRaw]] = field(default_factory=list)
    limit: Optional[int] = None
    offset: Optional[int] = None
    unions: List[Union_] = field(default_factory=list)
    union_limit: Optional[int] = None
    union_offset: Optional[int] = None
    union_orders: List[Union[Order, OrderRaw]] = field(default_factory=list)
    lock: Union[bool, str, None] = None
    expressions: List[CommonTableExpression] = field(default_factory=list)
    recursion_limit: Optional[int] = None
    before_query_callbacks: List[Any] = field(default_factory=list)

    def flat_bindings(self, exclude: tuple[str, ...] = ()) -> List[Any]:
        flattened: List[Any] = []
        for key in BINDING_TYPES:
            if key in exclude:
                continue
            flattened.extend(self.bindings[key])
        return flattened

    def clone(self, *, without: tuple[str, ...] = (), without_bindings: tuple[str, ...] = ()) -> "Registry":
        cloned = Registry()
        for item in dataclasses.fields(self):
            if item.name in without:
                continue
            setattr(cloned, item.name, _clone_value(getattr(self, item.name)))
        for key in without_bindings:
            cloned.bindings[key] = []
        return cloned


def _clone_clause(clause: Any) -> Any:
    if not dataclasses.is_dataclass(clause) or isinstance(clause, type):
        return clause
    changes = {}
    for item in dataclasses.fields(clause):
        value = getattr(clause, item.name)
        if hasattr(value, "clone") and callable(value.clone):
            changes[item.name] = value.clone()
        elif isinstance(value, (list, dict)):
            changes[item.name] = _clone_value(value)
    if not changes:
        return dataclasses.replace(clause)
    return dataclasses.replace(clause, **changes)


def _clone_value(value: Any) -> Any:
    if isinstance(value, list):
        return [item.clone() if hasattr(item, "clone") and not dataclasses.is_dataclass(item) else _clone_clause(item) for item in value]
    if isinstance(value, dict):
        return {key: _clone_value(item) for key, item in value.items()}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _clone_clause(value)
    return value
