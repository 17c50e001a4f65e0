"""
Fluent query building and compilation.
"""

from .builder import MISSING, QueryBuilder
from .grammars import GRAMMARS, QueryGrammar, get_query_grammar
from .join_clause import JoinClause
from .registry import CommonTableExpression, CycleDetection, Registry

__all__ = [
    "GRAMMARS",
    "MISSING",
    "CommonTableExpression",
    "CycleDetection",
    "JoinClause",
    "QueryBuilder",
    "QueryGrammar",
    "Registry",
    "get_query_grammar",
]
