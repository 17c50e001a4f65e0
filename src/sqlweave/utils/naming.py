"""
Naming utilities for sqlweave.
"""

import re


_FIRST_CAP_RE = re.compile("(.)([A-Z][a-z]+)")
_ALL_CAP_RE = re.compile("([a-z0-9])([A-Z])")

_IRREGULAR_PLURALS = {
    "person": "people",
    "man": "men",
    "woman": "women",
    "child": "children",
    "mouse": "mice",
    "goose": "geese",
}

_UNCOUNTABLE = {"data", "equipment", "information", "media", "metadata", "news", "series", "species"}


def camel_to_snake(name: str) -> str:
    """
    Convert ``CamelCase`` names to ``snake_case`` for event naming.
    """
    step1 = _FIRST_CAP_RE.sub(r"\1_\2", name)
    snake = _ALL_CAP_RE.sub(r"\1_\2", step1).lower()
    return snake


def pluralize(word: str) -> str:
    """
    Pluralize an english table stem (``user`` -> ``users``, ``category`` -> ``categories``).

    Only the last underscore separated segment is inflected.
    """
    head, sep, last = word.rpartition("_")
    lowered = last.lower()
    if lowered in _UNCOUNTABLE:
        plural = last
    elif lowered in _IRREGULAR_PLURALS:
        plural = _IRREGULAR_PLURALS[lowered]
    elif re.search(r"[^aeiou]y$", lowered):
        plural = last[:-1] + "ies"
    elif re.search(r"(s|x|z|ch|sh)$", lowered):
        plural = last + "es"
    else:
        plural = last + "s"
    return f"{head}{sep}{plural}"
