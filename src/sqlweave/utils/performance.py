"""
Slow query threshold resolution.
"""

from __future__ import annotations

import os

SLOW_QUERY_ENV = "SQLWEAVE_SLOW_QUERY_MS"


def resolve_slow_query_ms(*, default: int = 100, override: int | None = None) -> int:
    """
    Resolve the slow query threshold used when timing driver calls.

    An explicit override wins, then the ``SQLWEAVE_SLOW_QUERY_MS`` environment
    variable, then ``default``. Invalid or negative environment values are
    ignored.
    """

    if override is not None:
        if override < 0:
            raise ValueError("slow_query_ms must be zero or positive.")
        return override
    value = os.getenv(SLOW_QUERY_ENV)
    if value:
        try:
            parsed = int(value)
        except ValueError:
            return default
        if parsed >= 0:
            return parsed
    return default
