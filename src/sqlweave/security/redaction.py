"""Redaction helpers for DSN options and logged bindings."""

from __future__ import annotations

from typing import Any, Iterable

REDACTED_VALUE = "***"

_SENSITIVE_TOKENS = (
    "password",
    "passwd",
    "pwd",
    "secret",
    "token",
    "apikey",
    "api_key",
    "access_key",
    "private_key",
    "sslkey",
    "ssl_key",
    "bearer",
    "authorization",
)


def _compact(value: str) -> str:
    return "".join(ch for ch in value if ch.isalnum())


def is_sensitive_key(key: str) -> bool:
    normalized = key.lower()
    compact = _compact(normalized)
    return any(token in normalized or _compact(token) in compact for token in _SENSITIVE_TOKENS)


def is_sensitive_value(value: str) -> bool:
    normalized = value.lower()
    return any(token in normalized for token in _SENSITIVE_TOKENS)


def redact_query_params(query: dict[str, str]) -> dict[str, str]:
    return {key: REDACTED_VALUE if is_sensitive_key(key) else val for key, val in query.items()}


def redact_value(value: Any) -> Any:
    """
    Mask a single binding for log output.

    Binary payloads are summarised by size so log records never carry raw bytes.
    """

    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"<bytes[{len(bytes(value))}]>"
    if isinstance(value, str) and is_sensitive_value(value):
        return REDACTED_VALUE
    if isinstance(value, (list, tuple)):
        return type(value)(redact_value(item) for item in value)
    return value


def redact_params(params: Iterable[Any] | None) -> list[Any]:
    return [redact_value(value) for value in params or ()]
