"""
Per-connection query cache orchestration.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from ..errors import CacheConfigurationError
from ..utils import get_logger
from .backends import CacheDriver, CacheEntry, now_ms

DEFAULT_DURATION_MS = 60000
SHARED_CACHE = "all"


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def hash_query(sql: str, bindings: Sequence[Any]) -> str:
    payload = f"{sql}{json.dumps(list(bindings), default=_json_default, separators=(',', ':'))}"
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


class CacheManager:
    """
    Resolves cache drivers per connection name and builds cache entries.

    ``config`` carries the global cache settings under ``cache`` and the
    per-connection settings under ``connections.<name>.cache``. A ``resolver``
    at the global level yields one driver shared by every connection without
    its own resolver.
    """

    def __init__(self, config: Mapping[str, Any]) -> None:
        self._cache_map: Dict[str, str] = {}
        self._cache_config: Dict[str, Dict[str, Any]] = {}
        self._caches: Dict[str, CacheDriver] = {}
        self.logger = get_logger("cache.manager")
        self._create_caches(config)

    def _create_caches(self, config: Mapping[str, Any]) -> None:
        shared = dict(config.get("cache") or {})
        shared_resolver = shared.pop("resolver", None)
        if shared_resolver is not None:
            self._caches[SHARED_CACHE] = shared_resolver()

        for name, connection in (config.get("connections") or {}).items():
            local = dict(connection.get("cache") or {})
            resolver = local.pop("resolver", None)
            if resolver is not None:
                self._caches[name] = resolver()
                self._cache_map[name] = name
            elif shared_resolver is not None:
                self._cache_map[name] = SHARED_CACHE
            self._cache_config[name] = _merge(shared, local)

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #
    def get_cache_config(self, connection_name: str) -> Dict[str, Any]:
        return self._cache_config.get(connection_name, {})

    def get_cache(self, connection_name: str) -> Optional[CacheDriver]:
        """Driver for a configured connection, ``None`` when it caches nothing."""
        if connection_name not in self._cache_config:
            raise CacheConfigurationError(f"Cache for connection [{connection_name}] not configured.")
        name = self._cache_map.get(connection_name)
        if name is None:
            return None
        return self._caches.get(name)

    def generate_entry(
        self,
        connection_name: str,
        sql: str,
        bindings: Sequence[Any],
        *,
        cache: bool | int | Callable[[], int] | None = None,
        key: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Optional[CacheEntry]:
        config = self.get_cache_config(connection_name)

        if cache is False:
            return None
        if cache is None:
            if not config.get("always"):
                return None
            cache = True
        if cache is True:
            configured = config.get("duration")
            if configured is None:
                cache = DEFAULT_DURATION_MS
            else:
                cache = configured() if callable(configured) else configured
        duration = cache() if callable(cache) else cache

        prefix = config.get("prefix")
        cache_key = f"{connection_name}:"
        if prefix:
            cache_key += f"{prefix}:"
        if key:
            cache_key += f"{key}:"
        cache_key += hash_query(sql, bindings)

        return CacheEntry(
            key=cache_key,
            duration=int(duration),
            time=now_ms(),
            options=_merge(config.get("options") or {}, options or {}),
        )

    # ------------------------------------------------------------------ #
    # Driver pass-through
    # ------------------------------------------------------------------ #
    def is_expired(self, connection_name: str, time: int, duration: int, options: Mapping[str, Any]) -> bool:
        driver = self.get_cache(connection_name)
        if driver is None:
            return True
        return driver.is_expired(time, duration, options)

    def get(
        self,
        connection_name: str,
        sql: str,
        bindings: Sequence[Any],
        **query_options: Any,
    ) -> Optional[CacheEntry]:
        """
        Return the cached entry or, on a miss, the pending entry to store.

        ``None`` means caching is disabled for this query.
        """

        entry = self.generate_entry(connection_name, sql, bindings, **query_options)
        if entry is None:
            return None
        driver = self.get_cache(connection_name)
        if driver is None:
            return None
        cached = driver.get(entry, entry.options)
        if cached is not None:
            cached.options = entry.options
            self.logger.debug("Cache hit for %s", entry.key)
            return cached
        return entry

    def store(self, connection_name: str, entry: CacheEntry) -> None:
        driver = self.get_cache(connection_name)
        if driver is not None:
            driver.store(entry, entry.options)

    def terminate(self) -> None:
        for driver in self._caches.values():
            driver.disconnect()


def _merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged
