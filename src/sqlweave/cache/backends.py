"""Cache driver implementations for query results."""

from __future__ import annotations

import copy
import time
from dataclasses import dataclass, field, replace
from threading import RLock
from typing import Any, Dict, Mapping, Optional, Protocol


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class CacheEntry:
    """
    One cached select: ``time`` is the store timestamp and ``duration`` the
    lifetime, both in milliseconds.
    """

    key: str
    duration: int
    time: int
    options: Dict[str, Any] = field(default_factory=dict)
    result: Any = None

    @property
    def has_result(self) -> bool:
        return self.result is not None


class CacheDriver(Protocol):
    def get(self, entry: CacheEntry, options: Mapping[str, Any]) -> Optional[CacheEntry]: ...

    def store(self, entry: CacheEntry, options: Mapping[str, Any]) -> None: ...

    def is_expired(self, time: int, duration: int, options: Mapping[str, Any]) -> bool: ...

    def disconnect(self) -> None: ...


class NoOpCache:
    def __init__(self) -> None:
        self._lock = RLock()

    def get(self, entry: CacheEntry, options: Mapping[str, Any]) -> Optional[CacheEntry]:
        with self._lock:
            return None

    def store(self, entry: CacheEntry, options: Mapping[str, Any]) -> None:
        with self._lock:
            return None

    def is_expired(self, time: int, duration: int, options: Mapping[str, Any]) -> bool:
        return True

    def disconnect(self) -> None:
        with self._lock:
            return None


class InMemoryCache:
    """
    Process-local driver. Expired entries are evicted on read.
    """

    def __init__(self) -> None:
        self._store: Dict[str, CacheEntry] = {}
        self._lock = RLock()

    def get(self, entry: CacheEntry, options: Mapping[str, Any]) -> Optional[CacheEntry]:
        with self._lock:
            cached = self._store.get(entry.key)
            if cached is None:
                return None
            if self.is_expired(cached.time, cached.duration, options):
                self._store.pop(entry.key, None)
                return None
            return replace(cached, result=copy.deepcopy(cached.result))

    def store(self, entry: CacheEntry, options: Mapping[str, Any]) -> None:
        with self._lock:
            self._store[entry.key] = replace(entry, result=copy.deepcopy(entry.result))

    def is_expired(self, time: int, duration: int, options: Mapping[str, Any]) -> bool:
        return now_ms() - time > duration

    def forget(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def disconnect(self) -> None:
        self.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
