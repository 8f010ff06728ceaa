"""
In-process cache with absolute expiration.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    expires_at: datetime

    def is_live(self, now: datetime) -> bool:
        return now < self.expires_at


class MemoryCache:
    """Keyed store whose entries expire at a fixed point in time.

    Expired entries are dropped lazily on the next lookup. Writes replace the
    whole entry, so concurrent writers never leave a slot half-updated.
    """

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str, now: datetime) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_live(now):
            self._entries.pop(key, None)
            return None
        return entry

    def set(self, key: str, value: T, expires_at: datetime) -> CacheEntry[T]:
        entry = CacheEntry(value=value, expires_at=expires_at)
        self._entries[key] = entry
        return entry

    def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries
