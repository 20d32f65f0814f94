from __future__ import annotations

import typing as t
from dataclasses import dataclass


@dataclass
class CacheEntry:
    value: t.Any
    expires_at: float
    last_access: float
    created_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass
class CacheStats:
    """Monotonic counters kept by a single cache instance."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        if lookups == 0:
            return 0.0
        return self.hits / lookups

    def snapshot(self, size: int) -> t.Dict[str, t.Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "deletes": self.deletes,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "size": size,
            "hit_rate": self.hit_rate,
        }


