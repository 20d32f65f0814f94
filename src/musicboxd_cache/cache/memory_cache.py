from __future__ import annotations

import inspect
import logging
import threading
import time
import typing as t
from collections import OrderedDict

import anyio
import anyio.to_thread

from musicboxd_cache.monitoring.metrics import cache_sweep_seconds

from .models import CacheEntry, CacheStats

_logger = logging.getLogger(__name__)

_MISSING = object()

ComputeFn = t.Callable[[], t.Union[t.Any, t.Awaitable[t.Any]]]


class _Flight:
    """One in-progress computation shared by concurrent misses on a key.

    Waiters may live on other threads and event loops than the leader, so
    completion is signalled with a thread-level event.
    """

    def __init__(self) -> None:
        self.done = threading.Event()
        self.value: t.Any = _MISSING
        self.error: t.Optional[Exception] = None

    async def wait(self) -> None:
        if not self.done.is_set():
            await anyio.to_thread.run_sync(self.done.wait)


class MemoryCache:
    """In-process TTL cache with LRU eviction and hit/miss accounting.

    Entries past their expiry are treated as absent on read and removed
    lazily; a background sweeper thread reclaims the rest. Eviction order is
    last access, kept by the ordering of the underlying map: hits and sets
    move a key to the most recent end, `has` does not.

    All bookkeeping runs under one lock per instance, so a cache may be
    shared between threads and event loops. Only the compute function given to
    `get_or_set` runs outside the lock.
    """

    def __init__(
        self,
        default_ttl_seconds: float = 300.0,
        max_size: int = 1000,
        sweep_interval_seconds: t.Optional[float] = 300.0,
        single_flight: bool = True,
        name: str = "default",
        clock: t.Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be positive")
        self.name = name
        self._default_ttl = default_ttl_seconds
        self._max_size = max_size
        self._single_flight = single_flight
        self._clock = clock
        self._store: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._stats = CacheStats()
        self._lock = threading.Lock()
        self._in_flight: t.Dict[str, _Flight] = {}

        self._stop = threading.Event()
        self._sweeper: t.Optional[threading.Thread] = None
        if sweep_interval_seconds is not None and sweep_interval_seconds > 0:
            self._sweeper = threading.Thread(
                target=self._sweep_loop,
                args=(sweep_interval_seconds,),
                name=f"cache-sweeper-{name}",
                daemon=True,
            )
            self._sweeper.start()

    @property
    def default_ttl_seconds(self) -> float:
        return self._default_ttl

    @property
    def max_size(self) -> int:
        return self._max_size

    def _resolve_ttl(self, ttl_seconds: t.Optional[float]) -> float:
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")
        return ttl

    def _lookup(self, key: str) -> t.Any:
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._stats.misses += 1
                return _MISSING
            if entry.is_expired(now):
                del self._store[key]
                self._stats.expirations += 1
                self._stats.misses += 1
                return _MISSING
            entry.last_access = now
            self._store.move_to_end(key)
            self._stats.hits += 1
            return entry.value

    def get(self, key: str, default: t.Any = None) -> t.Any:
        value = self._lookup(key)
        return default if value is _MISSING else value

    def set(self, key: str, value: t.Any, ttl_seconds: t.Optional[float] = None) -> None:
        ttl = self._resolve_ttl(ttl_seconds)
        now = self._clock()
        with self._lock:
            if key not in self._store and len(self._store) >= self._max_size:
                self._evict_lru()
            self._store[key] = CacheEntry(value=value, expires_at=now + ttl, last_access=now, created_at=now)
            self._store.move_to_end(key)
            self._stats.sets += 1

    def _evict_lru(self) -> None:
        # caller holds the lock
        evicted_key, _ = self._store.popitem(last=False)
        self._stats.evictions += 1
        _logger.debug("Cache %s evicted %s", self.name, evicted_key)

    def delete(self, key: str) -> bool:
        with self._lock:
            if self._store.pop(key, None) is None:
                return False
            self._stats.deletes += 1
            return True

    def has(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return False
            if entry.is_expired(now):
                del self._store[key]
                self._stats.expirations += 1
                return False
            return True

    __contains__ = has

    def clear(self) -> None:
        with self._lock:
            removed = len(self._store)
            self._store.clear()
            self._stats.deletes += removed

    def keys(self) -> t.List[str]:
        now = self._clock()
        with self._lock:
            return [key for key, entry in self._store.items() if not entry.is_expired(now)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    async def get_or_set(
        self,
        key: str,
        compute_fn: ComputeFn,
        ttl_seconds: t.Optional[float] = None,
    ) -> t.Any:
        """Return the cached value for `key`, computing and storing it on a miss.

        `compute_fn` may be a plain callable or return an awaitable. Its
        exceptions propagate to the caller and nothing is cached. With
        single-flight enabled, concurrent misses on one key wait for the
        first caller's computation instead of starting their own.
        """
        ttl = self._resolve_ttl(ttl_seconds)
        value = self._lookup(key)
        if value is not _MISSING:
            return value

        if not self._single_flight:
            value = await _call(compute_fn)
            self.set(key, value, ttl)
            return value

        with self._lock:
            joined = self._in_flight.get(key)
            if joined is None:
                flight = self._in_flight[key] = _Flight()

        if joined is not None:
            await joined.wait()
            if joined.error is not None:
                raise joined.error
            if joined.value is _MISSING:
                # leader was cancelled before producing a value
                return await self.get_or_set(key, compute_fn, ttl)
            return joined.value

        try:
            value = await _call(compute_fn)
            self.set(key, value, ttl)
            flight.value = value
            return value
        except Exception as exc:
            flight.error = exc
            raise
        finally:
            with self._lock:
                self._in_flight.pop(key, None)
            flight.done.set()

    def get_stats(self) -> t.Dict[str, t.Any]:
        with self._lock:
            return self._stats.snapshot(len(self._store))

    def sweep(self) -> int:
        """Remove every expired entry and return how many were removed."""
        started = time.perf_counter()
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
            for key in expired:
                del self._store[key]
            self._stats.expirations += len(expired)
        cache_sweep_seconds.observe(time.perf_counter() - started, namespace=self.name)
        if expired:
            _logger.info("Cache %s cleanup: removed %d expired entries", self.name, len(expired))
        return len(expired)

    def _sweep_loop(self, interval: float) -> None:
        while not self._stop.wait(interval):
            self.sweep()

    def destroy(self) -> None:
        self._stop.set()
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is not None and sweeper is not threading.current_thread():
            sweeper.join(timeout=1.0)
        self.clear()


async def _call(compute_fn: ComputeFn) -> t.Any:
    result = compute_fn()
    if inspect.isawaitable(result):
        result = await result
    return result
