from __future__ import annotations

import logging
import signal
import threading
import time
import typing as t

from musicboxd_cache.cache.memory_cache import MemoryCache
from musicboxd_cache.utils.config import CacheConfig

_logger = logging.getLogger(__name__)

SignalHandler = t.Union[t.Callable[[int, t.Any], t.Any], int, None]


class CacheRegistry:
    """Owns one `MemoryCache` per namespace for the lifetime of the process.

    Built once at startup and handed to whatever needs a cache. Shutdown
    goes through `destroy()`, either directly, from an application
    lifespan, or from the handlers set up by `install_signal_handlers()`.
    """

    def __init__(
        self,
        config: t.Optional[CacheConfig] = None,
        clock: t.Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or CacheConfig()
        self._caches: t.Dict[str, MemoryCache] = {}
        for name, ns in self._config.namespaces():
            self._caches[name] = MemoryCache(
                default_ttl_seconds=ns.ttl_seconds,
                max_size=ns.max_size,
                sweep_interval_seconds=self._config.sweep_interval_seconds,
                single_flight=self._config.single_flight,
                name=name,
                clock=clock,
            )
        self._destroyed = False
        self._destroy_lock = threading.Lock()
        self._previous_handlers: t.Dict[int, SignalHandler] = {}

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def profile(self) -> MemoryCache:
        return self._caches["profile"]

    @property
    def social_stats(self) -> MemoryCache:
        return self._caches["social_stats"]

    @property
    def top_reviews(self) -> MemoryCache:
        return self._caches["top_reviews"]

    @property
    def notification_count(self) -> MemoryCache:
        return self._caches["notification_count"]

    def __getitem__(self, namespace: str) -> MemoryCache:
        return self._caches[namespace]

    def __iter__(self) -> t.Iterator[t.Tuple[str, MemoryCache]]:
        return iter(list(self._caches.items()))

    def stats(self) -> t.Dict[str, t.Dict[str, t.Any]]:
        return {name: cache.get_stats() for name, cache in self._caches.items()}

    def destroy(self) -> None:
        with self._destroy_lock:
            if self._destroyed:
                return
            self._destroyed = True
        _logger.info("Cleaning up caches...")
        for cache in self._caches.values():
            cache.destroy()

    def install_signal_handlers(
        self, signals: t.Iterable[int] = (signal.SIGTERM, signal.SIGINT)
    ) -> None:
        """Destroy every cache on the given signals, then defer to the prior handler.

        Must be called from the main thread.
        """
        for signum in signals:
            self._previous_handlers[signum] = signal.signal(signum, self._handle_signal)

    def restore_signal_handlers(self) -> None:
        for signum, previous in self._previous_handlers.items():
            signal.signal(signum, previous if previous is not None else signal.SIG_DFL)
        self._previous_handlers.clear()

    def _handle_signal(self, signum: int, frame: t.Any) -> None:
        _logger.info("Received signal %s", signum)
        self.destroy()
        previous = self._previous_handlers.get(signum)
        if callable(previous):
            previous(signum, frame)
        elif previous == signal.SIG_DFL:
            signal.signal(signum, signal.SIG_DFL)
            signal.raise_signal(signum)
