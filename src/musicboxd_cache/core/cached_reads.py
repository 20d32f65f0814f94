from __future__ import annotations

import logging
import typing as t

from musicboxd_cache.storage import ReadStore
from musicboxd_cache.utils.resilience import CircuitBreaker, CircuitBreakerConfig, with_retries

from .models import ReviewSummary, SocialStats, UserProfile
from .registry import CacheRegistry

T = t.TypeVar("T")

_logger = logging.getLogger(__name__)

DEFAULT_TOP_REVIEWS_LIMIT = 5


def profile_key(user_id: int) -> str:
    return f"profile:{user_id}"


def social_stats_key(user_id: int) -> str:
    return f"social_stats:{user_id}"


def top_reviews_key(user_id: int, limit: int) -> str:
    return f"top_reviews:{user_id}:{limit}"


def notification_count_key(user_id: int) -> str:
    return f"notification_count:{user_id}"


class CachedReads:
    """Read-through access to profile, social, review and notification data.

    Request handlers call these methods instead of the store and call the
    matching `on_*` hook after every write. Invalidation is explicit: the
    caches never watch the store.
    """

    def __init__(
        self,
        store: ReadStore,
        caches: CacheRegistry,
        use_cache: t.Optional[bool] = None,
        circuit_breaker: t.Optional[CircuitBreaker] = None,
        retry_attempts: int = 3,
        retry_backoff_ms: t.Optional[t.List[int]] = None,
    ) -> None:
        self._store = store
        self._caches = caches
        self._use_cache = caches.config.enabled if use_cache is None else use_cache
        self._breaker = circuit_breaker or CircuitBreaker(CircuitBreakerConfig())
        self._retry_attempts = retry_attempts
        self._retry_backoff_ms = retry_backoff_ms or [100, 500, 2000]

    async def _fetch(self, op: t.Callable[[], t.Awaitable[T]]) -> T:
        return await self._breaker.run(lambda: with_retries(op, self._retry_attempts, self._retry_backoff_ms))

    async def profile(self, user_id: int) -> t.Optional[UserProfile]:
        # Unknown users are not cached so a fresh signup shows up immediately
        if self._use_cache:
            cached = self._caches.profile.get(profile_key(user_id))
            if cached is not None:
                return cached

        profile = await self._fetch(lambda: self._store.fetch_profile(user_id))
        if profile is not None and self._use_cache:
            self._caches.profile.set(profile_key(user_id), profile)
        return profile

    async def social_stats(self, user_id: int) -> SocialStats:
        async def _op() -> SocialStats:
            return await self._fetch(lambda: self._store.fetch_social_stats(user_id))

        if not self._use_cache:
            return await _op()
        return await self._caches.social_stats.get_or_set(social_stats_key(user_id), _op)

    async def top_reviews(self, user_id: int, limit: int = DEFAULT_TOP_REVIEWS_LIMIT) -> t.List[ReviewSummary]:
        async def _op() -> t.List[ReviewSummary]:
            return await self._fetch(lambda: self._store.fetch_top_reviews(user_id, limit))

        if not self._use_cache:
            return await _op()
        return await self._caches.top_reviews.get_or_set(top_reviews_key(user_id, limit), _op)

    async def notification_count(self, user_id: int) -> int:
        async def _op() -> int:
            return await self._fetch(lambda: self._store.count_unread_notifications(user_id))

        if not self._use_cache:
            return await _op()
        return await self._caches.notification_count.get_or_set(notification_count_key(user_id), _op)

    # Invalidation hooks

    def on_profile_changed(self, user_id: int) -> None:
        self._caches.profile.delete(profile_key(user_id))

    def on_review_changed(self, user_id: int) -> None:
        self._caches.profile.delete(profile_key(user_id))
        self._caches.social_stats.delete(social_stats_key(user_id))
        prefix = f"top_reviews:{user_id}:"
        removed = 0
        for key in self._caches.top_reviews.keys():
            if key.startswith(prefix) and self._caches.top_reviews.delete(key):
                removed += 1
        _logger.debug("Invalidated review caches for user %s (%d top-review keys)", user_id, removed)

    def on_follow_changed(self, follower_id: int, followee_id: int) -> None:
        self._caches.social_stats.delete(social_stats_key(follower_id))
        self._caches.social_stats.delete(social_stats_key(followee_id))

    def on_notifications_changed(self, user_id: int) -> None:
        self._caches.notification_count.delete(notification_count_key(user_id))
