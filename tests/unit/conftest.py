"""Shared fixtures and fakes for unit tests."""

from __future__ import annotations

import typing as t
from unittest.mock import AsyncMock

import pytest

from musicboxd_cache.cache.memory_cache import MemoryCache
from musicboxd_cache.core.cached_reads import CachedReads
from musicboxd_cache.core.models import SocialStats, UserProfile
from musicboxd_cache.core.registry import CacheRegistry
from musicboxd_cache.storage import InMemoryReadStore
from musicboxd_cache.utils.config import CacheConfig


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_cache(clock):
    """Factory for caches on the fake clock, without a sweeper thread."""
    created: t.List[MemoryCache] = []

    def factory(**kwargs: t.Any) -> MemoryCache:
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("sweep_interval_seconds", None)
        cache = MemoryCache(**kwargs)
        created.append(cache)
        return cache

    yield factory
    for cache in created:
        cache.destroy()


@pytest.fixture
def registry(clock):
    reg = CacheRegistry(CacheConfig(sweep_interval_seconds=None), clock=clock)
    yield reg
    reg.destroy()


@pytest.fixture
def store():
    """In-memory store with two users, a few reviews and one follow."""
    s = InMemoryReadStore()
    s.add_user(1, "ana", profile_pic_url="/uploads/1.png")
    s.add_user(2, "bruno")
    s.add_review(1, "album-a", 5, "classic")
    s.add_review(1, "album-b", 3.5, "fine")
    s.add_review(1, "album-c", 4, "grower")
    s.add_review(2, "album-a", 2)
    s.follow(2, 1)
    s.notify(1, 3)
    return s


@pytest.fixture
def mock_store():
    """Mock read store."""
    store = AsyncMock()
    store.fetch_profile = AsyncMock(return_value=UserProfile(user_id=1, username="ana", total_reviews=2, avg_stars=4.0))
    store.fetch_social_stats = AsyncMock(return_value=SocialStats(user_id=1, followers=3, following=1, reviews=2))
    store.fetch_top_reviews = AsyncMock(return_value=[])
    store.count_unread_notifications = AsyncMock(return_value=7)
    store.is_healthy = AsyncMock(return_value=True)
    return store


@pytest.fixture
def reads(store, registry):
    return CachedReads(store, registry, retry_attempts=1)
