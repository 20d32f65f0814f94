"""musicboxd_cache

In-process TTL caches for the Musicboxd review site: one bounded,
LRU-evicting cache per namespace (profile, social stats, top reviews,
notification counts), a read-through service with explicit invalidation,
and a small diagnostics surface.
"""

from .cache import CacheEntry, CacheStats, MemoryCache
from .core.cached_reads import CachedReads
from .core.models import (
    ReviewSummary,
    SocialStats,
    UserProfile,
)
from .core.registry import CacheRegistry
from .core.stats_app import build_stats_app, cache_lifespan
from .storage import (
    InMemoryReadStore,
    ReadStore,
)
from .utils.config import AppConfig, CacheConfig, NamespaceConfig, ResilienceConfig

__all__ = [
    "MemoryCache",
    "CacheRegistry",
    "CachedReads",
    "ReadStore",
    "InMemoryReadStore",
    "CacheEntry",
    "CacheStats",
    "UserProfile",
    "SocialStats",
    "ReviewSummary",
    "AppConfig",
    "CacheConfig",
    "NamespaceConfig",
    "ResilienceConfig",
    "build_stats_app",
    "cache_lifespan",
]

__version__ = "0.1.0"
