"""Core module: cache registry, read-through service and diagnostics."""

from .cached_reads import CachedReads
from .models import ReviewSummary, SocialStats, UserProfile
from .registry import CacheRegistry
from .stats_app import build_stats_app, cache_lifespan

__all__ = [
    # Composition root
    "CacheRegistry",
    # Read-through service
    "CachedReads",
    # Diagnostics
    "build_stats_app",
    "cache_lifespan",
    # Models
    "UserProfile",
    "SocialStats",
    "ReviewSummary",
]
