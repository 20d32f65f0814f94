from .memory_cache import MemoryCache
from .models import CacheEntry, CacheStats

__all__ = ["MemoryCache", "CacheEntry", "CacheStats"]
