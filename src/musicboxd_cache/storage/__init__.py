from .base import InMemoryReadStore, ReadStore

__all__ = [
    "ReadStore",
    "InMemoryReadStore",
]
