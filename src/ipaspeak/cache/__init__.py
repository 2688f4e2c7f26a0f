"""In-process audio cache for ipaspeak."""

from .memory import AudioCache
from .models import CacheEntry, CacheStats

__all__ = ["AudioCache", "CacheEntry", "CacheStats"]
