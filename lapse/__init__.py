from lapse.cache import Cache
from lapse.clock import Clock, MonotonicClock
from lapse.keys import cache_key, owner_pattern
from lapse.memoize import Memoize
from lapse.models import DEFAULT_TTL, CacheStats, CacheTTL, Metadata

__all__ = [
    "Cache",
    "CacheStats",
    "CacheTTL",
    "Clock",
    "DEFAULT_TTL",
    "Memoize",
    "Metadata",
    "MonotonicClock",
    "cache_key",
    "owner_pattern",
]
