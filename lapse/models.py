from datetime import timedelta
from typing import Generic, TypeVar

VT = TypeVar("VT")


class CacheTTL:
    ONE_MINUTE = timedelta(minutes=1)
    FIVE_MINUTES = timedelta(minutes=5)
    FIFTEEN_MINUTES = timedelta(minutes=15)
    THIRTY_MINUTES = timedelta(minutes=30)
    ONE_HOUR = timedelta(hours=1)
    SIX_HOURS = timedelta(hours=6)
    TWELVE_HOURS = timedelta(hours=12)
    ONE_DAY = timedelta(days=1)


DEFAULT_TTL = CacheTTL.FIVE_MINUTES


class Entry(Generic[VT]):
    __slots__ = ("value", "expires_at", "created_at", "hits")
    value: VT
    expires_at: float
    created_at: float
    hits: int

    def __init__(self, value: VT, created_at: float, ttl: float) -> None:
        self.value = value
        self.created_at = created_at
        self.expires_at = created_at + ttl
        self.hits = 0

    # zero or negative ttl never survives a read, even on a clock that has not moved
    def expired(self, now: float) -> bool:
        return now > self.expires_at or self.expires_at <= self.created_at


class CacheStats:
    def __init__(
        self, hits: int, misses: int, sets: int, invalidations: int, size: int
    ):
        self.hits = hits
        self.misses = misses
        self.sets = sets
        self.invalidations = invalidations
        self.size = size
        self.request_count = hits + misses
        self.hit_rate = 0.0
        if self.request_count > 0:
            self.hit_rate = round(hits / self.request_count * 100, 2)

    def __repr__(self) -> str:
        return (
            f"CacheStats(hits={self.hits}, misses={self.misses}, sets={self.sets}, "
            f"invalidations={self.invalidations}, size={self.size}, "
            f"hit_rate={self.hit_rate})"
        )


class Metadata:
    __slots__ = ("expires_at", "created_at", "hits", "ttl")

    def __init__(self, expires_at: float, created_at: float, hits: int, ttl: float):
        self.expires_at = expires_at
        self.created_at = created_at
        self.hits = hits
        self.ttl = ttl
