import logging
from concurrent.futures import Future
from threading import Lock
from typing import Dict, Generic, Iterable, List, Optional, Tuple, cast

from lapse.clock import Clock
from lapse.models import VT, CacheStats, Entry, Metadata
from lapse.stats import StatsCollector

logger = logging.getLogger(__name__)

sentinel = object()


class Store(Generic[VT]):
    """
    Key to entry table. Every read-modify-write holds ``_mutex``; methods with a
    ``_nolock`` suffix expect the caller to hold it already.
    """

    def __init__(self, clock: Clock) -> None:
        self._map: Dict[str, Entry[VT]] = {}
        self._mutex = Lock()
        self._clock = clock
        self._stats = StatsCollector()
        # in-flight get_or_set computations
        self._inflight: Dict[str, "Future[VT]"] = {}

    def put(self, key: str, value: VT, ttl: float) -> None:
        with self._mutex:
            self._put_nolock(key, value, ttl)

    def _put_nolock(self, key: str, value: VT, ttl: float) -> None:
        self._map[key] = Entry(value, self._clock.now(), ttl)
        self._stats.set()

    def lookup(self, key: str) -> Tuple[Optional[VT], bool]:
        with self._mutex:
            entry = self._live_nolock(key)
            if entry is None:
                self._stats.miss()
                return (None, False)
            entry.hits += 1
            self._stats.hit()
            return (entry.value, True)

    def _live_nolock(self, key: str) -> Optional[Entry[VT]]:
        try:
            entry = self._map[key]
        except KeyError:
            return None
        if entry.expired(self._clock.now()):
            self._map.pop(key, sentinel)
            logger.debug("expired %s", key)
            return None
        return entry

    def contains(self, key: str) -> bool:
        with self._mutex:
            return self._live_nolock(key) is not None

    def metadata(self, key: str) -> Optional[Metadata]:
        with self._mutex:
            entry = self._live_nolock(key)
            if entry is None:
                return None
            return Metadata(
                entry.expires_at,
                entry.created_at,
                entry.hits,
                max(0.0, entry.expires_at - self._clock.now()),
            )

    def remove(self, key: str) -> bool:
        with self._mutex:
            return self._map.pop(key, sentinel) is not sentinel

    def remove_many(self, keys: Iterable[str]) -> int:
        removed = 0
        with self._mutex:
            for key in keys:
                if self._map.pop(key, sentinel) is not sentinel:
                    removed += 1
            self._stats.invalidated(removed)
        return removed

    def touch(self, key: str, ttl: float) -> bool:
        """
        Give a live entry a new ttl counted from now. Value, hits and creation time are
        kept and no statistics change. A zero or negative ttl removes the entry.
        """
        with self._mutex:
            entry = self._live_nolock(key)
            if entry is None:
                return False
            if ttl <= 0:
                del self._map[key]
            else:
                entry.expires_at = self._clock.now() + ttl
            return True

    def keys(self) -> List[str]:
        with self._mutex:
            return list(self._map)

    def clear_all(self) -> int:
        with self._mutex:
            removed = len(self._map)
            self._map.clear()
            self._stats.invalidated(removed)
            return removed

    # sweeper pass, expiry here is not a miss because nobody asked for the key
    def remove_expired(self) -> int:
        with self._mutex:
            now = self._clock.now()
            expired = [key for key, entry in self._map.items() if entry.expired(now)]
            for key in expired:
                del self._map[key]
            return len(expired)

    def stats(self) -> CacheStats:
        with self._mutex:
            return self._stats.snapshot(len(self._map))

    def reset_stats(self) -> None:
        with self._mutex:
            self._stats.reset()

    def claim(self, key: str) -> Tuple[Optional[VT], bool, "Future[VT]", bool]:
        """
        Second, locked half of get_or_set after a missed lookup. Returns
        (value, True, None, False) if another caller filled the key meanwhile,
        otherwise the shared future and whether this caller has to compute it.
        hits and misses are not updated here, the preceding lookup recorded the read.
        """
        with self._mutex:
            entry = self._live_nolock(key)
            if entry is not None:
                return (entry.value, True, cast("Future[VT]", None), False)
            future = self._inflight.get(key)
            if future is not None:
                return (None, False, future, False)
            future = Future()
            self._inflight[key] = future
            return (None, False, future, True)

    def fill(self, key: str, future: "Future[VT]", value: VT, ttl: float) -> None:
        with self._mutex:
            self._put_nolock(key, value, ttl)
            if self._inflight.get(key) is future:
                del self._inflight[key]
        future.set_result(value)

    def release(self, key: str, future: "Future[VT]") -> None:
        with self._mutex:
            if self._inflight.get(key) is future:
                del self._inflight[key]

    def __len__(self) -> int:
        with self._mutex:
            return len(self._map)
