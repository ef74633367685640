import asyncio
import inspect
import logging
from concurrent.futures import CancelledError, Future
from datetime import timedelta
from typing import (
    Any,
    Awaitable,
    Callable,
    Generic,
    List,
    Optional,
    Pattern,
    Tuple,
    Union,
    cast,
)

from lapse.clock import Clock, MonotonicClock
from lapse.invalidator import Invalidator, Keys
from lapse.models import DEFAULT_TTL, VT, CacheStats, Metadata
from lapse.store import Store
from lapse.sweeper import Sweeper
from lapse.utils import ttl_seconds

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = timedelta(minutes=5)


def _retrieve(inner: "asyncio.Future[Any]") -> None:
    # mark the outcome as seen once nobody awaits it anymore
    if not inner.cancelled():
        inner.exception()


class Cache(Generic[VT]):
    """
    In-process TTL cache. Values are opaque, keys are strings. The expiry sweeper is
    not running until ``start`` is called, entries still expire lazily on read.

    get_or_set is single-flight: concurrent callers missing the same key share one
    factory call. The factory always runs outside the store lock.

    :param default_ttl: timedelta used when set/get_or_set get no ttl, five minutes by default.
    :param sweep_interval: time between two sweeper passes, five minutes by default.
    :param clock: timestamp source, monotonic clock by default.
    """

    def __init__(
        self,
        default_ttl: timedelta = DEFAULT_TTL,
        sweep_interval: timedelta = DEFAULT_SWEEP_INTERVAL,
        clock: Optional[Clock] = None,
    ):
        self.default_ttl = default_ttl
        self._clock = clock or MonotonicClock()
        self._store: Store[VT] = Store(self._clock)
        self._invalidator = Invalidator(self._store)
        self._sweeper = Sweeper(self._store, sweep_interval)

    def __len__(self) -> int:
        return len(self._store)

    def __enter__(self) -> "Cache[VT]":
        self.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self.stop()

    def start(self) -> None:
        self._sweeper.start()

    def stop(self) -> None:
        self._sweeper.stop()

    def close(self) -> None:
        self.stop()
        self._store.clear_all()

    def set(self, key: str, value: VT, ttl: Optional[timedelta] = None) -> None:
        """
        Add new data to cache. If the key already exists, the entry is replaced and its
        hit counter and creation time start over.

        :param key: cache key.
        :param value: cached value.
        :param ttl: timedelta to store the data, default_ttl if None. Zero or negative
            values are accepted and expire on the next read.
        """
        seconds = ttl_seconds(ttl, self.default_ttl)
        self._store.put(key, value, seconds)
        logger.debug("set %s, ttl %ss", key, seconds)

    def get(self, key: str) -> Tuple[Optional[VT], bool]:
        """
        Retrieve data with cache key. Return (value, True) on hit and (None, False) on
        miss, an expired entry is removed and counted as a miss.
        """
        v, ok = self._store.lookup(key)
        logger.debug("%s %s", "hit" if ok else "miss", key)
        return (v, ok)

    def has(self, key: str) -> bool:
        return self._store.contains(key)

    def touch(self, key: str, ttl: Optional[timedelta] = None) -> bool:
        """
        Refresh the expiry of a live key to ttl from now, keeping its value, hit
        counter and creation time. Statistics are not affected. Return False if the
        key is absent or expired.
        """
        return self._store.touch(key, ttl_seconds(ttl, self.default_ttl))

    def get_metadata(self, key: str) -> Tuple[Optional[Metadata], bool]:
        meta = self._store.metadata(key)
        return (meta, meta is not None)

    def keys(self) -> List[str]:
        return self._store.keys()

    def invalidate(self, keys: Keys) -> int:
        return self._invalidator.invalidate(keys)

    def invalidate_pattern(self, pattern: Union[str, Pattern[str]]) -> int:
        return self._invalidator.invalidate_pattern(pattern)

    def clear(self) -> int:
        removed = self._store.clear_all()
        logger.info("cleared all entries (%d items)", removed)
        return removed

    def stats(self) -> CacheStats:
        return self._store.stats()

    def reset_stats(self) -> None:
        self._store.reset_stats()
        logger.debug("statistics reset")

    def get_or_set(
        self, key: str, factory: Callable[[], VT], ttl: Optional[timedelta] = None
    ) -> VT:
        """
        Return the cached value for key, or compute it with factory, cache it and
        return it. Exceptions raised by factory propagate unchanged to every caller
        waiting on the same key and nothing is cached.

        :param key: cache key.
        :param factory: function computing the value on miss.
        :param ttl: timedelta to store the computed value, default_ttl if None.
        """
        seconds = ttl_seconds(ttl, self.default_ttl)
        v, ok = self._store.lookup(key)
        if ok:
            return cast(VT, v)

        while True:
            v, ok, future, leader = self._store.claim(key)
            if ok:
                return cast(VT, v)
            if leader:
                try:
                    value = factory()
                except BaseException as e:
                    self._abandon(key, future, e)
                    raise
                return self._fill(key, future, value, seconds)
            try:
                return future.result()
            except CancelledError:
                # leader gave up without a result, compete again
                continue

    async def aget_or_set(
        self,
        key: str,
        factory: Callable[[], Union[Awaitable[VT], VT]],
        ttl: Optional[timedelta] = None,
    ) -> VT:
        """
        Async version of get_or_set. factory may return an awaitable or a plain value.
        If the calling task is cancelled while factory runs, nothing is cached and the
        cancellation propagates, tasks waiting on the same key then retry.
        """
        seconds = ttl_seconds(ttl, self.default_ttl)
        v, ok = self._store.lookup(key)
        if ok:
            return cast(VT, v)

        while True:
            v, ok, future, leader = self._store.claim(key)
            if ok:
                return cast(VT, v)
            if leader:
                try:
                    result = factory()
                    if inspect.isawaitable(result):
                        result = await result
                except BaseException as e:
                    self._abandon(key, future, e)
                    raise
                return self._fill(key, future, cast(VT, result), seconds)
            inner = asyncio.wrap_future(future)
            try:
                # raises only when this task is cancelled, inner keeps running
                await asyncio.wait({inner})
            except asyncio.CancelledError:
                inner.add_done_callback(_retrieve)
                raise
            if inner.cancelled():
                # leader gave up without a result, compete again
                continue
            return inner.result()

    def _fill(self, key: str, future: "Future[VT]", value: VT, seconds: float) -> VT:
        self._store.fill(key, future, value, seconds)
        logger.debug("set %s from factory, ttl %ss", key, seconds)
        return value

    def _abandon(self, key: str, future: "Future[VT]", error: BaseException) -> None:
        self._store.release(key, future)
        if isinstance(error, Exception):
            future.set_exception(error)
        else:
            # cancellation or interrupt, waiters retry instead of inheriting it
            future.cancel()
        logger.debug("factory for %s failed: %r", key, error)
