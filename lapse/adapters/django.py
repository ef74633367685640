from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Union, cast

from django.core.cache.backends.base import BaseCache, DEFAULT_TIMEOUT

from lapse import Cache as Lapse
from lapse.store import sentinel

KEY_TYPE = Union[str, Callable[..., str]]
VALUE_TYPE = Any
VERSION_TYPE = Optional[int]

# django uses None for "never expire", entries here always carry a ttl
NEVER_EXPIRE = timedelta(days=365 * 100)


class Cache(BaseCache):
    """
    Django cache backend. Options: ``SWEEP_INTERVAL`` in seconds, 300 by default.
    """

    def __init__(self, name: str, params: Dict[str, Any]):
        super().__init__(params)
        options = params.get("OPTIONS", {})
        interval = timedelta(seconds=options.get("SWEEP_INTERVAL", 300))
        self.cache = Lapse[Any](sweep_interval=interval)
        self.cache.start()

    def _ttl(self, timeout: "Optional[Union[float, DEFAULT_TIMEOUT]]") -> timedelta:
        if timeout is DEFAULT_TIMEOUT:
            timeout = self.default_timeout
        if timeout is None:
            return NEVER_EXPIRE
        return timedelta(seconds=cast(float, timeout))

    def add(
        self,
        key: KEY_TYPE,
        value: VALUE_TYPE,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        version: VERSION_TYPE = None,
    ) -> bool:
        data = self.get(key, sentinel, version)
        if data is not sentinel:
            return False
        self.set(key, value, timeout, version)
        return True

    def get(
        self,
        key: KEY_TYPE,
        default: Optional[VALUE_TYPE] = None,
        version: VERSION_TYPE = None,
    ) -> Optional[VALUE_TYPE]:
        key = self.make_key(key, version)
        v, ok = self.cache.get(key)
        if not ok:
            return default
        return v

    def set(
        self,
        key: KEY_TYPE,
        value: VALUE_TYPE,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        version: VERSION_TYPE = None,
    ) -> None:
        ttl = self._ttl(timeout)
        if ttl.total_seconds() <= 0:
            self.delete(key, version)
            return
        key = self.make_key(key, version)
        self.cache.set(key, value, ttl)

    def touch(
        self,
        key: KEY_TYPE,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        version: VERSION_TYPE = None,
    ) -> bool:
        return self.cache.touch(self.make_key(key, version), self._ttl(timeout))

    def has_key(self, key: KEY_TYPE, version: VERSION_TYPE = None) -> bool:
        return self.cache.has(self.make_key(key, version))

    def delete(self, key: KEY_TYPE, version: VERSION_TYPE = None) -> bool:
        key = self.make_key(key, version)
        return self.cache.invalidate(key) > 0

    def delete_pattern(self, prefix: str, version: VERSION_TYPE = None) -> int:
        """
        Delete every key starting with prefix, e.g. all entries of one user.
        """
        return self.cache.invalidate_pattern(self.make_key(prefix, version))

    def clear(self) -> None:
        self.cache.clear()

    def close(self, **kwargs: Any) -> None:
        # called by django at the end of each request, entries must survive it
        return
