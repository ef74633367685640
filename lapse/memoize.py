import inspect
from datetime import timedelta
from functools import update_wrapper
from typing import Any, Callable, Optional, TypeVar, cast, no_type_check, overload

from typing_extensions import Concatenate, ParamSpec, Protocol

from lapse.cache import Cache
from lapse.keys import cache_key
from lapse.models import VT, CacheStats

S = TypeVar("S", contravariant=True)
P = ParamSpec("P")


class Cached(Protocol[S, P, VT]):
    _cache: "Cache[Any]"

    @overload
    def key(self, fn: Callable[P, str]) -> None: ...

    @overload
    def key(self, fn: Callable[Concatenate[S, P], str]) -> None: ...

    @overload
    def __call__(self, _arg_first: S, *args: P.args, **kwargs: P.kwargs) -> VT: ...

    @overload
    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> VT: ...

    def invalidate(self, *args: Any, **kwargs: Any) -> int: ...

    def cache_stats(self) -> CacheStats: ...

    def stop(self) -> None: ...


@no_type_check
def Wrapper(
    fn: Callable,
    ttl: Optional[timedelta],
    cache: Cache,
    is_async: bool,
    owns_cache: bool = False,
):
    _key_func = None
    _func = fn
    _cache = cache
    _ttl = ttl
    _is_async = is_async
    _owns_cache = owns_cache
    _name = f"{fn.__module__}.{fn.__qualname__}"

    def key(fn) -> None:
        nonlocal _key_func
        _key_func = fn

    def make_key(args, kwargs) -> str:
        if _key_func is not None:
            return _key_func(*args, **kwargs)
        return cache_key(
            "memoize", _name, params={"args": list(args), "kwargs": kwargs}
        )

    def cache_stats() -> CacheStats:
        return _cache.stats()

    def invalidate(*args, **kwargs) -> int:
        return _cache.invalidate(make_key(args, kwargs))

    def stop() -> None:
        if _owns_cache:
            _cache.stop()

    def fetch(*args, **kwargs):
        if _owns_cache:
            # private cache, sweep only once the function is in use
            _cache.start()
        key = make_key(args, kwargs)
        if _is_async:
            return _cache.aget_or_set(key, lambda: _func(*args, **kwargs), _ttl)
        return _cache.get_or_set(key, lambda: _func(*args, **kwargs), _ttl)

    fetch._cache = _cache
    fetch.key = key
    fetch.cache_stats = cache_stats
    fetch.invalidate = invalidate
    fetch.stop = stop
    return fetch


class Memoize:
    """
    Memoize decorator to cache function results. Register a key function with
    ``@fn.key`` to control the cache key, which is the recommended mode since keys
    built with lapse.keys.cache_key can be dropped with invalidate_pattern. Without
    one, the key is derived from the function name and a fingerprint of its arguments.

    Concurrent calls with the same key run the function once.

    :param ttl: timedelta to store the function result, the cache default if None.
    :param cache: cache instance to store results in. When omitted, each decorated
        function gets a private cache whose sweeper starts on the first call and
        stops with ``fn.stop()``.
    """

    def __init__(self, ttl: Optional[timedelta] = None, cache: Optional[Cache[Any]] = None):
        self.cache = cache
        self.ttl = ttl

    def __call__(self, fn: Callable[Concatenate[S, P], VT]) -> Cached[S, P, VT]:
        is_async = inspect.iscoroutinefunction(fn)
        if self.cache is None:
            wrapper = Wrapper(fn, self.ttl, Cache[Any](), is_async, owns_cache=True)
        else:
            wrapper = Wrapper(fn, self.ttl, self.cache, is_async)
        return cast(Cached[S, P, VT], update_wrapper(wrapper, fn))
