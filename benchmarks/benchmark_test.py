import asyncio
import uuid
from typing import List

from bounded_zipf import Zipf

from lapse import Cache, Memoize

REQUESTS = 10000


def write_keys(cache: Cache, keys: List[str]):
    for key in keys:
        cache.set(key, key)


def read_keys(cache: Cache, keys: List[str]):
    for key in keys:
        v, ok = cache.get(key)
        assert v == key


def test_write(benchmark):
    def setup():
        cache = Cache[str]()
        _uuid = uuid.uuid4().int
        return (
            cache,
            [f"key:{i}:{_uuid}" for i in range(REQUESTS)],
        ), {}

    benchmark.pedantic(
        lambda cache, keys: write_keys(cache, keys),
        setup=setup,
        rounds=10,
    )


def test_read(benchmark):
    def setup():
        cache = Cache[str]()
        write_keys(cache, [f"key:{i}" for i in range(REQUESTS)])
        return (cache, [f"key:{i}" for i in range(REQUESTS)]), {}

    benchmark.pedantic(
        lambda cache, keys: read_keys(cache, keys),
        setup=setup,
        rounds=10,
    )


def test_invalidate_pattern(benchmark):
    def setup():
        cache = Cache[str]()
        write_keys(cache, [f"user:{i % 100}:{i}" for i in range(REQUESTS)])
        return (cache,), {}

    benchmark.pedantic(
        lambda cache: cache.invalidate_pattern("user:7:"),
        setup=setup,
        rounds=10,
    )


def test_get_or_set_zipf(benchmark):
    def setup():
        z = Zipf(1.0001, 10, REQUESTS)
        return (Cache[str](), [f"key:{z.get()}" for _ in range(REQUESTS)]), {}

    def run(cache: Cache, keys: List[str]):
        for key in keys:
            cache.get_or_set(key, lambda: key)

    benchmark.pedantic(run, setup=setup, rounds=10)


def test_memoize_async(benchmark):
    @Memoize()
    async def get(key: str) -> str:
        return key

    @get.key
    def _(key: str) -> str:
        return key

    keys = [f"key:{i % 1000}" for i in range(REQUESTS)]

    async def run():
        for key in keys:
            assert await get(key) == key

    benchmark(lambda: asyncio.run(run()))
