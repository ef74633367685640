import asyncio
from datetime import timedelta
from typing import Dict, Optional

from lapse import Cache, CacheTTL, Memoize, Metadata


@Memoize(timedelta(minutes=1))
def foo(id: int) -> Dict[str, int]:
    return {"id": id}


@foo.key
def _(id: int) -> str:
    return f"id-{id}"


class Bar:

    @Memoize(CacheTTL.ONE_MINUTE)
    def foo(self, id: int) -> Dict[str, int]:
        return {"id": id}

    @foo.key
    def _(self, id: int) -> str:
        return f"id-{id}"


@Memoize()
async def async_foo(id: int) -> Dict[str, int]:
    await asyncio.sleep(1)
    return {"id": id}


def run() -> None:
    v: Dict[str, int] = foo(12)
    bar = Bar()
    b: Dict[str, int] = bar.foo(13)

    client = Cache[int]()
    client.set("a", 1, CacheTTL.ONE_HOUR)
    v2, ok = client.get("a")
    vt: Optional[int] = v2
    okk: bool = ok
    computed: int = client.get_or_set("b", lambda: 2)
    meta, found = client.get_metadata("a")
    m: Optional[Metadata] = meta


async def run_async() -> None:
    v: Dict[str, int] = await async_foo(12)
    client = Cache[int]()
    computed: int = await client.aget_or_set("b", lambda: 2)
