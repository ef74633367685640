from datetime import timedelta
from typing import Optional


def ttl_seconds(ttl: Optional[timedelta], default: timedelta) -> float:
    if ttl is None:
        ttl = default
    if not isinstance(ttl, timedelta):
        raise TypeError(f"ttl must be a timedelta, got {type(ttl).__name__}")
    return ttl.total_seconds()
