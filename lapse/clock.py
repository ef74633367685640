import time

from typing_extensions import Protocol


class Clock(Protocol):
    def now(self) -> float: ...


class MonotonicClock:
    """
    Default clock. Timestamps are seconds from ``time.monotonic``, so they are only
    meaningful relative to each other, never as calendar time.
    """

    def now(self) -> float:
        return time.monotonic()
