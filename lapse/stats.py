from lapse.models import CacheStats


# counters are not synchronized on their own, every caller holds the store mutex
class StatsCollector:
    def __init__(self) -> None:
        self.hits = 0
        self.misses = 0
        self.sets = 0
        self.invalidations = 0

    def hit(self) -> None:
        self.hits += 1

    def miss(self) -> None:
        self.misses += 1

    def set(self) -> None:
        self.sets += 1

    def invalidated(self, count: int) -> None:
        self.invalidations += count

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.sets = 0
        self.invalidations = 0

    def snapshot(self, size: int) -> CacheStats:
        return CacheStats(self.hits, self.misses, self.sets, self.invalidations, size)
