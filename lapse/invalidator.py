import logging
from typing import Iterable, Pattern, Union

from lapse.store import Store

logger = logging.getLogger(__name__)

Keys = Union[str, Iterable[str]]


class Invalidator:
    def __init__(self, store: Store) -> None:
        self._store = store

    def invalidate(self, keys: Keys) -> int:
        if isinstance(keys, str):
            keys = [keys]
        removed = self._store.remove_many(keys)
        logger.debug("invalidated %d keys", removed)
        return removed

    def invalidate_pattern(self, pattern: Union[str, Pattern[str]]) -> int:
        """
        Remove every key matching pattern. A str is a literal prefix, a compiled regular
        expression is searched as given. Keys are snapshotted first, so a key removed
        concurrently between the scan and the removal is simply skipped.

        :param pattern: key prefix or compiled regular expression.
        """
        if isinstance(pattern, str):
            matched = [key for key in self._store.keys() if key.startswith(pattern)]
        else:
            matched = [key for key in self._store.keys() if pattern.search(key)]
        removed = self.invalidate(matched)
        logger.debug("invalidated pattern %r, %d keys", pattern, removed)
        return removed
