import logging
from datetime import timedelta
from threading import Event, Lock, Thread
from typing import Optional

from lapse.store import Store

logger = logging.getLogger(__name__)


class Sweeper:
    """
    Background thread removing expired entries every ``interval``. Start and stop are
    idempotent, stop joins the thread.

    :param store: entry store to sweep.
    :param interval: time between two passes.
    """

    def __init__(self, store: Store, interval: timedelta) -> None:
        if interval.total_seconds() <= 0:
            raise ValueError("sweep interval must be positive")
        self._store = store
        self._interval = interval.total_seconds()
        self._thread: Optional[Thread] = None
        self._stopped = Event()
        self._mutex = Lock()

    @property
    def running(self) -> bool:
        with self._mutex:
            return self._thread is not None

    def start(self) -> None:
        with self._mutex:
            if self._thread is not None:
                return
            self._stopped = Event()
            self._thread = Thread(
                target=self._run, args=(self._stopped,), name="lapse-sweeper", daemon=True
            )
            self._thread.start()
        logger.info("started expiry sweeper (interval: %ss)", self._interval)

    def stop(self) -> None:
        with self._mutex:
            thread = self._thread
            if thread is None:
                return
            self._thread = None
            self._stopped.set()
        thread.join()
        logger.info("stopped expiry sweeper")

    def sweep(self) -> int:
        removed = self._store.remove_expired()
        if removed:
            logger.debug("swept %d expired entries", removed)
        return removed

    def _run(self, stopped: Event) -> None:
        while not stopped.wait(self._interval):
            try:
                self.sweep()
            except Exception:
                logger.exception("expiry sweep failed")
