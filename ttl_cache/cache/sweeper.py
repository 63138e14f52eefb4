"""
Background Sweep Module

Runs a cache's delete_expired() on a fixed interval in a daemon thread until
told to stop.

Lifecycle:
- The thread starts when the Sweeper is started (at Cache construction)
- stop() is a one-shot signal: it wakes the thread, which exits without
  sweeping again; stop() does not wait for the thread to finish
- A second stop() raises SweeperStoppedError
- An interval <= 0 means "never sweep": no thread is started, but stop()
  keeps the same one-shot contract
"""

import logging
import threading
from typing import Callable, Optional

from ..errors import SweeperStoppedError

logger = logging.getLogger(__name__)


class Sweeper:
    """
    Periodic expired-entry reclamation for a single cache.

    Attributes:
        interval: Seconds between sweeps
    """

    def __init__(self, sweep: Callable[[], int], interval: float, name: str = "ttl-cache-sweeper"):
        """
        Initialize the sweeper.

        Args:
            sweep: Callable performing one pass, returning the number of
                entries removed (Cache.delete_expired)
            interval: Seconds between passes; <= 0 disables sweeping
            name: Thread name
        """
        self.interval = interval
        self._sweep = sweep
        self._name = name
        self._stop_event = threading.Event()
        self._stop_lock = threading.Lock()
        self._stopped = False
        self._started = False
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the sweep thread. Called exactly once by the owning cache."""
        if self._started:
            raise RuntimeError("sweeper already started")
        self._started = True

        if self.interval <= 0:
            logger.debug(f"Sweep interval {self.interval} <= 0, expired entries will not be swept")
            return

        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        logger.info(f"Sweeper started (interval={self.interval}s)")

    def _run(self) -> None:
        # Event.wait returns True once stop() has been called
        while not self._stop_event.wait(self.interval):
            removed = self._sweep()
            if removed:
                logger.debug(f"Sweep removed {removed} expired entries")
        logger.info("Sweeper stopped")

    def stop(self) -> None:
        """
        Signal the sweep thread to exit.

        Returns immediately; use join() to wait for the thread.

        Raises:
            SweeperStoppedError: If stop() was already called
        """
        with self._stop_lock:
            if self._stopped:
                raise SweeperStoppedError("sweeper has already been stopped")
            self._stopped = True
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the sweep thread to exit (no-op if it never started)."""
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def stopped(self) -> bool:
        """True once stop() has been called."""
        return self._stopped

    def is_running(self) -> bool:
        """Check if the sweep thread is currently alive."""
        return self._thread is not None and self._thread.is_alive()
