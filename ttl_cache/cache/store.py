"""
Cache Store Module

This module implements the core key-value cache: storage, TTL expiration,
the reader/writer lock discipline, the background sweep, and snapshot
save/load.

Expiration is lazy on read: get() treats an expired entry as absent but
leaves it in place. Expired entries are physically removed only by
delete_expired() (run periodically by the sweeper), delete(), an overwrite,
or flush().
"""

import logging
import os
import time
from typing import Any, BinaryIO, Dict, Optional, Tuple, Union

from ..config.settings import settings
from ..errors import AlreadyExistsError, CacheIOError, NotFoundError
from ..persistence import snapshot
from .entry import DEFAULT_EXPIRATION, TTL, Entry, expiration_for, to_seconds
from .rwlock import ReadWriteLock
from .sweeper import Sweeper

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


class Cache:
    """
    Thread-safe in-process cache with per-entry TTL.

    A single reader/writer lock guards the whole mapping:
    - get, count, items, get_stats and save take the read lock
    - set, add, replace, delete, delete_expired, flush and load take the
      write lock

    add() and replace() hold the write lock across their existence check
    and their write, so concurrent add() calls for one key have exactly one
    winner.

    TTL values passed to writes:
    - NO_EXPIRATION (-1): the entry never expires
    - DEFAULT_EXPIRATION (0): use the cache's default_ttl
    - a positive number of seconds (or a timedelta)

    Internal Storage:
        Format: key -> Entry(value, expires_at)
        expires_at = 0 means no expiration

    Usage:
        cache = Cache(default_ttl=300, sweep_interval=60)
        cache.set("user:1", {"name": "Ada"})
        value, found = cache.get("user:1")
        cache.stop_sweep()

    Attributes:
        default_ttl: TTL applied when a write passes DEFAULT_EXPIRATION
        sweep_interval: Seconds between background sweeps (<= 0 disables)
    """

    def __init__(self, default_ttl: Optional[TTL] = None, sweep_interval: Optional[TTL] = None):
        """
        Initialize the cache and start its background sweep.

        Args:
            default_ttl: Default TTL (default from settings.DEFAULT_TTL)
            sweep_interval: Seconds between sweeps (default from
                settings.SWEEP_INTERVAL); <= 0 means expired entries are
                never swept in the background
        """
        self.default_ttl = default_ttl if default_ttl is not None else settings.DEFAULT_TTL
        self.sweep_interval = to_seconds(
            sweep_interval if sweep_interval is not None else settings.SWEEP_INTERVAL
        )

        self._items: Dict[str, Entry] = {}
        self._lock = ReadWriteLock()

        self._sweeper = Sweeper(self.delete_expired, self.sweep_interval)
        self._sweeper.start()

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def _set(self, key: str, value: Any, ttl: TTL) -> None:
        # Caller holds the write lock
        self._items[key] = Entry(value, expiration_for(ttl, self.default_ttl, time.time_ns()))

    def _get(self, key: str) -> Tuple[Any, bool]:
        # Caller holds the lock in either mode
        entry = self._items.get(key)
        if entry is None or entry.is_expired(time.time_ns()):
            return None, False
        return entry.value, True

    def set(self, key: str, value: Any, ttl: TTL = DEFAULT_EXPIRATION) -> None:
        """
        Insert or overwrite a key unconditionally.

        Args:
            key: The key to store
            value: Any value
            ttl: Seconds to live, NO_EXPIRATION or DEFAULT_EXPIRATION
        """
        with self._lock.write_locked():
            self._set(key, value, ttl)

    def get(self, key: str) -> Tuple[Any, bool]:
        """
        Retrieve the value for a key.

        An expired entry is reported as missing but is not removed here.

        Returns:
            (value, True) if the key holds a live entry, (None, False)
            otherwise
        """
        with self._lock.read_locked():
            return self._get(key)

    def add(self, key: str, value: Any, ttl: TTL = DEFAULT_EXPIRATION) -> None:
        """
        Store a key only if it does not hold a live entry.

        Raises:
            AlreadyExistsError: If the key holds a live entry
        """
        with self._lock.write_locked():
            _, found = self._get(key)
            if found:
                raise AlreadyExistsError(key)
            self._set(key, value, ttl)

    def replace(self, key: str, value: Any, ttl: TTL = DEFAULT_EXPIRATION) -> None:
        """
        Store a key only if it already holds a live entry.

        Raises:
            NotFoundError: If the key is missing or expired
        """
        with self._lock.write_locked():
            _, found = self._get(key)
            if not found:
                raise NotFoundError(key)
            self._set(key, value, ttl)

    def delete(self, key: str) -> None:
        """Remove a key if present. Deleting a missing key is a no-op."""
        with self._lock.write_locked():
            self._items.pop(key, None)

    def delete_expired(self) -> int:
        """
        Remove every expired entry.

        All entries are judged against one timestamp taken before the scan.
        This is the pass the background sweeper runs.

        Returns:
            Number of entries removed
        """
        now = time.time_ns()
        with self._lock.write_locked():
            expired = [key for key, entry in self._items.items() if entry.is_expired(now)]
            for key in expired:
                del self._items[key]
        return len(expired)

    def count(self) -> int:
        """
        Get the number of entries in the mapping.

        Note: This is a structural count. It includes expired entries that
        have not been swept yet.
        """
        with self._lock.read_locked():
            return len(self._items)

    def flush(self) -> None:
        """Remove all entries."""
        with self._lock.write_locked():
            self._items = {}

    def items(self) -> Dict[str, Entry]:
        """
        Get a copy of all live entries.

        Returns:
            New dict of key -> Entry, excluding expired entries
        """
        now = time.time_ns()
        with self._lock.read_locked():
            return {key: entry for key, entry in self._items.items() if not entry.is_expired(now)}

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the cache.

        Returns:
            Dictionary containing:
            - total_keys: Entries in the mapping (structural count)
            - expired_keys: Expired entries not yet swept
            - active_keys: Live entries
            - default_ttl: Default TTL in seconds
            - sweep_interval: Seconds between sweeps
            - sweeping: Whether the sweep has not been stopped yet
        """
        now = time.time_ns()
        with self._lock.read_locked():
            total = len(self._items)
            expired = sum(1 for entry in self._items.values() if entry.is_expired(now))

        return {
            "total_keys": total,
            "expired_keys": expired,
            "active_keys": total - expired,
            "default_ttl": to_seconds(self.default_ttl),
            "sweep_interval": self.sweep_interval,
            "sweeping": self.sweeping,
        }

    # ------------------------------------------------------------------
    # Sweep lifecycle
    # ------------------------------------------------------------------

    def stop_sweep(self) -> None:
        """
        Stop the background sweep.

        Returns without waiting for the sweep thread to exit. May be called
        only once.

        Raises:
            SweeperStoppedError: If the sweep was already stopped
        """
        self._sweeper.stop()

    @property
    def sweeping(self) -> bool:
        """True until stop_sweep() has been called."""
        return not self._sweeper.stopped

    def __enter__(self) -> "Cache":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.sweeping:
            self.stop_sweep()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, sink: BinaryIO) -> None:
        """
        Write a snapshot of every entry to a binary stream.

        Writers are blocked until the whole snapshot has been written. If
        this raises, the sink may hold a partial stream that must not be
        used as a snapshot.

        Raises:
            EncodeError: If a value type is not registered or the sink
                cannot be written
        """
        with self._lock.read_locked():
            snapshot.encode(self._items, sink)
            count = len(self._items)
        logger.debug(f"Saved snapshot with {count} entries")

    def load(self, source: BinaryIO) -> int:
        """
        Read a snapshot and merge it into the cache.

        A decoded entry is installed when the key is missing or expired in
        the cache; live entries in the cache are kept. The merge happens in
        one write-locked critical section. The stream is fully decoded
        before the lock is taken, so a malformed stream leaves the cache
        unchanged.

        Returns:
            Number of entries installed from the snapshot

        Raises:
            DecodeError: If the stream is malformed
        """
        decoded = snapshot.decode(source)

        installed = 0
        now = time.time_ns()
        with self._lock.write_locked():
            for key, entry in decoded.items():
                current = self._items.get(key)
                if current is None or current.is_expired(now):
                    self._items[key] = entry
                    installed += 1

        logger.debug(f"Loaded snapshot: {installed} of {len(decoded)} entries installed")
        return installed

    def save_file(self, path: PathLike) -> None:
        """
        Save a snapshot to a file, creating or truncating it.

        The file is always closed; the first error encountered is raised.

        Raises:
            CacheIOError: If the file cannot be opened or closed
            EncodeError: If encoding fails
        """
        try:
            fp = open(path, "wb")
        except OSError as exc:
            raise CacheIOError(f"cannot open {path} for writing: {exc}") from exc

        try:
            self.save(fp)
        except BaseException:
            _close_quietly(fp, path)
            raise
        _close(fp, path)

    def load_file(self, path: PathLike) -> int:
        """
        Load a snapshot file and merge it into the cache.

        The file is always closed; the first error encountered is raised.

        Returns:
            Number of entries installed from the snapshot

        Raises:
            CacheIOError: If the file cannot be opened or closed
            DecodeError: If the snapshot is malformed
        """
        try:
            fp = open(path, "rb")
        except OSError as exc:
            raise CacheIOError(f"cannot open {path} for reading: {exc}") from exc

        try:
            installed = self.load(fp)
        except BaseException:
            _close_quietly(fp, path)
            raise
        _close(fp, path)
        return installed


def _close(fp: BinaryIO, path: PathLike) -> None:
    try:
        fp.close()
    except OSError as exc:
        raise CacheIOError(f"cannot close {path}: {exc}") from exc


def _close_quietly(fp: BinaryIO, path: PathLike) -> None:
    # An earlier error is already propagating and takes precedence
    try:
        fp.close()
    except OSError as exc:
        logger.warning(f"Error closing {path} after failure: {exc}")
