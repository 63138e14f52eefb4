"""Cache module for TTL-Cache."""

from .entry import DEFAULT_EXPIRATION, NO_EXPIRATION, Entry
from .rwlock import ReadWriteLock
from .store import Cache
from .sweeper import Sweeper

__all__ = ["Cache", "DEFAULT_EXPIRATION", "Entry", "NO_EXPIRATION", "ReadWriteLock", "Sweeper"]
