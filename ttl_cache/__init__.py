"""
TTL-Cache: In-Process Key-Value Cache

A thread-safe, in-process key-value cache where every entry carries an
optional time-to-live, with a background sweep of expired entries and
snapshot persistence to any binary stream.
"""

from .cache import Cache, Entry, DEFAULT_EXPIRATION, NO_EXPIRATION
from .errors import (
    AlreadyExistsError,
    CacheError,
    CacheIOError,
    DecodeError,
    EncodeError,
    NotFoundError,
    SweeperStoppedError,
)
from .persistence import register_type

__version__ = "1.0.0"

__all__ = [
    "AlreadyExistsError",
    "Cache",
    "CacheError",
    "CacheIOError",
    "DEFAULT_EXPIRATION",
    "DecodeError",
    "EncodeError",
    "Entry",
    "NO_EXPIRATION",
    "NotFoundError",
    "SweeperStoppedError",
    "register_type",
]
