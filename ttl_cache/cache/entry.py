"""
Cache Entry Module

An Entry pairs a stored value with the absolute instant it expires at.

Expiration instants are integer nanoseconds since the Unix epoch
(time.time_ns()), so they stay meaningful after a snapshot is loaded into
another process. An instant of 0 means the entry never expires.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Union

# TTL passed to a write meaning "never expire"
NO_EXPIRATION: int = -1
# TTL passed to a write meaning "use the cache's default TTL"
DEFAULT_EXPIRATION: int = 0

NANOS_PER_SECOND = 1_000_000_000

TTL = Union[int, float, timedelta]


@dataclass(frozen=True)
class Entry:
    """
    A value and its expiration instant.

    Entries are never mutated; overwriting a key stores a new Entry.

    Attributes:
        value: The cached payload (any type)
        expires_at: Expiration in nanoseconds since the epoch, 0 = never
    """

    value: Any
    expires_at: int = 0

    def is_expired(self, now: int) -> bool:
        """Check whether the entry is expired at ``now`` (epoch nanoseconds)."""
        return self.expires_at != 0 and now > self.expires_at

    def remaining(self, now: int) -> float:
        """
        Seconds left before expiration.

        Returns:
            Remaining seconds (0.0 once expired), or -1 for entries that
            never expire
        """
        if self.expires_at == 0:
            return NO_EXPIRATION
        return max(0.0, (self.expires_at - now) / NANOS_PER_SECOND)


def to_seconds(ttl: TTL) -> float:
    """Convert a TTL given as seconds or a timedelta into seconds."""
    if isinstance(ttl, timedelta):
        return ttl.total_seconds()
    return float(ttl)


def resolve_ttl(ttl: TTL, default_ttl: TTL) -> float:
    """
    Resolve the effective TTL of a write, in seconds.

    DEFAULT_EXPIRATION is replaced by ``default_ttl``. A result <= 0 means
    the entry never expires.
    """
    seconds = to_seconds(ttl)
    if seconds == DEFAULT_EXPIRATION:
        seconds = to_seconds(default_ttl)
    return seconds


def expiration_for(ttl: TTL, default_ttl: TTL, now: int) -> int:
    """Compute the expires_at instant stored for a write made at ``now``."""
    seconds = resolve_ttl(ttl, default_ttl)
    if seconds <= 0:
        return 0
    return now + int(seconds * NANOS_PER_SECOND)
