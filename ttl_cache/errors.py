"""Exceptions raised by TTL-Cache operations."""


class CacheError(Exception):
    """Base exception for all TTL-Cache errors."""


class AlreadyExistsError(CacheError):
    """Raised by add() when the key already holds a live entry."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Item {key!r} already exists")


class NotFoundError(CacheError):
    """Raised by replace() when the key is absent or expired."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Item {key!r} doesn't exist")


class EncodeError(CacheError):
    """Raised when a snapshot cannot be encoded or written to its sink."""


class DecodeError(CacheError):
    """Raised when a snapshot stream is malformed, truncated or untrusted."""


class CacheIOError(CacheError):
    """Raised when a snapshot file cannot be opened or closed."""


class SweeperStoppedError(CacheError):
    """Raised when the background sweep is stopped a second time."""
