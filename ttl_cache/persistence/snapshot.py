"""
Snapshot Codec

Encodes a cache mapping to a binary stream and decodes it back.

Stream layout:
    b"TTLCSNAP"          8-byte magic
    <version>            1 byte, FORMAT_VERSION
    <pickle>             {key: (value, expires_at)} at the highest protocol

Pickle keeps each value's concrete type. Both directions are restricted to
the classes in the type registry (see registry.py), so a snapshot can only
rebuild registered types and never calls arbitrary functions on load.

Snapshots are not compatible across format versions.
"""

import pickle
from typing import BinaryIO, Dict, Mapping

from ..cache.entry import Entry
from ..errors import DecodeError, EncodeError
from .registry import is_registered, lookup

MAGIC = b"TTLCSNAP"
FORMAT_VERSION = 1
HEADER = MAGIC + bytes([FORMAT_VERSION])


class _SnapshotPickler(pickle.Pickler):
    """Pickler that refuses unregistered types."""

    def reducer_override(self, obj):
        cls = obj if isinstance(obj, type) else type(obj)
        if not is_registered(cls):
            raise EncodeError(
                f"type {cls.__module__}.{cls.__qualname__} is not registered for snapshots"
            )
        return NotImplemented


class _SnapshotUnpickler(pickle.Unpickler):
    """Unpickler that only resolves registered types."""

    def find_class(self, module, name):
        cls = lookup(module, name)
        if cls is None:
            raise pickle.UnpicklingError(f"type {module}.{name} is not registered for snapshots")
        return cls


def encode(items: Mapping[str, Entry], sink: BinaryIO) -> None:
    """
    Write a snapshot of ``items`` to ``sink``.

    On failure the sink may hold a partial stream, which must be discarded.

    Raises:
        EncodeError: If a value type is unregistered or cannot be pickled,
            or if writing to the sink fails
    """
    payload = {key: (entry.value, entry.expires_at) for key, entry in items.items()}
    try:
        sink.write(HEADER)
        _SnapshotPickler(sink, protocol=pickle.HIGHEST_PROTOCOL).dump(payload)
    except EncodeError:
        raise
    except OSError as exc:
        raise EncodeError(f"cannot write snapshot: {exc}") from exc
    except Exception as exc:
        raise EncodeError(f"cannot encode snapshot: {exc!r}") from exc


def decode(source: BinaryIO) -> Dict[str, Entry]:
    """
    Read a complete snapshot from ``source``.

    Returns:
        Mapping of key to Entry

    Raises:
        DecodeError: If the stream is not a snapshot, is truncated or
            malformed, or references an unregistered type
    """
    try:
        header = source.read(len(HEADER))
    except OSError as exc:
        raise DecodeError(f"cannot read snapshot: {exc}") from exc

    if len(header) != len(HEADER) or header[: len(MAGIC)] != MAGIC:
        raise DecodeError("stream is not a ttl-cache snapshot")
    if header[-1] != FORMAT_VERSION:
        raise DecodeError(f"unsupported snapshot format version {header[-1]}")

    try:
        payload = _SnapshotUnpickler(source).load()
    except OSError as exc:
        raise DecodeError(f"cannot read snapshot: {exc}") from exc
    except Exception as exc:
        # Only registered constructors can run; any failure among them
        # means the stream is malformed
        raise DecodeError(f"malformed snapshot: {exc!r}") from exc

    return _to_entries(payload)


def _to_entries(payload: object) -> Dict[str, Entry]:
    if not isinstance(payload, dict):
        raise DecodeError(f"malformed snapshot: expected a mapping, got {type(payload).__name__}")

    entries: Dict[str, Entry] = {}
    for key, record in payload.items():
        if not isinstance(key, str):
            raise DecodeError(f"malformed snapshot: key {key!r} is not a string")
        if not isinstance(record, tuple) or len(record) != 2:
            raise DecodeError(f"malformed snapshot: bad record for key {key!r}")
        value, expires_at = record
        if isinstance(expires_at, bool) or not isinstance(expires_at, int) or expires_at < 0:
            raise DecodeError(f"malformed snapshot: bad expiration for key {key!r}")
        entries[key] = Entry(value=value, expires_at=expires_at)
    return entries
