"""Snapshot persistence for TTL-Cache."""

from .registry import is_registered, register_type
from .snapshot import decode, encode

__all__ = ["decode", "encode", "is_registered", "register_type"]
