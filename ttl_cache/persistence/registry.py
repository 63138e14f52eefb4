"""
Snapshot Type Registry

Snapshots record the concrete type of every stored value. Only registered
types may be written to or read from a snapshot: encoding refuses anything
else, and decoding never resolves a class that is not in the registry.

Built-in scalars and containers, the datetime types, Decimal, Fraction, UUID
and the common collections types are registered on import. Applications
register their own value types once at startup, in every process that saves
or loads snapshots:

    @register_type
    @dataclass
    class Quote:
        symbol: str
        price: Decimal
"""

import collections
import datetime
import decimal
import fractions
import threading
import uuid
from typing import Dict, Optional, Tuple

_lock = threading.Lock()
_registry: Dict[Tuple[str, str], type] = {}

DEFAULT_TYPES = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    bytearray,
    list,
    tuple,
    dict,
    set,
    frozenset,
    datetime.date,
    datetime.datetime,
    datetime.time,
    datetime.timedelta,
    datetime.timezone,
    decimal.Decimal,
    fractions.Fraction,
    uuid.UUID,
    collections.OrderedDict,
    collections.deque,
    collections.Counter,
)


def _type_key(cls: type) -> Tuple[str, str]:
    return cls.__module__, cls.__qualname__


def register_type(cls: type) -> type:
    """
    Allow instances of ``cls`` in snapshots.

    Returns ``cls`` unchanged so it can be used as a class decorator.

    Raises:
        TypeError: If ``cls`` is not a class
    """
    if not isinstance(cls, type):
        raise TypeError(f"register_type() expects a class, got {cls!r}")
    with _lock:
        _registry[_type_key(cls)] = cls
    return cls


def is_registered(cls: type) -> bool:
    """Check whether ``cls`` may appear in a snapshot."""
    return _type_key(cls) in _registry


def lookup(module: str, qualname: str) -> Optional[type]:
    """Return the registered class named ``module.qualname``, if any."""
    return _registry.get((module, qualname))


for _cls in DEFAULT_TYPES:
    register_type(_cls)
