"""Structural equality used to decide whether a write changes anything.

Aggregates are compared by value, recursively: mappings by key/value pairs,
sequences by position, sets by membership, dataclasses by field. NaN is equal
to NaN at any depth. A list equals a PVector with the same items (stored
values are frozen). Cyclic object graphs are not supported.
"""

from __future__ import annotations

import dataclasses
import math
from collections.abc import Mapping, Sequence, Set
from decimal import Decimal

from pyrsistent import PVector

_STRINGS = (str, bytes, bytearray)
_LISTS = (list, PVector)


def _is_nan(value: object) -> bool:
    if isinstance(value, float):
        return math.isnan(value)
    if isinstance(value, complex):
        return math.isnan(value.real) or math.isnan(value.imag)
    if isinstance(value, Decimal):
        return value.is_nan()
    return False


def _same_sequence_kind(a: Sequence, b: Sequence) -> bool:
    if isinstance(a, _LISTS) and isinstance(b, _LISTS):
        return True
    return type(a) is type(b)


def _sets_equal(a: Set, b: Set) -> bool:
    if len(a) != len(b):
        return False
    if a == b:
        return True
    # Slow path: members that == cannot pair up, such as distinct NaN objects.
    unmatched = list(b)
    for x in a:
        for i, y in enumerate(unmatched):
            if equals(x, y):
                del unmatched[i]
                break
        else:
            return False
    return True


def equals(a: object, b: object) -> bool:
    """Deep value comparison with NaN == NaN."""
    if a is b:
        return True
    if _is_nan(a) and _is_nan(b):
        return True
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if len(a) != len(b):
            return False
        for key in a:
            if key not in b or not equals(a[key], b[key]):
                return False
        return True

    if (
        isinstance(a, Sequence)
        and isinstance(b, Sequence)
        and not isinstance(a, _STRINGS)
        and not isinstance(b, _STRINGS)
    ):
        if not _same_sequence_kind(a, b) or len(a) != len(b):
            return False
        return all(equals(x, y) for x, y in zip(a, b))

    if isinstance(a, Set) and isinstance(b, Set):
        return _sets_equal(a, b)

    if dataclasses.is_dataclass(a) and not isinstance(a, type):
        if type(a) is not type(b):
            return False
        return all(
            equals(getattr(a, f.name), getattr(b, f.name))
            for f in dataclasses.fields(a)
        )

    return bool(a == b)
