#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exact integer arithmetic for Dynnikov coordinates.

Two interchangeable representations share one arithmetic interface:

  BOUNDED    numpy int64 arrays, guarded by an explicit magnitude bound.
  UNBOUNDED  numpy object arrays holding Python ints (arbitrary precision).

The action recurrence is written once against this interface; the engine picks
the representation per row and promotes a row when the bounded guard trips.

Red-lines respected:
  - No silent wraparound: a bounded value is checked against GUARD_BOUND
    before it is trusted, and a step whose outputs leave the bound is redone
    on the unbounded representation.
  - No floats: coordinates are integers, full stop.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Optional, Sequence, Tuple

import numpy as np

from dynnikov_errors import ArithmeticOverflow


# =============================================================================
# Strict constants: derived, not guessed
# =============================================================================


class StrictConstants:
    """
    Every bound below is derived from the int64 range and the shape of the
    generator recurrence.
    """

    # Two's complement int64 range.
    INT64_MAX: int = int(np.iinfo(np.int64).max)
    INT64_MIN: int = int(np.iinfo(np.int64).min)

    # Largest number of input-sized terms summed by one generator step:
    #   a'[i-1] = a[i-1] - pos(b[i-1]) - pos(pos(b[i]) + c),
    #   c       = a[i-1] - a[i] - pos(b[i]) + neg(b[i-1])        (|c| <= 4B)
    # gives |a'[i-1]| <= 7B.  Round up to a power of two.
    STEP_TERM_COUNT: int = 8

    # Inputs with magnitude <= GUARD_BOUND cannot wrap int64 during one step.
    GUARD_BOUND: int = INT64_MAX // STEP_TERM_COUNT

    # Branch-trace slots recorded per generator application.
    TRACE_SLOTS: int = 5


GUARD_BOUND = StrictConstants.GUARD_BOUND


class IntegerMode(Enum):
    BOUNDED = "int64"
    UNBOUNDED = "exact"


def _is_integral_scalar(x: Any) -> bool:
    if isinstance(x, (bool, np.bool_)):
        return False
    return isinstance(x, (int, np.integer))


def as_python_ints(values: Iterable[Any]) -> Tuple[int, ...]:
    """
    Convert to a tuple of Python ints, rejecting bools, floats and anything
    else that is not an integer.
    """
    out = []
    for x in values:
        if not _is_integral_scalar(x):
            raise TypeError(f"coordinates must be integers (no floats), got {type(x).__name__}: {x!r}")
        out.append(int(x))
    return tuple(out)


def fits_int64(values: Iterable[int]) -> bool:
    lo, hi = StrictConstants.INT64_MIN, StrictConstants.INT64_MAX
    return all(lo <= int(v) <= hi for v in values)


def storage_array(values: Sequence[int]) -> np.ndarray:
    """
    Smallest exact storage for a coordinate vector: int64 when every entry
    fits, an object array of Python ints otherwise.
    """
    if fits_int64(values):
        return np.array(values, dtype=np.int64)
    arr = np.empty(len(values), dtype=object)
    arr[:] = [int(v) for v in values]
    return arr


# =============================================================================
# Arithmetic strategies
# =============================================================================


class _Arithmetic:
    """Uniform interface used by the generator recurrence."""

    mode: IntegerMode

    @staticmethod
    def pos(x: np.ndarray) -> np.ndarray:
        return np.maximum(x, 0)

    @staticmethod
    def neg(x: np.ndarray) -> np.ndarray:
        return np.minimum(x, 0)

    @staticmethod
    def sign(x: np.ndarray) -> np.ndarray:
        # Comparison ufuncs return bool for object arrays too, so this avoids
        # np.sign on Python ints.
        return (x > 0).astype(np.int8) - (x < 0).astype(np.int8)

    def asarray(self, rows: Sequence[Sequence[int]]) -> np.ndarray:
        raise NotImplementedError

    def exceeds(self, values: Sequence[np.ndarray]) -> Optional[np.ndarray]:
        """Row mask of values outside the representation, or None if it cannot overflow."""
        raise NotImplementedError


class Int64Arithmetic(_Arithmetic):
    """Bounded fast path: int64 with the GUARD_BOUND check."""

    mode = IntegerMode.BOUNDED

    def __init__(self, bound: int = GUARD_BOUND):
        if not isinstance(bound, int) or bound < 1 or bound > GUARD_BOUND:
            raise ValueError(f"bound must be an int in [1, {GUARD_BOUND}], got {bound!r}")
        self.bound = int(bound)

    def asarray(self, rows: Sequence[Sequence[int]]) -> np.ndarray:
        """
        Stack rows into a 2-D int64 array.

        Raises ArithmeticOverflow listing the offending rows when any entry is
        outside the guard bound.
        """
        bad = [r for r, row in enumerate(rows) if any(abs(int(v)) > self.bound for v in row)]
        if bad:
            raise ArithmeticOverflow(
                f"{len(bad)} row(s) exceed the int64 guard bound {self.bound}",
                rows=bad,
            )
        width = len(rows[0]) if rows else 0
        return np.array(rows, dtype=np.int64).reshape(len(rows), width)

    def exceeds(self, values: Sequence[np.ndarray]) -> Optional[np.ndarray]:
        mask = None
        for v in values:
            over = np.abs(v) > self.bound
            mask = over if mask is None else (mask | over)
        return mask

    def row_fits(self, row: Sequence[int]) -> bool:
        return all(abs(int(v)) <= self.bound for v in row)


class ExactArithmetic(_Arithmetic):
    """Unbounded path: object arrays of Python ints."""

    mode = IntegerMode.UNBOUNDED

    def asarray(self, rows: Sequence[Sequence[int]]) -> np.ndarray:
        width = len(rows[0]) if rows else 0
        out = np.empty((len(rows), width), dtype=object)
        for r, row in enumerate(rows):
            out[r, :] = [int(v) for v in row]
        return out

    def exceeds(self, values: Sequence[np.ndarray]) -> Optional[np.ndarray]:
        return None


def promote(array: np.ndarray) -> np.ndarray:
    """Bounded -> unbounded.  astype(object) yields Python ints, not numpy scalars."""
    if array.dtype == object:
        return array.copy()
    return array.astype(object)


def arithmetic_for(mode: IntegerMode) -> _Arithmetic:
    if mode is IntegerMode.BOUNDED:
        return Int64Arithmetic()
    if mode is IntegerMode.UNBOUNDED:
        return ExactArithmetic()
    raise ValueError(f"unknown integer mode: {mode!r}")


__all__ = [
    "StrictConstants",
    "GUARD_BOUND",
    "IntegerMode",
    "Int64Arithmetic",
    "ExactArithmetic",
    "as_python_ints",
    "fits_int64",
    "storage_array",
    "promote",
    "arithmetic_for",
]
