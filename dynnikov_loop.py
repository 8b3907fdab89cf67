#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Loops on a punctured disk in Dynnikov coordinates.

A LoopCoordinates value is an isotopy class of an essential multicurve on a
disk with n punctures, encoded as the integer vector (a, b) of length 2n-4.

Puncture-count convention (used everywhere in this code base):
  n counts every puncture, the basepoint included, and len(coords) == 2n - 4.
  LoopCoordinates.canonical(n) therefore has a = (0,)*(n-2), b = (-1,)*(n-2).

References:
  I. A. Dynnikov, "On a Yang-Baxter map and the Dehornoy ordering,"
  Russian Mathematical Surveys 57 (2002), 592-594.
  T. Hall & S. Yurttas, "On the topological entropy of families of braids,"
  Topology and its Applications 156 (2009), 1554-1564.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Sequence, Tuple, Union

import numpy as np

from dynnikov_errors import LoopShapeError
from exact_integer import as_python_ints, storage_array


class LoopCoordinates:
    """
    Immutable Dynnikov coordinate vector.

    ``a`` and ``b`` are read-only views into the single backing vector, so
    they can never drift apart from ``coords``.
    """

    __slots__ = ("_coords",)

    def __init__(self, coords: Union["LoopCoordinates", Sequence[int], np.ndarray]):
        if isinstance(coords, LoopCoordinates):
            self._coords = coords._coords
            return
        values = _checked_values(coords)
        if len(values) % 2 == 1:
            raise LoopShapeError(f"loop coordinate vector must have even length, got {len(values)}")
        self._coords = _frozen(storage_array(values))

    # ------------------------------------------------------------------
    # constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_ab(cls, a: Sequence[int], b: Sequence[int]) -> "LoopCoordinates":
        a_vals = _checked_values(a)
        b_vals = _checked_values(b)
        if len(a_vals) != len(b_vals):
            raise LoopShapeError(
                f"loop coordinate vectors must have the same length, got {len(a_vals)} and {len(b_vals)}"
            )
        return cls(a_vals + b_vals)

    @classmethod
    def canonical(cls, n: int) -> "LoopCoordinates":
        """
        Nested generators of the fundamental group of the sphere with n-1
        punctures, the n-th (rightmost) puncture serving as basepoint.

        Handy for detecting loop growth or testing braid equality.
        """
        if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
            raise LoopShapeError(f"puncture count must be an integer, got {n!r}")
        n = int(n)
        if n < 3:
            raise LoopShapeError(f"need at least two punctures besides the basepoint (n >= 3), got n={n}")
        return cls._from_array(np.array([0] * (n - 2) + [-1] * (n - 2), dtype=np.int64))

    @classmethod
    def _from_array(cls, array: np.ndarray) -> "LoopCoordinates":
        """Wrap an already validated 1-D int64/object array (skips per-entry type checks)."""
        obj = cls.__new__(cls)
        if array.dtype == object:
            array = storage_array(tuple(int(v) for v in array))
        obj._coords = _frozen(np.array(array, copy=True))
        return obj

    # ------------------------------------------------------------------
    # views
    # ------------------------------------------------------------------

    @property
    def coords(self) -> np.ndarray:
        return self._coords

    @property
    def n(self) -> int:
        return len(self._coords) // 2 + 2

    @property
    def a(self) -> np.ndarray:
        return self._coords[: len(self._coords) // 2]

    @property
    def b(self) -> np.ndarray:
        return self._coords[len(self._coords) // 2 :]

    def ab(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.a, self.b

    @property
    def is_exact(self) -> bool:
        """True when the values no longer fit int64 and are held as Python ints."""
        return self._coords.dtype == object

    def to_list(self) -> List[int]:
        return [int(v) for v in self._coords]

    # ------------------------------------------------------------------
    # value semantics
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LoopCoordinates):
            return NotImplemented
        if self.n != other.n:
            return False
        return self.to_list() == other.to_list()

    def __ne__(self, other: object) -> bool:
        eq = self.__eq__(other)
        return eq if eq is NotImplemented else not eq

    def __hash__(self) -> int:
        return hash((self.n, tuple(self.to_list())))

    def __len__(self) -> int:
        return len(self._coords)

    def __str__(self) -> str:
        return "(( " + " ".join(str(v) for v in self.to_list()) + " ))"

    def __repr__(self) -> str:
        return f"LoopCoordinates(n={self.n}, a={[int(v) for v in self.a]}, b={[int(v) for v in self.b]})"


# =============================================================================
# Batch helpers
# =============================================================================


def stack_coords(loops: Sequence[LoopCoordinates]) -> Tuple[int, List[Tuple[int, ...]]]:
    """
    Return (n, rows) for a batch, rows as tuples of Python ints.

    Every loop must have the same number of punctures.
    """
    if not loops:
        raise LoopShapeError("cannot stack an empty batch")
    n = loops[0].n
    rows = []
    for idx, loop in enumerate(loops):
        if not isinstance(loop, LoopCoordinates):
            raise LoopShapeError(f"batch entry {idx} is {type(loop).__name__}, not LoopCoordinates")
        if loop.n != n:
            raise LoopShapeError(f"batch mixes puncture counts: row 0 has n={n}, row {idx} has n={loop.n}")
        rows.append(tuple(loop.to_list()))
    return n, rows


def loops_from_rows(rows: Union[np.ndarray, Iterable[Sequence[int]]]) -> List[LoopCoordinates]:
    """Rebuild loops from a 2-D array (or any iterable of coordinate rows)."""
    if isinstance(rows, np.ndarray):
        if rows.ndim != 2:
            raise LoopShapeError(f"expected a 2-D array of coordinate rows, got ndim={rows.ndim}")
        if rows.shape[1] % 2 == 1:
            raise LoopShapeError(f"coordinate rows must have even length, got {rows.shape[1]}")
        if rows.dtype != object and not np.issubdtype(rows.dtype, np.integer):
            raise LoopShapeError(f"coordinate rows must be integers, got dtype {rows.dtype}")
        return [LoopCoordinates(row) for row in rows]
    return [LoopCoordinates(row) for row in rows]


def _checked_values(values: Any) -> Tuple[int, ...]:
    if isinstance(values, np.ndarray) and values.ndim != 1:
        raise LoopShapeError(f"coordinate vector must be 1-D, got shape {values.shape}")
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise LoopShapeError(f"coordinate vector must be a sequence of integers, got {type(values).__name__}")
    try:
        return as_python_ints(values)
    except TypeError as ex:
        raise LoopShapeError(str(ex)) from ex


def _frozen(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


__all__ = [
    "LoopCoordinates",
    "stack_coords",
    "loops_from_rows",
]
