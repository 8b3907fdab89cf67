#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Error hierarchy for the Dynnikov loop kernel.

Red-lines:
  - Shape and range errors are hard failures: the call that raised them
    returns nothing, not even the rows that were already fine.
  - ArithmeticOverflow is an internal signal. The action engine recovers from
    it by promoting the affected row to unbounded integers; callers only ever
    see PrecisionExhaustedError, and only when promotion is disabled.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple


class DynnikovError(RuntimeError):
    """Base class for every failure raised by the loop kernel."""


class LoopShapeError(DynnikovError):
    """Malformed coordinate vector, mismatched a/b lengths, or mixed puncture counts."""


class GeneratorRangeError(DynnikovError):
    """Generator index is zero, not an integer, or outside [1, n-1]."""

    def __init__(self, message: str, *, generator: Optional[int] = None, n: Optional[int] = None):
        super().__init__(message)
        self.generator = generator
        self.n = n


class ArithmeticOverflow(DynnikovError):
    """A value left the bounded int64 representation (internal, recovered by promotion)."""

    def __init__(self, message: str, *, rows: Sequence[int] = (), step: Optional[int] = None):
        super().__init__(message)
        self.rows: Tuple[int, ...] = tuple(int(r) for r in rows)
        self.step = step


class PrecisionExhaustedError(DynnikovError):
    """Overflow happened and the unbounded representation is not allowed in this deployment."""


__all__ = [
    "DynnikovError",
    "LoopShapeError",
    "GeneratorRangeError",
    "ArithmeticOverflow",
    "PrecisionExhaustedError",
]
