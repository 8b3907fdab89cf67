#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Numba-compiled int64 kernel for the generator action.

The kernel runs rows in parallel (prange) and applies the word to each row
sequentially.  It only knows int64: before committing a step it checks every
new value against the guard bound, and if one is outside it leaves the row in
its pre-step state and reports the step index.  The caller finishes such rows
on the unbounded path.

The recurrence is the same as loop_sigma._sigma_step; keep the two in sync.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numba
import numpy as np

from exact_integer import GUARD_BOUND, StrictConstants


@numba.njit(cache=True)
def _sgn(x):
    if x > 0:
        return 1
    if x < 0:
        return -1
    return 0


@numba.njit(parallel=True, cache=True)
def _sigma_int64_kernel(word, coords, bound, trace, capture):
    m = coords.shape[0]
    nm2 = coords.shape[1] // 2
    n = nm2 + 2
    k = word.shape[0]
    stop = np.full(m, -1, dtype=np.int64)

    for r in numba.prange(m):
        for j in range(k):
            g = word[j]
            i = abs(g)
            if i == 1 or i == n - 1:
                q = 0 if i == 1 else n - 3
                ak = coords[r, q]
                bk = coords[r, nm2 + q]
                if i == 1:
                    if g > 0:
                        bp = ak + max(bk, 0)
                        ap = -bk + max(bp, 0)
                    else:
                        bp = -ak + max(bk, 0)
                        ap = bk - max(bp, 0)
                else:
                    if g > 0:
                        bp = ak + min(bk, 0)
                        ap = -bk + min(bp, 0)
                    else:
                        bp = -ak + min(bk, 0)
                        ap = bk - min(bp, 0)
                if abs(ap) > bound or abs(bp) > bound:
                    stop[r] = j
                    break
                coords[r, q] = ap
                coords[r, nm2 + q] = bp
                if capture:
                    trace[r, j, 0] = _sgn(bk)
                    trace[r, j, 1] = _sgn(bp)
            else:
                a1 = coords[r, i - 2]
                a2 = coords[r, i - 1]
                b1 = coords[r, nm2 + i - 2]
                b2 = coords[r, nm2 + i - 1]
                if g > 0:
                    c = a1 - a2 - max(b2, 0) + min(b1, 0)
                    ap1 = a1 - max(b1, 0) - max(max(b2, 0) + c, 0)
                    bp1 = b2 + min(c, 0)
                    ap2 = a2 - min(b2, 0) - min(min(b1, 0) - c, 0)
                    bp2 = b1 - min(c, 0)
                    s3 = _sgn(c)
                    s4 = _sgn(max(b2, 0) + c)
                    s5 = _sgn(min(b1, 0) - c)
                else:
                    d = a1 - a2 + max(b2, 0) - min(b1, 0)
                    ap1 = a1 + max(b1, 0) + max(max(b2, 0) - d, 0)
                    bp1 = b2 - max(d, 0)
                    ap2 = a2 + min(b2, 0) + min(min(b1, 0) + d, 0)
                    bp2 = b1 + max(d, 0)
                    s3 = _sgn(max(b2, 0) - d)
                    s4 = _sgn(d)
                    s5 = _sgn(min(b1, 0) + d)
                if abs(ap1) > bound or abs(bp1) > bound or abs(ap2) > bound or abs(bp2) > bound:
                    stop[r] = j
                    break
                coords[r, i - 2] = ap1
                coords[r, nm2 + i - 2] = bp1
                coords[r, i - 1] = ap2
                coords[r, nm2 + i - 1] = bp2
                if capture:
                    trace[r, j, 0] = _sgn(b2)
                    trace[r, j, 1] = _sgn(b1)
                    trace[r, j, 2] = s3
                    trace[r, j, 3] = s4
                    trace[r, j, 4] = s5
    return stop


def sigma_int64(
    word: np.ndarray,
    coords: np.ndarray,
    *,
    capture_trace: bool = False,
    bound: int = GUARD_BOUND,
) -> Tuple[np.ndarray, np.ndarray, Optional[np.ndarray]]:
    """
    Apply ``word`` to every row of the int64 array ``coords``.

    Returns (new_coords, stop, trace).  ``stop[r] == -1`` means row r finished
    the word; otherwise row r is left in its state before generator stop[r].
    The input array is not modified.
    """
    if coords.dtype != np.int64 or coords.ndim != 2:
        raise TypeError(f"native kernel needs a 2-D int64 array, got {coords.dtype} ndim={coords.ndim}")
    if coords.shape[1] < 2:
        raise ValueError("native kernel needs n >= 3 punctures")
    out = np.ascontiguousarray(coords).copy()
    w = np.ascontiguousarray(word, dtype=np.int64)
    slots = StrictConstants.TRACE_SLOTS
    if capture_trace:
        trace = np.zeros((out.shape[0], w.shape[0], slots), dtype=np.int64)
    else:
        trace = np.zeros((1, 1, slots), dtype=np.int64)
    stop = _sigma_int64_kernel(w, out, np.int64(bound), trace, bool(capture_trace))
    return out, stop, (trace.astype(np.int8) if capture_trace else None)


__all__ = ["sigma_int64"]
