#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Invariants of a loop computed from its Dynnikov coordinates.

Both invariants go through the same Hall & Yurttas (2009) reconstruction of
the intersection numbers: with cumb the prefix sum of b (cumb[0] = 0),

    M     = max_k ( |a_k| + max(b_k, 0) + cumb[k-1] )
    nu_1  = 2M,   nu_{k+1} = nu_k - 2 b_k          (k = 1..n-2)

nu_k counts crossings with the vertical line between punctures k and k+1.
Everything is computed on Python ints, so results are exact however large
the coordinates are.
"""

from __future__ import annotations

from typing import List, Tuple

from dynnikov_errors import LoopShapeError
from dynnikov_loop import LoopCoordinates


def _ab_ints(loop: LoopCoordinates) -> Tuple[List[int], List[int]]:
    if not isinstance(loop, LoopCoordinates):
        raise LoopShapeError(f"expected LoopCoordinates, got {type(loop).__name__}")
    return [int(v) for v in loop.a], [int(v) for v in loop.b]


def _prefix_sums(b: List[int]) -> List[int]:
    cumb = [0]
    for v in b:
        cumb.append(cumb[-1] + v)
    return cumb


def _max_envelope(a: List[int], b: List[int], cumb: List[int]) -> int:
    """M = max_k(|a_k| + pos(b_k) + cumb[k-1]); requires n >= 3."""
    return max(abs(ak) + max(bk, 0) + cumb[k] for k, (ak, bk) in enumerate(zip(a, b)))


def intersection_numbers(loop: LoopCoordinates) -> Tuple[List[int], List[int]]:
    """
    Return (mu, nu).

      nu: length n-1, crossings with the vertical lines between punctures.
      mu: length 2n-4, crossings with the arcs above and below punctures
          2..n-1, in the order (above 2, below 2, above 3, ...).

    n = 2 gives two empty lists.
    """
    a, b = _ab_ints(loop)
    if not a:
        return [], []
    cumb = _prefix_sums(b)
    nu = [2 * _max_envelope(a, b, cumb)]
    for bk in b:
        nu.append(nu[-1] - 2 * bk)

    mu = []
    for k, (ak, bk) in enumerate(zip(a, b)):
        half = nu[k] // 2 if bk >= 0 else nu[k + 1] // 2
        mu.append(-ak + half)
        mu.append(ak + half)
    return mu, nu


def length(loop: LoopCoordinates) -> int:
    """
    Minimum length of the loop with zero thickness, punctures of zero size
    and one unit apart: the sum of nu.
    """
    _, nu = intersection_numbers(loop)
    return sum(nu)


def intaxis(loop: LoopCoordinates) -> int:
    """Minimum number of intersections of the loop with the real axis."""
    a, b = _ab_ints(loop)
    if not a:
        return 0
    cumb = _prefix_sums(b)

    # Intersections left of the first and right of the last puncture.
    b0 = -_max_envelope(a, b, cumb)
    bn1 = -b0 - cumb[-1]

    return (
        sum(abs(v) for v in b)
        + sum(abs(a[k + 1] - a[k]) for k in range(len(a) - 1))
        + abs(a[0])
        + abs(a[-1])
        + abs(b0)
        + abs(bn1)
    )


__all__ = [
    "intersection_numbers",
    "length",
    "intaxis",
]
