#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Loop growth under iterated braiding.

A braid on s strands acts on loops of a disk with s+1 punctures, the extra
puncture on the right serving as basepoint.  The canonical loop of that disk
(nested generators of the fundamental group) is a faithful probe:

  - two words are the same braid iff they send the canonical loop to the
    same coordinates;
  - the growth rate of its length under iteration is the topological
    entropy of the braid.

Lengths are exact ints; only the final logarithm is a float.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Union

from dynnikov_errors import GeneratorRangeError
from dynnikov_loop import LoopCoordinates
from generator_word import GeneratorWord
from loop_invariants import length
from loop_sigma import ActionConfig, act

_logger = logging.getLogger(__name__)

WordLike = Union[GeneratorWord, Sequence[int], int, None]


def _probe_loop(word: GeneratorWord, strands: int) -> LoopCoordinates:
    if isinstance(strands, bool) or not isinstance(strands, int) or strands < 2:
        raise ValueError(f"strands must be int >= 2, got {strands!r}")
    if word.max_index > strands - 1:
        raise GeneratorRangeError(
            f"generator index {word.max_index} out of range for a braid on {strands} strands",
            generator=word.max_index,
            n=strands,
        )
    return LoopCoordinates.canonical(strands + 1)


def words_equal(w1: WordLike, w2: WordLike, strands: int, config: Optional[ActionConfig] = None) -> bool:
    """True iff w1 and w2 represent the same braid on ``strands`` strands."""
    w1 = GeneratorWord.coerce(w1)
    w2 = GeneratorWord.coerce(w2)
    loop = _probe_loop(w1, strands)
    _probe_loop(w2, strands)
    return act(w1, loop, config) == act(w2, loop, config)


def length_growth(
    word: WordLike,
    loop: LoopCoordinates,
    iterations: int,
    config: Optional[ActionConfig] = None,
) -> List[int]:
    """length(loop) after each of ``iterations`` applications of ``word``."""
    if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 1:
        raise ValueError(f"iterations must be int >= 1, got {iterations!r}")
    word = GeneratorWord.coerce(word)
    lengths = []
    current = loop
    for _ in range(iterations):
        current = act(word, current, config)
        lengths.append(length(current))
    return lengths


def entropy_estimate(
    word: WordLike,
    strands: int,
    iterations: int = 100,
    config: Optional[ActionConfig] = None,
) -> float:
    """
    log(L_k / L_{k-1}) for the canonical loop after k = ``iterations`` steps.

    Converges to the topological entropy of the braid; a finite-order or
    reducible-with-zero-entropy braid gives a value tending to 0.
    """
    word = GeneratorWord.coerce(word)
    loop = _probe_loop(word, strands)
    if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 1:
        raise ValueError(f"iterations must be int >= 1, got {iterations!r}")
    lengths = [length(loop)] + length_growth(word, loop, iterations, config)
    prev, last = lengths[-2], lengths[-1]
    # math.log accepts ints of any size.
    h = math.log(last) - math.log(prev)
    _logger.debug("entropy estimate for %s after %d iterations: %.12g", word, iterations, h)
    return h


__all__ = [
    "words_equal",
    "length_growth",
    "entropy_estimate",
]
