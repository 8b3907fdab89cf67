#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Braid words as sequences of signed generator indices.

  +i  -> sigma_i        (strands i and i+1 cross clockwise)
  -i  -> sigma_i^{-1}

Indices are 1-based; on a disk with n punctures the valid range is [1, n-1].
Parsing and canonicalization of braid words happen elsewhere: this module
only holds a validated word and checks it against a puncture count.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Tuple, Union

import numpy as np

from dynnikov_errors import GeneratorRangeError


@dataclass(frozen=True)
class GeneratorWord:
    generators: Tuple[int, ...] = ()

    def __post_init__(self) -> None:
        gens = []
        for g in self.generators:
            if isinstance(g, (bool, np.bool_)) or not isinstance(g, (int, np.integer)):
                raise GeneratorRangeError(f"generator must be a nonzero int, got {g!r}", generator=None)
            if int(g) == 0:
                raise GeneratorRangeError("generator index 0 is not a braid generator", generator=0)
            gens.append(int(g))
        object.__setattr__(self, "generators", tuple(gens))

    @classmethod
    def coerce(cls, word: Union["GeneratorWord", int, Iterable[int], None]) -> "GeneratorWord":
        if word is None:
            return cls(())
        if isinstance(word, GeneratorWord):
            return word
        if isinstance(word, (int, np.integer)) and not isinstance(word, (bool, np.bool_)):
            return cls((int(word),))
        if isinstance(word, (str, bytes)):
            raise GeneratorRangeError(f"braid word must be a sequence of ints, got {type(word).__name__}")
        return cls(tuple(word))

    # ------------------------------------------------------------------

    def check_range(self, n: int) -> None:
        """Raise GeneratorRangeError unless every |g| lies in [1, n-1]."""
        for g in self.generators:
            if abs(g) > n - 1:
                raise GeneratorRangeError(
                    f"generator {g} out of range for n={n} punctures (valid magnitudes 1..{n - 1})",
                    generator=g,
                    n=n,
                )

    @property
    def max_index(self) -> int:
        return max((abs(g) for g in self.generators), default=0)

    def inverse(self) -> "GeneratorWord":
        return GeneratorWord(tuple(-g for g in reversed(self.generators)))

    def as_array(self) -> np.ndarray:
        return np.array(self.generators, dtype=np.int64)

    def __add__(self, other: Any) -> "GeneratorWord":
        other = GeneratorWord.coerce(other)
        return GeneratorWord(self.generators + other.generators)

    def __pow__(self, k: int) -> "GeneratorWord":
        if not isinstance(k, int) or isinstance(k, bool):
            return NotImplemented
        if k < 0:
            return self.inverse() ** (-k)
        return GeneratorWord(self.generators * k)

    def __len__(self) -> int:
        return len(self.generators)

    def __iter__(self) -> Iterator[int]:
        return iter(self.generators)

    def __getitem__(self, idx):
        if isinstance(idx, slice):
            return GeneratorWord(self.generators[idx])
        return self.generators[idx]

    def __bool__(self) -> bool:
        return bool(self.generators)

    def __str__(self) -> str:
        if not self.generators:
            return "< e >"
        return "< " + " ".join(str(g) for g in self.generators) + " >"


__all__ = ["GeneratorWord"]
