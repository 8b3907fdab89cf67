"""Tests for length, intaxis and the intersection numbers."""

import pytest

from dynnikov_errors import LoopShapeError
from dynnikov_loop import LoopCoordinates
from generator_word import GeneratorWord
from loop_invariants import intaxis, intersection_numbers, length
from loop_sigma import ActionConfig, act, apply_word


class TestKnownValues:
    """Values worked out from the Hall & Yurttas formulas."""

    def test_canonical_four(self, canonical4):
        # Loops around {3,4} and {2,3,4}.
        mu, nu = intersection_numbers(canonical4)
        assert nu == [0, 2, 4]
        assert mu == [1, 1, 2, 2]
        assert length(canonical4) == 6
        assert intaxis(canonical4) == 4

    def test_canonical_three(self):
        loop = LoopCoordinates.canonical(3)
        assert intersection_numbers(loop)[1] == [0, 2]
        assert length(loop) == 2
        assert intaxis(loop) == 2

    def test_after_sigma_1(self, canonical4):
        loop = act([1], canonical4)
        # b0 = -1, bn1 = 2: 1 + 1 + 1 + 0 + 1 + 2
        assert intaxis(loop) == 6
        assert intersection_numbers(loop)[1] == [2, 2, 4]
        assert length(loop) == 8

    def test_after_sigma_2(self, canonical4):
        loop = act([2], canonical4)
        assert intaxis(loop) == 6
        assert length(loop) == 8

    def test_degenerate_two_punctures(self):
        loop = LoopCoordinates([])
        assert intaxis(loop) == 0
        assert length(loop) == 0
        assert intersection_numbers(loop) == ([], [])

    def test_rejects_non_loops(self):
        with pytest.raises(LoopShapeError):
            intaxis([0, -1])


class TestConsistency:
    """Relations between coordinates and intersection numbers."""

    def test_coordinates_recovered(self, random_loops):
        for loop in random_loops(6, 30):
            mu, nu = intersection_numbers(loop)
            a, b = loop.ab()
            assert len(nu) == loop.n - 1
            assert len(mu) == 2 * loop.n - 4
            for k in range(loop.n - 2):
                assert mu[2 * k + 1] - mu[2 * k] == 2 * a[k]
                assert nu[k] - nu[k + 1] == 2 * b[k]
            assert all(v >= 0 for v in nu)
            assert all(v >= 0 for v in mu)

    def test_nonnegative(self, random_loops):
        for loop in random_loops(5, 30):
            assert intaxis(loop) >= 0
            assert length(loop) >= 0

    def test_invariant_under_word_and_inverse(self, random_loops, random_word):
        loops = random_loops(6, 10)
        w = GeneratorWord(tuple(random_word(6, 30)))
        back = apply_word(w.inverse(), apply_word(w, loops).loops).loops
        for before, after in zip(loops, back):
            assert intaxis(after) == intaxis(before)
            assert length(after) == length(before)

    def test_exact_for_huge_coordinates(self, canonical4):
        loop = act(GeneratorWord((1, -2)) ** 60, canonical4)
        assert loop.is_exact
        big = length(loop)
        assert isinstance(big, int)
        assert big > 2**63
        assert intaxis(loop) > 0
        ref = act(GeneratorWord((1, -2)) ** 60, canonical4, ActionConfig(backend="exact"))
        assert length(ref) == big
