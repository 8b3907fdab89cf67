"""Tests for LoopCoordinates construction and value semantics."""

import numpy as np
import pytest

from dynnikov_errors import LoopShapeError
from dynnikov_loop import LoopCoordinates, loops_from_rows, stack_coords


class TestConstruction:
    """The three construction paths and their shape checks."""

    def test_canonical_four_punctures(self, canonical4):
        assert canonical4.n == 4
        assert canonical4.a.tolist() == [0, 0]
        assert canonical4.b.tolist() == [-1, -1]
        assert canonical4.coords.tolist() == [0, 0, -1, -1]

    @pytest.mark.parametrize("n", [3, 5, 9])
    def test_canonical_lengths(self, n):
        loop = LoopCoordinates.canonical(n)
        assert loop.n == n
        assert len(loop) == 2 * n - 4
        assert loop.a.tolist() == [0] * (n - 2)
        assert loop.b.tolist() == [-1] * (n - 2)

    @pytest.mark.parametrize("n", [2, 1, 0, -4])
    def test_canonical_needs_three_punctures(self, n):
        with pytest.raises(LoopShapeError):
            LoopCoordinates.canonical(n)

    def test_canonical_rejects_non_integer(self):
        with pytest.raises(LoopShapeError):
            LoopCoordinates.canonical(4.0)

    def test_from_single_vector(self):
        loop = LoopCoordinates([1, 2, 3, -4, 5, -6])
        assert loop.n == 5
        assert loop.a.tolist() == [1, 2, 3]
        assert loop.b.tolist() == [-4, 5, -6]

    def test_odd_length_rejected(self):
        with pytest.raises(LoopShapeError, match="even length"):
            LoopCoordinates([1, 2, 3])

    def test_from_ab(self):
        loop = LoopCoordinates.from_ab([1, 0], [0, -1])
        assert loop == LoopCoordinates([1, 0, 0, -1])

    def test_from_ab_mismatched_lengths(self):
        with pytest.raises(LoopShapeError, match="same length"):
            LoopCoordinates.from_ab([1, 0], [0])

    def test_floats_rejected(self):
        with pytest.raises(LoopShapeError):
            LoopCoordinates([0.0, -1.0])

    def test_two_dimensional_rejected(self):
        with pytest.raises(LoopShapeError):
            LoopCoordinates(np.zeros((2, 2), dtype=np.int64))

    def test_degenerate_two_punctures(self):
        loop = LoopCoordinates([])
        assert loop.n == 2
        assert loop.a.tolist() == []
        assert loop.b.tolist() == []

    def test_copy_constructor(self, canonical4):
        assert LoopCoordinates(canonical4) == canonical4

    def test_large_values_held_exactly(self):
        big = 2**100
        loop = LoopCoordinates([big, -big])
        assert loop.is_exact
        assert loop.to_list() == [big, -big]


class TestValueSemantics:
    """Immutability, equality and rendering."""

    def test_views_are_read_only(self, canonical4):
        with pytest.raises(ValueError):
            canonical4.a[0] = 5
        with pytest.raises(ValueError):
            canonical4.coords[0] = 5

    def test_input_array_not_aliased(self):
        src = np.array([1, 2, 3, 4], dtype=np.int64)
        loop = LoopCoordinates(src)
        src[0] = 99
        assert loop.to_list() == [1, 2, 3, 4]

    def test_equality_ignores_storage_dtype(self):
        small = LoopCoordinates([1, -1])
        obj = LoopCoordinates(np.array([1, -1], dtype=object))
        assert small == obj
        assert hash(small) == hash(obj)

    def test_inequality(self, canonical4):
        assert canonical4 != LoopCoordinates.canonical(5)
        assert canonical4 != LoopCoordinates([0, 0, -1, 0])
        assert canonical4 != "(( 0 0 -1 -1 ))"

    def test_str(self, canonical4):
        assert str(canonical4) == "(( 0 0 -1 -1 ))"

    def test_ab(self, canonical4):
        a, b = canonical4.ab()
        assert a.tolist() == [0, 0]
        assert b.tolist() == [-1, -1]


class TestBatchHelpers:
    """Stacking loops into rows and back."""

    def test_stack_coords(self, canonical4):
        n, rows = stack_coords([canonical4, LoopCoordinates([1, 2, 3, 4])])
        assert n == 4
        assert rows == [(0, 0, -1, -1), (1, 2, 3, 4)]

    def test_stack_mixed_n_rejected(self, canonical4):
        with pytest.raises(LoopShapeError, match="mixes puncture counts"):
            stack_coords([canonical4, LoopCoordinates.canonical(5)])

    def test_stack_rejects_non_loops(self, canonical4):
        with pytest.raises(LoopShapeError):
            stack_coords([canonical4, [0, 0, -1, -1]])

    def test_loops_from_rows(self):
        loops = loops_from_rows(np.array([[0, 0, -1, -1], [1, 0, 0, -1]]))
        assert loops == [LoopCoordinates.canonical(4), LoopCoordinates.from_ab([1, 0], [0, -1])]

    def test_loops_from_rows_rejects_odd_width(self):
        with pytest.raises(LoopShapeError):
            loops_from_rows(np.zeros((2, 3), dtype=np.int64))

    def test_loops_from_rows_rejects_floats(self):
        with pytest.raises(LoopShapeError):
            loops_from_rows(np.zeros((2, 4)))
