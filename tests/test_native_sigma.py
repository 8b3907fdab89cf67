"""Tests for the compiled int64 kernel used by the numba backend."""

import numpy as np
import pytest

from exact_integer import GUARD_BOUND, Int64Arithmetic
from loop_sigma import _run_word
from native_sigma import sigma_int64


class TestKernel:
    """The kernel agrees with the vectorized recurrence and reports overflow."""

    def test_matches_vectorized_path(self, rng, random_word):
        n = 6
        coords = rng.integers(-50, 51, size=(40, 2 * (n - 2))).astype(np.int64)
        word = np.array(random_word(n, 35), dtype=np.int64)

        ref = coords.copy()
        ref_trace = np.zeros((40, len(word), 5), dtype=np.int8)
        ref_stop = _run_word(ref, word, n, Int64Arithmetic(), ref_trace)

        out, stop, trace = sigma_int64(word, coords, capture_trace=True)
        assert np.array_equal(out, ref)
        assert np.array_equal(stop, ref_stop)
        assert np.array_equal(trace, ref_trace)

    def test_input_not_modified(self):
        coords = np.array([[0, 0, -1, -1]], dtype=np.int64)
        sigma_int64(np.array([1, 2], dtype=np.int64), coords)
        assert coords.tolist() == [[0, 0, -1, -1]]

    def test_stop_leaves_pre_step_state(self):
        # sigma_2 on row 0: a2' = a2 - neg(b2) - neg(neg(b1) - c) = GUARD_BOUND + 1.
        coords = np.array([[GUARD_BOUND, 0, GUARD_BOUND, -1], [0, 0, -1, -1]], dtype=np.int64)
        out, stop, trace = sigma_int64(np.array([2, 1], dtype=np.int64), coords)
        assert trace is None
        assert stop[1] == -1
        assert stop[0] == 0
        assert out[0].tolist() == coords[0].tolist()
        assert out[1].tolist() == [2, 1, 0, 0]

    def test_bound_parameter(self):
        coords = np.array([[0, 0, -1, -1]], dtype=np.int64)
        _, stop, _ = sigma_int64(np.array([1, 2, 1, 2], dtype=np.int64), coords, bound=1)
        assert stop[0] >= 0

    def test_rejects_object_arrays(self):
        with pytest.raises(TypeError):
            sigma_int64(np.array([1]), np.array([[0, -1]], dtype=object))

    def test_rejects_two_punctures(self):
        with pytest.raises(ValueError):
            sigma_int64(np.array([1]), np.zeros((1, 0), dtype=np.int64))
