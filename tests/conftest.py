"""Shared pytest fixtures for the loop kernel tests."""
import numpy as np
import pytest

from dynnikov_loop import LoopCoordinates
from exact_integer import GUARD_BOUND
from loop_sigma import ActionConfig


@pytest.fixture
def canonical4():
    """Canonical loop on 4 punctures: a=[0,0], b=[-1,-1]."""
    return LoopCoordinates.canonical(4)


@pytest.fixture
def rng():
    """Seeded generator so failures reproduce."""
    return np.random.default_rng(20130617)


@pytest.fixture
def random_loops(rng):
    """Factory: m random loops on n punctures with entries in [-span, span]."""

    def make(n, m, span=20):
        rows = rng.integers(-span, span + 1, size=(m, 2 * (n - 2)))
        return [LoopCoordinates(row) for row in rows]

    return make


@pytest.fixture
def random_word(rng):
    """Factory: random word of the given length for n punctures."""

    def make(n, k):
        idx = rng.integers(1, n, size=k)
        sgn = rng.choice([-1, 1], size=k)
        return [int(i * s) for i, s in zip(idx, sgn)]

    return make


@pytest.fixture
def near_bound_loop():
    """Loop on 5 punctures seeded just inside the int64 guard bound."""
    B = GUARD_BOUND
    return LoopCoordinates.from_ab([B - 3, -(B - 7), 11], [-(B - 1), 5, B // 3])


@pytest.fixture(params=["numpy", "numba", "exact"])
def backend_config(request):
    """Each execution backend in turn."""
    return ActionConfig(backend=request.param)


@pytest.fixture
def exact_config():
    return ActionConfig(backend="exact")
