#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Action of braid generators on loops in Dynnikov coordinates.

``apply_word(word, loops)`` acts on every loop of a batch with the generators
of ``word``, left to right.  Rows are independent; within a row generator j+1
acts on the result of generator j.

Strategy selection (capability checked, never a silent downgrade):
  numba   compiled int64 kernel, rows in parallel (native_sigma.py)
  numpy   vectorized int64 recurrence, row chunks on a thread pool
  exact   object arrays of Python ints

Neither int64 path can represent unbounded integers.  Rows whose inputs do not
fit, or whose next step would leave the guard bound, are promoted one by one
and finish the word on the exact path, starting from their state before the
failing step.  Promotion is per row: one large row never drags the batch onto
Python ints.

Red-lines respected:
  - Range and shape checks happen before any arithmetic; a failure aborts the
    whole batch.
  - Every new value of a step is computed from pre-step temporaries; the
    arrays are written only after the step is complete.
  - No int64 wraparound: see exact_integer.StrictConstants.GUARD_BOUND.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

import native_sigma
from dynnikov_errors import (
    ArithmeticOverflow,
    LoopShapeError,
    PrecisionExhaustedError,
)
from dynnikov_loop import LoopCoordinates, stack_coords
from exact_integer import (
    ExactArithmetic,
    Int64Arithmetic,
    StrictConstants,
    promote,
)
from generator_word import GeneratorWord

_logger = logging.getLogger(__name__)

_BACKENDS = ("auto", "numba", "numpy", "exact")


# =============================================================================
# Configuration / result
# =============================================================================


@dataclass(frozen=True)
class ActionConfig:
    """
    Execution knobs for apply_word.  None of them changes the result.

      - backend: 'auto', 'numba', 'numpy' or 'exact'
      - allow_promotion: False models a deployment without unbounded integers;
        any overflow then raises PrecisionExhaustedError
      - max_workers: thread count for the numpy path (None = executor default)
      - chunk_rows: rows per numpy work item
      - numba_min_rows: 'auto' switches to the compiled kernel at this batch size
    """

    backend: str = "auto"
    allow_promotion: bool = True
    max_workers: Optional[int] = None
    chunk_rows: int = 4096
    numba_min_rows: int = 64

    def __post_init__(self) -> None:
        if self.backend not in _BACKENDS:
            raise ValueError(f"backend must be one of {_BACKENDS}, got {self.backend!r}")
        if self.max_workers is not None and (not isinstance(self.max_workers, int) or self.max_workers < 1):
            raise ValueError(f"max_workers must be None or int >= 1, got {self.max_workers!r}")
        if not isinstance(self.chunk_rows, int) or self.chunk_rows < 1:
            raise ValueError(f"chunk_rows must be int >= 1, got {self.chunk_rows!r}")
        if not isinstance(self.numba_min_rows, int) or self.numba_min_rows < 1:
            raise ValueError(f"numba_min_rows must be int >= 1, got {self.numba_min_rows!r}")


@dataclass
class ActionResult:
    loops: List[LoopCoordinates]
    trace: Optional[np.ndarray] = None
    promoted_rows: Tuple[int, ...] = ()
    diagnostics: Dict[str, Any] = field(default_factory=dict)

    @property
    def loop(self) -> LoopCoordinates:
        if len(self.loops) != 1:
            raise LoopShapeError(f"result holds {len(self.loops)} loops, not exactly one")
        return self.loops[0]

    def flat_trace(self) -> Optional[np.ndarray]:
        """Trace as (rows, 5 * len(word)), generator-major."""
        if self.trace is None:
            return None
        return self.trace.reshape(self.trace.shape[0], -1)


# =============================================================================
# One generator step (shared by the numpy and exact paths)
# =============================================================================


def _sigma_step(a: np.ndarray, b: np.ndarray, gen: int, n: int, ar) -> Tuple[tuple, tuple]:
    """
    New values for one generator on 2-D views a, b (rows x n-2).

    Returns (updates, signs): updates is a tuple of (column, new_a, new_b),
    signs holds the branch-trace columns (2 for boundary cases, 5 inside).
    Nothing is written to a or b.
    """
    pos, neg, sign = ar.pos, ar.neg, ar.sign
    i = abs(gen)

    if i == 1 or i == n - 1:
        q = 0 if i == 1 else n - 3
        edge = pos if i == 1 else neg
        ak, bk = a[:, q], b[:, q]
        if gen > 0:
            bp = ak + edge(bk)
            ap = -bk + edge(bp)
        else:
            bp = -ak + edge(bk)
            ap = bk - edge(bp)
        return ((q, ap, bp),), (sign(bk), sign(bp))

    a1, a2 = a[:, i - 2], a[:, i - 1]
    b1, b2 = b[:, i - 2], b[:, i - 1]
    if gen > 0:
        c = a1 - a2 - pos(b2) + neg(b1)
        ap1 = a1 - pos(b1) - pos(pos(b2) + c)
        bp1 = b2 + neg(c)
        ap2 = a2 - neg(b2) - neg(neg(b1) - c)
        bp2 = b1 - neg(c)
        signs = (sign(b2), sign(b1), sign(c), sign(pos(b2) + c), sign(neg(b1) - c))
    else:
        d = a1 - a2 + pos(b2) - neg(b1)
        ap1 = a1 + pos(b1) + pos(pos(b2) - d)
        bp1 = b2 - pos(d)
        ap2 = a2 + neg(b2) + neg(neg(b1) + d)
        bp2 = b1 + pos(d)
        signs = (sign(b2), sign(b1), sign(pos(b2) - d), sign(d), sign(neg(b1) + d))
    return ((i - 2, ap1, bp1), (i - 1, ap2, bp2)), signs


def _run_word(
    coords: np.ndarray,
    word: np.ndarray,
    n: int,
    ar,
    trace: Optional[np.ndarray] = None,
    start: int = 0,
) -> np.ndarray:
    """
    Apply word[start:] in place to every row of ``coords``.

    Returns per-row stop indices: -1 when the row finished, otherwise the
    generator whose outputs left the bounded representation (the row is left
    in its state before that generator).
    """
    m = coords.shape[0]
    a, b = coords[:, : n - 2], coords[:, n - 2 :]
    stop = np.full(m, -1, dtype=np.int64)
    live = np.ones(m, dtype=bool)

    for j in range(start, len(word)):
        updates, signs = _sigma_step(a, b, int(word[j]), n, ar)
        over = ar.exceeds([v for _, ap, bp in updates for v in (ap, bp)])
        if over is not None and over.any():
            stop[live & over] = j
            live = live & ~over
            for q, ap, bp in updates:
                a[live, q] = ap[live]
                b[live, q] = bp[live]
            if trace is not None:
                for s, col in enumerate(signs):
                    trace[live, j, s] = col[live]
            if not live.any():
                break
            continue

        if live.all():
            for q, ap, bp in updates:
                a[:, q] = ap
                b[:, q] = bp
            if trace is not None:
                for s, col in enumerate(signs):
                    trace[:, j, s] = col
        else:
            for q, ap, bp in updates:
                a[live, q] = ap[live]
                b[live, q] = bp[live]
            if trace is not None:
                for s, col in enumerate(signs):
                    trace[live, j, s] = col[live]
    return stop


# =============================================================================
# Chunk execution
# =============================================================================


@dataclass
class _ChunkOutput:
    rows: List[np.ndarray]
    trace: Optional[np.ndarray]
    promoted: List[int]


def _finish_exact(
    word: np.ndarray,
    n: int,
    trace: Optional[np.ndarray],
    pending: Dict[int, List[int]],
    states: Dict[int, np.ndarray],
    out: List[Optional[np.ndarray]],
) -> None:
    """Run promoted rows on Python ints, grouped by the step they resume from."""
    exact = ExactArithmetic()
    for start in sorted(pending):
        idx = pending[start]
        block = exact.asarray([tuple(int(v) for v in states[r]) for r in idx])
        sub_trace = trace[idx] if trace is not None else None
        _run_word(block, word, n, exact, sub_trace, start=start)
        if trace is not None:
            trace[idx] = sub_trace
        for pos_in_block, r in enumerate(idx):
            out[r] = block[pos_in_block]


def _apply_chunk(
    rows: Sequence[Tuple[int, ...]],
    word: np.ndarray,
    n: int,
    capture_trace: bool,
    backend: str,
    allow_promotion: bool,
    row_offset: int,
) -> _ChunkOutput:
    m = len(rows)
    k = len(word)
    trace = np.zeros((m, k, StrictConstants.TRACE_SLOTS), dtype=np.int8) if capture_trace else None
    out: List[Optional[np.ndarray]] = [None] * m
    pending: Dict[int, List[int]] = {}
    states: Dict[int, np.ndarray] = {}

    if backend == "exact":
        pending[0] = list(range(m))
        states = {r: np.array(rows[r], dtype=object) for r in range(m)}
        fast_idx: List[int] = []
    else:
        bounded = Int64Arithmetic()
        try:
            fast_idx = list(range(m))
            block = bounded.asarray(rows)
        except ArithmeticOverflow as ovf:
            if not allow_promotion:
                raise PrecisionExhaustedError(
                    f"rows {[row_offset + r for r in ovf.rows]} do not fit int64 and promotion is disabled"
                ) from ovf
            big = set(ovf.rows)
            fast_idx = [r for r in range(m) if r not in big]
            pending[0] = sorted(big)
            for r in big:
                states[r] = np.array(rows[r], dtype=object)
            block = bounded.asarray([rows[r] for r in fast_idx]) if fast_idx else None

        if fast_idx:
            if backend == "numba":
                block, stop, fast_trace = native_sigma.sigma_int64(word, block, capture_trace=capture_trace)
            else:
                fast_trace = None
                if capture_trace:
                    fast_trace = np.zeros((len(fast_idx), k, StrictConstants.TRACE_SLOTS), dtype=np.int8)
                stop = _run_word(block, word, n, bounded, fast_trace)
            if trace is not None:
                trace[fast_idx] = fast_trace
            for pos_in_block, r in enumerate(fast_idx):
                s = int(stop[pos_in_block])
                if s < 0:
                    out[r] = block[pos_in_block]
                    continue
                if not allow_promotion:
                    raise PrecisionExhaustedError(
                        f"row {row_offset + r} overflows int64 at generator {s} and promotion is disabled"
                    ) from ArithmeticOverflow("int64 guard bound exceeded", rows=(row_offset + r,), step=s)
                pending.setdefault(s, []).append(r)
                states[r] = promote(block[pos_in_block])

    if pending:
        _logger.debug(
            "promoting %d row(s) to exact integers (resume steps: %s)",
            sum(len(v) for v in pending.values()),
            sorted(pending),
        )
        _finish_exact(word, n, trace, pending, states, out)

    promoted = sorted(row_offset + r for idx in pending.values() for r in idx)
    if backend == "exact":
        promoted = []
    return _ChunkOutput(rows=out, trace=trace, promoted=promoted)


def _select_backend(config: ActionConfig, m: int) -> str:
    if config.backend != "auto":
        return config.backend
    return "numba" if m >= config.numba_min_rows else "numpy"


# =============================================================================
# Public entry point
# =============================================================================


def apply_word(
    word: Union[GeneratorWord, Sequence[int], int, None],
    loops: Union[LoopCoordinates, Sequence[LoopCoordinates]],
    capture_trace: bool = False,
    config: Optional[ActionConfig] = None,
) -> ActionResult:
    """
    Act on ``loops`` with the braid ``word``.

    Args:
      word: GeneratorWord or sequence of signed 1-based generator indices.
      loops: one LoopCoordinates or a batch of them, all with the same n.
      capture_trace: also return the branch trace, int8 of shape
        (rows, len(word), 5): the signs of the pos/neg arguments chosen at
        each generator, zero-filled where a case uses fewer than 5.
      config: ActionConfig; defaults are fine for most callers.

    Raises:
      LoopShapeError: malformed batch or mixed puncture counts.
      GeneratorRangeError: some |g| outside [1, n-1].
      PrecisionExhaustedError: overflow with config.allow_promotion=False.
    """
    t0 = time.perf_counter()
    config = config or ActionConfig()
    word = GeneratorWord.coerce(word)

    if isinstance(loops, LoopCoordinates):
        batch = [loops]
    else:
        batch = list(loops)
    if not batch:
        trace = np.zeros((0, len(word), StrictConstants.TRACE_SLOTS), dtype=np.int8) if capture_trace else None
        return ActionResult(loops=[], trace=trace, diagnostics={"backend": None, "rows": 0})

    n, rows = stack_coords(batch)
    word.check_range(n)
    m, k = len(rows), len(word)
    diag: Dict[str, Any] = {"rows": m, "n": n, "word_length": k}

    # Identity: empty word, or n = 2 where the only essential loop encloses
    # both punctures and every generator fixes it.
    if k == 0 or n == 2:
        trace = np.zeros((m, k, StrictConstants.TRACE_SLOTS), dtype=np.int8) if capture_trace else None
        diag.update(backend=None, elapsed_ms=(time.perf_counter() - t0) * 1000.0)
        return ActionResult(loops=list(batch), trace=trace, diagnostics=diag)

    backend = _select_backend(config, m)
    word_arr = word.as_array()
    _logger.debug("apply_word: rows=%d n=%d word_length=%d backend=%s", m, n, k, backend)

    if backend == "numba":
        chunks = [(0, rows)]
    else:
        step = config.chunk_rows
        chunks = [(lo, rows[lo : lo + step]) for lo in range(0, m, step)]

    def run(chunk: Tuple[int, Sequence[Tuple[int, ...]]]) -> _ChunkOutput:
        lo, part = chunk
        return _apply_chunk(part, word_arr, n, capture_trace, backend, config.allow_promotion, lo)

    if len(chunks) > 1 and config.max_workers != 1:
        with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
            outputs = list(executor.map(run, chunks))
    else:
        outputs = [run(c) for c in chunks]

    new_loops: List[LoopCoordinates] = []
    promoted: List[int] = []
    for o in outputs:
        new_loops.extend(LoopCoordinates._from_array(row) for row in o.rows)
        promoted.extend(o.promoted)
    trace = np.concatenate([o.trace for o in outputs], axis=0) if capture_trace else None

    diag.update(
        backend=backend,
        chunks=len(chunks),
        promoted=len(promoted),
        elapsed_ms=(time.perf_counter() - t0) * 1000.0,
    )
    return ActionResult(loops=new_loops, trace=trace, promoted_rows=tuple(promoted), diagnostics=diag)


def act(word: Union[GeneratorWord, Sequence[int], int, None], loop: LoopCoordinates, config: Optional[ActionConfig] = None) -> LoopCoordinates:
    """Single-loop shorthand for apply_word(word, loop).loop."""
    return apply_word(word, loop, config=config).loop


# =============================================================================
# Self-test
# =============================================================================


def _self_test_loop_sigma() -> Dict[str, Any]:
    """
    Quick deployment check of the action kernel on hand-computed cases.
    Raises RuntimeError if anything fails.
    """
    results: Dict[str, Any] = {"ok": True, "tests": []}

    def record(name: str, passed: bool, detail: str = "") -> None:
        results["tests"].append({"name": name, "passed": passed, "detail": detail})
        if not passed:
            results["ok"] = False
            _logger.error("SELF-TEST FAILED: %s - %s", name, detail)

    canon = LoopCoordinates.canonical(4)

    try:
        got = act([1], canon)
        assert got == LoopCoordinates.from_ab([1, 0], [0, -1]), f"sigma_1 gave {got!r}"
        record("boundary_low_sigma_1", True)
    except Exception as e:
        record("boundary_low_sigma_1", False, str(e))

    try:
        got = act([2], canon)
        assert got == LoopCoordinates.from_ab([0, 1], [-2, 0]), f"sigma_2 gave {got!r}"
        record("interior_sigma_2", True)
    except Exception as e:
        record("interior_sigma_2", False, str(e))

    try:
        got = act([3], canon)
        assert got == canon, f"sigma_3 should fix the canonical loop, got {got!r}"
        record("boundary_high_sigma_3", True)
    except Exception as e:
        record("boundary_high_sigma_3", False, str(e))

    try:
        w = GeneratorWord((1, -2, 3, 2, -1))
        assert act(w + w.inverse(), canon) == canon, "word times inverse is not the identity"
        record("inverse_cancellation", True)
    except Exception as e:
        record("inverse_cancellation", False, str(e))

    try:
        w = GeneratorWord((1, -2)) ** 60
        fast = act(w, canon, ActionConfig(backend="numpy"))
        exact = act(w, canon, ActionConfig(backend="exact"))
        assert fast == exact, "promoted int64 result differs from exact result"
        assert fast.is_exact, "60 iterations of sigma_1 sigma_2^-1 should not fit int64"
        record("promotion_matches_exact", True)
    except Exception as e:
        record("promotion_matches_exact", False, str(e))

    passed = sum(1 for t in results["tests"] if t["passed"])
    total = len(results["tests"])
    _logger.info("loop_sigma self-test: %d/%d passed", passed, total)
    if not results["ok"]:
        raise RuntimeError(f"loop_sigma self-test FAILED: {total - passed}/{total} tests failed.")
    return results


__all__ = [
    "ActionConfig",
    "ActionResult",
    "apply_word",
    "act",
]


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    res = _self_test_loop_sigma()
    for t in res["tests"]:
        status = "PASS" if t["passed"] else "FAIL"
        print(f"  [{status}] {t['name']}")
