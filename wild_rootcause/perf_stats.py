"""
wild_rootcause/perf_stats.py
════════════════════════════

Phase timers and rewrite counters for one analysis run.

A :class:`PerformanceStats` is owned by the driver of a single run and
passed explicitly to whoever records into it; there is no module-level
instance.  Repeated runs therefore get independent numbers.

Usage::

    stats = PerformanceStats()
    with stats.timed(Phase.CONSTRAINT_SOLVER):
        solve()
    stats.increment(Counter.WILD_CASTS)
    stats.print_stats(sys.stdout, json_format=True)
"""

from __future__ import annotations

import enum
import json
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, TextIO

from .errors import RootCauseError


class Phase(enum.Enum):
    """Timed phases; values are the report keys."""
    COMPILE = "CompileTime"
    CONSTRAINT_BUILDER = "ConstraintBuilderTime"
    CONSTRAINT_SOLVER = "ConstraintSolverTime"
    ARRAY_BOUNDS_INFERENCE = "ArrayBoundsInferenceTime"
    REWRITING = "RewritingTime"
    TOTAL = "TotalTime"


class Counter(enum.Enum):
    """Rewrite counters; values are the report keys."""
    ASSUME_BOUNDS_CASTS = "NumAssumeBoundsCasts"
    CHECKED_CASTS = "NumCheckedCasts"
    WILD_CASTS = "NumWildCasts"
    FIXED_CASTS = "NumFixedCasts"
    ITYPES = "NumITypes"
    CHECKED_REGIONS = "NumCheckedRegions"
    UNCHECKED_REGIONS = "NumUnCheckedRegions"


# Compile time is tracked but not reported.
_REPORTED_PHASES = (
    Phase.TOTAL,
    Phase.CONSTRAINT_BUILDER,
    Phase.CONSTRAINT_SOLVER,
    Phase.ARRAY_BOUNDS_INFERENCE,
    Phase.REWRITING,
)


class PerformanceStats:
    """CPU-time accumulators per :class:`Phase` and counters per :class:`Counter`."""

    def __init__(self) -> None:
        self.times: Dict[Phase, float] = {p: 0.0 for p in Phase}
        self.counts: Dict[Counter, int] = {c: 0 for c in Counter}
        self._started: Dict[Phase, float] = {}

    # ── timers ───────────────────────────────────────────────────────

    def start(self, phase: Phase) -> None:
        self._started[phase] = time.process_time()

    def stop(self, phase: Phase) -> float:
        """Stop *phase*, add the elapsed CPU seconds and return them."""
        try:
            began = self._started.pop(phase)
        except KeyError:
            raise RootCauseError(f"{phase.name} was stopped without being started") from None
        elapsed = time.process_time() - began
        self.times[phase] += elapsed
        return elapsed

    @contextmanager
    def timed(self, phase: Phase) -> Iterator[None]:
        self.start(phase)
        try:
            yield
        finally:
            self.stop(phase)

    # ── counters ─────────────────────────────────────────────────────

    def increment(self, counter: Counter, amount: int = 1) -> None:
        self.counts[counter] += amount

    def decrement(self, counter: Counter) -> None:
        # itype counting sometimes has to undo an earlier increment
        self.counts[counter] -= 1

    # ── output ───────────────────────────────────────────────────────

    def to_json(self) -> List[Dict[str, Any]]:
        return [
            {"TimeStats": {p.value: self.times[p] for p in _REPORTED_PHASES}},
            {"ReWriteStats": {c.value: self.counts[c] for c in Counter}},
        ]

    def print_stats(self, stream: TextIO, json_format: bool = False) -> None:
        if json_format:
            stream.write(json.dumps(self.to_json()))
            stream.write("\n")
            return
        lines = ["TimeStats"]
        lines += [f"{p.value}:{self.times[p]}" for p in _REPORTED_PHASES]
        lines.append("ReWriteStats")
        lines += [f"{c.value}:{self.counts[c]}" for c in Counter]
        stream.write("\n".join(lines) + "\n")

    @classmethod
    def counter_by_key(cls, key: str) -> Optional[Counter]:
        for c in Counter:
            if c.value == key or c.name.lower() == key.lower():
                return c
        return None


__all__ = ["Phase", "Counter", "PerformanceStats"]
