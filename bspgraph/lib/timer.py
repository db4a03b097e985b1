"""Named phase timer for the command-line drivers.

Usage::

    timer = PhaseTimer()
    timer.start()
    ...                       # load graph
    timer.next("load graph")
    ...                       # run algorithm
    timer.next("run algorithm")
    timer.end()               # prints "Timing results:" to stderr
"""

from __future__ import annotations

import sys
import time
from typing import TextIO


class PhaseTimer:
    def __init__(self, enabled: bool = True, stream: TextIO | None = None) -> None:
        self.enabled = enabled
        self.stream = stream
        self.phases: list[tuple[str, float]] = []
        self._last: float | None = None

    def start(self) -> None:
        self.phases.clear()
        self._last = time.perf_counter()

    def next(self, name: str) -> float:
        """Close the current phase under *name* and start the next one."""
        now = time.perf_counter()
        elapsed = now - self._last if self._last is not None else 0.0
        self.phases.append((name, elapsed))
        self._last = now
        return elapsed

    @property
    def total(self) -> float:
        return sum(elapsed for _, elapsed in self.phases)

    def end(self) -> None:
        if not self.enabled:
            return
        out = self.stream or sys.stderr
        print("Timing results:", file=out)
        for name, elapsed in self.phases:
            print(f" - {name}: {elapsed:.6f} sec", file=out)
        print(f" - total: {self.total:.6f} sec", file=out)
