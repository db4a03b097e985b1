"""Benchmark registry."""

from __future__ import annotations

import importlib
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import BaseBenchmark

_BENCHMARKS = {
    "graphalytics": ("bspgraph.benchmarks.graphalytics.runner", "GraphalyticsBenchmark"),
}


def get_benchmarks() -> dict[str, type[BaseBenchmark]]:
    """Return available benchmark classes, skipping any that fail to import."""
    registry: dict[str, type[BaseBenchmark]] = {}
    for name, (module, cls_name) in _BENCHMARKS.items():
        try:
            registry[name] = getattr(importlib.import_module(module), cls_name)
        except ImportError as e:
            print(f"Warning: failed to load {name} benchmark: {e}", file=sys.stderr)
    return registry
