"""Two-column ``vertex-id value`` output, in the format of LDBC reference files."""

from __future__ import annotations

import math
import sys
from pathlib import Path
from typing import Any, Sequence, TextIO

from ..algorithms import OutputKind


def format_value(kind: OutputKind, value: Any, vertex_ids: Sequence[int] | None = None) -> str:
    """Render one result value.

    Labels are vertex indices and are mapped back through *vertex_ids*;
    unreachable SSSP distances print as ``infinity``.
    """
    if kind is OutputKind.LABEL:
        return str(vertex_ids[value] if vertex_ids is not None else value)
    if kind is OutputKind.DEPTH:
        return str(int(value))
    if kind is OutputKind.DISTANCE and math.isinf(value):
        return "infinity"
    return repr(float(value))


def write_lines(stream: TextIO, vertex_ids: Sequence[int], values: Sequence[Any],
                kind: OutputKind) -> int:
    for vid, value in zip(vertex_ids, values):
        stream.write(f"{vid} {format_value(kind, value, vertex_ids)}\n")
    return len(values)


def write_output(
    path: Path | str | None,
    vertex_ids: Sequence[int],
    values: Sequence[Any],
    kind: OutputKind,
) -> int:
    """Write one line per vertex, in ascending external-id order.

    *path* ``None`` or ``"-"`` writes to stdout. Returns the number of lines.
    """
    if len(vertex_ids) != len(values):
        raise ValueError(
            f"{len(values)} values for {len(vertex_ids)} vertices"
        )
    if path is None or str(path) == "-":
        return write_lines(sys.stdout, vertex_ids, values, kind)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        return write_lines(f, vertex_ids, values, kind)
