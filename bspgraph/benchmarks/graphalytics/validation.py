"""Result validation against LDBC reference output or oracle results.

Each validator returns ``(ok, mismatches)`` where *mismatches* holds at most
ten human-readable lines. Reference values may be raw strings (as read from
a reference file) or numbers (as produced by ``oracle``).
"""

from __future__ import annotations

import math
from typing import Callable, Mapping

from ...algorithms import Algorithm

EPSILON = 1e-6
MAX_MISMATCHES = 10

Reference = Mapping[int, object]


def validate_exact(result: Mapping[int, int], reference: Reference) -> tuple[bool, list[str]]:
    """Validate exact integer match (BFS, CDLP)."""
    mismatches: list[str] = []
    for vid, ref in reference.items():
        ref_val = int(ref)
        actual = result.get(vid)
        if actual is None:
            mismatches.append(f"  vertex {vid}: missing (expected {ref_val})")
        elif actual != ref_val:
            mismatches.append(f"  vertex {vid}: expected {ref_val}, got {actual}")
        if len(mismatches) >= MAX_MISMATCHES:
            break
    return not mismatches, mismatches


def validate_partition(result: Mapping[int, int], reference: Reference) -> tuple[bool, list[str]]:
    """Validate WCC partition equivalence (bidirectional).

    Two vertices should be in the same component iff they share the same
    label in *both* the result and the reference -- the actual label values
    may differ.
    """
    mismatches: list[str] = []
    vids = sorted(reference)

    ref_groups: dict[object, set[int]] = {}
    for vid in vids:
        ref_groups.setdefault(reference[vid], set()).add(vid)

    result_groups: dict[int, set[int]] = {}
    for vid in vids:
        label = result.get(vid)
        if label is None:
            mismatches.append(f"  vertex {vid}: missing from result")
            if len(mismatches) >= MAX_MISMATCHES:
                break
            continue
        result_groups.setdefault(label, set()).add(vid)
    if mismatches:
        return False, mismatches

    # Every reference group maps to exactly one result group ...
    for ref_label, ref_set in ref_groups.items():
        labels_seen = {result[vid] for vid in ref_set}
        if len(labels_seen) != 1:
            mismatches.append(
                f"  ref group {ref_label}: split into {len(labels_seen)} result groups "
                f"(sample vertices: {sorted(ref_set)[:5]})"
            )
            if len(mismatches) >= MAX_MISMATCHES:
                break

    # ... and the other way round.
    if not mismatches:
        for res_label, res_set in result_groups.items():
            ref_labels_seen = {reference[vid] for vid in res_set}
            if len(ref_labels_seen) != 1:
                mismatches.append(
                    f"  result group {res_label}: merges {len(ref_labels_seen)} ref groups "
                    f"(sample vertices: {sorted(res_set)[:5]})"
                )
                if len(mismatches) >= MAX_MISMATCHES:
                    break

    return not mismatches, mismatches


def _is_unreachable(value: float) -> bool:
    # LDBC writes unreachable as int64 max or "infinity".
    return math.isinf(value) or value > 1e18


def validate_epsilon(
    result: Mapping[int, float],
    reference: Reference,
    epsilon: float = EPSILON,
) -> tuple[bool, list[str]]:
    """Validate floating-point results within *epsilon* (PR, LCC, SSSP)."""
    mismatches: list[str] = []
    for vid, ref in reference.items():
        ref_val = float(ref)
        actual = result.get(vid)
        if actual is None:
            mismatches.append(f"  vertex {vid}: missing (expected {ref_val})")
        else:
            ref_unreachable = _is_unreachable(ref_val)
            actual_unreachable = _is_unreachable(actual)
            if ref_unreachable and actual_unreachable:
                pass
            elif ref_unreachable != actual_unreachable:
                mismatches.append(
                    f"  vertex {vid}: expected {'unreachable' if ref_unreachable else ref_val}, "
                    f"got {'unreachable' if actual_unreachable else actual}"
                )
            elif abs(actual - ref_val) > epsilon:
                mismatches.append(
                    f"  vertex {vid}: expected {ref_val}, got {actual} "
                    f"(diff={abs(actual - ref_val):.2e})"
                )
        if len(mismatches) >= MAX_MISMATCHES:
            break
    return not mismatches, mismatches


_VALIDATORS: dict[Algorithm, Callable[[Mapping, Reference], tuple[bool, list[str]]]] = {
    Algorithm.BFS: validate_exact,
    Algorithm.CDLP: validate_exact,
    Algorithm.WCC: validate_partition,
    Algorithm.PAGERANK: validate_epsilon,
    Algorithm.LCC: validate_epsilon,
    Algorithm.SSSP: validate_epsilon,
}


def validate(algorithm: Algorithm, result: Mapping, reference: Reference) -> tuple[bool, list[str]]:
    """Pick the validator matching *algorithm*'s output semantics."""
    return _VALIDATORS[algorithm](result, reference)
