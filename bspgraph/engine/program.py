"""Vertex program contract.

A vertex program describes one BSP computation. The engine drives it
superstep by superstep:

1. ``send_message(value)`` on every sending vertex, returning
   ``(message, should_send)``.
2. ``process_message(message, edge_weight, value)`` once per edge the message
   travels along, evaluated against the *receiving* vertex's value.
3. ``reduce(total, partial)`` folds the partials destined for one vertex.
   Arrival order is unspecified, so it must be associative and commutative.
4. ``apply(total, value)`` returns the receiving vertex's new value.

Values handed to a program are the committed values as of the end of the
previous superstep; ``apply`` results become visible only in the next one.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from .runtime import GraphSweep

# Iteration budget meaning "run until no vertex changes".
RUN_TO_CONVERGENCE = -1

M = TypeVar("M")  # message
R = TypeVar("R")  # reduction accumulator
V = TypeVar("V")  # vertex value


class EdgeDirection(enum.Enum):
    """Edges along which a sender's message is delivered."""

    OUT_EDGES = "out"   # to out-neighbours
    IN_EDGES = "in"     # to in-neighbours
    ALL_EDGES = "all"   # to both


class ActivityPolicy(enum.Enum):
    """Which vertices call ``send_message`` in a superstep."""

    ALL_VERTICES = "all"
    ACTIVE_ONLY = "active"


class VertexProgram(ABC, Generic[M, R, V]):
    """Abstract base for all vertex programs."""

    name: str = ""
    direction: EdgeDirection = EdgeDirection.OUT_EDGES
    activity: ActivityPolicy = ActivityPolicy.ACTIVE_ONLY

    @abstractmethod
    def send_message(self, value: V) -> tuple[M, bool]:
        """Return the message to broadcast and whether to send it at all."""

    @abstractmethod
    def process_message(self, message: M, edge_weight: float, value: V) -> R:
        """Turn one delivered message into a partial result."""

    @abstractmethod
    def reduce(self, total: R, partial: R) -> R:
        """Combine two partial results destined for the same vertex.

        *total* belongs to the engine and may be updated in place; *partial*
        is not used again after the call.
        """

    @abstractmethod
    def apply(self, total: R, value: V) -> V:
        """Return the vertex's new value given its reduced total."""

    def on_start(self, sweep: GraphSweep) -> None:
        """Hook run once before the first superstep."""

    def on_superstep_end(self, superstep: int, sweep: GraphSweep) -> None:
        """Hook run after every superstep's writes are committed."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.direction.value}/{self.activity.value}>"


def describe(program: VertexProgram[Any, Any, Any]) -> str:
    """Short label used in progress bars and timing output."""
    return program.name or type(program).__name__
