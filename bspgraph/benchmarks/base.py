"""Interface every benchmark suite registered with the CLI implements."""

from __future__ import annotations

import argparse
from abc import ABC, abstractmethod

from ..lib.schema import BenchmarkResult


class BaseBenchmark(ABC):
    """A suite that times engine runs on some set of graphs.

    ``run.py`` gives each suite its own subcommand: ``register_args`` fills
    in the subparser, ``validate`` gates the run on the graphs being present
    (``download`` then tells the user how to fetch them), and the records
    returned by ``run`` are saved under the suite's ``name``.
    """

    name: str = ""

    @abstractmethod
    def register_args(self, parser: argparse.ArgumentParser) -> None:
        """Add suite options to the subcommand's *parser*."""

    @abstractmethod
    def run(self, args: argparse.Namespace) -> list[BenchmarkResult]:
        """Time every selected algorithm; one record per algorithm."""

    @abstractmethod
    def download(self, args: argparse.Namespace) -> None:
        """Print where to get the graphs ``validate`` found missing."""

    def validate(self, args: argparse.Namespace) -> bool:
        """Whether the input graphs are in place."""
        return True
