"""ResultRecorder: accumulates benchmark results and writes JSON reports."""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import numpy as np

from .schema import BenchmarkReport, BenchmarkResult, RunMetadata
from .system_info import (
    capture_hardware,
    engine_version,
    git_state,
    numpy_version,
    python_version,
)


def _json_default(obj: object) -> object:
    """Handle numpy types and paths in JSON serialization."""
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, Path):
        return str(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class ResultRecorder:
    """Collects BenchmarkResult entries and writes a BenchmarkReport JSON file.

    Captures hardware and git metadata at construction time so all results
    in a single report share the same snapshot.
    """

    def __init__(self, category: str, workers: int = 1):
        self.category = category
        now = datetime.now(timezone.utc)
        commit, branch, dirty = git_state()

        self._report = BenchmarkReport(
            metadata=RunMetadata(
                timestamp=now.isoformat(),
                git_commit=commit,
                git_branch=branch,
                git_dirty=dirty,
                engine_version=engine_version(),
                python_version=python_version(),
                numpy_version=numpy_version(),
                workers=workers,
                hardware=capture_hardware(),
            ),
        )
        self._timestamp_slug = now.strftime("%Y-%m-%dT%H-%M-%SZ")
        self._commit_slug = commit or "unknown"

    @property
    def results(self) -> list[BenchmarkResult]:
        return self._report.results

    def record(self, result: BenchmarkResult) -> None:
        self._report.results.append(result)

    def save(self, output_dir: str | Path) -> Path:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{self.category}-{self._timestamp_slug}-{self._commit_slug}.json"
        path = output_dir / filename

        # Atomic write: serialize to temp file, then rename.
        fd, tmp_path = tempfile.mkstemp(dir=output_dir, suffix=".json.tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(self._report.to_dict(), f, indent=2, default=_json_default)
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

        print(f"\nResults saved to {path}")
        return path
