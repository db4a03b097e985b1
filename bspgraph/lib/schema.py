"""Benchmark result schema written by ``ResultRecorder``."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass
class HardwareInfo:
    cpu: str = ""
    cores: int = 0
    ram_gb: float = 0.0
    os: str = ""
    arch: str = ""


@dataclass
class RunMetadata:
    timestamp: str = ""
    git_commit: str | None = None
    git_branch: str | None = None
    git_dirty: bool | None = None
    engine: str = "bspgraph"
    engine_version: str = ""
    python_version: str = ""
    numpy_version: str = ""
    workers: int = 1
    hardware: HardwareInfo = field(default_factory=HardwareInfo)


@dataclass
class BenchmarkResult:
    benchmark: str          # e.g. "graphalytics/example-directed/bfs"
    category: str           # e.g. "graphalytics"
    parameters: dict = field(default_factory=dict)
    metrics: dict = field(default_factory=dict)
    validation: dict | None = None


@dataclass
class BenchmarkReport:
    schema_version: int = 1
    metadata: RunMetadata = field(default_factory=RunMetadata)
    results: list[BenchmarkResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        d = asdict(self)
        for r in d["results"]:
            if r.get("validation") is None:
                del r["validation"]
        meta = d["metadata"]
        for key in list(meta):
            if meta[key] is None:
                del meta[key]
        return d
