"""Unified benchmark result schema shared by every benchmark suite."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict


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
    python_version: str = ""
    txbench_version: str = ""
    store_backend: str | None = None
    hardware: HardwareInfo = field(default_factory=HardwareInfo)


@dataclass
class BenchmarkResult:
    benchmark: str          # e.g. "ycsb/t4-z0.99-u0.5-o5/memory"
    category: str           # e.g. "ycsb"
    parameters: dict = field(default_factory=dict)
    metrics: dict = field(default_factory=dict)


@dataclass
class BenchmarkReport:
    schema_version: int = 1
    metadata: RunMetadata = field(default_factory=RunMetadata)
    results: list[BenchmarkResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        d = asdict(self)
        # Strip None metadata fields
        meta = d["metadata"]
        for key in list(meta):
            if meta[key] is None:
                del meta[key]
        return d
