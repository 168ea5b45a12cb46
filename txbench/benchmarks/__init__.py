"""Benchmark registry: lazy imports so a missing backend doesn't crash the CLI."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import BaseBenchmark

# External deps whose absence only disables the benchmark that needs them.
_OPTIONAL_DEPS = {"apsw", "tqdm"}


def get_benchmarks() -> dict[str, type[BaseBenchmark]]:
    """Return available benchmark classes, skipping those with missing deps."""
    registry: dict[str, type[BaseBenchmark]] = {}

    def _try_register(name: str, module: str, cls_name: str) -> None:
        try:
            mod = __import__(module, fromlist=[cls_name])
            registry[name] = getattr(mod, cls_name)
        except ImportError as e:
            missing = getattr(e, "name", None)
            if missing and missing.split(".")[0] in _OPTIONAL_DEPS:
                print(f"Warning: {name} benchmark disabled, {missing} is not installed",
                      file=sys.stderr)
            else:
                raise

    _try_register("ycsb", "txbench.benchmarks.ycsb.runner", "YcsbBenchmark")

    return registry
