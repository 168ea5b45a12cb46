"""Base class for all benchmark suites."""

from __future__ import annotations

import argparse
from abc import ABC, abstractmethod

from ..schema import BenchmarkResult


class BaseBenchmark(ABC):
    """Abstract base for all benchmark suites.

    Each benchmark registers its own CLI arguments and implements a run
    method that returns results.
    """

    name: str = ""

    @abstractmethod
    def register_args(self, parser: argparse.ArgumentParser) -> None:
        """Add benchmark-specific CLI arguments to *parser*."""

    @abstractmethod
    def run(self, args: argparse.Namespace) -> list[BenchmarkResult]:
        """Execute the benchmark. Returns a list of result entries."""

    def validate(self, args: argparse.Namespace) -> str | None:
        """Check argument values; return an error message, or None if valid."""
        return None


class BenchmarkAborted(Exception):
    """A run hit a fatal failure and produced no valid result.

    *failures* holds the underlying per-worker errors, first one first.
    """

    def __init__(self, failures: list[Exception]):
        self.failures = failures
        more = f" (+{len(failures) - 1} more)" if len(failures) > 1 else ""
        super().__init__(f"{failures[0]}{more}")
