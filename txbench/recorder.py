"""ResultRecorder: accumulates benchmark results and writes unified JSON reports."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from .schema import BenchmarkReport, BenchmarkResult
from .system_info import capture_metadata

logger = logging.getLogger(__name__)


class ResultRecorder:
    """Collects BenchmarkResult entries and writes a BenchmarkReport JSON file.

    Captures hardware and git metadata at construction time so all results
    in a single report share the same snapshot.
    """

    def __init__(self, category: str, store_backend: str | None = None):
        self.category = category
        now = datetime.now(timezone.utc)
        metadata = capture_metadata(now.isoformat(), store_backend=store_backend)
        self._report = BenchmarkReport(metadata=metadata)
        self._timestamp_slug = now.strftime("%Y-%m-%dT%H-%M-%SZ")
        self._commit_slug = metadata.git_commit or "unknown"

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
                json.dump(self._report.to_dict(), f, indent=2)
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

        logger.debug("wrote %d result(s) to %s", len(self._report.results), path)
        print(f"\nResults saved to {path}")
        return path
