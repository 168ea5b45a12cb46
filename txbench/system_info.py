"""Host and source-tree metadata attached to every saved report."""

from __future__ import annotations

import os
import platform
import subprocess

from . import __version__
from .schema import HardwareInfo, RunMetadata


def capture_hardware() -> HardwareInfo:
    """Detect CPU model, core count, RAM, OS, and architecture."""
    return HardwareInfo(
        cpu=_cpu_model(),
        cores=os.cpu_count() or 0,
        ram_gb=round(_ram_bytes() / (1024 ** 3), 1),
        os=platform.system().lower(),
        arch=platform.machine(),
    )


def capture_metadata(timestamp: str, store_backend: str | None = None) -> RunMetadata:
    """Snapshot git state, interpreter and hardware for one report."""
    status = _run("git", "status", "--porcelain")
    return RunMetadata(
        timestamp=timestamp,
        git_commit=_run("git", "rev-parse", "--short", "HEAD"),
        git_branch=_run("git", "rev-parse", "--abbrev-ref", "HEAD"),
        git_dirty=None if status is None else bool(status),
        python_version=f"{platform.python_implementation()} {platform.python_version()}",
        txbench_version=__version__,
        store_backend=store_backend,
        hardware=capture_hardware(),
    )


# -------------------------------------------------------------------
# Internals
# -------------------------------------------------------------------

def _run(*cmd: str) -> str | None:
    """Run *cmd* and return its stripped stdout, or None on any failure."""
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=5)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip()


def _read_field(path: str, prefix: str) -> str | None:
    try:
        with open(path) as f:
            for line in f:
                if line.startswith(prefix):
                    return line[len(prefix):].strip()
    except OSError:
        pass
    return None


def _cpu_model() -> str:
    system = platform.system()
    if system == "Darwin":
        model = _run("sysctl", "-n", "machdep.cpu.brand_string")
    elif system == "Linux":
        model = _read_field("/proc/cpuinfo", "model name")
        if model:
            model = model.lstrip(":").strip()
    else:
        model = None
    return model or platform.processor() or "unknown"


def _ram_bytes() -> int:
    system = platform.system()
    try:
        if system == "Darwin":
            return int(_run("sysctl", "-n", "hw.memsize") or 0)
        if system == "Linux":
            # "MemTotal:       16318040 kB"
            raw = _read_field("/proc/meminfo", "MemTotal:")
            return int(raw.split()[0]) * 1024 if raw else 0
    except ValueError:
        pass
    return 0
