"""Workload definition, key formatting and key distribution generators."""

from __future__ import annotations

import itertools
import math
import random
import threading
import time
from dataclasses import dataclass

from .config import (
    DEFAULT_BASE_TABLE_SIZE,
    DEFAULT_DURATION_S,
    DEFAULT_OPERATION_COUNT,
    DEFAULT_SCALE_FACTOR,
    DEFAULT_THREAD_COUNT,
    DEFAULT_UPDATE_RATIO,
    DEFAULT_ZIPF_THETA,
)


# ---------------------------------------------------------------------------
# YcsbConfig: immutable run parameters shared by every worker
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class YcsbConfig:
    """Parameters of one benchmark run. Validated on construction."""

    base_size: int = DEFAULT_BASE_TABLE_SIZE
    scale_factor: float = DEFAULT_SCALE_FACTOR
    zipf_theta: float = DEFAULT_ZIPF_THETA
    operation_count: int = DEFAULT_OPERATION_COUNT
    update_ratio: float = DEFAULT_UPDATE_RATIO
    thread_count: int = DEFAULT_THREAD_COUNT
    duration: float = DEFAULT_DURATION_S
    seed: int | None = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.scale_factor):
            raise ValueError(f"scale_factor must be finite, got {self.scale_factor}")
        if self.table_size < 1:
            raise ValueError(
                f"table size must be >= 1, got {self.table_size} "
                f"(base_size={self.base_size}, scale_factor={self.scale_factor})"
            )
        if not 0.0 <= self.zipf_theta < 1.0:
            raise ValueError(f"zipf_theta must be in [0, 1), got {self.zipf_theta}")
        if self.operation_count < 1:
            raise ValueError(f"operation_count must be >= 1, got {self.operation_count}")
        if not 0.0 <= self.update_ratio <= 1.0:
            raise ValueError(f"update_ratio must be in [0, 1], got {self.update_ratio}")
        if self.thread_count < 1:
            raise ValueError(f"thread_count must be >= 1, got {self.thread_count}")
        if not (self.duration > 0 and math.isfinite(self.duration)):
            raise ValueError(f"duration must be finite and > 0, got {self.duration}")

    @property
    def table_size(self) -> int:
        return int(self.base_size * self.scale_factor)

    def worker_seed(self, worker_id: int) -> int | None:
        """Seed for worker *worker_id*, or None to seed from the environment."""
        if self.seed is None:
            return None
        return self.seed + worker_id


# ---------------------------------------------------------------------------
# Key formatting
# ---------------------------------------------------------------------------

def format_key(i: int) -> str:
    """Return the key string for integer *i* (its decimal form)."""
    return str(i)


# ---------------------------------------------------------------------------
# Uniform random source
# ---------------------------------------------------------------------------

# Distinguishes instances created by one thread within one clock tick.
_instance_counter = itertools.count()


class FastRandom:
    """Per-thread uniform random source.

    Wraps a private ``random.Random`` so no state is shared between
    workers. Without an explicit *seed* the generator is seeded from the
    creating thread's identity mixed with the wall clock and a process-wide
    instance counter, so workers started in the same instant still draw
    uncorrelated sequences.
    """

    def __init__(self, seed: int | None = None) -> None:
        if seed is None:
            seed = (threading.get_ident() << 64) ^ (next(_instance_counter) << 40) ^ time.time_ns()
        self.seed = seed
        self._rng = random.Random(seed)

    def next_uniform(self) -> float:
        """Return a float in [0, 1)."""
        return self._rng.random()

    def next_integer(self, bound: int) -> int:
        """Return an int in [0, bound)."""
        if bound < 1:
            raise ValueError(f"bound must be >= 1, got {bound}")
        return self._rng.randrange(bound)


# ---------------------------------------------------------------------------
# Zipfian generator
# ---------------------------------------------------------------------------

class ZipfianGenerator:
    """Zipfian distribution over [1, n].

    Uses the fast approximate inversion from the YCSB reference generator
    (Gray et al., "Quickly Generating Billion-Record Synthetic Databases").
    The values are *not* scrambled: 1 is the hottest item, n the coldest.

    Parameters
    ----------
    n : int
        Number of items (must be >= 1).
    theta : float
        Skew in [0, 1). 0 samples uniformly.
    rng : FastRandom, optional
        Source of uniform draws; a freshly seeded one by default.
    """

    def __init__(self, n: int, theta: float, rng: FastRandom | None = None) -> None:
        if n < 1:
            raise ValueError(f"ZipfianGenerator requires n >= 1, got {n}")
        if not 0.0 <= theta < 1.0:
            raise ValueError(f"ZipfianGenerator requires theta in [0, 1), got {theta}")
        self._n = n
        self._theta = theta
        self._rng = rng if rng is not None else FastRandom()

        self._zeta_n = 0.0
        self._eta = 0.0
        self._alpha = 1.0 / (1.0 - theta)
        self._half_pow_theta = 0.5 ** theta
        if theta > 0.0 and n > 1:
            self._zeta_n = self.zeta(n, theta)
            if n > 2:
                zeta_2 = self.zeta(2, theta)
                self._eta = (1.0 - (2.0 / n) ** (1.0 - theta)) / (1.0 - zeta_2 / self._zeta_n)

    @property
    def n(self) -> int:
        return self._n

    @property
    def theta(self) -> float:
        return self._theta

    @property
    def zeta_n(self) -> float:
        """Normalisation constant; 0.0 when sampling is uniform or trivial."""
        return self._zeta_n

    @staticmethod
    def zeta(n: int, theta: float) -> float:
        """Compute the generalized harmonic number H_{n,theta}."""
        total = 0.0
        for i in range(1, n + 1):
            total += 1.0 / (i ** theta)
        return total

    def next(self) -> int:
        """Return a Zipfian-distributed integer in [1, n]."""
        n = self._n
        if n == 1:
            return 1
        if self._theta == 0.0:
            return self._rng.next_integer(n) + 1

        u = self._rng.next_uniform()
        uz = u * self._zeta_n
        if uz < 1.0:
            return 1
        if uz < 1.0 + self._half_pow_theta:
            return 2
        # n == 2 never gets here: uz < zeta_n == 1 + 0.5**theta.
        # Clamp because u close to 1.0 can round up to n + 1.
        return min(1 + int(n * ((self._eta * u - self._eta + 1.0) ** self._alpha)), n)
