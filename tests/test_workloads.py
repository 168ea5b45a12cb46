"""Tests for the random source, Zipfian generator and workload config."""

from __future__ import annotations

import unittest
from collections import Counter

from txbench.benchmarks.ycsb.workloads import (
    FastRandom,
    YcsbConfig,
    ZipfianGenerator,
    format_key,
)


def _draw(n: int, theta: float, count: int, seed: int = 7) -> Counter:
    zipf = ZipfianGenerator(n, theta, FastRandom(seed))
    return Counter(zipf.next() for _ in range(count))


# ======================================================================
# FastRandom
# ======================================================================

class TestFastRandom(unittest.TestCase):
    def test_uniform_in_unit_interval(self):
        rng = FastRandom(1)
        for _ in range(10_000):
            u = rng.next_uniform()
            self.assertGreaterEqual(u, 0.0)
            self.assertLess(u, 1.0)

    def test_integer_in_bound(self):
        rng = FastRandom(2)
        seen = {rng.next_integer(5) for _ in range(1_000)}
        self.assertEqual(seen, {0, 1, 2, 3, 4})

    def test_integer_bound_must_be_positive(self):
        with self.assertRaises(ValueError):
            FastRandom(3).next_integer(0)

    def test_same_seed_same_sequence(self):
        a, b = FastRandom(42), FastRandom(42)
        self.assertEqual(
            [a.next_uniform() for _ in range(100)],
            [b.next_uniform() for _ in range(100)],
        )

    def test_unseeded_instances_differ(self):
        a, b = FastRandom(), FastRandom()
        self.assertNotEqual(a.seed, b.seed)
        self.assertNotEqual(
            [a.next_uniform() for _ in range(10)],
            [b.next_uniform() for _ in range(10)],
        )


# ======================================================================
# ZipfianGenerator
# ======================================================================

class TestZipfianConstruction(unittest.TestCase):
    def test_n_below_one_rejected(self):
        for n in (0, -1):
            with self.assertRaises(ValueError):
                ZipfianGenerator(n, 0.5)

    def test_theta_out_of_range_rejected(self):
        for theta in (-0.1, 1.0, 1.5):
            with self.assertRaises(ValueError):
                ZipfianGenerator(10, theta)

    def test_zeta_matches_direct_sum(self):
        expected = 1.0 + 1.0 / 2 ** 0.5 + 1.0 / 3 ** 0.5
        self.assertAlmostEqual(ZipfianGenerator.zeta(3, 0.5), expected)
        zipf = ZipfianGenerator(3, 0.5, FastRandom(0))
        self.assertAlmostEqual(zipf.zeta_n, expected)

    def test_uniform_skips_zeta(self):
        self.assertEqual(ZipfianGenerator(1000, 0.0, FastRandom(0)).zeta_n, 0.0)


class TestZipfianSampling(unittest.TestCase):
    def test_domain(self):
        for n in (1, 2, 3, 10, 1000):
            for theta in (0.0, 0.2, 0.5, 0.9, 0.99):
                counts = _draw(n, theta, 2_000, seed=n)
                self.assertGreaterEqual(min(counts), 1, (n, theta))
                self.assertLessEqual(max(counts), n, (n, theta))

    def test_single_item_always_one(self):
        for theta in (0.0, 0.5, 0.99):
            self.assertEqual(set(_draw(1, theta, 500)), {1})

    def test_two_items_both_drawn(self):
        counts = _draw(2, 0.8, 5_000)
        self.assertEqual(set(counts), {1, 2})
        self.assertGreater(counts[1], counts[2])

    def test_theta_zero_is_uniform(self):
        n, draws = 10, 50_000
        counts = _draw(n, 0.0, draws, seed=12345)
        expected = draws / n
        chi2 = sum((counts[i] - expected) ** 2 / expected for i in range(1, n + 1))
        # Critical value for 9 degrees of freedom at p = 0.001.
        self.assertLess(chi2, 27.88)

    def test_skew_increases_with_theta(self):
        n, draws = 50, 100_000
        ratios = []
        for theta in (0.0, 0.3, 0.6, 0.9):
            counts = _draw(n, theta, draws, seed=99)
            ratios.append(counts[1] / max(counts[n], 1))
        for lower, higher in zip(ratios, ratios[1:]):
            self.assertLess(lower, higher, ratios)

    def test_hottest_item_probability(self):
        # The first branch of the inversion is exact: P(1) = 1 / zeta(n).
        n, theta, draws = 100, 0.9, 100_000
        zipf = ZipfianGenerator(n, theta, FastRandom(5))
        hits = sum(1 for _ in range(draws) if zipf.next() == 1)
        self.assertAlmostEqual(hits / draws, 1.0 / zipf.zeta_n, delta=0.01)

    def test_fixed_seed_reproducible(self):
        a = ZipfianGenerator(1000, 0.9, FastRandom(2024))
        b = ZipfianGenerator(1000, 0.9, FastRandom(2024))
        self.assertEqual([a.next() for _ in range(1_000)], [b.next() for _ in range(1_000)])


# ======================================================================
# YcsbConfig
# ======================================================================

class TestYcsbConfig(unittest.TestCase):
    def test_defaults(self):
        config = YcsbConfig()
        self.assertEqual(config.table_size, 1000)
        self.assertEqual(config.thread_count, 1)
        self.assertEqual(config.operation_count, 1)
        self.assertEqual(config.duration, 10.0)
        self.assertEqual(config.zipf_theta, 0.0)
        self.assertEqual(config.update_ratio, 0.0)

    def test_table_size_scales(self):
        self.assertEqual(YcsbConfig(scale_factor=0.1).table_size, 100)
        self.assertEqual(YcsbConfig(scale_factor=2.5).table_size, 2500)

    def test_invalid_values_rejected(self):
        bad = [
            {"scale_factor": 0.0},
            {"scale_factor": float("inf")},
            {"scale_factor": float("nan")},
            {"zipf_theta": 1.0},
            {"zipf_theta": -0.5},
            {"operation_count": 0},
            {"update_ratio": 1.5},
            {"update_ratio": -0.1},
            {"thread_count": 0},
            {"duration": 0.0},
            {"duration": float("inf")},
            {"duration": float("nan")},
        ]
        for kwargs in bad:
            with self.assertRaises(ValueError, msg=kwargs):
                YcsbConfig(**kwargs)

    def test_immutable(self):
        config = YcsbConfig()
        with self.assertRaises(AttributeError):
            config.thread_count = 8

    def test_worker_seed(self):
        self.assertIsNone(YcsbConfig().worker_seed(3))
        self.assertEqual(YcsbConfig(seed=10).worker_seed(3), 13)

    def test_format_key(self):
        self.assertEqual(format_key(0), "0")
        self.assertEqual(format_key(99), "99")
