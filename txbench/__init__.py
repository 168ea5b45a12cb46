"""txbench: concurrent transactional workload benchmarks for key-value stores."""

__version__ = "0.1.0"
