#!/usr/bin/env python3
"""Run benchmarks from a source checkout: ``python run.py ycsb --thread_count 4``."""

from txbench.cli import main

if __name__ == "__main__":
    main()
