"""
Benchmark driver for proof-of-space storage engines.

This package sweeps engine configurations (file splitting, write and read
parallelism), times initialization, proof generation and validation for each
case, and renders the results as a console table and a CSV report.
"""

from .main import main

__all__ = ["main"]
