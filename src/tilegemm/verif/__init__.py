"""
Verification infrastructure for the GEMM accelerator.

- harness: RunResult, compare(), run_model_and_wait(), verify_model()
- sim: Amaranth testbench coroutines, simulate_gemm(), verify_rtl()
- stimulus: Random tile counts and matrices
"""

from .harness import (
    CompareResult,
    Mismatch,
    RunResult,
    VerificationReport,
    compare,
    run_model_and_wait,
    verify_model,
)
from .sim import run_and_wait, simulate_gemm, verify_rtl
from .stimulus import constant_matrices, random_matrices, random_tile_counts

__all__ = [
    "CompareResult",
    "Mismatch",
    "RunResult",
    "VerificationReport",
    "compare",
    "constant_matrices",
    "random_matrices",
    "random_tile_counts",
    "run_and_wait",
    "run_model_and_wait",
    "simulate_gemm",
    "verify_model",
    "verify_rtl",
]
