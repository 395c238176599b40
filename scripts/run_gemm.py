#!/usr/bin/env python3
"""
Randomized GEMM verification.

Each iteration picks tile counts that fit the memories, fills A and B with
random signed values, runs the accelerator (behavioral model or RTL
simulation), and compares the result against the golden reference.

Usage:
    python scripts/run_gemm.py --iterations 20 --seed 1
    python scripts/run_gemm.py --target rtl --tiles 4 16 1
    python scripts/run_gemm.py --target rtl --tiles 1 16 1 --ones
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path if running from scripts/
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

import numpy as np  # noqa: E402

from tilegemm.config import DEFAULT_CONFIG, SMALL_CONFIG  # noqa: E402
from tilegemm.errors import ConfigurationError, VerificationError  # noqa: E402
from tilegemm.verif import (  # noqa: E402
    constant_matrices,
    random_matrices,
    random_tile_counts,
    verify_model,
    verify_rtl,
)

CONFIGS = {"default": DEFAULT_CONFIG, "small": SMALL_CONFIG}

logger = logging.getLogger("run_gemm")


def main() -> int:
    parser = argparse.ArgumentParser(description="Randomized tiled GEMM verification")
    parser.add_argument("--target", choices=["model", "rtl"], default="model", help="What to run")
    parser.add_argument("--config", choices=list(CONFIGS), default="default", help="Hardware config")
    parser.add_argument("--iterations", type=int, default=10, help="Number of runs")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--max-tiles", type=int, default=8, help="Largest random tile count")
    parser.add_argument(
        "--tiles", type=int, nargs=3, metavar=("M_T", "K_T", "N_T"), help="Fixed tile counts"
    )
    parser.add_argument("--ones", action="store_true", help="Fill A and B with 1 instead of random")
    parser.add_argument("--timeout", type=int, default=None, help="Cycle budget per run")
    parser.add_argument(
        "--fatal-on-mismatch", action="store_true", help="Stop at the first mismatching element"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every comparison")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)-7s %(name)s: %(message)s",
    )

    config = CONFIGS[args.config]
    rng = np.random.default_rng(args.seed)
    verify = verify_rtl if args.target == "rtl" else verify_model

    failures = 0
    for iteration in range(args.iterations):
        tiles = tuple(args.tiles) if args.tiles else random_tile_counts(config, rng, args.max_tiles)
        if args.ones:
            a, b = constant_matrices(config, *tiles)
        else:
            a, b = random_matrices(config, *tiles, rng)

        try:
            report = verify(
                config,
                a,
                b,
                fatal_on_mismatch=args.fatal_on_mismatch,
                timeout_cycles=args.timeout,
            )
        except (ConfigurationError, VerificationError) as exc:
            logger.error("iteration %d: %s", iteration, exc)
            return 1

        status = "PASS" if report.passed else "FAIL"
        logger.info(
            "iteration %d: tiles=%s cycles=%d (expected %d) %s",
            iteration,
            report.tiles,
            report.run.cycles,
            report.expected_cycles,
            status,
        )
        failures += not report.passed

    logger.info("%d/%d iterations passed", args.iterations - failures, args.iterations)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
