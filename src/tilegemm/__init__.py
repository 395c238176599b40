"""
Tilegemm - A tiled GEMM accelerator generator and verification harness.

This package provides configurable hardware generation for a grid of
multiply-accumulate PEs computing C = A × B from bit-packed tile memories,
using Amaranth HDL, together with a cycle-accurate behavioral model and a
golden-reference verification harness.
"""

from .config import DEFAULT_CONFIG, SMALL_CONFIG, GemmConfig
from .errors import ConfigurationError, GemmMismatchError, GemmTimeoutError, VerificationError

__version__ = "0.1.0"
__all__ = [
    "ConfigurationError",
    "DEFAULT_CONFIG",
    "GemmConfig",
    "GemmMismatchError",
    "GemmTimeoutError",
    "SMALL_CONFIG",
    "VerificationError",
    "__version__",
]
