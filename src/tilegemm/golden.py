"""
Golden reference model for C = A × B.

Computes the exact integer product over full, unpacked matrices. It knows
nothing about tiles, packed words or cycles, so it shares no arithmetic
path with the PE grid it checks. hardware_reference() applies the input and
output width truncation the accelerator performs around that exact product.
"""

import numpy as np

from .config import GemmConfig
from .util.packing import wrap_signed


def _fits_int64(a: np.ndarray, b: np.ndarray) -> bool:
    """True if every partial sum of a @ b is guaranteed to fit int64."""
    if a.size == 0 or b.size == 0:
        return True
    a_max = max(abs(int(a.max())), abs(int(a.min())))
    b_max = max(abs(int(b.max())), abs(int(b.min())))
    return a_max * b_max * a.shape[1] < (1 << 63)


def golden_gemm(a, b) -> np.ndarray:
    """
    Exact matrix product of two integer matrices.

    Uses int64 when the inputs provably cannot overflow it and falls back
    to Python integers otherwise.

    Args:
        a: M x K integer matrix
        b: K x N integer matrix

    Returns:
        M x N matrix, C[m][n] = sum_k A[m][k] * B[k][n]
    """
    a = np.asarray(a)
    b = np.asarray(b)
    if a.ndim != 2 or b.ndim != 2 or a.shape[1] != b.shape[0]:
        raise ValueError(f"incompatible shapes {a.shape} x {b.shape}")

    if _fits_int64(a, b):
        return a.astype(np.int64) @ b.astype(np.int64)
    return a.astype(object) @ b.astype(object)


def wrap_elements(x, bits: int) -> np.ndarray:
    """Two's-complement wrap every element of x into the given width."""
    x = np.asarray(x)
    wrapped = np.array([wrap_signed(v, bits) for v in x.flat], dtype=object).reshape(x.shape)
    if bits <= 64:
        return wrapped.astype(np.int64)
    return wrapped


def wrap_output(c: np.ndarray, bits: int) -> np.ndarray:
    """Apply out_data_width two's-complement truncation to a reference result."""
    return wrap_elements(c, bits)


def hardware_reference(config: GemmConfig, a, b) -> np.ndarray:
    """
    Expected C as the accelerator stores it.

    A and B elements are first wrapped to in_data_width, which is what
    survives packing into tile words, and the exact product is then
    truncated to out_data_width.
    """
    a = wrap_elements(a, config.in_data_width)
    b = wrap_elements(b, config.in_data_width)
    return wrap_output(golden_gemm(a, b), config.out_data_width)
