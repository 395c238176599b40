"""
Randomized stimulus for verification runs.

Picks tile counts that fit the configured memories and fills A and B with
signed values spanning the full in_data_width range. All randomness comes
from a numpy Generator so that a seed reproduces a run exactly.
"""

import numpy as np

from ..config import GemmConfig


def random_tile_counts(
    config: GemmConfig, rng: np.random.Generator, max_tiles: int = 8
) -> tuple[int, int, int]:
    """
    Draw (M_t, K_t, N_t), each in [1, max_tiles], that fit the memories.

    Draws are repeated until check_tile_counts accepts them; max_tiles is
    clamped so that (1, 1, 1) is always reachable.
    """
    limit = max(1, min(max_tiles, config.max_tile_count, config.mem_depth))
    while True:
        m_tiles, k_tiles, n_tiles = (int(x) for x in rng.integers(1, limit + 1, size=3))
        if (
            m_tiles * k_tiles <= config.mem_depth
            and k_tiles * n_tiles <= config.mem_depth
            and m_tiles * n_tiles <= config.mem_depth
        ):
            return m_tiles, k_tiles, n_tiles


def random_matrices(
    config: GemmConfig,
    m_tiles: int,
    k_tiles: int,
    n_tiles: int,
    rng: np.random.Generator,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Random signed A (M x K) and B (K x N) for the given tile counts.

    Values cover the full two's-complement range of in_data_width.
    """
    m, k, n = config.matrix_dims(m_tiles, k_tiles, n_tiles)
    lo = -(1 << (config.in_data_width - 1))
    hi = (1 << (config.in_data_width - 1)) - 1
    a = rng.integers(lo, hi, size=(m, k), endpoint=True, dtype=np.int64)
    b = rng.integers(lo, hi, size=(k, n), endpoint=True, dtype=np.int64)
    return a, b


def constant_matrices(
    config: GemmConfig, m_tiles: int, k_tiles: int, n_tiles: int, value: int = 1
) -> tuple[np.ndarray, np.ndarray]:
    """A and B filled with a single value."""
    m, k, n = config.matrix_dims(m_tiles, k_tiles, n_tiles)
    return np.full((m, k), value, dtype=np.int64), np.full((k, n), value, dtype=np.int64)
