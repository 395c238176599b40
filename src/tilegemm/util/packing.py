"""
Packed tile codec.

Every tile memory word holds one whole tile, elements concatenated LSB-first
at fixed bit offsets:

    A word (address m_t*K_t + k_t), element A[r][c]:
        offset = (r * num_ip_k + c) * in_data_width
    B word (address k_t*N_t + n_t), element B[rr][cc]:
        offset = (cc * num_ip_k + rr) * in_data_width
    C word (address m_t*N_t + n_t), element C[r][cc]:
        offset = (r * num_pe_n + cc) * out_data_width

B is stored column-major so that each PE column finds its K lanes in one
contiguous slice, the same way each PE row finds its A lanes.

Elements are two's-complement. Values wider than the element width are
truncated by wraparound, and unpacking sign-extends.
"""

from dataclasses import dataclass

import numpy as np

from ..config import GemmConfig
from ..errors import ConfigurationError


def to_unsigned(value: int, bits: int) -> int:
    """Two's-complement bit pattern of value in the given width."""
    return int(value) & ((1 << bits) - 1)


def wrap_signed(value: int, bits: int) -> int:
    """
    Wrap value into the signed range of the given width.

    Example:
        >>> wrap_signed(200, 8)
        -56
    """
    raw = to_unsigned(value, bits)
    if raw >> (bits - 1):
        raw -= 1 << bits
    return raw


def element_dtype(bits: int):
    """Numpy dtype able to hold signed values of the given width."""
    return np.int64 if bits <= 64 else object


@dataclass(frozen=True)
class TileLayout:
    """
    Bit layout of one packed tile.

    Attributes:
        rows: Tile rows (first index)
        cols: Tile columns (second index)
        width: Element width in bits
        column_major: If True, elements are laid out column by column
    """

    rows: int
    cols: int
    width: int
    column_major: bool = False

    @property
    def word_bits(self) -> int:
        return self.rows * self.cols * self.width

    def offset(self, row: int, col: int) -> int:
        """Bit offset of element [row][col]."""
        if self.column_major:
            return (col * self.rows + row) * self.width
        return (row * self.cols + col) * self.width

    def pack(self, elements) -> int:
        """Pack a rows x cols block of integers into one word."""
        block = np.asarray(elements, dtype=object)
        if block.shape != (self.rows, self.cols):
            raise ValueError(f"expected a {self.rows}x{self.cols} tile, got shape {block.shape}")

        word = 0
        for r in range(self.rows):
            for c in range(self.cols):
                word |= to_unsigned(block[r, c], self.width) << self.offset(r, c)
        return word

    def unpack(self, word: int) -> np.ndarray:
        """Unpack one word into a rows x cols array of signed integers."""
        mask = (1 << self.width) - 1
        tile = np.zeros((self.rows, self.cols), dtype=element_dtype(self.width))
        for r in range(self.rows):
            for c in range(self.cols):
                raw = (int(word) >> self.offset(r, c)) & mask
                tile[r, c] = wrap_signed(raw, self.width)
        return tile


def a_tile_layout(config: GemmConfig) -> TileLayout:
    """Layout of an A tile: num_pe_m rows by num_ip_k K-lanes."""
    return TileLayout(config.num_pe_m, config.num_ip_k, config.in_data_width)


def b_tile_layout(config: GemmConfig) -> TileLayout:
    """Layout of a B tile: num_ip_k K-lanes by num_pe_n columns, column-major."""
    return TileLayout(config.num_ip_k, config.num_pe_n, config.in_data_width, column_major=True)


def c_tile_layout(config: GemmConfig) -> TileLayout:
    """Layout of a C tile: num_pe_m rows by num_pe_n columns."""
    return TileLayout(config.num_pe_m, config.num_pe_n, config.out_data_width)


def _tile_counts(shape: tuple[int, int], tile: tuple[int, int], name: str) -> tuple[int, int]:
    rows, cols = shape
    tile_rows, tile_cols = tile
    if rows % tile_rows or cols % tile_cols or rows == 0 or cols == 0:
        raise ConfigurationError(
            f"{name} shape {shape} is not a non-empty multiple of the {tile_rows}x{tile_cols} tile"
        )
    return rows // tile_rows, cols // tile_cols


def pack_matrix_a(matrix: np.ndarray, config: GemmConfig) -> list[int]:
    """
    Pack an M x K matrix into A tile words.

    Returns:
        List of M_t * K_t words, word m_t*K_t + k_t holding tile (m_t, k_t)
    """
    matrix = np.asarray(matrix)
    layout = a_tile_layout(config)
    m_tiles, k_tiles = _tile_counts(np.shape(matrix), config.tile_shape_a, "A")
    pm, ik = config.tile_shape_a

    words = []
    for m in range(m_tiles):
        for k in range(k_tiles):
            words.append(layout.pack(matrix[m * pm : (m + 1) * pm, k * ik : (k + 1) * ik]))
    return words


def pack_matrix_b(matrix: np.ndarray, config: GemmConfig) -> list[int]:
    """
    Pack a K x N matrix into B tile words.

    Returns:
        List of K_t * N_t words, word k_t*N_t + n_t holding tile (k_t, n_t)
    """
    matrix = np.asarray(matrix)
    layout = b_tile_layout(config)
    k_tiles, n_tiles = _tile_counts(np.shape(matrix), config.tile_shape_b, "B")
    ik, pn = config.tile_shape_b

    words = []
    for k in range(k_tiles):
        for n in range(n_tiles):
            words.append(layout.pack(matrix[k * ik : (k + 1) * ik, n * pn : (n + 1) * pn]))
    return words


def unpack_matrix_c(words: list[int], m_tiles: int, n_tiles: int, config: GemmConfig) -> np.ndarray:
    """
    Unpack C tile words into the full M x N result.

    Args:
        words: C memory contents, at least m_tiles * n_tiles words
        m_tiles: Number of tile rows (M_t)
        n_tiles: Number of tile columns (N_t)
        config: Hardware configuration
    """
    if len(words) < m_tiles * n_tiles:
        raise ValueError(f"need {m_tiles * n_tiles} C words, got {len(words)}")

    layout = c_tile_layout(config)
    pm, pn = config.tile_shape_c
    result = np.zeros((m_tiles * pm, n_tiles * pn), dtype=element_dtype(config.out_data_width))
    for m in range(m_tiles):
        for n in range(n_tiles):
            result[m * pm : (m + 1) * pm, n * pn : (n + 1) * pn] = layout.unpack(
                words[m * n_tiles + n]
            )
    return result
