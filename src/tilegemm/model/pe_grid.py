"""
Behavioral PE grid.

A num_pe_m x num_pe_n array of output-stationary accumulators. Each call to
accumulate() consumes one A tile and one B tile, the same way the RTL grid
consumes one pair of packed words per cycle. flush() hands out every cell
at once and clears the grid for the next output tile.
"""

from dataclasses import dataclass, field

import numpy as np

from ..config import GemmConfig
from ..util.packing import element_dtype, wrap_signed


@dataclass
class PECell:
    """One multiply-accumulate unit."""

    acc_bits: int
    acc: int = 0

    def accumulate(self, a_lanes, b_lanes) -> None:
        """Add the dot product of the K lanes to the accumulator."""
        dot = sum(int(a) * int(b) for a, b in zip(a_lanes, b_lanes, strict=True))
        self.acc = wrap_signed(self.acc + dot, self.acc_bits)

    def flush(self, out_bits: int) -> int:
        """Return the accumulator truncated to out_bits and reset it."""
        value = wrap_signed(self.acc, out_bits)
        self.acc = 0
        return value


@dataclass
class PEGrid:
    """
    Grid of PECells addressed [row][col].

    Attributes:
        config: Hardware configuration
        cells: 2D list of PECell, built once at construction
        steps: Number of accumulate() calls since the last flush
    """

    config: GemmConfig
    cells: list[list[PECell]] = field(init=False)
    steps: int = 0

    def __post_init__(self) -> None:
        acc_bits = self.config.acc_bits
        self.cells = [
            [PECell(acc_bits) for _ in range(self.config.num_pe_n)]
            for _ in range(self.config.num_pe_m)
        ]

    def reset(self) -> None:
        """Clear every accumulator."""
        for row in self.cells:
            for cell in row:
                cell.acc = 0
        self.steps = 0

    def get_cell(self, row: int, col: int) -> PECell:
        return self.cells[row][col]

    def accumulate(self, a_tile, b_tile) -> None:
        """
        Accumulate one K-tile into every cell.

        Args:
            a_tile: num_pe_m x num_ip_k A tile
            b_tile: num_ip_k x num_pe_n B tile
        """
        a_tile = np.asarray(a_tile)
        b_tile = np.asarray(b_tile)
        if a_tile.shape != self.config.tile_shape_a:
            raise ValueError(f"A tile shape {a_tile.shape} != {self.config.tile_shape_a}")
        if b_tile.shape != self.config.tile_shape_b:
            raise ValueError(f"B tile shape {b_tile.shape} != {self.config.tile_shape_b}")

        for r, row in enumerate(self.cells):
            for cc, cell in enumerate(row):
                cell.accumulate(a_tile[r, :], b_tile[:, cc])
        self.steps += 1

    def flush(self) -> np.ndarray:
        """
        Read out and clear every cell.

        Returns:
            num_pe_m x num_pe_n tile, each value truncated/sign-extended to
            out_data_width
        """
        out_bits = self.config.out_data_width
        tile = np.zeros(self.config.tile_shape_c, dtype=element_dtype(out_bits))
        for r, row in enumerate(self.cells):
            for cc, cell in enumerate(row):
                tile[r, cc] = cell.flush(out_bits)
        self.steps = 0
        return tile
