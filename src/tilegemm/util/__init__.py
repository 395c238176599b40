"""Utility modules for tilegemm."""

from .packing import (
    TileLayout,
    a_tile_layout,
    b_tile_layout,
    c_tile_layout,
    pack_matrix_a,
    pack_matrix_b,
    to_unsigned,
    unpack_matrix_c,
    wrap_signed,
)

__all__ = [
    "TileLayout",
    "a_tile_layout",
    "b_tile_layout",
    "c_tile_layout",
    "pack_matrix_a",
    "pack_matrix_b",
    "to_unsigned",
    "unpack_matrix_c",
    "wrap_signed",
]
