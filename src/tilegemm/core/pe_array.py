"""
PEArray - The num_pe_m x num_pe_n grid of inner-product PEs.

The array consumes one packed A tile word and one packed B tile word per
cycle. PE(r, cc) receives the K lanes of A-tile row r and of B-tile column
cc; both are contiguous slices of their words. Control is broadcast, so
every PE accumulates and flushes in the same cycle.

Example 2x2 PEArray with num_ip_k=2:

        in_b word:  [ B[0][0] B[1][0] | B[0][1] B[1][1] ]
                          column 0          column 1
                            |                  |
    in_a row 0 --> [ PE(0,0) ]          [ PE(0,1) ]
    in_a row 1 --> [ PE(1,0) ]          [ PE(1,1) ]
                            |                  |
        out_c word: [ C[0][0] C[0][1] C[1][0] C[1][1] ]
"""

from amaranth import Module, unsigned
from amaranth.lib.wiring import Component, In, Out

from ..config import GemmConfig
from ..util.packing import a_tile_layout, b_tile_layout, c_tile_layout
from .pe import PE


class PEArray(Component):
    """
    PEArray - grid of PEs fed from packed tile words.

    Ports:
        in_a: Packed A tile word (a_word_bits)
        in_b: Packed B tile word (b_word_bits)
        in_valid: Accumulate this cycle (broadcast)
        in_last: Flush this cycle (broadcast)

        out_c: Packed C tile word from every PE's out_c (c_word_bits)

    Parameters:
        config: GemmConfig with grid dimensions and data widths
    """

    def __init__(self, config: GemmConfig):
        self.config = config

        super().__init__(
            {
                "in_a": In(unsigned(config.a_word_bits)),
                "in_b": In(unsigned(config.b_word_bits)),
                "in_valid": In(1),
                "in_last": In(1),
                "out_c": Out(unsigned(config.c_word_bits)),
            }
        )

        # Grid is built once here so tests can reach individual PEs
        self.pes = [[PE(config) for _ in range(config.num_pe_n)] for _ in range(config.num_pe_m)]

    def elaborate(self, _platform):
        m = Module()
        cfg = self.config
        a_layout = a_tile_layout(cfg)
        b_layout = b_tile_layout(cfg)
        c_layout = c_tile_layout(cfg)
        w = cfg.in_data_width

        for r in range(cfg.num_pe_m):
            for cc in range(cfg.num_pe_n):
                pe = self.pes[r][cc]
                m.submodules[f"pe_{r}_{cc}"] = pe

                # =========================================================
                # Operand slicing - A row r, B column cc
                # =========================================================
                for k in range(cfg.num_ip_k):
                    a_off = a_layout.offset(r, k)
                    b_off = b_layout.offset(k, cc)
                    m.d.comb += [
                        getattr(pe, f"in_a_{k}").eq(self.in_a[a_off : a_off + w]),
                        getattr(pe, f"in_b_{k}").eq(self.in_b[b_off : b_off + w]),
                    ]

                # =========================================================
                # Control broadcast
                # =========================================================
                m.d.comb += [
                    pe.in_valid.eq(self.in_valid),
                    pe.in_last.eq(self.in_last),
                ]

                # =========================================================
                # Output packing
                # =========================================================
                c_off = c_layout.offset(r, cc)
                m.d.comb += self.out_c[c_off : c_off + cfg.out_data_width].eq(pe.out_c)

        return m
