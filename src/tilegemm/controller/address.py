"""
AddressGenerator - Tile memory addresses from the controller's loop counters.

A and B addresses are a combinational function of the counters:

    a_addr = m_count * K_t + k_count
    b_addr = k_count * N_t + n_count

The C address is registered. It is captured from m_count * N_t + n_count in
the cycle a K-sweep issues its last tile, and becomes observable the next
cycle, which is exactly when the read data for that last tile reaches the
PE grid and the finished C tile is written.
"""

from amaranth import Module, Signal, unsigned
from amaranth.lib.wiring import Component, In, Out

from ..config import GemmConfig


class AddressGenerator(Component):
    """
    Counter-driven address generator.

    Ports:
        m_count, n_count, k_count: Loop counters from the controller
        k_tiles, n_tiles: Latched K_t and N_t
        sweep_done: Last K-tile of a sweep is issued this cycle

        a_addr: A tile address (combinational)
        b_addr: B tile address (combinational)
        c_addr: C tile address (registered, one cycle behind sweep_done)
    """

    def __init__(self, config: GemmConfig):
        self.config = config

        size = unsigned(config.size_bits)
        addr = unsigned(config.mem_addr_bits)

        super().__init__(
            {
                "m_count": In(size),
                "n_count": In(size),
                "k_count": In(size),
                "k_tiles": In(size),
                "n_tiles": In(size),
                "sweep_done": In(1),
                "a_addr": Out(addr),
                "b_addr": Out(addr),
                "c_addr": Out(addr),
            }
        )

    def elaborate(self, _platform):
        m = Module()
        cfg = self.config

        c_addr_reg = Signal(unsigned(cfg.mem_addr_bits), name="c_addr_reg")

        m.d.comb += [
            self.a_addr.eq(self.m_count * self.k_tiles + self.k_count),
            self.b_addr.eq(self.k_count * self.n_tiles + self.n_count),
            self.c_addr.eq(c_addr_reg),
        ]

        with m.If(self.sweep_done):
            m.d.sync += c_addr_reg.eq(self.m_count * self.n_tiles + self.n_count)

        return m
