"""
Single-port tile memory.

Plain synchronous storage holding one packed tile per word. Each cycle the
owner presents (addr, wr_en, wr_data); rd_data returns the word at addr
exactly one cycle later. A write and a read to the same address in the
same cycle returns the old contents.
"""

from amaranth import Module, unsigned
from amaranth.lib.memory import Memory
from amaranth.lib.wiring import Component, In, Out


class SinglePortMemory(Component):
    """
    Single-port synchronous memory.

    Ports:
        addr: Word address
        wr_en: Write enable
        wr_data: Data to write
        rd_data: Word at last cycle's addr

    Parameters:
        width: Word width in bits
        addr_bits: Address width; depth is 2**addr_bits
        init: Optional initial contents
    """

    def __init__(self, width: int, addr_bits: int, init=()):
        self.width = width
        self.addr_bits = addr_bits
        self.depth = 1 << addr_bits
        self.init = list(init)

        super().__init__(
            {
                "addr": In(unsigned(addr_bits)),
                "wr_en": In(1),
                "wr_data": In(unsigned(width)),
                "rd_data": Out(unsigned(width)),
            }
        )

    def elaborate(self, _platform):
        m = Module()

        mem = Memory(shape=unsigned(self.width), depth=self.depth, init=self.init)
        m.submodules.mem = mem

        rd_port = mem.read_port()
        m.d.comb += [
            rd_port.addr.eq(self.addr),
            rd_port.en.eq(1),
            self.rd_data.eq(rd_port.data),
        ]

        wr_port = mem.write_port()
        m.d.comb += [
            wr_port.addr.eq(self.addr),
            wr_port.data.eq(self.wr_data),
            wr_port.en.eq(self.wr_en),
        ]

        return m
