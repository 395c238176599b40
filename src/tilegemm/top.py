"""
GemmAccelerator - Top-level integration of the tiled GEMM accelerator.

This module wires together:
- GemmController: Run state machine and (M, N, K) loop counters
- AddressGenerator: A/B read addresses, delayed C write address
- PEArray: num_pe_m x num_pe_n grid of inner-product PEs
- SinglePortMemory x3: Packed A, B and C tile storage

External Interfaces:
- Run interface: start, M/K/N tile counts, busy/done/result_valid
- Host ports for filling A/B and reading back C while the core is idle

Data Flow for C = A × B:
1. Host writes packed A tiles (address m_t*K_t + k_t) and B tiles
   (address k_t*N_t + n_t) through the host ports
2. Host pulses start with the tile counts
3. Each RUN cycle one A and one B word are read; one cycle later the PE
   grid accumulates them
4. At the end of every K-sweep the grid flushes one C tile to address
   m_t*N_t + n_t
5. After done, host reads back C through host_c_addr/host_c_rd_data
"""

from amaranth import Module, Mux
from amaranth.lib.wiring import Component, In, Out

from .config import GemmConfig
from .controller.address import AddressGenerator
from .controller.gemm import GemmController
from .core.pe_array import PEArray
from .memory.sram import SinglePortMemory


class GemmAccelerator(Component):
    """
    Top-level GEMM accelerator.

    While busy, the core owns all three memory ports and host writes are
    ignored. While idle, the host ports drive the memories.

    Ports:
        Run Interface:
            start: Start a run (ignored unless idle)
            m_size, k_size, n_size: Tile counts, held stable through a run
            busy: Run in progress
            done: Run completed (one-cycle pulse)
            result_valid: A C tile is written this cycle

        Host A/B Interface:
            host_{a,b}_addr: Word address
            host_{a,b}_wr_en: Write enable
            host_{a,b}_wr_data: Packed tile word

        Host C Interface:
            host_c_addr: Word address
            host_c_rd_data: Word at last cycle's host_c_addr

        Observation:
            c_wr_addr, c_wr_data: Core-side C write (valid with result_valid)
    """

    def __init__(self, config: GemmConfig):
        self.config = config

        addr_bits = config.mem_addr_bits
        size_bits = config.size_bits

        super().__init__(
            {
                # Run interface
                "start": In(1),
                "m_size": In(size_bits),
                "k_size": In(size_bits),
                "n_size": In(size_bits),
                "busy": Out(1),
                "done": Out(1),
                "result_valid": Out(1),
                # Host A interface
                "host_a_addr": In(addr_bits),
                "host_a_wr_en": In(1),
                "host_a_wr_data": In(config.a_word_bits),
                # Host B interface
                "host_b_addr": In(addr_bits),
                "host_b_wr_en": In(1),
                "host_b_wr_data": In(config.b_word_bits),
                # Host C interface
                "host_c_addr": In(addr_bits),
                "host_c_rd_data": Out(config.c_word_bits),
                # Observation
                "c_wr_addr": Out(addr_bits),
                "c_wr_data": Out(config.c_word_bits),
            }
        )

    def elaborate(self, _platform):
        m = Module()
        cfg = self.config

        # =================================================================
        # Submodules
        # =================================================================
        m.submodules.ctrl = ctrl = GemmController(cfg)
        m.submodules.addr_gen = addr_gen = AddressGenerator(cfg)
        m.submodules.pe_array = pe_array = PEArray(cfg)
        m.submodules.mem_a = mem_a = SinglePortMemory(cfg.a_word_bits, cfg.mem_addr_bits)
        m.submodules.mem_b = mem_b = SinglePortMemory(cfg.b_word_bits, cfg.mem_addr_bits)
        m.submodules.mem_c = mem_c = SinglePortMemory(cfg.c_word_bits, cfg.mem_addr_bits)

        busy = ctrl.busy

        # =================================================================
        # Controller
        # =================================================================
        m.d.comb += [
            ctrl.start.eq(self.start),
            ctrl.m_size.eq(self.m_size),
            ctrl.k_size.eq(self.k_size),
            ctrl.n_size.eq(self.n_size),
            self.busy.eq(ctrl.busy),
            self.done.eq(ctrl.done),
            self.result_valid.eq(ctrl.result_valid),
        ]

        # =================================================================
        # Address Generator
        # =================================================================
        m.d.comb += [
            addr_gen.m_count.eq(ctrl.m_count),
            addr_gen.n_count.eq(ctrl.n_count),
            addr_gen.k_count.eq(ctrl.k_count),
            addr_gen.k_tiles.eq(ctrl.k_tiles),
            addr_gen.n_tiles.eq(ctrl.n_tiles),
            addr_gen.sweep_done.eq(ctrl.last_k),
        ]

        # =================================================================
        # A/B Memories - core reads while busy, host writes while idle
        # =================================================================
        m.d.comb += [
            mem_a.addr.eq(Mux(busy, addr_gen.a_addr, self.host_a_addr)),
            mem_a.wr_en.eq(self.host_a_wr_en & ~busy),
            mem_a.wr_data.eq(self.host_a_wr_data),
            mem_b.addr.eq(Mux(busy, addr_gen.b_addr, self.host_b_addr)),
            mem_b.wr_en.eq(self.host_b_wr_en & ~busy),
            mem_b.wr_data.eq(self.host_b_wr_data),
        ]

        # =================================================================
        # PE Array - fed with read data one cycle after issue
        # =================================================================
        m.d.comb += [
            pe_array.in_a.eq(mem_a.rd_data),
            pe_array.in_b.eq(mem_b.rd_data),
            pe_array.in_valid.eq(ctrl.pe_valid),
            pe_array.in_last.eq(ctrl.pe_last),
        ]

        # =================================================================
        # C Memory - core writes while busy, host reads while idle
        # =================================================================
        m.d.comb += [
            mem_c.addr.eq(Mux(busy, addr_gen.c_addr, self.host_c_addr)),
            mem_c.wr_en.eq(ctrl.result_valid),
            mem_c.wr_data.eq(pe_array.out_c),
            self.host_c_rd_data.eq(mem_c.rd_data),
            self.c_wr_addr.eq(addr_gen.c_addr),
            self.c_wr_data.eq(pe_array.out_c),
        ]

        return m
