"""
GemmController - Sequences the (M, N, K) tile loop for one GEMM run.

State Machine:
    IDLE -> RUN -> FLUSH -> IDLE

    IDLE:  cmd accepted on start; tile counts latched, counters cleared
    RUN:   one A/B tile read issued per cycle; K fastest, then N, then M
    FLUSH: read data for the final issue reaches the grid; last C tile written

Counter nesting (one step per RUN cycle):

    for m in range(M_t):
        for n in range(N_t):
            for k in range(K_t):
                issue(m, n, k)

Pipeline (one-cycle synchronous memory read):

    cycle t   : issue (m, n, K_t-1)         last_k = 1
    cycle t+1 : pe_valid = pe_last = 1      result_valid = 1, C[m*N_t+n] written

Status:
    busy:         high in RUN and FLUSH
    result_valid: one pulse per completed K-sweep, in (m, n) row-major order
    done:         one-cycle pulse, the cycle after the final C write
"""

from amaranth import Module, Signal, unsigned
from amaranth.lib.wiring import Component, In, Out

from ..config import GemmConfig
from .state import ControllerState


class GemmController(Component):
    """
    GEMM run controller.

    Ports:
        Run Interface:
            start: Start a run (accepted only in IDLE)
            m_size, k_size, n_size: Tile counts M_t, K_t, N_t

        Counters:
            m_count, n_count, k_count: Current tile indices
            k_tiles, n_tiles: Tile counts latched at start

        Datapath Control:
            issue: A/B tile read issued this cycle
            last_k: Issue is the last K-tile of a sweep
            final: Issue is the last (m, n, k) of the run
            pe_valid: Read data valid at the PE grid (issue delayed one cycle)
            pe_last: Read data is the last K-tile of a sweep

        Status:
            busy: Run in progress
            result_valid: A finished C tile is presented this cycle
            done: Run completed
            state_debug: ControllerState encoding
    """

    def __init__(self, config: GemmConfig):
        self.config = config

        size = unsigned(config.size_bits)

        super().__init__(
            {
                # Run interface
                "start": In(1),
                "m_size": In(size),
                "k_size": In(size),
                "n_size": In(size),
                # Counters
                "m_count": Out(size),
                "n_count": Out(size),
                "k_count": Out(size),
                "k_tiles": Out(size),
                "n_tiles": Out(size),
                # Datapath control
                "issue": Out(1),
                "last_k": Out(1),
                "final": Out(1),
                "pe_valid": Out(1),
                "pe_last": Out(1),
                # Status
                "busy": Out(1),
                "result_valid": Out(1),
                "done": Out(1),
                "state_debug": Out(2),
            }
        )

    def elaborate(self, _platform):
        m = Module()
        cfg = self.config
        size = unsigned(cfg.size_bits)

        # =================================================================
        # Internal Registers
        # =================================================================

        # Tile counts latched on start
        m_tiles = Signal(size)
        k_tiles = Signal(size)
        n_tiles = Signal(size)

        # Loop counters
        m_count = Signal(size)
        n_count = Signal(size)
        k_count = Signal(size)

        # Read-latency pipeline and completion pulse
        pe_valid = Signal()
        pe_last = Signal()
        done = Signal()

        state = Signal(2, init=ControllerState.IDLE)

        k_wrap = Signal()
        n_wrap = Signal()
        m_wrap = Signal()
        m.d.comb += [
            k_wrap.eq(k_count == k_tiles - 1),
            n_wrap.eq(n_count == n_tiles - 1),
            m_wrap.eq(m_count == m_tiles - 1),
        ]

        # =================================================================
        # Default Signal Values
        # =================================================================

        m.d.comb += [
            self.m_count.eq(m_count),
            self.n_count.eq(n_count),
            self.k_count.eq(k_count),
            self.k_tiles.eq(k_tiles),
            self.n_tiles.eq(n_tiles),
            self.issue.eq(0),
            self.last_k.eq(0),
            self.final.eq(0),
            self.pe_valid.eq(pe_valid),
            self.pe_last.eq(pe_last),
            self.busy.eq(state != ControllerState.IDLE),
            self.result_valid.eq(pe_valid & pe_last),
            self.done.eq(done),
            self.state_debug.eq(state),
        ]

        m.d.sync += [
            pe_valid.eq(self.issue),
            pe_last.eq(self.issue & self.last_k),
            done.eq(0),
        ]

        # =================================================================
        # State Machine
        # =================================================================

        with m.FSM(init="IDLE"):
            # ---------------------------------------------------------
            # IDLE: Wait for start
            # ---------------------------------------------------------
            with m.State("IDLE"):
                m.d.comb += state.eq(ControllerState.IDLE)

                with m.If(self.start):
                    m.d.sync += [
                        m_tiles.eq(self.m_size),
                        k_tiles.eq(self.k_size),
                        n_tiles.eq(self.n_size),
                        m_count.eq(0),
                        n_count.eq(0),
                        k_count.eq(0),
                    ]
                    m.next = "RUN"

            # ---------------------------------------------------------
            # RUN: Issue one tile read per cycle, advance counters
            # ---------------------------------------------------------
            with m.State("RUN"):
                m.d.comb += [
                    state.eq(ControllerState.RUN),
                    self.issue.eq(1),
                    self.last_k.eq(k_wrap),
                    self.final.eq(k_wrap & n_wrap & m_wrap),
                ]

                with m.If(k_wrap):
                    m.d.sync += k_count.eq(0)
                    with m.If(n_wrap):
                        m.d.sync += n_count.eq(0)
                        with m.If(m_wrap):
                            m.d.sync += m_count.eq(0)
                            m.next = "FLUSH"
                        with m.Else():
                            m.d.sync += m_count.eq(m_count + 1)
                    with m.Else():
                        m.d.sync += n_count.eq(n_count + 1)
                with m.Else():
                    m.d.sync += k_count.eq(k_count + 1)

            # ---------------------------------------------------------
            # FLUSH: Final C tile written; pulse done next cycle
            # ---------------------------------------------------------
            with m.State("FLUSH"):
                m.d.comb += state.eq(ControllerState.FLUSH)
                m.d.sync += done.eq(1)
                m.next = "IDLE"

        return m
