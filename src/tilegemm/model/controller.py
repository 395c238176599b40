"""
Behavioral GEMM controller.

Mirrors the RTL GemmController cycle for cycle. Register state lives in a
frozen ControllerRegs snapshot; each tick computes the complete next
snapshot from the current one and then swaps it in, so no output observed
during a cycle can see a half-updated state.
"""

from dataclasses import dataclass, replace

from ..controller.state import ControllerState


@dataclass(frozen=True)
class ControllerRegs:
    """Registered controller state."""

    state: ControllerState = ControllerState.IDLE
    m_tiles: int = 0
    k_tiles: int = 0
    n_tiles: int = 0
    m_count: int = 0
    n_count: int = 0
    k_count: int = 0
    pe_valid: bool = False
    pe_last: bool = False
    done: bool = False


@dataclass(frozen=True)
class ControllerOutputs:
    """Combinational controller outputs for one cycle."""

    busy: bool
    issue: bool
    last_k: bool
    final: bool
    pe_valid: bool
    pe_last: bool
    result_valid: bool
    done: bool
    m_count: int
    n_count: int
    k_count: int


class ControllerModel:
    """Cycle model of the IDLE -> RUN -> FLUSH -> IDLE controller."""

    def __init__(self):
        self.regs = ControllerRegs()

    def reset(self) -> None:
        self.regs = ControllerRegs()

    @property
    def state(self) -> ControllerState:
        return self.regs.state

    def outputs(self) -> ControllerOutputs:
        """Evaluate the combinational outputs of the current state."""
        regs = self.regs
        running = regs.state == ControllerState.RUN
        k_wrap = regs.k_count == regs.k_tiles - 1
        n_wrap = regs.n_count == regs.n_tiles - 1
        m_wrap = regs.m_count == regs.m_tiles - 1

        return ControllerOutputs(
            busy=regs.state != ControllerState.IDLE,
            issue=running,
            last_k=running and k_wrap,
            final=running and k_wrap and n_wrap and m_wrap,
            pe_valid=regs.pe_valid,
            pe_last=regs.pe_last,
            result_valid=regs.pe_valid and regs.pe_last,
            done=regs.done,
            m_count=regs.m_count,
            n_count=regs.n_count,
            k_count=regs.k_count,
        )

    def next_state(self, start: bool, sizes: tuple[int, int, int]) -> ControllerRegs:
        """
        Compute the register snapshot for the next cycle.

        Args:
            start: Start input sampled this cycle
            sizes: (M_t, K_t, N_t) inputs sampled this cycle
        """
        regs = self.regs
        out = self.outputs()
        nxt = replace(regs, pe_valid=out.issue, pe_last=out.last_k, done=False)

        if regs.state == ControllerState.IDLE:
            if start:
                m_tiles, k_tiles, n_tiles = sizes
                nxt = replace(
                    nxt,
                    state=ControllerState.RUN,
                    m_tiles=m_tiles,
                    k_tiles=k_tiles,
                    n_tiles=n_tiles,
                    m_count=0,
                    n_count=0,
                    k_count=0,
                )

        elif regs.state == ControllerState.RUN:
            if not out.last_k:
                nxt = replace(nxt, k_count=regs.k_count + 1)
            elif regs.n_count != regs.n_tiles - 1:
                nxt = replace(nxt, k_count=0, n_count=regs.n_count + 1)
            elif not out.final:
                nxt = replace(nxt, k_count=0, n_count=0, m_count=regs.m_count + 1)
            else:
                nxt = replace(nxt, k_count=0, n_count=0, m_count=0, state=ControllerState.FLUSH)

        else:
            nxt = replace(nxt, state=ControllerState.IDLE, done=True)

        return nxt

    def commit(self, regs: ControllerRegs) -> None:
        self.regs = regs
