"""
Cycle-accurate behavioral model of the GEMM accelerator.

This mirrors GemmAccelerator without Amaranth: the same controller, address
generator and PE grid, with the memories held as lists of packed words.
It runs orders of magnitude faster than RTL simulation and is used to
cross-check cycle counts and write ordering.

Each step() is one clock period:
    1. Evaluate every combinational output from the current registers
    2. Compute all next-register values
    3. Commit them together

Example usage:
    model = GemmModel(config)
    model.load(pack_matrix_a(A, config), pack_matrix_b(B, config))
    model.set_sizes(m_tiles, k_tiles, n_tiles)
    model.step(start=True)
    while not model.done:
        model.step()
    C = unpack_matrix_c(model.c_words(m_tiles * n_tiles), m_tiles, n_tiles, config)
"""

from dataclasses import dataclass, field

from ..config import GemmConfig
from ..controller.state import ControllerState
from ..util.packing import a_tile_layout, b_tile_layout, c_tile_layout
from .address import AddressGenerator
from .controller import ControllerModel
from .pe_grid import PEGrid


@dataclass(frozen=True)
class CycleTrace:
    """What the model did during one clock period."""

    cycle: int
    state: ControllerState
    a_addr: int | None
    b_addr: int | None
    c_write_addr: int | None
    result_valid: bool
    done: bool


@dataclass
class GemmModel:
    """
    Behavioral GEMM accelerator.

    Attributes:
        config: Hardware configuration
        mem_a, mem_b, mem_c: Tile memories (packed words)
        cycle: Clock periods stepped since construction or reset()
        c_writes: (cycle, address) of every C tile write, in order
    """

    config: GemmConfig

    controller: ControllerModel = field(init=False)
    addr_gen: AddressGenerator = field(init=False)
    grid: PEGrid = field(init=False)

    mem_a: list[int] = field(init=False)
    mem_b: list[int] = field(init=False)
    mem_c: list[int] = field(init=False)

    # Memory read registers (one-cycle read latency)
    rd_a: int = 0
    rd_b: int = 0

    sizes: tuple[int, int, int] = (1, 1, 1)
    cycle: int = 0
    c_writes: list[tuple[int, int]] = field(default_factory=list)

    def __post_init__(self) -> None:
        depth = self.config.mem_depth
        self.controller = ControllerModel()
        self.addr_gen = AddressGenerator()
        self.grid = PEGrid(self.config)
        self.mem_a = [0] * depth
        self.mem_b = [0] * depth
        self.mem_c = [0] * depth
        self._a_layout = a_tile_layout(self.config)
        self._b_layout = b_tile_layout(self.config)
        self._c_layout = c_tile_layout(self.config)

    def reset(self) -> None:
        """Reset all state except memory contents."""
        self.controller.reset()
        self.addr_gen = AddressGenerator()
        self.grid.reset()
        self.rd_a = 0
        self.rd_b = 0
        self.cycle = 0
        self.c_writes = []

    # =========================================================================
    # Host side
    # =========================================================================

    def load(self, a_words: list[int], b_words: list[int]) -> None:
        """Write packed A and B tiles starting at address 0."""
        if self.busy:
            raise RuntimeError("memories are owned by the core while busy")
        depth = self.config.mem_depth
        if len(a_words) > depth or len(b_words) > depth:
            raise ValueError(f"tile words exceed memory depth {depth}")
        self.mem_a[: len(a_words)] = a_words
        self.mem_b[: len(b_words)] = b_words

    def set_sizes(self, m_tiles: int, k_tiles: int, n_tiles: int) -> None:
        """Drive the M/K/N tile-count inputs."""
        self.config.check_tile_counts(m_tiles, k_tiles, n_tiles)
        self.sizes = (m_tiles, k_tiles, n_tiles)

    def c_words(self, count: int) -> list[int]:
        """Read back the first count C words."""
        return list(self.mem_c[:count])

    @property
    def busy(self) -> bool:
        return self.controller.outputs().busy

    @property
    def done(self) -> bool:
        return self.controller.outputs().done

    # =========================================================================
    # Clock
    # =========================================================================

    def step(self, start: bool = False) -> CycleTrace:
        """Advance one clock period."""
        out = self.controller.outputs()
        state = self.controller.state

        # Combinational phase
        a_addr = b_addr = None
        if out.issue:
            a_addr = self.addr_gen.a_address(out.m_count, out.k_count)
            b_addr = self.addr_gen.b_address(out.k_count, out.n_count)
        c_write_addr = self.addr_gen.c_address if out.result_valid else None

        # Next-state phase
        next_ctrl = self.controller.next_state(start, self.sizes)
        next_c_addr = self.addr_gen.next_c_address(out.last_k, out.m_count, out.n_count)
        next_rd_a = self.mem_a[a_addr] if a_addr is not None else self.rd_a
        next_rd_b = self.mem_b[b_addr] if b_addr is not None else self.rd_b

        # Commit phase
        if out.pe_valid:
            self.grid.accumulate(self._a_layout.unpack(self.rd_a), self._b_layout.unpack(self.rd_b))
        if out.result_valid:
            self.mem_c[c_write_addr] = self._c_layout.pack(self.grid.flush())
            self.c_writes.append((self.cycle, c_write_addr))

        if state == ControllerState.IDLE and start:
            _, k_tiles, n_tiles = self.sizes
            self.addr_gen.configure(k_tiles, n_tiles)

        self.controller.commit(next_ctrl)
        self.addr_gen.commit(next_c_addr)
        self.rd_a = next_rd_a
        self.rd_b = next_rd_b

        trace = CycleTrace(
            cycle=self.cycle,
            state=state,
            a_addr=a_addr,
            b_addr=b_addr,
            c_write_addr=c_write_addr,
            result_valid=out.result_valid,
            done=out.done,
        )
        self.cycle += 1
        return trace
