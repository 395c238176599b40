"""
Tilegemm Configuration Module

This module defines the configuration dataclass for the tiled GEMM accelerator.
All hardware parameters are specified here and propagate through the design.

The accelerator computes C = A × B on a fixed grid of NumPE_M × NumPE_N
multiply-accumulate PEs. Every PE consumes NumIp_K lanes of A and B per cycle,
so the logical problem is cut into tiles:

    A tile: num_pe_m × num_ip_k     (one packed memory word)
    B tile: num_ip_k × num_pe_n     (one packed memory word)
    C tile: num_pe_m × num_pe_n     (one packed memory word)

The run-time dimensions are given as tile counts M_t, K_t, N_t so that
M = M_t * num_pe_m, K = K_t * num_ip_k and N = N_t * num_pe_n.
"""

from dataclasses import dataclass

from .errors import ConfigurationError


@dataclass
class GemmConfig:
    """
    Configuration for the tiled GEMM accelerator.

    Example:
        >>> config = GemmConfig(num_pe_m=4, num_pe_n=4, num_ip_k=4)
        >>> print(config.a_word_bits)  # 128 (4 * 4 * 8 bits)
        >>> print(config.c_word_bits)  # 512 (4 * 4 * 32 bits)
    """

    # =========================================================================
    # Data Types (bit widths)
    # =========================================================================
    in_data_width: int = 8
    """Bit width of signed A/B elements (InDataWidth)."""

    out_data_width: int = 32
    """Bit width of signed C elements written back to memory (OutDataWidth)."""

    # =========================================================================
    # PE Grid Dimensions
    # =========================================================================
    num_pe_m: int = 4
    """Number of PE rows (output rows per tile)."""

    num_pe_n: int = 4
    """Number of PE columns (output columns per tile)."""

    num_ip_k: int = 4
    """Number of K lanes reduced by every PE per cycle (inner-product width)."""

    # =========================================================================
    # Memory and Dimension Fields
    # =========================================================================
    mem_addr_bits: int = 8
    """Address width of each tile memory; depth is 2**mem_addr_bits words."""

    size_bits: int = 8
    """Width of the M_size/K_size/N_size tile-count inputs."""

    # =========================================================================
    # Verification
    # =========================================================================
    timeout_cycles: int = 100_000
    """Cycle budget for a single run before the harness declares a timeout."""

    # =========================================================================
    # Computed Properties
    # =========================================================================
    @property
    def total_pes(self) -> int:
        """Total number of processing elements."""
        return self.num_pe_m * self.num_pe_n

    @property
    def a_word_bits(self) -> int:
        """Width of one packed A tile word."""
        return self.num_pe_m * self.num_ip_k * self.in_data_width

    @property
    def b_word_bits(self) -> int:
        """Width of one packed B tile word."""
        return self.num_pe_n * self.num_ip_k * self.in_data_width

    @property
    def c_word_bits(self) -> int:
        """Width of one packed C tile word."""
        return self.num_pe_m * self.num_pe_n * self.out_data_width

    @property
    def mem_depth(self) -> int:
        """Number of words in each tile memory."""
        return 1 << self.mem_addr_bits

    @property
    def max_tile_count(self) -> int:
        """Largest tile count representable on a size input."""
        return (1 << self.size_bits) - 1

    @property
    def max_k(self) -> int:
        """Largest reduction length K the memories can hold."""
        return min(self.mem_depth, self.max_tile_count) * self.num_ip_k

    @property
    def product_bits(self) -> int:
        """Width of a single signed A*B product."""
        return 2 * self.in_data_width

    @property
    def acc_bits(self) -> int:
        """
        Accumulator width per PE.

        Wide enough to hold the exact dot product over the longest K the
        memories allow, and never narrower than the output word.
        """
        return max(self.out_data_width, self.product_bits + (self.max_k - 1).bit_length())

    @property
    def tile_shape_a(self) -> tuple[int, int]:
        """(rows, cols) of an A tile."""
        return (self.num_pe_m, self.num_ip_k)

    @property
    def tile_shape_b(self) -> tuple[int, int]:
        """(rows, cols) of a B tile."""
        return (self.num_ip_k, self.num_pe_n)

    @property
    def tile_shape_c(self) -> tuple[int, int]:
        """(rows, cols) of a C tile."""
        return (self.num_pe_m, self.num_pe_n)

    def matrix_dims(self, m_tiles: int, k_tiles: int, n_tiles: int) -> tuple[int, int, int]:
        """Logical (M, K, N) for the given tile counts."""
        return (m_tiles * self.num_pe_m, k_tiles * self.num_ip_k, n_tiles * self.num_pe_n)

    def run_cycles(self, m_tiles: int, k_tiles: int, n_tiles: int) -> int:
        """
        Cycles from the start edge until done is observed.

        One issue cycle per (m, n, k) tile triple, one drain cycle for the
        final C write, and one cycle for the registered done pulse.
        """
        return m_tiles * n_tiles * k_tiles + 2

    def check_tile_counts(self, m_tiles: int, k_tiles: int, n_tiles: int) -> None:
        """
        Validate run-time tile counts against the memory capacity.

        Raises:
            ConfigurationError: if any count is out of range or any of the
                A, B or C footprints does not fit a tile memory.
        """
        for name, value in (("M", m_tiles), ("K", k_tiles), ("N", n_tiles)):
            if value < 1:
                raise ConfigurationError(f"{name} tile count must be >= 1, got {value}")
            if value > self.max_tile_count:
                raise ConfigurationError(
                    f"{name} tile count {value} exceeds the {self.size_bits}-bit size field"
                )

        footprints = {
            "A": m_tiles * k_tiles,
            "B": k_tiles * n_tiles,
            "C": m_tiles * n_tiles,
        }
        for name, words in footprints.items():
            if words > self.mem_depth:
                raise ConfigurationError(
                    f"{name} needs {words} words but memory depth is {self.mem_depth}"
                )

    def __post_init__(self):
        """Validate configuration parameters."""
        assert self.in_data_width > 0, "in_data_width must be positive"
        assert self.out_data_width > 0, "out_data_width must be positive"
        assert self.num_pe_m > 0, "num_pe_m must be positive"
        assert self.num_pe_n > 0, "num_pe_n must be positive"
        assert self.num_ip_k > 0, "num_ip_k must be positive"
        assert self.mem_addr_bits > 0, "mem_addr_bits must be positive"
        assert self.size_bits > 0, "size_bits must be positive"
        assert self.timeout_cycles > 0, "timeout_cycles must be positive"


# Pre-defined configurations
DEFAULT_CONFIG = GemmConfig()
"""Reference configuration: INT8 inputs, INT32 outputs, 4x4 grid, 4 K lanes."""

SMALL_CONFIG = GemmConfig(
    num_pe_m=2,
    num_pe_n=2,
    num_ip_k=2,
    mem_addr_bits=6,
    size_bits=6,
)
"""Small 2x2 grid for fast simulation."""
