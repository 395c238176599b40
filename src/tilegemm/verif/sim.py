"""
Amaranth simulation driver for GemmAccelerator.

The coroutines here run inside an Amaranth async testbench and talk to the
accelerator through its host and run ports:

    load_tiles      host writes packed A/B words (core idle)
    set_sizes       drive M/K/N tile counts
    run_and_wait    pulse start, poll done against the cycle budget
    read_c_words    host reads back C (one-cycle read latency)

simulate_gemm() wraps all of them into one call that builds the design,
runs the simulator and returns the unpacked result.

Example:
    C, run = simulate_gemm(config, A, B)
    assert run.cycles == config.run_cycles(m_t, k_t, n_t)
"""

import logging

import numpy as np
from amaranth.sim import Simulator

from ..config import GemmConfig
from ..errors import GemmTimeoutError
from ..golden import hardware_reference
from ..top import GemmAccelerator
from ..util.packing import pack_matrix_a, pack_matrix_b, unpack_matrix_c
from .harness import RunResult, VerificationReport, compare

logger = logging.getLogger(__name__)


async def load_tiles(ctx, dut: GemmAccelerator, a_words: list[int], b_words: list[int]) -> None:
    """Write A and B words from address 0, one word of each per cycle."""
    for addr in range(max(len(a_words), len(b_words))):
        ctx.set(dut.host_a_wr_en, int(addr < len(a_words)))
        ctx.set(dut.host_b_wr_en, int(addr < len(b_words)))
        ctx.set(dut.host_a_addr, addr)
        ctx.set(dut.host_b_addr, addr)
        if addr < len(a_words):
            ctx.set(dut.host_a_wr_data, a_words[addr])
        if addr < len(b_words):
            ctx.set(dut.host_b_wr_data, b_words[addr])
        await ctx.tick()

    ctx.set(dut.host_a_wr_en, 0)
    ctx.set(dut.host_b_wr_en, 0)


def set_sizes(ctx, dut: GemmAccelerator, m_tiles: int, k_tiles: int, n_tiles: int) -> None:
    ctx.set(dut.m_size, m_tiles)
    ctx.set(dut.k_size, k_tiles)
    ctx.set(dut.n_size, n_tiles)


async def run_and_wait(
    ctx, dut: GemmAccelerator, timeout_cycles: int, *, raise_on_timeout: bool = True
) -> RunResult:
    """
    Pulse start for one cycle, then poll done.

    The start cycle counts as cycle 1, matching run_model_and_wait.

    Raises:
        GemmTimeoutError: if done is not seen within timeout_cycles,
            unless raise_on_timeout is False
    """
    ctx.set(dut.start, 1)
    await ctx.tick()
    ctx.set(dut.start, 0)
    cycles = 1

    while not ctx.get(dut.done):
        if cycles >= timeout_cycles:
            logger.error("timeout: done not asserted after %d cycles", cycles)
            if raise_on_timeout:
                raise GemmTimeoutError(cycles, timeout_cycles)
            return RunResult(cycles=cycles, timed_out=True)
        await ctx.tick()
        cycles += 1

    logger.info("done after %d cycles", cycles)
    return RunResult(cycles=cycles)


async def read_c_words(ctx, dut: GemmAccelerator, count: int) -> list[int]:
    """Read count C words starting at address 0."""
    words = []
    for addr in range(count):
        ctx.set(dut.host_c_addr, addr)
        await ctx.tick()
        words.append(ctx.get(dut.host_c_rd_data))
    return words


def simulate_gemm(
    config: GemmConfig,
    a,
    b,
    *,
    timeout_cycles: int | None = None,
    vcd_path: str | None = None,
) -> tuple[np.ndarray, RunResult]:
    """
    Run C = A × B through a full RTL simulation of GemmAccelerator.

    Args:
        config: Hardware configuration
        a: M x K matrix
        b: K x N matrix
        timeout_cycles: Override config.timeout_cycles
        vcd_path: Write a waveform dump here if given

    Returns:
        (C, RunResult) with C unpacked from the C memory

    Raises:
        ConfigurationError: tile counts do not fit the memories
        GemmTimeoutError: done not seen within the cycle budget
    """
    a = np.asarray(a)
    b = np.asarray(b)
    m_tiles = a.shape[0] // config.num_pe_m
    k_tiles = a.shape[1] // config.num_ip_k
    n_tiles = b.shape[1] // config.num_pe_n
    config.check_tile_counts(m_tiles, k_tiles, n_tiles)

    a_words = pack_matrix_a(a, config)
    b_words = pack_matrix_b(b, config)
    budget = timeout_cycles if timeout_cycles is not None else config.timeout_cycles

    dut = GemmAccelerator(config)
    results = {}

    async def testbench(ctx):
        await load_tiles(ctx, dut, a_words, b_words)
        set_sizes(ctx, dut, m_tiles, k_tiles, n_tiles)
        results["run"] = await run_and_wait(ctx, dut, budget)
        results["c_words"] = await read_c_words(ctx, dut, m_tiles * n_tiles)

    sim = Simulator(dut)
    sim.add_clock(1e-6)
    sim.add_testbench(testbench)

    logger.info("rtl run: M_t=%d K_t=%d N_t=%d", m_tiles, k_tiles, n_tiles)
    if vcd_path:
        with sim.write_vcd(vcd_path):
            sim.run()
    else:
        sim.run()

    c = unpack_matrix_c(results["c_words"], m_tiles, n_tiles, config)
    return c, results["run"]


def verify_rtl(
    config: GemmConfig,
    a,
    b,
    *,
    fatal_on_mismatch: bool = False,
    timeout_cycles: int | None = None,
) -> VerificationReport:
    """Simulate A × B in RTL and check it against the golden model."""
    a = np.asarray(a)
    b = np.asarray(b)
    c, run = simulate_gemm(config, a, b, timeout_cycles=timeout_cycles)

    tiles = (
        a.shape[0] // config.num_pe_m,
        a.shape[1] // config.num_ip_k,
        b.shape[1] // config.num_pe_n,
    )
    reference = hardware_reference(config, a, b)
    comparison = compare(reference, c, fatal_on_mismatch=fatal_on_mismatch)

    return VerificationReport(
        tiles=tiles,
        run=run,
        expected_cycles=config.run_cycles(*tiles),
        comparison=comparison,
        result=c,
        reference=reference,
    )
