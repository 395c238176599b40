"""
End-to-End GEMM Integration Test.

Runs complete C = A × B operations through an RTL simulation of
GemmAccelerator:
1. Host writes packed A and B tiles into the tile memories
2. Host drives the tile counts and pulses start
3. The controller sweeps the (M, N, K) tile loop
4. Host reads packed C tiles back after done
5. Results are checked against the golden reference

Cycle counts and C write order are checked against the behavioral model.
"""

import numpy as np
import pytest
from amaranth.sim import Simulator

from tilegemm.config import DEFAULT_CONFIG, SMALL_CONFIG
from tilegemm.errors import ConfigurationError, GemmTimeoutError
from tilegemm.golden import golden_gemm, wrap_output
from tilegemm.model.accelerator import GemmModel
from tilegemm.top import GemmAccelerator
from tilegemm.util.packing import pack_matrix_a, pack_matrix_b
from tilegemm.verif import (
    constant_matrices,
    random_matrices,
    run_and_wait,
    simulate_gemm,
    verify_rtl,
)
from tilegemm.verif.harness import run_model_and_wait
from tilegemm.verif.sim import load_tiles, set_sizes


class TestGemmScenarios:
    """Reference scenarios on the 4x4x4 INT8/INT32 configuration."""

    def test_all_ones_long_k(self):
        """(1, 16, 1): A = B = 1 gives 64 in every output element."""
        a, b = constant_matrices(DEFAULT_CONFIG, 1, 16, 1)
        assert a.shape == (4, 64)
        assert b.shape == (64, 4)

        c, run = simulate_gemm(DEFAULT_CONFIG, a, b)

        np.testing.assert_array_equal(c, np.full((4, 4), 64))
        assert run.cycles == DEFAULT_CONFIG.run_cycles(1, 16, 1)

    def test_tall_random(self):
        """(4, 16, 1) random signed inputs match the golden model."""
        rng = np.random.default_rng(416)
        a, b = random_matrices(DEFAULT_CONFIG, 4, 16, 1, rng)

        report = verify_rtl(DEFAULT_CONFIG, a, b, fatal_on_mismatch=True)

        assert report.passed
        assert report.comparison.compared == 16 * 4
        np.testing.assert_array_equal(report.result, golden_gemm(a, b))

    @pytest.mark.slow
    def test_cube_random(self):
        """(8, 8, 8) random signed inputs match the golden model."""
        rng = np.random.default_rng(888)
        a, b = random_matrices(DEFAULT_CONFIG, 8, 8, 8, rng)

        report = verify_rtl(DEFAULT_CONFIG, a, b, fatal_on_mismatch=True)

        assert report.passed
        assert report.run.cycles == 8 * 8 * 8 + 2
        np.testing.assert_array_equal(report.result, golden_gemm(a, b))

    def test_single_tile(self):
        """(1, 1, 1): one issue, one C write."""
        a = np.arange(16).reshape(4, 4) - 8
        b = np.arange(16).reshape(4, 4)[::-1] - 3

        c, run = simulate_gemm(DEFAULT_CONFIG, a, b)

        np.testing.assert_array_equal(c, a @ b)
        assert run.cycles == 3

    def test_extreme_values(self):
        """Every element -128 exercises the largest positive products."""
        a, b = constant_matrices(DEFAULT_CONFIG, 1, 8, 1, value=-128)

        c, _ = simulate_gemm(DEFAULT_CONFIG, a, b)

        np.testing.assert_array_equal(c, np.full((4, 4), 128 * 128 * 32))


class TestGemmSmallConfig:
    """Shapes on the 2x2x2 configuration, checked against the model."""

    @pytest.mark.parametrize("tiles", [(1, 1, 1), (2, 3, 2), (3, 1, 2), (1, 4, 3)])
    def test_matches_golden_and_model(self, tiles):
        rng = np.random.default_rng(sum(tiles))
        a, b = random_matrices(SMALL_CONFIG, *tiles, rng)

        c, run = simulate_gemm(SMALL_CONFIG, a, b)

        reference = wrap_output(golden_gemm(a, b), SMALL_CONFIG.out_data_width)
        np.testing.assert_array_equal(c, reference)

        model = GemmModel(SMALL_CONFIG)
        model.set_sizes(*tiles)
        model.load(pack_matrix_a(a, SMALL_CONFIG), pack_matrix_b(b, SMALL_CONFIG))
        assert run_model_and_wait(model).cycles == run.cycles == SMALL_CONFIG.run_cycles(*tiles)

    def test_overwide_inputs(self):
        """Elements wider than in_data_width are wrapped on the way into memory."""
        a = np.full((2, 4), 200)  # wraps to -56
        b = np.full((4, 2), -300)  # wraps to -44

        report = verify_rtl(SMALL_CONFIG, a, b, fatal_on_mismatch=True)

        assert report.passed
        np.testing.assert_array_equal(report.result, np.full((2, 2), -56 * -44 * 4))

    def test_capacity_rejected(self):
        """Tile counts that overflow a memory are rejected before simulation."""
        a, b = constant_matrices(SMALL_CONFIG, 1, 1, 1)
        big_a = np.ones((2, 2 * 65))
        big_b = np.ones((2 * 65, 2))
        with pytest.raises(ConfigurationError):
            simulate_gemm(SMALL_CONFIG, big_a, big_b)
        # The small case still runs
        simulate_gemm(SMALL_CONFIG, a, b)


class TestGemmHandshake:
    """Run-interface behavior observed on the top level."""

    @pytest.fixture
    def config(self):
        return SMALL_CONFIG

    def test_c_write_order(self, config):
        """C words are written row-major, one per result_valid, matching the model."""
        tiles = (2, 2, 3)
        rng = np.random.default_rng(5)
        a, b = random_matrices(config, *tiles, rng)
        dut = GemmAccelerator(config)
        writes = []

        async def testbench(ctx):
            await load_tiles(ctx, dut, pack_matrix_a(a, config), pack_matrix_b(b, config))
            set_sizes(ctx, dut, *tiles)
            ctx.set(dut.start, 1)
            for cycle in range(config.run_cycles(*tiles) + 2):
                if ctx.get(dut.result_valid):
                    writes.append((cycle, ctx.get(dut.c_wr_addr)))
                await ctx.tick()
                ctx.set(dut.start, 0)

        sim = Simulator(dut)
        sim.add_clock(1e-6)
        sim.add_testbench(testbench)
        sim.run()

        model = GemmModel(config)
        model.set_sizes(*tiles)
        model.load(pack_matrix_a(a, config), pack_matrix_b(b, config))
        run_model_and_wait(model)

        assert [addr for _, addr in writes] == list(range(2 * 3))
        assert writes == model.c_writes

    def test_busy_and_done(self, config):
        """busy spans the run; done pulses once and busy is low with it."""
        tiles = (1, 3, 1)
        a, b = constant_matrices(config, *tiles)
        dut = GemmAccelerator(config)
        trace = []

        async def testbench(ctx):
            await load_tiles(ctx, dut, pack_matrix_a(a, config), pack_matrix_b(b, config))
            set_sizes(ctx, dut, *tiles)
            ctx.set(dut.start, 1)
            for _ in range(8):
                trace.append((ctx.get(dut.busy), ctx.get(dut.done)))
                await ctx.tick()
                ctx.set(dut.start, 0)

        sim = Simulator(dut)
        sim.add_clock(1e-6)
        sim.add_testbench(testbench)
        sim.run()

        busy = [i for i, (b_, _) in enumerate(trace) if b_]
        done = [i for i, (_, d) in enumerate(trace) if d]
        assert busy == [1, 2, 3, 4]
        assert done == [5]

    def test_host_writes_ignored_while_busy(self, config):
        """Host writes during a run do not disturb A."""
        tiles = (1, 4, 1)
        a, b = constant_matrices(config, *tiles, value=2)
        dut = GemmAccelerator(config)
        results = {}

        async def testbench(ctx):
            await load_tiles(ctx, dut, pack_matrix_a(a, config), pack_matrix_b(b, config))
            set_sizes(ctx, dut, *tiles)
            ctx.set(dut.start, 1)
            await ctx.tick()
            ctx.set(dut.start, 0)
            ctx.set(dut.host_a_addr, 2)
            ctx.set(dut.host_a_wr_data, 0)
            ctx.set(dut.host_a_wr_en, 1)
            while not ctx.get(dut.done):
                await ctx.tick()
            ctx.set(dut.host_a_wr_en, 0)
            ctx.set(dut.host_c_addr, 0)
            await ctx.tick()
            results["c"] = ctx.get(dut.host_c_rd_data)

        sim = Simulator(dut)
        sim.add_clock(1e-6)
        sim.add_testbench(testbench)
        sim.run()

        assert results["c"] == pack_c_constant(config, 2 * 2 * 8)

    def test_timeout(self, config):
        """A budget shorter than the run raises GemmTimeoutError."""
        tiles = (2, 2, 2)
        a, b = constant_matrices(config, *tiles)
        dut = GemmAccelerator(config)
        caught = {}

        async def testbench(ctx):
            await load_tiles(ctx, dut, pack_matrix_a(a, config), pack_matrix_b(b, config))
            set_sizes(ctx, dut, *tiles)
            try:
                await run_and_wait(ctx, dut, timeout_cycles=4)
            except GemmTimeoutError as exc:
                caught["exc"] = exc

        sim = Simulator(dut)
        sim.add_clock(1e-6)
        sim.add_testbench(testbench)
        sim.run()

        assert caught["exc"].cycles == 4
        assert caught["exc"].budget == 4

    def test_timeout_propagates_from_simulate(self, config):
        a, b = constant_matrices(config, 2, 2, 2)
        with pytest.raises(GemmTimeoutError):
            simulate_gemm(config, a, b, timeout_cycles=5)

    def test_timeout_without_raise(self, config):
        tiles = (2, 2, 2)
        a, b = constant_matrices(config, *tiles)
        dut = GemmAccelerator(config)
        results = {}

        async def testbench(ctx):
            await load_tiles(ctx, dut, pack_matrix_a(a, config), pack_matrix_b(b, config))
            set_sizes(ctx, dut, *tiles)
            results["run"] = await run_and_wait(ctx, dut, timeout_cycles=4, raise_on_timeout=False)

        sim = Simulator(dut)
        sim.add_clock(1e-6)
        sim.add_testbench(testbench)
        sim.run()

        assert results["run"].timed_out
        assert results["run"].cycles == 4


def pack_c_constant(config, value):
    """Packed C word with every element equal to value."""
    word = 0
    for i in range(config.num_pe_m * config.num_pe_n):
        word |= (value & ((1 << config.out_data_width) - 1)) << (i * config.out_data_width)
    return word


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
