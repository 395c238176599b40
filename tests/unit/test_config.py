"""
Unit tests for GemmConfig.

These tests verify:
1. Derived word widths and memory depth
2. Accumulator width covers the full K reduction
3. Tile-count validation against capacity
4. Parameter assertions
"""

import pytest

from tilegemm.config import DEFAULT_CONFIG, SMALL_CONFIG, GemmConfig
from tilegemm.errors import ConfigurationError


class TestGemmConfig:
    """Test suite for computed properties."""

    def test_defaults(self):
        config = GemmConfig()
        assert config.in_data_width == 8
        assert config.out_data_width == 32
        assert (config.num_pe_m, config.num_pe_n, config.num_ip_k) == (4, 4, 4)
        assert config.timeout_cycles == 100_000

    def test_word_widths(self):
        config = GemmConfig(in_data_width=8, out_data_width=32, num_pe_m=4, num_pe_n=2, num_ip_k=3)
        assert config.a_word_bits == 4 * 3 * 8
        assert config.b_word_bits == 2 * 3 * 8
        assert config.c_word_bits == 4 * 2 * 32

    def test_memory_depth(self):
        assert GemmConfig(mem_addr_bits=6).mem_depth == 64
        assert GemmConfig(size_bits=4).max_tile_count == 15

    def test_acc_bits_covers_reduction(self):
        config = GemmConfig(in_data_width=8, out_data_width=16, mem_addr_bits=8, size_bits=8)
        # K up to 255 tiles * 4 lanes = 1020 -> 10 extra bits over the 16-bit product
        assert config.max_k == 1020
        assert config.acc_bits == 26
        worst = (1 << 14) * config.max_k  # (-128) * (-128) summed max_k times
        assert worst < (1 << (config.acc_bits - 1))

    def test_acc_bits_at_least_output(self):
        config = GemmConfig(in_data_width=4, out_data_width=48)
        assert config.acc_bits == 48

    def test_tile_shapes(self):
        config = GemmConfig(num_pe_m=2, num_pe_n=3, num_ip_k=5)
        assert config.tile_shape_a == (2, 5)
        assert config.tile_shape_b == (5, 3)
        assert config.tile_shape_c == (2, 3)
        assert config.matrix_dims(2, 3, 4) == (4, 15, 12)

    def test_run_cycles(self):
        assert DEFAULT_CONFIG.run_cycles(1, 1, 1) == 3
        assert DEFAULT_CONFIG.run_cycles(1, 16, 1) == 18
        assert DEFAULT_CONFIG.run_cycles(8, 8, 8) == 514

    def test_predefined(self):
        assert SMALL_CONFIG.total_pes == 4
        assert DEFAULT_CONFIG.total_pes == 16


class TestTileCountValidation:
    """Test suite for check_tile_counts."""

    @pytest.fixture
    def config(self):
        return GemmConfig(mem_addr_bits=4, size_bits=8)  # 16-word memories

    def test_valid_counts(self, config):
        config.check_tile_counts(1, 1, 1)
        config.check_tile_counts(4, 4, 4)
        config.check_tile_counts(1, 16, 1)

    @pytest.mark.parametrize("tiles", [(0, 1, 1), (1, 0, 1), (1, 1, 0), (-1, 2, 2)])
    def test_zero_counts_rejected(self, config, tiles):
        with pytest.raises(ConfigurationError):
            config.check_tile_counts(*tiles)

    @pytest.mark.parametrize("tiles", [(5, 4, 1), (1, 4, 5), (5, 1, 4), (1, 17, 1)])
    def test_capacity_rejected(self, config, tiles):
        with pytest.raises(ConfigurationError):
            config.check_tile_counts(*tiles)

    def test_size_field_rejected(self):
        config = GemmConfig(mem_addr_bits=10, size_bits=3)
        with pytest.raises(ConfigurationError, match="size field"):
            config.check_tile_counts(8, 1, 1)


class TestConfigAssertions:
    """Invalid parameters are rejected at construction."""

    @pytest.mark.parametrize(
        "field",
        ["in_data_width", "out_data_width", "num_pe_m", "num_pe_n", "num_ip_k", "mem_addr_bits"],
    )
    def test_non_positive(self, field):
        with pytest.raises(AssertionError):
            GemmConfig(**{field: 0})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
