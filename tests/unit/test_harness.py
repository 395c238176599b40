"""
Unit tests for the verification harness.

These tests verify:
1. compare() logs every element and reports every mismatch
2. fatal_on_mismatch stops at the first difference
3. run_model_and_wait enforces the cycle budget
4. verify_model end to end on random and over-wide stimulus
"""

import logging

import numpy as np
import pytest

from tilegemm.config import DEFAULT_CONFIG, SMALL_CONFIG
from tilegemm.errors import ConfigurationError, GemmMismatchError, GemmTimeoutError
from tilegemm.model import GemmModel
from tilegemm.verif import (
    compare,
    random_matrices,
    random_tile_counts,
    run_model_and_wait,
    verify_model,
)
from tilegemm.verif.stimulus import constant_matrices


class TestCompare:
    """Test suite for compare()."""

    def test_all_match(self, caplog):
        ref = np.arange(6).reshape(2, 3)
        with caplog.at_level(logging.DEBUG, logger="tilegemm.verif.harness"):
            result = compare(ref, ref.copy())

        assert result.passed
        assert result.compared == 6
        assert result.first_mismatch is None
        ok_lines = [r for r in caplog.records if r.getMessage().endswith("OK")]
        assert len(ok_lines) == 6

    def test_reports_every_mismatch(self, caplog):
        ref = np.zeros((2, 2), dtype=np.int64)
        act = np.array([[0, 5], [7, 0]])
        with caplog.at_level(logging.DEBUG, logger="tilegemm.verif.harness"):
            result = compare(ref, act)

        assert not result.passed
        assert result.compared == 4
        assert [m.location for m in result.mismatches] == [(0, 1), (1, 0)]
        assert result.first_mismatch.expected == 0
        assert result.first_mismatch.actual == 5
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 3  # two elements + summary

    def test_fatal_on_mismatch(self):
        ref = np.zeros((2, 2), dtype=np.int64)
        act = np.array([[0, 0], [3, 4]])
        with pytest.raises(GemmMismatchError) as excinfo:
            compare(ref, act, fatal_on_mismatch=True)
        assert excinfo.value.location == (1, 0)
        assert excinfo.value.index == 2

    def test_count_prefix(self):
        ref = np.zeros(4, dtype=np.int64)
        act = np.array([0, 0, 9, 9])
        assert compare(ref, act, count=2).passed
        assert not compare(ref, act, count=3).passed

    def test_count_too_large(self):
        with pytest.raises(ValueError):
            compare(np.zeros(2), np.zeros(2), count=3)

    def test_shape_mismatch(self):
        with pytest.raises(ValueError):
            compare(np.zeros((2, 2)), np.zeros(4))


class TestRunModelAndWait:
    """Test suite for the start/done handshake on the model."""

    def _loaded_model(self, tiles):
        model = GemmModel(SMALL_CONFIG)
        model.set_sizes(*tiles)
        return model

    def test_cycles(self):
        run = run_model_and_wait(self._loaded_model((2, 2, 2)))
        assert run.cycles == 10
        assert not run.timed_out

    def test_timeout_raises(self):
        with pytest.raises(GemmTimeoutError) as excinfo:
            run_model_and_wait(self._loaded_model((2, 2, 2)), timeout_cycles=3)
        assert excinfo.value.cycles == 3
        assert excinfo.value.budget == 3

    def test_timeout_result(self, caplog):
        with caplog.at_level(logging.ERROR, logger="tilegemm.verif.harness"):
            run = run_model_and_wait(
                self._loaded_model((2, 2, 2)), timeout_cycles=3, raise_on_timeout=False
            )
        assert run.timed_out
        assert run.cycles == 3
        assert "timeout" in caplog.text

    def test_exact_budget_passes(self):
        run = run_model_and_wait(self._loaded_model((2, 2, 2)), timeout_cycles=10)
        assert run.cycles == 10


class TestVerifyModel:
    """End-to-end checks through verify_model."""

    def test_random_iterations(self):
        rng = np.random.default_rng(2024)
        for _ in range(10):
            tiles = random_tile_counts(SMALL_CONFIG, rng, max_tiles=5)
            a, b = random_matrices(SMALL_CONFIG, *tiles, rng)
            report = verify_model(SMALL_CONFIG, a, b, fatal_on_mismatch=True)
            assert report.passed
            assert report.tiles == tiles
            assert report.run.cycles == report.expected_cycles

    def test_overwide_inputs(self):
        """Inputs wider than in_data_width are checked as the hardware wraps them."""
        a = np.full((4, 4), 200)
        b = np.ones((4, 4), dtype=np.int64)

        report = verify_model(DEFAULT_CONFIG, a, b, fatal_on_mismatch=True)

        # 200 wraps to -56 in 8 bits; four K lanes give -224
        assert report.passed
        np.testing.assert_array_equal(report.result, np.full((4, 4), -224))
        np.testing.assert_array_equal(report.reference, report.result)

    def test_capacity_rejected(self):
        a, b = constant_matrices(SMALL_CONFIG, 9, 8, 1)
        with pytest.raises(ConfigurationError):
            verify_model(SMALL_CONFIG, a, b)

    def test_timeout_propagates(self):
        a, b = constant_matrices(SMALL_CONFIG, 2, 2, 2)
        with pytest.raises(GemmTimeoutError):
            verify_model(SMALL_CONFIG, a, b, timeout_cycles=5)


class TestStimulus:
    """Random stimulus stays within the hardware limits."""

    def test_tile_counts_fit(self):
        rng = np.random.default_rng(1)
        for _ in range(50):
            tiles = random_tile_counts(SMALL_CONFIG, rng, max_tiles=20)
            SMALL_CONFIG.check_tile_counts(*tiles)

    def test_matrix_range(self):
        a, b = random_matrices(SMALL_CONFIG, 4, 4, 4, np.random.default_rng(0))
        assert a.shape == (8, 8)
        assert b.shape == (8, 8)
        assert a.min() >= -128 and a.max() <= 127
        assert b.min() >= -128 and b.max() <= 127


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
