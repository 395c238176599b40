"""
Verification harness: start/done handshake, output comparison, reporting.

The harness is shared by both targets:
- the behavioral GemmModel (run_model_and_wait, verify_model)
- the Amaranth simulation of GemmAccelerator (see .sim)

Failure policy:
- Timeout: fatal. run_and_wait raises GemmTimeoutError with the elapsed
  cycle count unless the caller asks for the RunResult instead.
- Mismatch: every comparison is logged; by default a mismatch only marks
  the CompareResult as failed. With fatal_on_mismatch=True the first
  mismatch raises GemmMismatchError.
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from ..config import GemmConfig
from ..errors import GemmMismatchError, GemmTimeoutError
from ..golden import hardware_reference
from ..model.accelerator import GemmModel
from ..util.packing import pack_matrix_a, pack_matrix_b, unpack_matrix_c

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    """Outcome of one start/done handshake."""

    cycles: int
    timed_out: bool = False


@dataclass(frozen=True)
class Mismatch:
    index: int
    location: tuple[int, ...]
    expected: int
    actual: int


@dataclass
class CompareResult:
    """Element-wise comparison of a result against the reference."""

    compared: int = 0
    mismatches: list[Mismatch] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.mismatches

    @property
    def first_mismatch(self) -> Mismatch | None:
        return self.mismatches[0] if self.mismatches else None


@dataclass
class VerificationReport:
    """Everything one verification iteration produced."""

    tiles: tuple[int, int, int]
    run: RunResult
    expected_cycles: int
    comparison: CompareResult
    result: np.ndarray
    reference: np.ndarray

    @property
    def passed(self) -> bool:
        return (
            not self.run.timed_out
            and self.run.cycles == self.expected_cycles
            and self.comparison.passed
        )


def compare(reference, actual, count: int | None = None, fatal_on_mismatch: bool = False) -> CompareResult:
    """
    Compare the first count elements of actual against reference.

    Elements are taken in row-major order. Every comparison is logged,
    matches at DEBUG and mismatches at ERROR, rather than stopping at the
    first difference.

    Args:
        reference: Expected values
        actual: Observed values, same shape as reference
        count: Number of elements to compare (default: all)
        fatal_on_mismatch: Raise GemmMismatchError on the first mismatch

    Returns:
        CompareResult with every mismatch and its location
    """
    reference = np.asarray(reference)
    actual = np.asarray(actual)
    if reference.shape != actual.shape:
        raise ValueError(f"shape mismatch: reference {reference.shape}, actual {actual.shape}")

    ref_flat = reference.reshape(-1)
    act_flat = actual.reshape(-1)
    if count is None:
        count = ref_flat.size
    if count > ref_flat.size:
        raise ValueError(f"count {count} exceeds {ref_flat.size} elements")

    result = CompareResult()
    for i in range(count):
        expected = int(ref_flat[i])
        got = int(act_flat[i])
        location = tuple(int(x) for x in np.unravel_index(i, reference.shape))
        result.compared += 1

        if expected == got:
            logger.debug("C%s = %d OK", list(location), got)
            continue

        logger.error("C%s = %d, expected %d", list(location), got, expected)
        result.mismatches.append(Mismatch(i, location, expected, got))
        if fatal_on_mismatch:
            raise GemmMismatchError(i, location, expected, got)

    if result.passed:
        logger.info("compare passed: %d elements", result.compared)
    else:
        logger.error(
            "compare failed: %d of %d elements differ, first at C%s",
            len(result.mismatches),
            result.compared,
            list(result.first_mismatch.location),
        )
    return result


def run_model_and_wait(
    model: GemmModel, timeout_cycles: int | None = None, *, raise_on_timeout: bool = True
) -> RunResult:
    """
    Pulse start on the model and step until done.

    The start cycle counts as cycle 1. If done is not seen within
    timeout_cycles the run is declared timed out.

    Raises:
        GemmTimeoutError: on timeout, unless raise_on_timeout is False
    """
    budget = timeout_cycles if timeout_cycles is not None else model.config.timeout_cycles

    model.step(start=True)
    cycles = 1
    while not model.done:
        if cycles >= budget:
            logger.error("timeout: done not asserted after %d cycles", cycles)
            if raise_on_timeout:
                raise GemmTimeoutError(cycles, budget)
            return RunResult(cycles=cycles, timed_out=True)
        model.step()
        cycles += 1

    logger.info("done after %d cycles", cycles)
    return RunResult(cycles=cycles)


def verify_model(
    config: GemmConfig,
    a,
    b,
    *,
    fatal_on_mismatch: bool = False,
    timeout_cycles: int | None = None,
) -> VerificationReport:
    """
    Run A × B on the behavioral model and check it against the golden model.

    Args:
        config: Hardware configuration
        a: M x K matrix, M and K multiples of the tile shape
        b: K x N matrix
        fatal_on_mismatch: Raise on the first mismatching element
        timeout_cycles: Override config.timeout_cycles
    """
    a = np.asarray(a)
    b = np.asarray(b)
    m_tiles = a.shape[0] // config.num_pe_m
    k_tiles = a.shape[1] // config.num_ip_k
    n_tiles = b.shape[1] // config.num_pe_n

    model = GemmModel(config)
    model.set_sizes(m_tiles, k_tiles, n_tiles)
    model.load(pack_matrix_a(a, config), pack_matrix_b(b, config))
    logger.info("model run: M_t=%d K_t=%d N_t=%d", m_tiles, k_tiles, n_tiles)

    run = run_model_and_wait(model, timeout_cycles)
    result = unpack_matrix_c(model.c_words(m_tiles * n_tiles), m_tiles, n_tiles, config)
    reference = hardware_reference(config, a, b)
    comparison = compare(reference, result, fatal_on_mismatch=fatal_on_mismatch)

    return VerificationReport(
        tiles=(m_tiles, k_tiles, n_tiles),
        run=run,
        expected_cycles=config.run_cycles(m_tiles, k_tiles, n_tiles),
        comparison=comparison,
        result=result,
        reference=reference,
    )
