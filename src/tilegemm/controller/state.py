"""Controller state encoding shared by the RTL controller and the cycle model."""

from enum import IntEnum


class ControllerState(IntEnum):
    """
    GEMM controller states.

    IDLE:  Waiting for start; initial and terminal state.
    RUN:   Issuing one (m, n, k) tile read per cycle.
    FLUSH: Drain cycle after the last issue; the final C tile is written.
    """

    IDLE = 0
    RUN = 1
    FLUSH = 2
