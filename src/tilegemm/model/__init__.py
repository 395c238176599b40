"""
Cycle-accurate behavioral models of the GEMM accelerator.

Components:
- PEGrid / PECell: Output-stationary accumulators with accumulate/flush
- AddressGenerator: Counter-driven addresses, registered C address
- ControllerModel: IDLE -> RUN -> FLUSH controller with compute-then-commit
- GemmModel: Complete accelerator with tile memories
"""

from .accelerator import CycleTrace, GemmModel
from .address import AddressGenerator
from .controller import ControllerModel, ControllerOutputs, ControllerRegs
from .pe_grid import PECell, PEGrid

__all__ = [
    "AddressGenerator",
    "ControllerModel",
    "ControllerOutputs",
    "ControllerRegs",
    "CycleTrace",
    "GemmModel",
    "PECell",
    "PEGrid",
]
