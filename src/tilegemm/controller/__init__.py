"""Controller modules for the tilegemm accelerator."""

from .address import AddressGenerator
from .gemm import GemmController
from .state import ControllerState

__all__ = [
    "AddressGenerator",
    "ControllerState",
    "GemmController",
]
