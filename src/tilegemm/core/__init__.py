"""
Core GEMM compute components.

This module contains the datapath building blocks:
- PE: Inner-product multiply-accumulate unit with flush
- PEArray: num_pe_m x num_pe_n grid of PEs fed from packed tile words
"""

from .pe import PE
from .pe_array import PEArray

__all__ = ["PE", "PEArray"]
