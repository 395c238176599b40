"""
Tilegemm Verification - Global pytest configuration.

Cocotb benches run against Verilog written by scripts/gen_gemm.py into gen/.
They import tilegemm for packing and the golden reference, so src/ is put
on the path here.
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))
