#!/usr/bin/env python3
"""Generate tilegemm Verilog (PE, PEArray, controller, address generator, top)."""

import argparse
import sys
from pathlib import Path

# Add src to path if running from scripts/
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from amaranth.back import verilog  # noqa: E402

from tilegemm.config import GemmConfig  # noqa: E402
from tilegemm.controller import AddressGenerator, GemmController  # noqa: E402
from tilegemm.core import PE, PEArray  # noqa: E402
from tilegemm.top import GemmAccelerator  # noqa: E402

MODULES = {
    "pe": (PE, "PE"),
    "pe_array": (PEArray, "PEArray"),
    "gemm_controller": (GemmController, "GemmController"),
    "address_generator": (AddressGenerator, "AddressGenerator"),
    "gemm_top": (GemmAccelerator, "GemmTop"),
}


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("modules", nargs="*", help=f"Modules to generate: {', '.join(MODULES)} (default: all)")
    parser.add_argument("--in-width", type=int, default=8, help="InDataWidth")
    parser.add_argument("--out-width", type=int, default=32, help="OutDataWidth")
    parser.add_argument("--pe-m", type=int, default=4, help="PE rows")
    parser.add_argument("--pe-n", type=int, default=4, help="PE columns")
    parser.add_argument("--ip-k", type=int, default=4, help="K lanes per PE")
    parser.add_argument("--addr-bits", type=int, default=8, help="Tile memory address width")
    parser.add_argument("--size-bits", type=int, default=8, help="Tile-count field width")
    parser.add_argument("--out-dir", type=Path, default=project_root / "gen", help="Output directory")
    args = parser.parse_args()

    unknown = [key for key in args.modules if key not in MODULES]
    if unknown:
        parser.error(f"unknown module(s): {', '.join(unknown)}")

    config = GemmConfig(
        in_data_width=args.in_width,
        out_data_width=args.out_width,
        num_pe_m=args.pe_m,
        num_pe_n=args.pe_n,
        num_ip_k=args.ip_k,
        mem_addr_bits=args.addr_bits,
        size_bits=args.size_bits,
    )

    args.out_dir.mkdir(parents=True, exist_ok=True)
    for key in args.modules or MODULES:
        cls, name = MODULES[key]
        output_path = args.out_dir / f"{key}.v"
        with open(output_path, "w") as f:
            f.write(verilog.convert(cls(config), name=name))
        print(f"Generated {output_path}")


if __name__ == "__main__":
    main()
