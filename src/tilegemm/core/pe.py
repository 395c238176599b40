"""
Processing Element (PE) - The fundamental compute unit of the GEMM grid.

Each PE is an output-stationary inner-product unit. Every valid cycle it
multiplies num_ip_k lanes of A with num_ip_k lanes of B and adds the sum
of the products to its private accumulator:

    acc <= acc + sum(in_a[k] * in_b[k] for k in lanes)

The accumulator holds one output element across the whole K reduction.
On the last K-tile of a sweep the PE flushes: out_c presents the finished
sum (truncated to out_data_width) and the accumulator restarts from zero,
so the next tile's first K-step needs no separate clear cycle.

Timing:
    cycle t   : in_valid=1, in_last=0  -> acc updated at end of t
    cycle t+n : in_valid=1, in_last=1  -> out_c valid during t+n, acc <= 0
"""

from amaranth import Module, Signal, signed
from amaranth.lib.wiring import Component, In, Out

from ..config import GemmConfig


class PE(Component):
    """
    Processing Element - inner-product MAC with flush.

    Ports:
        in_a_0..K: Signed A lanes (one per K lane)
        in_b_0..K: Signed B lanes (one per K lane)
        in_valid: Accumulate the lane dot product this cycle
        in_last: Final K-tile of the sweep; flush instead of keeping the sum

        out_c: acc + dot, truncated to out_data_width (combinational)
        out_acc: Current accumulator contents (for observation)

    Parameters:
        config: GemmConfig with bit widths and lane count
    """

    def __init__(self, config: GemmConfig):
        self.config = config

        ports = {}
        for k in range(config.num_ip_k):
            ports[f"in_a_{k}"] = In(signed(config.in_data_width))
            ports[f"in_b_{k}"] = In(signed(config.in_data_width))
        ports["in_valid"] = In(1)
        ports["in_last"] = In(1)
        ports["out_c"] = Out(signed(config.out_data_width))
        ports["out_acc"] = Out(signed(config.acc_bits))

        super().__init__(ports)

    def elaborate(self, _platform):
        m = Module()
        cfg = self.config

        acc = Signal(signed(cfg.acc_bits), name="acc")

        # =================================================================
        # Lane products and reduction
        # =================================================================
        products = []
        for k in range(cfg.num_ip_k):
            product = Signal(signed(cfg.product_bits), name=f"product_{k}")
            m.d.comb += product.eq(getattr(self, f"in_a_{k}") * getattr(self, f"in_b_{k}"))
            products.append(product)

        dot = Signal(signed(cfg.acc_bits), name="dot")
        m.d.comb += dot.eq(sum(products))

        total = Signal(signed(cfg.acc_bits), name="total")
        m.d.comb += total.eq(acc + dot)

        # =================================================================
        # Outputs
        # =================================================================
        m.d.comb += [
            self.out_c.eq(total[: cfg.out_data_width]),
            self.out_acc.eq(acc),
        ]

        # =================================================================
        # Accumulator update
        # =================================================================
        with m.If(self.in_valid):
            with m.If(self.in_last):
                m.d.sync += acc.eq(0)
            with m.Else():
                m.d.sync += acc.eq(total)

        return m
