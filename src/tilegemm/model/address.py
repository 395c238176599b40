"""Behavioral address generator with a registered C address."""

from dataclasses import dataclass


@dataclass
class AddressGenerator:
    """
    Tile addresses from loop counters.

    a_address() and b_address() are pure functions of the counters.
    c_address is a register: next_c_address() computes the value to capture
    this cycle and commit() makes it visible on the following cycle.
    """

    k_tiles: int = 1
    n_tiles: int = 1
    c_address: int = 0

    def configure(self, k_tiles: int, n_tiles: int) -> None:
        self.k_tiles = k_tiles
        self.n_tiles = n_tiles

    def a_address(self, m_count: int, k_count: int) -> int:
        return m_count * self.k_tiles + k_count

    def b_address(self, k_count: int, n_count: int) -> int:
        return k_count * self.n_tiles + n_count

    def next_c_address(self, sweep_done: bool, m_count: int, n_count: int) -> int:
        if sweep_done:
            return m_count * self.n_tiles + n_count
        return self.c_address

    def commit(self, c_address: int) -> None:
        self.c_address = c_address
