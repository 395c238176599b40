"""Exceptions raised by the configuration layer and the verification harness."""


class ConfigurationError(ValueError):
    """Run-time tile counts do not fit the configured hardware."""


class VerificationError(Exception):
    """Base class for failures detected by the verification harness."""


class GemmTimeoutError(VerificationError):
    """The accelerator did not signal done within the cycle budget."""

    def __init__(self, cycles: int, budget: int):
        self.cycles = cycles
        self.budget = budget
        super().__init__(f"done not asserted after {cycles} cycles (budget {budget})")


class GemmMismatchError(VerificationError):
    """An output element differs from the golden reference."""

    def __init__(self, index: int, location: tuple[int, int], expected: int, actual: int):
        self.index = index
        self.location = location
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"mismatch at C{list(location)} (element {index}): expected {expected}, got {actual}"
        )
