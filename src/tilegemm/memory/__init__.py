"""
Memory subsystem components.

- SinglePortMemory: Synchronous tile storage with one-cycle read latency
"""

from .sram import SinglePortMemory

__all__ = ["SinglePortMemory"]
