"""
=============================================================================
HOST MEMORY STATISTICS
=============================================================================

Reads total and used physical memory for the stats page.

psutil reports memory in BYTES. The page shows KILOBYTES, so every value
is floor-divided by 1024 on the way in:

    psutil.virtual_memory()          StatsSnapshot
    ───────────────────────          ─────────────
    total = 17179869184 bytes  ───►  total_memory_kb = 16777216
    used  =  8589934592 bytes  ───►  used_memory_kb  =  8388608

A snapshot is taken fresh for every response. Nothing is cached, so two
responses served at the same moment may show different numbers.

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import psutil


logger = logging.getLogger(__name__)


# Anything returning an object with integer `total` and `used` attributes
# (in bytes), like psutil.virtual_memory().
MemoryReader = Callable[[], Any]


@dataclass(frozen=True)
class StatsSnapshot:
    """Point-in-time read of host memory, in kilobytes."""

    total_memory_kb: int
    used_memory_kb: int

    def __post_init__(self):
        if self.total_memory_kb < 0 or self.used_memory_kb < 0:
            raise ValueError(
                f"Memory values must be >= 0, got total={self.total_memory_kb} "
                f"used={self.used_memory_kb}"
            )


class StatsProvider:
    """
    Source of StatsSnapshot objects.

    Usage:
        provider = StatsProvider()
        snapshot = provider.snapshot()
        print(snapshot.total_memory_kb)

    Safe to share between handler threads: it holds no mutable state.
    Errors from the underlying reader are not caught here. They surface
    in the caller's write phase.
    """

    def __init__(self, memory_reader: Optional[MemoryReader] = None):
        """
        Args:
            memory_reader: Callable returning total/used bytes.
                           Defaults to psutil.virtual_memory.
        """
        self._memory_reader = memory_reader

    def snapshot(self) -> StatsSnapshot:
        """Refresh and return current memory statistics."""
        # Resolved per call, not bound at construction
        reader = self._memory_reader or psutil.virtual_memory
        memory = reader()

        snapshot = StatsSnapshot(
            total_memory_kb=int(memory.total) // 1024,
            used_memory_kb=int(memory.used) // 1024,
        )
        logger.debug(
            f"Memory snapshot: total={snapshot.total_memory_kb} kB "
            f"used={snapshot.used_memory_kb} kB"
        )
        return snapshot
