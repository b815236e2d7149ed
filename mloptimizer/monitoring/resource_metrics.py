"""
Process and system resource probes used around each request.
"""

import os
from dataclasses import dataclass

import psutil

_process = psutil.Process()


@dataclass
class SystemResources:
    """Resources currently available to the allocator"""

    memory: float  # MB available
    cpu: float  # percent available
    available_workers: int


@dataclass(frozen=True)
class ProcessSnapshot:
    """Point-in-time process memory and CPU counters"""

    rss: int  # bytes
    cpu_time: float  # seconds, user + system

    def delta_to(self, later: "ProcessSnapshot") -> tuple[float, float]:
        """(memory delta in bytes, CPU delta in ms) between two snapshots"""
        return float(later.rss - self.rss), (later.cpu_time - self.cpu_time) * 1000


def take_process_snapshot() -> ProcessSnapshot:
    """Snapshot the current process memory and CPU usage"""
    cpu = _process.cpu_times()
    return ProcessSnapshot(
        rss=_process.memory_info().rss,
        cpu_time=cpu.user + cpu.system,
    )


def get_system_resources() -> SystemResources:
    """Collect available memory, CPU headroom and worker capacity"""
    memory = psutil.virtual_memory()
    # interval=None compares against the previous call and never blocks
    cpu_busy = psutil.cpu_percent(interval=None)

    return SystemResources(
        memory=float(memory.available // (1024 * 1024)),
        cpu=max(0.0, 100.0 - cpu_busy),
        available_workers=os.cpu_count() or 1,
    )
