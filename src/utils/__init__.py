"""
Utils Module
============
Common utility functions and classes for the HubLink agent.

Modules:
    timing: Timing utilities (Timer, Interval)
    memory: Memory monitoring backed by psutil

Example:
    from utils.timing import Timer, Interval
    from utils.memory import MemoryMonitor

Module: utils
Version: 1.0.0
"""

from utils.timing import (
    Timer,
    Interval,
    monotonic_ms,
)

from utils.memory import (
    gc_collect,
    get_memory_info,
    MemoryLevel,
    MemoryMonitor,
)

__all__ = [
    # Timing
    "Timer",
    "Interval",
    "monotonic_ms",
    # Memory
    "gc_collect",
    "get_memory_info",
    "MemoryLevel",
    "MemoryMonitor",
]

__version__ = "1.0.0"
