"""
Memory Utilities
================
Memory monitoring for the HubLink agent, backed by psutil.

- gc_collect(): Garbage collection
- get_memory_info(): Available system memory and process resident size
- MemoryMonitor: Track memory usage over time and flag low-memory levels

Module: utils.memory
Version: 1.0.0
"""

import gc
import os

import psutil

from core.constants import MEMORY_CRITICAL_BYTES, MEMORY_WARNING_BYTES


def gc_collect():
    """Run a full garbage collection and return the number of objects freed."""
    return gc.collect()


def get_memory_info():
    """
    Get current memory information.

    Returns:
        dict: Dictionary with 'free' (system available) and 'allocated'
              (process resident set size) keys, in bytes
    """
    return {
        "free": psutil.virtual_memory().available,
        "allocated": psutil.Process(os.getpid()).memory_info().rss,
    }


class MemoryLevel:
    """Classification of a free-memory sample."""

    OK = "OK"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class MemoryMonitor:
    """
    Track memory usage over time.

    Usage:
        monitor = MemoryMonitor(max_samples=60)
        level = monitor.check()
        if level != MemoryLevel.OK:
            ...
        stats = monitor.stats()
    """

    def __init__(
        self,
        max_samples=100,
        warning_bytes=MEMORY_WARNING_BYTES,
        critical_bytes=MEMORY_CRITICAL_BYTES):
        """
        Initialize memory monitor.

        Args:
            max_samples: Maximum number of samples to retain
            warning_bytes: Free memory below this level logs a warning
            critical_bytes: Free memory below this level logs a critical message
        """
        self.max_samples = max_samples
        self.warning_bytes = warning_bytes
        self.critical_bytes = critical_bytes
        self._samples = []

    def record(self):
        """Record current memory state and return the sample."""
        info = get_memory_info()
        self._samples.append(info)

        if len(self._samples) > self.max_samples:
            self._samples = self._samples[-self.max_samples:]
        return info

    def check(self):
        """
        Collect garbage, record a sample and log its level.

        Returns:
            str: MemoryLevel of the new sample
        """
        gc_collect()
        info = self.record()
        free_mem = info["free"]
        print("[MEMORY] Free: {} bytes ({:.0f} KB), RSS: {} bytes".format(
            free_mem, free_mem / 1024, info["allocated"]))

        if free_mem < self.critical_bytes:
            print("[CRITICAL] Very low memory! Free < {} KB".format(self.critical_bytes // 1024))
            return MemoryLevel.CRITICAL
        if free_mem < self.warning_bytes:
            print("[WARNING] Low memory! Free < {} KB".format(self.warning_bytes // 1024))
            return MemoryLevel.WARNING
        return MemoryLevel.OK

    def sample_count(self):
        return len(self._samples)

    def clear(self):
        """Clear all recorded samples."""
        self._samples = []

    def stats(self):
        """
        Return min/max/avg statistics for free memory.

        Returns:
            dict: Dictionary with 'min_free', 'max_free', 'avg_free' keys
        """
        if not self._samples:
            return {"min_free": 0, "max_free": 0, "avg_free": 0}

        free_values = [s["free"] for s in self._samples]
        return {
            "min_free": min(free_values),
            "max_free": max(free_values),
            "avg_free": sum(free_values) // len(free_values)
        }
