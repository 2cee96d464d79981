"""
Link Statistics
===============
Collects connection and traffic statistics for the hub link.

Tracked:
- Setup duration (time spent creating and connecting the hub client)
- Setup attempts and failures
- Telemetry messages sent and suppressed
- Reported-state messages queued
- Direct method invocations

Setup durations are kept in a bounded buffer so long-running agents do not
grow memory.

Module: link_stats
Version: 1.0.0
"""

import time


class LinkStats:
    """
    Counters and setup timing samples for the hub link.

    Uses a bounded list as a circular buffer for setup durations.
    """

    def __init__(self, max_samples=100):
        """
        Initialize statistics collector.

        Args:
            max_samples: Maximum number of setup duration samples to retain
        """
        self.max_samples = max_samples
        self.setup_duration_samples = []

        self.setup_attempts = 0
        self.setup_failures = 0
        self.authentications = 0
        self.disconnects = 0
        self.telemetry_sent = 0
        self.telemetry_suppressed = 0
        self.reported_states = 0
        self.methods_invoked = 0

        self.last_setup_time = None

    def record_setup(self, duration_ms, succeeded):
        """
        Record one client setup attempt.

        Args:
            duration_ms: Time spent in setup, in milliseconds
            succeeded: Whether the client was created and connected
        """
        self.setup_attempts += 1
        if not succeeded:
            self.setup_failures += 1

        self.setup_duration_samples.append(duration_ms)
        if len(self.setup_duration_samples) > self.max_samples:
            self.setup_duration_samples.pop(0)

        self.last_setup_time = time.monotonic()

    def get_statistics(self):
        """
        Summarize the setup duration samples.

        Returns:
            dict with mean, median, min, max and sample_count,
            or None if no setup was attempted yet
        """
        if not self.setup_duration_samples:
            return None

        sorted_samples = sorted(self.setup_duration_samples)
        n = len(sorted_samples)
        return {
            "mean": sum(sorted_samples) / n,
            "median": sorted_samples[n // 2],
            "min": sorted_samples[0],
            "max": sorted_samples[-1],
            "sample_count": n,
        }

    def as_dict(self):
        return {
            "setup_attempts": self.setup_attempts,
            "setup_failures": self.setup_failures,
            "authentications": self.authentications,
            "disconnects": self.disconnects,
            "telemetry_sent": self.telemetry_sent,
            "telemetry_suppressed": self.telemetry_suppressed,
            "reported_states": self.reported_states,
            "methods_invoked": self.methods_invoked,
        }

    def print_report(self):
        """Print formatted statistics report to console."""
        print("\n" + "=" * 60)
        print("HUB LINK STATISTICS")
        print("=" * 60)
        for name, value in self.as_dict().items():
            print("  {:<22} {}".format(name.replace('_', ' ').capitalize() + ":", value))

        stats = self.get_statistics()
        if stats:
            print()
            print("SETUP DURATION ({} samples):".format(stats['sample_count']))
            print("  Mean:   {:8.1f} ms".format(stats['mean']))
            print("  Median: {:8.1f} ms".format(stats['median']))
            print("  Min:    {:8.1f} ms".format(stats['min']))
            print("  Max:    {:8.1f} ms".format(stats['max']))

        if self.last_setup_time:
            elapsed = time.monotonic() - self.last_setup_time
            print("Last setup attempt: {:.1f}s ago".format(elapsed))

        print("=" * 60 + "\n")

    def reset(self):
        """Reset all statistics."""
        self.__init__(max_samples=self.max_samples)
        print("[LINK_STATS] Statistics reset")
