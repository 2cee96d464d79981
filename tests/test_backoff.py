"""
Reconnect Backoff Tests
=======================

Tests for ReconnectPolicy and ReconnectBackoff.

Test Categories:
    - Policy validation
    - Failure progression (default -> min -> doubling -> max)
    - Success reset
    - Rearm listener notifications

Run with: python -m pytest tests/test_backoff.py -v

Module: tests.test_backoff
Version: 1.0.0
"""

import pytest
import sys
from pathlib import Path

# Add src directory to Python path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from backoff import ReconnectBackoff, ReconnectPolicy


@pytest.fixture
def backoff():
    return ReconnectBackoff(ReconnectPolicy(default_period=2, min_period=60, max_period=600))


# ============================================================================
# Policy Tests
# ============================================================================

class TestReconnectPolicy:
    """Test policy defaults and validation."""

    def test_defaults(self):
        """Test default periods of 2s, 60s and 600s."""
        policy = ReconnectPolicy()
        assert policy.default_period == 2
        assert policy.min_period == 60
        assert policy.max_period == 600
        assert policy.current_period == 2

    def test_min_greater_than_max_rejected(self):
        with pytest.raises(ValueError):
            ReconnectPolicy(min_period=700, max_period=600)

    def test_non_positive_period_rejected(self):
        with pytest.raises(ValueError):
            ReconnectPolicy(default_period=0)

    def test_default_above_min_rejected(self):
        """Test that a default period above min_period is rejected."""
        with pytest.raises(ValueError):
            ReconnectPolicy(default_period=120, min_period=60, max_period=600)

    def test_default_equal_to_min_rejected(self):
        """Test that a default period equal to min_period is rejected."""
        with pytest.raises(ValueError):
            ReconnectPolicy(default_period=60, min_period=60, max_period=600)

    def test_accepted_policy_never_decreases_while_failing(self):
        backoff = ReconnectBackoff(ReconnectPolicy(default_period=59, min_period=60, max_period=600))
        periods = [backoff.on_failure() for _ in range(6)]
        assert periods == sorted(periods)
        assert periods[:3] == [60, 120, 240]

    def test_not_backing_off_initially(self):
        assert ReconnectPolicy().is_backing_off() is False


# ============================================================================
# Failure Progression Tests
# ============================================================================

class TestFailureProgression:
    """Test the period sequence after consecutive failures."""

    def test_first_failure_jumps_to_min(self, backoff):
        assert backoff.on_failure() == 60

    def test_failures_double(self, backoff):
        periods = [backoff.on_failure() for _ in range(4)]
        assert periods == [60, 120, 240, 480]

    def test_failures_capped_at_max(self, backoff):
        periods = [backoff.on_failure() for _ in range(7)]
        assert periods == [60, 120, 240, 480, 600, 600, 600]

    def test_period_stays_within_bounds(self, backoff):
        for _ in range(20):
            period = backoff.on_failure()
            assert 60 <= period <= 600

    def test_min_equal_to_max(self):
        backoff = ReconnectBackoff(ReconnectPolicy(default_period=2, min_period=30, max_period=30))
        assert [backoff.on_failure() for _ in range(3)] == [30, 30, 30]


# ============================================================================
# Success Reset Tests
# ============================================================================

class TestSuccessReset:
    """Test that success restores the default period."""

    def test_success_resets_to_default(self, backoff):
        backoff.on_failure()
        backoff.on_failure()
        assert backoff.on_success() == 2
        assert backoff.current_period == 2

    def test_success_is_idempotent(self, backoff):
        backoff.on_success()
        backoff.on_success()
        assert backoff.current_period == 2

    def test_failure_after_success_starts_at_min(self, backoff):
        backoff.on_failure()
        backoff.on_failure()
        backoff.on_success()
        assert backoff.on_failure() == 60


# ============================================================================
# Rearm Listener Tests
# ============================================================================

class TestRearmListeners:
    """Test that every update rearms the timer."""

    def test_listener_receives_each_period(self, backoff):
        received = []
        backoff.on_rearm(received.append)

        backoff.on_failure()
        backoff.on_failure()
        backoff.on_success()

        assert received == [60, 120, 2]

    def test_multiple_listeners(self, backoff):
        first, second = [], []
        backoff.on_rearm(first.append)
        backoff.on_rearm(second.append)

        backoff.on_failure()

        assert first == [60]
        assert second == [60]
