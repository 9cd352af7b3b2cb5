"""Test suite for exponential backoff."""

import random

import pytest

from kvwatch.common.backoff import ExponentialBackoff


class TestExponentialBackoff:
    """Test growth, capping, reset and jitter of the backoff controller."""

    def test_delays_grow_exponentially(self):
        """Consecutive failures yield growing delays."""
        backoff = ExponentialBackoff(initial_interval=1.0, multiplier=2.0, randomization_factor=0.0)

        delays = [backoff.next_backoff() for _ in range(4)]

        assert delays == [1.0, 2.0, 4.0, 8.0]
        assert backoff.failures == 4

    def test_delays_are_capped(self):
        """Delays never exceed the maximum interval."""
        backoff = ExponentialBackoff(initial_interval=1.0, multiplier=3.0, max_interval=5.0, randomization_factor=0.0)

        delays = [backoff.next_backoff() for _ in range(5)]

        assert delays == [1.0, 3.0, 5.0, 5.0, 5.0]

    def test_three_failures_then_success_resets(self):
        """After a reset the next failure waits the initial interval again."""
        backoff = ExponentialBackoff(initial_interval=0.5, randomization_factor=0.0)

        delays = [backoff.next_backoff() for _ in range(3)]
        assert delays[0] < delays[1] < delays[2]

        backoff.reset()

        assert backoff.failures == 0
        assert backoff.next_backoff() == 0.5

    def test_jitter_stays_within_bounds(self):
        """Randomized delays stay within the randomization factor of the interval."""
        backoff = ExponentialBackoff(
            initial_interval=2.0, multiplier=1.0, randomization_factor=0.5, rng=random.Random(7)
        )

        delays = [backoff.next_backoff() for _ in range(200)]

        assert all(1.0 <= d <= 3.0 for d in delays)
        assert len(set(delays)) > 1

    def test_default_parameters(self):
        """Defaults start at half a second and grow by 1.5."""
        backoff = ExponentialBackoff(randomization_factor=0.0)

        assert backoff.next_backoff() == 0.5
        assert backoff.current_interval == pytest.approx(0.75)
        assert backoff.max_interval == 60.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"initial_interval": 0},
            {"initial_interval": -1},
            {"max_interval": 0},
            {"multiplier": 0.5},
            {"randomization_factor": 1.0},
            {"randomization_factor": -0.1},
        ],
    )
    def test_invalid_parameters(self, kwargs: dict):
        """Invalid parameters are rejected."""
        with pytest.raises(ValueError):
            ExponentialBackoff(**kwargs)
