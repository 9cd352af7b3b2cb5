"""Exponential backoff with jitter."""

import random


class ExponentialBackoff:
    """Exponential backoff controller.

    Each ``next_backoff`` call returns the current interval, randomized by
    ``randomization_factor`` in both directions, and then grows the interval by
    ``multiplier`` until it reaches ``max_interval``. ``reset`` starts over from
    ``initial_interval``.
    """

    def __init__(
        self,
        initial_interval: float = 0.5,
        multiplier: float = 1.5,
        max_interval: float = 60.0,
        randomization_factor: float = 0.5,
        rng: random.Random | None = None,
    ):
        """Validate and store the backoff parameters."""
        if initial_interval <= 0 or max_interval <= 0:
            raise ValueError("backoff intervals must be positive")
        if multiplier < 1:
            raise ValueError("backoff multiplier must be >= 1")
        if not 0 <= randomization_factor < 1:
            raise ValueError("randomization factor must be in [0, 1)")
        self.initial_interval = initial_interval
        self.multiplier = multiplier
        self.max_interval = max(max_interval, initial_interval)
        self.randomization_factor = randomization_factor
        self._rng = rng or random.Random()
        self._current = initial_interval
        self.failures = 0

    @property
    def current_interval(self) -> float:
        """Interval the next delay is drawn around."""
        return self._current

    def next_backoff(self) -> float:
        """Return the next delay in seconds and grow the interval."""
        delta = self.randomization_factor * self._current
        delay = self._rng.uniform(self._current - delta, self._current + delta) if delta else self._current
        self._current = min(self._current * self.multiplier, self.max_interval)
        self.failures += 1
        return delay

    def reset(self) -> None:
        """Return to the initial interval."""
        self._current = self.initial_interval
        self.failures = 0
