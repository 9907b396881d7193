"""Strategies for waiting between driver connection attempts."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable, Optional, Union


@dataclass(frozen=True)
class Every:
    """Wait the same number of seconds between every retry."""

    period: float

    def retry_in(self, last_wait: Optional[float]) -> float:
        """Return the wait before the next attempt, in seconds."""
        return self.period


@dataclass(frozen=True)
class ExponentialBackoff:
    """Wait roughly twice the last delay, with random jitter, clamped to [min, max].

    Times are in seconds; ``jitter`` is the relative random perturbation.
    """

    min: float = 0.25
    max: float = 10.0
    jitter: float = 0.1
    rng: Callable[[], float] = field(default=random.random, compare=False, repr=False)

    def retry_in(self, last_wait: Optional[float]) -> float:
        """Return the wait before the next attempt, in seconds."""
        attempt = self.min if last_wait is None else 2 * last_wait
        perturb = min(max(1.0 - self.jitter * 2.0 * (self.rng() - 1.0), 0.0), 2.0)
        target = attempt * perturb

        safe_max = self.min if self.max < self.min else self.max
        if target > safe_max:
            target = safe_max
        if target < self.min:
            target = self.min
        return target


Strategy = Union[Every, ExponentialBackoff]


@dataclass(frozen=True)
class Retry:
    """How the driver retries failed connection attempts.

    ``retry_limit`` of ``None`` retries forever; ``0`` connects once without retrying.
    """

    strategy: Strategy = field(default_factory=ExponentialBackoff)
    retry_limit: Optional[int] = 5

    def retry_in(self, last_wait: Optional[float], attempts: int) -> Optional[float]:
        """Return the wait before the next attempt, or None if no retries remain."""
        if self.retry_limit is None or attempts < self.retry_limit:
            return self.strategy.retry_in(last_wait)
        return None