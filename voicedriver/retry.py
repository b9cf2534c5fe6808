"""Configuration for connection retries."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class ExponentialBackoff:
    """Wait twice the last delay, with random jitter, clamped to ``[min, max]``.

    Durations are in seconds.
    """

    min: float = 0.25
    max: float = 10.0
    jitter: float = 0.1

    def retry_in(self, last_wait: float | None) -> float:
        """Seconds to wait before the next attempt."""
        attempt = self.min if last_wait is None else 2 * last_wait
        perturb = 1.0 - self.jitter * 2.0 * (random.random() - 1.0)
        perturb = min(max(perturb, 0.0), 2.0)
        target = attempt * perturb

        safe_max = self.min if self.max < self.min else self.max
        if target > safe_max:
            target = safe_max
        if target < self.min:
            target = self.min
        return target


@dataclass(frozen=True)
class Every:
    """Wait the same amount of time, in seconds, between each retry."""

    duration: float

    def retry_in(self, last_wait: float | None) -> float:
        """Seconds to wait before the next attempt."""
        return self.duration


Strategy = Union[Every, ExponentialBackoff]


@dataclass(frozen=True)
class Retry:
    """Retry policy for driver connection attempts.

    ``retry_limit`` of ``None`` retries forever; ``0`` connects once.
    """

    strategy: Strategy = field(default_factory=ExponentialBackoff)
    retry_limit: int | None = 5

    def retry_in(self, last_wait: float | None, attempts: int) -> float | None:
        """Seconds until the next attempt, or ``None`` if retries are exhausted."""
        if self.retry_limit is None or attempts < self.retry_limit:
            return self.strategy.retry_in(last_wait)
        return None