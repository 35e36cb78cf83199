"""Adaptive threshold for the delay gradient (draft-ietf-rmcat-gcc-02, 5.4)."""

from __future__ import annotations

import time
from collections.abc import Callable

from rtpflow.control import MICROSECOND, MILLISECOND, Usage, clamp_duration

MAX_DELTAS = 60


def _truncate(value: int, unit: int) -> int:
    quotient = abs(value) // unit
    return -quotient if value < 0 else quotient


class AdaptiveThreshold:
    """A threshold that rises quickly on large estimates and decays slowly.

    Durations are integer nanoseconds; clock returns nanoseconds.
    """

    def __init__(
        self,
        initial_threshold: int = 12_500 * MICROSECOND,
        clock: Callable[[], int] = time.monotonic_ns,
    ) -> None:
        self.thresh = initial_threshold
        self.overuse_coefficient_up = 0.01
        self.overuse_coefficient_down = 0.00018
        self.min = 6 * MILLISECOND
        self.max = 600 * MILLISECOND
        self.last_update: int | None = None
        self.num_deltas = 0
        self._clock = clock

    def compare(self, estimate: int, delta: int) -> tuple[Usage, int, int]:
        """Classify estimate; return usage, scaled estimate and threshold used."""
        self.num_deltas += 1
        if self.num_deltas < 2:
            return Usage.NORMAL, estimate, self.max
        scaled = min(self.num_deltas, MAX_DELTAS) * estimate
        use = Usage.NORMAL
        if scaled > self.thresh:
            use = Usage.OVER
        elif scaled < -self.thresh:
            use = Usage.UNDER
        thresh = self.thresh
        self.update(scaled)
        return use, scaled, thresh

    def update(self, estimate: int) -> None:
        """Adapt the threshold towards the magnitude of estimate."""
        now = self._clock()
        if self.last_update is None:
            self.last_update = now
        abs_estimate = (abs(estimate) // MICROSECOND) * MICROSECOND
        if abs_estimate > self.thresh + 15 * MILLISECOND:
            self.last_update = now
            return
        k = self.overuse_coefficient_up
        if abs_estimate < self.thresh:
            k = self.overuse_coefficient_down
        time_delta_ms = min(_truncate(now - self.last_update, MILLISECOND), 100)
        d_ms = _truncate(abs_estimate - self.thresh, MILLISECOND)
        add = k * float(d_ms) * float(time_delta_ms)
        self.thresh += int(add * 1000) * MICROSECOND
        self.thresh = clamp_duration(self.thresh, self.min, self.max)
        self.last_update = now