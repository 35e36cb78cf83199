"""Overuse detector combining threshold comparison with persistence rules."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol

from rtpflow.control import DelayStats, Usage


class Threshold(Protocol):
    def compare(self, estimate: int, delta: int) -> tuple[Usage, int, int]: ...


class OveruseDetector:
    """Signals overuse only when it persists for longer than overuse_time.

    Durations are integer nanoseconds; clock returns nanoseconds.
    """

    def __init__(
        self,
        threshold: Threshold,
        overuse_time: int,
        writer: Callable[[DelayStats], None],
        clock: Callable[[], int] = time.monotonic_ns,
    ) -> None:
        self.threshold = threshold
        self.overuse_time = overuse_time
        self._writer = writer
        self._clock = clock
        self.last_estimate = 0
        self.last_update = clock()
        self.increasing_duration = 0
        self.increasing_counter = 0

    def on_delay_stats(self, stats: DelayStats) -> None:
        """Classify one estimate and pass the result on."""
        now = self._clock()
        delta = now - self.last_update
        self.last_update = now

        threshold_use, estimate, current_threshold = self.threshold.compare(
            stats.estimate, stats.last_receive_delta
        )

        use = Usage.NORMAL
        if threshold_use == Usage.OVER:
            if self.increasing_duration == 0:
                self.increasing_duration = delta // 2
            else:
                self.increasing_duration += delta
            self.increasing_counter += 1
            persisted = self.increasing_counter > 1 and (
                self.overuse_time == 0 or self.increasing_duration > self.overuse_time
            )
            if persisted and estimate > self.last_estimate:
                use = Usage.OVER
        else:
            self.increasing_counter = 0
            self.increasing_duration = 0
            use = threshold_use

        self.last_estimate = estimate
        self._writer(
            DelayStats(
                measurement=stats.measurement,
                estimate=estimate,
                threshold=current_threshold,
                last_receive_delta=stats.last_receive_delta,
                usage=use,
            )
        )