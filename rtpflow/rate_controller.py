"""Delay based rate controller: turns usage signals into a target bitrate."""

from __future__ import annotations

import math
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace

from rtpflow.control import MILLISECOND, DelayStats, State, clamp_int

DECREASE_EMA_ALPHA = 0.95
BETA = 0.85


def _truncate(value: int, unit: int) -> int:
    quotient = abs(value) // unit
    return -quotient if value < 0 else quotient


@dataclass
class ExponentialMovingAverage:
    """Running average and deviation of the rates seen at decrease time."""

    average: float = 0.0
    variance: float = 0.0
    std_deviation: float = 0.0

    def update(self, value: float) -> None:
        """Fold value into the average."""
        if self.average == 0.0:
            self.average = value
            return
        x = value - self.average
        self.average += DECREASE_EMA_ALPHA * x
        self.variance = (1 - DECREASE_EMA_ALPHA) * (self.variance + DECREASE_EMA_ALPHA * x * x)
        self.std_deviation = math.sqrt(self.variance)


class RateController:
    """Adjusts the target bitrate from the detector's usage signals.

    now returns the current time in integer nanoseconds; durations are
    nanoseconds and bitrates bits per second.
    """

    def __init__(
        self,
        now: Callable[[], int],
        initial_target_bitrate: int,
        min_bitrate: int,
        max_bitrate: int,
        writer: Callable[[DelayStats], None],
    ) -> None:
        self._now = now
        self.initial_target_bitrate = initial_target_bitrate
        self.min_bitrate = min_bitrate
        self.max_bitrate = max_bitrate
        self._writer = writer
        self._lock = threading.Lock()
        self._initialized = False
        self.delay_stats = DelayStats()
        self.target = initial_target_bitrate
        self.last_update: int | None = None
        self.last_state = State.INCREASE
        self.latest_rtt = 0
        self.latest_received_rate = 0
        self.latest_decrease_rate = ExponentialMovingAverage()

    def on_received_rate(self, rate: int) -> None:
        """Record the most recent received rate."""
        with self._lock:
            self.latest_received_rate = rate

    def update_rtt(self, rtt: int) -> None:
        """Record the most recent round trip time."""
        with self._lock:
            self.latest_rtt = rtt

    def on_delay_stats(self, stats: DelayStats) -> None:
        """Update the target for one usage signal and pass the result on."""
        now = self._now()

        if not self._initialized:
            self.delay_stats = replace(stats, state=State.INCREASE)
            self._initialized = True
            return

        state = State(stats.state).transition(stats.usage)
        self.delay_stats = replace(stats, state=state)
        if state == State.HOLD:
            return

        with self._lock:
            if state == State.INCREASE:
                raw = self.increase(now)
            else:
                raw = self.decrease()
            self.target = clamp_int(raw, self.min_bitrate, self.max_bitrate)
            result = replace(self.delay_stats, target_bitrate=self.target)

        self._writer(result)

    def _elapsed_fraction(self, now: int, scale_ms: int) -> float:
        if self.last_update is None or scale_ms <= 0:
            return 1.0
        elapsed_ms = _truncate(now - self.last_update, MILLISECOND)
        return min(float(elapsed_ms) / float(scale_ms), 1.0)

    def increase(self, now: int) -> int:
        """Return the increased target for time now."""
        decrease_rate = self.latest_decrease_rate
        received = float(self.latest_received_rate)
        if (
            decrease_rate.average > 0
            and received > decrease_rate.average - 3 * decrease_rate.std_deviation
            and received < decrease_rate.average + 3 * decrease_rate.std_deviation
        ):
            bits_per_frame = float(self.target) / 30.0
            packets_per_frame = math.ceil(bits_per_frame / (1200 * 8))
            expected_packet_size_bits = (
                bits_per_frame / packets_per_frame if packets_per_frame else 0.0
            )
            response_ms = _truncate(100 * MILLISECOND + self.latest_rtt, MILLISECOND)
            alpha = 0.5 * self._elapsed_fraction(now, response_ms)
            step = int(max(1000.0, alpha * expected_packet_size_bits))
            self.last_update = now
            return int(min(float(self.target + step), 1.5 * received))

        eta = math.pow(1.08, self._elapsed_fraction(now, 1000))
        self.last_update = now

        rate = int(eta * float(self.target))
        # at most 1.5 times the received rate
        ceiling = int(1.5 * received)
        if rate > ceiling and ceiling > self.target:
            return ceiling
        if rate < self.target:
            return self.target
        return rate

    def decrease(self) -> int:
        """Return the decreased target and remember the rate it was based on."""
        target = int(BETA * float(self.latest_received_rate))
        self.latest_decrease_rate.update(float(self.latest_received_rate))
        self.last_update = self._now()
        return target