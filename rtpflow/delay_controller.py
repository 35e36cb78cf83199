"""Delay based bandwidth estimator wiring the congestion control pipeline."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable

from rtpflow.arrival import Acknowledgment, ArrivalGroupAccumulator
from rtpflow.control import MILLISECOND, DelayStats
from rtpflow.kalman import KalmanFilter
from rtpflow.overuse import OveruseDetector
from rtpflow.rate_calculator import RateCalculator
from rtpflow.rate_controller import RateController
from rtpflow.slope import SlopeEstimator
from rtpflow.threshold import AdaptiveThreshold

_log = logging.getLogger("rtpflow.delay_controller")


class DelayController:
    """Feeds acknowledgments through grouping, filtering, detection and rate control.

    clock returns integer nanoseconds; bitrates are bits per second.
    """

    def __init__(
        self,
        initial_bitrate: int,
        min_bitrate: int,
        max_bitrate: int,
        clock: Callable[[], int] = time.monotonic_ns,
    ) -> None:
        self._callback: Callable[[DelayStats], None] | None = None
        self._lock = threading.Lock()
        self._closed = False

        self.rate_controller = RateController(
            clock, initial_bitrate, min_bitrate, max_bitrate, self._on_stats
        )
        overuse_detector = OveruseDetector(
            AdaptiveThreshold(clock=clock),
            10 * MILLISECOND,
            self.rate_controller.on_delay_stats,
            clock=clock,
        )
        self._slope_estimator = SlopeEstimator(
            KalmanFilter().update_estimate, overuse_detector.on_delay_stats
        )
        self._accumulator = ArrivalGroupAccumulator()
        self._rate_calculator = RateCalculator(500 * MILLISECOND)

    def _on_stats(self, stats: DelayStats) -> None:
        _log.info("delaystats: %s", stats)
        if self._callback is not None:
            self._callback(stats)

    def on_update(self, callback: Callable[[DelayStats], None]) -> None:
        """Set the function called with every new set of delay statistics."""
        self._callback = callback

    def update_rtt(self, rtt: int) -> None:
        """Record the latest round trip time in nanoseconds."""
        self.rate_controller.update_rtt(rtt)

    def update_delay_estimate(self, acks: Iterable[Acknowledgment]) -> None:
        """Process one feedback report."""
        acks = list(acks)
        with self._lock:
            if self._closed:
                raise RuntimeError("delay controller closed")
            for rate in self._rate_calculator.feed(acks):
                self.rate_controller.on_received_rate(rate)
            for group in self._accumulator.feed(acks):
                self._slope_estimator.on_arrival_group(group)

    def close(self) -> None:
        """Stop accepting feedback."""
        with self._lock:
            self._closed = True

    def __enter__(self) -> "DelayController":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()