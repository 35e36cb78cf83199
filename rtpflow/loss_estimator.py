"""Loss based bandwidth estimation (draft-ietf-rmcat-gcc-02, section 6)."""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from rtpflow.arrival import Acknowledgment
from rtpflow.control import MILLISECOND, clamp_int

INCREASE_LOSS_THRESHOLD = 0.02
INCREASE_TIME_THRESHOLD = 200 * MILLISECOND
INCREASE_FACTOR = 1.05

DECREASE_LOSS_THRESHOLD = 0.1
DECREASE_TIME_THRESHOLD = 200 * MILLISECOND

_log = logging.getLogger("rtpflow.loss_controller")


def _truncate(value: int, unit: int) -> int:
    quotient = abs(value) // unit
    return -quotient if value < 0 else quotient


@dataclass(frozen=True)
class LossStats:
    """Internal statistics of the loss based controller."""

    target_bitrate: int = 0
    average_loss: float = 0.0


class LossBasedEstimator:
    """Raises the bitrate while loss is low and lowers it when loss is high.

    clock returns integer nanoseconds.
    """

    def __init__(
        self,
        initial_bitrate: int,
        clock: Callable[[], int] = time.monotonic_ns,
        min_bitrate: int = 100_000,
        max_bitrate: int = 100_000_000,
    ) -> None:
        self._lock = threading.Lock()
        self._clock = clock
        self.min_bitrate = min_bitrate
        self.max_bitrate = max_bitrate
        self.bitrate = initial_bitrate
        self.average_loss = 0.0
        self.last_loss_update: int | None = None
        self.last_increase: int | None = None
        self.last_decrease: int | None = None

    def get_estimate(self, wanted_rate: int) -> LossStats:
        """Return the loss based target, never above wanted_rate."""
        with self._lock:
            if self.bitrate <= 0:
                self.bitrate = clamp_int(wanted_rate, self.min_bitrate, self.max_bitrate)
            self.bitrate = min(wanted_rate, self.bitrate)
            return LossStats(target_bitrate=self.bitrate, average_loss=self.average_loss)

    def update_loss_estimate(self, acks: Iterable[Acknowledgment]) -> None:
        """Fold in one feedback report; packets with no arrival count as lost."""
        acks = list(acks)
        if not acks:
            return
        lost = sum(1 for ack in acks if ack.arrival == 0)

        with self._lock:
            now = self._clock()
            loss_ratio = lost / len(acks)
            self.average_loss = self._average(now, self.average_loss, loss_ratio)
            self.last_loss_update = now

            increase_loss = max(self.average_loss, loss_ratio)
            decrease_loss = min(self.average_loss, loss_ratio)

            if (
                increase_loss < INCREASE_LOSS_THRESHOLD
                and _since(now, self.last_increase) > INCREASE_TIME_THRESHOLD
            ):
                _log.info(
                    "loss controller increasing; averageLoss: %s, decreaseLoss: %s, increaseLoss: %s",
                    self.average_loss,
                    decrease_loss,
                    increase_loss,
                )
                self.last_increase = now
                self.bitrate = clamp_int(
                    int(INCREASE_FACTOR * float(self.bitrate)), self.min_bitrate, self.max_bitrate
                )
            elif (
                decrease_loss > DECREASE_LOSS_THRESHOLD
                and _since(now, self.last_decrease) > DECREASE_TIME_THRESHOLD
            ):
                _log.info(
                    "loss controller decreasing; averageLoss: %s, decreaseLoss: %s, increaseLoss: %s",
                    self.average_loss,
                    decrease_loss,
                    increase_loss,
                )
                self.last_decrease = now
                self.bitrate = clamp_int(
                    int(float(self.bitrate) * (1 - 0.5 * decrease_loss)),
                    self.min_bitrate,
                    self.max_bitrate,
                )

    def _average(self, now: int, previous: float, sample: float) -> float:
        if self.last_loss_update is None:
            return sample
        delta_ms = _truncate(now - self.last_loss_update, MILLISECOND)
        return sample + math.exp(-float(delta_ms) / 200.0) * (previous - sample)


def _since(now: int, then: int | None) -> float:
    if then is None:
        return math.inf
    return now - then