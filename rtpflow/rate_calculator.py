"""Received rate over a sliding window of acknowledgments."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator

from rtpflow.arrival import Acknowledgment
from rtpflow.control import MILLISECOND, SECOND


def _seconds(duration: int) -> float:
    return float(duration // SECOND) + float(duration % SECOND) / 1e9


class RateCalculator:
    """Computes received bits per second over a window (nanoseconds)."""

    def __init__(self, window: int = 500 * MILLISECOND) -> None:
        self.window = window
        self._history: deque[Acknowledgment] = deque()
        self._started = False
        self._sum = 0

    def feed(self, acks: Iterable[Acknowledgment]) -> list[int]:
        """Consume acks and return one rate update per arrived packet."""
        rates: list[int] = []
        for ack in acks:
            if ack.arrival == 0:
                continue
            self._history.append(ack)
            self._sum += ack.size

            if not self._started:
                # Only the last arrival is known, so report the packet itself.
                self._started = True
                rates.append(ack.size * 8)
                continue

            deadline = ack.arrival - self.window
            while self._history and self._history[0].arrival < deadline:
                self._sum -= self._history.popleft().size
            if not self._history:
                rates.append(0)
                continue
            dt = ack.arrival - self._history[0].arrival
            if dt <= 0:
                # No elapsed time to divide by yet.
                continue
            rates.append(int(float(8 * self._sum) / _seconds(dt)))
        return rates

    def run(self, batches: Iterable[Iterable[Acknowledgment]]) -> Iterator[int]:
        """Yield rate updates while consuming batches of acknowledgments."""
        for acks in batches:
            yield from self.feed(acks)