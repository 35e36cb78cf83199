"""Turns arrival groups into delay variation measurements."""

from __future__ import annotations

from collections.abc import Callable

from rtpflow.arrival import ArrivalGroup
from rtpflow.control import DelayStats


def inter_group_delay_variation(first: ArrivalGroup, second: ArrivalGroup) -> int:
    """Difference between inter-arrival and inter-departure times, in nanoseconds."""
    return (second.arrival - first.arrival) - (second.departure - first.departure)


class SlopeEstimator:
    """Measures delay variation between consecutive groups and smooths it.

    estimator maps a measurement to a filtered estimate, for example
    KalmanFilter().update_estimate.
    """

    def __init__(
        self,
        estimator: Callable[[int], int],
        delay_stats_writer: Callable[[DelayStats], None],
    ) -> None:
        self._estimator = estimator
        self._writer = delay_stats_writer
        self._group: ArrivalGroup | None = None

    def on_arrival_group(self, group: ArrivalGroup) -> None:
        """Process one completed arrival group."""
        previous = self._group
        self._group = group
        if previous is None:
            return
        measurement = inter_group_delay_variation(previous, group)
        self._writer(
            DelayStats(
                measurement=measurement,
                estimate=self._estimator(measurement),
                last_receive_delta=group.arrival - previous.arrival,
            )
        )