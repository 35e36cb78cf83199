"""Acknowledgments and their grouping into arrival groups."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from rtpflow.control import MILLISECOND


@dataclass(frozen=True)
class Acknowledgment:
    """Feedback about one sent packet.

    Times are integer nanoseconds; an arrival of 0 means the packet was lost.
    """

    sequence_number: int = 0
    size: int = 0
    departure: int = 0
    arrival: int = 0


@dataclass
class ArrivalGroup:
    """Packets sent within a burst, treated as one unit by the estimator."""

    packets: list[Acknowledgment] = field(default_factory=list)
    departure: int = 0
    arrival: int = 0

    @classmethod
    def start(cls, ack: Acknowledgment) -> "ArrivalGroup":
        """Open a group whose first packet is ack."""
        return cls(packets=[ack], departure=ack.departure, arrival=ack.arrival)

    def add(self, ack: Acknowledgment) -> None:
        """Append ack; the group's arrival becomes that of ack."""
        self.packets.append(ack)
        self.arrival = ack.arrival

    def __str__(self) -> str:
        return (
            "ARRIVALGROUP:\n"
            f"\tARRIVAL:\t{int(self.arrival / 1e6)}\n"
            f"\tDEPARTURE:\t{int(self.departure / 1e6)}\n"
            f"\tPACKETS:\n{self.packets}\n"
        )


class ArrivalGroupAccumulator:
    """Splits a stream of acknowledgments into arrival groups."""

    def __init__(
        self,
        inter_departure_threshold: int = 5 * MILLISECOND,
        inter_arrival_threshold: int = 5 * MILLISECOND,
        inter_group_delay_variation_threshold: int = 0,
    ) -> None:
        self.inter_departure_threshold = inter_departure_threshold
        self.inter_arrival_threshold = inter_arrival_threshold
        self.inter_group_delay_variation_threshold = inter_group_delay_variation_threshold
        self._group: ArrivalGroup | None = None

    def feed(self, acks: Iterable[Acknowledgment]) -> list[ArrivalGroup]:
        """Consume acks and return the groups they complete."""
        completed: list[ArrivalGroup] = []
        for ack in acks:
            group = self._group
            if group is None:
                self._group = ArrivalGroup.start(ack)
                continue
            if ack.arrival < group.arrival:
                # out of order arrival
                continue
            if ack.departure <= group.departure:
                continue
            if _inter_departure(group, ack) <= self.inter_departure_threshold:
                group.add(ack)
                continue
            if (
                ack.arrival - group.arrival <= self.inter_arrival_threshold
                and _delay_variation(group, ack) < self.inter_group_delay_variation_threshold
            ):
                group.add(ack)
                continue
            completed.append(group)
            self._group = ArrivalGroup.start(ack)
        return completed

    def run(self, batches: Iterable[Iterable[Acknowledgment]]) -> Iterator[ArrivalGroup]:
        """Yield completed groups while consuming batches of acknowledgments."""
        for acks in batches:
            yield from self.feed(acks)


def _inter_departure(group: ArrivalGroup, ack: Acknowledgment) -> int:
    if not group.packets:
        return 0
    return ack.departure - group.departure


def _delay_variation(group: ArrivalGroup, ack: Acknowledgment) -> int:
    return (ack.arrival - group.arrival) - (ack.departure - group.departure)