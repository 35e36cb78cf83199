"""RTP packets kept in sequence number order."""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Callable, Iterator
from dataclasses import dataclass


@dataclass
class Packet:
    """The parts of an RTP packet the jitter buffer looks at."""

    sequence_number: int = 0
    timestamp: int = 0
    ssrc: int = 0
    payload: bytes = b""


class InvalidOperationError(LookupError):
    """Raised when popping from an empty queue."""

    def __init__(self) -> None:
        super().__init__("attempt to find or pop on an empty list")


class PacketNotFoundError(LookupError):
    """Raised when no packet in the queue matches."""

    def __init__(self) -> None:
        super().__init__("priority not found")


class PriorityQueue:
    """Packets ordered by priority (normally the sequence number).

    Ordering is by plain numeric priority; a packet pushed with a priority
    equal to one already queued goes in front of it.
    """

    def __init__(self) -> None:
        self._entries: list[tuple[int, Packet]] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Packet]:
        return (packet for _, packet in self._entries)

    def push(self, packet: Packet, priority: int) -> None:
        """Insert packet in order of priority."""
        index = bisect_left(self._entries, priority, key=lambda entry: entry[0])
        self._entries.insert(index, (priority, packet))

    def find(self, sequence_number: int) -> Packet:
        """Return the packet with this priority, leaving it queued."""
        for priority, packet in self._entries:
            if priority == sequence_number:
                return packet
        raise PacketNotFoundError()

    def pop(self) -> Packet:
        """Remove and return the first packet regardless of its priority."""
        if not self._entries:
            raise InvalidOperationError()
        return self._entries.pop(0)[1]

    def pop_at(self, sequence_number: int) -> Packet:
        """Remove and return the packet with this priority."""
        return self._pop_first(lambda priority, _: priority == sequence_number)

    def pop_at_timestamp(self, timestamp: int) -> Packet:
        """Remove and return the first packet carrying this RTP timestamp."""
        return self._pop_first(lambda _, packet: packet.timestamp == timestamp)

    def _pop_first(self, matches: Callable[[int, Packet], bool]) -> Packet:
        if not self._entries:
            raise InvalidOperationError()
        for index, (priority, packet) in enumerate(self._entries):
            if matches(priority, packet):
                del self._entries[index]
                return packet
        raise PacketNotFoundError()

    def clear(self) -> None:
        """Drop every packet."""
        self._entries.clear()

    def priorities(self) -> list[int]:
        """Return the queued priorities in queue order."""
        return [priority for priority, _ in self._entries]