"""A buffer that reorders RTP packets and releases them once enough have arrived."""

from __future__ import annotations

import enum
import threading
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass

from rtpflow.priority_queue import Packet, PriorityQueue

_SEQ_MASK = 0xFFFF


class BufferState(enum.IntEnum):
    """Whether the buffer is still filling or releasing packets."""

    BUFFERING = 0
    EMITTING = 1

    def __str__(self) -> str:
        return "Buffering" if self is BufferState.BUFFERING else "Emitting"


class Event(str, enum.Enum):
    """Events a jitter buffer reports to its listeners."""

    START_BUFFERING = "startBuffering"
    BEGIN_PLAYBACK = "playing"
    BUFFER_UNDERFLOW = "underflow"
    BUFFER_OVERFLOW = "overflow"


class BufferUnderrunError(LookupError):
    """Raised when peeking into an empty buffer."""

    def __init__(self) -> None:
        super().__init__("invalid Peek: Empty jitter buffer")


class PopWhileBufferingError(RuntimeError):
    """Raised when popping before playback has started."""

    def __init__(self) -> None:
        super().__init__("attempt to pop while buffering")


@dataclass
class BufferStats:
    """Counters over the life of a jitter buffer."""

    out_of_order_count: int = 0
    underflow_count: int = 0
    overflow_count: int = 0


EventListener = Callable[[Event, "JitterBuffer"], None]


class JitterBuffer:
    """Orders pushed packets by sequence number and pops them by sequence or timestamp.

    Packets are stored as given, not copied.
    """

    def __init__(self, min_packet_count: int = 50) -> None:
        self._lock = threading.RLock()
        self._packets = PriorityQueue()
        self.min_start_count = min_packet_count
        self.overflow_len = 100
        self._last_sequence = 0
        self._playout_head = 0
        self._playout_ready = False
        self._state = BufferState.BUFFERING
        self._stats = BufferStats()
        self._listeners: defaultdict[Event, list[EventListener]] = defaultdict(list)

    def __len__(self) -> int:
        return len(self._packets)

    @property
    def state(self) -> BufferState:
        return self._state

    @property
    def stats(self) -> BufferStats:
        return self._stats

    @property
    def last_sequence(self) -> int:
        return self._last_sequence

    @property
    def playout_head(self) -> int:
        """Sequence number that the next pop will try."""
        with self._lock:
            return self._playout_head

    @playout_head.setter
    def playout_head(self, value: int) -> None:
        with self._lock:
            self._playout_head = value & _SEQ_MASK

    def listen(self, event: Event, callback: EventListener) -> None:
        """Register callback for event."""
        self._listeners[Event(event)].append(callback)

    def _emit(self, event: Event) -> None:
        for callback in list(self._listeners[event]):
            callback(event, self)

    def _update_stats(self, sequence_number: int) -> None:
        if len(self._packets) > 0 and sequence_number != (self._last_sequence + 1) & _SEQ_MASK:
            self._stats.out_of_order_count += 1
        self._last_sequence = sequence_number

    def _update_state(self) -> None:
        if len(self._packets) >= self.min_start_count and self._state is BufferState.BUFFERING:
            self._state = BufferState.EMITTING
            self._playout_ready = True
            self._emit(Event.BEGIN_PLAYBACK)

    def push(self, packet: Packet) -> None:
        """Add packet in sequence number order."""
        with self._lock:
            if len(self._packets) == 0:
                self._emit(Event.START_BUFFERING)
            if len(self._packets) > self.overflow_len:
                self._stats.overflow_count += 1
                self._emit(Event.BUFFER_OVERFLOW)
            if not self._playout_ready and len(self._packets) == 0:
                self._playout_head = packet.sequence_number
            self._update_stats(packet.sequence_number)
            self._packets.push(packet, packet.sequence_number)
            self._update_state()

    def peek(self, playout_head: bool) -> Packet:
        """Return the packet at the playout head while emitting, else the last one pushed."""
        with self._lock:
            if len(self._packets) < 1:
                raise BufferUnderrunError()
            if playout_head and self._state is BufferState.EMITTING:
                return self._packets.find(self._playout_head)
            return self._packets.find(self._last_sequence)

    def _pop_with(self, remove: Callable[[], Packet], advance_head: bool) -> Packet:
        with self._lock:
            if self._state is not BufferState.EMITTING:
                raise PopWhileBufferingError()
            try:
                packet = remove()
            except LookupError:
                self._stats.underflow_count += 1
                self._emit(Event.BUFFER_UNDERFLOW)
                raise
            if advance_head:
                self._playout_head = (self._playout_head + 1) & _SEQ_MASK
            self._update_state()
            return packet

    def pop(self) -> Packet:
        """Remove and return the packet at the playout head."""
        return self._pop_with(lambda: self._packets.pop_at(self._playout_head), True)

    def pop_at_sequence(self, sequence_number: int) -> Packet:
        """Remove and return the packet with this sequence number."""
        return self._pop_with(lambda: self._packets.pop_at(sequence_number), True)

    def peek_at_sequence(self, sequence_number: int) -> Packet:
        """Return the packet with this sequence number without removing it."""
        with self._lock:
            return self._packets.find(sequence_number)

    def pop_at_timestamp(self, timestamp: int) -> Packet:
        """Remove and return a packet with this timestamp; repeat to drain it."""
        return self._pop_with(lambda: self._packets.pop_at_timestamp(timestamp), False)

    def clear(self, reset_state: bool) -> None:
        """Empty the buffer, optionally resetting state and statistics."""
        with self._lock:
            self._packets.clear()
            if reset_state:
                self._last_sequence = 0
                self._state = BufferState.BUFFERING
                self._stats = BufferStats()
                self.min_start_count = 50