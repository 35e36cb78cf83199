"""Record of received sequence numbers, used to find packets to NACK."""

from __future__ import annotations

import threading

_SEQ_MASK = 0xFFFF
_HALF = 1 << 15

ALLOWED_SIZES = tuple(1 << shift for shift in range(6, 16))


class InvalidSizeError(ValueError):
    """Raised when a receive log or buffer is given a size it cannot use."""


class ReceiveLog:
    """A ring of received flags over the last ``size`` sequence numbers.

    Sequence numbers are 16 bit and wrap around; ``size`` must be a power of
    two from 64 to 32768.
    """

    def __init__(self, size: int) -> None:
        if size not in ALLOWED_SIZES:
            allowed = " ".join(str(value) for value in ALLOWED_SIZES)
            raise InvalidSizeError(
                f"invalid buffer size: {size} is not a valid size, allowed sizes: [{allowed}]"
            )
        self.size = size
        self._received = bytearray(size)
        self.end = 0
        self.started = False
        self.last_consecutive = 0
        self._lock = threading.Lock()

    def add(self, seq: int) -> None:
        """Mark seq as received."""
        seq &= _SEQ_MASK
        with self._lock:
            if not self.started:
                self._set(seq)
                self.end = seq
                self.started = True
                self.last_consecutive = seq
                return

            diff = (seq - self.end) & _SEQ_MASK
            if diff == 0:
                return
            if diff < _HALF:
                # seq is ahead of end: forget what lies between them
                position = (self.end + 1) & _SEQ_MASK
                while position != seq:
                    self._clear(position)
                    position = (position + 1) & _SEQ_MASK
                self.end = seq

                if (self.last_consecutive + 1) & _SEQ_MASK == seq:
                    self.last_consecutive = seq
                elif (seq - self.last_consecutive) & _SEQ_MASK > self.size:
                    self.last_consecutive = (seq - self.size) & _SEQ_MASK
                    self._fix_last_consecutive()
            elif (self.last_consecutive + 1) & _SEQ_MASK == seq:
                # seq is behind end and fills the first gap
                self.last_consecutive = seq
                self._fix_last_consecutive()

            self._set(seq)

    def get(self, seq: int) -> bool:
        """Return whether seq was received and is still within the window."""
        seq &= _SEQ_MASK
        with self._lock:
            diff = (self.end - seq) & _SEQ_MASK
            if diff >= _HALF or diff >= self.size:
                return False
            return self._is_set(seq)

    def missing_seq_numbers(self, skip_last_n: int) -> list[int]:
        """Return the missing sequence numbers, ignoring the last skip_last_n."""
        with self._lock:
            until = (self.end - skip_last_n) & _SEQ_MASK
            if (until - self.last_consecutive) & _SEQ_MASK >= _HALF:
                return []
            missing: list[int] = []
            stop = (until + 1) & _SEQ_MASK
            position = (self.last_consecutive + 1) & _SEQ_MASK
            while position != stop:
                if not self._is_set(position):
                    missing.append(position)
                position = (position + 1) & _SEQ_MASK
            return missing

    def _set(self, seq: int) -> None:
        self._received[seq % self.size] = 1

    def _clear(self, seq: int) -> None:
        self._received[seq % self.size] = 0

    def _is_set(self, seq: int) -> bool:
        return bool(self._received[seq % self.size])

    def _fix_last_consecutive(self) -> None:
        stop = (self.end + 1) & _SEQ_MASK
        position = (self.last_consecutive + 1) & _SEQ_MASK
        while position != stop and self._is_set(position):
            position = (position + 1) & _SEQ_MASK
        self.last_consecutive = (position - 1) & _SEQ_MASK