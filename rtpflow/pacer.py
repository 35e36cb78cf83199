"""A pacer that sends every packet immediately."""

from __future__ import annotations

import threading
from typing import Any, Protocol


class UnknownStreamError(LookupError):
    """Raised when a packet's SSRC was never registered with a stream."""

    def __init__(self, ssrc: int) -> None:
        super().__init__(f"unknown ssrc: {ssrc}")
        self.ssrc = ssrc


class _Header(Protocol):
    ssrc: int


def _deliver(writer: Any, header: Any, payload: bytes, attributes: Any) -> Any:
    write = getattr(writer, "write", None)
    if callable(write):
        return write(header, payload, attributes)
    return writer(header, payload, attributes)


class NoOpPacer:
    """Forwards packets straight to the writer registered for their SSRC.

    A writer is an object with write(header, payload, attributes) or a
    callable taking the same arguments.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._writers: dict[int, Any] = {}
        self.target_bitrate: int | None = None
        self.closed = False

    def set_target_bitrate(self, rate: int) -> None:
        """Record the target bitrate; sending is never delayed by it."""
        with self._lock:
            self.target_bitrate = rate

    def add_stream(self, ssrc: int, writer: Any) -> None:
        """Register the writer for packets with the given SSRC."""
        with self._lock:
            self._writers[ssrc] = writer

    def write(self, header: _Header, payload: bytes, attributes: Any = None) -> Any:
        """Send a packet to its stream's writer and return what the writer returns."""
        with self._lock:
            try:
                writer = self._writers[header.ssrc]
            except KeyError:
                raise UnknownStreamError(header.ssrc) from None
            return _deliver(writer, header, payload, attributes)

    def close(self) -> None:
        """Mark the pacer closed; it holds no resources to release."""
        with self._lock:
            self.closed = True

    def __enter__(self) -> "NoOpPacer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()