"""Shared primitives of the congestion controller: time units, clamping, usage and state."""

from __future__ import annotations

import enum
from dataclasses import dataclass

NANOSECOND = 1
MICROSECOND = 1_000
MILLISECOND = 1_000_000
SECOND = 1_000_000_000


def clamp_int(value: int, minimum: int, maximum: int) -> int:
    """Return value limited to the closed range [minimum, maximum]."""
    return max(minimum, min(maximum, value))


def clamp_duration(value: int, minimum: int, maximum: int) -> int:
    """Clamp a duration given in nanoseconds."""
    return clamp_int(int(value), int(minimum), int(maximum))


class Usage(enum.IntEnum):
    """Network usage signal produced by the overuse detector."""

    OVER = 0
    UNDER = 1
    NORMAL = 2

    def __str__(self) -> str:
        return {
            Usage.OVER: "overuse",
            Usage.UNDER: "underuse",
            Usage.NORMAL: "normal",
        }[self]


class State(enum.IntEnum):
    """State of the delay based rate controller."""

    INCREASE = 0
    DECREASE = 1
    HOLD = 2

    def transition(self, use: Usage) -> "State":
        """Return the state that follows this one for the given usage signal."""
        return _TRANSITIONS[(self, Usage(use))]

    def __str__(self) -> str:
        return {
            State.INCREASE: "increase",
            State.DECREASE: "decrease",
            State.HOLD: "hold",
        }[self]


_TRANSITIONS = {
    (State.HOLD, Usage.OVER): State.DECREASE,
    (State.HOLD, Usage.NORMAL): State.INCREASE,
    (State.HOLD, Usage.UNDER): State.HOLD,
    (State.INCREASE, Usage.OVER): State.DECREASE,
    (State.INCREASE, Usage.NORMAL): State.INCREASE,
    (State.INCREASE, Usage.UNDER): State.HOLD,
    (State.DECREASE, Usage.OVER): State.DECREASE,
    (State.DECREASE, Usage.NORMAL): State.HOLD,
    (State.DECREASE, Usage.UNDER): State.HOLD,
}


@dataclass
class DelayStats:
    """Internal statistics of the delay based congestion controller.

    All durations are integer nanoseconds.
    """

    measurement: int = 0
    estimate: int = 0
    threshold: int = 0
    last_receive_delta: int = 0
    usage: Usage = Usage.OVER
    state: State = State.INCREASE
    target_bitrate: int = 0