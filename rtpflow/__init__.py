"""Delay and loss based congestion control, jitter buffering and loss tracking for RTP streams."""

__version__ = "0.1.0"