"""
Exception types shared by the measurement phases.
"""

from typing import Optional


class SpeedTestError(Exception):
    """Base class for speed test errors."""


class ConfigurationError(SpeedTestError, ValueError):
    """Invalid test configuration detected before a phase starts."""


class TransferError(SpeedTestError):
    """A single request or transfer attempt failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class TransferCancelled(TransferError):
    """The attempt was aborted because its run stopped."""
