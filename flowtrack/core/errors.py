"""
Exception types raised at the flowtrack component boundaries.

Tracking loss is never an exception: lost points are reported through the
validity mask and removed by the track maintainer.
"""

from pathlib import Path


class FlowTrackError(Exception):
    """Base exception for all flowtrack errors."""

    pass


class InvalidFrame(FlowTrackError):
    """Raised when an input image is missing, empty or has an unusable shape."""

    pass


class CorrespondenceInputMismatch(FlowTrackError):
    """Raised when frames or point arrays handed to matching do not agree."""

    pass


class CaptureError(FlowTrackError):
    """Raised when a capture source cannot be opened."""

    def __init__(self, message: str, source: int | str | Path | None = None):
        self.source = source
        super().__init__(message)


class ConfigError(FlowTrackError):
    """Raised when a configuration file or value is invalid."""

    pass
