"""
flowtrack - Sparse optical flow tracking for obstacle avoidance
================================================================

Tracks Shi-Tomasi features from frame to frame with pyramidal
Lucas-Kanade matching. The resulting point motion is the raw input for
obstacle-avoidance logic.

Main modules:
- flowtrack.tracking: Preprocessing, feature selection, matching, track maintenance
- flowtrack.core: Configuration, errors, capture sources
- flowtrack.outputs: Preview video and CSV outputs
- flowtrack.pipeline: Capture/track/display loop

Quick start:
    >>> from flowtrack import TrackMaintainer
    >>> maintainer = TrackMaintainer()
    >>> for frame in frames:
    ...     step = maintainer.update(frame)
"""

__version__ = "0.1.0"

from flowtrack.core.config import Config, TrackingConfig, load_config
from flowtrack.core.errors import (
    CorrespondenceInputMismatch,
    FlowTrackError,
    InvalidFrame,
)
from flowtrack.tracking import TrackMaintainer, TrackingState, TrackingStep

__all__ = [
    "__version__",
    "Config",
    "TrackingConfig",
    "load_config",
    "CorrespondenceInputMismatch",
    "FlowTrackError",
    "InvalidFrame",
    "TrackMaintainer",
    "TrackingState",
    "TrackingStep",
]
