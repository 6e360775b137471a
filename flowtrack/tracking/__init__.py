"""
Tracking module - Sparse feature tracking between consecutive frames.

This module provides:
- FramePreprocessor: Grayscale + downscale transform applied to every frame
- select_features: Shi-Tomasi corners with sub-pixel refinement
- estimate_correspondence: Pyramidal Lucas-Kanade matching with a validity mask
- TrackMaintainer: Buffer ownership, pruning and re-initialization

Example:
    >>> from flowtrack.tracking import TrackMaintainer
    >>> maintainer = TrackMaintainer()
    >>> for frame in video:
    ...     step = maintainer.update(frame)
    ...     print(step.tracked, step.lost)
"""

from flowtrack.tracking.points import (
    Point,
    as_point_array,
    compact,
    empty_points,
    in_bounds,
    to_cv_points,
    to_points,
)
from flowtrack.tracking.preprocess import FramePreprocessor, preprocess
from flowtrack.tracking.features import select_features
from flowtrack.tracking.correspondence import estimate_correspondence, lk_params
from flowtrack.tracking.tracker import TrackMaintainer, TrackingState, TrackingStep

__all__ = [
    "Point",
    "as_point_array",
    "compact",
    "empty_points",
    "in_bounds",
    "to_cv_points",
    "to_points",
    "FramePreprocessor",
    "preprocess",
    "select_features",
    "estimate_correspondence",
    "lk_params",
    "TrackMaintainer",
    "TrackingState",
    "TrackingStep",
]
