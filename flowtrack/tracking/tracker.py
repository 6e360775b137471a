"""
Frame-to-frame point tracking.

This module provides the TrackMaintainer class which owns the tracking
buffers, decides when points are (re)selected and prunes points that can
no longer be followed.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np

from flowtrack.core.config import TrackingConfig
from flowtrack.tracking.correspondence import estimate_correspondence
from flowtrack.tracking.features import select_features
from flowtrack.tracking.points import compact, empty_points
from flowtrack.tracking.preprocess import FramePreprocessor

LOGGER = logging.getLogger(__name__)


class TrackingState(Enum):
    """Track maintainer states."""
    UNINITIALIZED = "uninitialized"
    TRACKING = "tracking"


@dataclass
class TrackingStep:
    """Result of one tracking iteration."""
    frame: int
    state: TrackingState
    points: np.ndarray
    mask: np.ndarray | None = None
    selected: int = 0
    tracked: int = 0
    lost: int = 0
    reinitialized: bool = False

    @property
    def total(self) -> int:
        return len(self.points)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary (without the arrays)."""
        return {
            "frame": self.frame,
            "state": self.state.value,
            "selected": self.selected,
            "tracked": self.tracked,
            "lost": self.lost,
            "total": self.total,
            "reinitialized": self.reinitialized,
        }


class TrackMaintainer:
    """
    Owns the previous/current frames and point sets across iterations.

    Starting UNINITIALIZED, each update preprocesses the raw frame and either
    selects fresh features or matches the previous points into the new frame,
    keeps only the points whose match is valid, then rotates the current
    frame and points into the previous slots.

    Attributes:
        config: Tracking parameters
        preprocessor: Raw frame to tracked frame transform

    Example:
        >>> maintainer = TrackMaintainer(TrackingConfig(max_feature_count=200))
        >>> for frame in frames:
        ...     step = maintainer.update(frame)
        ...     draw(step.points)
        >>> maintainer.request_reinitialize()
    """

    def __init__(
        self,
        config: TrackingConfig | None = None,
        preprocessor: FramePreprocessor | None = None,
    ):
        self.config = (config or TrackingConfig()).validate()
        self.preprocessor = preprocessor or FramePreprocessor()

        self._state = TrackingState.UNINITIALIZED
        self._prev_frame: np.ndarray | None = None
        self._prev_points: np.ndarray = empty_points()
        self._frame_count = 0

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #
    @property
    def state(self) -> TrackingState:
        return self._state

    @property
    def is_tracking(self) -> bool:
        return self._state is TrackingState.TRACKING

    @property
    def points(self) -> np.ndarray:
        """Points carried into the next iteration, empty until tracking."""
        if self._state is not TrackingState.TRACKING:
            return empty_points()
        return self._prev_points.copy()

    @property
    def previous_frame(self) -> np.ndarray | None:
        return None if self._prev_frame is None else self._prev_frame.copy()

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def request_reinitialize(self) -> None:
        """Drop the current points; the next update selects new ones."""
        LOGGER.info("Reinitializing features to track")
        self._state = TrackingState.UNINITIALIZED

    def reset(self) -> None:
        """Reset the tracker state."""
        self._state = TrackingState.UNINITIALIZED
        self._prev_frame = None
        self._prev_points = empty_points()
        self._frame_count = 0

    # ------------------------------------------------------------------ #
    # Iteration
    # ------------------------------------------------------------------ #
    def update(self, raw_frame: np.ndarray) -> TrackingStep:
        """
        Run one tracking iteration on a raw frame.

        Args:
            raw_frame: Next BGR frame from the capture source

        Returns:
            TrackingStep holding the surviving points in tracked-frame coordinates

        Raises:
            InvalidFrame: If the frame is empty
            CorrespondenceInputMismatch: If the frame size changed mid-track
        """
        frame = self.preprocessor.preprocess(raw_frame)
        self._frame_count += 1

        if self._state is TrackingState.UNINITIALIZED:
            step = self._select(frame)
        elif len(self._prev_points) > 0:
            step = self._match(frame)
        else:
            # Track kept alive at zero points until reinitialized.
            step = TrackingStep(
                frame=self._frame_count,
                state=self._state,
                points=empty_points(),
            )

        self._rotate(frame, step.points)
        step.state = self._state
        return step

    def _select(self, frame: np.ndarray) -> TrackingStep:
        cfg = self.config
        points = select_features(
            frame,
            max_count=cfg.max_feature_count,
            quality_level=cfg.quality_level,
            min_distance=cfg.min_distance,
            block_size=cfg.block_size,
            subpix_window=cfg.subpix_window,
            criteria=cfg.termination,
        )
        if len(points) > 0:
            self._state = TrackingState.TRACKING
            LOGGER.info("Selected %d features on frame %d", len(points), self._frame_count)
        else:
            LOGGER.debug("No trackable texture on frame %d", self._frame_count)

        return TrackingStep(
            frame=self._frame_count,
            state=self._state,
            points=points,
            selected=len(points),
            reinitialized=True,
        )

    def _match(self, frame: np.ndarray) -> TrackingStep:
        cfg = self.config
        curr_points, mask = estimate_correspondence(
            self._prev_frame,
            frame,
            self._prev_points,
            search_window=cfg.search_window,
            pyramid_levels=cfg.pyramid_levels,
            criteria=cfg.termination,
            min_eig_threshold=cfg.min_eig_threshold,
            max_error=cfg.max_error,
            fb_threshold=cfg.fb_threshold,
        )
        survivors = compact(curr_points, mask)
        tracked = len(survivors)
        lost = len(mask) - tracked

        LOGGER.debug(
            "Frame %d: %d tracked, %d lost", self._frame_count, tracked, lost
        )

        if tracked == 0 and cfg.reinit_policy == "on_empty":
            LOGGER.info("All points lost on frame %d, reinitializing", self._frame_count)
            self._state = TrackingState.UNINITIALIZED

        return TrackingStep(
            frame=self._frame_count,
            state=self._state,
            points=survivors,
            mask=mask,
            tracked=tracked,
            lost=lost,
        )

    def _rotate(self, frame: np.ndarray, points: np.ndarray) -> None:
        """Current frame and points become the previous ones."""
        self._prev_frame = frame
        self._prev_points = points.copy()
