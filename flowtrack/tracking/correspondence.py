"""
Pyramidal Lucas-Kanade correspondence estimation.

Maps every point of the previous frame to its location in the current
frame. The output always has one entry per input point; failures are
reported in the validity mask and never dropped here.
"""

import logging

import cv2
import numpy as np

from flowtrack.core.config import TerminationCriteria
from flowtrack.core.errors import CorrespondenceInputMismatch, InvalidFrame
from flowtrack.tracking.points import as_point_array, empty_points, in_bounds, to_cv_points

LOGGER = logging.getLogger(__name__)


def _check_pair(prev_frame: np.ndarray, curr_frame: np.ndarray) -> None:
    for name, frame in (("previous", prev_frame), ("current", curr_frame)):
        if frame is None or frame.size == 0:
            raise InvalidFrame(f"The {name} frame cannot be empty.")
        if frame.ndim != 2:
            raise InvalidFrame(
                f"The {name} frame must be single-channel, got shape {frame.shape}"
            )
    if prev_frame.shape != curr_frame.shape or prev_frame.dtype != curr_frame.dtype:
        raise CorrespondenceInputMismatch(
            f"Frame mismatch: previous {prev_frame.shape}/{prev_frame.dtype}, "
            f"current {curr_frame.shape}/{curr_frame.dtype}"
        )


def lk_params(
    search_window: int = 31,
    pyramid_levels: int = 4,
    criteria: TerminationCriteria | None = None,
    min_eig_threshold: float = 0.001,
) -> dict:
    """Build the keyword arguments for ``cv2.calcOpticalFlowPyrLK``."""
    criteria = criteria or TerminationCriteria()
    return {
        "winSize": (int(search_window), int(search_window)),
        "maxLevel": max(0, int(pyramid_levels) - 1),
        "criteria": criteria.to_cv(),
        "minEigThreshold": float(min_eig_threshold),
    }


def estimate_correspondence(
    prev_frame: np.ndarray,
    curr_frame: np.ndarray,
    prev_points: np.ndarray,
    search_window: int = 31,
    pyramid_levels: int = 4,
    criteria: TerminationCriteria | None = None,
    min_eig_threshold: float = 0.001,
    max_error: float | None = None,
    fb_threshold: float | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Track points from ``prev_frame`` into ``curr_frame``.

    A point is valid when the coarse-to-fine search converged, the new
    location lies inside the current frame, and, when the thresholds are
    set, its matching residual stays below ``max_error`` and tracking it
    back lands within ``fb_threshold`` pixels of where it started.

    Args:
        prev_frame: Previous tracked frame (single channel)
        curr_frame: Current tracked frame, same shape and dtype
        prev_points: Points in the previous frame
        search_window: Matching patch size
        pyramid_levels: Number of pyramid levels, full resolution included
        criteria: Per-level stopping rule
        min_eig_threshold: Minimum eigenvalue for a usable patch
        max_error: Optional residual bound
        fb_threshold: Optional forward-backward bound in pixels

    Returns:
        Tuple of (current_points, validity_mask), both with one entry per
        input point in input order

    Raises:
        InvalidFrame: If either frame is empty
        CorrespondenceInputMismatch: If frames disagree in shape or the
            points are malformed
    """
    _check_pair(prev_frame, curr_frame)
    prev_points = as_point_array(prev_points)
    if len(prev_points) == 0:
        return empty_points(), np.zeros(0, dtype=bool)

    params = lk_params(search_window, pyramid_levels, criteria, min_eig_threshold)
    prev_cv = to_cv_points(prev_points)

    curr_cv, status, error = cv2.calcOpticalFlowPyrLK(
        prev_frame, curr_frame, prev_cv, None, **params
    )

    if curr_cv is None or status is None:
        LOGGER.debug("Optical flow returned no result for %d points", len(prev_points))
        return prev_points.copy(), np.zeros(len(prev_points), dtype=bool)

    curr_points = as_point_array(curr_cv)
    if len(curr_points) != len(prev_points):
        raise CorrespondenceInputMismatch(
            f"Optical flow returned {len(curr_points)} points for {len(prev_points)}"
        )

    valid = status.ravel() == 1
    valid &= np.isfinite(curr_points).all(axis=1)
    valid &= in_bounds(curr_points, curr_frame.shape)

    if max_error is not None and error is not None:
        valid &= error.ravel() <= max_error

    if fb_threshold is not None and np.any(valid):
        back_cv, back_status, _ = cv2.calcOpticalFlowPyrLK(
            curr_frame, prev_frame, to_cv_points(curr_points), None, **params
        )
        if back_cv is None or back_status is None:
            valid[:] = False
        else:
            fb_error = np.linalg.norm(prev_points - as_point_array(back_cv), axis=1)
            valid &= (back_status.ravel() == 1) & (fb_error < fb_threshold)

    return curr_points, valid
