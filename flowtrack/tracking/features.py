"""
Feature selection using Shi-Tomasi corners with sub-pixel refinement.
"""

import logging

import cv2
import numpy as np

from flowtrack.core.config import TerminationCriteria
from flowtrack.core.errors import InvalidFrame
from flowtrack.tracking.points import as_point_array, empty_points

LOGGER = logging.getLogger(__name__)


def select_features(
    frame: np.ndarray,
    max_count: int = 500,
    quality_level: float = 0.01,
    min_distance: float = 10.0,
    block_size: int = 3,
    subpix_window: int = 10,
    criteria: TerminationCriteria | None = None,
    mask: np.ndarray | None = None,
) -> np.ndarray:
    """
    Pick up to ``max_count`` well-textured points in a tracked frame.

    Corners whose response is below ``quality_level`` times the strongest
    response are rejected. Among the rest, the strongest corner wins inside
    its ``min_distance`` radius. Each kept corner is then refined to
    sub-pixel accuracy inside a ``(2 * subpix_window + 1)`` square.

    Args:
        frame: Single-channel 8-bit frame
        max_count: Maximum number of points to return
        quality_level: Relative corner response threshold (0-1]
        min_distance: Minimum distance between returned points
        block_size: Neighbourhood size for the corner response
        subpix_window: Half-size of the refinement window
        criteria: Stopping rule for refinement
        mask: Optional uint8 mask restricting where corners may be picked

    Returns:
        ``(N, 2)`` float32 array, empty when the frame has no usable texture

    Raises:
        InvalidFrame: If the frame is empty or not single-channel
    """
    if frame is None or frame.size == 0:
        raise InvalidFrame("Frame cannot be empty.")
    if frame.ndim != 2:
        raise InvalidFrame(f"Feature selection needs a single-channel frame, got shape {frame.shape}")

    corners = cv2.goodFeaturesToTrack(
        frame,
        maxCorners=int(max_count),
        qualityLevel=float(quality_level),
        minDistance=float(min_distance),
        mask=mask,
        blockSize=int(block_size),
    )
    if corners is None or len(corners) == 0:
        LOGGER.debug("No corners above quality level %.3f", quality_level)
        return empty_points()

    corners = corners.reshape(-1, 1, 2).astype(np.float32)
    criteria = criteria or TerminationCriteria()

    # Refinement window must fit inside the frame.
    h, w = frame.shape[:2]
    if min(h, w) >= 7:
        half = min(int(subpix_window), (min(h, w) - 5) // 2)
        cv2.cornerSubPix(frame, corners, (half, half), (-1, -1), criteria.to_cv())

    points = as_point_array(corners)
    LOGGER.debug("Selected %d features", len(points))
    return points
