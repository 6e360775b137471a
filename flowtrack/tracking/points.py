"""
Point and point-set helpers.

A point set is an ``(N, 2)`` float32 array of ``(x, y)`` image coordinates.
Row order is meaningful: row ``i`` of a matching input corresponds to row
``i`` of its output until compaction drops rows.
"""

from typing import Iterable, NamedTuple

import numpy as np

from flowtrack.core.errors import CorrespondenceInputMismatch


class Point(NamedTuple):
    """A sub-pixel image coordinate."""
    x: float
    y: float


def empty_points() -> np.ndarray:
    """Return an empty point set."""
    return np.empty((0, 2), dtype=np.float32)


def as_point_array(points: np.ndarray | Iterable | None) -> np.ndarray:
    """
    Normalize points to an ``(N, 2)`` float32 array.

    Accepts OpenCV's ``(N, 1, 2)`` layout, a flat ``(N, 2)`` array or any
    sequence of ``(x, y)`` pairs. ``None`` gives an empty set.

    Raises:
        CorrespondenceInputMismatch: If the data cannot be read as 2D points
    """
    if points is None:
        return empty_points()
    arr = np.asarray(points, dtype=np.float32)
    if arr.size == 0:
        return empty_points()
    if arr.shape[-1] != 2 or arr.size % 2 != 0:
        raise CorrespondenceInputMismatch(
            f"Expected 2D points, got array of shape {arr.shape}"
        )
    return np.ascontiguousarray(arr.reshape(-1, 2))


def to_cv_points(points: np.ndarray) -> np.ndarray:
    """Return points in the ``(N, 1, 2)`` layout OpenCV uses."""
    return as_point_array(points).reshape(-1, 1, 2)


def to_points(points: np.ndarray) -> list[Point]:
    """Convert a point array into a list of Point values."""
    return [Point(float(x), float(y)) for x, y in as_point_array(points)]


def compact(points: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """
    Keep only the rows whose mask entry is true.

    Surviving points keep their relative order and are re-indexed from 0.
    A new array is returned; the input is left untouched.

    Raises:
        CorrespondenceInputMismatch: If mask and points differ in length
    """
    points = as_point_array(points)
    mask = np.asarray(mask, dtype=bool).ravel()
    if len(mask) != len(points):
        raise CorrespondenceInputMismatch(
            f"Mask has {len(mask)} entries for {len(points)} points"
        )
    return points[mask].copy()


def in_bounds(points: np.ndarray, shape: tuple[int, ...]) -> np.ndarray:
    """Return a mask of the points lying inside an image of the given shape."""
    points = as_point_array(points)
    h, w = shape[:2]
    return (
        (points[:, 0] >= 0) &
        (points[:, 0] < w) &
        (points[:, 1] >= 0) &
        (points[:, 1] < h)
    )
