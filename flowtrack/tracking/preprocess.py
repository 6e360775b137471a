"""
Frame preprocessing.

Every raw frame goes through the same transform before tracking: grayscale
conversion followed by a fixed downscale with smooth interpolation.
"""

import cv2
import numpy as np

from flowtrack.core.config import PreprocessConfig
from flowtrack.core.errors import InvalidFrame


def _check_frame(frame: np.ndarray | None) -> np.ndarray:
    if frame is None:
        raise InvalidFrame("Frame is missing.")
    frame = np.asarray(frame)
    if frame.size == 0 or frame.ndim not in (2, 3) or 0 in frame.shape[:2]:
        raise InvalidFrame(f"Frame cannot be empty (shape {frame.shape}).")
    if frame.ndim == 3 and frame.shape[2] not in (1, 3, 4):
        raise InvalidFrame(f"Unsupported channel count: {frame.shape[2]}")
    return frame


def to_gray(frame: np.ndarray) -> np.ndarray:
    """Convert a BGR, BGRA or single-channel frame to 8-bit grayscale."""
    frame = _check_frame(frame)
    if frame.ndim == 2:
        gray = frame
    elif frame.shape[2] == 1:
        gray = frame[:, :, 0]
    elif frame.shape[2] == 4:
        gray = cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
    else:
        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    if gray.dtype != np.uint8:
        gray = cv2.convertScaleAbs(gray)
    return gray


class FramePreprocessor:
    """
    Turns raw colour frames into the reduced grayscale frames used for tracking.

    Example:
        >>> pre = FramePreprocessor()
        >>> tracked = pre.preprocess(frame)   # gray, half resolution
        >>> overlay = pre.resize(frame)       # colour, same geometry
    """

    def __init__(self, config: PreprocessConfig | None = None):
        self.config = (config or PreprocessConfig()).validate()

    @property
    def scale(self) -> float:
        return self.config.scale

    def resize(self, frame: np.ndarray) -> np.ndarray:
        """Downscale a frame with the configured factor and interpolation."""
        frame = _check_frame(frame)
        if self.scale == 1.0:
            return frame.copy()
        h, w = frame.shape[:2]
        size = (int(round(w * self.scale)), int(round(h * self.scale)))
        if size[0] == 0 or size[1] == 0:
            raise InvalidFrame(f"Frame of shape {frame.shape} is too small to downscale")
        return cv2.resize(frame, size, interpolation=self.config.cv_interpolation)

    def preprocess(self, frame: np.ndarray) -> np.ndarray:
        """
        Produce the tracked frame for a raw frame.

        Args:
            frame: BGR frame of any resolution

        Returns:
            Single-channel uint8 frame scaled by ``config.scale``

        Raises:
            InvalidFrame: If the frame is missing or empty
        """
        return self.resize(to_gray(frame))

    __call__ = preprocess


def preprocess(frame: np.ndarray, scale: float = 0.5) -> np.ndarray:
    """Grayscale and downscale a frame with bicubic interpolation."""
    return FramePreprocessor(PreprocessConfig(scale=scale)).preprocess(frame)
