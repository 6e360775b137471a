"""
Synthetic frames shared by the flowtrack tests.
"""

import cv2
import numpy as np


def make_texture(height: int = 240, width: int = 320, seed: int = 7) -> np.ndarray:
    """Smooth random texture, trackable everywhere."""
    rng = np.random.default_rng(seed)
    noise = rng.integers(0, 256, (height, width), dtype=np.uint8)
    blurred = cv2.GaussianBlur(noise, (0, 0), 2.0)
    return cv2.normalize(blurred, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)


def shift(image: np.ndarray, dx: float, dy: float) -> np.ndarray:
    """Translate an image by (dx, dy) pixels."""
    h, w = image.shape[:2]
    matrix = np.float32([[1, 0, dx], [0, 1, dy]])
    return cv2.warpAffine(
        image, matrix, (w, h),
        flags=cv2.INTER_LINEAR, borderMode=cv2.BORDER_REFLECT,
    )


def make_squares(height: int = 240, width: int = 320) -> np.ndarray:
    """Black frame with well separated white squares (clean corners)."""
    frame = np.zeros((height, width), dtype=np.uint8)
    for y in range(30, height - 40, 60):
        for x in range(30, width - 40, 60):
            cv2.rectangle(frame, (x, y), (x + 20, y + 20), 255, -1)
    return frame
