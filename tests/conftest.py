"""
Fixtures for the flowtrack tests.
"""

import cv2
import numpy as np
import pytest

from helpers import make_squares, make_texture


@pytest.fixture
def texture() -> np.ndarray:
    return make_texture()


@pytest.fixture
def color_texture() -> np.ndarray:
    """BGR frame at twice the tracked resolution."""
    return cv2.cvtColor(make_texture(480, 640), cv2.COLOR_GRAY2BGR)


@pytest.fixture
def squares() -> np.ndarray:
    return make_squares()
