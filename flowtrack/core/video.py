"""
Capture sources for flowtrack.

Wraps OpenCV's VideoCapture for both live cameras and video files behind
a pull-based reader that returns ``None`` at the end of the stream.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import cv2
import numpy as np

from flowtrack.core.errors import CaptureError

LOGGER = logging.getLogger(__name__)


@dataclass
class VideoProperties:
    """Properties of a capture source."""
    width: int
    height: int
    fps: float
    frame_count: int

    @classmethod
    def from_capture(cls, cap: cv2.VideoCapture) -> "VideoProperties":
        """Create VideoProperties from an OpenCV VideoCapture."""
        return cls(
            width=int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            height=int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            fps=cap.get(cv2.CAP_PROP_FPS),
            frame_count=int(cap.get(cv2.CAP_PROP_FRAME_COUNT)),
        )

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "fps": self.fps,
            "frame_count": self.frame_count,
        }

    def scaled(self, scale: float) -> "VideoProperties":
        """Properties of the same stream resized by ``scale``."""
        return VideoProperties(
            width=int(round(self.width * scale)),
            height=int(round(self.height * scale)),
            fps=self.fps,
            frame_count=self.frame_count,
        )


class VideoSource:
    """
    Pull-based frame source for a camera index or a video file.

    Example:
        with VideoSource("drive.mp4") as source:
            for frame in source:
                process(frame)
    """

    def __init__(self, source: int | str | Path = 0):
        """
        Initialize the source.

        Args:
            source: Camera index (0 is usually /dev/video0) or path to a video file
        """
        if isinstance(source, str) and source.isdigit():
            source = int(source)
        self.source = source
        self._cap: cv2.VideoCapture | None = None
        self._props: VideoProperties | None = None

    @property
    def is_live(self) -> bool:
        """True for camera sources."""
        return isinstance(self.source, int)

    def open(self) -> "VideoSource":
        """Open the capture source."""
        if not self.is_live and not Path(self.source).exists():
            raise CaptureError(f"Video file not found: {self.source}", self.source)

        target = self.source if self.is_live else str(self.source)
        self._cap = cv2.VideoCapture(target)
        if not self._cap.isOpened():
            self._cap.release()
            self._cap = None
            raise CaptureError(f"Could not open capture device: {self.source}", self.source)

        self._props = VideoProperties.from_capture(self._cap)
        LOGGER.info(
            "Opened %s %s (%dx%d @ %.1f fps)",
            "camera" if self.is_live else "video file",
            self.source,
            self._props.width,
            self._props.height,
            self._props.fps or 0.0,
        )
        return self

    def close(self) -> None:
        """Release the capture source."""
        if self._cap:
            self._cap.release()
            self._cap = None
            LOGGER.debug("Closed %s", self.source)

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    @property
    def properties(self) -> VideoProperties:
        """Get source properties."""
        if self._props is None:
            raise RuntimeError("Source not opened. Call open() first.")
        return self._props

    def read(self) -> np.ndarray | None:
        """Read the next frame, or None when the stream has ended."""
        if self._cap is None:
            raise RuntimeError("Source not opened. Call open() first.")
        ret, frame = self._cap.read()
        if not ret or frame is None or frame.size == 0:
            return None
        return frame

    def __iter__(self) -> Iterator[np.ndarray]:
        if self._cap is None:
            self.open()
        while True:
            frame = self.read()
            if frame is None:
                break
            yield frame

    def __enter__(self) -> "VideoSource":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False
