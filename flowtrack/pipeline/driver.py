"""
Loop driver: pulls frames, runs the tracker, shows and records the result.

The driver is the only place that talks to windows and the keyboard. It
maps key presses to the two runtime commands and turns errors into
process exit codes.
"""

import logging
from enum import Enum, IntEnum
from typing import Callable, Protocol

import cv2
import numpy as np

from flowtrack.core.config import DisplayConfig
from flowtrack.core.errors import FlowTrackError
from flowtrack.outputs.manager import OutputManager
from flowtrack.outputs.video import draw_points
from flowtrack.tracking.tracker import TrackMaintainer, TrackingStep

LOGGER = logging.getLogger(__name__)


class ReturnCode(IntEnum):
    """Process exit codes."""
    SUCCESS = 0
    ERROR_COMMAND_LINE = 1
    ERROR_UNHANDLED_EXCEPTION = 2
    ERROR_COULD_NOT_OPEN_VIDEO = 3
    ERROR_COULD_NOT_GET_NEW_FRAME = 4


class Command(Enum):
    """Runtime commands accepted between iterations."""
    TERMINATE = "terminate"
    REINITIALIZE = "reinitialize"


KEY_BINDINGS: dict[int, Command] = {
    27: Command.TERMINATE,  # ESC
    ord('q'): Command.TERMINATE,
    ord('r'): Command.REINITIALIZE,
}


def key_to_command(key: int | None) -> Command | None:
    """Map a ``cv2.waitKey`` result to a command, if any."""
    if key is None or key < 0:
        return None
    return KEY_BINDINGS.get(key & 0xFF)


class FrameSource(Protocol):
    """Anything that hands out raw frames until it returns None."""

    is_live: bool

    def read(self) -> np.ndarray | None:
        ...


class LoopDriver:
    """
    Runs the capture -> track -> display loop until told to stop.

    Args:
        source: Opened frame source
        maintainer: Track maintainer owning the tracking buffers
        outputs: Optional output manager fed with every iteration
        display: Window settings; ``enabled=False`` runs headless
        key_reader: Callable taking a wait in ms and returning a key code,
            defaults to ``cv2.waitKey`` with a display and to "no key" without
        max_frames: Stop after this many frames
        fps: Frame rate recorded in video outputs
    """

    def __init__(
        self,
        source: FrameSource,
        maintainer: TrackMaintainer,
        outputs: OutputManager | None = None,
        display: DisplayConfig | None = None,
        key_reader: Callable[[int], int] | None = None,
        max_frames: int | None = None,
        fps: float | None = None,
    ):
        self.source = source
        self.maintainer = maintainer
        self.outputs = outputs
        self.display = display or DisplayConfig()
        self.max_frames = max_frames
        self.fps = fps or 30.0

        if key_reader is not None:
            self.key_reader = key_reader
        elif self.display.enabled:
            self.key_reader = cv2.waitKey
        else:
            self.key_reader = lambda wait_ms: -1

        self.running = False
        self.frame_num = 0
        self.last_step: TrackingStep | None = None
        self._outputs_ready = False

    def handle_command(self, command: Command | None) -> None:
        """Apply a runtime command."""
        if command is Command.TERMINATE:
            LOGGER.info("Terminate requested")
            self.running = False
        elif command is Command.REINITIALIZE:
            self.maintainer.request_reinitialize()

    def run(self) -> ReturnCode:
        """
        Run until the stream ends, a terminate command arrives or an
        iteration fails.

        Returns:
            ReturnCode describing how the loop ended
        """
        self.running = True
        if self.display.enabled:
            cv2.namedWindow(self.display.input_window, cv2.WINDOW_NORMAL)
            cv2.namedWindow(self.display.resized_window, cv2.WINDOW_NORMAL)

        try:
            while self.running:
                raw = self.source.read()
                if raw is None:
                    if self.source.is_live:
                        LOGGER.error("Could not get a new frame from the camera. Exiting.")
                        return ReturnCode.ERROR_COULD_NOT_GET_NEW_FRAME
                    LOGGER.info("End of stream after %d frames", self.frame_num)
                    break

                self.frame_num += 1
                self._iterate(raw)

                command = key_to_command(self.key_reader(self.display.wait_ms))
                self.handle_command(command)

                if self.max_frames is not None and self.frame_num >= self.max_frames:
                    break
        except FlowTrackError as e:
            LOGGER.error("Tracking failed on frame %d: %s", self.frame_num, e)
            return ReturnCode.ERROR_UNHANDLED_EXCEPTION
        finally:
            self.running = False
            if self.outputs is not None and self._outputs_ready:
                self.outputs.finalize_all()
            if self.display.enabled:
                cv2.destroyAllWindows()

        return ReturnCode.SUCCESS

    def _iterate(self, raw: np.ndarray) -> TrackingStep:
        step = self.maintainer.update(raw)
        self.last_step = step
        small = self.maintainer.preprocessor.resize(raw)

        if self.outputs is not None:
            if not self._outputs_ready:
                h, w = small.shape[:2]
                self._outputs_ready = True
                self.outputs.initialize_all({"width": w, "height": h, "fps": self.fps})
            self.outputs.process_frame(self.frame_num, small, step)

        if self.display.enabled:
            cv2.imshow(self.display.input_window, draw_points(small, step.points))
            cv2.imshow(self.display.resized_window, self.maintainer.previous_frame)

        return step
