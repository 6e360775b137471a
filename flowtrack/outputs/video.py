"""
Video output handlers and point annotation.
"""

import cv2
import numpy as np

from flowtrack.outputs.base import BaseOutput, OutputSpec
from flowtrack.tracking.points import as_point_array
from flowtrack.tracking.tracker import TrackingStep

POINT_COLOR = (0, 255, 0)


def draw_points(
    frame: np.ndarray,
    points: np.ndarray,
    color: tuple[int, int, int] = POINT_COLOR,
    radius: int = 3,
) -> np.ndarray:
    """Draw filled circles at each point on a copy of the frame."""
    vis = frame.copy()
    if vis.ndim == 2:
        vis = cv2.cvtColor(vis, cv2.COLOR_GRAY2BGR)
    for x, y in as_point_array(points):
        cv2.circle(vis, (int(round(x)), int(round(y))), radius, color, -1, cv2.LINE_8)
    return vis


class PreviewOutput(BaseOutput):
    """
    Writes the downscaled frames with tracked points overlaid.

    Options:
        filename: Output filename (default: <source>_preview.mp4)
        radius: Point radius in pixels (default: 3)
        showcount: 'true' to print the point count (default: false)
    """

    def __init__(self, spec: OutputSpec, source_name: str):
        super().__init__(spec, source_name)
        self.writer: cv2.VideoWriter | None = None
        self.radius = spec.get_int('radius', 3)
        self.show_count = spec.get_bool('showcount', False)
        if self.radius <= 0:
            raise ValueError(f"Invalid preview radius: {self.radius}. Must be positive.")

    def _get_default_suffix(self) -> str:
        return "_preview"

    def _get_default_extension(self) -> str:
        return "mp4"

    def initialize(self, video_props: dict) -> None:
        fourcc = cv2.VideoWriter_fourcc(*"mp4v")
        fps = video_props.get('fps') or 30.0
        self.writer = cv2.VideoWriter(
            str(self.output_path),
            fourcc,
            fps,
            (video_props['width'], video_props['height'])
        )

    def process_frame(
        self,
        frame_num: int,
        frame: np.ndarray,
        step: TrackingStep,
    ) -> None:
        if self.writer is None:
            return

        vis = draw_points(frame, step.points, radius=self.radius)
        if self.show_count:
            cv2.putText(
                vis, f"Frame {frame_num}: {step.total} points",
                (10, 20), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1
            )
        self.writer.write(vis)

    def finalize(self) -> None:
        if self.writer:
            self.writer.release()
            self.writer = None
