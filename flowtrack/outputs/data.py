"""
Data output handlers.
"""

import csv

import numpy as np

from flowtrack.outputs.base import BaseOutput, OutputSpec
from flowtrack.tracking.tracker import TrackingStep


class CSVOutput(BaseOutput):
    """
    Outputs tracked points as a CSV file.

    Columns: frame, state, index, x, y

    Coordinates are in the downscaled tracked frame. Indices restart at 0
    after every pruning, so a row index only identifies a point within
    its own frame.

    Options:
        filename: Output filename (default: <source>_points.csv)
    """

    def __init__(self, spec: OutputSpec, source_name: str):
        super().__init__(spec, source_name)
        self.file = None
        self.writer = None

    def _get_default_suffix(self) -> str:
        return "_points"

    def _get_default_extension(self) -> str:
        return "csv"

    def initialize(self, video_props: dict) -> None:
        self.file = open(self.output_path, 'w', newline='')
        self.writer = csv.writer(self.file)
        self.writer.writerow(['frame', 'state', 'index', 'x', 'y'])

    def process_frame(
        self,
        frame_num: int,
        frame: np.ndarray,
        step: TrackingStep,
    ) -> None:
        if self.writer is None:
            return
        for index, (x, y) in enumerate(step.points):
            self.writer.writerow([
                frame_num, step.state.value, index, f"{x:.3f}", f"{y:.3f}"
            ])

    def finalize(self) -> None:
        if self.file:
            self.file.close()
            self.file = None
            self.writer = None
