"""
Tests for output handlers.
"""

import csv

import numpy as np
import pytest

from flowtrack.outputs import CSVOutput, OutputManager, OutputSpec, PreviewOutput, draw_points
from flowtrack.tracking.tracker import TrackingState, TrackingStep


def make_step(points) -> TrackingStep:
    return TrackingStep(
        frame=1,
        state=TrackingState.TRACKING,
        points=np.asarray(points, dtype=np.float32).reshape(-1, 2),
    )


class TestOutputSpec:
    """Tests for OutputSpec parser."""

    def test_simple_spec(self):
        spec = OutputSpec("preview")
        assert spec.output_type == "preview"
        assert len(spec.options) == 0

    def test_spec_with_options(self):
        spec = OutputSpec("preview=filename=test.mp4:radius=5")
        assert spec.output_type == "preview"
        assert spec.get('filename') == "test.mp4"
        assert spec.get_int('radius') == 5

    def test_value_with_colon(self):
        spec = OutputSpec("csv=filename=C:/data/points.csv")
        assert spec.get('filename') == "C:/data/points.csv"

    def test_get_bool(self):
        spec = OutputSpec("preview=showcount=true")
        assert spec.get_bool('showcount') is True
        assert spec.get_bool('missing') is False

    def test_empty_spec(self):
        with pytest.raises(ValueError):
            OutputSpec("")


class TestOutputManager:
    """Tests for OutputManager."""

    def test_add_output(self):
        manager = OutputManager("drive.mp4")
        manager.add_output("preview")
        manager.add_output("csv")
        assert len(manager) == 2
        assert [p.name for p in manager.get_output_paths()] == [
            "drive_preview.mp4", "drive_points.csv",
        ]

    def test_invalid_output_type(self):
        manager = OutputManager("drive.mp4")
        with pytest.raises(ValueError):
            manager.add_output("invalid_type")

    def test_invalid_radius(self):
        with pytest.raises(ValueError):
            PreviewOutput(OutputSpec("preview=radius=0"), "drive.mp4")


class TestCSVOutput:
    """Tests for CSV point output."""

    def test_rows_per_point(self, tmp_path):
        path = tmp_path / "points.csv"
        with CSVOutput(OutputSpec(f"csv=filename={path}"), "drive.mp4") as output:
            output.initialize({"width": 32, "height": 24, "fps": 30})
            frame = np.zeros((24, 32, 3), np.uint8)
            output.process_frame(1, frame, make_step([[1.25, 2.5], [3, 4]]))
            output.process_frame(2, frame, make_step([]))

        with open(path, newline='') as f:
            rows = list(csv.reader(f))
        assert rows[0] == ['frame', 'state', 'index', 'x', 'y']
        assert rows[1] == ['1', 'tracking', '0', '1.250', '2.500']
        assert rows[2] == ['1', 'tracking', '1', '3.000', '4.000']
        assert len(rows) == 3


class TestDrawPoints:
    """Tests for point annotation."""

    def test_draws_green_points(self):
        frame = np.zeros((20, 20, 3), np.uint8)
        vis = draw_points(frame, np.array([[10, 10]], np.float32))
        assert vis[10, 10].tolist() == [0, 255, 0]
        assert frame.sum() == 0

    def test_gray_frame_becomes_colour(self):
        vis = draw_points(np.zeros((20, 20), np.uint8), np.empty((0, 2), np.float32))
        assert vis.shape == (20, 20, 3)
