"""
Tests for the loop driver and command line entry point.
"""

import csv

import numpy as np
import pytest

from helpers import make_texture, shift

from flowtrack.__main__ import main
from flowtrack.core.config import DisplayConfig
from flowtrack.outputs import OutputManager
from flowtrack.pipeline import Command, LoopDriver, ReturnCode, key_to_command
from flowtrack.tracking import TrackMaintainer, TrackingState

HEADLESS = DisplayConfig(enabled=False)


class FakeSource:
    """Frame source backed by a list."""

    def __init__(self, frames, is_live=False):
        self.frames = list(frames)
        self.is_live = is_live
        self.reads = 0

    def read(self):
        self.reads += 1
        if not self.frames:
            return None
        return self.frames.pop(0)


def color_frames(count: int) -> list[np.ndarray]:
    base = make_texture(240, 320)
    frames = []
    for i in range(count):
        gray = shift(base, 2 * i, 0)
        frames.append(np.dstack([gray, gray, gray]))
    return frames


def keys(*codes):
    sequence = list(codes)

    def _read(wait_ms):
        return sequence.pop(0) if sequence else -1
    return _read


class TestKeyBindings:
    """Tests for key to command mapping."""

    def test_bindings(self):
        assert key_to_command(27) is Command.TERMINATE
        assert key_to_command(ord('q')) is Command.TERMINATE
        assert key_to_command(ord('r')) is Command.REINITIALIZE
        assert key_to_command(ord('x')) is None
        assert key_to_command(-1) is None

    def test_high_bits_ignored(self):
        assert key_to_command(0x100000 | ord('q')) is Command.TERMINATE


class TestLoopDriver:
    """Tests for the capture/track loop."""

    def test_runs_to_end_of_file(self):
        source = FakeSource(color_frames(4))
        driver = LoopDriver(source, TrackMaintainer(), display=HEADLESS)
        assert driver.run() is ReturnCode.SUCCESS
        assert driver.frame_num == 4
        assert driver.last_step.state is TrackingState.TRACKING

    def test_camera_running_dry_is_an_error(self):
        source = FakeSource(color_frames(2), is_live=True)
        driver = LoopDriver(source, TrackMaintainer(), display=HEADLESS)
        assert driver.run() is ReturnCode.ERROR_COULD_NOT_GET_NEW_FRAME
        assert driver.frame_num == 2

    def test_terminate_key(self):
        source = FakeSource(color_frames(5))
        driver = LoopDriver(source, TrackMaintainer(), display=HEADLESS, key_reader=keys(-1, ord('q')))
        assert driver.run() is ReturnCode.SUCCESS
        assert driver.frame_num == 2

    def test_reinitialize_key(self):
        maintainer = TrackMaintainer()
        source = FakeSource(color_frames(3))
        driver = LoopDriver(source, maintainer, display=HEADLESS, key_reader=keys(-1, ord('r')))
        driver.run()
        assert driver.last_step.reinitialized
        assert driver.last_step.frame == 3

    def test_max_frames(self):
        source = FakeSource(color_frames(5))
        driver = LoopDriver(source, TrackMaintainer(), display=HEADLESS, max_frames=3)
        assert driver.run() is ReturnCode.SUCCESS
        assert driver.frame_num == 3

    def test_bad_frame_halts_run(self):
        frames = color_frames(2)
        frames.insert(1, np.zeros((0, 0, 3), np.uint8))
        source = FakeSource(frames)
        driver = LoopDriver(source, TrackMaintainer(), display=HEADLESS)
        assert driver.run() is ReturnCode.ERROR_UNHANDLED_EXCEPTION
        assert source.reads == 2

    def test_frame_size_change_halts_run(self):
        frames = color_frames(2)
        frames[1] = frames[1][:100, :100]
        driver = LoopDriver(FakeSource(frames), TrackMaintainer(), display=HEADLESS)
        assert driver.run() is ReturnCode.ERROR_UNHANDLED_EXCEPTION

    def test_outputs_receive_every_frame(self, tmp_path):
        path = tmp_path / "points.csv"
        outputs = OutputManager("drive.mp4")
        outputs.add_output(f"csv=filename={path}")
        driver = LoopDriver(FakeSource(color_frames(3)), TrackMaintainer(), outputs=outputs, display=HEADLESS)
        assert driver.run() is ReturnCode.SUCCESS

        with open(path, newline='') as f:
            rows = list(csv.DictReader(f))
        assert {row['frame'] for row in rows} == {'1', '2', '3'}
        xs = [float(row['x']) for row in rows]
        assert max(xs) < 160

    def test_outputs_closed_when_initialize_fails(self, tmp_path):
        outputs = OutputManager("drive.mp4")
        opened = outputs.add_output(f"csv=filename={tmp_path / 'points.csv'}")
        outputs.add_output(f"csv=filename={tmp_path / 'missing' / 'points.csv'}")
        driver = LoopDriver(FakeSource(color_frames(2)), TrackMaintainer(), outputs=outputs, display=HEADLESS)
        with pytest.raises(FileNotFoundError):
            driver.run()
        assert opened.file is None


class TestCommandLine:
    """Tests for the CLI entry point."""

    def test_no_command(self, capsys):
        assert main([]) == 0

    def test_bad_arguments(self):
        assert main(["track", "--bogus"]) == ReturnCode.ERROR_COMMAND_LINE

    def test_missing_video(self, tmp_path):
        code = main(["track", "--video", str(tmp_path / "missing.mp4"), "--no-display"])
        assert code == ReturnCode.ERROR_COULD_NOT_OPEN_VIDEO

    def test_missing_config(self, tmp_path):
        code = main(["track", "-c", str(tmp_path / "nope.json"), "--no-display"])
        assert code == ReturnCode.ERROR_COMMAND_LINE

    def test_create_config(self, tmp_path):
        path = tmp_path / "flowtrack.json"
        assert main(["config", "--create", str(path)]) == 0
        assert path.exists()

    def test_version(self):
        assert main(["--version"]) == 0
