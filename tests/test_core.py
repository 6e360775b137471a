"""
Tests for configuration, errors and capture sources.
"""

import json

import cv2
import pytest

from flowtrack.core.config import (
    Config,
    TerminationCriteria,
    TrackingConfig,
    apply_env_overrides,
    config_from_dict,
    get_env_config,
    load_config,
)
from flowtrack.core.errors import CaptureError, ConfigError, FlowTrackError, InvalidFrame
from flowtrack.core.video import VideoProperties, VideoSource


class TestTrackingConfig:
    """Tests for tracking parameters."""

    def test_defaults(self):
        cfg = TrackingConfig()
        assert cfg.max_feature_count == 500
        assert cfg.quality_level == 0.01
        assert cfg.min_distance == 10
        assert cfg.search_window == 31
        assert cfg.max_pyramid_level == 3
        assert cfg.reinit_policy == "manual"

    def test_termination_to_cv(self):
        flags, count, eps = TerminationCriteria(max_iterations=20, epsilon=0.03).to_cv()
        assert flags == cv2.TERM_CRITERIA_COUNT | cv2.TERM_CRITERIA_EPS
        assert count == 20
        assert eps == pytest.approx(0.03)

    @pytest.mark.parametrize("overrides", [
        {"max_feature_count": 0},
        {"quality_level": 0.0},
        {"quality_level": 1.5},
        {"pyramid_levels": 0},
        {"search_window": 1},
        {"reinit_policy": "sometimes"},
    ])
    def test_validate_rejects(self, overrides):
        with pytest.raises(ConfigError):
            TrackingConfig(**overrides).validate()

    def test_bad_termination(self):
        cfg = TrackingConfig(termination=TerminationCriteria(max_iterations=0))
        with pytest.raises(ConfigError):
            cfg.validate()


class TestConfigFiles:
    """Tests for JSON configuration files."""

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "flowtrack.json"
        config = Config()
        config.tracking.max_feature_count = 123
        config.tracking.termination.epsilon = 0.01
        config.display.enabled = False
        config.save(path)

        loaded = load_config(path)
        assert loaded.tracking.max_feature_count == 123
        assert loaded.tracking.termination.epsilon == 0.01
        assert loaded.display.enabled is False
        assert loaded.preprocess.scale == 0.5

    def test_partial_file_uses_defaults(self):
        config = config_from_dict({"tracking": {"min_distance": 4, "unknown": 1}})
        assert config.tracking.min_distance == 4
        assert config.tracking.search_window == 31
        assert isinstance(config.tracking.termination, TerminationCriteria)

    def test_invalid_value(self):
        with pytest.raises(ConfigError):
            config_from_dict({"preprocess": {"interpolation": "magic"}})

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.json")

    def test_to_dict_is_json(self):
        data = Config().to_dict()
        assert json.loads(json.dumps(data))["tracking"]["termination"]["max_iterations"] == 20


class TestEnvConfig:
    """Tests for environment overrides."""

    def test_get_env_config(self, monkeypatch):
        monkeypatch.setenv("FLOWTRACK_MAX_FEATURE_COUNT", "200")
        assert get_env_config()["max_feature_count"] == "200"

    def test_apply_overrides(self, monkeypatch):
        monkeypatch.setenv("FLOWTRACK_MAX_FEATURE_COUNT", "200")
        monkeypatch.setenv("FLOWTRACK_QUALITY_LEVEL", "0.05")
        monkeypatch.setenv("FLOWTRACK_MAX_ITERATIONS", "40")
        monkeypatch.setenv("FLOWTRACK_FB_THRESHOLD", "1.5")
        monkeypatch.setenv("FLOWTRACK_REINIT_POLICY", "on_empty")
        config = apply_env_overrides(Config())
        assert config.tracking.max_feature_count == 200
        assert config.tracking.quality_level == 0.05
        assert config.tracking.termination.max_iterations == 40
        assert config.tracking.fb_threshold == 1.5
        assert config.tracking.reinit_policy == "on_empty"

    def test_bad_override(self, monkeypatch):
        monkeypatch.setenv("FLOWTRACK_MAX_FEATURE_COUNT", "lots")
        with pytest.raises(ConfigError):
            apply_env_overrides(Config())


class TestErrors:
    """Tests for the exception hierarchy."""

    def test_hierarchy(self):
        assert issubclass(InvalidFrame, FlowTrackError)
        assert issubclass(CaptureError, FlowTrackError)

    def test_capture_error_source(self):
        err = CaptureError("nope", source="clip.mp4")
        assert err.source == "clip.mp4"
        assert str(err) == "nope"


class TestVideoSource:
    """Tests for capture sources."""

    def test_camera_index_from_string(self):
        assert VideoSource("0").is_live is True
        assert VideoSource("clip.mp4").is_live is False

    def test_missing_file(self, tmp_path):
        with pytest.raises(CaptureError):
            VideoSource(tmp_path / "missing.mp4").open()

    def test_read_before_open(self):
        with pytest.raises(RuntimeError):
            VideoSource("clip.mp4").read()

    def test_properties_scaled(self):
        props = VideoProperties(640, 480, 30.0, 100)
        small = props.scaled(0.5)
        assert (small.width, small.height) == (320, 240)
        assert small.to_dict()["fps"] == 30.0
