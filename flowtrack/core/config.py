"""
Configuration management for flowtrack.

Tracking parameters are fixed at startup. They come from dataclass
defaults, an optional JSON file and ``FLOWTRACK_*`` environment variables.
"""

import json
import os
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import Any

import cv2

from flowtrack.core.errors import ConfigError


REINIT_POLICIES = ("manual", "on_empty")

INTERPOLATIONS = {
    "nearest": cv2.INTER_NEAREST,
    "linear": cv2.INTER_LINEAR,
    "cubic": cv2.INTER_CUBIC,
    "area": cv2.INTER_AREA,
    "lanczos": cv2.INTER_LANCZOS4,
}


@dataclass
class TerminationCriteria:
    """Combined stopping rule: whichever of the two limits is reached first."""
    max_iterations: int = 20
    epsilon: float = 0.03

    def to_cv(self) -> tuple[int, int, float]:
        """Return the criteria tuple expected by OpenCV."""
        return (
            cv2.TERM_CRITERIA_COUNT | cv2.TERM_CRITERIA_EPS,
            int(self.max_iterations),
            float(self.epsilon),
        )


@dataclass
class TrackingConfig:
    """
    Parameters for feature selection and pyramidal matching.

    Attributes:
        max_feature_count: Upper bound on the number of selected points
        quality_level: Minimum corner response relative to the strongest one
        min_distance: Minimum pixel distance between selected points
        block_size: Neighbourhood size for the corner response
        subpix_window: Half-size of the sub-pixel refinement window
        search_window: Matching patch size (square, in pixels)
        pyramid_levels: Number of pyramid levels, full resolution included
        termination: Iteration / convergence stopping rule
        min_eig_threshold: Minimum eigenvalue of the matching patch gradient matrix
        max_error: Optional upper bound on the matching residual
        fb_threshold: Optional forward-backward consistency bound in pixels
        reinit_policy: 'manual' or 'on_empty'
    """
    max_feature_count: int = 500
    quality_level: float = 0.01
    min_distance: float = 10.0
    block_size: int = 3
    subpix_window: int = 10
    search_window: int = 31
    pyramid_levels: int = 4
    termination: TerminationCriteria = field(default_factory=TerminationCriteria)
    min_eig_threshold: float = 0.001
    max_error: float | None = None
    fb_threshold: float | None = None
    reinit_policy: str = "manual"

    def validate(self) -> "TrackingConfig":
        """Check value ranges, raising ConfigError on the first problem."""
        if self.max_feature_count <= 0:
            raise ConfigError(f"max_feature_count must be positive, got {self.max_feature_count}")
        if not 0.0 < self.quality_level <= 1.0:
            raise ConfigError(f"quality_level must be in (0, 1], got {self.quality_level}")
        if self.min_distance < 0:
            raise ConfigError(f"min_distance must not be negative, got {self.min_distance}")
        if self.block_size <= 0 or self.subpix_window <= 0:
            raise ConfigError("block_size and subpix_window must be positive")
        if self.search_window < 3:
            raise ConfigError(f"search_window must be at least 3, got {self.search_window}")
        if self.pyramid_levels < 1:
            raise ConfigError(f"pyramid_levels must be at least 1, got {self.pyramid_levels}")
        if self.termination.max_iterations <= 0 or self.termination.epsilon <= 0:
            raise ConfigError("termination limits must be positive")
        if self.reinit_policy not in REINIT_POLICIES:
            raise ConfigError(
                f"Unknown reinit_policy: {self.reinit_policy}. "
                f"Available: {list(REINIT_POLICIES)}"
            )
        return self

    @property
    def max_pyramid_level(self) -> int:
        """Index of the coarsest pyramid level (OpenCV ``maxLevel``)."""
        return self.pyramid_levels - 1


@dataclass
class PreprocessConfig:
    """Frame preprocessing settings."""
    scale: float = 0.5
    interpolation: str = "cubic"

    def validate(self) -> "PreprocessConfig":
        if self.scale <= 0:
            raise ConfigError(f"scale must be positive, got {self.scale}")
        if self.interpolation not in INTERPOLATIONS:
            raise ConfigError(
                f"Unknown interpolation: {self.interpolation}. "
                f"Available: {list(INTERPOLATIONS)}"
            )
        return self

    @property
    def cv_interpolation(self) -> int:
        return INTERPOLATIONS[self.interpolation]


@dataclass
class DisplayConfig:
    """Live display settings for the loop driver."""
    enabled: bool = True
    wait_ms: int = 33
    input_window: str = "Input Feed"
    resized_window: str = "Resized Frame"


@dataclass
class Config:
    """
    Main configuration container.

    Example:
        config = Config.load("flowtrack.json")
        maintainer = TrackMaintainer(config.tracking)
    """
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    preprocess: PreprocessConfig = field(default_factory=PreprocessConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    @classmethod
    def load(cls, path: str | Path) -> "Config":
        """Load configuration from a JSON file."""
        return load_config(path)

    def save(self, path: str | Path) -> None:
        """Save configuration to a JSON file."""
        save_config(self, path)

    def validate(self) -> "Config":
        self.tracking.validate()
        self.preprocess.validate()
        return self

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return {
            "tracking": asdict(self.tracking),
            "preprocess": asdict(self.preprocess),
            "display": asdict(self.display),
        }


def _build(cls, data: dict) -> Any:
    """Build a dataclass from a dict, ignoring unknown keys."""
    if not isinstance(data, dict):
        raise ConfigError(f"Expected an object for {cls.__name__}, got {type(data).__name__}")
    known = {f.name for f in fields(cls)}
    try:
        return cls(**{k: v for k, v in data.items() if k in known})
    except TypeError as e:
        raise ConfigError(f"Invalid {cls.__name__} settings: {e}") from e


def config_from_dict(data: dict) -> Config:
    """Build and validate a Config from a plain dictionary."""
    tracking_data = dict(data.get("tracking", {}))
    termination = _build(TerminationCriteria, tracking_data.pop("termination", {}))
    tracking = _build(TrackingConfig, tracking_data)
    tracking.termination = termination

    config = Config(
        tracking=tracking,
        preprocess=_build(PreprocessConfig, data.get("preprocess", {})),
        display=_build(DisplayConfig, data.get("display", {})),
    )
    return config.validate()


def load_config(path: str | Path) -> Config:
    """
    Load configuration from a JSON file.

    Args:
        path: Path to the JSON configuration file

    Returns:
        Parsed and validated Config object

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ConfigError: If the JSON is invalid or a value is out of range
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    return config_from_dict(data)


def save_config(config: Config, path: str | Path) -> None:
    """Save configuration to a JSON file."""
    path = Path(path)
    with open(path, "w") as f:
        json.dump(config.to_dict(), f, indent=2)


def create_example_config(path: str | Path = "flowtrack.json") -> Config:
    """Write a configuration file holding the default settings."""
    config = Config()
    config.save(path)
    print(f"Created example configuration: {path}")
    return config


def get_env_config(prefix: str = "FLOWTRACK_") -> dict[str, Any]:
    """
    Get configuration from environment variables.

    All environment variables starting with the prefix will be included.
    Variable names are converted to lowercase with the prefix removed.

    Example:
        FLOWTRACK_MAX_FEATURE_COUNT=200 -> {"max_feature_count": "200"}
    """
    config = {}
    for key, value in os.environ.items():
        if key.startswith(prefix):
            config_key = key[len(prefix):].lower()
            config[config_key] = value
    return config


def _coerce(value: str, current: Any) -> Any:
    if isinstance(current, bool):
        return value.lower() in ("true", "yes", "1", "on")
    if isinstance(current, int):
        return int(value)
    if isinstance(current, float) or current is None:
        return float(value)
    return value


def apply_env_overrides(config: Config, prefix: str = "FLOWTRACK_") -> Config:
    """
    Apply ``FLOWTRACK_*`` environment variables onto the tracking settings.

    ``FLOWTRACK_MAX_ITERATIONS`` and ``FLOWTRACK_EPSILON`` set the
    termination criteria. Unknown variables are ignored.
    """
    tracking = config.tracking
    for key, value in get_env_config(prefix).items():
        if key in ("max_iterations", "epsilon"):
            target = tracking.termination
        elif key in {f.name for f in fields(TrackingConfig)} and key != "termination":
            target = tracking
        else:
            continue
        try:
            setattr(target, key, _coerce(value, getattr(target, key)))
        except ValueError as e:
            raise ConfigError(f"Invalid value for {prefix}{key.upper()}: {value!r}") from e
    tracking.validate()
    return config
