"""
Core module - Configuration, errors and capture sources.
"""

from flowtrack.core.config import (
    Config,
    DisplayConfig,
    PreprocessConfig,
    TerminationCriteria,
    TrackingConfig,
    apply_env_overrides,
    load_config,
    save_config,
)
from flowtrack.core.errors import (
    CaptureError,
    ConfigError,
    CorrespondenceInputMismatch,
    FlowTrackError,
    InvalidFrame,
)
from flowtrack.core.video import VideoProperties, VideoSource

__all__ = [
    "Config",
    "DisplayConfig",
    "PreprocessConfig",
    "TerminationCriteria",
    "TrackingConfig",
    "apply_env_overrides",
    "load_config",
    "save_config",
    "CaptureError",
    "ConfigError",
    "CorrespondenceInputMismatch",
    "FlowTrackError",
    "InvalidFrame",
    "VideoProperties",
    "VideoSource",
]
