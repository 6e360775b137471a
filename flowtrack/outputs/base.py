"""
Base classes for output handlers.

This module defines the OutputSpec parser and BaseOutput abstract class
that all output handlers must implement.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import numpy as np

from flowtrack.tracking.tracker import TrackingStep


class OutputSpec:
    """
    Parses output specification strings.

    Supports a colon-separated format similar to ffmpeg filters:
        preview=filename=custom.mp4:radius=4

    Example:
        >>> spec = OutputSpec("preview=filename=test.mp4:radius=4")
        >>> spec.output_type
        'preview'
        >>> spec.get('filename')
        'test.mp4'
    """

    def __init__(self, spec_string: str):
        """
        Parse a specification string.

        Raises:
            ValueError: If the spec string is empty
        """
        self.output_type: str = ""
        self.options: dict[str, str] = {}

        if not spec_string or not spec_string.strip():
            raise ValueError("Empty output specification")

        parts = spec_string.split('=', 1)
        self.output_type = parts[0].strip().lower()

        if len(parts) > 1:
            self._parse_options(parts[1])

    def _parse_options(self, options_str: str) -> None:
        """Parse colon-separated key=value pairs."""
        current_key: str | None = None
        current_value: list[str] = []

        for token in options_str.split(':'):
            if '=' in token:
                if current_key is not None:
                    self.options[current_key] = ':'.join(current_value)
                key, value = token.split('=', 1)
                current_key = key.strip().lower()
                current_value = [value.strip()]
            else:
                # Value contained ':'
                current_value.append(token)

        if current_key is not None:
            self.options[current_key] = ':'.join(current_value)

    def get(self, key: str, default: Any = None) -> Any:
        """Get an option value."""
        return self.options.get(key.lower(), default)

    def get_int(self, key: str, default: int = 0) -> int:
        """Get an option value as integer."""
        val = self.get(key)
        if val is None:
            return default
        try:
            return int(val)
        except ValueError:
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get an option value as boolean."""
        val = self.get(key)
        if val is None:
            return default
        return val.lower() in ('true', 'yes', '1', 'on')

    def __repr__(self) -> str:
        return f"OutputSpec(type={self.output_type}, options={self.options})"


class BaseOutput(ABC):
    """
    Abstract base class for all output handlers.

    Subclasses must implement:
        - _get_default_suffix(): Default filename suffix
        - _get_default_extension(): Default file extension
        - initialize(): Set up the output (open files, etc.)
        - process_frame(): Consume one tracking iteration
        - finalize(): Clean up resources
    """

    def __init__(self, spec: OutputSpec, source_name: str):
        """
        Initialize the output handler.

        Args:
            spec: The parsed output specification
            source_name: Video path or camera label used to name default outputs
        """
        self.spec = spec
        self.source_name = Path(str(source_name))
        self.output_path = self._resolve_output_path()

    @abstractmethod
    def _get_default_suffix(self) -> str:
        """Return the default suffix to add to the source name."""
        pass

    @abstractmethod
    def _get_default_extension(self) -> str:
        """Return the default file extension."""
        pass

    def _resolve_output_path(self) -> Path:
        """Resolve the output path from spec or generate default."""
        filename = self.spec.get('filename')
        if filename:
            return Path(filename)

        stem = self.source_name.stem or "camera"
        return Path(f"{stem}{self._get_default_suffix()}.{self._get_default_extension()}")

    @abstractmethod
    def initialize(self, video_props: dict) -> None:
        """
        Initialize the output.

        Args:
            video_props: Dictionary with 'width', 'height', 'fps' of the
                annotated (downscaled) frames
        """
        pass

    @abstractmethod
    def process_frame(
        self,
        frame_num: int,
        frame: np.ndarray,
        step: TrackingStep,
    ) -> None:
        """
        Consume one iteration.

        Args:
            frame_num: Current frame number
            frame: Downscaled colour frame matching the point coordinates
            step: Result of the tracking iteration
        """
        pass

    @abstractmethod
    def finalize(self) -> None:
        """Finalize the output (close files, etc)."""
        pass

    def get_output_path(self) -> Path:
        """Return the resolved output path."""
        return self.output_path

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finalize()
        return False
