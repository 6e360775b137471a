"""
Output manager for coordinating multiple output handlers.
"""

from pathlib import Path
from typing import Type

import numpy as np

from flowtrack.outputs.base import BaseOutput, OutputSpec
from flowtrack.outputs.video import PreviewOutput
from flowtrack.outputs.data import CSVOutput
from flowtrack.tracking.tracker import TrackingStep


# Registry of available output types
OUTPUT_TYPES: dict[str, Type[BaseOutput]] = {
    'preview': PreviewOutput,
    'csv': CSVOutput,
}


def register_output_type(name: str, output_class: Type[BaseOutput]) -> None:
    """
    Register a new output type.

    Example:
        >>> class MyOutput(BaseOutput):
        ...     ...
        >>> register_output_type('myoutput', MyOutput)
    """
    OUTPUT_TYPES[name.lower()] = output_class


class OutputManager:
    """
    Manages multiple output handlers.

    Example:
        >>> manager = OutputManager("drive.mp4")
        >>> manager.add_output("preview")
        >>> manager.add_output("csv")
        >>> manager.initialize_all(video_props)
        >>> manager.process_frame(frame_num, small_frame, step)
        >>> manager.finalize_all()
    """

    def __init__(self, source_name: str):
        self.source_name = source_name
        self.outputs: list[BaseOutput] = []

    def add_output(self, spec_string: str) -> BaseOutput:
        """
        Add an output from a specification string.

        Raises:
            ValueError: If the output type is unknown
        """
        spec = OutputSpec(spec_string)

        if spec.output_type not in OUTPUT_TYPES:
            available = list(OUTPUT_TYPES.keys())
            raise ValueError(
                f"Unknown output type: {spec.output_type}. "
                f"Available: {available}"
            )

        output = OUTPUT_TYPES[spec.output_type](spec, self.source_name)
        self.outputs.append(output)
        return output

    def initialize_all(self, video_props: dict) -> None:
        """Initialize all outputs."""
        for output in self.outputs:
            output.initialize(video_props)

    def process_frame(
        self,
        frame_num: int,
        frame: np.ndarray,
        step: TrackingStep,
    ) -> None:
        """Process a frame through all outputs."""
        for output in self.outputs:
            output.process_frame(frame_num, frame, step)

    def finalize_all(self) -> None:
        """Finalize all outputs."""
        for output in self.outputs:
            output.finalize()

    def get_output_paths(self) -> list[Path]:
        return [output.get_output_path() for output in self.outputs]

    def __len__(self) -> int:
        return len(self.outputs)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finalize_all()
        return False


def parse_output_specs(specs: list[str], source_name: str) -> OutputManager:
    """Create an OutputManager from a list of specification strings."""
    manager = OutputManager(source_name)
    for spec in specs:
        manager.add_output(spec)
    return manager
