"""
Output handlers module.

- PreviewOutput: Downscaled video with tracked points overlaid
- CSVOutput: Tracked point coordinates per frame

Example:
    >>> from flowtrack.outputs import OutputManager
    >>> manager = OutputManager("drive.mp4")
    >>> manager.add_output("preview=filename=preview.mp4")
    >>> manager.add_output("csv")
"""

from flowtrack.outputs.base import OutputSpec, BaseOutput
from flowtrack.outputs.video import PreviewOutput, draw_points
from flowtrack.outputs.data import CSVOutput
from flowtrack.outputs.manager import OutputManager, parse_output_specs, register_output_type

__all__ = [
    "OutputSpec",
    "BaseOutput",
    "PreviewOutput",
    "draw_points",
    "CSVOutput",
    "OutputManager",
    "parse_output_specs",
    "register_output_type",
]
