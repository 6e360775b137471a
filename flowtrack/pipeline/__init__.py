"""
Pipeline module - The capture/track/display loop.
"""

from flowtrack.pipeline.driver import (
    Command,
    KEY_BINDINGS,
    LoopDriver,
    ReturnCode,
    key_to_command,
)

__all__ = [
    "Command",
    "KEY_BINDINGS",
    "LoopDriver",
    "ReturnCode",
    "key_to_command",
]
