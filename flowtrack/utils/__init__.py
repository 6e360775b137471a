"""
Utility functions.
"""

from flowtrack.utils.log import setup_logging

__all__ = [
    "setup_logging",
]
