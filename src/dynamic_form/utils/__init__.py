"""
Utility functions and helper modules.

This module contains shared utilities used across the form engine and its
collaborators.
"""

from .transition_logger import (
    TransitionLogger,
    TransitionMetrics,
    log_transition,
    track_async_transition,
    track_transition,
)

__all__ = [
    "TransitionLogger",
    "TransitionMetrics",
    "log_transition",
    "track_async_transition",
    "track_transition",
]
