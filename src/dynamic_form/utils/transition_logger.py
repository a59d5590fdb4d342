"""
Transition Logger for the Dynamic Form Engine.

This module provides logging utilities for tracking form engine transitions and
collaborator calls with timestamps, execution time, and structured metadata for
debugging.

Features:
- Automatic execution time tracking
- Structured logging with timestamps
- Transition entry/exit logging
- Error tracking with context
- Session and correlation ID tracking
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager, contextmanager
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class TransitionMetrics:
    """Container for transition timing and outcome."""

    def __init__(self, transition_name: str, session_id: str):
        self.transition_name = transition_name
        self.session_id = session_id
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.execution_time_seconds: float = 0.0
        self.start_timestamp: Optional[float] = None
        self.end_timestamp: Optional[float] = None
        self.correlation_id: str = str(uuid.uuid4())[:8]
        self.success: bool = False
        self.error: Optional[str] = None
        self.error_type: Optional[str] = None
        self.metadata: Dict[str, Any] = {}

    def start_execution(self):
        """Mark the start of the transition."""
        self.start_time = datetime.now(timezone.utc)
        self.start_timestamp = time.time()

        logger.debug(
            f"▶️ TRANSITION_START: {self.transition_name}",
            extra={
                "transition_name": self.transition_name,
                "session_id": self.session_id,
                "correlation_id": self.correlation_id,
                "start_time": self.start_time.isoformat(),
                "event_type": "transition_start"
            }
        )

    def end_execution(self, success: bool = True, error: Optional[str] = None,
                      error_type: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None):
        """Mark the end of the transition with its outcome."""
        self.end_time = datetime.now(timezone.utc)
        self.end_timestamp = time.time()
        self.success = success
        self.error = error
        self.error_type = error_type

        if metadata:
            self.metadata.update(metadata)

        if self.start_timestamp is not None:
            self.execution_time_seconds = self.end_timestamp - self.start_timestamp

        log_level = logging.INFO if success else logging.ERROR
        status_emoji = "✅" if success else "❌"

        logger.log(
            log_level,
            f"{status_emoji} TRANSITION_END: {self.transition_name} | "
            f"Time: {self.execution_time_seconds:.3f}s | "
            f"Status: {'SUCCESS' if success else 'ERROR'}",
            extra={
                "transition_name": self.transition_name,
                "session_id": self.session_id,
                "correlation_id": self.correlation_id,
                "execution_time_seconds": self.execution_time_seconds,
                "success": success,
                "error": error,
                "error_type": error_type,
                "metadata": self.metadata,
                "event_type": "transition_end"
            }
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transition_name": self.transition_name,
            "session_id": self.session_id,
            "correlation_id": self.correlation_id,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "execution_time_seconds": self.execution_time_seconds,
            "success": self.success,
            "error": self.error,
            "error_type": self.error_type,
            "metadata": self.metadata
        }


class TransitionLogger:
    """Tracks one transition with metrics, steps and errors."""

    def __init__(self, transition_name: str, session_id: str):
        self.metrics = TransitionMetrics(transition_name, session_id)

    def start(self):
        self.metrics.start_execution()

    def end(self, success: bool = True, error: Optional[str] = None,
            error_type: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None):
        self.metrics.end_execution(success, error, error_type, metadata)
        return self.metrics.to_dict()

    def log_step(self, step_name: str, step_data: Optional[Dict[str, Any]] = None):
        """Log an intermediate step within the transition."""
        step_metadata = {
            "step_name": step_name,
            "step_time": datetime.now(timezone.utc).isoformat()
        }

        if step_data:
            step_metadata.update(step_data)

        logger.debug(
            f"🔧 TRANSITION_STEP: {self.metrics.transition_name} | Step: {step_name}",
            extra={
                "transition_name": self.metrics.transition_name,
                "session_id": self.metrics.session_id,
                "correlation_id": self.metrics.correlation_id,
                "step_metadata": step_metadata,
                "event_type": "transition_step"
            }
        )

        self.metrics.metadata.setdefault("steps", []).append(step_metadata)

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None):
        """Log an error with context."""
        error_metadata = {
            "error_type": type(error).__name__,
            "error_message": str(error),
            "error_time": datetime.now(timezone.utc).isoformat()
        }

        if context:
            error_metadata.update(context)

        logger.error(
            f"💥 TRANSITION_ERROR: {self.metrics.transition_name} | "
            f"Error: {type(error).__name__} | "
            f"Message: {str(error)}",
            extra={
                "transition_name": self.metrics.transition_name,
                "session_id": self.metrics.session_id,
                "correlation_id": self.metrics.correlation_id,
                "error_metadata": error_metadata,
                "event_type": "transition_error"
            }
        )

        self.metrics.metadata.setdefault("errors", []).append(error_metadata)


@contextmanager
def track_transition(transition_name: str, session_id: str):
    """
    Context manager for tracking a synchronous transition with automatic timing.

    Usage:
        with track_transition("navigate_next", session_id) as tracker:
            tracker.log_step("validated_section", {"invalid": 0})
    """
    tracker = TransitionLogger(transition_name, session_id)
    tracker.start()

    try:
        yield tracker
        tracker.end(success=True)
    except Exception as e:
        tracker.log_error(e)
        tracker.end(success=False, error=str(e), error_type=type(e).__name__)
        raise


@asynccontextmanager
async def track_async_transition(transition_name: str, session_id: str):
    """Async counterpart of ``track_transition`` for collaborator calls."""
    tracker = TransitionLogger(transition_name, session_id)
    tracker.start()

    try:
        yield tracker
        tracker.end(success=True)
    except Exception as e:
        tracker.log_error(e)
        tracker.end(success=False, error=str(e), error_type=type(e).__name__)
        raise


def log_transition(transition_name: str):
    """
    Decorator tracking a synchronous method call as a transition.

    The session id is read from the first positional argument (the instance or
    state) when it has a ``session_id`` attribute.

    Usage:
        @log_transition("submit")
        def submit(self) -> SubmissionResult:
            ...
    """
    def decorator(func: Callable) -> Callable:
        def _session_id(args) -> str:
            if args and hasattr(args[0], "session_id"):
                return args[0].session_id
            return "unknown"

        @wraps(func)
        def wrapper(*args, **kwargs):
            with track_transition(transition_name, _session_id(args)) as tracker:
                result = func(*args, **kwargs)
                tracker.log_step("function_exit", {"result_type": type(result).__name__})
                return result

        return wrapper

    return decorator
