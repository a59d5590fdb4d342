"""
Default notification, UI-effect and submission collaborators.

The logging variants are used when nothing else is wired in; the recording
variants buffer what the engine requested so a presentation layer (the HTTP API
or the console runner) can drain and display it.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..schemas.state_schemas import AnswerMap

logger = logging.getLogger(__name__)


class Notification(BaseModel):
    """A single user-facing message."""

    message: str
    level: str = "error"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UIEffect(BaseModel):
    """A requested viewport side effect."""

    effect: str = Field(..., description="'scroll_to_top' or 'focus_field'")
    field_id: Optional[str] = None


class LoggingNotificationChannel:
    """Writes notifications to the log."""

    def notify(self, message: str, level: str = "error") -> None:
        log_level = logging.WARNING if level == "error" else logging.INFO
        logger.log(log_level, f"[Notification] {message}")


class RecordingNotificationChannel:
    """Buffers notifications until a presentation layer drains them."""

    def __init__(self):
        self._pending: List[Notification] = []

    def notify(self, message: str, level: str = "error") -> None:
        self._pending.append(Notification(message=message, level=level))

    @property
    def pending(self) -> List[Notification]:
        return list(self._pending)

    def drain(self) -> List[Notification]:
        drained, self._pending = self._pending, []
        return drained


class NullUIEffects:
    """Ignores viewport requests (headless use)."""

    def scroll_to_top(self) -> None:
        pass

    def focus_field(self, field_id: str) -> None:
        pass


class RecordingUIEffects:
    """Buffers viewport requests until a presentation layer drains them."""

    def __init__(self):
        self._pending: List[UIEffect] = []

    def scroll_to_top(self) -> None:
        self._pending.append(UIEffect(effect="scroll_to_top"))

    def focus_field(self, field_id: str) -> None:
        self._pending.append(UIEffect(effect="focus_field", field_id=field_id))

    def drain(self) -> List[UIEffect]:
        drained, self._pending = self._pending, []
        return drained


class LoggingSubmissionSink:
    """Logs completed answer maps and keeps the last one."""

    def __init__(self):
        self.last_submission: Optional[Dict[str, Any]] = None
        self.submission_count = 0

    def __call__(self, answers: AnswerMap) -> None:
        self.last_submission = dict(answers)
        self.submission_count += 1
        logger.info("Form submitted successfully!")
        logger.info(f"Collected Form Data: {json.dumps(answers, default=str)}")
