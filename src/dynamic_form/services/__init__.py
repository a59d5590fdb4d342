"""
Collaborators of the form engine: descriptor sources, submission sinks,
notification channels and UI effects.
"""

from .file_source import FileFormSource
from .form_api import FormApiClient, FormApiError, InvalidFormStructureError, UserRegistrationError
from .interfaces import FormDescriptorSource, NotificationChannel, SubmissionSink, UIEffects
from .notifications import (
    LoggingNotificationChannel,
    LoggingSubmissionSink,
    Notification,
    NullUIEffects,
    RecordingNotificationChannel,
    RecordingUIEffects,
    UIEffect,
)

__all__ = [
    "FileFormSource",
    "FormApiClient",
    "FormApiError",
    "InvalidFormStructureError",
    "UserRegistrationError",
    "FormDescriptorSource",
    "NotificationChannel",
    "SubmissionSink",
    "UIEffects",
    "LoggingNotificationChannel",
    "LoggingSubmissionSink",
    "Notification",
    "NullUIEffects",
    "RecordingNotificationChannel",
    "RecordingUIEffects",
    "UIEffect",
]
