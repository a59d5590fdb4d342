"""
Tests for the default and recording collaborators.
"""

import logging

from dynamic_form.services.interfaces import NotificationChannel, SubmissionSink, UIEffects
from dynamic_form.services.notifications import (
    LoggingNotificationChannel,
    LoggingSubmissionSink,
    NullUIEffects,
    RecordingNotificationChannel,
    RecordingUIEffects,
)


class TestNotificationChannels:

    def test_recording_channel_drains(self):
        channel = RecordingNotificationChannel()
        channel.notify("Please fix the errors")
        channel.notify("Saved", level="success")

        assert [n.message for n in channel.pending] == ["Please fix the errors", "Saved"]
        drained = channel.drain()
        assert [n.level for n in drained] == ["error", "success"]
        assert channel.drain() == []

    def test_logging_channel(self, caplog):
        with caplog.at_level(logging.INFO):
            LoggingNotificationChannel().notify("Please fix the errors")
        assert "[Notification] Please fix the errors" in caplog.text

    def test_protocol_conformance(self):
        assert isinstance(RecordingNotificationChannel(), NotificationChannel)
        assert isinstance(LoggingNotificationChannel(), NotificationChannel)
        assert isinstance(RecordingUIEffects(), UIEffects)
        assert isinstance(NullUIEffects(), UIEffects)
        assert isinstance(LoggingSubmissionSink(), SubmissionSink)


class TestUIEffects:

    def test_recording_effects_in_order(self):
        effects = RecordingUIEffects()
        effects.scroll_to_top()
        effects.focus_field("email")

        drained = effects.drain()
        assert [(e.effect, e.field_id) for e in drained] == [("scroll_to_top", None), ("focus_field", "email")]
        assert effects.drain() == []


class TestLoggingSubmissionSink:

    def test_keeps_and_logs_submissions(self, caplog):
        sink = LoggingSubmissionSink()
        assert sink.last_submission is None

        with caplog.at_level(logging.INFO):
            sink({"fullName": "Asha Rao", "terms": True})

        assert sink.last_submission == {"fullName": "Asha Rao", "terms": True}
        assert "Form submitted successfully!" in caplog.text
        assert "Collected Form Data" in caplog.text

    def test_stores_copy(self):
        sink = LoggingSubmissionSink()
        answers = {"fullName": "Asha Rao"}
        sink(answers)
        answers["fullName"] = "Changed"
        assert sink.last_submission == {"fullName": "Asha Rao"}

    def test_only_latest_submission_retained(self):
        sink = LoggingSubmissionSink()
        sink({"fullName": "Asha Rao"})
        sink({"fullName": "Ravi Kumar"})

        assert sink.last_submission == {"fullName": "Ravi Kumar"}
        assert sink.submission_count == 2
        assert not hasattr(sink, "submissions")
