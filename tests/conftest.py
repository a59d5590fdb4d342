"""
Shared fixtures for the Dynamic Form test suite.
"""

from datetime import date
from typing import Any, Dict

import pytest

from dynamic_form.config.settings import EngineConfig
from dynamic_form.engine.form_engine import FormEngine
from dynamic_form.engine.schema_compiler import clear_validator_cache
from dynamic_form.schemas.form_schemas import Form, parse_form_descriptor
from dynamic_form.services.notifications import (
    LoggingSubmissionSink,
    RecordingNotificationChannel,
    RecordingUIEffects,
)

FIXED_TODAY = date(2024, 6, 15)


def make_form_payload() -> Dict[str, Any]:
    """Three-section descriptor using every field type."""
    return {
        "formTitle": "Student Registration",
        "formId": "student-registration",
        "version": "2",
        "sections": [
            {
                "sectionId": 1,
                "title": "Personal Details",
                "description": "Tell us about yourself.",
                "fields": [
                    {
                        "fieldId": "fullName",
                        "type": "text",
                        "label": "Full Name",
                        "placeholder": "Enter your full name",
                        "required": True,
                        "dataTestId": "full-name-input",
                        "minLength": 2,
                        "maxLength": 10,
                    },
                    {
                        "fieldId": "dob",
                        "type": "date",
                        "label": "Date of Birth",
                        "required": True,
                        "dataTestId": "dob-input",
                    },
                    {
                        "fieldId": "gender",
                        "type": "radio",
                        "label": "Gender",
                        "required": True,
                        "dataTestId": "gender-radio",
                        "options": [
                            {"value": "male", "label": "Male", "dataTestId": "gender-male"},
                            {"value": "female", "label": "Female", "dataTestId": "gender-female"},
                        ],
                    },
                ],
            },
            {
                "sectionId": 2,
                "title": "Contact Information",
                "description": "How can we reach you?",
                "fields": [
                    {
                        "fieldId": "email",
                        "type": "email",
                        "label": "Email Address",
                        "required": True,
                        "dataTestId": "email-input",
                    },
                    {
                        "fieldId": "phone",
                        "type": "tel",
                        "label": "Phone Number",
                        "required": False,
                        "dataTestId": "phone-input",
                        "minLength": 10,
                        "maxLength": 15,
                    },
                    {
                        "fieldId": "bio",
                        "type": "textarea",
                        "label": "Bio",
                        "required": False,
                        "dataTestId": "bio-input",
                        "maxLength": 20,
                    },
                ],
            },
            {
                "sectionId": 3,
                "title": "Preferences",
                "description": "",
                "fields": [
                    {
                        "fieldId": "course",
                        "type": "dropdown",
                        "label": "Preferred Course",
                        "required": True,
                        "dataTestId": "course-dropdown",
                        "options": [
                            {"value": "cse", "label": "Computer Science", "dataTestId": "course-cse"},
                            {"value": "ece", "label": "Electronics", "dataTestId": "course-ece"},
                        ],
                    },
                    {
                        "fieldId": "newsletter",
                        "type": "checkbox",
                        "label": "Subscribe to newsletter",
                        "required": False,
                        "dataTestId": "newsletter-checkbox",
                    },
                    {
                        "fieldId": "terms",
                        "type": "checkbox",
                        "label": "Accept terms",
                        "required": True,
                        "dataTestId": "terms-checkbox",
                        "validation": {"message": "You must accept the terms"},
                    },
                ],
            },
        ],
    }


VALID_ANSWERS: Dict[str, Any] = {
    "fullName": "Asha Rao",
    "dob": "2000-01-31",
    "gender": "female",
    "email": "asha.rao@gmail.com",
    "phone": "+91 98765 43210",
    "bio": "",
    "course": "cse",
    "newsletter": False,
    "terms": True,
}


@pytest.fixture(autouse=True)
def reset_validator_cache():
    clear_validator_cache()
    yield
    clear_validator_cache()


@pytest.fixture
def form_payload() -> Dict[str, Any]:
    return make_form_payload()


@pytest.fixture
def form(form_payload) -> Form:
    return parse_form_descriptor(form_payload)


@pytest.fixture
def today_provider():
    return lambda: FIXED_TODAY


@pytest.fixture
def valid_answers() -> Dict[str, Any]:
    return dict(VALID_ANSWERS)


@pytest.fixture
def notifier() -> RecordingNotificationChannel:
    return RecordingNotificationChannel()


@pytest.fixture
def ui_effects() -> RecordingUIEffects:
    return RecordingUIEffects()


@pytest.fixture
def sink() -> LoggingSubmissionSink:
    return LoggingSubmissionSink()


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig(validation_mode="onChange")


@pytest.fixture
def engine(form, sink, notifier, ui_effects, engine_config, today_provider) -> FormEngine:
    return FormEngine(
        form,
        submission_sink=sink,
        notifier=notifier,
        ui_effects=ui_effects,
        config=engine_config,
        today_provider=today_provider,
    )


def fill_section(engine: FormEngine, answers: Dict[str, Any]) -> None:
    """Answer every field of the engine's current section from ``answers``."""
    for field_id in engine.current_section.field_ids:
        engine.update_field(field_id, answers[field_id])
