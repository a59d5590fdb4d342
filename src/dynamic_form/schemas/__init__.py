"""
Pydantic schemas for form descriptors and form engine state.
"""

from .form_schemas import (
    CHOICE_FIELD_TYPES,
    FieldOption,
    FieldType,
    FieldValidation,
    Form,
    FormDescriptorError,
    FormField,
    FormResponse,
    FormSection,
    User,
    parse_form_descriptor,
)
from .state_schemas import (
    AnswerMap,
    FieldValidationResult,
    FormState,
    NavigationResult,
    SubmissionResult,
    TransitionType,
    ValidationMode,
    ValidationState,
)

__all__ = [
    # Descriptor model
    "CHOICE_FIELD_TYPES",
    "FieldOption",
    "FieldType",
    "FieldValidation",
    "Form",
    "FormDescriptorError",
    "FormField",
    "FormResponse",
    "FormSection",
    "User",
    "parse_form_descriptor",

    # Engine state
    "AnswerMap",
    "FieldValidationResult",
    "FormState",
    "NavigationResult",
    "SubmissionResult",
    "TransitionType",
    "ValidationMode",
    "ValidationState",
]
