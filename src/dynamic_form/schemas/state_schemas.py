"""
Form Engine State Schema Definitions.

This module provides the state and result schemas the form engine works with:
the live answer map, the derived validation state, the navigation position and
the outcomes of navigation and submission transitions.

Features:
- Section index bounds enforced against the section count
- Per-field validation results (valid or carrying a message)
- Transition results describing what moved and why
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator


AnswerMap = Dict[str, Any]


# Enums
class ValidationMode(str, Enum):
    """When field-level validation runs on update."""
    ON_CHANGE = "onChange"
    ON_SUBMIT = "onSubmit"


class TransitionType(str, Enum):
    """Engine transitions, used for logging and results."""
    UPDATE_FIELD = "update_field"
    NAVIGATE_NEXT = "navigate_next"
    NAVIGATE_PREV = "navigate_prev"
    SUBMIT = "submit"
    RESET = "reset"


class FieldValidationResult(BaseModel):
    """Outcome of evaluating one field's compiled rule."""

    field_id: str = Field(..., description="Field the result belongs to")
    valid: bool = Field(..., description="Whether the value satisfied every rule")
    message: Optional[str] = Field(None, description="Error message when invalid")

    @model_validator(mode='after')
    def validate_message_presence(self):
        if not self.valid and not self.message:
            raise ValueError("Invalid field results must carry a message")
        if self.valid and self.message is not None:
            raise ValueError("Valid field results cannot carry a message")
        return self

    @classmethod
    def ok(cls, field_id: str) -> "FieldValidationResult":
        return cls(field_id=field_id, valid=True)

    @classmethod
    def error(cls, field_id: str, message: str) -> "FieldValidationResult":
        return cls(field_id=field_id, valid=False, message=message)


ValidationState = Dict[str, FieldValidationResult]


class FormState(BaseModel):
    """
    Live state of one form-filling session.

    Features:
    - Section index bounded by the section count
    - Answer map keyed by fieldId
    - Validation state only for fields evaluated so far
    """

    session_id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Session identifier used for log correlation"
    )
    section_count: int = Field(..., ge=1, description="Number of sections in the form")
    section_index: int = Field(0, ge=0, description="0-based index of the current section")
    answers: AnswerMap = Field(default_factory=dict, description="fieldId -> current value")
    validation: ValidationState = Field(
        default_factory=dict,
        description="fieldId -> result of the last evaluation"
    )
    submission_count: int = Field(0, ge=0, description="Successful submissions in this session")
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="State creation timestamp (UTC)"
    )

    model_config = {"validate_assignment": True}

    @model_validator(mode='after')
    def validate_section_index(self):
        if self.section_index >= self.section_count:
            raise ValueError(
                f"Section index ({self.section_index}) must be lower than section count ({self.section_count})"
            )
        return self

    @property
    def is_first_section(self) -> bool:
        return self.section_index == 0

    @property
    def is_last_section(self) -> bool:
        return self.section_index == self.section_count - 1

    @property
    def errors(self) -> Dict[str, str]:
        """Messages of every field currently failing validation."""
        return {
            field_id: result.message
            for field_id, result in self.validation.items()
            if not result.valid
        }


class NavigationResult(BaseModel):
    """Outcome of a navigate-next or navigate-prev transition."""

    transition: TransitionType
    moved: bool = Field(..., description="Whether the section index changed")
    from_index: int = Field(..., ge=0)
    to_index: int = Field(..., ge=0)
    errors: Dict[str, str] = Field(
        default_factory=dict,
        description="Failing fields of the section that blocked the move"
    )

    @property
    def blocked_by_validation(self) -> bool:
        return bool(self.errors)


class SubmissionResult(BaseModel):
    """Outcome of a submit transition."""

    submitted: bool = Field(..., description="Whether the answers passed validation and were handed off")
    answers: Optional[AnswerMap] = Field(None, description="Submitted answers when successful")
    errors: Dict[str, str] = Field(default_factory=dict, description="Failing fields across the form")
    first_invalid_section: Optional[int] = Field(
        None,
        ge=0,
        description="Lowest section index holding an invalid field"
    )
    section_index: int = Field(..., ge=0, description="Section index after the transition")

    @property
    def invalid_field_ids(self) -> List[str]:
        return list(self.errors.keys())
