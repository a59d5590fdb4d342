"""
Form Descriptor Schema Definitions.

This module provides the typed shape of a form description as it arrives from the
form service: forms made of ordered sections, sections made of ordered fields, and
fields carrying their own validation settings.

Features:
- Closed set of field types mapped to their wire names
- camelCase wire aliases with snake_case attribute access
- Structural invariants (global fieldId uniqueness, options for choice fields)
- Single entry point for parsing untrusted descriptor payloads
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


class FormDescriptorError(ValueError):
    """Raised when a form description is missing required structure."""
    pass


# Enums
class FieldType(str, Enum):
    """Supported field types, valued by their wire names."""
    SHORT_TEXT = "text"
    LONG_TEXT = "textarea"
    EMAIL = "email"
    PHONE = "tel"
    DATE = "date"
    SINGLE_SELECT = "dropdown"
    RADIO_CHOICE = "radio"
    BOOLEAN_CHECKBOX = "checkbox"


CHOICE_FIELD_TYPES = frozenset({FieldType.SINGLE_SELECT, FieldType.RADIO_CHOICE})
LENGTH_LIMITED_FIELD_TYPES = frozenset({FieldType.SHORT_TEXT, FieldType.LONG_TEXT, FieldType.PHONE})


class _DescriptorModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class FieldOption(_DescriptorModel):
    """Single selectable option of a dropdown or radio field."""

    value: str = Field(..., description="Value stored in the answer map when selected")
    label: str = Field(..., description="Human-readable option label")
    data_test_id: Optional[str] = Field(None, alias="dataTestId")


class FieldValidation(_DescriptorModel):
    """Validation overrides attached to a field."""

    message: str = Field(..., description="Message replacing every built-in error message")


class FormField(_DescriptorModel):
    """
    Declarative description of a single form field.

    The ``validation.message`` override may also arrive as a flat
    ``validationMessage`` key.
    """

    field_id: str = Field(..., min_length=1, alias="fieldId")
    type: FieldType
    label: str
    placeholder: Optional[str] = None
    required: bool = False
    data_test_id: Optional[str] = Field(None, alias="dataTestId")
    validation: Optional[FieldValidation] = None
    options: Optional[List[FieldOption]] = None
    min_length: Optional[int] = Field(None, ge=0, alias="minLength")
    max_length: Optional[int] = Field(None, ge=0, alias="maxLength")

    @model_validator(mode="before")
    @classmethod
    def lift_flat_validation_message(cls, data: Any) -> Any:
        """Accept ``validationMessage`` as shorthand for ``validation.message``."""
        if isinstance(data, dict) and data.get("validationMessage") and not data.get("validation"):
            data = {**data, "validation": {"message": data["validationMessage"]}}
        return data

    @model_validator(mode="after")
    def validate_field_shape(self):
        if self.type in CHOICE_FIELD_TYPES and not self.options:
            raise ValueError(f"Field '{self.field_id}' of type '{self.type.value}' requires at least one option")
        if (
            self.min_length is not None
            and self.max_length is not None
            and self.min_length > self.max_length
        ):
            raise ValueError(
                f"Field '{self.field_id}' has minLength ({self.min_length}) greater than maxLength ({self.max_length})"
            )
        return self

    @property
    def validation_message(self) -> Optional[str]:
        """Per-field override for the default error text, if any."""
        return self.validation.message if self.validation else None

    @property
    def is_checkbox(self) -> bool:
        return self.type == FieldType.BOOLEAN_CHECKBOX

    @property
    def is_choice(self) -> bool:
        return self.type in CHOICE_FIELD_TYPES

    @property
    def option_values(self) -> List[str]:
        return [option.value for option in self.options or []]


class FormSection(_DescriptorModel):
    """Ordered group of fields shown together on one step."""

    section_id: Union[int, str] = Field(..., alias="sectionId")
    title: str
    description: str = ""
    fields: List[FormField] = Field(..., min_length=1)

    @property
    def field_ids(self) -> List[str]:
        return [field.field_id for field in self.fields]


class Form(_DescriptorModel):
    """
    Complete form description.

    Treated as immutable for the lifetime of a form-filling session; a new
    instance means a new compiled validator and new default answers.
    """

    form_title: str = Field(..., alias="formTitle")
    form_id: str = Field(..., alias="formId")
    version: str
    sections: List[FormSection] = Field(..., min_length=1)

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, v):
        """Versions are sometimes sent as bare numbers."""
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @model_validator(mode="after")
    def validate_unique_field_ids(self):
        """Answers are keyed globally, so fieldId must be unique across sections."""
        seen: Dict[str, Union[int, str]] = {}
        for section in self.sections:
            for field in section.fields:
                if field.field_id in seen:
                    raise ValueError(
                        f"Duplicate fieldId '{field.field_id}' in sections "
                        f"{seen[field.field_id]!r} and {section.section_id!r}"
                    )
                seen[field.field_id] = section.section_id
        return self

    @property
    def section_count(self) -> int:
        return len(self.sections)

    @property
    def all_fields(self) -> List[FormField]:
        return [field for section in self.sections for field in section.fields]

    @property
    def field_ids(self) -> List[str]:
        return [field.field_id for field in self.all_fields]

    def get_field(self, field_id: str) -> Optional[FormField]:
        for field in self.all_fields:
            if field.field_id == field_id:
                return field
        return None

    def section_index_of(self, field_id: str) -> Optional[int]:
        """Index of the section holding ``field_id``, or None."""
        for index, section in enumerate(self.sections):
            if field_id in section.field_ids:
                return index
        return None


class FormResponse(_DescriptorModel):
    """Envelope returned by the form service's get-form endpoint."""

    message: str = ""
    form: Form


class User(_DescriptorModel):
    """Registration details entered on the login screen."""

    roll_number: str = Field(..., alias="rollNumber")
    name: str

    @field_validator("roll_number")
    @classmethod
    def validate_roll_number(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Roll Number is required")
        return v.strip()

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


def parse_form_descriptor(payload: Any) -> Form:
    """
    Parse an untrusted descriptor payload into a ``Form``.

    Args:
        payload: Decoded JSON object (or an already built ``Form``)

    Returns:
        Validated Form

    Raises:
        FormDescriptorError: If the payload is not a form or breaks a structural invariant
    """
    if isinstance(payload, Form):
        return payload
    if not isinstance(payload, dict):
        raise FormDescriptorError("Invalid form structure: expected an object")
    if not isinstance(payload.get("sections"), list):
        raise FormDescriptorError("Invalid form structure: missing sections array")
    try:
        return Form.model_validate(payload)
    except ValidationError as e:
        raise FormDescriptorError(f"Invalid form structure: {e}") from e
