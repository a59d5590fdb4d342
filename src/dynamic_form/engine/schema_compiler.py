"""
Schema Compiler for Dynamic Forms.

This module turns a form description into a compiled validator: one rule per field,
selected by the field's declared type. Rules are a closed set of variants tagged by
``kind``; each variant carries its own evaluator, and optionality is decided once at
compile time instead of being inferred from the rule afterwards.

Features:
- Tagged rule variants (text, email, phone, date, choice, checkbox)
- Per-field message override that wins over every built-in message
- Single-field, subset and whole-form evaluation
- Compiled validators memoized by descriptor identity
"""

import logging
import re
import weakref
from datetime import date, datetime
from typing import Annotated, Any, Callable, Dict, Iterable, List, Literal, Optional, Sequence, Tuple, Union

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field

from ..schemas.form_schemas import FieldType, Form, FormField, FormSection
from ..schemas.state_schemas import AnswerMap, FieldValidationResult, ValidationState

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"[\d\s\-()+]*", re.ASCII)
DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)

TodayProvider = Callable[[], date]


class _BaseRule(BaseModel):
    """Shared shape and empty-value policy of every text-valued rule."""

    model_config = ConfigDict(frozen=True)

    field_id: str
    label: str
    optional: bool = Field(..., description="True when the field may be left unanswered")
    message_override: Optional[str] = None

    def message(self, default: str) -> str:
        return self.message_override or default

    def evaluate(self, value: Any, today: date) -> Optional[str]:
        """Return an error message, or None when ``value`` passes."""
        if value is None:
            value = ""
        if not isinstance(value, str):
            return self.message(f"{self.label} must be text")
        if value == "":
            return None if self.optional else self.message(f"{self.label} is required")
        return self.evaluate_text(value, today)

    def evaluate_text(self, value: str, today: date) -> Optional[str]:
        return None

    def _check_length(self, value: str, min_length: Optional[int], max_length: Optional[int]) -> Optional[str]:
        if min_length is not None and len(value) < min_length:
            return self.message(f"{self.label} must be at least {min_length} characters")
        if max_length is not None and len(value) > max_length:
            return self.message(f"{self.label} cannot exceed {max_length} characters")
        return None


class TextRule(_BaseRule):
    """Short and long free text."""

    kind: Literal["text"] = "text"
    min_length: Optional[int] = None
    max_length: Optional[int] = None

    def evaluate_text(self, value: str, today: date) -> Optional[str]:
        return self._check_length(value, self.min_length, self.max_length)


class EmailRule(_BaseRule):
    kind: Literal["email"] = "email"

    def evaluate_text(self, value: str, today: date) -> Optional[str]:
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            return self.message("Invalid email address")
        return None


class PhoneRule(_BaseRule):
    """Digits, spaces, hyphens, parentheses and plus signs."""

    kind: Literal["phone"] = "phone"
    min_length: Optional[int] = None
    max_length: Optional[int] = None

    def evaluate_text(self, value: str, today: date) -> Optional[str]:
        if not PHONE_PATTERN.fullmatch(value):
            return self.message("Invalid phone number format")
        return self._check_length(value, self.min_length, self.max_length)


class DateRule(_BaseRule):
    """ISO ``YYYY-MM-DD`` calendar dates no later than today."""

    kind: Literal["date"] = "date"

    def evaluate_text(self, value: str, today: date) -> Optional[str]:
        if not DATE_PATTERN.fullmatch(value):
            return self.message("Invalid date format (YYYY-MM-DD)")
        try:
            parsed = datetime.strptime(value, "%Y-%m-%d").date()
        except ValueError:
            return self.message(f"{self.label} is not a valid date")
        if parsed > today:
            return self.message(f"{self.label} cannot be in the future")
        return None


class ChoiceRule(_BaseRule):
    """
    Dropdown and radio answers.

    Membership in ``option_values`` is not enforced; values outside the declared
    options are only logged.
    """

    kind: Literal["choice"] = "choice"
    option_values: Tuple[str, ...] = ()

    def evaluate_text(self, value: str, today: date) -> Optional[str]:
        if self.option_values and value not in self.option_values:
            logger.debug(f"Field '{self.field_id}' holds '{value}' which is not one of its declared options")
        return None


class CheckboxRule(_BaseRule):
    """Single boolean checkbox; a required checkbox must be ticked."""

    kind: Literal["checkbox"] = "checkbox"

    def evaluate(self, value: Any, today: date) -> Optional[str]:
        if value is None:
            value = False
        if not isinstance(value, bool):
            return self.message(f"{self.label} must be true or false")
        if not self.optional and value is not True:
            return self.message(f"{self.label} is required")
        return None


FieldRule = Annotated[
    Union[TextRule, EmailRule, PhoneRule, DateRule, ChoiceRule, CheckboxRule],
    Field(discriminator="kind"),
]


def compile_field_rule(field: FormField) -> FieldRule:
    """
    Build the rule variant for a single field descriptor.

    Args:
        field: Field descriptor

    Returns:
        Rule variant matching the field's type
    """
    common = {
        "field_id": field.field_id,
        "label": field.label,
        "optional": not field.required,
        "message_override": field.validation_message,
    }

    if field.type in (FieldType.SHORT_TEXT, FieldType.LONG_TEXT):
        return TextRule(min_length=field.min_length, max_length=field.max_length, **common)
    if field.type == FieldType.EMAIL:
        return EmailRule(**common)
    if field.type == FieldType.PHONE:
        return PhoneRule(min_length=field.min_length, max_length=field.max_length, **common)
    if field.type == FieldType.DATE:
        return DateRule(**common)
    if field.type in (FieldType.SINGLE_SELECT, FieldType.RADIO_CHOICE):
        return ChoiceRule(option_values=tuple(field.option_values), **common)
    if field.type == FieldType.BOOLEAN_CHECKBOX:
        return CheckboxRule(**common)
    raise ValueError(f"Unsupported field type: {field.type}")


class CompiledValidator:
    """
    Validator compiled from a form description.

    Holds one rule per fieldId in descriptor order. Evaluation is pure: it never
    mutates the answers it is given.
    """

    def __init__(self, rules: Dict[str, FieldRule], today_provider: Optional[TodayProvider] = None):
        self.rules = rules
        self.today_provider = today_provider or date.today

    @property
    def field_ids(self) -> List[str]:
        return list(self.rules.keys())

    def has_field(self, field_id: str) -> bool:
        return field_id in self.rules

    def is_optional(self, field_id: str) -> bool:
        return self.rules[field_id].optional

    def validate_field(self, field_id: str, value: Any, today: Optional[date] = None) -> FieldValidationResult:
        """
        Evaluate one field's rule against a value.

        Raises:
            KeyError: If the field is not part of the compiled form
        """
        rule = self.rules[field_id]
        message = rule.evaluate(value, today or self.today_provider())
        if message is None:
            return FieldValidationResult.ok(field_id)
        return FieldValidationResult.error(field_id, message)

    def validate_fields(self, answers: AnswerMap, field_ids: Iterable[str]) -> ValidationState:
        """Evaluate a subset of fields; missing answers count as unanswered."""
        today = self.today_provider()
        return {
            field_id: self.validate_field(field_id, answers.get(field_id), today)
            for field_id in field_ids
        }

    def validate_all(self, answers: AnswerMap) -> ValidationState:
        return self.validate_fields(answers, self.rules.keys())

    @staticmethod
    def is_valid(results: ValidationState) -> bool:
        return all(result.valid for result in results.values())

    @staticmethod
    def errors_of(results: ValidationState) -> Dict[str, str]:
        return {field_id: result.message for field_id, result in results.items() if not result.valid}


def compile_schema(sections: Sequence[FormSection], today_provider: Optional[TodayProvider] = None) -> CompiledValidator:
    """
    Compile the rules of every field in every section.

    Args:
        sections: Ordered section descriptors
        today_provider: Callable returning today's local date (defaults to ``date.today``)

    Returns:
        CompiledValidator keyed by fieldId in descriptor order
    """
    rules: Dict[str, FieldRule] = {}
    for section in sections:
        for field in section.fields:
            rules[field.field_id] = compile_field_rule(field)

    logger.debug(f"Compiled {len(rules)} field rules from {len(sections)} sections")
    return CompiledValidator(rules, today_provider=today_provider)


# Compiled validators keyed by id(form); entries are evicted when the form is collected
_validator_cache: Dict[int, CompiledValidator] = {}


def get_compiled_validator(form: Form) -> CompiledValidator:
    """
    Get the compiled validator for a form, compiling it on first use.

    The cache key is the descriptor's identity, so an equal but distinct Form
    instance is compiled again.
    """
    key = id(form)
    validator = _validator_cache.get(key)
    if validator is None:
        validator = compile_schema(form.sections)
        _validator_cache[key] = validator
        weakref.finalize(form, _validator_cache.pop, key, None)
        logger.info(f"Compiled validator for form '{form.form_id}' v{form.version}")
    return validator


def clear_validator_cache() -> None:
    """Drop every memoized validator."""
    _validator_cache.clear()
