"""
Default-value synthesis for form answers.
"""

import logging
from typing import Any, Sequence

from ..schemas.form_schemas import FieldType, FormField, FormSection
from ..schemas.state_schemas import AnswerMap

logger = logging.getLogger(__name__)


def default_value_for(field: FormField) -> Any:
    """Unanswered value of a field: False for checkboxes, empty string otherwise."""
    return False if field.type == FieldType.BOOLEAN_CHECKBOX else ""


def build_default_values(sections: Sequence[FormSection]) -> AnswerMap:
    """
    Build an answer map holding every field of the form at its default value.

    Args:
        sections: Ordered section descriptors

    Returns:
        Fresh dictionary with exactly one entry per fieldId
    """
    defaults: AnswerMap = {}
    for section in sections:
        for field in section.fields:
            defaults[field.field_id] = default_value_for(field)

    logger.debug(f"Synthesized defaults for {len(defaults)} fields")
    return defaults
