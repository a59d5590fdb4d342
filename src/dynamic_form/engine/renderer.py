"""
Field renderer dispatch and view projection.

Every field type maps to exactly one widget family. Rendering a field binds its
current value and error from the engine and routes changes back through
``FormEngine.update_field``; rendering the form produces a serializable view of
the current section with header and footer details.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..schemas.form_schemas import FieldType, FormField, FormSection
from ..schemas.state_schemas import FieldValidationResult
from .form_engine import FormEngine

logger = logging.getLogger(__name__)

SELECT_PLACEHOLDER = "Select an option"


class WidgetKind(str, Enum):
    """Widget families a field can be rendered as."""
    TEXT_INPUT = "text_input"
    TEXT_AREA = "text_area"
    DATE_PICKER = "date_picker"
    SELECT = "select"
    RADIO_GROUP = "radio_group"
    CHECKBOX = "checkbox"


# FieldType -> (widget family, HTML input type where one applies)
WIDGET_REGISTRY: Dict[FieldType, tuple] = {
    FieldType.SHORT_TEXT: (WidgetKind.TEXT_INPUT, "text"),
    FieldType.EMAIL: (WidgetKind.TEXT_INPUT, "email"),
    FieldType.PHONE: (WidgetKind.TEXT_INPUT, "tel"),
    FieldType.LONG_TEXT: (WidgetKind.TEXT_AREA, None),
    FieldType.DATE: (WidgetKind.DATE_PICKER, "date"),
    FieldType.SINGLE_SELECT: (WidgetKind.SELECT, None),
    FieldType.RADIO_CHOICE: (WidgetKind.RADIO_GROUP, None),
    FieldType.BOOLEAN_CHECKBOX: (WidgetKind.CHECKBOX, "checkbox"),
}


def widget_for(field_type: FieldType) -> WidgetKind:
    """Widget family for a field type."""
    try:
        return WIDGET_REGISTRY[field_type][0]
    except KeyError:
        raise ValueError(f"No widget registered for field type: {field_type}")


class FieldBinding:
    """Two-way binding between a widget and one engine answer."""

    def __init__(self, engine: FormEngine, field_id: str):
        self.engine = engine
        self.field_id = field_id

    @property
    def value(self) -> Any:
        return self.engine.get_value(self.field_id)

    @property
    def error(self) -> Optional[str]:
        return self.engine.get_error(self.field_id)

    def on_change(self, value: Any) -> Optional[FieldValidationResult]:
        return self.engine.update_field(self.field_id, value)


class RenderedOption(BaseModel):
    value: str
    label: str
    data_test_id: Optional[str] = None
    selected: bool = False


class RenderedField(BaseModel):
    """Widget description for one field, with its bound value and error."""

    field_id: str
    widget: WidgetKind
    input_type: Optional[str] = None
    label: str
    placeholder: Optional[str] = None
    required: bool = False
    value: Any = None
    error: Optional[str] = None
    data_test_id: Optional[str] = None
    options: List[RenderedOption] = Field(default_factory=list)


def render_field(field: FormField, engine: FormEngine) -> RenderedField:
    """
    Render one field against the engine's current state.

    Select and radio fields get one option per descriptor option, in declared
    order. Select placeholders default to "Select an option".
    """
    widget, input_type = WIDGET_REGISTRY[field.type]
    binding = FieldBinding(engine, field.field_id)
    value = binding.value

    placeholder = field.placeholder
    if widget == WidgetKind.SELECT and not placeholder:
        placeholder = SELECT_PLACEHOLDER

    options = [
        RenderedOption(
            value=option.value,
            label=option.label,
            data_test_id=option.data_test_id,
            selected=(value == option.value),
        )
        for option in field.options or []
    ]

    return RenderedField(
        field_id=field.field_id,
        widget=widget,
        input_type=input_type,
        label=field.label,
        placeholder=placeholder,
        required=field.required,
        value=value,
        error=binding.error,
        data_test_id=field.data_test_id,
        options=options,
    )


def render_section(section: FormSection, engine: FormEngine) -> List[RenderedField]:
    return [render_field(field, engine) for field in section.fields]


class FormView(BaseModel):
    """Serializable projection of the engine's current section."""

    session_id: str
    title: str
    form_id: str
    section_index: int
    section_count: int
    section_label: str
    section_title: str
    section_description: str = ""
    progress: float
    fields: List[RenderedField]
    can_go_back: bool
    primary_action: str = Field(..., description="'next' or 'submit'")
    primary_label: str


def render_form_view(engine: FormEngine) -> FormView:
    """
    Project the engine state into a view of the current section.

    The title reads "<formTitle> (v<version>)"; the footer offers Previous unless
    on the first section and Submit instead of Next on the last one.
    """
    form = engine.form
    section = engine.current_section
    index = engine.section_index
    is_last = engine.is_last_section

    return FormView(
        session_id=engine.session_id,
        title=f"{form.form_title} (v{form.version})",
        form_id=form.form_id,
        section_index=index,
        section_count=engine.section_count,
        section_label=f"Section {index + 1} of {engine.section_count}",
        section_title=section.title,
        section_description=section.description,
        progress=engine.progress,
        fields=render_section(section, engine),
        can_go_back=not engine.is_first_section,
        primary_action="submit" if is_last else "next",
        primary_label="Submit" if is_last else "Next",
    )
