"""
Tests for renderer dispatch and the form view projection.
"""

import pytest

from dynamic_form.engine.renderer import (
    SELECT_PLACEHOLDER,
    WIDGET_REGISTRY,
    FieldBinding,
    WidgetKind,
    render_field,
    render_form_view,
    widget_for,
)
from dynamic_form.schemas.form_schemas import FieldType

from conftest import VALID_ANSWERS, fill_section


class TestWidgetDispatch:
    """Test each field type selects exactly one widget family."""

    def test_every_field_type_registered(self):
        assert set(WIDGET_REGISTRY) == set(FieldType)

    @pytest.mark.parametrize("field_type, widget", [
        (FieldType.SHORT_TEXT, WidgetKind.TEXT_INPUT),
        (FieldType.EMAIL, WidgetKind.TEXT_INPUT),
        (FieldType.PHONE, WidgetKind.TEXT_INPUT),
        (FieldType.LONG_TEXT, WidgetKind.TEXT_AREA),
        (FieldType.DATE, WidgetKind.DATE_PICKER),
        (FieldType.SINGLE_SELECT, WidgetKind.SELECT),
        (FieldType.RADIO_CHOICE, WidgetKind.RADIO_GROUP),
        (FieldType.BOOLEAN_CHECKBOX, WidgetKind.CHECKBOX),
    ])
    def test_widget_for(self, field_type, widget):
        assert widget_for(field_type) == widget

    def test_input_types(self):
        assert WIDGET_REGISTRY[FieldType.EMAIL][1] == "email"
        assert WIDGET_REGISTRY[FieldType.PHONE][1] == "tel"


class TestRenderField:
    """Test rendering a single field against engine state."""

    def test_text_field(self, engine, form):
        rendered = render_field(form.get_field("fullName"), engine)

        assert rendered.widget == WidgetKind.TEXT_INPUT
        assert rendered.input_type == "text"
        assert rendered.label == "Full Name"
        assert rendered.placeholder == "Enter your full name"
        assert rendered.required is True
        assert rendered.value == ""
        assert rendered.error is None
        assert rendered.data_test_id == "full-name-input"
        assert rendered.options == []

    def test_radio_options_in_declared_order(self, engine, form):
        engine.update_field("gender", "female")

        rendered = render_field(form.get_field("gender"), engine)

        assert rendered.widget == WidgetKind.RADIO_GROUP
        assert [o.value for o in rendered.options] == ["male", "female"]
        assert [o.data_test_id for o in rendered.options] == ["gender-male", "gender-female"]
        assert [o.selected for o in rendered.options] == [False, True]

    def test_select_default_placeholder(self, engine, form):
        rendered = render_field(form.get_field("course"), engine)
        assert rendered.widget == WidgetKind.SELECT
        assert rendered.placeholder == SELECT_PLACEHOLDER

    def test_checkbox_value(self, engine, form):
        rendered = render_field(form.get_field("terms"), engine)
        assert rendered.widget == WidgetKind.CHECKBOX
        assert rendered.value is False

    def test_error_carried_through(self, engine, form):
        engine.update_field("fullName", "A")
        rendered = render_field(form.get_field("fullName"), engine)
        assert rendered.value == "A"
        assert rendered.error == "Full Name must be at least 2 characters"

    def test_binding_routes_to_update_field(self, engine):
        binding = FieldBinding(engine, "email")

        result = binding.on_change("asha.rao@gmail.com")

        assert result.valid
        assert binding.value == "asha.rao@gmail.com"
        assert binding.error is None
        assert engine.get_value("email") == "asha.rao@gmail.com"


class TestFormView:
    """Test the header/footer projection of the current section."""

    def test_first_section_view(self, engine):
        view = render_form_view(engine)

        assert view.title == "Student Registration (v2)"
        assert view.section_label == "Section 1 of 3"
        assert view.section_title == "Personal Details"
        assert view.section_description == "Tell us about yourself."
        assert view.progress == pytest.approx(100 / 3)
        assert [f.field_id for f in view.fields] == ["fullName", "dob", "gender"]
        assert view.can_go_back is False
        assert view.primary_action == "next"
        assert view.primary_label == "Next"

    def test_last_section_offers_submit(self, engine):
        for _ in range(2):
            fill_section(engine, VALID_ANSWERS)
            engine.navigate_next()

        view = render_form_view(engine)

        assert view.section_label == "Section 3 of 3"
        assert view.progress == pytest.approx(100.0)
        assert view.can_go_back is True
        assert view.primary_action == "submit"
        assert view.primary_label == "Submit"

    def test_view_is_serializable(self, engine):
        data = render_form_view(engine).model_dump(mode="json")
        assert data["fields"][0]["widget"] == "text_input"
        assert data["session_id"] == engine.session_id
