"""
Tests for default answer synthesis.
"""

from dynamic_form.engine.defaults import build_default_values, default_value_for


class TestDefaultValues:

    def test_one_entry_per_field(self, form):
        """Test defaults hold exactly the form's field ids."""
        defaults = build_default_values(form.sections)
        assert list(defaults.keys()) == form.field_ids

    def test_checkbox_defaults_false_others_empty(self, form):
        defaults = build_default_values(form.sections)

        for field in form.all_fields:
            if field.is_checkbox:
                assert defaults[field.field_id] is False
            else:
                assert defaults[field.field_id] == ""

    def test_default_value_for_single_field(self, form):
        assert default_value_for(form.get_field("terms")) is False
        assert default_value_for(form.get_field("course")) == ""

    def test_fresh_map_each_call(self, form):
        first = build_default_values(form.sections)
        first["fullName"] = "changed"
        assert build_default_values(form.sections)["fullName"] == ""
