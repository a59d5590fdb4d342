"""
Form engine: schema compilation, default answers, the section state machine and
renderer dispatch.
"""

from .defaults import build_default_values, default_value_for
from .form_engine import FormEngine, FormEngineError, UnknownFieldError
from .renderer import (
    WIDGET_REGISTRY,
    FieldBinding,
    FormView,
    RenderedField,
    RenderedOption,
    WidgetKind,
    render_field,
    render_form_view,
    render_section,
    widget_for,
)
from .schema_compiler import (
    CompiledValidator,
    FieldRule,
    clear_validator_cache,
    compile_field_rule,
    compile_schema,
    get_compiled_validator,
)

__all__ = [
    "build_default_values",
    "default_value_for",
    "FormEngine",
    "FormEngineError",
    "UnknownFieldError",
    "WIDGET_REGISTRY",
    "FieldBinding",
    "FormView",
    "RenderedField",
    "RenderedOption",
    "WidgetKind",
    "render_field",
    "render_form_view",
    "render_section",
    "widget_for",
    "CompiledValidator",
    "FieldRule",
    "clear_validator_cache",
    "compile_field_rule",
    "compile_schema",
    "get_compiled_validator",
]
