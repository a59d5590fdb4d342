"""
Console runner for Dynamic Form.

Drives one login and form-filling session in the terminal, using a local
descriptor file or the remote form service.

Usage:
    dynamic-form --file sample_forms/student_registration.yaml
    dynamic-form --roll-number 21CS042 --name "Asha Rao"
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Callable, Optional

from .config.settings import get_config
from .engine.form_engine import FormEngine
from .engine.renderer import FieldBinding, RenderedField, WidgetKind, render_form_view
from .orchestrator import FormSession, FormSessionManager, SessionError
from .schemas.state_schemas import ValidationMode
from .services.file_source import FileFormSource
from .services.form_api import FormApiClient, FormApiError

logger = logging.getLogger(__name__)

InputFunc = Callable[[str], str]


def parse_widget_input(field: RenderedField, raw: str) -> Any:
    """Convert typed text into the value a widget would produce."""
    if field.widget == WidgetKind.CHECKBOX:
        return raw.strip().lower() in ("y", "yes", "true", "1", "x")
    if field.widget in (WidgetKind.SELECT, WidgetKind.RADIO_GROUP) and raw.strip().isdigit():
        index = int(raw.strip()) - 1
        if 0 <= index < len(field.options):
            return field.options[index].value
    return raw


def prompt_field(engine: FormEngine, field: RenderedField, input_func: InputFunc = input) -> None:
    """Ask for one field's value; an empty answer keeps the current value."""
    marker = " *" if field.required else ""
    print(f"\n{field.label}{marker}")
    for number, option in enumerate(field.options, start=1):
        print(f"  {number}. {option.label}")
    if field.placeholder:
        print(f"  ({field.placeholder})")
    if field.widget == WidgetKind.CHECKBOX:
        print("  [y/n]")

    raw = input_func(f"  [{field.value!r}] > ")
    if raw == "":
        return

    result = FieldBinding(engine, field.field_id).on_change(parse_widget_input(field, raw))
    if result is not None and not result.valid:
        print(f"  ! {result.message}")


def print_messages(session: FormSession) -> None:
    for notification in session.notifier.drain():
        print(f"\n[{notification.level.upper()}] {notification.message}")
    for effect in session.ui_effects.drain():
        logger.debug(f"UI effect requested: {effect.effect} {effect.field_id or ''}")


def run_form(session: FormSession, engine: FormEngine, input_func: InputFunc = input) -> bool:
    """
    Fill the form section by section until a successful submission or quit.

    Returns:
        True if the form was submitted
    """
    while True:
        view = render_form_view(engine)
        print("\n" + "=" * 60)
        print(view.title)
        print(f"{view.section_label} | {view.progress:.0f}% complete")
        print(view.section_title)
        if view.section_description:
            print(view.section_description)
        print("=" * 60)

        for field in view.fields:
            prompt_field(engine, field, input_func)

        actions = "[n]ext" if view.primary_action == "next" else "[s]ubmit"
        if view.can_go_back:
            actions = "[p]revious / " + actions
        choice = input_func(f"\n{actions} / [q]uit > ").strip().lower()

        if choice.startswith("q"):
            return False
        if choice.startswith("p") and view.can_go_back:
            engine.navigate_prev()
        elif view.primary_action == "next":
            engine.navigate_next()
        else:
            result = engine.submit()
            if result.submitted:
                print_messages(session)
                print("\nCollected Form Data:")
                print(json.dumps(result.answers, indent=2, default=str))
                return True

        print_messages(session)


async def start_session(
    manager: FormSessionManager,
    roll_number: Optional[str],
    name: Optional[str],
    input_func: InputFunc = input,
):
    """Log in and load the form; returns the session and its engine."""
    roll_number = roll_number or input_func("Roll Number: ").strip()
    name = name or input_func("Name: ").strip()

    session = await manager.register_user(roll_number, name)
    engine = await manager.load_form(session.session_id)
    return session, engine


def build_manager(descriptor_file: Optional[str], mode: Optional[str]) -> FormSessionManager:
    config = get_config()
    engine_config = config.engine
    if mode:
        engine_config = engine_config.model_copy(update={"validation_mode": ValidationMode(mode).value})

    descriptor_file = descriptor_file or config.form_api.descriptor_file
    if descriptor_file:
        return FormSessionManager(FileFormSource(descriptor_file), engine_config=engine_config)

    client = FormApiClient(config.form_api)
    return FormSessionManager(client, user_registry=client, engine_config=engine_config)


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the console runner."""
    parser = argparse.ArgumentParser(description="Fill a dynamic form in the terminal")
    parser.add_argument("--file", help="Local JSON/YAML form descriptor")
    parser.add_argument("--roll-number", help="Roll number to log in with")
    parser.add_argument("--name", help="Name to log in with")
    parser.add_argument("--mode", choices=[m.value for m in ValidationMode], help="Validation mode")
    args = parser.parse_args(argv)

    config = get_config()
    logging.basicConfig(level=config.logging.level, format=config.logging.format)

    manager = build_manager(args.file, args.mode)
    try:
        session, engine = asyncio.run(start_session(manager, args.roll_number, args.name))
    except (SessionError, FormApiError, ValueError) as e:
        logger.error(f"Could not start form session: {e}")
        print(f"Error: {e}")
        return 1

    try:
        submitted = run_form(session, engine)
    except KeyboardInterrupt:
        print("\nStopped by user")
        return 130

    return 0 if submitted else 1


if __name__ == "__main__":
    sys.exit(main())
