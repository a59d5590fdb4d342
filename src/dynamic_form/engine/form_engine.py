"""
Form Engine for Dynamic Forms.

This module implements the state machine that drives a multi-step form: it owns the
answer map, the derived validation state and the current section, and exposes the
update-field, navigate-next, navigate-prev, submit and reset transitions.

Features:
- Section gating: forward navigation validates the current section only
- Backward navigation always allowed, never validated
- Whole-form submission that routes the user to the first invalid section
- Fire-and-forget collaborators for notifications, viewport effects and submission
- Reset to synthesized defaults after every successful submission
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Dict, Optional, Set, Union

from ..config.settings import EngineConfig, get_config
from ..schemas.form_schemas import Form, FormSection, parse_form_descriptor
from ..schemas.state_schemas import (
    AnswerMap,
    FieldValidationResult,
    FormState,
    NavigationResult,
    SubmissionResult,
    TransitionType,
    ValidationMode,
    ValidationState,
)
from ..services.interfaces import NotificationChannel, SubmissionSink, UIEffects
from ..services.notifications import LoggingNotificationChannel, LoggingSubmissionSink, NullUIEffects
from ..utils.transition_logger import log_transition
from .defaults import build_default_values
from .schema_compiler import CompiledValidator, TodayProvider, compile_schema, get_compiled_validator

logger = logging.getLogger(__name__)


class FormEngineError(Exception):
    """Base exception for form engine misuse."""
    pass


class UnknownFieldError(FormEngineError):
    """Raised when a transition names a field the form does not have."""
    pass


class FormEngine:
    """
    State machine for one form-filling session.

    The engine is long-lived: after a successful submission it cycles back to its
    initial state (first section, default answers, nothing evaluated).
    """

    def __init__(
        self,
        form: Union[Form, Dict[str, Any]],
        submission_sink: Optional[SubmissionSink] = None,
        notifier: Optional[NotificationChannel] = None,
        ui_effects: Optional[UIEffects] = None,
        validation_mode: Optional[Union[ValidationMode, str]] = None,
        config: Optional[EngineConfig] = None,
        today_provider: Optional[TodayProvider] = None,
        session_id: Optional[str] = None,
    ):
        """
        Initialize the engine for a form description.

        Args:
            form: Form descriptor, or its raw decoded payload
            submission_sink: Receives the answer map on successful submission
            notifier: Receives user-facing failure/success messages
            ui_effects: Receives scroll/focus requests
            validation_mode: Overrides the configured validation mode
            config: Engine settings (defaults to the application config)
            today_provider: Clock used by date rules (defaults to the local date)
            session_id: Identifier used for log correlation

        Raises:
            FormDescriptorError: If the descriptor is malformed
        """
        self.form = parse_form_descriptor(form)
        self.config = config or get_config().engine
        self.validation_mode = ValidationMode(validation_mode or self.config.validation_mode)

        if today_provider is not None:
            self.validator: CompiledValidator = compile_schema(self.form.sections, today_provider)
        else:
            self.validator = get_compiled_validator(self.form)

        self.submission_sink = submission_sink or LoggingSubmissionSink()
        self.notifier = notifier or LoggingNotificationChannel()
        self.ui_effects = ui_effects or NullUIEffects()
        self._pending_submissions: Set[asyncio.Task] = set()

        state_kwargs: Dict[str, Any] = {
            "section_count": self.form.section_count,
            "answers": build_default_values(self.form.sections),
        }
        if session_id:
            state_kwargs["session_id"] = session_id
        self.state = FormState(**state_kwargs)

        logger.info(
            f"Form engine initialized for form '{self.form.form_id}' v{self.form.version}: "
            f"{self.form.section_count} sections, {len(self.validator.field_ids)} fields, "
            f"mode={self.validation_mode.value}"
        )

    # Read accessors

    @property
    def session_id(self) -> str:
        return self.state.session_id

    @property
    def section_index(self) -> int:
        return self.state.section_index

    @property
    def section_count(self) -> int:
        return self.state.section_count

    @property
    def current_section(self) -> FormSection:
        return self.form.sections[self.state.section_index]

    @property
    def is_first_section(self) -> bool:
        return self.state.is_first_section

    @property
    def is_last_section(self) -> bool:
        return self.state.is_last_section

    @property
    def answers(self) -> AnswerMap:
        """Copy of the current answer map."""
        return dict(self.state.answers)

    @property
    def validation(self) -> ValidationState:
        return dict(self.state.validation)

    @property
    def errors(self) -> Dict[str, str]:
        return self.state.errors

    @property
    def progress(self) -> float:
        """Percentage of sections reached, counting the current one."""
        return (self.state.section_index + 1) / self.state.section_count * 100

    def get_value(self, field_id: str) -> Any:
        self._require_field(field_id)
        return self.state.answers.get(field_id)

    def get_error(self, field_id: str) -> Optional[str]:
        self._require_field(field_id)
        result = self.state.validation.get(field_id)
        return result.message if result is not None else None

    # Transitions

    def update_field(self, field_id: str, value: Any) -> Optional[FieldValidationResult]:
        """
        Set one answer.

        In onChange mode the field is re-evaluated immediately. In onSubmit mode only
        fields that a gate or submit already evaluated are re-evaluated.

        Returns:
            The new validation result, or None when the field was not evaluated

        Raises:
            UnknownFieldError: If the field is not part of the form
        """
        self._require_field(field_id)
        self.state.answers[field_id] = value

        previous = self.state.validation.get(field_id)
        should_validate = (
            self.validation_mode == ValidationMode.ON_CHANGE
            or previous is not None
        )
        if not should_validate:
            return None

        result = self.validator.validate_field(field_id, value)
        self.state.validation[field_id] = result
        logger.debug(f"Field '{field_id}' updated: valid={result.valid}")
        return result

    @log_transition(TransitionType.NAVIGATE_NEXT.value)
    def navigate_next(self) -> NavigationResult:
        """
        Advance to the next section if every field of the current one is valid.

        Fields of other sections are neither evaluated nor consulted.
        """
        from_index = self.state.section_index
        section = self.current_section
        results = self.validator.validate_fields(self.state.answers, section.field_ids)
        self.state.validation.update(results)
        errors = CompiledValidator.errors_of(results)

        if errors:
            logger.info(
                f"Section {from_index + 1} ('{section.title}') blocked: "
                f"{len(errors)} invalid field(s) {list(errors.keys())}"
            )
            self._notify(self.config.section_error_message)
            return NavigationResult(
                transition=TransitionType.NAVIGATE_NEXT,
                moved=False,
                from_index=from_index,
                to_index=from_index,
                errors=errors,
            )

        if self.state.is_last_section:
            logger.debug("navigate_next called on the last section; staying put")
            return NavigationResult(
                transition=TransitionType.NAVIGATE_NEXT,
                moved=False,
                from_index=from_index,
                to_index=from_index,
            )

        self.state.section_index = from_index + 1
        self._request_scroll_to_top()
        return NavigationResult(
            transition=TransitionType.NAVIGATE_NEXT,
            moved=True,
            from_index=from_index,
            to_index=self.state.section_index,
        )

    @log_transition(TransitionType.NAVIGATE_PREV.value)
    def navigate_prev(self) -> NavigationResult:
        """Go back one section; a no-op on the first section."""
        from_index = self.state.section_index
        if from_index == 0:
            return NavigationResult(
                transition=TransitionType.NAVIGATE_PREV,
                moved=False,
                from_index=0,
                to_index=0,
            )

        self.state.section_index = from_index - 1
        return NavigationResult(
            transition=TransitionType.NAVIGATE_PREV,
            moved=True,
            from_index=from_index,
            to_index=self.state.section_index,
        )

    @log_transition(TransitionType.SUBMIT.value)
    def submit(self) -> SubmissionResult:
        """
        Validate the whole answer map and hand it off when valid.

        On success the answers go to the submission sink and the engine resets. On
        failure the engine moves to the lowest-indexed section holding an invalid
        field (unless already there) and focuses that section's first invalid field.
        """
        results = self.validator.validate_all(self.state.answers)
        self.state.validation = results
        errors = CompiledValidator.errors_of(results)

        if not errors:
            submitted = dict(self.state.answers)
            self._dispatch_submission(submitted)
            self.state.submission_count += 1
            self.reset()
            self._notify(self.config.submit_success_message, level="success")
            return SubmissionResult(submitted=True, answers=submitted, section_index=self.state.section_index)

        first_invalid = self.first_invalid_section(results)
        if first_invalid is not None and first_invalid != self.state.section_index:
            logger.info(f"Submission invalid; moving from section {self.state.section_index + 1} to {first_invalid + 1}")
            self.state.section_index = first_invalid
            self._request_scroll_to_top()

        focus_target = self._first_invalid_field(self.form.sections[self.state.section_index], errors)
        if focus_target is not None:
            self._request_focus(focus_target)

        self._notify(self.config.submit_error_message)
        return SubmissionResult(
            submitted=False,
            errors=errors,
            first_invalid_section=first_invalid,
            section_index=self.state.section_index,
        )

    @log_transition(TransitionType.RESET.value)
    def reset(self) -> None:
        """Return to the first section with freshly synthesized defaults."""
        self.state.answers = build_default_values(self.form.sections)
        self.state.validation = {}
        self.state.section_index = 0

    def first_invalid_section(self, results: Optional[ValidationState] = None) -> Optional[int]:
        """
        Lowest section index containing at least one invalid field.

        Args:
            results: Validation results to inspect (defaults to the current state)
        """
        results = self.state.validation if results is None else results
        for index, section in enumerate(self.form.sections):
            for field_id in section.field_ids:
                result = results.get(field_id)
                if result is not None and not result.valid:
                    return index
        return None

    async def wait_for_pending_submissions(self) -> None:
        """Wait for async submission sinks scheduled on the running loop."""
        if self._pending_submissions:
            await asyncio.gather(*list(self._pending_submissions), return_exceptions=True)

    # Internals

    def _require_field(self, field_id: str) -> None:
        if not self.validator.has_field(field_id):
            raise UnknownFieldError(f"Unknown field '{field_id}' for form '{self.form.form_id}'")

    @staticmethod
    def _first_invalid_field(section: FormSection, errors: Dict[str, str]) -> Optional[str]:
        for field_id in section.field_ids:
            if field_id in errors:
                return field_id
        return None

    def _notify(self, message: str, level: str = "error") -> None:
        try:
            self.notifier.notify(message, level=level)
        except Exception as e:
            logger.error(f"Notification channel failed: {e}")

    def _request_scroll_to_top(self) -> None:
        try:
            self.ui_effects.scroll_to_top()
        except Exception as e:
            logger.error(f"UI effect 'scroll_to_top' failed: {e}")

    def _request_focus(self, field_id: str) -> None:
        try:
            self.ui_effects.focus_field(field_id)
        except Exception as e:
            logger.error(f"UI effect 'focus_field' failed for '{field_id}': {e}")

    def _dispatch_submission(self, answers: AnswerMap) -> None:
        """Hand answers to the sink without consuming its result."""
        try:
            outcome = self.submission_sink(answers)
        except Exception as e:
            logger.error(f"Submission sink failed: {e}")
            return

        if not inspect.isawaitable(outcome):
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._await_submission(outcome))
            return

        task = loop.create_task(self._await_submission(outcome))
        self._pending_submissions.add(task)
        task.add_done_callback(self._pending_submissions.discard)

    @staticmethod
    async def _await_submission(outcome: Awaitable[Any]) -> None:
        try:
            await outcome
        except Exception as e:
            logger.error(f"Async submission sink failed: {e}")
