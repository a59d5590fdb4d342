"""
Collaborator interfaces consumed by the form engine and session layer.
"""

from typing import Any, Awaitable, Protocol, Union, runtime_checkable

from ..schemas.form_schemas import Form
from ..schemas.state_schemas import AnswerMap


@runtime_checkable
class FormDescriptorSource(Protocol):
    """
    Supplier of form descriptions.

    Implementations must:
    - take the roll number explicitly rather than reading ambient session state
    - return a validated ``Form`` or raise a descriptive error
    """

    async def get_form(self, roll_number: str) -> Form:
        ...


@runtime_checkable
class SubmissionSink(Protocol):
    """
    Receiver of completed answer maps.

    May be synchronous or return an awaitable; the engine does not consume the
    result and proceeds regardless of failures.
    """

    def __call__(self, answers: AnswerMap) -> Union[Any, Awaitable[Any]]:
        ...


@runtime_checkable
class NotificationChannel(Protocol):
    """User-facing, fire-and-forget messages (toasts)."""

    def notify(self, message: str, level: str = "error") -> None:
        ...


@runtime_checkable
class UIEffects(Protocol):
    """Viewport side effects requested by engine transitions."""

    def scroll_to_top(self) -> None:
        ...

    def focus_field(self, field_id: str) -> None:
        ...
