"""
Session orchestration for Dynamic Form.

Ties the pieces together for one user: registration (login), fetching the form
descriptor for the user's roll number, and the form engine that drives the
filling session. Sessions are kept in memory.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Protocol
from uuid import uuid4

from .config.settings import EngineConfig, get_config
from .engine.form_engine import FormEngine
from .schemas.form_schemas import Form, User
from .services.interfaces import FormDescriptorSource, SubmissionSink
from .services.notifications import LoggingSubmissionSink, RecordingNotificationChannel, RecordingUIEffects
from .utils.transition_logger import track_async_transition

logger = logging.getLogger(__name__)

NOT_LOGGED_IN_MESSAGE = "You must log in first."
NO_FORM_DATA_MESSAGE = "No form data found for this user."
REGISTRATION_FAILED_MESSAGE = "Registration failed. Please try again."


class SessionError(Exception):
    """Base exception for session handling."""
    pass


class SessionNotFoundError(SessionError):
    """Raised when a session id is unknown."""
    pass


class NotLoggedInError(SessionError):
    """Raised when a form is requested before the user logged in."""

    def __init__(self, message: str = NOT_LOGGED_IN_MESSAGE):
        super().__init__(message)


class FormNotLoadedError(SessionError):
    """Raised when the session has no form to drive."""

    def __init__(self, message: str = NO_FORM_DATA_MESSAGE):
        super().__init__(message)


class UserRegistry(Protocol):
    async def create_user(self, user: User) -> bool:
        ...


class FormSession:
    """One user's login and form-filling session."""

    def __init__(self, session_id: str, user: Optional[User] = None):
        self.session_id = session_id
        self.user = user
        self.form: Optional[Form] = None
        self.engine: Optional[FormEngine] = None
        self.notifier = RecordingNotificationChannel()
        self.ui_effects = RecordingUIEffects()
        self.submission_sink: Optional[SubmissionSink] = None
        self.created_at = datetime.now(timezone.utc)
        self.last_updated = self.created_at

    @property
    def roll_number(self) -> Optional[str]:
        return self.user.roll_number if self.user else None

    @property
    def is_logged_in(self) -> bool:
        return self.user is not None

    def touch(self) -> None:
        self.last_updated = datetime.now(timezone.utc)


class FormSessionManager:
    """
    In-memory session management.

    The roll number is stored on the session at login and passed explicitly to the
    descriptor source when the form is loaded.
    """

    def __init__(
        self,
        form_source: FormDescriptorSource,
        user_registry: Optional[UserRegistry] = None,
        sink_factory: Optional[Callable[[FormSession], SubmissionSink]] = None,
        engine_config: Optional[EngineConfig] = None,
    ):
        self.form_source = form_source
        self.user_registry = user_registry
        self.sink_factory = sink_factory or (lambda session: LoggingSubmissionSink())
        self.engine_config = engine_config or get_config().engine
        self._sessions: Dict[str, FormSession] = {}

    async def register_user(self, roll_number: str, name: str, session_id: Optional[str] = None) -> FormSession:
        """
        Log a user in, registering them with the user registry when one is configured.

        Raises:
            pydantic.ValidationError: If the roll number or name is blank
            SessionError: If the registry did not confirm the registration
        """
        user = User(roll_number=roll_number, name=name)

        if self.user_registry is not None:
            async with track_async_transition("register_user", session_id or "new-session") as tracker:
                created = await self.user_registry.create_user(user)
                tracker.log_step("registry_response", {"roll_number": user.roll_number, "created": created})
                if not created:
                    logger.warning(f"[FormSessionManager] Registration not confirmed for {user.roll_number}")
                    raise SessionError(REGISTRATION_FAILED_MESSAGE)

        session = self._sessions.get(session_id) if session_id else None
        if session is None:
            session = FormSession(session_id or str(uuid4()), user)
            self._sessions[session.session_id] = session
        else:
            session.user = user
            session.form = None
            session.engine = None
            session.touch()

        logger.info(f"[FormSessionManager] User {user.roll_number} logged in on session {session.session_id[:8]}")
        return session

    def create_anonymous_session(self) -> FormSession:
        """Create a session with no user attached yet."""
        session = FormSession(str(uuid4()))
        self._sessions[session.session_id] = session
        logger.debug(f"[FormSessionManager] Created anonymous session {session.session_id[:8]}")
        return session

    def get_session(self, session_id: str) -> FormSession:
        session = self._sessions.get(session_id)
        if session is None:
            logger.debug(f"[FormSessionManager] Session {session_id[:8]} not found")
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    async def load_form(self, session_id: str) -> FormEngine:
        """
        Fetch the session user's form and build a fresh engine for it.

        Raises:
            SessionNotFoundError: If the session is unknown
            NotLoggedInError: If nobody logged in on the session
            FormNotLoadedError: If the source returned no form
        """
        session = self.get_session(session_id)
        if not session.is_logged_in:
            raise NotLoggedInError()

        async with track_async_transition("load_form", session.session_id) as tracker:
            form = await self.form_source.get_form(session.roll_number)
            if form is None:
                raise FormNotLoadedError()
            tracker.log_step("form_fetched", {"form_id": form.form_id, "version": form.version})

        session.submission_sink = self.sink_factory(session)
        session.form = form
        session.engine = FormEngine(
            form,
            submission_sink=session.submission_sink,
            notifier=session.notifier,
            ui_effects=session.ui_effects,
            config=self.engine_config,
            session_id=session.session_id,
        )
        session.touch()

        logger.info(
            f"[FormSessionManager] Loaded form '{form.form_id}' v{form.version} "
            f"for session {session.session_id[:8]}"
        )
        return session.engine

    def get_engine(self, session_id: str) -> FormEngine:
        """
        Engine of a session whose form has been loaded.

        Raises:
            SessionNotFoundError: If the session is unknown
            NotLoggedInError: If nobody logged in on the session
            FormNotLoadedError: If no form was loaded yet
        """
        session = self.get_session(session_id)
        if not session.is_logged_in:
            raise NotLoggedInError()
        if session.engine is None:
            raise FormNotLoadedError()
        session.touch()
        return session.engine

    def delete_session(self, session_id: str) -> bool:
        if session_id in self._sessions:
            del self._sessions[session_id]
            logger.info(f"[FormSessionManager] Deleted session {session_id[:8]}")
            return True
        return False

    def get_session_stats(self) -> Dict[str, Any]:
        return {
            "total_sessions": len(self._sessions),
            "logged_in_sessions": sum(1 for s in self._sessions.values() if s.is_logged_in),
            "active_forms": sum(1 for s in self._sessions.values() if s.engine is not None),
        }
