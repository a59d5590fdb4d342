"""
FastAPI Application for Dynamic Form.

This module exposes the form engine over HTTP: login, loading the user's form,
answering fields, section navigation and submission. Every transition response
carries the current view plus the notifications and UI effects the engine
requested.
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from dynamic_form import __version__
from dynamic_form.config.settings import get_config
from dynamic_form.engine.form_engine import FormEngine, UnknownFieldError
from dynamic_form.engine.renderer import FormView, render_form_view
from dynamic_form.orchestrator import (
    FormNotLoadedError,
    FormSession,
    FormSessionManager,
    NotLoggedInError,
    SessionError,
    SessionNotFoundError,
)
from dynamic_form.schemas.form_schemas import FormDescriptorError, User
from dynamic_form.services.file_source import FileFormSource
from dynamic_form.services.form_api import FormApiClient, FormApiError, UserRegistrationError
from dynamic_form.services.notifications import Notification, UIEffect

# Configure logging
logging.basicConfig(level=get_config().logging.level, format=get_config().logging.format)
logger = logging.getLogger(__name__)

# Global session manager instance
session_manager: Optional[FormSessionManager] = None


def build_session_manager() -> FormSessionManager:
    """Wire the session manager to a local descriptor file or the remote service."""
    config = get_config()
    if config.form_api.descriptor_file:
        logger.info(f"Serving forms from local file {config.form_api.descriptor_file}")
        return FormSessionManager(FileFormSource(config.form_api.descriptor_file), engine_config=config.engine)

    client = FormApiClient(config.form_api)
    return FormSessionManager(client, user_registry=client, engine_config=config.engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    global session_manager

    # Startup
    logger.info("Starting Dynamic Form API server...")
    try:
        if session_manager is None:
            session_manager = build_session_manager()
        logger.info("Session manager initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize session manager: {e}")
        raise

    yield

    # Shutdown
    logger.info("Shutting down Dynamic Form API server...")


# Create FastAPI application
app = FastAPI(
    title="Dynamic Form API",
    description="Schema-driven multi-step form engine",
    version=__version__,
    lifespan=lifespan
)

# Add CORS middleware
config = get_config()
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Accept", "Accept-Language", "Content-Language", "Content-Type"],
)


# Pydantic Models for API
class LoginResponse(BaseModel):
    """Login response model."""
    session_id: str = Field(..., description="Session ID to use for subsequent calls")
    roll_number: str = Field(..., description="Logged-in roll number")
    name: str = Field(..., description="Logged-in user name")
    message: str = Field(..., description="Status message")


class AnswerRequest(BaseModel):
    """Field update request model."""
    value: Any = Field(None, description="New value for the field")


class TransitionResponse(BaseModel):
    """Engine transition response model."""
    session_id: str = Field(..., description="Session ID")
    view: FormView = Field(..., description="Current section view after the transition")
    result: Optional[Dict[str, Any]] = Field(None, description="Transition outcome")
    notifications: List[Notification] = Field(default_factory=list, description="User-facing messages")
    effects: List[UIEffect] = Field(default_factory=list, description="Requested viewport effects")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    error_code: str = Field(..., description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: str = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    session_manager_status: str = Field(..., description="Session manager status")
    sessions: Dict[str, int] = Field(default_factory=dict, description="Session statistics")


def get_session_manager() -> FormSessionManager:
    """Dependency returning the initialized session manager."""
    if session_manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session manager not initialized"
        )
    return session_manager


def _transition_response(session: FormSession, engine: FormEngine, result: Optional[BaseModel] = None) -> TransitionResponse:
    return TransitionResponse(
        session_id=session.session_id,
        view=render_form_view(engine),
        result=result.model_dump(mode="json") if result is not None else None,
        notifications=session.notifier.drain(),
        effects=session.ui_effects.drain(),
    )


# Middleware for request logging
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests."""
    start_time = time.time()

    logger.info(f"Request: {request.method} {request.url.path}")

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(f"Response: {response.status_code} - {process_time:.3f}s")

    return response


# API Endpoints
@app.get("/", response_model=Dict[str, str])
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Dynamic Form API",
        "version": __version__,
        "status": "running",
        "docs": "/docs"
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    manager_status = "healthy" if session_manager is not None else "unhealthy"

    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        session_manager_status=manager_status,
        sessions=session_manager.get_session_stats() if session_manager is not None else {},
    )


@app.post("/sessions", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
async def login(user: User, manager: FormSessionManager = Depends(get_session_manager)):
    """
    Log a user in and open a session.

    The roll number is kept on the session and used to fetch the user's form.
    """
    session = await manager.register_user(user.roll_number, user.name)
    return LoginResponse(
        session_id=session.session_id,
        roll_number=session.user.roll_number,
        name=session.user.name,
        message="Login successful"
    )


@app.post("/sessions/{session_id}/form", response_model=TransitionResponse)
async def load_form(session_id: str, manager: FormSessionManager = Depends(get_session_manager)):
    """Fetch the session user's form and start filling it from the first section."""
    engine = await manager.load_form(session_id)
    return _transition_response(manager.get_session(session_id), engine)


@app.get("/sessions/{session_id}/form", response_model=TransitionResponse)
async def get_form_view(session_id: str, manager: FormSessionManager = Depends(get_session_manager)):
    """Current section view of a loaded form."""
    engine = manager.get_engine(session_id)
    return _transition_response(manager.get_session(session_id), engine)


@app.put("/sessions/{session_id}/answers/{field_id}", response_model=TransitionResponse)
async def update_answer(
    session_id: str,
    field_id: str,
    request: AnswerRequest,
    manager: FormSessionManager = Depends(get_session_manager)
):
    """Set one answer; the field is re-validated according to the validation mode."""
    engine = manager.get_engine(session_id)
    result = engine.update_field(field_id, request.value)
    return _transition_response(manager.get_session(session_id), engine, result)


@app.post("/sessions/{session_id}/next", response_model=TransitionResponse)
async def navigate_next(session_id: str, manager: FormSessionManager = Depends(get_session_manager)):
    """Advance to the next section if the current one is valid."""
    engine = manager.get_engine(session_id)
    result = engine.navigate_next()
    return _transition_response(manager.get_session(session_id), engine, result)


@app.post("/sessions/{session_id}/prev", response_model=TransitionResponse)
async def navigate_prev(session_id: str, manager: FormSessionManager = Depends(get_session_manager)):
    """Go back one section."""
    engine = manager.get_engine(session_id)
    result = engine.navigate_prev()
    return _transition_response(manager.get_session(session_id), engine, result)


@app.post("/sessions/{session_id}/submit", response_model=TransitionResponse)
async def submit_form(session_id: str, manager: FormSessionManager = Depends(get_session_manager)):
    """Validate the whole form and submit it."""
    engine = manager.get_engine(session_id)
    result = engine.submit()
    return _transition_response(manager.get_session(session_id), engine, result)


@app.delete("/sessions/{session_id}")
async def clear_session(session_id: str, manager: FormSessionManager = Depends(get_session_manager)):
    """Log out and drop the session."""
    if not manager.delete_session(session_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found"
        )
    return {"message": "Session cleared successfully", "session_id": session_id}


# Error handlers
def _error_response(status_code: int, error: str, error_code: str, details: Optional[Dict[str, Any]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, error_code=error_code, details=details).model_dump()
    )


@app.exception_handler(SessionError)
async def session_exception_handler(request: Request, exc: SessionError):
    """Map session-layer errors to HTTP statuses."""
    if isinstance(exc, SessionNotFoundError):
        return _error_response(status.HTTP_404_NOT_FOUND, str(exc), "SESSION_NOT_FOUND")
    if isinstance(exc, NotLoggedInError):
        return _error_response(status.HTTP_401_UNAUTHORIZED, str(exc), "NOT_LOGGED_IN")
    if isinstance(exc, FormNotLoadedError):
        return _error_response(status.HTTP_409_CONFLICT, str(exc), "FORM_NOT_LOADED")
    logger.warning(f"Session error: {exc}")
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc), "SESSION_ERROR")


@app.exception_handler(UnknownFieldError)
async def unknown_field_handler(request: Request, exc: UnknownFieldError):
    return _error_response(status.HTTP_404_NOT_FOUND, str(exc), "UNKNOWN_FIELD")


@app.exception_handler(FormDescriptorError)
async def descriptor_error_handler(request: Request, exc: FormDescriptorError):
    logger.error(f"Form descriptor rejected: {exc}")
    return _error_response(status.HTTP_502_BAD_GATEWAY, str(exc), "INVALID_FORM_DESCRIPTOR")


@app.exception_handler(FormApiError)
async def form_api_error_handler(request: Request, exc: FormApiError):
    """Handle form service failures."""
    error_code = "REGISTRATION_FAILED" if isinstance(exc, UserRegistrationError) else "FORM_SERVICE_ERROR"
    logger.error(f"Form service error: {exc}")
    return _error_response(status.HTTP_502_BAD_GATEWAY, str(exc), error_code)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with structured error responses."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.detail.get("error", "Unknown error") if isinstance(exc.detail, dict) else str(exc.detail),
            error_code=exc.detail.get("error_code", "HTTP_ERROR") if isinstance(exc.detail, dict) else "HTTP_ERROR",
            details=exc.detail.get("details") if isinstance(exc.detail, dict) else None
        ).model_dump()
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions with structured error responses."""
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            error_code="INTERNAL_ERROR",
            details={"message": str(exc)}
        ).model_dump()
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "dynamic_form.api:app",
        host=config.api.host,
        port=config.api.port,
        reload=config.api.debug,
        log_level="info"
    )
