"""
Remote form service client.

This module talks to the form service over HTTP: it registers users and fetches
the form descriptor assigned to a roll number.

Features:
- aiohttp session per request with a configurable timeout
- Transport retry (connection errors and timeouts only) via tenacity
- Error messages prefixed per operation ("Failed to fetch form: ...")
- Descriptor validation before anything reaches the form engine
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config.settings import FormApiConfig, get_config
from ..schemas.form_schemas import Form, FormDescriptorError, FormResponse, User, parse_form_descriptor

logger = logging.getLogger(__name__)

USER_CREATED_MESSAGE = "User created successfully"
INVALID_FORM_STRUCTURE_MESSAGE = "Invalid form structure received from API."

TRANSIENT_ERRORS = (aiohttp.ClientConnectionError, asyncio.TimeoutError)


class FormApiError(Exception):
    """Raised when a form service call fails."""
    pass


class InvalidFormStructureError(FormApiError):
    """Raised when the service answers with something that is not a form."""
    pass


class UserRegistrationError(FormApiError):
    """Raised when user registration fails."""
    pass


class FormApiClient:
    """
    Client for the form service's /create-user and /get-form endpoints.

    Implements the descriptor-source interface: ``get_form`` takes the roll
    number explicitly.
    """

    def __init__(self, config: Optional[FormApiConfig] = None):
        self.config = config or get_config().form_api
        self.base_url = self.config.base_url
        logger.info(f"Form API client initialized for {self.base_url}")

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Tuple[int, Any]:
        """
        Perform one HTTP request, retrying transient transport failures.

        Returns:
            Tuple of (status code, decoded JSON body or None)
        """
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.config.max_retries),
            wait=wait_exponential(multiplier=self.config.retry_delay, min=self.config.retry_delay, max=10),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            reraise=True,
        ):
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                if attempt_number > 1:
                    logger.warning(f"Retrying {method} {path} (attempt {attempt_number})")

                async with aiohttp.ClientSession(timeout=timeout) as session:
                    async with session.request(method, self._url(path), params=params, json=payload) as response:
                        logger.info(f"API Response Status: {response.status} for {method} {path}")
                        try:
                            body = await response.json(content_type=None)
                        except ValueError:
                            body = None
                        return response.status, body

    async def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Tuple[int, Any]:
        return await self._request("GET", path, params=params)

    async def _post_json(self, path: str, payload: Dict[str, Any]) -> Tuple[int, Any]:
        return await self._request("POST", path, payload=payload)

    @staticmethod
    def _error_message(status: int, body: Any) -> str:
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"API request failed with status {status}"

    async def create_user(self, user: User) -> bool:
        """
        Register a user with the form service.

        Args:
            user: Roll number and name

        Returns:
            True if the service confirmed the registration

        Raises:
            UserRegistrationError: If the request fails or the service rejects it
        """
        logger.info(f"Attempting to create user: {user.roll_number}")
        try:
            status, body = await self._post_json("/create-user", user.model_dump(by_alias=True))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Error creating user: {e}")
            raise UserRegistrationError(f"Failed to register user: {e}") from e

        if not 200 <= status < 300:
            message = self._error_message(status, body)
            logger.error(f"API Error creating user: {message}")
            raise UserRegistrationError(f"Failed to register user: {message}")

        message = body.get("message") if isinstance(body, dict) else None
        return message == USER_CREATED_MESSAGE or status in (200, 201)

    async def get_form_response(self, roll_number: str) -> FormResponse:
        """
        Fetch the form envelope assigned to a roll number.

        Raises:
            FormApiError: If the request fails or the service answers with an error
            InvalidFormStructureError: If the body does not hold a valid form
        """
        logger.info(f"Attempting to fetch form for roll number: {roll_number}")
        try:
            status, body = await self._get_json("/get-form", params={"rollNumber": roll_number})
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Error fetching form: {e}")
            raise FormApiError(f"Failed to fetch form: {e}") from e

        if not 200 <= status < 300:
            message = self._error_message(status, body)
            logger.error(f"API Error fetching form: {message}")
            raise FormApiError(f"Failed to fetch form: {message}")

        form_payload = body.get("form") if isinstance(body, dict) else None
        if not isinstance(form_payload, dict) or not isinstance(form_payload.get("sections"), list):
            logger.error(f"Invalid form structure received: {body!r}")
            raise InvalidFormStructureError(f"Failed to fetch form: {INVALID_FORM_STRUCTURE_MESSAGE}")

        try:
            form = parse_form_descriptor(form_payload)
        except FormDescriptorError as e:
            logger.error(f"Form descriptor rejected: {e}")
            raise InvalidFormStructureError(f"Failed to fetch form: {e}") from e

        return FormResponse(message=str(body.get("message", "")), form=form)

    async def get_form(self, roll_number: str) -> Form:
        """Fetch and validate the form descriptor for a roll number."""
        response = await self.get_form_response(roll_number)
        logger.info(
            f"Fetched form '{response.form.form_id}' v{response.form.version} "
            f"with {response.form.section_count} sections"
        )
        return response.form
