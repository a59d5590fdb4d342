"""
Tests for the remote form service client.

The HTTP layer is mocked: ``_get_json``/``_post_json`` for response handling, and
``aiohttp.ClientSession`` for the transport retry behaviour.
"""

from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from dynamic_form.config.settings import FormApiConfig
from dynamic_form.schemas.form_schemas import Form, User
from dynamic_form.services.form_api import (
    FormApiClient,
    FormApiError,
    InvalidFormStructureError,
    UserRegistrationError,
)
from dynamic_form.services.interfaces import FormDescriptorSource


@pytest.fixture
def api_config() -> FormApiConfig:
    return FormApiConfig(base_url="https://forms.example.org/", max_retries=3, retry_delay=0)


@pytest.fixture
def client(api_config) -> FormApiClient:
    return FormApiClient(api_config)


@pytest.fixture
def user() -> User:
    return User(roll_number="21CS042", name="Asha Rao")


class _FakeResponse:
    def __init__(self, status, body):
        self.status = status
        self._body = body

    async def json(self, content_type=None):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class _FakeSession:
    """Stands in for aiohttp.ClientSession; replays a list of outcomes."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def request(self, method, url, params=None, json=None):
        self.calls.append({"method": method, "url": url, "params": params, "json": json})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class TestClientSetup:

    def test_base_url_normalized(self, client):
        assert client.base_url == "https://forms.example.org"
        assert client._url("/get-form") == "https://forms.example.org/get-form"

    def test_implements_descriptor_source(self, client):
        assert isinstance(client, FormDescriptorSource)


class TestCreateUser:
    """Test user registration."""

    @pytest.mark.asyncio
    async def test_success_message(self, client, user):
        with patch.object(client, "_post_json", AsyncMock(return_value=(200, {"message": "User created successfully"}))) as post:
            assert await client.create_user(user) is True

        post.assert_awaited_once_with("/create-user", {"rollNumber": "21CS042", "name": "Asha Rao"})

    @pytest.mark.asyncio
    async def test_created_status_without_message(self, client, user):
        with patch.object(client, "_post_json", AsyncMock(return_value=(201, {}))):
            assert await client.create_user(user) is True

    @pytest.mark.asyncio
    async def test_unconfirmed_success(self, client, user):
        """Test a 2xx response that is neither 200/201 nor the success message."""
        with patch.object(client, "_post_json", AsyncMock(return_value=(202, {"message": "Queued"}))):
            assert await client.create_user(user) is False

    @pytest.mark.asyncio
    async def test_server_error_message(self, client, user):
        with patch.object(client, "_post_json", AsyncMock(return_value=(409, {"message": "User already exists"}))):
            with pytest.raises(UserRegistrationError) as exc_info:
                await client.create_user(user)

        assert str(exc_info.value) == "Failed to register user: User already exists"

    @pytest.mark.asyncio
    async def test_status_fallback_message(self, client, user):
        with patch.object(client, "_post_json", AsyncMock(return_value=(500, None))):
            with pytest.raises(UserRegistrationError) as exc_info:
                await client.create_user(user)

        assert str(exc_info.value) == "Failed to register user: API request failed with status 500"

    @pytest.mark.asyncio
    async def test_transport_error(self, client, user):
        with patch.object(client, "_post_json", AsyncMock(side_effect=aiohttp.ClientConnectionError("refused"))):
            with pytest.raises(UserRegistrationError) as exc_info:
                await client.create_user(user)

        assert str(exc_info.value).startswith("Failed to register user:")


class TestGetForm:
    """Test form descriptor fetching."""

    @pytest.mark.asyncio
    async def test_returns_validated_form(self, client, form_payload):
        body = {"message": "Form fetched", "form": form_payload}
        with patch.object(client, "_get_json", AsyncMock(return_value=(200, body))) as get:
            form = await client.get_form("21CS042")

        assert isinstance(form, Form)
        assert form.section_count == 3
        get.assert_awaited_once_with("/get-form", params={"rollNumber": "21CS042"})

    @pytest.mark.asyncio
    async def test_form_response_envelope(self, client, form_payload):
        body = {"message": "Form fetched", "form": form_payload}
        with patch.object(client, "_get_json", AsyncMock(return_value=(200, body))):
            response = await client.get_form_response("21CS042")

        assert response.message == "Form fetched"
        assert response.form.form_id == "student-registration"

    @pytest.mark.asyncio
    async def test_error_status_uses_server_message(self, client):
        with patch.object(client, "_get_json", AsyncMock(return_value=(404, {"message": "No form assigned"}))):
            with pytest.raises(FormApiError) as exc_info:
                await client.get_form("21CS042")

        assert str(exc_info.value) == "Failed to fetch form: No form assigned"

    @pytest.mark.asyncio
    async def test_error_status_fallback(self, client):
        with patch.object(client, "_get_json", AsyncMock(return_value=(503, None))):
            with pytest.raises(FormApiError) as exc_info:
                await client.get_form("21CS042")

        assert str(exc_info.value) == "Failed to fetch form: API request failed with status 503"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        None,
        {"message": "ok"},
        {"form": {"formTitle": "No sections"}},
        {"form": {"sections": "not-a-list"}},
    ])
    async def test_invalid_structure(self, client, body):
        with patch.object(client, "_get_json", AsyncMock(return_value=(200, body))):
            with pytest.raises(InvalidFormStructureError) as exc_info:
                await client.get_form("21CS042")

        assert str(exc_info.value) == "Failed to fetch form: Invalid form structure received from API."

    @pytest.mark.asyncio
    async def test_descriptor_invariant_violation(self, client, form_payload):
        form_payload["sections"][1]["fields"][0]["fieldId"] = "fullName"
        with patch.object(client, "_get_json", AsyncMock(return_value=(200, {"form": form_payload}))):
            with pytest.raises(InvalidFormStructureError) as exc_info:
                await client.get_form("21CS042")

        assert "Duplicate fieldId" in str(exc_info.value)


class TestTransportRetry:
    """Test retry of transient transport failures."""

    @pytest.mark.asyncio
    async def test_retries_connection_errors(self, client, form_payload):
        session = _FakeSession([
            aiohttp.ClientConnectionError("refused"),
            _FakeResponse(200, {"message": "ok", "form": form_payload}),
        ])
        with patch("dynamic_form.services.form_api.aiohttp.ClientSession", return_value=session):
            form = await client.get_form("21 CS/042")

        assert form.section_count == 3
        assert len(session.calls) == 2
        assert session.calls[-1]["method"] == "GET"
        assert session.calls[-1]["url"] == "https://forms.example.org/get-form"
        assert session.calls[-1]["params"] == {"rollNumber": "21 CS/042"}

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, client):
        session = _FakeSession([aiohttp.ClientConnectionError("refused")] * 3)
        with patch("dynamic_form.services.form_api.aiohttp.ClientSession", return_value=session):
            with pytest.raises(FormApiError) as exc_info:
                await client.get_form("21CS042")

        assert len(session.calls) == 3
        assert str(exc_info.value).startswith("Failed to fetch form:")

    @pytest.mark.asyncio
    async def test_http_errors_not_retried(self, client, user):
        session = _FakeSession([_FakeResponse(500, {"message": "boom"})])
        with patch("dynamic_form.services.form_api.aiohttp.ClientSession", return_value=session):
            with pytest.raises(UserRegistrationError):
                await client.create_user(user)

        assert len(session.calls) == 1
        assert session.calls[0]["json"] == {"rollNumber": "21CS042", "name": "Asha Rao"}

    @pytest.mark.asyncio
    async def test_non_json_body(self, client):
        session = _FakeSession([_FakeResponse(502, ValueError("not json"))])
        with patch("dynamic_form.services.form_api.aiohttp.ClientSession", return_value=session):
            with pytest.raises(FormApiError) as exc_info:
                await client.get_form("21CS042")

        assert str(exc_info.value) == "Failed to fetch form: API request failed with status 502"
