"""API client for Schlüter floor-heating thermostats.

This module provides the authenticated session client for the OJ cloud
backends used by Schlüter thermostats: login, group contents reads and
thermostat updates, plus the helpers that classify vendor responses.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from homeassistant.helpers.httpx_client import create_async_httpx_client
from httpx_retries import Retry, RetryTransport

from .const import (
    FIELD_SERIAL_NUMBER,
    READ_BASE_URL,
    REQUEST_TIMEOUT,
    WRITE_BASE_URL,
)
from .models import Session

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")

# HTTP status codes
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_SERVER_ERROR = 500


class SchluterApiClientError(Exception):
    """Base exception for Schlüter API client errors."""


class SchluterAuthError(SchluterApiClientError):
    """Exception raised when a login is rejected or cannot reach the cloud."""

    def __init__(self, message: str, *, unreachable: bool = False) -> None:
        """Initialize the error.

        Args:
            message: Error description.
            unreachable: True when the login endpoint could not be reached.

        """
        super().__init__(message)
        self.unreachable = unreachable


class SchluterAuthExpiredError(SchluterApiClientError):
    """Exception raised when an authenticated call reports 401/403."""


class SchluterCommunicationError(SchluterApiClientError):
    """Exception raised for network failures, timeouts and 5xx responses."""


class SchluterBusinessError(SchluterApiClientError):
    """Exception raised when the vendor rejects a request."""

    def __init__(self, message: str, error_code: int | None = None) -> None:
        """Initialize the error with the vendor error code."""
        super().__init__(message)
        self.error_code = error_code


def is_http_error(status: int) -> bool:
    """Check if HTTP status code indicates an error."""
    return status >= HTTP_BAD_REQUEST


def is_auth_error(status: int) -> bool:
    """Check if HTTP status code indicates an expired or rejected session."""
    return status in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN)


def is_server_error(status: int) -> bool:
    """Check if HTTP status code indicates a server side failure."""
    return status >= HTTP_SERVER_ERROR


def is_api_error(data: dict[str, Any]) -> bool:
    """Check if API response carries a non-zero ErrorCode.

    Args:
        data: API response data dictionary.

    Returns:
        True if ErrorCode is present and not 0, False otherwise.

    """
    return bool(data.get("ErrorCode") or 0)


def validate_response(response: httpx.Response, label: str) -> dict[str, Any]:
    """Validate HTTP response and return parsed JSON data.

    Args:
        response: HTTP response object to validate.
        label: Request name used in error messages.

    Returns:
        Parsed JSON data from response.

    Raises:
        SchluterAuthExpiredError: On HTTP 401/403.
        SchluterCommunicationError: On HTTP 5xx or an unreadable body.
        SchluterBusinessError: On other HTTP errors or a non-zero ErrorCode.

    """
    _validate_http_status(response, label)
    try:
        data = response.json()
    except ValueError as err:
        error_msg = f"{label}: invalid JSON response"
        raise SchluterCommunicationError(error_msg) from err
    if not isinstance(data, dict):
        data = {}
    _validate_api_status(data, label)
    return data


def _validate_http_status(response: httpx.Response, label: str) -> None:
    status = response.status_code
    if not is_http_error(status):
        return

    if is_auth_error(status):
        auth_error = f"{label}: HTTP {status}"
        raise SchluterAuthExpiredError(auth_error)

    if is_server_error(status):
        server_error = f"{label}: HTTP {status}"
        raise SchluterCommunicationError(server_error)

    client_error = f"{label} failed: HTTP {status}"
    raise SchluterBusinessError(client_error)


def _validate_api_status(data: dict[str, Any], label: str) -> None:
    if not is_api_error(data):
        return

    error_code = data.get("ErrorCode")
    error_message = f"{label} failed: ErrorCode {error_code}"
    raise SchluterBusinessError(error_message, error_code)


def hundredths_to_celsius(value: Any) -> float | None:
    """Convert a vendor temperature into °C.

    Values of 100 and above in magnitude are hundredths of a degree,
    smaller values are taken as °C already.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:  # NaN
        return None
    if abs(number) >= 100:
        number /= 100
    return round(number, 2)


def celsius_to_hundredths(value: float) -> int:
    """Convert °C into the integer hundredths the vendor expects."""
    return round(value * 100)


def extract_thermostats(data: dict[str, Any]) -> list[dict[str, Any]]:
    """Flatten a GroupContents response into thermostat dictionaries.

    Each returned dictionary is the raw vendor thermostat with ``GroupId``
    and ``GroupName`` of its owning group added when missing.

    Args:
        data: GroupContents response data dictionary.

    Returns:
        List of raw thermostat dictionaries.

    """
    thermostats = []
    for group in data.get("GroupContents") or []:
        if not isinstance(group, dict):
            continue
        for thermostat in group.get("Thermostats") or []:
            if not isinstance(thermostat, dict):
                continue
            thermostats.append(
                {
                    "GroupId": group.get("GroupId"),
                    "GroupName": group.get("GroupName"),
                    **thermostat,
                }
            )
    return thermostats


def create_session_client(hass: HomeAssistant) -> httpx.AsyncClient:
    """Create HTTP client with retry logic for the Schlüter cloud.

    Args:
        hass: Home Assistant instance.

    Returns:
        Configured httpx AsyncClient with retry transport.

    """
    base_client = create_async_httpx_client(hass, timeout=REQUEST_TIMEOUT)
    retry = Retry(total=3, backoff_factor=0.5)
    base_client._transport = RetryTransport(  # noqa: SLF001
        transport=base_client._transport,  # noqa: SLF001
        retry=retry,
    )
    return base_client


class SchluterApiClient:
    """Owns the cloud session and performs authenticated requests.

    Login is single-flight: while one login is running, every caller that
    needs a session awaits that same attempt. Authenticated requests that
    report an expired session are retried once after a fresh login.
    """

    def __init__(
        self,
        session: httpx.AsyncClient,
        username: str,
        password: str,
        api_key: str,
        customer_id: int,
        read_url: str = READ_BASE_URL,
        write_url: str = WRITE_BASE_URL,
    ) -> None:
        """Initialize the client.

        Args:
            session: HTTP client session.
            username: Account user name.
            password: Account password.
            api_key: Vendor API key.
            customer_id: Vendor customer id.
            read_url: Base URL of the read/login backend.
            write_url: Base URL of the write backend.

        """
        self._http = session
        self._username = username
        self._password = password
        self._api_key = api_key
        self._customer_id = customer_id
        self._read_url = read_url.rstrip("/")
        self._write_url = write_url.rstrip("/")
        self._session: Session | None = None
        self._login_task: asyncio.Task[Session] | None = None

    @property
    def session(self) -> Session | None:
        """Return the current session, if any."""
        return self._session

    @property
    def logging_in(self) -> bool:
        """Return True while a login is in flight."""
        return self._login_task is not None

    def invalidate_session(self, session: Session | None = None) -> None:
        """Drop the current session.

        When ``session`` is given, only drop it if it is still current, so a
        session created meanwhile by another caller survives.
        """
        if session is None or self._session is session:
            self._session = None

    async def async_login(self) -> Session:
        """Authenticate with username, password, API key and customer id.

        Returns:
            The new session.

        Raises:
            SchluterAuthError: If credentials are rejected or the endpoint
                cannot be reached.

        """
        url = f"{self._read_url}/api/UserProfile/SignIn"
        payload = {
            "APIKEY": self._api_key,
            "UserName": self._username,
            "Password": self._password,
            "CustomerId": self._customer_id,
        }

        _LOGGER.debug(
            "Logging in as %s (customer %s)", self._username, self._customer_id
        )
        try:
            response = await self._http.post(url, json=payload)
        except httpx.RequestError as err:
            error_msg = f"Login endpoint unreachable: {err}"
            raise SchluterAuthError(error_msg, unreachable=True) from err

        if is_server_error(response.status_code):
            error_msg = f"Login failed: HTTP {response.status_code}"
            raise SchluterAuthError(error_msg, unreachable=True)
        if is_http_error(response.status_code):
            error_msg = f"Login rejected: HTTP {response.status_code}"
            raise SchluterAuthError(error_msg)

        try:
            data = response.json()
        except ValueError as err:
            error_msg = "Login failed: invalid JSON response"
            raise SchluterAuthError(error_msg) from err

        if not isinstance(data, dict) or is_api_error(data) or not data.get("SessionId"):
            error_code = data.get("ErrorCode") if isinstance(data, dict) else None
            error_msg = f"Login rejected: ErrorCode {error_code}"
            raise SchluterAuthError(error_msg)

        self._session = Session(token=str(data["SessionId"]), created_at=datetime.now(UTC))
        _LOGGER.info("Logged in to Schlüter cloud as %s", self._username)
        return self._session

    async def async_ensure_session(self) -> Session:
        """Return the current session, logging in if there is none.

        Concurrent callers share a single in-flight login and its outcome.
        """
        if self._session is not None:
            return self._session

        if self._login_task is None:
            self._login_task = asyncio.create_task(self._async_login_once())
        return await asyncio.shield(self._login_task)

    async def _async_login_once(self) -> Session:
        try:
            return await self.async_login()
        finally:
            self._login_task = None

    async def async_request_with_retry(
        self,
        request_fn: Callable[[Session], Awaitable[_T]],
        label: str,
    ) -> _T:
        """Run an authenticated request, recovering once from an expired session.

        Args:
            request_fn: Coroutine function performing the request with a session.
            label: Request name used in logs.

        Returns:
            Whatever ``request_fn`` returns.

        Raises:
            SchluterAuthExpiredError: If the retry is rejected as well.
            SchluterApiClientError: Any other failure, unchanged.

        """
        session = await self.async_ensure_session()
        try:
            return await request_fn(session)
        except SchluterAuthExpiredError as err:
            _LOGGER.warning("%s: %s, logging in again and retrying once", label, err)
            self.invalidate_session(session)

        session = await self.async_ensure_session()
        try:
            return await request_fn(session)
        except SchluterAuthExpiredError:
            self.invalidate_session(session)
            raise

    async def _async_send(
        self,
        method: str,
        url: str,
        label: str,
        **kwargs: Any,
    ) -> dict[str, Any]:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.TimeoutException as err:
            error_msg = f"{label}: timeout"
            raise SchluterCommunicationError(error_msg) from err
        except httpx.RequestError as err:
            error_msg = f"{label}: {err}"
            raise SchluterCommunicationError(error_msg) from err
        return validate_response(response, label)

    async def async_get_group_contents(self) -> dict[str, Any]:
        """Fetch all groups with their thermostats.

        Returns:
            GroupContents response data dictionary.

        """
        url = f"{self._read_url}/api/Group/GroupContents"

        async def _request(session: Session) -> dict[str, Any]:
            _LOGGER.debug("GroupContents: GET %s", url)
            return await self._async_send(
                "GET",
                url,
                "GroupContents",
                params={"sessionid": session.token, "APIKEY": self._api_key},
            )

        return await self.async_request_with_retry(_request, "GroupContents")

    async def async_get_thermostats(self) -> list[dict[str, Any]]:
        """Fetch and flatten all thermostats of the account."""
        return extract_thermostats(await self.async_get_group_contents())

    async def async_update_thermostat(
        self,
        serial_number: str,
        fields: dict[str, Any],
    ) -> dict[str, Any]:
        """Send a thermostat update.

        Args:
            serial_number: Thermostat serial number.
            fields: Vendor fields to set.

        Returns:
            UpdateThermostat response data dictionary.

        Raises:
            SchluterBusinessError: If the vendor rejects the update.

        """
        url = f"{self._write_url}/api/Thermostat/UpdateThermostat"
        payload = {
            "APIKEY": self._api_key,
            "SetThermostat": {FIELD_SERIAL_NUMBER: str(serial_number), **fields},
        }

        async def _request(session: Session) -> dict[str, Any]:
            _LOGGER.debug(
                "UpdateThermostat: POST %s (SerialNumber=%s) fields=%s",
                url,
                serial_number,
                ",".join(fields),
            )
            return await self._async_send(
                "POST",
                url,
                "UpdateThermostat",
                params={"sessionid": session.token},
                json=payload,
            )

        return await self.async_request_with_retry(_request, "UpdateThermostat")
