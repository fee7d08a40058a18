"""API client for the SwitchBot OpenAPI.

This module provides request signing, response validation, and the status
fetcher that turns a signed GET against the device-status resource into
either a DeviceStatusSnapshot or a typed error.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx

from .classifier import StatusCodeClassifier
from .const import BASE_URL, DEVICE_PATH, REQUEST_TIMEOUT, STATUS_SUCCESS
from .models import (
    DeviceStatusSnapshot,
    Outcome,
    OutcomeKind,
    RequestContext,
)

if TYPE_CHECKING:
    from .models import Credentials

_LOGGER = logging.getLogger(__name__)

# HTTP status codes
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_SERVER_ERROR = 500

MAX_HUMIDITY = 100


class SwitchBotError(Exception):
    """Base exception for SwitchBot API errors."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class ConfigurationError(SwitchBotError):
    """Credentials are missing, empty or rejected by the provider."""


class RetryableError(SwitchBotError):
    """Failure that may succeed when the same request is sent again."""


class TransportError(RetryableError):
    """Connection error, timeout or server-side HTTP failure."""


class DeviceDesyncError(RetryableError):
    """Device state is not synchronized with the server."""


class UnknownProtocolError(RetryableError):
    """Provider returned a status code missing from the classifier table."""


class ProtocolError(SwitchBotError):
    """Provider reported an offline device or hub."""


class DeviceOfflineError(ProtocolError):
    """The device itself is offline."""


class HubOfflineError(ProtocolError):
    """The hub the device reports through is offline."""


class FatalProtocolError(SwitchBotError):
    """Request can never succeed as sent: unsupported, not found or malformed."""


def sign(secret: str, token: str, timestamp_millis: int, nonce: str) -> str:
    """Compute the request signature.

    The signed string is token, timestamp and nonce concatenated in that
    order, as required by the provider.

    Args:
        secret: OpenAPI secret used as the HMAC key.
        token: OpenAPI token.
        timestamp_millis: Request time in epoch milliseconds.
        nonce: Request nonce.

    Returns:
        Base64-encoded HMAC-SHA256 digest.

    Raises:
        ConfigurationError: If the secret is empty.

    """
    if not secret:
        error_msg = "OpenAPI secret is missing"
        raise ConfigurationError(error_msg)

    data = f"{token}{timestamp_millis}{nonce}".encode()
    digest = hmac.new(secret.encode(), data, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def create_headers(credentials: Credentials, context: RequestContext) -> dict[str, str]:
    """Create signed HTTP headers for a SwitchBot API request.

    Args:
        credentials: Token and secret.
        context: Fresh per-request context.

    Returns:
        Dictionary containing HTTP headers for API requests.

    """
    signature = sign(
        credentials.secret,
        credentials.token,
        context.timestamp_millis,
        context.nonce,
    )
    return {
        "Authorization": credentials.token,
        "sign": signature,
        "nonce": context.nonce,
        "t": str(context.timestamp_millis),
        "Content-Type": "application/json",
        "charset": "utf8",
    }


def device_status_url(device_id: str, base_url: str = BASE_URL) -> str:
    """Return the status resource URL for a device."""
    return f"{base_url}{DEVICE_PATH}/{device_id}/status"


def _validate_http_status(response: httpx.Response) -> None:
    status = response.status_code
    if status < HTTP_BAD_REQUEST:
        return

    if status in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
        error_msg = f"Credentials rejected: HTTP {status}"
        raise ConfigurationError(error_msg, code=status)

    if status >= HTTP_SERVER_ERROR:
        error_msg = f"Server error: HTTP {status}"
        raise TransportError(error_msg, code=status)

    error_msg = f"Request failed: HTTP {status}"
    raise FatalProtocolError(error_msg, code=status)


def _decode_json(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as err:
        error_msg = f"Malformed response payload: {err}"
        raise FatalProtocolError(error_msg) from err

    if not isinstance(data, dict):
        error_msg = "Malformed response payload: expected a JSON object"
        raise FatalProtocolError(error_msg)
    return data


def extract_status_code(data: dict[str, Any]) -> int:
    """Extract the provider status code from a response payload.

    A missing field is treated as success, since the HTTP layer already
    accepted the request.

    Raises:
        FatalProtocolError: If the field is present but not an integer.

    """
    code = data.get("statusCode", STATUS_SUCCESS)
    if isinstance(code, bool) or not isinstance(code, int):
        error_msg = f"Malformed statusCode: {code!r}"
        raise FatalProtocolError(error_msg)
    return code


def parse_device_status(data: dict[str, Any]) -> DeviceStatusSnapshot:
    """Extract temperature and humidity from a status response.

    Args:
        data: Decoded response payload.

    Returns:
        A new DeviceStatusSnapshot stamped with the current time.

    Raises:
        FatalProtocolError: If the body is missing or the fields are invalid.

    """
    body = data.get("body")
    if not isinstance(body, dict):
        error_msg = "Malformed response payload: missing body"
        raise FatalProtocolError(error_msg)

    temperature = body.get("temperature")
    humidity = body.get("humidity")
    device_type = body.get("deviceType")
    if not isinstance(device_type, str):
        device_type = None

    if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
        error_msg = f"Malformed temperature: {temperature!r}"
        raise FatalProtocolError(error_msg)

    if isinstance(humidity, float) and humidity.is_integer():
        humidity = int(humidity)
    if isinstance(humidity, bool) or not isinstance(humidity, int):
        error_msg = f"Malformed humidity: {humidity!r}"
        raise FatalProtocolError(error_msg)
    if not 0 <= humidity <= MAX_HUMIDITY:
        error_msg = f"Humidity out of range: {humidity}"
        raise FatalProtocolError(error_msg)

    return DeviceStatusSnapshot(
        temperature=float(temperature),
        humidity=humidity,
        captured_at=datetime.now(UTC),
        device_type=device_type,
    )


_ERROR_FOR_KIND: dict[OutcomeKind, type[SwitchBotError]] = {
    OutcomeKind.FATAL: FatalProtocolError,
    OutcomeKind.DEVICE_OFFLINE: DeviceOfflineError,
    OutcomeKind.HUB_OFFLINE: HubOfflineError,
}


def raise_for_outcome(outcome: Outcome) -> None:
    """Raise the error matching a non-success outcome.

    Raises:
        SwitchBotError: Subclass matching the outcome kind.

    """
    if outcome.is_success:
        return

    reason = outcome.reason or outcome.kind.value
    if outcome.kind is OutcomeKind.RETRYABLE:
        if outcome.unknown:
            raise UnknownProtocolError(reason, code=outcome.code)
        if outcome.code is None or outcome.code >= HTTP_BAD_REQUEST:
            raise TransportError(reason, code=outcome.code)
        raise DeviceDesyncError(reason, code=outcome.code)

    raise _ERROR_FOR_KIND[outcome.kind](reason, code=outcome.code)


def outcome_from_error(err: SwitchBotError) -> Outcome:
    """Convert a fetch error into the matching outcome."""
    reason = str(err)
    if isinstance(err, DeviceOfflineError):
        return Outcome.device_offline(reason, code=err.code)
    if isinstance(err, HubOfflineError):
        return Outcome.hub_offline(reason, code=err.code)
    if isinstance(err, RetryableError):
        return Outcome.retryable(
            reason, code=err.code, unknown=isinstance(err, UnknownProtocolError)
        )
    return Outcome.fatal(reason, code=err.code)


class StatusFetcher:
    """Issues signed status requests for a single device."""

    def __init__(
        self,
        session: httpx.AsyncClient,
        device_id: str,
        classifier: StatusCodeClassifier | None = None,
        base_url: str = BASE_URL,
    ) -> None:
        self._session = session
        self._device_id = device_id
        self._classifier = classifier or StatusCodeClassifier()
        self._url = device_status_url(device_id, base_url)

    @property
    def device_id(self) -> str:
        """Return the device this fetcher polls."""
        return self._device_id

    async def async_get_snapshot(
        self,
        credentials: Credentials,
        context: RequestContext | None = None,
    ) -> DeviceStatusSnapshot:
        """Fetch and parse the current device status.

        Args:
            credentials: Token and secret used to sign the request.
            context: Request context; a fresh one is created when omitted.

        Returns:
            Parsed DeviceStatusSnapshot.

        Raises:
            ConfigurationError: If the secret is empty or credentials are rejected.
            RetryableError: On transport failures and retryable provider codes.
            ProtocolError: If the device or hub is offline.
            FatalProtocolError: On unsupported requests or malformed payloads.

        """
        if context is None:
            context = RequestContext.create(self._device_id)
        headers = create_headers(credentials, context)

        _LOGGER.debug("Requesting status for device %s: %s", self._device_id, self._url)
        try:
            response = await self._session.get(
                self._url, headers=headers, timeout=REQUEST_TIMEOUT
            )
        except httpx.TimeoutException as err:
            error_msg = f"Timeout while requesting status: {err}"
            raise TransportError(error_msg) from err
        except httpx.RequestError as err:
            error_msg = f"Connection error while requesting status: {err}"
            raise TransportError(error_msg) from err

        _LOGGER.debug(
            "Device %s responded with HTTP %s", self._device_id, response.status_code
        )
        _validate_http_status(response)
        data = _decode_json(response)

        outcome = self._classifier.classify(extract_status_code(data))
        _LOGGER.debug("Device %s classified as %s", self._device_id, outcome.kind)
        raise_for_outcome(outcome)

        snapshot = parse_device_status(data)
        _LOGGER.debug("Device %s status: %s", self._device_id, snapshot)
        return snapshot

    async def async_fetch(
        self,
        credentials: Credentials,
        context: RequestContext | None = None,
    ) -> Outcome:
        """Fetch the device status as an Outcome.

        Provider and transport failures become outcomes. A ConfigurationError
        is raised, since no request can be signed until the entry is fixed.
        """
        try:
            snapshot = await self.async_get_snapshot(credentials, context)
        except ConfigurationError:
            raise
        except SwitchBotError as err:
            return outcome_from_error(err)
        return Outcome.success(snapshot, code=STATUS_SUCCESS)
