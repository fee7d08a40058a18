"""Data models for SwitchBot Hub integration."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

from .const import (
    CLOUD_CONNECTION_TYPES,
    CONF_CONNECTION_TYPE,
    CONF_DEVICE_ID,
    CONF_FIRMWARE,
    CONF_MAX_RETRY,
    CONF_MODEL,
    CONF_NAME,
    CONF_REFRESH_RATE,
    CONF_SECRET,
    CONF_TOKEN,
    CONNECTION_OPENAPI,
    DEFAULT_MAX_RETRY,
    DEFAULT_REFRESH_RATE,
)


@dataclass(frozen=True)
class Credentials:
    """OpenAPI token and secret used to sign every request."""

    token: str
    secret: str


def credentials_from_config(data: dict[str, Any]) -> Credentials | None:
    """Build credentials from config entry data.

    Returns:
        Credentials, or None when no token is configured.

    """
    token = (data.get(CONF_TOKEN) or "").strip()
    if not token:
        return None
    return Credentials(token=token, secret=data.get(CONF_SECRET) or "")


@dataclass(frozen=True)
class RequestContext:
    """Per-request signing context. Never reused across requests."""

    device_id: str
    timestamp_millis: int
    nonce: str

    @classmethod
    def create(cls, device_id: str) -> RequestContext:
        """Create a context stamped with the current time and a fresh nonce."""
        return cls(
            device_id=device_id,
            timestamp_millis=time.time_ns() // 1_000_000,
            nonce=str(uuid.uuid4()),
        )


@dataclass(frozen=True, slots=True)
class DeviceStatusSnapshot:
    """Latest successfully parsed hub reading."""

    temperature: float
    humidity: int
    captured_at: datetime
    device_type: str | None = None


@dataclass
class RefreshState:
    """Tracks whether a fetch cycle is currently running for a device."""

    in_progress: bool = False


class OutcomeKind(StrEnum):
    """Classification of a single fetch attempt."""

    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"
    DEVICE_OFFLINE = "device_offline"
    HUB_OFFLINE = "hub_offline"


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result of one fetch attempt, tagged by kind."""

    kind: OutcomeKind
    snapshot: DeviceStatusSnapshot | None = None
    reason: str | None = None
    code: int | None = None
    unknown: bool = False  # Code was missing from the classifier table

    @classmethod
    def success(
        cls, snapshot: DeviceStatusSnapshot | None = None, code: int | None = None
    ) -> Outcome:
        """Build a success outcome, with the parsed snapshot once available."""
        return cls(OutcomeKind.SUCCESS, snapshot=snapshot, code=code)

    @classmethod
    def retryable(
        cls, reason: str, code: int | None = None, *, unknown: bool = False
    ) -> Outcome:
        """Build an outcome for a failure that may succeed on the next attempt."""
        return cls(OutcomeKind.RETRYABLE, reason=reason, code=code, unknown=unknown)

    @classmethod
    def fatal(cls, reason: str, code: int | None = None) -> Outcome:
        """Build an outcome for a request that can never succeed as sent."""
        return cls(OutcomeKind.FATAL, reason=reason, code=code)

    @classmethod
    def device_offline(cls, reason: str, code: int | None = None) -> Outcome:
        """Build an outcome for an offline device."""
        return cls(OutcomeKind.DEVICE_OFFLINE, reason=reason, code=code)

    @classmethod
    def hub_offline(cls, reason: str, code: int | None = None) -> Outcome:
        """Build an outcome for an offline hub."""
        return cls(OutcomeKind.HUB_OFFLINE, reason=reason, code=code)

    @property
    def is_success(self) -> bool:
        """Return True for the success path."""
        return self.kind is OutcomeKind.SUCCESS

    @property
    def is_offline(self) -> bool:
        """Return True when the device or its hub is reported offline."""
        return self.kind in (OutcomeKind.DEVICE_OFFLINE, OutcomeKind.HUB_OFFLINE)


@dataclass(frozen=True)
class DeviceConfig:
    """Per-device polling configuration.

    Attributes:
        device_id: SwitchBot device identifier.
        name: Human-readable device name.
        refresh_rate: Seconds between polls, greater than zero.
        max_retry: Retries per cycle after the first attempt, zero or more.
        connection_type: One of the CONNECTION_* constants.
        firmware: Firmware revision reported in device info, if known.
        model: Device type reported in device info, if known.

    """

    device_id: str
    name: str
    refresh_rate: int = DEFAULT_REFRESH_RATE
    max_retry: int = DEFAULT_MAX_RETRY
    connection_type: str = CONNECTION_OPENAPI
    firmware: str | None = None
    model: str | None = None

    def __post_init__(self) -> None:
        if self.refresh_rate <= 0:
            error_msg = f"refresh_rate must be positive, got {self.refresh_rate}"
            raise ValueError(error_msg)
        if self.max_retry < 0:
            error_msg = f"max_retry must not be negative, got {self.max_retry}"
            raise ValueError(error_msg)

    @property
    def cloud_enabled(self) -> bool:
        """Return True if the connection type allows cloud polling."""
        return self.connection_type in CLOUD_CONNECTION_TYPES

    @classmethod
    def from_entry(
        cls, data: dict[str, Any], options: dict[str, Any] | None = None
    ) -> DeviceConfig:
        """Build a config from entry data, with options taking precedence."""
        options = options or {}
        device_id = data[CONF_DEVICE_ID]

        refresh_rate = options.get(CONF_REFRESH_RATE) or data.get(CONF_REFRESH_RATE)
        max_retry = options.get(CONF_MAX_RETRY, data.get(CONF_MAX_RETRY))

        return cls(
            device_id=device_id,
            name=data.get(CONF_NAME) or device_id,
            refresh_rate=int(refresh_rate or DEFAULT_REFRESH_RATE),
            max_retry=DEFAULT_MAX_RETRY if max_retry is None else int(max_retry),
            connection_type=data.get(CONF_CONNECTION_TYPE, CONNECTION_OPENAPI),
            firmware=data.get(CONF_FIRMWARE),
            model=data.get(CONF_MODEL),
        )
