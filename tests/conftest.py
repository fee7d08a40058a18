"""Pytest configuration and fixtures for SwitchBot Hub tests."""

from datetime import UTC, datetime
from typing import Any
from unittest.mock import Mock

import pytest

from custom_components.switchbot_hub.api import device_status_url
from custom_components.switchbot_hub.models import (
    Credentials,
    DeviceConfig,
    DeviceStatusSnapshot,
)

TEST_DEVICE_ID = "C271111EC0AB"
TEST_TOKEN = "test_token"
TEST_SECRET = "test_secret"


@pytest.fixture
def credentials() -> Credentials:
    """Fixture providing valid OpenAPI credentials."""
    return Credentials(token=TEST_TOKEN, secret=TEST_SECRET)


@pytest.fixture
def device_config() -> DeviceConfig:
    """Fixture providing a cloud-enabled device config with default retries."""
    return DeviceConfig(device_id=TEST_DEVICE_ID, name="Living Room Hub")


@pytest.fixture
def status_url() -> str:
    """Fixture providing the status resource URL for the test device."""
    return device_status_url(TEST_DEVICE_ID)


def create_status_response(
    temperature: Any = 21.5,
    humidity: Any = 46,
    status_code: int = 100,
) -> dict[str, Any]:
    """Build a status API response payload.

    Args:
        temperature: Value for body.temperature.
        humidity: Value for body.humidity.
        status_code: Provider statusCode field.

    Returns:
        A dictionary shaped like a SwitchBot status response.

    """
    return {
        "statusCode": status_code,
        "message": "success",
        "body": {
            "deviceId": TEST_DEVICE_ID,
            "deviceType": "Hub 2",
            "hubDeviceId": TEST_DEVICE_ID,
            "temperature": temperature,
            "humidity": humidity,
            "lightLevel": 10,
        },
    }


@pytest.fixture
def sample_status_response() -> dict[str, Any]:
    """Fixture providing a successful status response."""
    return create_status_response()


@pytest.fixture
def sample_snapshot() -> DeviceStatusSnapshot:
    """Fixture providing a previously stored snapshot."""
    return DeviceStatusSnapshot(
        temperature=19.0,
        humidity=40,
        captured_at=datetime(2026, 1, 1, tzinfo=UTC),
    )


@pytest.fixture
def mock_presenter() -> Mock:
    """Fixture providing a presenter that records calls."""
    presenter = Mock()
    presenter.update_temperature = Mock()
    presenter.update_humidity = Mock()
    presenter.set_offline_mode = Mock()
    return presenter
