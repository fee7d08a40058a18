"""Tests for SwitchBot Hub entry setup and unload."""

from typing import Any
from unittest.mock import AsyncMock, Mock, patch

import pytest

from custom_components.switchbot_hub import (
    PLATFORMS,
    async_setup_entry,
    async_unload_entry,
)
from custom_components.switchbot_hub.const import (
    CONF_CONNECTION_TYPE,
    CONF_DEVICE_ID,
    CONF_MAX_RETRY,
    CONF_NAME,
    CONF_REFRESH_RATE,
    CONF_SECRET,
    CONF_STATUS_CODES,
    CONF_TOKEN,
    DOMAIN,
)
from custom_components.switchbot_hub.coordinator import SwitchBotHubPoller
from custom_components.switchbot_hub.models import OutcomeKind

from .conftest import TEST_DEVICE_ID, TEST_SECRET, TEST_TOKEN

CLIENT_PATH = "custom_components.switchbot_hub.get_async_client"


@pytest.fixture
def mock_hass() -> Mock:
    """Create a mock Home Assistant instance."""
    hass = Mock()
    hass.data = {}
    hass.config_entries.async_forward_entry_setups = AsyncMock()
    hass.config_entries.async_unload_platforms = AsyncMock(return_value=True)
    return hass


def create_entry(
    data: dict[str, Any] | None = None, options: dict[str, Any] | None = None
) -> Mock:
    """Create a mock config entry."""
    entry = Mock()
    entry.entry_id = "entry_1"
    entry.data = data if data is not None else {
        CONF_DEVICE_ID: TEST_DEVICE_ID,
        CONF_NAME: "Living Room Hub",
        CONF_TOKEN: TEST_TOKEN,
        CONF_SECRET: TEST_SECRET,
        CONF_CONNECTION_TYPE: "OpenAPI",
    }
    entry.options = options or {}
    return entry


class TestAsyncSetupEntry:
    """Tests for async_setup_entry."""

    @pytest.mark.asyncio
    async def test_setup_wires_components_and_starts_polling(
        self, mock_hass: Mock
    ) -> None:
        """Test that setup stores the components and starts the poller."""
        entry = create_entry(options={CONF_REFRESH_RATE: 60, CONF_MAX_RETRY: 2})
        with (
            patch(CLIENT_PATH) as mock_client,
            patch.object(SwitchBotHubPoller, "async_start", new=AsyncMock()) as start,
        ):
            result = await async_setup_entry(mock_hass, entry)

        assert result is True
        mock_client.assert_called_once_with(mock_hass)
        entry_data = mock_hass.data[DOMAIN]["entry_1"]
        assert entry_data["session"] is mock_client.return_value
        assert set(entry_data) == {
            "session",
            "config",
            "presenter",
            "reconciler",
            "poller",
        }
        assert entry_data["config"].refresh_rate == 60
        assert entry_data["config"].max_retry == 2
        assert entry_data["poller"].cloud_polling_enabled is True
        mock_hass.config_entries.async_forward_entry_setups.assert_awaited_once_with(
            entry, PLATFORMS
        )
        start.assert_awaited_once()
        entry.async_on_unload.assert_called_once()

    @pytest.mark.asyncio
    async def test_setup_without_token_disables_cloud_polling(
        self, mock_hass: Mock
    ) -> None:
        """Test that a missing token still sets up the entry."""
        entry = create_entry({CONF_DEVICE_ID: TEST_DEVICE_ID})
        with (
            patch(CLIENT_PATH),
            patch.object(SwitchBotHubPoller, "async_start", new=AsyncMock()),
        ):
            result = await async_setup_entry(mock_hass, entry)

        assert result is True
        poller = mock_hass.data[DOMAIN]["entry_1"]["poller"]
        assert poller.cloud_polling_enabled is False

    @pytest.mark.asyncio
    async def test_setup_applies_status_code_options(self, mock_hass: Mock) -> None:
        """Test that status code overrides reach the fetcher's classifier."""
        entry = create_entry(options={CONF_STATUS_CODES: {"175": "fatal"}})
        with (
            patch(CLIENT_PATH),
            patch.object(SwitchBotHubPoller, "async_start", new=AsyncMock()),
            patch(
                "custom_components.switchbot_hub.api.StatusFetcher"
            ) as mock_fetcher_cls,
        ):
            await async_setup_entry(mock_hass, entry)

        classifier = mock_fetcher_cls.call_args[0][2]
        assert classifier.classify(175).kind is OutcomeKind.FATAL

    @pytest.mark.asyncio
    async def test_setup_fails_without_device_id(self, mock_hass: Mock) -> None:
        """Test that an entry without a device id is rejected."""
        entry = create_entry({CONF_TOKEN: TEST_TOKEN})
        with patch(CLIENT_PATH) as mock_client:
            result = await async_setup_entry(mock_hass, entry)
        assert result is False
        mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_setup_fails_on_invalid_options(self, mock_hass: Mock) -> None:
        """Test that a negative retry budget is rejected."""
        entry = create_entry(options={CONF_MAX_RETRY: -1})
        with patch(CLIENT_PATH):
            result = await async_setup_entry(mock_hass, entry)
        assert result is False

    @pytest.mark.asyncio
    async def test_setup_cleans_up_when_platforms_fail(self, mock_hass: Mock) -> None:
        """Test that a platform failure removes stored data."""
        mock_hass.config_entries.async_forward_entry_setups.side_effect = RuntimeError(
            "boom"
        )
        entry = create_entry()
        with (
            patch(CLIENT_PATH),
            patch.object(SwitchBotHubPoller, "async_start", new=AsyncMock()) as start,
        ):
            result = await async_setup_entry(mock_hass, entry)
        assert result is False
        assert "entry_1" not in mock_hass.data[DOMAIN]
        start.assert_not_awaited()


class TestAsyncUnloadEntry:
    """Tests for async_unload_entry."""

    @pytest.mark.asyncio
    async def test_unload_stops_poller_and_removes_data(self, mock_hass: Mock) -> None:
        """Test that unload stops polling and cleans up."""
        poller = Mock()
        mock_hass.data = {DOMAIN: {"entry_1": {"poller": poller}}}
        entry = create_entry()

        result = await async_unload_entry(mock_hass, entry)

        assert result is True
        poller.async_stop.assert_called_once()
        assert "entry_1" not in mock_hass.data[DOMAIN]

    @pytest.mark.asyncio
    async def test_unload_keeps_data_when_platforms_fail(self, mock_hass: Mock) -> None:
        """Test that data stays when platforms fail to unload."""
        mock_hass.config_entries.async_unload_platforms.return_value = False
        mock_hass.data = {DOMAIN: {"entry_1": {"poller": Mock()}}}

        result = await async_unload_entry(mock_hass, create_entry())

        assert result is False
        assert "entry_1" in mock_hass.data[DOMAIN]

    @pytest.mark.asyncio
    async def test_unload_handles_errors(self, mock_hass: Mock) -> None:
        """Test that unload errors are logged and reported as failure."""
        mock_hass.config_entries.async_unload_platforms.side_effect = RuntimeError(
            "boom"
        )
        result = await async_unload_entry(mock_hass, create_entry())
        assert result is False

    @pytest.mark.asyncio
    async def test_reload_reuses_shared_client(self, mock_hass: Mock) -> None:
        """Test that setup after unload reuses the shared client without closing it."""
        shared_client = Mock()
        shared_client.aclose = AsyncMock()
        entry = create_entry()
        with (
            patch(CLIENT_PATH, return_value=shared_client) as mock_client,
            patch.object(SwitchBotHubPoller, "async_start", new=AsyncMock()),
        ):
            await async_setup_entry(mock_hass, entry)
            await async_unload_entry(mock_hass, entry)
            await async_setup_entry(mock_hass, entry)

        assert mock_client.call_count == 2
        assert mock_hass.data[DOMAIN]["entry_1"]["session"] is shared_client
        shared_client.aclose.assert_not_awaited()
