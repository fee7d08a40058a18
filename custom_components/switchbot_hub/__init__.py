from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.helpers.httpx_client import get_async_client

from . import api
from .classifier import StatusCodeClassifier
from .const import CONF_DEVICE_ID, CONF_STATUS_CODES, DOMAIN
from .coordinator import SwitchBotHubPoller
from .models import DeviceConfig, credentials_from_config
from .reconciler import StateReconciler
from .sensor import SwitchBotHubPresenter

_LOGGER = logging.getLogger(__name__)

PLATFORMS = [Platform.SENSOR]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Setting up SwitchBot Hub integration for entry %s", entry.entry_id)

    if CONF_DEVICE_ID not in entry.data:
        _LOGGER.error("Missing device id in configuration for entry %s", entry.entry_id)
        return False

    try:
        config = DeviceConfig.from_entry(dict(entry.data), dict(entry.options))
    except (TypeError, ValueError) as err:
        _LOGGER.error("Invalid configuration for entry %s: %s", entry.entry_id, err)
        return False

    credentials = credentials_from_config(dict(entry.data))
    if credentials is None:
        _LOGGER.warning(
            "No OpenAPI token configured for %s, cloud polling is disabled",
            config.name,
        )

    session = get_async_client(hass)
    classifier = StatusCodeClassifier.from_options(entry.options.get(CONF_STATUS_CODES))
    fetcher = api.StatusFetcher(session, config.device_id, classifier)
    presenter = SwitchBotHubPresenter(hass, config.name, config.device_id)
    reconciler = StateReconciler(presenter, config.name)
    poller = SwitchBotHubPoller(hass, config, credentials, fetcher, reconciler)

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = {
        "session": session,
        "config": config,
        "presenter": presenter,
        "reconciler": reconciler,
        "poller": poller,
    }
    _LOGGER.debug("Stored data for entry %s: device %s", entry.entry_id, config.device_id)

    try:
        await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    except Exception as err:
        _LOGGER.error("Failed to setup platforms for entry %s: %s", entry.entry_id, err)
        hass.data[DOMAIN].pop(entry.entry_id, None)
        return False

    await poller.async_start()
    entry.async_on_unload(entry.add_update_listener(async_reload_entry))
    _LOGGER.info(
        "Successfully setup SwitchBot Hub integration for entry %s", entry.entry_id
    )
    return True


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry after its options change."""
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Unloading SwitchBot Hub integration for entry %s", entry.entry_id)

    entry_data = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    if entry_data is not None:
        entry_data["poller"].async_stop()

    try:
        unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
        if unload_ok:
            if DOMAIN in hass.data and entry.entry_id in hass.data[DOMAIN]:
                hass.data[DOMAIN].pop(entry.entry_id)
                _LOGGER.debug("Cleaned up data for entry %s", entry.entry_id)
            _LOGGER.info(
                "Successfully unloaded SwitchBot Hub integration for entry %s",
                entry.entry_id,
            )
        else:
            _LOGGER.warning(
                "Failed to unload some platforms for entry %s", entry.entry_id
            )

        return unload_ok
    except Exception as err:
        _LOGGER.error(
            "Error unloading SwitchBot Hub integration for entry %s: %s",
            entry.entry_id,
            err,
        )
        return False
