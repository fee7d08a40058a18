"""Sensor entities for SwitchBot Hub temperature and humidity.

This module holds the presentation side of the integration: a presenter
that receives reconciled values, and the two sensor entities that display
them in Home Assistant.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.const import PERCENTAGE, UnitOfTemperature
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.dispatcher import (
    async_dispatcher_connect,
    async_dispatcher_send,
)

from .const import (
    DEFAULT_MODEL,
    DOMAIN,
    MANUFACTURER,
    SIGNAL_DEVICE_STATE,
    VERSION,
)

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .models import DeviceConfig

_LOGGER = logging.getLogger(__name__)


class SwitchBotHubPresenter:
    """Holds the displayed hub values and signals entities through the dispatcher."""

    def __init__(self, hass: HomeAssistant, name: str, device_id: str) -> None:
        self._hass = hass
        self._name = name
        self.signal = f"{SIGNAL_DEVICE_STATE}_{device_id}"
        self.temperature: float | None = None
        self.humidity: int | None = None
        self.offline = False

    def update_temperature(self, temperature: float) -> None:
        self.temperature = temperature
        async_dispatcher_send(self._hass, self.signal)

    def update_humidity(self, humidity: int) -> None:
        self.humidity = humidity
        async_dispatcher_send(self._hass, self.signal)

    def set_offline_mode(self, offline: bool) -> None:
        if offline != self.offline:
            _LOGGER.debug("%s: offline mode %s", self._name, offline)
        self.offline = offline
        async_dispatcher_send(self._hass, self.signal)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up temperature and humidity sensors for a SwitchBot Hub."""
    entry_data = hass.data[DOMAIN][entry.entry_id]
    presenter = entry_data["presenter"]
    config = entry_data["config"]

    async_add_entities(
        [
            SwitchBotHubTemperatureSensor(presenter, config),
            SwitchBotHubHumiditySensor(presenter, config),
        ]
    )


class SwitchBotHubSensor(SensorEntity):
    """Base sensor bound to a hub presenter."""

    _attr_has_entity_name = True
    _attr_should_poll = False
    _attr_state_class = SensorStateClass.MEASUREMENT
    _key: str = ""

    def __init__(self, presenter: SwitchBotHubPresenter, config: DeviceConfig) -> None:
        self._presenter = presenter
        self._attr_unique_id = f"{config.device_id}_{self._key}"
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, config.device_id)},
            name=config.name,
            manufacturer=MANUFACTURER,
            model=config.model or DEFAULT_MODEL,
            serial_number=config.device_id,
            sw_version=config.firmware or VERSION,
        )

    @property
    def available(self) -> bool:
        """Return False while the hub is in offline mode."""
        return not self._presenter.offline

    async def async_added_to_hass(self) -> None:
        """Subscribe to presenter updates."""
        await super().async_added_to_hass()
        self.async_on_remove(
            async_dispatcher_connect(
                self.hass, self._presenter.signal, self.async_write_ha_state
            )
        )


class SwitchBotHubTemperatureSensor(SwitchBotHubSensor):
    """Current temperature reported by the hub."""

    _key = "temperature"
    _attr_device_class = SensorDeviceClass.TEMPERATURE
    _attr_native_unit_of_measurement = UnitOfTemperature.CELSIUS

    @property
    def native_value(self) -> float | None:
        """Return the last-known temperature."""
        return self._presenter.temperature


class SwitchBotHubHumiditySensor(SwitchBotHubSensor):
    """Current relative humidity reported by the hub."""

    _key = "humidity"
    _attr_device_class = SensorDeviceClass.HUMIDITY
    _attr_native_unit_of_measurement = PERCENTAGE

    @property
    def native_value(self) -> int | None:
        """Return the last-known relative humidity."""
        return self._presenter.humidity
