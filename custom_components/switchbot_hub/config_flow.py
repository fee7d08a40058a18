"""
Configuration flow for SwitchBot Hub integration.

This module handles the setup and configuration of the SwitchBot Hub
integration through Home Assistant's config flow system.
"""

import logging
from typing import Any

import voluptuous as vol
from homeassistant.config_entries import (
    ConfigEntry,
    ConfigFlow,
    ConfigFlowResult,
    OptionsFlow,
)
from homeassistant.core import callback
from homeassistant.helpers.httpx_client import get_async_client

from . import api
from .const import (
    CONF_CONNECTION_TYPE,
    CONF_DEVICE_ID,
    CONF_MAX_RETRY,
    CONF_MODEL,
    CONF_NAME,
    CONF_REFRESH_RATE,
    CONF_SECRET,
    CONF_TOKEN,
    CLOUD_CONNECTION_TYPES,
    CONNECTION_OPENAPI,
    CONNECTION_TYPES,
    DEFAULT_MAX_RETRY,
    DEFAULT_REFRESH_RATE,
    DOMAIN,
    ERROR_CANNOT_CONNECT,
    ERROR_DEVICE_NOT_FOUND,
    ERROR_INVALID_AUTH,
    ERROR_UNKNOWN,
    STATUS_DEVICE_NOT_FOUND,
)
from .models import credentials_from_config

_LOGGER = logging.getLogger(__name__)

MAX_RETRY_LIMIT = 20

USER_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_DEVICE_ID): str,
        vol.Optional(CONF_NAME): str,
        vol.Optional(CONF_TOKEN, default=""): str,
        vol.Optional(CONF_SECRET, default=""): str,
        vol.Required(CONF_CONNECTION_TYPE, default=CONNECTION_OPENAPI): vol.In(
            CONNECTION_TYPES
        ),
    }
)


class SwitchBotHubConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle configuration flow for SwitchBot Hub integration."""

    VERSION = 1

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry) -> OptionsFlow:
        """Return the options flow handler."""
        return SwitchBotHubOptionsFlow()

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """
        Handle the initial step of the config flow.

        Args:
            user_input: User input with device id, credentials and connection type.

        Returns:
            ConfigFlowResult indicating the next step or errors.

        """
        errors: dict[str, str] = {}

        if user_input is not None:
            device_id = user_input[CONF_DEVICE_ID].strip()
            await self.async_set_unique_id(device_id)
            self._abort_if_unique_id_configured()

            data = {**user_input, CONF_DEVICE_ID: device_id}
            if data[CONF_CONNECTION_TYPE] in CLOUD_CONNECTION_TYPES:
                error = await self._async_validate_credentials(data)
                if error is not None:
                    errors["base"] = error

            if not errors:
                name = data.get(CONF_NAME) or device_id
                return self.async_create_entry(
                    title=f"SwitchBot Hub ({name})",
                    data=data,
                )

        return self.async_show_form(
            step_id="user",
            data_schema=USER_SCHEMA,
            errors=errors,
        )

    async def _async_validate_credentials(self, data: dict[str, Any]) -> str | None:
        """Fetch the device status once and return an error key on failure.

        A successful fetch stores the reported device type as the model.
        """
        credentials = credentials_from_config(data)
        if credentials is None:
            _LOGGER.warning("No OpenAPI token provided (%s)", ERROR_INVALID_AUTH)
            return ERROR_INVALID_AUTH

        fetcher = api.StatusFetcher(get_async_client(self.hass), data[CONF_DEVICE_ID])
        try:
            snapshot = await fetcher.async_get_snapshot(credentials)
        except api.ConfigurationError as err:
            _LOGGER.warning("Authentication failed (%s): %s", ERROR_INVALID_AUTH, err)
            return ERROR_INVALID_AUTH
        except api.ProtocolError as err:
            # Offline devices are still valid; polling picks them up later
            _LOGGER.warning("Device reported offline during setup: %s", err)
        except api.FatalProtocolError as err:
            if err.code == STATUS_DEVICE_NOT_FOUND:
                _LOGGER.warning("Device not found (%s)", ERROR_DEVICE_NOT_FOUND)
                return ERROR_DEVICE_NOT_FOUND
            _LOGGER.exception("API error (%s)", ERROR_UNKNOWN)
            return ERROR_UNKNOWN
        except api.RetryableError:
            _LOGGER.exception("Connection error (%s)", ERROR_CANNOT_CONNECT)
            return ERROR_CANNOT_CONNECT
        except Exception:
            _LOGGER.exception(
                "Unexpected error during validation (%s)",
                ERROR_UNKNOWN,
            )
            return ERROR_UNKNOWN
        else:
            if snapshot.device_type:
                data[CONF_MODEL] = snapshot.device_type

        return None


class SwitchBotHubOptionsFlow(OptionsFlow):
    """Handle polling options for a SwitchBot Hub entry."""

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Manage refresh rate and retry budget."""
        if user_input is not None:
            return self.async_create_entry(
                data={**self.config_entry.options, **user_input}
            )

        options = self.config_entry.options
        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(
                {
                    vol.Required(
                        CONF_REFRESH_RATE,
                        default=options.get(CONF_REFRESH_RATE, DEFAULT_REFRESH_RATE),
                    ): vol.All(vol.Coerce(int), vol.Range(min=1)),
                    vol.Required(
                        CONF_MAX_RETRY,
                        default=options.get(CONF_MAX_RETRY, DEFAULT_MAX_RETRY),
                    ): vol.All(vol.Coerce(int), vol.Range(min=0, max=MAX_RETRY_LIMIT)),
                }
            ),
        )
