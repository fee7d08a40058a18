"""Constants for SwitchBot Hub integration.

This module contains all the constants used throughout the integration,
including API endpoints, configuration keys, and the provider status codes.
"""

DOMAIN = "switchbot_hub"
VERSION = "0.1.0"
MANUFACTURER = "SwitchBot"
DEFAULT_MODEL = "Hub 2"

BASE_URL = "https://api.switch-bot.com"
DEVICE_PATH = "/v1.1/devices"

DEFAULT_REFRESH_RATE = 300  # Seconds between status polls
DEFAULT_MAX_RETRY = 5
RETRY_DELAY = 1.0  # Seconds between retry attempts, constant
REQUEST_TIMEOUT = 10.0

SIGNAL_DEVICE_STATE = f"{DOMAIN}_device_state"

CONF_DEVICE_ID = "device_id"
CONF_NAME = "name"
CONF_TOKEN = "token"
CONF_SECRET = "secret"
CONF_CONNECTION_TYPE = "connection_type"
CONF_REFRESH_RATE = "refresh_rate"
CONF_MAX_RETRY = "max_retry"
CONF_STATUS_CODES = "status_codes"
CONF_FIRMWARE = "firmware"
CONF_MODEL = "model"

CONNECTION_OPENAPI = "OpenAPI"
CONNECTION_BLE = "BLE"
CONNECTION_BLE_OPENAPI = "BLE/OpenAPI"
CONNECTION_DISABLED = "Disabled"
CONNECTION_TYPES = [
    CONNECTION_OPENAPI,
    CONNECTION_BLE_OPENAPI,
    CONNECTION_BLE,
    CONNECTION_DISABLED,
]
CLOUD_CONNECTION_TYPES = {CONNECTION_OPENAPI, CONNECTION_BLE_OPENAPI}

ERROR_INVALID_AUTH = "invalid_auth"
ERROR_CANNOT_CONNECT = "cannot_connect"
ERROR_DEVICE_NOT_FOUND = "device_not_found"
ERROR_UNKNOWN = "unknown"

# Provider status codes carried in the "statusCode" field of every response
STATUS_SUCCESS = 100
STATUS_UNSUPPORTED_BY_DEVICE_TYPE = 151
STATUS_DEVICE_NOT_FOUND = 152
STATUS_COMMAND_NOT_SUPPORTED = 160
STATUS_DEVICE_OFFLINE = 161
STATUS_HUB_OFFLINE = 171
STATUS_DEVICE_DESYNC = 190
