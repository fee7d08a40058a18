"""Provider status code classification for the SwitchBot OpenAPI."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .const import (
    STATUS_COMMAND_NOT_SUPPORTED,
    STATUS_DEVICE_DESYNC,
    STATUS_DEVICE_NOT_FOUND,
    STATUS_DEVICE_OFFLINE,
    STATUS_HUB_OFFLINE,
    STATUS_SUCCESS,
    STATUS_UNSUPPORTED_BY_DEVICE_TYPE,
)
from .models import Outcome, OutcomeKind

_LOGGER = logging.getLogger(__name__)

DEFAULT_STATUS_CODES: dict[int, tuple[OutcomeKind, str]] = {
    STATUS_SUCCESS: (OutcomeKind.SUCCESS, "Request accepted"),
    STATUS_UNSUPPORTED_BY_DEVICE_TYPE: (
        OutcomeKind.FATAL,
        "Command not supported by this device type",
    ),
    STATUS_DEVICE_NOT_FOUND: (OutcomeKind.FATAL, "Device not found"),
    STATUS_COMMAND_NOT_SUPPORTED: (OutcomeKind.FATAL, "Command is not supported"),
    STATUS_DEVICE_OFFLINE: (OutcomeKind.DEVICE_OFFLINE, "Device is offline"),
    STATUS_HUB_OFFLINE: (OutcomeKind.HUB_OFFLINE, "Hub device is offline"),
    STATUS_DEVICE_DESYNC: (
        OutcomeKind.RETRYABLE,
        "Device internal error: state not synchronized with server "
        "or command format is invalid",
    ),
}


class StatusCodeClassifier:
    """Table-driven mapping from provider status codes to outcomes.

    The default table can be extended at startup, so new provider codes
    do not require a code change. Codes missing from the table classify
    as retryable and are logged as unknown.
    """

    def __init__(
        self, overrides: Mapping[int, OutcomeKind | tuple[OutcomeKind, str]] | None = None
    ) -> None:
        self._table = dict(DEFAULT_STATUS_CODES)
        for code, entry in (overrides or {}).items():
            if isinstance(entry, tuple):
                self.register(code, *entry)
            else:
                self.register(code, entry)

    @classmethod
    def from_options(cls, raw: Mapping[str, Any] | None) -> StatusCodeClassifier:
        """Build a classifier from config entry options.

        Args:
            raw: Mapping of code strings to outcome kind names,
                e.g. {"175": "fatal"}.

        Returns:
            Classifier with the valid entries applied. Invalid entries are
            logged and skipped.

        """
        overrides: dict[int, OutcomeKind] = {}
        for code, kind in (raw or {}).items():
            try:
                overrides[int(code)] = OutcomeKind(kind)
            except (TypeError, ValueError):
                _LOGGER.warning("Ignoring invalid status code mapping %s=%s", code, kind)
        return cls(overrides)

    def register(self, code: int, kind: OutcomeKind, reason: str | None = None) -> None:
        """Add or replace a table entry."""
        self._table[code] = (kind, reason or f"Status code {code}")

    def classify(self, code: int) -> Outcome:
        """Map a provider status code to an outcome.

        Args:
            code: Integer status code from the response payload.

        Returns:
            Outcome for the code. A success outcome carries no snapshot;
            it only means the response body can be parsed.

        """
        entry = self._table.get(code)
        if entry is None:
            _LOGGER.warning(
                "Unknown statusCode %s; treating as retryable. "
                "Add it to the status_codes option to classify it",
                code,
            )
            return Outcome.retryable(f"Unknown statusCode {code}", code=code, unknown=True)

        kind, reason = entry
        if kind is OutcomeKind.SUCCESS:
            return Outcome.success(code=code)
        return Outcome(kind, reason=reason, code=code)
