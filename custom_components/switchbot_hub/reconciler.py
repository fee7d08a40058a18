"""Merge fetch outcomes into the displayed device state."""

from __future__ import annotations

import logging
from typing import Protocol

from .models import DeviceStatusSnapshot, Outcome, OutcomeKind

_LOGGER = logging.getLogger(__name__)


class HubPresenter(Protocol):
    """Presentation side of the integration. Never receives raw errors."""

    def update_temperature(self, temperature: float) -> None: ...

    def update_humidity(self, humidity: int) -> None: ...

    def set_offline_mode(self, offline: bool) -> None: ...


class StateReconciler:
    """Owns the latest snapshot for one device and notifies the presenter."""

    def __init__(
        self,
        presenter: HubPresenter,
        name: str,
        snapshot: DeviceStatusSnapshot | None = None,
    ) -> None:
        self._presenter = presenter
        self._name = name
        self._offline = False
        self.snapshot = snapshot

    @property
    def offline(self) -> bool:
        """Return True if the presenter was last told the device is offline."""
        return self._offline

    def reconcile(
        self,
        outcome: Outcome,
        previous: DeviceStatusSnapshot | None,
    ) -> DeviceStatusSnapshot | None:
        """Apply an outcome and return the snapshot to keep.

        Only a successful outcome replaces the snapshot. Offline outcomes
        freeze the display; retryable and fatal outcomes are logged only.
        """
        if outcome.kind is OutcomeKind.SUCCESS and outcome.snapshot is not None:
            snapshot = outcome.snapshot
            if self._offline:
                self._offline = False
                self._presenter.set_offline_mode(False)
            self._presenter.update_temperature(snapshot.temperature)
            self._presenter.update_humidity(snapshot.humidity)
            _LOGGER.debug(
                "%s: temperature=%s humidity=%s",
                self._name,
                snapshot.temperature,
                snapshot.humidity,
            )
            self.snapshot = snapshot
            return snapshot

        if outcome.is_success:
            _LOGGER.debug("%s: success outcome without a snapshot", self._name)
        elif outcome.is_offline:
            _LOGGER.warning("%s: %s", self._name, outcome.reason)
            self.mark_offline()
        elif outcome.kind is OutcomeKind.FATAL:
            _LOGGER.error("%s: status refresh failed: %s", self._name, outcome.reason)
        elif outcome.unknown:
            _LOGGER.warning(
                "%s: unknown statusCode %s after retries", self._name, outcome.code
            )
        else:
            _LOGGER.warning(
                "%s: status refresh failed after retries: %s",
                self._name,
                outcome.reason,
            )

        return previous

    def mark_offline(self) -> None:
        """Tell the presenter to show the last-known or offline state."""
        self._offline = True
        self._presenter.set_offline_mode(True)
