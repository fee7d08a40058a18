"""Poll scheduler for SwitchBot Hub integration."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from homeassistant.core import CALLBACK_TYPE, callback
from homeassistant.helpers.event import async_track_time_interval

from . import api
from .models import DeviceStatusSnapshot, Outcome, OutcomeKind, RefreshState
from .retry import RetryPolicy

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .models import Credentials, DeviceConfig
    from .reconciler import StateReconciler

_LOGGER = logging.getLogger(__name__)


class SwitchBotHubPoller:
    """Drives one fetch cycle per interval for a single device.

    A tick that arrives while a cycle is still running is dropped, not
    queued, so a slow request throttles later cycles instead of stacking
    parallel requests. Reconciliation for a cycle finishes before the
    next one can start.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config: DeviceConfig,
        credentials: Credentials | None,
        fetcher: api.StatusFetcher,
        reconciler: StateReconciler,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the poller."""
        self.hass = hass
        self.config = config
        self.refresh_state = RefreshState()
        self._credentials = credentials
        self._fetcher = fetcher
        self._reconciler = reconciler
        self._retry_policy = retry_policy or RetryPolicy(
            max_attempts=config.max_retry,
            name=f"{config.name} status refresh",
        )
        self._unsub_interval: CALLBACK_TYPE | None = None

    @property
    def update_interval(self) -> timedelta:
        """Return the polling period."""
        return timedelta(seconds=self.config.refresh_rate)

    @property
    def cloud_polling_enabled(self) -> bool:
        """Return True if credentials exist and the connection type allows polling."""
        return self._credentials is not None and self.config.cloud_enabled

    @property
    def snapshot(self) -> DeviceStatusSnapshot | None:
        """Return the latest successfully parsed snapshot."""
        return self._reconciler.snapshot

    @property
    def running(self) -> bool:
        """Return True while the interval timer is registered."""
        return self._unsub_interval is not None

    async def async_start(self) -> None:
        """Schedule an initial refresh and start the interval timer."""
        if self._unsub_interval is not None:
            return

        _LOGGER.debug(
            "%s: polling every %ss (connection type %s)",
            self.config.name,
            self.config.refresh_rate,
            self.config.connection_type,
        )
        self.hass.async_create_task(self.async_refresh())
        self._unsub_interval = async_track_time_interval(
            self.hass,
            self._async_handle_tick,
            self.update_interval,
        )

    @callback
    def async_stop(self) -> None:
        """Stop the interval timer. An in-flight cycle runs to completion."""
        if self._unsub_interval is not None:
            self._unsub_interval()
            self._unsub_interval = None

    async def _async_handle_tick(self, _now: datetime) -> None:
        await self.async_refresh()

    async def async_refresh(self) -> None:
        """Run one poll-fetch-reconcile cycle unless one is already running."""
        if self.refresh_state.in_progress:
            _LOGGER.debug(
                "%s: refresh already in progress, dropping tick", self.config.name
            )
            return

        if not self.cloud_polling_enabled:
            _LOGGER.debug(
                "%s: connection type %s without usable credentials, "
                "status refresh will not happen",
                self.config.name,
                self.config.connection_type,
            )
            self._reconciler.mark_offline()
            return

        self.refresh_state.in_progress = True
        try:
            outcome = await self._async_fetch_with_retry()
            if outcome is not None:
                self._reconciler.reconcile(outcome, self._reconciler.snapshot)
        finally:
            self.refresh_state.in_progress = False

    async def _async_fetch_with_retry(self) -> Outcome | None:
        """Fetch with retries and return the outcome.

        Retryable outcomes are raised back into the retry policy; the last
        one is returned once the budget is spent. Returns None when the cycle
        was skipped for a configuration error, after marking the device
        offline.
        """
        credentials = self._credentials
        if credentials is None:
            return None

        async def fetch() -> Outcome:
            outcome = await self._fetcher.async_fetch(credentials)
            if outcome.kind is OutcomeKind.RETRYABLE:
                api.raise_for_outcome(outcome)
            return outcome

        try:
            return await self._retry_policy.async_run(fetch)
        except api.ConfigurationError as err:
            _LOGGER.error(
                "%s: %s, skipping status refresh", self.config.name, err
            )
            self._reconciler.mark_offline()
            return None
        except api.RetryableError as err:
            return api.outcome_from_error(err)
