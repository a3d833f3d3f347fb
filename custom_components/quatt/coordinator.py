"""Data update coordinator for the Quatt integration.

The coordinator owns the single recurring timer polling one CiC.  On
every tick it asks the
:class:`~custom_components.quatt.connection.QuattConnectionManager` for a
snapshot and hands it to the
:class:`~custom_components.quatt.capabilities.CapabilityEngine`, which
updates the capability values and reports changes.  Each change with a
registered trigger is fired on the bus as a ``quatt_event``.

Entities in this integration inherit from
:class:`homeassistant.helpers.update_coordinator.CoordinatorEntity` and
read their value from :attr:`QuattDataUpdateCoordinator.capabilities`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timedelta

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.helpers.update_coordinator import (
    DataUpdateCoordinator,
    UpdateFailed,
)

from .api.errors import QuattError
from .api.models import CicStats
from .capabilities import CapabilityChange, CapabilityEngine, CapabilityStore
from .connection import QuattConnectionManager
from .const import DOMAIN, EVENT_QUATT
from .triggers import TriggerSpec
from .utils import clamp_scan_interval

_LOGGER = logging.getLogger(__name__)


class QuattDataUpdateCoordinator(DataUpdateCoordinator[CicStats | None]):
    """Class to manage fetching Quatt data from a single CiC."""

    def __init__(
        self,
        hass: HomeAssistant,
        manager: QuattConnectionManager,
        scan_interval: int,
        *,
        config_entry: ConfigEntry | None = None,
        device_id: str | None = None,
    ) -> None:
        self.manager = manager
        self.device_id = device_id
        self.engine = CapabilityEngine(on_change=self._async_fire_change)
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=f"{DOMAIN} {manager.state.hostname or manager.client.host}",
            update_interval=timedelta(seconds=clamp_scan_interval(scan_interval)),
        )
        # Refresh right away instead of waiting for the next tick.
        manager.set_reconnected_callback(self.async_request_refresh)

    @property
    def capabilities(self) -> CapabilityStore:
        return self.engine.store

    async def _async_update_data(self) -> CicStats | None:
        """Fetch the latest snapshot and apply it to the capabilities.

        An empty answer, or a tick arriving while a reconnection runs,
        keeps the previous data.  Failures are converted into
        :class:`UpdateFailed`; the connection manager has already updated
        the availability of the device and, for connectivity failures,
        started a reconnection.
        """
        try:
            stats = await self.manager.async_poll()
        except QuattError as err:
            raise UpdateFailed(f"Error fetching Quatt data: {err}") from err
        if stats is None:
            return self.data
        self.engine.apply_snapshot(stats)
        return stats

    @callback
    def _async_fire_change(self, change: CapabilityChange, trigger: TriggerSpec) -> None:
        _LOGGER.debug(
            "%s changed from %s to %s", change.key, change.previous, change.value
        )
        self.hass.bus.async_fire(
            EVENT_QUATT,
            {
                "device_id": self.device_id,
                "type": trigger.event,
                "capability": change.key,
                "unit": change.unit,
                "value": change.value,
                "previous": change.previous,
            },
        )

    @callback
    def async_set_scan_interval(self, seconds: int) -> None:
        """Apply a new polling interval, replacing the running timer."""
        interval = timedelta(seconds=clamp_scan_interval(seconds))
        if interval == self.update_interval and self._unsub_refresh is not None:
            return
        _LOGGER.debug("Setting Quatt scan interval to %s", interval)
        self.update_interval = interval
        self._unschedule_refresh()
        if self._listeners:
            self._schedule_refresh()

    @callback
    def async_add_capability_listener(
        self, update_callback: Callable[[list[str]], None]
    ) -> CALLBACK_TYPE:
        """Call ``update_callback`` with capability keys not delivered yet.

        Keys are delivered once the topology of the installation is known
        and again for the keys added if it grows to two heat pumps.
        """
        delivered: set[str] = set()

        @callback
        def _async_deliver() -> None:
            new_keys = [key for key in self.capabilities.active_keys() if key not in delivered]
            if new_keys:
                delivered.update(new_keys)
                update_callback(new_keys)

        _async_deliver()
        return self.async_add_listener(_async_deliver)

    async def async_shutdown(self) -> None:
        """Stop the timer and any running reconnection."""
        await super().async_shutdown()
        await self.manager.async_stop()
