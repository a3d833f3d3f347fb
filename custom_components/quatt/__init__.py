"""Home Assistant integration for Quatt CiC controllers.

This module contains the entry points required by Home Assistant to set
up and tear down the integration.  Every config entry describes one CiC.
Setting it up creates the :class:`~custom_components.quatt.api.client.QuattClient`
bound to the last known address of the controller, the
:class:`~custom_components.quatt.connection.QuattConnectionManager` that
follows the controller when its address changes and the
:class:`~custom_components.quatt.coordinator.QuattDataUpdateCoordinator`
polling it.  The ``quatt.update_remote_settings`` service forwards
settings to the Quatt cloud API for entries holding cloud credentials.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any

import voluptuous as vol
from homeassistant.config_entries import ConfigEntry, ConfigEntryState
from homeassistant.core import HomeAssistant, ServiceCall, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers import device_registry as dr
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.typing import ConfigType

from .api.client import QuattClient
from .api.errors import QuattRemoteError
from .api.locator import DiscoveredDevice, QuattLocator
from .api.remote import RemoteSettings
from .connection import QuattConnectionManager
from .const import (
    CONF_HOST,
    CONF_HOSTNAME,
    CONF_OVERRIDE_HOST,
    CONF_PORT,
    CONF_SCAN_INTERVAL,
    DEFAULT_PORT,
    DEFAULT_SCAN_INTERVAL,
    DOMAIN,
    PLATFORMS,
    SERVICE_UPDATE_REMOTE_SETTINGS,
)
from .coordinator import QuattDataUpdateCoordinator
from .utils import async_get_local_subnets, remote_client_for_entry

_LOGGER = logging.getLogger(__name__)

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)

ATTR_CONFIG_ENTRY_ID = "config_entry_id"
ATTR_DAY_MAX_SOUND_LEVEL = "day_max_sound_level"
ATTR_NIGHT_MAX_SOUND_LEVEL = "night_max_sound_level"
ATTR_USE_PRICING_LIMITING_HEAT_PUMP = "use_pricing_limiting_heat_pump"

UPDATE_REMOTE_SETTINGS_SCHEMA = vol.Schema(
    {
        vol.Optional(ATTR_CONFIG_ENTRY_ID): cv.string,
        vol.Optional(ATTR_DAY_MAX_SOUND_LEVEL): cv.string,
        vol.Optional(ATTR_NIGHT_MAX_SOUND_LEVEL): cv.string,
        vol.Optional(ATTR_USE_PRICING_LIMITING_HEAT_PUMP): cv.boolean,
    }
)


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Register the services of the integration.

    The integration itself is configured via the UI config flow only.
    """

    async def _async_update_remote_settings(call: ServiceCall) -> None:
        settings = RemoteSettings(
            day_max_sound_level=call.data.get(ATTR_DAY_MAX_SOUND_LEVEL),
            night_max_sound_level=call.data.get(ATTR_NIGHT_MAX_SOUND_LEVEL),
            use_pricing_limiting_heat_pump=call.data.get(ATTR_USE_PRICING_LIMITING_HEAT_PUMP),
        )
        if not settings.as_payload():
            raise HomeAssistantError("No remote setting given")

        entry_id = call.data.get(ATTR_CONFIG_ENTRY_ID)
        entries = [
            entry
            for entry in hass.config_entries.async_entries(DOMAIN)
            if entry.state is ConfigEntryState.LOADED
            and (entry_id is None or entry.entry_id == entry_id)
        ]
        clients = [client for entry in entries if (client := remote_client_for_entry(hass, entry))]
        if not clients:
            raise HomeAssistantError("No Quatt entry with cloud credentials found")

        for client in clients:
            try:
                await client.async_update_cic_settings(settings)
            except QuattRemoteError as err:
                raise HomeAssistantError(f"Failed to update remote settings: {err}") from err

    hass.services.async_register(
        DOMAIN,
        SERVICE_UPDATE_REMOTE_SETTINGS,
        _async_update_remote_settings,
        schema=UPDATE_REMOTE_SETTINGS_SCHEMA,
    )
    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up a Quatt CiC from a config entry.

    The first refresh may fail without failing the setup: a controller
    that cannot be reached starts a reconnection in the background and
    its entities stay unavailable until it is found again.
    """
    hass.data.setdefault(DOMAIN, {})

    host: str = entry.data.get(CONF_HOST) or ""
    port: int = int(entry.data.get(CONF_PORT, DEFAULT_PORT))
    hostname: str | None = entry.data.get(CONF_HOSTNAME)
    scan_interval: int = entry.options.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL)

    _LOGGER.debug("Setting up Quatt entry %s for %s at %s:%s", entry.entry_id, hostname, host, port)

    session = async_get_clientsession(hass)
    client = QuattClient(host, session, port)

    @callback
    def _async_address_changed(device: DiscoveredDevice) -> None:
        _LOGGER.info("CiC %s moved to %s", device.hostname, device.address)
        hass.config_entries.async_update_entry(entry, data={**entry.data, CONF_HOST: device.address})

    manager = QuattConnectionManager(
        client,
        QuattLocator(session, port),
        hostname=hostname,
        override_host=entry.options.get(CONF_OVERRIDE_HOST),
        subnets=partial(async_get_local_subnets, hass),
        on_address_change=_async_address_changed,
        create_task=lambda coro: entry.async_create_background_task(
            hass, coro, f"{DOMAIN}_reconnect_{entry.entry_id}"
        ),
    )
    if not manager.initialize():
        _LOGGER.error("Failed to initialise Quatt entry %s: no address configured", entry.entry_id)
        return False

    device = dr.async_get(hass).async_get_or_create(
        config_entry_id=entry.entry_id,
        identifiers={(DOMAIN, hostname or host)},
        manufacturer="Quatt",
        model="CiC",
        name=f"Quatt {hostname or host}",
    )
    coordinator = QuattDataUpdateCoordinator(
        hass,
        manager,
        scan_interval,
        config_entry=entry,
        device_id=device.id,
    )
    await coordinator.async_refresh()

    hass.data[DOMAIN][entry.entry_id] = {
        "client": client,
        "coordinator": coordinator,
    }

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    # Options are applied in place; reloading would drop the capability state.
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    return True


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Apply changed options to the running coordinator."""
    data: dict[str, Any] | None = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    if data is None:
        return
    coordinator: QuattDataUpdateCoordinator = data["coordinator"]
    coordinator.manager.set_override_host(entry.options.get(CONF_OVERRIDE_HOST))
    coordinator.async_set_scan_interval(entry.options.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL))


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry.

    The platforms are unloaded first, then the coordinator timer and any
    running reconnection are stopped.
    """
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        data = hass.data[DOMAIN].pop(entry.entry_id, {})
        coordinator: QuattDataUpdateCoordinator | None = data.get("coordinator")
        if coordinator is not None:
            await coordinator.async_shutdown()
    return unload_ok
