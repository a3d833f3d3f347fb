"""Diagnostics support for the Quatt integration."""

from __future__ import annotations

from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .api.errors import QuattRemoteError
from .const import (
    CONF_HOST,
    CONF_OVERRIDE_HOST,
    CONF_REMOTE_CIC_ID,
    CONF_REMOTE_ID_TOKEN,
    CONF_REMOTE_INSTALLATION_ID,
    DOMAIN,
)
from .coordinator import QuattDataUpdateCoordinator
from .utils import remote_client_for_entry

TO_REDACT = {
    CONF_HOST,
    CONF_OVERRIDE_HOST,
    CONF_REMOTE_ID_TOKEN,
    CONF_REMOTE_CIC_ID,
    CONF_REMOTE_INSTALLATION_ID,
    "address",
    "id",
    "cicId",
    "installationId",
}


async def _async_remote_diagnostics(hass: HomeAssistant, entry: ConfigEntry) -> dict[str, Any] | None:
    """Return the CiC document held by the cloud, or None without credentials."""
    client = remote_client_for_entry(hass, entry)
    if client is None:
        return None
    try:
        return async_redact_data(await client.async_get_cic_data(), TO_REDACT)
    except QuattRemoteError as err:
        return {"error": str(err)}


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator: QuattDataUpdateCoordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]
    topology = coordinator.engine.topology
    return {
        "entry": {
            "data": async_redact_data(dict(entry.data), TO_REDACT),
            "options": async_redact_data(dict(entry.options), TO_REDACT),
        },
        "connection": async_redact_data(coordinator.manager.state.as_dict(), TO_REDACT),
        "topology": topology.value if topology is not None else None,
        "last_update_success": coordinator.last_update_success,
        "capabilities": coordinator.capabilities.as_dict(),
        "remote": await _async_remote_diagnostics(hass, entry),
    }
