"""Common helper functions for the Quatt integration."""

from __future__ import annotations

import ipaddress
import logging

from homeassistant.components import network
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .api.remote import QuattRemoteClient
from .const import (
    CONF_REMOTE_CIC_ID,
    CONF_REMOTE_ID_TOKEN,
    CONF_REMOTE_INSTALLATION_ID,
    DEFAULT_SCAN_INTERVAL,
    MAX_SCAN_INTERVAL,
    MIN_SCAN_INTERVAL,
)

_LOGGER = logging.getLogger(__name__)


def clamp_scan_interval(value: object) -> int:
    """Return ``value`` as a polling interval within the allowed bounds.

    Unparseable values fall back to
    :data:`~custom_components.quatt.const.DEFAULT_SCAN_INTERVAL`.
    """
    try:
        seconds = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return DEFAULT_SCAN_INTERVAL
    return max(MIN_SCAN_INTERVAL, min(MAX_SCAN_INTERVAL, seconds))


async def async_get_local_subnets(hass: HomeAssistant) -> list[str]:
    """Return the IPv4 networks of the enabled network adapters.

    Loopback and link-local addresses are skipped.  Every network is
    returned as a /24, which is what the locator scans.
    """
    subnets: list[str] = []
    for adapter in await network.async_get_adapters(hass):
        if not adapter["enabled"]:
            continue
        for ipv4 in adapter["ipv4"]:
            address = ipaddress.IPv4Address(ipv4["address"])
            if address.is_loopback or address.is_link_local:
                continue
            subnet = str(ipaddress.IPv4Network(f"{address}/24", strict=False))
            if subnet not in subnets:
                subnets.append(subnet)
    _LOGGER.debug("Local subnets: %s", subnets)
    return subnets


def remote_client_for_entry(hass: HomeAssistant, entry: ConfigEntry) -> QuattRemoteClient | None:
    """Return a cloud client for ``entry``, or None without credentials."""
    id_token = entry.data.get(CONF_REMOTE_ID_TOKEN)
    cic_id = entry.data.get(CONF_REMOTE_CIC_ID)
    if not id_token or not cic_id:
        return None
    return QuattRemoteClient(
        async_get_clientsession(hass),
        id_token,
        cic_id,
        entry.data.get(CONF_REMOTE_INSTALLATION_ID),
    )
