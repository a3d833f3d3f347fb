"""Configuration flow for the Quatt integration.

This module implements the UI configuration flow used by Home Assistant to
set up a Quatt CiC.  When the user leaves the address empty the flow
scans the subnets of the host's network adapters for controllers; when
an address is given it is verified by asking the controller for its
identity.  The hostname reported by the controller becomes the unique id
of the entry, so that a controller found again at a new address updates
its existing entry instead of creating a second one.

An options flow allows adjusting the polling interval, a manual override
address and the optional cloud credentials after the initial setup.
"""

from __future__ import annotations

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
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .api.locator import DiscoveredDevice, QuattLocator
from .const import (
    CONF_HOST,
    CONF_HOSTNAME,
    CONF_OVERRIDE_HOST,
    CONF_PORT,
    CONF_REMOTE_CIC_ID,
    CONF_REMOTE_ID_TOKEN,
    CONF_REMOTE_INSTALLATION_ID,
    CONF_SCAN_INTERVAL,
    DEFAULT_PORT,
    DEFAULT_SCAN_INTERVAL,
    DOMAIN,
    MAX_SCAN_INTERVAL,
    MIN_SCAN_INTERVAL,
)
from .utils import async_get_local_subnets

_LOGGER = logging.getLogger(__name__)

CONF_DEVICE = "device"

REMOTE_KEYS = (CONF_REMOTE_ID_TOKEN, CONF_REMOTE_CIC_ID, CONF_REMOTE_INSTALLATION_ID)


class QuattConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Quatt."""

    VERSION = 1

    def __init__(self) -> None:
        self._discovered: dict[str, DiscoveredDevice] = {}

    def _locator(self) -> QuattLocator:
        return QuattLocator(async_get_clientsession(self.hass))

    async def async_step_user(self, user_input: dict[str, Any] | None = None) -> ConfigFlowResult:
        """Handle the initial step of the config flow.

        An empty address starts a scan of the local subnets.
        """
        errors: dict[str, str] = {}
        if user_input is not None:
            host = (user_input.get(CONF_HOST) or "").strip()
            if host:
                hostname = await self._locator().async_verify(host)
                if hostname is None:
                    _LOGGER.error("No CiC answering at %s", host)
                    errors["base"] = "cannot_connect"
                else:
                    return await self._async_create_device_entry(DiscoveredDevice(host, hostname))
            else:
                devices = await self._async_discover()
                if not devices:
                    errors["base"] = "no_devices_found"
                elif len(devices) == 1:
                    return await self._async_create_device_entry(devices[0])
                else:
                    self._discovered = {device.address: device for device in devices}
                    return await self.async_step_select()

        data_schema = vol.Schema(
            {
                vol.Optional(CONF_HOST, default=(user_input or {}).get(CONF_HOST, "")): str,
            }
        )
        return self.async_show_form(step_id="user", data_schema=data_schema, errors=errors)

    async def async_step_select(self, user_input: dict[str, Any] | None = None) -> ConfigFlowResult:
        """Let the user pick one of several discovered controllers."""
        if user_input is not None:
            return await self._async_create_device_entry(self._discovered[user_input[CONF_DEVICE]])

        choices = {
            address: f"{device.hostname} ({address})"
            for address, device in self._discovered.items()
        }
        return self.async_show_form(
            step_id="select",
            data_schema=vol.Schema({vol.Required(CONF_DEVICE): vol.In(choices)}),
        )

    async def _async_discover(self) -> list[DiscoveredDevice]:
        locator = self._locator()
        found: dict[str, DiscoveredDevice] = {}
        for subnet in await async_get_local_subnets(self.hass):
            _LOGGER.debug("Scanning %s for CiC controllers", subnet)
            for device in await locator.async_discover(subnet):
                found.setdefault(device.address, device)
        return list(found.values())

    async def _async_create_device_entry(self, device: DiscoveredDevice) -> ConfigFlowResult:
        await self.async_set_unique_id(device.hostname)
        self._abort_if_unique_id_configured(updates={CONF_HOST: device.address})
        return self.async_create_entry(
            title=device.hostname,
            data={
                CONF_HOST: device.address,
                CONF_HOSTNAME: device.hostname,
                CONF_PORT: DEFAULT_PORT,
            },
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry) -> QuattOptionsFlow:
        return QuattOptionsFlow()


class QuattOptionsFlow(OptionsFlow):
    """Handle an options flow for Quatt."""

    async def async_step_init(self, user_input: dict[str, Any] | None = None) -> ConfigFlowResult:
        """Manage the options for the integration.

        The polling interval and the override address are stored as
        options.  Cloud credentials belong to the entry data and are
        persisted by updating the entry.
        """
        if user_input is not None:
            remote = {key: user_input[key] for key in REMOTE_KEYS if user_input.get(key)}
            data = {key: value for key, value in self.config_entry.data.items() if key not in REMOTE_KEYS}
            if remote != {key: self.config_entry.data[key] for key in REMOTE_KEYS if key in self.config_entry.data}:
                self.hass.config_entries.async_update_entry(self.config_entry, data={**data, **remote})
            options: dict[str, Any] = {CONF_SCAN_INTERVAL: user_input[CONF_SCAN_INTERVAL]}
            if override := (user_input.get(CONF_OVERRIDE_HOST) or "").strip():
                options[CONF_OVERRIDE_HOST] = override
            return self.async_create_entry(title="", data=options)

        current_data = self.config_entry.data
        current_options = self.config_entry.options
        schema: dict[Any, Any] = {
            vol.Optional(
                CONF_SCAN_INTERVAL,
                default=current_options.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL),
            ): vol.All(vol.Coerce(int), vol.Range(min=MIN_SCAN_INTERVAL, max=MAX_SCAN_INTERVAL)),
            vol.Optional(
                CONF_OVERRIDE_HOST,
                description={"suggested_value": current_options.get(CONF_OVERRIDE_HOST)},
            ): str,
        }
        for key in REMOTE_KEYS:
            schema[vol.Optional(key, description={"suggested_value": current_data.get(key)})] = str
        return self.async_show_form(step_id="init", data_schema=vol.Schema(schema))
