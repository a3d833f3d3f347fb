"""Device triggers for Quatt CiC devices.

Each entry of :data:`~custom_components.quatt.triggers.TRIGGERS` is
offered as a device trigger.  Triggers attach to the ``quatt_event``
fired by the coordinator; the optional ``state``/``mode`` and ``unit``
arguments narrow the event data the automation waits for.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.components.device_automation import DEVICE_TRIGGER_BASE_SCHEMA
from homeassistant.components.homeassistant.triggers import event as event_trigger
from homeassistant.const import CONF_DEVICE_ID, CONF_DOMAIN, CONF_PLATFORM, CONF_TYPE
from homeassistant.core import CALLBACK_TYPE, HomeAssistant
from homeassistant.helpers.trigger import TriggerActionType, TriggerInfo
from homeassistant.helpers.typing import ConfigType

from .const import DOMAIN, EVENT_QUATT
from .triggers import ARG_UNIT, TRIGGERS, UNIT_CHOICES, build_event_data

TRIGGER_SCHEMA = DEVICE_TRIGGER_BASE_SCHEMA.extend(
    {
        vol.Required(CONF_TYPE): vol.In(list(TRIGGERS)),
        vol.Optional("state"): vol.In(["on", "off"]),
        vol.Optional("mode"): vol.Coerce(str),
        vol.Optional(ARG_UNIT): vol.In(UNIT_CHOICES),
    }
)


async def async_get_triggers(hass: HomeAssistant, device_id: str) -> list[dict[str, Any]]:
    """List the triggers of a Quatt device."""
    return [
        {
            CONF_PLATFORM: "device",
            CONF_DOMAIN: DOMAIN,
            CONF_DEVICE_ID: device_id,
            CONF_TYPE: event,
        }
        for event in TRIGGERS
    ]


async def async_get_trigger_capabilities(
    hass: HomeAssistant, config: ConfigType
) -> dict[str, vol.Schema]:
    """Return the extra fields of a trigger."""
    spec = TRIGGERS.get(config[CONF_TYPE])
    if spec is None:
        return {}
    fields: dict[Any, Any] = {}
    if spec.argument is not None:
        fields[vol.Optional(spec.argument)] = (
            vol.In(list(spec.values)) if spec.values is not None else str
        )
    if spec.per_unit:
        fields[vol.Optional(ARG_UNIT)] = vol.In(UNIT_CHOICES)
    if not fields:
        return {}
    return {"extra_fields": vol.Schema(fields)}


async def async_attach_trigger(
    hass: HomeAssistant,
    config: ConfigType,
    action: TriggerActionType,
    trigger_info: TriggerInfo,
) -> CALLBACK_TYPE:
    """Attach a trigger listening for a capability change."""
    event_config = event_trigger.TRIGGER_SCHEMA(
        {
            event_trigger.CONF_PLATFORM: "event",
            event_trigger.CONF_EVENT_TYPE: EVENT_QUATT,
            event_trigger.CONF_EVENT_DATA: build_event_data(
                config[CONF_DEVICE_ID], config[CONF_TYPE], config
            ),
        }
    )
    return await event_trigger.async_attach_trigger(
        hass, event_config, action, trigger_info, platform_type="device"
    )
