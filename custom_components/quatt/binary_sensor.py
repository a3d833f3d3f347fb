"""Binary sensor platform for the Quatt integration."""

from __future__ import annotations

import logging

from homeassistant.components.binary_sensor import (
    BinarySensorDeviceClass,
    BinarySensorEntity,
    BinarySensorEntityDescription,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .capabilities import split_key
from .const import DOMAIN
from .coordinator import QuattDataUpdateCoordinator
from .entity import QuattEntity

_LOGGER = logging.getLogger(__name__)

BINARY_SENSOR_DESCRIPTIONS: dict[str, BinarySensorEntityDescription] = {
    description.key: description
    for description in (
        BinarySensorEntityDescription(
            key="measure_heatpump_silent_mode",
            name="Silent mode",
            icon="mdi:volume-off",
        ),
        BinarySensorEntityDescription(
            key="measure_heatpump_limited_by_cop",
            name="Limited by COP",
            icon="mdi:speedometer-slow",
        ),
        BinarySensorEntityDescription(
            key="measure_boiler_heating_active",
            name="Boiler heating",
            device_class=BinarySensorDeviceClass.HEAT,
        ),
        BinarySensorEntityDescription(
            key="measure_boiler_dhw_active",
            name="Boiler hot water",
            icon="mdi:water-boiler",
        ),
        BinarySensorEntityDescription(
            key="measure_boiler_flame_on",
            name="Boiler flame",
            icon="mdi:fire",
        ),
        BinarySensorEntityDescription(
            key="measure_boiler_heating_requested",
            name="Boiler heat requested",
        ),
        BinarySensorEntityDescription(
            key="measure_boiler_on",
            name="Boiler",
            device_class=BinarySensorDeviceClass.RUNNING,
        ),
        BinarySensorEntityDescription(
            key="measure_thermostat_heating_on",
            name="Thermostat heating",
            device_class=BinarySensorDeviceClass.HEAT,
        ),
        BinarySensorEntityDescription(
            key="measure_thermostat_dhw_enabled",
            name="Thermostat hot water",
        ),
        BinarySensorEntityDescription(
            key="measure_thermostat_cooling_enabled",
            name="Thermostat cooling",
            device_class=BinarySensorDeviceClass.COLD,
        ),
        BinarySensorEntityDescription(
            key="measure_qc_sticky_pump_protection",
            name="Sticky pump protection",
            icon="mdi:pump",
        ),
    )
}


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up Quatt binary sensors from a config entry."""
    coordinator: QuattDataUpdateCoordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]

    @callback
    def _async_add_binary_sensors(keys: list[str]) -> None:
        entities = [
            QuattBinarySensor(coordinator, key, BINARY_SENSOR_DESCRIPTIONS[split_key(key)[0]])
            for key in keys
            if split_key(key)[0] in BINARY_SENSOR_DESCRIPTIONS
        ]
        if entities:
            _LOGGER.debug("Adding %d Quatt binary sensors", len(entities))
            async_add_entities(entities)

    entry.async_on_unload(coordinator.async_add_capability_listener(_async_add_binary_sensors))


class QuattBinarySensor(QuattEntity, BinarySensorEntity):
    """A boolean capability of the CiC."""

    def __init__(
        self,
        coordinator: QuattDataUpdateCoordinator,
        key: str,
        description: BinarySensorEntityDescription,
    ) -> None:
        super().__init__(coordinator, key, str(description.name))
        self.entity_description = description

    @property
    def is_on(self) -> bool | None:
        value = self.capability_value
        if value is None:
            return None
        return bool(value)
