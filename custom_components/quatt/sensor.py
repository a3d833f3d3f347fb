"""Sensor platform for the Quatt integration.

This module exposes every numeric or textual capability of a CiC as a
sensor entity.  The values come from the capability store kept up to
date by the data coordinator.  Entities are created once the coordinator
knows whether the installation runs one or two heat pumps; with two heat
pumps every heat pump sensor exists once per unit.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import (
    UnitOfPower,
    UnitOfPressure,
    UnitOfTemperature,
    UnitOfVolumeFlowRate,
)
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .capabilities import split_key
from .const import DOMAIN
from .coordinator import QuattDataUpdateCoordinator
from .entity import QuattEntity

_LOGGER = logging.getLogger(__name__)


def _temperature(key: str, name: str, icon: str | None = None) -> SensorEntityDescription:
    return SensorEntityDescription(
        key=key,
        name=name,
        icon=icon,
        native_unit_of_measurement=UnitOfTemperature.CELSIUS,
        device_class=SensorDeviceClass.TEMPERATURE,
        state_class=SensorStateClass.MEASUREMENT,
    )


def _power(key: str, name: str) -> SensorEntityDescription:
    return SensorEntityDescription(
        key=key,
        name=name,
        native_unit_of_measurement=UnitOfPower.WATT,
        device_class=SensorDeviceClass.POWER,
        state_class=SensorStateClass.MEASUREMENT,
    )


SENSOR_DESCRIPTIONS: dict[str, SensorEntityDescription] = {
    description.key: description
    for description in (
        SensorEntityDescription(
            key="measure_heatpump_working_mode",
            name="Working mode",
            icon="mdi:heat-pump",
        ),
        _temperature("measure_heatpump_temperature_outside", "Outside temperature", "mdi:weather-partly-cloudy"),
        _temperature("measure_heatpump_temperature_incoming_water", "Incoming water temperature"),
        _temperature("measure_heatpump_temperature_outgoing_water", "Outgoing water temperature"),
        _power("measure_heatpump_power_input", "Power input"),
        _power("measure_heatpump_thermal_power", "Thermal power"),
        SensorEntityDescription(
            key="measure_heatpump_cop",
            name="COP",
            icon="mdi:gauge",
            state_class=SensorStateClass.MEASUREMENT,
        ),
        SensorEntityDescription(
            key="measure_heatpump_water_delta",
            name="Water temperature delta",
            icon="mdi:thermometer-lines",
            native_unit_of_measurement=UnitOfTemperature.CELSIUS,
            state_class=SensorStateClass.MEASUREMENT,
        ),
        _power("measure_power", "Total power input"),
        _temperature("measure_boiler_temperature_incoming_water", "Boiler incoming water temperature"),
        _temperature("measure_boiler_temperature_outgoing_water", "Boiler outgoing water temperature"),
        SensorEntityDescription(
            key="measure_boiler_water_pressure",
            name="Boiler water pressure",
            native_unit_of_measurement=UnitOfPressure.BAR,
            device_class=SensorDeviceClass.PRESSURE,
            state_class=SensorStateClass.MEASUREMENT,
        ),
        _temperature("measure_flowmeter_water_supply_temperature", "Water supply temperature", "mdi:water-thermometer"),
        SensorEntityDescription(
            key="measure_flowmeter_water_flow_speed",
            name="Water flow",
            icon="mdi:waves-arrow-right",
            native_unit_of_measurement=UnitOfVolumeFlowRate.LITERS_PER_HOUR,
            device_class=SensorDeviceClass.VOLUME_FLOW_RATE,
            state_class=SensorStateClass.MEASUREMENT,
        ),
        _temperature("measure_thermostat_setpoint_control_temperature", "Control setpoint"),
        _temperature("measure_thermostat_setpoint_room_temperature", "Room setpoint"),
        _temperature("measure_thermostat_room_temperature", "Room temperature", "mdi:home-thermometer"),
        SensorEntityDescription(
            key="measure_qc_supervisory_control_mode",
            name="Supervisory control mode",
            icon="mdi:state-machine",
        ),
    )
}


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up Quatt sensors from a config entry."""
    coordinator: QuattDataUpdateCoordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]

    @callback
    def _async_add_sensors(keys: list[str]) -> None:
        sensors = [
            QuattSensor(coordinator, key, SENSOR_DESCRIPTIONS[split_key(key)[0]])
            for key in keys
            if split_key(key)[0] in SENSOR_DESCRIPTIONS
        ]
        if sensors:
            _LOGGER.debug("Adding %d Quatt sensors", len(sensors))
            async_add_entities(sensors)

    entry.async_on_unload(coordinator.async_add_capability_listener(_async_add_sensors))


class QuattSensor(QuattEntity, SensorEntity):
    """Representation of a single Quatt sensor entity."""

    def __init__(
        self,
        coordinator: QuattDataUpdateCoordinator,
        key: str,
        description: SensorEntityDescription,
    ) -> None:
        super().__init__(coordinator, key, str(description.name))
        self.entity_description = description

    @property
    def native_value(self) -> Any:
        """Return the state of the sensor."""
        value = self.capability_value
        if isinstance(value, float) and not math.isfinite(value):
            # A saturated COP has no finite representation.
            return None
        return value
