"""Base entity for the Quatt integration."""

from __future__ import annotations

from typing import Any

from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .capabilities import split_key
from .const import DOMAIN
from .coordinator import QuattDataUpdateCoordinator

UNIT_LABELS: dict[str, str] = {
    "heatpump1": "heat pump 1",
    "heatpump2": "heat pump 2",
}


class QuattEntity(CoordinatorEntity[QuattDataUpdateCoordinator]):
    """An entity exposing one capability of a CiC."""

    _attr_has_entity_name = True

    def __init__(self, coordinator: QuattDataUpdateCoordinator, key: str, label: str) -> None:
        super().__init__(coordinator)
        self._key = key
        capability, unit = split_key(key)
        self._capability = capability
        hostname = coordinator.manager.state.hostname or coordinator.manager.client.host
        self._attr_unique_id = f"{hostname}_{key}"
        self._attr_name = f"{label} {UNIT_LABELS.get(unit, unit)}" if unit else label
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, hostname)},
            manufacturer="Quatt",
            model="CiC",
            name=f"Quatt {hostname}",
        )

    @property
    def available(self) -> bool:
        capabilities = self.coordinator.capabilities
        return (
            self.coordinator.manager.available
            and capabilities.is_active(self._key)
            and capabilities.is_set(self._key)
        )

    @property
    def capability_value(self) -> Any:
        return self.coordinator.capabilities.get(self._key)
