"""Translate status snapshots into capability values and change events.

A capability is a named value slot of the device (``measure_power``,
``measure_heatpump_cop.heatpump2``...).  :class:`CapabilityEngine`
derives every capability value from a :class:`CicStats` snapshot,
writes it into the :class:`CapabilityStore` and reports the values that
actually changed.  A change of a capability with a registered trigger
(see :mod:`.triggers`) is handed to the ``on_change`` callback, which the
coordinator uses to fire a bus event.

The capability set depends on the topology of the installation.  With a
single heat pump its capabilities carry no suffix; with two heat pumps
each one gets a ``.heatpump1`` or ``.heatpump2`` suffix.  The topology is
fixed by the first snapshot and may only grow from single to dual.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .api.models import CicHeatpump, CicStats
from .const import UNIT_HEATPUMP1, UNIT_HEATPUMP2
from .triggers import TRIGGERS, TriggerSpec

_LOGGER = logging.getLogger(__name__)

# Reported as the COP when the heat pump delivers heat without drawing power.
COP_SATURATED: float = math.inf

# Continuously varying metrics that never fire a change event.
NO_EVENT_CAPABILITIES: frozenset[str] = frozenset({"measure_power"})


class Topology(str, Enum):
    SINGLE = "single"
    DUAL = "dual"


def compute_cop(power: float | None, power_input: float | None) -> float | None:
    """Return the coefficient of performance, or ``None`` when unknown.

    >>> compute_cop(4, 2)
    2.0
    >>> compute_cop(5, 0)
    inf
    """
    if power is None or power_input is None:
        return None
    if power_input == 0:
        if power > 0:
            return COP_SATURATED
        if power == 0:
            return 0.0
        return None
    return round(power / power_input, 2)


def compute_water_delta(water_in: float | None, water_out: float | None) -> float | None:
    """Return outlet minus inlet temperature; ``None`` while negative."""
    if water_in is None or water_out is None:
        return None
    delta = water_out - water_in
    if delta < 0:
        return None
    return round(delta, 2)


def total_power_input(stats: CicStats) -> float | None:
    powers = [hp.power_input for hp in stats.heatpumps if hp.power_input is not None]
    if not powers:
        return None
    return round(sum(powers), 2)


@dataclass(frozen=True)
class CapabilitySpec:
    """A capability and the function reading it from a snapshot part.

    Derived capabilities set ``report_none`` to False: a ``None`` result
    means "not reliable yet" and nothing is written for that tick.
    """

    name: str
    read: Callable[[Any], Any]
    report_none: bool = True


HEATPUMP_CAPABILITIES: tuple[CapabilitySpec, ...] = (
    CapabilitySpec("measure_heatpump_working_mode", lambda hp: hp.working_mode),
    CapabilitySpec("measure_heatpump_temperature_outside", lambda hp: hp.temperature_outside),
    CapabilitySpec("measure_heatpump_temperature_incoming_water", lambda hp: hp.temperature_water_in),
    CapabilitySpec("measure_heatpump_temperature_outgoing_water", lambda hp: hp.temperature_water_out),
    CapabilitySpec("measure_heatpump_silent_mode", lambda hp: hp.silent_mode),
    CapabilitySpec("measure_heatpump_limited_by_cop", lambda hp: hp.limited_by_cop),
    CapabilitySpec("measure_heatpump_power_input", lambda hp: hp.power_input),
    CapabilitySpec("measure_heatpump_thermal_power", lambda hp: hp.power),
    CapabilitySpec(
        "measure_heatpump_cop",
        lambda hp: compute_cop(hp.power, hp.power_input),
        report_none=False,
    ),
    CapabilitySpec(
        "measure_heatpump_water_delta",
        lambda hp: compute_water_delta(hp.temperature_water_in, hp.temperature_water_out),
        report_none=False,
    ),
)

SYSTEM_CAPABILITIES: tuple[CapabilitySpec, ...] = (
    CapabilitySpec("measure_power", total_power_input),
    CapabilitySpec("measure_boiler_heating_active", lambda s: s.boiler.ch_mode_active),
    CapabilitySpec("measure_boiler_dhw_active", lambda s: s.boiler.dhw_active),
    CapabilitySpec("measure_boiler_flame_on", lambda s: s.boiler.flame_on),
    CapabilitySpec("measure_boiler_temperature_incoming_water", lambda s: s.boiler.supply_inlet_temperature),
    CapabilitySpec("measure_boiler_temperature_outgoing_water", lambda s: s.boiler.supply_outlet_temperature),
    CapabilitySpec("measure_boiler_heating_requested", lambda s: s.boiler.heating_requested),
    CapabilitySpec("measure_boiler_on", lambda s: s.boiler.boiler_on),
    CapabilitySpec("measure_boiler_water_pressure", lambda s: s.boiler.water_pressure),
    CapabilitySpec("measure_flowmeter_water_supply_temperature", lambda s: s.flow_meter.water_supply_temperature),
    CapabilitySpec("measure_flowmeter_water_flow_speed", lambda s: s.qc.flow_rate_filtered),
    CapabilitySpec("measure_thermostat_heating_on", lambda s: s.thermostat.ch_enabled),
    CapabilitySpec("measure_thermostat_dhw_enabled", lambda s: s.thermostat.dhw_enabled),
    CapabilitySpec("measure_thermostat_cooling_enabled", lambda s: s.thermostat.cooling_enabled),
    CapabilitySpec("measure_thermostat_setpoint_control_temperature", lambda s: s.thermostat.control_setpoint),
    CapabilitySpec("measure_thermostat_setpoint_room_temperature", lambda s: s.thermostat.room_setpoint),
    CapabilitySpec("measure_thermostat_room_temperature", lambda s: s.thermostat.room_temperature),
    CapabilitySpec("measure_qc_supervisory_control_mode", lambda s: s.qc.supervisory_control_mode),
    CapabilitySpec("measure_qc_sticky_pump_protection", lambda s: s.qc.sticky_pump_protection),
)

UNITS_BY_TOPOLOGY: Mapping[Topology, tuple[str | None, ...]] = {
    Topology.SINGLE: (None,),
    Topology.DUAL: (UNIT_HEATPUMP1, UNIT_HEATPUMP2),
}


def capability_key(name: str, unit: str | None = None) -> str:
    return name if unit is None else f"{name}.{unit}"


def split_key(key: str) -> tuple[str, str | None]:
    """Split a capability key into its base name and unit suffix."""
    base, _, unit = key.partition(".")
    return base, unit or None


def capability_keys(topology: Topology) -> list[str]:
    """Return every capability key of ``topology``."""
    keys = [
        capability_key(spec.name, unit)
        for unit in UNITS_BY_TOPOLOGY[topology]
        for spec in HEATPUMP_CAPABILITIES
    ]
    keys.extend(spec.name for spec in SYSTEM_CAPABILITIES)
    return keys


_UNSET = object()


class CapabilityStore:
    """Last written value of every registered capability.

    A registered capability that was never written is distinguished from
    one holding ``None``.  Retired capabilities keep their last value but
    are no longer part of the active set.
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._retired: set[str] = set()

    def register(self, keys: list[str]) -> list[str]:
        """Register ``keys``; return the ones that were not known yet."""
        added = [key for key in keys if key not in self._values]
        for key in added:
            self._values[key] = _UNSET
        self._retired.difference_update(keys)
        return added

    def retire(self, keys: list[str]) -> None:
        """Drop ``keys`` from the active set."""
        self._retired.update(key for key in keys if key in self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def active_keys(self) -> list[str]:
        return [key for key in self._values if key not in self._retired]

    def is_active(self, key: str) -> bool:
        return key in self._values and key not in self._retired

    def is_set(self, key: str) -> bool:
        return self._values.get(key, _UNSET) is not _UNSET

    def get(self, key: str, default: Any = None) -> Any:
        value = self._values.get(key, _UNSET)
        return default if value is _UNSET else value

    def write(self, key: str, value: Any) -> tuple[bool, Any]:
        """Store ``value``; return whether it was set before and the old value."""
        if key not in self._values:
            raise KeyError(f"Capability {key} is not registered")
        previous = self._values[key]
        self._values[key] = value
        if previous is _UNSET:
            return False, None
        return True, previous

    def as_dict(self) -> dict[str, Any]:
        return {key: value for key, value in self._values.items() if value is not _UNSET}


@dataclass(frozen=True)
class CapabilityChange:
    """A capability whose value differs from the previously written one."""

    key: str
    previous: Any
    value: Any

    @property
    def capability(self) -> str:
        return split_key(self.key)[0]

    @property
    def unit(self) -> str | None:
        return split_key(self.key)[1]

    @property
    def event(self) -> str:
        return f"{self.capability}_changed"


class CapabilityEngine:
    """Apply snapshots to a :class:`CapabilityStore`.

    ``on_change`` receives each change of a capability that has a
    registered trigger.
    """

    def __init__(
        self,
        store: CapabilityStore | None = None,
        *,
        on_change: Callable[[CapabilityChange, TriggerSpec], None] | None = None,
        triggers: Mapping[str, TriggerSpec] = TRIGGERS,
    ) -> None:
        self.store = store if store is not None else CapabilityStore()
        self.topology: Topology | None = None
        self._on_change = on_change
        self._triggers = triggers

    def _ensure_topology(self, stats: CicStats) -> None:
        detected = Topology.DUAL if stats.is_dual else Topology.SINGLE
        if self.topology is Topology.DUAL or self.topology is detected:
            return
        keys = capability_keys(detected)
        if self.topology is Topology.SINGLE:
            _LOGGER.info("Second heat pump detected, switching to dual heat pump capabilities")
            self.store.retire([key for key in capability_keys(Topology.SINGLE) if key not in keys])
        self.topology = detected
        self.store.register(keys)

    def _values(self, stats: CicStats) -> Iterator[tuple[str, CapabilitySpec, Any]]:
        if self.topology is Topology.DUAL:
            units: tuple[tuple[str | None, CicHeatpump | None], ...] = (
                (UNIT_HEATPUMP1, stats.hp1),
                (UNIT_HEATPUMP2, stats.hp2),
            )
        else:
            units = ((None, stats.hp1),)

        for unit, heatpump in units:
            if heatpump is None:
                # Second heat pump missing from this snapshot only.
                continue
            for spec in HEATPUMP_CAPABILITIES:
                yield capability_key(spec.name, unit), spec, heatpump
        for spec in SYSTEM_CAPABILITIES:
            yield spec.name, spec, stats

    def apply_snapshot(self, stats: CicStats) -> list[CapabilityChange]:
        """Write every capability of ``stats``; return the changed ones.

        A failing capability is logged and skipped; the remaining
        capabilities of the snapshot are still written.
        """
        self._ensure_topology(stats)
        changes: list[CapabilityChange] = []
        for key, spec, source in self._values(stats):
            try:
                value = spec.read(source)
                if value is None and not spec.report_none:
                    continue
                was_set, previous = self.store.write(key, value)
            except Exception:  # noqa: BLE001
                _LOGGER.warning("Failed to update capability %s", key, exc_info=True)
                continue
            if not was_set or previous == value:
                continue
            change = CapabilityChange(key, previous, value)
            changes.append(change)
            self._fire(change)
        return changes

    def _fire(self, change: CapabilityChange) -> None:
        if change.capability in NO_EVENT_CAPABILITIES:
            return
        spec = self._triggers.get(change.event)
        if spec is None or self._on_change is None:
            return
        try:
            self._on_change(change, spec)
        except Exception:  # noqa: BLE001
            _LOGGER.warning("Failed to fire %s for %s", change.event, change.key, exc_info=True)
