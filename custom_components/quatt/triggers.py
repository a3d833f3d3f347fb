"""Change triggers offered to automations.

Every trigger is described once, in :data:`TRIGGERS`, by the capability
it watches and by how its optional argument maps onto the capability
value.  Nothing here captures state: the capability engine looks the
event name up to decide whether to fire, the device trigger platform
looks it up to build its schema and event filter, and
:func:`trigger_matches` evaluates a fired state against the arguments
chosen in an automation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from .const import UNIT_HEATPUMP1, UNIT_HEATPUMP2

ARG_UNIT = "unit"
UNIT_ANY = "any"
UNIT_CHOICES: tuple[str, ...] = (UNIT_ANY, UNIT_HEATPUMP1, UNIT_HEATPUMP2)

ON_OFF: Mapping[str, bool] = MappingProxyType({"on": True, "off": False})


@dataclass(frozen=True)
class TriggerSpec:
    """How a ``<capability>_changed`` trigger is parameterised.

    ``argument`` names the optional filter argument; ``values`` maps the
    argument choices onto capability values, ``None`` meaning the argument
    is compared to the value as is.  ``per_unit`` triggers accept a
    ``unit`` argument selecting one heat pump.
    """

    capability: str
    argument: str | None = None
    values: Mapping[str, Any] | None = None
    per_unit: bool = False

    @property
    def event(self) -> str:
        return f"{self.capability}_changed"

    def resolve(self, choice: Any) -> Any:
        """Return the capability value selected by ``choice``."""
        if self.values is None:
            return choice
        try:
            return self.values[choice]
        except KeyError as err:
            raise ValueError(f"Invalid value {choice!r} for trigger {self.event}") from err


def _table(*specs: TriggerSpec) -> Mapping[str, TriggerSpec]:
    return MappingProxyType({spec.event: spec for spec in specs})


TRIGGERS: Mapping[str, TriggerSpec] = _table(
    TriggerSpec("measure_heatpump_working_mode", "mode", per_unit=True),
    TriggerSpec("measure_heatpump_silent_mode", "state", ON_OFF, per_unit=True),
    TriggerSpec("measure_heatpump_limited_by_cop", "state", ON_OFF, per_unit=True),
    TriggerSpec("measure_heatpump_cop", per_unit=True),
    TriggerSpec("measure_heatpump_temperature_outside", per_unit=True),
    TriggerSpec("measure_boiler_heating_active", "state", ON_OFF),
    TriggerSpec("measure_boiler_dhw_active", "state", ON_OFF),
    TriggerSpec("measure_boiler_flame_on", "state", ON_OFF),
    TriggerSpec("measure_boiler_on", "state", ON_OFF),
    TriggerSpec("measure_thermostat_heating_on", "state", ON_OFF),
    TriggerSpec("measure_thermostat_dhw_enabled", "state", ON_OFF),
    TriggerSpec("measure_thermostat_cooling_enabled", "state", ON_OFF),
    TriggerSpec("measure_thermostat_room_temperature"),
    TriggerSpec("measure_thermostat_setpoint_room_temperature"),
    TriggerSpec("measure_qc_supervisory_control_mode", "mode"),
    TriggerSpec("measure_qc_sticky_pump_protection", "state", ON_OFF),
)


def trigger_matches(event: str, args: Mapping[str, Any], state: Mapping[str, Any]) -> bool:
    """Return True when the fired ``state`` satisfies the trigger ``args``.

    ``state`` is the data carried by a change event: ``value`` and, for
    heat pump capabilities in dual mode, ``unit``.
    """
    spec = TRIGGERS.get(event)
    if spec is None:
        return False

    unit = args.get(ARG_UNIT)
    if spec.per_unit and unit not in (None, UNIT_ANY) and unit != state.get(ARG_UNIT):
        return False

    if spec.argument is None or args.get(spec.argument) is None:
        return True
    return state.get("value") == spec.resolve(args[spec.argument])


def build_event_data(device_id: str, event: str, args: Mapping[str, Any]) -> dict[str, Any]:
    """Return the event data filter matching ``args`` for ``event``."""
    spec = TRIGGERS[event]
    data: dict[str, Any] = {"device_id": device_id, "type": event}
    if spec.argument is not None and args.get(spec.argument) is not None:
        data["value"] = spec.resolve(args[spec.argument])
    unit = args.get(ARG_UNIT)
    if spec.per_unit and unit not in (None, UNIT_ANY):
        data[ARG_UNIT] = unit
    return data
