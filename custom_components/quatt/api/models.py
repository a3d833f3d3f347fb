"""Typed status snapshot returned by the CiC status feed.

The CiC publishes one JSON document describing the heat pump(s), the
backup boiler, the flow meter, the OpenTherm thermostat and the quality
controller.  :meth:`CicStats.from_dict` validates that document and
normalises the fields consumers compare against:

* heat pump working modes are turned into strings (firmware versions
  report them either as numbers or as strings);
* the supervisory control mode of the quality controller is turned into
  a string and clamped to :data:`~custom_components.quatt.const.QC_MODE_MAX`.

Any structural violation raises :class:`QuattMalformedDataError`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..const import QC_MODE_MAX
from .errors import QuattMalformedDataError


def _group(payload: Mapping[str, Any], key: str, *, required: bool = True) -> Mapping[str, Any] | None:
    value = payload.get(key)
    if value is None:
        if required:
            raise QuattMalformedDataError(f"Missing '{key}' section in status payload")
        return None
    if not isinstance(value, Mapping):
        raise QuattMalformedDataError(f"Section '{key}' must be an object, got {type(value).__name__}")
    return value


def _number(group: Mapping[str, Any], key: str) -> float | None:
    value = group.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise QuattMalformedDataError(f"Field '{key}' must be numeric, got a boolean")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError as err:
            raise QuattMalformedDataError(f"Field '{key}' is not numeric: {value!r}") from err
    raise QuattMalformedDataError(f"Field '{key}' must be numeric, got {type(value).__name__}")


def _flag(group: Mapping[str, Any], key: str) -> bool | None:
    value = group.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise QuattMalformedDataError(f"Field '{key}' must be a boolean, got {value!r}")


def normalize_mode(value: Any) -> str | None:
    """Return a mode code as a string, keeping ``None`` as is."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise QuattMalformedDataError(f"Mode code must be a number or a string, got {value!r}")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float, str)):
        return str(value)
    raise QuattMalformedDataError(f"Mode code must be a number or a string, got {type(value).__name__}")


def clamp_qc_mode(value: Any) -> str | None:
    """Normalise the supervisory control mode and clamp it to the ceiling.

    >>> clamp_qc_mode(120)
    '100'
    >>> clamp_qc_mode("75")
    '75'
    """
    mode = normalize_mode(value)
    if mode is None:
        return None
    try:
        numeric = float(mode)
    except ValueError:
        return mode
    if numeric >= QC_MODE_MAX:
        return str(QC_MODE_MAX)
    return mode


@dataclass(frozen=True)
class CicTime:
    ts: int | None
    ts_human: str | None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CicTime:
        ts = data.get("ts")
        if ts is not None and (isinstance(ts, bool) or not isinstance(ts, (int, float))):
            raise QuattMalformedDataError(f"Field 'ts' must be numeric, got {ts!r}")
        return cls(
            ts=int(ts) if ts is not None else None,
            ts_human=data.get("tsHuman"),
        )


@dataclass(frozen=True)
class CicHeatpump:
    """One physical heat generation unit."""

    modbus_slave_id: int | None
    working_mode: str | None
    temperature_outside: float | None
    temperature_water_in: float | None
    temperature_water_out: float | None
    silent_mode: bool | None
    limited_by_cop: bool | None
    power_input: float | None
    power: float | None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CicHeatpump:
        slave_id = _number(data, "modbusSlaveId")
        return cls(
            modbus_slave_id=int(slave_id) if slave_id is not None else None,
            working_mode=normalize_mode(data.get("getMainWorkingMode")),
            temperature_outside=_number(data, "temperatureOutside"),
            temperature_water_in=_number(data, "temperatureWaterIn"),
            temperature_water_out=_number(data, "temperatureWaterOut"),
            silent_mode=_flag(data, "silentModeStatus"),
            limited_by_cop=_flag(data, "limitedByCop"),
            power_input=_number(data, "powerInput"),
            power=_number(data, "power"),
        )


@dataclass(frozen=True)
class CicBoiler:
    """State of the auxiliary (backup) boiler, as seen over OpenTherm."""

    ch_mode_active: bool | None
    dhw_active: bool | None
    flame_on: bool | None
    supply_inlet_temperature: float | None
    supply_outlet_temperature: float | None
    heating_requested: bool | None
    boiler_on: bool | None
    water_pressure: float | None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CicBoiler:
        return cls(
            ch_mode_active=_flag(data, "otFbChModeActive"),
            dhw_active=_flag(data, "otFbDhwActive"),
            flame_on=_flag(data, "otFbFlameOn"),
            supply_inlet_temperature=_number(data, "otFbSupplyInletTemperature"),
            supply_outlet_temperature=_number(data, "otFbSupplyOutletTemperature"),
            heating_requested=_flag(data, "otTbCH"),
            boiler_on=_flag(data, "oTtbTurnOnOffBoilerOn"),
            water_pressure=_number(data, "otFbWaterPressure"),
        )


@dataclass(frozen=True)
class CicFlowMeter:
    water_supply_temperature: float | None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CicFlowMeter:
        return cls(water_supply_temperature=_number(data, "waterSupplyTemperature"))


@dataclass(frozen=True)
class CicThermostat:
    ch_enabled: bool | None
    dhw_enabled: bool | None
    cooling_enabled: bool | None
    control_setpoint: float | None
    room_setpoint: float | None
    room_temperature: float | None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CicThermostat:
        return cls(
            ch_enabled=_flag(data, "otFtChEnabled"),
            dhw_enabled=_flag(data, "otFtDhwEnabled"),
            cooling_enabled=_flag(data, "otFtCoolingEnabled"),
            control_setpoint=_number(data, "otFtControlSetpoint"),
            room_setpoint=_number(data, "otFtRoomSetpoint"),
            room_temperature=_number(data, "otFtRoomTemperature"),
        )


@dataclass(frozen=True)
class CicQualityControl:
    supervisory_control_mode: str | None
    flow_rate_filtered: float | None
    sticky_pump_protection: bool | None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CicQualityControl:
        return cls(
            supervisory_control_mode=clamp_qc_mode(data.get("supervisoryControlMode")),
            flow_rate_filtered=_number(data, "flowRateFiltered"),
            sticky_pump_protection=_flag(data, "stickyPumpProtectionEnabled"),
        )


@dataclass(frozen=True)
class CicSystem:
    hostname: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CicSystem:
        hostname = data.get("hostName")
        if not isinstance(hostname, str) or not hostname:
            raise QuattMalformedDataError("Field 'system.hostName' must be a non-empty string")
        return cls(hostname=hostname)


@dataclass(frozen=True)
class CicStats:
    """A complete, normalised status snapshot."""

    time: CicTime
    hp1: CicHeatpump
    hp2: CicHeatpump | None
    boiler: CicBoiler
    flow_meter: CicFlowMeter
    thermostat: CicThermostat
    qc: CicQualityControl
    system: CicSystem

    @property
    def hostname(self) -> str:
        return self.system.hostname

    @property
    def is_dual(self) -> bool:
        """Return True when the snapshot reports a second heat pump."""
        return self.hp2 is not None

    @property
    def heatpumps(self) -> tuple[CicHeatpump, ...]:
        if self.hp2 is None:
            return (self.hp1,)
        return (self.hp1, self.hp2)

    @classmethod
    def from_dict(cls, payload: Any) -> CicStats:
        if not isinstance(payload, Mapping):
            raise QuattMalformedDataError(
                f"Status payload must be an object, got {type(payload).__name__}"
            )
        hp2 = _group(payload, "hp2", required=False)
        return cls(
            time=CicTime.from_dict(_group(payload, "time", required=False) or {}),
            hp1=CicHeatpump.from_dict(_group(payload, "hp1")),
            hp2=CicHeatpump.from_dict(hp2) if hp2 is not None else None,
            boiler=CicBoiler.from_dict(_group(payload, "boiler", required=False) or {}),
            flow_meter=CicFlowMeter.from_dict(_group(payload, "flowMeter", required=False) or {}),
            thermostat=CicThermostat.from_dict(_group(payload, "thermostat", required=False) or {}),
            qc=CicQualityControl.from_dict(_group(payload, "qc", required=False) or {}),
            system=CicSystem.from_dict(_group(payload, "system")),
        )
