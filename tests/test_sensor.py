"""Tests for the Quatt sensor and binary sensor entities.

The entities are built on a stand-in coordinator holding a real
capability store, so no running Home Assistant instance is needed.  The
tests verify naming, availability and the values exposed for each
capability key.
"""

from __future__ import annotations

from types import SimpleNamespace

from custom_components.quatt.api.models import CicStats
from custom_components.quatt.binary_sensor import BINARY_SENSOR_DESCRIPTIONS, QuattBinarySensor
from custom_components.quatt.capabilities import (
    COP_SATURATED,
    CapabilityEngine,
    CapabilityStore,
    Topology,
    capability_keys,
    split_key,
)
from custom_components.quatt.sensor import SENSOR_DESCRIPTIONS, QuattSensor

from .common import make_payload


def _coordinator(available: bool = True) -> SimpleNamespace:
    store = CapabilityStore()
    store.register(capability_keys(Topology.DUAL))
    manager = SimpleNamespace(
        state=SimpleNamespace(hostname="CIC-0001"),
        client=SimpleNamespace(host="192.168.1.204"),
        available=available,
    )
    return SimpleNamespace(manager=manager, capabilities=store)


def test_every_capability_has_one_platform() -> None:
    """Each capability is exposed by exactly one entity platform."""
    for key in capability_keys(Topology.DUAL):
        base = split_key(key)[0]
        assert (base in SENSOR_DESCRIPTIONS) != (base in BINARY_SENSOR_DESCRIPTIONS), base


def test_sensor_naming_and_value() -> None:
    coordinator = _coordinator()
    key = "measure_heatpump_cop.heatpump2"
    sensor = QuattSensor(coordinator, key, SENSOR_DESCRIPTIONS["measure_heatpump_cop"])
    assert sensor.unique_id == "CIC-0001_measure_heatpump_cop.heatpump2"
    assert sensor.name == "COP heat pump 2"

    assert not sensor.available
    coordinator.capabilities.write(key, 3.5)
    assert sensor.available
    assert sensor.native_value == 3.5


def test_saturated_cop_has_no_state() -> None:
    coordinator = _coordinator()
    key = "measure_heatpump_cop.heatpump1"
    coordinator.capabilities.write(key, COP_SATURATED)
    sensor = QuattSensor(coordinator, key, SENSOR_DESCRIPTIONS["measure_heatpump_cop"])
    assert sensor.native_value is None


def test_unavailable_device_makes_entities_unavailable() -> None:
    coordinator = _coordinator(available=False)
    coordinator.capabilities.write("measure_power", 1900.0)
    sensor = QuattSensor(coordinator, "measure_power", SENSOR_DESCRIPTIONS["measure_power"])
    assert sensor.name == "Total power input"
    assert not sensor.available


def test_binary_sensor() -> None:
    coordinator = _coordinator()
    key = "measure_boiler_flame_on"
    entity = QuattBinarySensor(coordinator, key, BINARY_SENSOR_DESCRIPTIONS[key])
    coordinator.capabilities.write(key, None)
    assert entity.is_on is None
    coordinator.capabilities.write(key, True)
    assert entity.is_on is True


def test_single_heatpump_entities_go_unavailable_after_upgrade() -> None:
    """A second heat pump retires the unsuffixed entities; their last value is kept."""
    coordinator = _coordinator()
    engine = CapabilityEngine()
    coordinator.capabilities = engine.store
    engine.apply_snapshot(CicStats.from_dict(make_payload()))
    single = QuattSensor(coordinator, "measure_heatpump_cop", SENSOR_DESCRIPTIONS["measure_heatpump_cop"])
    total = QuattSensor(coordinator, "measure_power", SENSOR_DESCRIPTIONS["measure_power"])
    assert single.available
    assert total.available

    engine.apply_snapshot(CicStats.from_dict(make_payload(dual=True)))
    assert not single.available
    assert single.native_value == 4.0
    assert total.available
