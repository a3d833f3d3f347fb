"""Tests for the trigger table and the device trigger platform."""

from __future__ import annotations

import pytest

from custom_components.quatt import device_trigger
from custom_components.quatt.triggers import (
    TRIGGERS,
    build_event_data,
    trigger_matches,
)


def test_every_trigger_is_named_after_its_capability() -> None:
    for event, spec in TRIGGERS.items():
        assert event == f"{spec.capability}_changed"
    assert "measure_power_changed" not in TRIGGERS


@pytest.mark.parametrize(
    ("args", "state", "expected"),
    [
        ({}, {"value": True}, True),
        ({"state": "on"}, {"value": True}, True),
        ({"state": "off"}, {"value": True}, False),
        ({"state": "off"}, {"value": False}, True),
    ],
)
def test_on_off_trigger(args, state, expected) -> None:
    assert trigger_matches("measure_boiler_flame_on_changed", args, state) is expected


def test_mode_trigger_compares_as_is() -> None:
    event = "measure_qc_supervisory_control_mode_changed"
    assert trigger_matches(event, {"mode": "100"}, {"value": "100"})
    assert not trigger_matches(event, {"mode": "2"}, {"value": "100"})


def test_unit_filter_of_heatpump_triggers() -> None:
    event = "measure_heatpump_working_mode_changed"
    state = {"value": "2", "unit": "heatpump2"}
    assert trigger_matches(event, {"mode": "2", "unit": "heatpump2"}, state)
    assert trigger_matches(event, {"mode": "2", "unit": "any"}, state)
    assert trigger_matches(event, {"mode": "2"}, state)
    assert not trigger_matches(event, {"mode": "2", "unit": "heatpump1"}, state)


def test_unknown_trigger_never_matches() -> None:
    assert not trigger_matches("measure_power_changed", {}, {"value": 100})


def test_invalid_argument_is_rejected() -> None:
    with pytest.raises(ValueError):
        trigger_matches("measure_boiler_on_changed", {"state": "maybe"}, {"value": True})


def test_build_event_data() -> None:
    assert build_event_data("dev", "measure_boiler_on_changed", {"state": "on"}) == {
        "device_id": "dev",
        "type": "measure_boiler_on_changed",
        "value": True,
    }
    assert build_event_data(
        "dev", "measure_heatpump_silent_mode_changed", {"state": "off", "unit": "heatpump1"}
    ) == {
        "device_id": "dev",
        "type": "measure_heatpump_silent_mode_changed",
        "value": False,
        "unit": "heatpump1",
    }
    assert build_event_data(
        "dev", "measure_thermostat_room_temperature_changed", {"unit": "heatpump1"}
    ) == {"device_id": "dev", "type": "measure_thermostat_room_temperature_changed"}


@pytest.mark.asyncio
async def test_device_triggers_are_listed() -> None:
    triggers = await device_trigger.async_get_triggers(None, "dev")
    assert len(triggers) == len(TRIGGERS)
    assert {trigger["type"] for trigger in triggers} == set(TRIGGERS)
    assert all(trigger["domain"] == "quatt" and trigger["device_id"] == "dev" for trigger in triggers)


@pytest.mark.asyncio
async def test_trigger_capabilities() -> None:
    fields = await device_trigger.async_get_trigger_capabilities(
        None, {"type": "measure_heatpump_silent_mode_changed"}
    )
    schema = fields["extra_fields"]
    assert schema({"state": "on", "unit": "heatpump2"}) == {"state": "on", "unit": "heatpump2"}

    none = await device_trigger.async_get_trigger_capabilities(
        None, {"type": "measure_thermostat_room_temperature_changed"}
    )
    assert none == {}
