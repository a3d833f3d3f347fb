"""Tests for the status snapshot decoding of the Quatt integration."""

from __future__ import annotations

import pytest

from custom_components.quatt.api.errors import QuattMalformedDataError
from custom_components.quatt.api.models import CicStats, clamp_qc_mode, normalize_mode

from .common import make_payload


def test_single_heatpump_snapshot(payload) -> None:
    """A document without ``hp2`` decodes into a single heat pump snapshot."""
    stats = CicStats.from_dict(payload)
    assert stats.hostname == "CIC-0001"
    assert not stats.is_dual
    assert stats.hp2 is None
    assert stats.heatpumps == (stats.hp1,)
    assert stats.hp1.working_mode == "2"
    assert stats.hp1.power_input == 1000.0
    assert stats.boiler.water_pressure == 1.6
    assert stats.thermostat.ch_enabled is True
    assert stats.time.ts == 1700000000000


def test_dual_heatpump_snapshot() -> None:
    stats = CicStats.from_dict(make_payload(dual=True))
    assert stats.is_dual
    assert stats.hp2 is not None
    assert stats.hp2.modbus_slave_id == 2
    assert len(stats.heatpumps) == 2


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(120, "100"), ("75", "75"), (50, "50"), (100, "100"), ("150", "100"), (None, None)],
)
def test_qc_mode_is_clamped(raw, expected) -> None:
    """The supervisory control mode never exceeds the ceiling."""
    assert clamp_qc_mode(raw) == expected
    stats = CicStats.from_dict(make_payload(qc={"supervisoryControlMode": raw}))
    assert stats.qc.supervisory_control_mode == expected


def test_non_numeric_qc_mode_is_kept() -> None:
    assert clamp_qc_mode("manual") == "manual"


def test_working_mode_is_normalised_to_string() -> None:
    """Numeric and string working modes compare equal after decoding."""
    numeric = CicStats.from_dict(make_payload(hp1={"getMainWorkingMode": 3}))
    text = CicStats.from_dict(make_payload(hp1={"getMainWorkingMode": "3"}))
    floating = CicStats.from_dict(make_payload(hp1={"getMainWorkingMode": 3.0}))
    assert numeric.hp1.working_mode == text.hp1.working_mode == floating.hp1.working_mode == "3"


def test_null_working_mode_of_second_heatpump() -> None:
    stats = CicStats.from_dict(make_payload(dual=True, hp2={"getMainWorkingMode": None}))
    assert stats.hp2 is not None
    assert stats.hp2.working_mode is None
    assert stats.hp1.working_mode == "2"


def test_boolean_mode_is_rejected() -> None:
    with pytest.raises(QuattMalformedDataError):
        normalize_mode(True)


def test_flags_accept_integers() -> None:
    stats = CicStats.from_dict(make_payload(boiler={"otFbFlameOn": 1, "otFbDhwActive": 0}))
    assert stats.boiler.flame_on is True
    assert stats.boiler.dhw_active is False


@pytest.mark.parametrize(
    "document",
    [
        [],
        "not a document",
        make_payload(hp1=None),
        make_payload(system=None),
        make_payload(system={"hostName": ""}),
        make_payload(hp1={"power": "lots"}),
        make_payload(hp1={"powerInput": True}),
        make_payload(boiler={"otFbFlameOn": "yes"}),
        make_payload(time={"ts": "now"}),
    ],
)
def test_malformed_documents(document) -> None:
    """Structural violations raise a malformed data error."""
    with pytest.raises(QuattMalformedDataError):
        CicStats.from_dict(document)


def test_section_must_be_an_object() -> None:
    document = make_payload()
    document["qc"] = [1, 2, 3]
    with pytest.raises(QuattMalformedDataError):
        CicStats.from_dict(document)


def test_optional_sections_may_be_missing() -> None:
    document = make_payload()
    for section in ("boiler", "flowMeter", "thermostat", "qc", "time"):
        del document[section]
    stats = CicStats.from_dict(document)
    assert stats.boiler.flame_on is None
    assert stats.qc.supervisory_control_mode is None
    assert stats.time.ts is None
