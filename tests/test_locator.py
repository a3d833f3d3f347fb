"""Tests for the subnet scan of the Quatt locator."""

from __future__ import annotations

import asyncio

import pytest

from custom_components.quatt.api.errors import (
    QuattAmbiguousDeviceError,
    QuattDeviceNotFoundError,
)
from custom_components.quatt.api.locator import (
    DiscoveredDevice,
    ProbeStatus,
    QuattLocator,
    network_of,
    subnet_hosts,
)

from .common import FakeSession, make_payload


def _locator(devices: dict[str, str], open_ports: set[str] | None = None) -> QuattLocator:
    """Return a locator seeing the CiCs of ``devices`` (address -> hostname)."""
    locator = QuattLocator(FakeSession())
    ports = set(devices) if open_ports is None else open_ports

    async def _port_open(address: str) -> bool:
        return address in ports

    async def _verify(address: str) -> str | None:
        return devices.get(address)

    locator._async_port_open = _port_open  # type: ignore[method-assign]
    locator.async_verify = _verify  # type: ignore[method-assign]
    return locator


def test_subnet_hosts() -> None:
    for subnet in ("192.168.1.204", "192.168.1.0/24", "192.168.1"):
        hosts = subnet_hosts(subnet)
        assert len(hosts) == 254
        assert hosts[0] == "192.168.1.1"
        assert hosts[-1] == "192.168.1.254"


@pytest.mark.parametrize("subnet", ["", "not-an-ip", "300.1.1", "10.0"])
def test_subnet_hosts_rejects_invalid_input(subnet) -> None:
    with pytest.raises(ValueError):
        subnet_hosts(subnet)


def test_network_of() -> None:
    assert network_of("192.168.1.204") == "192.168.1.0/24"
    assert network_of("cic.local") is None


@pytest.mark.asyncio
async def test_scan_finds_single_device() -> None:
    locator = _locator({"192.168.1.50": "CIC-0001"})
    device = await locator.async_scan_subnet("192.168.1.0/24")
    assert device == DiscoveredDevice("192.168.1.50", "CIC-0001")


@pytest.mark.asyncio
async def test_open_port_without_cic_is_not_a_device() -> None:
    """A host with the port open that does not verify is skipped."""
    locator = _locator({"192.168.1.60": "CIC-0001"}, open_ports={"192.168.1.20", "192.168.1.60"})
    device = await locator.async_scan_subnet("192.168.1.1")
    assert device.address == "192.168.1.60"


@pytest.mark.asyncio
async def test_scan_without_target_is_ambiguous_with_two_devices() -> None:
    locator = _locator({"192.168.1.70": "CIC-B", "192.168.1.9": "CIC-A"})
    with pytest.raises(QuattAmbiguousDeviceError) as excinfo:
        await locator.async_scan_subnet("192.168.1.0/24")
    assert [device.address for device in excinfo.value.devices] == ["192.168.1.9", "192.168.1.70"]


@pytest.mark.asyncio
async def test_scan_with_target_picks_matching_device() -> None:
    locator = _locator({"192.168.1.70": "CIC-B", "192.168.1.9": "CIC-A"})
    device = await locator.async_scan_subnet("192.168.1.0/24", "CIC-B")
    assert device == DiscoveredDevice("192.168.1.70", "CIC-B")


@pytest.mark.asyncio
async def test_scan_with_unknown_target_raises_not_found() -> None:
    locator = _locator({"192.168.1.9": "CIC-A"})
    with pytest.raises(QuattDeviceNotFoundError):
        await locator.async_scan_subnet("192.168.1.0/24", "CIC-Z")
    assert await locator.async_find_by_hostname("192.168.1.0/24", "CIC-Z") is None


@pytest.mark.asyncio
async def test_scan_of_empty_subnet_raises_not_found() -> None:
    locator = _locator({})
    with pytest.raises(QuattDeviceNotFoundError):
        await locator.async_scan_subnet("10.0.0.0/24")


@pytest.mark.asyncio
async def test_probe_errors_do_not_abort_the_scan() -> None:
    locator = _locator({"192.168.1.50": "CIC-0001"})

    async def _verify(address: str) -> str | None:
        if address == "192.168.1.50":
            return "CIC-0001"
        raise RuntimeError("boom")

    locator._async_port_open = lambda address: asyncio.sleep(0, result=True)  # type: ignore[method-assign]
    locator.async_verify = _verify  # type: ignore[method-assign]
    assert (await locator._async_probe("192.168.1.2")).status is ProbeStatus.ERROR
    devices = await locator.async_discover("192.168.1.0/24")
    assert devices == [DiscoveredDevice("192.168.1.50", "CIC-0001")]


@pytest.mark.asyncio
async def test_scan_is_bounded_by_probe_timeout(monkeypatch) -> None:
    """Hanging connections cost one probe timeout, not one per host."""

    async def _hang(host, port):
        await asyncio.sleep(3600)

    monkeypatch.setattr(asyncio, "open_connection", _hang)
    locator = QuattLocator(FakeSession(), probe_timeout=0.05)
    loop = asyncio.get_running_loop()
    started = loop.time()
    with pytest.raises(QuattDeviceNotFoundError):
        await locator.async_scan_subnet("192.168.1.0/24")
    assert loop.time() - started < 2


@pytest.mark.asyncio
async def test_verify_uses_status_feed() -> None:
    session = FakeSession((200, make_payload("CIC-0042")))
    locator = QuattLocator(session, verify_timeout=0.5)
    assert await locator.async_verify("192.168.1.42") == "CIC-0042"
    assert session.requests[0]["url"] == "http://192.168.1.42:8080/beta/feed/data.json"
    assert session.requests[0]["timeout"].total == 0.5
