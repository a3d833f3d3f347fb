"""Find a CiC on the local network.

The CiC announces itself neither over mDNS nor over SSDP, so the only
reliable way to find it is to scan the subnet.  :class:`QuattLocator`
probes every host of a /24 on the status port.  Each probe is an
independent task returning a :class:`ProbeResult`; a host that accepts
the TCP connection is then asked for its status feed, and only hosts
that answer with a valid snapshot count as a CiC.

All probes run concurrently and carry their own connect timeout, so a
scan of an empty subnet takes roughly one probe timeout, not 254 of them.
The scan always waits for every probe before deciding.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
from dataclasses import dataclass
from enum import Enum

import aiohttp

from ..const import DEFAULT_PORT, PROBE_TIMEOUT, VERIFY_TIMEOUT
from .client import QuattClient
from .errors import QuattAmbiguousDeviceError, QuattDeviceNotFoundError

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveredDevice:
    """A CiC found on the network."""

    address: str
    hostname: str


class ProbeStatus(Enum):
    VERIFIED = "verified"
    CLOSED = "closed"
    REJECTED = "rejected"
    ERROR = "error"


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of probing a single host."""

    address: str
    status: ProbeStatus
    hostname: str | None = None


def subnet_hosts(subnet: str) -> list[str]:
    """Return the 254 host addresses of the /24 containing ``subnet``.

    ``subnet`` may be any address of the network (``192.168.1.204``), a
    network in CIDR notation (``192.168.1.0/24``) or a bare prefix
    (``192.168.1``).
    """
    base = subnet.split("/", 1)[0].strip()
    parts = base.split(".")
    if len(parts) == 3:
        parts.append("0")
    try:
        address = ipaddress.IPv4Address(".".join(parts[:4]))
    except ipaddress.AddressValueError as err:
        raise ValueError(f"Invalid IPv4 subnet: {subnet!r}") from err
    network = ipaddress.IPv4Network(f"{address}/24", strict=False)
    return [str(host) for host in network.hosts()]


def network_of(address: str) -> str | None:
    """Return the /24 network of an IPv4 address, or ``None`` for hostnames."""
    try:
        ip = ipaddress.IPv4Address(address.strip())
    except ipaddress.AddressValueError:
        return None
    return str(ipaddress.IPv4Network(f"{ip}/24", strict=False))


class QuattLocator:
    """Scan subnets for CiC controllers."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        port: int = DEFAULT_PORT,
        probe_timeout: float = PROBE_TIMEOUT,
        verify_timeout: float = VERIFY_TIMEOUT,
    ) -> None:
        self._session = session
        self.port = port
        self.probe_timeout = probe_timeout
        self.verify_timeout = verify_timeout

    async def _async_port_open(self, address: str) -> bool:
        """Return True when ``address`` accepts a TCP connection on the port."""
        try:
            _reader, writer = await asyncio.wait_for(
                asyncio.open_connection(address, self.port),
                timeout=self.probe_timeout,
            )
        except (asyncio.TimeoutError, OSError):
            return False
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return True

    async def async_verify(self, address: str) -> str | None:
        """Return the hostname of the CiC at ``address``, or ``None``."""
        client = QuattClient(address, self._session, self.port)
        return await client.async_verify_identity(self.verify_timeout)

    async def _async_probe(self, address: str) -> ProbeResult:
        try:
            if not await self._async_port_open(address):
                return ProbeResult(address, ProbeStatus.CLOSED)
            hostname = await self.async_verify(address)
        except Exception:  # noqa: BLE001
            _LOGGER.debug("Unexpected error while probing %s", address, exc_info=True)
            return ProbeResult(address, ProbeStatus.ERROR)
        if hostname is None:
            return ProbeResult(address, ProbeStatus.REJECTED)
        return ProbeResult(address, ProbeStatus.VERIFIED, hostname)

    async def async_discover(self, subnet: str) -> list[DiscoveredDevice]:
        """Probe the whole /24 of ``subnet`` and return every CiC found.

        The returned list is sorted by address.
        """
        hosts = subnet_hosts(subnet)
        _LOGGER.debug("Scanning %d hosts around %s on port %s", len(hosts), subnet, self.port)
        results = await asyncio.gather(*(self._async_probe(host) for host in hosts))
        found = [
            DiscoveredDevice(result.address, result.hostname)
            for result in results
            if result.status is ProbeStatus.VERIFIED and result.hostname
        ]
        found.sort(key=lambda device: ipaddress.IPv4Address(device.address))
        for device in found:
            _LOGGER.debug("Found CiC %s at %s", device.hostname, device.address)
        return found

    async def async_scan_subnet(
        self, subnet: str, target_hostname: str | None = None
    ) -> DiscoveredDevice:
        """Find one CiC on the subnet of ``subnet``.

        With ``target_hostname`` only the controller with exactly that
        hostname is accepted.  Without it, the scan must find exactly one
        controller; several distinct hostnames raise
        :class:`QuattAmbiguousDeviceError`.

        Raises
        ------
        QuattDeviceNotFoundError
            No matching controller answered.
        QuattAmbiguousDeviceError
            No target hostname was given and several controllers answered.
        """
        found = await self.async_discover(subnet)

        if target_hostname is not None:
            for device in found:
                if device.hostname == target_hostname:
                    _LOGGER.info("Found CiC %s at %s", device.hostname, device.address)
                    return device
            raise QuattDeviceNotFoundError(
                f"No CiC with hostname {target_hostname} found around {subnet}; "
                f"found {len(found)} other CiC(s)"
            )

        if not found:
            raise QuattDeviceNotFoundError(f"No Quatt device found around {subnet}")

        hostnames = {device.hostname for device in found}
        if len(hostnames) > 1:
            raise QuattAmbiguousDeviceError(
                f"Found {len(hostnames)} CiCs around {subnet}: "
                + ", ".join(sorted(hostnames)),
                found,
            )
        return found[0]

    async def async_find_by_hostname(self, subnet: str, hostname: str) -> DiscoveredDevice | None:
        """Return the CiC with ``hostname`` on the subnet, or ``None``."""
        try:
            return await self.async_scan_subnet(subnet, hostname)
        except QuattDeviceNotFoundError:
            _LOGGER.debug("No CiC with hostname %s around %s", hostname, subnet)
            return None
