"""Connection state machine for a single CiC.

:class:`QuattConnectionManager` owns the :class:`QuattClient` of one
controller and the :class:`ConnectionState` describing it.  The
coordinator calls :meth:`QuattConnectionManager.async_poll` on every
tick; the manager classifies failures and reacts to them:

* a timeout or transport failure means the controller probably received
  a new address.  The manager enters ``RECONNECTING`` and runs a bounded
  number of cycles, each trying the override address, the last known
  address and finally a subnet scan restricted to the controller's
  hostname.  Cycles are separated by an increasing back-off.
* any other failure (HTTP error, malformed payload) leaves the address
  alone and marks the controller unavailable.

Only one reconnection sequence runs at a time.  Poll ticks arriving
while it runs are skipped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .api.client import QuattClient
from .api.errors import QuattError, QuattTransportError, is_connectivity_error
from .api.locator import DiscoveredDevice, QuattLocator, network_of
from .api.models import CicStats
from .const import RECONNECT_BACKOFF, RECONNECT_CYCLES

_LOGGER = logging.getLogger(__name__)


class DeviceState(str, Enum):
    INITIALIZING = "initializing"
    POLLING = "polling"
    RECONNECTING = "reconnecting"
    UNAVAILABLE = "unavailable"


@dataclass
class ConnectionState:
    """Mutable connection state of one controller.

    Fields are only changed through the transition methods below.
    """

    address: str | None
    hostname: str | None = None
    state: DeviceState = DeviceState.INITIALIZING
    available: bool = False
    failures: int = 0
    unavailable_reason: str | None = None

    @property
    def reconnecting(self) -> bool:
        return self.state is DeviceState.RECONNECTING

    def mark_polling(self) -> None:
        self.state = DeviceState.POLLING
        self.available = True
        self.failures = 0
        self.unavailable_reason = None

    def record_failure(self) -> None:
        self.failures += 1

    def begin_reconnect(self) -> bool:
        """Enter ``RECONNECTING``; return False when already there.

        The controller counts as unavailable until a reconnection
        succeeds, since its last values can no longer be refreshed.
        """
        if self.state is DeviceState.RECONNECTING:
            return False
        self.state = DeviceState.RECONNECTING
        self.available = False
        self.unavailable_reason = "Reconnecting to the CiC"
        return True

    def mark_unavailable(self, reason: str) -> None:
        self.state = DeviceState.UNAVAILABLE
        self.available = False
        self.unavailable_reason = reason

    def move_to(self, address: str, hostname: str | None = None) -> None:
        self.address = address
        if hostname is not None:
            self.hostname = hostname

    def as_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "hostname": self.hostname,
            "state": self.state.value,
            "available": self.available,
            "failures": self.failures,
            "unavailable_reason": self.unavailable_reason,
        }


class QuattConnectionManager:
    """Poll one CiC and keep track of its address.

    Parameters
    ----------
    client: QuattClient
        Client bound to the last known address.
    locator: QuattLocator
        Locator used to verify candidates and to scan subnets.
    hostname: str or None
        Identity of the controller, as stored at pairing time.
    override_host: str or None
        Manually configured address, tried first when reconnecting.
    subnets: callable or None
        Coroutine function returning extra subnets to scan, e.g. the
        subnets of the host's network adapters.
    on_address_change: callable or None
        Called with the new :class:`DiscoveredDevice` once a reconnection
        found the controller at another address.
    create_task: callable or None
        Used to run the reconnection sequence in the background.
    """

    def __init__(
        self,
        client: QuattClient,
        locator: QuattLocator,
        *,
        hostname: str | None = None,
        override_host: str | None = None,
        subnets: Callable[[], Awaitable[Iterable[str]]] | None = None,
        on_address_change: Callable[[DiscoveredDevice], None] | None = None,
        create_task: Callable[[Coroutine[Any, Any, bool]], asyncio.Task[bool]] | None = None,
        cycles: int = RECONNECT_CYCLES,
        backoff: Sequence[float] = RECONNECT_BACKOFF,
    ) -> None:
        self.client = client
        self.state = ConnectionState(address=client.host or None, hostname=hostname)
        self._locator = locator
        self._override_host = override_host or None
        self._subnets = subnets
        self._on_address_change = on_address_change
        self._create_task = create_task or asyncio.create_task
        self._cycles = max(1, cycles)
        self._backoff = tuple(backoff) or (0,)
        self._sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
        self._reconnect_task: asyncio.Task[bool] | None = None
        self._on_reconnected: Callable[[], Awaitable[None]] | None = None

    @property
    def available(self) -> bool:
        return self.state.available

    def set_override_host(self, host: str | None) -> None:
        self._override_host = host or None

    def set_reconnected_callback(self, on_reconnected: Callable[[], Awaitable[None]] | None) -> None:
        """Await ``on_reconnected`` each time a reconnection succeeds."""
        self._on_reconnected = on_reconnected

    def initialize(self) -> bool:
        """Check that an address is known; return False otherwise."""
        if not self.state.address:
            self.state.mark_unavailable("No address configured for the CiC")
            _LOGGER.warning("No address configured for CiC %s", self.state.hostname or "")
            return False
        return True

    async def async_poll(self) -> CicStats | None:
        """Fetch one snapshot and update the connection state.

        Returns ``None`` when there is nothing to report this tick, either
        because the controller sent an empty document or because a
        reconnection is running.

        Raises
        ------
        QuattError
            The fetch failed; the state already reflects the failure.
        """
        if self.state.reconnecting:
            _LOGGER.debug("Reconnection to %s in progress, skipping poll", self.state.hostname)
            return None
        if not self.state.address:
            self.initialize()
            raise QuattTransportError("No address configured for the CiC")

        try:
            stats = await self.client.async_get_cic_stats()
            if stats is not None:
                self._check_identity(stats)
        except QuattError as err:
            self.state.record_failure()
            if is_connectivity_error(err):
                self._start_reconnect(str(err))
            else:
                self.state.mark_unavailable(str(err))
            raise
        except Exception as err:
            self.state.record_failure()
            self.state.mark_unavailable(f"Unexpected error: {err}")
            raise

        if stats is None:
            return None
        if self.state.state is not DeviceState.POLLING:
            _LOGGER.info("CiC %s is available at %s", stats.hostname, self.state.address)
        self.state.mark_polling()
        return stats

    def _check_identity(self, stats: CicStats) -> None:
        if self.state.hostname is None:
            self.state.hostname = stats.hostname
            return
        if stats.hostname != self.state.hostname:
            raise QuattTransportError(
                f"{self.state.address} answers as {stats.hostname}, expected {self.state.hostname}"
            )

    def _start_reconnect(self, reason: str) -> None:
        if not self.state.begin_reconnect():
            return
        _LOGGER.info("Lost connection to CiC at %s (%s), reconnecting", self.state.address, reason)
        self._reconnect_task = self._create_task(self._async_run_reconnect())

    async def async_reconnect(self) -> bool:
        """Run a reconnection sequence now; return True on success.

        Returns False without doing anything when a sequence is already
        running.
        """
        if not self.state.begin_reconnect():
            return False
        return await self._async_run_reconnect()

    async def _async_run_reconnect(self) -> bool:
        try:
            for cycle in range(self._cycles):
                _LOGGER.debug("Reconnection cycle %d/%d for %s", cycle + 1, self._cycles, self.state.hostname)
                device = await self._async_reconnect_cycle()
                if device is not None:
                    self._apply_address(device)
                    self.state.mark_polling()
                    _LOGGER.info("Reconnected to CiC %s at %s", device.hostname, device.address)
                    if self._on_reconnected is not None:
                        await self._on_reconnected()
                    return True
                if cycle < self._cycles - 1:
                    delay = self._backoff[min(cycle, len(self._backoff) - 1)]
                    _LOGGER.debug("CiC not found, retrying in %s seconds", delay)
                    await self._sleep(delay)
        except asyncio.CancelledError:
            raise
        except Exception as err:  # noqa: BLE001
            _LOGGER.exception("Reconnection to CiC %s failed", self.state.hostname)
            self.state.mark_unavailable(f"Reconnection failed: {err}")
            return False

        reason = f"CiC not reachable after {self._cycles} reconnection attempts"
        _LOGGER.warning("%s (last address %s)", reason, self.state.address)
        self.state.mark_unavailable(reason)
        return False

    def _candidate_addresses(self) -> list[str]:
        candidates: list[str] = []
        for address in (self._override_host, self.state.address):
            if address and address not in candidates:
                candidates.append(address)
        return candidates

    async def _async_candidate_subnets(self) -> list[str]:
        subnets: list[str] = []
        extra: Iterable[str] = await self._subnets() if self._subnets is not None else ()
        for address in (self.state.address, self._override_host, *extra):
            network = network_of(address) if address else None
            if network is not None and network not in subnets:
                subnets.append(network)
        return subnets

    async def _async_reconnect_cycle(self) -> DiscoveredDevice | None:
        for address in self._candidate_addresses():
            hostname = await self._locator.async_verify(address)
            if hostname is None:
                continue
            if self.state.hostname is None or hostname == self.state.hostname:
                return DiscoveredDevice(address, hostname)
            _LOGGER.debug("%s answers as %s, not %s", address, hostname, self.state.hostname)

        if self.state.hostname is None:
            _LOGGER.debug("Hostname of the CiC unknown, skipping subnet scan")
            return None

        for subnet in await self._async_candidate_subnets():
            device = await self._locator.async_find_by_hostname(subnet, self.state.hostname)
            if device is not None:
                return device
        return None

    def _apply_address(self, device: DiscoveredDevice) -> None:
        moved = device.address != self.state.address
        self.state.move_to(device.address, device.hostname)
        self.client.set_host(device.address)
        if moved and self._on_address_change is not None:
            self._on_address_change(device)

    async def async_stop(self) -> None:
        """Cancel a running reconnection sequence."""
        task, self._reconnect_task = self._reconnect_task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
