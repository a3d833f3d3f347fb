"""Asynchronous client for the Quatt CiC local status feed.

This module defines :class:`QuattClient`, a thin wrapper around one HTTP
GET against the CiC.  The controller serves an unauthenticated JSON
document on a fixed port and path; the client fetches it, classifies
failures into the exceptions of :mod:`.errors` and turns the payload
into a :class:`~.models.CicStats` snapshot.

The client does not own the :class:`aiohttp.ClientSession`; Home
Assistant hands out a shared session and the client only borrows it.
Every instance is bound to one address, which the connection manager
repoints with :meth:`QuattClient.set_host` after the controller moved.

Usage example::

    client = QuattClient("192.168.1.204", session)
    stats = await client.async_get_cic_stats()
    if stats is not None:
        print(stats.hostname)

"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from ..const import DEFAULT_PORT, FETCH_TIMEOUT, STATUS_PATH, VERIFY_TIMEOUT
from .errors import (
    QuattApiError,
    QuattError,
    QuattMalformedDataError,
    QuattTimeoutError,
    QuattTransportError,
)
from .models import CicStats

_LOGGER = logging.getLogger(__name__)


class QuattClient:
    """Fetch status snapshots from a single CiC.

    Parameters
    ----------
    host: str
        The IP address or hostname of the CiC.
    session: aiohttp.ClientSession
        The session used for HTTP requests.
    port: int
        The TCP port of the status feed.  Every CiC uses ``8080``.
    """

    def __init__(self, host: str, session: aiohttp.ClientSession, port: int = DEFAULT_PORT) -> None:
        self.host: str = host
        self.port: int = port
        self._session = session

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}{STATUS_PATH}"

    def set_host(self, host: str) -> None:
        """Point the client at a new address."""
        if host != self.host:
            _LOGGER.debug("Repointing Quatt client from %s to %s", self.host, host)
        self.host = host

    async def _async_get_json(self, timeout: float) -> Any:
        try:
            async with self._session.get(
                self.url, timeout=aiohttp.ClientTimeout(total=timeout)
            ) as response:
                if response.status != 200:
                    raise QuattApiError(
                        f"Failed to fetch data from {self.host}: Status code {response.status}",
                        status_code=response.status,
                    )
                try:
                    return await response.json(content_type=None)
                except ValueError as err:
                    raise QuattMalformedDataError(
                        f"Invalid JSON received from {self.host}: {err}"
                    ) from err
        except asyncio.TimeoutError as err:
            raise QuattTimeoutError(
                f"Timeout after {timeout}s while fetching data from {self.host}"
            ) from err
        except (aiohttp.ClientError, OSError) as err:
            raise QuattTransportError(f"Cannot reach {self.host}: {err}") from err

    async def async_get_cic_stats(
        self, timeout: float = FETCH_TIMEOUT, *, log_errors: bool = True
    ) -> CicStats | None:
        """Fetch and normalise one status snapshot.

        Returns
        -------
        CicStats or None
            The snapshot, or ``None`` when the controller answered with an
            empty document (nothing to report this time).

        Raises
        ------
        QuattTimeoutError, QuattTransportError, QuattApiError, QuattMalformedDataError
            See :mod:`.errors` for the meaning of each failure.
        """
        try:
            payload = await self._async_get_json(timeout)
            if not payload:
                _LOGGER.debug("Empty status payload received from %s", self.host)
                return None
            return CicStats.from_dict(payload)
        except QuattError as err:
            if log_errors:
                _LOGGER.debug("Error fetching data from %s: %s", self.host, err)
            raise

    async def async_verify_identity(self, timeout: float = VERIFY_TIMEOUT) -> str | None:
        """Return the hostname of the CiC at :attr:`host`, or ``None``.

        Used by the locator to confirm that an open port belongs to a CiC.
        Never raises and never logs errors.
        """
        try:
            stats = await self.async_get_cic_stats(timeout, log_errors=False)
        except QuattError:
            return None
        if stats is None:
            return None
        return stats.hostname
