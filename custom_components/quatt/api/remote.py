"""Client for the Quatt cloud (mobile) API.

Some CiC settings (sound levels, pricing limits) are not exposed on the
local status feed and can only be changed through the cloud API used by
the Quatt mobile app.  Pairing with that API is a multi-step Firebase
flow handled outside this integration; :class:`QuattRemoteClient` only
receives its result, an id token plus the CiC and installation ids, and
forwards settings updates with it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import aiohttp

from .errors import QuattRemoteAuthError, QuattRemoteError

_LOGGER = logging.getLogger(__name__)

REMOTE_API_BASE_URL = "https://mobile-api.quatt.io/api/v1"
REMOTE_TIMEOUT = 15


@dataclass(frozen=True)
class RemoteSettings:
    """Settings accepted by ``PUT /me/cic/<cic id>``."""

    day_max_sound_level: str | None = None
    night_max_sound_level: str | None = None
    use_pricing_limiting_heat_pump: bool | None = None

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.day_max_sound_level is not None:
            payload["dayMaxSoundLevel"] = self.day_max_sound_level
        if self.night_max_sound_level is not None:
            payload["nightMaxSoundLevel"] = self.night_max_sound_level
        if self.use_pricing_limiting_heat_pump is not None:
            payload["usePricingLimitingHeatPump"] = self.use_pricing_limiting_heat_pump
        return payload


class QuattRemoteClient:
    """Forward settings and data requests to the Quatt cloud API."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        id_token: str,
        cic_id: str,
        installation_id: str | None = None,
    ) -> None:
        self._session = session
        self._id_token = id_token
        self.cic_id = cic_id
        self.installation_id = installation_id

    @property
    def _cic_url(self) -> str:
        return f"{REMOTE_API_BASE_URL}/me/cic/{self.cic_id}"

    async def _async_request(self, method: str, url: str, payload: dict[str, Any] | None = None) -> Any:
        headers = {"Authorization": f"Bearer {self._id_token}"}
        try:
            async with self._session.request(
                method,
                url,
                json=payload,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=REMOTE_TIMEOUT),
            ) as response:
                if response.status == 401:
                    raise QuattRemoteAuthError("Quatt cloud API rejected the token")
                if response.status not in (200, 201, 204):
                    raise QuattRemoteError(
                        f"{method} {url} failed with status code {response.status}"
                    )
                if response.status == 204:
                    return None
                return await response.json(content_type=None)
        except (asyncio.TimeoutError, aiohttp.ClientError) as err:
            raise QuattRemoteError(f"Cannot reach the Quatt cloud API: {err}") from err

    async def async_update_cic_settings(self, settings: RemoteSettings) -> None:
        """Send ``settings`` to the cloud API."""
        payload = settings.as_payload()
        if not payload:
            raise ValueError("No remote setting given")
        _LOGGER.debug("Updating remote settings of CiC %s: %s", self.cic_id, payload)
        await self._async_request("PUT", self._cic_url, payload)

    async def async_get_cic_data(self) -> dict[str, Any]:
        """Return the CiC document held by the cloud API."""
        data = await self._async_request("GET", self._cic_url)
        if isinstance(data, dict) and isinstance(data.get("result"), dict):
            return data["result"]
        if not isinstance(data, dict):
            raise QuattRemoteError("Unexpected response from the Quatt cloud API")
        return data
