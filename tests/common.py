"""Helpers shared by the Quatt tests.

The fake session stands in for :class:`aiohttp.ClientSession`: each
request pops the next scripted answer, which is either a
``(status, payload)`` tuple or an exception to raise.
"""

from __future__ import annotations

import copy
from typing import Any



def make_payload(hostname: str = "CIC-0001", *, dual: bool = False, **overrides: Any) -> dict[str, Any]:
    """Return a status document shaped like the CiC feed."""
    payload: dict[str, Any] = {
        "time": {"ts": 1700000000000, "tsHuman": "2023-11-14T22:13:20.000Z"},
        "hp1": {
            "modbusSlaveId": 1,
            "getMainWorkingMode": 2,
            "temperatureOutside": 8.5,
            "temperatureWaterIn": 30.0,
            "temperatureWaterOut": 35.0,
            "silentModeStatus": False,
            "limitedByCop": False,
            "powerInput": 1000,
            "power": 4000,
        },
        "boiler": {
            "otFbChModeActive": False,
            "otFbDhwActive": False,
            "otFbFlameOn": False,
            "otFbSupplyInletTemperature": 30.0,
            "otFbSupplyOutletTemperature": 31.0,
            "otTbCH": True,
            "oTtbTurnOnOffBoilerOn": False,
            "otFbWaterPressure": 1.6,
        },
        "flowMeter": {"waterSupplyTemperature": 34.8},
        "thermostat": {
            "otFtChEnabled": True,
            "otFtDhwEnabled": False,
            "otFtCoolingEnabled": False,
            "otFtControlSetpoint": 38.0,
            "otFtRoomSetpoint": 20.5,
            "otFtRoomTemperature": 20.1,
        },
        "qc": {
            "supervisoryControlMode": 2,
            "flowRateFiltered": 780.0,
            "stickyPumpProtectionEnabled": False,
        },
        "system": {"hostName": hostname},
    }
    if dual:
        payload["hp2"] = {
            "modbusSlaveId": 2,
            "getMainWorkingMode": 2,
            "temperatureOutside": 8.4,
            "temperatureWaterIn": 30.5,
            "temperatureWaterOut": 34.5,
            "silentModeStatus": False,
            "limitedByCop": False,
            "powerInput": 900,
            "power": 3600,
        }
    for section, values in overrides.items():
        if values is None:
            payload[section] = None
        else:
            payload.setdefault(section, {}).update(values)
    return copy.deepcopy(payload)


class FakeResponse:
    def __init__(self, status: int, payload: Any) -> None:
        self.status = status
        self._payload = payload

    async def json(self, content_type: str | None = "application/json") -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    async def __aenter__(self) -> FakeResponse:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None


class FakeRequest:
    def __init__(self, answer: Any) -> None:
        self._answer = answer

    async def __aenter__(self) -> FakeResponse:
        if isinstance(self._answer, BaseException):
            raise self._answer
        status, payload = self._answer
        return FakeResponse(status, payload)

    async def __aexit__(self, *exc_info: Any) -> None:
        return None


class FakeSession:
    """Replay scripted answers, recording every request."""

    def __init__(self, *answers: Any) -> None:
        self.answers = list(answers)
        self.requests: list[dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> FakeRequest:
        self.requests.append({"method": method, "url": url, **kwargs})
        return FakeRequest(self.answers.pop(0))

    def get(self, url: str, **kwargs: Any) -> FakeRequest:
        return self.request("GET", url, **kwargs)
