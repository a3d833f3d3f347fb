"""Exceptions raised by the Quatt API package.

The connection manager relies on the type of the exception to decide
whether a failed fetch means the controller has moved to another
address (timeouts and transport errors) or whether the controller is
reachable but misbehaving (HTTP errors and malformed payloads).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .locator import DiscoveredDevice


class QuattError(Exception):
    """Base class for all errors raised while talking to a CiC."""


class QuattTimeoutError(QuattError):
    """The controller did not answer within the allotted time."""


class QuattTransportError(QuattError):
    """The controller could not be reached (DNS, refused, unreachable)."""


class QuattApiError(QuattError):
    """The controller answered with a non-200 status code."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class QuattMalformedDataError(QuattError):
    """The payload could not be decoded into a status snapshot."""


class QuattDeviceNotFoundError(QuattError):
    """A subnet scan did not find the requested controller."""


class QuattAmbiguousDeviceError(QuattError):
    """A subnet scan without a target hostname found several controllers."""

    def __init__(self, message: str, devices: list[DiscoveredDevice]) -> None:
        super().__init__(message)
        self.devices = devices


class QuattRemoteError(QuattError):
    """The Quatt cloud API rejected a request."""


class QuattRemoteAuthError(QuattRemoteError):
    """The cloud token was refused and must be renewed by pairing again."""


def is_connectivity_error(err: BaseException) -> bool:
    """Return True when ``err`` suggests the controller changed address.

    Timeouts and transport failures qualify.  An :class:`QuattApiError`
    only qualifies when it carries no status code and was caused by a
    transport level failure.
    """
    if isinstance(err, (QuattTimeoutError, QuattTransportError)):
        return True
    if isinstance(err, QuattApiError) and err.status_code is None:
        return isinstance(err.__cause__, (QuattTransportError, OSError))
    return False
