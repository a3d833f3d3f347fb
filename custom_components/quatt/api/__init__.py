"""Internal API package for the Quatt integration.

This package provides everything required to talk to a Quatt CiC: the
:class:`QuattClient` fetching the local status feed, the typed snapshot
returned by it, the :class:`QuattLocator` finding a controller on the
network and the :class:`QuattRemoteClient` forwarding settings to the
cloud API.

The API is separated into its own package so that all Home Assistant
integration code can depend on a stable interface rather than on the
HTTP and socket details.
"""

from .client import QuattClient  # noqa: F401
from .errors import (  # noqa: F401
    QuattAmbiguousDeviceError,
    QuattApiError,
    QuattDeviceNotFoundError,
    QuattError,
    QuattMalformedDataError,
    QuattRemoteAuthError,
    QuattRemoteError,
    QuattTimeoutError,
    QuattTransportError,
    is_connectivity_error,
)
from .locator import DiscoveredDevice, QuattLocator  # noqa: F401
from .models import CicStats  # noqa: F401
from .remote import QuattRemoteClient, RemoteSettings  # noqa: F401

__all__ = [
    "CicStats",
    "DiscoveredDevice",
    "QuattAmbiguousDeviceError",
    "QuattApiError",
    "QuattClient",
    "QuattDeviceNotFoundError",
    "QuattError",
    "QuattLocator",
    "QuattMalformedDataError",
    "QuattRemoteAuthError",
    "QuattRemoteClient",
    "QuattRemoteError",
    "QuattTimeoutError",
    "QuattTransportError",
    "RemoteSettings",
    "is_connectivity_error",
]
