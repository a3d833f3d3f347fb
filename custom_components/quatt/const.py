"""Constants used by the Quatt integration.

This module defines the constants shared by the device API, the
connection manager and the Home Assistant platforms.  Separating these
values from the rest of the code makes it easy to modify them in one
place and improves the readability of the components that rely on them.
"""

from __future__ import annotations

from homeassistant.const import Platform


# The domain string is used by Home Assistant to differentiate this
# integration from others.  It must match the name of the directory in
# ``custom_components``.
DOMAIN: str = "quatt"

# Configuration keys stored in the config entry data.
CONF_HOST: str = "host"
CONF_PORT: str = "port"
CONF_HOSTNAME: str = "hostname"

# Configuration keys exposed via the options flow.
CONF_SCAN_INTERVAL: str = "scan_interval"
CONF_OVERRIDE_HOST: str = "override_host"

# Optional cloud pairing data, supplied by an external pairing step.
CONF_REMOTE_ID_TOKEN: str = "remote_id_token"
CONF_REMOTE_CIC_ID: str = "remote_cic_id"
CONF_REMOTE_INSTALLATION_ID: str = "remote_installation_id"

# The CiC serves its status feed on a fixed port and path.
DEFAULT_PORT: int = 8080
STATUS_PATH: str = "/beta/feed/data.json"

# Polling interval (in seconds).  Values outside the bounds are clamped.
DEFAULT_SCAN_INTERVAL: int = 30
MIN_SCAN_INTERVAL: int = 1
MAX_SCAN_INTERVAL: int = 60

# Timeouts (in seconds) for a regular fetch, for the identity check used
# during discovery and for a single TCP probe of the subnet scan.
FETCH_TIMEOUT: float = 10.0
VERIFY_TIMEOUT: float = 3.0
PROBE_TIMEOUT: float = 1.5

# Reconnection runs a fixed number of cycles and sleeps between failed
# cycles following this schedule.
RECONNECT_CYCLES: int = 3
RECONNECT_BACKOFF: tuple[int, ...] = (30, 60, 120)

# The supervisory control mode reported by the quality controller is
# clamped to this ceiling.
QC_MODE_MAX: int = 100

# Unit discriminators used as capability suffixes in dual heat pump mode.
UNIT_HEATPUMP1: str = "heatpump1"
UNIT_HEATPUMP2: str = "heatpump2"

# Every change event is fired on the bus with this event type; the
# ``type`` field of the event data carries the ``<capability>_changed`` name.
EVENT_QUATT: str = "quatt_event"

# Service forwarding settings to the Quatt cloud API.
SERVICE_UPDATE_REMOTE_SETTINGS: str = "update_remote_settings"

# Platforms that the integration supports.
PLATFORMS: list[Platform] = [Platform.SENSOR, Platform.BINARY_SENSOR]
