"""
identity.py — Monitor instance id ↔ capture device path.

The hardware inventory reports monitors as
    DISPLAY\\PHL0A5B\\5&1a2b3c4&0&UID4352_0
while OBS display capture addresses them as
    \\\\?\\DISPLAY#PHL0A5B#5&1a2b3c4&0&UID4352#{e6f07b5f-ee97-4a90-b076-33f57bf4eaa7}
"""

import logging
from typing import Optional, Tuple

from .config import DEVICE_PATH_PREFIX, MONITOR_INTERFACE_GUID

logger = logging.getLogger(__name__)

_INSTANCE_SUFFIX = "_0"


def encode_device_path(instance_id: str) -> str:
    """
    Convert a native monitor instance id into its device-path form.
    Pure string transform; never raises. Empty input yields "".
    """
    if not instance_id:
        return ""
    raw = instance_id.strip()

    parts = raw.split("\\")
    if len(parts) == 3 and all(parts):
        _, model, device = parts
        if device.endswith(_INSTANCE_SUFFIX):
            device = device[: -len(_INSTANCE_SUFFIX)]
        return f"{DEVICE_PATH_PREFIX}{model}#{device}#{MONITOR_INTERFACE_GUID}"

    logger.debug("Instance id %r is not three segments, using fallback encoding", raw)
    if raw.upper().startswith("DISPLAY\\"):
        body = DEVICE_PATH_PREFIX + raw[len("DISPLAY\\"):].replace("\\", "#")
    elif raw.startswith(DEVICE_PATH_PREFIX):
        body = raw
    else:
        body = raw.replace("\\", "#")

    if body.lower().endswith(MONITOR_INTERFACE_GUID.lower()):
        return body
    return f"{body}#{MONITOR_INTERFACE_GUID}"


def parse_device_path(path: str) -> Optional[Tuple[str, str]]:
    """Return (model_token, device_token) from a device path, or None."""
    if not path or not path.upper().startswith(DEVICE_PATH_PREFIX.upper()):
        return None
    parts = path[len(DEVICE_PATH_PREFIX):].split("#")
    if len(parts) != 3 or not parts[0] or not parts[1]:
        return None
    if parts[2].lower() != MONITOR_INTERFACE_GUID.lower():
        return None
    return parts[0], parts[1]


def has_manufacturer(path: Optional[str], codes) -> bool:
    """True when the device path's model token starts with any of `codes`."""
    if not path:
        return False
    parsed = parse_device_path(path)
    if parsed is not None:
        model = parsed[0].upper()
        return any(model.startswith(code) for code in codes)
    upper = path.upper()
    return any(f"#{code}" in upper for code in codes)
