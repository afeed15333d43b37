"""
hardware.py — Windows hardware inventory readers.

Each reader runs one PowerShell query, parses its JSON output and returns
plain model records. Any failure (no PowerShell, non-Windows host, query
error, malformed output) degrades to an empty result with a warning so the
reconciler can still fall back to generic naming.

Readers:
  • Display Enumerator            — System.Windows.Forms.Screen
  • Monitor Descriptor Reader     — WmiMonitorID (+ WmiMonitorBasicDisplayParams)
                                    with Win32_DesktopMonitor as fallback
  • Video-Controller Reader       — Win32_VideoController
  • Battery presence              — Win32_Battery
"""

import json
import logging
import os
import subprocess
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .config import MANUFACTURER_NAMES
from .models import ControllerResolution, DisplayGeometry, MonitorDescriptor
from .utils import find_powershell

logger = logging.getLogger(__name__)

# Runs a PowerShell script and returns its stdout
PowerShellRunner = Callable[[str], str]

QUERY_TIMEOUT_S = 20

# ─── Queries ─────────────────────────────────────────────────

SCREENS_QUERY = r"""
Add-Type -AssemblyName System.Windows.Forms
[System.Windows.Forms.Screen]::AllScreens | ForEach-Object {
    [PSCustomObject]@{
        DeviceName = $_.DeviceName
        Primary    = $_.Primary
        X          = $_.Bounds.X
        Y          = $_.Bounds.Y
        Width      = $_.Bounds.Width
        Height     = $_.Bounds.Height
    }
} | ConvertTo-Json -Compress
"""

MONITOR_ID_QUERY = r"""
Get-CimInstance -Namespace root\wmi -ClassName WmiMonitorID | ForEach-Object {
    [PSCustomObject]@{
        InstanceName     = $_.InstanceName
        ManufacturerName = $_.ManufacturerName
        UserFriendlyName = $_.UserFriendlyName
        SerialNumberID   = $_.SerialNumberID
    }
} | ConvertTo-Json -Compress
"""

MONITOR_SIZE_QUERY = r"""
Get-CimInstance -Namespace root\wmi -ClassName WmiMonitorBasicDisplayParams | ForEach-Object {
    [PSCustomObject]@{
        InstanceName           = $_.InstanceName
        MaxHorizontalImageSize = $_.MaxHorizontalImageSize
        MaxVerticalImageSize   = $_.MaxVerticalImageSize
    }
} | ConvertTo-Json -Compress
"""

DESKTOP_MONITOR_QUERY = r"""
Get-CimInstance -ClassName Win32_DesktopMonitor |
    Where-Object { $_.PNPDeviceID } |
    Select-Object Name, PNPDeviceID |
    ConvertTo-Json -Compress
"""

CONTROLLER_QUERY = r"""
Get-CimInstance -ClassName Win32_VideoController |
    Where-Object { $_.CurrentHorizontalResolution } |
    Select-Object Name, CurrentHorizontalResolution, CurrentVerticalResolution |
    ConvertTo-Json -Compress
"""

BATTERY_QUERY = r"@(Get-CimInstance -ClassName Win32_Battery).Count"


# ─── JSON Parsing ────────────────────────────────────────────

def _as_records(text: str) -> List[Dict[str, Any]]:
    """ConvertTo-Json emits a bare object for one result and an array for many."""
    text = (text or "").strip()
    if not text:
        return []
    data = json.loads(text)
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError(f"Expected JSON object or array, got {type(data).__name__}")
    return [r for r in data if isinstance(r, dict)]


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def decode_char_array(codes: Optional[Sequence[Any]]) -> str:
    """
    Decode a fixed-width, null-padded character array (one code unit per
    element) as returned by WmiMonitorID.
    """
    if not codes:
        return ""
    if isinstance(codes, str):
        return codes.strip("\x00 ").strip()
    chars = []
    for code in codes:
        value = _int(code)
        if value == 0:
            break
        chars.append(chr(value))
    return "".join(chars).strip()


def parse_screens(text: str) -> List[DisplayGeometry]:
    displays = []
    for i, rec in enumerate(_as_records(text)):
        width, height = _int(rec.get("Width")), _int(rec.get("Height"))
        if width <= 0 or height <= 0:
            logger.debug("Skipping screen %r with empty bounds", rec.get("DeviceName"))
            continue
        displays.append(DisplayGeometry(
            index=len(displays),
            width=width,
            height=height,
            x=_int(rec.get("X")),
            y=_int(rec.get("Y")),
            is_primary=bool(rec.get("Primary")),
            device_name=str(rec.get("DeviceName") or f"DISPLAY{i + 1}"),
        ))
    return displays


def parse_monitor_sizes(text: str) -> Dict[str, Tuple[int, int]]:
    sizes = {}
    for rec in _as_records(text):
        name = rec.get("InstanceName")
        w, h = _int(rec.get("MaxHorizontalImageSize")), _int(rec.get("MaxVerticalImageSize"))
        if name and w > 0 and h > 0:
            sizes[str(name)] = (w, h)
    return sizes


def parse_monitor_ids(
    text: str, sizes: Optional[Dict[str, Tuple[int, int]]] = None,
) -> List[MonitorDescriptor]:
    sizes = sizes or {}
    descriptors = []
    for rec in _as_records(text):
        instance = str(rec.get("InstanceName") or "")
        descriptor = MonitorDescriptor(
            manufacturer_code=decode_char_array(rec.get("ManufacturerName")).upper(),
            model_name=decode_char_array(rec.get("UserFriendlyName")),
            serial_number=decode_char_array(rec.get("SerialNumberID")),
            instance_id=instance,
            physical_size_cm=sizes.get(instance),
        )
        descriptors.append(descriptor)
    return _keep_identifiable(descriptors)


def parse_desktop_monitors(text: str) -> List[MonitorDescriptor]:
    """Fallback source: derive the vendor code from the PnP model token."""
    descriptors = []
    for rec in _as_records(text):
        pnp = str(rec.get("PNPDeviceID") or "")
        parts = pnp.split("\\")
        code = parts[1][:3].upper() if len(parts) > 1 else ""
        name = str(rec.get("Name") or "").strip()
        # Generic names carry no model information
        if name.lower().startswith(("generic", "default monitor")):
            name = ""
        descriptors.append(MonitorDescriptor(
            manufacturer_code=code,
            model_name=name,
            instance_id=pnp,
        ))
    return _keep_identifiable(descriptors)


def _keep_identifiable(descriptors: List[MonitorDescriptor]) -> List[MonitorDescriptor]:
    kept = []
    for d in descriptors:
        if not d.is_identifiable:
            logger.debug("Discarding unidentifiable monitor descriptor %r", d.instance_id)
            continue
        if not d.model_name or d.manufacturer_code not in MANUFACTURER_NAMES:
            logger.debug(
                "Partial descriptor data for %r (model=%r, vendor=%r)",
                d.instance_id, d.model_name, d.manufacturer_code,
            )
        kept.append(d)
    return kept


def parse_controllers(text: str) -> List[ControllerResolution]:
    readings = []
    for rec in _as_records(text):
        w = _int(rec.get("CurrentHorizontalResolution"))
        h = _int(rec.get("CurrentVerticalResolution"))
        if w > 0 and h > 0:
            readings.append(ControllerResolution(w, h, str(rec.get("Name") or "")))
    return readings


# ─── Probe ───────────────────────────────────────────────────

def run_powershell(script: str) -> str:
    """Default runner: execute `script` with the first PowerShell on PATH."""
    exe = find_powershell()
    if not exe:
        raise FileNotFoundError("PowerShell was not found on PATH")
    result = subprocess.run(
        [exe, "-NoProfile", "-NonInteractive", "-Command", script],
        capture_output=True, text=True, timeout=QUERY_TIMEOUT_S, check=True,
    )
    return result.stdout


class HardwareProbe:
    """
    Reads the three hardware sources plus the battery signal.
    Every call performs a fresh query, so each resolution pass gets its
    own snapshot.
    """

    def __init__(self, runner: Optional[PowerShellRunner] = None):
        self.runner = runner
        if self.runner is None and os.name == "nt":
            self.runner = run_powershell

    def _query(self, label: str, script: str) -> Optional[str]:
        if self.runner is None:
            logger.info("%s query skipped — not a Windows host", label)
            return None
        try:
            return self.runner(script)
        except (subprocess.SubprocessError, FileNotFoundError, OSError) as exc:
            logger.warning("%s query failed (%s)", label, exc)
            return None

    def _parse(self, label: str, text: Optional[str], parser, *args):
        try:
            return parser(text or "", *args)
        except ValueError as exc:
            logger.warning("%s output could not be parsed (%s)", label, exc)
            return parser("", *args)

    def enumerate_displays(self) -> List[DisplayGeometry]:
        text = self._query("Display enumeration", SCREENS_QUERY)
        displays = self._parse("Display enumeration", text, parse_screens)
        logger.debug("Enumerated %d logical display(s)", len(displays))
        return displays

    def read_monitor_descriptors(self) -> List[MonitorDescriptor]:
        size_text = self._query("Monitor size", MONITOR_SIZE_QUERY)
        sizes = self._parse("Monitor size", size_text, parse_monitor_sizes)

        text = self._query("Monitor descriptor", MONITOR_ID_QUERY)
        descriptors = self._parse("Monitor descriptor", text, parse_monitor_ids, sizes)
        if descriptors:
            return descriptors

        logger.info("No WmiMonitorID descriptors — trying Win32_DesktopMonitor")
        text = self._query("Desktop monitor", DESKTOP_MONITOR_QUERY)
        return self._parse("Desktop monitor", text, parse_desktop_monitors)

    def read_controller_resolutions(self) -> List[ControllerResolution]:
        text = self._query("Video controller", CONTROLLER_QUERY)
        return self._parse("Video controller", text, parse_controllers)

    def has_battery(self) -> bool:
        text = self._query("Battery", BATTERY_QUERY)
        return _int((text or "").strip()) > 0
