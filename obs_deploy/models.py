"""
models.py — Data models for the application.

Defines:
  • Raw hardware records (DisplayGeometry, MonitorDescriptor, ControllerResolution)
  • ResolvedDisplay, the fused per-display record
  • SelectionMode and PerformanceTier enums
  • SelectionResult, EncodedConfiguration and VerificationMismatch
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Tuple

from .config import MANUFACTURER_NAMES
from .utils import format_resolution


@dataclass(frozen=True)
class DisplayGeometry:
    """One active logical display as reported by the OS."""
    index: int
    width: int
    height: int
    x: int = 0
    y: int = 0
    is_primary: bool = False
    device_name: str = ""


@dataclass(frozen=True)
class MonitorDescriptor:
    """Physical monitor identity read from the hardware inventory."""
    manufacturer_code: str
    model_name: str = ""
    serial_number: str = ""
    instance_id: str = ""
    physical_size_cm: Optional[Tuple[int, int]] = None

    @property
    def manufacturer_name(self) -> str:
        return MANUFACTURER_NAMES.get(self.manufacturer_code, self.manufacturer_code or "Unknown")

    @property
    def is_identifiable(self) -> bool:
        """False when neither the model nor the vendor tells us anything."""
        return bool(self.model_name) or self.manufacturer_code in MANUFACTURER_NAMES


@dataclass(frozen=True)
class ControllerResolution:
    """Active resolution reported by a graphics controller."""
    width: int
    height: int
    controller_name: str = ""

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


@dataclass
class ResolvedDisplay:
    """
    A logical display fused with its corrected resolution and, when one
    could be matched, its physical monitor descriptor.
    """
    geometry: DisplayGeometry
    width: int
    height: int
    descriptor: Optional[MonitorDescriptor] = None
    monitor_device_id: Optional[str] = None
    physical_size_cm: Optional[Tuple[int, int]] = None
    corrected: bool = False

    @property
    def index(self) -> int:
        return self.geometry.index

    @property
    def is_primary(self) -> bool:
        return self.geometry.is_primary

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def resolution(self) -> str:
        return format_resolution(self.width, self.height)

    @property
    def manufacturer(self) -> str:
        if self.descriptor is None:
            return "Unknown"
        return self.descriptor.manufacturer_name

    @property
    def name(self) -> str:
        if self.descriptor is not None and self.descriptor.model_name:
            return self.descriptor.model_name
        if self.is_primary:
            return "Primary Display"
        return f"Display {self.index}"

    def describe(self) -> str:
        tag = " [primary]" if self.is_primary else ""
        return f"{self.name} ({self.manufacturer}) {self.resolution}{tag}"


class SelectionMode(Enum):
    """How the selector picks one display."""
    CUSTOM      = "custom"
    PRIMARY     = "primary"
    INTERNAL    = "internal"
    EXTERNAL    = "external"
    CHECK_ONLY  = "check"
    INTERACTIVE = "interactive"
    DEFAULT     = "default"

    @property
    def display(self) -> str:
        _labels = {
            SelectionMode.CUSTOM:      "Custom Resolution",
            SelectionMode.PRIMARY:     "Primary Display",
            SelectionMode.INTERNAL:    "Internal Display",
            SelectionMode.EXTERNAL:    "External Display",
            SelectionMode.CHECK_ONLY:  "Check Only",
            SelectionMode.INTERACTIVE: "Interactive Selection",
            SelectionMode.DEFAULT:     "Default",
        }
        return _labels[self]

    @classmethod
    def parse(cls, value) -> "SelectionMode":
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValueError(f"Invalid selection mode '{value}'. Allowed: {allowed}") from None


class PerformanceTier(IntEnum):
    """Percentage of native resolution kept for the recording output."""
    TIER_33 = 33
    TIER_50 = 50
    TIER_60 = 60
    TIER_75 = 75
    TIER_90 = 90

    @property
    def scale(self) -> float:
        return self.value / 100.0

    @property
    def bitrate_factor(self) -> float:
        _factors = {
            PerformanceTier.TIER_33: 0.6,
            PerformanceTier.TIER_50: 0.75,
            PerformanceTier.TIER_60: 0.85,
            PerformanceTier.TIER_75: 0.95,
            PerformanceTier.TIER_90: 1.0,
        }
        return _factors[self]

    @classmethod
    def parse(cls, value) -> "PerformanceTier":
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            allowed = ", ".join(str(t.value) for t in cls)
            raise ValueError(f"Invalid performance tier '{value}'. Allowed: {allowed}") from None


@dataclass(frozen=True)
class SelectionResult:
    width: int
    height: int
    source: str
    resolved_display: ResolvedDisplay
    monitor_device_id: Optional[str] = None


@dataclass(frozen=True)
class EncodedConfiguration:
    """Final parameter set written into the profile and scene artifacts."""
    base_width: int
    base_height: int
    output_width: int
    output_height: int
    video_bitrate_kbps: int
    audio_bitrate_kbps: int
    fps: int
    encoder_id: str
    monitor_device_id: Optional[str]
    output_path: str


@dataclass(frozen=True)
class VerificationMismatch:
    artifact: str
    field: str
    expected: str
    actual: Optional[str]

    def __str__(self) -> str:
        return f"{self.artifact}:{self.field} expected {self.expected!r}, found {self.actual!r}"
