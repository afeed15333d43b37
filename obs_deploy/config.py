"""
config.py — Application constants, hardware tables, and user settings.

Handles:
  • Standard resolutions and DPI scale factors
  • Manufacturer code tables (internal panels vs. external monitors)
  • Lazy NVIDIA GPU (NVENC) detection with x264 fallback
  • Simple ↔ advanced encoder id mapping
  • Central AppSettings dataclass for all user-configurable options
  • OBS config directory discovery
"""

import os
import shutil
import subprocess
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

# ─── Resolution Tables ───────────────────────────────────────
STANDARD_RESOLUTIONS = (
    (1920, 1200),
    (1920, 1080),
    (2560, 1440),
)

DPI_SCALE_FACTORS = (1.25, 1.5, 1.75, 2.0)

# Logical geometry below both limits is treated as DPI-virtualized
DPI_SUSPECT_MAX_WIDTH  = 1280
DPI_SUSPECT_MAX_HEIGHT = 720

# Controller readings larger than this multiple of a display's own
# pixel count belong to another display
CONTROLLER_PIXEL_RATIO_LIMIT = 2.0

# ─── Monitor Identity ────────────────────────────────────────
MONITOR_INTERFACE_GUID = "{e6f07b5f-ee97-4a90-b076-33f57bf4eaa7}"
DEVICE_PATH_PREFIX     = "\\\\?\\DISPLAY#"

# Laptop panel vendors
INTERNAL_PANEL_CODES = frozenset({
    "AUO", "BOE", "CMN", "CSO", "IVO", "KDB", "LGD", "NCP", "SDC", "SHP", "TMX",
})

# Desktop monitor vendors
EXTERNAL_MONITOR_CODES = frozenset({
    "ACR", "AOC", "AUS", "BNQ", "DEL", "EIZ", "GBT", "GSM", "HPN", "HWP",
    "IVM", "LEN", "MSI", "NEC", "PHL", "SAM", "SNY", "VSC",
})

MANUFACTURER_NAMES: Dict[str, str] = {
    "ACR": "Acer",
    "AOC": "AOC",
    "AUO": "AU Optronics",
    "AUS": "ASUS",
    "BNQ": "BenQ",
    "BOE": "BOE",
    "CMN": "Chimei Innolux",
    "CSO": "CSOT",
    "DEL": "Dell",
    "EIZ": "EIZO",
    "GBT": "Gigabyte",
    "GSM": "LG Electronics",
    "HPN": "HP",
    "HWP": "HP",
    "IVM": "iiyama",
    "IVO": "InfoVision",
    "KDB": "Kyocera Display",
    "LEN": "Lenovo",
    "LGD": "LG Display",
    "MSI": "MSI",
    "NCP": "Nanchang",
    "NEC": "NEC",
    "PHL": "Philips",
    "SAM": "Samsung",
    "SDC": "Samsung Display",
    "SHP": "Sharp",
    "SNY": "Sony",
    "TMX": "Tianma",
    "VSC": "ViewSonic",
}

# Resolutions whose panel vendor is known in advance, most likely first
RESOLUTION_HINTS: Dict[Tuple[int, int], Tuple[str, ...]] = {
    (5120, 1440): ("PHL", "SAM", "DEL"),
    (3440, 1440): ("DEL", "GSM", "AUS"),
    (2560, 1600): ("BOE", "AUO", "SDC"),
}

# ─── Encoding Defaults ───────────────────────────────────────
TARGET_FPS           = 30
AUDIO_BITRATE_KBPS   = 192
AUDIO_ENCODER_ID     = "ffmpeg_aac"      # advanced output
SIMPLE_AUDIO_ENCODER = "aac"             # simple output
RECORDING_FORMAT     = "mkv"

INTERACTIVE_TIMEOUT_S = 10.0

# Simple-mode encoder names → advanced-mode encoder ids
ENCODER_ID_MAP: Dict[str, str] = {
    "x264":  "obs_x264",
    "nvenc": "jim_nvenc",
    "qsv":   "obs_qsv11",
    "amd":   "h264_texture_amf",
}


# ─── Encoder Detection ───────────────────────────────────────

@dataclass
class EncoderProfile:
    """Holds the detected (or fallback) encoder ids for both OBS output modes."""
    simple_id: str = "x264"
    is_gpu: bool = False

    @property
    def advanced_id(self) -> str:
        return advanced_encoder_id(self.simple_id)

    @property
    def label(self) -> str:
        return f"{self.simple_id} ({'GPU' if self.is_gpu else 'CPU'})"


def advanced_encoder_id(simple_id: str) -> str:
    """Translate a simple-mode encoder name; unknown names raise KeyError."""
    try:
        return ENCODER_ID_MAP[simple_id]
    except KeyError:
        raise KeyError(
            f"Unknown simple encoder '{simple_id}'. "
            f"Known: {', '.join(sorted(ENCODER_ID_MAP))}"
        ) from None


def detect_encoder() -> EncoderProfile:
    """
    Auto-detect NVIDIA GPU via nvidia-smi.
    Returns an NVENC profile if available, otherwise falls back to x264.
    """
    if not shutil.which("nvidia-smi"):
        logger.info("nvidia-smi not found — using CPU encoder (x264)")
        return EncoderProfile()

    try:
        subprocess.run(
            ["nvidia-smi"], stdout=subprocess.PIPE, stderr=subprocess.PIPE,
            timeout=5, check=True,
        )
        logger.info("NVIDIA GPU detected — using nvenc")
        return EncoderProfile(simple_id="nvenc", is_gpu=True)
    except (subprocess.SubprocessError, FileNotFoundError, OSError) as exc:
        logger.warning("GPU detection failed (%s) — falling back to CPU", exc)
        return EncoderProfile()


# ─── OBS Config Directory ────────────────────────────────────

def get_obs_config_dir() -> str:
    """Return the OBS Studio config root for the current user."""
    appdata = os.environ.get("APPDATA")
    if appdata:
        return os.path.join(appdata, "obs-studio")
    return os.path.join(os.path.expanduser("~"), ".config", "obs-studio")


# ─── Application Settings ────────────────────────────────────

@dataclass
class AppSettings:
    """All user-configurable settings in one place."""
    mode: Optional[str] = None           # primary | internal | external | interactive
    custom_resolution: str = ""          # "WxH", overrides mode
    tier: int = 75
    strategy: str = "patch"              # patch or template
    check_only: bool = False
    obs_config_dir: str = ""
    profile_name: str = "Untitled"
    scene_collection: str = "Untitled"
    output_path: str = ""
    fps: int = TARGET_FPS
    audio_bitrate: int = AUDIO_BITRATE_KBPS

    @property
    def config_root(self) -> str:
        return self.obs_config_dir or get_obs_config_dir()

    @property
    def profile_path(self) -> str:
        return os.path.join(
            self.config_root, "basic", "profiles", self.profile_name, "basic.ini"
        )

    @property
    def scene_path(self) -> str:
        return os.path.join(
            self.config_root, "basic", "scenes", f"{self.scene_collection}.json"
        )

    @property
    def recording_path(self) -> str:
        return self.output_path or os.path.join(os.path.expanduser("~"), "Videos")
