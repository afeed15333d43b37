"""
bitrate.py — Output resolution and video bitrate derivation.

Bitrate scales linearly with pixel count, anchored at 1920x1080 → 5000 kbps,
then a per-tier factor and a flat safety margin are applied and the result
is clamped into the encoder's sane range.
"""

from typing import Tuple

from .models import PerformanceTier

REFERENCE_PIXELS       = 1920 * 1080
REFERENCE_BITRATE_KBPS = 5000
PIXELS_PER_KBIT        = REFERENCE_PIXELS / REFERENCE_BITRATE_KBPS

SAFETY_MARGIN    = 1.15
MIN_BITRATE_KBPS = 500
MAX_BITRATE_KBPS = 25000


def _even(value: float) -> int:
    n = int(round(value))
    return max(2, n - (n % 2))


def scale_resolution(width: int, height: int, tier: PerformanceTier) -> Tuple[int, int]:
    """Scale a base resolution down to the tier's output size (even dimensions)."""
    tier = PerformanceTier(tier)
    return _even(width * tier.scale), _even(height * tier.scale)


def calculate_bitrate(width: int, height: int, tier: PerformanceTier) -> int:
    """Target video bitrate in kbps for an output resolution and tier."""
    tier = PerformanceTier(tier)
    base = (width * height) / PIXELS_PER_KBIT
    scaled = round(base * tier.bitrate_factor)
    with_margin = round(scaled * SAFETY_MARGIN)
    return max(MIN_BITRATE_KBPS, min(MAX_BITRATE_KBPS, with_margin))
