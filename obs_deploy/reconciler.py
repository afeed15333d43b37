"""
reconciler.py — Fuse logical geometry, controller readings and monitor
descriptors into one ordered list of ResolvedDisplay records.

Steps per display:
  1. Correct the working resolution (controller match / DPI heuristic)
  2. Claim at most one monitor descriptor and derive its device path

Descriptor matching is injective: claimed descriptor indices are carried
in an immutable set threaded through the matching loop, so a pass never
mutates caller-owned lists and two displays never share an identity.
"""

import logging
from typing import Callable, FrozenSet, List, Optional, Sequence, Tuple

from .config import (
    CONTROLLER_PIXEL_RATIO_LIMIT, DPI_SCALE_FACTORS, DPI_SUSPECT_MAX_HEIGHT,
    DPI_SUSPECT_MAX_WIDTH, EXTERNAL_MONITOR_CODES, INTERNAL_PANEL_CODES,
    RESOLUTION_HINTS, STANDARD_RESOLUTIONS,
)
from .identity import encode_device_path
from .models import ControllerResolution, DisplayGeometry, MonitorDescriptor, ResolvedDisplay

logger = logging.getLogger(__name__)

DescriptorPredicate = Callable[[MonitorDescriptor], bool]


# ─── Resolution Correction ───────────────────────────────────

def _exact_match(
    width: int, height: int, readings: Sequence[ControllerResolution],
) -> Optional[ControllerResolution]:
    for r in readings:
        if r.width == width and r.height == height:
            return r
    return None


def _closest_aspect(
    geometry: DisplayGeometry, readings: Sequence[ControllerResolution],
) -> Optional[ControllerResolution]:
    if geometry.width <= 0 or geometry.height <= 0:
        return None
    own_pixels = geometry.width * geometry.height
    aspect = geometry.width / geometry.height
    candidates = [
        r for r in readings
        if r.width > 0 and r.height > 0
        and r.pixel_count <= own_pixels * CONTROLLER_PIXEL_RATIO_LIMIT
    ]
    if not candidates:
        return None
    # min() keeps the first reading on ties
    return min(candidates, key=lambda r: abs(r.width / r.height - aspect))


def _dpi_corrected(width: int, height: int) -> Optional[Tuple[int, int]]:
    if not (width < DPI_SUSPECT_MAX_WIDTH and height < DPI_SUSPECT_MAX_HEIGHT):
        return None
    for factor in DPI_SCALE_FACTORS:
        candidate = (int(round(width * factor)), int(round(height * factor)))
        if candidate in STANDARD_RESOLUTIONS:
            return candidate
    return None


def correct_resolution(
    geometry: DisplayGeometry, readings: Sequence[ControllerResolution],
) -> Tuple[int, int]:
    """Return the best estimate of the display's real pixel resolution."""
    width, height = geometry.width, geometry.height

    if _exact_match(width, height, readings) is not None:
        return width, height

    if not geometry.is_primary:
        if readings:
            best = _closest_aspect(geometry, readings)
            if best is not None:
                logger.debug(
                    "Display %d: %dx%d → %dx%d (controller %s)",
                    geometry.index, width, height, best.width, best.height,
                    best.controller_name or "?",
                )
                return best.width, best.height
        return width, height

    scaled = _dpi_corrected(width, height)
    if scaled is not None:
        logger.debug(
            "Primary display %d looks DPI-scaled: %dx%d → %dx%d",
            geometry.index, width, height, *scaled,
        )
        return scaled
    return width, height


# ─── Descriptor Matching ─────────────────────────────────────

def _claim(
    descriptors: Sequence[MonitorDescriptor],
    claimed: FrozenSet[int],
    predicate: DescriptorPredicate,
) -> Optional[int]:
    for i, d in enumerate(descriptors):
        if i not in claimed and predicate(d):
            return i
    return None


def _hinted_claim(
    width: int, height: int,
    descriptors: Sequence[MonitorDescriptor],
    claimed: FrozenSet[int],
) -> Optional[int]:
    for code in RESOLUTION_HINTS.get((width, height), ()):
        idx = _claim(descriptors, claimed, lambda d, c=code: d.manufacturer_code == c)
        if idx is not None:
            return idx
    return None


def match_descriptor(
    width: int, height: int, is_primary: bool,
    descriptors: Sequence[MonitorDescriptor],
    claimed: FrozenSet[int],
) -> Optional[int]:
    """
    Pick the index of the descriptor for one display, in priority order:
    resolution hint, vendor class (internal for primary, external
    otherwise), then the first unclaimed descriptor.
    """
    idx = _hinted_claim(width, height, descriptors, claimed)
    if idx is not None:
        return idx

    vendor_class = INTERNAL_PANEL_CODES if is_primary else EXTERNAL_MONITOR_CODES
    idx = _claim(descriptors, claimed, lambda d: d.manufacturer_code in vendor_class)
    if idx is not None:
        return idx

    return _claim(descriptors, claimed, lambda d: True)


# ─── Reconciliation ──────────────────────────────────────────

def reconcile(
    geometries: Sequence[DisplayGeometry],
    descriptors: Sequence[MonitorDescriptor],
    readings: Sequence[ControllerResolution],
) -> List[ResolvedDisplay]:
    """
    Fuse one snapshot of the three hardware sources.
    Output keeps the enumeration order; the primary display is matched
    first so the internal panel descriptor is not taken by a fallback.
    """
    resolved = []
    for g in geometries:
        width, height = correct_resolution(g, readings)
        resolved.append(ResolvedDisplay(
            geometry=g,
            width=width,
            height=height,
            corrected=(width, height) != (g.width, g.height),
        ))

    claimed: FrozenSet[int] = frozenset()
    match_order = sorted(resolved, key=lambda r: (not r.is_primary, r.index))
    for display in match_order:
        idx = match_descriptor(
            display.width, display.height, display.is_primary, descriptors, claimed,
        )
        if idx is None:
            continue
        claimed = claimed | {idx}
        descriptor = descriptors[idx]
        display.descriptor = descriptor
        display.monitor_device_id = encode_device_path(descriptor.instance_id) or None
        display.physical_size_cm = descriptor.physical_size_cm

    for display in resolved:
        logger.info("Display %d: %s", display.index, display.describe())
    return resolved
