"""
scene.py — OBS scene collection model and patch logic.

Sources are parsed into tagged variants by their type id:
  • SceneSource    "scene"                 — owns the positioned item list
  • CaptureSource  "monitor_capture"       — display capture, addressed by device path
  • AudioSource    "wasapi_*"              — desktop / microphone audio
  • UnknownSource  anything else           — preserved untouched

Every variant wraps the raw JSON object it came from, so fields this tool
does not understand round-trip unchanged.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .models import EncodedConfiguration, VerificationMismatch
from .utils import new_uuid

logger = logging.getLogger(__name__)

SCENE_SOURCE_ID   = "scene"
CAPTURE_SOURCE_ID = "monitor_capture"
AUDIO_SOURCE_IDS  = frozenset({
    "wasapi_output_capture",
    "wasapi_input_capture",
    "wasapi_process_output_capture",
})

CAPTURE_SOURCE_NAME = "Display Capture"
DEFAULT_SCENE_NAME  = "Scene"

# obs_alignment flags: LEFT | TOP
ALIGN_TOP_LEFT = 5
ALIGN_CENTER   = 0
# obs_bounds_type: scale to inner bounds
BOUNDS_SCALE_INNER = 2


# ─── Source Variants ─────────────────────────────────────────

@dataclass
class _Source:
    raw: Dict[str, Any]

    @property
    def name(self) -> str:
        return str(self.raw.get("name", ""))

    @property
    def uuid(self) -> str:
        return str(self.raw.get("uuid", ""))

    @property
    def type_id(self) -> str:
        return str(self.raw.get("id", ""))

    @property
    def settings(self) -> Dict[str, Any]:
        settings = self.raw.get("settings")
        if not isinstance(settings, dict):
            settings = {}
            self.raw["settings"] = settings
        return settings

    def to_dict(self) -> Dict[str, Any]:
        return self.raw


class SceneSource(_Source):

    @property
    def items(self) -> List[Dict[str, Any]]:
        items = self.settings.get("items")
        if not isinstance(items, list):
            items = []
            self.settings["items"] = items
        return items

    def items_for(self, source: _Source) -> List[Dict[str, Any]]:
        return [
            item for item in self.items
            if (source.uuid and item.get("source_uuid") == source.uuid)
            or item.get("name") == source.name
        ]

    def next_item_id(self) -> int:
        # hand-edited collections can carry ids that are not integers
        candidates = [item.get("id") for item in self.items]
        candidates.append(self.settings.get("id_counter"))
        used = [n for n in map(_as_int, candidates) if n is not None]
        next_id = max(used, default=0) + 1
        self.settings["id_counter"] = next_id
        return next_id


class CaptureSource(_Source):

    @property
    def monitor_id(self) -> Optional[str]:
        return self.settings.get("monitor_id")

    @monitor_id.setter
    def monitor_id(self, value: str) -> None:
        self.settings["monitor_id"] = value


class AudioSource(_Source):

    @property
    def device_id(self) -> str:
        return str(self.settings.get("device_id", "default"))


class UnknownSource(_Source):
    pass


Source = Union[SceneSource, CaptureSource, AudioSource, UnknownSource]


def parse_source(raw: Dict[str, Any]) -> Source:
    type_id = raw.get("id")
    if type_id == SCENE_SOURCE_ID:
        return SceneSource(raw)
    if type_id == CAPTURE_SOURCE_ID:
        return CaptureSource(raw)
    if type_id in AUDIO_SOURCE_IDS:
        return AudioSource(raw)
    return UnknownSource(raw)


# ─── Collection ──────────────────────────────────────────────

class SceneCollection:
    """A parsed scene collection document."""

    def __init__(self, raw: Dict[str, Any]):
        self.raw = raw
        sources = raw.get("sources")
        self.sources: List[Source] = [
            parse_source(s) for s in (sources if isinstance(sources, list) else [])
            if isinstance(s, dict)
        ]

    @classmethod
    def parse(cls, text: str) -> "SceneCollection":
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("Scene collection must be a JSON object")
        return cls(data)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.raw)
        data["sources"] = [s.to_dict() for s in self.sources]
        return data

    def to_text(self) -> str:
        return json.dumps(self.to_dict(), indent=4, ensure_ascii=False) + "\n"

    # ── Lookup ───────────────────────────────────────────────

    @property
    def scenes(self) -> List[SceneSource]:
        return [s for s in self.sources if isinstance(s, SceneSource)]

    @property
    def capture_sources(self) -> List[CaptureSource]:
        return [s for s in self.sources if isinstance(s, CaptureSource)]

    @property
    def audio_sources(self) -> List[AudioSource]:
        return [s for s in self.sources if isinstance(s, AudioSource)]

    def active_scene(self) -> Optional[SceneSource]:
        current = self.raw.get("current_scene")
        for scene in self.scenes:
            if scene.name == current:
                return scene
        return self.scenes[0] if self.scenes else None

    def unique_name(self, base: str) -> str:
        taken = {s.name for s in self.sources}
        if base not in taken:
            return base
        n = 2
        while f"{base} {n}" in taken:
            n += 1
        return f"{base} {n}"

    # ── Construction ─────────────────────────────────────────

    def add_scene(self, name: str = DEFAULT_SCENE_NAME) -> SceneSource:
        scene = SceneSource({
            "name": self.unique_name(name),
            "uuid": new_uuid(),
            "id": SCENE_SOURCE_ID,
            "versioned_id": SCENE_SOURCE_ID,
            "settings": {"id_counter": 0, "custom_size": False, "items": []},
            "mixers": 0,
            "enabled": True,
            "private_settings": {},
        })
        self.sources.append(scene)
        self.raw["current_scene"] = scene.name
        self.raw["current_program_scene"] = scene.name
        self.raw["scene_order"] = [{"name": s.name} for s in self.scenes]
        return scene

    def add_capture_source(self, monitor_id: str) -> CaptureSource:
        capture = CaptureSource(new_capture_source(self.unique_name(CAPTURE_SOURCE_NAME), monitor_id))
        self.sources.append(capture)
        return capture


def new_capture_source(name: str, monitor_id: str, uuid: str = "") -> Dict[str, Any]:
    return {
        "name": name,
        "uuid": uuid or new_uuid(),
        "id": CAPTURE_SOURCE_ID,
        "versioned_id": CAPTURE_SOURCE_ID,
        "settings": {"monitor_id": monitor_id, "capture_cursor": True, "method": 0},
        "mixers": 0,
        "sync": 0,
        "flags": 0,
        "volume": 1.0,
        "balance": 0.5,
        "enabled": True,
        "muted": False,
        "private_settings": {},
    }


_TRANSFORM_FIELDS = ("pos", "scale", "rot", "align", "bounds_type", "bounds_align")


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def reset_transform(item: Dict[str, Any], width: int, height: int) -> None:
    """Untransformed full-canvas fit: origin, unit scale, bounds = canvas."""
    item["pos"] = {"x": 0.0, "y": 0.0}
    item["scale"] = {"x": 1.0, "y": 1.0}
    item["rot"] = 0.0
    item["align"] = ALIGN_TOP_LEFT
    item["bounds_type"] = BOUNDS_SCALE_INNER
    item["bounds_align"] = ALIGN_CENTER
    item["bounds"] = {"x": float(width), "y": float(height)}
    for edge in ("crop_left", "crop_top", "crop_right", "crop_bottom"):
        item[edge] = 0


def new_scene_item(source: _Source, item_id: int, width: int, height: int) -> Dict[str, Any]:
    item = {
        "name": source.name,
        "source_uuid": source.uuid,
        "visible": True,
        "locked": False,
        "id": item_id,
        "group_item_backup": False,
        "scale_filter": "disable",
        "blend_method": "default",
        "blend_type": "normal",
        "private_settings": {},
    }
    reset_transform(item, width, height)
    return item


# ─── Patch / Verify ──────────────────────────────────────────

def patch_scene(collection: SceneCollection, cfg: EncodedConfiguration) -> bool:
    """
    Point the display capture at cfg.monitor_device_id and refit it to the
    base canvas. Returns True when a new capture source was created.
    """
    scene = collection.active_scene() or collection.add_scene()

    captures = collection.capture_sources
    created = not captures
    if created:
        capture = collection.add_capture_source(cfg.monitor_device_id or "")
        logger.info("Added capture source '%s' to scene '%s'", capture.name, scene.name)
    else:
        capture = captures[0]
        if cfg.monitor_device_id:
            capture.monitor_id = cfg.monitor_device_id
        else:
            logger.warning("No monitor device id — keeping capture target of '%s'", capture.name)

    items = scene.items_for(capture)
    if items:
        for item in items:
            reset_transform(item, cfg.base_width, cfg.base_height)
    else:
        item = new_scene_item(capture, scene.next_item_id(), cfg.base_width, cfg.base_height)
        scene.items.append(item)
    return created


def verify_scene(text: str, cfg: EncodedConfiguration) -> List[VerificationMismatch]:
    try:
        collection = SceneCollection.parse(text)
    except ValueError as exc:
        return [VerificationMismatch("scene", "document", "valid JSON", str(exc))]

    mismatches = []
    captures = collection.capture_sources
    if not captures:
        return [VerificationMismatch("scene", CAPTURE_SOURCE_ID, "present", None)]
    capture = captures[0]

    if cfg.monitor_device_id and capture.monitor_id != cfg.monitor_device_id:
        mismatches.append(VerificationMismatch(
            "scene", "monitor_id", cfg.monitor_device_id, capture.monitor_id,
        ))

    scene = collection.active_scene()
    items = scene.items_for(capture) if scene else []
    if not items:
        mismatches.append(VerificationMismatch("scene", "capture item", "present", None))
    expected_item: Dict[str, Any] = {}
    reset_transform(expected_item, cfg.base_width, cfg.base_height)
    for item in items:
        for field in _TRANSFORM_FIELDS:
            if item.get(field) != expected_item[field]:
                actual = item.get(field)
                mismatches.append(VerificationMismatch(
                    "scene", f"item {field}", json.dumps(expected_item[field]),
                    None if actual is None else json.dumps(actual),
                ))
        bounds = item.get("bounds") or {}
        expected = f"{cfg.base_width}x{cfg.base_height}"
        actual = f"{int(bounds.get('x', 0))}x{int(bounds.get('y', 0))}"
        if actual != expected:
            mismatches.append(VerificationMismatch("scene", "item bounds", expected, actual))
    return mismatches
