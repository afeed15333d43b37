"""
templates.py — Parameterized profile / scene templates.

Templates use {{NAME}} placeholders. Rendering happens entirely in memory
and both artifacts are validated before the caller writes anything:

  1. every required placeholder appears in the template
  2. no placeholder is left without a value
  3. the profile is made of [section] headers and key=value lines
  4. the rendered scene parses as a JSON object with one scene and one
     display capture source
"""

import json
import logging
import os
import re
from typing import Callable, Dict, List, Optional, Tuple

from .config import (
    AUDIO_ENCODER_ID, RECORDING_FORMAT, SIMPLE_AUDIO_ENCODER, advanced_encoder_id,
)
from .errors import TemplateValidationFailed
from .models import EncodedConfiguration
from .profile import ProfileDocument
from .scene import SceneCollection
from .utils import new_uuid

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")
PROFILE_TEMPLATE = "basic.ini.tmpl"
SCENE_TEMPLATE   = "scene.json.tmpl"

_PLACEHOLDER_RE = re.compile(r"\{\{([A-Z0-9_]+)\}\}")

PROFILE_REQUIRED = frozenset({
    "PROFILE_NAME", "BASE_WIDTH", "BASE_HEIGHT", "OUTPUT_WIDTH", "OUTPUT_HEIGHT",
    "FPS", "OUTPUT_PATH", "VIDEO_BITRATE", "AUDIO_BITRATE",
    "SIMPLE_ENCODER", "ADVANCED_ENCODER",
})

SCENE_REQUIRED = frozenset({
    "BASE_WIDTH", "BASE_HEIGHT", "SCENE_UUID", "CAPTURE_UUID",
    "MONITOR_DEVICE_ID", "DESKTOP_AUDIO_UUID", "MIC_AUDIO_UUID",
})


def load_template(name: str, template_dir: Optional[str] = None) -> str:
    path = os.path.join(template_dir or TEMPLATE_DIR, name)
    with open(path, encoding="utf-8") as fh:
        return fh.read()


def template_values(
    cfg: EncodedConfiguration, profile_name: str, collection_name: str,
) -> Dict[str, str]:
    """All placeholder values, including freshly generated unique ids."""
    return {
        "PROFILE_NAME": profile_name,
        "COLLECTION_NAME": collection_name,
        "BASE_WIDTH": str(cfg.base_width),
        "BASE_HEIGHT": str(cfg.base_height),
        "OUTPUT_WIDTH": str(cfg.output_width),
        "OUTPUT_HEIGHT": str(cfg.output_height),
        "FPS": str(cfg.fps),
        "OUTPUT_PATH": cfg.output_path,
        "RECORDING_FORMAT": RECORDING_FORMAT,
        "VIDEO_BITRATE": str(cfg.video_bitrate_kbps),
        "AUDIO_BITRATE": str(cfg.audio_bitrate_kbps),
        "SIMPLE_ENCODER": cfg.encoder_id,
        "ADVANCED_ENCODER": advanced_encoder_id(cfg.encoder_id),
        "SIMPLE_AUDIO_ENCODER": SIMPLE_AUDIO_ENCODER,
        "AUDIO_ENCODER": AUDIO_ENCODER_ID,
        "MONITOR_DEVICE_ID": cfg.monitor_device_id or "",
        "SCENE_UUID": new_uuid(),
        "CAPTURE_UUID": new_uuid(),
        "DESKTOP_AUDIO_UUID": new_uuid(),
        "MIC_AUDIO_UUID": new_uuid(),
    }


# ─── Escaping ────────────────────────────────────────────────

def ini_escape(value: str) -> str:
    return value.replace("\r", " ").replace("\n", " ")


def json_escape(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)[1:-1]


# ─── Validation ──────────────────────────────────────────────

def placeholders(text: str) -> set:
    return set(_PLACEHOLDER_RE.findall(text))


def check_placeholders(text: str, required, values: Dict[str, str]) -> List[str]:
    found = placeholders(text)
    problems = []
    missing = sorted(set(required) - found)
    if missing:
        problems.append(f"missing placeholders: {', '.join(missing)}")
    unknown = sorted(found - set(values))
    if unknown:
        problems.append(f"unknown placeholders: {', '.join(unknown)}")
    return problems


def check_profile_structure(text: str) -> List[str]:
    problems = []
    seen_section = False
    for n, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith((";", "#")):
            continue
        if stripped.startswith("[") and stripped.endswith("]"):
            seen_section = True
            continue
        if "=" not in stripped:
            problems.append(f"line {n} is neither a section nor key=value: {stripped!r}")
        elif not seen_section:
            problems.append(f"line {n} appears before any [section]")
    if not seen_section:
        problems.append("no [section] headers")
    return problems


def check_scene_structure(text: str) -> List[str]:
    try:
        collection = SceneCollection.parse(text)
    except ValueError as exc:
        return [f"not a JSON object ({exc})"]
    problems = []
    if len(collection.scenes) != 1:
        problems.append(f"expected exactly one scene, found {len(collection.scenes)}")
    if len(collection.capture_sources) != 1:
        problems.append(
            f"expected exactly one display capture source, found {len(collection.capture_sources)}"
        )
    return problems


# ─── Rendering ───────────────────────────────────────────────

def render(text: str, values: Dict[str, str], escape: Callable[[str], str]) -> str:
    return _PLACEHOLDER_RE.sub(
        lambda m: escape(values[m.group(1)]) if m.group(1) in values else m.group(0),
        text,
    )


def render_artifacts(
    cfg: EncodedConfiguration,
    profile_name: str,
    collection_name: str,
    profile_template: Optional[str] = None,
    scene_template: Optional[str] = None,
) -> Tuple[str, str]:
    """
    Render (profile_text, scene_text). Raises TemplateValidationFailed
    before returning anything if either template is unusable.
    """
    if profile_template is None:
        profile_template = load_template(PROFILE_TEMPLATE)
    if scene_template is None:
        scene_template = load_template(SCENE_TEMPLATE)

    values = template_values(cfg, profile_name, collection_name)

    problems = check_placeholders(profile_template, PROFILE_REQUIRED, values)
    problems += check_profile_structure(profile_template)
    if problems:
        raise TemplateValidationFailed(PROFILE_TEMPLATE, problems)

    problems = check_placeholders(scene_template, SCENE_REQUIRED, values)
    if problems:
        raise TemplateValidationFailed(SCENE_TEMPLATE, problems)

    profile_text = render(profile_template, values, ini_escape)
    scene_text = render(scene_template, values, json_escape)

    problems = check_profile_structure(profile_text)
    if not ProfileDocument.parse(profile_text).get("Video", "BaseCX"):
        problems.append("rendered profile has no Video.BaseCX")
    if problems:
        raise TemplateValidationFailed(PROFILE_TEMPLATE, problems)

    problems = check_scene_structure(scene_text)
    if problems:
        raise TemplateValidationFailed(SCENE_TEMPLATE, problems)

    logger.debug("Rendered templates for %s / %s", profile_name, collection_name)
    return profile_text, scene_text
