"""
profile.py — OBS profile (basic.ini) document.

The profile is held as an ordered list of sections, each keeping its raw
lines, so keys this tool does not manage (and comments, blank lines and
their order) survive a patch verbatim. Only schema keys are rewritten;
missing ones are appended to their section, and missing sections are
appended to the document.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .config import (
    AUDIO_ENCODER_ID, RECORDING_FORMAT, SIMPLE_AUDIO_ENCODER, advanced_encoder_id,
)
from .models import EncodedConfiguration, VerificationMismatch

logger = logging.getLogger(__name__)

FieldKey = Tuple[str, str]          # (section, key)

_SECTION_RE = re.compile(r"^\s*\[([^\]]+)\]\s*$")
_KEY_RE     = re.compile(r"^\s*([^=;#\[\s][^=]*?)\s*=(.*)$")


@dataclass
class _Section:
    name: Optional[str]             # None for lines before the first header
    lines: List[str] = field(default_factory=list)


class ProfileDocument:
    """Order-preserving key/value document with [section] headers."""

    def __init__(self, sections: Optional[List[_Section]] = None):
        self.sections: List[_Section] = sections or []

    # ── Parsing / serializing ────────────────────────────────

    @classmethod
    def parse(cls, text: str) -> "ProfileDocument":
        sections = [_Section(None)]
        for line in text.splitlines():
            m = _SECTION_RE.match(line)
            if m:
                sections.append(_Section(m.group(1).strip(), [line]))
            else:
                sections[-1].lines.append(line)
        if not sections[0].lines:
            sections.pop(0)
        return cls(sections)

    def to_text(self) -> str:
        lines = [line for s in self.sections for line in s.lines]
        return "\n".join(lines) + "\n"

    # ── Access ───────────────────────────────────────────────

    @property
    def section_names(self) -> List[str]:
        return [s.name for s in self.sections if s.name is not None]

    def _section(self, name: str) -> Optional[_Section]:
        for s in self.sections:
            if s.name == name:
                return s
        return None

    def get(self, section: str, key: str) -> Optional[str]:
        s = self._section(section)
        if s is None:
            return None
        for line in s.lines:
            m = _KEY_RE.match(line)
            if m and m.group(1) == key:
                return m.group(2).strip()
        return None

    def set(self, section: str, key: str, value: str) -> bool:
        """Set one key. Returns True when the document changed."""
        new_line = f"{key}={value}"
        s = self._section(section)
        if s is None:
            if self.sections and self.sections[-1].lines and self.sections[-1].lines[-1].strip():
                self.sections[-1].lines.append("")
            self.sections.append(_Section(section, [f"[{section}]", new_line]))
            return True

        for i, line in enumerate(s.lines):
            m = _KEY_RE.match(line)
            if m and m.group(1) == key:
                if line == new_line:
                    return False
                s.lines[i] = new_line
                return True

        # Append after the last non-blank line of the section
        insert_at = len(s.lines)
        while insert_at > 1 and not s.lines[insert_at - 1].strip():
            insert_at -= 1
        s.lines.insert(insert_at, new_line)
        return True

    def update(self, fields: Dict[FieldKey, str]) -> int:
        changed = 0
        for (section, key), value in fields.items():
            if self.set(section, key, value):
                changed += 1
        return changed


# ─── Schema ──────────────────────────────────────────────────

def profile_fields(cfg: EncodedConfiguration) -> Dict[FieldKey, str]:
    """Every profile key this tool owns, with its value for `cfg`."""
    advanced = advanced_encoder_id(cfg.encoder_id)
    return {
        ("Video", "BaseCX"): str(cfg.base_width),
        ("Video", "BaseCY"): str(cfg.base_height),
        ("Video", "OutputCX"): str(cfg.output_width),
        ("Video", "OutputCY"): str(cfg.output_height),
        ("Video", "FPSType"): "0",
        ("Video", "FPSCommon"): str(cfg.fps),
        ("SimpleOutput", "FilePath"): cfg.output_path,
        ("SimpleOutput", "RecFormat2"): RECORDING_FORMAT,
        ("SimpleOutput", "RecQuality"): "Stream",
        ("SimpleOutput", "VBitrate"): str(cfg.video_bitrate_kbps),
        ("SimpleOutput", "ABitrate"): str(cfg.audio_bitrate_kbps),
        ("SimpleOutput", "StreamEncoder"): cfg.encoder_id,
        ("SimpleOutput", "RecEncoder"): cfg.encoder_id,
        ("SimpleOutput", "StreamAudioEncoder"): SIMPLE_AUDIO_ENCODER,
        ("SimpleOutput", "RecAudioEncoder"): SIMPLE_AUDIO_ENCODER,
        ("AdvOut", "Encoder"): advanced,
        ("AdvOut", "RecEncoder"): advanced,
        ("AdvOut", "AudioEncoder"): AUDIO_ENCODER_ID,
        ("AdvOut", "RecAudioEncoder"): AUDIO_ENCODER_ID,
        ("AdvOut", "RecFilePath"): cfg.output_path,
        ("AdvOut", "RecFormat2"): RECORDING_FORMAT,
        ("AdvOut", "Track1Bitrate"): str(cfg.audio_bitrate_kbps),
    }


def patch_profile(text: str, cfg: EncodedConfiguration) -> str:
    doc = ProfileDocument.parse(text)
    changed = doc.update(profile_fields(cfg))
    logger.debug("Profile patch changed %d key(s)", changed)
    return doc.to_text()


def verify_profile(text: str, cfg: EncodedConfiguration) -> List[VerificationMismatch]:
    doc = ProfileDocument.parse(text)
    mismatches = []
    for (section, key), expected in profile_fields(cfg).items():
        actual = doc.get(section, key)
        if actual != expected:
            mismatches.append(VerificationMismatch("profile", f"{section}.{key}", expected, actual))
    return mismatches
