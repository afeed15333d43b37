"""
synthesizer.py — Write an EncodedConfiguration into OBS artifacts.

Strategies:
  • patch     update an existing profile / scene collection in place
              (created from scratch when the files do not exist yet)
  • template  render complete new artifacts from the bundled templates

Both strategies build the full new text in memory first and swap each file
into place atomically. Afterwards the files are re-read and every written
field is re-extracted; differences are reported, never reverted.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .errors import DeployError
from .models import EncodedConfiguration, VerificationMismatch
from .profile import patch_profile, verify_profile
from .scene import SceneCollection, patch_scene, verify_scene
from .templates import render_artifacts
from .utils import atomic_write_text, read_text

logger = logging.getLogger(__name__)


@dataclass
class SynthesisReport:
    strategy: str
    profile_path: str
    scene_path: str
    created_capture: bool = False
    mismatches: List[VerificationMismatch] = field(default_factory=list)

    @property
    def verified(self) -> bool:
        return not self.mismatches


class ConfigurationSynthesizer:
    """Writes and verifies one profile + scene collection pair."""

    def __init__(
        self,
        profile_path: str,
        scene_path: str,
        on_log: Optional[Callable[[str], None]] = None,
    ):
        self.profile_path = profile_path
        self.scene_path = scene_path
        self.on_log = on_log or logger.info

    # ── Patch mode ───────────────────────────────────────────

    def _load_scene(self, collection_name: str) -> SceneCollection:
        if not os.path.isfile(self.scene_path):
            return SceneCollection({"name": collection_name, "sources": []})
        try:
            return SceneCollection.parse(read_text(self.scene_path))
        except ValueError as exc:
            raise DeployError(
                f"Scene collection {self.scene_path} is not valid JSON ({exc}); "
                f"use template mode to regenerate it."
            ) from exc

    def patch(self, cfg: EncodedConfiguration, collection_name: str = "Untitled") -> SynthesisReport:
        profile_text = read_text(self.profile_path) if os.path.isfile(self.profile_path) else ""
        new_profile = patch_profile(profile_text, cfg)

        collection = self._load_scene(collection_name)
        created = patch_scene(collection, cfg)
        new_scene = collection.to_text()

        atomic_write_text(self.profile_path, new_profile)
        self.on_log(f"  ✔ Profile patched: {self.profile_path}")
        atomic_write_text(self.scene_path, new_scene)
        self.on_log(
            f"  ✔ Scene collection patched: {self.scene_path}"
            + (" (capture source added)" if created else "")
        )

        report = SynthesisReport("patch", self.profile_path, self.scene_path, created_capture=created)
        report.mismatches = self.verify(cfg)
        return report

    # ── Template mode ────────────────────────────────────────

    def create(
        self,
        cfg: EncodedConfiguration,
        profile_name: str,
        collection_name: str,
        profile_template: Optional[str] = None,
        scene_template: Optional[str] = None,
    ) -> SynthesisReport:
        # Raises TemplateValidationFailed before any file is touched
        profile_text, scene_text = render_artifacts(
            cfg, profile_name, collection_name, profile_template, scene_template,
        )
        atomic_write_text(self.profile_path, profile_text)
        self.on_log(f"  ✔ Profile written: {self.profile_path}")
        atomic_write_text(self.scene_path, scene_text)
        self.on_log(f"  ✔ Scene collection written: {self.scene_path}")

        report = SynthesisReport("template", self.profile_path, self.scene_path, created_capture=True)
        report.mismatches = self.verify(cfg)
        return report

    # ── Verification ─────────────────────────────────────────

    def verify(self, cfg: EncodedConfiguration) -> List[VerificationMismatch]:
        mismatches: List[VerificationMismatch] = []
        for artifact, path, check in (
            ("profile", self.profile_path, verify_profile),
            ("scene", self.scene_path, verify_scene),
        ):
            try:
                text = read_text(path)
            except OSError as exc:
                mismatches.append(VerificationMismatch(artifact, "file", path, str(exc)))
                continue
            mismatches.extend(check(text, cfg))

        for m in mismatches:
            logger.warning("Verification mismatch — %s", m)
        if not mismatches:
            self.on_log("  ✔ Verification passed")
        else:
            self.on_log(f"  ⚠ Verification found {len(mismatches)} mismatch(es)")
        return mismatches
