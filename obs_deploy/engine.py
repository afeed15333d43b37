"""
engine.py — Pipeline orchestrator for enumerate → reconcile → select →
derive → synthesize.

Coordinates:
  • A fresh hardware snapshot per pass (no descriptor state is reused)
  • Mode resolution from AppSettings
  • Output resolution / bitrate derivation from the performance tier
  • Patch or template synthesis with post-write verification
  • Check-only runs that never touch an artifact
  • A "test all modes" probe for diagnostics
"""

import logging
from typing import Callable, Dict, List, Optional, Union

from .bitrate import calculate_bitrate, scale_resolution
from .config import AppSettings, EncoderProfile, detect_encoder
from .errors import DeployError
from .hardware import HardwareProbe
from .models import (
    EncodedConfiguration, PerformanceTier, ResolvedDisplay, SelectionMode, SelectionResult,
)
from .reconciler import reconcile
from .selector import Prompter, ResolutionSelector
from .synthesizer import ConfigurationSynthesizer, SynthesisReport

logger = logging.getLogger(__name__)

# Callback types
LogCallback = Callable[[str], None]
ProgressCallback = Callable[[str, int, int], None]  # (stage, current, total)

STAGES = ("detect", "select", "derive", "write")


class DeployEngine:
    """
    Runs one resolution pass and writes its result:
      1. Detect and reconcile displays
      2. Select one display for the configured mode
      3. Derive output resolution and bitrate
      4. Synthesize and verify the OBS artifacts
    """

    def __init__(
        self,
        settings: AppSettings,
        probe: Optional[HardwareProbe] = None,
        encoder: Optional[EncoderProfile] = None,
        prompter: Optional[Prompter] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_log: Optional[LogCallback] = None,
    ):
        self.settings = settings
        self.probe = probe or HardwareProbe()
        self.encoder = encoder or detect_encoder()
        self.prompter = prompter
        self.on_progress = on_progress or (lambda *_: None)
        self.on_log = on_log or logger.info

        self.displays: List[ResolvedDisplay] = []
        self.selection: Optional[SelectionResult] = None
        self.config: Optional[EncodedConfiguration] = None
        self.report: Optional[SynthesisReport] = None

    # ── Public API ───────────────────────────────────────────

    @property
    def mode(self) -> SelectionMode:
        if self.settings.check_only:
            return SelectionMode.CHECK_ONLY
        if self.settings.custom_resolution:
            return SelectionMode.CUSTOM
        if self.settings.mode:
            return SelectionMode.parse(self.settings.mode)
        return SelectionMode.DEFAULT

    def detect(self) -> List[ResolvedDisplay]:
        """Take a fresh hardware snapshot and reconcile it."""
        geometries = self.probe.enumerate_displays()
        descriptors = self.probe.read_monitor_descriptors()
        readings = self.probe.read_controller_resolutions()
        logger.debug(
            "Snapshot: %d display(s), %d descriptor(s), %d controller reading(s)",
            len(geometries), len(descriptors), len(readings),
        )
        self.displays = reconcile(geometries, descriptors, readings)
        return self.displays

    def select(self, displays: List[ResolvedDisplay], mode: SelectionMode) -> SelectionResult:
        selector = ResolutionSelector(
            displays, battery_probe=self.probe.has_battery, prompter=self.prompter,
        )
        return selector.select(mode, self.settings.custom_resolution)

    def derive(self, selection: SelectionResult) -> EncodedConfiguration:
        tier = PerformanceTier.parse(self.settings.tier)
        out_w, out_h = scale_resolution(selection.width, selection.height, tier)
        return EncodedConfiguration(
            base_width=selection.width,
            base_height=selection.height,
            output_width=out_w,
            output_height=out_h,
            video_bitrate_kbps=calculate_bitrate(out_w, out_h, tier),
            audio_bitrate_kbps=self.settings.audio_bitrate,
            fps=self.settings.fps,
            encoder_id=self.encoder.simple_id,
            monitor_device_id=selection.monitor_device_id,
            output_path=self.settings.recording_path,
        )

    def run(self) -> bool:
        """
        Execute the full pipeline.  Returns True on success.
        Safe to call from a background thread.
        """
        total = len(STAGES)

        try:
            mode = self.mode
            self.on_log(f"🚀 Engine: {self.encoder.label} | mode: {mode.display}")
            self.on_log(f"   Tier: {self.settings.tier}% | strategy: {self.settings.strategy}\n")

            # ── Stage 1: Detect ──────────────────────────────
            displays = self.detect()
            self.on_log(f"🖥  {len(displays)} display(s) detected")
            for d in displays:
                ident = d.monitor_device_id or "no device id"
                self.on_log(f"   [{d.index}] {d.describe()} — {ident}")
            self.on_progress("detect", 1, total)

            # ── Stage 2: Select ──────────────────────────────
            self.selection = self.select(displays, mode)
            self.on_log(
                f"\n🎯 Selected {self.selection.width}x{self.selection.height} "
                f"({self.selection.source})"
            )
            self.on_progress("select", 2, total)

            # ── Stage 3: Derive ──────────────────────────────
            self.config = self.derive(self.selection)
            cfg = self.config
            self.on_log(
                f"📐 Output {cfg.output_width}x{cfg.output_height} @ "
                f"{cfg.video_bitrate_kbps} kbps video / {cfg.audio_bitrate_kbps} kbps audio"
            )
            self.on_progress("derive", 3, total)

            if mode is SelectionMode.CHECK_ONLY:
                self.on_log("\n✅ Check complete — no files were changed.")
                self.on_progress("done", total, total)
                return True

            # ── Stage 4: Synthesize ──────────────────────────
            self.report = self._stage_write(cfg)
            self.on_progress("write", total, total)

            self.on_log(f"\n✅ SUCCESS → {self.settings.profile_path}")
            self.on_progress("done", total, total)
            return True

        except DeployError as exc:
            self.on_log(f"\n✖ {exc}")
            logger.error("Deployment failed: %s", exc)
            return False
        except Exception as exc:
            self.on_log(f"\n💥 Pipeline error: {exc}")
            logger.exception("Pipeline failed")
            return False

    def _stage_write(self, cfg: EncodedConfiguration) -> SynthesisReport:
        self.on_log("\n" + "━" * 50)
        self.on_log(f"Writing OBS configuration ({self.settings.strategy})")
        self.on_log("━" * 50)

        synthesizer = ConfigurationSynthesizer(
            self.settings.profile_path, self.settings.scene_path, on_log=self.on_log,
        )
        if self.settings.strategy == "template":
            return synthesizer.create(
                cfg, self.settings.profile_name, self.settings.scene_collection,
            )
        return synthesizer.patch(cfg, self.settings.scene_collection)

    # ── Diagnostics ──────────────────────────────────────────

    def probe_all_modes(self) -> Dict[str, Union[SelectionResult, DeployError]]:
        """
        Resolve every non-interactive mode, each against its own fresh
        snapshot. Nothing is written.
        """
        modes = [
            SelectionMode.DEFAULT, SelectionMode.PRIMARY, SelectionMode.INTERNAL,
            SelectionMode.EXTERNAL, SelectionMode.CHECK_ONLY,
        ]
        if self.settings.custom_resolution:
            modes.append(SelectionMode.CUSTOM)

        results: Dict[str, Union[SelectionResult, DeployError]] = {}
        for mode in modes:
            displays = self.detect()
            try:
                results[mode.value] = self.select(displays, mode)
            except DeployError as exc:
                results[mode.value] = exc
        return results
