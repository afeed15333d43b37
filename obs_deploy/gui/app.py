"""
app.py — Main application window for OBS Deploy.

Coordinates all GUI panels and drives the DeployEngine on a background thread.
All engine callbacks are relayed to the main thread via `self.after()`.
"""

import logging
import threading
import tkinter as tk
from tkinter import messagebox
from typing import List, Optional, Sequence

import customtkinter as ctk

from ..config import AppSettings, detect_encoder
from ..engine import DeployEngine
from ..hardware import HardwareProbe
from ..models import ResolvedDisplay
from .components import DisplayListPanel, LogViewer, ProgressPanel
from .picker_dialog import DisplayPickerDialog
from .settings_panel import SettingsPanel

logger = logging.getLogger(__name__)

# ─── Theme ───────────────────────────────────────────────────
ctk.set_appearance_mode("Dark")
ctk.set_default_color_theme("blue")


class App(ctk.CTk):
    """Main application window."""

    TITLE = "OBS Deploy"
    MIN_W, MIN_H = 960, 680

    def __init__(self, settings: Optional[AppSettings] = None):
        super().__init__()
        self.title(self.TITLE)
        self.geometry("1120x780")
        self.minsize(self.MIN_W, self.MIN_H)
        self.configure(fg_color="#1e1e2e")

        # State
        self.settings = settings or AppSettings()
        self.encoder = detect_encoder()
        self.probe = HardwareProbe()
        self.displays: List[ResolvedDisplay] = []
        self.engine: Optional[DeployEngine] = None
        self.is_running = False

        self._build_ui()
        self.after(200, self._detect)

    # ═════════════════════════════════════════════════════════
    #  UI Construction
    # ═════════════════════════════════════════════════════════

    def _build_ui(self):
        # ── Header ───────────────────────────────────────────
        header_frame = ctk.CTkFrame(self, fg_color="#181825", corner_radius=0, height=56)
        header_frame.pack(fill=tk.X)
        header_frame.pack_propagate(False)

        ctk.CTkLabel(
            header_frame, text="🖥  OBS Deploy",
            font=("Segoe UI", 22, "bold"), text_color="#cdd6f4",
        ).pack(side=tk.LEFT, padx=20)

        ctk.CTkLabel(
            header_frame, text=f"⚡ {self.encoder.label}",
            font=("Segoe UI", 12),
            text_color="#a6e3a1" if self.encoder.is_gpu else "#f9e2af",
        ).pack(side=tk.RIGHT, padx=20)

        body = ctk.CTkFrame(self, fg_color="transparent")
        body.pack(fill=tk.BOTH, expand=True, padx=16, pady=8)

        # — Toolbar —
        toolbar = ctk.CTkFrame(body, fg_color="#181825", corner_radius=12)
        toolbar.pack(fill=tk.X, pady=(0, 8))

        self.detect_btn = ctk.CTkButton(
            toolbar, text="🔍  Detect Displays", width=160, height=32,
            fg_color="#89b4fa", hover_color="#74c7ec",
            text_color="#1e1e2e", font=("Segoe UI", 11),
            command=self._detect,
        )
        self.detect_btn.pack(side=tk.LEFT, padx=12, pady=10)

        ctk.CTkLabel(
            toolbar, text="Click a display to use its resolution as a custom target.",
            text_color="#a6adc8", font=("Segoe UI", 11),
        ).pack(side=tk.LEFT, padx=8)

        # — Display list —
        self.display_panel = DisplayListPanel(
            body, on_pick=self._on_pick, fg_color="#181825", corner_radius=12,
        )
        self.display_panel.pack(fill=tk.BOTH, expand=True, pady=4)

        # — Settings panel —
        self.settings_panel = SettingsPanel(
            body, settings=self.settings,
            encoder_label=self.encoder.label,
            fg_color="#181825", corner_radius=12,
        )
        self.settings_panel.pack(fill=tk.X, pady=4)

        # — Action button —
        self.start_btn = ctk.CTkButton(
            body, text="🚀  DEPLOY CONFIGURATION", height=48,
            font=("Segoe UI", 16, "bold"),
            fg_color="#a6e3a1", hover_color="#94e2d5", text_color="#1e1e2e",
            command=self._start,
        )
        self.start_btn.pack(fill=tk.X, pady=4)

        # — Progress —
        self.progress_panel = ProgressPanel(body)
        self.progress_panel.pack(fill=tk.X, pady=4)

        # — Log viewer —
        self.log_viewer = LogViewer(body, height=150, fg_color="transparent")
        self.log_viewer.pack(fill=tk.BOTH, expand=False, pady=(4, 0))

    # ═════════════════════════════════════════════════════════
    #  Display Detection
    # ═════════════════════════════════════════════════════════

    def _detect(self):
        if self.is_running:
            return
        self.detect_btn.configure(state="disabled")
        threading.Thread(target=self._run_detect, daemon=True).start()

    def _run_detect(self):
        engine = DeployEngine(self.settings, probe=self.probe, encoder=self.encoder)
        try:
            displays = engine.detect()
        except Exception as exc:
            logger.exception("Display detection failed")
            self._log(f"💥 Detection failed: {exc}")
            displays = []
        self.after(0, self._on_detected, displays)

    def _on_detected(self, displays: List[ResolvedDisplay]):
        self.displays = displays
        self.display_panel.refresh(displays)
        self.detect_btn.configure(state="normal")
        self._log(f"🖥  {len(displays)} display(s) detected")

    def _on_pick(self, display: ResolvedDisplay):
        self.settings_panel.set_custom_resolution(display.resolution)

    # ═════════════════════════════════════════════════════════
    #  Engine Control
    # ═════════════════════════════════════════════════════════

    def _start(self):
        if self.is_running:
            return

        # Apply settings from the panel
        self.settings = self.settings_panel.apply()

        self.is_running = True
        self.start_btn.configure(state="disabled")
        self.detect_btn.configure(state="disabled")
        self.progress_panel.reset()
        self.log_viewer.clear()

        self.engine = DeployEngine(
            settings=self.settings,
            probe=self.probe,
            encoder=self.encoder,
            prompter=self._prompt,
            on_progress=self._on_progress,
            on_log=self._log,
        )
        threading.Thread(target=self._run_engine, daemon=True).start()

    def _run_engine(self):
        ok = False
        try:
            ok = self.engine.run()
        except Exception as exc:
            self._log(f"💥 {exc}")
        self.after(0, self._on_done, ok)

    def _on_done(self, success: bool):
        self.is_running = False
        self.start_btn.configure(state="normal")
        self.detect_btn.configure(state="normal")
        self.progress_panel.set_done(success)
        if self.engine and self.engine.displays:
            self._on_detected(self.engine.displays)
        if not success:
            return
        report = self.engine.report if self.engine else None
        if report is None:
            messagebox.showinfo("Check complete", "No files were changed.")
        elif report.verified:
            messagebox.showinfo("Success", f"Saved to:\n{report.profile_path}\n{report.scene_path}")
        else:
            messagebox.showwarning(
                "Written with warnings",
                "\n".join(str(m) for m in report.mismatches[:10]),
            )

    # ── Callbacks (called from engine threads) ───────────────

    def _prompt(self, displays: Sequence[ResolvedDisplay], timeout: float, reply):
        """Interactive mode: open the picker on the main thread."""
        self.after(0, lambda: DisplayPickerDialog(self, displays, timeout, reply))

    def _log(self, msg: str):
        """Thread-safe log append."""
        self.after(0, self.log_viewer.append, msg)

    def _on_progress(self, stage: str, current: int, total: int):
        """Thread-safe progress update."""
        self.after(0, self.progress_panel.update_progress, stage, current, total)
