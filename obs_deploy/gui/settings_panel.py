"""
settings_panel.py — Settings panel for the main window.

Contains:
  • Selection mode + custom resolution
  • Performance tier and write strategy
  • Check-only toggle
  • OBS config directory, profile / scene collection names
  • Recording output folder + browse
"""

import tkinter as tk
from tkinter import filedialog

import customtkinter as ctk

from ..config import AppSettings
from ..models import PerformanceTier
from ..utils import sanitize_name

MODE_CHOICES = ["default", "primary", "internal", "external", "interactive", "custom"]


class SettingsPanel(ctk.CTkFrame):
    """
    Settings panel that reads/writes an AppSettings instance.
    Call `apply()` to push UI values back into the settings object.
    """

    def __init__(self, master, settings: AppSettings, encoder_label: str = "", **kwargs):
        super().__init__(master, **kwargs)
        self.settings = settings

        # ── Row 1: Mode, custom resolution, tier, encoder badge ──
        r1 = ctk.CTkFrame(self, fg_color="transparent")
        r1.pack(fill=tk.X, padx=12, pady=(10, 4))

        self._label(r1, "Mode")
        initial_mode = "custom" if settings.custom_resolution else (settings.mode or "default")
        self.mode_var = ctk.StringVar(value=initial_mode)
        self._menu(r1, self.mode_var, MODE_CHOICES, 120)

        self._label(r1, "Resolution", padx=(20, 6))
        self.custom_var = ctk.StringVar(value=settings.custom_resolution)
        ctk.CTkEntry(
            r1, textvariable=self.custom_var, width=110, height=32,
            placeholder_text="1920x1080",
        ).pack(side=tk.LEFT, padx=4)

        self._label(r1, "Tier", padx=(20, 6))
        self.tier_var = ctk.StringVar(value=str(settings.tier))
        self._menu(r1, self.tier_var, [str(t.value) for t in PerformanceTier], 80)

        if encoder_label:
            badge_color = "#a6e3a1" if "GPU" in encoder_label else "#f9e2af"
            ctk.CTkLabel(
                r1, text=f"⚡ {encoder_label}",
                font=("Segoe UI", 11, "bold"),
                text_color=badge_color,
            ).pack(side=tk.RIGHT, padx=8)

        # ── Row 2: Strategy, check-only, names ───────────────
        r2 = ctk.CTkFrame(self, fg_color="transparent")
        r2.pack(fill=tk.X, padx=12, pady=4)

        self._label(r2, "Write")
        self.strategy_var = ctk.StringVar(value=settings.strategy)
        self._menu(r2, self.strategy_var, ["patch", "template"], 100)

        self.check_var = ctk.BooleanVar(value=settings.check_only)
        ctk.CTkSwitch(
            r2, text="Check only", variable=self.check_var,
            font=("Segoe UI", 11), text_color="#cdd6f4",
            progress_color="#cba6f7",
        ).pack(side=tk.LEFT, padx=(20, 20))

        self._label(r2, "Profile")
        self.profile_var = ctk.StringVar(value=settings.profile_name)
        ctk.CTkEntry(r2, textvariable=self.profile_var, width=140, height=32).pack(side=tk.LEFT, padx=4)

        self._label(r2, "Collection", padx=(12, 6))
        self.collection_var = ctk.StringVar(value=settings.scene_collection)
        ctk.CTkEntry(r2, textvariable=self.collection_var, width=140, height=32).pack(side=tk.LEFT, padx=4)

        # ── Row 3: Config dir + recording folder ─────────────
        r3 = ctk.CTkFrame(self, fg_color="transparent")
        r3.pack(fill=tk.X, padx=12, pady=(4, 10))

        self._label(r3, "OBS Config")
        self.config_var = ctk.StringVar(value=settings.config_root)
        ctk.CTkEntry(r3, textvariable=self.config_var, height=32).pack(
            side=tk.LEFT, fill=tk.X, expand=True, padx=4
        )
        self._browse_button(r3, self._browse_config)

        self._label(r3, "Recordings", padx=(12, 6))
        self.out_var = ctk.StringVar(value=settings.recording_path)
        ctk.CTkEntry(r3, textvariable=self.out_var, height=32).pack(
            side=tk.LEFT, fill=tk.X, expand=True, padx=4
        )
        self._browse_button(r3, self._browse_output)

    # ── Widget helpers ───────────────────────────────────────

    @staticmethod
    def _label(parent, text: str, padx=(0, 6)):
        ctk.CTkLabel(parent, text=text, font=("Segoe UI", 12, "bold"),
                     text_color="#cdd6f4").pack(side=tk.LEFT, padx=padx)

    @staticmethod
    def _menu(parent, var, values, width: int):
        ctk.CTkOptionMenu(
            parent, variable=var, values=values, width=width,
            fg_color="#45475a", button_color="#585b70",
            dropdown_fg_color="#313244",
        ).pack(side=tk.LEFT, padx=4)

    @staticmethod
    def _browse_button(parent, command):
        ctk.CTkButton(
            parent, text="Browse", width=80, height=32,
            fg_color="#45475a", hover_color="#585b70",
            command=command,
        ).pack(side=tk.LEFT, padx=4)

    def _browse_config(self):
        d = filedialog.askdirectory(initialdir=self.config_var.get() or None)
        if d:
            self.config_var.set(d)

    def _browse_output(self):
        d = filedialog.askdirectory(initialdir=self.out_var.get() or None)
        if d:
            self.out_var.set(d)

    def set_custom_resolution(self, resolution: str) -> None:
        self.custom_var.set(resolution)
        self.mode_var.set("custom")

    def apply(self) -> AppSettings:
        """Push current UI values back into self.settings and return it."""
        mode = self.mode_var.get()
        custom = self.custom_var.get().strip()
        self.settings.custom_resolution = custom if mode == "custom" else ""
        self.settings.mode = None if mode == "default" else mode
        self.settings.tier = int(self.tier_var.get())
        self.settings.strategy = self.strategy_var.get()
        self.settings.check_only = self.check_var.get()
        self.settings.profile_name = sanitize_name(self.profile_var.get())
        self.settings.scene_collection = sanitize_name(self.collection_var.get())
        self.settings.obs_config_dir = self.config_var.get().strip()
        self.settings.output_path = self.out_var.get().strip()
        return self.settings
