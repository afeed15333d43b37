"""
picker_dialog.py — Interactive display picker with a countdown.

Features:
  • Lists the reconciled displays in the shared dark Treeview
  • Counts down the selection window; closes itself when it expires
  • Double-click or "Use Display" posts the 1-based choice to the selector
  • Closing the dialog posts an empty answer (selector falls back to primary)
"""

import tkinter as tk
from typing import Callable, Sequence

import customtkinter as ctk

from ..models import ResolvedDisplay
from .components import build_display_tree, display_row


class DisplayPickerDialog(ctk.CTkToplevel):
    """Modal dialog answering one interactive selection."""

    def __init__(
        self,
        parent,
        displays: Sequence[ResolvedDisplay],
        timeout: float,
        reply: Callable[[str], None],
    ):
        super().__init__(parent)
        self.title("Select Display")
        self.geometry("760x360")
        self.minsize(560, 280)
        self.displays = list(displays)
        self.reply = reply
        self.remaining = int(timeout)
        self._answered = False
        self._tick_id = None
        self.transient(parent)
        self.grab_set()
        self.protocol("WM_DELETE_WINDOW", self._on_close)

        self._build_ui()
        self._tick()

    # ── UI Construction ──────────────────────────────────────

    def _build_ui(self):
        ctk.CTkLabel(
            self, text="Multiple displays detected — pick the one to record",
            font=("Segoe UI", 13, "bold"),
        ).pack(fill=tk.X, padx=16, pady=(16, 8))

        frame = ctk.CTkFrame(self)
        frame.pack(fill=tk.BOTH, expand=True, padx=16, pady=4)
        self.tree = build_display_tree(frame, height=len(self.displays) + 1)
        self.tree.pack(fill=tk.BOTH, expand=True)
        for i, d in enumerate(self.displays):
            self.tree.insert("", tk.END, iid=str(i), values=display_row(i + 1, d))
        self.tree.bind("<Double-Button-1>", lambda _: self._use_selected())

        bottom = ctk.CTkFrame(self, fg_color="transparent")
        bottom.pack(fill=tk.X, padx=16, pady=(8, 16))

        self.countdown_lbl = ctk.CTkLabel(bottom, text="", text_color="#f9e2af")
        self.countdown_lbl.pack(side=tk.LEFT, padx=4)

        ctk.CTkButton(
            bottom, text="Use Display", width=140,
            fg_color="#a6e3a1", hover_color="#94e2d5",
            text_color="#1e1e2e", font=("Segoe UI", 12, "bold"),
            command=self._use_selected,
        ).pack(side=tk.RIGHT, padx=4)

    # ── Countdown ────────────────────────────────────────────

    def _tick(self):
        if self.remaining <= 0:
            # The selector's own timeout decides the fallback
            self._answered = True
            self.destroy()
            return
        self.countdown_lbl.configure(text=f"Primary display is used in {self.remaining}s")
        self.remaining -= 1
        self._tick_id = self.after(1000, self._tick)

    # ── Answer ───────────────────────────────────────────────

    def _answer(self, text: str):
        if self._answered:
            return
        self._answered = True
        if self._tick_id:
            self.after_cancel(self._tick_id)
        self.reply(text)
        self.destroy()

    def _use_selected(self):
        sel = self.tree.selection()
        if sel:
            self._answer(str(int(sel[0]) + 1))

    def _on_close(self):
        self._answer("")
