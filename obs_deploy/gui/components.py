"""
components.py — Reusable GUI widgets.

Contains:
  • DisplayListPanel — Treeview listing every reconciled display
  • LogViewer        — Colored log output panel
  • ProgressPanel    — Overall progress bar with stage label
"""

import tkinter as tk
from tkinter import ttk
from typing import Callable, List, Optional

import customtkinter as ctk

from ..models import ResolvedDisplay


# ─── Dark-themed Treeview Style ──────────────────────────────

def apply_dark_treeview_style():
    """Apply a dark color scheme to ttk.Treeview widgets."""
    style = ttk.Style()
    style.theme_use("default")
    style.configure(
        "Dark.Treeview",
        background="#1e1e2e",
        foreground="#cdd6f4",
        rowheight=32,
        fieldbackground="#1e1e2e",
        borderwidth=0,
        font=("Segoe UI", 10),
    )
    style.map("Dark.Treeview", background=[("selected", "#45475a")])
    style.configure(
        "Dark.Treeview.Heading",
        background="#313244",
        foreground="#cdd6f4",
        relief="flat",
        font=("Segoe UI", 10, "bold"),
    )
    style.map("Dark.Treeview.Heading", background=[("active", "#45475a")])


def build_display_tree(master, height: int = 6) -> ttk.Treeview:
    """Treeview with the display columns, shared by the panel and the picker."""
    apply_dark_treeview_style()
    cols = ("n", "name", "maker", "res", "pos", "primary")
    tree = ttk.Treeview(
        master, columns=cols, show="headings", height=height, style="Dark.Treeview"
    )
    tree.heading("n",       text="#")
    tree.heading("name",    text="Display")
    tree.heading("maker",   text="Manufacturer")
    tree.heading("res",     text="Resolution")
    tree.heading("pos",     text="Position")
    tree.heading("primary", text="Primary")

    tree.column("n",       width=40,  anchor="center", stretch=False)
    tree.column("name",    width=260, anchor="w")
    tree.column("maker",   width=150, anchor="w")
    tree.column("res",     width=110, anchor="center", stretch=False)
    tree.column("pos",     width=100, anchor="center", stretch=False)
    tree.column("primary", width=70,  anchor="center", stretch=False)
    return tree


def display_row(n: int, d: ResolvedDisplay) -> tuple:
    res = d.resolution + (" *" if d.corrected else "")
    return (
        n, d.name, d.manufacturer, res,
        f"{d.geometry.x},{d.geometry.y}",
        "✔" if d.is_primary else "",
    )


# ─── Display List Panel ──────────────────────────────────────

class DisplayListPanel(ctk.CTkFrame):
    """Shows the reconciled displays; clicking a row reports it via on_pick."""

    def __init__(self, master, on_pick: Optional[Callable[[ResolvedDisplay], None]] = None, **kwargs):
        super().__init__(master, **kwargs)
        self.on_pick = on_pick
        self.displays: List[ResolvedDisplay] = []

        self.tree = build_display_tree(self)
        self.tree.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        self.tree.bind("<<TreeviewSelect>>", self._on_select)

        sb = ctk.CTkScrollbar(self, command=self.tree.yview)
        self.tree.configure(yscrollcommand=sb.set)
        sb.pack(side=tk.RIGHT, fill=tk.Y)

    def refresh(self, displays: List[ResolvedDisplay]) -> None:
        """Rebuild the treeview from the current display list."""
        self.displays = list(displays)
        self.tree.delete(*self.tree.get_children())
        for i, d in enumerate(self.displays):
            self.tree.insert("", tk.END, iid=str(i), values=display_row(i + 1, d))

    def _on_select(self, _event=None) -> None:
        sel = self.tree.selection()
        if not sel or self.on_pick is None:
            return
        idx = int(sel[0])
        if 0 <= idx < len(self.displays):
            self.on_pick(self.displays[idx])


# ─── Log Viewer ──────────────────────────────────────────────

class LogViewer(ctk.CTkFrame):
    """
    A read-only log display with basic color-coding.
    Green for ✔/✅, red for ✖/💥, yellow for ⚠, white for the rest.
    """

    _TAGS = (
        ("ok",   ("✔", "✅"), "#a6e3a1"),
        ("err",  ("✖", "💥"), "#f38ba8"),
        ("warn", ("⚠",),      "#f9e2af"),
    )

    def __init__(self, master, height: int = 140, **kwargs):
        super().__init__(master, **kwargs)

        self.textbox = ctk.CTkTextbox(
            self, height=height,
            font=("Consolas", 11),
            fg_color="#11111b",
            text_color="#cdd6f4",
            border_width=1,
            border_color="#313244",
            corner_radius=8,
        )
        self.textbox.pack(fill=tk.BOTH, expand=True)
        for tag, _, color in self._TAGS:
            self.textbox.tag_config(tag, foreground=color)
        self.textbox.configure(state="disabled")

    def append(self, text: str) -> None:
        """Append a line of text to the log."""
        tag = next((t for t, marks, _ in self._TAGS if any(m in text for m in marks)), None)
        self.textbox.configure(state="normal")
        if tag:
            self.textbox.insert(tk.END, text + "\n", tag)
        else:
            self.textbox.insert(tk.END, text + "\n")
        self.textbox.see(tk.END)
        self.textbox.configure(state="disabled")

    def clear(self) -> None:
        """Clear all log text."""
        self.textbox.configure(state="normal")
        self.textbox.delete("1.0", tk.END)
        self.textbox.configure(state="disabled")


# ─── Progress Panel ──────────────────────────────────────────

class ProgressPanel(ctk.CTkFrame):
    """Overall progress bar with a stage label."""

    def __init__(self, master, **kwargs):
        super().__init__(master, fg_color="transparent", **kwargs)

        self.progress_var = tk.DoubleVar(value=0.0)
        self.bar = ctk.CTkProgressBar(
            self, variable=self.progress_var,
            mode="determinate", height=18,
            progress_color="#a6e3a1",
            fg_color="#313244",
            corner_radius=8,
        )
        self.bar.pack(side=tk.LEFT, fill=tk.X, expand=True, padx=(0, 12))
        self.bar.set(0)

        self.label = ctk.CTkLabel(
            self, text="Ready", width=160,
            font=("Segoe UI", 11),
            text_color="#a6adc8",
        )
        self.label.pack(side=tk.RIGHT)

    def update_progress(self, stage: str, current: int, total: int) -> None:
        """Update the bar and label based on pipeline stage."""
        if total <= 0:
            return

        labels = {
            "detect": "Detecting",
            "select": "Selecting",
            "derive": "Deriving",
            "write":  "Writing",
            "done":   "Finalizing",
        }
        pct = min(current / total, 1.0)

        self.progress_var.set(pct)
        self.bar.set(pct)
        self.label.configure(text=f"{labels.get(stage, stage)} {current}/{total}")

    def reset(self) -> None:
        self.progress_var.set(0)
        self.bar.set(0)
        self.label.configure(text="Ready")

    def set_done(self, success: bool) -> None:
        if success:
            self.progress_var.set(1.0)
            self.bar.set(1.0)
            self.label.configure(text="Done ✅")
        else:
            self.label.configure(text="Failed ❌")
