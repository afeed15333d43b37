"""
selector.py — Pick exactly one display from the reconciled list.

Modes:
  • custom       exact WxH match, else NoMatchingDisplay
  • primary      the primary display, else the first one
  • internal     laptop panel heuristics (needs ≥2 displays)
  • external     desktop monitor heuristics (needs ≥2 displays)
  • check        primary semantics, never prompts
  • interactive  auto-pick a single display, otherwise prompt with a
                 bounded timeout and fall back to primary
  • default      primary semantics

The interactive wait is a channel race: the prompter posts the user's
answer into a queue, and the selector waits on that queue for at most the
timeout. Whichever comes first decides the result.
"""

import logging
import queue
import sys
import threading
from typing import Callable, List, Optional, Sequence

from .config import INTERACTIVE_TIMEOUT_S, INTERNAL_PANEL_CODES
from .errors import (
    InsufficientDisplays, InvalidResolution, NoDisplaysFound, NoMatchingDisplay,
)
from .identity import has_manufacturer
from .models import ResolvedDisplay, SelectionMode, SelectionResult
from .utils import format_resolution, parse_resolution

logger = logging.getLogger(__name__)

# Posts the raw user reply (e.g. "2") into the channel
Reply = Callable[[str], None]
# Shows the choices to the user and arranges for `reply` to be called
Prompter = Callable[[Sequence[ResolvedDisplay], float, Reply], None]


# ─── Console Prompter ────────────────────────────────────────

def console_prompter(displays: Sequence[ResolvedDisplay], timeout: float, reply: Reply) -> None:
    """Print the display list and read one line from stdin on a daemon thread."""
    print("\nMultiple displays detected:")
    for n, d in enumerate(displays, start=1):
        print(f"  [{n}] {d.describe()}")
    print(f"\nSelect a display (1-{len(displays)}) — primary is used in {timeout:.0f}s: ",
          end="", flush=True)

    def _read():
        try:
            line = sys.stdin.readline()
        except (OSError, ValueError):
            return
        reply(line)

    threading.Thread(target=_read, name="display-prompt", daemon=True).start()


# ─── Heuristic helpers ───────────────────────────────────────

def _primary(displays: Sequence[ResolvedDisplay]) -> ResolvedDisplay:
    for d in displays:
        if d.is_primary:
            return d
    return displays[0]


def _unique_extreme(displays: Sequence[ResolvedDisplay], largest: bool) -> Optional[ResolvedDisplay]:
    pick = max if largest else min
    best = pick(d.pixel_count for d in displays)
    matches = [d for d in displays if d.pixel_count == best]
    return matches[0] if len(matches) == 1 else None


def _smallest(displays: Sequence[ResolvedDisplay]) -> ResolvedDisplay:
    return min(displays, key=lambda d: d.pixel_count)


def pick_internal(displays: Sequence[ResolvedDisplay], on_battery: bool) -> ResolvedDisplay:
    for d in displays:
        if has_manufacturer(d.monitor_device_id, INTERNAL_PANEL_CODES):
            return d
    if on_battery:
        return _smallest(displays)
    smallest = _unique_extreme(displays, largest=False)
    if smallest is not None:
        return smallest
    return displays[0]


def pick_external(displays: Sequence[ResolvedDisplay]) -> ResolvedDisplay:
    identified = [
        d for d in displays
        if d.monitor_device_id and not has_manufacturer(d.monitor_device_id, INTERNAL_PANEL_CODES)
    ]
    if identified:
        non_primary = [d for d in identified if not d.is_primary]
        return (non_primary or identified)[0]
    largest = _unique_extreme(displays, largest=True)
    if largest is not None:
        return largest
    for d in displays:
        if not d.is_primary:
            return d
    if len(displays) > 1:
        return displays[1]
    return displays[0]


# ─── Selector ────────────────────────────────────────────────

class ResolutionSelector:
    """
    Resolves a SelectionMode against one reconciled display list.
    `battery_probe` is only consulted by internal mode.
    """

    def __init__(
        self,
        displays: Sequence[ResolvedDisplay],
        battery_probe: Optional[Callable[[], bool]] = None,
        prompter: Optional[Prompter] = None,
        timeout: float = INTERACTIVE_TIMEOUT_S,
    ):
        self.displays: List[ResolvedDisplay] = list(displays)
        self.battery_probe = battery_probe or (lambda: False)
        self.prompter = prompter or console_prompter
        self.timeout = timeout

    @property
    def available_resolutions(self) -> List[str]:
        return [d.resolution for d in self.displays]

    def select(self, mode: SelectionMode, custom: str = "") -> SelectionResult:
        mode = SelectionMode(mode)
        if mode in (SelectionMode.INTERNAL, SelectionMode.EXTERNAL) and len(self.displays) < 2:
            raise InsufficientDisplays(mode.value, len(self.displays))
        if mode is SelectionMode.CUSTOM:
            return self._custom(custom)
        if not self.displays:
            raise NoDisplaysFound(mode.value)

        if mode is SelectionMode.INTERNAL:
            chosen = pick_internal(self.displays, self.battery_probe())
            return self._result(chosen, mode.display)
        if mode is SelectionMode.EXTERNAL:
            return self._result(pick_external(self.displays), mode.display)
        if mode is SelectionMode.INTERACTIVE:
            return self._interactive()
        # primary, check and default share primary semantics
        return self._result(_primary(self.displays), self._label(mode))

    # ── Modes ────────────────────────────────────────────────

    def _custom(self, text: str) -> SelectionResult:
        parsed = parse_resolution(text)
        if parsed is None:
            raise InvalidResolution(text, self.available_resolutions)
        width, height = parsed
        for d in self.displays:
            if d.width == width and d.height == height:
                return self._result(d, SelectionMode.CUSTOM.display)
        raise NoMatchingDisplay(format_resolution(width, height), self.available_resolutions)

    def _interactive(self) -> SelectionResult:
        if len(self.displays) == 1:
            return self._result(self.displays[0], "Single Display")

        channel: "queue.Queue[str]" = queue.Queue(maxsize=1)

        def reply(answer: str) -> None:
            try:
                channel.put_nowait(answer)
            except queue.Full:
                pass  # first answer wins

        self.prompter(self.displays, self.timeout, reply)
        try:
            answer = channel.get(timeout=self.timeout)
        except queue.Empty:
            logger.info("No selection within %.0fs — using primary display", self.timeout)
            return self._result(_primary(self.displays), "Timeout - Primary Display")

        choice = self._parse_choice(answer)
        if choice is None:
            logger.warning("Invalid selection %r — using primary display", answer.strip())
            return self._result(_primary(self.displays), "Invalid Selection - Primary Display")
        return self._result(choice, SelectionMode.INTERACTIVE.display)

    def _parse_choice(self, answer: str) -> Optional[ResolvedDisplay]:
        text = (answer or "").strip()
        if not text.isdecimal():
            return None
        n = int(text)
        if 1 <= n <= len(self.displays):
            return self.displays[n - 1]
        return None

    # ── Results ──────────────────────────────────────────────

    def _label(self, mode: SelectionMode) -> str:
        if len(self.displays) == 1:
            return "Single Display"
        if mode is SelectionMode.CHECK_ONLY:
            return mode.display
        return SelectionMode.PRIMARY.display

    @staticmethod
    def _result(display: ResolvedDisplay, label: str) -> SelectionResult:
        return SelectionResult(
            width=display.width,
            height=display.height,
            source=f"{label} - {display.name}",
            resolved_display=display,
            monitor_device_id=display.monitor_device_id,
        )


def select_display(
    displays: Sequence[ResolvedDisplay],
    mode: SelectionMode,
    custom: str = "",
    **kwargs,
) -> SelectionResult:
    """Convenience wrapper around ResolutionSelector.select()."""
    return ResolutionSelector(displays, **kwargs).select(mode, custom)
