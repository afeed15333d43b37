"""
utils.py — Shared utility functions.

Covers:
  • "WxH" resolution parsing and formatting
  • Profile / collection name sanitization
  • PowerShell binary discovery
  • Atomic text-file replacement
  • Unique identifier generation
"""

import logging
import os
import re
import shutil
import tempfile
import uuid
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


# ─── Resolution Helpers ──────────────────────────────────────

_RES_RE = re.compile(r"^\s*(\d{2,5})\s*[xX×*]\s*(\d{2,5})\s*$")


def parse_resolution(text: str) -> Optional[Tuple[int, int]]:
    """
    Parse "1920x1080" (also "1920X1080", "1920 x 1080", "1920×1080").
    Returns None for empty / invalid input or non-positive sizes.
    """
    if not text:
        return None
    m = _RES_RE.match(text)
    if not m:
        return None
    w, h = int(m.group(1)), int(m.group(2))
    if w <= 0 or h <= 0:
        return None
    return w, h


def format_resolution(width: int, height: int) -> str:
    return f"{width}x{height}"


# ─── Name Helpers ────────────────────────────────────────────

def sanitize_name(name: str) -> str:
    """Strip characters OBS cannot use in profile / collection directory names."""
    cleaned = re.sub(r'[<>:"/\\|?*\x00-\x1f]', '_', name).strip()
    return cleaned[:100] if cleaned else "Untitled"


# ─── PowerShell Discovery ────────────────────────────────────

def find_powershell() -> Optional[str]:
    """Locate Windows PowerShell or PowerShell Core on PATH."""
    for candidate in ("powershell", "pwsh"):
        path = shutil.which(candidate)
        if path:
            return path
    return None


# ─── File Helpers ────────────────────────────────────────────

def atomic_write_text(path: str, text: str, encoding: str = "utf-8") -> None:
    """
    Write text to a temp file beside `path`, then swap it into place.
    The original file is untouched if anything fails before the swap.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".tmp-", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as fh:
            fh.write(text)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
    logger.debug("Wrote %s (%d chars)", path, len(text))


def read_text(path: str) -> str:
    """Read a config artifact, tolerating the UTF-8 BOM OBS sometimes writes."""
    with open(path, encoding="utf-8-sig") as fh:
        return fh.read()


def new_uuid() -> str:
    return str(uuid.uuid4())
