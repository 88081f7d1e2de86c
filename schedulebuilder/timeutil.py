"""
Time and day helpers.

Converts between display times ("9:00 AM") and minutes since midnight,
turns day-letter strings ("MWF") into sets and derives a stable color
per CRN so every card of one section looks the same.
"""

from __future__ import annotations

import re
from typing import Optional

DAYS = "MTWRF"
DAY_LABELS = {"M": "Mon", "T": "Tue", "W": "Wed", "R": "Thu", "F": "Fri"}

_DISPLAY_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp][Mm])$")


def parse_display_time(text: str) -> Optional[int]:
    """
    Convert 'H:MM AM/PM' to minutes since midnight.
    Returns None for anything that does not match.
    """
    m = _DISPLAY_TIME_RE.match(text.strip())
    if not m:
        return None
    hh = int(m.group(1))
    mm = int(m.group(2))
    ampm = m.group(3).upper()
    if ampm == "PM" and hh != 12:
        hh += 12
    if ampm == "AM" and hh == 12:
        hh = 0
    return hh * 60 + mm


def format_minutes(minutes: int) -> str:
    """
    Inverse of parse_display_time: 540 -> '9:00 AM', 0 -> '12:00 AM'.
    """
    hh, mm = divmod(minutes, 60)
    ampm = "PM" if hh >= 12 else "AM"
    h12 = (hh + 11) % 12 + 1
    return f"{h12}:{mm:02d} {ampm}"


def parse_day_set(text: str) -> set[str]:
    # unknown characters are ignored, never an error
    if not text:
        return set()
    return {ch for ch in re.sub(r"\s+", "", text) if ch in DAYS}


def color_for(identifier: str) -> str:
    """
    Deterministic accent color for an identifier (usually the CRN).

    Hue comes from a rolling hash (x * 131 + char) mod 360, so the same
    CRN always gets the same color. Collisions are possible.
    """
    x = 0
    for ch in identifier:
        x = (x * 131 + ord(ch)) % 360
    return f"hsl({x}, 65%, 55%)"


def background_for(color: str) -> str:
    """
    Translucent fill of the same hue: 'hsl(h, s, l)' -> 'hsla(h, s, l, 0.22)'.
    """
    m = re.match(r"^hsl\(([^)]+)\)$", color)
    if not m:
        return color
    return f"hsla({m.group(1)}, 0.22)"
