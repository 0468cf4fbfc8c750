"""Instruction normalization.

Turns the routing provider's loosely structured step data into the small
command alphabet the display understands:
- HTML instruction stripping
- Maneuver reduction to LEFT / RIGHT / STRAIGHT
- Human readable distances (feet / miles)
"""

import math
import re

from .schemas import SimpleDirection

_TAG_RE = re.compile(r"<[^>]+>")

FEET_PER_METER = 3.28084
FEET_PER_MILE = 5280


def strip_markup(html: str) -> str:
    """Remove tags and decode only &nbsp; and &amp;. Never raises."""
    if not html:
        return ""
    text = _TAG_RE.sub("", str(html))
    return text.replace("&nbsp;", " ").replace("&amp;", "&")


def reduce_to_command(maneuver: str, fallback_text: str = "") -> SimpleDirection:
    """
    Reduce a maneuver tag to LEFT / RIGHT / STRAIGHT.
    The tag wins; free text is only consulted when the tag says neither
    (e.g. "DEPART", "NAME_CHANGE").
    """
    for candidate in (maneuver, fallback_text):
        lowered = (candidate or "").lower()
        if "left" in lowered:
            return SimpleDirection.LEFT
        if "right" in lowered:
            return SimpleDirection.RIGHT
    return SimpleDirection.STRAIGHT


def format_distance(meters: float) -> str:
    """Feet below 1000 ft (truncated), otherwise miles with one decimal."""
    try:
        feet = float(meters) * FEET_PER_METER
    except (TypeError, ValueError, OverflowError):
        feet = 0.0
    if not math.isfinite(feet) or feet < 0:
        feet = 0.0
    if feet < 1000:
        return f"{int(feet)} ft"
    return f"{feet / FEET_PER_MILE:.1f} mi"
