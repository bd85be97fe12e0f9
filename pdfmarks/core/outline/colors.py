"""
Outline color and text style mapping.

Named colors map to fixed RGB triples on write. On read, RGB triples are
bucketed into the same five names using fixed thresholds; this is a lossy
compatibility heuristic, not color matching.
"""
import logging
import re
from typing import List, Optional, Sequence

from pdfmarks.config.bookmark_settings import PDF_COLOR_MAP
from pdfmarks.core.models.bookmark import STYLE_BOLD, STYLE_BOLD_ITALIC, STYLE_ITALIC

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})$", re.IGNORECASE)

# Outline item /F flags
FLAG_BOLD = 1
FLAG_ITALIC = 2


def hex_to_rgb(value: str) -> Optional[List[float]]:
    """Convert ``#rrggbb`` to [r, g, b] floats in [0, 1]. None if not valid hex."""
    match = _HEX_COLOR.match(value.strip())
    if not match:
        return None
    return [int(part, 16) / 255 for part in match.groups()]


def color_to_rgb(color: Optional[str]) -> Optional[List[float]]:
    """
    Resolve a bookmark color to the RGB triple written as /C.

    Args:
        color: Named color, "#rrggbb" hex string, or None

    Returns:
        [r, g, b] floats, or None when no /C entry should be written
    """
    if not color:
        return None
    if color in PDF_COLOR_MAP:
        return list(PDF_COLOR_MAP[color])
    if color.startswith("#"):
        rgb = hex_to_rgb(color)
        if rgb is None:
            logger.warning(f"Ignoring invalid hex color {color!r}")
        return rgb
    logger.warning(f"Ignoring unknown color {color!r}")
    return None


def classify_rgb(rgb: Optional[Sequence[float]]) -> Optional[str]:
    """
    Bucket an RGB triple into a named color.

    Args:
        rgb: Three floats in [0, 1]

    Returns:
        "red", "blue", "green", "yellow", "purple", or None if no bucket fits
    """
    if rgb is None or len(rgb) != 3:
        return None
    r, g, b = rgb

    if r > 0.8 and g < 0.3 and b < 0.3:
        return "red"
    if r < 0.3 and g < 0.3 and b > 0.8:
        return "blue"
    if r < 0.3 and g > 0.8 and b < 0.3:
        return "green"
    if r > 0.8 and g > 0.8 and b < 0.3:
        return "yellow"
    if r > 0.5 and g < 0.5 and b > 0.5:
        return "purple"
    return None


def style_to_flags(style: Optional[str]) -> int:
    """Outline /F bitflags for a bookmark style (0 = normal)."""
    if style == STYLE_BOLD:
        return FLAG_BOLD
    if style == STYLE_ITALIC:
        return FLAG_ITALIC
    if style == STYLE_BOLD_ITALIC:
        return FLAG_BOLD | FLAG_ITALIC
    return 0


def style_from_flags(bold: bool, italic: bool) -> Optional[str]:
    if bold and italic:
        return STYLE_BOLD_ITALIC
    if bold:
        return STYLE_BOLD
    if italic:
        return STYLE_ITALIC
    return None


def normalize_color(color: Optional[str]) -> Optional[str]:
    """
    Validate a user-supplied bookmark color.

    Args:
        color: Named color, "#rrggbb", or empty/None for no color

    Returns:
        The color (hex lower-cased), or None

    Raises:
        ValueError: Unknown name or malformed hex value
    """
    if not color:
        return None
    if color in PDF_COLOR_MAP:
        return color
    if hex_to_rgb(color) is not None:
        return color.strip().lower()
    raise ValueError(f"Unsupported color {color!r}")
