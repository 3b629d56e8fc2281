"""Color conversions and sort keys.

AIDEV-NOTE: Brightness here is plain weighted luminance. No color
management is applied anywhere in the pipeline.
"""

import re

from PIL import ImageColor

from .utils import round_half_up

_RGB_FUNC_RE = re.compile(
    r"^rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*(?:,\s*[\d.]+\s*)?\)$"
)


def component_to_hex(c: float) -> str:
    """Two-digit lowercase hex for one 0-255 channel."""
    return f"{round_half_up(c):02x}"


def rgb_to_hex(r: float, g: float, b: float) -> str:
    return f"#{component_to_hex(r)}{component_to_hex(g)}{component_to_hex(b)}"


def hex_to_rgb(hex_color: str) -> "tuple[int, int, int]":
    """Parse "#rrggbb" into an RGB tuple."""
    value = int(hex_color.lstrip("#")[:6], 16)
    return (value >> 16) & 255, (value >> 8) & 255, value & 255


def parse_color(color: str) -> "tuple[int, int, int]":
    """Parse any stroke color string the pipeline produces or accepts.

    Args:
        color: "#rrggbb", "rgb(r,g,b)" or a CSS color name

    Returns:
        RGB tuple (0-255 each channel)

    Raises:
        ValueError: If the color cannot be understood
    """
    color = color.strip()
    if color.startswith("#") and len(color) == 7:
        return hex_to_rgb(color)

    match = _RGB_FUNC_RE.match(color)
    if match:
        r, g, b = (int(v) for v in match.groups())
        return r, g, b

    # Named colors and short hex forms
    return ImageColor.getrgb(color)[:3]


def calculate_hue(r: float, g: float, b: float) -> float:
    """HSV hue in degrees, [0, 360)."""
    max_c = max(r, g, b)
    min_c = min(r, g, b)

    if max_c == min_c:
        hue = 0.0
    elif max_c == r:
        hue = (g - b) / (max_c - min_c) * 60
    elif max_c == g:
        hue = (b - r) / (max_c - min_c) * 60 + 120
    else:
        hue = (r - g) / (max_c - min_c) * 60 + 240

    return (hue + 360) % 360


def calculate_brightness(r: float, g: float, b: float) -> float:
    return 0.299 * r + 0.587 * g + 0.114 * b


def hue_and_brightness(color: str) -> "tuple[float, float]":
    """Sort keys for a group color string."""
    r, g, b = parse_color(color)
    return calculate_hue(r, g, b), calculate_brightness(r, g, b)


def rgb_to_cmyk(r: int, g: int, b: int) -> "dict[str, int]":
    """Convert RGB to CMYK ink coverage.

    Returns:
        Mapping of cyan/magenta/yellow/black to 0-255 coverage, in that order

    AIDEV-NOTE: Pure black leaves c/m/y at zero instead of dividing by zero.
    """
    rn, gn, bn = r / 255, g / 255, b / 255
    k = 1 - max(rn, gn, bn)

    c = m = y = 0.0
    if k < 1:
        ik = 1 / (1 - k)
        c = (1 - rn - k) * ik
        m = (1 - gn - k) * ik
        y = (1 - bn - k) * ik

    return {
        "cyan": round_half_up(c * 255),
        "magenta": round_half_up(m * 255),
        "yellow": round_half_up(y * 255),
        "black": round_half_up(k * 255),
    }
