"""Hex color helpers for highlight blending."""

import re
from collections.abc import Iterable

_HEX_RE = re.compile(r"#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})")


def parse_hex_color(color: str) -> tuple[int, int, int] | None:
    """
    Parse ``#rrggbb`` or ``#rgb`` into an RGB tuple.

    Returns None for anything else (named colors, rgba(), empty strings).
    """
    if not isinstance(color, str):
        return None
    match = _HEX_RE.fullmatch(color.strip())
    if not match:
        return None
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def to_hex(rgb: tuple[int, int, int]) -> str:
    return "#" + "".join(f"{channel:02x}" for channel in rgb)


def blend_colors(colors: Iterable[str], fallback: str = "#ffeb3b") -> str:
    """
    Average a set of colors channel by channel.

    The average is taken in one pass over all colors, so the result does not
    depend on the order in which formulas matched. Channels round half up.
    A single color is returned unchanged. Unparsable colors are ignored;
    if none parse, ``fallback`` is returned.
    """
    colors = list(colors)
    if len(colors) == 1:
        return colors[0]

    parsed = [rgb for rgb in (parse_hex_color(c) for c in colors) if rgb is not None]
    if not parsed:
        return fallback

    count = len(parsed)
    averaged = tuple(int(sum(rgb[i] for rgb in parsed) / count + 0.5) for i in range(3))
    return to_hex(averaged)
