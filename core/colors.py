"""Count and compliance-rate color scales for the heatmap and progress views."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from core.errors import ValidationError


_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


@dataclass(frozen=True)
class ColorScale:
    neutral: str = "#f8f9fa"
    dark_text: str = "#212529"
    light_text: str = "#ffffff"
    alert: str = "#FF6B6B"
    warning: str = "#FFC107"
    success: str = "#4CAF50"
    saturation_count: int = 10
    warning_threshold: float = 50.0
    success_threshold: float = 80.0


DEFAULT_SCALE = ColorScale()


def count_intensity(count: int, scale: ColorScale = DEFAULT_SCALE) -> float:
    if count < 0:
        raise ValidationError(f"count must be non-negative, got {count}")
    return min(1.0, count / scale.saturation_count)


def count_color(count: int, scale: ColorScale = DEFAULT_SCALE) -> str:
    """Heatmap cell color: neutral for zero, otherwise ramps up to pure red."""
    intensity = count_intensity(count, scale)
    if count == 0:
        return scale.neutral
    r = math.floor(255 * intensity)
    g = math.floor(100 * (1 - intensity))
    b = math.floor(71 * (1 - intensity))
    return f"rgb({r}, {g}, {b})"


def text_color_for(count: int, scale: ColorScale = DEFAULT_SCALE) -> str:
    intensity = count_intensity(count, scale)
    if count == 0:
        return scale.dark_text
    return scale.light_text if intensity > 0.5 else scale.dark_text


def rate_color(rate: float, scale: ColorScale = DEFAULT_SCALE) -> str:
    if rate < scale.warning_threshold:
        return scale.alert
    if rate < scale.success_threshold:
        return scale.warning
    return scale.success


def lighten(color: str, percent: float) -> str:
    match = _HEX_COLOR.match((color or "").strip())
    if not match:
        raise ValidationError(f"expected a #rrggbb color, got '{color}'")
    num = int(match.group(1), 16)
    # half-up, not banker's rounding
    amt = math.floor(2.55 * percent + 0.5)
    channels = [(num >> 16) + amt, ((num >> 8) & 0xFF) + amt, (num & 0xFF) + amt]
    return "#" + "".join(f"{min(255, max(0, c)):02x}" for c in channels)
