# -*- coding: utf-8 -*-
"""
Tonal: Perceptual hue, chroma and tone for display colors
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tonal_types.py — Immutable value types shared by the engine.

All color representations are plain frozen triples.  None of them carries
identity or lifecycle beyond a single conversion call.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Final, Tuple

__all__ = [
    "RGB_MASK",
    "pack_rgb",
    "unpack_rgb",
    "sanitize_degrees",
    "DisplayColor",
    "HCTColor",
    "LabColor",
    "LCHColor",
    "Cam16Color",
]

RGB_MASK: Final[int] = 0xFFFFFF

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{3})$")


def pack_rgb(r: int, g: int, b: int) -> int:
    """Packs three 8-bit channels as ``R<<16 | G<<8 | B``."""
    return ((r & 0xFF) << 16) | ((g & 0xFF) << 8) | (b & 0xFF)


def unpack_rgb(argb: int) -> Tuple[int, int, int]:
    """Splits a packed value into (R, G, B).  Bits above 24 are ignored."""
    return (argb >> 16) & 0xFF, (argb >> 8) & 0xFF, argb & 0xFF


def sanitize_degrees(degrees: float) -> float:
    """Wraps an angle into [0, 360)."""
    degrees = math.fmod(degrees, 360.0)
    if degrees < 0.0:
        degrees += 360.0
    if degrees >= 360.0:
        # tiny negative inputs round up to 360
        degrees = 0.0
    return degrees


@dataclass(slots=True, frozen=True)
class DisplayColor:
    """8-bit sRGB display color.  No alpha."""
    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        for name in ("r", "g", "b"):
            v = getattr(self, name)
            if not 0 <= v <= 255:
                raise ValueError(f"Channel {name}={v} outside [0, 255].")

    @classmethod
    def from_argb(cls, argb: int) -> "DisplayColor":
        return cls(*unpack_rgb(int(argb)))

    @classmethod
    def from_hex(cls, text: str) -> "DisplayColor":
        """Parses ``#rrggbb``, ``rrggbb`` or the ``#rgb`` shorthand."""
        m = _HEX_RE.match(text.strip())
        if m is None:
            raise ValueError(f"Not a hex color: {text!r}")
        digits = m.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return cls.from_argb(int(digits, 16))

    def to_argb(self) -> int:
        return pack_rgb(self.r, self.g, self.b)

    @property
    def channels(self) -> Tuple[int, int, int]:
        return self.r, self.g, self.b

    @property
    def hex(self) -> str:
        return f"#{self.to_argb():06x}"

    def css(self) -> str:
        return f"rgb({self.r},{self.g},{self.b})"


@dataclass(slots=True, frozen=True)
class HCTColor:
    """
    Hue (degrees, cyclic), Chroma (>= 0) and Tone (nominally 0..100).

    Tone is not range-checked: the solver maps tones outside [0, 100] to
    black, and measured white can land a few ulps above 100.
    """
    h: float
    c: float
    t: float

    def __post_init__(self) -> None:
        for name in ("h", "c", "t"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"HCT component {name}={getattr(self, name)} is not finite.")
        if self.c < 0.0:
            raise ValueError(f"Chroma must be >= 0, got {self.c}.")
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "h", sanitize_degrees(float(self.h)))

    def as_tuple(self) -> Tuple[float, float, float]:
        return self.h, self.c, self.t


@dataclass(slots=True, frozen=True)
class LabColor:
    """CIE L*a*b* under D65."""
    l: float
    a: float
    b: float


@dataclass(slots=True, frozen=True)
class LCHColor:
    """Cylindrical CIE LCh(ab) under D65.  Hue in degrees."""
    l: float
    c: float
    h: float


@dataclass(slots=True, frozen=True)
class Cam16Color:
    """CAM16 hue/chroma correlates plus relative luminance Y (0..1)."""
    hue: float
    chroma: float
    y: float
