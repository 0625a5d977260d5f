# -*- coding: utf-8 -*-
"""
Tonal: Perceptual hue, chroma and tone for display colors
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Color Engine
============
Forward transforms used by the HCT solver.  Everything here is a pure
function of its numeric inputs.

Components:
1. Linearizer:     sRGB transfer function (8-bit channel <-> linear light).
2. ToneLuminance:  Tone (L*-like, 0..100) <-> relative luminance Y (0..1).
3. CAM16Forward:   packed RGB -> CAM16 hue / chroma correlates under the
                   fixed default viewing conditions (background induction
                   0.725, surround 0.69).
4. LCHSeed:        closed-form CIE Lab / LCh (D65).  Only a seed generator
                   for the solver, never the target space.

Two call styles are provided:
- Scalar Numba kernels (``_linearized``, ``_cam16_from_argb``, ...) which the
  solver composes inside its own compiled loops.  These always compile
  with ``fastmath=False`` so that quantised 8-bit outputs are reproducible.
- Batched array methods on ``ColorSpaceEngine`` for (N, 3) data, whose
  array kernels follow the ``set_strict_ieee`` switch.

References:
    - IEC 61966-2-1:1999 (sRGB Standard)
    - CIE 15:2004 "Colorimetry"
    - Li, C. et al. (2017). "Comprehensive color solutions: CAM16, CAT16,
      and CAM16-UCS".
"""

import functools
import math
import numpy as np
import numpy.typing as npt
from numba import njit
from typing import Tuple, Final, TypeAlias, Callable, Any

from tonal_types import Cam16Color, LabColor, LCHColor, RGB_MASK, sanitize_degrees

__all__ = [
    # --- Type Aliases ---
    "ArrayFloat",

    # --- Constants ---
    "REF_WHITE_D65",
    "LAB_EPSILON",
    "LAB_KAPPA",
    "CAM16_CHROMA_SCALE",
    "CLIP_TOLERANCE",
    "DEG2RAD",
    "RAD2DEG",

    # --- Configuration ---
    "set_strict_ieee",

    # --- Matrices ---
    "M_SRGB_TO_XYZ_T",
    "M_XYZ_TO_CAM16_T",

    # --- Decorators ---
    "handle_shapes",

    # --- Classes ---
    "ColorSpaceEngine",
]

# --- Type Aliases ---
ArrayFloat: TypeAlias = npt.NDArray[np.floating]

# --- Constants & Matrices ---

# D65 reference white, Y normalised to 1.0
REF_WHITE_D65: Final[ArrayFloat] = np.array([0.95047, 1.00000, 1.08883], dtype=np.float64)

# Linear sRGB -> XYZ.  The luminance row is the exact Rec.709 weighting.
_M_SRGB_TO_XYZ_BASE = np.array([
    [0.41233895, 0.35762064, 0.18051042],
    [0.2126,     0.7152,     0.0722    ],
    [0.01932141, 0.11916382, 0.95034478]
], dtype=np.float64)
M_SRGB_TO_XYZ_T: Final[ArrayFloat] = _M_SRGB_TO_XYZ_BASE.T.copy()

# Exact inverse of the forward matrix: D65 white maps back to R=G=B.
_M_XYZ_TO_SRGB_BASE = np.linalg.inv(_M_SRGB_TO_XYZ_BASE)

# CAM16 cone response (XYZ -> RGB_c)
_M_XYZ_TO_CAM16_BASE = np.array([
    [ 0.401288, 0.650173, -0.051461],
    [-0.250268, 1.204414,  0.045854],
    [-0.002079, 0.048952,  0.953127]
], dtype=np.float64)
M_XYZ_TO_CAM16_T: Final[ArrayFloat] = _M_XYZ_TO_CAM16_BASE.T.copy()

# --- Exact Rational Math Constants ---
_LAB_DELTA: Final[float] = 6.0 / 29.0
LAB_EPSILON: Final[float] = _LAB_DELTA * _LAB_DELTA * _LAB_DELTA  # 216/24389
LAB_KAPPA: Final[float]   = (116.0 * 29.0 * 29.0) / (3.0 * 6.0 * 6.0)  # 24389/27

# Default viewing conditions: background induction 0.725, surround 0.69.
CAM16_CHROMA_SCALE: Final[float] = 0.725 ** 1.6 * 0.69
_CAM16_EXPONENT: Final[float] = 0.42
_CAM16_SATURATION: Final[float] = 27.13

# Gamma-encoded channels further than this outside [0, 1] count as clipped.
CLIP_TOLERANCE: Final[float] = 0.001

DEG2RAD: Final[float] = np.pi / 180.0
RAD2DEG: Final[float] = 180.0 / np.pi


# --- Runtime Configuration ---
# When True, every batched array kernel (transfer function, Lab f(t) and
# CAM16 compression) uses its fastmath=False variant.  Scalar solver kernels are
# unaffected and always strict.
#
#     import tonal_colorengine as ce
#     ce.set_strict_ieee(True)
_STRICT_IEEE: bool = False

def set_strict_ieee(enabled: bool = True) -> None:
    """
    Toggle between fast (default) and strict IEEE 754 batch kernels.

    Args:
        enabled: If True, use strict IEEE mode.
    """
    global _STRICT_IEEE
    _STRICT_IEEE = bool(enabled)


# =============================================================================
# 1. DECORATORS
# =============================================================================

def handle_shapes(func: Callable[..., ArrayFloat]) -> Callable[..., ArrayFloat]:
    """
    Normalises inputs to a contiguous (N, 3) float64 batch.

    A (3,) input is treated as a batch of one and the leading axis is
    removed again on the way out.
    """
    @functools.wraps(func)
    def wrapper(arr: ArrayFloat, *args: Any, **kwargs: Any) -> ArrayFloat:
        arr = np.asarray(arr, dtype=np.float64)
        arr_in = np.ascontiguousarray(np.atleast_2d(arr))

        if arr_in.ndim != 2 or arr_in.shape[-1] != 3:
            raise ValueError(f"Expected shape (N, 3) or (3,), got {arr.shape}")

        res = func(arr_in, *args, **kwargs)

        if arr.ndim == 1:
            return res[0]
        return res
    return wrapper


def _as_argb_array(argbs: Any) -> np.ndarray:
    """Coerces packed colors to a flat int64 array with alpha bits dropped."""
    arr = np.asarray(argbs)
    if arr.dtype.kind not in "iu":
        raise ValueError(f"Packed colors must be integers, got dtype {arr.dtype}")
    return np.ascontiguousarray(arr.astype(np.int64).ravel() & RGB_MASK)


# =============================================================================
# 2. SCALAR KERNELS (strict, composed by the solver)
# =============================================================================

@njit(cache=True)
def _signum(v: float) -> float:
    if v < 0.0:
        return -1.0
    if v == 0.0:
        return 0.0
    return 1.0

@njit(cache=True)
def _sanitize_degrees(degrees: float) -> float:
    degrees = degrees % 360.0
    if degrees < 0.0:
        degrees += 360.0
    if degrees >= 360.0:
        degrees = 0.0
    return degrees

@njit(cache=True)
def _linearized(channel: int) -> float:
    """8-bit sRGB channel -> linear light in [0, 1]."""
    normalized = channel / 255.0
    if normalized <= 0.04045:
        return normalized / 12.92
    return ((normalized + 0.055) / 1.055) ** 2.4

@njit(cache=True)
def _gamma_encode(linear: float) -> float:
    """Linear light in [0, 1] -> gamma-encoded value (unclamped)."""
    if linear <= 0.0031308:
        return 12.92 * linear
    return 1.055 * linear ** (1.0 / 2.4) - 0.055

@njit(cache=True)
def _quantize(encoded: float) -> int:
    """Gamma-encoded [0, 1] -> channel, rounded half-up and clamped."""
    v = math.floor(encoded * 255.0 + 0.5)
    if v < 0.0:
        return 0
    if v > 255.0:
        return 255
    return int(v)

@njit(cache=True)
def _delinearized(linear100: float) -> int:
    """Linear light on the 0..100 scale -> 8-bit channel."""
    return _quantize(_gamma_encode(linear100 / 100.0))

@njit(cache=True)
def _tone_from_y(y: float) -> float:
    if y <= LAB_EPSILON:
        return LAB_KAPPA * y
    return 116.0 * y ** (1.0 / 3.0) - 16.0

@njit(cache=True)
def _y_from_tone(tone: float) -> float:
    if tone <= 8.0:
        return tone / LAB_KAPPA
    ft = (tone + 16.0) / 116.0
    return ft * ft * ft

@njit(cache=True)
def _f_lab(t: float) -> float:
    if t > LAB_EPSILON:
        return t ** (1.0 / 3.0)
    return (LAB_KAPPA * t + 16.0) / 116.0

@njit(cache=True)
def _f_lab_inv(ft: float) -> float:
    if ft > _LAB_DELTA:
        return ft * ft * ft
    return (116.0 * ft - 16.0) / LAB_KAPPA

@njit(cache=True)
def _argb_to_xyz(argb: int) -> Tuple[float, float, float]:
    r = _linearized((argb >> 16) & 0xFF)
    g = _linearized((argb >> 8) & 0xFF)
    b = _linearized(argb & 0xFF)
    x = _M_SRGB_TO_XYZ_BASE[0, 0] * r + _M_SRGB_TO_XYZ_BASE[0, 1] * g + _M_SRGB_TO_XYZ_BASE[0, 2] * b
    y = _M_SRGB_TO_XYZ_BASE[1, 0] * r + _M_SRGB_TO_XYZ_BASE[1, 1] * g + _M_SRGB_TO_XYZ_BASE[1, 2] * b
    z = _M_SRGB_TO_XYZ_BASE[2, 0] * r + _M_SRGB_TO_XYZ_BASE[2, 1] * g + _M_SRGB_TO_XYZ_BASE[2, 2] * b
    return x, y, z

@njit(cache=True)
def _cam16_compress(v: float) -> float:
    """Chromatic-adaptation compression with F_L fixed at 1."""
    af = abs(v) ** _CAM16_EXPONENT
    return 400.0 * _signum(v) * af / (af + _CAM16_SATURATION)

@njit(cache=True)
def _cam16_from_argb(argb: int) -> Tuple[float, float, float]:
    """
    Packed RGB -> (hue, chroma, Y).

    Hue is in degrees [0, 360); Y is relative luminance in [0, 1].
    """
    x, y, z = _argb_to_xyz(argb)
    m = _M_XYZ_TO_CAM16_BASE
    r_a = _cam16_compress(m[0, 0] * x + m[0, 1] * y + m[0, 2] * z)
    g_a = _cam16_compress(m[1, 0] * x + m[1, 1] * y + m[1, 2] * z)
    b_a = _cam16_compress(m[2, 0] * x + m[2, 1] * y + m[2, 2] * z)

    a = (11.0 * r_a - 12.0 * g_a + b_a) / 11.0
    b = (r_a + g_a - 2.0 * b_a) / 9.0

    hue = _sanitize_degrees(math.atan2(b, a) * RAD2DEG)
    chroma = math.sqrt(a * a + b * b) * CAM16_CHROMA_SCALE
    return hue, chroma, y

@njit(cache=True)
def _lab_from_argb(argb: int) -> Tuple[float, float, float]:
    x, y, z = _argb_to_xyz(argb)
    fx = _f_lab(x / REF_WHITE_D65[0])
    fy = _f_lab(y)
    fz = _f_lab(z / REF_WHITE_D65[2])
    return 116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz)

@njit(cache=True)
def _lch_to_display(l: float, c: float, h: float) -> Tuple[int, bool]:
    """
    LCh (D65) -> (packed RGB, was_clipped).

    Channels are clamped to the display gamut before quantisation; the flag
    reports whether any of them had to be.
    """
    h_rad = h * DEG2RAD
    a = math.cos(h_rad) * c
    b = math.sin(h_rad) * c

    fy = (l + 16.0) / 116.0
    fx = a / 500.0 + fy
    fz = fy - b / 200.0

    x = _f_lab_inv(fx) * REF_WHITE_D65[0]
    y = _f_lab_inv(fy)
    z = _f_lab_inv(fz) * REF_WHITE_D65[2]

    m = _M_XYZ_TO_SRGB_BASE
    clipped = False
    packed = 0
    for i in range(3):
        encoded = _gamma_encode(m[i, 0] * x + m[i, 1] * y + m[i, 2] * z)
        if encoded < -CLIP_TOLERANCE or encoded > 1.0 + CLIP_TOLERANCE:
            clipped = True
        packed = (packed << 8) | _quantize(encoded)
    return packed, clipped


# =============================================================================
# 3. BATCH KERNELS (fast / strict pairs)
# =============================================================================

@njit(cache=True, fastmath=True)
def _fast_gamma_srgb(linear: ArrayFloat) -> ArrayFloat:
    """sRGB OETF over an array of any shape."""
    out = np.empty_like(linear)
    linear_flat = linear.ravel()
    out_flat = out.ravel()
    for i in range(linear.size):
        v = linear_flat[i]
        if v <= 0.0031308:
            out_flat[i] = 12.92 * v
        else:
            out_flat[i] = 1.055 * (v ** (1.0/2.4)) - 0.055
    return out

@njit(cache=True, fastmath=True)
def _fast_inverse_gamma_srgb(srgb: ArrayFloat) -> ArrayFloat:
    """sRGB EOTF over an array of any shape."""
    out = np.empty_like(srgb)
    srgb_flat = srgb.ravel()
    out_flat = out.ravel()
    for i in range(srgb.size):
        v = srgb_flat[i]
        if v <= 0.04045:
            out_flat[i] = v / 12.92
        else:
            out_flat[i] = ((v + 0.055) / 1.055) ** 2.4
    return out

@njit(cache=True, fastmath=False)
def _fast_gamma_srgb_strict(linear: ArrayFloat) -> ArrayFloat:
    """sRGB OETF — strict IEEE 754 variant."""
    out = np.empty_like(linear)
    linear_flat = linear.ravel()
    out_flat = out.ravel()
    for i in range(linear.size):
        v = linear_flat[i]
        if v <= 0.0031308:
            out_flat[i] = 12.92 * v
        else:
            out_flat[i] = 1.055 * (v ** (1.0/2.4)) - 0.055
    return out

@njit(cache=True, fastmath=False)
def _fast_inverse_gamma_srgb_strict(srgb: ArrayFloat) -> ArrayFloat:
    """sRGB EOTF — strict IEEE 754 variant."""
    out = np.empty_like(srgb)
    srgb_flat = srgb.ravel()
    out_flat = out.ravel()
    for i in range(srgb.size):
        v = srgb_flat[i]
        if v <= 0.04045:
            out_flat[i] = v / 12.92
        else:
            out_flat[i] = ((v + 0.055) / 1.055) ** 2.4
    return out

@njit(cache=True, fastmath=True)
def _xyz_to_lab_f(t: ArrayFloat) -> ArrayFloat:
    """Lab f(t) over an array, linear segment below LAB_EPSILON."""
    out = np.empty_like(t)
    t_flat = t.ravel()
    out_flat = out.ravel()
    for i in range(t.size):
        v = t_flat[i]
        if v > LAB_EPSILON:
            out_flat[i] = v ** (1.0/3.0)
        else:
            out_flat[i] = (LAB_KAPPA * v + 16.0) / 116.0
    return out

@njit(cache=True, fastmath=True)
def _cam16_compress_array(cone: ArrayFloat) -> ArrayFloat:
    out = np.empty_like(cone)
    cone_flat = cone.ravel()
    out_flat = out.ravel()
    for i in range(cone.size):
        v = cone_flat[i]
        af = abs(v) ** _CAM16_EXPONENT
        if v < 0.0:
            out_flat[i] = -400.0 * af / (af + _CAM16_SATURATION)
        else:
            out_flat[i] = 400.0 * af / (af + _CAM16_SATURATION)
    return out


@njit(cache=True, fastmath=False)
def _xyz_to_lab_f_strict(t: ArrayFloat) -> ArrayFloat:
    """Lab f(t), strict IEEE 754 variant."""
    out = np.empty_like(t)
    t_flat = t.ravel()
    out_flat = out.ravel()
    for i in range(t.size):
        v = t_flat[i]
        if v > LAB_EPSILON:
            out_flat[i] = v ** (1.0/3.0)
        else:
            out_flat[i] = (LAB_KAPPA * v + 16.0) / 116.0
    return out

@njit(cache=True, fastmath=False)
def _cam16_compress_array_strict(cone: ArrayFloat) -> ArrayFloat:
    out = np.empty_like(cone)
    cone_flat = cone.ravel()
    out_flat = out.ravel()
    for i in range(cone.size):
        v = cone_flat[i]
        af = abs(v) ** _CAM16_EXPONENT
        if v < 0.0:
            out_flat[i] = -400.0 * af / (af + _CAM16_SATURATION)
        else:
            out_flat[i] = 400.0 * af / (af + _CAM16_SATURATION)
    return out




def _gamma_srgb(linear: ArrayFloat) -> ArrayFloat:
    """Dispatch sRGB OETF to fast or strict kernel."""
    if _STRICT_IEEE:
        return _fast_gamma_srgb_strict(linear)
    return _fast_gamma_srgb(linear)

def _inverse_gamma_srgb(srgb: ArrayFloat) -> ArrayFloat:
    """Dispatch sRGB EOTF to fast or strict kernel."""
    if _STRICT_IEEE:
        return _fast_inverse_gamma_srgb_strict(srgb)
    return _fast_inverse_gamma_srgb(srgb)

def _lab_f(t: ArrayFloat) -> ArrayFloat:
    if _STRICT_IEEE:
        return _xyz_to_lab_f_strict(t)
    return _xyz_to_lab_f(t)

def _cam16_compress_batch(cone: ArrayFloat) -> ArrayFloat:
    if _STRICT_IEEE:
        return _cam16_compress_array_strict(cone)
    return _cam16_compress_array(cone)


# =============================================================================
# 4. COLOR SPACE ENGINE
# =============================================================================

class ColorSpaceEngine:
    """Static namespace for the forward transforms.

    Scalar methods take and return plain Python numbers; batch methods take
    (N, 3) float arrays or flat arrays of packed colors.
    """

    # =====================================================================
    #  Linearizer
    # =====================================================================

    @staticmethod
    def linearized(channel: int) -> float:
        """8-bit channel (0..255) -> linear light (0..1)."""
        return float(_linearized(int(channel)))

    @staticmethod
    def delinearized(linear100: float) -> int:
        """Linear light on the 0..100 scale -> 8-bit channel, clamped."""
        return int(_delinearized(float(linear100)))

    @staticmethod
    def srgb_to_linear(srgb: ArrayFloat) -> ArrayFloat:
        """Gamma-encoded [0..1] -> linear light, any array shape."""
        return _inverse_gamma_srgb(np.ascontiguousarray(srgb, dtype=np.float64))

    @staticmethod
    def linear_to_srgb(linear: ArrayFloat, clip: bool = True) -> ArrayFloat:
        """
        Linear light -> gamma-encoded [0..1], any array shape.

        Args:
            linear: Linear light values.
            clip: If True (default), clamps to [0, 1] before encoding.
        """
        linear = np.ascontiguousarray(linear, dtype=np.float64)
        if clip:
            linear = np.clip(linear, 0.0, 1.0)
        return _gamma_srgb(linear)

    # =====================================================================
    #  ToneLuminance
    # =====================================================================

    @staticmethod
    def tone_from_y(y: float) -> float:
        """Relative luminance (0..1) -> Tone (0..100)."""
        return float(_tone_from_y(float(y)))

    @staticmethod
    def y_from_tone(tone: float) -> float:
        """Tone (0..100) -> relative luminance (0..1)."""
        return float(_y_from_tone(float(tone)))

    # =====================================================================
    #  CAM16Forward
    # =====================================================================

    @staticmethod
    def cam16(argb: int) -> Cam16Color:
        """
        Packed RGB -> CAM16 hue / chroma under the default viewing conditions.

        The returned ``y`` is the relative luminance used for Tone.
        """
        hue, chroma, y = _cam16_from_argb(int(argb) & RGB_MASK)
        return Cam16Color(hue=float(hue), chroma=float(chroma), y=float(y))

    @staticmethod
    def cam16_batch(argbs: Any) -> ArrayFloat:
        """
        Vectorised CAM16Forward.

        Args:
            argbs: Packed colors, any integer array shape.

        Returns:
            Array of shape ``(N, 3)`` holding (hue, chroma, Y) per color.
        """
        rgb = ColorSpaceEngine.unpack_to_srgb(argbs)
        xyz = np.dot(_inverse_gamma_srgb(rgb), M_SRGB_TO_XYZ_T)
        cone = _cam16_compress_batch(np.ascontiguousarray(np.dot(xyz, M_XYZ_TO_CAM16_T)))

        r_a, g_a, b_a = cone[:, 0], cone[:, 1], cone[:, 2]
        a = (11.0 * r_a - 12.0 * g_a + b_a) / 11.0
        b = (r_a + g_a - 2.0 * b_a) / 9.0

        out = np.empty_like(cone)
        out[:, 0] = np.mod(np.arctan2(b, a) * RAD2DEG, 360.0)
        out[:, 1] = np.hypot(a, b) * CAM16_CHROMA_SCALE
        out[:, 2] = xyz[:, 1]
        return out

    # =====================================================================
    #  LCHSeed
    # =====================================================================

    @staticmethod
    def lab_from_argb(argb: int) -> LabColor:
        l, a, b = _lab_from_argb(int(argb) & RGB_MASK)
        return LabColor(float(l), float(a), float(b))

    @staticmethod
    def lch_from_argb(argb: int) -> LCHColor:
        return ColorSpaceEngine.lab_to_lch(ColorSpaceEngine.lab_from_argb(argb))

    @staticmethod
    def lab_to_lch(lab: LabColor) -> LCHColor:
        c = math.hypot(lab.a, lab.b)
        h = sanitize_degrees(math.atan2(lab.b, lab.a) * RAD2DEG)
        return LCHColor(lab.l, c, h)

    @staticmethod
    def lch_to_lab(lch: LCHColor) -> LabColor:
        h_rad = lch.h * DEG2RAD
        return LabColor(lch.l, lch.c * math.cos(h_rad), lch.c * math.sin(h_rad))

    @staticmethod
    def lch_to_display(l: float, c: float, h: float) -> Tuple[int, bool]:
        """
        LCh (D65) -> (packed RGB, was_clipped).

        Out-of-gamut points are clamped channel-wise; ``was_clipped`` tells
        whether that happened.
        """
        packed, clipped = _lch_to_display(float(l), float(c), float(h))
        return int(packed), bool(clipped)

    @staticmethod
    def unpack_to_srgb(argbs: Any) -> ArrayFloat:
        """Packed colors -> (N, 3) gamma-encoded floats in [0, 1]."""
        packed = _as_argb_array(argbs)
        rgb = np.empty((packed.shape[0], 3), dtype=np.float64)
        rgb[:, 0] = (packed >> 16) & 0xFF
        rgb[:, 1] = (packed >> 8) & 0xFF
        rgb[:, 2] = packed & 0xFF
        rgb /= 255.0
        return rgb

    @staticmethod
    @handle_shapes
    def srgb_to_lab(rgb_array: ArrayFloat) -> ArrayFloat:
        """
        Gamma-encoded sRGB [0..1] -> CIELAB (D65).

        Args:
            rgb_array: Input sRGB data, shape (N, 3) or (3,).
        """
        xyz = np.dot(_inverse_gamma_srgb(np.clip(rgb_array, 0.0, 1.0)), M_SRGB_TO_XYZ_T)
        f_xyz = _lab_f(np.ascontiguousarray(xyz / REF_WHITE_D65))

        out = np.empty_like(xyz)
        out[:, 0] = 116.0 * f_xyz[:, 1] - 16.0
        out[:, 1] = 500.0 * (f_xyz[:, 0] - f_xyz[:, 1])
        out[:, 2] = 200.0 * (f_xyz[:, 1] - f_xyz[:, 2])
        return out

    @staticmethod
    @handle_shapes
    def srgb_to_lch(rgb_array: ArrayFloat) -> ArrayFloat:
        """Gamma-encoded sRGB [0..1] -> CIELCh (D65), hue in degrees."""
        lab = ColorSpaceEngine.srgb_to_lab(rgb_array)
        out = np.empty_like(lab)
        out[:, 0] = lab[:, 0]
        out[:, 1] = np.hypot(lab[:, 1], lab[:, 2])
        out[:, 2] = np.mod(np.arctan2(lab[:, 2], lab[:, 1]) * RAD2DEG, 360.0)
        return out
