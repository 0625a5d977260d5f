# -*- coding: utf-8 -*-
"""
Tonal: Perceptual hue, chroma and tone for display colors
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tonal_solver.py — HCT -> display RGB gamut solver.

There is no closed-form inverse for CAM16, so the solver works in two
stages:

  1. Seed.  Treat the requested (Hue, Chroma, Tone) as CIE LCh coordinates
     and run the closed-form LCh -> sRGB transform, clamping any channel
     that leaves the gamut.
  2. Correct.  Measure the seed's true CAM16 hue and nudge the working
     LCh hue against the error with a damped, fixed-step descent (at most
     ``max_iterations`` rounds, step 0.8 decaying by x0.8).

The loop is a heuristic and is bounded by its iteration cap rather than by
convergence; near gamut cusps the result is simply whatever the last
iteration produced.  Tone is not preserved at the gamut edge: the clamped
candidate is returned as-is, favouring hue and chroma over lightness.

``HueStabilizer`` is an optional post-process that searches the +/-1
integer neighbourhood of a solved color for a smaller CAM16 hue error.

Public surface:
    rgb_to_hct, hct_to_rgb, max_chroma, stabilize_hue, solve_stabilized,
    rgb_to_hct_batch, hct_to_rgb_batch
"""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass
from typing import Any, Final, Optional, Tuple

import numpy as np
from numba import njit, prange

from tonal_colorengine import (
    ArrayFloat,
    ColorSpaceEngine,
    _cam16_from_argb,
    _lch_to_display,
    _sanitize_degrees,
    handle_shapes,
)
from tonal_types import DisplayColor, HCTColor, RGB_MASK, sanitize_degrees

__all__ = [
    "SolverConfig",
    "DEFAULT_SOLVER_CONFIG",
    "SolveResult",
    "GamutSolver",
    "HueStabilizer",
    "rgb_to_hct",
    "hct_to_rgb",
    "max_chroma",
    "stabilize_hue",
    "solve_stabilized",
    "rgb_to_hct_batch",
    "hct_to_rgb_batch",
]


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
@dataclass(slots=True, frozen=True)
class SolverConfig:
    """
    Loop constants for the gamut solver.

    The defaults reproduce the reference behaviour; changing them changes
    visible output.

    Attributes
    ----------
    max_iterations : int
        Hard cap on hue-correction rounds.
    initial_step : float
        Fraction of the measured hue error removed in the first round.
    step_decay : float
        Multiplier applied to the step after every round.
    hue_tolerance : float
        Absolute CAM16 hue error (degrees) below which the loop stops.
    min_refine_chroma : float
        Below this chroma the seed is returned without correction.
    max_chroma_probe : float
        Chroma requested when probing the gamut boundary.
    stabilize_tone_range : tuple[float, float]
        Open tone interval in which hue stabilisation is applied.
    """
    max_iterations: int = 10
    initial_step: float = 0.8
    step_decay: float = 0.8
    hue_tolerance: float = 0.5
    min_refine_chroma: float = 2.0
    max_chroma_probe: float = 150.0
    stabilize_tone_range: Tuple[float, float] = (2.0, 98.0)

    def __post_init__(self) -> None:
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations must be >= 0, got {self.max_iterations}")
        if not 0.0 < self.step_decay <= 1.0:
            raise ValueError(f"step_decay must be in (0, 1], got {self.step_decay}")
        if self.hue_tolerance <= 0.0:
            raise ValueError(f"hue_tolerance must be > 0, got {self.hue_tolerance}")
        lo, hi = self.stabilize_tone_range
        if lo >= hi:
            raise ValueError(
                f"stabilize_tone_range must be increasing, got {self.stabilize_tone_range}"
            )


DEFAULT_SOLVER_CONFIG: Final[SolverConfig] = SolverConfig()


@dataclass(slots=True, frozen=True)
class SolveResult:
    """
    Outcome of one solver call with its loop diagnostics.

    ``converged`` is True when the last measured hue error was inside the
    tolerance, or when the chroma was too low to need correction.
    """
    argb: int
    iterations: int
    converged: bool
    clipped: bool
    working_hue: float

    @property
    def color(self) -> DisplayColor:
        return DisplayColor.from_argb(self.argb)


# ---------------------------------------------------------------------------
# Kernels
# ---------------------------------------------------------------------------
@njit(cache=True)
def _hue_error(measured: float, target: float) -> float:
    """Signed ``measured - target`` wrapped into [-180, 180]."""
    d = measured - target
    if d > 180.0:
        d -= 360.0
    if d < -180.0:
        d += 360.0
    return d

@njit(cache=True)
def _hue_distance(measured: float, target: float) -> float:
    d = abs(measured - target)
    if d > 180.0:
        d = 360.0 - d
    return d

@njit(cache=True)
def _solve_kernel(
    hue: float,
    chroma: float,
    tone: float,
    max_iterations: int,
    initial_step: float,
    step_decay: float,
    hue_tolerance: float,
    min_refine_chroma: float,
) -> Tuple[int, int, bool, bool, float]:
    """Returns (argb, iterations, converged, clipped, working_hue)."""
    if tone < 0.0 or tone > 100.0:
        return 0, 0, False, False, hue
    if chroma < 0.0:
        chroma = 0.0

    target = _sanitize_degrees(hue)
    working = target
    argb, clipped = _lch_to_display(tone, chroma, working)
    if chroma < min_refine_chroma:
        return argb, 0, True, clipped, working

    step = initial_step
    iterations = 0
    converged = False
    for _ in range(max_iterations):
        measured = _cam16_from_argb(argb)[0]
        error = _hue_error(measured, target)
        if abs(error) < hue_tolerance:
            converged = True
            break
        working = _sanitize_degrees(working - error * step)
        argb, clipped = _lch_to_display(tone, chroma, working)
        step *= step_decay
        iterations += 1
    return argb, iterations, converged, clipped, working

@njit(cache=True, parallel=True)
def _solve_batch_kernel(
    hct: ArrayFloat,
    max_iterations: int,
    initial_step: float,
    step_decay: float,
    hue_tolerance: float,
    min_refine_chroma: float,
) -> np.ndarray:
    n = hct.shape[0]
    out = np.empty(n, dtype=np.int64)
    for i in prange(n):
        res = _solve_kernel(
            hct[i, 0], hct[i, 1], hct[i, 2],
            max_iterations, initial_step, step_decay,
            hue_tolerance, min_refine_chroma,
        )
        out[i] = res[0]
    return out

@njit(cache=True)
def _stabilize_kernel(argb: int, target_hue: float) -> int:
    """
    Smallest CAM16 hue error among ``argb`` and its +/-1 neighbours.

    Scan order is R outer, G middle, B inner, each -1..+1.  Only a strictly
    smaller error replaces the current best, so ties keep the first hit.
    """
    r0 = (argb >> 16) & 0xFF
    g0 = (argb >> 8) & 0xFF
    b0 = argb & 0xFF

    best = argb & 0xFFFFFF
    best_diff = _hue_distance(_cam16_from_argb(best)[0], target_hue)

    for dr in range(-1, 2):
        for dg in range(-1, 2):
            for db in range(-1, 2):
                if dr == 0 and dg == 0 and db == 0:
                    continue
                r = r0 + dr
                g = g0 + dg
                b = b0 + db
                if r < 0 or r > 255 or g < 0 or g > 255 or b < 0 or b > 255:
                    continue
                candidate = (r << 16) | (g << 8) | b
                diff = _hue_distance(_cam16_from_argb(candidate)[0], target_hue)
                if diff < best_diff:
                    best_diff = diff
                    best = candidate
    return best

# ---------------------------------------------------------------------------
# Input guards
# ---------------------------------------------------------------------------
def _require_finite(**values: float) -> None:
    for name, value in values.items():
        if not math.isfinite(value):
            raise ValueError(f"{name} must be a finite number, got {value!r}")


def _config_args(config: SolverConfig) -> Tuple[int, float, float, float, float]:
    return (
        int(config.max_iterations),
        float(config.initial_step),
        float(config.step_decay),
        float(config.hue_tolerance),
        float(config.min_refine_chroma),
    )


# ---------------------------------------------------------------------------
# Solver namespaces
# ---------------------------------------------------------------------------
class GamutSolver:
    """(Hue, Chroma, Tone) -> best achievable packed display RGB."""

    @staticmethod
    def solve(
        hue: float,
        chroma: float,
        tone: float,
        config: Optional[SolverConfig] = None,
    ) -> int:
        """
        Solve one HCT triple.

        Total over finite inputs: tone outside [0, 100] yields black,
        negative chroma is treated as 0 and gamut overflow is clamped.
        """
        return GamutSolver.solve_detailed(hue, chroma, tone, config).argb

    @staticmethod
    def solve_detailed(
        hue: float,
        chroma: float,
        tone: float,
        config: Optional[SolverConfig] = None,
    ) -> SolveResult:
        """Like ``solve`` but also reports iterations, convergence and clipping."""
        cfg = config or DEFAULT_SOLVER_CONFIG
        argb, iterations, converged, clipped, working = _solve_kernel(
            float(hue), float(chroma), float(tone), *_config_args(cfg)
        )
        return SolveResult(
            argb=int(argb),
            iterations=int(iterations),
            converged=bool(converged),
            clipped=bool(clipped),
            working_hue=float(working),
        )

    @staticmethod
    @handle_shapes
    def solve_batch(
        hct_array: ArrayFloat,
        config: Optional[SolverConfig] = None,
    ) -> np.ndarray:
        """
        Solve many HCT triples in parallel.

        Args:
            hct_array: (N, 3) or (3,) array of (hue, chroma, tone).
            config: Loop constants; defaults to ``DEFAULT_SOLVER_CONFIG``.

        Returns:
            int64 array of packed colors, shape (N,) (or a scalar for (3,)).
        """
        cfg = config or DEFAULT_SOLVER_CONFIG
        return _solve_batch_kernel(hct_array, *_config_args(cfg))


class HueStabilizer:
    """Reduces hue jitter introduced by 8-bit quantisation."""

    @staticmethod
    def stabilize(argb: int, target_hue: float) -> int:
        return int(_stabilize_kernel(int(argb) & RGB_MASK, sanitize_degrees(float(target_hue))))

    @staticmethod
    def applies_to(tone: float, config: Optional[SolverConfig] = None) -> bool:
        """True when ``tone`` lies strictly inside the stabilisation window."""
        lo, hi = (config or DEFAULT_SOLVER_CONFIG).stabilize_tone_range
        return lo < tone < hi


# ---------------------------------------------------------------------------
# Functional surface
# ---------------------------------------------------------------------------
def rgb_to_hct(argb: int) -> HCTColor:
    """
    Packed RGB -> HCT.

    Hue is the CAM16 hue the solver targets, Tone comes from relative
    luminance, and Chroma is the LCh chroma on the same axis the solver's
    chroma input uses, so in-gamut colors round-trip in all three
    coordinates.  Alpha bits are ignored.
    """
    argb = int(argb) & RGB_MASK
    cam = ColorSpaceEngine.cam16(argb)
    lch = ColorSpaceEngine.lch_from_argb(argb)
    return HCTColor(h=cam.hue, c=lch.c, t=ColorSpaceEngine.tone_from_y(cam.y))


def hct_to_rgb(
    h: float,
    c: float,
    t: float,
    config: Optional[SolverConfig] = None,
) -> int:
    """
    HCT -> packed RGB via ``GamutSolver``.

    Raises:
        ValueError: If any input is NaN or infinite.
    """
    _require_finite(h=h, c=c, t=t)
    if t < 0.0 or t > 100.0:
        warnings.warn(
            f"hct_to_rgb: tone={t} is outside [0, 100]; returning black.",
            RuntimeWarning,
            stacklevel=2,
        )
    return GamutSolver.solve(h, c, t, config)


def max_chroma(h: float, t: float, config: Optional[SolverConfig] = None) -> float:
    """
    Largest chroma the solver reaches at (hue, tone).

    Requests ``max_chroma_probe`` and reads back the chroma of the clamped
    result.  Because the solver does not hold tone at the gamut edge, the
    probed color may sit at a different tone than requested.
    """
    _require_finite(h=h, t=t)
    cfg = config or DEFAULT_SOLVER_CONFIG
    argb = GamutSolver.solve(h, cfg.max_chroma_probe, t, cfg)
    return ColorSpaceEngine.lch_from_argb(argb).c


def stabilize_hue(
    argb: int,
    target_hue: float,
    tone: Optional[float] = None,
    config: Optional[SolverConfig] = None,
) -> int:
    """
    Neighbourhood hue refinement.

    When ``tone`` is given and lies outside the stabilisation window the
    color is returned unchanged.
    """
    _require_finite(target_hue=target_hue)
    if tone is not None and not HueStabilizer.applies_to(tone, config):
        return int(argb) & RGB_MASK
    return HueStabilizer.stabilize(argb, target_hue)


def solve_stabilized(
    h: float,
    c: float,
    t: float,
    config: Optional[SolverConfig] = None,
) -> int:
    """``hct_to_rgb`` followed by ``stabilize_hue`` gated on tone."""
    argb = hct_to_rgb(h, c, t, config)
    return stabilize_hue(argb, h, tone=t, config=config)


def rgb_to_hct_batch(argbs: Any) -> ArrayFloat:
    """
    Vectorised ``rgb_to_hct``.

    Returns:
        (N, 3) array of (hue, chroma, tone).
    """
    cam = ColorSpaceEngine.cam16_batch(argbs)
    lch = ColorSpaceEngine.srgb_to_lch(ColorSpaceEngine.unpack_to_srgb(argbs))

    # L* of Y is Tone
    out = np.empty_like(cam)
    out[:, 0] = cam[:, 0]
    out[:, 1] = lch[:, 1]
    out[:, 2] = lch[:, 0]
    return out


def hct_to_rgb_batch(hct: ArrayFloat, config: Optional[SolverConfig] = None) -> np.ndarray:
    """
    Vectorised ``hct_to_rgb``.

    Raises:
        ValueError: If the array has the wrong shape or holds non-finite values.
    """
    arr = np.asarray(hct, dtype=np.float64)
    if not np.all(np.isfinite(arr)):
        raise ValueError("hct_to_rgb_batch: input contains NaN or infinite values.")
    return GamutSolver.solve_batch(arr, config)
