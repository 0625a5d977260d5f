# -*- coding: utf-8 -*-
"""
Tonal: Perceptual hue, chroma and tone for display colors
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tonal_gradients.py — Gradient stops and gamut boundary profiles.

Samples the solver along one HCT axis at a time:

  * hue sweep at fixed chroma and tone (a vivid spectrum),
  * chroma ramp from gray to saturated at fixed hue and tone,
  * tone ramp from black to white at fixed hue and chroma,

and turns the stops into CSS ``linear-gradient`` strings.  ``GamutBoundary``
interpolates the maximum reachable chroma over tone for one hue.
"""

from __future__ import annotations

import dataclasses
import warnings
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.interpolate import Akima1DInterpolator, CubicSpline, PchipInterpolator

from tonal_colorengine import ArrayFloat
from tonal_solver import DEFAULT_SOLVER_CONFIG, GamutSolver, SolverConfig, max_chroma
from tonal_types import DisplayColor

__all__ = ["GamutBoundary", "GradientSampler", "to_css_gradient"]

DEFAULT_TONE_STOPS: Tuple[float, ...] = (0.0, 25.0, 50.0, 75.0, 100.0)

ColorLike = Union[DisplayColor, int]


def _linear(x: ArrayFloat, y: ArrayFloat) -> Callable[[ArrayFloat], ArrayFloat]:
    return lambda t: np.interp(t, x, y)


_BOUNDARY_METHODS: Dict[str, Callable[[ArrayFloat, ArrayFloat], Callable[[ArrayFloat], ArrayFloat]]] = {
    "linear": _linear,
    "pchip": lambda x, y: PchipInterpolator(x, y, extrapolate=False),
    "cubicspline": lambda x, y: CubicSpline(x, y, extrapolate=False),
    "akima": lambda x, y: Akima1DInterpolator(x, y),
}


class GamutBoundary:
    """
    Maximum reachable chroma as a function of tone, for one hue.

    Built from tabulated (tone, chroma) samples.  Queries outside the
    sampled tone range are clamped to its ends.  Spline methods can
    undershoot between samples; negative results are clamped to zero with
    a ``RuntimeWarning``.

    Parameters:
        hue: Hue the samples were taken at (degrees).
        tones: Strictly increasing 1-D tone samples, at least two.
        chromas: Chroma at each tone, same length as ``tones``.
        method: 'linear', 'pchip', 'cubicspline' or 'akima'.
    """

    __slots__ = ("hue", "tones", "chromas", "method", "_interp")

    def __init__(
        self,
        hue: float,
        tones: Sequence[float],
        chromas: Sequence[float],
        method: str = "pchip",
    ):
        tones_arr = np.asarray(tones, dtype=np.float64)
        chromas_arr = np.asarray(chromas, dtype=np.float64)

        if tones_arr.ndim != 1 or tones_arr.shape != chromas_arr.shape:
            raise ValueError(
                f"tones and chromas must be 1-D and equal length, "
                f"got {tones_arr.shape} and {chromas_arr.shape}"
            )
        if tones_arr.size < 2:
            raise ValueError("GamutBoundary needs at least two samples.")
        if np.any(np.diff(tones_arr) <= 0.0):
            raise ValueError("tones must be strictly increasing.")
        if method not in _BOUNDARY_METHODS:
            raise ValueError(
                f"Unknown interpolation type '{method}'. "
                f"Choose from: {list(_BOUNDARY_METHODS.keys())}"
            )
        if method == "akima" and tones_arr.size < 3:
            raise ValueError("'akima' interpolation needs at least three samples.")

        self.hue = float(hue)
        self.tones = tones_arr
        self.chromas = chromas_arr
        self.method = method
        self._interp = _BOUNDARY_METHODS[method](tones_arr, chromas_arr)

    def __call__(self, tone: Union[float, ArrayFloat]) -> Union[float, ArrayFloat]:
        t = np.clip(np.asarray(tone, dtype=np.float64), self.tones[0], self.tones[-1])
        values = np.asarray(self._interp(t), dtype=np.float64)

        if np.any(values < 0.0):
            warnings.warn(
                f"GamutBoundary(hue={self.hue:g}, method='{self.method}'): "
                "interpolation undershoots zero; clamping.",
                RuntimeWarning,
                stacklevel=2,
            )
            values = np.maximum(values, 0.0)

        if values.ndim == 0:
            return float(values)
        return values

    def peak(self, resolution: float = 0.5) -> Tuple[float, float]:
        """(tone, chroma) of the largest interpolated chroma."""
        if resolution <= 0.0:
            raise ValueError(f"resolution must be > 0, got {resolution}")
        grid = np.arange(self.tones[0], self.tones[-1] + resolution * 0.5, resolution)
        grid = np.clip(grid, self.tones[0], self.tones[-1])
        values = np.asarray(self(grid))
        idx = int(np.argmax(values))
        return float(grid[idx]), float(values[idx])

    def __repr__(self) -> str:
        return (
            f"GamutBoundary(hue={self.hue:g}, samples={self.tones.size}, "
            f"method='{self.method}')"
        )


class GradientSampler:
    """Static namespace for single-axis gradient sampling."""

    @staticmethod
    def hue_stops(
        step: float = 10.0,
        chroma: float = 100.0,
        tone: float = 50.0,
        config: Optional[SolverConfig] = None,
    ) -> List[DisplayColor]:
        """Hue sweep 0..360 inclusive at fixed chroma and tone."""
        if step <= 0.0:
            raise ValueError(f"step must be > 0, got {step}")
        hues = np.arange(0.0, 360.0 + step * 1e-6, step)
        return [
            DisplayColor.from_argb(GamutSolver.solve(float(h), chroma, tone, config))
            for h in hues
        ]

    @staticmethod
    def chroma_stops(
        hue: float,
        tone: float,
        chroma: float = 100.0,
        config: Optional[SolverConfig] = None,
    ) -> Tuple[DisplayColor, DisplayColor]:
        """(gray, saturated) pair at fixed hue and tone."""
        gray = GamutSolver.solve(hue, 0.0, tone, config)
        saturated = GamutSolver.solve(hue, chroma, tone, config)
        return DisplayColor.from_argb(gray), DisplayColor.from_argb(saturated)

    @staticmethod
    def tone_stops(
        hue: float,
        chroma: float,
        tones: Iterable[float] = DEFAULT_TONE_STOPS,
        config: Optional[SolverConfig] = None,
    ) -> List[DisplayColor]:
        """Black-to-white ramp passing through the given hue and chroma."""
        return [
            DisplayColor.from_argb(GamutSolver.solve(hue, chroma, float(t), config))
            for t in tones
        ]

    @staticmethod
    def max_chroma(hue: float, tone: float, probe: Optional[float] = None) -> float:
        """
        Chroma of the clamped result when solving with a large chroma.

        ``probe`` overrides ``SolverConfig.max_chroma_probe`` (150).
        """
        if probe is None:
            return max_chroma(hue, tone)
        if probe <= 0.0:
            raise ValueError(f"probe must be > 0, got {probe}")
        cfg = dataclasses.replace(DEFAULT_SOLVER_CONFIG, max_chroma_probe=float(probe))
        return max_chroma(hue, tone, cfg)

    @staticmethod
    def chroma_boundary(
        hue: float,
        samples: int = 21,
        method: str = "pchip",
    ) -> GamutBoundary:
        """
        Samples ``max_chroma`` at evenly spaced tones over [0, 100].

        Args:
            hue: Hue in degrees.
            samples: Number of tone samples, at least two.
            method: Interpolation scheme, see ``GamutBoundary``.
        """
        if samples < 2:
            raise ValueError(f"samples must be >= 2, got {samples}")
        tones = np.linspace(0.0, 100.0, int(samples))
        chromas = np.array([max_chroma(hue, float(t)) for t in tones])
        return GamutBoundary(hue, tones, chromas, method=method)


def _css_rgb(color: ColorLike) -> str:
    if isinstance(color, DisplayColor):
        return color.css()
    return DisplayColor.from_argb(int(color)).css()


def to_css_gradient(stops: Iterable[ColorLike], direction: str = "to right") -> str:
    """
    CSS ``linear-gradient`` from display colors or packed integers.

    Example:
        >>> to_css_gradient([0x000000, 0xFFFFFF])
        'linear-gradient(to right, rgb(0,0,0), rgb(255,255,255))'
    """
    parts = [_css_rgb(c) for c in stops]
    if not parts:
        raise ValueError("to_css_gradient needs at least one stop.")
    return f"linear-gradient({direction}, {', '.join(parts)})"
