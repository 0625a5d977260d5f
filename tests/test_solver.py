# -*- coding: utf-8 -*-
"""
Tonal: Perceptual hue, chroma and tone for display colors
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Gamut solver and the public conversion functions.
"""

import dataclasses
import warnings

import numpy as np
import pytest

from conftest import REFERENCE_HUES, ROUND_TRIP_CASES, hue_distance
from tonal_colorengine import ColorSpaceEngine as E
from tonal_solver import (
    DEFAULT_SOLVER_CONFIG,
    GamutSolver,
    SolverConfig,
    hct_to_rgb,
    hct_to_rgb_batch,
    max_chroma,
    rgb_to_hct,
    rgb_to_hct_batch,
)
from tonal_types import DisplayColor, HCTColor


def _channels(argb):
    return (argb >> 16) & 0xFF, (argb >> 8) & 0xFF, argb & 0xFF


class TestAchromatic:
    @pytest.mark.parametrize("hue", [0.0, 90.0, 200.0, 359.0])
    def test_gray_axis_matches_tone(self, hue):
        for tone in np.arange(0.0, 100.25, 0.5):
            r, g, b = _channels(hct_to_rgb(hue, 0.0, float(tone)))
            expected = E.delinearized(100.0 * E.y_from_tone(float(tone)))
            assert r == g == b == expected, f"tone={tone}"

    @pytest.mark.parametrize("hue", [0.0, 123.4, 359.9])
    def test_black_and_white(self, hue):
        assert hct_to_rgb(hue, 0.0, 0.0) == 0x000000
        assert hct_to_rgb(hue, 0.0, 100.0) == 0xFFFFFF


class TestRoundTrip:
    @pytest.mark.parametrize("h, c, t", ROUND_TRIP_CASES)
    def test_in_gamut_round_trip(self, h, c, t):
        result = GamutSolver.solve_detailed(h, c, t)
        assert result.converged and not result.clipped
        hct = rgb_to_hct(result.argb)
        assert hue_distance(hct.h, h) <= 1.0
        assert hct.t == pytest.approx(t, abs=1.0)
        assert hct.c == pytest.approx(c, abs=1.5)

    def test_unclipped_but_unconverged_misses_hue(self):
        result = GamutSolver.solve_detailed(184.3, 8.3, 90.5)
        assert result.argb == 0xD7E8DD
        assert result.iterations == 10
        assert not result.converged
        assert not result.clipped
        hct = rgb_to_hct(result.argb)
        assert hct.h == pytest.approx(186.86, abs=0.05)
        assert hue_distance(hct.h, 184.3) > 1.0
        assert hct.t == pytest.approx(90.5, abs=1.0)

    def test_unconverged_can_still_land_close(self):
        result = GamutSolver.solve_detailed(240.0, 30.0, 40.0)
        assert result.argb == 0x1B648E
        assert not result.converged
        assert not result.clipped
        assert hue_distance(rgb_to_hct(result.argb).h, 240.0) <= 1.0

    def test_rgb_to_hct_red(self):
        hct = rgb_to_hct(0xFF0000)
        assert isinstance(hct, HCTColor)
        assert hct.h == pytest.approx(28.288, abs=1e-2)
        assert hct.c == pytest.approx(104.549, abs=1e-2)
        assert hct.t == pytest.approx(53.233, abs=1e-2)

    def test_rgb_to_hct_ignores_alpha(self):
        assert rgb_to_hct(0x80336DF7) == rgb_to_hct(0x336DF7)


class TestReferenceSet:
    EXPECTED = {
        0.0: 0xE90079,
        45.0: 0xCC5000,
        90.0: 0x9B7000,
        135.0: 0x548500,
        180.0: 0x009379,
        225.0: 0x0093B9,
        270.0: 0x336DF7,
        315.0: 0xA94DD4,
    }

    @pytest.mark.parametrize("hue", REFERENCE_HUES)
    def test_terminates_near_target(self, hue):
        result = GamutSolver.solve_detailed(hue, 80.0, 50.0)
        assert result.iterations <= DEFAULT_SOLVER_CONFIG.max_iterations
        assert hue_distance(E.cam16(result.argb).hue, hue) <= 1.0

    @pytest.mark.parametrize("hue", REFERENCE_HUES)
    def test_expected_colors(self, hue):
        assert hct_to_rgb(hue, 80.0, 50.0) == self.EXPECTED[hue]

    @pytest.mark.parametrize("hue", [135.0, 270.0])
    def test_cap_reached_without_convergence(self, hue):
        result = GamutSolver.solve_detailed(hue, 80.0, 50.0)
        assert result.iterations == 10
        assert not result.converged

    def test_converged_case(self):
        result = GamutSolver.solve_detailed(315.0, 80.0, 50.0)
        assert result.converged
        assert result.iterations == 2
        assert result.color == DisplayColor.from_hex("#a94dd4")


class TestScenario:
    def test_dark_blue(self):
        argb = hct_to_rgb(240.0, 50.0, 30.0)
        r, g, b = _channels(argb)
        assert argb == 0x005680
        assert b > g > r
        assert hue_distance(rgb_to_hct(argb).h, 240.0) <= 1.0

    def test_requested_chroma_exceeds_boundary(self):
        assert max_chroma(240.0, 30.0) < 100.0


class TestMaxChroma:
    # (hue, tone) -> LCh chroma of the clamped boundary search
    BOUNDARY = {
        (0.0, 0.0): 50.894, (0.0, 50.0): 84.849, (0.0, 100.0): 83.001,
        (120.0, 0.0): 10.658, (120.0, 50.0): 57.578, (120.0, 100.0): 97.066,
        (240.0, 0.0): 21.421, (240.0, 50.0): 55.709, (240.0, 100.0): 19.956,
    }

    @pytest.mark.parametrize("hue, tone", sorted(BOUNDARY))
    def test_pinned_values(self, hue, tone):
        assert max_chroma(hue, tone) == pytest.approx(self.BOUNDARY[hue, tone], abs=0.01)

    @pytest.mark.parametrize("hue", [0.0, 120.0, 240.0])
    def test_extremes_stay_well_above_zero(self, hue):
        assert max_chroma(hue, 0.0) > 5.0
        assert max_chroma(hue, 100.0) > 5.0

    @pytest.mark.parametrize("hue", [0.0, 120.0, 240.0])
    def test_mid_tone_beats_black(self, hue):
        assert max_chroma(hue, 50.0) > max_chroma(hue, 0.0)

    def test_white_end_not_monotone(self):
        assert max_chroma(0.0, 100.0) < max_chroma(0.0, 50.0)
        assert max_chroma(240.0, 100.0) < max_chroma(240.0, 50.0)
        assert max_chroma(120.0, 100.0) > max_chroma(120.0, 50.0)

    def test_non_negative(self):
        for hue in range(0, 360, 30):
            assert max_chroma(float(hue), 50.0) >= 0.0


class TestEdgeCases:
    @pytest.mark.parametrize("tone", [-0.01, 100.5, 1e6])
    def test_out_of_range_tone_is_black(self, tone):
        assert GamutSolver.solve(120.0, 40.0, tone) == 0x000000
        with pytest.warns(RuntimeWarning, match="outside"):
            assert hct_to_rgb(120.0, 40.0, tone) == 0x000000

    def test_in_range_tone_does_not_warn(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            hct_to_rgb(120.0, 40.0, 100.0)

    def test_negative_chroma_is_gray(self):
        assert hct_to_rgb(240.0, -15.0, 50.0) == hct_to_rgb(240.0, 0.0, 50.0)

    @pytest.mark.parametrize("hue", [-120.0, 600.0])
    def test_hue_wraps(self, hue):
        assert hct_to_rgb(hue, 50.0, 30.0) == 0x005680

    @pytest.mark.parametrize(
        "args",
        [(float("nan"), 10.0, 50.0), (10.0, float("inf"), 50.0), (10.0, 10.0, float("-inf"))],
    )
    def test_non_finite_rejected(self, args):
        with pytest.raises(ValueError):
            hct_to_rgb(*args)

    def test_max_chroma_rejects_nan(self):
        with pytest.raises(ValueError):
            max_chroma(float("nan"), 50.0)

    def test_deterministic(self):
        first = [hct_to_rgb(h, 60.0, 45.0) for h in range(0, 360, 15)]
        second = [hct_to_rgb(h, 60.0, 45.0) for h in range(0, 360, 15)]
        assert first == second

    def test_low_chroma_skips_refinement(self):
        result = GamutSolver.solve_detailed(200.0, 1.5, 50.0)
        assert result.iterations == 0
        assert result.converged
        assert result.argb == E.lch_to_display(50.0, 1.5, 200.0)[0]


class TestSolverConfig:
    def test_defaults(self):
        cfg = SolverConfig()
        assert cfg.max_iterations == 10
        assert cfg.initial_step == 0.8
        assert cfg.step_decay == 0.8
        assert cfg.hue_tolerance == 0.5
        assert cfg.min_refine_chroma == 2.0
        assert cfg.max_chroma_probe == 150.0
        assert cfg.stabilize_tone_range == (2.0, 98.0)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_iterations": -1},
            {"step_decay": 0.0},
            {"step_decay": 1.5},
            {"hue_tolerance": 0.0},
            {"stabilize_tone_range": (98.0, 2.0)},
        ],
    )
    def test_validation(self, kwargs):
        with pytest.raises(ValueError):
            SolverConfig(**kwargs)

    def test_zero_iterations_returns_seed(self):
        cfg = dataclasses.replace(DEFAULT_SOLVER_CONFIG, max_iterations=0)
        result = GamutSolver.solve_detailed(240.0, 30.0, 40.0, cfg)
        assert result.iterations == 0
        assert result.working_hue == 240.0
        assert result.argb == E.lch_to_display(40.0, 30.0, 240.0)[0]

    def test_config_passed_through_public_function(self):
        cfg = dataclasses.replace(DEFAULT_SOLVER_CONFIG, max_iterations=0)
        assert hct_to_rgb(240.0, 30.0, 40.0, cfg) == E.lch_to_display(40.0, 30.0, 240.0)[0]


class TestBatch:
    def test_solve_batch_matches_scalar(self):
        hct = np.array(
            [[h, c, t] for h in (0.0, 100.0, 240.0) for c in (0.0, 30.0, 90.0) for t in (10.0, 50.0, 90.0)]
        )
        out = hct_to_rgb_batch(hct)
        assert out.shape == (hct.shape[0],)
        expected = [hct_to_rgb(*row) for row in hct]
        np.testing.assert_array_equal(out, expected)

    def test_single_row(self):
        assert int(GamutSolver.solve_batch(np.array([240.0, 50.0, 30.0]))) == 0x005680

    def test_out_of_range_tone_in_batch(self):
        out = hct_to_rgb_batch(np.array([[120.0, 40.0, 150.0]]))
        assert out[0] == 0

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            hct_to_rgb_batch(np.zeros((3, 2)))

    def test_non_finite(self):
        with pytest.raises(ValueError):
            hct_to_rgb_batch(np.array([[np.nan, 1.0, 2.0]]))

    def test_rgb_to_hct_batch_matches_scalar(self, random_argbs):
        out = rgb_to_hct_batch(random_argbs)
        assert out.shape == (random_argbs.size, 3)
        expected = np.array([rgb_to_hct(int(v)).as_tuple() for v in random_argbs])
        np.testing.assert_allclose(out, expected, rtol=1e-9, atol=1e-6)
