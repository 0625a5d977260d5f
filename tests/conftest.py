# -*- coding: utf-8 -*-
"""
Tonal: Perceptual hue, chroma and tone for display colors
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Shared fixtures.
"""

from __future__ import annotations

from typing import Iterator, List, Tuple

import numpy as np
import pytest

import tonal_colorengine


# (hue, chroma, tone) requests that converge without clipping.
ROUND_TRIP_CASES: List[Tuple[float, float, float]] = [
    (30.0, 40.0, 50.0),
    (140.0, 40.0, 60.0),
    (300.0, 40.0, 40.0),
    (200.0, 30.0, 60.0),
    (60.0, 40.0, 70.0),
    (0.0, 40.0, 50.0),
    (240.0, 20.0, 30.0),
    (90.0, 30.0, 80.0),
    (270.0, 40.0, 40.0),
]

REFERENCE_HUES: List[float] = [0.0, 45.0, 90.0, 135.0, 180.0, 225.0, 270.0, 315.0]


def hue_distance(a: float, b: float) -> float:
    d = abs(a - b) % 360.0
    return 360.0 - d if d > 180.0 else d


@pytest.fixture(scope="session", autouse=True)
def np_seed() -> None:
    np.random.seed(12345)


@pytest.fixture()
def strict_ieee() -> Iterator[None]:
    """Runs a test with the strict batch kernels, restoring fast mode after."""
    tonal_colorengine.set_strict_ieee(True)
    yield
    tonal_colorengine.set_strict_ieee(False)


@pytest.fixture()
def random_argbs() -> np.ndarray:
    return np.random.randint(0, 0x1000000, size=64, dtype=np.int64)
