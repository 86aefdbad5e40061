"""Tests for trafficsim.hurst module."""

import numpy as np
import pytest
from trafficsim.hurst import estimate_hurst


def test_short_series_falls_back():
    assert estimate_hurst([0.1] * 19) == 0.5
    assert estimate_hurst([]) == 0.5
    assert estimate_hurst(None) == 0.5


def test_estimate_bounded():
    rng = np.random.default_rng(0)
    for _ in range(5):
        h = estimate_hurst(rng.random(500))
        assert 0.0 <= h <= 1.0


def test_repeatable():
    data = list(np.random.default_rng(3).standard_normal(1000))
    assert estimate_hurst(data) == estimate_hurst(data)


def test_constant_series_falls_back():
    assert estimate_hurst([1.0] * 200) == 0.5


def test_nan_values_do_not_raise():
    data = np.random.default_rng(1).standard_normal(256)
    data[::7] = np.nan
    h = estimate_hurst(data)
    assert 0.0 <= h <= 1.0


def test_random_walk_scores_higher_than_white_noise():
    rng = np.random.default_rng(5)
    noise = rng.standard_normal(2048)
    walk = np.cumsum(rng.standard_normal(2048))
    assert estimate_hurst(walk) > estimate_hurst(noise)
    assert estimate_hurst(walk) > 0.8


def test_accepts_plain_lists():
    data = [float(x) for x in np.random.default_rng(2).random(64)]
    assert 0.0 <= estimate_hurst(data) <= 1.0
