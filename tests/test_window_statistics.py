import numpy as np
import pytest

from src_zncc_disparity.disparity.window_statistics import WindowStatistics
from src_zncc_disparity.errors import InvalidInput


def clamped_window(grid, y, x, window_size):
    half = window_size // 2
    return grid[max(y - half, 0):y + half + 1, max(x - half, 0):x + half + 1]


def test_flat_grid_has_zero_stddev():
    stats = WindowStatistics(9).compute(np.full((20, 30), 123.4))

    np.testing.assert_allclose(stats.mean, 123.4)
    assert np.all(stats.stddev == 0.0)


def test_border_windows_are_clamped():
    stats = WindowStatistics(9).compute(np.ones((20, 30)))

    assert stats.count[0, 0] == 25
    assert stats.count[0, 15] == 45
    assert stats.count[10, 15] == 81
    assert stats.count[19, 29] == 25


@pytest.mark.parametrize("y, x", [(0, 0), (3, 17), (10, 10), (14, 23), (5, 0)])
def test_matches_brute_force(rng, y, x):
    intensity = rng.uniform(0, 255, size=(15, 24))
    stats = WindowStatistics(7).compute(intensity)

    window = clamped_window(intensity, y, x, 7)
    assert stats.mean[y, x] == pytest.approx(window.mean(), rel=1e-9)
    assert stats.stddev[y, x] == pytest.approx(window.std(), rel=1e-6)


def test_statistics_are_read_only(rng):
    stats = WindowStatistics(3).compute(rng.uniform(0, 1, size=(5, 5)))
    for grid in (stats.mean, stats.stddev, stats.count):
        assert not grid.flags.writeable


def test_stddev_requires_matching_mean(rng):
    statistics = WindowStatistics(3)
    with pytest.raises(InvalidInput):
        statistics.compute_stddev(rng.uniform(size=(5, 5)), np.zeros((4, 5)))


@pytest.mark.parametrize("window_size", [0, 4, -3])
def test_window_size_must_be_positive_and_odd(window_size):
    with pytest.raises(InvalidInput):
        WindowStatistics(window_size)
