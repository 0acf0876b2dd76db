import numpy as np
import pytest

from src_zncc_disparity.disparity.disparity_processor import DisparityProcessor
from src_zncc_disparity.disparity.grid import INVALID_DISPARITY
from src_zncc_disparity.disparity.occlusion import OcclusionFiller
from src_zncc_disparity.errors import InvalidInput

I = INVALID_DISPARITY


def fill(row, radius):
    filled, unfilled = OcclusionFiller(radius).fill(np.array([row], dtype=np.int32))
    return filled[0].tolist(), unfilled


def test_nearest_neighbour_wins():
    assert fill([5, I, I, 2], 2) == ([5, 5, 2, 2], 0)


def test_equal_distance_prefers_smaller_disparity():
    assert fill([7, I, 4], 1) == ([7, 4, 4], 0)


def test_fill_does_not_reach_beyond_radius():
    assert fill([3, I, I, I, I], 2) == ([3, 3, 3, I, I], 2)


def test_filled_values_are_not_propagated():
    # Pixel 3 is three columns from the only source value
    assert fill([6, I, I, I], 2) == ([6, 6, 6, I], 1)


def test_row_without_valid_pixels_stays_unfilled_and_encodes_as_zero():
    filled, unfilled = OcclusionFiller(5).fill(np.full((2, 4), I, dtype=np.int32))

    assert unfilled == 8
    output = DisparityProcessor().to_output_image(filled, 8)
    assert output.dtype == np.uint8
    assert np.all(output == 0)


def test_zero_radius_leaves_map_unchanged():
    assert fill([I, 4, I], 0) == ([I, 4, I], 2)


def test_fill_is_bounded_by_row_neighbours(rng):
    source = rng.integers(-1, 6, size=(12, 40)).astype(np.int32)
    source[rng.uniform(size=source.shape) < 0.5] = I
    radius = 3

    filled, unfilled = OcclusionFiller(radius).fill(source)

    assert not filled.flags.writeable
    assert unfilled == np.count_nonzero(filled == I)
    valid = source != I
    np.testing.assert_array_equal(filled[valid], source[valid])
    for y, x in zip(*np.nonzero(~valid & (filled != I))):
        low, high = max(x - radius, 0), min(x + radius, source.shape[1] - 1)
        neighbours = source[y, low:high + 1]
        assert filled[y, x] in neighbours[neighbours != I]


def test_negative_radius_is_rejected():
    with pytest.raises(InvalidInput):
        OcclusionFiller(-1)
