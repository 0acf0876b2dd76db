import numpy as np
import pytest

from src_zncc_disparity.disparity.grid import INVALID_DISPARITY, VARIANCE_EPSILON
from src_zncc_disparity.disparity.zncc_engine import ZNCCEngine
from src_zncc_disparity.errors import InvalidInput


def brute_force_disparity(reference, target, window_size, max_disparity):
    """Per-pixel ZNCC search over clamped, translated windows."""
    height, width = reference.shape
    half = window_size // 2
    result = np.full((height, width), INVALID_DISPARITY)
    for y in range(height):
        rows = slice(max(y - half, 0), min(y + half, height - 1) + 1)
        for x in range(width):
            first, last = max(x - half, 0), min(x + half, width - 1)
            ref = reference[rows, first:last + 1]
            best = -np.inf
            for d in range(max_disparity + 1):
                if first - d < 0:
                    continue
                tgt = target[rows, first - d:last - d + 1]
                if ref.var() < VARIANCE_EPSILON or tgt.var() < VARIANCE_EPSILON:
                    continue
                score = ((ref - ref.mean()) * (tgt - tgt.mean())).mean() / (ref.std() * tgt.std())
                if score > best:
                    best = score
                    result[y, x] = d
    full_search = np.maximum(np.arange(width) - half, 0) >= max_disparity
    result[:, ~full_search] = INVALID_DISPARITY
    return result


def test_recovers_known_shift(shifted_pair, precalc):
    left, right = shifted_pair(height=32, width=64, shift=3)
    disparity = ZNCCEngine(9, 8).compute_disparity(precalc(left), precalc(right))

    assert disparity.dtype == np.int32
    assert not disparity.flags.writeable
    # Clamped window first column max(x - 4, 0) must be >= 8 for a full search
    assert np.all(disparity[:, 12:] == 3)
    assert np.all(disparity[:, :12] == INVALID_DISPARITY)


def test_inverted_search_recovers_shift_from_right(shifted_pair, precalc):
    left, right = shifted_pair(height=32, width=64, shift=3)
    disparity = ZNCCEngine(9, 8).compute_disparity(precalc(right), precalc(left), invert=True)

    # Last window column min(x + 4, 63) must be <= 55
    assert np.all(disparity[:, :52] == 3)
    assert np.all(disparity[:, 52:] == INVALID_DISPARITY)


def test_passes_are_mirror_consistent(shifted_pair, precalc):
    left, right = shifted_pair(height=32, width=64, shift=3)
    engine = ZNCCEngine(9, 8)
    left_map = engine.compute_disparity(precalc(left), precalc(right))
    right_map = engine.compute_disparity(precalc(right), precalc(left), invert=True)

    columns = np.arange(12, 55)
    for y in range(left_map.shape[0]):
        matched = columns - left_map[y, columns]
        np.testing.assert_array_equal(right_map[y, matched], left_map[y, columns])


def test_matches_brute_force_search(rng, precalc):
    reference = rng.uniform(0, 255, size=(10, 18))
    target = rng.uniform(0, 255, size=(10, 18))

    disparity = ZNCCEngine(5, 4).compute_disparity(precalc(reference, 5), precalc(target, 5))

    np.testing.assert_array_equal(disparity, brute_force_disparity(reference, target, 5, 4))


def test_flat_reference_is_invalid_without_numeric_errors(rng, precalc):
    flat = np.full((12, 20), 50.0)
    textured = rng.uniform(0, 255, size=(12, 20))

    with np.errstate(all='raise'):
        disparity = ZNCCEngine(5, 4).compute_disparity(precalc(flat, 5), precalc(textured, 5))

    assert np.all(disparity == INVALID_DISPARITY)


def test_flat_target_windows_are_never_selected(rng, precalc):
    reference = rng.uniform(0, 255, size=(12, 24))
    target = reference.copy()
    target[:, :10] = 80.0
    window_size, max_disparity = 5, 6

    disparity = ZNCCEngine(window_size, max_disparity).compute_disparity(
        precalc(reference, window_size), precalc(target, window_size))

    half = window_size // 2
    for y, x in zip(*np.nonzero(disparity != INVALID_DISPARITY)):
        d = disparity[y, x]
        first, last = max(x - half, 0), min(x + half, 23)
        window = target[max(y - half, 0):y + half + 1, first - d:last - d + 1]
        assert window.var() >= VARIANCE_EPSILON


def test_zero_max_disparity_gives_zero_map(rng, precalc):
    reference = rng.uniform(0, 255, size=(8, 12))
    disparity = ZNCCEngine(3, 0).compute_disparity(precalc(reference, 3), precalc(reference, 3))

    assert np.all(disparity == 0)


def test_rejects_mismatched_grids(rng, precalc):
    engine = ZNCCEngine(3, 2)
    with pytest.raises(InvalidInput):
        engine.compute_disparity(precalc(rng.uniform(size=(8, 12)), 3), precalc(rng.uniform(size=(8, 10)), 3))


def test_rejects_statistics_of_other_window(rng, precalc):
    grid = rng.uniform(size=(8, 12))
    with pytest.raises(InvalidInput):
        ZNCCEngine(5, 2).compute_disparity(precalc(grid, 3), precalc(grid, 3))


def test_rejects_search_range_wider_than_image(rng, precalc):
    grid = rng.uniform(size=(8, 6))
    with pytest.raises(InvalidInput):
        ZNCCEngine(3, 7).compute_disparity(precalc(grid, 3), precalc(grid, 3))


def test_truncated_search_columns(rng, precalc):
    engine = ZNCCEngine(5, 3)

    np.testing.assert_array_equal(np.nonzero(~engine.full_search_columns(10))[0], [0, 1, 2, 3, 4])
    np.testing.assert_array_equal(np.nonzero(~engine.full_search_columns(10, invert=True))[0], [5, 6, 7, 8, 9])

    grid = rng.uniform(0, 255, size=(6, 10))
    disparity = engine.compute_disparity(precalc(grid, 5), precalc(grid, 5))
    assert np.all(disparity[:, :5] == INVALID_DISPARITY)
    assert np.all(disparity[:, 5:] == 0)
