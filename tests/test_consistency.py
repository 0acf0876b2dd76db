import numpy as np
import pytest

from src_zncc_disparity.disparity.consistency import ConsistencyChecker
from src_zncc_disparity.disparity.grid import INVALID_DISPARITY
from src_zncc_disparity.errors import InvalidInput

I = INVALID_DISPARITY


def test_keeps_consistent_pixels_and_rejects_others():
    left = np.array([[0, 1, 2, 2, 5]], dtype=np.int32)
    right = np.array([[0, 1, 4, 2, I]], dtype=np.int32)

    checked = ConsistencyChecker(threshold=1).check(left, right)

    # x=0: d=0 -> dR(0)=0 kept; x=1: dR(0)=0 kept; x=2: dR(0)=0 rejected;
    # x=3: dR(1)=1 kept; x=4: x-d=-1 out of bounds
    np.testing.assert_array_equal(checked, [[0, 1, I, 2, I]])
    assert not checked.flags.writeable


def test_invalid_counterpart_is_rejected():
    left = np.array([[0, 0, 1]], dtype=np.int32)
    right = np.array([[0, I, 0]], dtype=np.int32)

    checked = ConsistencyChecker(threshold=8).check(left, right)

    np.testing.assert_array_equal(checked, [[0, I, I]])


def test_invalid_left_pixels_stay_invalid():
    left = np.array([[I, I]], dtype=np.int32)
    right = np.zeros((1, 2), dtype=np.int32)

    checked = ConsistencyChecker(threshold=8).check(left, right)

    assert np.all(checked == I)


def test_rejections_grow_as_threshold_shrinks(rng):
    left = rng.integers(-1, 9, size=(20, 30)).astype(np.int32)
    right = rng.integers(-1, 9, size=(20, 30)).astype(np.int32)

    rejected = []
    for threshold in range(8, -1, -1):
        checker = ConsistencyChecker(threshold)
        checked = checker.check(left, right)
        assert checker.last_rejected == np.count_nonzero(checked == I)
        rejected.append(checker.last_rejected)

    assert rejected == sorted(rejected)


def test_rejects_mismatched_maps():
    with pytest.raises(InvalidInput):
        ConsistencyChecker(1).check(np.zeros((2, 3), np.int32), np.zeros((2, 4), np.int32))


def test_negative_threshold_is_rejected():
    with pytest.raises(InvalidInput):
        ConsistencyChecker(-1)
