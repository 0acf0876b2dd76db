"""
Left-right consistency check (cross-check) of two disparity maps.
"""

import numpy as np

from utils.logger_config import get_logger
from ..errors import InvalidInput
from .grid import DISPARITY_DTYPE, INVALID_DISPARITY, publish

logger = get_logger(__name__)


class ConsistencyChecker:
    """Invalidates left-referenced disparities the right-referenced pass disagrees with."""

    def __init__(self, threshold: int = 8):
        if threshold < 0:
            raise InvalidInput(f"cross check threshold must be non-negative, got {threshold}")
        self.threshold = threshold
        self.logger = get_logger(__name__)
        self.last_rejected = 0

    def check(self, left_map: np.ndarray, right_map: np.ndarray) -> np.ndarray:
        """
        Cross-check the left-referenced map against the right-referenced one.

        Pixel (x, y) with disparity d keeps d only when x - d lies inside the
        grid, dR(x - d, y) is valid and |d - dR(x - d, y)| <= threshold.

        Args:
            left_map: Left-referenced disparity map
            right_map: Right-referenced disparity map of the same shape

        Returns:
            np.ndarray: read-only filtered copy of left_map with rejected
                pixels set to INVALID_DISPARITY
        """
        if left_map.shape != right_map.shape:
            raise InvalidInput(f"Disparity map shapes don't match: "
                               f"left={left_map.shape}, right={right_map.shape}")

        height, width = left_map.shape
        left = left_map.astype(np.int64)
        right = right_map.astype(np.int64)

        rows = np.broadcast_to(np.arange(height)[:, np.newaxis], (height, width))
        matched_columns = np.arange(width)[np.newaxis, :] - left

        keep = (left != INVALID_DISPARITY) & (matched_columns >= 0) & (matched_columns < width)

        counterpart = np.full((height, width), INVALID_DISPARITY, dtype=np.int64)
        counterpart[keep] = right[rows[keep], matched_columns[keep]]

        keep &= counterpart != INVALID_DISPARITY
        keep &= np.abs(left - counterpart) <= self.threshold

        filtered = np.where(keep, left, INVALID_DISPARITY).astype(DISPARITY_DTYPE)

        self.last_rejected = int(np.count_nonzero(~keep))
        self.logger.info(f"Cross check marked {self.last_rejected}/{filtered.size} pixels invalid "
                         f"(threshold={self.threshold})")
        return publish(filtered)
