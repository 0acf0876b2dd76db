"""
Occlusion filling of cross-check rejected pixels.
"""

import numpy as np
from typing import Tuple

from utils.logger_config import get_logger
from ..errors import InvalidInput
from .grid import INVALID_DISPARITY, publish, shift_columns

logger = get_logger(__name__)


class OcclusionFiller:
    """Copies the nearest valid disparity on the same row into invalid pixels."""

    def __init__(self, max_offset: int = 50):
        if max_offset < 0:
            raise InvalidInput(f"occlusion search radius must be non-negative, got {max_offset}")
        self.max_offset = max_offset
        self.logger = get_logger(__name__)

    def fill(self, disparity: np.ndarray) -> Tuple[np.ndarray, int]:
        """
        Fill INVALID pixels from their row neighbours.

        The row is scanned outward one column at a time up to max_offset.
        The first distance with a valid neighbour wins; when both sides are
        valid at that distance the smaller (background) disparity is taken.
        Only values valid in the input are copied, never freshly filled ones.

        Args:
            disparity: Cross-checked disparity map

        Returns:
            Tuple containing:
                - read-only filled map (unreachable pixels stay INVALID)
                - number of pixels left INVALID
        """
        source = np.asarray(disparity)
        filled = source.copy()
        pending = source == INVALID_DISPARITY
        source_valid = ~pending

        for distance in range(1, self.max_offset + 1):
            if not pending.any():
                break

            # Value of the pixel `distance` columns to the left / right
            left_values = shift_columns(source, -distance)
            left_valid = shift_columns(source_valid, -distance)
            right_values = shift_columns(source, distance)
            right_valid = shift_columns(source_valid, distance)

            candidate = np.where(
                left_valid & right_valid,
                np.minimum(left_values, right_values),
                np.where(left_valid, left_values, right_values)
            )
            hit = pending & (left_valid | right_valid)
            filled[hit] = candidate[hit]
            pending &= ~hit

        unfilled = int(np.count_nonzero(pending))
        if unfilled:
            self.logger.warning(f"{unfilled} pixels have no valid disparity within "
                                f"{self.max_offset} columns and stay unfilled")
        self.logger.info(f"Occlusion fill repaired "
                         f"{int(np.count_nonzero(~source_valid)) - unfilled} pixels")
        return publish(filled), unfilled
