"""
ZNCC (zero-mean normalized cross-correlation) block matching engine.

For every reference pixel the engine scores each candidate disparity in
[0, max_disparity] and keeps the best one. Candidates are evaluated one
disparity at a time over the whole grid, so each step is a handful of
box filters rather than a per-pixel loop.
"""

import numpy as np
from typing import Dict, Any

from utils.logger_config import get_logger
from ..errors import InvalidInput
from .grid import (
    DISPARITY_DTYPE,
    INTENSITY_DTYPE,
    INVALID_DISPARITY,
    box_sum,
    publish,
    shift_columns,
    standard_deviation,
    window_column_bounds,
)
from .window_statistics import PrecalcImage, validate_window_size

logger = get_logger(__name__)


class ZNCCEngine:
    """Core ZNCC block matching engine for integer disparity search."""

    def __init__(self, window_size: int = 9, max_disparity: int = 65):
        validate_window_size(window_size)
        if not isinstance(max_disparity, (int, np.integer)) or max_disparity < 0:
            raise InvalidInput(f"max_disparity must be a non-negative integer, got {max_disparity}")

        self.window_size = int(window_size)
        self.max_disparity = int(max_disparity)
        self.logger = get_logger(__name__)

    def compute_disparity(
        self,
        reference: PrecalcImage,
        target: PrecalcImage,
        invert: bool = False
    ) -> np.ndarray:
        """
        Compute the disparity map of `reference` searched over `target`.

        Candidate d compares reference column x with target column x - d,
        or x + d when `invert` is set (right image as reference). The target
        window is the reference pixel's clamped window translated by the
        candidate offset. A candidate is skipped when that window leaves
        the target grid or when either window is flat.

        Columns whose search range is cut off by the grid edge (some
        candidate window would leave the target) are INVALID: the true match
        may lie outside the grid, so the cross check rejects them and the
        occlusion fill repairs them.

        Args:
            reference: Reference intensity grid and its window statistics
            target: Target intensity grid and its window statistics
            invert: Search toward increasing target x instead of decreasing

        Returns:
            np.ndarray: read-only int32 grid with values in [0, max_disparity]
                or INVALID_DISPARITY where every candidate was skipped or the
                search range was truncated

        Raises:
            InvalidInput: If the grids are incompatible with each other or
                with the configured window and disparity range
        """
        self._validate_pair(reference, target)

        height, width = reference.intensity.shape
        ref_intensity = np.asarray(reference.intensity, dtype=INTENSITY_DTYPE)
        target_intensity = np.asarray(target.intensity, dtype=INTENSITY_DTYPE)
        ref_mean = reference.stats.mean
        ref_std = reference.stats.stddev
        counts = reference.stats.count
        first_col, last_col = window_column_bounds(width, self.window_size)

        best_score = np.full((height, width), -np.inf, dtype=INTENSITY_DTYPE)
        best_disparity = np.full((height, width), INVALID_DISPARITY, dtype=DISPARITY_DTYPE)
        direction = 1 if invert else -1

        for disparity in range(self.max_disparity + 1):
            offset = direction * disparity

            # Translated window must stay inside the target grid
            column_ok = (first_col + offset >= 0) & (last_col + offset <= width - 1)
            if not column_ok.any():
                continue

            score = self._score_candidate(
                ref_intensity, ref_mean, ref_std, counts,
                shift_columns(target_intensity, offset), column_ok
            )

            # Strict comparison keeps the smallest disparity on ties
            better = score > best_score
            best_score[better] = score[better]
            best_disparity[better] = disparity

        truncated = ~self.full_search_columns(width, invert)
        best_disparity[:, truncated] = INVALID_DISPARITY
        if truncated.any():
            self.logger.debug(f"{int(truncated.sum())} columns have a truncated search range")

        np.clip(best_disparity, INVALID_DISPARITY, self.max_disparity, out=best_disparity)
        self._log_disparity_statistics(best_disparity, invert)
        return publish(best_disparity)

    def full_search_columns(self, width: int, invert: bool = False) -> np.ndarray:
        """Columns where the translated window of every candidate stays inside the grid."""
        first_col, last_col = window_column_bounds(width, self.window_size)
        if invert:
            return last_col + self.max_disparity <= width - 1
        return first_col - self.max_disparity >= 0

    def _score_candidate(
        self,
        ref_intensity: np.ndarray,
        ref_mean: np.ndarray,
        ref_std: np.ndarray,
        counts: np.ndarray,
        shifted_target: np.ndarray,
        column_ok: np.ndarray
    ) -> np.ndarray:
        """ZNCC score of one candidate disparity for every pixel, -inf where undefined."""
        window = self.window_size
        target_mean = box_sum(shifted_target, window) / counts
        target_mean_sq = box_sum(shifted_target * shifted_target, window) / counts
        target_std = standard_deviation(target_mean, target_mean_sq)

        # (1/N) sum (L - mean_L)(R - mean_R) == E[L R] - mean_L mean_R
        covariance = box_sum(ref_intensity * shifted_target, window) / counts - ref_mean * target_mean

        defined = column_ok[np.newaxis, :] & (ref_std > 0) & (target_std > 0)
        score = np.full(ref_intensity.shape, -np.inf, dtype=INTENSITY_DTYPE)
        denominator = ref_std * target_std
        np.divide(covariance, denominator, out=score, where=defined)
        return score

    def _validate_pair(self, reference: PrecalcImage, target: PrecalcImage) -> None:
        """
        Check that a reference/target pair can be matched with this engine.

        Raises:
            InvalidInput: If the pair is incompatible
        """
        if reference is None or target is None:
            raise InvalidInput("Reference and target images cannot be None")

        if reference.intensity.shape != target.intensity.shape:
            raise InvalidInput(f"Grid shapes don't match: "
                               f"reference={reference.intensity.shape}, "
                               f"target={target.intensity.shape}")

        if reference.stats.window_size != self.window_size:
            raise InvalidInput(f"Statistics were computed with window {reference.stats.window_size}, "
                               f"engine uses {self.window_size}")

        if self.max_disparity > reference.width:
            raise InvalidInput(f"max_disparity ({self.max_disparity}) exceeds "
                               f"reference width ({reference.width})")

    def _log_disparity_statistics(self, disparity: np.ndarray, invert: bool) -> None:
        valid = disparity[disparity != INVALID_DISPARITY]
        label = "right-referenced" if invert else "left-referenced"
        if valid.size > 0:
            self.logger.info(f"Disparity computed ({label}): "
                             f"valid_pixels={valid.size}/{disparity.size} "
                             f"({100 * valid.size / disparity.size:.1f}%), "
                             f"range=[{valid.min()}, {valid.max()}]")
        else:
            self.logger.warning(f"No valid disparity values computed ({label})")

    def get_configuration_info(self) -> Dict[str, Any]:
        """Current engine configuration."""
        return {
            'window_size': self.window_size,
            'max_disparity': self.max_disparity,
            'cost_function': 'ZNCC'
        }
