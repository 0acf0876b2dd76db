"""
Windowed mean and standard deviation precomputation.

Statistics are taken over the clamped window: the WINDOW x WINDOW square
centered on a pixel, intersected with the grid. Border pixels therefore use
fewer cells instead of zero padding.
"""

from dataclasses import dataclass

import numpy as np

from utils.logger_config import get_logger
from ..errors import InvalidInput
from .grid import INTENSITY_DTYPE, box_sum, publish, standard_deviation, window_counts

logger = get_logger(__name__)


@dataclass(frozen=True)
class WindowStats:
    """Per-pixel statistics of one intensity grid."""

    mean: np.ndarray
    stddev: np.ndarray
    count: np.ndarray
    window_size: int

    @property
    def shape(self):
        return self.mean.shape


@dataclass(frozen=True)
class PrecalcImage:
    """A downscaled intensity grid together with its window statistics."""

    intensity: np.ndarray
    stats: WindowStats

    @property
    def width(self) -> int:
        return self.intensity.shape[1]

    @property
    def height(self) -> int:
        return self.intensity.shape[0]


class WindowStatistics:
    """Computes clamped-window mean and standard deviation grids."""

    def __init__(self, window_size: int = 9):
        validate_window_size(window_size)
        self.window_size = int(window_size)
        self.logger = get_logger(__name__)

    def compute_mean(self, intensity: np.ndarray) -> np.ndarray:
        """Mean grid of the intensity grid."""
        intensity = self._as_intensity(intensity)
        counts = window_counts(intensity.shape, self.window_size)
        return publish(box_sum(intensity, self.window_size) / counts)

    def compute_stddev(self, intensity: np.ndarray, mean: np.ndarray) -> np.ndarray:
        """Standard deviation grid, given the mean grid of the same intensity grid."""
        intensity = self._as_intensity(intensity)
        if mean.shape != intensity.shape:
            raise InvalidInput(f"Mean grid {mean.shape} does not match intensity {intensity.shape}")
        counts = window_counts(intensity.shape, self.window_size)
        mean_of_squares = box_sum(intensity * intensity, self.window_size) / counts
        return publish(standard_deviation(np.asarray(mean, dtype=INTENSITY_DTYPE), mean_of_squares))

    def compute(self, intensity: np.ndarray) -> WindowStats:
        """Mean, standard deviation and window cell count of every pixel."""
        mean = self.compute_mean(intensity)
        stddev = self.compute_stddev(intensity, mean)
        counts = publish(window_counts(mean.shape, self.window_size))

        flat_pixels = int(np.count_nonzero(stddev == 0))
        if flat_pixels:
            self.logger.debug(f"{flat_pixels} pixels have a zero-variance window")
        return WindowStats(mean=mean, stddev=stddev, count=counts, window_size=self.window_size)

    @staticmethod
    def _as_intensity(intensity: np.ndarray) -> np.ndarray:
        intensity = np.asarray(intensity, dtype=INTENSITY_DTYPE)
        if intensity.ndim != 2 or intensity.size == 0:
            raise InvalidInput(f"Intensity grid must be a non-empty 2D array, got {intensity.shape}")
        return intensity


def validate_window_size(window_size: int) -> None:
    """Raise InvalidInput unless window_size is a positive odd integer."""
    if not isinstance(window_size, (int, np.integer)) or window_size <= 0 or window_size % 2 == 0:
        raise InvalidInput(f"window_size must be positive and odd, got {window_size}")
