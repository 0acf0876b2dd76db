"""
Grid primitives shared by every stage of the disparity pipeline.

A grid is a 2D numpy array in (height, width) order. Each stage allocates
its own output grid and publishes it read-only, so later stages can read
it freely without copying.
"""

import cv2
import numpy as np
from typing import Tuple

# Marker for pixels without a trusted disparity
INVALID_DISPARITY = -1
DISPARITY_DTYPE = np.int32
INTENSITY_DTYPE = np.float64

# Variances below this are numerical noise of a flat window
VARIANCE_EPSILON = 1e-6


def publish(grid: np.ndarray) -> np.ndarray:
    """Mark a freshly produced grid as read-only and return it."""
    grid.flags.writeable = False
    return grid


def grid_size(grid: np.ndarray) -> Tuple[int, int]:
    """Return (width, height) of a grid."""
    return grid.shape[1], grid.shape[0]


def window_counts(shape: Tuple[int, int], window_size: int) -> np.ndarray:
    """
    Number of cells in the clamped window of every pixel.

    The window is the window_size x window_size square centered on the
    pixel, intersected with the grid.
    """
    height, width = shape
    half = window_size // 2

    def axis_counts(length: int) -> np.ndarray:
        positions = np.arange(length)
        low = np.maximum(positions - half, 0)
        high = np.minimum(positions + half, length - 1)
        return (high - low + 1).astype(INTENSITY_DTYPE)

    return np.outer(axis_counts(height), axis_counts(width))


def window_column_bounds(width: int, window_size: int) -> Tuple[np.ndarray, np.ndarray]:
    """First and last column of the clamped window for every column index."""
    half = window_size // 2
    columns = np.arange(width)
    return np.maximum(columns - half, 0), np.minimum(columns + half, width - 1)


def box_sum(grid: np.ndarray, window_size: int) -> np.ndarray:
    """
    Sum of the grid over the clamped window of every pixel.

    Zero-valued constant borders contribute nothing, so the result is the
    sum over the window intersected with the grid. Running sums keep the
    cost independent of the window size.
    """
    return cv2.boxFilter(
        np.ascontiguousarray(grid, dtype=INTENSITY_DTYPE),
        ddepth=cv2.CV_64F,
        ksize=(window_size, window_size),
        normalize=False,
        borderType=cv2.BORDER_CONSTANT
    )


def shift_columns(grid: np.ndarray, offset: int) -> np.ndarray:
    """
    Return a grid whose column x holds column x + offset of the input.

    Columns that would read outside the input are zero.
    """
    width = grid.shape[1]
    shifted = np.zeros_like(grid)
    if abs(offset) >= width:
        return shifted
    if offset >= 0:
        shifted[:, :width - offset] = grid[:, offset:]
    else:
        shifted[:, -offset:] = grid[:, :width + offset]
    return shifted


def standard_deviation(mean: np.ndarray, mean_of_squares: np.ndarray) -> np.ndarray:
    """sqrt(E[I^2] - E[I]^2), with flat windows snapped to exactly zero."""
    variance = mean_of_squares - mean * mean
    variance[variance < VARIANCE_EPSILON] = 0.0
    return np.sqrt(variance)
