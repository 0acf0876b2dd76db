"""
Compute execution backend for grid operations.

Every pipeline stage is handed to run_grid_operation() as a callable
producing one output grid. The backend times the call, checks the output
dimensions, publishes the grid read-only and turns any failure into a
ComputeBackendError.
"""

import time
from typing import Callable, Tuple

import cv2
import numpy as np

from utils.logger_config import get_logger
from ..errors import ComputeBackendError, StereoDisparityError

# Status codes reported for failures inside a grid operation
STATUS_OUT_OF_RESOURCES = -5
STATUS_OUT_OF_HOST_MEMORY = -6
STATUS_INVALID_VALUE = -30
STATUS_INVALID_IMAGE_SIZE = -40
STATUS_INVALID_OPERATION = -59


class ComputeBackend:
    """Runs data-parallel grid operations on the host with numpy/OpenCV."""

    def __init__(self, num_threads: int = 0):
        """
        Initialize the backend.

        Args:
            num_threads: Worker threads for OpenCV's parallel loops
                (0 keeps the library default)
        """
        self.logger = get_logger(__name__)
        self.num_threads = int(num_threads)
        if self.num_threads > 0:
            cv2.setNumThreads(self.num_threads)
        self.logger.info(f"Compute backend ready: OpenCV {cv2.__version__}, "
                         f"threads={cv2.getNumThreads()}")

    def run_grid_operation(
        self,
        name: str,
        operation: Callable[[], np.ndarray],
        output_shape: Tuple[int, int]
    ) -> Tuple[np.ndarray, float]:
        """
        Execute one grid operation.

        Args:
            name: Operation name used in diagnostics
            operation: Callable producing the output grid; its input grids
                are bound beforehand
            output_shape: Expected (height, width) of the output grid

        Returns:
            Tuple containing:
                - The read-only output grid
                - Execution time in seconds

        Raises:
            ComputeBackendError: If the operation fails or produces a grid
                of the wrong size
        """
        start = time.perf_counter()
        try:
            grid = operation()
        except StereoDisparityError:
            # Already a diagnosed pipeline error
            raise
        except MemoryError as error:
            raise ComputeBackendError(STATUS_OUT_OF_HOST_MEMORY, name, str(error)) from error
        except (ValueError, TypeError) as error:
            raise ComputeBackendError(STATUS_INVALID_VALUE, name, str(error)) from error
        except cv2.error as error:
            raise ComputeBackendError(STATUS_OUT_OF_RESOURCES, name, str(error)) from error
        except (ArithmeticError, IndexError, RuntimeError) as error:
            raise ComputeBackendError(STATUS_INVALID_OPERATION, name, str(error)) from error
        duration = time.perf_counter() - start

        if not isinstance(grid, np.ndarray):
            raise ComputeBackendError(STATUS_INVALID_OPERATION, name,
                                      f"operation returned {type(grid).__name__}, not a grid")
        if grid.shape[:2] != tuple(output_shape):
            raise ComputeBackendError(STATUS_INVALID_IMAGE_SIZE, name,
                                      f"expected {tuple(output_shape)}, got {grid.shape[:2]}")

        grid.flags.writeable = False
        self.logger.debug(f"Compute process: {name} finished in: {duration * 1e3:.2f}ms")
        return grid, duration
