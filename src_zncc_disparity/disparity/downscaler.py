"""
Grayscale downscaling of decoded stereo images.

Turns an RGBA pixel grid into a single-channel intensity grid reduced by an
integer factor in both dimensions (box-filter decimation).
"""

import numpy as np

from utils.logger_config import get_logger
from ..errors import InvalidInput
from .grid import INTENSITY_DTYPE, publish

logger = get_logger(__name__)

# ITU-R BT.601 luma weights, same as cv2.COLOR_RGB2GRAY
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=INTENSITY_DTYPE)


class GrayscaleDownscaler:
    """Converts color pixel grids into downscaled intensity grids."""

    def __init__(self, factor: int = 4):
        if not isinstance(factor, (int, np.integer)) or factor < 1:
            raise InvalidInput(f"downscale factor must be a positive integer, got {factor}")
        self.factor = int(factor)
        self.logger = get_logger(__name__)

    def output_shape(self, pixels: np.ndarray) -> tuple:
        """(height, width) of the grid downscale() produces for the given input."""
        return pixels.shape[0] // self.factor, pixels.shape[1] // self.factor

    def downscale(self, pixels: np.ndarray) -> np.ndarray:
        """
        Average every factor x factor block and convert it to luma.

        Args:
            pixels: (H, W, 4) RGBA grid; (H, W, 3) RGB and (H, W) gray are
                also accepted. Alpha is discarded.

        Returns:
            np.ndarray: read-only float64 grid of shape (H // factor, W // factor)

        Raises:
            InvalidInput: If the grid is smaller than the factor or has an
                unsupported channel layout
        """
        pixels = self._validate_pixels(pixels)
        factor = self.factor
        out_height, out_width = self.output_shape(pixels)
        channels = pixels.shape[2]

        # Trailing rows/columns that do not fill a whole block are dropped
        cropped = pixels[:out_height * factor, :out_width * factor].astype(INTENSITY_DTYPE)
        blocks = cropped.reshape(out_height, factor, out_width, factor, channels)
        averaged = blocks.mean(axis=(1, 3))

        if channels == 1:
            intensity = averaged[:, :, 0]
        else:
            intensity = averaged[:, :, :3] @ LUMA_WEIGHTS

        self.logger.debug(f"Downscaled {pixels.shape[1]}x{pixels.shape[0]} "
                          f"-> {out_width}x{out_height} (factor {factor})")
        return publish(np.ascontiguousarray(intensity, dtype=INTENSITY_DTYPE))

    def _validate_pixels(self, pixels: np.ndarray) -> np.ndarray:
        """Normalize the input to (H, W, C) and check its dimensions."""
        if pixels is None:
            raise InvalidInput("Input pixels cannot be None")

        pixels = np.asarray(pixels)
        if pixels.ndim == 2:
            pixels = pixels[:, :, np.newaxis]
        if pixels.ndim != 3 or pixels.shape[2] not in (1, 3, 4):
            raise InvalidInput(f"Unsupported pixel grid shape: {pixels.shape}")

        height, width = pixels.shape[:2]
        if width < self.factor or height < self.factor:
            raise InvalidInput(
                f"Image {width}x{height} is smaller than the downscale factor {self.factor}"
            )
        return pixels
