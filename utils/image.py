"""
Image codec and chart helpers.

decode_image()/encode_image() are the only places where image files are
read or written; the pipeline itself works on RGBA pixel grids in memory.
"""

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from mpl_toolkits.axes_grid1 import make_axes_locatable
import cv2
import numpy as np
from pathlib import Path
from typing import Tuple, Union

from src_zncc_disparity.errors import DecodeError, EncodeError
from utils.logger_config import get_logger

logger = get_logger(__name__)

# Decoder status codes
DECODE_FILE_NOT_FOUND = 1
DECODE_UNREADABLE = 2

# Encoder status codes
ENCODE_SHAPE_MISMATCH = 1
ENCODE_UNKNOWN_LAYOUT = 2
ENCODE_WRITE_FAILED = 3

CHANNEL_LAYOUTS = {'grey': 1, 'rgba': 4}


def decode_image(path: Union[str, Path]) -> Tuple[np.ndarray, int, int]:
    """
    Decode an image file into an RGBA pixel grid.

    Args:
        path: Image file path

    Returns:
        Tuple containing:
            - (height, width, 4) uint8 RGBA grid
            - width
            - height

    Raises:
        DecodeError: If the file is missing or cannot be decoded
    """
    path = Path(path)
    if not path.is_file():
        raise DecodeError(DECODE_FILE_NOT_FOUND, str(path), "file not found")

    image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise DecodeError(DECODE_UNREADABLE, str(path), "unreadable or unsupported image")

    if image.dtype != np.uint8:
        # 16-bit PNGs are reduced to 8 bits per channel
        image = (image / 257).astype(np.uint8) if image.dtype == np.uint16 else image.astype(np.uint8)

    if image.ndim == 2:
        pixels = cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    elif image.shape[2] == 3:
        pixels = cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
    elif image.shape[2] == 4:
        pixels = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    else:
        raise DecodeError(DECODE_UNREADABLE, str(path), f"unsupported channel count {image.shape[2]}")

    height, width = pixels.shape[:2]
    logger.info(f"loading '{path}' was successful ({width}x{height})")
    return pixels, width, height


def encode_image(
    path: Union[str, Path],
    grid: np.ndarray,
    width: int,
    height: int,
    channel_layout: str = 'grey'
) -> None:
    """
    Encode a pixel grid into an image file (format chosen by extension).

    Args:
        path: Output file path
        grid: uint8 grid, (height, width) for 'grey' or (height, width, 4) for 'rgba'
        width: Image width
        height: Image height
        channel_layout: 'grey' or 'rgba'

    Raises:
        EncodeError: If the grid does not match the layout or cannot be written
    """
    path = Path(path)
    if channel_layout not in CHANNEL_LAYOUTS:
        raise EncodeError(ENCODE_UNKNOWN_LAYOUT, str(path), f"unknown channel layout '{channel_layout}'")

    grid = np.asarray(grid)
    channels = CHANNEL_LAYOUTS[channel_layout]
    expected = (height, width) if channels == 1 else (height, width, channels)
    if grid.shape != expected:
        raise EncodeError(ENCODE_SHAPE_MISMATCH, str(path),
                          f"grid shape {grid.shape} does not match {expected}")

    image = grid.astype(np.uint8)
    if channels == 4:
        image = cv2.cvtColor(image, cv2.COLOR_RGBA2BGRA)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        written = cv2.imwrite(str(path), image)
    except cv2.error as e:
        raise EncodeError(ENCODE_WRITE_FAILED, str(path), str(e)) from e
    if not written:
        raise EncodeError(ENCODE_WRITE_FAILED, str(path), "image writer failed")

    logger.info(f"successfully saved file: {path}")


class ImageChartGenerator:
    """Renders disparity maps as matplotlib charts with a color bar."""

    def __init__(self, img, xlabel: str, ylabel: str,
                 save_path_result: str, range_max: int = None, range_min: int = None):
        self.fig = None
        self.ax = None
        self.figsize = (12, 8)
        self.dpi = 100
        self.pad_inches = 0.3
        self.fontsize = 14

        self.img = img
        self.xlabel = xlabel
        self.ylabel = ylabel
        self.min = 0 if range_min is None else range_min
        if range_max is not None:
            self.max = range_max
        else:
            self.max = max(float(np.max(img)), 1.0) if np.size(img) else 1.0

        self.save_path_result = save_path_result
        self.photo_name = None

    def create_disparity(self, photo_name=None) -> Path:
        """Save the disparity chart as <save_path_result>/<photo_name>.jpg and return its path."""
        self.photo_name = "disparity" if photo_name is None else photo_name
        self._setup_figure()
        cmap_ = plt.get_cmap("jet_r").copy()
        cmap_.set_bad(color="black")

        # Pixels without disparity information are masked out
        masked = np.ma.masked_less_equal(np.asarray(self.img, dtype=np.float32), 0)
        im1 = self.ax.imshow(masked, cmap=cmap_, vmin=self.min, vmax=self.max)

        divider = make_axes_locatable(self.ax)
        cax = divider.append_axes("right", size="5%", pad=self.pad_inches)
        cbar = self.fig.colorbar(im1, cax=cax)
        cbar.ax.tick_params(labelsize=self.fontsize)

        output_path = Path(self.save_path_result) / f"{self.photo_name}.jpg"
        self.fig.savefig(output_path, bbox_inches='tight', pad_inches=self.pad_inches)
        plt.close(self.fig)
        return output_path

    def _setup_figure(self):
        self.fig, self.ax = plt.subplots(1, 1, figsize=self.figsize, dpi=self.dpi)
        self.ax.set_xlabel(self.xlabel, fontsize=self.fontsize)
        self.ax.set_ylabel(self.ylabel, fontsize=self.fontsize)
        self.ax.tick_params(axis='both', which='major', labelsize=self.fontsize)
