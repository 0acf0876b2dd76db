"""
Disparity map post-processing utilities.

This module converts final disparity maps into the 8-bit output format and
provides quality assessment and visualization helpers.
"""

import cv2
import numpy as np
from typing import Dict, Any, Optional

from utils.logger_config import get_logger
from .grid import INVALID_DISPARITY

logger = get_logger(__name__)

# Output value for pixels without disparity information
NO_DISPARITY_VALUE = 0


class DisparityProcessor:
    """Handles conversion and analysis of disparity maps."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def to_output_image(self, disparity: np.ndarray, max_disparity: int) -> np.ndarray:
        """
        Convert a disparity map into the 8-bit grayscale output image.

        Each byte equals the disparity value; INVALID pixels become 0.

        Args:
            disparity: Filled disparity map
            max_disparity: Upper bound of the search range

        Returns:
            np.ndarray: uint8 grid of the same shape
        """
        if disparity is None:
            raise ValueError("Disparity map cannot be None")

        upper = min(int(max_disparity), np.iinfo(np.uint8).max)
        values = np.clip(disparity, 0, upper)
        output = np.where(disparity == INVALID_DISPARITY, NO_DISPARITY_VALUE, values)
        return output.astype(np.uint8)

    def create_disparity_colormap(
        self,
        disparity: np.ndarray,
        colormap: int = cv2.COLORMAP_JET
    ) -> np.ndarray:
        """
        Create color-mapped disparity image for visualization.

        Args:
            disparity: Disparity map (INVALID pixels are drawn black)
            colormap: OpenCV colormap type

        Returns:
            np.ndarray: Color-mapped disparity image (BGR format)
        """
        invalid = disparity == INVALID_DISPARITY
        values = np.where(invalid, 0, disparity).astype(np.float32)

        disp_norm = cv2.normalize(
            values, None,
            alpha=0, beta=255,
            norm_type=cv2.NORM_MINMAX,
            dtype=cv2.CV_8U
        )
        disp_color = cv2.applyColorMap(disp_norm, colormap)
        disp_color[invalid] = 0
        return disp_color

    def assess_disparity_quality(
        self,
        disparity: np.ndarray
    ) -> Dict[str, Any]:
        """
        Assess the quality of a disparity map.

        Args:
            disparity: Disparity map that may contain INVALID_DISPARITY

        Returns:
            Dict[str, Any]: Quality assessment metrics
        """
        valid_mask = disparity != INVALID_DISPARITY
        total_pixels = int(disparity.size)
        valid_pixels = int(np.count_nonzero(valid_mask))

        quality_metrics = {
            'total_pixels': total_pixels,
            'valid_pixels': valid_pixels,
            'invalid_pixels': total_pixels - valid_pixels,
            'validity_ratio': float(valid_pixels / total_pixels) if total_pixels else 0.0,
            'coverage_percentage': float(100 * valid_pixels / total_pixels) if total_pixels else 0.0
        }

        if valid_pixels > 0:
            valid_disparity = disparity[valid_mask]

            quality_metrics.update({
                'disparity_range': {
                    'min': int(valid_disparity.min()),
                    'max': int(valid_disparity.max()),
                    'mean': float(valid_disparity.mean()),
                    'std': float(valid_disparity.std())
                },
                'dynamic_range': int(valid_disparity.max() - valid_disparity.min())
            })

            if quality_metrics['validity_ratio'] > 0.8:
                quality_level = 'excellent'
            elif quality_metrics['validity_ratio'] > 0.6:
                quality_level = 'good'
            elif quality_metrics['validity_ratio'] > 0.4:
                quality_level = 'fair'
            else:
                quality_level = 'poor'

            quality_metrics['quality_level'] = quality_level
        else:
            quality_metrics.update({
                'disparity_range': None,
                'dynamic_range': 0,
                'quality_level': 'failed'
            })

        self.logger.info(f"Disparity quality assessment: "
                         f"{quality_metrics['quality_level']} "
                         f"({quality_metrics['coverage_percentage']:.1f}% coverage)")

        return quality_metrics

    def create_disparity_metadata(
        self,
        result,
        quality_metrics: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Create JSON-ready metadata for a pipeline result.

        Args:
            result: DisparityResult of one run
            quality_metrics: Optional precomputed assessment of the cross-checked map

        Returns:
            Dict[str, Any]: Metadata
        """
        return {
            'disparity_info': {
                'width': result.width,
                'height': result.height,
                'dtype': str(result.output.dtype),
                'processing_version': 'zncc_disparity_v1.0'
            },
            'zncc_parameters': {
                key: (value if isinstance(value, (bool, int, float, str)) else str(value))
                for key, value in result.parameters.items()
            },
            'cross_check_quality': quality_metrics or self.assess_disparity_quality(result.cross_checked),
            'invalid_after_cross_check': result.invalid_after_cross_check,
            'unfilled_pixels': result.unfilled_pixels,
            'stage_timings': [
                {'stage': stage, 'wall_seconds': wall, 'backend_seconds': backend}
                for stage, wall, backend in result.stage_timings
            ]
        }
