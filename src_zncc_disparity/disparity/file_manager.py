"""
File management utilities for disparity processing.

This module handles file operations specific to disparity processing:
locating stereo pairs, writing the final disparity image and dumping
intermediate grids, visualizations and metadata.
"""

import cv2
import numpy as np
from typing import Dict, List, Optional, Tuple
from pathlib import Path

from utils.file_operations import DataSaver
from utils.image import ImageChartGenerator, encode_image
from ..base import BaseFileManager
from .disparity_processor import DisparityProcessor
from .grid import INVALID_DISPARITY

IMAGE_SUFFIXES = ('.png', '.jpg', '.jpeg', '.bmp', '.tif', '.tiff')
LEFT_IMAGE_PATTERNS = ('left*', 'im0.*')
RIGHT_IMAGE_PATTERNS = ('right*', 'im1.*')


class DisparityFileManager(BaseFileManager):
    """Manages file operations for disparity processing."""

    def __init__(self, base_output_path: Path):
        super().__init__(base_output_path, self.get_folder_name())
        self.disparity_processor = DisparityProcessor()

    def get_folder_name(self) -> str:
        return "intermediate"

    def find_stereo_pair(self, pair_folder: Path) -> Optional[Tuple[Path, Path]]:
        """
        Find the left/right images of a batch pair folder.

        Left images match 'left*' or 'im0.*', right images 'right*' or 'im1.*'.

        Returns:
            Tuple[Path, Path] or None: (left, right) paths, None if either is missing
        """
        left = self._find_image(pair_folder, LEFT_IMAGE_PATTERNS)
        right = self._find_image(pair_folder, RIGHT_IMAGE_PATTERNS)
        if left is None or right is None:
            self.logger.warning(f"Stereo pair images not found in {pair_folder}")
            return None
        return left, right

    @staticmethod
    def _find_image(folder: Path, patterns: Tuple[str, ...]) -> Optional[Path]:
        for pattern in patterns:
            matches = sorted(p for p in Path(folder).glob(pattern)
                             if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES)
            if matches:
                return matches[0]
        return None

    def save_disparity_image(self, output: np.ndarray, output_file: Path) -> Path:
        """
        Write the final 8-bit grayscale disparity image.

        Raises:
            EncodeError: If the image cannot be written
        """
        height, width = output.shape
        encode_image(output_file, output, width, height, 'grey')
        self.record_operation(True)
        return Path(output_file)

    def save_disparity_maps(
        self,
        maps: Dict[str, np.ndarray],
        output_path: Path,
        pair_name: str,
        save_formats: List[str] = ['npy']
    ) -> Dict[str, bool]:
        """
        Save raw disparity maps (INVALID kept as -1) in the given formats.

        Args:
            maps: Map name -> disparity grid
            output_path: Output directory
            pair_name: Name of the image pair
            save_formats: Formats to save ('npy', 'csv')

        Returns:
            Dict[str, bool]: Save result for every map and format
        """
        results = {}
        for map_name, disparity in maps.items():
            for format_type in save_formats:
                success = DataSaver.save_numpy_array(
                    disparity, output_path, f'{map_name}_{pair_name}', format_type
                )
                self.record_operation(success)
                results[f'{map_name}_{format_type}'] = success
        return results

    def save_disparity_colormap(self, disparity: np.ndarray, output_path: Path, pair_name: str) -> bool:
        """Save a false-color rendering of a disparity map."""
        try:
            color = self.disparity_processor.create_disparity_colormap(disparity)
            full_path = Path(output_path) / f'disparity_color_{pair_name}.png'
            success = bool(cv2.imwrite(str(full_path), color))
        except cv2.error as e:
            self.logger.error(f"Failed to save disparity colormap: {e}")
            success = False
        self.record_operation(success)
        return success

    def save_disparity_visualization(
        self,
        disparity: np.ndarray,
        output_path: Path,
        pair_name: str,
        max_disparity: int
    ) -> bool:
        """Save a matplotlib chart of the disparity map with a color bar."""
        try:
            values = np.where(disparity == INVALID_DISPARITY, 0, disparity)
            painter = ImageChartGenerator(
                img=values,
                xlabel="pixel",
                ylabel="pixel",
                save_path_result=str(output_path),
                range_max=max(int(max_disparity), 1),
                range_min=0
            )
            painter.create_disparity(photo_name=f"disparity_chart_{pair_name}")
            success = True
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to save disparity visualization: {e}")
            success = False
        self.record_operation(success)
        return success

    def save_stage_timings(self, timings, output_path: Path, pair_name: str) -> bool:
        """Save the per-stage timing table as CSV."""
        success = DataSaver.save_dataframe(timings, output_path, f'stage_timings_{pair_name}')
        self.record_operation(success)
        return success

    def save_intermediate_results(self, result, output_path: Path, pair_name: str, timings) -> Dict[str, bool]:
        """
        Dump every intermediate product of a pipeline run.

        Args:
            result: DisparityResult of the run
            output_path: Intermediate output directory
            pair_name: Name of the image pair
            timings: Stage timing DataFrame from the reporter

        Returns:
            Dict[str, bool]: Save result per operation
        """
        maps = {
            'disparity_left': result.left_disparity,
            'disparity_right': result.right_disparity,
            'disparity_cross_checked': result.cross_checked,
            'disparity_filled': result.filled
        }
        results = self.save_disparity_maps(maps, output_path, pair_name)
        results['colormap'] = self.save_disparity_colormap(result.filled, output_path, pair_name)
        results['visualization'] = self.save_disparity_visualization(
            result.filled, output_path, pair_name, result.parameters['max_disparity']
        )
        results['stage_timings'] = self.save_stage_timings(timings, output_path, pair_name)

        metadata = self.disparity_processor.create_disparity_metadata(result)
        metadata['file_operations'] = self.get_processing_statistics()
        results['metadata'] = self.save_metadata(
            metadata, output_path, pair_name, filename_prefix="disparity_metadata"
        )

        self.log_save_results(pair_name, results)
        return results
