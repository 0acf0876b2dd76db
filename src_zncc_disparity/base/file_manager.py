"""
Base file management utilities for disparity processing.

This module provides the base class for result folder layout, metadata
saving and bookkeeping of file operations.
"""

from pathlib import Path
from typing import Dict, Any, Optional
from abc import ABC, abstractmethod

from utils.file_operations import PathManager, DataSaver
from utils.logger_config import get_logger


class BaseFileManager(ABC):
    """
    Base class for file management operations.

    Provides common functionality for:
    - Directory structure setup
    - Metadata saving
    - Save result bookkeeping

    Subclasses implement the module-specific save operations.
    """

    def __init__(self, base_output_path: Path, folder_name: str = ""):
        """
        Initialize base file manager.

        Args:
            base_output_path: Base path for output files
            folder_name: Sub folder holding intermediate results
        """
        self.base_output_path = Path(base_output_path)
        self.folder_name = folder_name
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")

        self.processing_stats = {
            'total_operations': 0,
            'successful_operations': 0,
            'failed_operations': 0
        }

    def setup_output_directories(self, pair_name: str, set_name: Optional[str] = None) -> Dict[str, Path]:
        """
        Set up the output directory structure for one image pair.

        Args:
            pair_name: Name of the image pair
            set_name: Name of the image set (batch mode only)

        Returns:
            Dict[str, Path]: 'output' folder for deliverables and
                'intermediate' folder for dumps
        """
        output_folder = self.base_output_path
        if set_name:
            output_folder = output_folder / set_name / pair_name
        intermediate_folder = output_folder / self.folder_name if self.folder_name else output_folder

        paths = {
            'output': PathManager.ensure_directory_exists(output_folder),
            'intermediate': PathManager.ensure_directory_exists(intermediate_folder)
        }
        self.logger.debug(f"Set up directories for {pair_name}: {paths['output']}")
        return paths

    def save_metadata(self, metadata: Dict[str, Any], output_path: Path,
                      pair_name: str, filename_prefix: str = "metadata") -> bool:
        """
        Save metadata as <filename_prefix>_<pair_name>.json.

        Returns:
            bool: True if successful
        """
        success = DataSaver.save_json_data(metadata, output_path, f'{filename_prefix}_{pair_name}')
        self.record_operation(success)
        return success

    def record_operation(self, success: bool) -> None:
        """Count one file operation in the processing statistics."""
        self.processing_stats['total_operations'] += 1
        if success:
            self.processing_stats['successful_operations'] += 1
        else:
            self.processing_stats['failed_operations'] += 1

    def log_save_results(self, pair_name: str, results: Dict[str, bool]) -> None:
        """Log summary of save operation results."""
        successful = sum(1 for success in results.values() if success)
        self.logger.info(f"Save results for {pair_name}: "
                         f"{successful}/{len(results)} operations successful")

        failed_ops = [op for op, success in results.items() if not success]
        if failed_ops:
            self.logger.warning(f"Failed save operations: {failed_ops}")

    def get_processing_statistics(self) -> Dict[str, Any]:
        """Current processing statistics including the success rate."""
        stats = self.processing_stats.copy()
        if stats['total_operations'] > 0:
            stats['success_rate'] = stats['successful_operations'] / stats['total_operations']
        else:
            stats['success_rate'] = 0
        return stats

    @abstractmethod
    def get_folder_name(self) -> str:
        """Folder name for this processing type."""
