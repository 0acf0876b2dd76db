"""
File operation utilities for the disparity toolkit.

This module provides path management for result folders and batch inputs,
and structured saving of arrays, tables and JSON metadata.
"""

import json
import numpy as np
import pandas as pd
from typing import Dict, Any, List
from pathlib import Path
import shutil

from utils.logger_config import get_logger

logger = get_logger(__name__)


class PathManager:
    """Manages paths and directory operations."""

    @staticmethod
    def ensure_directory_exists(path: Path, clear_if_exists: bool = False) -> Path:
        """
        Ensure directory exists, optionally clearing it if it already exists.

        Args:
            path: Directory path to create
            clear_if_exists: Whether to clear directory if it already exists

        Returns:
            Path: The created/validated directory path
        """
        path = Path(path)
        if clear_if_exists and path.exists():
            shutil.rmtree(path)

        path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Ensured directory exists: {path}")
        return path

    @staticmethod
    def create_numbered_directory(base_path: Path, folder_name: str) -> Path:
        """
        Create base_path/folder_name, or folder_name(1), folder_name(2), ...
        when it already exists, so earlier results are never overwritten.
        """
        base_path = Path(base_path)
        new_path = base_path / folder_name
        counter = 1
        while new_path.exists():
            new_path = base_path / f"{folder_name}({counter})"
            counter += 1
        new_path.mkdir(parents=True)
        return new_path

    @staticmethod
    def validate_input_structure(input_path: Path) -> List[Path]:
        """
        Validate and return list of set directories in input path.

        Args:
            input_path: Input directory path

        Returns:
            List[Path]: List of valid set directories

        Raises:
            ValueError: If no valid set directories found
        """
        input_path = Path(input_path)
        if not input_path.exists():
            raise ValueError(f"Input path does not exist: {input_path}")

        set_folders = [p for p in input_path.glob('set_*') if p.is_dir()]

        if not set_folders:
            raise ValueError(f"No 'set_*' folders found in {input_path}")

        logger.info(f"Found {len(set_folders)} set folders in {input_path}")
        return sorted(set_folders)


class DataSaver:
    """Handles saving of various data types in standard formats."""

    @staticmethod
    def save_numpy_array(
        array: np.ndarray,
        output_path: Path,
        filename: str,
        format_type: str = 'npy'
    ) -> bool:
        """
        Save numpy array in specified format.

        Args:
            array: Numpy array to save
            output_path: Output directory
            filename: Output filename (without extension)
            format_type: Format ('npy', 'csv')

        Returns:
            bool: True if successful
        """
        output_path = Path(output_path)
        try:
            output_path.mkdir(parents=True, exist_ok=True)

            if format_type == 'npy':
                full_path = output_path / f"{filename}.npy"
                np.save(full_path, array)
            elif format_type == 'csv':
                full_path = output_path / f"{filename}.csv"
                np.savetxt(full_path, array, delimiter=',', fmt='%d')
            else:
                raise ValueError(f"Unsupported format: {format_type}")

            logger.debug(f"Saved array to {full_path}")
            return True

        except (OSError, ValueError) as e:
            logger.error(f"Failed to save array {filename}: {e}")
            return False

    @staticmethod
    def save_dataframe(
        frame: pd.DataFrame,
        output_path: Path,
        filename: str
    ) -> bool:
        """Save a DataFrame as CSV without its index."""
        output_path = Path(output_path)
        try:
            output_path.mkdir(parents=True, exist_ok=True)
            full_path = output_path / f"{filename}.csv"
            frame.to_csv(full_path, index=False)
            logger.debug(f"Saved table to {full_path}")
            return True

        except OSError as e:
            logger.error(f"Failed to save table {filename}: {e}")
            return False

    @staticmethod
    def save_json_data(
        data: Dict[str, Any],
        output_path: Path,
        filename: str,
        indent: int = 2
    ) -> bool:
        """
        Save dictionary data as JSON.

        Args:
            data: Data to save
            output_path: Output directory
            filename: Output filename (without extension)
            indent: JSON indentation

        Returns:
            bool: True if successful
        """
        output_path = Path(output_path)
        try:
            output_path.mkdir(parents=True, exist_ok=True)
            full_path = output_path / f"{filename}.json"

            with open(full_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=indent)

            logger.debug(f"Saved JSON to {full_path}")
            return True

        except (OSError, TypeError) as e:
            logger.error(f"Failed to save JSON {filename}: {e}")
            return False
