"""
Base processor class for disparity processing modules.

This module provides the base class that walks single pairs or batch
'set_*' folders and hands every stereo pair to the subclass pipeline.
"""

import datetime
from pathlib import Path
from typing import Dict, Any, List
from abc import ABC, abstractmethod

from utils.file_operations import PathManager
from utils.logger_config import get_logger


class BaseProcessor(ABC):
    """
    Base class for stereo processing operations.

    Provides common functionality for:
    - Configuration management
    - Batch input discovery
    - Processing context bookkeeping
    - Error logging

    A failing pair aborts the whole run: its error is logged and re-raised.
    """

    def __init__(self, config, processing_type: str):
        """
        Initialize base processor.

        Args:
            config: Configuration object with processing parameters
            processing_type: Type of processing (e.g. 'disparity')
        """
        self.config = config
        self.processing_type = processing_type
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")

        self.current_pair_info = {}
        self.processed_pairs: List[Dict[str, Any]] = []

        self.input_folder = None
        self.output_folder = Path(self.config.save_path_result)
        self._setup_input_folder()

        self.logger.info(f"{self.__class__.__name__} initialized for {processing_type} processing")
        self.logger.info(f"  Output folder: {self.output_folder}")

    def process_all_sets(self) -> None:
        """
        Process every pair folder of every 'set_*' folder in the input directory.

        Raises:
            ValueError: If the input structure is invalid
        """
        self.logger.info(f"Starting to process all image sets for {self.processing_type}")

        set_folders = self._validate_input_structure()
        for set_folder in set_folders:
            self._process_set(set_folder)

        self.logger.info(f"All image sets processed successfully for {self.processing_type}")

    def _validate_input_structure(self) -> List[Path]:
        if not self.input_folder:
            raise ValueError("Input folder not configured")
        return PathManager.validate_input_structure(self.input_folder)

    def _process_set(self, set_folder: Path) -> None:
        set_name = set_folder.name
        self.logger.info(f"Processing set: {set_name}")

        pair_folders = sorted(p for p in set_folder.iterdir() if p.is_dir())
        if not pair_folders:
            self.logger.warning(f"No pair directories found in {set_name}")
            return

        for pair_folder in pair_folders:
            self._process_pair_folder(set_name, pair_folder)

        self.logger.info(f"Set {set_name} processed successfully")

    def _process_pair_folder(self, set_name: str, pair_folder: Path) -> None:
        pair_name = pair_folder.name
        self.logger.info(f"Processing image pair: {set_name}/{pair_name}")
        self._setup_processing_context(pair_name, set_name, str(pair_folder))

        try:
            results = self._execute_processing_pipeline(pair_folder)
        except Exception as e:
            self.logger.error(f"Error processing {set_name}/{pair_name}: {e}")
            raise

        self.processed_pairs.append({**self.current_pair_info, 'results': results})
        self.logger.info(f"Successfully processed {set_name}/{pair_name}")

    def _setup_processing_context(self, pair_name: str, set_name: str, source: str) -> None:
        self.current_pair_info = {
            'set_name': set_name,
            'pair_name': pair_name,
            'source': source,
            'timestamp': datetime.datetime.now().isoformat(),
            'processing_type': self.processing_type
        }

    def get_processing_info(self) -> Dict[str, Any]:
        """Information about the current processing setup."""
        return {
            'processing_type': self.processing_type,
            'input_folder': str(self.input_folder) if self.input_folder else None,
            'output_folder': str(self.output_folder),
            'current_pair_info': self.current_pair_info,
            'processed_pairs': len(self.processed_pairs),
            'configuration': self._get_processor_specific_config()
        }

    @abstractmethod
    def _setup_input_folder(self) -> None:
        """Setup input folder path specific to processor type."""

    @abstractmethod
    def _execute_processing_pipeline(self, pair_folder: Path) -> Dict[str, Any]:
        """Run the processing pipeline for one batch pair folder."""

    @abstractmethod
    def _get_processor_specific_config(self) -> Dict[str, Any]:
        """Processor-specific configuration parameters."""
