"""
Base classes for disparity processing modules.

This package provides the base classes for file management and processing
orchestration.
"""

from .file_manager import BaseFileManager
from .processor import BaseProcessor

__all__ = ['BaseFileManager', 'BaseProcessor']
