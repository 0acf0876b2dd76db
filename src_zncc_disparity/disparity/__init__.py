"""
Disparity calculation module for stereo vision processing.

This module contains the stages of the ZNCC disparity pipeline (downscaling,
window statistics, matching, cross check, occlusion fill), their
orchestration, and parameter, post-processing and file utilities.
"""

from .grid import INVALID_DISPARITY
from .downscaler import GrayscaleDownscaler
from .window_statistics import WindowStatistics, WindowStats, PrecalcImage
from .zncc_engine import ZNCCEngine
from .consistency import ConsistencyChecker
from .occlusion import OcclusionFiller
from .parameter_calculator import DisparityParameterCalculator
from .disparity_processor import DisparityProcessor
from .pipeline import StereoDisparityPipeline, DisparityResult
from .file_manager import DisparityFileManager

__all__ = [
    'INVALID_DISPARITY',
    'GrayscaleDownscaler',
    'WindowStatistics',
    'WindowStats',
    'PrecalcImage',
    'ZNCCEngine',
    'ConsistencyChecker',
    'OcclusionFiller',
    'DisparityParameterCalculator',
    'DisparityProcessor',
    'StereoDisparityPipeline',
    'DisparityResult',
    'DisparityFileManager'
]
