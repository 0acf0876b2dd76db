"""
Execution infrastructure for the disparity pipeline.

Contains the compute backend that runs grid operations and the scoped
stage reporter used for progress and timing output.
"""

from .backend import ComputeBackend
from .reporter import StageReporter

__all__ = ['ComputeBackend', 'StageReporter']
