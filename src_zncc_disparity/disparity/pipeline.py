"""
Stage orchestration of the ZNCC disparity pipeline.

The pipeline is a strict sequence of barriers: every stage is one call to
the compute backend, and each call returns a fully materialized grid
before the next stage starts.

    pixels L/R -> downscale -> mean -> stddev -> match L->R, match R->L
               -> cross check -> occlusion fill -> 8-bit output
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from utils.logger_config import get_logger
from ..errors import InputDimensionMismatch, InvalidInput
from ..execution import ComputeBackend, StageReporter
from .consistency import ConsistencyChecker
from .disparity_processor import DisparityProcessor
from .downscaler import GrayscaleDownscaler
from .grid import INVALID_DISPARITY, publish, window_counts
from .occlusion import OcclusionFiller
from .parameter_calculator import DEFAULT_PARAMETERS
from .window_statistics import PrecalcImage, WindowStatistics, WindowStats
from .zncc_engine import ZNCCEngine

logger = get_logger(__name__)


@dataclass
class DisparityResult:
    """All grids and counters produced by one pipeline run."""

    left: PrecalcImage
    right: PrecalcImage
    left_disparity: np.ndarray
    right_disparity: np.ndarray
    cross_checked: np.ndarray
    filled: np.ndarray
    output: np.ndarray
    invalid_after_cross_check: int
    unfilled_pixels: int
    parameters: Dict[str, Any]
    stage_timings: List[Tuple[str, float, Optional[float]]] = field(default_factory=list)

    @property
    def width(self) -> int:
        return self.output.shape[1]

    @property
    def height(self) -> int:
        return self.output.shape[0]


class StereoDisparityPipeline:
    """Runs the downscale / statistics / match / cross-check / fill stages."""

    def __init__(
        self,
        parameters: Optional[Dict[str, Any]] = None,
        backend: Optional[ComputeBackend] = None,
        reporter: Optional[StageReporter] = None
    ):
        """
        Initialize the pipeline.

        Args:
            parameters: Parameter set (see DisparityParameterCalculator);
                missing keys fall back to the defaults
            backend: Compute backend executing the stages
            reporter: Progress/timing reporter shared by every run; a fresh
                one is created per run when omitted
        """
        self.parameters = dict(DEFAULT_PARAMETERS)
        self.parameters.update(parameters or {})
        self.backend = backend or ComputeBackend()
        self._shared_reporter = reporter
        self.reporter = reporter or StageReporter()
        self.logger = get_logger(__name__)

        self.downscaler = GrayscaleDownscaler(self.parameters['downscale_factor'])
        self.statistics = WindowStatistics(self.parameters['window_size'])
        self.engine = ZNCCEngine(self.parameters['window_size'], self.parameters['max_disparity'])
        self.checker = ConsistencyChecker(self.parameters['cross_check_threshold'])
        self.filler = OcclusionFiller(self.parameters['occlusion_search_radius'])
        self.disparity_processor = DisparityProcessor()

    def run(self, left_pixels: np.ndarray, right_pixels: np.ndarray) -> DisparityResult:
        """
        Compute the final disparity image of a stereo pair.

        Args:
            left_pixels: Left RGBA pixel grid (H, W, 4)
            right_pixels: Right RGBA pixel grid of the same size

        Returns:
            DisparityResult: Final 8-bit output plus every intermediate grid

        Raises:
            InputDimensionMismatch: If the two images differ in size
            InvalidInput: If the images are too small for the parameters
            ComputeBackendError: If a stage fails in the backend
        """
        if left_pixels is None or right_pixels is None:
            raise InvalidInput("Input images cannot be None")
        left_pixels = np.asarray(left_pixels)
        right_pixels = np.asarray(right_pixels)
        if left_pixels.shape[:2] != right_pixels.shape[:2]:
            raise InputDimensionMismatch(left_pixels.shape[:2], right_pixels.shape[:2])

        self.reporter = self._shared_reporter or StageReporter()
        first_record = len(self.reporter.records)

        left = self._precalc_image(left_pixels, "left")
        right = self._precalc_image(right_pixels, "right")
        shape = left.intensity.shape

        if self.parameters['max_disparity'] > left.width:
            raise InvalidInput(f"max_disparity ({self.parameters['max_disparity']}) exceeds "
                               f"downscaled width ({left.width})")

        left_disparity = self._run_stage(
            "disparity (left reference)",
            lambda: self.engine.compute_disparity(left, right, invert=False),
            shape
        )
        right_disparity = self._run_stage(
            "disparity (right reference)",
            lambda: self.engine.compute_disparity(
                right, left, invert=self.parameters['invert_second_pass']),
            shape
        )
        cross_checked = self._run_stage(
            "cross check",
            lambda: self.checker.check(left_disparity, right_disparity),
            shape
        )

        fill_result = {}

        def fill_occlusions():
            filled_map, unfilled = self.filler.fill(cross_checked)
            fill_result['unfilled'] = unfilled
            return filled_map

        filled = self._run_stage("occlusion fill", fill_occlusions, shape)
        output = self.disparity_processor.to_output_image(filled, self.parameters['max_disparity'])

        invalid_after_check = int(np.count_nonzero(cross_checked == INVALID_DISPARITY))
        self.logger.info(f"Disparity pipeline finished: {shape[1]}x{shape[0]}, "
                         f"{invalid_after_check} pixels failed the cross check, "
                         f"{fill_result['unfilled']} left unfilled")

        return DisparityResult(
            left=left,
            right=right,
            left_disparity=left_disparity,
            right_disparity=right_disparity,
            cross_checked=cross_checked,
            filled=filled,
            output=output,
            invalid_after_cross_check=invalid_after_check,
            unfilled_pixels=fill_result['unfilled'],
            parameters=dict(self.parameters),
            stage_timings=self.reporter.records[first_record:]
        )

    def _precalc_image(self, pixels: np.ndarray, label: str) -> PrecalcImage:
        """Downscale one image and compute its window statistics."""
        shape = self.downscaler.output_shape(np.asarray(pixels))

        intensity = self._run_stage(f"preprocess ({label})",
                                    lambda: self.downscaler.downscale(pixels), shape)
        mean = self._run_stage(f"mean ({label})",
                               lambda: self.statistics.compute_mean(intensity), shape)
        stddev = self._run_stage(f"std dev ({label})",
                                 lambda: self.statistics.compute_stddev(intensity, mean), shape)

        counts = publish(window_counts(intensity.shape, self.statistics.window_size))
        stats = WindowStats(mean=mean, stddev=stddev, count=counts,
                            window_size=self.statistics.window_size)
        return PrecalcImage(intensity=intensity, stats=stats)

    def _run_stage(self, name: str, operation, output_shape) -> np.ndarray:
        """Run one stage through the backend, bracketed by the reporter."""
        self.reporter.start(name)
        try:
            grid, duration = self.backend.run_grid_operation(name, operation, output_shape)
        except Exception as error:
            self.reporter.abort(error)
            raise
        self.reporter.end(backend_seconds=duration)
        return grid
