"""
Stereo disparity calculation module.

DisparityCalculator ties configuration, image I/O and the ZNCC pipeline
together, either for the single configured stereo pair or for a batch of
'set_*/<pair>/' folders.
"""

from pathlib import Path
from typing import Dict, Any, Optional

from utils.image import decode_image
from .base import BaseProcessor
from .disparity.file_manager import DisparityFileManager
from .disparity.parameter_calculator import DisparityParameterCalculator
from .disparity.pipeline import DisparityResult, StereoDisparityPipeline
from .execution import ComputeBackend, StageReporter

PARAMETER_KEYS = (
    'window_size', 'downscale_factor', 'max_disparity', 'cross_check_threshold',
    'occlusion_search_radius', 'invert_second_pass',
    'focal_length_px', 'baseline_m', 'min_depth_m'
)


class DisparityCalculator(BaseProcessor):
    """
    Main disparity calculation coordinator class.

    Every stereo pair gets its own pipeline run with a fresh stage reporter;
    the compute backend and parameter set are shared by all pairs of a run.
    """

    def __init__(self, config):
        """
        Initialize disparity calculator with configuration.

        Args:
            config: Configuration object (see config.config.Config)

        Raises:
            ValueError: If the configured parameters are invalid
        """
        super().__init__(config, "disparity")

        self.parameter_calculator = DisparityParameterCalculator()
        self.zncc_parameters = {}
        self._calculate_zncc_parameters()

        self.backend = ComputeBackend(num_threads=getattr(self.config, 'num_threads', 0) or 0)
        self.file_manager = DisparityFileManager(self.output_folder)
        self.save_intermediate = self._flag('save_intermediate')
        self.last_result: Optional[DisparityResult] = None

        self.logger.info("DisparityCalculator initialized")

    def _calculate_zncc_parameters(self) -> None:
        """Build and validate the ZNCC parameter set from the configuration."""
        config_overrides = {key: getattr(self.config, key, None) for key in PARAMETER_KEYS}
        self.zncc_parameters = self.parameter_calculator.calculate_zncc_parameters(config_overrides)

        is_valid, warnings = self.parameter_calculator.validate_parameters(self.zncc_parameters)
        if not is_valid:
            raise ValueError(f"Invalid ZNCC parameters: {warnings}")
        for warning in warnings:
            self.logger.warning(warning)

    def _flag(self, name: str) -> bool:
        value = getattr(self.config, name, False)
        if isinstance(value, str):
            return value.strip().lower() == 'true'
        return bool(value)

    def _setup_input_folder(self) -> None:
        input_folder = getattr(self.config, 'input_folder', None)
        self.input_folder = Path(input_folder) if input_folder else None

    def _get_processor_specific_config(self) -> Dict[str, Any]:
        return {
            'zncc_parameters': dict(getattr(self, 'zncc_parameters', {})),
            'left_image': getattr(self.config, 'left_image', None),
            'right_image': getattr(self.config, 'right_image', None),
            'output_image': getattr(self.config, 'output_image', None),
            'save_intermediate': getattr(self, 'save_intermediate', False)
        }

    def create_disparity(self) -> None:
        """
        Main entry point.

        Processes every pair below `input_folder` when it is configured,
        otherwise the single `left_image` / `right_image` pair.
        """
        if self.input_folder is not None:
            self.process_all_sets()
        else:
            self.process_configured_pair()

    def process_configured_pair(self) -> DisparityResult:
        """Process the pair named by `left_image` / `right_image`."""
        output_file = Path(self.config.output_image)
        if not output_file.is_absolute():
            output_file = self.output_folder / output_file

        left_path = Path(self.config.left_image)
        self._setup_processing_context(left_path.stem, "", str(left_path.parent))
        result = self.process_pair(left_path, Path(self.config.right_image), output_file)
        self.processed_pairs.append({**self.current_pair_info, 'results': self._summarize(result)})
        return result

    def _execute_processing_pipeline(self, pair_folder: Path) -> Dict[str, Any]:
        pair = self.file_manager.find_stereo_pair(pair_folder)
        if pair is None:
            raise ValueError(f"No stereo pair found in {pair_folder}")

        set_name = self.current_pair_info['set_name']
        pair_name = self.current_pair_info['pair_name']
        output_file = self.output_folder / set_name / pair_name / f"disparity_{pair_name}.png"

        result = self.process_pair(pair[0], pair[1], output_file, set_name=set_name)
        return self._summarize(result)

    def process_pair(
        self,
        left_path: Path,
        right_path: Path,
        output_file: Path,
        set_name: Optional[str] = None
    ) -> DisparityResult:
        """
        Decode a stereo pair, run the pipeline and write the disparity image.

        Nothing is written unless every stage succeeded.

        Args:
            left_path: Left image file
            right_path: Right image file
            output_file: Destination of the 8-bit disparity image
            set_name: Set folder name in batch mode

        Returns:
            DisparityResult: Result of the pipeline run

        Raises:
            DecodeError, InputDimensionMismatch, InvalidInput,
            ComputeBackendError, EncodeError: fatal pipeline errors
        """
        left_pixels, _, _ = decode_image(left_path)
        right_pixels, _, _ = decode_image(right_path)

        reporter = StageReporter()
        pipeline = StereoDisparityPipeline(self.zncc_parameters, self.backend, reporter)
        result = pipeline.run(left_pixels, right_pixels)

        self.file_manager.save_disparity_image(result.output, output_file)

        if self.save_intermediate:
            pair_name = self.current_pair_info.get('pair_name') or Path(output_file).stem
            paths = self.file_manager.setup_output_directories(pair_name, set_name)
            self.file_manager.save_intermediate_results(
                result, paths['intermediate'], pair_name, reporter.timing_frame()
            )

        self.logger.info(f"Disparity pipeline took {reporter.total_seconds():.3f}s "
                         f"for {Path(left_path).name}/{Path(right_path).name}")
        self.last_result = result
        return result

    def _summarize(self, result: DisparityResult) -> Dict[str, Any]:
        return {
            'width': result.width,
            'height': result.height,
            'invalid_after_cross_check': result.invalid_after_cross_check,
            'unfilled_pixels': result.unfilled_pixels
        }
