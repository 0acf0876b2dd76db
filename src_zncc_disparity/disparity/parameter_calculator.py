"""
Parameter calculation utilities for ZNCC disparity processing.

This module turns configuration values into one validated parameter set
shared by every stage of a run, deriving the disparity search range from
the stereo geometry when it is not configured explicitly.
"""

import math
from typing import Dict, Any, Tuple, Optional, List

from utils.logger_config import get_logger

logger = get_logger(__name__)

DEFAULT_PARAMETERS = {
    'window_size': 9,
    'downscale_factor': 4,
    'max_disparity': 65,
    'cross_check_threshold': 8,
    'occlusion_search_radius': 50,
    'invert_second_pass': True
}

# One output byte per disparity value
MAX_ENCODABLE_DISPARITY = 255


class DisparityParameterCalculator:
    """Calculates the parameter set for ZNCC disparity computation."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def calculate_zncc_parameters(
        self,
        config_overrides: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Build the parameter set for one run.

        Explicit configuration values win. When `max_disparity` is not
        configured but the stereo geometry (`focal_length_px`, `baseline_m`,
        `min_depth_m`) is, the search range is derived from the closest
        expected depth.

        Args:
            config_overrides: Values taken from the configuration

        Returns:
            Dict[str, Any]: Parameter set
        """
        config_overrides = {
            key: value for key, value in (config_overrides or {}).items()
            if value is not None
        }

        parameters = dict(DEFAULT_PARAMETERS)
        for key in DEFAULT_PARAMETERS:
            if key in config_overrides:
                parameters[key] = config_overrides[key]

        parameters['invert_second_pass'] = self._as_bool(parameters['invert_second_pass'])
        for key in ('window_size', 'downscale_factor', 'max_disparity',
                    'cross_check_threshold', 'occlusion_search_radius'):
            parameters[key] = int(parameters[key])

        geometry_keys = ('focal_length_px', 'baseline_m', 'min_depth_m')
        if 'max_disparity' not in config_overrides and all(k in config_overrides for k in geometry_keys):
            parameters['max_disparity'] = self.calculate_max_disparity(
                config_overrides['focal_length_px'],
                config_overrides['baseline_m'],
                config_overrides['min_depth_m'],
                parameters['downscale_factor']
            )
            parameters['max_disparity_source'] = 'geometry'
        else:
            parameters['max_disparity_source'] = 'configuration'

        self.logger.info(f"Calculated ZNCC parameters: "
                         f"window={parameters['window_size']}, "
                         f"downscale={parameters['downscale_factor']}, "
                         f"maxDisp={parameters['max_disparity']} "
                         f"({parameters['max_disparity_source']}), "
                         f"crossTh={parameters['cross_check_threshold']}, "
                         f"fillRadius={parameters['occlusion_search_radius']}")
        return parameters

    def calculate_max_disparity(
        self,
        focal_length: float,
        baseline: float,
        min_depth: float,
        downscale_factor: int = 1
    ) -> int:
        """
        Disparity of the closest expected point, in downscaled pixels.

        Args:
            focal_length: Focal length in full-resolution pixels
            baseline: Baseline in meters
            min_depth: Closest depth of interest in meters
            downscale_factor: Downscale factor applied before matching

        Returns:
            int: Maximum disparity to search
        """
        if focal_length <= 0 or baseline <= 0 or min_depth <= 0:
            raise ValueError(f"Stereo geometry must be positive: focal_length={focal_length}, "
                             f"baseline={baseline}, min_depth={min_depth}")

        # disparity = (focal_length * baseline) / depth
        disparity = focal_length * abs(baseline) / min_depth / downscale_factor
        max_disparity = int(math.ceil(disparity))

        self.logger.debug(f"Disparity at min depth {min_depth}m: {disparity:.2f}px "
                          f"-> max_disparity={max_disparity}")
        return max_disparity

    def validate_parameters(
        self,
        parameters: Dict[str, Any]
    ) -> Tuple[bool, List[str]]:
        """
        Validate a parameter set.

        Args:
            parameters: Parameters to validate

        Returns:
            Tuple[bool, List[str]]: (is_valid, list_of_warnings)
        """
        warnings = []
        is_valid = True

        window_size = parameters.get('window_size', 0)
        if window_size <= 0 or window_size % 2 == 0:
            warnings.append(f"Invalid window_size: {window_size} (must be positive and odd)")
            is_valid = False
        if window_size > 21:
            warnings.append(f"Large window_size: {window_size} (may blur depth edges)")

        factor = parameters.get('downscale_factor', 0)
        if factor < 1:
            warnings.append(f"Invalid downscale_factor: {factor} (must be >= 1)")
            is_valid = False

        max_disparity = parameters.get('max_disparity', -1)
        if max_disparity < 0:
            warnings.append(f"Invalid max_disparity: {max_disparity} (must be non-negative)")
            is_valid = False
        if max_disparity > MAX_ENCODABLE_DISPARITY:
            warnings.append(f"Invalid max_disparity: {max_disparity} "
                            f"(output stores at most {MAX_ENCODABLE_DISPARITY})")
            is_valid = False
        elif max_disparity > 128:
            warnings.append(f"Very large max_disparity: {max_disparity} (may be slow)")

        threshold = parameters.get('cross_check_threshold', -1)
        if threshold < 0:
            warnings.append(f"Invalid cross_check_threshold: {threshold} (must be non-negative)")
            is_valid = False
        elif 0 <= max_disparity <= threshold:
            warnings.append(f"cross_check_threshold ({threshold}) >= max_disparity "
                            f"({max_disparity}): only out-of-range matches will be rejected")

        radius = parameters.get('occlusion_search_radius', -1)
        if radius < 0:
            warnings.append(f"Invalid occlusion_search_radius: {radius} (must be non-negative)")
            is_valid = False

        return is_valid, warnings

    @staticmethod
    def _as_bool(value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() == 'true'
        return bool(value)
