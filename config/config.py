import copy
import json
from pathlib import Path
from typing import Dict, Any, Optional

from utils.file_operations import PathManager

DEFAULTS: Dict[str, Any] = {
    # Matching parameters
    "window_size": 9,
    "downscale_factor": 4,
    "max_disparity": 65,
    "cross_check_threshold": 8,
    "occlusion_search_radius": 50,
    "invert_second_pass": "True",
    "num_threads": 0,
    # Single pair mode
    "left_image": "im0.png",
    "right_image": "im1.png",
    "output_image": "out.png",
    # Batch mode
    "input_folder": None,
    # Output
    "result_root": "result",
    "save_path_result": "disparity",
    "save_intermediate": "False",
    # Logging
    "log_level": "INFO",
    "log_file": None
}

BOOLEAN_KEYS = ("invert_second_pass", "save_intermediate")
GEOMETRY_KEYS = ("focal_length_px", "baseline_m", "min_depth_m")
NON_NEGATIVE_KEYS = ("max_disparity", "cross_check_threshold", "occlusion_search_radius", "num_threads")


class Config:
    def __init__(self, config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None,
                 create_result_folder: bool = True):
        data = self._load_config(config_path) if config_path else {}
        self.config_data = self._apply_defaults(data, overrides)
        self._validate()
        if create_result_folder:
            self._check_folder(self.config_data["save_path_result"])

    @classmethod
    def from_dict(cls, data: Dict[str, Any], create_result_folder: bool = True) -> "Config":
        """Build a configuration without a JSON file."""
        return cls(None, overrides=data, create_result_folder=create_result_folder)

    def _load_config(self, config_path: str) -> Dict[str, Any]:
        with open(config_path, 'r') as config_file:
            config_data = json.load(config_file)
        if not isinstance(config_data, dict):
            raise ValueError(f"Configuration file {config_path} must hold a JSON object")
        return config_data

    @staticmethod
    def _apply_defaults(data: Dict[str, Any], overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        config_data = copy.deepcopy(DEFAULTS)
        config_data.update(data)
        # None overrides keep the file/default value
        for key, value in (overrides or {}).items():
            if value is not None:
                config_data[key] = value
        return config_data

    def _validate(self) -> None:
        """Validate parameter types and ranges, raising ValueError on bad values."""
        for key in BOOLEAN_KEYS:
            self.config_data[key] = self._as_bool_string(key, self.config_data[key])

        for key in GEOMETRY_KEYS:
            value = self.config_data.get(key)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not value > 0:
                raise ValueError(f"{key} must be a positive number, got {value!r}")

        # A null max_disparity is derived from the stereo geometry
        derive_range = self.config_data["max_disparity"] is None
        if derive_range and any(self.config_data.get(key) is None for key in GEOMETRY_KEYS):
            raise ValueError(f"max_disparity is null but {', '.join(GEOMETRY_KEYS)} are not all set")

        for key in ("window_size", "downscale_factor") + NON_NEGATIVE_KEYS:
            value = self.config_data[key]
            if key == "max_disparity" and derive_range:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)) or int(value) != value:
                raise ValueError(f"{key} must be an integer, got {value!r}")
            self.config_data[key] = int(value)

        window_size = self.config_data["window_size"]
        if window_size <= 0 or window_size % 2 == 0:
            raise ValueError(f"window_size must be a positive odd integer, got {window_size}")
        if self.config_data["downscale_factor"] < 1:
            raise ValueError("downscale_factor must be at least 1")
        for key in NON_NEGATIVE_KEYS:
            if self.config_data[key] is not None and self.config_data[key] < 0:
                raise ValueError(f"{key} must not be negative")
        if not derive_range and self.config_data["max_disparity"] > 255:
            raise ValueError("max_disparity must not exceed 255 (8-bit output)")

        if not self.config_data["input_folder"]:
            for key in ("left_image", "right_image", "output_image"):
                if not self.config_data[key]:
                    raise ValueError(f"{key} is required when input_folder is not set")

    @staticmethod
    def _as_bool_string(key: str, value: Any) -> str:
        if isinstance(value, bool):
            return "True" if value else "False"
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return "True" if value.strip().lower() == "true" else "False"
        raise ValueError(f"{key} must be \"True\" or \"False\", got {value!r}")

    def _check_folder(self, folder_name):
        # An existing result folder is never overwritten: name, name(1), name(2), ...
        result_root = Path(self.config_data["result_root"])
        new_path = PathManager.create_numbered_directory(result_root, folder_name)
        self.config_data["save_path_result"] = str(new_path)

    def is_enabled(self, name: str) -> bool:
        """Check a "True"/"False" flag."""
        return self.config_data.get(name) == "True"

    def __getattr__(self, name: str) -> Any:
        if name == "config_data":
            raise AttributeError(name)
        if name in self.config_data:
            return self.config_data[name]
        raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{name}'")
