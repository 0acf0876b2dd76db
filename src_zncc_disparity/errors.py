"""
Exception taxonomy for the ZNCC stereo disparity toolkit.

Every fatal condition of a disparity run is represented by a subclass of
StereoDisparityError. Degenerate windows and unfilled occlusions are not
errors: they are carried in the data (score of -inf, INVALID_DISPARITY / 0).
"""

from typing import Optional, Tuple


class StereoDisparityError(Exception):
    """Base class for all fatal disparity pipeline errors."""


class InvalidInput(StereoDisparityError, ValueError):
    """Raised when a grid or parameter is malformed (e.g. smaller than the downscale factor)."""


class InputDimensionMismatch(StereoDisparityError):
    """Raised before the pipeline starts when left and right images differ in size."""

    def __init__(self, left_shape: Tuple[int, ...], right_shape: Tuple[int, ...]):
        self.left_shape = tuple(left_shape)
        self.right_shape = tuple(right_shape)
        super().__init__(
            f"Input image dimensions should match: "
            f"left={self.left_shape}, right={self.right_shape}"
        )


class DecodeError(StereoDisparityError):
    """Raised by the image codec when an input image cannot be decoded."""

    def __init__(self, code: int, path: str, reason: Optional[str] = None):
        self.code = code
        self.path = str(path)
        self.reason = reason or "decoder error"
        super().__init__(f"decoder error {code}: {self.reason} ({self.path})")


class EncodeError(StereoDisparityError):
    """Raised by the image codec when an output image cannot be written."""

    def __init__(self, code: int, path: str, reason: Optional[str] = None):
        self.code = code
        self.path = str(path)
        self.reason = reason or "encoder error"
        super().__init__(f"encoder error {code}: {self.reason} ({self.path})")


class ComputeBackendError(StereoDisparityError):
    """
    Raised when the compute backend fails to execute a grid operation.

    The numeric code is reported for diagnostics only; nothing acts on it.
    """

    # Status codes follow the OpenCL numbering
    ERROR_NAMES = {
        0: "SUCCESS",
        -1: "DEVICE_NOT_FOUND",
        -2: "DEVICE_NOT_AVAILABLE",
        -4: "MEM_OBJECT_ALLOCATION_FAILURE",
        -5: "OUT_OF_RESOURCES",
        -6: "OUT_OF_HOST_MEMORY",
        -9: "IMAGE_FORMAT_MISMATCH",
        -11: "BUILD_PROGRAM_FAILURE",
        -30: "INVALID_VALUE",
        -36: "INVALID_COMMAND_QUEUE",
        -40: "INVALID_IMAGE_SIZE",
        -48: "INVALID_KERNEL",
        -52: "INVALID_KERNEL_ARGS",
        -59: "INVALID_OPERATION",
        -63: "INVALID_GLOBAL_WORK_SIZE",
    }
    UNKNOWN_ERROR_NAME = "UNKNOWN_ERROR"

    def __init__(self, code: int, operation: str, message: str = ""):
        self.code = code
        self.operation = operation
        self.message = message
        detail = f" ({message})" if message else ""
        super().__init__(
            f"Compute procedure: {operation} returned: {code} : "
            f"{self.error_name(code)}{detail}"
        )

    @classmethod
    def error_name(cls, code: int) -> str:
        """Return the symbolic name of a backend status code."""
        return cls.ERROR_NAMES.get(code, cls.UNKNOWN_ERROR_NAME)
