import numpy as np
import pytest

from src_zncc_disparity.disparity.window_statistics import PrecalcImage, WindowStatistics


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def to_rgba():
    """Turn a 2D uint8 gray grid into an opaque RGBA grid."""
    def convert(gray):
        gray = np.asarray(gray, dtype=np.uint8)
        alpha = np.full(gray.shape, 255, dtype=np.uint8)
        return np.dstack([gray, gray, gray, alpha])
    return convert


@pytest.fixture
def shifted_pair(rng):
    """
    Build a textured stereo pair where left(x) == right(x - shift).

    Both views are cut from one wider random texture, so every column of the
    right view has a true correspondence in the left view.
    """
    def build(height=64, width=64, shift=3):
        base = rng.integers(0, 256, size=(height, width + shift), dtype=np.uint8)
        return base[:, :width].copy(), base[:, shift:shift + width].copy()
    return build


@pytest.fixture
def precalc():
    """Wrap a float intensity grid into a PrecalcImage."""
    def build(intensity, window_size=9):
        intensity = np.asarray(intensity, dtype=np.float64)
        stats = WindowStatistics(window_size).compute(intensity)
        return PrecalcImage(intensity=intensity, stats=stats)
    return build
