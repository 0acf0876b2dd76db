import numpy as np
import pytest

from src_zncc_disparity.errors import DecodeError, EncodeError
from utils.image import ImageChartGenerator, decode_image, encode_image


def test_grey_png_decodes_to_opaque_rgba(tmp_path, rng):
    grey = rng.integers(0, 256, size=(6, 9), dtype=np.uint8)
    path = tmp_path / "grey.png"

    encode_image(path, grey, 9, 6, 'grey')
    pixels, width, height = decode_image(path)

    assert (width, height) == (9, 6)
    assert pixels.shape == (6, 9, 4)
    assert pixels.dtype == np.uint8
    for channel in range(3):
        np.testing.assert_array_equal(pixels[:, :, channel], grey)
    assert np.all(pixels[:, :, 3] == 255)


def test_rgba_png_keeps_channel_order(tmp_path):
    pixels = np.zeros((2, 3, 4), dtype=np.uint8)
    pixels[..., 0] = 200
    pixels[..., 3] = 255
    path = tmp_path / "red.png"

    encode_image(path, pixels, 3, 2, 'rgba')
    decoded, _, _ = decode_image(path)

    np.testing.assert_array_equal(decoded, pixels)


def test_encode_creates_parent_directories(tmp_path):
    path = tmp_path / "nested" / "deeper" / "out.png"

    encode_image(path, np.zeros((2, 2), dtype=np.uint8), 2, 2)

    assert path.is_file()


def test_missing_file_raises_decode_error(tmp_path):
    with pytest.raises(DecodeError) as excinfo:
        decode_image(tmp_path / "missing.png")

    assert excinfo.value.code == 1
    assert "decoder error 1" in str(excinfo.value)


def test_garbage_file_raises_decode_error(tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"not an image at all")

    with pytest.raises(DecodeError) as excinfo:
        decode_image(path)

    assert excinfo.value.code == 2


def test_shape_mismatch_raises_encode_error(tmp_path):
    with pytest.raises(EncodeError) as excinfo:
        encode_image(tmp_path / "out.png", np.zeros((3, 3), dtype=np.uint8), 4, 3)

    assert excinfo.value.code == 1


def test_unknown_layout_raises_encode_error(tmp_path):
    with pytest.raises(EncodeError) as excinfo:
        encode_image(tmp_path / "out.png", np.zeros((3, 3), dtype=np.uint8), 3, 3, 'bgr')

    assert excinfo.value.code == 2


def test_disparity_chart_is_saved(tmp_path, rng):
    disparity = rng.integers(0, 9, size=(10, 12))
    chart = ImageChartGenerator(disparity, "pixel", "pixel", str(tmp_path), range_max=8, range_min=0)

    path = chart.create_disparity(photo_name="chart")

    assert path == tmp_path / "chart.jpg"
    assert path.is_file()
