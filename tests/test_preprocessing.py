import io

import numpy as np
import pytest
import torch
from PIL import Image

from cancercam.components.preprocessing import image_to_tensor, preprocess
from cancercam.exception.exception import DecodeError
from cancercam.utils.image_ops import read_image_from_bytes
from tests.conftest import png_bytes


@pytest.mark.parametrize(
    "size, color, mode",
    [
        ((500, 500), (128, 128, 128), "RGB"),
        ((20, 10), (255, 0, 30), "RGB"),
        ((300, 120), 77, "L"),
        ((64, 64), (10, 200, 90, 128), "RGBA"),
    ],
)
def test_preprocess_shape_and_range(size, color, mode):
    x = preprocess(png_bytes(size, color, mode))

    assert tuple(x.shape) == (1, 224, 224, 3)
    assert x.dtype == torch.float32
    assert float(x.min()) >= 0.0
    assert float(x.max()) <= 1.0


def test_uniform_image_stays_uniform_after_resize():
    x = preprocess(png_bytes((500, 500), (128, 128, 128)))
    assert torch.allclose(x, torch.full_like(x, 128 / 255.0), atol=1e-6)


def test_channel_order_is_hwc():
    x = preprocess(png_bytes((50, 50), (255, 0, 0)))
    assert torch.allclose(x[0, :, :, 0], torch.ones(224, 224))
    assert torch.allclose(x[0, :, :, 1:], torch.zeros(224, 224, 2))


def test_jpeg_is_supported():
    buf = io.BytesIO()
    Image.new("RGB", (40, 30), (0, 0, 255)).save(buf, format="JPEG")
    x = preprocess(buf.getvalue())
    assert tuple(x.shape) == (1, 224, 224, 3)


def test_custom_image_size():
    img = read_image_from_bytes(png_bytes((10, 10)))
    assert tuple(image_to_tensor(img, 32).shape) == (1, 32, 32, 3)


def test_preprocess_is_deterministic():
    rng = np.random.default_rng(0)
    arr = rng.integers(0, 256, size=(123, 77, 3), dtype=np.uint8)
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format="PNG")
    data = buf.getvalue()

    assert torch.equal(preprocess(data), preprocess(data))


@pytest.mark.parametrize("payload", [b"not an image at all", b"", b"\x89PNG\r\n\x1a\n truncated"])
def test_non_image_bytes_raise_decode_error(payload):
    with pytest.raises(DecodeError):
        preprocess(payload)


def _encode(img: Image.Image, fmt: str) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def test_16bit_grayscale_png_is_scaled_not_saturated():
    gradient = np.linspace(0, 65535, 64 * 64).reshape(64, 64).astype(np.uint16)
    data = _encode(Image.fromarray(gradient), "PNG")

    x = preprocess(data)

    assert tuple(x.shape) == (1, 224, 224, 3)
    assert float(x.mean()) == pytest.approx(0.5, abs=0.02)
    assert float(x.min()) < 0.02
    assert float(x.max()) > 0.98


def test_16bit_midpoint_maps_to_8bit_midpoint():
    flat = np.full((16, 16), 32896, dtype=np.uint16)  # 128 * 257
    rgb = read_image_from_bytes(_encode(Image.fromarray(flat), "PNG"))

    assert rgb.mode == "RGB"
    assert set(np.unique(np.asarray(rgb)).tolist()) == {128}


def test_float_image_is_rejected():
    data = _encode(Image.fromarray(np.full((8, 8), 0.5, dtype=np.float32)), "TIFF")
    with pytest.raises(DecodeError):
        preprocess(data)
