# cancercam/utils/image_ops.py

import io
import base64
import sys
from pathlib import Path

import numpy as np
from PIL import Image

from cancercam.exception.exception import DecodeError

# Pillow modes holding more than 8 bits per sample; convert("RGB") clips these
WIDE_INT_MODES = ("I", "I;16", "I;16L", "I;16B", "I;16N")
UINT16_MAX = 65535


def _to_8bit(img: Image.Image) -> Image.Image:
    """
    Scale 16-bit (and 16-bit-range "I") grayscale down to 8-bit "L".

    Values are mapped 0..65535 -> 0..255 (x / 257, rounded). Float images and
    "I" data beyond the 16-bit range have no defined pixel scale and are rejected.
    """
    if img.mode == "F":
        raise DecodeError("Floating-point images are not supported")

    arr = np.asarray(img, dtype=np.float64)
    if img.mode == "I" and arr.size and (arr.min() < 0 or arr.max() > UINT16_MAX):
        raise DecodeError(f"32-bit image values outside 16-bit range: [{arr.min()}, {arr.max()}]")

    return Image.fromarray(np.floor(arr / 257.0 + 0.5).astype(np.uint8))


def read_image_from_bytes(contents: bytes) -> Image.Image:
    """Decode raw upload bytes into a 3-channel RGB image."""
    if not contents:
        raise DecodeError("Empty image payload")
    try:
        with Image.open(io.BytesIO(contents)) as img:
            img.load()
            if img.mode in WIDE_INT_MODES or img.mode == "F":
                img = _to_8bit(img)
            return img.convert("RGB")
    except DecodeError:
        raise
    except Exception as e:
        raise DecodeError(e, sys)


def image_to_png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def image_to_base64(img: Image.Image) -> str:
    return base64.b64encode(image_to_png_bytes(img)).decode("utf-8")


def save_png(img: Image.Image, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    img.save(path, format="PNG")
