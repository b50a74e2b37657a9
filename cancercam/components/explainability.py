# cancercam/components/explainability.py

import sys
from functools import lru_cache

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from cancercam.constants import inference_pipeline as ip
from cancercam.entity.artifact_entity import ClassificationDecision, ModelOutput, RenderedExplanation
from cancercam.exception.exception import RenderError, wrap_stage_error


@lru_cache(maxsize=4)
def _label_font(size: int):
    return ImageFont.load_default(size=size)


def scale_heatmap(heatmap: np.ndarray) -> np.ndarray:
    """
    [0, 1] float map -> uint8 in [0, 255] (x * 255, rounded half-up).

    Values outside [0, 1] are a model contract violation and are rejected,
    never clipped.
    """
    heatmap = np.asarray(heatmap, dtype=np.float32)
    if heatmap.ndim != 2:
        raise RenderError(f"Heatmap must be 2-D, got shape {heatmap.shape}")
    if not np.all(np.isfinite(heatmap)):
        raise RenderError("Heatmap contains non-finite values")

    lo, hi = float(heatmap.min()), float(heatmap.max())
    if lo < 0.0 or hi > 1.0:
        raise RenderError(f"Heatmap values must lie in [0, 1], got [{lo}, {hi}]")

    scaled = np.floor(heatmap.astype(np.float64) * ip.PIXEL_SCALE + 0.5)
    return scaled.astype(np.uint8)


def render_heatmap(heatmap: np.ndarray, image_size: int = ip.IMAGE_SIZE) -> Image.Image:
    """Grayscale ("L") raster of the activation map, resized to image_size."""
    scaled = scale_heatmap(heatmap)
    try:
        cam_img = Image.fromarray(scaled)
        if cam_img.size != (image_size, image_size):
            cam_img = cam_img.resize((image_size, image_size), resample=Image.BILINEAR)
        return cam_img
    except Exception as e:
        raise RenderError(e, sys)


def render_overlay(rgb_img: Image.Image, label: str, image_size: int = ip.IMAGE_SIZE) -> Image.Image:
    """Resized original with the predicted label alpha-composited at the top-left."""
    try:
        base = rgb_img.convert("RGB").resize((image_size, image_size), resample=Image.BILINEAR).convert("RGBA")

        text_layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(text_layer)
        draw.text(ip.LABEL_POSITION, label, font=_label_font(ip.LABEL_FONT_SIZE), fill=ip.LABEL_FILL)

        return Image.alpha_composite(base, text_layer).convert("RGB")
    except Exception as e:
        raise RenderError(e, sys)


def render_explanation(
    rgb_img: Image.Image,
    decision: ClassificationDecision,
    model_output: ModelOutput,
    image_size: int = ip.IMAGE_SIZE,
) -> RenderedExplanation:
    try:
        overlay = render_overlay(rgb_img, decision.predicted_name, image_size)
        heatmap = render_heatmap(model_output.heatmap, image_size)
    except Exception as e:
        raise wrap_stage_error(e, RenderError)
    return RenderedExplanation(overlay=overlay, heatmap=heatmap)
