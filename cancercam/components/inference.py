# cancercam/components/inference.py

import math
import sys
from typing import Tuple

import numpy as np
import torch

from cancercam.constants import inference_pipeline as ip
from cancercam.entity.artifact_entity import ClassificationDecision, ModelOutput, PredictedClass
from cancercam.exception.exception import InferenceError, ShapeMismatchError


def infer(tensor: torch.Tensor, model: torch.nn.Module, expected_shape: Tuple[int, ...]) -> torch.Tensor:
    """Single synchronous forward pass. Returns the raw output tensor on CPU."""
    if tuple(tensor.shape) != tuple(expected_shape):
        raise ShapeMismatchError(
            f"Input tensor shape {tuple(tensor.shape)} does not match model input {tuple(expected_shape)}"
        )

    try:
        with torch.inference_mode():
            output = model(tensor)
    except Exception as e:
        raise InferenceError(e, sys)

    if not isinstance(output, torch.Tensor):
        raise InferenceError(f"Model returned {type(output).__name__}, expected a tensor")
    return output.detach().to("cpu", torch.float32)


def decompose(output: torch.Tensor) -> ModelOutput:
    """
    Split the output tensor along axis 1:
      [0, 0]  -> class indicator
      [0, 1]  -> confidence
      [0, 2:] -> flattened square activation map
    """
    if output.ndim != 2 or output.shape[0] != 1:
        raise InferenceError(f"Expected model output of shape [1, N], got {tuple(output.shape)}")

    n_heatmap = output.shape[1] - ip.HEATMAP_OFFSET
    if n_heatmap <= 0:
        raise InferenceError(f"Model output has no heatmap values (width={output.shape[1]})")

    side = math.isqrt(n_heatmap)
    if side * side != n_heatmap:
        raise InferenceError(f"Heatmap has {n_heatmap} values, not a square map")

    class_score = float(output[0, ip.CLASS_SCORE_INDEX].item())
    confidence = float(output[0, ip.CONFIDENCE_INDEX].item())
    heatmap = output[0, ip.HEATMAP_OFFSET:].reshape(side, side).numpy().astype(np.float32)

    if not math.isfinite(confidence):
        raise InferenceError(f"Confidence is not finite: {confidence}")

    return ModelOutput(class_score=class_score, confidence=confidence, heatmap=heatmap)


def to_decision(model_output: ModelOutput) -> ClassificationDecision:
    predicted = PredictedClass.from_score(model_output.class_score)

    confidence = model_output.confidence
    if not 0.0 <= confidence <= 1.0:
        raise InferenceError(f"Confidence {confidence} outside [0, 1]")

    return ClassificationDecision(predicted_class=predicted, confidence=confidence)
