# cancercam/entity/artifact_entity.py

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np
from PIL import Image

from cancercam.constants import inference_pipeline as ip
from cancercam.exception.exception import InferenceError


class PredictedClass(Enum):
    BENIGN = 0
    MALIGNANT = 1

    @property
    def display_name(self) -> str:
        return ip.CLASS_NAMES[self.value]

    @classmethod
    def from_score(cls, score: float) -> "PredictedClass":
        """
        Map the model's class indicator to a class.

        Rounds half-up: 0.5 -> MALIGNANT, anything below 0.5 -> BENIGN.
        A rounded value outside {0, 1} breaks the model contract and raises
        InferenceError instead of being clamped.
        """
        if not math.isfinite(score):
            raise InferenceError(f"Class score is not finite: {score}")

        index = math.floor(score + 0.5)
        if index not in (0, 1):
            raise InferenceError(f"Class score {score} rounds to {index}, expected 0 or 1")
        return cls(index)


@dataclass(frozen=True)
class ModelOutput:
    """Named view of the single output tensor, built once right after inference."""
    class_score: float
    confidence: float
    heatmap: np.ndarray  # [S, S] float32, native resolution


@dataclass(frozen=True)
class ClassificationDecision:
    predicted_class: PredictedClass
    confidence: float

    @property
    def predicted_name(self) -> str:
        return self.predicted_class.display_name


@dataclass
class RenderedExplanation:
    overlay: Image.Image   # RGB, 224x224
    heatmap: Image.Image   # L, 224x224


@dataclass
class ClassificationResult:
    request_id: str
    predicted_name: str
    confidence_score: float
    predicted_image_url: str
    gradcam_image_url: str

    predicted_image_path: str
    gradcam_image_path: str

    # only filled when inline images were requested
    predicted_image_base64: Optional[str] = None
    gradcam_image_base64: Optional[str] = None
