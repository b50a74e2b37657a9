# cancercam/pipeline/classification_pipeline.py

import uuid
from typing import Callable, Optional

import torch

from cancercam.logging.logger import logging
from cancercam.exception.exception import (
    DecodeError,
    InferenceError,
    PersistenceError,
    RenderError,
    ShapeMismatchError,
    wrap_stage_error,
)

from cancercam.entity.config_entity import Settings
from cancercam.entity.artifact_entity import ClassificationResult
from cancercam.components.preprocessing import image_to_tensor
from cancercam.components.inference import decompose, infer, to_decision
from cancercam.components.explainability import render_explanation
from cancercam.components.result_assembler import ResultAssembler
from cancercam.utils.image_ops import read_image_from_bytes

# error type for anything untyped that escapes a stage
STAGE_ERRORS = {
    "decode": DecodeError,
    "preprocess": ShapeMismatchError,
    "inference": InferenceError,
    "render": RenderError,
    "persist": PersistenceError,
}


class ClassificationPipeline:
    """
    decode -> preprocess -> infer -> decompose -> render -> persist, for one image.

    ``get_model`` is called before any image work so a request that arrives
    before the model is ready fails with NotReadyError without touching tensors.
    """

    def __init__(self, settings: Settings, get_model: Callable[[], torch.nn.Module]):
        self.settings = settings
        self.get_model = get_model
        self.assembler = ResultAssembler(settings.artifacts_dir, settings.artifacts_url_prefix)

    def run(self, image_bytes: bytes, inline: bool = False, request_id: Optional[str] = None) -> ClassificationResult:
        model = self.get_model()
        request_id = request_id or uuid.uuid4().hex
        size = self.settings.image_size
        stage = "decode"

        try:
            rgb = read_image_from_bytes(image_bytes)

            stage = "preprocess"
            tensor = image_to_tensor(rgb, size)

            stage = "inference"
            output = infer(tensor, model, self.settings.input_shape)
            model_output = decompose(output)
            decision = to_decision(model_output)

            stage = "render"
            rendered = render_explanation(rgb, decision, model_output, size)

            stage = "persist"
            result = self.assembler.assemble(decision, rendered, inline=inline, request_id=request_id)

        except Exception as e:
            error = wrap_stage_error(e, STAGE_ERRORS[stage])
            logging.error(
                f"[classify] id={request_id} stage={stage} input_bytes={len(image_bytes or b'')} "
                f"error_type={type(error).__name__} error={error}"
            )
            if error is e:
                raise
            raise error from e

        logging.info(
            f"[classify] id={result.request_id} predicted={result.predicted_name} "
            f"confidence={result.confidence_score:.4f}"
        )
        return result
