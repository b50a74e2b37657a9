# cancercam/components/result_assembler.py

import shutil
import sys
import uuid
from pathlib import Path
from typing import Optional

from cancercam.constants import inference_pipeline as ip
from cancercam.entity.artifact_entity import ClassificationDecision, ClassificationResult, RenderedExplanation
from cancercam.exception.exception import PersistenceError
from cancercam.logging.logger import logging
from cancercam.utils.image_ops import image_to_base64, save_png


class ResultAssembler:
    """
    Persists the two rendered rasters under a directory unique to the request
    and builds the externally visible result.

    Layout:
      <artifacts_dir>/<request_id>/predicted_image.png
      <artifacts_dir>/<request_id>/gradcam_image.png
    served as <url_prefix>/<request_id>/<file>.
    """

    def __init__(self, artifacts_dir: str, url_prefix: str = ip.ARTIFACTS_URL_PREFIX):
        self.artifacts_dir = Path(artifacts_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def _url(self, request_id: str, file_name: str) -> str:
        return f"{self.url_prefix}/{request_id}/{file_name}"

    def assemble(
        self,
        decision: ClassificationDecision,
        rendered: RenderedExplanation,
        inline: bool = False,
        request_id: Optional[str] = None,
    ) -> ClassificationResult:
        request_id = request_id or uuid.uuid4().hex
        out_dir = self.artifacts_dir / request_id
        if out_dir.exists():
            raise PersistenceError(f"Artifact directory already exists: {out_dir}")

        predicted_path = out_dir / ip.PREDICTED_IMAGE_FILE
        gradcam_path = out_dir / ip.GRADCAM_IMAGE_FILE

        try:
            save_png(rendered.overlay, predicted_path)
            save_png(rendered.heatmap, gradcam_path)
        except Exception as e:
            # no partial artifacts for a failed request
            shutil.rmtree(out_dir, ignore_errors=True)
            raise PersistenceError(e, sys)

        logging.info(f"[assemble] id={request_id} wrote artifacts to {out_dir}")

        result = ClassificationResult(
            request_id=request_id,
            predicted_name=decision.predicted_name,
            confidence_score=decision.confidence,
            predicted_image_url=self._url(request_id, ip.PREDICTED_IMAGE_FILE),
            gradcam_image_url=self._url(request_id, ip.GRADCAM_IMAGE_FILE),
            predicted_image_path=str(predicted_path),
            gradcam_image_path=str(gradcam_path),
        )

        if inline:
            result.predicted_image_base64 = image_to_base64(rendered.overlay)
            result.gradcam_image_base64 = image_to_base64(rendered.heatmap)

        return result
