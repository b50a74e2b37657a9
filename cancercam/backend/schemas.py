# cancercam/backend/schemas.py

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from cancercam.entity.artifact_entity import ClassificationResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ClassifyResponse(CamelModel):
    predicted_name: str
    confidence_score: float
    predicted_image_url: str
    gradcam_image_url: str
    request_id: str
    predicted_image_base64: Optional[str] = None
    gradcam_image_base64: Optional[str] = None

    @classmethod
    def from_result(cls, result: ClassificationResult) -> "ClassifyResponse":
        return cls(
            predicted_name=result.predicted_name,
            confidence_score=result.confidence_score,
            predicted_image_url=result.predicted_image_url,
            gradcam_image_url=result.gradcam_image_url,
            request_id=result.request_id,
            predicted_image_base64=result.predicted_image_base64,
            gradcam_image_base64=result.gradcam_image_base64,
        )


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    status: str
    device: str
    model_state: str
    model_error: Optional[str] = None
