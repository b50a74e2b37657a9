# cancercam/backend/api/routes.py

import uuid
from typing import Optional

from fastapi import APIRouter, File, Request, UploadFile

from cancercam.backend.schemas import ClassifyResponse, ErrorResponse, HealthResponse
from cancercam.backend.services.inference import InferenceService
from cancercam.exception.exception import MissingInputError

router = APIRouter()


def _service(request: Request) -> InferenceService:
    return request.app.state.inference_service


@router.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
def health(request: Request):
    svc = _service(request)
    return HealthResponse(
        status="ok",
        device=svc.settings.device,
        model_state=svc.registry.state.value,
        model_error=svc.registry.error,
    )


@router.post(
    "/api/classify",
    response_model=ClassifyResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def classify(request: Request, image: Optional[UploadFile] = File(None), inline: bool = False):
    """
    Classify one uploaded image (form field ``image``).

    Returns the decision plus URLs of the labeled image and the Grad-CAM
    heatmap, both stored under a directory unique to this request.
    """
    svc = _service(request)

    # readiness first: no upload parsing work when the model is not there
    svc.registry.get_handle()

    if image is None:
        raise MissingInputError("No 'image' file in form data")

    # artifact directory name; the middleware logs it next to the X-Request-Id
    artifact_id = uuid.uuid4().hex
    request.state.artifact_id = artifact_id

    contents = await image.read()
    result = await svc.classify(contents, inline=inline, request_id=artifact_id)
    return ClassifyResponse.from_result(result)
