# cancercam/backend/app.py

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from cancercam.backend.api.routes import router as api_router
from cancercam.backend.core.config import settings as default_settings
from cancercam.backend.middlewares.request_logging import RequestIdLoggingMiddleware
from cancercam.backend.services.inference import InferenceService
from cancercam.backend.services.model_registry import ModelRegistry
from cancercam.entity.config_entity import Settings
from cancercam.exception.exception import CustomException, MissingInputError
from cancercam.logging.logger import logging
from cancercam.utils.artifact_builder import build_directory_skeleton


async def custom_exception_handler(request: Request, exc: CustomException) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "-")
    artifact_id = getattr(request.state, "artifact_id", "-")
    logging.warning(
        f"[REQ] id={request_id} artifact_id={artifact_id} path={request.url.path} stage={exc.stage} "
        f"status={exc.status_code} error={exc}"
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed form/query input gets the same {error} envelope as every other failure."""
    request_id = getattr(request.state, "request_id", "-")
    logging.warning(f"[REQ] id={request_id} path={request.url.path} status=400 validation={exc.errors()}")

    image_related = any("image" in err.get("loc", ()) for err in exc.errors())
    message = MissingInputError.public_message if image_related else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


def create_app(settings: Optional[Settings] = None, registry: Optional[ModelRegistry] = None) -> FastAPI:
    settings = settings or default_settings
    registry = registry or ModelRegistry.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # before the first request reaches StaticFiles
        build_directory_skeleton(settings)
        if settings.load_model_on_startup:
            # requests are served right away; they get 503 until this finishes
            registry.start_background_load()
        yield

    app = FastAPI(title="Cancer Classification API", version="1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    app.state.inference_service = InferenceService(settings, registry)

    app.add_middleware(RequestIdLoggingMiddleware)
    app.add_exception_handler(CustomException, custom_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(api_router)
    app.mount(
        settings.artifacts_url_prefix,
        StaticFiles(directory=settings.artifacts_dir, check_dir=False),
        name="artifacts",
    )
    return app


app = create_app()
