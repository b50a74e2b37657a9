# cancercam/backend/services/inference.py

import asyncio
from functools import partial
from typing import Optional

from cancercam.backend.services.model_registry import ModelRegistry
from cancercam.entity.artifact_entity import ClassificationResult
from cancercam.entity.config_entity import Settings
from cancercam.exception.exception import ClassificationTimeoutError
from cancercam.logging.logger import logging
from cancercam.pipeline.classification_pipeline import ClassificationPipeline


class InferenceService:
    def __init__(self, settings: Settings, registry: ModelRegistry):
        self.settings = settings
        self.registry = registry
        self.pipeline = ClassificationPipeline(settings, registry.get_handle)

    async def classify(
        self, image_bytes: bytes, inline: bool = False, request_id: Optional[str] = None
    ) -> ClassificationResult:
        # fail fast, before handing work to the executor
        self.registry.get_handle()

        timeout = self.settings.inference_timeout_s
        loop = asyncio.get_running_loop()
        job = loop.run_in_executor(None, partial(self.pipeline.run, image_bytes, inline, request_id))
        try:
            return await asyncio.wait_for(job, timeout=timeout)
        except asyncio.TimeoutError:
            # the worker thread cannot be interrupted; its late result is dropped
            logging.error(f"[classify] id={request_id} timed out after {timeout}s input_bytes={len(image_bytes)}")
            raise ClassificationTimeoutError(f"Classification exceeded {timeout}s")
