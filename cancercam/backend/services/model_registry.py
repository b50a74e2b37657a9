# cancercam/backend/services/model_registry.py

import threading
from enum import Enum
from typing import Callable, Optional

import torch

from cancercam.entity.config_entity import Settings
from cancercam.exception.exception import NotReadyError
from cancercam.logging.logger import logging


class ModelState(str, Enum):
    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


def load_torchscript(model_path: str, device: str) -> torch.nn.Module:
    model = torch.jit.load(model_path, map_location=device)
    model.eval()
    return model


class ModelRegistry:
    """
    Holds the one graph-mode model for the life of the process.

    The first ensure_loaded() call moves NOT_LOADED -> LOADING under the lock
    and loads outside it; every other caller sees LOADING/READY/FAILED and
    returns without loading. FAILED is terminal until the process restarts.
    """

    def __init__(
        self,
        model_path: str,
        device: str = "cpu",
        loader: Optional[Callable[[str, str], torch.nn.Module]] = None,
    ):
        self.model_path = model_path
        self.device = device
        self._loader = loader or load_torchscript
        self._lock = threading.Lock()
        self._state = ModelState.NOT_LOADED
        self._model: Optional[torch.nn.Module] = None
        self._error: Optional[str] = None
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def from_settings(cls, settings: Settings, loader=None) -> "ModelRegistry":
        return cls(settings.model_path, settings.device, loader=loader)

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def error(self) -> Optional[str]:
        return self._error

    def ensure_loaded(self) -> ModelState:
        with self._lock:
            if self._state is not ModelState.NOT_LOADED:
                return self._state
            self._state = ModelState.LOADING

        logging.info(f"[registry] Loading model from {self.model_path} on {self.device}")
        try:
            model = self._loader(self.model_path, self.device)
        except Exception as e:
            logging.error(f"[registry] Model load failed: {e}")
            with self._lock:
                self._error = str(e)
                self._state = ModelState.FAILED
            return ModelState.FAILED

        with self._lock:
            self._model = model
            self._state = ModelState.READY
        logging.info("[registry] Model ready")
        return ModelState.READY

    def start_background_load(self) -> threading.Thread:
        with self._lock:
            if self._thread is None:
                self._thread = threading.Thread(
                    target=self.ensure_loaded, name="model-loader", daemon=True
                )
                self._thread.start()
            return self._thread

    def get_handle(self) -> torch.nn.Module:
        state = self._state
        model = self._model
        if state is not ModelState.READY or model is None:
            raise NotReadyError(f"Model state is {state.value}")
        return model
