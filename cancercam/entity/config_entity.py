# cancercam/entity/config_entity.py

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from cancercam.constants import inference_pipeline as ip
from cancercam.utils.config_reader import read_yaml_config


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _validate_positive(name: str, value) -> None:
    if value is None or value <= 0:
        raise ValueError(f"{name} must be positive, got: {value!r}")


@dataclass(frozen=True)
class Settings:
    model_path: str = os.getenv("MODEL_PATH", os.path.join(ip.MODELS_DIR, ip.DEFAULT_MODEL_FILE))
    device: str = os.getenv("DEVICE", "cpu")  # production: cpu-only
    image_size: int = int(os.getenv("IMAGE_SIZE", str(ip.IMAGE_SIZE)))
    artifacts_dir: str = os.getenv("ARTIFACTS_DIR", ip.ARTIFACTS_ROOT_DIR)
    artifacts_url_prefix: str = os.getenv("ARTIFACTS_URL_PREFIX", ip.ARTIFACTS_URL_PREFIX)
    inference_timeout_s: float = float(os.getenv("INFERENCE_TIMEOUT_S", str(ip.INFERENCE_TIMEOUT_S)))
    load_model_on_startup: bool = _env_bool("LOAD_MODEL_ON_STARTUP", "true")

    def __post_init__(self):
        _validate_positive("image_size", self.image_size)
        _validate_positive("inference_timeout_s", self.inference_timeout_s)
        if not self.artifacts_url_prefix.startswith("/"):
            raise ValueError(f"artifacts_url_prefix must start with '/', got: {self.artifacts_url_prefix!r}")

    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        """Batched NHWC shape the model expects."""
        return (1, self.image_size, self.image_size, ip.IMAGE_CHANNELS)


def load_settings(config_path: Optional[str] = None, base: Optional[Settings] = None) -> Settings:
    """
    Environment-driven settings, optionally overridden by a YAML mapping whose
    keys are Settings field names.
    """
    settings = base or Settings()
    if not config_path:
        return settings

    overrides = read_yaml_config(Path(config_path))
    known = {f.name for f in dataclasses.fields(Settings)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {config_path}: {unknown}")

    return dataclasses.replace(settings, **overrides)
