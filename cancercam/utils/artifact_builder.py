# cancercam/utils/artifact_builder.py
from __future__ import annotations

import os
from pathlib import Path
from typing import List

from cancercam.constants import inference_pipeline as ip
from cancercam.entity.config_entity import Settings
from cancercam.logging.logger import logging


def ensure_dirs_exist(*dirs: Path) -> None:
    try:
        for d in dirs:
            Path(d).mkdir(parents=True, exist_ok=True)
    except Exception as e:
        logging.error(f"Failed creating directories: {e}")
        raise


def build_directory_skeleton(settings: Settings) -> List[Path]:
    """
    Stable dirs only:
      - <artifacts_dir>   (per-request rendered images)
      - <model dir>       (where the TorchScript file is expected)
      - logs
    """
    dirs = [
        Path(settings.artifacts_dir),
        Path(os.path.dirname(settings.model_path) or ip.MODELS_DIR),
        Path(os.getenv("LOG_DIR", ip.LOGS_DIR)),
    ]
    ensure_dirs_exist(*dirs)
    return dirs
