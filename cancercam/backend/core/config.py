# cancercam/backend/core/config.py

import os

from cancercam.entity.config_entity import Settings, load_settings

settings: Settings = load_settings(os.getenv("CANCERCAM_CONFIG"))
