# cancercam/constants/inference_pipeline.py

# ================
# Model contract
# ================

# Input crop the classifier was trained on (H, W, C)
IMAGE_SIZE: int = 224
IMAGE_CHANNELS: int = 3
PIXEL_SCALE: float = 255.0

# Output layout: [class indicator, confidence, heatmap...]
CLASS_SCORE_INDEX: int = 0
CONFIDENCE_INDEX: int = 1
HEATMAP_OFFSET: int = 2

# Ordered: rounded class score indexes into this tuple
CLASS_NAMES: tuple = ("Benign", "Malignant")

# =========================
# Artifacts (per request)
# =========================

ARTIFACTS_ROOT_DIR: str = "artifacts"
ARTIFACTS_URL_PREFIX: str = "/artifacts"
LOGS_DIR: str = "logs"
MODELS_DIR: str = "models"
DEFAULT_MODEL_FILE: str = "model.pt"

PREDICTED_IMAGE_FILE: str = "predicted_image.png"
GRADCAM_IMAGE_FILE: str = "gradcam_image.png"

# =========================
# Overlay label styling
# =========================

LABEL_POSITION: tuple = (10, 4)
LABEL_FONT_SIZE: int = 16
LABEL_FILL: tuple = (255, 255, 255, 255)

# =========================
# Serving
# =========================

INFERENCE_TIMEOUT_S: float = 30.0
