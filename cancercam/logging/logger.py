import logging
import os
import sys
from datetime import datetime

# Create logs directory
LOG_DIR = os.getenv("LOG_DIR", os.path.join(os.getcwd(), "logs"))
os.makedirs(LOG_DIR, exist_ok=True)

# Log file path with timestamp
LOG_FILE = f"{datetime.now().strftime('%d_%m_%Y_%H_%M_%S')}.log"
LOG_FILE_PATH = os.path.join(LOG_DIR, LOG_FILE)

LOG_FORMAT = "[ %(asctime)s ] [%(levelname)s] [%(name)s:%(lineno)d] - %(message)s"

logger = logging.getLogger()
logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

# File handler (for persistence)
file_handler = logging.FileHandler(LOG_FILE_PATH)
file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

# Stream handler (for Docker/stdout)
console_handler = logging.StreamHandler(sys.stdout)
console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

# uvicorn/pytest may have installed handlers already
if not any(getattr(h, "_cancercam", False) for h in logger.handlers):
    for handler in (file_handler, console_handler):
        handler._cancercam = True
        logger.addHandler(handler)

# Expose the logging module-style interface
logging = logger
