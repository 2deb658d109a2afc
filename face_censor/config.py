import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# ─── Censoring ────────────────────────────────────────────────────────
DEFAULT_BLOCK_SIZE = int(os.getenv("DEFAULT_BLOCK_SIZE", "10"))
MIN_BLOCK_SIZE = int(os.getenv("MIN_BLOCK_SIZE", "5"))
MAX_BLOCK_SIZE = int(os.getenv("MAX_BLOCK_SIZE", "30"))
OVERLAP_MODE = os.getenv("OVERLAP_MODE", "compound")

# ─── Face engine ──────────────────────────────────────────────────────
FACE_ENGINE_MODEL = os.getenv("FACE_ENGINE_MODEL", "buffalo_l")
FACE_ENGINE_CTX_ID = int(os.getenv("FACE_ENGINE_CTX_ID", "0"))
FACE_ENGINE_DET_SIZE = int(os.getenv("FACE_ENGINE_DET_SIZE", "640"))
DET_CONF_THR = float(os.getenv("DET_CONF_THR", "0.0"))

# ─── API server ───────────────────────────────────────────────────────
ALLOWED_EXTENSIONS = set(os.getenv("ALLOWED_EXTENSIONS", "png,jpg,jpeg,gif,bmp,webp").split(","))
MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "100")) * 1024 * 1024
DOWNLOAD_FILENAME = os.getenv("DOWNLOAD_FILENAME", "censored-image.png")
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "5000"))

LOG_FORMAT = '%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s'
LOG_DATEFMT = '%H:%M:%S'


def configure_logging(level: int = logging.INFO) -> None:
    """Centralized logging configuration, called once by entry points."""
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
