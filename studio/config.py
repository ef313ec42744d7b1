"""
Runtime configuration read from the environment (and a local .env file).
"""
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        parsed = float(raw)
        if parsed <= 0:
            return default
        return parsed
    except ValueError:
        return default


GEMINI_API_KEY: Optional[str] = os.getenv("GEMINI_API_KEY")
GEMINI_TEXT_MODEL = os.getenv("GEMINI_TEXT_MODEL", "gemini-2.5-flash")
GEMINI_EMBEDDING_MODEL = os.getenv("GEMINI_EMBEDDING_MODEL", "text-embedding-004")
GEMINI_IMAGE_MODEL = os.getenv("GEMINI_IMAGE_MODEL", "imagen-3.0-generate-002")

# Upper bound for downloading remote images before analysis
IMAGE_FETCH_TIMEOUT_SECONDS = _env_float("IMAGE_FETCH_TIMEOUT_SECONDS", 60.0)

# Optional JSON file mirroring the saved workflow library; unset keeps it in memory
STUDIO_WORKFLOWS_FILE: Optional[str] = os.getenv("STUDIO_WORKFLOWS_FILE") or None

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Bind address for the `node-studio` server command
STUDIO_HOST = os.getenv("STUDIO_HOST", "127.0.0.1")
STUDIO_PORT = int(_env_float("STUDIO_PORT", 8000))
