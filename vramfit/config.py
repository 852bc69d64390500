"""Environment variable loading and configuration."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")


def get_env(key: str, default: str | None = None) -> str:
    """Get an environment variable or raise if missing and no default."""
    value = os.getenv(key, default)
    if value is None:
        raise ValueError(f"Missing required environment variable: {key}")
    return value


# Catalogs (bundled sample data unless overridden)
DATA_DIR = _PROJECT_ROOT / "data"
MODELS_PATH = Path(get_env("VRAMFIT_MODELS_PATH", str(DATA_DIR / "models.json")))
GPUS_PATH = Path(get_env("VRAMFIT_GPUS_PATH", str(DATA_DIR / "gpus.json")))

# Minimum context (K tokens) enforced for agentic coding workflows. Tools like
# Cline or Roo Code send file contents, tool results and history every turn.
AGENTIC_MIN_CONTEXT_K = int(get_env("VRAMFIT_AGENTIC_MIN_CONTEXT_K", "64"))
