"""
Process settings for Quick Term.

Loads environment overrides from a .env file,
with optional overrides from ~/.config/quick-term/config.toml.
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv

from . import config_file

logger = logging.getLogger(__name__)

# Load .env from project root (quick_term/config.py -> project root)
_env_paths = [
    Path(__file__).parent.parent / ".env",  # project_root/.env
    Path.cwd() / ".env",
]

_env_loaded = False
for _env_path in _env_paths:
    if _env_path.exists():
        load_dotenv(dotenv_path=_env_path)
        logger.debug(f"Loaded .env from {_env_path}")
        _env_loaded = True
        break

if not _env_loaded:
    logger.debug(".env not found; using environment variables if set.")

DATA_DIR = Path(os.getenv("QUICK_TERM_DATA_DIR", Path.home() / ".local" / "share" / "quick-term"))

# History file — env var overrides the default location
HISTORY_PATH = Path(os.getenv("QUICK_TERM_HISTORY_FILE", DATA_DIR / "history.json"))

DEBUG_LOG_PATH = DATA_DIR / "debug.log"


def history_capacity() -> int:
    """History capacity from config.toml."""
    return config_file.get("history_capacity")


def debug_enabled() -> bool:
    return bool(config_file.get("debug"))
