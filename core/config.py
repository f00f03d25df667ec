"""Environment-driven settings.

Reads configuration from environment variables, loading a ``.env`` file at the
repository root first when one exists:
- MAPS_DATA_DIR: directory holding the CSV exports (default "./data")
- MAPS_SOURCE_ENCODING: byte encoding of the exports (default "iso-8859-1")
- MAPS_LOG_LEVEL: logging level name (default "INFO")
- MAPS_LOG_JSON: "1"/"true" to emit JSON logs instead of human-readable lines
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

# Load .env file if it exists
from dotenv import load_dotenv
env_path = Path(__file__).resolve().parents[1] / ".env"
if env_path.exists():
    load_dotenv(env_path)


DEFAULT_DATA_DIR = "data"
DEFAULT_SOURCE_ENCODING = "iso-8859-1"


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the loader, API and CLI."""
    data_dir: Path
    source_encoding: str = DEFAULT_SOURCE_ENCODING
    log_level: int = logging.INFO
    log_json: bool = False


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_level(name: str, default: int = logging.INFO) -> int:
    value = os.getenv(name)
    if not value:
        return default
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else default


def get_settings() -> Settings:
    """Build settings from the current environment.

    Read on every call so a changed environment (or a monkeypatched one in
    tests) is picked up without restarting.
    """
    return Settings(
        data_dir=Path(os.getenv("MAPS_DATA_DIR", DEFAULT_DATA_DIR)),
        source_encoding=os.getenv("MAPS_SOURCE_ENCODING", DEFAULT_SOURCE_ENCODING),
        log_level=_env_level("MAPS_LOG_LEVEL"),
        log_json=_env_flag("MAPS_LOG_JSON"),
    )
