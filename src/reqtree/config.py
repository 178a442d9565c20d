"""
Configuration management for outline repair.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv
from loguru import logger

# Load environment variables
load_dotenv()

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"
CONFIG_DIR = PROJECT_ROOT / "config"
LOGS_DIR = DATA_DIR / "logs"

LOG_FORMAT = "{time} | {level: <8} | {name}:{function}:{line} - {message}"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring {name}={value!r}, expected an integer; using {default}")
        return default


class Config:
    """Base configuration class."""

    # Data paths
    DATA_ROOT = DATA_DIR
    SCRAPED_DATA = DATA_DIR / "scraped"
    REPAIRED_DATA = DATA_DIR / "repaired"
    RENUMBERING_FILE = CONFIG_DIR / "renumbering.yaml"

    # Logging
    LOG_LEVEL = os.getenv("REQTREE_LOG_LEVEL", os.getenv("LOG_LEVEL", "INFO"))

    # Repair behaviour
    DISPLAY_ORDER_OFFSET = _env_int("REQTREE_DISPLAY_OFFSET", 1)
    SYNTHESIZE_MISSING_PARENTS = _env_bool("REQTREE_SYNTHESIZE_PARENTS")

    @classmethod
    def load_yaml(cls, filename: Union[str, Path]) -> Dict[str, Any]:
        """Load a YAML file; relative names are looked up in ``config/``."""
        config_path = Path(filename)
        if not config_path.is_absolute():
            config_path = CONFIG_DIR / config_path
        if not config_path.exists():
            logger.warning(f"Config file not found: {config_path}")
            return {}

        with open(config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}


def configure_logging(level: Optional[str] = None, log_dir: Optional[Path] = LOGS_DIR) -> None:
    """Install the stderr sink and, when ``log_dir`` is set, a rotating file sink."""
    level = (level or Config.LOG_LEVEL).upper()
    logger.remove()
    logger.add(sys.stderr, level=level)
    if log_dir is not None:
        logger.add(
            Path(log_dir) / "reqtree_{time}.log",
            level=level,
            rotation="500 MB",
            retention="10 days",
            format=LOG_FORMAT,
        )
    logger.debug(f"Logging configured at {level}. Project root: {PROJECT_ROOT}")
