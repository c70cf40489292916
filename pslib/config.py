"""
pslib.config — Configuration singleton for PoolSweep.

Provides thread-safe lazy loading of config.json, environment overrides for
region and data directory, and typed accessors for the sweep settings.

Zero dependency on utils.py — uses only stdlib.
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_REGION = "eu-central-1"
DEFAULT_MAX_RESULTS = 60
DEFAULT_DATA_DIR = "data"
DEFAULT_SAFE_EMAIL_DOMAINS = ["cleo.com"]

DEFAULT_CONFIG: Dict[str, Any] = {
    "__comment": "PoolSweep Configuration - Customize this file for your environment",
    "default_region": DEFAULT_REGION,
    "max_results": DEFAULT_MAX_RESULTS,
    "data_dir": DEFAULT_DATA_DIR,
    "safe_email_domains": DEFAULT_SAFE_EMAIL_DOMAINS,
    "custom_attributes": [],
    "anonymize_snapshots": True,
    "aws_sdk_config": {
        "retries": {"max_attempts": 5, "mode": "adaptive"},
        "connect_timeout": 10,
        "read_timeout": 60,
    },
}

# ---------------------------------------------------------------------------
# Module-level state (config singleton)
# ---------------------------------------------------------------------------

CONFIG_DATA: Dict[str, Any] = {}
_CONFIG_LOADED: bool = False
_CONFIG_LOCK: threading.Lock = threading.Lock()


def _project_root() -> Path:
    """Return the PoolSweep project root (parent of the pslib package)."""
    return Path(__file__).parent.parent


def _config_path() -> Path:
    """Return the absolute path to config.json (sibling of poolsweep.py)."""
    return _project_root() / "config.json"


# ---------------------------------------------------------------------------
# Config loading
# ---------------------------------------------------------------------------


def load_config() -> Dict[str, Any]:
    """
    Load configuration from config.json, writing a default file if none exists.

    Missing keys are filled from DEFAULT_CONFIG so callers never have to
    guard against a partially written file.

    Returns:
        dict: CONFIG_DATA
    """
    global CONFIG_DATA

    data: Dict[str, Any] = {}
    config_file = _config_path()

    try:
        if config_file.exists():
            with open(config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            logger.debug("Configuration loaded from %s", config_file)
        else:
            logger.warning("config.json not found. Using default PoolSweep configuration.")
            try:
                with open(config_file, "w", encoding="utf-8") as f:
                    json.dump(DEFAULT_CONFIG, f, indent=2)
                logger.info("Created default config.json at %s", config_file)
            except OSError as e:
                logger.error("Failed to create default config.json: %s", e)

    except (OSError, ValueError) as e:
        logger.error("Error loading configuration: %s", e)

    merged = dict(DEFAULT_CONFIG)
    merged.update(data)
    CONFIG_DATA = merged
    return CONFIG_DATA


def get_config() -> Dict[str, Any]:
    """
    Lazy-load configuration. First call loads from disk; subsequent calls return cached values.
    Thread-safe: uses _CONFIG_LOCK to prevent concurrent initialization.

    Returns:
        dict: CONFIG_DATA
    """
    global _CONFIG_LOADED, CONFIG_DATA
    with _CONFIG_LOCK:
        if not _CONFIG_LOADED:
            CONFIG_DATA = load_config()
            _CONFIG_LOADED = True
    return CONFIG_DATA


# ---------------------------------------------------------------------------
# Config value accessors
# ---------------------------------------------------------------------------


def config_value(key: str, default: Any = None) -> Any:
    """
    Get a value from the configuration.

    Args:
        key: Configuration key
        default: Default value if key is not found

    Returns:
        The configuration value or default
    """
    cfg = get_config()
    if not cfg:
        return default
    return cfg.get(key, default)


def get_region() -> str:
    """Region for this run: POOLSWEEP_REGION, then config, then the built-in default."""
    return os.environ.get("POOLSWEEP_REGION") or config_value("default_region", DEFAULT_REGION)


def get_data_dir() -> Path:
    """
    Root directory for snapshot and export output.

    Relative paths are resolved against the project root.
    """
    raw = os.environ.get("POOLSWEEP_DATA_DIR") or config_value("data_dir", DEFAULT_DATA_DIR)
    path = Path(raw)
    if not path.is_absolute():
        path = _project_root() / path
    return path


def get_max_results() -> int:
    return int(config_value("max_results", DEFAULT_MAX_RESULTS))


def get_safe_email_domains() -> List[str]:
    return list(config_value("safe_email_domains", DEFAULT_SAFE_EMAIL_DOMAINS) or [])


def get_custom_attributes() -> List[str]:
    return list(config_value("custom_attributes", []) or [])


def anonymize_snapshots() -> bool:
    return bool(config_value("anonymize_snapshots", True))
