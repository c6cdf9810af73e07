"""
Logging configuration loader and setup.

Reads the logging settings from YAML and attaches rotating JSON file handlers
to the ``kpi_engine`` logger hierarchy.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, cast

import yaml

from .console import ConsoleOutput
from .formatters import JSONFormatter
from .handlers import create_rotating_handler

ROOT_LOGGER_NAME = "kpi_engine"

# Module-level cache for logger instances
_loggers: Dict[str, ConsoleOutput] = {}


def load_config(config_file: Optional[str] = None) -> Dict:
    """
    Load logging configuration from a YAML file.

    Args:
        config_file: Path to YAML config file (default: config/logging.yaml)

    Returns:
        Dictionary containing logging configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    config_path = Path(config_file or "config/logging.yaml")

    if not config_path.exists():
        raise FileNotFoundError(f"Logging config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config = cast(Dict[Any, Any], yaml.safe_load(f) or {})

    return config


def setup_logging(
    log_level: str = "INFO", log_file: Optional[str] = None, config_file: Optional[str] = None
) -> logging.Logger:
    """
    Setup logging for the KPI engine.

    Installs a main JSON log file and an error log file (warnings and above),
    both rotating and compressed, and applies per-logger levels from config.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional override for main log file path
        config_file: Optional path to logging config YAML

    Returns:
        The ``kpi_engine`` logger

    Example:
        >>> setup_logging(log_level="DEBUG")
        >>> out = get_logger("kpi_engine.cli")
        >>> out.info("Scoring user u-1", emoji="📊")
    """
    try:
        config = load_config(config_file)
    except FileNotFoundError:
        config = _get_default_config()

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    rotation = config.get("rotation") or {}
    files = config.get("files") or {}

    main_handler = create_rotating_handler(
        log_file=log_file or files.get("main", "logs/kpi_engine.log"),
        max_bytes=rotation.get("max_bytes", 5242880),
        backup_count=rotation.get("backup_count", 5),
        compress=rotation.get("compress", True),
        formatter=JSONFormatter(),
    )
    main_handler.setLevel(numeric_level)
    root_logger.addHandler(main_handler)

    error_handler = create_rotating_handler(
        log_file=files.get("error", "logs/kpi_engine_error.log"),
        max_bytes=rotation.get("max_bytes", 5242880),
        backup_count=rotation.get("backup_count", 5),
        compress=rotation.get("compress", True),
        formatter=JSONFormatter(),
    )
    error_handler.setLevel(logging.WARNING)
    root_logger.addHandler(error_handler)

    for logger_name, logger_config in (config.get("loggers") or {}).items():
        child_level = (logger_config or {}).get("level", log_level).upper()
        logging.getLogger(logger_name).setLevel(getattr(logging, child_level, numeric_level))

    return root_logger


def get_logger(name: str) -> ConsoleOutput:
    """
    Get a cached ConsoleOutput wrapper for the named logger.

    Args:
        name: Logger name (e.g., 'kpi_engine.models.kpi')

    Returns:
        ConsoleOutput instance wrapping the named logger
    """
    if name not in _loggers:
        _loggers[name] = ConsoleOutput(logging.getLogger(name))

    return _loggers[name]


def _get_default_config() -> Dict:
    """Default configuration used when no logging.yaml is present"""
    return {
        "rotation": {"max_bytes": 5242880, "backup_count": 5, "compress": True},
        "files": {"main": "logs/kpi_engine.log", "error": "logs/kpi_engine_error.log"},
        "loggers": {},
    }
