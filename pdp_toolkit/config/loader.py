# pdp_toolkit/config/loader.py
"""Configuration loading and saving.

Dependence configurations can be stored as YAML (default) or JSON files.
Environment variables prefixed with ``PDP_`` override file values when
``allow_environment_override`` is enabled.
"""

import json
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .dependence_config import DependenceConfig
from ..utils.logger import get_logger
from ..utils.exceptions import ConfigurationError, handle_and_reraise

logger = get_logger(__name__)


def _read_mapping(file_path: Path, encoding: str) -> Dict[str, Any]:
    with open(file_path, 'r', encoding=encoding) as f:
        if file_path.suffix.lower() == '.json':
            config = json.load(f)
        else:
            config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise ConfigurationError(
            f"Configuration file must contain a dictionary, got {type(config).__name__}",
            error_code="CONFIG_NOT_A_MAPPING",
            context={'file': str(file_path)}
        )

    return config


def load_config(
    file_path: Union[str, Path],
    allow_environment_override: bool = True,
    env_prefix: str = "PDP_",
    encoding: str = 'utf-8'
) -> DependenceConfig:
    """Load a ``DependenceConfig`` from a YAML or JSON file.

    Args:
        file_path: Path to the configuration file
        allow_environment_override: Apply ``PDP_*`` environment overrides
        env_prefix: Prefix of the environment variables
        encoding: File encoding

    Returns:
        Validated dependence configuration

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid

    Example:
        >>> config = load_config("config/pdp.yaml")
        >>> config.execution.mode
        'parallel'
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {file_path}",
            error_code="CONFIG_FILE_NOT_FOUND",
            context={'file': str(file_path)}
        )

    try:
        config_dict = _read_mapping(file_path, encoding)
        config = DependenceConfig.from_dict(config_dict)
    except (yaml.YAMLError, json.JSONDecodeError, OSError) as e:
        handle_and_reraise(
            e, ConfigurationError,
            f"Failed to parse configuration file: {file_path}",
            error_code="CONFIG_PARSE_FAILED",
            context={'file': str(file_path)}
        )

    if allow_environment_override:
        config.update_from_env(env_prefix)

    logger.debug(f"Loaded dependence configuration from {file_path}")
    return config


def save_config(config: DependenceConfig, file_path: Union[str, Path], encoding: str = 'utf-8') -> Path:
    """Save a configuration as YAML (or JSON for a ``.json`` path).

    Callables (custom progress callbacks, inverse links) are not stored.

    Args:
        config: Configuration to save
        file_path: Destination path
        encoding: File encoding

    Returns:
        Path of the written file
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.to_dict()

    try:
        with open(file_path, 'w', encoding=encoding) as f:
            if file_path.suffix.lower() == '.json':
                json.dump(config_dict, f, indent=2, default=str)
            else:
                yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)
    except (OSError, yaml.YAMLError, TypeError) as e:
        handle_and_reraise(
            e, ConfigurationError,
            f"Failed to save configuration to {file_path}",
            error_code="CONFIG_SAVE_FAILED",
            context={'file': str(file_path)}
        )

    logger.info(f"Configuration saved to {file_path}")
    return file_path
