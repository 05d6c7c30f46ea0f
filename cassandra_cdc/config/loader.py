"""
Configuration Loader - Load YAML configuration files
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from cassandra_cdc.config.settings import CDCSettings, PipelineSettings, TriggerSettings

logger = logging.getLogger(__name__)

TRIGGER_CONFIG_PATH = "/etc/cassandra/triggers/KafkaTrigger.yml"
TOPIC_NAME = "topic.name"
TRIGGER_PREFIX = "trigger."
DLQ_DIRECTORY = "trigger.dlq_directory"


class ConfigError(Exception):
    """Raised when configuration is missing or invalid"""

    pass


def load_yaml_config(file_path: str) -> Dict[str, Any]:
    """
    Load YAML configuration file

    Args:
        file_path: Path to YAML file

    Returns:
        Dictionary containing configuration

    Raises:
        FileNotFoundError: If configuration file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)

        if config is None:
            logger.warning(f"Empty configuration file: {file_path}")
            return {}

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration root must be a mapping: {file_path}")

        logger.info(f"Loaded configuration from {file_path}")
        return config

    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML file {file_path}: {e}")
        raise


def load_config(config_path: Optional[str] = None) -> CDCSettings:
    """
    Load CDC publisher configuration from YAML file or environment variables.

    Args:
        config_path: Optional path to YAML config file. If None, uses environment variables.

    Returns:
        CDCSettings: Validated configuration object

    Raises:
        FileNotFoundError: If config file specified but not found
        yaml.YAMLError: If YAML parsing fails
        ConfigError: If configuration validation fails

    Examples:
        >>> config = load_config("config/cdc.yaml")
    """
    yaml_config: Dict[str, Any] = {}

    if config_path:
        try:
            yaml_config = load_yaml_config(config_path)
        except FileNotFoundError:
            logger.error(f"Configuration file not found: {config_path}")
            raise
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in configuration file: {e}")
            raise

    try:
        config = CDCSettings(**yaml_config)
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.debug("Configuration loaded successfully")
    return config


def load_trigger_config(config_path: str = TRIGGER_CONFIG_PATH) -> TriggerSettings:
    """
    Load the trigger's flat property file

    ``topic.name`` is required; keys starting with ``trigger.`` tune the
    worker pool; everything else is passed to the broker client.

    Args:
        config_path: Path to trigger YAML file

    Returns:
        TriggerSettings

    Raises:
        ConfigError: If topic.name is missing or a pool setting is invalid
    """
    properties = load_yaml_config(config_path)

    if TOPIC_NAME not in properties:
        raise ConfigError(f"Property: {TOPIC_NAME} not found in configuration.")

    pipeline: Dict[str, Any] = {}
    producer_configuration: Dict[str, Any] = {}
    for key, value in properties.items():
        if key == TOPIC_NAME or key == DLQ_DIRECTORY:
            continue
        if key.startswith(TRIGGER_PREFIX):
            pipeline[key[len(TRIGGER_PREFIX):]] = value
        else:
            producer_configuration[key] = value

    try:
        return TriggerSettings(
            topic=properties[TOPIC_NAME],
            producer_configuration=producer_configuration,
            pipeline=PipelineSettings(**pipeline),
            dlq_directory=properties.get(DLQ_DIRECTORY),
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid trigger configuration: {e}") from e
