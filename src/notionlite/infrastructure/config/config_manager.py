"""Configuration manager for loading and validating .notion.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from notionlite.domain.config import AppConfig, NotionConfig, RetryConfig
from notionlite.infrastructure.http_client import RetryPolicy, retry_policy_from_dict

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".notion.yml"


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .notion.yml and environment variables

    Loads configuration with validation using Pydantic models. Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .notion.yml file (searched from current directory)
    3. Environment variables (NOTION_*)
    4. CLI arguments (handled by CLI layer)
    """

    DEFAULT_CONFIG = {
        "notion": {
            "api_key": None,
            "base_url": "https://api.notion.com/v1",
            "version": "2022-06-28",
            "timeout": 30.0,
        },
        "retry": {
            "max_attempts": 4,
            "initial_delay": 0.5,
            "backoff_multiplier": 2.0,
            "jitter": 0.1,
            "max_delay": 60.0,
        },
    }

    ENV_OVERRIDES = {
        "NOTION_API_KEY": "api_key",
        "NOTION_BASE_URL": "base_url",
        "NOTION_VERSION": "version",
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .notion.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                msg = error["msg"]
                errors.append(f"  - {field}: {msg}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .notion.yml file starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Returns:
            Validated AppConfig instance

        Raises:
            ValidationError: If configuration is invalid
            ConfigurationError: If the file is not a YAML mapping
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")
            else:
                if not isinstance(file_config, dict):
                    raise ConfigurationError(
                        f"Configuration file {self.config_path} must contain a mapping"
                    )
                config_dict = self._merge_config(config_dict, file_config)
                logger.info(f"Loaded configuration from {self.config_path}")

        config_dict = self._apply_env_overrides(config_dict)

        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries"""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply NOTION_* environment variable overrides"""
        notion = config.setdefault("notion", {})
        for env_name, key in self.ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                notion[key] = value
        return config

    def get_notion_config(self) -> NotionConfig:
        """Get Notion connection configuration"""
        return self.config.notion

    def get_retry_config(self) -> RetryConfig:
        """Get retry configuration

        Returns:
            Retry configuration model
        """
        return self.config.retry

    def get_retry_policy(self) -> RetryPolicy:
        """Get the retry policy used by the executor"""
        return retry_policy_from_dict(self.config.retry.model_dump())
