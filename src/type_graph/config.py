# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Configuration loading and validation for the type graph index."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = ".type_graph.yml"

DOT_LAYOUTS = ("dot", "neato", "fdp", "sfdp", "circo", "twopi")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ConfigurationError(Exception):
    """Raised when configuration validation fails critically."""

    pass


class Config:
    """Configuration for building and rendering the type graph.

    Loads configuration from .type_graph.yml with validation and defaults.
    """

    DEFAULTS = {
        "merge_scala_aux_classes": True,
        "dot_graph_size": 400,  # GraphViz "size" attribute, inches
        "dot_layout": "neato",
        "log_level": "WARNING",
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file. If None, uses default location.
        """
        if config_path is None:
            config_path = Path.cwd() / DEFAULT_CONFIG_FILENAME

        self.config_path = config_path
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load and validate configuration from file."""
        if not self.config_path.exists():
            logger.info(f"Configuration file not found at {self.config_path}, using defaults")
            self._config = self.DEFAULTS.copy()
            return

        try:
            with open(self.config_path, encoding="utf-8") as f:
                loaded_config = yaml.safe_load(f)
        except (yaml.YAMLError, OSError) as e:
            logger.warning(
                f"Error reading configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self.DEFAULTS.copy()
            return

        if loaded_config is None:
            logger.warning("Configuration file is empty, using defaults")
            self._config = self.DEFAULTS.copy()
            return

        if not isinstance(loaded_config, dict):
            logger.warning(
                f"Configuration file must contain a YAML dictionary, "
                f"got {type(loaded_config)}, using defaults"
            )
            self._config = self.DEFAULTS.copy()
            return

        # Start with defaults and override with loaded values
        self._config = self.DEFAULTS.copy()
        self._validate_and_merge(loaded_config)

    def _validate_and_merge(self, loaded_config: Dict[str, Any]) -> None:
        """Validate loaded configuration and merge with defaults.

        Invalid parameters are logged as warnings and defaults are used.
        """
        for key, value in loaded_config.items():
            if key not in self.DEFAULTS:
                logger.warning(f"Unknown configuration parameter '{key}', ignoring")
                continue

            if not self._validate_parameter(key, value):
                logger.warning(
                    f"Invalid value for '{key}': {value}, using default {self.DEFAULTS[key]}"
                )
                continue

            self._config[key] = value

    def _validate_parameter(self, key: str, value: Any) -> bool:
        """Validate a configuration parameter.

        Returns:
            True if valid, False if invalid
        """
        expected_type = type(self.DEFAULTS[key])
        # bool is an int subclass; don't accept True as a size
        if expected_type is int and isinstance(value, bool):
            return False
        if not isinstance(value, expected_type):
            return False

        if key == "dot_graph_size":
            return bool(value > 0)
        elif key == "dot_layout":
            return value in DOT_LAYOUTS
        elif key == "log_level":
            return value.upper() in LOG_LEVELS

        return True

    @property
    def merge_scala_aux_classes(self) -> bool:
        """Whether Scala companion/trait classes are folded into their base entity."""
        value = self._config["merge_scala_aux_classes"]
        assert isinstance(value, bool)
        return value

    @property
    def dot_graph_size(self) -> int:
        """GraphViz drawing size for dot output."""
        value = self._config["dot_graph_size"]
        assert isinstance(value, int)
        return value

    @property
    def dot_layout(self) -> str:
        """GraphViz layout engine for dot output."""
        value = self._config["dot_layout"]
        assert isinstance(value, str)
        return value

    @property
    def log_level(self) -> int:
        """Logging level as a logging module constant."""
        value = self._config["log_level"]
        assert isinstance(value, str)
        level = logging.getLevelName(value.upper())
        assert isinstance(level, int)
        return level
