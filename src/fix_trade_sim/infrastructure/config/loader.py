"""Configuration loading utilities.

This module provides functionality to load and parse YAML configuration files,
with support for defaults and validation.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

import yaml

from ...domain.fix.tags import MsgType
from .models import AllocationConfig, FixConfig, LoggingConfig, ServerConfig

CONFIG_ENV_VAR = "FIX_TRADE_SIM_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/default.yaml")

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ConfigLoader:
    """Loads and manages application configuration from YAML files.

    This class provides a centralized way to load configuration from YAML files,
    with caching to avoid repeated file I/O.

    Parameters
    ----------
    config_path : Optional[Path]
        Path to the configuration file. If None, the path in the
        ``FIX_TRADE_SIM_CONFIG`` environment variable is used, falling back
        to "config/default.yaml".

    Attributes
    ----------
    config_path : Path
        The path to the configuration file
    _config_data : Optional[Dict]
        Cached configuration data

    Notes
    -----
    Every section is optional. A missing section or key takes the
    dataclass default, so an empty file is a valid configuration.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize the config loader with a path."""
        if config_path is None:
            env_path = os.environ.get(CONFIG_ENV_VAR)
            config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH
        self.config_path = Path(config_path)
        self._config_data: Optional[Dict] = None

    def load(self) -> Dict:
        """Load raw configuration data from YAML file.

        Loads the YAML file and caches the result. Subsequent calls
        return the cached data.

        Returns
        -------
        Dict
            The parsed YAML configuration as a dictionary

        Raises
        ------
        FileNotFoundError
            If the configuration file doesn't exist
        yaml.YAMLError
            If the YAML file is malformed
        """
        if self._config_data is None:
            if not self.config_path.exists():
                raise FileNotFoundError(
                    f"Configuration file not found: {self.config_path}"
                )

            with open(self.config_path) as f:
                try:
                    self._config_data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise yaml.YAMLError(
                        f"Failed to parse config file {self.config_path}: {e}"
                    )

        return self._config_data

    def get_fix_config(self) -> FixConfig:
        """Get FIX codec configuration.

        Returns
        -------
        FixConfig
            The codec configuration with defaults applied

        Raises
        ------
        ValueError
            If the fallback message type is not a supported code
        """
        fix_data = self.load().get("fix", {}) or {}
        defaults = FixConfig()

        fallback_code = str(
            fix_data.get("fallback_msg_type", defaults.fallback_msg_type.value)
        )
        try:
            fallback = MsgType(fallback_code)
        except ValueError:
            valid_types = [mt.value for mt in MsgType]
            raise ValueError(
                f"Invalid fallback_msg_type: {fallback_code}. "
                f"Valid types are: {valid_types}"
            )

        return FixConfig(
            begin_string=str(fix_data.get("begin_string", defaults.begin_string)),
            fallback_msg_type=fallback,
        )

    def get_allocation_config(self) -> AllocationConfig:
        """Get allocation validation configuration.

        Raises
        ------
        ValueError
            If the percent tolerance is not positive
        """
        allocation_data = self.load().get("allocation", {}) or {}
        tolerance = float(
            allocation_data.get(
                "percent_tolerance", AllocationConfig.percent_tolerance
            )
        )
        if tolerance <= 0:
            raise ValueError(
                f"percent_tolerance must be positive, got {tolerance}"
            )
        return AllocationConfig(percent_tolerance=tolerance)

    def get_server_config(self) -> ServerConfig:
        """Get HTTP server configuration.

        Raises
        ------
        ValueError
            If the port is outside 1-65535
        """
        server_data = self.load().get("server", {}) or {}
        port = int(server_data.get("port", ServerConfig.port))
        if not 0 < port < 65536:
            raise ValueError(f"Invalid server port: {port}")
        return ServerConfig(
            host=str(server_data.get("host", ServerConfig.host)),
            port=port,
        )

    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration.

        Raises
        ------
        ValueError
            If the level is not a standard logging level name
        """
        logging_data = self.load().get("logging", {}) or {}
        level = str(logging_data.get("level", LoggingConfig.level)).upper()
        if level not in _LOG_LEVELS:
            raise ValueError(
                f"Invalid logging level: {level}. "
                f"Valid levels are: {list(_LOG_LEVELS)}"
            )
        return LoggingConfig(
            level=level,
            format=str(logging_data.get("format", LoggingConfig.format)),
        )

    def configure_logging(self) -> None:
        """Apply the logging section to the root logger."""
        config = self.get_logging_config()
        logging.basicConfig(level=config.level, format=config.format)
