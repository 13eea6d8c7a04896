"""
Configuration management with YAML and validation
"""

import yaml
import logging
from dataclasses import asdict
from typing import Dict, Any
from pathlib import Path

from .exceptions import ConfigError
from .config_types import QueryConfig, WebhookConfig, LoggingConfig, UIConfig

logger = logging.getLogger(__name__)

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

class ConfigManager:
    """Configuration manager with validation and defaults"""

    def __init__(self, config_path: str = "config.yaml", create_missing: bool = True):
        self.config_path = Path(config_path)
        self.create_missing = create_missing
        self.raw_config = self._load_config()

        # Parse configuration sections
        self.query = self._parse_section('query', QueryConfig)
        self.webhook = self._parse_section('webhook', WebhookConfig)
        self.logging = self._parse_section('logging', LoggingConfig)
        self.ui = self._parse_section('ui', UIConfig)

        self.validate()
        logger.info(f"Configuration loaded from {config_path}")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file"""
        if not self.config_path.exists():
            if not self.create_missing:
                logger.debug(f"Config file {self.config_path} not found, using defaults")
                return {}
            logger.warning(f"Config file {self.config_path} not found, creating default")
            self.create_default_config()

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigError("Config root must be a mapping")
        return raw

    def create_default_config(self) -> None:
        """Create default configuration file"""
        default_config = {
            'query': asdict(QueryConfig()),
            'webhook': asdict(WebhookConfig()),
            'logging': asdict(LoggingConfig()),
            'ui': asdict(UIConfig())
        }

        try:
            with open(self.config_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(default_config, f, default_flow_style=False, indent=2)
        except OSError as e:
            raise ConfigError(f"Failed to write default config: {e}") from e

    def _parse_section(self, name: str, config_type):
        section = self.raw_config.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"Config section '{name}' must be a mapping")
        try:
            return config_type(**section)
        except TypeError as e:
            raise ConfigError(f"Invalid '{name}' section: {e}") from e

    def validate(self) -> None:
        """Validate configuration values"""
        query = self.query
        if not isinstance(query.timeout, (int, float)) or query.timeout <= 0:
            raise ConfigError("Query timeout must be positive")
        if not isinstance(query.max_frame_size, int) or query.max_frame_size < 1024:
            raise ConfigError("Max frame size must be at least 1024 bytes")
        if query.max_concurrent is not None and query.max_concurrent <= 0:
            raise ConfigError("Max concurrent queries must be positive")
        if not 1 <= query.default_port <= 65535:
            raise ConfigError(f"Invalid default port: {query.default_port}")

        if self.webhook.enabled and not self.webhook.url:
            raise ConfigError("Webhook URL must be specified when enabled")
        if self.webhook.timeout <= 0:
            raise ConfigError("Webhook timeout must be positive")

        if str(self.logging.level).upper() not in LOG_LEVELS:
            raise ConfigError(f"Invalid log level: {self.logging.level}")

        logger.debug("Configuration validation passed")
