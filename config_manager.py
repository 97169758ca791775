"""
Configuration Manager for the chat server registry
Handles loading and saving server settings
"""

import copy
import json
import logging
import os
from typing import Dict, Any


logger = logging.getLogger('ConfigManager')


class ConfigManager:
    """Manages server configuration"""

    DEFAULT_CONFIG = {
        "registry": {
            "default_nickname_prefix": "User"
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        }
    }

    def __init__(self, config_path: str = "chatregistry_config.json"):
        self.config_path = config_path
        self.config = self.load_config()

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file"""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r') as f:
                    loaded = json.load(f)
                    # Merge with defaults to ensure all keys exist
                    config = self._merge_configs(copy.deepcopy(self.DEFAULT_CONFIG), loaded)
                    logger.info(f"Loaded config from {self.config_path}")
                    return config
            except (OSError, ValueError) as e:
                logger.error(f"Error loading config: {e}")
                return copy.deepcopy(self.DEFAULT_CONFIG)
        logger.info("No config found, using defaults")
        return copy.deepcopy(self.DEFAULT_CONFIG)

    def save_config(self):
        """Save configuration to file"""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.config, f, indent=2)
        except OSError as e:
            logger.error(f"Error saving config: {e}")

    def _merge_configs(self, default: dict, loaded: dict) -> dict:
        """Recursively merge loaded config with defaults"""
        for key, value in loaded.items():
            if key in default and isinstance(default[key], dict) and isinstance(value, dict):
                default[key] = self._merge_configs(default[key], value)
            else:
                default[key] = value
        return default

    def get(self, *keys, default=None):
        """Get a config value by path"""
        value = self.config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, *keys, value):
        """Set a config value by path"""
        config = self.config
        for key in keys[:-1]:
            if key not in config:
                config[key] = {}
            config = config[key]
        config[keys[-1]] = value
        self.save_config()

    def setup_logging(self):
        """Configure the root logger from the logging section"""
        level_name = str(self.get('logging', 'level', default='INFO')).upper()
        level = getattr(logging, level_name, logging.INFO)
        logging.basicConfig(
            level=level,
            format=self.get('logging', 'format',
                            default=self.DEFAULT_CONFIG['logging']['format'])
        )
        logging.getLogger().setLevel(level)
