"""
Configuration management for the task list.
Loads a YAML configuration file over built-in defaults.
"""

import copy
import yaml
import os
from typing import Any, Dict, Optional
import logging


DEFAULTS: Dict[str, Any] = {
    'storage': {
        'mode': 'remote',
        'local_path': 'data/storage.json',
        'local_key': 'taskManager_tasks',
        'seed_samples': True,
    },
    'remote': {
        'base_url': 'http://127.0.0.1:3000',
        'timeout': 5,
    },
    'api': {
        'enabled': True,
        'host': '127.0.0.1',
        'port': 3000,
        'database': 'data/tasks.db',
    },
    'web': {
        'host': '127.0.0.1',
        'port': 5000,
        'secret_key': None,
        'removal_delay_ms': 300,
    },
    'logging': {
        'level': 'INFO',
        'console': True,
        'file': None,
    },
}


def _merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into a copy of base"""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """
    Application configuration manager
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Load configuration from YAML file

        Args:
            config_path: Path to config.yaml; None uses the defaults only
        """
        self.logger = logging.getLogger(__name__)
        loaded: Dict[str, Any] = {}

        if config_path is not None:
            if not os.path.exists(config_path):
                raise FileNotFoundError(f"Configuration file not found: {config_path}")

            with open(config_path, 'r') as f:
                loaded = yaml.safe_load(f) or {}

            if not isinstance(loaded, dict):
                raise ValueError(f"Configuration root must be a mapping: {config_path}")

        self._config = _merge(DEFAULTS, loaded)

        # Expand environment variables in paths
        self._expand_paths(self._config)

        if config_path is not None:
            self.logger.info(f"Configuration loaded from {config_path}")

    def _expand_paths(self, config: Dict):
        """Recursively expand environment variables in path strings"""
        for key, value in config.items():
            if isinstance(value, dict):
                self._expand_paths(value)
            elif isinstance(value, str) and ('$' in value or '~' in value):
                config[key] = os.path.expandvars(os.path.expanduser(value))

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation

        Args:
            path: Configuration path (e.g., 'storage.mode')
            default: Default value if path doesn't exist

        Returns:
            Configuration value
        """
        value = self._config

        for key in path.split('.'):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, path: str, value: Any):
        """
        Set configuration value using dot notation

        Args:
            path: Configuration path (e.g., 'storage.mode')
            value: Value to set
        """
        keys = path.split('.')
        config = self._config

        for key in keys[:-1]:
            config = config.setdefault(key, {})

        config[keys[-1]] = value
        self.logger.debug(f"Config set: {path} = {value}")
