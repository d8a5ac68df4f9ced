"""
Configuration management system for LabelHMM.

Provides default settings and configuration override capabilities.
"""

import os
import copy
import json
from typing import Dict, Any, Optional
from pathlib import Path

import jsonschema


DEFAULT_CONFIG = {
    'forward_backward': {
        'normalize': True
    },
    'sampling': {
        'tolerance': 1e-9,
        'random_seed': 42
    },
    'training': {
        'max_iterations': 100,
        'convergence_tolerance': 1e-6,
        'variant': 'standard'
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'file_logging': False,
        'log_file': 'label_hmm.log'
    }
}

# Schema for configuration files; unknown sections are allowed
CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "forward_backward": {
            "type": "object",
            "properties": {
                "normalize": {"type": "boolean"}
            }
        },
        "sampling": {
            "type": "object",
            "properties": {
                "tolerance": {"type": "number", "minimum": 0.0},
                "random_seed": {"type": ["integer", "null"]}
            }
        },
        "training": {
            "type": "object",
            "properties": {
                "max_iterations": {"type": "integer", "minimum": 1},
                "convergence_tolerance": {"type": "number", "minimum": 0.0},
                "variant": {"type": "string", "enum": ["standard", "simple"]}
            }
        },
        "logging": {
            "type": "object",
            "properties": {
                "level": {
                    "type": "string",
                    "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL",
                             "debug", "info", "warning", "error", "critical"]
                },
                "format": {"type": "string"},
                "file_logging": {"type": "boolean"},
                "log_file": {"type": "string"}
            }
        }
    },
    "additionalProperties": True
}


class ConfigManager:
    """Manages configuration settings with override capabilities."""

    def __init__(self):
        self._config = copy.deepcopy(DEFAULT_CONFIG)
        self._load_environment_overrides()

    def _load_environment_overrides(self):
        """Load configuration overrides from environment variables."""
        config_file = os.getenv('LABEL_HMM_CONFIG')
        if config_file and Path(config_file).exists():
            self.load_from_file(config_file)

        env_overrides = {
            'LABEL_HMM_LOG_LEVEL': ('logging', 'level', str),
            'LABEL_HMM_MAX_ITERATIONS': ('training', 'max_iterations', int),
            'LABEL_HMM_CONVERGENCE_TOLERANCE': ('training', 'convergence_tolerance', float),
            'LABEL_HMM_RANDOM_SEED': ('sampling', 'random_seed', int),
            'LABEL_HMM_SAMPLING_TOLERANCE': ('sampling', 'tolerance', float)
        }

        for env_var, (section, key, type_func) in env_overrides.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    self._config[section][key] = type_func(value)
                except (ValueError, KeyError):
                    pass  # Ignore invalid environment values

    def get(self, section: str, key: Optional[str] = None) -> Any:
        """Get configuration value(s)."""
        if key is None:
            return self._config.get(section, {})
        return self._config.get(section, {}).get(key)

    def set(self, section: str, key: str, value: Any) -> None:
        """Set configuration value."""
        if section not in self._config:
            self._config[section] = {}
        self._config[section][key] = value

    def update(self, config_dict: Dict[str, Any]) -> None:
        """Update configuration with dictionary."""
        for section, values in config_dict.items():
            if section not in self._config:
                self._config[section] = {}
            if isinstance(values, dict):
                self._config[section].update(values)
            else:
                self._config[section] = values

    def load_from_file(self, config_path: str) -> None:
        """Load and validate configuration from JSON file."""
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = json.load(f)
            jsonschema.validate(file_config, CONFIG_SCHEMA)
        except (FileNotFoundError, json.JSONDecodeError) as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")
        except jsonschema.ValidationError as e:
            raise ValueError(f"Config validation failed for {config_path}: {e.message}")
        self.update(file_config)

    def save_to_file(self, config_path: str) -> None:
        """Save current configuration to JSON file."""
        parent = os.path.dirname(config_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2)

    def get_all(self) -> Dict[str, Any]:
        """Get complete configuration dictionary."""
        return copy.deepcopy(self._config)

    def reset_to_defaults(self) -> None:
        """Reset configuration to default values."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)
        self._load_environment_overrides()


# Global configuration manager instance
_config_manager = ConfigManager()


def get_config(section: str, key: Optional[str] = None) -> Any:
    """Get configuration value(s) from global config manager."""
    return _config_manager.get(section, key)


def set_config(section: str, key: str, value: Any) -> None:
    """Set configuration value in global config manager."""
    _config_manager.set(section, key, value)


def update_config(config_dict: Dict[str, Any]) -> None:
    """Update global configuration with dictionary."""
    _config_manager.update(config_dict)


def load_config_file(config_path: str) -> None:
    """Load configuration from file into global config manager."""
    _config_manager.load_from_file(config_path)


def save_config_file(config_path: str) -> None:
    """Save global configuration to file."""
    _config_manager.save_to_file(config_path)


def get_all_config() -> Dict[str, Any]:
    """Get complete configuration dictionary."""
    return _config_manager.get_all()


def reset_config() -> None:
    """Reset global configuration to defaults."""
    _config_manager.reset_to_defaults()
