#!/usr/bin/env python3
"""
Configuration for the Launch container extractor
Built-in defaults, optionally overlaid with a JSON file
Keys are addressed with dotted paths, e.g. config.get('discovery.maxDepth')
"""

import copy
import json
import os
from typing import Any, Dict, Optional

from logging_setup import setup_logger


DEFAULT_CONFIG: Dict[str, Any] = {
    'browser': {
        'headless': True,
        'timeout': 30000,
        'userAgent': 'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
    },
    'discovery': {
        'maxDepth': 3,
        'followExtensions': True,
        'timeout': 10000
    },
    'retry': {
        'maxAttempts': 3,
        'backoff': 'exponential',
        'initialDelay': 1000
    },
    'sandbox': {
        'scriptTimeout': 10000,
        'literalTimeout': 5000
    },
    'output': {
        'prettify': True
    },
    'logging': {
        'debug': False
    }
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class Config:
    """Dotted-key configuration store with JSON file overlay"""

    def __init__(self, custom_config_path: Optional[str] = None, debug_mode: bool = False):
        self.logger = setup_logger('Config', debug_mode)
        self.custom_config = self.load_custom_config(custom_config_path) if custom_config_path else {}
        self.config = _deep_merge(DEFAULT_CONFIG, self.custom_config)

    def load_custom_config(self, config_path: str) -> Dict[str, Any]:
        """
        Load a JSON configuration file

        Returns:
            Parsed settings, or an empty dict when the file is missing or invalid
        """
        if not os.path.exists(config_path):
            self.logger.warning(f"⚠ Config file not found: {config_path}, using defaults")
            return {}

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.warning(f"⚠ Could not load custom config from {config_path}: {e}")
            return {}

        if not isinstance(data, dict):
            self.logger.warning(f"⚠ Config file {config_path} is not a JSON object, using defaults")
            return {}

        self.logger.debug(f"📋 Loaded custom config: {config_path}")
        return data

    def get(self, key: str, default: Any = None) -> Any:
        value: Any = self.config
        for part in key.split('.'):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value

    def set(self, key: str, value: Any):
        parts = key.split('.')
        current = self.config
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[parts[-1]] = value

    def get_all(self) -> Dict[str, Any]:
        return copy.deepcopy(self.config)
