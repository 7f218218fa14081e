"""Simple YAML configuration loader for Pingo."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    'api': {
        'base_url': 'http://localhost:3001',
    },
    'realtime': {
        'url': 'https://api.openai.com/v1/realtime',
        'model': 'gpt-4o-realtime-preview',
        'ice_servers': ['stun:stun.l.google.com:19302'],
        'temperature': 0.6,
        'greeting_delay_seconds': 1.0,
        'submit_delay_seconds': 0.1,
        'channel_open_timeout_seconds': 30.0,
        'done_events_end_speaking': False,
        'input_transcription_model': 'whisper-1',
    },
    'audio': {
        'sample_rate': 16000,
        'chunk_size': 320,
        'channels': 1,
    },
    'server': {
        'host': '0.0.0.0',
        'port': 3001,
    },
    'openai': {
        'base_url': 'https://api.openai.com/v1',
        'api_key_env': 'OPENAI_API_KEY',
        'transcription_model': 'whisper-1',
        'summary_model': 'gpt-3.5-turbo',
        'correction_model': 'gpt-4',
        'session_voice': 'alloy',
    },
    'logging': {
        'level': 'INFO',
        'file_path': 'data/logs/pingo.log',
        'console_output': True,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


class PingoConfig:
    """Pingo configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults are used.
        """
        self.config_file = Path(config_path) if config_path else None
        self.config = copy.deepcopy(DEFAULT_CONFIG)

        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            return

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        _deep_merge(self.config, self._load_config())

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping")

        # Resolve log file path
        if 'logging' in config and 'file_path' in config['logging']:
            log_path = config['logging']['file_path']
            if not os.path.isabs(log_path):
                config['logging']['file_path'] = str(self.config_file.parent / log_path)

        logger.info("Configuration loaded successfully")
        return config

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'realtime.model').

        Args:
            key_path: Dot-separated key path (e.g., 'audio.sample_rate')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'realtime.temperature')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_api_key(self) -> str:
        """Get the upstream API key from the environment - CRASHES if not found."""
        env_name = self.get('openai.api_key_env', 'OPENAI_API_KEY')
        api_key = os.environ.get(env_name)
        if not api_key:
            raise ValueError(f"Missing {env_name}: set it in the environment or a .env file")
        return api_key
