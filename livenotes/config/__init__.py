"""Simple YAML configuration loader for LiveNotes."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from ..models.audio import CaptureSource

logger = logging.getLogger(__name__)

# Capture defaults per source, used when the config file omits them
CAPTURE_DEFAULTS = {
    CaptureSource.MICROPHONE: {
        "interval_ms": 5000,
        "sample_rate": 16000,
        "channels": 1,
        "echo_cancellation": True,
        "noise_suppression": True,
        "auto_gain_control": True,
        "device_name": None,
    },
    CaptureSource.DESKTOP: {
        "interval_ms": 10000,
        "sample_rate": 48000,
        "channels": 2,
        "echo_cancellation": False,
        "noise_suppression": False,
        "auto_gain_control": False,
        "device_name": None,
    },
}


class LiveNotesConfig:
    """LiveNotes configuration loader."""

    def __init__(self, config_path: str):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file.
        """
        self.config_file = Path(config_path)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

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
            raise ValueError("Configuration file must contain a mapping at the top level")

        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        if 'google_cloud' in config and config['google_cloud'].get('credentials_path'):
            creds_path = config['google_cloud']['credentials_path']
            if not os.path.isabs(creds_path):
                config['google_cloud']['credentials_path'] = str(config_dir / creds_path)

        if 'logging' in config and config['logging'].get('file_path'):
            log_path = config['logging']['file_path']
            if not os.path.isabs(log_path):
                config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'summarization.model').

        Args:
            key_path: Dot-separated key path
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
            key_path: Dot-separated path to config value
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_capture_settings(self, source: CaptureSource) -> Dict[str, Any]:
        """Get capture settings for a source, filled in with defaults."""
        settings = dict(CAPTURE_DEFAULTS[source])
        settings.update(self.get(f'capture.{source.name.lower()}', {}) or {})

        interval_ms = settings['interval_ms']
        if not isinstance(interval_ms, int) or interval_ms <= 0:
            raise ValueError(f"capture.{source.name.lower()}.interval_ms must be a positive integer, got {interval_ms!r}")
        return settings

    def get_openai_api_key(self) -> str:
        """Get OpenAI API key - CRASHES if not found."""
        api_key = self.get('openai.api_key') or os.environ.get('OPENAI_API_KEY')
        if not api_key:
            raise ValueError("OpenAI API key not configured in livenotes.yaml or OPENAI_API_KEY")
        return api_key

    def get_google_credentials_path(self) -> str:
        """Get Google credentials path - CRASHES if not found."""
        creds_path = self.get('google_cloud.credentials_path')
        if not creds_path:
            raise ValueError("Google credentials path not configured in livenotes.yaml")

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise FileNotFoundError(f"Google credentials file not found: {creds_path}")

        return str(creds_file.absolute())
