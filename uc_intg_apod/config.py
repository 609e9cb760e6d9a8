"""
Configuration management for NASA Daily Universe integration.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

_LOG = logging.getLogger(__name__)

API_KEY_ENV = "NASA_API_KEY"
DEMO_API_KEY = "DEMO_KEY"
APOD_URL = "https://api.nasa.gov/planetary/apod"

DEFAULT_CONFIG = {
    "api_key": "",
    "device_id": "nasa_daily_universe",
    "device_name": "NASA Daily Universe"
}


class Config:
    """Configuration management for APOD integration."""

    def __init__(self, config_file_path: str, environ: Optional[Dict[str, str]] = None):
        """
        Initialize configuration.

        The API key environment variable is read once, here.
        """
        self._config_file_path = config_file_path
        self._config: Dict[str, Any] = {}
        env = os.environ if environ is None else environ
        self._env_api_key = (env.get(API_KEY_ENV) or "").strip()
        self.load()

    def load(self) -> None:
        """Load configuration from file."""
        try:
            if os.path.exists(self._config_file_path):
                with open(self._config_file_path, "r", encoding="utf-8") as file:
                    data = json.load(file)
                if isinstance(data, dict):
                    self._config = data
                    _LOG.info("Configuration loaded from %s", self._config_file_path)
                else:
                    _LOG.error("Configuration in %s is not an object, using defaults", self._config_file_path)
                    self._config = DEFAULT_CONFIG.copy()
            else:
                _LOG.info("Configuration file not found, using defaults")
                self._config = DEFAULT_CONFIG.copy()
        except (OSError, ValueError) as ex:
            _LOG.error("Failed to load configuration: %s", ex)
            self._config = DEFAULT_CONFIG.copy()

    def save(self) -> None:
        """Save configuration to file."""
        try:
            config_dir = os.path.dirname(self._config_file_path)
            if config_dir:
                os.makedirs(config_dir, exist_ok=True)
            with open(self._config_file_path, "w", encoding="utf-8") as file:
                json.dump(self._config, file, indent=2)
                _LOG.info("Configuration saved to %s", self._config_file_path)
        except OSError as ex:
            _LOG.error("Failed to save configuration: %s", ex)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def update(self, data: Dict[str, Any]) -> None:
        """Update configuration with new data."""
        self._config.update(data)
        self.save()

    @property
    def stored_api_key(self) -> str:
        """API key saved through the setup flow, if any."""
        api_key = self._config.get("api_key")
        return api_key.strip() if isinstance(api_key, str) else ""

    @property
    def api_key(self) -> str:
        """
        Get NASA API key.

        Setup-flow key first, then the environment, then the public DEMO_KEY.
        """
        return self.stored_api_key or self._env_api_key or DEMO_API_KEY

    @property
    def device_id(self) -> str:
        """Get device ID."""
        device_id = self._config.get("device_id")
        return device_id if isinstance(device_id, str) and device_id else DEFAULT_CONFIG["device_id"]

    @property
    def device_name(self) -> str:
        """Get device name."""
        device_name = self._config.get("device_name")
        return device_name if isinstance(device_name, str) and device_name else DEFAULT_CONFIG["device_name"]
