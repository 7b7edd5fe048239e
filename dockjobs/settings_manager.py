"""
Settings Manager for dockjobs
Manages connection settings stored in a JSON file
"""

import json
import os
import logging
from typing import Any, Dict, Optional

from .configuration import Configuration

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    'host': 'localhost',
    'port': 2375,
    'use_ssl': False,
    'ignore_ssl_errors': False,
    'username': '',
    'password': '',
    'request_timeout': 300,
    'socket_path': '',
    'log_level': 'INFO',
}

ENV_PREFIX = 'DOCKJOBS_'

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


class SettingsManager:
    """Manager for connection settings"""

    @staticmethod
    def get_user_settings_path() -> str:
        """Get path to user settings file"""
        if os.name == 'nt':  # Windows
            base_dir = os.environ.get('APPDATA', os.path.expanduser('~'))
        else:  # macOS, Linux
            base_dir = os.environ.get('XDG_DATA_HOME', os.path.expanduser('~/.local/share'))
        return os.path.join(base_dir, 'dockjobs', 'settings.json')

    def __init__(self, settings_file: Optional[str] = None, use_environment: bool = True):
        """
        Initialize settings manager

        Args:
            settings_file: Settings file to use (default: per-user data directory)
            use_environment: Apply DOCKJOBS_* environment overrides
        """
        self.settings_file = settings_file or self.get_user_settings_path()
        self.use_environment = use_environment
        self.settings: Dict[str, Any] = {}

        self.load()

    def load(self):
        """Load settings from the user file, missing keys fall back to defaults"""
        self.settings = DEFAULT_SETTINGS.copy()

        if os.path.exists(self.settings_file):
            try:
                with open(self.settings_file, 'r', encoding='utf-8') as f:
                    loaded_settings = json.load(f)
            except (OSError, ValueError) as e:
                logger.error(f"Error loading settings: {e}")
            else:
                if isinstance(loaded_settings, dict):
                    self.settings.update(loaded_settings)
                    logger.info(f"Settings loaded from {self.settings_file}")
                else:
                    logger.error(f"Ignoring settings file {self.settings_file}: not a JSON object")
        else:
            logger.info('Using default settings')

        if self.use_environment:
            self._apply_environment()

    def _apply_environment(self):
        for key, default in DEFAULT_SETTINGS.items():
            value = os.environ.get(ENV_PREFIX + key.upper())
            if value is None:
                continue
            if isinstance(default, bool):
                self.settings[key] = value.strip().lower() in _TRUE_VALUES
            elif isinstance(default, int):
                try:
                    self.settings[key] = int(value)
                except ValueError:
                    logger.warning(f"Ignoring {ENV_PREFIX}{key.upper()}={value!r}: not a number")
            else:
                self.settings[key] = value
            logger.debug(f"Setting {key} taken from environment")

    def save(self) -> bool:
        """Save settings to file"""
        try:
            os.makedirs(os.path.dirname(self.settings_file) or '.', exist_ok=True)
            with open(self.settings_file, 'w', encoding='utf-8') as f:
                json.dump(self.settings, f, indent=4, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Error saving settings: {e}")
            return False

        logger.info(f"Settings saved to {self.settings_file}")
        return True

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get setting value

        Args:
            key: Setting key
            default: Default value if key not found

        Returns:
            Setting value
        """
        return self.settings.get(key, default)

    def set(self, key: str, value: Any, save: bool = True):
        """
        Set setting value

        Args:
            key: Setting key
            value: Setting value
            save: Save to file immediately
        """
        self.settings[key] = value

        if save:
            self.save()

    def update(self, settings_dict: Dict[str, Any], save: bool = True):
        self.settings.update(settings_dict)

        if save:
            self.save()

    def reset_to_defaults(self, save: bool = True):
        self.settings = DEFAULT_SETTINGS.copy()

        if save:
            self.save()
            logger.info('Settings reset to defaults')

    def configuration(self) -> Configuration:
        """Build the connection configuration from the current settings"""
        return Configuration(
            host=str(self.get('host', '')),
            port=int(self.get('port', DEFAULT_SETTINGS['port'])),
            use_ssl=bool(self.get('use_ssl', False)),
            ignore_ssl_errors=bool(self.get('ignore_ssl_errors', False)),
            username=str(self.get('username', '')),
            password=str(self.get('password', '')),
        )
