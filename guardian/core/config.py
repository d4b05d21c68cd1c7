"""Configuration management for Guardian.

Repository settings live in .pg/config and user-wide settings in
~/.guardianconfig, both INI files. Environment variables override both.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Tuple

from .errors import InvalidArgument, StorageError

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 5000

_TRUE = ('1', 'true', 'yes', 'on')
_FALSE = ('0', 'false', 'no', 'off')


class Config:
    """
    Manages Guardian configuration files.

    Priority order (highest to lowest):
    1. Environment variables (GUARDIAN_<SECTION>_<KEY>)
    2. Repository config (.pg/config)
    3. Global config (~/.guardianconfig)
    4. Fallback value
    """

    ENV_PREFIX = 'GUARDIAN'

    def __init__(self, repo_config_path: Optional[Path] = None,
                 global_config_path: Optional[Path] = None):
        """
        Initialize Config manager.

        Args:
            repo_config_path: Path to repository config file, if in a repo
            global_config_path: Override for the user-wide config file
        """
        self.repo_config_path = Path(repo_config_path) if repo_config_path else None
        self.global_config_path = Path(global_config_path or Path.home() / '.guardianconfig')
        self._global_config: Optional[configparser.ConfigParser] = None
        self._repo_config: Optional[configparser.ConfigParser] = None

    @staticmethod
    def _load(path: Optional[Path]) -> configparser.ConfigParser:
        parser = configparser.ConfigParser(interpolation=None)
        if path is not None and path.exists():
            try:
                parser.read(path, encoding='utf-8')
            except configparser.Error as exc:
                raise StorageError(f"Cannot parse config {path}: {exc}") from exc
        return parser

    @property
    def global_config(self) -> configparser.ConfigParser:
        if self._global_config is None:
            self._global_config = self._load(self.global_config_path)
        return self._global_config

    @property
    def repo_config(self) -> Optional[configparser.ConfigParser]:
        if self._repo_config is None and self.repo_config_path:
            self._repo_config = self._load(self.repo_config_path)
        return self._repo_config

    def get(self, section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
        """
        Get a configuration value.

        Args:
            section: Config section (e.g., 'user', 'core')
            key: Config key (e.g., 'name', 'compression')
            fallback: Default value if not found

        Returns:
            Configuration value or fallback
        """
        env_value = os.environ.get(f"{self.ENV_PREFIX}_{section.upper()}_{key.upper()}")
        if env_value is not None:
            return env_value

        if self.repo_config is not None and self.repo_config.has_option(section, key):
            return self.repo_config.get(section, key)

        if self.global_config.has_option(section, key):
            return self.global_config.get(section, key)

        return fallback

    def get_bool(self, section: str, key: str, fallback: bool = False) -> bool:
        """Get a boolean value ('true'/'false', 'yes'/'no', '1'/'0', 'on'/'off')."""
        value = self.get(section, key)
        if value is None:
            return fallback
        value = value.strip().lower()
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
        raise InvalidArgument(f"{section}.{key} must be a boolean, got {value!r}")

    def get_int(self, section: str, key: str, fallback: int = 0) -> int:
        """Get an integer value."""
        value = self.get(section, key)
        if value is None:
            return fallback
        try:
            return int(value.strip())
        except ValueError:
            raise InvalidArgument(f"{section}.{key} must be an integer, got {value!r}") from None

    def _target(self, global_config: bool) -> Tuple[configparser.ConfigParser, Path]:
        if global_config:
            return self.global_config, self.global_config_path
        if not self.repo_config_path:
            raise InvalidArgument("No repository config path available")
        return self.repo_config, self.repo_config_path

    def _save(self, config: configparser.ConfigParser, path: Path) -> None:
        try:
            with open(path, 'w', encoding='utf-8') as f:
                config.write(f)
        except OSError as exc:
            raise StorageError(f"Cannot write config {path}: {exc}") from exc

    def set(self, section: str, key: str, value: str, global_config: bool = False) -> None:
        """
        Set a configuration value.

        Args:
            section: Config section
            key: Config key
            value: Value to set
            global_config: If True, write to global config; otherwise repo config
        """
        config, path = self._target(global_config)
        if not config.has_section(section):
            config.add_section(section)
        config.set(section, key, str(value))
        self._save(config, path)
        logger.debug("Config %s.%s = %s (%s)", section, key, value, path)

    def unset(self, section: str, key: str, global_config: bool = False) -> bool:
        """
        Remove a configuration value.

        Returns:
            True if value was removed, False if it didn't exist
        """
        config, path = self._target(global_config)
        if not config.has_option(section, key):
            return False

        config.remove_option(section, key)
        if not config.options(section):
            config.remove_section(section)
        self._save(config, path)
        return True

    def list_all(self) -> Dict[str, Dict[str, str]]:
        """
        List all configuration values, repo values overriding global ones.

        Returns:
            Dict of sections to key-value dicts
        """
        result: Dict[str, Dict[str, str]] = {}
        layers = [self.global_config]
        if self.repo_config is not None:
            layers.append(self.repo_config)
        for layer in layers:
            for section in layer.sections():
                result.setdefault(section, {}).update(layer.items(section))
        return result

    def get_user_identity(self) -> Tuple[Optional[str], Optional[str]]:
        """
        Get user name and email.

        Returns:
            Tuple of (name, email), either may be None
        """
        return self.get('user', 'name'), self.get('user', 'email')

    def get_author(self, fallback: Optional[str] = None) -> Optional[str]:
        """Format the configured identity as 'Name <email>'."""
        name, email = self.get_user_identity()
        if name and email:
            return f"{name} <{email}>"
        return name or fallback


def get_config(repo=None) -> Config:
    """
    Get a Config instance.

    Args:
        repo: Repository instance, or None for global-only config
    """
    if repo is not None:
        return Config(repo.config_file)
    return Config()
