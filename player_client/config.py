"""Configuration management using XDG Base Directory Specification.

Holds the engine adapter settings (which backend, where `mocp` lives, how
often to poll it) and the initial player volume.
"""

import configparser
import os
from pathlib import Path
from typing import Optional

from player_client.exceptions import ConfigurationError
from player_client.logging import get_logger

logger = get_logger(__name__)

APP_NAME = "player_client"
SUPPORTED_BACKENDS = ("moc",)


class Config:
    """
    Configuration manager using XDG Base Directory Specification.

    Follows Linux standards:
    - Config: ~/.config/player_client/ (or XDG_CONFIG_HOME)
    - Data: ~/.local/share/player_client/ (or XDG_DATA_HOME)
    """

    _instance: Optional["Config"] = None

    def __init__(self) -> None:
        self.config_home = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
        self.data_home = Path(
            os.getenv("XDG_DATA_HOME", Path.home() / ".local" / "share")
        )

        self.config_dir = self.config_home / APP_NAME
        self.data_dir = self.data_home / APP_NAME
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self.config_file = self.config_dir / "config.ini"
        self.config = configparser.ConfigParser()
        self._load_config()

    @classmethod
    def get_instance(cls) -> "Config":
        """Get the singleton config instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the singleton so the next access re-reads the environment."""
        cls._instance = None

    def _load_config(self) -> None:
        """Load configuration from file or create defaults."""
        if self.config_file.exists():
            try:
                self.config.read(self.config_file)
            except configparser.Error as e:
                raise ConfigurationError(
                    f"Invalid config file {self.config_file}: {e}"
                ) from e
        else:
            self._create_default_config()

    def _create_default_config(self) -> None:
        """Create default configuration with sensible defaults."""
        self.config["engine"] = {
            "backend": "moc",
            "mocp_path": "",  # empty: look up `mocp` in PATH
            "poll_interval": "0.5",
            "command_timeout": "5.0",
        }
        self.config["player"] = {
            "volume": "1.0",
        }
        self.save()

    def save(self) -> None:
        """Write current configuration state to the config file."""
        try:
            with open(self.config_file, "w") as f:
                self.config.write(f)
        except OSError as e:
            logger.error("Failed to save config: %s", e, exc_info=True)

    def get(self, section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
        """Get a configuration value."""
        return self.config.get(section, key, fallback=fallback)

    def set(self, section: str, key: str, value: str) -> None:
        """
        Set a configuration value.

        Args:
            section: Configuration section name
            key: Configuration key name
            value: Value to set
        """
        if section not in self.config:
            self.config.add_section(section)
        self.config.set(section, key, value)
        self.save()

    def get_bool(self, section: str, key: str, fallback: bool = False) -> bool:
        """Get a boolean configuration value."""
        return self.config.getboolean(section, key, fallback=fallback)

    def get_int(self, section: str, key: str, fallback: int = 0) -> int:
        """Get an integer configuration value."""
        return self.config.getint(section, key, fallback=fallback)

    def get_float(self, section: str, key: str, fallback: float = 0.0) -> float:
        """Get a float configuration value."""
        try:
            return self.config.getfloat(section, key, fallback=fallback)
        except ValueError as e:
            raise ConfigurationError(f"[{section}] {key} is not a number") from e

    def get_path(self, section: str, key: str, fallback: Optional[Path] = None) -> Optional[Path]:
        """Get a path configuration value."""
        value = self.get(section, key)
        if value:
            return Path(value).expanduser()
        return fallback

    # Convenience properties
    @property
    def engine_backend(self) -> str:
        """Name of the playback engine adapter."""
        backend = (self.get("engine", "backend", "moc") or "moc").strip().lower()
        if backend not in SUPPORTED_BACKENDS:
            raise ConfigurationError(f"Unsupported engine backend: {backend}")
        return backend

    @property
    def mocp_path(self) -> Optional[Path]:
        """Explicit `mocp` binary, or None to search PATH."""
        return self.get_path("engine", "mocp_path")

    @property
    def poll_interval(self) -> float:
        """Seconds between engine status polls."""
        return max(0.05, self.get_float("engine", "poll_interval", 0.5))

    @property
    def command_timeout(self) -> float:
        """Seconds before an engine subprocess call is abandoned."""
        return max(0.1, self.get_float("engine", "command_timeout", 5.0))

    @property
    def initial_volume(self) -> float:
        """Volume the snapshot starts with, clamped to [0, 1]."""
        return max(0.0, min(1.0, self.get_float("player", "volume", 1.0)))

    @property
    def log_dir(self) -> Path:
        """Get log directory."""
        log_dir = self.data_dir / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir


def get_config() -> Config:
    """Get the configuration instance."""
    return Config.get_instance()
