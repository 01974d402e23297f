"""Linux-native logging for the player client.

File logging goes to the XDG data directory, warnings and errors are echoed
on stderr. Set PLAYER_CLIENT_DEBUG to get DEBUG output.
"""

# ============================================================================
# Standard Library Imports (alphabetical)
# ============================================================================
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

# ============================================================================
# Third-Party Imports (alphabetical, with version requirements)
# ============================================================================
# None

# ============================================================================
# Local Imports (grouped by package, alphabetical)
# ============================================================================
# None

ROOT_LOGGER_NAME = "player_client"
LOG_FILE_NAME = "player_client.log"

_FORMATTER = logging.Formatter(
    "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def default_log_dir() -> Path:
    """$XDG_DATA_HOME/player_client/logs."""
    xdg_data = os.getenv("XDG_DATA_HOME", Path.home() / ".local" / "share")
    return Path(xdg_data) / ROOT_LOGGER_NAME / "logs"


class LinuxLogger:
    """
    Linux-native logger with file and console output.

    Supports:
    - File logging to XDG data directory, movable once config is loaded
    - Console output for warnings and errors
    - Environment variable control (PLAYER_CLIENT_DEBUG)
    """

    _instance: Optional["LinuxLogger"] = None

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize the logger.

        Args:
            log_dir: Directory for log files (defaults to XDG data dir)
        """
        self.logger = logging.getLogger(ROOT_LOGGER_NAME)
        self.logger.setLevel(
            logging.DEBUG if os.getenv("PLAYER_CLIENT_DEBUG") else logging.INFO
        )
        self.log_file: Optional[Path] = None
        self._file_handler: Optional[logging.Handler] = None

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(_FORMATTER)
        self.logger.addHandler(console_handler)

        self.use_log_dir(log_dir or default_log_dir())

    @classmethod
    def get_instance(cls) -> "LinuxLogger":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def use_log_dir(self, log_dir: Path) -> None:
        """
        Write the log file into log_dir, replacing any previous file handler.

        Modules grab their loggers at import time, before the config is read,
        so the file location has to be movable afterwards.
        """
        log_file = Path(log_dir) / LOG_FILE_NAME
        if log_file == self.log_file:
            return
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
            )
        except OSError as e:
            # Read-only home (containers, CI): keep whatever output we have
            self.logger.warning("File logging to %s disabled: %s", log_file, e)
            return
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(_FORMATTER)

        if self._file_handler is not None:
            self.logger.removeHandler(self._file_handler)
            self._file_handler.close()
        self.logger.addHandler(file_handler)
        self._file_handler = file_handler
        self.log_file = log_file

    @classmethod
    def get_logger(cls, name: str = ROOT_LOGGER_NAME) -> logging.Logger:
        """
        Get a logger instance.

        Args:
            name: Logger name (creates child logger)

        Returns:
            Logger instance
        """
        root = cls.get_instance().logger
        if name == ROOT_LOGGER_NAME:
            return root
        if name.startswith(ROOT_LOGGER_NAME + "."):
            name = name[len(ROOT_LOGGER_NAME) + 1 :]
        return root.getChild(name)


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Get a logger instance."""
    return LinuxLogger.get_logger(name)
