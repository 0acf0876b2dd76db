"""
Unified logging configuration for the ZNCC stereo disparity toolkit.

All modules obtain their logger through get_logger(), which hangs every
logger below a single application root so that handlers and level are set
in exactly one place.
"""

import logging
import sys
from typing import Optional, Union
from pathlib import Path


class LoggerConfig:
    """Centralized logger configuration manager."""

    _configured = False
    _root_logger_name = 'zncc_stereo_toolkit'
    _default_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    @classmethod
    def setup_root_logger(
        cls,
        level: Union[int, str] = logging.INFO,
        format_string: Optional[str] = None,
        log_file: Optional[Path] = None
    ) -> logging.Logger:
        """
        Setup the root logger for the entire application.

        Calling it again replaces the handlers, so a configuration loaded
        after import-time initialization still takes effect.

        Args:
            level: Logging level, either numeric or a name such as "DEBUG"
            format_string: Custom format string (optional)
            log_file: Optional file path for logging to file

        Returns:
            logging.Logger: Configured root logger
        """
        level = cls.resolve_level(level)
        root_logger = logging.getLogger(cls._root_logger_name)
        root_logger.setLevel(level)

        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

        formatter = logging.Formatter(format_string or cls._default_format)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        if log_file is not None:
            log_file = Path(log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        # Prevent propagation to avoid duplicate messages
        root_logger.propagate = False
        cls._configured = True

        root_logger.debug(f"Root logger configured: level={logging.getLevelName(level)}")
        if log_file is not None:
            root_logger.info(f"Logging to file: {log_file}")

        return root_logger

    @staticmethod
    def resolve_level(level: Union[int, str]) -> int:
        """Translate a level name ("INFO", "debug") into its numeric value."""
        if isinstance(level, int):
            return level
        resolved = logging.getLevelName(str(level).upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown logging level: {level}")
        return resolved

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Get a child logger of the application root.

        Args:
            name: Logger name (typically __name__ from calling module)

        Returns:
            logging.Logger: Configured logger
        """
        if not cls._configured:
            cls.setup_root_logger()

        if name.startswith(cls._root_logger_name):
            full_name = name
        else:
            full_name = f"{cls._root_logger_name}.{name}"
        logger = logging.getLogger(full_name)
        logger.propagate = True
        return logger

    @classmethod
    def set_level(cls, level: Union[int, str]) -> None:
        """Change the logging level of the root logger and all of its handlers."""
        level = cls.resolve_level(level)
        root_logger = logging.getLogger(cls._root_logger_name)
        root_logger.setLevel(level)
        for handler in root_logger.handlers:
            handler.setLevel(level)

    @classmethod
    def is_configured(cls) -> bool:
        """Check if the root logger has been configured."""
        return cls._configured

    @classmethod
    def configure_from(cls, config) -> logging.Logger:
        """Configure logging from the `log_level` / `log_file` keys of a Config."""
        log_file = getattr(config, 'log_file', None)
        return cls.setup_root_logger(
            level=getattr(config, 'log_level', 'INFO'),
            log_file=Path(log_file) if log_file else None
        )


def get_logger(name: str) -> logging.Logger:
    """Convenience function to get a properly configured logger."""
    return LoggerConfig.get_logger(name)


def initialize_default_logger() -> None:
    """Initialize the default logger configuration."""
    if not LoggerConfig.is_configured():
        LoggerConfig.setup_root_logger()


# Auto-initialize when imported
initialize_default_logger()
