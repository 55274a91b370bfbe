"""
Configuration parser for the calendar manager.

Reads an optional TOML file from the XDG config directory:

    [General]
    default_timezone = "America/New_York"
    default_calendar = "Work"

    [Logging]
    level = "DEBUG"
    file = "~/.local/state/calendar-manager/calendar-manager.log"

    [Import]
    strict = true
"""

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import InvalidTimezoneError
from .timezone_utils import validate_timezone

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """A configuration value has the wrong type or an unusable value."""


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[Path] = None


@dataclass
class ImportConfig:
    strict: bool = True  # False: skip short rows instead of rejecting the file


@dataclass
class Config:
    """Main configuration container for the calendar manager."""

    default_timezone: str = "UTC"
    default_calendar: str = "Default"
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    import_: ImportConfig = field(default_factory=ImportConfig)

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'calendar-manager' / 'calendar-manager.toml'

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from a TOML file.

        An explicit path must exist. Without one, the default location is
        tried and built-in defaults are used if nothing is there.
        """
        if config_path is None:
            config_path = cls.get_default_config_path()
            if not config_path.exists():
                logger.debug("No config at %s, using defaults", config_path)
                return cls()
        else:
            config_path = Path(config_path)
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'rb') as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

        logger.debug("Loaded config from %s", config_path)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        # Parse General section
        general = data.get('General', {})
        timezone = _get_str(general, 'default_timezone', 'UTC')
        try:
            timezone = validate_timezone(timezone)
        except InvalidTimezoneError as e:
            raise ConfigError(str(e)) from e
        default_calendar = _get_str(general, 'default_calendar', 'Default')
        if not default_calendar.strip():
            raise ConfigError("General.default_calendar must not be empty")

        # Parse Logging section
        logging_data = data.get('Logging', {})
        level = _get_str(logging_data, 'level', 'INFO').upper()
        if level not in LOG_LEVELS:
            raise ConfigError(f"Logging.level must be one of {', '.join(LOG_LEVELS)}, got {level!r}")
        log_file = logging_data.get('file')
        if log_file is not None:
            log_file = Path(os.path.expanduser(_get_str(logging_data, 'file', '')))

        # Parse Import section
        import_data = data.get('Import', {})
        strict = import_data.get('strict', True)
        if not isinstance(strict, bool):
            raise ConfigError(f"Import.strict must be true or false, got {strict!r}")

        return cls(
            default_timezone=timezone,
            default_calendar=default_calendar,
            logging=LoggingConfig(level=level, file=log_file),
            import_=ImportConfig(strict=strict),
        )


def _get_str(section: dict, key: str, default: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string, got {value!r}")
    return value
