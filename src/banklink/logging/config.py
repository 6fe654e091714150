"""Logging configuration management for BankLink.

Handlers are configured once per process from the ``logging`` section of
:class:`~banklink.config.BankLinkSettings`. Console output always goes to
stderr so the CLI can print JSON on stdout.
"""

import logging
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from ..config import LoggingConfig as LoggingSettings
from ..config import get_settings

# Third-party loggers that are chatty at INFO and below.
NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "plaid", "stripe", "botocore")


@dataclass
class LoggingConfig:
    """Resolved handler configuration for application logging."""

    level: str = "INFO"
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    cli_format_string: str = "%(levelname)s %(message)s"
    log_to_file: bool = False
    log_file_path: Path = Path("logs/banklink.log")
    max_file_size_mb: int = 50
    backup_count: int = 5
    force_reconfigure: bool = False

    @classmethod
    def from_settings(cls, settings: LoggingSettings) -> "LoggingConfig":
        """Build the handler configuration from the settings section.

        Args:
            settings: ``BankLinkSettings.logging``

        Returns:
            LoggingConfig: Configuration mirroring the settings
        """
        return cls(
            level=settings.level,
            log_to_file=settings.log_to_file,
            log_file_path=settings.log_file_path,
            max_file_size_mb=settings.max_file_size_mb,
            backup_count=settings.backup_count,
        )


def setup_logging(
    config: LoggingConfig | None = None,
    cli_mode: bool = False,
    verbose: bool = False,
) -> None:
    """Configure the root logger.

    Args:
        config: Handler configuration, built from the settings if None
        cli_mode: Use the short CLI format on the console
        verbose: Log at DEBUG regardless of the configured level
    """
    if config is None:
        config = LoggingConfig.from_settings(get_settings().logging)

    level = logging.DEBUG if verbose else getattr(logging, config.level)

    console = logging.StreamHandler(sys.stderr)
    fmt = config.cli_format_string if cli_mode else config.format_string
    console.setFormatter(logging.Formatter(fmt))
    handlers: list[logging.Handler] = [console]

    if config.log_to_file:
        config.log_file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.log_file_path,
            maxBytes=config.max_file_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
        )
        file_handler.setFormatter(logging.Formatter(config.format_string))
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=config.force_reconfigure)

    # SDK request logs can include credentials, even with --verbose.
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_log_config_summary() -> dict[str, Any]:
    """Describe the active root logger configuration.

    Returns:
        dict: Level, handler types and third-party logger levels
    """
    root = logging.getLogger()
    return {
        "level": logging.getLevelName(root.level),
        "handlers": [type(h).__name__ for h in root.handlers],
        "files": [
            h.baseFilename for h in root.handlers if isinstance(h, logging.FileHandler)
        ],
        "third_party": {
            name: logging.getLevelName(logging.getLogger(name).level)
            for name in NOISY_LOGGERS
        },
    }
