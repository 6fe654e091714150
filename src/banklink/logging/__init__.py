"""Logging setup for BankLink.

Re-exports the centralized logging configuration so callers can simply use
``from banklink.logging import setup_logging``.
"""

from .config import LoggingConfig, get_log_config_summary, setup_logging

__all__ = ["LoggingConfig", "setup_logging", "get_log_config_summary"]
