"""BankLink CLI package.

This package provides a debugging command-line interface over the provider
facade: health checks, accounts, transactions, institutions and statements.
"""

from .main import app, main

__all__ = ["app", "main"]
