"""BankLink: uniform access to third-party banking and payments data providers.

This package hides GoCardless, Plaid, Teller and Stripe behind a single async
facade that returns one canonical data model:
- Accounts, balances and institutions
- Transactions with normalized signs, methods and categories
- Bank statements (with object-store backed PDF caching) and recurring streams
- Composite provider health checks

Vendor outages degrade to empty results instead of crashing callers.
"""

from .errors import (
    BankLinkError,
    InvalidProviderError,
    MissingParameterError,
    OperationNotSupportedError,
    ProviderError,
)
from .provider import Provider

__version__ = "0.1.0"

__all__ = [
    "Provider",
    "BankLinkError",
    "ProviderError",
    "InvalidProviderError",
    "MissingParameterError",
    "OperationNotSupportedError",
]
