"""Vendor adapters behind the provider facade.

Each subpackage owns one vendor: ``schemas`` validates raw payloads,
``transform`` maps them to canonical models and ``api`` talks to the vendor.
"""

from .base import ProviderAdapter
from .gocardless.api import GoCardlessApi
from .plaid.api import PlaidApi
from .stripe.api import StripeApi
from .teller.api import TellerApi

__all__ = [
    "GoCardlessApi",
    "PlaidApi",
    "ProviderAdapter",
    "StripeApi",
    "TellerApi",
]
