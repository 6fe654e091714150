"""Currency unit conversion."""

from decimal import Decimal

# ISO 4217 currencies without a minor unit, as documented by Stripe.
ZERO_DECIMAL_CURRENCIES = frozenset(
    {
        "BIF",
        "CLP",
        "DJF",
        "GNF",
        "JPY",
        "KMF",
        "KRW",
        "MGA",
        "PYG",
        "RWF",
        "UGX",
        "VND",
        "VUV",
        "XAF",
        "XOF",
        "XPF",
    }
)


def from_minor_units(amount: int, currency: str | None) -> Decimal:
    """Convert an integer minor-unit amount (cents) into a major-unit Decimal."""
    if currency and currency.upper() in ZERO_DECIMAL_CURRENCIES:
        return Decimal(amount)
    return Decimal(amount) / Decimal(100)
