"""Account type and balance normalization shared across vendors."""

from decimal import Decimal

from ..models import AccountType

_DEPOSITORY_SUBTYPES = frozenset(
    {
        "depository",
        "checking",
        "savings",
        "money market",
        "cd",
        "cash management",
        "paypal",
        "prepaid",
        "hsa",
        "ebt",
        "cacc",
        "cash",
        "svgs",
        "tran",
    }
)

_CREDIT_SUBTYPES = frozenset(
    {"credit", "credit card", "credit_card", "line of credit", "card"}
)

_LOAN_SUBTYPES = frozenset(
    {"loan", "mortgage", "auto", "student", "home equity", "business", "commercial"}
)


def get_account_type(value: str | None) -> AccountType:
    """Normalize a vendor account type or subtype.

    Args:
        value: Raw vendor type/subtype, any case

    Returns:
        AccountType: Canonical account type, ``other`` when unrecognized
    """
    if not value:
        return AccountType.OTHER

    key = value.strip().lower()
    if key in _DEPOSITORY_SUBTYPES:
        return AccountType.DEPOSITORY
    if key in _CREDIT_SUBTYPES:
        return AccountType.CREDIT
    if key in _LOAN_SUBTYPES:
        return AccountType.LOAN
    if key in {"investment", "brokerage"}:
        return AccountType.INVESTMENT
    try:
        return AccountType(key)
    except ValueError:
        return AccountType.OTHER


def normalize_balance(amount: Decimal, account_type: AccountType | str) -> Decimal:
    """Credit balances reported as negative become the positive amount owed."""
    if AccountType(account_type) is AccountType.CREDIT and amount < 0:
        return abs(amount)
    return amount
