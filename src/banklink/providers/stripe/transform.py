"""Stripe payload to canonical model mapping.

A positive balance transaction adds funds to the Stripe balance, which is the
opposite of the canonical convention, so amounts are negated after converting
from minor units.
"""

from datetime import datetime, timezone
from decimal import Decimal

from ...categories import match_keywords
from ...models import (
    Account,
    AccountType,
    Balance,
    CurrencyAmount,
    Institution,
    ProviderName,
    Transaction,
    TransactionCategory,
    TransactionMethod,
    TransactionStatus,
    normalize_currency,
)
from ...utils.currency import from_minor_units
from ...utils.logo import get_logo_url
from ...utils.text import capital_case, description_if_distinct
from .schemas import StripeAccount, StripeBalance, StripeBalanceTransaction

STRIPE_INSTITUTION_ID = "stripe"

TRANSACTION_METHODS: dict[str, TransactionMethod] = {
    "charge": TransactionMethod.PAYMENT,
    "payment": TransactionMethod.PAYMENT,
    "refund": TransactionMethod.PAYMENT,
    "payment_refund": TransactionMethod.PAYMENT,
    "payout": TransactionMethod.TRANSFER,
    "transfer": TransactionMethod.TRANSFER,
    "stripe_fee": TransactionMethod.FEE,
    "application_fee": TransactionMethod.FEE,
    "tax_fee": TransactionMethod.FEE,
    "topup": TransactionMethod.DEPOSIT,
}

TRANSACTION_CATEGORIES: dict[str, TransactionCategory] = {
    "stripe_fee": TransactionCategory.PAYMENT_PROCESSOR_FEES,
    "application_fee": TransactionCategory.PAYMENT_PROCESSOR_FEES,
    "tax_fee": TransactionCategory.PAYMENT_PROCESSOR_FEES,
    "payout": TransactionCategory.PAYMENT_PLATFORM_PAYOUTS,
    "transfer": TransactionCategory.TRANSFER,
    "refund": TransactionCategory.CUSTOMER_REFUNDS,
    "payment_refund": TransactionCategory.CUSTOMER_REFUNDS,
}


def map_transaction_method(type_: str | None) -> TransactionMethod:
    """Map a balance transaction type to a canonical method."""
    return TRANSACTION_METHODS.get((type_ or "").lower(), TransactionMethod.OTHER)


def map_transaction_category(
    transaction: StripeBalanceTransaction, amount: Decimal
) -> TransactionCategory:
    """Infer the canonical category of a balance transaction."""
    type_ = transaction.type.lower()
    if type_ in TRANSACTION_CATEGORIES:
        return TRANSACTION_CATEGORIES[type_]

    if amount < 0:
        return TransactionCategory.INCOME

    return match_keywords(transaction.description) or TransactionCategory.UNCATEGORIZED


def transform_transaction(
    transaction: StripeBalanceTransaction, account_id: str
) -> Transaction:
    """Map a balance transaction to a canonical transaction."""
    amount = -from_minor_units(transaction.amount, transaction.currency)
    type_label = capital_case(transaction.type) or "Stripe"
    name = capital_case(transaction.description) or type_label

    return Transaction(
        id=transaction.id,
        bank_account_id=account_id,
        account_id=account_id,
        date=datetime.fromtimestamp(transaction.created, tz=timezone.utc).date(),
        amount=amount,
        currency=normalize_currency(transaction.currency),
        name=name,
        description=description_if_distinct(name, type_label),
        status=(
            TransactionStatus.PENDING
            if transaction.status == "pending"
            else TransactionStatus.POSTED
        ),
        method=map_transaction_method(transaction.type),
        category=map_transaction_category(transaction, amount),
    )


def transform_institution() -> Institution:
    """Stripe is its own institution."""
    return Institution(
        id=STRIPE_INSTITUTION_ID,
        name="Stripe",
        logo=get_logo_url(STRIPE_INSTITUTION_ID),
        provider=ProviderName.STRIPE,
    )


def transform_balance(balance: StripeBalance, currency: str | None = None) -> Balance:
    """Map a multi-currency balance.

    ``amount`` is the available funds in the account's default currency
    (or the first currency reported); ``available`` lists every currency.
    """
    available = [
        CurrencyAmount(
            amount=from_minor_units(m.amount, m.currency), currency=m.currency
        )
        for m in balance.available
    ]
    primary = normalize_currency(
        currency or (available[0].currency if available else None)
    )
    amount = sum(
        (a.amount for a in available if a.currency == primary), Decimal("0")
    )
    return Balance(amount=amount, available=available, currency=primary)


def transform_account(account: StripeAccount, balance: StripeBalance) -> Account:
    """Map a connected account and its balance."""
    currency = normalize_currency(account.default_currency)
    return Account(
        id=account.id,
        name=account.display_name,
        currency=currency,
        type=AccountType.DEPOSITORY,
        resource_id=account.id,
        balance=transform_balance(balance, currency),
        institution=transform_institution(),
    )
