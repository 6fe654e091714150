"""Teller payload to canonical model mapping.

Teller signs amounts from the account holder's ledger: on depository accounts
money going out is negative, on credit accounts a purchase is positive because
it increases what is owed. The same raw sign therefore means opposite things
depending on the account type.
"""

from decimal import Decimal

from ...categories import match_keywords
from ...models import (
    Account,
    AccountType,
    Balance,
    Institution,
    ProviderName,
    Transaction,
    TransactionCategory,
    TransactionMethod,
    TransactionStatus,
    normalize_currency,
)
from ...utils.account import get_account_type, normalize_balance
from ...utils.logo import get_logo_url
from ...utils.text import capital_case, description_if_distinct
from .schemas import TellerAccount, TellerBalance, TellerInstitution, TellerTransaction

TRANSACTION_METHODS: dict[str, TransactionMethod] = {
    "payment": TransactionMethod.PAYMENT,
    "bill_payment": TransactionMethod.PAYMENT,
    "card_payment": TransactionMethod.CARD_PURCHASE,
    "digital_payment": TransactionMethod.PAYMENT,
    "atm": TransactionMethod.CARD_ATM,
    "transfer": TransactionMethod.TRANSFER,
    "ach": TransactionMethod.ACH,
    "interest": TransactionMethod.INTEREST,
    "deposit": TransactionMethod.DEPOSIT,
    "wire": TransactionMethod.WIRE,
    "fee": TransactionMethod.FEE,
}

# Teller enrichment categories (details.category).
DETAIL_CATEGORIES: dict[str, TransactionCategory] = {
    "accommodation": TransactionCategory.TRAVEL,
    "advertising": TransactionCategory.MARKETING,
    "bar": TransactionCategory.MEALS,
    "charity": TransactionCategory.DONATIONS,
    "dining": TransactionCategory.MEALS,
    "education": TransactionCategory.EDUCATION,
    "electronics": TransactionCategory.EQUIPMENT,
    "entertainment": TransactionCategory.ACTIVITY,
    "fuel": TransactionCategory.TRAVEL,
    "groceries": TransactionCategory.MEALS,
    "health": TransactionCategory.HEALTHCARE,
    "insurance": TransactionCategory.INSURANCE,
    "office": TransactionCategory.OFFICE_SUPPLIES,
    "phone": TransactionCategory.INTERNET_AND_TELEPHONE,
    "service": TransactionCategory.PROFESSIONAL_SERVICES_FEES,
    "software": TransactionCategory.SOFTWARE,
    "sport": TransactionCategory.ACTIVITY,
    "tax": TransactionCategory.TAXES,
    "transport": TransactionCategory.TRAVEL,
    "transportation": TransactionCategory.TRAVEL,
    "utilities": TransactionCategory.UTILITIES,
}


def map_transaction_method(type_: str | None) -> TransactionMethod:
    """Map a Teller transaction type to a canonical method."""
    return TRANSACTION_METHODS.get((type_ or "").lower(), TransactionMethod.OTHER)


def transform_amount(amount: Decimal, account_type: AccountType | str) -> Decimal:
    """Convert a Teller amount to the canonical sign (positive = money out)."""
    if AccountType(account_type) is AccountType.CREDIT:
        return amount
    return -amount


def map_transaction_category(
    transaction: TellerTransaction,
    amount: Decimal,
    account_type: AccountType | str,
) -> TransactionCategory:
    """Infer the canonical category of a Teller transaction.

    Args:
        transaction: Validated Teller transaction
        amount: Canonically signed amount
        account_type: Type of the account the transaction belongs to

    Returns:
        TransactionCategory: Never None, ``uncategorized`` when nothing matches
    """
    type_ = (transaction.type or "").lower()
    detail = (transaction.details.category or "").lower()

    if type_ == "fee":
        return TransactionCategory.FEES

    if type_ == "transfer":
        return TransactionCategory.TRANSFER

    if amount < 0:
        if AccountType(account_type) is AccountType.CREDIT:
            return TransactionCategory.CREDIT_CARD_PAYMENT
        return TransactionCategory.INCOME

    if detail in DETAIL_CATEGORIES:
        return DETAIL_CATEGORIES[detail]

    counterparty = transaction.details.counterparty
    matched = match_keywords(
        transaction.description, counterparty.name if counterparty else None
    )
    return matched or TransactionCategory.UNCATEGORIZED


def transform_description(transaction: TellerTransaction) -> str | None:
    """Counterparty name when it adds information beyond the description."""
    counterparty = transaction.details.counterparty
    if not counterparty or not counterparty.name:
        return None
    return description_if_distinct(
        capital_case(transaction.description), capital_case(counterparty.name)
    )


def transform_transaction(
    transaction: TellerTransaction,
    account_id: str,
    account_type: AccountType | str,
    currency: str | None = None,
) -> Transaction:
    """Map a validated Teller transaction to a canonical transaction."""
    amount = transform_amount(transaction.amount, account_type)
    name = capital_case(transaction.description) or "Unknown"
    status = (
        TransactionStatus.PENDING
        if transaction.status.lower() == "pending"
        else TransactionStatus.POSTED
    )
    counterparty = transaction.details.counterparty

    return Transaction(
        id=transaction.id,
        internal_id=transaction.id,
        bank_account_id=transaction.account_id or account_id,
        account_id=transaction.account_id or account_id,
        date=transaction.transaction_date,
        amount=amount,
        currency=normalize_currency(currency),
        name=name,
        description=transform_description(transaction),
        status=status,
        method=map_transaction_method(transaction.type),
        category=map_transaction_category(transaction, amount, account_type),
        balance=transaction.running_balance,
        counterparty_name=counterparty.name if counterparty else None,
    )


def transform_institution(institution: TellerInstitution) -> Institution:
    """Map a Teller institution."""
    return Institution(
        id=institution.id,
        name=institution.name,
        logo=get_logo_url(institution.id),
        provider=ProviderName.TELLER,
    )


def transform_balance(
    balance: TellerBalance | None,
    account_type: AccountType | str,
    currency: str | None = None,
) -> Balance:
    """Map Teller balances; the ledger balance is the current amount."""
    if balance is None:
        return Balance(amount=Decimal("0"), currency=currency)

    current = balance.ledger if balance.ledger is not None else balance.available
    return Balance(
        amount=normalize_balance(current or Decimal("0"), account_type),
        available=(
            normalize_balance(balance.available, account_type)
            if balance.available is not None
            else None
        ),
        currency=normalize_currency(currency),
    )


def transform_account(
    account: TellerAccount, balance: TellerBalance | None = None
) -> Account:
    """Map a Teller account and its balances."""
    account_type = get_account_type(account.type)
    return Account(
        id=account.id,
        name=account.name,
        currency=normalize_currency(account.currency),
        type=account_type,
        enrollment_id=account.enrollment_id,
        resource_id=account.last_four,
        subtype=account.subtype,
        balance=transform_balance(balance, account_type, account.currency),
        institution=transform_institution(account.institution),
    )
