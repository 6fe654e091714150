"""GoCardless payload to canonical model mapping.

GoCardless reports amounts from the bank's point of view: a debit is negative.
Canonical amounts are positive when money leaves the account, so every
transaction amount is negated here and nowhere else.
"""

import hashlib
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
from .schemas import (
    GoCardlessAccountDetails,
    GoCardlessAccountMetadata,
    GoCardlessBalanceEntry,
    GoCardlessInstitution,
    GoCardlessTransaction,
)

NO_INFORMATION = "No information"

# Substrings of ISO 20022 / proprietary bank transaction codes.
TRANSACTION_METHODS: tuple[tuple[str, TransactionMethod], ...] = (
    ("CHRG", TransactionMethod.FEE),
    ("FEE", TransactionMethod.FEE),
    ("INTR", TransactionMethod.INTEREST),
    ("INTEREST", TransactionMethod.INTEREST),
    ("CWDL", TransactionMethod.CARD_ATM),
    ("ATM", TransactionMethod.CARD_ATM),
    ("CCRD", TransactionMethod.CARD_PURCHASE),
    ("POSD", TransactionMethod.CARD_PURCHASE),
    ("CARD", TransactionMethod.CARD_PURCHASE),
    ("DDBT", TransactionMethod.ACH),
    ("DIRECT_DEBIT", TransactionMethod.ACH),
    ("STDO", TransactionMethod.PAYMENT),
    ("STANDING_ORDER", TransactionMethod.PAYMENT),
    ("ICDT", TransactionMethod.TRANSFER),
    ("RCDT", TransactionMethod.TRANSFER),
    ("TRANSFER", TransactionMethod.TRANSFER),
    ("DEPOSIT", TransactionMethod.DEPOSIT),
)


def map_transaction_method(transaction: GoCardlessTransaction) -> TransactionMethod:
    """Derive the method from the bank transaction codes, ``other`` if unknown."""
    code = " ".join(
        c
        for c in (
            transaction.bank_transaction_code,
            transaction.proprietary_bank_transaction_code,
        )
        if c
    ).upper()
    for needle, method in TRANSACTION_METHODS:
        if needle in code:
            return method
    return TransactionMethod.OTHER


def map_transaction_category(
    transaction: GoCardlessTransaction,
    amount: Decimal,
    method: TransactionMethod,
) -> TransactionCategory:
    """Infer the canonical category of a GoCardless transaction.

    GoCardless carries no structured category, so after the fee, transfer and
    direction checks the transaction text is matched against keywords.
    """
    if method is TransactionMethod.FEE:
        return TransactionCategory.FEES

    if method is TransactionMethod.TRANSFER and _is_own_transfer(transaction):
        return TransactionCategory.TRANSFER

    if amount < 0:
        return TransactionCategory.INCOME

    matched = match_keywords(
        transaction.creditor_name,
        _remittance(transaction),
        transaction.additional_information,
    )
    return matched or TransactionCategory.UNCATEGORIZED


def _is_own_transfer(transaction: GoCardlessTransaction) -> bool:
    creditor = (transaction.creditor_name or "").strip().lower()
    debtor = (transaction.debtor_name or "").strip().lower()
    return bool(creditor) and creditor == debtor


def _remittance(transaction: GoCardlessTransaction) -> str | None:
    if transaction.remittance_information_unstructured:
        return transaction.remittance_information_unstructured
    if transaction.remittance_information_unstructured_array:
        return " ".join(transaction.remittance_information_unstructured_array)
    return transaction.remittance_information_structured


def transform_name(transaction: GoCardlessTransaction, amount: Decimal) -> str:
    """Counterparty name, else remittance text, else any reference we have."""
    counterparty = (
        transaction.creditor_name if amount > 0 else transaction.debtor_name
    ) or transaction.creditor_name or transaction.debtor_name

    for candidate in (
        counterparty,
        _remittance(transaction),
        transaction.additional_information,
        transaction.entry_reference,
    ):
        name = capital_case(candidate)
        if name:
            return name
    return NO_INFORMATION


def transaction_id(transaction: GoCardlessTransaction, account_id: str) -> str:
    """Vendor id, or a stable hash of the transaction's fundamental values."""
    if transaction.transaction_id:
        return transaction.transaction_id
    if transaction.internal_transaction_id:
        return transaction.internal_transaction_id

    fundamentals = "|".join(
        str(v or "")
        for v in (
            account_id,
            transaction.booking_date or transaction.value_date,
            transaction.transaction_amount.amount,
            transaction.transaction_amount.currency,
            transaction.creditor_name,
            transaction.debtor_name,
            _remittance(transaction),
            transaction.entry_reference,
        )
    )
    return hashlib.md5(fundamentals.encode("utf-8")).hexdigest()


def transform_transaction(
    transaction: GoCardlessTransaction, account_id: str
) -> Transaction:
    """Map a booked GoCardless transaction to a canonical transaction."""
    amount = -transaction.transaction_amount.amount
    method = map_transaction_method(transaction)
    name = transform_name(transaction, amount)
    remittance = _remittance(transaction)

    exchanges = transaction.currency_exchange
    exchange = exchanges[0] if exchanges else None
    balance_after = transaction.balance_after_transaction

    return Transaction(
        id=transaction_id(transaction, account_id),
        bank_account_id=account_id,
        account_id=account_id,
        date=transaction.booking_date or transaction.value_date,
        amount=amount,
        currency=normalize_currency(transaction.transaction_amount.currency),
        name=name,
        description=description_if_distinct(
            name, capital_case(remittance) if remittance else None
        ),
        status=TransactionStatus.POSTED,
        method=method,
        category=map_transaction_category(transaction, amount, method),
        balance=balance_after.balance_amount.amount if balance_after else None,
        currency_rate=exchange.exchange_rate if exchange else None,
        currency_source=exchange.source_currency if exchange else None,
        counterparty_name=transaction.creditor_name or transaction.debtor_name,
    )


def select_primary_balance(
    balances: list[GoCardlessBalanceEntry], currency: str | None = None
) -> GoCardlessBalanceEntry | None:
    """Pick the balance that best represents the current amount.

    Interim balances are preferred. Some banks report a zero interim balance
    next to a real ``expected`` one, so a non-zero expected balance wins over
    a zero interim one.
    """
    if currency:
        matching = [
            b
            for b in balances
            if (b.balance_amount.currency or "").upper() == currency.upper()
        ]
        balances = matching or balances

    by_type = {b.balance_type: b for b in balances}
    interim = by_type.get("interimAvailable") or by_type.get("interimBooked")
    expected = by_type.get("expected")

    if interim and (interim.balance_amount.amount != 0 or expected is None):
        return interim
    if expected:
        return expected
    return interim or (balances[0] if balances else None)


def transform_balance(
    balances: list[GoCardlessBalanceEntry],
    account_type: AccountType | str = AccountType.DEPOSITORY,
    currency: str | None = None,
) -> Balance:
    """Map the balance list of an account."""
    primary = select_primary_balance(balances, currency)
    available = next(
        (b for b in balances if b.balance_type == "interimAvailable"), None
    )

    if primary is None:
        return Balance(amount=Decimal("0"), currency=currency)

    return Balance(
        amount=normalize_balance(primary.balance_amount.amount, account_type),
        available=(
            normalize_balance(available.balance_amount.amount, account_type)
            if available
            else None
        ),
        currency=normalize_currency(primary.balance_amount.currency or currency),
    )


def transform_institution(institution: GoCardlessInstitution) -> Institution:
    """Map a GoCardless institution."""
    return Institution(
        id=institution.id,
        name=institution.name,
        logo=get_logo_url(institution.id),
        provider=ProviderName.GOCARDLESS,
    )


def transform_account(
    metadata: GoCardlessAccountMetadata,
    details: GoCardlessAccountDetails,
    balances: list[GoCardlessBalanceEntry],
    institution: GoCardlessInstitution,
) -> Account:
    """Map an account from its metadata, details and balances."""
    if details.cash_account_type:
        account_type = get_account_type(details.cash_account_type)
    else:
        account_type = AccountType.DEPOSITORY
    if account_type is AccountType.OTHER:
        account_type = AccountType.DEPOSITORY

    name = (
        details.name
        or details.display_name
        or details.product
        or details.owner_name
        or institution.name
    )
    balance = transform_balance(balances, account_type, details.currency)

    return Account(
        id=metadata.id,
        name=capital_case(name) if name.isupper() else name,
        currency=normalize_currency(details.currency or balance.currency),
        type=account_type,
        enrollment_id=None,
        resource_id=details.resource_id,
        subtype=details.cash_account_type,
        balance=balance,
        institution=transform_institution(institution),
    )
