"""Plaid payload to canonical model mapping.

Plaid already signs amounts the canonical way (positive when money moves out
of the account), so amounts pass through unchanged.
"""

from datetime import datetime, timezone
from decimal import Decimal

from ...categories import match_keywords
from ...models import (
    Account,
    Balance,
    Institution,
    ProviderName,
    RecurringAmount,
    RecurringCategory,
    RecurringFrequency,
    RecurringStatus,
    RecurringTransaction,
    RecurringTransactionsResponse,
    StatementMetadata,
    StatementsResponse,
    Transaction,
    TransactionCategory,
    TransactionLocation,
    TransactionMethod,
    TransactionStatus,
    normalize_currency,
)
from ...utils.account import get_account_type
from ...utils.logo import get_logo_url
from ...utils.text import capital_case, description_if_distinct
from .schemas import (
    PlaidAccount,
    PlaidBalance,
    PlaidInstitution,
    PlaidRecurringResponse,
    PlaidStatementsList,
    PlaidStreamAmount,
    PlaidTransaction,
    PlaidTransactionStream,
)

TRANSACTION_METHODS: dict[str, TransactionMethod] = {
    "bill payment": TransactionMethod.PAYMENT,
    "purchase": TransactionMethod.CARD_PURCHASE,
    "atm": TransactionMethod.CARD_ATM,
    "transfer": TransactionMethod.TRANSFER,
    "interest": TransactionMethod.INTEREST,
    "bank charge": TransactionMethod.FEE,
    "direct debit": TransactionMethod.ACH,
    "standing order": TransactionMethod.PAYMENT,
    "adjustment": TransactionMethod.OTHER,
}

# Primary personal finance categories with a direct canonical counterpart.
PRIMARY_CATEGORIES: dict[str, TransactionCategory] = {
    "FOOD_AND_DRINK": TransactionCategory.MEALS,
    "TRANSPORTATION": TransactionCategory.TRAVEL,
    "TRAVEL": TransactionCategory.TRAVEL,
    "HOME_IMPROVEMENT": TransactionCategory.OFFICE_SUPPLIES,
    "ENTERTAINMENT": TransactionCategory.ACTIVITY,
    "MEDICAL": TransactionCategory.HEALTHCARE,
    "LOAN_PAYMENTS": TransactionCategory.LOAN_PRINCIPAL_REPAYMENT,
}

DETAILED_CATEGORIES: dict[str, TransactionCategory] = {
    "GENERAL_SERVICES_OTHER_GENERAL_SERVICES": TransactionCategory.SOFTWARE,
    "RENT_AND_UTILITIES_GAS_AND_ELECTRICITY": TransactionCategory.FACILITIES_EXPENSES,
    "RENT_AND_UTILITIES_SEWAGE_AND_WASTE_MANAGEMENT": (
        TransactionCategory.FACILITIES_EXPENSES
    ),
    "RENT_AND_UTILITIES_WATER": TransactionCategory.FACILITIES_EXPENSES,
    "RENT_AND_UTILITIES_OTHER_UTILITIES": TransactionCategory.FACILITIES_EXPENSES,
    "RENT_AND_UTILITIES_RENT": TransactionCategory.RENT,
    "RENT_AND_UTILITIES_INTERNET_AND_CABLE": TransactionCategory.INTERNET_AND_TELEPHONE,
    "RENT_AND_UTILITIES_TELEPHONE": TransactionCategory.INTERNET_AND_TELEPHONE,
    "GENERAL_SERVICES_EDUCATION": TransactionCategory.EDUCATION,
    "GENERAL_SERVICES_INSURANCE": TransactionCategory.INSURANCE,
    "GENERAL_SERVICES_ACCOUNTING_AND_FINANCIAL_PLANNING": (
        TransactionCategory.PROFESSIONAL_SERVICES_FEES
    ),
    "GENERAL_SERVICES_CONSULTING_AND_LEGAL": (
        TransactionCategory.PROFESSIONAL_SERVICES_FEES
    ),
    "GOVERNMENT_AND_NON_PROFIT_DONATIONS": TransactionCategory.DONATIONS,
    "GOVERNMENT_AND_NON_PROFIT_TAX_PAYMENT": TransactionCategory.TAXES,
}

RECURRING_FREQUENCIES: dict[str, RecurringFrequency] = {
    "WEEKLY": RecurringFrequency.WEEKLY,
    "BIWEEKLY": RecurringFrequency.BIWEEKLY,
    "SEMI_MONTHLY": RecurringFrequency.SEMI_MONTHLY,
    "MONTHLY": RecurringFrequency.MONTHLY,
    "ANNUALLY": RecurringFrequency.YEARLY,
}

RECURRING_STATUSES: dict[str, RecurringStatus] = {
    "MATURE": RecurringStatus.MATURE,
    "EARLY_DETECTION": RecurringStatus.EARLY_DETECTION,
    "TOMBSTONED": RecurringStatus.TOMBSTONED,
}


def map_transaction_method(code: str | None) -> TransactionMethod:
    """Map a Plaid transaction code to a canonical method."""
    return TRANSACTION_METHODS.get((code or "").lower(), TransactionMethod.OTHER)


def map_transaction_category(
    transaction: PlaidTransaction, amount: Decimal
) -> TransactionCategory:
    """Infer the canonical category of a Plaid transaction.

    Checks run in a fixed order: explicit income, transfer and fee signals,
    then direction (money arriving is income), then Plaid's personal finance
    category, then keywords in the transaction text.

    Args:
        transaction: Validated Plaid transaction
        amount: Canonically signed amount

    Returns:
        TransactionCategory: Never None, ``uncategorized`` when nothing matches
    """
    pfc = transaction.personal_finance_category
    primary = pfc.primary if pfc else None
    detailed = pfc.detailed if pfc else None
    code = (transaction.transaction_code or "").lower()

    if primary == "INCOME":
        return TransactionCategory.INCOME

    if code == "transfer" or primary in ("TRANSFER_IN", "TRANSFER_OUT"):
        return TransactionCategory.TRANSFER

    if code == "bank charge" or primary == "BANK_FEES":
        return TransactionCategory.FEES

    if amount < 0:
        return TransactionCategory.INCOME

    if detailed and detailed in DETAILED_CATEGORIES:
        return DETAILED_CATEGORIES[detailed]

    if primary and primary in PRIMARY_CATEGORIES:
        return PRIMARY_CATEGORIES[primary]

    matched = match_keywords(
        transaction.name, transaction.merchant_name, transaction.original_description
    )
    return matched or TransactionCategory.UNCATEGORIZED


def _currency(iso: str | None, unofficial: str | None) -> str:
    return normalize_currency(iso or unofficial)


def transform_transaction(transaction: PlaidTransaction) -> Transaction:
    """Map a validated Plaid transaction to a canonical transaction."""
    amount = transaction.amount
    name = capital_case(transaction.name or transaction.merchant_name)
    original = (
        capital_case(transaction.original_description)
        if transaction.original_description
        else None
    )
    location = None
    if transaction.location and any(
        v is not None for v in transaction.location.model_dump().values()
    ):
        location = TransactionLocation(**transaction.location.model_dump())

    return Transaction(
        id=transaction.transaction_id,
        internal_id=transaction.transaction_id,
        bank_account_id=transaction.account_id,
        account_id=transaction.account_id,
        date=transaction.transaction_date,
        amount=amount,
        currency=_currency(
            transaction.iso_currency_code, transaction.unofficial_currency_code
        ),
        name=name or "Unknown",
        description=description_if_distinct(name, original, transaction.merchant_name),
        status=(
            TransactionStatus.PENDING
            if transaction.pending
            else TransactionStatus.POSTED
        ),
        method=map_transaction_method(transaction.transaction_code),
        category=map_transaction_category(transaction, amount),
        merchant_name=transaction.merchant_name,
        location=location,
        website=transaction.website,
        logo_url=transaction.logo_url,
        payment_channel=transaction.payment_channel,
    )


def transform_institution(institution: PlaidInstitution) -> Institution:
    """Map a Plaid institution."""
    return Institution(
        id=institution.institution_id,
        name=institution.name,
        logo=get_logo_url(institution.institution_id),
        provider=ProviderName.PLAID,
    )


def transform_balance(balances: PlaidBalance | None) -> Balance:
    """Map Plaid balances; credit balances are already the amount owed."""
    if balances is None:
        return Balance(amount=Decimal("0"), available=None)
    return Balance(
        amount=balances.current if balances.current is not None else Decimal("0"),
        available=balances.available,
        currency=_currency(
            balances.iso_currency_code, balances.unofficial_currency_code
        ),
    )


def transform_account(
    account: PlaidAccount, institution: PlaidInstitution
) -> Account:
    """Map a Plaid account together with its institution."""
    balance = transform_balance(account.balances)
    return Account(
        id=account.account_id,
        name=account.official_name or account.name,
        currency=balance.currency,
        type=get_account_type(account.type),
        enrollment_id=None,
        resource_id=account.mask,
        subtype=account.subtype,
        balance=balance,
        institution=transform_institution(institution),
    )


def _stream_amount(amount: PlaidStreamAmount) -> RecurringAmount:
    return RecurringAmount(
        amount=amount.amount if amount.amount is not None else Decimal("0"),
        iso_currency_code=amount.iso_currency_code or None,
        unofficial_currency_code=amount.unofficial_currency_code or None,
    )


def transform_recurring_transaction(
    stream: PlaidTransactionStream,
) -> RecurringTransaction:
    """Map a Plaid recurring stream."""
    pfc = stream.personal_finance_category
    return RecurringTransaction(
        account_id=stream.account_id,
        stream_id=stream.stream_id,
        description=stream.description,
        merchant_name=stream.merchant_name,
        first_date=stream.first_date,
        last_date=stream.last_date,
        frequency=RECURRING_FREQUENCIES.get(
            stream.frequency.upper(), RecurringFrequency.UNKNOWN
        ),
        transaction_ids=stream.transaction_ids,
        average_amount=_stream_amount(stream.average_amount),
        last_amount=_stream_amount(stream.last_amount),
        is_active=stream.is_active,
        status=RECURRING_STATUSES.get(stream.status.upper(), RecurringStatus.UNKNOWN),
        personal_finance_category=(
            RecurringCategory(
                primary=pfc.primary,
                detailed=pfc.detailed,
                confidence_level=pfc.confidence_level or "unknown",
            )
            if pfc
            else None
        ),
        is_user_modified=stream.is_user_modified,
    )


def transform_recurring_response(
    response: PlaidRecurringResponse,
) -> RecurringTransactionsResponse:
    """Map the inflow and outflow streams of an account."""
    return RecurringTransactionsResponse(
        inflow=[transform_recurring_transaction(s) for s in response.inflow_streams],
        outflow=[transform_recurring_transaction(s) for s in response.outflow_streams],
        last_updated_at=response.updated_datetime or datetime.now(timezone.utc),
    )


def transform_statements(
    response: PlaidStatementsList, account_id: str | None = None
) -> StatementsResponse:
    """Flatten per-account statements, optionally keeping one account."""
    statements = [
        StatementMetadata(
            account_id=account.account_id,
            statement_id=statement.statement_id,
            month=str(statement.month),
            year=str(statement.year),
        )
        for account in response.accounts
        if not account_id or account.account_id == account_id
        for statement in account.statements
    ]
    return StatementsResponse(
        statements=statements,
        institution_name=response.institution_name,
        institution_id=response.institution_id,
        item_id=response.item_id,
    )
