"""Canonical, vendor-agnostic data model returned by every provider.

Entities are built fresh from vendor responses on every request. Amounts are
``Decimal`` and follow one sign convention regardless of vendor: positive
values mean money left the account, negative values mean money arrived.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_CURRENCY = "USD"


class ProviderName(str, Enum):
    """Supported data providers."""

    GOCARDLESS = "gocardless"
    PLAID = "plaid"
    TELLER = "teller"
    STRIPE = "stripe"


class AccountType(str, Enum):
    """Normalized account type."""

    DEPOSITORY = "depository"
    CREDIT = "credit"
    LOAN = "loan"
    INVESTMENT = "investment"
    OTHER_ASSET = "other_asset"
    OTHER_LIABILITY = "other_liability"
    OTHER = "other"


class TransactionStatus(str, Enum):
    """Posting status of a transaction."""

    POSTED = "posted"
    PENDING = "pending"


class TransactionMethod(str, Enum):
    """How money moved."""

    PAYMENT = "payment"
    CARD_PURCHASE = "card_purchase"
    CARD_ATM = "card_atm"
    TRANSFER = "transfer"
    ACH = "ach"
    INTEREST = "interest"
    DEPOSIT = "deposit"
    WIRE = "wire"
    FEE = "fee"
    OTHER = "other"


class TransactionCategory(str, Enum):
    """Fixed category taxonomy assigned by best-effort inference."""

    INCOME = "income"
    INTEREST_INCOME = "interest-income"
    CUSTOMER_REFUNDS = "customer-refunds"
    TRANSFER = "transfer"
    CREDIT_CARD_PAYMENT = "credit-card-payment"
    FEES = "fees"
    PAYMENT_PROCESSOR_FEES = "payment-processor-fees"
    PAYMENT_PLATFORM_PAYOUTS = "payment-platform-payouts"
    INTEREST_EXPENSE = "interest-expense"
    LOAN_PRINCIPAL_REPAYMENT = "loan-principal-repayment"
    MEALS = "meals"
    TRAVEL = "travel"
    ACTIVITY = "activity"
    SOFTWARE = "software"
    NON_SOFTWARE_SUBSCRIPTIONS = "non-software-subscriptions"
    RENT = "rent"
    UTILITIES = "utilities"
    FACILITIES_EXPENSES = "facilities-expenses"
    INTERNET_AND_TELEPHONE = "internet-and-telephone"
    OFFICE_SUPPLIES = "office-supplies"
    EQUIPMENT = "equipment"
    MARKETING = "marketing"
    PROFESSIONAL_SERVICES_FEES = "professional-services-fees"
    INSURANCE = "insurance"
    SALARY = "salary"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    DONATIONS = "donations"
    TAXES = "taxes"
    UNCATEGORIZED = "uncategorized"
    OTHER = "other"


class RecurringFrequency(str, Enum):
    """Normalized frequency of a recurring stream."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    SEMI_MONTHLY = "semi-monthly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    UNKNOWN = "unknown"


class RecurringStatus(str, Enum):
    """Maturity of a recurring stream."""

    MATURE = "mature"
    EARLY_DETECTION = "early_detection"
    TOMBSTONED = "tombstoned"
    UNKNOWN = "unknown"


class CanonicalModel(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        use_enum_values=True,
        str_strip_whitespace=True,
        populate_by_name=True,
    )


def normalize_currency(value: str | None) -> str:
    """Upper-case an ISO 4217 code, falling back to USD when absent."""
    if not value or not str(value).strip():
        return DEFAULT_CURRENCY
    return str(value).strip().upper()


class Institution(CanonicalModel):
    """A financial institution as exposed by a provider."""

    id: str
    name: str
    logo: str | None = None
    provider: ProviderName


class CurrencyAmount(CanonicalModel):
    """An amount in a specific currency."""

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    @field_validator("currency", mode="before")
    @classmethod
    def coerce_currency(cls, v: str | None) -> str:
        """Normalize the currency code."""
        return normalize_currency(v)


class Balance(CanonicalModel):
    """Balance of an account.

    ``available`` is a single amount for most vendors and a list of
    per-currency amounts for payment processors holding multi-currency funds.
    """

    amount: Decimal
    available: Decimal | list[CurrencyAmount] | None = None
    currency: str = DEFAULT_CURRENCY

    @field_validator("currency", mode="before")
    @classmethod
    def coerce_currency(cls, v: str | None) -> str:
        """Normalize the currency code."""
        return normalize_currency(v)


class Account(CanonicalModel):
    """A bank, card or processor account."""

    id: str
    name: str
    currency: str = DEFAULT_CURRENCY
    type: AccountType
    enrollment_id: str | None = None
    resource_id: str | None = None
    subtype: str | None = None
    balance: Balance
    institution: Institution

    @field_validator("currency", mode="before")
    @classmethod
    def coerce_currency(cls, v: str | None) -> str:
        """Normalize the currency code."""
        return normalize_currency(v)


class TransactionLocation(CanonicalModel):
    """Where a card transaction happened."""

    address: str | None = None
    city: str | None = None
    region: str | None = None
    postal_code: str | None = None
    country: str | None = None
    lat: float | None = Field(None, ge=-90, le=90)
    lon: float | None = Field(None, ge=-180, le=180)
    store_number: str | None = None


class Transaction(CanonicalModel):
    """A single money movement on an account."""

    id: str
    internal_id: str = ""
    bank_account_id: str
    account_id: str
    date: dt.date
    amount: Decimal = Field(
        ...,
        description="Positive when money left the account, negative when it arrived",
    )
    currency: str = DEFAULT_CURRENCY
    name: str
    description: str | None = None
    status: TransactionStatus = TransactionStatus.POSTED
    method: TransactionMethod = TransactionMethod.OTHER
    category: TransactionCategory = TransactionCategory.UNCATEGORIZED
    balance: Decimal | None = None
    currency_rate: Decimal | None = None
    currency_source: str | None = None

    merchant_name: str | None = None
    counterparty_name: str | None = None
    location: TransactionLocation | None = None
    website: str | None = None
    logo_url: str | None = None
    payment_channel: str | None = None

    @field_validator("currency", mode="before")
    @classmethod
    def coerce_currency(cls, v: str | None) -> str:
        """Normalize the currency code."""
        return normalize_currency(v)

    @model_validator(mode="before")
    @classmethod
    def default_internal_id(cls, data: Any) -> Any:
        """Default the dedup key to the vendor id."""
        if isinstance(data, dict) and not data.get("internal_id"):
            data = {**data, "internal_id": data.get("id", "")}
        return data


class RecurringAmount(CanonicalModel):
    """Amount of a recurring stream."""

    amount: Decimal = Decimal("0")
    iso_currency_code: str | None = None
    unofficial_currency_code: str | None = None


class RecurringCategory(CanonicalModel):
    """Personal finance category of a recurring stream."""

    primary: str
    detailed: str
    confidence_level: str = "unknown"


class RecurringTransaction(CanonicalModel):
    """A stream of transactions detected as recurring."""

    account_id: str
    stream_id: str
    description: str = ""
    merchant_name: str | None = None
    first_date: dt.date | None = None
    last_date: dt.date | None = None
    frequency: RecurringFrequency = RecurringFrequency.UNKNOWN
    transaction_ids: list[str] = Field(default_factory=list)
    average_amount: RecurringAmount = Field(default_factory=RecurringAmount)
    last_amount: RecurringAmount = Field(default_factory=RecurringAmount)
    is_active: bool = False
    status: RecurringStatus = RecurringStatus.UNKNOWN
    personal_finance_category: RecurringCategory | None = None
    is_user_modified: bool = False


class RecurringTransactionsResponse(CanonicalModel):
    """Inflow and outflow streams of an account."""

    inflow: list[RecurringTransaction] = Field(default_factory=list)
    outflow: list[RecurringTransaction] = Field(default_factory=list)
    last_updated_at: dt.datetime


class StatementMetadata(CanonicalModel):
    """A statement available for download."""

    account_id: str
    statement_id: str
    month: str
    year: str


class StatementsResponse(CanonicalModel):
    """Statements listed for an item."""

    statements: list[StatementMetadata] = Field(default_factory=list)
    institution_name: str = ""
    institution_id: str = ""
    item_id: str | None = None


class StatementPdf(CanonicalModel):
    """A downloaded statement document."""

    pdf: bytes
    filename: str


class ProviderHealth(CanonicalModel):
    """Result of a single provider health probe."""

    healthy: bool
