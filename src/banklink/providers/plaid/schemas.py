"""Pydantic schemas for Plaid API payloads.

Plaid SDK objects are validated directly into these models; the field
validators unwrap the SDK's enum wrappers into plain strings.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, cast

from pydantic import Field, field_validator

from ..base import VendorSchema, enum_value


class PlaidLocation(VendorSchema):
    """Schema for transaction location data."""

    address: str | None = None
    city: str | None = None
    region: str | None = None
    postal_code: str | None = None
    country: str | None = None
    lat: float | None = Field(None, ge=-90, le=90)
    lon: float | None = Field(None, ge=-180, le=180)
    store_number: str | None = None


class PlaidPersonalFinanceCategory(VendorSchema):
    """Plaid's two-level personal finance category."""

    primary: str
    detailed: str
    confidence_level: str | None = None

    @field_validator("confidence_level", mode="before")
    @classmethod
    def coerce_confidence(cls, v: Any) -> Any:
        """Accept the SDK enum or a string."""
        return enum_value(v)


class PlaidBalance(VendorSchema):
    """Schema for account balance information."""

    available: Decimal | None = Field(None, description="Available balance")
    current: Decimal | None = Field(None, description="Current balance")
    limit: Decimal | None = Field(None, description="Credit limit or overdraft limit")
    iso_currency_code: str | None = Field(None, max_length=3)
    unofficial_currency_code: str | None = None


class PlaidAccount(VendorSchema):
    """Schema for Plaid account data."""

    account_id: str = Field(..., description="Plaid account ID")
    balances: PlaidBalance
    mask: str | None = Field(None, max_length=4)
    name: str = Field(..., description="Account name")
    official_name: str | None = None
    subtype: str | None = None
    type: str

    @field_validator("type", "subtype", mode="before")
    @classmethod
    def coerce_account_enums(cls, v: Any) -> Any:
        """Accept Plaid SDK enum or string and convert to string."""
        v = enum_value(v)
        return None if v is None else str(v)


class PlaidTransaction(VendorSchema):
    """Schema for Plaid transaction data."""

    transaction_id: str = Field(..., description="Plaid transaction ID")
    account_id: str = Field(..., description="Associated account ID")
    amount: Decimal = Field(..., description="Positive when money moves out")
    iso_currency_code: str | None = Field(None, max_length=3)
    unofficial_currency_code: str | None = None

    transaction_date: date = Field(..., description="Transaction date", alias="date")
    authorized_date: date | None = None

    name: str = ""
    merchant_name: str | None = None
    original_description: str | None = None

    category: list[str] = Field(default_factory=list)
    category_id: str | None = None
    personal_finance_category: PlaidPersonalFinanceCategory | None = None

    payment_channel: str | None = None
    transaction_type: str | None = None
    transaction_code: str | None = None

    location: PlaidLocation | None = None

    pending: bool = False
    pending_transaction_id: str | None = None

    website: str | None = None
    logo_url: str | None = None

    @field_validator(
        "payment_channel", "transaction_type", "transaction_code", mode="before"
    )
    @classmethod
    def coerce_transaction_enums(cls, v: Any) -> Any:
        """Coerce Plaid SDK enums for transaction fields into strings."""
        return enum_value(v)

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v: Any) -> Any:
        """Plaid may omit the legacy name field."""
        return v or ""

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v: Any) -> Any:
        """Ensure category is a list of strings; Plaid may return None."""
        if v is None:
            return []
        if isinstance(v, list):
            items = cast(list[object], v)
            return [str(x) for x in items]
        return [str(v)]


class PlaidInstitution(VendorSchema):
    """Institution as returned by /institutions/get and /get_by_id."""

    institution_id: str
    name: str
    country_codes: list[str] = Field(default_factory=list)
    logo: str | None = None

    @field_validator("country_codes", mode="before")
    @classmethod
    def coerce_country_codes(cls, v: Any) -> Any:
        """Unwrap SDK CountryCode values."""
        return [str(enum_value(c)) for c in v or []]


class PlaidStreamAmount(VendorSchema):
    """Amount of a recurring stream."""

    amount: Decimal | None = None
    iso_currency_code: str | None = None
    unofficial_currency_code: str | None = None


class PlaidTransactionStream(VendorSchema):
    """A recurring transaction stream from /transactions/recurring/get."""

    account_id: str
    stream_id: str
    description: str = ""
    merchant_name: str | None = None
    first_date: date | None = None
    last_date: date | None = None
    frequency: str = "UNKNOWN"
    transaction_ids: list[str] = Field(default_factory=list)
    average_amount: PlaidStreamAmount = Field(default_factory=PlaidStreamAmount)
    last_amount: PlaidStreamAmount = Field(default_factory=PlaidStreamAmount)
    is_active: bool = False
    status: str = "UNKNOWN"
    personal_finance_category: PlaidPersonalFinanceCategory | None = None
    is_user_modified: bool = False

    @field_validator("frequency", "status", mode="before")
    @classmethod
    def coerce_stream_enums(cls, v: Any) -> Any:
        """Unwrap SDK enums; missing values become UNKNOWN."""
        v = enum_value(v)
        return "UNKNOWN" if v is None else str(v)


class PlaidStatement(VendorSchema):
    """A statement listed under an account."""

    statement_id: str
    month: int
    year: int


class PlaidStatementsAccount(VendorSchema):
    """An account and its statements from /statements/list."""

    account_id: str
    account_name: str | None = None
    statements: list[PlaidStatement] = Field(default_factory=list)


class PlaidStatementsList(VendorSchema):
    """Response of /statements/list."""

    item_id: str | None = None
    institution_id: str = ""
    institution_name: str = ""
    accounts: list[PlaidStatementsAccount] = Field(default_factory=list)


class PlaidRecurringResponse(VendorSchema):
    """Response of /transactions/recurring/get."""

    inflow_streams: list[PlaidTransactionStream] = Field(default_factory=list)
    outflow_streams: list[PlaidTransactionStream] = Field(default_factory=list)
    updated_datetime: datetime | None = None
