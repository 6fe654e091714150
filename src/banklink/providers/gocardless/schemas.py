"""Pydantic schemas for GoCardless Bank Account Data payloads.

GoCardless follows the Berlin Group naming, so most fields are camelCase on
the wire and snake_case here.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import Field, field_validator

from ..base import VendorSchema


class GoCardlessToken(VendorSchema):
    """Response of /token/new/ and /token/refresh/."""

    access: str
    access_expires: int
    refresh: str | None = None
    refresh_expires: int | None = None


class GoCardlessInstitution(VendorSchema):
    id: str
    name: str
    bic: str | None = None
    transaction_total_days: int | None = None
    countries: list[str] = Field(default_factory=list)
    logo: str | None = None

    @field_validator("transaction_total_days", mode="before")
    @classmethod
    def coerce_days(cls, v: Any) -> Any:
        """GoCardless sends the history window as a string."""
        return int(v) if v not in (None, "") else None


class GoCardlessRequisition(VendorSchema):
    id: str
    status: str | None = None
    institution_id: str
    agreement: str | None = None
    reference: str | None = None
    accounts: list[str] = Field(default_factory=list)


class GoCardlessAmount(VendorSchema):
    amount: Decimal
    currency: str | None = None


class GoCardlessBalanceEntry(VendorSchema):
    balance_amount: GoCardlessAmount = Field(..., alias="balanceAmount")
    balance_type: str = Field("", alias="balanceType")
    reference_date: date | None = Field(None, alias="referenceDate")


class GoCardlessBalances(VendorSchema):
    balances: list[GoCardlessBalanceEntry] = Field(default_factory=list)


class GoCardlessAccountDetails(VendorSchema):
    """The ``account`` object of /accounts/{id}/details/."""

    resource_id: str | None = Field(None, alias="resourceId")
    iban: str | None = None
    bban: str | None = None
    currency: str | None = None
    owner_name: str | None = Field(None, alias="ownerName")
    name: str | None = None
    display_name: str | None = Field(None, alias="displayName")
    product: str | None = None
    cash_account_type: str | None = Field(None, alias="cashAccountType")


class GoCardlessAccountMetadata(VendorSchema):
    """Response of /accounts/{id}/."""

    id: str
    institution_id: str | None = None
    iban: str | None = None
    status: str | None = None
    owner_name: str | None = None


class GoCardlessCurrencyExchange(VendorSchema):
    source_currency: str | None = Field(None, alias="sourceCurrency")
    exchange_rate: Decimal | None = Field(None, alias="exchangeRate")
    target_currency: str | None = Field(None, alias="targetCurrency")


class GoCardlessBalanceAfter(VendorSchema):
    balance_amount: GoCardlessAmount = Field(..., alias="balanceAmount")
    balance_type: str | None = Field(None, alias="balanceType")


class GoCardlessTransaction(VendorSchema):
    """A booked transaction from /accounts/{id}/transactions/."""

    transaction_id: str | None = Field(None, alias="transactionId")
    internal_transaction_id: str | None = Field(None, alias="internalTransactionId")
    entry_reference: str | None = Field(None, alias="entryReference")
    booking_date: date | None = Field(None, alias="bookingDate")
    value_date: date | None = Field(None, alias="valueDate")
    transaction_amount: GoCardlessAmount = Field(..., alias="transactionAmount")
    currency_exchange: list[GoCardlessCurrencyExchange] = Field(
        default_factory=list, alias="currencyExchange"
    )
    creditor_name: str | None = Field(None, alias="creditorName")
    debtor_name: str | None = Field(None, alias="debtorName")
    remittance_information_unstructured: str | None = Field(
        None, alias="remittanceInformationUnstructured"
    )
    remittance_information_unstructured_array: list[str] = Field(
        default_factory=list, alias="remittanceInformationUnstructuredArray"
    )
    remittance_information_structured: str | None = Field(
        None, alias="remittanceInformationStructured"
    )
    additional_information: str | None = Field(None, alias="additionalInformation")
    proprietary_bank_transaction_code: str | None = Field(
        None, alias="proprietaryBankTransactionCode"
    )
    bank_transaction_code: str | None = Field(None, alias="bankTransactionCode")
    balance_after_transaction: GoCardlessBalanceAfter | None = Field(
        None, alias="balanceAfterTransaction"
    )

    @field_validator("currency_exchange", mode="before")
    @classmethod
    def coerce_currency_exchange(cls, v: Any) -> Any:
        """Some banks send a single object instead of a list."""
        if v is None:
            return []
        if isinstance(v, dict):
            return [v]
        return v


class GoCardlessTransactions(VendorSchema):
    """The ``transactions`` object; only booked entries are used."""

    booked: list[GoCardlessTransaction] = Field(default_factory=list)
    pending: list[dict[str, Any]] = Field(default_factory=list)


class GoCardlessError(VendorSchema):
    summary: str | None = None
    detail: Any = None
    status_code: int | None = None
    type: str | None = None
