"""Pydantic schemas for Teller API payloads."""

from datetime import date
from decimal import Decimal

from pydantic import Field

from ..base import VendorSchema


class TellerInstitution(VendorSchema):
    """Institution reference embedded in accounts and listed by /institutions."""

    id: str
    name: str


class TellerAccount(VendorSchema):
    """Account from /accounts."""

    id: str
    enrollment_id: str | None = None
    institution: TellerInstitution
    last_four: str | None = None
    name: str
    type: str
    subtype: str | None = None
    currency: str | None = None
    status: str | None = None


class TellerBalance(VendorSchema):
    """Balances from /accounts/{id}/balances; Teller sends decimal strings."""

    account_id: str | None = None
    ledger: Decimal | None = None
    available: Decimal | None = None


class TellerCounterparty(VendorSchema):
    name: str | None = None
    type: str | None = None


class TellerTransactionDetails(VendorSchema):
    processing_status: str | None = None
    category: str | None = None
    counterparty: TellerCounterparty | None = None


class TellerTransaction(VendorSchema):
    """Transaction from /accounts/{id}/transactions."""

    id: str
    account_id: str | None = None
    amount: Decimal
    transaction_date: date = Field(..., alias="date")
    description: str = ""
    status: str = "posted"
    type: str | None = None
    running_balance: Decimal | None = None
    details: TellerTransactionDetails = Field(default_factory=TellerTransactionDetails)
