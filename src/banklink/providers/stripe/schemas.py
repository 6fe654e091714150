"""Pydantic schemas for Stripe objects.

Stripe objects are dict-like with attribute access, so they validate either
way. Amounts are integers in the currency's minor unit.
"""

from typing import Any

from pydantic import Field, field_validator

from ..base import VendorSchema


class StripeBusinessProfile(VendorSchema):
    name: str | None = None
    url: str | None = None


class StripeAccount(VendorSchema):
    """A connected account."""

    id: str
    email: str | None = None
    country: str | None = None
    default_currency: str | None = None
    business_profile: StripeBusinessProfile | None = None
    settings: dict[str, Any] | None = None

    @field_validator("settings", mode="before")
    @classmethod
    def coerce_settings(cls, v: Any) -> Any:
        """Keep settings as a plain dict."""
        if v is None or isinstance(v, dict):
            return v
        to_dict = getattr(v, "to_dict", None)
        return to_dict() if callable(to_dict) else None

    @property
    def display_name(self) -> str:
        """Business name as shown in the Stripe dashboard."""
        dashboard = (self.settings or {}).get("dashboard") or {}
        return (
            (self.business_profile.name if self.business_profile else None)
            or dashboard.get("display_name")
            or self.email
            or self.id
        )


class StripeMoney(VendorSchema):
    amount: int
    currency: str


class StripeBalance(VendorSchema):
    """Balance of a connected account, one entry per currency."""

    available: list[StripeMoney] = Field(default_factory=list)
    pending: list[StripeMoney] = Field(default_factory=list)


class StripeBalanceTransaction(VendorSchema):
    """A movement of funds in or out of the Stripe balance."""

    id: str
    amount: int
    currency: str
    created: int
    description: str | None = None
    fee: int = 0
    net: int | None = None
    status: str = "available"
    type: str = ""
    reporting_category: str | None = None
