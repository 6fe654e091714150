"""Tests for Stripe payload mapping."""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import pytest

from banklink.models import TransactionCategory, TransactionMethod
from banklink.providers.stripe.schemas import (
    StripeAccount,
    StripeBalance,
    StripeBalanceTransaction,
)
from banklink.providers.stripe.transform import (
    transform_account,
    transform_balance,
    transform_transaction,
)

CREATED = int(datetime(2024, 3, 5, 12, tzinfo=timezone.utc).timestamp())


def balance_transaction(**overrides: Any) -> StripeBalanceTransaction:
    data: dict[str, Any] = {
        "id": "txn_1",
        "amount": 1999,
        "currency": "usd",
        "created": CREATED,
        "description": "Invoice 0042",
        "fee": 88,
        "net": 1911,
        "status": "available",
        "type": "charge",
    }
    data.update(overrides)
    return StripeBalanceTransaction.model_validate(data)


class TestTransformTransaction:
    @pytest.mark.unit
    def test_charge_is_income(self) -> None:
        tx = transform_transaction(balance_transaction(), "acct_1")
        assert tx.amount == Decimal("-19.99")
        assert tx.date == date(2024, 3, 5)
        assert tx.currency == "USD"
        assert tx.name == "Invoice 0042"
        assert tx.description == "Charge"
        assert tx.method == TransactionMethod.PAYMENT.value
        assert tx.category == TransactionCategory.INCOME.value

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("type_", "amount", "category"),
        [
            ("stripe_fee", -500, TransactionCategory.PAYMENT_PROCESSOR_FEES),
            ("payout", -100000, TransactionCategory.PAYMENT_PLATFORM_PAYOUTS),
            ("refund", -1999, TransactionCategory.CUSTOMER_REFUNDS),
            ("transfer", -2000, TransactionCategory.TRANSFER),
        ],
    )
    def test_outflows(
        self, type_: str, amount: int, category: TransactionCategory
    ) -> None:
        tx = transform_transaction(
            balance_transaction(type=type_, amount=amount), "acct_1"
        )
        assert tx.amount > 0
        assert tx.category == category.value

    @pytest.mark.unit
    def test_zero_decimal_currency(self) -> None:
        tx = transform_transaction(
            balance_transaction(amount=5000, currency="jpy"), "acct_1"
        )
        assert tx.amount == Decimal("-5000")
        assert tx.currency == "JPY"

    @pytest.mark.unit
    def test_pending_and_name_fallback(self) -> None:
        tx = transform_transaction(
            balance_transaction(status="pending", description=None), "acct_1"
        )
        assert tx.status == "pending"
        assert tx.name == "Charge"
        assert tx.description is None


class TestTransformAccount:
    @pytest.mark.unit
    def test_multi_currency_balance(self) -> None:
        balance = StripeBalance.model_validate(
            {
                "available": [
                    {"amount": 12345, "currency": "usd"},
                    {"amount": 500, "currency": "eur"},
                ],
                "pending": [{"amount": 100, "currency": "usd"}],
            }
        )
        result = transform_balance(balance, "usd")

        assert result.amount == Decimal("123.45")
        assert result.currency == "USD"
        assert isinstance(result.available, list)
        assert [(a.currency, a.amount) for a in result.available] == [
            ("USD", Decimal("123.45")),
            ("EUR", Decimal("5")),
        ]

    @pytest.mark.unit
    def test_account_uses_business_name(self) -> None:
        account = StripeAccount.model_validate(
            {
                "id": "acct_1",
                "email": "ops@example.com",
                "default_currency": "gbp",
                "business_profile": {"name": "Example Ltd"},
            }
        )
        result = transform_account(
            account,
            StripeBalance.model_validate(
                {"available": [{"amount": 1000, "currency": "gbp"}]}
            ),
        )
        assert result.name == "Example Ltd"
        assert result.currency == "GBP"
        assert result.type == "depository"
        assert result.balance.amount == Decimal("10")
        assert result.institution.id == "stripe"

    @pytest.mark.unit
    def test_display_name_fallbacks(self) -> None:
        dashboard = StripeAccount.model_validate(
            {"id": "acct_1", "settings": {"dashboard": {"display_name": "Shop"}}}
        )
        bare = StripeAccount.model_validate({"id": "acct_2"})
        assert dashboard.display_name == "Shop"
        assert bare.display_name == "acct_2"
