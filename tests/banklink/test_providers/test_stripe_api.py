"""Tests for the Stripe adapter with a stubbed SDK module."""

from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest
import stripe

from banklink.config import BankLinkSettings
from banklink.errors import (
    OPERATION_NOT_SUPPORTED,
    MissingParameterError,
    OperationNotSupportedError,
    ProviderError,
)
from banklink.providers.stripe.api import StripeApi, parse_stripe_error


def balance_transaction(tx_id: str, amount: int = 1000) -> dict[str, Any]:
    return {
        "id": tx_id,
        "amount": amount,
        "currency": "usd",
        "created": 1709640000,
        "type": "charge",
        "status": "available",
    }


@pytest.fixture
def sdk() -> SimpleNamespace:
    return SimpleNamespace(
        Account=MagicMock(),
        Balance=MagicMock(),
        BalanceTransaction=MagicMock(),
    )


@pytest.fixture
def stripe_api(settings: BankLinkSettings, sdk: SimpleNamespace) -> StripeApi:
    return StripeApi(settings, client=sdk)


class TestParseStripeError:
    @pytest.mark.unit
    def test_rate_limit_is_transient(self) -> None:
        error = parse_stripe_error(
            stripe.RateLimitError("Too many requests", http_status=429)
        )
        assert error.is_transient
        assert error.provider == "stripe"

    @pytest.mark.unit
    def test_connection_error_is_transient(self) -> None:
        assert parse_stripe_error(stripe.APIConnectionError("reset")).is_transient

    @pytest.mark.unit
    def test_invalid_request_is_permanent(self) -> None:
        error = parse_stripe_error(
            stripe.InvalidRequestError(
                "No such account", "account", code="account_invalid", http_status=404
            )
        )
        assert error.code == "account_invalid"
        assert error.message == "No such account"
        assert error.status_code == 404
        assert not error.is_transient


class TestGetTransactions:
    @pytest.mark.unit
    async def test_follows_starting_after(
        self, stripe_api: StripeApi, sdk: SimpleNamespace
    ) -> None:
        sdk.BalanceTransaction.list.side_effect = [
            {
                "data": [balance_transaction("txn_1"), balance_transaction("txn_2")],
                "has_more": True,
            },
            {"data": [balance_transaction("txn_3")], "has_more": False},
        ]

        result = await stripe_api.get_transactions(account_id="acct_1")

        assert [t.id for t in result] == ["txn_1", "txn_2", "txn_3"]
        assert result[0].amount == Decimal("-10")
        calls = sdk.BalanceTransaction.list.call_args_list
        assert calls[0].kwargs["stripe_account"] == "acct_1"
        assert calls[0].kwargs["api_key"] == "sk_test_123"
        assert "starting_after" not in calls[0].kwargs
        assert calls[1].kwargs["starting_after"] == "txn_2"

    @pytest.mark.unit
    async def test_latest_fetches_one_page(
        self, stripe_api: StripeApi, sdk: SimpleNamespace
    ) -> None:
        sdk.BalanceTransaction.list.return_value = {
            "data": [balance_transaction("txn_1")],
            "has_more": True,
        }
        await stripe_api.get_transactions(account_id="acct_1", latest=True)
        assert sdk.BalanceTransaction.list.call_count == 1

    @pytest.mark.unit
    async def test_page_cap(self, stripe_api: StripeApi, sdk: SimpleNamespace) -> None:
        sdk.BalanceTransaction.list.return_value = {
            "data": [balance_transaction("txn_1")],
            "has_more": True,
        }
        await stripe_api.get_transactions(account_id="acct_1")
        assert sdk.BalanceTransaction.list.call_count == 3

    @pytest.mark.unit
    async def test_sdk_errors_become_provider_errors(
        self, stripe_api: StripeApi, sdk: SimpleNamespace
    ) -> None:
        sdk.BalanceTransaction.list.side_effect = stripe.AuthenticationError(
            "Invalid API Key", http_status=401
        )
        with pytest.raises(ProviderError) as exc_info:
            await stripe_api.get_transactions(account_id="acct_1")
        assert exc_info.value.status_code == 401


class TestAccounts:
    @pytest.mark.unit
    async def test_get_accounts(
        self, stripe_api: StripeApi, sdk: SimpleNamespace
    ) -> None:
        sdk.Account.retrieve.return_value = {
            "id": "acct_1",
            "default_currency": "usd",
            "business_profile": {"name": "Example Inc"},
        }
        sdk.Balance.retrieve.return_value = {
            "available": [{"amount": 5000, "currency": "usd"}],
            "pending": [],
        }

        accounts = await stripe_api.get_accounts(stripe_account_id="acct_1")

        assert len(accounts) == 1
        assert accounts[0].name == "Example Inc"
        assert accounts[0].balance.amount == Decimal("50")
        assert sdk.Account.retrieve.call_args.args == ("acct_1",)
        assert sdk.Balance.retrieve.call_args.kwargs["stripe_account"] == "acct_1"

    @pytest.mark.unit
    async def test_get_accounts_requires_account_id(
        self, stripe_api: StripeApi
    ) -> None:
        with pytest.raises(MissingParameterError) as exc_info:
            await stripe_api.get_accounts()
        assert exc_info.value.parameter == "stripe_account_id"

    @pytest.mark.unit
    async def test_delete_not_supported(self, stripe_api: StripeApi) -> None:
        with pytest.raises(OperationNotSupportedError) as exc_info:
            await stripe_api.delete_accounts(account_id="acct_1")
        assert exc_info.value.code == OPERATION_NOT_SUPPORTED

    @pytest.mark.unit
    async def test_single_institution(self, stripe_api: StripeApi) -> None:
        institutions = await stripe_api.get_institutions(country_code="US")
        assert [i.id for i in institutions] == ["stripe"]


class TestHealthCheck:
    @pytest.mark.unit
    async def test_healthy(self, stripe_api: StripeApi, sdk: SimpleNamespace) -> None:
        sdk.Balance.retrieve.return_value = {"available": []}
        assert await stripe_api.get_health_check() is True

    @pytest.mark.unit
    async def test_unhealthy_on_error(
        self, stripe_api: StripeApi, sdk: SimpleNamespace
    ) -> None:
        sdk.Balance.retrieve.side_effect = stripe.APIConnectionError("down")
        assert await stripe_api.get_health_check() is False

    @pytest.mark.unit
    async def test_unhealthy_without_key(self, sdk: SimpleNamespace) -> None:
        api = StripeApi(BankLinkSettings(_env_file=None), client=sdk)
        assert await api.get_health_check() is False
        sdk.Balance.retrieve.assert_not_called()
