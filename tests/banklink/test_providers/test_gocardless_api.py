"""Tests for the GoCardless adapter over a mock transport."""

import json
from collections.abc import Callable
from decimal import Decimal
from typing import Any

import httpx
import pytest

from banklink.config import BankLinkSettings
from banklink.errors import MissingParameterError, ProviderError
from banklink.providers.gocardless.api import (
    ACCESS_TOKEN_KEY,
    REFRESH_TOKEN_KEY,
    GoCardlessApi,
    parse_gocardless_error,
)
from banklink.storage import InMemoryKeyValueStore

TOKEN = {
    "access": "access-1",
    "access_expires": 86400,
    "refresh": "refresh-1",
    "refresh_expires": 2592000,
}

INSTITUTION = {
    "id": "REVOLUT_REVOGB21",
    "name": "Revolut",
    "countries": ["GB", "DE"],
    "transaction_total_days": "730",
}


class FakeGoCardless:
    """Serves a small GoCardless API and records requests."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.institutions = [
            INSTITUTION,
            {"id": "BANK_FR", "name": "Banque", "countries": ["FR"]},
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        method = request.method

        if path == "/api/v2/token/new/":
            return httpx.Response(200, json=TOKEN)
        if path == "/api/v2/token/refresh/":
            return httpx.Response(
                200, json={"access": "access-2", "access_expires": 86400}
            )
        if path == "/api/v2/requisitions/req_1/" and method == "GET":
            return httpx.Response(
                200,
                json={
                    "id": "req_1",
                    "institution_id": "REVOLUT_REVOGB21",
                    "accounts": ["acc_1", "acc_2"],
                },
            )
        if path == "/api/v2/requisitions/req_1/" and method == "DELETE":
            return httpx.Response(200, json={"summary": "Requisition deleted"})
        if path == "/api/v2/institutions/REVOLUT_REVOGB21/":
            return httpx.Response(200, json=INSTITUTION)
        if path == "/api/v2/institutions/":
            return httpx.Response(200, json=self.institutions)
        if path.endswith("/details/"):
            return httpx.Response(
                200,
                json={
                    "account": {
                        "currency": "EUR",
                        "name": "Main",
                        "cashAccountType": "CACC",
                    }
                },
            )
        if path.endswith("/balances/"):
            return httpx.Response(
                200,
                json={
                    "balances": [
                        {
                            "balanceAmount": {"amount": "12.50", "currency": "EUR"},
                            "balanceType": "interimAvailable",
                        }
                    ]
                },
            )
        if path.endswith("/transactions/"):
            return httpx.Response(
                200,
                json={
                    "transactions": {
                        "booked": [
                            {
                                "transactionId": "gc_1",
                                "bookingDate": "2024-02-10",
                                "transactionAmount": {
                                    "amount": "-42.10",
                                    "currency": "EUR",
                                },
                                "creditorName": "Deliveroo",
                            }
                        ],
                        "pending": [{"transactionAmount": {"amount": "-1"}}],
                    }
                },
            )
        if path.startswith("/api/v2/accounts/"):
            account_id = path.split("/")[4]
            return httpx.Response(200, json={"id": account_id, "status": "READY"})
        if path == "/api/v2/swagger.json":
            return httpx.Response(200, json={"openapi": "3.0"})
        return httpx.Response(404, json={"summary": "Not found", "status_code": 404})

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def fake() -> FakeGoCardless:
    return FakeGoCardless()


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def gocardless(
    settings: BankLinkSettings,
    fake: FakeGoCardless,
    kv: InMemoryKeyValueStore,
    mock_client: Callable[..., httpx.AsyncClient],
) -> GoCardlessApi:
    return GoCardlessApi(settings, kv, client=mock_client(fake))


class TestParseGoCardlessError:
    @pytest.mark.unit
    def test_error_body(self) -> None:
        response = httpx.Response(
            401,
            json={
                "summary": "Authentication failed",
                "detail": "No active account found with the given credentials",
                "status_code": 401,
            },
        )
        error = parse_gocardless_error(response)
        assert error.code == "AUTHENTICATION_FAILED"
        assert error.message.startswith("No active account")
        assert error.status_code == 401
        assert error.provider == "gocardless"

    @pytest.mark.unit
    def test_rate_limit_is_transient(self) -> None:
        response = httpx.Response(429, json={"summary": "Rate limit exceeded"})
        assert parse_gocardless_error(response).is_transient


class TestTokens:
    @pytest.mark.unit
    async def test_token_minted_once_and_cached(
        self,
        gocardless: GoCardlessApi,
        fake: FakeGoCardless,
        kv: InMemoryKeyValueStore,
    ) -> None:
        await gocardless.get_account_balance(account_id="acc_1")
        await gocardless.get_account_balance(account_id="acc_1")

        assert fake.paths().count("/api/v2/token/new/") == 1
        assert await kv.get(ACCESS_TOKEN_KEY) == "access-1"
        assert await kv.get(REFRESH_TOKEN_KEY) == "refresh-1"
        new_token = next(
            r for r in fake.requests if r.url.path == "/api/v2/token/new/"
        )
        assert json.loads(new_token.content) == {
            "secret_id": "gc-id",
            "secret_key": "gc-key",
        }
        balances = [r for r in fake.requests if r.url.path.endswith("/balances/")]
        assert balances[0].headers["Authorization"] == "Bearer access-1"

    @pytest.mark.unit
    async def test_refresh_used_when_access_expired(
        self,
        gocardless: GoCardlessApi,
        fake: FakeGoCardless,
        kv: InMemoryKeyValueStore,
    ) -> None:
        await kv.set(REFRESH_TOKEN_KEY, "refresh-1")
        await gocardless.get_account_balance(account_id="acc_1")

        assert "/api/v2/token/refresh/" in fake.paths()
        assert "/api/v2/token/new/" not in fake.paths()
        assert await kv.get(ACCESS_TOKEN_KEY) == "access-2"


class TestReads:
    @pytest.mark.unit
    async def test_get_accounts_from_requisition(
        self, gocardless: GoCardlessApi
    ) -> None:
        accounts = await gocardless.get_accounts(id="req_1")

        assert sorted(a.id for a in accounts) == ["acc_1", "acc_2"]
        assert all(a.institution.name == "Revolut" for a in accounts)
        assert accounts[0].balance.amount == Decimal("12.50")
        assert accounts[0].currency == "EUR"

    @pytest.mark.unit
    async def test_get_accounts_requires_requisition(
        self, gocardless: GoCardlessApi
    ) -> None:
        with pytest.raises(MissingParameterError) as exc_info:
            await gocardless.get_accounts()
        assert exc_info.value.parameter == "id"

    @pytest.mark.unit
    async def test_transactions_booked_only(self, gocardless: GoCardlessApi) -> None:
        transactions = await gocardless.get_transactions(account_id="acc_1")
        assert [t.id for t in transactions] == ["gc_1"]
        assert transactions[0].amount == Decimal("42.10")

    @pytest.mark.unit
    async def test_latest_sends_date_from(
        self, gocardless: GoCardlessApi, fake: FakeGoCardless
    ) -> None:
        await gocardless.get_transactions(account_id="acc_1", latest=True)
        request = next(
            r for r in fake.requests if r.url.path.endswith("/transactions/")
        )
        assert "date_from" in request.url.params

    @pytest.mark.unit
    async def test_institutions_filtered_and_cached(
        self, gocardless: GoCardlessApi, fake: FakeGoCardless
    ) -> None:
        first = await gocardless.get_institutions(country_code="gb")
        second = await gocardless.get_institutions(country_code="GB")

        assert [i.id for i in first] == ["REVOLUT_REVOGB21"]
        assert first == second
        assert fake.paths().count("/api/v2/institutions/") == 1

    @pytest.mark.unit
    async def test_delete_requisition(
        self, gocardless: GoCardlessApi, fake: FakeGoCardless
    ) -> None:
        await gocardless.delete_accounts(account_id="req_1")
        assert any(
            r.method == "DELETE" and r.url.path == "/api/v2/requisitions/req_1/"
            for r in fake.requests
        )

    @pytest.mark.unit
    async def test_unknown_requisition_raises(self, gocardless: GoCardlessApi) -> None:
        with pytest.raises(ProviderError) as exc_info:
            await gocardless.get_accounts(id="missing")
        assert exc_info.value.status_code == 404

    @pytest.mark.unit
    async def test_health_check(self, gocardless: GoCardlessApi) -> None:
        assert await gocardless.get_health_check() is True
