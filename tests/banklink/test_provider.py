"""Tests for the provider facade."""

import asyncio
import time
from typing import Any

import pytest
from pytest_mock import MockerFixture

from banklink.config import BankLinkSettings
from banklink.errors import (
    INVALID_PROVIDER,
    InvalidProviderError,
    OperationNotSupportedError,
    ProviderError,
)
from banklink.models import ProviderName, StatementsResponse
from banklink.provider import Provider
from banklink.storage import InMemoryKeyValueStore, InMemoryObjectStore


def unavailable() -> ProviderError:
    return ProviderError(
        "Service unavailable", "HTTP_503", status_code=503, provider="fake"
    )


class FakeAdapter:
    """Adapter whose calls fail, sleep or report a fixed health."""

    def __init__(self, healthy: bool | Exception = True, delay: float = 0.0):
        self.healthy = healthy
        self.delay = delay
        self.calls = 0
        self.closed = False

    async def _fail(self, **kwargs: Any) -> Any:
        self.calls += 1
        raise unavailable()

    get_transactions = _fail
    get_accounts = _fail
    get_account_balance = _fail
    get_institutions = _fail
    get_statements = _fail
    get_recurring_transactions = _fail
    delete_accounts = _fail
    get_statement_pdf = _fail

    async def get_health_check(self) -> bool:
        await asyncio.sleep(self.delay)
        if isinstance(self.healthy, Exception):
            raise self.healthy
        return self.healthy

    async def aclose(self) -> None:
        self.closed = True


def make_provider(name: str, settings: BankLinkSettings) -> Provider:
    return Provider(
        name,
        settings,
        object_store=InMemoryObjectStore(),
        kv=InMemoryKeyValueStore(),
    )


@pytest.fixture
def fake_adapters(mocker: MockerFixture) -> dict[ProviderName, FakeAdapter]:
    """Route adapter construction to one FakeAdapter per provider."""
    adapters = {name: FakeAdapter() for name in ProviderName}
    mocker.patch.object(
        Provider, "_create_adapter", side_effect=lambda name: adapters[name]
    )
    return adapters


class TestProviderSelection:
    @pytest.mark.unit
    async def test_known_providers_get_an_adapter(
        self, settings: BankLinkSettings
    ) -> None:
        for name in ("gocardless", "plaid", "teller", "stripe"):
            async with make_provider(name, settings) as provider:
                assert provider.adapter is not None
                assert provider.adapter.name == name

    @pytest.mark.unit
    def test_identifier_is_case_insensitive(self, settings: BankLinkSettings) -> None:
        assert make_provider("Plaid", settings).name is ProviderName.PLAID

    @pytest.mark.unit
    async def test_unknown_provider_raises_on_every_call(
        self, settings: BankLinkSettings
    ) -> None:
        provider = make_provider("mx", settings)
        assert provider.adapter is None

        with pytest.raises(InvalidProviderError) as exc_info:
            await provider.get_accounts(access_token="tok")
        assert exc_info.value.code == INVALID_PROVIDER

        with pytest.raises(InvalidProviderError):
            await provider.get_transactions(account_id="acc_1")


class TestDegradation:
    @pytest.mark.unit
    async def test_reads_return_safe_defaults(
        self,
        settings: BankLinkSettings,
        fake_adapters: dict[ProviderName, FakeAdapter],
    ) -> None:
        """Reads fall back to empty results once retries are exhausted."""
        provider = make_provider("teller", settings)

        assert await provider.get_accounts(access_token="tok") == []
        assert await provider.get_transactions(account_id="acc_1") == []
        assert await provider.get_account_balance(account_id="acc_1") is None
        assert await provider.get_institutions(country_code="US") == []

        statements = await provider.get_statements(
            access_token="tok", account_id="acc_1", user_id="u", team_id="t"
        )
        assert statements == StatementsResponse(
            statements=[], institution_name="", institution_id=""
        )
        recurring = await provider.get_recurring_transactions(account_id="acc_1")
        assert recurring.inflow == [] and recurring.outflow == []

        # max_attempts per call from the settings fixture
        assert fake_adapters[ProviderName.TELLER].calls == 6 * 3

    @pytest.mark.unit
    async def test_delete_raises_after_retries(
        self,
        settings: BankLinkSettings,
        fake_adapters: dict[ProviderName, FakeAdapter],
    ) -> None:
        provider = make_provider("plaid", settings)

        with pytest.raises(ProviderError) as exc_info:
            await provider.delete_accounts(access_token="tok")

        assert exc_info.value.status_code == 503
        assert fake_adapters[ProviderName.PLAID].calls == 3

    @pytest.mark.unit
    async def test_statement_pdf_raises(
        self,
        settings: BankLinkSettings,
        fake_adapters: dict[ProviderName, FakeAdapter],
    ) -> None:
        provider = make_provider("plaid", settings)
        with pytest.raises(ProviderError):
            await provider.get_statement_pdf(
                access_token="tok",
                statement_id="st_1",
                account_id="acc_1",
                user_id="u",
                team_id="t",
            )

    @pytest.mark.unit
    async def test_stripe_delete_is_not_supported(
        self, settings: BankLinkSettings
    ) -> None:
        provider = make_provider("stripe", settings)
        with pytest.raises(OperationNotSupportedError):
            await provider.delete_accounts(account_id="acct_1")


class TestHealthCheck:
    @pytest.mark.unit
    async def test_probes_run_concurrently(
        self,
        settings: BankLinkSettings,
        fake_adapters: dict[ProviderName, FakeAdapter],
    ) -> None:
        for adapter in fake_adapters.values():
            adapter.delay = 0.2
        provider = make_provider("plaid", settings)

        started = time.monotonic()
        result = await provider.get_health_check()
        elapsed = time.monotonic() - started

        assert set(result) == {"gocardless", "plaid", "teller"}
        assert all(health.healthy for health in result.values())
        assert elapsed < 0.5

    @pytest.mark.unit
    async def test_failing_probe_is_unhealthy(
        self,
        settings: BankLinkSettings,
        fake_adapters: dict[ProviderName, FakeAdapter],
    ) -> None:
        fake_adapters[ProviderName.GOCARDLESS].healthy = RuntimeError("boom")
        fake_adapters[ProviderName.TELLER].healthy = False
        provider = make_provider("plaid", settings)

        result = await provider.get_health_check()

        assert result["gocardless"].healthy is False
        assert result["teller"].healthy is False
        assert result["plaid"].healthy is True

    @pytest.mark.unit
    async def test_slow_probe_times_out(
        self,
        settings: BankLinkSettings,
        fake_adapters: dict[ProviderName, FakeAdapter],
    ) -> None:
        fake_adapters[ProviderName.TELLER].delay = 5
        provider = make_provider("plaid", settings)

        result = await provider.get_health_check()

        assert result["teller"].healthy is False
        assert result["plaid"].healthy is True

    @pytest.mark.unit
    async def test_stripe_probed_only_when_selected(
        self,
        settings: BankLinkSettings,
        fake_adapters: dict[ProviderName, FakeAdapter],
    ) -> None:
        result = await make_provider("teller", settings).get_health_check()
        assert "stripe" not in result

        result = await make_provider("stripe", settings).get_health_check()
        assert set(result) == {"gocardless", "plaid", "teller", "stripe"}

    @pytest.mark.unit
    async def test_probe_adapters_are_closed(
        self,
        settings: BankLinkSettings,
        fake_adapters: dict[ProviderName, FakeAdapter],
    ) -> None:
        provider = make_provider("plaid", settings)
        await provider.get_health_check()

        assert fake_adapters[ProviderName.GOCARDLESS].closed
        assert fake_adapters[ProviderName.TELLER].closed
        assert not fake_adapters[ProviderName.PLAID].closed

    @pytest.mark.unit
    async def test_close_failure_does_not_fail_other_probes(
        self,
        settings: BankLinkSettings,
        fake_adapters: dict[ProviderName, FakeAdapter],
        mocker: MockerFixture,
    ) -> None:
        mocker.patch.object(
            fake_adapters[ProviderName.GOCARDLESS],
            "aclose",
            side_effect=RuntimeError("close failed"),
        )
        provider = make_provider("plaid", settings)

        result = await provider.get_health_check()

        assert result["gocardless"].healthy is True
        assert result["teller"].healthy is True
        assert fake_adapters[ProviderName.TELLER].closed


class TestLifecycle:
    @pytest.mark.unit
    async def test_async_context_manager_closes_adapter(
        self,
        settings: BankLinkSettings,
        fake_adapters: dict[ProviderName, FakeAdapter],
    ) -> None:
        async with make_provider("teller", settings) as provider:
            assert provider.adapter is fake_adapters[ProviderName.TELLER]
        assert fake_adapters[ProviderName.TELLER].closed

    @pytest.mark.unit
    async def test_closes_stores_it_built(
        self,
        settings: BankLinkSettings,
        fake_adapters: dict[ProviderName, FakeAdapter],
        mocker: MockerFixture,
    ) -> None:
        kv = InMemoryKeyValueStore()
        kv.aclose = mocker.AsyncMock()  # type: ignore[attr-defined]
        mocker.patch("banklink.provider.build_kv_store", return_value=kv)

        async with Provider(
            "teller", settings, object_store=InMemoryObjectStore()
        ) as provider:
            assert provider.kv is kv

        kv.aclose.assert_awaited_once()  # type: ignore[attr-defined]
        assert fake_adapters[ProviderName.TELLER].closed

    @pytest.mark.unit
    async def test_leaves_injected_stores_open(
        self,
        settings: BankLinkSettings,
        fake_adapters: dict[ProviderName, FakeAdapter],
        mocker: MockerFixture,
    ) -> None:
        kv = InMemoryKeyValueStore()
        kv.aclose = mocker.AsyncMock()  # type: ignore[attr-defined]

        async with Provider(
            "teller", settings, object_store=InMemoryObjectStore(), kv=kv
        ):
            pass

        kv.aclose.assert_not_awaited()  # type: ignore[attr-defined]
