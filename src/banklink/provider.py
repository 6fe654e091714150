"""Provider facade: one async entry point over every vendor adapter.

The facade selects an adapter by provider identifier, wraps each call in the
retry wrapper and degrades read failures to safe empty results. Writes and
binary reads surface a typed error instead.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

from .config import BankLinkSettings, get_settings
from .errors import InvalidProviderError
from .models import (
    Account,
    AccountType,
    Balance,
    Institution,
    ProviderHealth,
    ProviderName,
    RecurringTransactionsResponse,
    StatementPdf,
    StatementsResponse,
    Transaction,
)
from .providers import GoCardlessApi, PlaidApi, ProviderAdapter, StripeApi, TellerApi
from .retry import RetryPolicy, with_retry
from .storage import KeyValueStore, ObjectStore, build_kv_store, build_object_store

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Providers probed on every health check; Stripe only when selected.
HEALTH_CHECK_PROVIDERS = (
    ProviderName.GOCARDLESS,
    ProviderName.PLAID,
    ProviderName.TELLER,
)


def _parse_provider(provider: str | ProviderName | None) -> ProviderName | None:
    if isinstance(provider, ProviderName):
        return provider
    try:
        return ProviderName(str(provider).lower())
    except ValueError:
        return None


class Provider:
    """Uniform access to a single banking or payments data provider.

    Example:
        async with Provider("plaid") as provider:
            accounts = await provider.get_accounts(
                access_token=token, institution_id="ins_3"
            )
    """

    def __init__(
        self,
        provider: str | ProviderName | None,
        settings: BankLinkSettings | None = None,
        *,
        object_store: ObjectStore | None = None,
        kv: KeyValueStore | None = None,
    ):
        """Select the adapter for a provider.

        Args:
            provider: Provider identifier (gocardless, plaid, teller, stripe).
                An unknown identifier leaves the facade without an adapter and
                every call raises ``InvalidProviderError``.
            settings: Application settings, loaded from the environment if None
            object_store: Store backing the statement PDF cache
            kv: Key/value store for vendor tokens and institution lists
        """
        self.settings = settings or get_settings()
        self.provider = provider
        self.name = _parse_provider(provider)
        # Stores built here are closed with the facade; injected ones are not.
        self._owned_stores: list[Any] = []
        if object_store is None:
            object_store = build_object_store(self.settings.storage.statements_bucket)
            self._owned_stores.append(object_store)
        if kv is None:
            kv = build_kv_store(self.settings.storage.redis_url)
            self._owned_stores.append(kv)
        self.object_store = object_store
        self.kv = kv

        self.read_policy = RetryPolicy.from_config(self.settings.retry)
        self.write_policy = self.read_policy.raising()

        self.adapter: ProviderAdapter | None = (
            self._create_adapter(self.name) if self.name else None
        )
        if self.adapter is None:
            logger.warning(f"No adapter for provider {provider!r}")

    def _create_adapter(self, name: ProviderName) -> ProviderAdapter:
        if name is ProviderName.GOCARDLESS:
            return GoCardlessApi(self.settings, self.kv)
        if name is ProviderName.PLAID:
            return PlaidApi(self.settings, self.object_store)
        if name is ProviderName.TELLER:
            return TellerApi(self.settings)
        return StripeApi(self.settings)

    def _require_adapter(self) -> ProviderAdapter:
        if self.adapter is None:
            raise InvalidProviderError(self.provider)
        return self.adapter

    async def _read(
        self, description: str, call: Callable[[], Awaitable[T]], default: Any
    ) -> Any:
        return await with_retry(
            call,
            self.read_policy,
            default=default,
            description=f"{self.provider}.{description}",
        )

    async def _write(self, description: str, call: Callable[[], Awaitable[T]]) -> T:
        return await with_retry(
            call, self.write_policy, description=f"{self.provider}.{description}"
        )

    async def get_transactions(
        self,
        account_id: str,
        access_token: str | None = None,
        account_type: AccountType = AccountType.DEPOSITORY,
        latest: bool = False,
    ) -> list[Transaction]:
        """Fetch posted transactions of an account, ``[]`` if the vendor fails."""
        adapter = self._require_adapter()
        return await self._read(
            "get_transactions",
            lambda: adapter.get_transactions(
                account_id=account_id,
                access_token=access_token,
                account_type=account_type,
                latest=latest,
            ),
            [],
        )

    async def get_accounts(
        self,
        id: str | None = None,
        access_token: str | None = None,
        institution_id: str | None = None,
        stripe_account_id: str | None = None,
    ) -> list[Account]:
        """Fetch the accounts behind a connection, ``[]`` if the vendor fails."""
        adapter = self._require_adapter()
        return await self._read(
            "get_accounts",
            lambda: adapter.get_accounts(
                id=id,
                access_token=access_token,
                institution_id=institution_id,
                stripe_account_id=stripe_account_id,
            ),
            [],
        )

    async def get_account_balance(
        self,
        account_id: str,
        access_token: str | None = None,
        account_type: AccountType | None = None,
    ) -> Balance | None:
        """Fetch an account balance, ``None`` if the vendor fails."""
        adapter = self._require_adapter()
        return await self._read(
            "get_account_balance",
            lambda: adapter.get_account_balance(
                account_id=account_id,
                access_token=access_token,
                account_type=account_type,
            ),
            None,
        )

    async def get_institutions(
        self, country_code: str | None = None
    ) -> list[Institution]:
        adapter = self._require_adapter()
        return await self._read(
            "get_institutions",
            lambda: adapter.get_institutions(country_code=country_code),
            [],
        )

    async def delete_accounts(
        self, account_id: str | None = None, access_token: str | None = None
    ) -> None:
        """Revoke access to the accounts of a connection.

        Raises:
            ProviderError: When the vendor rejects the call or retries run out
            OperationNotSupportedError: For vendors without deletion (Stripe)
        """
        adapter = self._require_adapter()
        await self._write(
            "delete_accounts",
            lambda: adapter.delete_accounts(
                account_id=account_id, access_token=access_token
            ),
        )

    async def get_statements(
        self, access_token: str, account_id: str, user_id: str, team_id: str
    ) -> StatementsResponse:
        adapter = self._require_adapter()
        return await self._read(
            "get_statements",
            lambda: adapter.get_statements(
                access_token=access_token,
                account_id=account_id,
                user_id=user_id,
                team_id=team_id,
            ),
            StatementsResponse(statements=[], institution_name="", institution_id=""),
        )

    async def get_statement_pdf(
        self,
        access_token: str,
        statement_id: str,
        account_id: str,
        user_id: str,
        team_id: str,
    ) -> StatementPdf:
        """Download a statement PDF through the object-store cache.

        Raises:
            ProviderError: When the download fails; there is no empty PDF
        """
        adapter = self._require_adapter()
        return await self._write(
            "get_statement_pdf",
            lambda: adapter.get_statement_pdf(
                access_token=access_token,
                statement_id=statement_id,
                account_id=account_id,
                user_id=user_id,
                team_id=team_id,
            ),
        )

    async def get_recurring_transactions(
        self, account_id: str, access_token: str | None = None
    ) -> RecurringTransactionsResponse:
        adapter = self._require_adapter()
        return await self._read(
            "get_recurring_transactions",
            lambda: adapter.get_recurring_transactions(
                account_id=account_id, access_token=access_token
            ),
            RecurringTransactionsResponse(
                inflow=[], outflow=[], last_updated_at=datetime.now(timezone.utc)
            ),
        )

    async def get_health_check(self) -> dict[str, ProviderHealth]:
        """Probe every provider concurrently.

        GoCardless, Plaid and Teller are always probed, Stripe when it is the
        selected provider. A probe that raises counts as unhealthy.

        Returns:
            dict[str, ProviderHealth]: Health keyed by provider identifier
        """
        names = list(HEALTH_CHECK_PROVIDERS)
        if self.name is ProviderName.STRIPE:
            names.append(ProviderName.STRIPE)

        results = await asyncio.gather(*(self._probe(name) for name in names))
        return {
            name.value: ProviderHealth(healthy=healthy)
            for name, healthy in zip(names, results)
        }

    async def _probe(self, name: ProviderName) -> bool:
        """Run one probe; any failure, including a timeout, counts as unhealthy."""
        owned = name is not self.name or self.adapter is None
        adapter: ProviderAdapter | None = None
        try:
            adapter = self._create_adapter(name) if owned else self.adapter
            return await asyncio.wait_for(
                adapter.get_health_check(),
                self.settings.http.health_timeout_seconds,
            )
        except Exception as e:
            logger.warning(f"Health probe for {name.value} failed: {e!r}")
            return False
        finally:
            if owned and adapter is not None:
                try:
                    await adapter.aclose()
                except Exception as e:
                    logger.debug(f"Closing {name.value} probe adapter failed: {e!r}")

    async def aclose(self) -> None:
        """Close the adapter transport and any store the facade created."""
        try:
            if self.adapter is not None:
                await self.adapter.aclose()
        finally:
            for store in self._owned_stores:
                close = getattr(store, "aclose", None)
                if close is not None:
                    await close()

    async def __aenter__(self) -> "Provider":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
