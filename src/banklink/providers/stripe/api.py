"""Stripe adapter for connected accounts, built on the Stripe Python SDK.

A connected account is treated as a single depository account whose
transactions are its balance transactions. The SDK is synchronous, so calls
run in a worker thread under the configured timeout.
"""

import logging
from collections.abc import Callable
from typing import Any

import stripe

from ...config import BankLinkSettings
from ...errors import OperationNotSupportedError, ProviderError
from ...models import (
    Account,
    AccountType,
    Balance,
    Institution,
    ProviderName,
    RecurringTransactionsResponse,
    StatementPdf,
    StatementsResponse,
    Transaction,
)
from ..base import empty_recurring, empty_statements, require, run_sync
from .schemas import StripeAccount, StripeBalance, StripeBalanceTransaction
from .transform import (
    transform_account,
    transform_balance,
    transform_institution,
    transform_transaction,
)

logger = logging.getLogger(__name__)

PROVIDER = ProviderName.STRIPE.value

# Stripe caps list pages at 100 objects.
MAX_PAGE_SIZE = 100


def parse_stripe_error(error: stripe.StripeError) -> ProviderError:
    """Turn a Stripe SDK exception into a typed provider error."""
    transient = isinstance(error, (stripe.RateLimitError, stripe.APIConnectionError))
    code = getattr(error, "code", None) or type(error).__name__
    message = getattr(error, "user_message", None) or str(error)
    return ProviderError(
        message,
        code,
        status_code=getattr(error, "http_status", None),
        provider=PROVIDER,
        transient=True if transient else None,
    )


def _field(obj: Any, name: str) -> Any:
    """Read a field from a StripeObject or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class StripeApi:
    """Stripe connected-account balance and balance transaction adapter."""

    name = PROVIDER

    def __init__(self, settings: BankLinkSettings, *, client: Any | None = None):
        """Initialize the Stripe adapter.

        Args:
            settings: Application settings with the Stripe secret key
            client: Module-like object exposing Stripe resources, defaults to
                the ``stripe`` module
        """
        self.settings = settings
        self.timeout = settings.http.timeout_seconds
        self.stripe: Any = client or stripe
        self._request_options: dict[str, Any] = {"api_key": settings.stripe.secret_key}
        if settings.stripe.api_version:
            self._request_options["stripe_version"] = settings.stripe.api_version

    async def _call(
        self,
        method: Callable[..., Any],
        *args: Any,
        timeout: float | None = None,
        **params: Any,
    ) -> Any:
        try:
            return await run_sync(
                method,
                *args,
                timeout=timeout or self.timeout,
                **self._request_options,
                **params,
            )
        except stripe.StripeError as e:
            raise parse_stripe_error(e) from e

    async def _get_balance(self, account_id: str) -> StripeBalance:
        response = await self._call(
            self.stripe.Balance.retrieve, stripe_account=account_id
        )
        return StripeBalance.model_validate(response)

    async def get_transactions(
        self,
        *,
        account_id: str,
        access_token: str | None = None,
        account_type: AccountType = AccountType.DEPOSITORY,
        latest: bool = False,
    ) -> list[Transaction]:
        """Fetch balance transactions newest first, following ``starting_after``."""
        require(PROVIDER, account_id=account_id)

        max_pages = self.settings.pagination.max_pages
        limit = min(self.settings.pagination.page_size, MAX_PAGE_SIZE)
        raw: list[Any] = []
        params: dict[str, Any] = {"limit": limit, "stripe_account": account_id}

        for page_number in range(1, max_pages + 1):
            response = await self._call(self.stripe.BalanceTransaction.list, **params)
            page = list(_field(response, "data") or [])
            raw.extend(page)

            if latest or not page or not _field(response, "has_more"):
                break
            if page_number == max_pages:
                logger.warning(
                    f"Stripe balance transactions for {account_id} stopped after "
                    f"{page_number} pages"
                )
                break
            params = {**params, "starting_after": _field(page[-1], "id")}

        return [
            transform_transaction(
                StripeBalanceTransaction.model_validate(tx), account_id
            )
            for tx in raw
        ]

    async def get_accounts(
        self,
        *,
        id: str | None = None,
        access_token: str | None = None,
        institution_id: str | None = None,
        stripe_account_id: str | None = None,
    ) -> list[Account]:
        """Fetch the connected account with its balance."""
        require(PROVIDER, stripe_account_id=stripe_account_id)

        account = StripeAccount.model_validate(
            await self._call(self.stripe.Account.retrieve, stripe_account_id)
        )
        balance = await self._get_balance(stripe_account_id)
        return [transform_account(account, balance)]

    async def get_account_balance(
        self,
        *,
        account_id: str,
        access_token: str | None = None,
        account_type: AccountType | None = None,
    ) -> Balance | None:
        """Fetch the available balance of a connected account."""
        require(PROVIDER, account_id=account_id)
        return transform_balance(await self._get_balance(account_id))

    async def get_institutions(
        self, *, country_code: str | None = None
    ) -> list[Institution]:
        return [transform_institution()]

    async def delete_accounts(
        self, *, account_id: str | None = None, access_token: str | None = None
    ) -> None:
        raise OperationNotSupportedError(PROVIDER, "delete_accounts")

    async def get_statements(
        self, *, access_token: str, account_id: str, user_id: str, team_id: str
    ) -> StatementsResponse:
        return empty_statements()

    async def get_statement_pdf(
        self,
        *,
        access_token: str,
        statement_id: str,
        account_id: str,
        user_id: str,
        team_id: str,
    ) -> StatementPdf:
        raise OperationNotSupportedError(PROVIDER, "get_statement_pdf")

    async def get_recurring_transactions(
        self, *, account_id: str, access_token: str | None = None
    ) -> RecurringTransactionsResponse:
        return empty_recurring()

    async def get_health_check(self) -> bool:
        """Retrieve the platform balance as a credential and reachability probe."""
        if not self.settings.stripe.secret_key:
            return False
        try:
            await self._call(
                self.stripe.Balance.retrieve,
                timeout=self.settings.http.health_timeout_seconds,
            )
        except (ProviderError, TimeoutError) as e:
            logger.debug(f"Stripe health probe failed: {e}")
            return False
        return True

    async def aclose(self) -> None:
        return None
