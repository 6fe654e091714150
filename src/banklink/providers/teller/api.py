"""Teller adapter over the Teller REST API.

Teller authenticates the application with a client certificate (mTLS) and
the enrollment with HTTP basic auth, the access token being the username.
"""

import asyncio
import logging
import ssl
from typing import Any

import httpx

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
from ...utils.account import get_account_type
from ..base import empty_recurring, empty_statements, require
from .schemas import TellerAccount, TellerBalance, TellerInstitution, TellerTransaction
from .transform import (
    transform_account,
    transform_balance,
    transform_institution,
    transform_transaction,
)

logger = logging.getLogger(__name__)

PROVIDER = ProviderName.TELLER.value

HEALTHY_STATUS_INDICATORS = frozenset({"none", "maintenance"})


def parse_teller_error(response: httpx.Response) -> ProviderError:
    """Build a provider error from a Teller error response.

    Teller wraps errors as ``{"error": {"code": ..., "message": ...}}``.
    """
    code = None
    message = response.reason_phrase or f"HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        code = body["error"].get("code")
        message = body["error"].get("message") or message

    return ProviderError(
        message, code, status_code=response.status_code, provider=PROVIDER
    )


def _build_ssl_context(settings: BankLinkSettings) -> ssl.SSLContext | bool:
    teller = settings.teller
    if not teller.certificate_path or not teller.private_key_path:
        return True
    context = ssl.create_default_context()
    context.load_cert_chain(
        certfile=str(teller.certificate_path), keyfile=str(teller.private_key_path)
    )
    return context


class TellerApi:
    """Teller accounts, balances and transactions adapter."""

    name = PROVIDER

    def __init__(
        self, settings: BankLinkSettings, *, client: httpx.AsyncClient | None = None
    ):
        self.settings = settings
        self._client = client or httpx.AsyncClient(
            base_url=settings.teller.base_url,
            timeout=settings.http.timeout_seconds,
            verify=_build_ssl_context(settings),
            headers={"Accept": "application/json"},
        )

    async def _get(
        self, path: str, access_token: str, params: dict[str, Any] | None = None
    ) -> Any:
        response = await self._client.get(
            path, params=params, auth=(access_token, "")
        )
        if response.is_error:
            raise parse_teller_error(response)
        return response.json()

    async def _delete(self, path: str, access_token: str) -> None:
        response = await self._client.delete(path, auth=(access_token, ""))
        if response.is_error:
            raise parse_teller_error(response)

    async def get_transactions(
        self,
        *,
        account_id: str,
        access_token: str | None = None,
        account_type: AccountType = AccountType.DEPOSITORY,
        latest: bool = False,
    ) -> list[Transaction]:
        """Fetch posted transactions newest first, paging backwards with ``from_id``.

        Pending rows are dropped; Teller reissues their ids once they post.
        """
        require(PROVIDER, access_token=access_token, account_id=account_id)

        pagination = self.settings.pagination
        raw: list[dict[str, Any]] = []
        params: dict[str, Any] = {"count": pagination.page_size}

        for page_number in range(1, pagination.max_pages + 1):
            page = await self._get(
                f"/accounts/{account_id}/transactions", access_token, params
            )
            raw.extend(page)

            if latest or len(page) < pagination.page_size:
                break
            if page_number == pagination.max_pages:
                logger.warning(
                    f"Teller transactions for {account_id} stopped after "
                    f"{page_number} pages"
                )
                break
            params = {"count": pagination.page_size, "from_id": page[-1]["id"]}

        transactions = [TellerTransaction.model_validate(tx) for tx in raw]
        return [
            transform_transaction(tx, account_id, account_type)
            for tx in transactions
            if tx.status.lower() != "pending"
        ]

    async def get_accounts(
        self,
        *,
        id: str | None = None,
        access_token: str | None = None,
        institution_id: str | None = None,
        stripe_account_id: str | None = None,
    ) -> list[Account]:
        """Fetch the enrollment's open accounts with their balances."""
        require(PROVIDER, access_token=access_token)

        accounts = [
            TellerAccount.model_validate(a)
            for a in await self._get("/accounts", access_token)
        ]
        accounts = [a for a in accounts if (a.status or "open") == "open"]

        balances = await asyncio.gather(
            *(
                self._get(f"/accounts/{a.id}/balances", access_token)
                for a in accounts
            )
        )
        return [
            transform_account(account, TellerBalance.model_validate(balance))
            for account, balance in zip(accounts, balances)
        ]

    async def get_account_balance(
        self,
        *,
        account_id: str,
        access_token: str | None = None,
        account_type: AccountType | None = None,
    ) -> Balance | None:
        """Fetch the balances of one account."""
        require(PROVIDER, access_token=access_token, account_id=account_id)

        if account_type is None:
            account = TellerAccount.model_validate(
                await self._get(f"/accounts/{account_id}", access_token)
            )
            account_type = get_account_type(account.type)
            currency = account.currency
        else:
            currency = None

        balance = await self._get(f"/accounts/{account_id}/balances", access_token)
        return transform_balance(
            TellerBalance.model_validate(balance), account_type, currency
        )

    async def get_institutions(
        self, *, country_code: str | None = None
    ) -> list[Institution]:
        """List the banks Teller supports; Teller is US only."""
        if country_code and country_code.upper() != "US":
            return []
        response = await self._client.get("/institutions")
        if response.is_error:
            raise parse_teller_error(response)
        return [
            transform_institution(TellerInstitution.model_validate(i))
            for i in response.json()
        ]

    async def delete_accounts(
        self, *, account_id: str | None = None, access_token: str | None = None
    ) -> None:
        """Disconnect every account of the enrollment."""
        require(PROVIDER, access_token=access_token)

        accounts = await self._get("/accounts", access_token)
        await asyncio.gather(
            *(self._delete(f"/accounts/{a['id']}", access_token) for a in accounts)
        )
        logger.info(f"Removed {len(accounts)} Teller accounts")

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
        """Check Teller's public status page."""
        try:
            response = await self._client.get(
                self.settings.teller.status_url,
                timeout=self.settings.http.health_timeout_seconds,
            )
            response.raise_for_status()
            indicator = response.json().get("status", {}).get("indicator")
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Teller health probe failed: {e}")
            return False
        return indicator in HEALTHY_STATUS_INDICATORS

    async def aclose(self) -> None:
        await self._client.aclose()
