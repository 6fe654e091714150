"""GoCardless Bank Account Data adapter.

Accounts are reached through a requisition (the end user's consent). The
application authenticates with a short-lived JWT obtained from its secret id
and key; the token pair is kept in the key/value store so concurrent workers
share it instead of minting a new one per request.
"""

import asyncio
import logging
from datetime import date, timedelta
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
from ...storage import InMemoryKeyValueStore, KeyValueStore
from ..base import empty_recurring, empty_statements, require
from .schemas import (
    GoCardlessAccountDetails,
    GoCardlessAccountMetadata,
    GoCardlessBalances,
    GoCardlessError,
    GoCardlessInstitution,
    GoCardlessRequisition,
    GoCardlessToken,
    GoCardlessTransactions,
)
from .transform import (
    transform_account,
    transform_balance,
    transform_institution,
    transform_transaction,
)

logger = logging.getLogger(__name__)

PROVIDER = ProviderName.GOCARDLESS.value

ACCESS_TOKEN_KEY = "gocardless:access_token"
REFRESH_TOKEN_KEY = "gocardless:refresh_token"
INSTITUTIONS_KEY = "gocardless:institutions"

ONE_HOUR = 3600
INSTITUTIONS_TTL = 24 * ONE_HOUR
LATEST_DAYS = 5


def parse_gocardless_error(response: httpx.Response) -> ProviderError:
    """Build a provider error from a GoCardless error body.

    Errors look like ``{"summary": ..., "detail": ..., "status_code": ...}``.
    """
    try:
        body = GoCardlessError.model_validate(response.json())
    except ValueError:
        body = GoCardlessError()

    detail = body.detail if isinstance(body.detail, str) else None
    message = detail or body.summary or response.reason_phrase or "GoCardless error"
    code = body.type or (body.summary or "").upper().replace(" ", "_") or None
    return ProviderError(
        message,
        code,
        status_code=body.status_code or response.status_code,
        provider=PROVIDER,
    )


def _token_ttl(expires_in: int | None) -> int:
    """Cache tokens for an hour less than they live, at least a minute."""
    return max((expires_in or 0) - ONE_HOUR, 60)


class GoCardlessApi:
    """GoCardless requisitions, accounts and transactions adapter."""

    name = PROVIDER

    def __init__(
        self,
        settings: BankLinkSettings,
        kv: KeyValueStore | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings
        self.kv = kv or InMemoryKeyValueStore()
        self._client = client or httpx.AsyncClient(
            base_url=settings.gocardless.base_url,
            timeout=settings.http.timeout_seconds,
            headers={"Accept": "application/json"},
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        response = await self._client.request(
            method, path, params=params, json=json, headers=headers
        )
        if response.is_error:
            raise parse_gocardless_error(response)
        return response.json() if response.content else None

    async def _get_access_token(self) -> str:
        """Return a valid access token, refreshing or minting one as needed."""
        access = await self.kv.get(ACCESS_TOKEN_KEY)
        if isinstance(access, str):
            return access

        refresh = await self.kv.get(REFRESH_TOKEN_KEY)
        if isinstance(refresh, str):
            try:
                data = await self._request(
                    "POST", "/api/v2/token/refresh/", json={"refresh": refresh}
                )
            except ProviderError as e:
                logger.debug(f"GoCardless token refresh failed, requesting new: {e}")
            else:
                token = GoCardlessToken.model_validate(data)
                await self.kv.set(
                    ACCESS_TOKEN_KEY, token.access, _token_ttl(token.access_expires)
                )
                return token.access

        data = await self._request(
            "POST",
            "/api/v2/token/new/",
            json={
                "secret_id": self.settings.gocardless.secret_id,
                "secret_key": self.settings.gocardless.secret_key,
            },
        )
        token = GoCardlessToken.model_validate(data)
        await self.kv.set(
            ACCESS_TOKEN_KEY, token.access, _token_ttl(token.access_expires)
        )
        if token.refresh:
            await self.kv.set(
                REFRESH_TOKEN_KEY, token.refresh, _token_ttl(token.refresh_expires)
            )
        return token.access

    async def _get_institution(
        self, institution_id: str, token: str
    ) -> GoCardlessInstitution:
        cache_key = f"{INSTITUTIONS_KEY}:{institution_id}"
        cached = await self.kv.get(cache_key)
        if cached is None:
            cached = await self._request(
                "GET", f"/api/v2/institutions/{institution_id}/", token=token
            )
            await self.kv.set(cache_key, cached, INSTITUTIONS_TTL)
        return GoCardlessInstitution.model_validate(cached)

    async def _get_account(
        self, account_id: str, token: str, institution: GoCardlessInstitution
    ) -> Account:
        metadata, details, balances = await asyncio.gather(
            self._request("GET", f"/api/v2/accounts/{account_id}/", token=token),
            self._request(
                "GET", f"/api/v2/accounts/{account_id}/details/", token=token
            ),
            self._request(
                "GET", f"/api/v2/accounts/{account_id}/balances/", token=token
            ),
        )
        return transform_account(
            GoCardlessAccountMetadata.model_validate(metadata),
            GoCardlessAccountDetails.model_validate(details.get("account", {})),
            GoCardlessBalances.model_validate(balances).balances,
            institution,
        )

    async def get_transactions(
        self,
        *,
        account_id: str,
        access_token: str | None = None,
        account_type: AccountType = AccountType.DEPOSITORY,
        latest: bool = False,
    ) -> list[Transaction]:
        """Fetch booked transactions; ``latest`` limits to the last five days.

        GoCardless returns the whole window in one response.
        """
        require(PROVIDER, account_id=account_id)

        token = await self._get_access_token()
        params = None
        if latest:
            date_from = date.today() - timedelta(days=LATEST_DAYS)
            params = {"date_from": date_from.isoformat()}

        data = await self._request(
            "GET",
            f"/api/v2/accounts/{account_id}/transactions/",
            token=token,
            params=params,
        )
        transactions = GoCardlessTransactions.model_validate(
            (data or {}).get("transactions", {})
        )
        return [transform_transaction(tx, account_id) for tx in transactions.booked]

    async def get_accounts(
        self,
        *,
        id: str | None = None,
        access_token: str | None = None,
        institution_id: str | None = None,
        stripe_account_id: str | None = None,
    ) -> list[Account]:
        """Fetch every account linked by a requisition.

        Args:
            id: Requisition id
        """
        require(PROVIDER, id=id)

        token = await self._get_access_token()
        requisition = GoCardlessRequisition.model_validate(
            await self._request("GET", f"/api/v2/requisitions/{id}/", token=token)
        )
        if not requisition.accounts:
            return []

        institution = await self._get_institution(requisition.institution_id, token)
        return list(
            await asyncio.gather(
                *(
                    self._get_account(account_id, token, institution)
                    for account_id in requisition.accounts
                )
            )
        )

    async def get_account_balance(
        self,
        *,
        account_id: str,
        access_token: str | None = None,
        account_type: AccountType | None = None,
    ) -> Balance | None:
        """Fetch the primary balance of an account."""
        require(PROVIDER, account_id=account_id)

        token = await self._get_access_token()
        data = await self._request(
            "GET", f"/api/v2/accounts/{account_id}/balances/", token=token
        )
        balances = GoCardlessBalances.model_validate(data).balances
        if not balances:
            return None
        return transform_balance(balances, account_type or AccountType.DEPOSITORY)

    async def get_institutions(
        self, *, country_code: str | None = None
    ) -> list[Institution]:
        """List institutions, cached for a day per country."""
        country = country_code.upper() if country_code else None
        cache_key = f"{INSTITUTIONS_KEY}:list:{country or 'all'}"

        raw = await self.kv.get(cache_key)
        if raw is None:
            token = await self._get_access_token()
            raw = await self._request(
                "GET",
                "/api/v2/institutions/",
                token=token,
                params={"country": country} if country else None,
            )
            await self.kv.set(cache_key, raw, INSTITUTIONS_TTL)

        institutions = [GoCardlessInstitution.model_validate(i) for i in raw or []]
        if country:
            institutions = [
                i for i in institutions if country in (c.upper() for c in i.countries)
            ]
        return [transform_institution(i) for i in institutions]

    async def delete_accounts(
        self, *, account_id: str | None = None, access_token: str | None = None
    ) -> None:
        """Delete the requisition, revoking access to all of its accounts.

        Args:
            account_id: Requisition id
        """
        require(PROVIDER, account_id=account_id)
        token = await self._get_access_token()
        await self._request(
            "DELETE", f"/api/v2/requisitions/{account_id}/", token=token
        )
        logger.info(f"Deleted GoCardless requisition {account_id}")

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
        """Probe the public API description endpoint."""
        try:
            response = await self._client.get(
                "/api/v2/swagger.json",
                timeout=self.settings.http.health_timeout_seconds,
            )
        except httpx.HTTPError as e:
            logger.debug(f"GoCardless health probe failed: {e}")
            return False
        return response.is_success

    async def aclose(self) -> None:
        await self._client.aclose()
