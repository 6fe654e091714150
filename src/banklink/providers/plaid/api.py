"""Plaid adapter built on the Plaid Python SDK.

The SDK is synchronous; every call runs in a worker thread under the
configured timeout so the event loop is never blocked.
"""

import json
import logging
from collections.abc import Callable
from typing import Any

import httpx
from plaid.api import plaid_api
from plaid.api_client import ApiClient
from plaid.configuration import Configuration
from plaid.exceptions import ApiException
from plaid.model.accounts_get_request import AccountsGetRequest
from plaid.model.accounts_get_request_options import AccountsGetRequestOptions
from plaid.model.country_code import CountryCode
from plaid.model.institutions_get_by_id_request import InstitutionsGetByIdRequest
from plaid.model.institutions_get_request import InstitutionsGetRequest
from plaid.model.institutions_get_request_options import InstitutionsGetRequestOptions
from plaid.model.item_remove_request import ItemRemoveRequest
from plaid.model.products import Products
from plaid.model.statements_download_request import StatementsDownloadRequest
from plaid.model.statements_list_request import StatementsListRequest
from plaid.model.transactions_recurring_get_request import (
    TransactionsRecurringGetRequest,
)
from plaid.model.transactions_sync_request import TransactionsSyncRequest
from plaid.model.transactions_sync_request_options import (
    TransactionsSyncRequestOptions,
)

from ...config import BankLinkSettings
from ...errors import ProviderError
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
from ...statements import StatementPdfCache
from ...storage import InMemoryObjectStore, ObjectStore
from ...utils.paginate import paginate
from ..base import require, run_sync
from .schemas import (
    PlaidAccount,
    PlaidInstitution,
    PlaidRecurringResponse,
    PlaidStatementsList,
    PlaidTransaction,
)
from .transform import (
    transform_account,
    transform_balance,
    transform_institution,
    transform_recurring_response,
    transform_statements,
    transform_transaction,
)

logger = logging.getLogger(__name__)

PROVIDER = ProviderName.PLAID.value

# Plaid error codes that may clear up on their own.
TRANSIENT_ERROR_CODES = frozenset(
    {
        "PRODUCT_NOT_READY",
        "RATE_LIMIT_EXCEEDED",
        "INSTITUTION_DOWN",
        "INSTITUTION_NOT_RESPONDING",
        "INTERNAL_SERVER_ERROR",
        "PLANNED_MAINTENANCE",
    }
)

HEALTHY_STATUS_INDICATORS = frozenset({"none", "maintenance"})


def parse_plaid_error(error: ApiException) -> ProviderError:
    """Turn a Plaid SDK exception into a typed provider error.

    The SDK carries Plaid's JSON error object as a string in ``body``.
    """
    code = None
    message = str(getattr(error, "reason", None) or error)
    body = getattr(error, "body", None)
    if isinstance(body, (str, bytes)):
        try:
            details = json.loads(body)
        except ValueError:
            details = None
        if isinstance(details, dict):
            code = details.get("error_code")
            message = (
                details.get("display_message")
                or details.get("error_message")
                or message
            )

    status = getattr(error, "status", None)
    transient = True if code in TRANSIENT_ERROR_CODES else None
    return ProviderError(
        message,
        code,
        status_code=status if isinstance(status, int) else None,
        provider=PROVIDER,
        transient=transient,
    )


class PlaidApi:
    """Plaid Transactions, Statements and Institutions adapter."""

    name = PROVIDER

    def __init__(
        self,
        settings: BankLinkSettings,
        object_store: ObjectStore | None = None,
        *,
        client: Any | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the Plaid SDK client.

        Args:
            settings: Application settings with Plaid credentials
            object_store: Store backing the statement PDF cache
            client: Preconfigured ``PlaidApi`` SDK client
            http_client: Client used for the status page probe
        """
        self.settings = settings
        self.timeout = settings.http.timeout_seconds
        self.country_codes = list(settings.plaid.country_codes)
        self.statement_cache = StatementPdfCache(object_store or InMemoryObjectStore())

        if client is None:
            configuration = Configuration(
                host=self._get_plaid_environment(),
                api_key={
                    "clientId": settings.plaid.client_id,
                    "secret": settings.plaid.secret,
                },
            )
            client = plaid_api.PlaidApi(ApiClient(configuration))
        # Typed as Any to avoid partial-unknowns from the SDK stubs
        self.client: Any = client
        self._http = http_client or httpx.AsyncClient(
            timeout=settings.http.health_timeout_seconds
        )

        logger.debug(
            f"Initialized Plaid adapter for {settings.plaid.environment} environment"
        )

    def _get_plaid_environment(self) -> str:
        """Get the Plaid API base URL for the configured environment."""
        env_name = self.settings.plaid.environment.lower()
        if env_name == "production":
            return "https://production.plaid.com"
        if env_name == "development":
            return "https://development.plaid.com"
        return "https://sandbox.plaid.com"

    async def _call(self, method: Callable[..., Any], request: Any) -> Any:
        try:
            return await run_sync(method, request, timeout=self.timeout)
        except ApiException as e:
            raise parse_plaid_error(e) from e

    async def _get_institution(self, institution_id: str) -> PlaidInstitution:
        request = InstitutionsGetByIdRequest(
            institution_id=institution_id,
            country_codes=[CountryCode(c) for c in self.country_codes],
        )
        response = await self._call(self.client.institutions_get_by_id, request)
        return PlaidInstitution.model_validate(response.institution)

    async def get_transactions(
        self,
        *,
        account_id: str,
        access_token: str | None = None,
        account_type: AccountType = AccountType.DEPOSITORY,
        latest: bool = False,
    ) -> list[Transaction]:
        """Fetch posted transactions of one account via /transactions/sync.

        ``latest`` requests a single page. Otherwise pages are followed via
        ``next_cursor`` until ``has_more`` is false or the page cap is hit.
        Plaid syncs every account of the item at once, so results are
        filtered to ``account_id`` and pending transactions are dropped.
        """
        require(PROVIDER, access_token=access_token, account_id=account_id)

        pagination = self.settings.pagination
        options = TransactionsSyncRequestOptions(include_original_description=True)
        added: list[Any] = []
        cursor: str | None = None
        pages = 0

        while True:
            params: dict[str, Any] = {
                "access_token": access_token,
                "count": pagination.page_size,
                "options": options,
            }
            if cursor:
                params["cursor"] = cursor

            response = await self._call(
                self.client.transactions_sync, TransactionsSyncRequest(**params)
            )
            added.extend(getattr(response, "added", None) or [])
            pages += 1

            if latest or not getattr(response, "has_more", False):
                break
            if pages >= pagination.max_pages:
                logger.warning(
                    f"Plaid sync for {account_id} stopped after {pages} pages"
                )
                break
            cursor = response.next_cursor

        transactions = [PlaidTransaction.model_validate(tx) for tx in added]
        return [
            transform_transaction(tx)
            for tx in transactions
            if tx.account_id == account_id and not tx.pending
        ]

    async def get_accounts(
        self,
        *,
        id: str | None = None,
        access_token: str | None = None,
        institution_id: str | None = None,
        stripe_account_id: str | None = None,
    ) -> list[Account]:
        """Fetch the accounts of an item with their institution."""
        require(PROVIDER, access_token=access_token, institution_id=institution_id)

        response = await self._call(
            self.client.accounts_get, AccountsGetRequest(access_token=access_token)
        )
        institution = await self._get_institution(institution_id)
        return [
            transform_account(PlaidAccount.model_validate(acct), institution)
            for acct in getattr(response, "accounts", None) or []
        ]

    async def get_account_balance(
        self,
        *,
        account_id: str,
        access_token: str | None = None,
        account_type: AccountType | None = None,
    ) -> Balance | None:
        """Fetch the balance of a single account."""
        require(PROVIDER, access_token=access_token, account_id=account_id)

        request = AccountsGetRequest(
            access_token=access_token,
            options=AccountsGetRequestOptions(account_ids=[account_id]),
        )
        response = await self._call(self.client.accounts_get, request)
        accounts = getattr(response, "accounts", None) or []
        if not accounts:
            return None
        return transform_balance(PlaidAccount.model_validate(accounts[0]).balances)

    async def get_institutions(
        self, *, country_code: str | None = None
    ) -> list[Institution]:
        """List institutions supporting transactions, paging by offset."""
        country_codes = [country_code] if country_code else self.country_codes
        options = InstitutionsGetRequestOptions(
            include_optional_metadata=True, products=[Products("transactions")]
        )

        async def fetch_page(offset: int, count: int) -> list[Any]:
            request = InstitutionsGetRequest(
                count=count,
                offset=offset,
                country_codes=[CountryCode(c) for c in country_codes],
                options=options,
            )
            response = await self._call(self.client.institutions_get, request)
            return list(getattr(response, "institutions", None) or [])

        pagination = self.settings.pagination
        raw = await paginate(
            fetch_page,
            page_size=pagination.page_size,
            delay=pagination.page_delay,
        )
        return [transform_institution(PlaidInstitution.model_validate(i)) for i in raw]

    async def delete_accounts(
        self, *, account_id: str | None = None, access_token: str | None = None
    ) -> None:
        """Remove the item, revoking the access token."""
        require(PROVIDER, access_token=access_token)
        await self._call(
            self.client.item_remove, ItemRemoveRequest(access_token=access_token)
        )
        logger.info("Removed Plaid item")

    async def get_statements(
        self, *, access_token: str, account_id: str, user_id: str, team_id: str
    ) -> StatementsResponse:
        """List the statements available for an account."""
        require(PROVIDER, access_token=access_token)
        response = await self._call(
            self.client.statements_list,
            StatementsListRequest(access_token=access_token),
        )
        return transform_statements(
            PlaidStatementsList.model_validate(response), account_id
        )

    async def get_statement_pdf(
        self,
        *,
        access_token: str,
        statement_id: str,
        account_id: str,
        user_id: str,
        team_id: str,
    ) -> StatementPdf:
        """Download a statement PDF, served from the object store when cached."""
        require(
            PROVIDER,
            access_token=access_token,
            statement_id=statement_id,
            account_id=account_id,
            user_id=user_id,
            team_id=team_id,
        )

        async def download() -> bytes:
            request = StatementsDownloadRequest(
                access_token=access_token, statement_id=statement_id
            )
            response = await self._call(self.client.statements_download, request)
            return _read_bytes(response)

        return await self.statement_cache.get_or_fetch(
            download,
            team_id=team_id,
            user_id=user_id,
            account_id=account_id,
            statement_id=statement_id,
        )

    async def get_recurring_transactions(
        self, *, account_id: str, access_token: str | None = None
    ) -> RecurringTransactionsResponse:
        """Fetch recurring inflow and outflow streams of an account."""
        require(PROVIDER, access_token=access_token, account_id=account_id)
        request = TransactionsRecurringGetRequest(
            access_token=access_token, account_ids=[account_id]
        )
        response = await self._call(self.client.transactions_recurring_get, request)
        return transform_recurring_response(
            PlaidRecurringResponse.model_validate(response)
        )

    async def get_health_check(self) -> bool:
        """Check Plaid's public status page; maintenance counts as healthy."""
        try:
            response = await self._http.get(self.settings.plaid.status_url)
            response.raise_for_status()
            indicator = response.json().get("status", {}).get("indicator")
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Plaid health probe failed: {e}")
            return False
        return indicator in HEALTHY_STATUS_INDICATORS

    async def aclose(self) -> None:
        await self._http.aclose()


def _read_bytes(response: Any) -> bytes:
    """The SDK returns statement downloads as bytes or a file object."""
    if isinstance(response, (bytes, bytearray)):
        return bytes(response)
    read = getattr(response, "read", None)
    if callable(read):
        return read()
    return bytes(response)
