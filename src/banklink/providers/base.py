"""Capability surface shared by all vendor adapters."""

import asyncio
import functools
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict

from ..errors import MissingParameterError
from ..models import (
    Account,
    AccountType,
    Balance,
    Institution,
    RecurringTransactionsResponse,
    StatementPdf,
    StatementsResponse,
    Transaction,
)

T = TypeVar("T")


class ProviderAdapter(Protocol):
    """What the facade needs from a vendor adapter.

    Adapters raise on failure; degradation to empty results is the facade's
    job.
    """

    name: str

    async def get_transactions(
        self,
        *,
        account_id: str,
        access_token: str | None = None,
        account_type: AccountType = AccountType.DEPOSITORY,
        latest: bool = False,
    ) -> list[Transaction]: ...

    async def get_accounts(
        self,
        *,
        id: str | None = None,
        access_token: str | None = None,
        institution_id: str | None = None,
        stripe_account_id: str | None = None,
    ) -> list[Account]: ...

    async def get_account_balance(
        self,
        *,
        account_id: str,
        access_token: str | None = None,
        account_type: AccountType | None = None,
    ) -> Balance | None: ...

    async def get_institutions(
        self, *, country_code: str | None = None
    ) -> list[Institution]: ...

    async def delete_accounts(
        self, *, account_id: str | None = None, access_token: str | None = None
    ) -> None: ...

    async def get_statements(
        self, *, access_token: str, account_id: str, user_id: str, team_id: str
    ) -> StatementsResponse: ...

    async def get_statement_pdf(
        self,
        *,
        access_token: str,
        statement_id: str,
        account_id: str,
        user_id: str,
        team_id: str,
    ) -> StatementPdf: ...

    async def get_recurring_transactions(
        self, *, account_id: str, access_token: str | None = None
    ) -> RecurringTransactionsResponse: ...

    async def get_health_check(self) -> bool: ...

    async def aclose(self) -> None: ...


def require(provider: str, **params: Any) -> None:
    """Fail fast when a vendor-required parameter is missing.

    Raises:
        MissingParameterError: For the first parameter that is None or empty
    """
    for name, value in params.items():
        if value is None or value == "":
            raise MissingParameterError(provider, name)


async def run_sync(
    func: Callable[..., T], *args: Any, timeout: float, **kwargs: Any
) -> T:
    """Run a blocking SDK call in a worker thread under a timeout."""
    return await asyncio.wait_for(
        asyncio.to_thread(functools.partial(func, *args, **kwargs)), timeout
    )


def empty_statements() -> StatementsResponse:
    """Placeholder for vendors without statement support."""
    return StatementsResponse(statements=[], institution_name="", institution_id="")


def empty_recurring() -> RecurringTransactionsResponse:
    """Placeholder for vendors without recurring-transaction support."""
    return RecurringTransactionsResponse(
        inflow=[], outflow=[], last_updated_at=datetime.now(timezone.utc)
    )


class VendorSchema(BaseModel):
    """Base for raw vendor payload schemas.

    Vendor payloads grow new fields without notice, so unknown fields are
    ignored. SDK model objects are accepted through attribute access.
    """

    model_config = ConfigDict(
        extra="ignore",
        str_strip_whitespace=True,
        from_attributes=True,
        populate_by_name=True,
    )


def enum_value(v: Any) -> Any:
    """Unwrap SDK enum-like values into plain strings."""
    if v is None:
        return None
    if isinstance(v, Enum):
        return v.value
    value = getattr(v, "value", None)
    if isinstance(value, str):
        return value
    return v
