"""Transaction commands for BankLink CLI."""

import logging

import typer

from ...models import AccountType
from ._common import ProviderArgument, echo_json, run_with_provider

app = typer.Typer(help="Read transactions and recurring streams")
logger = logging.getLogger(__name__)


@app.command("list")
def list_transactions(
    provider: str = ProviderArgument,
    account_id: str = typer.Option(..., "--account-id"),
    access_token: str | None = typer.Option(None, "--access-token"),
    account_type: AccountType = typer.Option(
        AccountType.DEPOSITORY, "--account-type"
    ),
    latest: bool = typer.Option(
        False, "--latest", help="Fetch only the most recent page"
    ),
) -> None:
    """List posted transactions of an account."""
    transactions = run_with_provider(
        provider,
        lambda p: p.get_transactions(
            account_id=account_id,
            access_token=access_token,
            account_type=account_type,
            latest=latest,
        ),
    )
    logger.info(f"Fetched {len(transactions)} transactions")
    echo_json(transactions)


@app.command("recurring")
def recurring_transactions(
    provider: str = ProviderArgument,
    account_id: str = typer.Option(..., "--account-id"),
    access_token: str | None = typer.Option(None, "--access-token"),
) -> None:
    """Show recurring inflow and outflow streams (Plaid)."""
    response = run_with_provider(
        provider,
        lambda p: p.get_recurring_transactions(
            account_id=account_id, access_token=access_token
        ),
    )
    echo_json(response)
