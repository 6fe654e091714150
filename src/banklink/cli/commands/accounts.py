"""Account and balance commands for BankLink CLI."""

import logging

import typer

from ...models import AccountType
from ._common import ProviderArgument, echo_json, run_with_provider

app = typer.Typer(help="Inspect and disconnect provider accounts")
logger = logging.getLogger(__name__)


@app.command("list")
def list_accounts(
    provider: str = ProviderArgument,
    id: str | None = typer.Option(
        None, "--id", help="GoCardless requisition id"
    ),
    access_token: str | None = typer.Option(None, "--access-token"),
    institution_id: str | None = typer.Option(
        None, "--institution-id", help="Plaid institution id"
    ),
    stripe_account_id: str | None = typer.Option(
        None, "--stripe-account-id", help="Stripe connected account id"
    ),
) -> None:
    """List the accounts behind a connection."""
    accounts = run_with_provider(
        provider,
        lambda p: p.get_accounts(
            id=id,
            access_token=access_token,
            institution_id=institution_id,
            stripe_account_id=stripe_account_id,
        ),
    )
    logger.info(f"Found {len(accounts)} accounts")
    echo_json(accounts)


@app.command("balance")
def account_balance(
    provider: str = ProviderArgument,
    account_id: str = typer.Option(..., "--account-id"),
    access_token: str | None = typer.Option(None, "--access-token"),
    account_type: AccountType | None = typer.Option(None, "--account-type"),
) -> None:
    """Show the balance of one account."""
    balance = run_with_provider(
        provider,
        lambda p: p.get_account_balance(
            account_id=account_id,
            access_token=access_token,
            account_type=account_type,
        ),
    )
    echo_json(balance)


@app.command("delete")
def delete_accounts(
    provider: str = ProviderArgument,
    account_id: str | None = typer.Option(
        None, "--account-id", help="Account, or GoCardless requisition, id"
    ),
    access_token: str | None = typer.Option(None, "--access-token"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Revoke access to the accounts of a connection."""
    if not yes:
        typer.confirm(f"Disconnect {provider} accounts?", abort=True)
    run_with_provider(
        provider,
        lambda p: p.delete_accounts(account_id=account_id, access_token=access_token),
    )
    logger.info(f"✅ Disconnected {provider} accounts")
