"""Main CLI application for BankLink.

This module provides the entry point for the BankLink debug CLI, organizing
provider reads into command groups. Every command prints canonical JSON on
stdout; logs go to stderr.
"""

import logging
from typing import Annotated

import typer
from dotenv import load_dotenv

from ..logging import setup_logging
from .commands import accounts, health, institutions, statements, transactions

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="banklink",
    help="BankLink: uniform access to banking and payments data providers",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose debug logging",
        ),
    ] = False,
) -> None:
    """Global options for BankLink CLI.

    Provider secrets are read from the environment or a local .env file, for
    example PLAID_CLIENT_ID, GOCARDLESS_SECRET_KEY or BANKLINK_STRIPE__SECRET_KEY.

    Examples:
      banklink health
      banklink accounts list plaid --access-token tok --institution-id ins_3
      banklink transactions list teller --account-id acc_123 --access-token tok
    """
    load_dotenv()
    setup_logging(cli_mode=True, verbose=verbose)


app.command("health")(health.health)
app.add_typer(accounts.app, name="accounts", help="Accounts and balances")
app.add_typer(
    transactions.app, name="transactions", help="Transactions and recurring streams"
)
app.add_typer(institutions.app, name="institutions", help="Supported institutions")
app.add_typer(statements.app, name="statements", help="Bank statements")


def main() -> None:
    """Entry point for the BankLink CLI application."""
    app()


if __name__ == "__main__":
    main()
