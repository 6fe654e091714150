"""Institution commands for BankLink CLI."""

import logging

import typer

from ._common import ProviderArgument, echo_json, run_with_provider

app = typer.Typer(help="List institutions supported by a provider")
logger = logging.getLogger(__name__)


@app.command("list")
def list_institutions(
    provider: str = ProviderArgument,
    country_code: str | None = typer.Option(
        None, "--country", "-c", help="ISO country code, e.g. US or GB"
    ),
) -> None:
    """List institutions, optionally for one country."""
    institutions = run_with_provider(
        provider, lambda p: p.get_institutions(country_code=country_code)
    )
    logger.info(f"Found {len(institutions)} institutions")
    echo_json(institutions)
