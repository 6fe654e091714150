"""Provider health check command."""

import typer

from ._common import echo_json, run_with_provider


def health(
    provider: str = typer.Argument(
        "plaid", help="Selected provider; stripe adds the Stripe probe"
    ),
) -> None:
    """Probe GoCardless, Plaid and Teller (and Stripe when selected).

    Exits with status 1 when any probed provider is unhealthy.
    """
    result = run_with_provider(
        provider, lambda p: p.get_health_check(), require_credentials=False
    )
    echo_json(result)
    if not all(h.healthy for h in result.values()):
        raise typer.Exit(1)
