"""Helpers shared by the CLI commands."""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer
from pydantic import BaseModel

from ...config import get_settings
from ...errors import BankLinkError
from ...provider import Provider

logger = logging.getLogger(__name__)

T = TypeVar("T")

ProviderArgument = typer.Argument(
    ..., help="Provider identifier: gocardless, plaid, teller or stripe"
)


def to_jsonable(value: Any) -> Any:
    """Convert canonical models (and containers of them) to JSON data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def echo_json(value: Any) -> None:
    typer.echo(json.dumps(to_jsonable(value), indent=2, default=str))


def run_with_provider(
    provider: str,
    operation: Callable[[Provider], Awaitable[T]],
    *,
    require_credentials: bool = True,
) -> T:
    """Run one facade operation, exiting with status 1 on BankLink errors.

    Args:
        provider: Provider identifier
        operation: Coroutine function receiving the facade
        require_credentials: Fail before any vendor call when the provider's
            secrets are not configured

    Raises:
        typer.Exit: With status 1 on configuration or provider errors; the
            error object is printed as JSON
    """

    async def runner() -> T:
        async with Provider(provider, settings) as client:
            return await operation(client)

    try:
        settings = get_settings()
        if require_credentials:
            settings.validate_provider_credentials(provider.lower())
        return asyncio.run(runner())
    except BankLinkError as e:
        logger.error(f"❌ {e}")
        echo_json({"error": e.to_dict()})
        raise typer.Exit(1) from e
    except ValueError as e:
        logger.error(f"❌ Configuration error: {e}")
        raise typer.Exit(1) from e
