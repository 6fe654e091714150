"""Shared pytest fixtures for banklink tests.

This module provides settings that never touch real vendors, fast retry
policies, and helpers for building stubbed HTTP transports.
"""

import os
from collections.abc import Callable, Generator
from typing import Any

import httpx
import pytest

from banklink.config import BankLinkSettings, clear_settings_cache

_VENDOR_ENV = (
    "GOCARDLESS_SECRET_ID",
    "GOCARDLESS_SECRET_KEY",
    "PLAID_CLIENT_ID",
    "PLAID_SECRET",
    "PLAID_ENVIRONMENT",
    "TELLER_CERTIFICATE_PATH",
    "TELLER_CERTIFICATE_PRIVATE_KEY_PATH",
    "STRIPE_SECRET_KEY",
)

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def clean_settings_state(
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[None, None, None]:
    """Clear cached settings and vendor secrets around every test."""
    for name in _VENDOR_ENV:
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("BANKLINK_"):
            monkeypatch.delenv(name, raising=False)

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> BankLinkSettings:
    """Settings with test credentials, no retry delays and small pages."""
    return BankLinkSettings(
        _env_file=None,
        gocardless={"secret_id": "gc-id", "secret_key": "gc-key"},
        plaid={"client_id": "plaid-id", "secret": "plaid-secret"},
        stripe={"secret_key": "sk_test_123"},
        retry={"max_attempts": 3, "initial_delay": 0, "max_delay": 0},
        pagination={"max_pages": 3, "page_size": 2, "page_delay": 0},
        http={"timeout_seconds": 5, "health_timeout_seconds": 1},
    )


@pytest.fixture
def mock_client() -> Callable[..., httpx.AsyncClient]:
    """Factory for AsyncClients whose requests are answered by a handler."""

    def factory(handler: Handler, **kwargs: Any) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(handler),
            base_url=kwargs.pop("base_url", "https://vendor.test"),
            **kwargs,
        )

    return factory
