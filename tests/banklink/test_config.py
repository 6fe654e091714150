"""Tests for BankLink settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from banklink.config import (
    BankLinkSettings,
    clear_settings_cache,
    get_settings,
    reload_settings,
)


class TestBankLinkSettings:
    """Environment loading and validation of settings."""

    @pytest.mark.unit
    def test_defaults(self) -> None:
        settings = BankLinkSettings(_env_file=None)
        assert settings.plaid.environment == "production"
        assert settings.pagination.max_pages == 10
        assert settings.retry.max_attempts == 3
        assert settings.storage.statements_bucket is None

    @pytest.mark.unit
    def test_prefixed_nested_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BANKLINK_PLAID__SECRET", "from-env")
        monkeypatch.setenv("BANKLINK_HTTP__TIMEOUT_SECONDS", "12.5")
        settings = BankLinkSettings(_env_file=None)
        assert settings.plaid.secret == "from-env"
        assert settings.http.timeout_seconds == 12.5

    @pytest.mark.unit
    def test_legacy_flat_secrets(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PLAID_CLIENT_ID", "legacy-id")
        monkeypatch.setenv("PLAID_SECRET", "legacy-secret")
        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_legacy")
        monkeypatch.setenv("TELLER_CERTIFICATE_PATH", "/certs/teller.pem")
        settings = BankLinkSettings(_env_file=None)
        assert settings.plaid.client_id == "legacy-id"
        assert settings.plaid.secret == "legacy-secret"
        assert settings.stripe.secret_key == "sk_legacy"
        assert settings.teller.certificate_path == Path("/certs/teller.pem")

    @pytest.mark.unit
    def test_explicit_section_wins_over_legacy(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_legacy")
        settings = BankLinkSettings(_env_file=None, stripe={"secret_key": "sk_kw"})
        assert settings.stripe.secret_key == "sk_kw"

    @pytest.mark.unit
    def test_out_of_range_values_rejected(self) -> None:
        with pytest.raises(ValidationError):
            BankLinkSettings(_env_file=None, pagination={"max_pages": 0})

    @pytest.mark.unit
    def test_missing_credentials(self) -> None:
        settings = BankLinkSettings(_env_file=None, plaid={"client_id": "id"})
        assert settings.missing_credentials("plaid") == ["plaid.secret"]
        assert settings.missing_credentials("teller") == []
        with pytest.raises(ValueError, match="plaid.secret"):
            settings.validate_provider_credentials("plaid")


class TestSettingsCache:
    """Process-wide settings caching."""

    @pytest.mark.unit
    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()

    @pytest.mark.unit
    def test_reload_settings_picks_up_changes(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        first = get_settings()
        monkeypatch.setenv("BANKLINK_RETRY__MAX_ATTEMPTS", "5")
        reloaded = reload_settings()
        assert reloaded is not first
        assert reloaded.retry.max_attempts == 5
        clear_settings_cache()
