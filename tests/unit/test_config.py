"""Tests for environment-driven settings."""

import boto3
import pytest
from moto import mock_aws

from salonbook.config import Settings, get_settings, reset_settings


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DYNAMODB_TABLE_PREFIX", raising=False)
        monkeypatch.setenv("ENVIRONMENT", "prod")

        settings = Settings.from_env()

        assert settings.table_prefix == "salonbook-prod"
        assert settings.identity_algorithms == ["RS256"]

    def test_jwks_url_derived_from_issuer(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("IDENTITY_ISSUER", "https://id.example.com/")
        monkeypatch.delenv("IDENTITY_JWKS_URL", raising=False)

        settings = Settings.from_env()

        assert settings.identity_jwks_url == "https://id.example.com/.well-known/jwks.json"

    def test_lists_and_flags(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com")
        monkeypatch.setenv("NOTIFICATIONS_ENABLED", "no")

        settings = Settings.from_env()

        assert settings.cors_origins == ["https://a.example.com", "https://b.example.com"]
        assert settings.notifications_enabled is False

    def test_cached_until_reset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_settings()
        monkeypatch.setenv("ENVIRONMENT", "staging")
        assert get_settings() is first

        reset_settings()
        assert get_settings().environment == "staging"


class TestServiceApiKey:
    def test_env_value_wins(self) -> None:
        settings = Settings(service_api_key="k-env", service_api_key_ssm_parameter="/x")
        assert settings.resolve_service_api_key() == "k-env"

    def test_unconfigured(self) -> None:
        assert Settings().resolve_service_api_key() is None

    @mock_aws
    def test_read_from_ssm(self) -> None:
        ssm = boto3.client("ssm", region_name="eu-west-1")
        ssm.put_parameter(Name="/salonbook/test/api_key", Value="k-ssm", Type="SecureString")

        settings = Settings(service_api_key_ssm_parameter="/salonbook/test/api_key")

        assert settings.resolve_service_api_key() == "k-ssm"

    @mock_aws
    def test_missing_ssm_parameter_means_no_key(self) -> None:
        settings = Settings(service_api_key_ssm_parameter="/salonbook/test/missing")

        assert settings.resolve_service_api_key() is None
