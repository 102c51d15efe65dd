from __future__ import annotations

import pytest

from elearn.core.config import load_settings


def test_load_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("APP_ENV", "LOG_LEVEL", "DATABASE_URL", "REDIS_URL", "STRIPE_SECRET_KEY"):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.app_env == "dev"
    assert settings.log_level == "info"
    assert settings.database_url is None
    assert settings.redis_url is None
    assert settings.payments_enabled is False
    assert settings.default_currency == "INR"


def test_load_settings_normalizes_case_and_whitespace(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("APP_ENV", "  PROD  ")
    monkeypatch.setenv("LOG_LEVEL", "Warning")
    monkeypatch.setenv("DEFAULT_CURRENCY", "usd")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.is_prod
    assert settings.log_level == "warning"
    assert settings.default_currency == "USD"


def test_cors_origins_split_on_commas(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example,")
    assert load_settings().cors_origins == ("https://a.example", "https://b.example")


def test_pem_newlines_are_unescaped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JWT_PUBLIC_KEY", "-----BEGIN-----\\nabc\\n-----END-----")
    assert load_settings().jwt_public_key == "-----BEGIN-----\nabc\n-----END-----"


def test_stripe_key_enables_payments(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
    assert load_settings().payments_enabled is True


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("APP_ENV", "staging", "APP_ENV must be"),
        ("LOG_LEVEL", "verbose", "LOG_LEVEL must be"),
        ("PORT", "eighty", "PORT must be an integer"),
        ("JWT_LEEWAY_SECONDS", "soon", "JWT_LEEWAY_SECONDS must be an integer"),
        ("DEFAULT_CURRENCY", "RUPEE", "DEFAULT_CURRENCY must be"),
    ],
)
def test_load_settings_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str, message: str
) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=message):
        load_settings()
