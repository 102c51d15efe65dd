from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_TRUTHY = ("1", "true", "yes", "on")


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    cors_origins: tuple[str, ...] = ("http://localhost:5173",)
    jwt_issuer: str = "identity-provider"
    jwt_audience: str = "elearn-api"
    jwt_public_key: str | None = None
    stripe_secret_key: str | None = None
    default_currency: str = "INR"
    jwt_leeway_seconds: int = 30

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def payments_enabled(self) -> bool:
        return self.stripe_secret_key is not None


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    leeway_raw = _getenv("JWT_LEEWAY_SECONDS", "30")
    try:
        leeway = int(leeway_raw)
    except ValueError:
        raise ValueError(
            f"JWT_LEEWAY_SECONDS must be an integer (got {leeway_raw!r})"
        ) from None

    currency = _getenv("DEFAULT_CURRENCY", "INR").upper()
    if len(currency) != 3 or not currency.isalpha():
        raise ValueError(
            f"DEFAULT_CURRENCY must be a 3-letter ISO code (got {currency!r})"
        )

    cors_raw = _getenv("CORS_ORIGINS", "http://localhost:5173")
    cors_origins = tuple(o.strip() for o in cors_raw.split(",") if o.strip())

    # PEM keys arrive through env files with literal "\n" sequences
    public_key = _getenv("JWT_PUBLIC_KEY", "").replace("\\n", "\n") or None

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv("LOG_JSON", "false").lower() in _TRUTHY,
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        cors_origins=cors_origins,
        jwt_issuer=_getenv("JWT_ISSUER", "identity-provider"),
        jwt_audience=_getenv("JWT_AUDIENCE", "elearn-api"),
        jwt_public_key=public_key,
        stripe_secret_key=_getenv("STRIPE_SECRET_KEY", "") or None,
        default_currency=currency,
        jwt_leeway_seconds=leeway,
    )


SETTINGS = load_settings()
