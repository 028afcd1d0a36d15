from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.core.config import Settings


def test_default_secret_key_allowed_in_development() -> None:
    settings = Settings(_env_file=None, app_env="development", secret_key="change-me")
    assert settings.secret_key == "change-me"


def test_default_secret_key_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(
            _env_file=None,
            app_env="production",
            secret_key="change-me",
            allow_memory_storage_in_production=True,
        )


def test_placeholder_secret_key_prefix_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(
            _env_file=None,
            app_env="production",
            secret_key="change-me-in-production",
            allow_memory_storage_in_production=True,
        )


def test_memory_storage_requires_explicit_ack_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="production", secret_key="super-secure-value")


def test_custom_secret_key_allowed_in_production_with_explicit_ack() -> None:
    settings = Settings(
        _env_file=None,
        app_env="production",
        secret_key="super-secure-value",
        allow_memory_storage_in_production=True,
    )
    assert settings.secret_key == "super-secure-value"


def test_redis_backend_requires_url() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, storage_backend="REDIS")

    settings = Settings(_env_file=None, storage_backend=" Redis ", redis_url="redis://cache:6379/0")
    assert settings.storage_backend == "redis"


def test_blank_remote_store_url_means_cache_only() -> None:
    settings = Settings(_env_file=None, remote_store_url="  ")
    assert settings.remote_store_url is None


def test_business_defaults() -> None:
    settings = Settings(_env_file=None, currency="eur")

    assert settings.currency == "EUR"
    assert settings.instructor_revenue_share == Decimal("0.70")
    assert settings.default_payment_method == "bank_transfer"
    assert settings.remote_store_timeout_seconds == 5.0


def test_revenue_share_must_be_a_fraction() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, instructor_revenue_share="1.5")
