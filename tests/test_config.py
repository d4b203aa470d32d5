"""Tests for core/config.py -- TOKEN_SECRET policy and session settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings

GOOD_SECRET = "x" * 32


def test_production_requires_secret() -> None:
    with pytest.raises(ValidationError, match="TOKEN_SECRET is required"):
        Settings(debug=False, token_secret="")


def test_short_secret_rejected() -> None:
    with pytest.raises(ValidationError, match="at least 32"):
        Settings(debug=False, token_secret="short")


def test_debug_generates_secret() -> None:
    settings = Settings(debug=True, token_secret="")
    assert len(settings.token_secret) == 64
    int(settings.token_secret, 16)


def test_non_positive_ttl_rejected() -> None:
    with pytest.raises(ValidationError, match="TOKEN_EXPIRE_SECONDS"):
        Settings(debug=False, token_secret=GOOD_SECRET, token_expire_seconds=0)


def test_defaults() -> None:
    settings = Settings(debug=False, token_secret=GOOD_SECRET)
    assert settings.token_expire_seconds == 86400
    assert settings.secure_cookies is True
    assert settings.strict_login_errors is False
    assert settings.default_role == "ejecutor"
    assert settings.default_internal_sec == "Guest"
