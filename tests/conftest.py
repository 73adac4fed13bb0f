"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets the TESTING environment variable so no .env file is loaded during
tests.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Iterator

import pytest
from fastapi import FastAPI

from newsletter.core.config import RateLimitSettings, Settings


def build_settings(**rate_limit_overrides) -> Settings:
    """Settings with the given rate limit fields overridden."""
    return Settings(rate_limit=RateLimitSettings(**rate_limit_overrides))


@pytest.fixture
def app_factory(monkeypatch: pytest.MonkeyPatch) -> Iterator:
    """Build fresh apps, each with its own settings and limiter state.

    ``app_factory(email_requests=1)`` overrides rate limit fields;
    ``app_factory(settings=...)`` passes a complete settings object.
    """
    from newsletter.core import app_factory as factory_module

    # Keep pytest's log capture handlers on the root logger.
    monkeypatch.setattr(factory_module, "configure_logging", lambda *_: None)

    def _create(settings: Settings | None = None, **rate_limit_overrides) -> FastAPI:
        return factory_module.create_app(settings or build_settings(**rate_limit_overrides))

    yield _create
