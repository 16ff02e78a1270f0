from __future__ import annotations

import functools
import os
from datetime import date
from unittest.mock import AsyncMock

import httpx
import pytest

# Test isolation: never read a local .env or reach a real collaborator.
os.environ["RECORD_STORE_URL"] = "https://store.test/api"
os.environ["RECORD_STORE_API_KEY"] = "test-store-key"
os.environ["OTP_SERVICE_URL"] = "https://otp.test/verify"
os.environ["CARD_STORE_URL"] = "https://cards.test"
os.environ["HTTP_TIMEOUT_SECONDS"] = "0.5"
os.environ["LOG_TO_FILE"] = "false"

from membership.repositories.subscription_repo import SubscriptionRepository
from membership.settings.config import Settings, get_settings

get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        record_store_url="https://store.test/api",
        record_store_api_key="test-store-key",
        otp_service_url="https://otp.test/verify",
        card_store_url="https://cards.test",
        http_timeout_seconds=0.5,
    )


@pytest.fixture
def today() -> date:
    return date(2024, 6, 20)


@pytest.fixture
def fake_repo() -> AsyncMock:
    """Repository double; every async method is an AsyncMock."""
    return AsyncMock(spec=SubscriptionRepository)


_RealAsyncClient = httpx.AsyncClient


@pytest.fixture
def mock_http(monkeypatch: pytest.MonkeyPatch):
    """Route every collaborator HTTP call through ``handler(request) -> httpx.Response``."""

    def _install(handler) -> None:
        transport = httpx.MockTransport(handler)
        monkeypatch.setattr(
            "membership.services.record_store.httpx.AsyncClient",
            functools.partial(_RealAsyncClient, transport=transport),
        )

    return _install
