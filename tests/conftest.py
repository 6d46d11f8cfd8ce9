"""Shared fixtures: a fake WordPress site, a client bound to it and a run config."""

import pytest
import pytest_asyncio

from tests.fixtures.fake_wordpress import (
    ADMIN_APP_PASSWORD,
    ADMIN_USERNAME,
    BASE_URL,
    FakeWordPress,
)
from wpmonke.client.wordpress import WordPressClient
from wpmonke.core import events
from wpmonke.core.config import HarnessConfig


@pytest.fixture(autouse=True)
def admin_env(monkeypatch):
    """Administrator credentials as the CLI would find them."""
    monkeypatch.setenv("WPMONKE_ADMIN_USER", ADMIN_USERNAME)
    monkeypatch.setenv("WPMONKE_ADMIN_APP_PASSWORD", ADMIN_APP_PASSWORD)


@pytest.fixture
def site():
    """A fresh fake site per test."""
    return FakeWordPress()


@pytest.fixture
def config_dict():
    return {
        "name": "fake-site",
        "description": "In-memory WordPress",
        "site": {"base_url": BASE_URL},
        "capabilities": {"principal_deletion": True, "login_password_auth": False},
        # Timing on the fake is meaningless; keep the budget generous
        "performance": {"query_budget_ms": 60000},
    }


@pytest.fixture
def config(config_dict):
    return HarnessConfig.from_dict(config_dict)


@pytest_asyncio.fixture
async def client(site, config):
    """Client wired to the fake site through ``httpx.MockTransport``."""
    wp = WordPressClient.from_config(config, transport=site.transport())
    yield wp
    await wp.aclose()


@pytest.fixture
def event_queue():
    """Subscribe to the event bus for the duration of a test."""
    queue = events.subscribe()
    yield queue
    events.unsubscribe(queue)
