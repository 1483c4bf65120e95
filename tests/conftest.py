from __future__ import annotations

import os
import socket
from typing import Any

import pytest

# Ensure the app runs in a unit-test-safe configuration during pytest collection.
# Settings skip the local .env files when APP_ENV is "test", so a developer's
# SMTP or limit overrides never leak into the suite.
os.environ.setdefault("APP_ENV", "test")


class NetworkBlockedError(RuntimeError):
    pass


def _blocked(*_args: Any, **_kwargs: Any) -> Any:
    raise NetworkBlockedError(
        "Network access is disabled during tests. "
        "Mark the test with @pytest.mark.integration/@pytest.mark.network or set ALLOW_NETWORK=1."
    )


@pytest.fixture(autouse=True)
def _disable_network(monkeypatch: pytest.MonkeyPatch, request: pytest.FixtureRequest) -> None:
    """Prevent accidental outbound network calls (e.g. SMTP) in unit tests."""

    if os.getenv("ALLOW_NETWORK") == "1":
        return

    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("network"):
        return

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket, "getaddrinfo", _blocked)


def make_settings(**overrides: Any):
    """Settings isolated from the environment's .env files.

    Keys are the environment variable names, e.g. ``MAX_FILES_PER_SESSION=2``.
    """
    from airlink.core.settings import Settings

    values: dict[str, Any] = {"SESSION_IDLE_TTL_SECONDS": 0, "STATIC_DIR": "does-not-exist"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def settings(request, settings_factory):
    # Parametrize indirectly with a dict of overrides to tweak limits per test.
    overrides = getattr(request, "param", None) or {}
    return settings_factory(**overrides)


@pytest.fixture
def app(settings):
    from airlink.main import create_app

    return create_app(settings)


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    # Entering the client keeps one event loop for every WebSocket opened in a test.
    with TestClient(app) as test_client:
        yield test_client
