"""
Shared pytest fixtures for flag server tests.

This module provides common fixtures for:
- An in-memory flag provider standing in for Unleash
- The FastAPI application and test client
- A real uvicorn server on an ephemeral port
"""
import socket
import threading
import time
from typing import Callable, Dict, Generator, Optional

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from flagserver.config import Settings, get_settings
from flagserver.features import InitializationResult
from flagserver.lifecycle import ServerConfig, ServerLifecycle
from flagserver.main import create_app


class FakeFlagProvider:
    """In-memory FlagProvider; unknown flags evaluate to False."""

    def __init__(
        self,
        flags: Optional[Dict[str, bool]] = None,
        delay: float = 0.0,
        init_error: Optional[Exception] = None,
        destroy_delay: float = 0.0,
    ):
        self.flags = dict(flags or {})
        self.delay = delay
        self.init_error = init_error
        self.destroy_delay = destroy_delay
        self.calls = []
        self.initialized = False
        self.destroyed = False

    def initialize(self) -> InitializationResult:
        if self.init_error is not None:
            return InitializationResult.failure(self.init_error)
        self.initialized = True
        return InitializationResult.success()

    def is_enabled(self, name: str) -> bool:
        self.calls.append(name)
        if self.delay:
            time.sleep(self.delay)
        return self.flags.get(name, False)

    def destroy(self) -> None:
        if self.destroy_delay:
            time.sleep(self.destroy_delay)
        self.destroyed = True


def _wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll predicate until it returns True or timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


def _find_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


# ============================================================================
# Helper Fixtures
# ============================================================================

@pytest.fixture
def wait_until() -> Callable[..., bool]:
    """Polling helper: wait_until(predicate, timeout=5.0) -> bool."""
    return _wait_until


@pytest.fixture
def free_port() -> int:
    """A loopback port that was free when the fixture ran."""
    return _find_free_port()


# ============================================================================
# Application Fixtures
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings bound to loopback with a short grace period."""
    return get_settings(host="127.0.0.1", port=0, shutdown_grace_period_seconds=2.0)


@pytest.fixture
def fake_provider() -> FakeFlagProvider:
    """Provider with user-metadata enabled."""
    return FakeFlagProvider({"user-metadata": True})


@pytest.fixture
def provider_factory() -> Callable[..., FakeFlagProvider]:
    """Factory for providers with custom flags, delays or init errors."""
    return FakeFlagProvider


@pytest.fixture
def app(fake_provider, test_settings) -> FastAPI:
    return create_app(fake_provider, test_settings)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """FastAPI test client for the flag application."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


# ============================================================================
# Live Server Fixtures
# ============================================================================

@pytest.fixture
def lifecycle_factory(test_settings):
    """
    Start real servers in background threads.

    Returns a function (app) -> (lifecycle, thread, errors). All started
    servers are stopped on teardown.
    """
    started = []

    def _start(app: FastAPI, config: Optional[ServerConfig] = None):
        lifecycle = ServerLifecycle(app, config or ServerConfig.from_settings(test_settings))
        errors = []

        def _serve():
            try:
                lifecycle.start()
            except Exception as e:  # surfaced to the test through errors
                errors.append(e)

        thread = threading.Thread(target=_serve, daemon=True)
        thread.start()
        started.append((lifecycle, thread))
        assert _wait_until(lambda: lifecycle.started or bool(errors)), "server did not start"
        return lifecycle, thread, errors

    yield _start

    for lifecycle, thread in started:
        if not lifecycle.stopped:
            lifecycle.stop(timeout=10)
        thread.join(timeout=10)


@pytest.fixture
def base_url_for():
    def _base_url(lifecycle: ServerLifecycle) -> str:
        host, port = lifecycle.address
        return f"http://{host}:{port}"

    return _base_url
