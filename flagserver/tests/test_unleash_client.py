"""
Tests for the Unleash flag provider wrapper.

The UnleashClient SDK is replaced with a mock; readiness is simulated by
invoking the event callback the wrapper registers with the SDK.
"""
from types import SimpleNamespace

import pytest
from unittest.mock import patch

from UnleashClient.events import UnleashEventType

from flagserver.clients import UnleashFlagProvider
from flagserver.config import get_settings
from flagserver.errors import ErrorCode, FlagProviderInitError


@pytest.fixture
def mock_sdk():
    """Patch the SDK class used by the provider."""
    with patch("flagserver.clients.unleash_client.UnleashClient") as sdk_class:
        yield sdk_class


def _ready_on_initialize(sdk_class, event_type=UnleashEventType.READY):
    """Make initialize_client() fire an event through the registered callback."""
    def _initialize(*args, **kwargs):
        callback = sdk_class.call_args.kwargs["event_callback"]
        callback(SimpleNamespace(event_type=event_type))

    sdk_class.return_value.initialize_client.side_effect = _initialize


class TestConstruction:
    """Tests for SDK configuration."""

    def test_from_settings_passes_configuration(self, mock_sdk):
        settings = get_settings(
            unleash_url="https://flags.example.com/api",
            unleash_app_name="staging",
            unleash_instance_id="instance-1",
            unleash_refresh_interval=20,
        )

        UnleashFlagProvider.from_settings(settings)

        kwargs = mock_sdk.call_args.kwargs
        assert kwargs["url"] == "https://flags.example.com/api"
        assert kwargs["app_name"] == "staging"
        assert kwargs["instance_id"] == "instance-1"
        assert kwargs["refresh_interval"] == 20
        assert kwargs["disable_metrics"] is True
        assert callable(kwargs["event_callback"])


class TestInitialize:
    """Tests for initialize()."""

    def test_success_when_ready_event_fires(self, mock_sdk):
        _ready_on_initialize(mock_sdk)
        provider = UnleashFlagProvider("https://flags", "app", "id")

        result = provider.initialize()

        assert result.ok is True
        assert result.error is None
        assert provider.is_ready

    def test_fetched_event_counts_as_ready(self, mock_sdk):
        _ready_on_initialize(mock_sdk, UnleashEventType.FETCHED)
        provider = UnleashFlagProvider("https://flags", "app", "id")

        assert provider.initialize().ok is True

    def test_sdk_exception_returns_failure(self, mock_sdk):
        mock_sdk.return_value.initialize_client.side_effect = RuntimeError("connection refused")
        provider = UnleashFlagProvider("https://flags", "app", "id")

        result = provider.initialize()

        assert result.ok is False
        assert isinstance(result.error, FlagProviderInitError)
        assert result.error.error_code == ErrorCode.PROVIDER_INIT_FAILED
        assert "connection refused" in str(result.error)

    def test_not_ready_before_timeout_returns_failure(self, mock_sdk):
        provider = UnleashFlagProvider("https://flags", "app", "id", ready_timeout=0.05)

        result = provider.initialize()

        assert result.ok is False
        assert result.error.error_code == ErrorCode.PROVIDER_NOT_READY

    def test_other_events_do_not_mark_ready(self, mock_sdk):
        _ready_on_initialize(mock_sdk, UnleashEventType.FEATURE_FLAG)
        provider = UnleashFlagProvider("https://flags", "app", "id", ready_timeout=0.05)

        assert provider.initialize().ok is False

    def test_debug_events_are_logged(self, mock_sdk, caplog):
        _ready_on_initialize(mock_sdk)
        provider = UnleashFlagProvider("https://flags", "app", "id", debug_events=True)

        with caplog.at_level("DEBUG", logger="flagserver.clients.unleash_client"):
            provider.initialize()

        assert any("Unleash event" in record.message for record in caplog.records)


class TestEvaluation:
    """Tests for is_enabled() and destroy()."""

    def test_is_enabled_delegates_to_sdk(self, mock_sdk):
        mock_sdk.return_value.is_enabled.return_value = True
        provider = UnleashFlagProvider("https://flags", "app", "id")

        assert provider.is_enabled("user-metadata") is True
        mock_sdk.return_value.is_enabled.assert_called_once_with("user-metadata")

    def test_destroy_when_initialized(self, mock_sdk):
        mock_sdk.return_value.is_initialized = True
        provider = UnleashFlagProvider("https://flags", "app", "id")

        provider.destroy()

        mock_sdk.return_value.destroy.assert_called_once()

    def test_destroy_skipped_when_not_initialized(self, mock_sdk):
        mock_sdk.return_value.is_initialized = False
        provider = UnleashFlagProvider("https://flags", "app", "id")

        provider.destroy()

        mock_sdk.return_value.destroy.assert_not_called()
