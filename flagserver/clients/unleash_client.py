"""
Unleash flag provider.

Wraps the UnleashClient SDK behind the FlagProvider protocol. The SDK owns
flag evaluation and the periodic toggle refresh; this wrapper only handles
startup, readiness and teardown.
"""

import logging
import threading
from typing import Any, Optional

from UnleashClient import UnleashClient
from UnleashClient.events import UnleashEventType

from flagserver.config import Settings
from flagserver.errors import ErrorCode, FlagProviderInitError
from flagserver.features.protocol import InitializationResult

logger = logging.getLogger(__name__)

# Events that mean toggles have been loaded at least once
_READY_EVENTS = {UnleashEventType.READY, UnleashEventType.FETCHED}


class UnleashFlagProvider:
    """
    Flag provider backed by an Unleash (or GitLab feature-flag) endpoint.

    Example:
        >>> provider = UnleashFlagProvider.from_settings(settings)
        >>> result = provider.initialize()
        >>> if result.ok:
        ...     provider.is_enabled("user-metadata")
    """

    def __init__(
        self,
        url: str,
        app_name: str,
        instance_id: str,
        refresh_interval: int = 15,
        disable_metrics: bool = True,
        ready_timeout: float = 30.0,
        debug_events: bool = False,
    ):
        self.url = url
        self.ready_timeout = ready_timeout
        self.debug_events = debug_events
        self._ready = threading.Event()
        self._client = UnleashClient(
            url=url,
            app_name=app_name,
            instance_id=instance_id,
            refresh_interval=refresh_interval,
            disable_metrics=disable_metrics,
            event_callback=self._on_event,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "UnleashFlagProvider":
        return cls(
            url=settings.unleash_url,
            app_name=settings.unleash_app_name,
            instance_id=settings.unleash_instance_id,
            refresh_interval=settings.unleash_refresh_interval,
            disable_metrics=settings.unleash_disable_metrics,
            ready_timeout=settings.unleash_ready_timeout_seconds,
            debug_events=settings.unleash_debug_events,
        )

    def _on_event(self, event: Any) -> None:
        if self.debug_events:
            logger.debug(f"Unleash event: {event}")

        if getattr(event, "event_type", None) in _READY_EVENTS:
            self._ready.set()

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    def initialize(self, timeout: Optional[float] = None) -> InitializationResult:
        """
        Start the SDK and block until the first toggle fetch completes.

        Args:
            timeout: Seconds to wait for readiness, defaults to ready_timeout

        Returns:
            InitializationResult; on failure, error is a FlagProviderInitError
        """
        timeout = self.ready_timeout if timeout is None else timeout
        logger.info(f"Initializing Unleash client for {self.url}")

        try:
            self._client.initialize_client()
        except Exception as e:
            logger.error(f"Unleash client initialization failed: {e}")
            return InitializationResult.failure(FlagProviderInitError(str(e)))

        if not self._ready.wait(timeout):
            return InitializationResult.failure(
                FlagProviderInitError(
                    f"client not ready after {timeout}s",
                    error_code=ErrorCode.PROVIDER_NOT_READY,
                )
            )

        logger.info("Unleash client ready")
        return InitializationResult.success()

    def is_enabled(self, name: str) -> bool:
        return bool(self._client.is_enabled(name))

    def destroy(self) -> None:
        if self._client.is_initialized:
            self._client.destroy()
            logger.info("Unleash client destroyed")
