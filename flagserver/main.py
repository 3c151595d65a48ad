"""
Flag server FastAPI application.

Main application entry point: app construction, provider bootstrap, and the
serve/shutdown sequence that maps each outcome to a process exit code.
"""
from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging
import os
from typing import Callable, Optional

from flagserver.config import Settings, settings as default_settings
from flagserver.api.routes import flags
from flagserver.clients import UnleashFlagProvider
from flagserver.errors import ExitCode, ServerListenError
from flagserver.features import FlagProvider
from flagserver.lifecycle import ServerConfig, ServerLifecycle, ShutdownCoordinator, ShutdownState

logger = logging.getLogger(__name__)


def configure_logging(app_settings: Settings = default_settings) -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=app_settings.numeric_log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logging.getLogger().setLevel(app_settings.numeric_log_level)


def create_app(provider: FlagProvider, app_settings: Settings = default_settings) -> FastAPI:
    """
    Build the FastAPI application serving flag snapshots from provider.

    Documentation routes are disabled so that "/" is the only route.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {app_settings.app_name} v{app_settings.app_version}")
        yield
        logger.info("Shutting down application...")

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        description="Feature flag evaluation service",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.flag_provider = provider

    app.include_router(flags.router)

    return app


def run(
    app_settings: Settings = default_settings,
    provider: Optional[FlagProvider] = None,
    exit_func: Callable[[int], None] = os._exit,
) -> ExitCode:
    """
    Initialize the provider, serve until shutdown, and return the exit code.

    A forced shutdown normally never returns: exit_func terminates the
    process with ExitCode.FORCED_SHUTDOWN.

    Args:
        app_settings: Settings to run with
        provider: Flag provider; an UnleashFlagProvider is built from settings if omitted
        exit_func: Called with the exit status when the grace period expires
    """
    if provider is None:
        provider = UnleashFlagProvider.from_settings(app_settings)

    coordinator = None
    try:
        result = provider.initialize()
        if not result.ok:
            logger.critical(str(result.error))
            return ExitCode.INITIALIZATION_FAILED

        app = create_app(provider, app_settings)
        lifecycle = ServerLifecycle(app, ServerConfig.from_settings(app_settings))
        coordinator = ShutdownCoordinator(
            lifecycle,
            grace_period=app_settings.shutdown_grace_period_seconds,
            exit_func=exit_func,
        )
        coordinator.register()

        # blocking
        try:
            lifecycle.start()
        except ServerListenError as e:
            logger.error(f"Error During Server's Listen & Serve Call ...: {e.message}")
            return ExitCode.LISTEN_ERROR

        if coordinator.state is not ShutdownState.RUNNING:
            coordinator.wait()

        if coordinator.state is ShutdownState.STOPPED_FORCED:
            return ExitCode.FORCED_SHUTDOWN

        logger.info("Graceful Shutdown Complete")
        return ExitCode.OK
    finally:
        provider.destroy()
        # Redundant signals are absorbed until the very end of the run
        if coordinator is not None:
            coordinator.unregister()

