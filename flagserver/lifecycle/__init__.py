"""
Server lifecycle and graceful shutdown.
"""

from flagserver.lifecycle.server import ServerConfig, ServerLifecycle
from flagserver.lifecycle.shutdown import (
    TERMINATION_SIGNALS,
    ShutdownCoordinator,
    ShutdownState,
)

__all__ = [
    "ServerConfig",
    "ServerLifecycle",
    "ShutdownCoordinator",
    "ShutdownState",
    "TERMINATION_SIGNALS",
]
