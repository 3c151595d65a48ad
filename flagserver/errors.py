"""
Custom exceptions, error codes and process exit codes for the flag server.

This module provides:
- Structured error codes for categorized error handling
- Custom exception classes for specific failure scenarios
- Reserved exit codes so operators can tell failures apart from the status alone
"""
from enum import Enum, IntEnum
from typing import Any, Dict, Optional


class ExitCode(IntEnum):
    """Process exit statuses."""

    OK = 0
    INITIALIZATION_FAILED = 2
    FORCED_SHUTDOWN = 99
    LISTEN_ERROR = 100


class ErrorCode(str, Enum):
    """
    Application-wide error codes.

    Format: CATEGORY_SPECIFIC_ERROR
    Categories:
    - PROVIDER_*: Flag provider client errors
    - SERVER_*: HTTP server lifecycle errors
    - SNAPSHOT_*: Flag snapshot errors
    """

    PROVIDER_INIT_FAILED = "PROVIDER_INIT_FAILED"
    PROVIDER_NOT_READY = "PROVIDER_NOT_READY"

    SERVER_LISTEN_FAILED = "SERVER_LISTEN_FAILED"
    SERVER_ALREADY_STARTED = "SERVER_ALREADY_STARTED"
    SERVER_SHUTDOWN_TIMEOUT = "SERVER_SHUTDOWN_TIMEOUT"

    SNAPSHOT_SERIALIZATION_FAILED = "SNAPSHOT_SERIALIZATION_FAILED"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class FlagServerError(Exception):
    """
    Base exception for all flag server errors.

    Provides structured error information for consistent logging.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


# Provider exceptions

class FlagProviderInitError(FlagServerError):
    """Raised when the flag provider client cannot be initialized."""

    def __init__(self, reason: str, error_code: ErrorCode = ErrorCode.PROVIDER_INIT_FAILED):
        super().__init__(
            message=f"unable to initialize unleash feature-flags: {reason}",
            error_code=error_code,
            details={"reason": reason},
        )


# Server lifecycle exceptions

class ServerLifecycleError(FlagServerError):
    """Base exception for server lifecycle errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.SERVER_ALREADY_STARTED,
        details: Dict[str, Any] = None,
    ):
        super().__init__(message=message, error_code=error_code, details=details)


class ServerListenError(ServerLifecycleError):
    """Raised when the listening socket cannot be bound (port in use, permission denied)."""

    def __init__(self, host: str, port: int, reason: str):
        super().__init__(
            message=f"unable to listen on {host}:{port}: {reason}",
            error_code=ErrorCode.SERVER_LISTEN_FAILED,
            details={"host": host, "port": port, "reason": reason},
        )


class ShutdownTimeoutError(ServerLifecycleError):
    """Raised when in-flight requests do not drain before the deadline."""

    def __init__(self, timeout: float):
        super().__init__(
            message=f"server did not drain within {timeout}s: deadline exceeded",
            error_code=ErrorCode.SERVER_SHUTDOWN_TIMEOUT,
            details={"timeout": timeout},
        )


# Snapshot exceptions

class SnapshotSerializationError(FlagServerError):
    """Raised when a flag snapshot cannot be encoded as JSON."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Failed to serialize flag snapshot: {reason}",
            error_code=ErrorCode.SNAPSHOT_SERIALIZATION_FAILED,
            details={"reason": reason},
        )
